import pathlib
import sys

import pytest

# Ensure repo root (containing the civic_node package) is on sys.path
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from civic_node.civic_runtime.facade import GovernanceFacade
from civic_node.civic_runtime.funds import NativeBalances
from civic_node.civic_runtime.token_gate import InMemoryTokenLedger

ADMIN = "@admin"
BOB = "@bob"
CAROL = "@carol"
DAVE = "@dave"  # member without tokens
EVE = "@eve"  # outsider with tokens, no role


@pytest.fixture
def tokens():
    t = InMemoryTokenLedger(decimals=18)
    t.set_whole_tokens(ADMIN, 10)
    t.set_whole_tokens(BOB, 1)
    t.set_whole_tokens(CAROL, 5)
    t.set_whole_tokens(EVE, 2)
    return t


@pytest.fixture
def funds():
    return NativeBalances()


@pytest.fixture
def facade(tokens, funds):
    """Fresh runtime per test: @admin is Admin, @bob/@carol/@dave are Members."""
    return GovernanceFacade.genesis(ADMIN, tokens, funds, members=[BOB, CAROL, DAVE])
