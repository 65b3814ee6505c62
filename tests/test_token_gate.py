# tests/test_token_gate.py
import pytest

from civic_node.civic_runtime.token_gate import InMemoryTokenLedger, TokenGate, holds_minimum


def test_minimum_unit_is_one_whole_token():
    t = InMemoryTokenLedger(decimals=18)
    assert t.minimum_unit() == 10**18
    assert InMemoryTokenLedger(decimals=0).minimum_unit() == 1


def test_holds_minimum_boundary():
    t = InMemoryTokenLedger(decimals=2)
    t.set_balance("@a", 99)
    t.set_balance("@b", 100)
    assert not holds_minimum(t, "@a")
    assert holds_minimum(t, "@b")
    assert not holds_minimum(t, "@unknown")


def test_in_memory_ledger_satisfies_protocol():
    assert isinstance(InMemoryTokenLedger(), TokenGate)


def test_negative_balance_rejected():
    with pytest.raises(ValueError):
        InMemoryTokenLedger().set_balance("@a", -1)
