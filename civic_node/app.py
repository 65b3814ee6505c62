# civic_node/app.py
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import config as civic_config
from .api import events as events_api
from .api import governance as governance_api
from .api import roles as roles_api
from .api import treasury as treasury_api
from .civic_runtime.atomic_store import AtomicStateStore
from .civic_runtime.facade import GovernanceFacade
from .civic_runtime.funds import NativeBalances
from .civic_runtime.token_gate import InMemoryTokenLedger

log = logging.getLogger(__name__)


def build_facade(cfg: Dict[str, Any]) -> GovernanceFacade:
    """
    Wire the runtime from config: dev token ledger + native balances,
    optional snapshot store. An existing snapshot wins over genesis.
    """
    tokens = InMemoryTokenLedger(decimals=civic_config.get_token_decimals(cfg))
    for principal, amount in civic_config.get_token_balances(cfg).items():
        tokens.set_balance(principal, amount)

    funds = NativeBalances(balances=civic_config.get_fund_balances(cfg))

    store: Optional[AtomicStateStore] = None
    if civic_config.persistence_enabled(cfg):
        store = AtomicStateStore(
            civic_config.get_data_dir(cfg),
            filename=civic_config.get_state_filename(cfg),
            keep_backups=civic_config.get_keep_backups(cfg),
        )

    kwargs: Dict[str, Any] = {
        "public_action_suffix": civic_config.get_public_action_suffix(cfg),
        "store": store,
    }

    state = store.load() if store is not None else None
    if state is not None:
        log.info("restoring governance state from %s", store.path)
        return GovernanceFacade.from_state(state, tokens, funds, **kwargs)

    admin = civic_config.get_genesis_admin(cfg)
    log.info("genesis: admin=%s", admin)
    return GovernanceFacade.genesis(admin, tokens, funds, civic_config.get_genesis_members(cfg), **kwargs)


def create_app(cfg: Optional[Dict[str, Any]] = None, facade: Optional[GovernanceFacade] = None) -> FastAPI:
    cfg = cfg if cfg is not None else civic_config.load_config()

    app = FastAPI(title="Civic Treasury Node API", version="0.1.0")
    app.state.config = cfg
    app.state.facade = facade if facade is not None else build_facade(cfg)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=civic_config.get_cors_origins(cfg),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(governance_api.router)
    app.include_router(treasury_api.router)
    app.include_router(roles_api.router)
    app.include_router(events_api.router)

    @app.get("/health")
    def health():
        f = app.state.facade
        return {
            "ok": True,
            "proposals": f.proposal_count(),
            "donations": f.donation_count(),
            "persistent": f.store is not None,
        }

    return app
