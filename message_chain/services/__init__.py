"""Service layer package housing the chain logic.

Contains the template store, chain link recorder, hop invokers (network
and in-process) and the chain orchestrator. Routes reach the shared
``ChainService`` through ``get_chain_service()``.
"""

from __future__ import annotations

from flask import current_app

EXTENSION_KEY = "message_chain"
FINALIZER_KEY = "message_chain.finalizer"


def get_chain_service():
    return current_app.extensions[EXTENSION_KEY]
