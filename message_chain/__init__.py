"""Flask app factory and blueprint registration.

Defines `create_app()` to initialize the Flask app, load configuration,
build the shared chain service and hop invoker, enable CORS for the public
routes, and register the per-hop blueprints and error handlers.
"""

from __future__ import annotations

import logging
import weakref
from typing import Dict, Optional

import httpx
from flask import Flask
from flask_cors import CORS

from message_chain.config import Config, hop_defaults
from message_chain.errors import register_error_handlers
from message_chain.routes.service_a import service_a_bp
from message_chain.routes.service_b import service_b_bp
from message_chain.routes.service_c import service_c_bp
from message_chain.services import EXTENSION_KEY, FINALIZER_KEY
from message_chain.services.chain_service import ChainService
from message_chain.services.hop_invoker import HopInvoker, create_invoker
from message_chain.services.template_store import TemplateStore


def create_app(
    cfg: type = Config,
    invoker: Optional[HopInvoker] = None,
    transports: Optional[Dict[str, httpx.BaseTransport]] = None,
) -> Flask:
    """Build the app.

    ``invoker`` replaces the configured hop transport outright; ``transports``
    keeps the configured one but routes network hops through the given httpx
    transports (used by tests to stay off real sockets).
    """
    logging.basicConfig(
        level=getattr(logging, str(cfg.LOG_LEVEL).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(threadName)s] %(name)s: %(message)s",
    )

    app = Flask(__name__)
    # Basic config
    app.config.from_object(cfg)

    CORS(
        app,
        resources={r"/api/*": {"origins": "*"}},
        supports_credentials=False,
        allow_headers=["Content-Type", "Authorization"],
        methods=["GET", "PUT", "DELETE", "OPTIONS"],
    )

    store = TemplateStore(hop_defaults(cfg))
    service = ChainService(
        store,
        application_name=cfg.APP_NAME,
        max_user_length=cfg.MAX_USER_LENGTH,
    )
    if invoker is None:
        invoker = create_invoker(
            cfg,
            {"service-b": service.process_b, "service-c": service.process_c},
            transports=transports,
        )
        # Closed when the app is collected or at interpreter exit, whichever comes first.
        app.extensions[FINALIZER_KEY] = weakref.finalize(app, invoker.close)
    service.invoker = invoker
    app.extensions[EXTENSION_KEY] = service

    # Blueprints
    app.register_blueprint(service_a_bp)
    app.register_blueprint(service_b_bp)
    app.register_blueprint(service_c_bp)
    register_error_handlers(app, cfg)

    @app.get("/health")
    def health():
        return {"status": "ok", "application_name": cfg.APP_NAME}

    return app
