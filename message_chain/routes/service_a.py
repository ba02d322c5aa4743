"""Service A routes: client-facing entry point of the chain.

- GET /api/message?user=<name>: run the full A -> B -> C chain and return
  { message, chain, complete, total_length, processing_time_ms }.
- GET|PUT|DELETE /api/service-a/message: read, override or reset hop A's template.
"""

from __future__ import annotations

import logging

from flask import Blueprint, jsonify, request

from message_chain.routes import template_routes
from message_chain.services import get_chain_service

logger = logging.getLogger(__name__)

service_a_bp = Blueprint("service_a", __name__, url_prefix="/api")


@service_a_bp.get("/message")
def get_message():
    user = request.args.get("user") or "guest"
    logger.info("Received request for user: %s", user)
    result = get_chain_service().process_a(user, request.remote_addr)
    logger.info("Returning complete message chain to client")
    return jsonify(result.model_dump(mode="json"))


template_routes(service_a_bp, "/service-a/message", "service-a")
