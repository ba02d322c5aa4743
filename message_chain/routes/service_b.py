"""Service B routes: internal hop called by Service A.

- POST /internal/service-b/append  { current_message } -> { message, chain }
- GET|PUT|DELETE /internal/service-b/message: hop B's template.
"""

from __future__ import annotations

import logging

from flask import Blueprint, jsonify, request

from message_chain.routes import json_payload, template_routes
from message_chain.schemas import ChainRequest
from message_chain.services import get_chain_service
from message_chain.services.hop_invoker import INTERNAL_HEADER

logger = logging.getLogger(__name__)

service_b_bp = Blueprint("service_b", __name__, url_prefix="/internal/service-b")


@service_b_bp.post("/append")
def append_message():
    logger.info("Service B: Received internal request (%s=%s)", INTERNAL_HEADER, request.headers.get(INTERNAL_HEADER))
    body = ChainRequest.model_validate(json_payload())
    out = get_chain_service().process_b(body, request.remote_addr)
    logger.info("Service B: Returning response to Service A")
    return jsonify(out.model_dump(mode="json"))


template_routes(service_b_bp, "/message", "service-b")
