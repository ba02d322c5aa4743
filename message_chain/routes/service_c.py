"""Service C routes: terminal hop called by Service B.

- POST /internal/service-c/finalize  { current_message } -> { message, chain }
- GET|PUT|DELETE /internal/service-c/message: hop C's template.
"""

from __future__ import annotations

import logging

from flask import Blueprint, jsonify, request

from message_chain.routes import json_payload, template_routes
from message_chain.schemas import ChainRequest
from message_chain.services import get_chain_service
from message_chain.services.hop_invoker import INTERNAL_HEADER

logger = logging.getLogger(__name__)

service_c_bp = Blueprint("service_c", __name__, url_prefix="/internal/service-c")


@service_c_bp.post("/finalize")
def finalize_message():
    logger.info(
        "Service C: Received internal request for finalization (%s=%s)",
        INTERNAL_HEADER, request.headers.get(INTERNAL_HEADER),
    )
    body = ChainRequest.model_validate(json_payload())
    out = get_chain_service().process_c(body, request.remote_addr)
    logger.info("Service C: Returning final message to Service B")
    return jsonify(out.model_dump(mode="json"))


template_routes(service_c_bp, "/message", "service-c")
