"""Route blueprints package for API endpoints.

One blueprint per hop: service_a (client-facing /api routes), service_b
and service_c (internal routes called by the previous hop). Each module
documents its endpoint responsibilities and JSON contracts.
"""

from __future__ import annotations

from typing import Any, Dict

from flask import jsonify, request

from message_chain.schemas import UpdateTemplateRequest
from message_chain.services import get_chain_service


def json_payload() -> Dict[str, Any]:
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


def template_routes(bp, path: str, service_id: str) -> None:
    """Attach GET/PUT/DELETE template endpoints for one hop to ``bp``."""

    def get_template():
        return jsonify(get_chain_service().get_template(service_id).model_dump(mode="json"))

    def update_template():
        body = UpdateTemplateRequest.model_validate(json_payload())
        out = get_chain_service().update_template(service_id, body.template)
        return jsonify(out.model_dump(mode="json"))

    def reset_template():
        return jsonify(get_chain_service().reset_template(service_id).model_dump(mode="json"))

    bp.add_url_rule(path, "get_template", get_template, methods=["GET"])
    bp.add_url_rule(path, "update_template", update_template, methods=["PUT"])
    bp.add_url_rule(path, "reset_template", reset_template, methods=["DELETE"])
