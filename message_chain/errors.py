"""Chain exceptions and the error mapper.

Every failure leaving a route is turned into an ``ErrorEnvelope`` JSON body
with a stable ``error_kind``:

- ``invalid_input`` (400): field validation, blank template, unknown hop.
- ``service_communication_error`` (503): downstream hop unreachable or bad reply.
- ``chain_failed`` (500): a hop failed mid-chain; carries the failed hop and
  the message composed before it.
- ``service_unavailable`` (503): anything unclassified.
"""

from __future__ import annotations

import logging
from typing import Optional, Tuple

from flask import Flask, jsonify
from pydantic import ValidationError
from werkzeug.exceptions import HTTPException

from message_chain.config import Config
from message_chain.schemas import ErrorEnvelope

logger = logging.getLogger(__name__)


class ChainError(Exception):
    """Base class for errors raised by the chain services."""


class InvalidInput(ChainError):
    pass


class UnknownService(InvalidInput):
    def __init__(self, service_id: str):
        super().__init__(f"Unknown service: {service_id}")
        self.service_id = service_id


class ServiceCommunicationFailure(ChainError):
    def __init__(self, target_hop: str, cause: object):
        super().__init__(f"Failed to communicate with {target_hop}: {cause}")
        self.target_hop = target_hop
        self.cause = cause


class ChainFailure(ChainError):
    def __init__(self, failed_service: str, partial_message: Optional[str], details: Optional[str] = None):
        super().__init__(details or f"Chain failed at {failed_service}")
        self.failed_service = failed_service
        self.partial_message = partial_message
        self.details = details


def _validation_message(exc: ValidationError) -> str:
    msgs = []
    for err in exc.errors():
        field = ".".join(str(p) for p in err.get("loc", ()))
        if err.get("type") == "missing":
            msgs.append(f"{field} is required")
            continue
        msg = err.get("msg", "invalid value")
        # pydantic prefixes custom ValueError messages
        if msg.startswith("Value error, "):
            msg = msg[len("Value error, "):]
        msgs.append(msg)
    return ", ".join(msgs)


def map_exception(exc: BaseException, retry_after: int = 30) -> Tuple[ErrorEnvelope, int]:
    """Map an exception to ``(envelope, http_status)``."""
    if isinstance(exc, ValidationError):
        return ErrorEnvelope(error_kind="invalid_input", message=_validation_message(exc)), 400
    if isinstance(exc, InvalidInput):
        return ErrorEnvelope(error_kind="invalid_input", message=str(exc)), 400
    if isinstance(exc, ServiceCommunicationFailure):
        return (
            ErrorEnvelope(
                error_kind="service_communication_error",
                message="Failed to communicate with downstream service",
                failed_service=exc.target_hop,
                details=str(exc),
                retry_after_seconds=retry_after,
            ),
            503,
        )
    if isinstance(exc, ChainFailure):
        return (
            ErrorEnvelope(
                error_kind="chain_failed",
                message="Failed to complete message chain",
                failed_service=exc.failed_service,
                details=exc.details,
                partial_message=exc.partial_message,
                retry_after_seconds=retry_after,
            ),
            500,
        )
    return (
        ErrorEnvelope(
            error_kind="service_unavailable",
            message="Service is temporarily unavailable",
            retry_after_seconds=retry_after,
        ),
        503,
    )


def _respond(envelope: ErrorEnvelope, status: int):
    resp = jsonify(envelope.model_dump(mode="json", exclude_none=True))
    resp.status_code = status
    if envelope.retry_after_seconds is not None:
        resp.headers["Retry-After"] = str(envelope.retry_after_seconds)
    return resp


def register_error_handlers(app: Flask, cfg: Config = Config) -> None:
    retry_after = cfg.RETRY_AFTER_SECONDS

    @app.errorhandler(ValidationError)
    @app.errorhandler(InvalidInput)
    def handle_invalid(exc):
        envelope, status = map_exception(exc, retry_after)
        logger.error("Validation error: %s", envelope.message)
        return _respond(envelope, status)

    @app.errorhandler(ServiceCommunicationFailure)
    def handle_communication(exc: ServiceCommunicationFailure):
        logger.error("Service communication error: %s", exc)
        return _respond(*map_exception(exc, retry_after))

    @app.errorhandler(ChainFailure)
    def handle_chain_failure(exc: ChainFailure):
        logger.error("Service chain failure: service=%s, details=%s", exc.failed_service, exc.details)
        return _respond(*map_exception(exc, retry_after))

    @app.errorhandler(HTTPException)
    def handle_http(exc: HTTPException):
        status = exc.code or 500
        kind = "invalid_input" if status < 500 else "service_unavailable"
        return _respond(ErrorEnvelope(error_kind=kind, message=exc.description or exc.name), status)

    @app.errorhandler(Exception)
    def handle_unexpected(exc: Exception):
        logger.exception("Unexpected error occurred")
        return _respond(*map_exception(exc, retry_after))
