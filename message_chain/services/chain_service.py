"""ChainService: runs the A -> B -> C message chain.

Each hop renders its current template, hands the result to the next hop
through the configured ``HopInvoker`` and prepends its own chain link to the
links returned from downstream:

- ``process_a(user, origin)``: entry hop; returns the aggregate result.
- ``process_b(request, origin)``: internal hop; forwards to C.
- ``process_c(request, origin)``: terminal hop; produces the final message.

A failure while invoking a downstream hop is raised as ``ChainFailure`` with
the failing hop and the message composed so far. A ``ChainFailure`` coming
back from a deeper hop is re-raised untouched.
"""

from __future__ import annotations

import logging
import time
from typing import Optional

from message_chain.errors import ChainFailure, InvalidInput
from message_chain.schemas import AggregateResult, ChainRequest, ChainResponse, TemplateResponse
from message_chain.services.chain_links import record_link, utcnow
from message_chain.services.hop_invoker import HopInvoker
from message_chain.services.template_store import TemplateStore
from message_chain.utils.text import is_blank, own_words, render

logger = logging.getLogger(__name__)

SERVICE_A = "service-a"
SERVICE_B = "service-b"
SERVICE_C = "service-c"

PLACEHOLDERS = {
    SERVICE_A: "user",
    SERVICE_B: "previous_message",
    SERVICE_C: "previous_message",
}


class ChainService:
    def __init__(self, store: TemplateStore, invoker: Optional[HopInvoker] = None,
                 application_name: Optional[str] = None, max_user_length: int = 50):
        self.store = store
        self.invoker = invoker
        self.application_name = application_name
        self.max_user_length = max_user_length

    def _render(self, service_id: str, value: str):
        """Return ``(rendered_message, contribution)`` for one hop."""
        template = self.store.get_current(service_id)
        placeholder = PLACEHOLDERS[service_id]
        return render(template, placeholder, value), own_words(template, placeholder)

    def _forward(self, source: str, target: str, message: str) -> ChainResponse:
        if self.invoker is None:
            raise RuntimeError("ChainService has no hop invoker configured")
        request = ChainRequest(current_message=message)
        try:
            return self.invoker.invoke(target, request)
        except ChainFailure:
            raise
        except Exception as e:
            logger.error("%s: call to %s failed: %s", source, target, e)
            raise ChainFailure(target, message, str(e)) from e

    def validate_user(self, user: Optional[str]) -> str:
        user = user or "guest"
        # Counted in UTF-16 code units; astral characters such as emoji count twice.
        if len(user.encode("utf-16-le")) // 2 > self.max_user_length:
            raise InvalidInput(
                f"Query parameter 'user' must not exceed {self.max_user_length} characters"
            )
        return user

    # -------- hops --------

    def process_a(self, user: Optional[str], origin_address: Optional[str] = None) -> AggregateResult:
        start = time.monotonic()
        user = self.validate_user(user)
        logger.info("Service A: Processing request for user=%s from IP=%s", user, origin_address)

        message, contribution = self._render(SERVICE_A, user)
        if is_blank(message):
            raise InvalidInput("Service A template rendered an empty message for this user")
        link = record_link(SERVICE_A, contribution, utcnow(), origin_address)

        downstream = self._forward(SERVICE_A, SERVICE_B, message)

        chain = [link, *downstream.chain]
        elapsed_ms = int((time.monotonic() - start) * 1000)
        logger.info("Service A: Complete message chain processed in %sms", elapsed_ms)
        return AggregateResult(
            application_name=self.application_name,
            message=downstream.message,
            chain=chain,
            complete=True,
            total_length=len(downstream.message),
            processing_time_ms=elapsed_ms,
        )

    def process_b(self, request: ChainRequest, origin_address: Optional[str] = None) -> ChainResponse:
        logger.info(
            "Service B: Processing request with current message length=%s from IP=%s",
            len(request.current_message), origin_address,
        )
        message, contribution = self._render(SERVICE_B, request.current_message)
        link = record_link(SERVICE_B, contribution, utcnow(), origin_address)

        downstream = self._forward(SERVICE_B, SERVICE_C, message)

        logger.info("Service B: Processed and forwarded to Service C")
        return ChainResponse(
            application_name=self.application_name,
            message=downstream.message,
            chain=[link, *downstream.chain],
        )

    def process_c(self, request: ChainRequest, origin_address: Optional[str] = None) -> ChainResponse:
        logger.info(
            "Service C: Processing final request with current message length=%s from IP=%s",
            len(request.current_message), origin_address,
        )
        message, contribution = self._render(SERVICE_C, request.current_message)
        link = record_link(SERVICE_C, contribution, utcnow(), origin_address)
        logger.info("Service C: Final message generated")
        return ChainResponse(application_name=self.application_name, message=message, chain=[link])

    # -------- templates --------

    def _template_response(self, service_id: str, template: str, note: str) -> TemplateResponse:
        return TemplateResponse(
            application_name=self.application_name,
            service=service_id,
            template=template,
            updated_at=utcnow(),
            message=note,
        )

    def get_template(self, service_id: str) -> TemplateResponse:
        tpl = self.store.template(service_id)
        note = "Runtime override active" if tpl.override_text is not None else "Configured default"
        return self._template_response(tpl.service_id, tpl.current_text, note)

    def update_template(self, service_id: str, template: str) -> TemplateResponse:
        logger.info("Updating template for service=%s", service_id)
        self.store.set_override(service_id, template)
        logger.info("Template updated successfully for service=%s", service_id)
        return self._template_response(
            service_id.lower(), template, "Message template updated successfully"
        )

    def reset_template(self, service_id: str) -> TemplateResponse:
        logger.info("Resetting template for service=%s", service_id)
        self.store.clear_override(service_id)
        return self._template_response(
            service_id.lower(),
            self.store.get_current(service_id),
            "Message template reset to default",
        )
