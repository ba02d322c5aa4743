"""Hop invocation: how one hop hands its message to the next.

Two transports implement the same ``HopInvoker`` interface:

- ``NetworkInvoker`` posts the request as JSON to the target hop's internal
  endpoint using httpx, optionally running the call on a bounded worker pool.
- ``InProcessInvoker`` calls the target hop's handler directly, bypassing
  serialization.

``create_invoker`` picks one at start-up from configuration.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Dict, Optional

import httpx
from pydantic import ValidationError

from message_chain.config import Config
from message_chain.errors import ChainFailure, ServiceCommunicationFailure, UnknownService
from message_chain.schemas import ChainRequest, ChainResponse

logger = logging.getLogger(__name__)

LOOPBACK_ADDRESS = "127.0.0.1"
INTERNAL_HEADER = "X-Internal-Request"

HOP_PATHS = {
    "service-b": "/internal/service-b/append",
    "service-c": "/internal/service-c/finalize",
}

HopHandler = Callable[[ChainRequest, str], ChainResponse]


class RejectedExecution(RuntimeError):
    pass


class BoundedExecutor:
    """Thread pool that rejects work once workers and queue are saturated.

    ``ThreadPoolExecutor`` has an unbounded queue, so admission is capped with
    a semaphore sized ``max_size + queue_capacity``. ``core_size`` workers are
    started up front and stay idle until needed; more are added lazily up to
    ``max_size``.
    """

    def __init__(self, core_size: int = 5, max_size: int = 10, queue_capacity: int = 25,
                 thread_name_prefix: str = "AsyncHopClient-"):
        if max_size < 1 or core_size < 0 or core_size > max_size or queue_capacity < 0:
            raise ValueError("invalid worker pool bounds")
        self.core_size = core_size
        self.max_size = max_size
        self.queue_capacity = queue_capacity
        self._executor = ThreadPoolExecutor(max_workers=max_size, thread_name_prefix=thread_name_prefix)
        self._slots = threading.BoundedSemaphore(max_size + queue_capacity)
        self._prestart(core_size)
        logger.info(
            "Async hop executor initialized with corePoolSize=%s, maxPoolSize=%s, queueCapacity=%s",
            core_size, max_size, queue_capacity,
        )

    def _prestart(self, count: int, timeout: float = 5.0) -> None:
        if count == 0:
            return
        # Every task holds its worker until all have started, so each lands on a new thread.
        barrier = threading.Barrier(count + 1)
        for _ in range(count):
            self._executor.submit(barrier.wait, timeout)
        try:
            barrier.wait(timeout)
        except threading.BrokenBarrierError as e:
            self._executor.shutdown(wait=False)
            raise RuntimeError(f"could not start {count} core workers") from e

    def submit(self, fn, *args, **kwargs) -> Future:
        if not self._slots.acquire(blocking=False):
            raise RejectedExecution(
                f"worker pool saturated ({self.max_size} workers, {self.queue_capacity} queued)"
            )
        try:
            fut = self._executor.submit(fn, *args, **kwargs)
        except BaseException:
            self._slots.release()
            raise
        fut.add_done_callback(lambda _f: self._slots.release())
        return fut

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)


class HopInvoker(ABC):
    """Hands a ``ChainRequest`` to the next hop and returns its ``ChainResponse``.

    Raises ``ServiceCommunicationFailure`` when the target cannot be reached
    or replies badly, and ``ChainFailure`` unchanged when a deeper hop failed.
    """

    @abstractmethod
    def invoke(self, target_hop: str, request: ChainRequest) -> ChainResponse:
        pass

    def close(self) -> None:
        pass


class InProcessInvoker(HopInvoker):
    def __init__(self, handlers: Dict[str, HopHandler], origin_address: str = LOOPBACK_ADDRESS):
        self._handlers = dict(handlers)
        self.origin_address = origin_address

    def invoke(self, target_hop: str, request: ChainRequest) -> ChainResponse:
        handler = self._handlers.get(target_hop)
        if handler is None:
            raise UnknownService(target_hop)
        logger.info("Calling %s via direct method call", target_hop)
        return handler(request, self.origin_address)


class NetworkInvoker(HopInvoker):
    def __init__(
        self,
        base_urls: Dict[str, str],
        connect_timeout_ms: int = 5000,
        read_timeout_ms: int = 10000,
        executor: Optional[BoundedExecutor] = None,
        transports: Optional[Dict[str, httpx.BaseTransport]] = None,
    ):
        timeout = httpx.Timeout(read_timeout_ms / 1000.0, connect=connect_timeout_ms / 1000.0)
        transports = transports or {}
        self._clients: Dict[str, httpx.Client] = {}
        for hop, url in base_urls.items():
            logger.info(
                "Creating HTTP client for %s with base URL: %s, connectTimeout: %sms, readTimeout: %sms",
                hop, url, connect_timeout_ms, read_timeout_ms,
            )
            self._clients[hop] = httpx.Client(
                base_url=url,
                timeout=timeout,
                transport=transports.get(hop),
                headers={INTERNAL_HEADER: "true"},
            )
        self.executor = executor

    def invoke(self, target_hop: str, request: ChainRequest) -> ChainResponse:
        if self.executor is None:
            logger.info("Calling %s via HTTP synchronously", target_hop)
            return self._call(target_hop, request)

        logger.info("Calling %s via HTTP asynchronously", target_hop)
        try:
            fut = self.executor.submit(self._call, target_hop, request)
        except RejectedExecution as e:
            logger.error("Async call to %s rejected: %s", target_hop, e)
            raise ServiceCommunicationFailure(target_hop, e) from e
        # Offloaded, but the caller still waits for the result.
        return fut.result()

    def _call(self, target_hop: str, request: ChainRequest) -> ChainResponse:
        client = self._clients.get(target_hop)
        path = HOP_PATHS.get(target_hop)
        if client is None or path is None:
            raise UnknownService(target_hop)

        logger.debug(
            "Request to %s: POST %s (message length=%s, thread=%s)",
            target_hop, path, len(request.current_message), threading.current_thread().name,
        )
        try:
            resp = client.post(path, json=request.model_dump(mode="json"))
        except httpx.HTTPError as e:
            logger.error("Failed to communicate with %s: %s", target_hop, e)
            raise ServiceCommunicationFailure(target_hop, e) from e
        logger.debug("Response from %s: %s", target_hop, resp.status_code)

        if not resp.is_success:
            downstream = _downstream_chain_failure(resp)
            if downstream is not None:
                raise downstream
            raise ServiceCommunicationFailure(target_hop, f"HTTP {resp.status_code}")
        if not resp.content:
            raise ServiceCommunicationFailure(target_hop, f"{target_hop} returned empty response")
        try:
            return ChainResponse.model_validate(resp.json())
        except (ValueError, ValidationError) as e:
            raise ServiceCommunicationFailure(target_hop, f"malformed response: {e}") from e

    def close(self) -> None:
        if self.executor is not None:
            self.executor.shutdown(wait=True)
        for client in self._clients.values():
            client.close()


def _downstream_chain_failure(resp: httpx.Response) -> Optional[ChainFailure]:
    """Rebuild a ``chain_failed`` envelope returned by a deeper hop."""
    try:
        body = resp.json()
    except ValueError:
        return None
    if not isinstance(body, dict) or body.get("error_kind") != "chain_failed":
        return None
    failed = body.get("failed_service")
    if not failed:
        return None
    return ChainFailure(failed, body.get("partial_message"), body.get("details"))


def create_invoker(
    cfg: Config,
    handlers: Dict[str, HopHandler],
    transports: Optional[Dict[str, httpx.BaseTransport]] = None,
) -> HopInvoker:
    """Select the transport once, at start-up."""
    if not cfg.USE_NETWORK:
        logger.info("Hop transport: in-process")
        return InProcessInvoker(handlers)

    executor = None
    if cfg.USE_ASYNC:
        executor = BoundedExecutor(
            core_size=cfg.ASYNC_CORE_POOL_SIZE,
            max_size=cfg.ASYNC_MAX_POOL_SIZE,
            queue_capacity=cfg.ASYNC_QUEUE_CAPACITY,
        )
    logger.info("Hop transport: network (%s)", "offloaded" if executor else "blocking")
    return NetworkInvoker(
        {"service-b": cfg.SERVICE_B_URL, "service-c": cfg.SERVICE_C_URL},
        connect_timeout_ms=cfg.HTTP_CONNECT_TIMEOUT_MS,
        read_timeout_ms=cfg.HTTP_READ_TIMEOUT_MS,
        executor=executor,
        transports=transports,
    )
