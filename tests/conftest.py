from __future__ import annotations

import httpx
import pytest

from message_chain import create_app
from message_chain.config import Config


class InProcessConfig(Config):
    TESTING = True
    USE_NETWORK = False
    USE_ASYNC = False
    SERVICE_A_TEMPLATE = "[Service A] Hello {user}"
    SERVICE_B_TEMPLATE = "{previous_message} [Service B] appended"
    SERVICE_C_TEMPLATE = "{previous_message} [Service C] finalized"
    MAX_USER_LENGTH = 50
    RETRY_AFTER_SECONDS = 30


class BlockingNetworkConfig(InProcessConfig):
    USE_NETWORK = True
    USE_ASYNC = False


class AsyncNetworkConfig(InProcessConfig):
    USE_NETWORK = True
    USE_ASYNC = True


def connection_refused(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("Connection refused", request=request)


def build_network_app(cfg, unreachable=()):
    """App whose network hops loop back into itself through WSGI, no sockets.

    Hops listed in ``unreachable`` refuse connections instead.
    """
    holder = {}

    def loopback(environ, start_response):
        return holder["app"](environ, start_response)

    transports = {}
    for hop in ("service-b", "service-c"):
        if hop in unreachable:
            transports[hop] = httpx.MockTransport(connection_refused)
        else:
            transports[hop] = httpx.WSGITransport(app=loopback)
    app = create_app(cfg, transports=transports)
    holder["app"] = app
    return app


@pytest.fixture
def inprocess_app():
    return create_app(InProcessConfig)


@pytest.fixture
def client(inprocess_app):
    return inprocess_app.test_client()


@pytest.fixture(params=[BlockingNetworkConfig, AsyncNetworkConfig], ids=["blocking", "offloaded"])
def network_app(request):
    app = build_network_app(request.param)
    yield app
    app.extensions["message_chain"].invoker.close()


@pytest.fixture
def network_client(network_app):
    return network_app.test_client()


@pytest.fixture(params=[BlockingNetworkConfig, AsyncNetworkConfig], ids=["blocking", "offloaded"])
def make_network_app(request):
    """Factory for network-transport apps with selected hops unreachable."""
    built = []

    def _make(unreachable=()):
        app = build_network_app(request.param, unreachable)
        built.append(app)
        return app

    yield _make
    for app in built:
        app.extensions["message_chain"].invoker.close()


@pytest.fixture
def config_classes():
    return {
        "in_process": InProcessConfig,
        "blocking": BlockingNetworkConfig,
        "offloaded": AsyncNetworkConfig,
    }
