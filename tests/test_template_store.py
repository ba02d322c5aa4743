from __future__ import annotations

import threading

import pytest

from message_chain.errors import InvalidInput, UnknownService
from message_chain.services.template_store import Template, TemplateStore

DEFAULTS = {
    "service-a": ("[Service A] Hello {user}", "entry"),
    "service-b": ("{previous_message} [Service B] appended", "middle"),
    "service-c": ("{previous_message} [Service C] finalized", "terminal"),
}


def test_current_text_is_default_without_override():
    store = TemplateStore(DEFAULTS)
    assert store.get_current("service-a") == "[Service A] Hello {user}"
    assert store.template("service-a").override_text is None


def test_override_wins_until_cleared():
    store = TemplateStore(DEFAULTS)
    store.set_override("service-b", "{previous_message} B was here")
    assert store.get_current("service-b") == "{previous_message} B was here"

    store.set_override("service-b", "{previous_message} B again")
    assert store.get_current("service-b") == "{previous_message} B again"

    store.clear_override("service-b")
    assert store.get_current("service-b") == "{previous_message} [Service B] appended"


def test_lookup_ignores_case():
    store = TemplateStore(DEFAULTS)
    assert store.get_current("SERVICE-C") == "{previous_message} [Service C] finalized"


@pytest.mark.parametrize("op", ["get", "set", "clear"])
def test_unknown_service_rejected(op):
    store = TemplateStore(DEFAULTS)
    with pytest.raises(UnknownService):
        if op == "get":
            store.get_current("service-d")
        elif op == "set":
            store.set_override("service-d", "text")
        else:
            store.clear_override("service-d")


@pytest.mark.parametrize("text", ["", "   ", "\n\t"])
def test_blank_override_rejected_and_previous_value_kept(text):
    store = TemplateStore(DEFAULTS)
    with pytest.raises(InvalidInput):
        store.set_override("service-a", text)
    assert store.get_current("service-a") == "[Service A] Hello {user}"


def test_blank_default_is_a_configuration_error():
    with pytest.raises(ValueError):
        Template("service-a", "  ")


def test_concurrent_writers_never_expose_torn_values():
    store = TemplateStore(DEFAULTS)
    candidates = [f"{{previous_message}} writer-{i} " + "x" * 200 for i in range(8)]
    allowed = set(candidates) | {DEFAULTS["service-b"][0]}
    seen = set()
    stop = threading.Event()

    def reader():
        while not stop.is_set():
            seen.add(store.get_current("service-b"))

    def writer(text):
        for _ in range(200):
            store.set_override("service-b", text)

    readers = [threading.Thread(target=reader) for _ in range(4)]
    writers = [threading.Thread(target=writer, args=(c,)) for c in candidates]
    for t in readers + writers:
        t.start()
    for t in writers:
        t.join()
    stop.set()
    for t in readers:
        t.join()

    assert store.get_current("service-b") in candidates
    assert seen <= allowed
