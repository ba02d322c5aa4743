"""TemplateStore: per-hop message templates with runtime overrides.

Each hop owns one ``Template``: the configured default plus an optional
override set at runtime. Reads return the override when present, otherwise
the default. Overrides are last-write-wins and live for the process lifetime.
"""

from __future__ import annotations

import threading
from typing import Dict, Optional, Tuple

from message_chain.errors import InvalidInput, UnknownService
from message_chain.utils.text import is_blank


class Template:
    """A single hop's template cell.

    The override is swapped under a lock so readers never see a torn value.
    """

    def __init__(self, service_id: str, default_text: str, description: str = ""):
        if is_blank(default_text):
            raise ValueError(f"Default template for {service_id} must not be blank")
        self.service_id = service_id
        self.default_text = default_text
        self.description = description
        self._override: Optional[str] = None
        self._lock = threading.Lock()

    @property
    def override_text(self) -> Optional[str]:
        with self._lock:
            return self._override

    @property
    def current_text(self) -> str:
        with self._lock:
            override = self._override
        return override if override is not None else self.default_text

    def set_override(self, text: str) -> None:
        with self._lock:
            self._override = text

    def clear_override(self) -> None:
        with self._lock:
            self._override = None


class TemplateStore:
    def __init__(self, defaults: Dict[str, Tuple[str, str]]):
        self._templates: Dict[str, Template] = {
            sid: Template(sid, text, desc) for sid, (text, desc) in defaults.items()
        }

    def _get(self, service_id: str) -> Template:
        key = (service_id or "").lower()
        tpl = self._templates.get(key)
        if tpl is None:
            raise UnknownService(service_id)
        return tpl

    def service_ids(self):
        return list(self._templates)

    def template(self, service_id: str) -> Template:
        return self._get(service_id)

    def get_current(self, service_id: str) -> str:
        return self._get(service_id).current_text

    def set_override(self, service_id: str, text: str) -> None:
        tpl = self._get(service_id)
        if is_blank(text):
            raise InvalidInput("template is required")
        tpl.set_override(text)

    def clear_override(self, service_id: str) -> None:
        self._get(service_id).clear_override()
