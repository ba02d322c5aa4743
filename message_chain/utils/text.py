"""Text utilities for template rendering.

- ``render(template, placeholder, value)``: substitute every occurrence of
  ``{placeholder}`` with ``value``.
- ``own_words(template, placeholder)``: the hop's contribution, i.e. the
  template with the placeholder removed and surrounding whitespace trimmed.
"""

from __future__ import annotations


def _token(placeholder: str) -> str:
    return "{" + placeholder + "}"


def render(template: str, placeholder: str, value: str) -> str:
    return template.replace(_token(placeholder), value)


def own_words(template: str, placeholder: str) -> str:
    return render(template, placeholder, "").strip()


def is_blank(value) -> bool:
    return not isinstance(value, str) or not value.strip()
