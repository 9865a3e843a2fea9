"""Placeholder templating used to generate project files."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, MutableMapping

from .naming import normalize_module_name, package_to_path

__all__ = [
    "TemplateRenderer",
    "TemplateRenderingError",
    "java_string_literal",
]


_PLACEHOLDER_PATTERN = re.compile(r"{{\s*(?P<expression>[^{}]+?)\s*}}")

_JAVA_ESCAPES = {"\\": "\\\\", '"': '\\"', "\n": "\\n", "\r": "\\r", "\t": "\\t"}


class TemplateRenderingError(RuntimeError):
    """Raised when the renderer cannot evaluate a placeholder."""


def java_string_literal(value: str) -> str:
    """Escape ``value`` for use between double quotes in Java source.

    Remaining control characters become octal escapes; ``\\uXXXX`` would be
    translated before lexing and end the literal early.
    """

    escaped = []
    for char in value:
        if char in _JAVA_ESCAPES:
            escaped.append(_JAVA_ESCAPES[char])
        elif ord(char) < 0x20:
            escaped.append(f"\\{ord(char):03o}")
        else:
            escaped.append(char)
    return "".join(escaped)


def _default_filters() -> dict[str, Callable[[Any], Any]]:
    return {
        "literal": lambda value: java_string_literal(str(value)),
        "module": lambda value: normalize_module_name(str(value)),
        "path": lambda value: package_to_path(str(value)).as_posix(),
    }


@dataclass(slots=True)
class TemplateRenderer:
    """Render templates with ``{{ placeholder|filters }}`` expressions.

    Placeholders name keys of the rendering context. Filters are applied left
    to right; ``{{ package|path }}`` turns ``com.example`` into
    ``com/example``.
    """

    filters: MutableMapping[str, Callable[[Any], Any]] = field(default_factory=_default_filters)

    def render_string(self, template: str, context: Mapping[str, Any]) -> str:
        """Render ``template`` using ``context``.

        Unresolved keys and unknown filters raise
        :class:`TemplateRenderingError`.
        """

        def substitute(match: re.Match[str]) -> str:
            key, *filters = [part.strip() for part in match.group("expression").split("|")]
            if key not in context:
                raise TemplateRenderingError(f"missing value for '{key}'")

            value = context[key]
            for filter_name in filters:
                try:
                    filter_func = self.filters[filter_name]
                except KeyError as exc:
                    raise TemplateRenderingError(f"unknown filter '{filter_name}'") from exc
                value = filter_func(value)
            return str(value)

        return _PLACEHOLDER_PATTERN.sub(substitute, template)
