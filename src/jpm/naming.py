"""Identifier validation and normalisation for Java packages and classes."""

from __future__ import annotations

import re
import unicodedata
from pathlib import PurePosixPath

__all__ = [
    "is_java_identifier",
    "is_package_name",
    "normalize_module_name",
    "package_to_path",
]


JAVA_KEYWORDS = frozenset(
    """
    abstract assert boolean break byte case catch char class const continue
    default do double else enum extends final finally float for goto if
    implements import instanceof int interface long native new package private
    protected public return short static strictfp super switch synchronized
    this throw throws transient try void volatile while true false null _
    """.split()
)

_IDENTIFIER = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")
_INVALID_MODULE_CHARS = re.compile(r"[^0-9a-zA-Z_.]")


def _ascii(value: str) -> str:
    text = unicodedata.normalize("NFKD", value)
    return text.encode("ascii", "ignore").decode("ascii")


def is_java_identifier(value: str) -> bool:
    """Return True when ``value`` is a legal, non-keyword Java identifier."""

    return bool(_IDENTIFIER.match(value)) and value not in JAVA_KEYWORDS


def is_package_name(value: str) -> bool:
    """Return True when ``value`` is a dotted sequence of Java identifiers."""

    if not value:
        return False
    return all(is_java_identifier(segment) for segment in value.split("."))


def package_to_path(package: str) -> PurePosixPath:
    """Return the source folder for ``package`` relative to ``src``.

    ``com.example.app`` becomes ``com/example/app``.
    """

    return PurePosixPath(*package.split("."))


def normalize_module_name(name: str) -> str:
    """Return a Java module name derived from a project name.

    Module names follow package naming rules, so every dot separated segment
    must be a valid identifier. ``My Cool-App`` becomes ``my_cool_app``.
    """

    text = _ascii(name).strip().lower()
    text = re.sub(r"[\s\-]+", "_", text)
    text = _INVALID_MODULE_CHARS.sub("", text)

    segments = []
    for segment in text.split("."):
        segment = re.sub(r"_+", "_", segment).strip("_")
        if not segment:
            continue
        if segment[0].isdigit():
            segment = f"_{segment}"
        if segment in JAVA_KEYWORDS:
            segment = f"{segment}_"
        segments.append(segment)

    return ".".join(segments) or "app"
