"""Naming helpers for generated identifiers."""

from __future__ import annotations

from collections.abc import Iterable
import re
from typing import TypeVar

_T = TypeVar("_T")

_IDENTIFIER_SANITIZE_RE = re.compile(r"[^0-9a-zA-Z_$]+")
_WORD_SPLIT_RE = re.compile(r"[^0-9a-zA-Z]+")
_PATH_SPLIT_RE = re.compile(r"[/_\-.]+")

# Words TypeScript does not accept as parameter names.
_RESERVED_WORDS = frozenset(
    {
        "break",
        "case",
        "catch",
        "class",
        "const",
        "continue",
        "debugger",
        "default",
        "delete",
        "do",
        "else",
        "enum",
        "export",
        "extends",
        "false",
        "finally",
        "for",
        "function",
        "if",
        "import",
        "in",
        "instanceof",
        "new",
        "null",
        "return",
        "super",
        "switch",
        "this",
        "throw",
        "true",
        "try",
        "typeof",
        "var",
        "void",
        "while",
        "with",
    }
)

_STATUS_CODE_LABELS: dict[str, str] = {
    "200": "Success",
    "201": "Created",
    "202": "Accepted",
    "204": "Empty",
    "400": "BadRequest",
    "401": "Unauthorized",
    "403": "Forbidden",
    "404": "NotFound",
    "409": "Conflict",
    "422": "UnprocessableEntity",
    "500": "ServerError",
    "default": "Default",
}


def capitalize(text: str) -> str:
    """Upper-case the first character, leaving the rest untouched."""
    return text[:1].upper() + text[1:]


def remove_duplicates(items: Iterable[_T]) -> list[_T]:
    """Drop repeated items, keeping the first occurrence order."""
    unique: list[_T] = []
    for item in items:
        if item not in unique:
            unique.append(item)
    return unique


def sanitize_identifier(raw: str) -> str:
    """Convert arbitrary text into a valid TypeScript identifier."""
    text = _IDENTIFIER_SANITIZE_RE.sub("_", raw).strip("_")
    if not text:
        text = "value"
    if text[0].isdigit():
        text = f"_{text}"
    if text in _RESERVED_WORDS:
        text = f"{text}_"
    return text


def type_name(raw: str) -> str:
    """Convert a name to a PascalCase type name, keeping inner capitals."""
    parts = [part for part in _WORD_SPLIT_RE.split(raw) if part]
    name = "".join(capitalize(part) for part in parts)
    return sanitize_identifier(name)


def operation_method_name(path: str, method: str) -> str:
    """Derive a method name from a path template and HTTP method.

    ``/widgets/{id}`` with ``get`` becomes ``WidgetsIdGet``.
    """
    stripped = path.replace("{", "").replace("}", "")
    segments = [segment for segment in _PATH_SPLIT_RE.split(stripped) if segment]
    name = "".join(capitalize(segment) for segment in segments) + capitalize(method)
    return sanitize_identifier(name)


def status_code_label(status_code: str) -> str:
    """Return the type-name fragment used for a response status code."""
    label = _STATUS_CODE_LABELS.get(status_code.lower())
    if label is not None:
        return label
    return f"Status{_WORD_SPLIT_RE.sub('', status_code.upper())}"


def content_type_label(content_type: str) -> str:
    """Return the type-name fragment used for a media type.

    ``application/json`` becomes ``Json``, ``application/vnd.api+json``
    becomes ``VndApiJson``.
    """
    media_type = content_type.split(";", maxsplit=1)[0].strip()
    subtype = media_type.split("/", maxsplit=1)[-1]
    if not _WORD_SPLIT_RE.sub("", subtype):
        return "Any"
    return type_name(subtype)
