"""TypeScript expression snippets used by the resolvers and templates."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
import json
import re
from typing import Optional

from .json_types import JSONPrimitive
from .model_types import ResponseTranslation
from .schema import TranslationStep

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_$][0-9A-Za-z_$]*$")
_PATH_PARAM_RE = re.compile(r"\{([^}]+)\}")
_STATUS_RANGE_RE = re.compile(r"^([1-5])XX$", re.IGNORECASE)

RESPONSE_VARIABLE = "res"


def quote_literal(value: str) -> str:
    """Render a string as a double-quoted TypeScript literal."""
    return json.dumps(value, ensure_ascii=False)


def literal_expression(value: JSONPrimitive) -> str:
    """Render an enum value as a TypeScript literal type."""
    if isinstance(value, str):
        return quote_literal(value)
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    return json.dumps(value)


def property_key(name: str) -> str:
    """Render an object key, quoting it when it is not an identifier."""
    if _IDENTIFIER_RE.match(name):
        return name
    return quote_literal(name)


def path_placeholders(path: str) -> list[str]:
    """Return the ``{name}`` placeholders of a path template, in order."""
    return _PATH_PARAM_RE.findall(path)


def path_template_expression(path: str, arguments: Mapping[str, str]) -> str:
    """Build a template literal that interpolates path arguments.

    Args:
        path (str): Path template such as ``/widgets/{id}``.
        arguments (Mapping[str, str]): Placeholder name to argument identifier.

    Returns:
        str: A template literal such as ``\\`/widgets/${id}\\```.
    """
    pieces: list[str] = []
    last = 0
    for match in _PATH_PARAM_RE.finditer(path):
        pieces.append(_escape_template_text(path[last : match.start()]))
        pieces.append("${" + arguments[match.group(1)] + "}")
        last = match.end()
    pieces.append(_escape_template_text(path[last:]))
    return "`" + "".join(pieces) + "`"


def _escape_template_text(text: str) -> str:
    return text.replace("\\", "\\\\").replace("`", "\\`").replace("${", "\\${")


def status_code_range(status_code: str) -> Optional[str]:
    """Return the leading digit of a range code such as ``2XX``, else ``None``."""
    range_match = _STATUS_RANGE_RE.match(status_code)
    return range_match.group(1) if range_match else None


def status_condition(translation: ResponseTranslation) -> str:
    """Condition selecting the response a translation applies to.

    Range and ``default`` translations also exclude the status codes listed in
    ``shadowed_status_codes``, which other responses of the operation declare.
    """
    clauses: list[str] = []
    status_code = translation.status_code
    status_range = status_code_range(status_code)
    if status_code.isdigit():
        clauses.append(f"{RESPONSE_VARIABLE}.status === {int(status_code)}")
    elif status_range is not None:
        clauses.append(f"Math.floor({RESPONSE_VARIABLE}.status / 100) === {status_range}")
    for shadowed in translation.shadowed_status_codes:
        shadowed_range = status_code_range(shadowed)
        if shadowed.isdigit():
            clauses.append(f"{RESPONSE_VARIABLE}.status !== {int(shadowed)}")
        elif shadowed_range is not None:
            clauses.append(f"Math.floor({RESPONSE_VARIABLE}.status / 100) !== {shadowed_range}")
    clauses.append(f"{RESPONSE_VARIABLE}.contentType === {quote_literal(translation.content_type)}")
    return " && ".join(clauses)


def unwrap_accessor(translation: ResponseTranslation) -> str:
    """Expression extracting the translated value from the response body."""
    return _accessor(f"{RESPONSE_VARIABLE}.data", translation.steps, depth=0)


def _accessor(base: str, steps: tuple[TranslationStep, ...], *, depth: int) -> str:
    expression = base
    for index, step in enumerate(steps):
        if step.kind == "items":
            item = "item" if depth == 0 else f"item{depth + 1}"
            inner = _accessor(item, steps[index + 1 :], depth=depth + 1)
            if inner == item:
                return expression
            return f"{expression}.map(({item}: any) => {inner})"
        expression = f"{expression}[{quote_literal(step.name)}]"
    return expression


def doc_comment(text: str, indent: int = 0) -> str:
    """Render text as a ``/** ... */`` block comment."""
    prefix = " " * indent
    lines = text.replace("*/", "*\\/").strip().splitlines() or [""]
    body = "\n".join(f"{prefix} * {line}".rstrip() for line in lines)
    return f"{prefix}/**\n{body}\n{prefix} */"


def join_union(expressions: Iterable[str]) -> str:
    """Join type expressions with the union operator."""
    return " | ".join(expressions)
