"""JSON pointer resolution and eager document dereferencing."""

from __future__ import annotations

from collections.abc import Mapping
import logging
from typing import Any, Optional

logger = logging.getLogger(__name__)

_REF_KEY = "$ref"
_ROOT_POINTER = "#"


class ResolveError(RuntimeError):
    """Raised when resolving OpenAPI references fails."""


class DocumentObject(dict[str, Any]):
    """Mapping node of a dereferenced document.

    ``path`` is the canonical location of the node in the source document.
    It is an attribute, not a key, so it never shows up in iteration, key
    listings or serialization.
    """

    __slots__ = ("path",)

    def __init__(self, *args: Any, path: str = _ROOT_POINTER, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.path = path


class DocumentList(list[Any]):
    """Sequence node of a dereferenced document, see ``DocumentObject``."""

    __slots__ = ("path",)

    def __init__(self, *args: Any, path: str = _ROOT_POINTER) -> None:
        super().__init__(*args)
        self.path = path


def canonical_path(node: Any) -> Optional[str]:
    """Return the canonical location stamped on a dereferenced node."""
    if isinstance(node, (DocumentObject, DocumentList)):
        return node.path
    return None


def escape_pointer_token(token: str) -> str:
    """Escape one JSON pointer segment (RFC 6901)."""
    return token.replace("~", "~0").replace("/", "~1")


def unescape_pointer_token(token: str) -> str:
    """Reverse ``escape_pointer_token``."""
    return token.replace("~1", "/").replace("~0", "~")


def resolve_pointer(document: Any, pointer: str) -> Any:
    """Resolve a local JSON pointer against ``document``.

    Args:
        document (Any): Root node the pointer is relative to.
        pointer (str): Pointer such as ``#/components/schemas/Widget``.

    Returns:
        Any: The node the pointer designates, or ``None`` when a segment is
        missing or the walk reaches a scalar before the pointer is exhausted.
    """
    if not pointer.startswith(_ROOT_POINTER):
        return None
    remainder = pointer[len(_ROOT_POINTER) :]
    if not remainder:
        return document
    if not remainder.startswith("/"):
        return None

    current = document
    for raw_token in remainder[1:].split("/"):
        token = unescape_pointer_token(raw_token)
        if isinstance(current, list):
            if not token.isdigit():
                return None
            index = int(token)
            if index >= len(current):
                return None
            current = current[index]
        elif isinstance(current, Mapping):
            if token not in current:
                return None
            current = current[token]
        else:
            return None
    return current


class Dereferencer:
    """Inline every local reference of a document and stamp canonical paths.

    A reference to a location that is still being expanded on the current
    recursion path is replaced by a stub holding only the ``$ref`` marker,
    whose canonical path is the referenced location.
    """

    def __init__(self, root: Any) -> None:
        self._root = root
        self._cache: dict[str, Any] = {}
        self._active: set[str] = set()
        self._stub_count = 0

    def dereference(self, node: Any = None, path: str = _ROOT_POINTER) -> Any:
        """Dereference ``node`` (the whole root when omitted) located at ``path``."""
        if node is None:
            node = self._root
        return self._walk(node, path)

    def _walk(self, node: Any, path: str) -> Any:
        if not isinstance(node, (list, Mapping)):
            return node

        cached = self._cache.get(path)
        if cached is not None:
            return cached

        stubs_before = self._stub_count
        self._active.add(path)
        try:
            if isinstance(node, list):
                result: Any = DocumentList(
                    (self._walk(item, f"{path}/{index}") for index, item in enumerate(node)),
                    path=path,
                )
            elif isinstance(node.get(_REF_KEY), str):
                result = self._walk_reference(node, path)
            else:
                result = DocumentObject(
                    {
                        key: self._walk(value, f"{path}/{escape_pointer_token(key)}")
                        for key, value in node.items()
                    },
                    path=path,
                )
        finally:
            self._active.discard(path)

        # Expansions that hit a cycle depend on the recursion path.
        if self._stub_count == stubs_before:
            self._cache[path] = result
        return result

    def _walk_reference(self, node: Mapping[str, Any], path: str) -> Any:
        ref = node[_REF_KEY]
        if not ref.startswith(_ROOT_POINTER):
            raise ResolveError(f"Only local references are currently supported: {ref}")

        if ref in self._active:
            self._stub_count += 1
            logger.debug("Reference cycle at %s, emitting stub for %s", path, ref)
            return DocumentObject({_REF_KEY: ref}, path=ref)

        target = resolve_pointer(self._root, ref)
        if target is None:
            raise ResolveError(f"Unresolvable reference: {ref}")

        resolved = self._walk(target, ref)
        if not isinstance(resolved, DocumentObject):
            return resolved

        merged = DocumentObject({_REF_KEY: ref}, path=ref)
        merged.update(resolved)
        for key, value in node.items():
            if key != _REF_KEY:
                merged[key] = self._walk(value, f"{path}/{escape_pointer_token(key)}")
        return merged


def dereference(node: Any, path: str = _ROOT_POINTER, root: Any = None) -> Any:
    """Return a fully dereferenced, path-stamped copy of ``node``.

    Args:
        node (Any): Node to dereference.
        path (str): Canonical location of ``node``.
        root (Any): Document references are resolved against; defaults to ``node``.

    Returns:
        Any: Dereferenced copy built from ``DocumentObject`` and ``DocumentList``.
    """
    return Dereferencer(node if root is None else root).dereference(node, path)
