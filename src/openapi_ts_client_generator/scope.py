"""Symbol tables for generated modules.

Scopes form a tree: one synthetic root and one child per generated module.
Definitions propagate upwards, prefixed with the defining scope's name at
each step, so the root table holds a qualified entry (``definitions.Widget``)
for every symbol defined anywhere. Imports pull such qualified names back
into a module scope under a locally unique short name.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass, field, replace
import logging
from typing import ClassVar, Optional, Union

logger = logging.getLogger(__name__)

SEPARATOR = "."


class SymbolConflictError(RuntimeError):
    """Raised when a requested local name is already taken in a scope."""


@dataclass(frozen=True)
class SymbolDefinition:
    """A symbol defined in a scope."""

    kind: ClassVar[str] = "definition"

    local_name: str
    defined_in: Optional[str]
    spec_path: Optional[str] = None
    public: bool = False
    global_name: Optional[str] = None


@dataclass(frozen=True)
class SymbolImport:
    """A symbol imported into a scope from another module."""

    kind: ClassVar[str] = "import"

    local_name: str
    source: str
    public: bool = field(default=False, init=False)


type SymbolEntry = Union[SymbolDefinition, SymbolImport]


class Scope:
    """A named symbol table with an optional parent."""

    def __init__(
        self,
        name: str,
        path: Optional[str] = None,
        parent: Optional[Scope] = None,
    ) -> None:
        self.name = name
        self.path = path
        self.parent = parent
        self.children: list[Scope] = []
        self.table: dict[str, SymbolEntry] = {}

    def __repr__(self) -> str:
        return f"Scope(name={self.name!r}, path={self.path!r}, symbols={len(self.table)})"

    def find(self, predicate: Callable[[SymbolEntry], bool]) -> Optional[SymbolEntry]:
        """Return the nearest entry matching ``predicate``, searching outwards."""
        for entry in self.table.values():
            if predicate(entry):
                return entry
        if self.parent is not None:
            return self.parent.find(predicate)
        return None

    def get_entry(self, name: str) -> Optional[SymbolEntry]:
        """Look up ``name`` locally, then in the parent chain."""
        entry = self.table.get(name)
        if entry is not None:
            return entry
        if self.parent is not None:
            return self.parent.get_entry(name)
        return None

    def exists(self, name: str) -> bool:
        """Return whether ``name`` is taken in this scope, ignoring parents."""
        return name in self.table

    def scope(self, name: str, path: Optional[str] = None) -> Scope:
        """Create a child scope."""
        child = Scope(name, path, parent=self)
        self.children.append(child)
        return child

    def global_name(self, name: str) -> str:
        """Return the dotted name ``name`` has when defined in this scope."""
        if self.parent is None:
            return name
        return f"{self.parent.global_name(self.name)}{SEPARATOR}{name}"

    def define(
        self,
        name: str,
        *,
        spec_path: Optional[str] = None,
        public: bool = False,
    ) -> SymbolDefinition:
        """Define a symbol locally and propagate it to every ancestor scope.

        Args:
            name (str): Local short name.
            spec_path (Optional[str]): Canonical document path of the schema
                the symbol was generated from.
            public (bool): Whether the symbol is re-exported by the index module.

        Returns:
            SymbolDefinition: The local entry.

        Raises:
            SymbolConflictError: ``name`` already exists in this scope.
        """
        entry = SymbolDefinition(
            local_name=name,
            defined_in=self.path,
            spec_path=spec_path,
            public=public,
            global_name=self.global_name(name) if public else None,
        )
        self._define(entry)
        logger.debug("Defined %s in scope %s (spec_path=%s)", name, self.name, spec_path)
        return entry

    def _define(self, entry: SymbolDefinition) -> None:
        if entry.local_name in self.table:
            raise SymbolConflictError(
                f"symbol '{entry.local_name}' already defined in scope '{self.name}'"
            )
        self.table[entry.local_name] = entry
        if self.parent is not None:
            self.parent._define(
                replace(entry, local_name=f"{self.name}{SEPARATOR}{entry.local_name}")
            )

    def import_symbol(self, source: str, local_name: Optional[str] = None) -> str:
        """Import a qualified symbol into this scope.

        Importing the same source twice, or importing a symbol already
        defined here, returns the existing local name.

        Args:
            source (str): Qualified name of the symbol, as known to the root scope.
            local_name (Optional[str]): Requested local name. Derived from the
                last segment of ``source`` when omitted, with ``_2``, ``_3``...
                appended until it is free.

        Returns:
            str: The name under which the symbol is known in this scope.

        Raises:
            SymbolConflictError: An explicit ``local_name`` is already taken.
        """
        for entry in self.table.values():
            if isinstance(entry, SymbolImport) and entry.source == source:
                return entry.local_name
            if isinstance(entry, SymbolDefinition) and entry.local_name == source:
                return entry.local_name

        if local_name is None:
            short_name = source.rsplit(SEPARATOR, maxsplit=1)[-1]
            local_name = short_name
            nonce = 1
            while local_name in self.table:
                nonce += 1
                local_name = f"{short_name}_{nonce}"
        elif local_name in self.table:
            raise SymbolConflictError(
                f"symbol '{local_name}' already defined in scope '{self.name}'"
            )

        self.table[local_name] = SymbolImport(local_name=local_name, source=source)
        logger.debug("Imported %s into scope %s as %s", source, self.name, local_name)
        return local_name

    def imports(self) -> Iterator[SymbolImport]:
        """Iterate over local import entries in table order."""
        for entry in self.table.values():
            if isinstance(entry, SymbolImport):
                yield entry

    def public_definitions(self) -> Iterator[SymbolDefinition]:
        """Iterate over local public definitions in table order."""
        for entry in self.table.values():
            if isinstance(entry, SymbolDefinition) and entry.public:
                yield entry
