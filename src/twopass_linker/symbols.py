"""
Global Symbol Table
===================

The program-wide table of symbol names and absolute addresses, built by
the first pass in module order and read by the second pass.

Entries are appended, never changed. A table is frozen once the first
pass is complete; further definitions raise LinkerError. Duplicate
names are handled according to the configured DuplicatePolicy.
"""

from dataclasses import dataclass
from typing import Iterator, Optional
import logging

from twopass_linker.config import DuplicatePolicy
from twopass_linker.errors import (
    DuplicateDefinitionError,
    LinkerError,
    SourceLocation,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SymbolEntry:
    """
    One global symbol table entry.

    Attributes:
        name: Symbol name
        absolute_location: Program-wide address
        module_index: Module that defined the symbol
    """
    name: str
    absolute_location: int
    module_index: int

    def __str__(self) -> str:
        return f"{self.name}={self.absolute_location}"


class SymbolTable:
    """
    Append-only table of absolute symbol addresses.

    Lookups honour the duplicate policy: with FIRST the earliest entry for
    a name wins, with LAST the latest one. With ERROR a second entry can
    never be added.
    """

    def __init__(self, policy: DuplicatePolicy = DuplicatePolicy.ERROR):
        self.policy = policy
        self._entries: list[SymbolEntry] = []
        self._index: dict[str, SymbolEntry] = {}
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> "SymbolTable":
        """Make the table read-only. Returns self."""
        self._frozen = True
        return self

    def define(
        self,
        name: str,
        absolute_location: int,
        module_index: int,
        location: Optional[SourceLocation] = None,
    ) -> SymbolEntry:
        """
        Append a definition.

        Raises:
            LinkerError: If the table is frozen
            DuplicateDefinitionError: If the name exists and the policy is ERROR
        """
        if self._frozen:
            raise LinkerError(f"cannot define '{name}': symbol table is frozen")

        entry = SymbolEntry(name, absolute_location, module_index)
        existing = self._index.get(name)

        if existing is not None:
            if self.policy is DuplicatePolicy.ERROR:
                raise DuplicateDefinitionError(
                    name,
                    module_index=module_index,
                    original_module=existing.module_index,
                    location=location,
                )
            logger.warning(
                f"Symbol '{name}' defined in modules {existing.module_index} "
                f"and {module_index}; using the {self.policy.value} definition"
            )

        self._entries.append(entry)
        if existing is None or self.policy is DuplicatePolicy.LAST:
            self._index[name] = entry
        logger.debug(f"Defined {entry} (module {module_index})")
        return entry

    def lookup(self, name: str) -> Optional[SymbolEntry]:
        """Return the entry that resolves name, or None."""
        return self._index.get(name)

    def duplicates(self) -> list[str]:
        """Names with more than one entry, in first-definition order."""
        seen: dict[str, int] = {}
        for entry in self._entries:
            seen[entry.name] = seen.get(entry.name, 0) + 1
        return [name for name, count in seen.items() if count > 1]

    def as_dict(self) -> dict[str, int]:
        """Map each name to the address it resolves to."""
        return {name: entry.absolute_location for name, entry in self._index.items()}

    def __contains__(self, name: object) -> bool:
        return name in self._index

    def __iter__(self) -> Iterator[SymbolEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)
