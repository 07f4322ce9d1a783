"""
Two-Pass Linker
===============

Links a parsed program into one absolute memory image.

Linking Process
---------------
1. **Parsing** (Tokenizer + ModuleParser):
   - Split the input into alphanumeric tokens
   - Rebuild modules and lay them out back to back from address 0

2. **First pass** (first_pass):
   - Convert every definition to an absolute address
     (relative location + module start)
   - Build the global symbol table, then freeze it

3. **Second pass** (second_pass):
   - Relative addresses are shifted by the module start
   - External addresses index the module's use list and are replaced
     by the used symbol's absolute address
   - Immediate and Absolute addresses are left alone
   - Every word is appended to the memory map

The second pass only starts after the symbol table is complete, because
an External instruction may refer to a symbol defined in a later module.

Example Usage
-------------
>>> from twopass_linker import Linker
>>> result = Linker().link_string("1 X 2 0 1 I 5010  0 1 X 1 E 2000")
>>> result.symbols.as_dict()
{'X': 2}
>>> list(result.memory_map)
[(0, 5010), (1, 2002)]
"""

from dataclasses import dataclass, field
from difflib import get_close_matches
from pathlib import Path
from typing import Iterable, Iterator, Optional
import logging

from twopass_linker.config import LinkerConfig
from twopass_linker.errors import (
    AddressRangeError,
    LinkerError,
    UnresolvedReferenceError,
)
from twopass_linker.models import Instruction, InstructionType, Module, ModuleStore
from twopass_linker.parser import ModuleParser
from twopass_linker.symbols import SymbolTable
from twopass_linker.tokenizer import Token, Tokenizer

logger = logging.getLogger(__name__)


# =============================================================================
# Results
# =============================================================================

@dataclass
class MemoryMap:
    """
    The linked program image.

    Iterating yields (address, word) pairs; the address of a word is its
    position in the map.
    """
    words: list[int] = field(default_factory=list)

    def append(self, word: int) -> None:
        self.words.append(word)

    def __iter__(self) -> Iterator[tuple[int, int]]:
        return iter(enumerate(self.words))

    def __len__(self) -> int:
        return len(self.words)

    def __getitem__(self, address: int) -> int:
        return self.words[address]


@dataclass
class LinkResult:
    """
    Everything a successful link produces.

    Attributes:
        modules: Parsed modules with relocated instructions
        symbols: Frozen global symbol table
        memory_map: Encoded words in program order
        warnings: Non-fatal diagnostics
    """
    modules: ModuleStore
    symbols: SymbolTable
    memory_map: MemoryMap
    warnings: list[str] = field(default_factory=list)


# =============================================================================
# Pass 1: Symbol Resolution
# =============================================================================

def first_pass(store: ModuleStore, config: Optional[LinkerConfig] = None) -> SymbolTable:
    """
    Build the global symbol table.

    Definitions are entered in module order, then in definition order
    within each module.

    Returns:
        The frozen symbol table

    Raises:
        DuplicateDefinitionError: If a name is defined twice (ERROR policy)
        AddressRangeError: If an absolute address does not fit the machine
    """
    config = config or LinkerConfig()
    table = SymbolTable(config.duplicate_policy)

    for module in store:
        for symbol in module.definitions:
            absolute = symbol.relative_location + module.start_location
            if absolute > config.max_address:
                raise AddressRangeError(
                    absolute,
                    config.machine_size,
                    module_index=module.index,
                    location=symbol.location,
                )
            symbol.absolute_location = absolute
            table.define(symbol.name, absolute, module.index, symbol.location)

    return table.freeze()


# =============================================================================
# Pass 2: Relocation
# =============================================================================

def second_pass(
    store: ModuleStore,
    table: SymbolTable,
    config: Optional[LinkerConfig] = None,
) -> MemoryMap:
    """
    Relocate every instruction and assemble the memory map.

    Args:
        store: Modules from the parser
        table: Frozen symbol table from first_pass()
        config: Machine size and policies

    Raises:
        LinkerError: If the table is not frozen
        UnresolvedReferenceError: If an External instruction cannot be resolved
        AddressRangeError: If a relocated address does not fit the machine
    """
    if not table.frozen:
        raise LinkerError("second pass requires a frozen symbol table")

    config = config or LinkerConfig()
    memory_map = MemoryMap()

    for module in store:
        for index, instruction in enumerate(module.instructions):
            _relocate(module, index, instruction, table)
            if instruction.address > config.max_address:
                raise AddressRangeError(
                    instruction.address,
                    config.machine_size,
                    instruction_index=index,
                    module_index=module.index,
                    location=instruction.location,
                )
            memory_map.append(instruction.word)

    return memory_map


def _relocate(
    module: Module,
    index: int,
    instruction: Instruction,
    table: SymbolTable,
) -> None:
    """Rewrite one instruction's address according to its classification."""
    if instruction.classification is InstructionType.RELATIVE:
        instruction.relocate(instruction.address + module.start_location)

    elif instruction.classification is InstructionType.EXTERNAL:
        use_index = instruction.address
        if use_index >= len(module.uses):
            raise UnresolvedReferenceError(
                f"use index {use_index} out of range",
                use_index=use_index,
                instruction_index=index,
                module_index=module.index,
                location=instruction.location,
                hint=f"module {module.index} lists {len(module.uses)} use(s)",
            )

        name = module.uses[use_index].name
        entry = table.lookup(name)
        if entry is None:
            hint = None
            similar = get_close_matches(name, table.as_dict().keys(), n=3)
            if similar:
                hint = "did you mean " + ", ".join(f"'{s}'" for s in similar) + "?"
            raise UnresolvedReferenceError(
                f"undefined symbol '{name}'",
                symbol=name,
                use_index=use_index,
                instruction_index=index,
                module_index=module.index,
                location=instruction.location,
                hint=hint,
            )

        instruction.relocate(entry.absolute_location)
    else:
        return

    logger.debug(
        f"Module {module.index} instruction {index}: "
        f"{instruction.classification.name} "
        f"{instruction.original_address} -> {instruction.address}"
    )


# =============================================================================
# Diagnostics
# =============================================================================

def collect_warnings(
    store: ModuleStore,
    table: SymbolTable,
    config: Optional[LinkerConfig] = None,
) -> list[str]:
    """
    Find suspicious but linkable constructs.

    Reports definitions placed beyond their module's last word and, when
    config.warn_unused is set, symbols nobody uses and use list entries
    no External instruction refers to. Each warning is also logged.
    """
    config = config or LinkerConfig()
    warnings: list[str] = []
    used_names = {use.name for module in store for use in module.uses}

    for module in store:
        for symbol in module.definitions:
            if symbol.relative_location >= module.length:
                warnings.append(
                    f"Module {module.index}: definition of '{symbol.name}' at "
                    f"relative address {symbol.relative_location} exceeds "
                    f"module size {module.length}"
                )

        if not config.warn_unused:
            continue

        for symbol in module.definitions:
            if symbol.name not in used_names:
                warnings.append(
                    f"Module {module.index}: '{symbol.name}' is defined but never used"
                )

        referenced = {
            instruction.original_address
            for instruction in module.instructions
            if instruction.classification is InstructionType.EXTERNAL
        }
        for use_index, use in enumerate(module.uses):
            if use_index not in referenced:
                warnings.append(
                    f"Module {module.index}: '{use.name}' appears in the use "
                    f"list but is not referenced"
                )

    for message in warnings:
        logger.warning(message)
    return warnings


# =============================================================================
# Linker Facade
# =============================================================================

class Linker:
    """
    Main linker interface.

    Each call parses its input afresh, so linking the same input twice
    gives identical results.

    Usage:
        result = Linker().link_file("program.txt")
        for address, word in result.memory_map:
            print(f"{address}:\\t{word}")
    """

    def __init__(self, config: Optional[LinkerConfig] = None):
        self.config = (config or LinkerConfig()).validate()
        self._parser = ModuleParser(self.config)

    def link_tokens(self, tokens: Iterable[Token]) -> LinkResult:
        """
        Link a token stream.

        Raises:
            LinkerError: On any parse, resolution or range failure
        """
        store = self._parser.parse(tokens)
        table = first_pass(store, self.config)
        logger.debug(f"First pass complete: {len(table)} symbol(s)")

        memory_map = second_pass(store, table, self.config)
        logger.debug(f"Second pass complete: {len(memory_map)} word(s)")

        warnings = collect_warnings(store, table, self.config)
        return LinkResult(store, table, memory_map, warnings)

    def link_string(self, source: str, filename: str = "<input>") -> LinkResult:
        """Link program text."""
        return self.link_tokens(Tokenizer(source, filename).tokenize())

    def link_file(self, filepath: str | Path) -> LinkResult:
        """
        Link a program file.

        Raises:
            LinkerError: On any linking failure
            FileNotFoundError: If the file does not exist
        """
        filepath = Path(filepath)
        logger.info(f"Linking {filepath}")
        return self.link_string(filepath.read_text(), str(filepath))


def link(source: str, config: Optional[LinkerConfig] = None) -> LinkResult:
    """Convenience function: link program text with a fresh Linker."""
    return Linker(config).link_string(source)
