"""
Linker Data Model
=================

Dataclasses for the objects the linker builds while reading a program:

- **Symbol**: a name defined or used by a module
- **Instruction**: one classified machine word
- **Module**: a relocatable unit with its own definitions, uses and text
- **ModuleStore**: the ordered modules of the program, laid out back to back

Module Layout
-------------
Modules occupy contiguous address ranges in the order they appear:

    module[0].start_location == 0
    module[i + 1].start_location == module[i].end_location + 1
    end_location == start_location + length - 1

An empty module has length 0 and end_location == start_location - 1, so
it does not move the modules that follow it.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Optional

from twopass_linker.config import WORD_RADIX
from twopass_linker.errors import LinkerError, SourceLocation


# =============================================================================
# Instruction Classification
# =============================================================================

class InstructionType(Enum):
    """
    How an instruction's address field is treated by the second pass.

    IMMEDIATE and ABSOLUTE are left alone. RELATIVE is shifted by the
    module's start address. EXTERNAL indexes the module's use list and is
    replaced by the used symbol's absolute address.
    """
    IMMEDIATE = "I"
    ABSOLUTE = "A"
    RELATIVE = "R"
    EXTERNAL = "E"

    @classmethod
    def from_char(cls, char: str) -> "InstructionType":
        """
        Look up a classification by its type letter.

        Raises:
            ValueError: If char is not one of I, A, R, E
        """
        return cls(char)

    @property
    def is_relocatable(self) -> bool:
        return self in (InstructionType.RELATIVE, InstructionType.EXTERNAL)


# =============================================================================
# Symbols and Instructions
# =============================================================================

@dataclass
class Symbol:
    """
    A symbol defined or used by a module.

    Attributes:
        name: Symbol name
        relative_location: Offset from the defining module's start
                           (None for uses)
        absolute_location: Program-wide address, filled in by the first pass
        location: Where the name token was read
    """
    name: str
    relative_location: Optional[int] = None
    absolute_location: Optional[int] = None
    location: Optional[SourceLocation] = None

    def __str__(self) -> str:
        if self.absolute_location is not None:
            return f"{self.name}={self.absolute_location}"
        if self.relative_location is not None:
            return f"{self.name}={self.relative_location}"
        return self.name


@dataclass
class Instruction:
    """
    One word of program text.

    The address is rewritten at most once, by the second pass, and only
    for RELATIVE and EXTERNAL instructions.

    Attributes:
        classification: How the address is relocated
        opcode: Opcode digit (0-9)
        address: Address field (mutated by relocation)
        location: Where the word token was read
        original_address: Address as read from the input
        relocated: True once the second pass has processed this word
    """
    classification: InstructionType
    opcode: int
    address: int
    location: Optional[SourceLocation] = None
    original_address: int = field(init=False)
    relocated: bool = field(default=False, init=False)

    def __post_init__(self) -> None:
        self.original_address = self.address

    @property
    def word(self) -> int:
        """The encoded word: opcode * 1000 + address."""
        return self.opcode * WORD_RADIX + self.address

    def relocate(self, address: int) -> None:
        """
        Replace the address field.

        Raises:
            LinkerError: If the instruction was already relocated
        """
        if self.relocated:
            raise LinkerError(
                f"instruction {self} relocated twice"
            )
        self.address = address
        self.relocated = True

    def __str__(self) -> str:
        return str(self.word)


# =============================================================================
# Modules
# =============================================================================

@dataclass
class Module:
    """
    A relocatable module.

    Length and end location are derived from the instruction list, so
    they are always consistent with it. Index and start location are
    assigned when the module is appended to a ModuleStore.

    Attributes:
        index: Zero-based position in the program
        start_location: Absolute address of the module's first word
        definitions: Symbols exported by this module (relative locations)
        uses: Symbols referenced by External instructions, by position
        instructions: Program text in order
    """
    index: int = 0
    start_location: int = 0
    definitions: list[Symbol] = field(default_factory=list)
    uses: list[Symbol] = field(default_factory=list)
    instructions: list[Instruction] = field(default_factory=list)

    @property
    def length(self) -> int:
        return len(self.instructions)

    @property
    def end_location(self) -> int:
        return self.start_location + self.length - 1

    def add_definition(self, symbol: Symbol) -> None:
        self.definitions.append(symbol)

    def add_use(self, symbol: Symbol) -> None:
        self.uses.append(symbol)

    def add_instruction(self, instruction: Instruction) -> None:
        self.instructions.append(instruction)


class ModuleStore:
    """
    Ordered modules of a program.

    Each appended module starts right after the previous one ends. Start
    addresses are fixed on append and never recomputed.
    """

    def __init__(self) -> None:
        self._modules: list[Module] = []

    @property
    def next_start_location(self) -> int:
        """Start address for the next module."""
        if not self._modules:
            return 0
        return self._modules[-1].end_location + 1

    def append(self, module: Module) -> Module:
        """
        Finalize a module into the store.

        Assigns the module's index and start location.

        Returns:
            The same module, for chaining
        """
        module.index = len(self._modules)
        module.start_location = self.next_start_location
        self._modules.append(module)
        return module

    @property
    def total_length(self) -> int:
        """Number of words across all modules."""
        return sum(module.length for module in self._modules)

    def __iter__(self) -> Iterator[Module]:
        return iter(self._modules)

    def __len__(self) -> int:
        return len(self._modules)

    def __getitem__(self, index: int) -> Module:
        return self._modules[index]
