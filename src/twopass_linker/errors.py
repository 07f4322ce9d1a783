"""
Two-Pass Linker Error Hierarchy
===============================

This module defines the exception hierarchy for the linker. All exceptions
inherit from LinkerError, allowing callers to catch every linking failure
with a single except clause.

Exception Hierarchy
-------------------
LinkerError (base)
├── LinkerConfigError - invalid configuration value
└── LinkError (located in the input)
    ├── MalformedInputError - token stream does not follow the grammar
    ├── DuplicateDefinitionError - symbol defined in more than one module
    ├── UnresolvedReferenceError - external reference cannot be resolved
    └── AddressRangeError - address does not fit the machine

Error messages follow this format:
    filename:line:column: error: description (module N)
    hint: suggestion for fixing (when available)

A link either succeeds completely or fails with exactly one of these
errors. No partial memory map is ever produced.
"""

from dataclasses import dataclass
from typing import Optional


# =============================================================================
# Base Exception Class
# =============================================================================

class LinkerError(Exception):
    """
    Base exception for all linker errors.

        try:
            linker.link_file("program.txt")
        except LinkerError as e:
            print(f"Error: {e}")
    """
    pass


class LinkerConfigError(LinkerError):
    """Raised when a LinkerConfig value is out of range or unknown."""
    pass


# =============================================================================
# Source Location Tracking
# =============================================================================

@dataclass(frozen=True)
class SourceLocation:
    """
    Location of a token in the input text.

    Attributes:
        filename: Name of the input (or "<input>" for string input)
        line: Line number (1-indexed)
        column: Column number (1-indexed)
    """
    filename: str
    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.filename}:{self.line}:{self.column}"


# =============================================================================
# Linking Exceptions
# =============================================================================

class LinkError(LinkerError):
    """
    Base exception for errors tied to a place in the program.

    Attributes:
        message: The error description
        location: Where in the input the offending token was read (optional)
        module_index: Zero-based index of the module being processed (optional)
        hint: A suggestion for fixing the error (optional)
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        module_index: Optional[int] = None,
        hint: Optional[str] = None,
    ):
        self.message = message
        self.location = location
        self.module_index = module_index
        self.hint = hint
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """
        Format the error message with location, module and hint.

        Example output:
            prog.txt:3:5: error: use index 2 out of range (module 1)
            hint: module 1 lists 1 use(s)
        """
        text = self.message
        if self.module_index is not None:
            text = f"{text} (module {self.module_index})"

        if self.location:
            parts = [f"{self.location}: error: {text}"]
        else:
            parts = [f"error: {text}"]

        if self.hint:
            parts.append(f"hint: {self.hint}")

        return "\n".join(parts)


class MalformedInputError(LinkError):
    """
    The token stream does not follow the module grammar.

    Raised by the parser when a count or location token is not a
    non-negative integer, an instruction type is not one of I/A/R/E,
    a word token is too short or holds non-digits, or the input ends
    in the middle of a definition, use list or instruction.
    """

    def __init__(
        self,
        message: str,
        token: Optional[str] = None,
        location: Optional[SourceLocation] = None,
        module_index: Optional[int] = None,
        hint: Optional[str] = None,
    ):
        self.token = token
        if token is not None:
            message = f"{message}: '{token}'"
        super().__init__(message, location=location,
                         module_index=module_index, hint=hint)


class DuplicateDefinitionError(LinkError):
    """
    Symbol defined by more than one module.

    Raised while the global symbol table is built when the duplicate
    policy is "error" (the default).
    """

    def __init__(
        self,
        symbol: str,
        module_index: Optional[int] = None,
        original_module: Optional[int] = None,
        location: Optional[SourceLocation] = None,
    ):
        self.symbol = symbol
        self.original_module = original_module

        hint = None
        if original_module is not None:
            hint = f"'{symbol}' was first defined in module {original_module}"

        super().__init__(
            f"duplicate definition of symbol '{symbol}'",
            location=location,
            module_index=module_index,
            hint=hint,
        )


class UnresolvedReferenceError(LinkError):
    """
    An External instruction cannot be resolved.

    Either its use index is outside the module's use list, or the used
    symbol has no entry in the global symbol table.
    """

    def __init__(
        self,
        message: str,
        symbol: Optional[str] = None,
        use_index: Optional[int] = None,
        instruction_index: Optional[int] = None,
        module_index: Optional[int] = None,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
    ):
        self.symbol = symbol
        self.use_index = use_index
        self.instruction_index = instruction_index
        if instruction_index is not None:
            message = f"{message} at instruction {instruction_index}"
        super().__init__(message, location=location,
                         module_index=module_index, hint=hint)


class AddressRangeError(LinkError):
    """
    An address does not fit in the machine.

    Words are encoded as opcode * 1000 + address, so any address outside
    [0, machine_size) would make the encoding ambiguous.
    """

    def __init__(
        self,
        address: int,
        limit: int,
        instruction_index: Optional[int] = None,
        module_index: Optional[int] = None,
        location: Optional[SourceLocation] = None,
    ):
        self.address = address
        self.limit = limit
        self.instruction_index = instruction_index

        message = f"address {address} outside range 0..{limit - 1}"
        if instruction_index is not None:
            message = f"{message} at instruction {instruction_index}"

        super().__init__(message, location=location, module_index=module_index)
