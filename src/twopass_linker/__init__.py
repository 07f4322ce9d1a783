"""
Two-Pass Linker
===============

Links a relocatable multi-module program into one absolute memory image
using the classic two-pass algorithm.

Input is a flat token stream. Each module lists its definitions
(symbol, relative location), its uses (symbols referenced by External
instructions) and its instructions (type letter, word):

    1 xy 2          one definition: xy at relative address 2
    0               no uses
    2 R 1004 I 5678 two instructions

Main Components
---------------
- **tokenizer**: Splits input into alphanumeric tokens
- **parser**: State machine that rebuilds modules from the tokens
- **symbols**: Global symbol table built by the first pass
- **linker**: First pass, second pass and the Linker facade
- **listing**: Text output for symbol tables, modules and memory maps

Quick Start
-----------
>>> from twopass_linker import Linker
>>> result = Linker().link_file("input-1.txt")
>>> for address, word in result.memory_map:
...     print(f"{address}:\\t{word}")

Or use the command-line tool:
    $ twopass input-1.txt
"""

__version__ = "1.0.0"

# =============================================================================
# Public API Exports
# =============================================================================

from twopass_linker.config import DuplicatePolicy, LinkerConfig
from twopass_linker.errors import (
    LinkerError,
    LinkerConfigError,
    LinkError,
    SourceLocation,
    MalformedInputError,
    DuplicateDefinitionError,
    UnresolvedReferenceError,
    AddressRangeError,
)
from twopass_linker.models import (
    Instruction,
    InstructionType,
    Module,
    ModuleStore,
    Symbol,
)
from twopass_linker.tokenizer import Token, Tokenizer, tokenize
from twopass_linker.parser import ModuleParser, ParserState, Phase, TokenRole, parse_source
from twopass_linker.symbols import SymbolEntry, SymbolTable
from twopass_linker.linker import (
    LinkResult,
    Linker,
    MemoryMap,
    collect_warnings,
    first_pass,
    link,
    second_pass,
)

__all__ = [
    "__version__",
    # Configuration
    "DuplicatePolicy",
    "LinkerConfig",
    # Exception hierarchy
    "LinkerError",
    "LinkerConfigError",
    "LinkError",
    "SourceLocation",
    "MalformedInputError",
    "DuplicateDefinitionError",
    "UnresolvedReferenceError",
    "AddressRangeError",
    # Data model
    "Instruction",
    "InstructionType",
    "Module",
    "ModuleStore",
    "Symbol",
    # Tokenizer and parser
    "Token",
    "Tokenizer",
    "tokenize",
    "ModuleParser",
    "ParserState",
    "Phase",
    "TokenRole",
    "parse_source",
    # Symbol table
    "SymbolEntry",
    "SymbolTable",
    # Linking
    "LinkResult",
    "Linker",
    "MemoryMap",
    "collect_warnings",
    "first_pass",
    "link",
    "second_pass",
]
