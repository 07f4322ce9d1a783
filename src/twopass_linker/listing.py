"""
Link Listings
=============

Text renderings of a link result, used by the twopass command line tool.

Symbol Table        Memory Map
X=2                 0:      5010
                    1:      2002
"""

from pathlib import Path

from twopass_linker.config import WORD_RADIX
from twopass_linker.linker import LinkResult, MemoryMap
from twopass_linker.models import Module
from twopass_linker.symbols import SymbolTable


def format_symbol_table(table: SymbolTable) -> str:
    lines = ["Symbol Table"]
    lines.extend(str(entry) for entry in table)
    return "\n".join(lines)


def format_memory_map(memory_map: MemoryMap) -> str:
    lines = ["Memory Map"]
    lines.extend(f"{address}:\t{word}" for address, word in memory_map)
    return "\n".join(lines)


def format_module(module: Module) -> str:
    """
    Describe one module: layout, definitions, uses and text.

    Instructions are shown with their classification letter and the
    original and relocated words, e.g. "R: 1004 -> 1007".
    """
    lines = [
        f"Module {module.index}",
        f"Start: {module.start_location}",
        f"End: {module.end_location}",
        f"Length: {module.length}",
        f"Defs: {len(module.definitions)}",
    ]
    lines.extend(f"\t{symbol}" for symbol in module.definitions)

    lines.append(f"Uses: {len(module.uses)}")
    lines.extend(f"\t{symbol.name}" for symbol in module.uses)

    lines.append(f"Text: {module.length}")
    for instruction in module.instructions:
        original = instruction.opcode * WORD_RADIX + instruction.original_address
        text = f"\t{instruction.classification.value}: {original}"
        if instruction.relocated:
            text += f" -> {instruction.word}"
        lines.append(text)

    return "\n".join(lines)


def format_listing(result: LinkResult, modules: bool = False) -> str:
    """Full listing: optional module dumps, symbol table, then memory map."""
    sections = []
    if modules:
        sections.extend(format_module(module) for module in result.modules)
    sections.append(format_symbol_table(result.symbols))
    sections.append(format_memory_map(result.memory_map))
    return "\n\n".join(sections) + "\n"


def write_listing(path: str | Path, result: LinkResult, modules: bool = False) -> None:
    Path(path).write_text(format_listing(result, modules))
