"""
Linker Input Tokenizer
======================

Splits linker input into tokens. A token is a maximal run of alphanumeric
characters; every other character (whitespace, punctuation, underscores)
is a silent separator. No interpretation happens here: "R", "1004" and
"xy" are all just tokens, and the parser decides what each one means.

Example
-------
>>> from twopass_linker.tokenizer import Tokenizer
>>> for token in Tokenizer("1 xy 2\\n0\\n").tokenize():
...     print(token)
Token('1', #0, 1:1)
Token('xy', #1, 1:3)
Token('2', #2, 1:6)
Token('0', #3, 2:1)
"""

from dataclasses import dataclass
from typing import Iterator
import re

from twopass_linker.errors import SourceLocation


# Alphanumeric runs: word characters minus the underscore
TOKEN_PATTERN = re.compile(r"[^\W_]+")


# =============================================================================
# Token Data Class
# =============================================================================

@dataclass(frozen=True)
class Token:
    """
    A single token from the input.

    Attributes:
        text: The token characters
        index: Zero-based position of the token in the stream
        line: Line number in the input (1-indexed)
        column: Column number in the input (1-indexed)
        filename: Name of the input
    """
    text: str
    index: int
    line: int
    column: int
    filename: str = "<input>"

    def __repr__(self) -> str:
        return f"Token({self.text!r}, #{self.index}, {self.line}:{self.column})"

    @property
    def location(self) -> SourceLocation:
        """Return a SourceLocation for error reporting."""
        return SourceLocation(self.filename, self.line, self.column)


# =============================================================================
# Tokenizer Implementation
# =============================================================================

class Tokenizer:
    """
    Tokenizes linker input.

    Every call to tokenize() rescans the source from the beginning, so
    the same Tokenizer can feed any number of link runs.

    Usage:
        tokens = list(Tokenizer(text, "prog.txt").tokenize())
    """

    def __init__(self, source: str, filename: str = "<input>"):
        self.source = source
        self.filename = filename

    def tokenize(self) -> Iterator[Token]:
        """
        Generate tokens lazily from the source text.

        Yields:
            Token objects in input order. Empty input yields nothing.
        """
        line = 1
        line_start = 0
        scanned = 0

        for index, match in enumerate(TOKEN_PATTERN.finditer(self.source)):
            start = match.start()

            # Advance line tracking over the separators before this token
            newlines = self.source.count("\n", scanned, start)
            if newlines:
                line += newlines
                line_start = self.source.rfind("\n", scanned, start) + 1
            scanned = start

            yield Token(
                text=match.group(),
                index=index,
                line=line,
                column=start - line_start + 1,
                filename=self.filename,
            )

    def __iter__(self) -> Iterator[Token]:
        return self.tokenize()


def tokenize(source: str, filename: str = "<input>") -> Iterator[Token]:
    """Convenience wrapper: tokenize source text."""
    return Tokenizer(source, filename).tokenize()
