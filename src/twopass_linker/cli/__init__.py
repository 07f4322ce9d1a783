"""
Two-Pass Linker Command-Line Interface
======================================

- **twopass**: link a program file and print its memory map

The tool is a Click application with help text and unified error
reporting (see errors.py).
"""

__all__ = ["twopass"]
