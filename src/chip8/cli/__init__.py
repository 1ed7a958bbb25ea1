"""
chip8-vm Command-Line Interface
===============================

This package provides the command-line tools for chip8-vm:

- **chip8run**: headless ROM runner with text/PNG screen dumps

Each tool is implemented as a Click-based CLI application with
comprehensive help and error reporting.
"""

__all__ = ["chip8run"]
