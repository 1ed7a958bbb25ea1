"""
chip8-vm - A CHIP-8 Virtual Machine
===================================

This package implements the core of a CHIP-8 interpreter: the 4K memory,
sixteen 8-bit registers, call stack, timers, 64x32 framebuffer and 16-key
input latch of the 1970s COSMAC VIP virtual machine, plus a headless
command-line runner.

Main Components
---------------
- **emulator**: the VM core and its Emulator orchestrator
- **cli**: the chip8run command-line tool
- **errors**: the Chip8Error exception hierarchy

Quick Start
-----------
Run a ROM for a few hundred cycles and look at the screen:
    >>> from chip8 import Emulator, EmulatorConfig
    >>> emu = Emulator(EmulatorConfig(rom_path=Path("ibm.ch8")))
    >>> emu.run(500)
    >>> print(emu.display_text)

Or use the command-line tool:
    $ chip8run ibm.ch8 --cycles 500 --png ibm.png

Version History
---------------
1.0.0 - Initial release
"""

__version__ = "1.0.0"
__author__ = "chip8-vm Contributors"

# =============================================================================
# Public API Exports
# =============================================================================

from chip8.errors import (
    Chip8Error,
    RomLoadError,
    ExecutionError,
    DecodeError,
    StackOverflowError,
    StackUnderflowError,
    MemoryAccessError,
    InvalidKeyError,
)

from chip8.emulator import (
    Emulator,
    EmulatorConfig,
    BreakEvent,
    BreakReason,
)

__all__ = [
    "__version__",
    # Errors
    "Chip8Error",
    "RomLoadError",
    "ExecutionError",
    "DecodeError",
    "StackOverflowError",
    "StackUnderflowError",
    "MemoryAccessError",
    "InvalidKeyError",
    # Emulator
    "Emulator",
    "EmulatorConfig",
    "BreakEvent",
    "BreakReason",
]
