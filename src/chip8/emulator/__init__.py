"""
CHIP-8 Virtual Machine
======================

An interpreter for the CHIP-8 virtual machine.

This package provides:

- **Decoder**: 16-bit instruction words to tagged Instruction values
- **Memory**: 4K address space with the built-in hex font
- **Framebuffer**: 64x32 XOR-composited monochrome display
- **Keypad**: 16-key input latch with a QWERTY host mapping
- **CPU**: registers, call stack, timers and the execution engine
- **Debugging**: PC breakpoints and break requests

Quick Start
-----------

Headless run::

    >>> from chip8.emulator import Emulator, EmulatorConfig
    >>> emu = Emulator(EmulatorConfig(rom_path=Path("ibm.ch8")))
    >>> event = emu.run(1000)
    >>> print(emu.display_text)

With debugging::

    >>> emu.add_breakpoint(0x22A)
    >>> event = emu.run()
    >>> if event.reason == BreakReason.PC_BREAKPOINT:
    ...     print(f"Stopped at ${event.address:04X}")

Module Structure
----------------

- `emulator.py`: Main Emulator class (high-level API)
- `cpu.py`: Register file, stack, timers, execution engine
- `opcode.py`: Instruction decoder
- `memory.py`: 4K memory and font table
- `display.py`: Framebuffer
- `keypad.py`: Input latch
- `breakpoints.py`: Debugging support

Copyright (c) 2025 chip8-vm Contributors
"""

# Main entry point
from .emulator import Emulator, EmulatorConfig

# CPU components
from .cpu import Chip8CPU, CPUState, default_random_byte

# Decoder
from .opcode import Instruction, Op, Opcode, decode

# Memory subsystem
from .memory import Memory, FONT_SET, PROGRAM_START, MEMORY_SIZE

# I/O
from .display import Framebuffer
from .keypad import Keypad, KEY_MAP, key_code, state_from_names

# Debugging support
from .breakpoints import BreakpointManager, BreakEvent, BreakReason

__all__ = [
    # Main API
    "Emulator",
    "EmulatorConfig",

    # CPU
    "Chip8CPU",
    "CPUState",
    "default_random_byte",

    # Decoder
    "Instruction",
    "Op",
    "Opcode",
    "decode",

    # Memory
    "Memory",
    "FONT_SET",
    "PROGRAM_START",
    "MEMORY_SIZE",

    # Display
    "Framebuffer",

    # Keypad
    "Keypad",
    "KEY_MAP",
    "key_code",
    "state_from_names",

    # Debugging
    "BreakpointManager",
    "BreakEvent",
    "BreakReason",
]
