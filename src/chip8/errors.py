"""
CHIP-8 VM Error Hierarchy
=========================

This module defines the exception hierarchy for the whole package.
All exceptions inherit from Chip8Error, allowing a host loop to stop and
report every fatal VM condition with a single except clause.

Exception Hierarchy
-------------------
Chip8Error (base)
├── RomLoadError - ROM missing, unreadable, or too large (construction time)
└── ExecutionError (runtime faults, carry pc and opcode)
    ├── DecodeError - instruction word matches no defined opcode
    ├── StackOverflowError - call with a full return-address stack
    ├── StackUnderflowError - return with an empty stack
    ├── MemoryAccessError - fetch or data access outside the 4K address space
    └── InvalidKeyError - key instruction names a key above 0xF

Design Philosophy
-----------------
A malformed CHIP-8 program has no well-defined continuation, so there is no
recoverable-error path in the core. Every runtime fault records where it
happened so the host can print a useful diagnostic:

    error: undefined instruction (pc=$0204, opcode=$5121)
"""

from pathlib import Path
from typing import Optional, Union


# =============================================================================
# Base Exception Class
# =============================================================================

class Chip8Error(Exception):
    """
    Base exception for all CHIP-8 VM errors.

    Hosts driving the cycle loop are expected to treat any Chip8Error as
    "stop the loop and report":

        try:
            while running:
                emu.cycle(keys)
        except Chip8Error as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Construction-time Errors
# =============================================================================

class RomLoadError(Chip8Error):
    """
    ROM image could not be loaded.

    Raised while constructing the VM when the ROM file cannot be read or
    does not fit in the program area ($200-$FFF).

    Attributes:
        path: The ROM path, or None for in-memory images
        reason: Why the load failed
    """

    def __init__(self, reason: str, path: Optional[Union[str, Path]] = None):
        self.reason = reason
        self.path = path
        if path is not None:
            super().__init__(f"cannot load ROM '{path}': {reason}")
        else:
            super().__init__(f"cannot load ROM: {reason}")


# =============================================================================
# Runtime Faults
# =============================================================================

class ExecutionError(Chip8Error):
    """
    Base exception for faults raised while executing a program.

    Attributes:
        message: The error description
        pc: Program counter of the faulting instruction (optional)
        opcode: The faulting instruction word (optional)
    """

    def __init__(
        self,
        message: str,
        pc: Optional[int] = None,
        opcode: Optional[int] = None,
    ):
        self.message = message
        self.pc = pc
        self.opcode = opcode
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """
        Format the message with the location of the fault.

        Example output:
            error: stack overflow (pc=$0286, opcode=$2300)
        """
        location = []
        if self.pc is not None:
            location.append(f"pc=${self.pc:04X}")
        if self.opcode is not None:
            location.append(f"opcode=${self.opcode:04X}")

        if location:
            return f"error: {self.message} ({', '.join(location)})"
        return f"error: {self.message}"


class DecodeError(ExecutionError):
    """
    Instruction word matches no defined opcode.

    Execution halts instead of skipping the word, since skipping would
    desynchronize every following fetch.
    """

    def __init__(self, opcode: int, pc: Optional[int] = None):
        super().__init__("undefined instruction", pc=pc, opcode=opcode)


class StackOverflowError(ExecutionError):
    """Subroutine call made while all 16 stack levels are in use."""

    def __init__(self, pc: Optional[int] = None, opcode: Optional[int] = None):
        super().__init__("stack overflow", pc=pc, opcode=opcode)


class StackUnderflowError(ExecutionError):
    """Return from subroutine made with an empty stack."""

    def __init__(self, pc: Optional[int] = None, opcode: Optional[int] = None):
        super().__init__("stack underflow", pc=pc, opcode=opcode)


class MemoryAccessError(ExecutionError):
    """
    Access outside the 4096-byte address space.

    Attributes:
        address: The offending address
    """

    def __init__(
        self,
        address: int,
        pc: Optional[int] = None,
        opcode: Optional[int] = None,
    ):
        self.address = address
        super().__init__(
            f"memory access out of bounds at ${address:04X}", pc=pc, opcode=opcode
        )


class InvalidKeyError(ExecutionError):
    """
    Key instruction references a key code outside 0x0-0xF.

    Attributes:
        key: The register value used as key code
    """

    def __init__(
        self,
        key: int,
        pc: Optional[int] = None,
        opcode: Optional[int] = None,
    ):
        self.key = key
        super().__init__(f"invalid key ${key:02X}", pc=pc, opcode=opcode)
