"""
Breakpoint Support for CHIP-8 VM
================================

Provides the debugging controls used by the Emulator run loop:
- PC breakpoints (stop before the instruction at an address executes)
- External break requests (stop at the next instruction)

The BreakpointManager is attached to the CPU through its on_instruction
hook and records a BreakEvent describing why execution stopped.

Example usage:

    >>> from chip8.emulator import Emulator, BreakReason
    >>> emu = Emulator.from_bytes(rom)
    >>> emu.add_breakpoint(0x20A)
    >>> event = emu.run(10_000)
    >>> if event.reason == BreakReason.PC_BREAKPOINT:
    ...     print(f"Hit breakpoint at ${event.address:04X}")

Copyright (c) 2025 chip8-vm Contributors
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import List, Optional, Set


class BreakReason(Enum):
    """
    Enumeration of reasons why execution stopped.

    Used in BreakEvent to indicate what triggered the break.
    """
    NONE = auto()           # No specific reason (normal termination)
    PC_BREAKPOINT = auto()  # PC reached a breakpoint address
    STEP = auto()           # One instruction executed by step()
    USER_INTERRUPT = auto() # Break requested by the host
    MAX_CYCLES = auto()     # Cycle budget used up
    AWAITING_KEY = auto()   # Program is blocked in FX0A


@dataclass
class BreakEvent:
    """
    Information about why execution stopped.

    Attributes:
        reason: Why execution stopped
        address: PC involved (if applicable)
        message: Human-readable description
    """
    reason: BreakReason
    address: Optional[int] = None
    message: str = ""

    def __str__(self) -> str:
        """Return human-readable description."""
        if self.message:
            return self.message
        match self.reason:
            case BreakReason.PC_BREAKPOINT:
                return f"Breakpoint at ${self.address:04X}" if self.address is not None else "Breakpoint"
            case BreakReason.STEP:
                return "Single step"
            case BreakReason.USER_INTERRUPT:
                return "User interrupt"
            case BreakReason.MAX_CYCLES:
                return "Maximum cycles reached"
            case BreakReason.AWAITING_KEY:
                return "Waiting for key"
            case _:
                return "Unknown"


class BreakpointManager:
    """
    Manages PC breakpoints and break requests.

    The manager integrates with the CPU via its hook:

        >>> mgr = BreakpointManager()
        >>> mgr.add_breakpoint(0x200)
        >>> cpu.on_instruction = mgr.check_instruction
    """

    def __init__(self):
        """Initialize empty breakpoint manager."""
        self._pc_breakpoints: Set[int] = set()

        # Last break event (for inspection after break)
        self._last_event: Optional[BreakEvent] = None

        self._break_requested: bool = False

        # Address of a breakpoint just reported; execution resumes past it
        self._resume_address: Optional[int] = None

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def last_event(self) -> Optional[BreakEvent]:
        """Get the last break event that occurred."""
        return self._last_event

    @property
    def breakpoint_count(self) -> int:
        """Number of active PC breakpoints."""
        return len(self._pc_breakpoints)

    # =========================================================================
    # PC Breakpoints
    # =========================================================================

    def add_breakpoint(self, address: int) -> None:
        """
        Add PC breakpoint at address.

        Execution will stop when PC reaches this address, before the
        instruction at that address is executed.
        """
        self._pc_breakpoints.add(address & 0xFFF)

    def remove_breakpoint(self, address: int) -> None:
        """Remove PC breakpoint at address."""
        self._pc_breakpoints.discard(address & 0xFFF)

    def has_breakpoint(self, address: int) -> bool:
        """Check if breakpoint exists at address."""
        return (address & 0xFFF) in self._pc_breakpoints

    def clear_breakpoints(self) -> None:
        """Remove all PC breakpoints."""
        self._pc_breakpoints.clear()

    def list_breakpoints(self) -> List[int]:
        """Get sorted list of breakpoint addresses."""
        return sorted(self._pc_breakpoints)

    # =========================================================================
    # Break Control
    # =========================================================================

    def request_break(self) -> None:
        """Request execution to break before the next instruction."""
        self._break_requested = True

    def clear_break_request(self) -> None:
        """Clear any pending break request."""
        self._break_requested = False

    def clear_resume(self) -> None:
        """
        Forget the breakpoint that just fired.

        Call this when execution moves on without going through
        check_instruction() (single step, reset), so the breakpoint fires
        on its next visit.
        """
        self._resume_address = None

    def clear_last_event(self) -> None:
        """Forget the last break event before a new run."""
        self._last_event = None

    def clear_all(self) -> None:
        """Remove all breakpoints and reset break state."""
        self.clear_breakpoints()
        self._break_requested = False
        self._last_event = None
        self._resume_address = None

    # =========================================================================
    # Check Function (called by CPU hook)
    # =========================================================================

    def check_instruction(self, pc: int, opcode: int) -> bool:
        """
        Check if we should break before executing an instruction.

        A breakpoint that has just stopped execution does not fire again
        for the very next check at the same address, so calling run()
        again resumes past it.

        Args:
            pc: Current program counter
            opcode: Instruction word about to be executed

        Returns:
            True to continue execution, False to break
        """
        if self._break_requested:
            self._break_requested = False
            self._last_event = BreakEvent(
                BreakReason.USER_INTERRUPT,
                address=pc,
                message="User interrupt"
            )
            return False

        if pc in self._pc_breakpoints:
            if self._resume_address == pc:
                self._resume_address = None
                return True
            self._resume_address = pc
            self._last_event = BreakEvent(
                BreakReason.PC_BREAKPOINT,
                address=pc,
                message=f"Breakpoint at ${pc:04X}"
            )
            return False

        self._resume_address = None
        return True
