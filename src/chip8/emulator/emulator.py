"""
CHIP-8 VM - Main Orchestrator
=============================

This module provides the `Emulator` class that wires the VM components
together behind a small, host-friendly API.

The Emulator class:
- Loads a ROM from a file or from raw bytes
- Initializes memory, framebuffer, keypad, CPU and breakpoint manager
- Drives the cycle loop (cycle, step, run, run_until_pc)
- Applies the host's keypad latch before each cycle
- Exposes the framebuffer for rendering and the registers for inspection

The host owns the loop. A typical interactive host calls cycle() once per
frame step, passing the 16-key latch it sampled, then redraws when
framebuffer.needs_refresh is set:

    >>> from chip8.emulator import Emulator, EmulatorConfig
    >>> emu = Emulator(EmulatorConfig(rom_path=Path("pong.ch8")))
    >>> while running:
    ...     emu.cycle(keys)
    ...     if emu.framebuffer.needs_refresh:
    ...         draw(emu.display_pixels)

Copyright (c) 2025 chip8-vm Contributors
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Union

from chip8.errors import RomLoadError
from .breakpoints import BreakEvent, BreakpointManager, BreakReason
from .cpu import Chip8CPU, default_random_byte
from .display import Framebuffer
from .keypad import Keypad
from .memory import Memory

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmulatorConfig:
    """
    Configuration for emulator initialization.

    Attributes:
        rom_path: Path to the ROM image. Optional only for Emulator.from_bytes().
        wrap_sprites: Wrap sprite pixels at the screen edges instead of clipping
        seed: Seed for the CXNN random source (None for nondeterministic)
        cycles_per_timer_tick: Instructions per delay/sound timer decrement

    Example:
        >>> config = EmulatorConfig(rom_path=Path("maze.ch8"), seed=1234)
    """
    rom_path: Optional[Path] = None
    wrap_sprites: bool = False
    seed: Optional[int] = None
    cycles_per_timer_tick: int = 1


class Emulator:
    """
    CHIP-8 VM with instrumentation support.

    Attributes:
        config: The EmulatorConfig used to initialize this instance
        memory: 4K main memory
        framebuffer: 64x32 display
        keypad: 16-key input latch
        cpu: The Chip8CPU instance (accessible for low-level control)
        breakpoints: The breakpoint manager

    Example:
        >>> emu = Emulator.from_bytes(bytes([0x60, 0x05, 0x12, 0x02]))
        >>> event = emu.run(100)
        >>> emu.registers["v0"]
        5
    """

    def __init__(
        self,
        config: Optional[EmulatorConfig] = None,
        rom: Optional[bytes] = None,
        random_byte: Optional[Callable[[], int]] = None,
    ):
        """
        Initialize the emulator and load the ROM.

        Args:
            config: EmulatorConfig; rom_path is read unless rom is given
            rom: ROM image bytes, overriding config.rom_path
            random_byte: Injectable CXNN random source, overriding config.seed

        Raises:
            RomLoadError: If no ROM is given, the file cannot be read, or the
                image does not fit in memory
            ValueError: If cycles_per_timer_tick is less than 1
        """
        self.config = config or EmulatorConfig()
        if self.config.cycles_per_timer_tick < 1:
            raise ValueError(
                f"cycles_per_timer_tick must be >= 1, got {self.config.cycles_per_timer_tick}"
            )

        if rom is None:
            rom = self._read_rom(self.config.rom_path)
        self._rom = bytes(rom)

        try:
            self.memory = Memory(self._rom)
        except RomLoadError as e:
            raise RomLoadError(e.reason, self.config.rom_path) from e
        logger.debug(f"Loaded {len(self._rom)}-byte ROM at $0200")

        self.framebuffer = Framebuffer()
        self.keypad = Keypad()
        self.cpu = Chip8CPU(
            self.memory,
            self.framebuffer,
            self.keypad,
            random_byte=random_byte or default_random_byte(self.config.seed),
            wrap_sprites=self.config.wrap_sprites,
        )

        self.breakpoints = BreakpointManager()
        self.cpu.on_instruction = self.breakpoints.check_instruction

        self._total_cycles = 0
        self._tick_counter = 0

    @classmethod
    def from_bytes(
        cls,
        data: bytes,
        config: Optional[EmulatorConfig] = None,
        random_byte: Optional[Callable[[], int]] = None,
    ) -> "Emulator":
        """
        Create an emulator from an in-memory ROM image.

        Example:
            >>> emu = Emulator.from_bytes(bytes([0x00, 0xE0]))
        """
        return cls(config, rom=data, random_byte=random_byte)

    @staticmethod
    def _read_rom(path: Optional[Union[str, Path]]) -> bytes:
        if path is None:
            raise RomLoadError("no ROM path given")
        try:
            return Path(path).read_bytes()
        except OSError as e:
            raise RomLoadError(e.strerror or str(e), path) from e

    # =========================================================================
    # Execution Control
    # =========================================================================

    def reset(self) -> None:
        """
        Reset the VM to its power-on state.

        Memory is zeroed and the font and ROM reloaded; the framebuffer,
        keypad latch, registers, timers and cycle counter are cleared.
        Breakpoints stay in place.
        """
        self.memory.reset()
        self.memory.load_rom(self._rom)
        self.framebuffer.clear()
        self.keypad.release_all()
        self.cpu.reset()
        self._total_cycles = 0
        self._tick_counter = 0
        self.breakpoints.clear_break_request()
        self.breakpoints.clear_resume()

    def cycle(self, keys: Optional[Iterable[bool]] = None) -> bool:
        """
        Run one VM cycle.

        Refreshes the keypad latch (when keys is given), executes one
        instruction (or one key-wait poll) and ticks the timers every
        cycles_per_timer_tick cycles.

        Args:
            keys: Optional 16-element key latch, index = key code

        Returns:
            False if a breakpoint or break request stopped the cycle before
            the instruction ran, else True

        Raises:
            ExecutionError: On any fatal fault
        """
        if keys is not None:
            self.keypad.set_state(keys)

        if not self.cpu.execute_instruction():
            return False

        self._total_cycles += 1
        self._tick_counter += 1
        if self._tick_counter >= self.config.cycles_per_timer_tick:
            self._tick_counter = 0
            self.cpu.tick_timers()
        return True

    def tick_timers(self) -> None:
        """Decrement both timers once, for hosts with a separate 60 Hz clock."""
        self.cpu.tick_timers()

    def step(self) -> BreakEvent:
        """
        Execute a single cycle, ignoring breakpoints.

        Returns:
            BreakEvent with reason=STEP and the new PC
        """
        hook = self.cpu.on_instruction
        self.cpu.on_instruction = None
        try:
            self.cycle()
        finally:
            self.cpu.on_instruction = hook
        self.breakpoints.clear_resume()

        return BreakEvent(
            BreakReason.STEP,
            address=self.cpu.pc,
            message=f"Step at ${self.cpu.pc:04X}"
        )

    def run(self, max_cycles: int = 1_000_000, stop_on_key_wait: bool = False) -> BreakEvent:
        """
        Run until a breakpoint, a break request or max_cycles.

        Args:
            max_cycles: Maximum cycles to execute
            stop_on_key_wait: Also stop as soon as the program blocks in FX0A

        Returns:
            BreakEvent describing why execution stopped

        Example:
            >>> emu.add_breakpoint(0x20A)
            >>> event = emu.run(10_000)
            >>> if event.reason == BreakReason.PC_BREAKPOINT:
            ...     print(f"Hit breakpoint at ${event.address:04X}")
        """
        self.breakpoints.clear_last_event()
        start = self._total_cycles
        event = None

        for _ in range(max_cycles):
            if not self.cycle():
                event = self.breakpoints.last_event
                logger.debug(f"Stopped: {event}")
                break
            if stop_on_key_wait and self.cpu.awaiting_key:
                event = BreakEvent(BreakReason.AWAITING_KEY, address=self.cpu.pc)
                break

        if event is None:
            event = BreakEvent(
                BreakReason.MAX_CYCLES,
                address=self.cpu.pc,
                message=f"Reached max cycles ({max_cycles})"
            )

        logger.info(
            f"Ran {self._total_cycles - start} cycles, stopped at ${self.cpu.pc:04X}: {event}"
        )
        return event

    def run_until_pc(self, address: int, max_cycles: int = 1_000_000) -> bool:
        """
        Run until PC reaches a specific address.

        Creates a temporary breakpoint at the address and runs until hit.

        Returns:
            True if address was reached, False if max_cycles hit first
        """
        was_set = self.breakpoints.has_breakpoint(address)
        if not was_set:
            self.breakpoints.add_breakpoint(address)

        try:
            event = self.run(max_cycles)
            return (event.reason == BreakReason.PC_BREAKPOINT and
                    event.address == address)
        finally:
            if not was_set:
                self.breakpoints.remove_breakpoint(address)

    # =========================================================================
    # Breakpoint Management (delegates to BreakpointManager)
    # =========================================================================

    def add_breakpoint(self, address: int) -> None:
        """Stop before the instruction at address executes."""
        self.breakpoints.add_breakpoint(address)

    def remove_breakpoint(self, address: int) -> None:
        """Remove a PC breakpoint."""
        self.breakpoints.remove_breakpoint(address)

    def clear_breakpoints(self) -> None:
        """Remove all breakpoints and pending break requests."""
        self.breakpoints.clear_all()

    # =========================================================================
    # Keypad Input
    # =========================================================================

    def set_keys(self, keys: Iterable[bool]) -> None:
        """Overwrite the whole 16-key latch."""
        self.keypad.set_state(keys)

    def press_key(self, key: Union[str, int]) -> None:
        """
        Press a key by host name ('1'-'4', 'Q'-'R', 'A'-'F', 'Z'-'V') or code.

        The key stays down until release_key() is called.
        """
        self.keypad.press_key(key)

    def release_key(self, key: Union[str, int]) -> None:
        """Release a key by host name or code."""
        self.keypad.release_key(key)

    # =========================================================================
    # Display Output
    # =========================================================================

    @property
    def display_text(self) -> str:
        """Framebuffer as 32 lines of '#' and '.'."""
        return self.framebuffer.get_text()

    @property
    def display_pixels(self) -> bytes:
        """Framebuffer as 64*32 bytes, 255 for lit pixels."""
        return self.framebuffer.get_pixel_buffer()

    def render_display(self, scale: int = 8) -> bytes:
        """Framebuffer as PNG bytes (requires Pillow)."""
        return self.framebuffer.render_image(scale=scale)

    @property
    def sound_active(self) -> bool:
        """True while the host should be beeping."""
        return self.cpu.sound_active

    # =========================================================================
    # State Inspection
    # =========================================================================

    @property
    def registers(self) -> dict:
        """
        Get current register values.

        Returns:
            Dictionary with keys v0-vf, i, pc, sp, dt, st, awaiting_key
        """
        return self.cpu.registers

    @property
    def total_cycles(self) -> int:
        """Total cycles executed since creation or last reset."""
        return self._total_cycles

    def read_byte(self, address: int) -> int:
        """Read a byte from memory."""
        return self.memory.read(address)

    def read_bytes(self, address: int, count: int) -> List[int]:
        """Read count bytes from memory."""
        return list(self.memory.read_bytes(address, count))

    def __repr__(self) -> str:
        return (
            f"Emulator(rom={len(self._rom)} bytes, "
            f"pc=${self.cpu.pc:04X}, cycles={self._total_cycles})"
        )
