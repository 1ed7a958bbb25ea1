"""
Memory Subsystem for CHIP-8 VM
==============================

A flat 4096-byte address space.

Memory Map:
    $000-$04F  Built-in font: 16 glyphs x 5 bytes (digits 0-F)
    $050-$1FF  Unused (zero)
    $200-$FFF  Program area, ROM image loaded verbatim at $200

The size never changes. Every read and write is bounds-checked and raises
MemoryAccessError when it falls outside $000-$FFF.

Copyright (c) 2025 chip8-vm Contributors
"""

from typing import Iterable

from chip8.errors import MemoryAccessError, RomLoadError


MEMORY_SIZE = 4096
FONT_ADDRESS = 0x000
PROGRAM_START = 0x200
MAX_ROM_SIZE = MEMORY_SIZE - PROGRAM_START

GLYPH_SIZE = 5

# Standard CHIP-8 hexadecimal digit sprites, 4 pixels wide (high nibble)
FONT_SET = bytes([
    0xF0, 0x90, 0x90, 0x90, 0xF0,  # 0
    0x20, 0x60, 0x20, 0x20, 0x70,  # 1
    0xF0, 0x10, 0xF0, 0x80, 0xF0,  # 2
    0xF0, 0x10, 0xF0, 0x10, 0xF0,  # 3
    0x90, 0x90, 0xF0, 0x10, 0x10,  # 4
    0xF0, 0x80, 0xF0, 0x10, 0xF0,  # 5
    0xF0, 0x80, 0xF0, 0x90, 0xF0,  # 6
    0xF0, 0x10, 0x20, 0x40, 0x40,  # 7
    0xF0, 0x90, 0xF0, 0x90, 0xF0,  # 8
    0xF0, 0x90, 0xF0, 0x10, 0xF0,  # 9
    0xF0, 0x90, 0xF0, 0x90, 0x90,  # A
    0xE0, 0x90, 0xE0, 0x90, 0xE0,  # B
    0xF0, 0x80, 0x80, 0x80, 0xF0,  # C
    0xE0, 0x90, 0x90, 0x90, 0xE0,  # D
    0xF0, 0x80, 0xF0, 0x80, 0xF0,  # E
    0xF0, 0x80, 0xF0, 0x80, 0x80,  # F
])


class Memory:
    """
    CHIP-8 main memory with the font table preloaded.

    Example:
        >>> mem = Memory()
        >>> mem.load_rom(bytes([0x12, 0x34]))
        >>> hex(mem.read_word(0x200))
        '0x1234'
        >>> mem.read(Memory.font_address(0xA))
        240
    """

    def __init__(self, rom: bytes = b""):
        """
        Initialize memory with the font and an optional ROM image.

        Args:
            rom: Program bytes to place at $200

        Raises:
            RomLoadError: If the ROM does not fit in the program area
        """
        self._data = bytearray(MEMORY_SIZE)
        self._data[FONT_ADDRESS:FONT_ADDRESS + len(FONT_SET)] = FONT_SET
        self._rom_size = 0
        if rom:
            self.load_rom(rom)

    def __len__(self) -> int:
        return MEMORY_SIZE

    @property
    def rom_size(self) -> int:
        """Length of the currently loaded ROM image."""
        return self._rom_size

    @staticmethod
    def font_address(digit: int) -> int:
        """Address of the 5-byte glyph for a hex digit."""
        return FONT_ADDRESS + GLYPH_SIZE * digit

    @staticmethod
    def in_bounds(address: int, count: int = 1) -> bool:
        """True if [address, address + count) lies inside memory."""
        return 0 <= address and address + count <= MEMORY_SIZE

    def _check(self, address: int, count: int = 1) -> None:
        if not self.in_bounds(address, count):
            # Report the first byte that falls outside
            bad = address if address < 0 or address >= MEMORY_SIZE else MEMORY_SIZE
            raise MemoryAccessError(bad)

    # =========================================================================
    # Loading
    # =========================================================================

    def load_rom(self, rom: bytes) -> None:
        """
        Copy a ROM image into the program area.

        Bytes beyond the ROM's length keep their current value (zero after
        construction or reset()).

        Raises:
            RomLoadError: If the ROM is larger than 3584 bytes
        """
        if len(rom) > MAX_ROM_SIZE:
            raise RomLoadError(
                f"image is {len(rom)} bytes, program area holds {MAX_ROM_SIZE}"
            )
        self._data[PROGRAM_START:PROGRAM_START + len(rom)] = rom
        self._rom_size = len(rom)

    def reset(self) -> None:
        """Zero all memory and reload the font. The ROM must be reloaded."""
        self._data[:] = bytes(MEMORY_SIZE)
        self._data[FONT_ADDRESS:FONT_ADDRESS + len(FONT_SET)] = FONT_SET
        self._rom_size = 0

    # =========================================================================
    # Access
    # =========================================================================

    def read(self, address: int) -> int:
        """
        Read a byte.

        Raises:
            MemoryAccessError: If address is outside $000-$FFF
        """
        self._check(address)
        return self._data[address]

    def write(self, address: int, value: int) -> None:
        """
        Write a byte (value masked to 8 bits).

        Raises:
            MemoryAccessError: If address is outside $000-$FFF
        """
        self._check(address)
        self._data[address] = value & 0xFF

    def read_word(self, address: int) -> int:
        """Read a big-endian 16-bit word from address and address + 1."""
        self._check(address, 2)
        return (self._data[address] << 8) | self._data[address + 1]

    def read_bytes(self, address: int, count: int) -> bytes:
        """Read count consecutive bytes."""
        self._check(address, count)
        return bytes(self._data[address:address + count])

    def write_bytes(self, address: int, data: Iterable[int]) -> None:
        """Write consecutive bytes starting at address."""
        data = bytes(value & 0xFF for value in data)
        self._check(address, len(data))
        self._data[address:address + len(data)] = data
