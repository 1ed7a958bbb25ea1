#!/usr/bin/env python3
"""
CHIP-8 VM Demo
==============

This script demonstrates how to use the chip8 emulator to:
1. Build a VM from an in-memory ROM
2. Run until the program waits for a key
3. Feed key presses between cycles
4. Use breakpoints and single-stepping
5. Take screenshots

The ROM is a small counter: it shows V3 as three decimal digits, waits
for any key, increments V3 and redraws.

Usage:
    pip install -e .
    python examples/emulator_demo.py

Copyright (c) 2025 chip8-vm Contributors
"""

from pathlib import Path

from chip8.emulator import BreakReason, Emulator, EmulatorConfig


COUNTER_ROM = bytes([
    0x63, 0x00,   # $200: LD V3, $00
    0x00, 0xE0,   # $202: CLS
    0xA3, 0x00,   # $204: LD I, $300
    0xF3, 0x33,   # $206: LD B, V3
    0xF2, 0x65,   # $208: LD V2, [I]
    0x64, 0x00,   # $20A: LD V4, $00
    0x65, 0x00,   # $20C: LD V5, $00
    0xF0, 0x29,   # $20E: LD F, V0
    0xD4, 0x55,   # $210: DRW V4, V5, 5
    0x74, 0x05,   # $212: ADD V4, $05
    0xF1, 0x29,   # $214: LD F, V1
    0xD4, 0x55,   # $216: DRW V4, V5, 5
    0x74, 0x05,   # $218: ADD V4, $05
    0xF2, 0x29,   # $21A: LD F, V2
    0xD4, 0x55,   # $21C: DRW V4, V5, 5
    0xF6, 0x0A,   # $21E: LD V6, K
    0x73, 0x01,   # $220: ADD V3, $01
    0x12, 0x02,   # $222: JP $202
])


def show(emu: Emulator, rows: int = 6) -> None:
    """Print the top of the screen."""
    for line in emu.display_text.splitlines()[:rows]:
        print(f"    {line[:16]}")


def main():
    # Output directory for screenshots
    output_dir = Path("trash")
    output_dir.mkdir(exist_ok=True)

    # ==========================================================================
    # 1. Create an emulator instance
    # ==========================================================================
    # Emulator(EmulatorConfig(rom_path=...)) reads a ROM file; from_bytes()
    # takes an image directly. A seed makes CXNN reproducible.

    print("Creating CHIP-8 VM...")
    emu = Emulator.from_bytes(COUNTER_ROM, EmulatorConfig(seed=1))
    print(f"  {emu}")

    # ==========================================================================
    # 2. Run until the program blocks on FX0A
    # ==========================================================================
    event = emu.run(1000, stop_on_key_wait=True)
    print(f"\nStopped: {event} after {emu.total_cycles} cycles")
    show(emu)

    # ==========================================================================
    # 3. Tap a key three times
    # ==========================================================================
    # A host normally samples its keyboard and passes the 16-key latch to
    # cycle(); here the key helpers drive the latch directly.

    for _ in range(3):
        emu.press_key("X")      # CHIP-8 key 0
        emu.step()              # completes the key wait
        emu.release_key("X")
        emu.run(1000, stop_on_key_wait=True)

    print(f"\nAfter three key presses (V3={emu.registers['v3']}):")
    show(emu)

    # ==========================================================================
    # 4. Breakpoints and single-stepping
    # ==========================================================================
    emu.add_breakpoint(0x220)
    emu.press_key(0)
    event = emu.run(1000)
    emu.release_key(0)

    if event.reason == BreakReason.PC_BREAKPOINT:
        print(f"\n{event}, V3={emu.registers['v3']}")
        for _ in range(3):
            emu.step()
            print(f"  step -> PC=${emu.registers['pc']:04X}")
    emu.clear_breakpoints()

    # ==========================================================================
    # 5. Take a screenshot
    # ==========================================================================
    emu.run(1000, stop_on_key_wait=True)
    screenshot = output_dir / "counter.png"
    screenshot.write_bytes(emu.render_display(scale=8))
    print(f"\nSaved screenshot to {screenshot}")


if __name__ == "__main__":
    main()
