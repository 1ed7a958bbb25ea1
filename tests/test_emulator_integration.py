"""
Emulator Integration Tests
==========================

End-to-end tests of the Emulator orchestrator: ROM loading, the cycle loop,
timer cadence, debugging controls and the display outputs.

Copyright (c) 2025 chip8-vm Contributors
"""

import random

import pytest
from chip8 import (
    DecodeError,
    Emulator,
    EmulatorConfig,
    BreakReason,
    RomLoadError,
)


def program(*words: int) -> bytes:
    """Assemble instruction words into a big-endian ROM image."""
    data = bytearray()
    for word in words:
        data += bytes([(word >> 8) & 0xFF, word & 0xFF])
    return bytes(data)


# Draws hex digit 0 at (0,0) and digit 1 at (5,0), then loops
DIGITS_ROM = program(
    0x6000,   # $200: LD V0, $00
    0x6100,   # $202: LD V1, $00
    0xF029,   # $204: LD F, V0
    0xD015,   # $206: DRW V0, V1, 5
    0x6201,   # $208: LD V2, $01
    0xF229,   # $20A: LD F, V2
    0x6005,   # $20C: LD V0, $05
    0xD015,   # $20E: DRW V0, V1, 5
    0x1210,   # $210: JP $210
)


# =============================================================================
# Construction Tests
# =============================================================================

class TestConstruction:
    """Test ROM loading at construction."""

    def test_from_bytes(self):
        """In-memory ROM lands at $200."""
        emu = Emulator.from_bytes(program(0x1234))
        assert emu.read_bytes(0x200, 2) == [0x12, 0x34]
        assert emu.registers["pc"] == 0x200

    def test_from_file(self, tmp_path):
        """ROM file is read from config.rom_path."""
        rom = tmp_path / "test.ch8"
        rom.write_bytes(program(0x6A42))
        emu = Emulator(EmulatorConfig(rom_path=rom))
        emu.cycle()
        assert emu.registers["va"] == 0x42

    def test_missing_file(self, tmp_path):
        """Unreadable ROM is a RomLoadError naming the path."""
        missing = tmp_path / "missing.ch8"
        with pytest.raises(RomLoadError) as exc_info:
            Emulator(EmulatorConfig(rom_path=missing))
        assert exc_info.value.path == missing
        assert "missing.ch8" in str(exc_info.value)

    def test_no_rom(self):
        """A config without rom_path cannot build an emulator."""
        with pytest.raises(RomLoadError):
            Emulator(EmulatorConfig())

    def test_rom_too_large(self, tmp_path):
        """Oversized ROM files are rejected with their path."""
        rom = tmp_path / "big.ch8"
        rom.write_bytes(bytes(4000))
        with pytest.raises(RomLoadError) as exc_info:
            Emulator(EmulatorConfig(rom_path=rom))
        assert exc_info.value.path == rom

    def test_invalid_timer_cadence(self):
        """cycles_per_timer_tick must be positive."""
        with pytest.raises(ValueError):
            Emulator.from_bytes(b"", EmulatorConfig(cycles_per_timer_tick=0))

    def test_repr(self):
        """repr shows ROM size and PC."""
        emu = Emulator.from_bytes(program(0x1200))
        assert repr(emu) == "Emulator(rom=2 bytes, pc=$0200, cycles=0)"


# =============================================================================
# Cycle Loop Tests
# =============================================================================

class TestCycleLoop:
    """Test cycle(), timers and the keypad latch."""

    def test_single_jump_rom(self):
        """A ROM of $1234 reaches $234 after one cycle."""
        emu = Emulator.from_bytes(program(0x1234))
        assert emu.cycle() is True
        assert emu.registers["pc"] == 0x234
        assert emu.total_cycles == 1

    def test_cycle_applies_keys(self):
        """keys refreshes the whole latch before the instruction."""
        emu = Emulator.from_bytes(program(0xF50A))
        keys = [False] * 16
        keys[0xC] = True
        emu.cycle(keys)
        assert emu.registers["v5"] == 0xC
        assert emu.registers["pc"] == 0x202

    def test_cycle_rejects_short_latch(self):
        """The latch must have 16 entries."""
        emu = Emulator.from_bytes(program(0x1200))
        with pytest.raises(ValueError):
            emu.cycle([True, False])

    def test_default_one_tick_per_cycle(self):
        """With the default cadence every cycle ticks the timers."""
        emu = Emulator.from_bytes(program(0x600A, 0xF015, 0x1204))
        for _ in range(5):
            emu.cycle()
        assert emu.registers["dt"] == 10 - 4

    def test_timer_cadence(self):
        """cycles_per_timer_tick spaces out timer ticks."""
        config = EmulatorConfig(cycles_per_timer_tick=3)
        emu = Emulator.from_bytes(program(0x600A, 0xF015, 0x1204), config)
        emu.cycle()
        emu.cycle()
        assert emu.registers["dt"] == 10
        emu.cycle()
        assert emu.registers["dt"] == 9
        for _ in range(3):
            emu.cycle()
        assert emu.registers["dt"] == 8

    def test_manual_timer_tick(self):
        """tick_timers() decrements both timers once."""
        emu = Emulator.from_bytes(program(0x6003, 0xF018, 0x1204))
        emu.cycle()
        emu.cycle()
        emu.tick_timers()
        assert emu.registers["st"] == 1
        assert emu.sound_active is True

    def test_key_helpers(self):
        """press_key/release_key drive the latch by host name."""
        emu = Emulator.from_bytes(program(0x6008, 0xE09E))
        emu.press_key("S")   # key 8
        emu.cycle()
        emu.cycle()
        assert emu.registers["pc"] == 0x206

        emu.reset()
        emu.release_key("S")
        emu.cycle()
        emu.cycle()
        assert emu.registers["pc"] == 0x204

    def test_set_keys(self):
        """set_keys overwrites the latch."""
        emu = Emulator.from_bytes(program(0xF00A))
        emu.set_keys([i == 0xE for i in range(16)])
        emu.cycle()
        assert emu.registers["v0"] == 0xE

    def test_fault_propagates(self):
        """Fatal faults reach the host."""
        emu = Emulator.from_bytes(program(0x0123))
        with pytest.raises(DecodeError):
            emu.cycle()


# =============================================================================
# Randomness Tests
# =============================================================================

class TestRandomness:
    """Test the injectable random source."""

    def test_seed_is_deterministic(self):
        """The same seed gives the same CXNN results."""
        rom = program(0xC0FF, 0xC1FF, 0xC2FF)
        config = EmulatorConfig(seed=1234)
        first = Emulator.from_bytes(rom, config)
        second = Emulator.from_bytes(rom, config)
        first.run(3)
        second.run(3)
        assert [first.registers[f"v{n}"] for n in range(3)] == \
            [second.registers[f"v{n}"] for n in range(3)]

    def test_seed_matches_random_module(self):
        """Seeded bytes come from random.Random(seed)."""
        emu = Emulator.from_bytes(program(0xC0FF), EmulatorConfig(seed=7))
        emu.cycle()
        assert emu.registers["v0"] == random.Random(7).getrandbits(8)

    def test_random_byte_override(self):
        """An explicit random_byte callable wins over the seed."""
        emu = Emulator.from_bytes(
            program(0xC0F0), EmulatorConfig(seed=7), random_byte=lambda: 0x5A
        )
        emu.cycle()
        assert emu.registers["v0"] == 0x50


# =============================================================================
# Debugging Tests
# =============================================================================

class TestDebugging:
    """Test step, run, breakpoints and reset."""

    LOOP_ROM = program(0x6001, 0x6102, 0x6203, 0x1206)

    def test_run_to_max_cycles(self):
        """run() without breakpoints stops after max_cycles."""
        emu = Emulator.from_bytes(self.LOOP_ROM)
        event = emu.run(10)
        assert event.reason == BreakReason.MAX_CYCLES
        assert emu.total_cycles == 10
        assert emu.registers["v2"] == 3

    def test_run_stops_at_breakpoint(self):
        """A breakpoint stops before its instruction."""
        emu = Emulator.from_bytes(self.LOOP_ROM)
        emu.add_breakpoint(0x204)
        event = emu.run(100)
        assert event.reason == BreakReason.PC_BREAKPOINT
        assert event.address == 0x204
        assert emu.registers["v1"] == 2
        assert emu.registers["v2"] == 0
        assert emu.total_cycles == 2

    def test_run_resumes_past_breakpoint(self):
        """Calling run() again continues past the breakpoint."""
        emu = Emulator.from_bytes(self.LOOP_ROM)
        emu.add_breakpoint(0x204)
        emu.run(100)
        event = emu.run(5)
        assert event.reason == BreakReason.MAX_CYCLES
        assert emu.registers["v2"] == 3

    def test_step_ignores_breakpoints(self):
        """step() executes one instruction even on a breakpoint."""
        emu = Emulator.from_bytes(self.LOOP_ROM)
        emu.add_breakpoint(0x200)
        event = emu.step()
        assert event.reason == BreakReason.STEP
        assert event.address == 0x202
        assert emu.registers["v0"] == 1
        assert emu.cpu.on_instruction is not None

    def test_breakpoint_after_stepping_through_it(self):
        """A breakpoint stepped over fires on its next visit."""
        emu = Emulator.from_bytes(program(0x7001, 0x1200))
        emu.add_breakpoint(0x200)
        assert emu.run(100).reason == BreakReason.PC_BREAKPOINT
        assert emu.registers["v0"] == 0

        emu.step()
        emu.step()
        assert emu.registers["pc"] == 0x200
        assert emu.registers["v0"] == 1

        event = emu.run(100)
        assert event.reason == BreakReason.PC_BREAKPOINT
        assert emu.registers["v0"] == 1

    def test_breakpoint_after_reset(self):
        """reset() does not skip a breakpoint at the entry point."""
        emu = Emulator.from_bytes(program(0x7001, 0x1200))
        emu.add_breakpoint(0x200)
        emu.run(100)
        emu.reset()

        event = emu.run(100)
        assert event.reason == BreakReason.PC_BREAKPOINT
        assert event.address == 0x200
        assert emu.registers["v0"] == 0

    def test_run_until_pc(self):
        """run_until_pc reports whether the address was reached."""
        emu = Emulator.from_bytes(self.LOOP_ROM)
        assert emu.run_until_pc(0x206) is True
        assert emu.registers["pc"] == 0x206
        assert not emu.breakpoints.has_breakpoint(0x206)

    def test_run_until_pc_timeout(self):
        """An address never reached returns False."""
        emu = Emulator.from_bytes(self.LOOP_ROM)
        assert emu.run_until_pc(0x300, max_cycles=50) is False
        assert not emu.breakpoints.has_breakpoint(0x300)

    def test_run_until_pc_keeps_existing_breakpoint(self):
        """A breakpoint set by the user survives run_until_pc."""
        emu = Emulator.from_bytes(self.LOOP_ROM)
        emu.add_breakpoint(0x204)
        assert emu.run_until_pc(0x204) is True
        assert emu.breakpoints.has_breakpoint(0x204)

    def test_user_interrupt(self):
        """A break request stops the next run immediately."""
        emu = Emulator.from_bytes(self.LOOP_ROM)
        emu.breakpoints.request_break()
        event = emu.run(100)
        assert event.reason == BreakReason.USER_INTERRUPT
        assert emu.total_cycles == 0

    def test_stop_on_key_wait(self):
        """run() can stop once the program blocks in FX0A."""
        emu = Emulator.from_bytes(program(0x6001, 0xF00A, 0x1204))
        event = emu.run(100, stop_on_key_wait=True)
        assert event.reason == BreakReason.AWAITING_KEY
        assert event.address == 0x202
        assert emu.total_cycles == 2

    def test_key_wait_keeps_running_by_default(self):
        """Without stop_on_key_wait the run uses its whole budget."""
        emu = Emulator.from_bytes(program(0xF00A))
        event = emu.run(20)
        assert event.reason == BreakReason.MAX_CYCLES
        assert emu.registers["awaiting_key"] is True

    def test_clear_breakpoints(self):
        """clear_breakpoints removes every breakpoint."""
        emu = Emulator.from_bytes(self.LOOP_ROM)
        emu.add_breakpoint(0x202)
        emu.add_breakpoint(0x204)
        emu.clear_breakpoints()
        assert emu.run(10).reason == BreakReason.MAX_CYCLES

    def test_reset_reloads_rom(self):
        """reset() restores memory, registers and the screen."""
        # Overwrite the first ROM byte, then draw
        emu = Emulator.from_bytes(program(0x60AA, 0xA200, 0xF055, 0xD005, 0x1208))
        emu.run(5)
        assert emu.read_byte(0x200) == 0xAA
        assert emu.framebuffer.count_lit() > 0

        emu.reset()
        assert emu.read_byte(0x200) == 0x60
        assert emu.registers["pc"] == 0x200
        assert emu.registers["v0"] == 0
        assert emu.framebuffer.count_lit() == 0
        assert emu.total_cycles == 0


# =============================================================================
# Display Output Tests
# =============================================================================

class TestDisplayOutput:
    """Test the renderer-facing outputs."""

    @pytest.fixture
    def emu(self):
        emu = Emulator.from_bytes(DIGITS_ROM)
        emu.run(20)
        return emu

    def test_display_text(self, emu):
        """Digits 0 and 1 appear side by side."""
        lines = emu.display_text.splitlines()
        assert lines[0].startswith("####...#.")
        assert lines[1].startswith("#..#..##.")
        assert lines[4].startswith("####..###")

    def test_no_collision(self, emu):
        """The two glyphs do not overlap."""
        assert emu.registers["vf"] == 0

    def test_display_pixels(self, emu):
        """Pixel buffer matches the framebuffer."""
        pixels = emu.display_pixels
        assert len(pixels) == 2048
        assert pixels.count(255) == emu.framebuffer.count_lit()

    def test_render_display(self, emu):
        """PNG output via Pillow."""
        data = emu.render_display(scale=2)
        assert data.startswith(b"\x89PNG")

    def test_wrap_config(self):
        """wrap_sprites in the config reaches the CPU."""
        rom = program(0x603E, 0x6100, 0xF129, 0xD015, 0x1208)
        emu = Emulator.from_bytes(rom, EmulatorConfig(wrap_sprites=True))
        emu.run(10)
        assert emu.framebuffer.get_pixel(0, 0) == 1

        emu = Emulator.from_bytes(rom)
        emu.run(10)
        assert emu.framebuffer.get_pixel(0, 0) == 0
