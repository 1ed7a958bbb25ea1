"""
chip8run - Headless CHIP-8 Runner
=================================

This module implements a command-line runner for CHIP-8 ROMs. It executes
a ROM for a fixed number of cycles with a chosen set of keys held down,
then prints the screen and the register file, and can save the screen as
a PNG image.

It is meant for inspecting ROMs and for scripted checks, not for playing:
there is no window, no sound and no real-time pacing.

Usage Examples
--------------
Run the first 500 cycles and print the screen:
    $ chip8run ibm.ch8 --cycles 500

Hold a key down for the whole run:
    $ chip8run pong.ch8 --key Q --cycles 2000

Stop at a breakpoint:
    $ chip8run maze.ch8 --break 0x20A

Save a screenshot:
    $ chip8run ibm.ch8 --png ibm.png --scale 10

Copyright (c) 2025 chip8-vm Contributors
"""

import logging
from pathlib import Path
from typing import Optional, Tuple

import click

from chip8 import __version__
from chip8.cli.errors import handle_cli_exception
from chip8.emulator import BreakReason, Emulator, EmulatorConfig
from chip8.emulator.keypad import key_code

logger = logging.getLogger(__name__)


def parse_address(value: str) -> int:
    """
    Parse an address given as $hex, 0xhex or decimal.

    Raises:
        ValueError: If the text is not a number in 0-4095
    """
    text = value.strip()
    if text.startswith("$"):
        address = int(text[1:], 16)
    elif text.lower().startswith("0x"):
        address = int(text[2:], 16)
    else:
        address = int(text)
    if not 0 <= address <= 0xFFF:
        raise ValueError(f"address ${address:X} outside $000-$FFF")
    return address


def _addresses_callback(ctx, param, values: Tuple[str, ...]) -> Tuple[int, ...]:
    try:
        return tuple(parse_address(v) for v in values)
    except ValueError as e:
        raise click.BadParameter(str(e)) from e


def _keys_callback(ctx, param, values: Tuple[str, ...]) -> Tuple[int, ...]:
    codes = []
    for value in values:
        # Accept host key names and hex key codes ("0xA")
        try:
            codes.append(key_code(value))
        except ValueError:
            if not value.lower().startswith("0x"):
                raise click.BadParameter(f"unknown key '{value}'")
            try:
                codes.append(key_code(int(value, 16)))
            except ValueError as e:
                raise click.BadParameter(str(e)) from e
    return tuple(codes)


def format_registers(registers: dict) -> str:
    """Format a register snapshot as a compact two-line summary."""
    v_line = " ".join(f"V{n:X}={registers[f'v{n:x}']:02X}" for n in range(16))
    state_line = (
        f"PC=${registers['pc']:04X} I=${registers['i']:04X} SP={registers['sp']} "
        f"DT={registers['dt']} ST={registers['st']}"
    )
    if registers["awaiting_key"]:
        state_line += " (waiting for key)"
    return f"{v_line}\n{state_line}"


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s" if verbose else "%(message)s",
    )


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "rom",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-n", "--cycles",
    type=click.IntRange(min=0),
    default=1000,
    show_default=True,
    help="Number of cycles to run",
)
@click.option(
    "-k", "--key",
    "keys",
    multiple=True,
    callback=_keys_callback,
    help="Key held down for the whole run: 1234/QWER/ASDF/ZXCV or 0x0-0xF (repeatable)",
)
@click.option(
    "--wrap",
    is_flag=True,
    help="Wrap sprites at the screen edges instead of clipping them",
)
@click.option(
    "--seed",
    type=int,
    default=None,
    help="Seed for the random number instruction (CXNN)",
)
@click.option(
    "-b", "--break",
    "breakpoints",
    multiple=True,
    callback=_addresses_callback,
    help="Stop before executing the instruction at ADDR ($hex, 0xhex or decimal; repeatable)",
)
@click.option(
    "--show/--no-show",
    default=True,
    help="Print the screen as text after the run (default: enabled)",
)
@click.option(
    "--png",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write the screen to a PNG file",
)
@click.option(
    "--scale",
    type=click.IntRange(min=1),
    default=8,
    show_default=True,
    help="Pixel scale factor for --png",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output (debug logging)",
)
@click.version_option(version=__version__, prog_name="chip8run")
def main(
    rom: Path,
    cycles: int,
    keys: Tuple[int, ...],
    wrap: bool,
    seed: Optional[int],
    breakpoints: Tuple[int, ...],
    show: bool,
    png: Optional[Path],
    scale: int,
    verbose: bool,
) -> None:
    """
    Run a CHIP-8 ROM headless and dump its screen.

    ROM is the program image, loaded at $200.

    Examples:

        # Run 500 cycles and print the screen
        chip8run ibm.ch8 --cycles 500

        # Hold W and S, then save a screenshot
        chip8run pong.ch8 -k W -k S --png pong.png
    """
    setup_logging(verbose)

    try:
        config = EmulatorConfig(rom_path=rom, wrap_sprites=wrap, seed=seed)
        emu = Emulator(config)

        for code in keys:
            emu.press_key(code)
        for address in breakpoints:
            emu.add_breakpoint(address)

        event = emu.run(cycles)
        if event.reason != BreakReason.MAX_CYCLES:
            click.echo(f"Stopped: {event}")

        if show:
            click.echo(emu.display_text)
        click.echo(format_registers(emu.registers))

        if png:
            png.write_bytes(emu.render_display(scale=scale))
            logger.debug(f"Wrote {png}")

    except Exception as e:
        handle_cli_exception(e, verbose=verbose)


if __name__ == "__main__":
    main()
