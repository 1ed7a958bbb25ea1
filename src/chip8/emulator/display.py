"""
Framebuffer for CHIP-8 VM
=========================

A 64x32 monochrome grid of single-bit pixels, addressed (x, y) with the
origin at the top-left corner.

The VM mutates it in exactly two ways:
- clear(): every pixel off (00E0)
- draw_sprite(): XOR-composite an 8-pixel-wide sprite (DXYN)

Everything else is a read view for the external renderer: text dumps,
a raw pixel buffer, and PNG rendering through Pillow.

Sprite edge policy
------------------
The sprite origin is always taken modulo the screen size. Pixels that then
run past the right or bottom edge are clipped by default. Some programs
expect them to wrap around instead; pass wrap=True for that behaviour.

Copyright (c) 2025 chip8-vm Contributors
"""

import io
from typing import Iterable


class Framebuffer:
    """
    CHIP-8 monochrome display memory.

    Example:
        >>> fb = Framebuffer()
        >>> fb.draw_sprite(0, 0, [0xF0])
        False
        >>> fb.draw_sprite(0, 0, [0x80])
        True
        >>> fb.get_text().splitlines()[0][:4]
        '.###'
    """

    WIDTH = 64
    HEIGHT = 32

    SPRITE_WIDTH = 8

    def __init__(self):
        # Row-major: _pixels[y][x]
        self._pixels = [bytearray(self.WIDTH) for _ in range(self.HEIGHT)]
        self._needs_refresh = True

    @property
    def needs_refresh(self) -> bool:
        """True if the framebuffer changed since the renderer last read it."""
        return self._needs_refresh

    def mark_clean(self) -> None:
        """Acknowledge that the current contents have been rendered."""
        self._needs_refresh = False

    # =========================================================================
    # Mutation (VM side)
    # =========================================================================

    def clear(self) -> None:
        """Turn every pixel off."""
        for row in self._pixels:
            row[:] = bytes(self.WIDTH)
        self._needs_refresh = True

    def draw_sprite(self, x: int, y: int, rows: Iterable[int], wrap: bool = False) -> bool:
        """
        XOR-composite a sprite onto the framebuffer.

        Each byte of rows is one 8-pixel row, most significant bit leftmost.
        Only set sprite bits touch the screen; a set bit landing on a pixel
        that is already on turns it off and counts as a collision.

        Args:
            x: Column of the sprite origin (taken modulo 64)
            y: Row of the sprite origin (taken modulo 32)
            rows: Sprite bytes, one per row
            wrap: Wrap pixels past the edges instead of clipping them

        Returns:
            True if any pixel was erased (collision)
        """
        origin_x = x % self.WIDTH
        origin_y = y % self.HEIGHT
        collision = False

        for row_offset, sprite_row in enumerate(rows):
            py = origin_y + row_offset
            if py >= self.HEIGHT:
                if not wrap:
                    break
                py %= self.HEIGHT
            line = self._pixels[py]

            for bit in range(self.SPRITE_WIDTH):
                if not (sprite_row >> (7 - bit)) & 1:
                    continue
                px = origin_x + bit
                if px >= self.WIDTH:
                    if not wrap:
                        break
                    px %= self.WIDTH
                if line[px]:
                    collision = True
                line[px] ^= 1

        self._needs_refresh = True
        return collision

    # =========================================================================
    # Read Views (renderer side)
    # =========================================================================

    def get_pixel(self, x: int, y: int) -> int:
        """
        Get one pixel.

        Raises:
            IndexError: If (x, y) is outside the 64x32 grid
        """
        if not (0 <= x < self.WIDTH and 0 <= y < self.HEIGHT):
            raise IndexError(f"pixel ({x}, {y}) outside {self.WIDTH}x{self.HEIGHT} display")
        return self._pixels[y][x]

    @property
    def rows(self) -> tuple[tuple[int, ...], ...]:
        """Snapshot of the grid as HEIGHT rows of WIDTH 0/1 values."""
        return tuple(tuple(row) for row in self._pixels)

    def count_lit(self) -> int:
        """Number of pixels currently on."""
        return sum(sum(row) for row in self._pixels)

    def get_text(self, on: str = "#", off: str = ".") -> str:
        """Render the framebuffer as HEIGHT lines of text."""
        return "\n".join(
            "".join(on if pixel else off for pixel in row)
            for row in self._pixels
        )

    def get_pixel_buffer(self) -> bytes:
        """
        Get display as pixel buffer.

        Returns:
            WIDTH * HEIGHT bytes, row-major, 255 for lit pixels and 0 otherwise
        """
        buffer = bytearray(self.WIDTH * self.HEIGHT)
        for y, row in enumerate(self._pixels):
            base = y * self.WIDTH
            for x, pixel in enumerate(row):
                if pixel:
                    buffer[base + x] = 255
        self._needs_refresh = False
        return bytes(buffer)

    def render_image(
        self,
        scale: int = 8,
        on_color: tuple = (255, 255, 255),
        off_color: tuple = (0, 0, 0),
        format: str = "PNG",
    ) -> bytes:
        """
        Render the framebuffer as an image (requires Pillow).

        Args:
            scale: Pixel scale factor (default 8 gives 512x256)
            on_color: RGB for lit pixels
            off_color: RGB for unlit pixels
            format: Image format passed to Pillow

        Returns:
            Encoded image bytes
        """
        from PIL import Image

        if scale < 1:
            raise ValueError(f"scale must be >= 1, got {scale}")

        # Lit pixels become the paste mask for the foreground colour
        mask = Image.frombytes("L", (self.WIDTH, self.HEIGHT), self.get_pixel_buffer())
        rgb = Image.new("RGB", (self.WIDTH, self.HEIGHT), off_color)
        rgb.paste(on_color, mask=mask)
        if scale != 1:
            rgb = rgb.resize((self.WIDTH * scale, self.HEIGHT * scale), Image.Resampling.NEAREST)

        buffer = io.BytesIO()
        rgb.save(buffer, format=format)
        return buffer.getvalue()
