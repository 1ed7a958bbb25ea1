"""
Framebuffer Unit Tests
======================

Tests for sprite XOR-compositing, collision detection, edge clipping and
wrapping, and the renderer read views.

Copyright (c) 2025 chip8-vm Contributors
"""

import io

import pytest
from chip8.emulator import Framebuffer


# =============================================================================
# Initialization Tests
# =============================================================================

class TestFramebufferInit:
    """Test the blank framebuffer."""

    def test_dimensions(self):
        """64x32 pixels."""
        fb = Framebuffer()
        assert Framebuffer.WIDTH == 64
        assert Framebuffer.HEIGHT == 32
        assert len(fb.rows) == 32
        assert all(len(row) == 64 for row in fb.rows)

    def test_starts_blank(self):
        """No pixel is lit."""
        assert Framebuffer().count_lit() == 0

    def test_starts_needing_refresh(self):
        """The first frame must be drawn."""
        assert Framebuffer().needs_refresh is True


# =============================================================================
# Sprite Drawing Tests
# =============================================================================

class TestDrawSprite:
    """Test XOR sprite compositing."""

    @pytest.fixture
    def fb(self):
        return Framebuffer()

    def test_draw_on_blank_no_collision(self, fb):
        """Drawing on a clear screen reports no collision."""
        assert fb.draw_sprite(0, 0, [0xF0, 0x90]) is False
        assert fb.count_lit() == 6

    def test_msb_is_leftmost(self, fb):
        """Bit 7 of a row is the leftmost pixel."""
        fb.draw_sprite(10, 5, [0x80])
        assert fb.get_pixel(10, 5) == 1
        assert fb.get_pixel(11, 5) == 0

    def test_same_sprite_twice_erases(self, fb):
        """Drawing the same sprite again erases it and collides."""
        fb.draw_sprite(3, 4, [0xFF, 0x81])
        assert fb.draw_sprite(3, 4, [0xFF, 0x81]) is True
        assert fb.count_lit() == 0

    def test_partial_overlap_collides(self, fb):
        """One overlapping pixel is enough for a collision."""
        fb.draw_sprite(0, 0, [0x01])
        assert fb.draw_sprite(7, 0, [0x80]) is True
        assert fb.get_pixel(7, 0) == 0

    def test_adjacent_no_collision(self, fb):
        """Touching sprites do not collide."""
        fb.draw_sprite(0, 0, [0xFF])
        assert fb.draw_sprite(8, 0, [0xFF]) is False
        assert fb.count_lit() == 16

    def test_zero_bits_leave_pixels(self, fb):
        """Clear sprite bits never change the screen."""
        fb.draw_sprite(0, 0, [0xFF])
        assert fb.draw_sprite(0, 0, [0x00]) is False
        assert fb.count_lit() == 8

    def test_origin_taken_modulo(self, fb):
        """The origin wraps before drawing."""
        fb.draw_sprite(64 + 1, 32 + 2, [0x80])
        assert fb.get_pixel(1, 2) == 1

    def test_sets_needs_refresh(self, fb):
        """Drawing marks the framebuffer dirty."""
        fb.mark_clean()
        fb.draw_sprite(0, 0, [0x80])
        assert fb.needs_refresh is True


class TestEdgePolicy:
    """Test clipping (default) and wrapping at the screen edges."""

    @pytest.fixture
    def fb(self):
        return Framebuffer()

    def test_clip_right_edge(self, fb):
        """Pixels past column 63 are dropped."""
        fb.draw_sprite(60, 0, [0xFF])
        assert fb.count_lit() == 4
        assert fb.get_pixel(63, 0) == 1
        assert fb.get_pixel(0, 0) == 0

    def test_clip_bottom_edge(self, fb):
        """Rows past row 31 are dropped."""
        fb.draw_sprite(0, 30, [0x80, 0x80, 0x80, 0x80])
        assert fb.count_lit() == 2
        assert fb.get_pixel(0, 0) == 0

    def test_wrap_right_edge(self, fb):
        """With wrap=True pixels continue on the left."""
        fb.draw_sprite(60, 0, [0xFF], wrap=True)
        assert fb.count_lit() == 8
        assert fb.get_pixel(0, 0) == 1
        assert fb.get_pixel(3, 0) == 1

    def test_wrap_bottom_edge(self, fb):
        """With wrap=True rows continue at the top."""
        fb.draw_sprite(0, 30, [0x80, 0x80, 0x80, 0x80], wrap=True)
        assert fb.count_lit() == 4
        assert fb.get_pixel(0, 0) == 1
        assert fb.get_pixel(0, 1) == 1

    def test_wrapped_pixels_collide(self, fb):
        """Collisions are detected on wrapped pixels."""
        fb.draw_sprite(0, 0, [0x80])
        assert fb.draw_sprite(63, 0, [0x40], wrap=True) is True


# =============================================================================
# Clear and Read View Tests
# =============================================================================

class TestReadViews:
    """Test clear() and the renderer views."""

    def test_clear(self):
        """clear() turns every pixel off."""
        fb = Framebuffer()
        fb.draw_sprite(0, 0, [0xFF] * 15)
        fb.clear()
        assert fb.count_lit() == 0

    def test_get_pixel_out_of_range(self):
        """get_pixel rejects coordinates outside the grid."""
        fb = Framebuffer()
        with pytest.raises(IndexError):
            fb.get_pixel(64, 0)
        with pytest.raises(IndexError):
            fb.get_pixel(0, -1)

    def test_get_text(self):
        """Text view has one line per row."""
        fb = Framebuffer()
        fb.draw_sprite(0, 0, [0xF0])
        lines = fb.get_text().splitlines()
        assert len(lines) == 32
        assert lines[0] == "####" + "." * 60
        assert lines[1] == "." * 64

    def test_get_text_custom_chars(self):
        """Characters for lit and unlit pixels are configurable."""
        fb = Framebuffer()
        fb.draw_sprite(0, 0, [0x80])
        assert fb.get_text(on="X", off=" ").splitlines()[0][:2] == "X "

    def test_pixel_buffer(self):
        """Pixel buffer is row-major with 255 for lit pixels."""
        fb = Framebuffer()
        fb.draw_sprite(1, 1, [0x80])
        buffer = fb.get_pixel_buffer()
        assert len(buffer) == 64 * 32
        assert buffer[1 * 64 + 1] == 255
        assert buffer.count(255) == 1

    def test_pixel_buffer_marks_clean(self):
        """Reading the pixel buffer clears needs_refresh."""
        fb = Framebuffer()
        fb.get_pixel_buffer()
        assert fb.needs_refresh is False

    def test_rows_snapshot(self):
        """rows is a snapshot, not a live view."""
        fb = Framebuffer()
        snapshot = fb.rows
        fb.draw_sprite(0, 0, [0x80])
        assert snapshot[0][0] == 0
        assert fb.rows[0][0] == 1


class TestRenderImage:
    """Test PNG rendering through Pillow."""

    def test_png_signature(self):
        """Default format is PNG."""
        data = Framebuffer().render_image()
        assert data[:8] == b"\x89PNG\r\n\x1a\n"

    def test_scaled_size_and_colors(self):
        """Image is scaled and lit pixels use on_color."""
        from PIL import Image

        fb = Framebuffer()
        fb.draw_sprite(0, 0, [0x80])
        data = fb.render_image(scale=4, on_color=(255, 0, 0), off_color=(0, 0, 255))

        img = Image.open(io.BytesIO(data))
        assert img.size == (256, 128)
        assert img.convert("RGB").getpixel((0, 0)) == (255, 0, 0)
        assert img.convert("RGB").getpixel((3, 3)) == (255, 0, 0)
        assert img.convert("RGB").getpixel((4, 0)) == (0, 0, 255)

    def test_invalid_scale(self):
        """Scale must be at least 1."""
        with pytest.raises(ValueError):
            Framebuffer().render_image(scale=0)
