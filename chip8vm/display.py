"""64x32 monochrome framebuffer.

Pixels live in a row-major ``bytearray`` holding 0 (off) or 1 (on). Sprites are
XOR-blitted and wrap around both edges of the grid.
"""

from __future__ import annotations

import numpy as np

from .constants import DISPLAY_HEIGHT, DISPLAY_PIXELS, DISPLAY_WIDTH


class Framebuffer:

    def __init__(self):
        self.vram = bytearray(DISPLAY_PIXELS)
        self.should_draw = False  # so the renderer only updates when needed

    def clear(self) -> None:
        self.vram[:] = bytes(DISPLAY_PIXELS)
        self.should_draw = True

    def draw_sprite(self, x: int, y: int, rows: bytes) -> bool:
        """XOR ``rows`` onto the screen with the top-left corner at (x, y).

        Each byte is one 8 pixel row, most significant bit leftmost. Returns
        True when any lit pixel was switched off.
        """
        vram = self.vram
        collision = False
        for row, sprite in enumerate(rows):
            if sprite == 0:
                continue
            base = ((y + row) % DISPLAY_HEIGHT) * DISPLAY_WIDTH
            for bit in range(8):
                if sprite & (0x80 >> bit):
                    idx = base + (x + bit) % DISPLAY_WIDTH
                    if vram[idx]:
                        collision = True
                    vram[idx] ^= 1
        self.should_draw = True
        return collision

    def pixel(self, x: int, y: int) -> int:
        return self.vram[x + y * DISPLAY_WIDTH]

    def snapshot(self) -> np.ndarray:
        # frombuffer over an immutable bytes copy gives a read-only view
        return np.frombuffer(bytes(self.vram), dtype=np.uint8).reshape(DISPLAY_HEIGHT, DISPLAY_WIDTH)

    def reset(self) -> None:
        self.vram[:] = bytes(DISPLAY_PIXELS)
        self.should_draw = False
