#!/usr/bin/env python3

"""
Framebuffer Emulator

Programs cannot write directly into video memory.  Sprites are XORed onto a
64x32 monochrome screen instead, one byte per pixel (0 = off, 1 = on), laid
out row by row.

Collisions (where a set pixel is unset by an XOR) are reported back to the
caller.  Sprite pixels falling off the right or bottom edge are clipped.

The framebuffer does not talk to a display.  It raises a 'draw' flag whenever
its contents may have changed, and the host is expected to read the pixels
and clear the flag once it has rendered them.
"""

__copyright__ = "Copyright (C) 2022 Gregory Maynard-Hoare"
__license__ = "GNU Affero General Public License v3.0"

from .constants import VID_WIDTH, VID_HEIGHT
from .ram import RAM


class Framebuffer:
    def __init__(self, vid_width=VID_WIDTH, vid_height=VID_HEIGHT):
        self.vid_width = vid_width
        self.vid_height = vid_height
        self.vid_size = vid_width * vid_height
        self.vram = RAM()
        self.vram.resize(self.vid_size)
        self.draw_flag = False

    def clear(self):
        self.vram.clear()
        self.draw_flag = True

    def xor_pixel(self, x, y):
        # Returns flagging any collision, or None if the pixel is off-screen

        if x >= self.vid_width or y >= self.vid_height:
            return None

        vram_loc = y * self.vid_width + x
        pixel = self.vram.read(vram_loc)
        self.vram.write(vram_loc, pixel ^ 1)

        return pixel == 1

    def get_pixel(self, x, y):
        return self.vram.read(y * self.vid_width + x)

    def get_pixels(self):
        return self.vram.mem

    def request_draw(self):
        # Drawing always requests a redraw, even if no pixel ended up changing
        self.draw_flag = True

    def clear_draw_flag(self):
        self.draw_flag = False

    def get_vid_size(self):
        return self.vid_width, self.vid_height
