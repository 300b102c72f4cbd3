#!/usr/bin/env python3

"""
Emulator Driver

Sits between the machine and the host.  The machine knows nothing about time,
so this is where the clock speed is enforced, and where host input, display
and audio are plugged in.

Host messages (key presses, window closing) are processed, and the display is
refreshed, at 60Hz regardless of clock speed.  Refreshing any more often than
that is wasted effort, and PyGame can slow down substantially if called tens
of thousands of times a second.

Performance figures (frames and cycles per second) are reported in the window
title once a second.
"""

__copyright__ = "Copyright (C) 2022 Gregory Maynard-Hoare"
__license__ = "GNU Affero General Public License v3.0"

from time import perf_counter
from .constants import APP_NAME, NUM_KEYS, DEFAULT_CLOCK_SPEED

DISPLAY_FREQ = 60.0  # 60Hz host display refresh
DISPLAY_INTERVAL = 1.0 / DISPLAY_FREQ


class Emulator:
    def __init__(self, machine, renderer, inputs, audio, clock_speed=None):
        self.machine = machine
        self.renderer = renderer
        self.inputs = inputs
        self.audio = audio

        if clock_speed is None:
            clock_speed = DEFAULT_CLOCK_SPEED

        # User can specify 0 for uncapped
        self.core_interval = None if clock_speed <= 0 else 1.0 / clock_speed

        self.renderer.set_resolution(*self.machine.framebuffer.get_vid_size())
        self.report_perf()

        # Performance-related vars
        self.next_display_update_time = 0
        self.perf_counter_fps = 0
        self.perf_counter_ops = 0
        self.next_perf_report_time = 0

    def run(self, max_cycles=None):
        # Runs until the host asks to quit, or 'max_cycles' have been executed.  A MachineError is passed straight
        # back to the caller.
        machine = self.machine
        cycles_run = 0

        try:
            while max_cycles is None or cycles_run < max_cycles:
                this_time = perf_counter()  # Do this first for maximum precision

                # Performance counters
                if this_time >= self.next_perf_report_time:
                    self.next_perf_report_time = int(this_time) + 1.0
                    # Reporting the performance should be done before a refresh, as refreshing will likely show it
                    self.report_perf(self.perf_counter_fps, self.perf_counter_ops)
                    self.perf_counter_ops = 0
                    self.perf_counter_fps = 0

                # Prevent unnecessary display rendering in excess of host frame rate
                if this_time >= self.next_display_update_time:
                    if self.inputs.process_messages():  # Process inputs at 60Hz too, to avoid slowdown
                        return

                    self.update_keys()
                    self.next_display_update_time = this_time + DISPLAY_INTERVAL
                    self.refresh_framebuffer()

                machine.cycle()
                cycles_run += 1

                if machine.tone:
                    self.audio.beep()

                if self.core_interval is not None:
                    # Wait for next cycle.  Do this last for maximum precision (takes into account time spent on this
                    # cycle)
                    next_time = this_time + self.core_interval

                    while perf_counter() < next_time:  # Unfortunately we have to do this to get the timing right
                        pass

                self.perf_counter_ops += 1
        finally:
            # Show whatever was drawn last, whether we are quitting normally or on a fault
            self.refresh_framebuffer()

    def update_keys(self):
        # Key state changes are only ever pushed into the machine between cycles
        for key in range(NUM_KEYS):
            self.machine.set_key(key, self.inputs.is_key_down(key))

    def refresh_framebuffer(self):
        # Render the framebuffer if the machine has asked for it, then consume the request
        framebuffer = self.machine.framebuffer

        if framebuffer.draw_flag:
            self.renderer.draw_frame(framebuffer.get_pixels())
            framebuffer.clear_draw_flag()
            self.perf_counter_fps += 1

    def report_perf(self, fps=0, ops=0):
        title = "{} - {} FPS, {} OPS".format(APP_NAME, fps, ops)
        self.renderer.set_title(title)
