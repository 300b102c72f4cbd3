#!/usr/bin/env python3

"""
PyGame Audio Plugin

Plays a short square wave beep within PyGame / SDL whenever the machine asks
for a tone.

The machine only has a buzzer with an 'on' or 'off' status, so the whole beep
is built once up front as an unsigned 8-bit sample, and replayed on request.
A beep still playing is restarted rather than layered.
"""

__copyright__ = "Copyright (C) 2022 Gregory Maynard-Hoare"
__license__ = "GNU Affero General Public License v3.0"

import pygame
from .a_null import Audio as AudioBase

PLAYBACK_FREQUENCY = 44100
TONE_FREQUENCY = 440.0
TONE_LENGTH = 0.1  # Seconds
DEFAULT_VOLUME = 0.1


class Audio(AudioBase):
    def __init__(self):
        pygame.mixer.pre_init(PLAYBACK_FREQUENCY, size=8, channels=1, buffer=512, allowedchanges=0)
        pygame.mixer.init()

        # Build the square wave.  Each half-period is either fully on or fully off.
        sample_count = int(PLAYBACK_FREQUENCY * TONE_LENGTH)
        half_period = PLAYBACK_FREQUENCY / TONE_FREQUENCY / 2.0
        samples = memoryview(bytearray(sample_count))

        for sample_pos in range(sample_count):
            samples[sample_pos] = 0xFF if int(sample_pos / half_period) % 2 == 0 else 0x00

        self.sound = pygame.mixer.Sound(buffer=samples)
        self.sound.set_volume(DEFAULT_VOLUME)
        super().__init__()

    def beep(self):
        self.sound.stop()
        self.sound.play()
        super().beep()

    def shutdown(self):
        self.sound.stop()
        pygame.mixer.quit()
        super().shutdown()
