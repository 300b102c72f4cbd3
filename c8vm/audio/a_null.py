#!/usr/bin/env python3

"""
Null Audio Plugin

Serves as a base class for other Audio plugins.  Can be used on its own if no
sound is required.
"""

__copyright__ = "Copyright (C) 2022 Gregory Maynard-Hoare"
__license__ = "GNU Affero General Public License v3.0"


class Audio:
    def __init__(self):
        self.beeps_requested = 0

    def beep(self):
        # Called whenever the machine asks for a tone (sound timer expiring)
        self.beeps_requested += 1

    def shutdown(self):
        pass
