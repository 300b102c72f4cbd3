#!/usr/bin/env python3

"""
Main Startup Module

Simply call main(args) to start the emulator, replacing args with a dictionary
of options.  This can be done via the Terminal or GUI.

All options must be supplied.  Defaults can be specified with a 'None'.
"""

__copyright__ = "Copyright (C) 2022 Gregory Maynard-Hoare"
__license__ = "GNU Affero General Public License v3.0"

from .constants import APP_INTRO, APP_COPYRIGHT, MACHINE_QUIRKS
from .debugger import Debugger
from .emulator import Emulator
from .hostio import Loader
from .machine import Machine


class StartupError(Exception):
    pass


def main(args):
    print("".join((APP_INTRO, APP_COPYRIGHT)))
    quirk_settings = {}

    for machine_quirk in MACHINE_QUIRKS:
        quirk_label = "{}_quirks".format(machine_quirk)
        quirk_settings[quirk_label] = bool(args[quirk_label])

    opt_renderer = args["renderer"]
    mute_audio = args["mute"]

    # flake8: noqa: F401
    if opt_renderer is None or opt_renderer == "pygame":
        # pylint: disable=unused-import, import-outside-toplevel, raise-missing-from
        try:
            import pygame
        except ImportError:
            raise StartupError(
                "PyGame does not appear to be installed.  Use the null renderer to run without a display."
            )
        else:
            from .inputs.i_pygame import Inputs
            from .renderers.r_pygame import Renderer

            if mute_audio:
                from .audio.a_null import Audio
            else:
                from .audio.a_pygame import Audio
    else:
        # pylint: disable=import-outside-toplevel
        from .inputs.i_null import Inputs
        from .renderers.r_null import Renderer
        from .audio.a_null import Audio

    # Set up debugger and live output if necessary
    debugger = Debugger()
    debugger.set_live(args["debug"])

    # Create a new machine in its power-on state, then read the ROM binary and write it into memory
    machine = Machine(debugger, **quirk_settings)
    machine.load_program(Loader().load_binary(args["filename"]))

    # Set up the host display, inputs and audio
    renderer = Renderer(scale=args["scale"], palette=args["palette"])
    inputs = Inputs(args["keymap"], renderer)
    audio = Audio()

    emulator = Emulator(machine, renderer, inputs, audio, clock_speed=args["clock_speed"])

    try:
        emulator.run()
    finally:
        # The machine has stopped, so shut down the host systems.  __del__ cannot be relied upon when using PyPy
        audio.shutdown()
        inputs.shutdown()
        renderer.shutdown()
