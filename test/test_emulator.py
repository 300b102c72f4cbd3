#!/usr/bin/env python3

__copyright__ = "Copyright (C) 2022 Gregory Maynard-Hoare"
__license__ = "GNU Affero General Public License v3.0"

import unittest
from c8vm.audio.a_null import Audio
from c8vm.constants import DEFAULT_KEYMAP
from c8vm.emulator import Emulator
from c8vm.inputs.i_null import Inputs, InputsError
from c8vm.machine import Machine, MachineError
from c8vm.renderers.r_null import Renderer


class QuittingInputs(Inputs):
    def process_messages(self):
        return True


class TestEmulator(unittest.TestCase):
    def setUp(self):
        self.machine = Machine()
        self.renderer = Renderer()
        self.inputs = Inputs(DEFAULT_KEYMAP, self.renderer)
        self.audio = Audio()
        self.emulator = Emulator(self.machine, self.renderer, self.inputs, self.audio, clock_speed=0)

    def test_emulator_resolution(self):
        self.assertEqual((64, 32), (self.renderer.width, self.renderer.height))

    def test_emulator_run_cycles(self):
        # ADD V0, 1 / JP 0x200
        self.machine.load_program(b"\x70\x01\x12\x00")
        self.emulator.run(max_cycles=10)
        self.assertEqual(5, self.machine.v[0x0])
        self.assertEqual(0x200, self.machine.pc)

    def test_emulator_draws_frame(self):
        # LD I, 0x000 / DRW V0, V0, 5 / JP 0x204
        self.machine.load_program(b"\xA0\x00\xD0\x05\x12\x04")
        self.emulator.run(max_cycles=3)
        self.assertEqual(1, self.renderer.frames_drawn)
        self.assertFalse(self.machine.framebuffer.draw_flag)

    def test_emulator_no_draw_without_request(self):
        self.machine.load_program(b"\x12\x00")
        self.emulator.run(max_cycles=3)
        self.assertEqual(0, self.renderer.frames_drawn)

    def test_emulator_beeps(self):
        # LD V0, 3 / LD ST, V0 / JP 0x204
        self.machine.load_program(b"\x60\x03\xF0\x18\x12\x04")
        self.emulator.run(max_cycles=10)
        self.assertEqual(1, self.audio.beeps_requested)

    def test_emulator_keys(self):
        # LD V1, K / JP 0x202
        self.machine.load_program(b"\xF1\x0A\x12\x02")
        self.inputs.key_down[0xE] = True
        self.emulator.run(max_cycles=2)
        self.assertEqual(0x1, self.machine.v[0x1])
        self.assertEqual(0x202, self.machine.pc)

    def test_emulator_quit(self):
        emulator = Emulator(
            self.machine, self.renderer, QuittingInputs(DEFAULT_KEYMAP, self.renderer), self.audio, clock_speed=0
        )
        self.machine.load_program(b"\x70\x01")
        emulator.run(max_cycles=10)
        self.assertEqual(0, self.machine.v[0x0])

    def test_emulator_fault(self):
        # RET with nothing to return to
        self.machine.load_program(b"\x00\xEE")
        self.assertRaises(MachineError, self.emulator.run, 1)

    def test_emulator_bad_keymaps(self):
        self.assertRaises(InputsError, Inputs, "1,2,3", self.renderer)
        self.assertRaises(InputsError, Inputs, ",".join(["1"] * 16), self.renderer)
        self.assertRaises(InputsError, Inputs, ",".join(["a"] * 16), self.renderer)
