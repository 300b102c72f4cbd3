#!/usr/bin/env python3

"""
CHIP-8 Virtual Machine

Holds the entire interpreter state (memory, registers, call stack, timers, key
map and framebuffer) and steps it one instruction at a time.  The machine has
no idea of wall-clock time: whoever drives it decides how often 'cycle' is
called, reads the framebuffer whenever the draw flag is raised, and pushes key
state changes in between cycles.

Each cycle fetches a big-endian opcode at PC, executes it, then advances PC by
2 and ticks both timers.  The +2 step is the only way PC moves forward, so
instructions that set an absolute target write (target - 2) into PC.

Unknown opcodes are deliberately treated as no-ops.  Faults that leave the
running program unable to continue (stack overflow/underflow, memory access
out of range) are raised from 'cycle' as a MachineError.
"""

__copyright__ = "Copyright (C) 2022 Gregory Maynard-Hoare"
__license__ = "GNU Affero General Public License v3.0"

from random import Random
from .constants import (
    APP_INTRO, MEM_SIZE, FONT_LOCATION, FONT_GLYPH_SIZE, SYSTEM_FONT, PROGRAM_LOCATION, PROGRAM_MAX_SIZE, STACK_SIZE,
    NUM_KEYS
)
from .debugger import Debugger
from .framebuffer import Framebuffer
from .ram import RAM, RAMError
from .stack import Stack, StackError

CPU_ENDIAN = "big"  # CHIP-8 is big-endian


class MachineError(Exception):
    pass


class ProgramError(MachineError):
    pass


class Machine:
    def __init__(self, debugger=None, call_quirks=False, key_index_quirks=False, rng=None):
        self.debugger = Debugger() if debugger is None else debugger
        self.live_debug = self.debugger.is_live()
        self.rng = Random() if rng is None else rng

        """
        Quirks
        ------

        - Call quirks     : CALL doesn't compensate for the PC step, so the instruction at the call target is skipped
                            and execution resumes at target + 2.
        - Key index quirks: LD Vx, K stores the pressed key's number rather than its state (always 1).
        """

        self.call_quirks = call_quirks
        self.key_index_quirks = key_index_quirks

        self.ram = RAM()
        self.ram.resize(MEM_SIZE)
        self.stack = Stack(STACK_SIZE)
        self.framebuffer = Framebuffer()

        # Define instruction pointers.
        # n = Nibble
        # kk = Byte
        # nnn = address
        # x/y = register (0-15)
        self.instructions = {
            # Initial lookup for instructions' first nibble
            0x0: self._0nnn,  # Alias for bitmask 0xFFFF
            0x1: self._1nnn,
            0x2: self._2nnn,
            0x3: self._3xkk,
            0x4: self._4xkk,
            0x5: self._5xy0,
            0x6: self._6xkk,
            0x7: self._7xkk,
            0x8: self._8nnn,  # Alias for bitmask 0xF00F
            0x9: self._9xy0,
            0xA: self._Annn,
            0xB: self._Bnnn,
            0xC: self._Cxkk,
            0xD: self._Dxyn,
            0xE: self._Ennn_Fnnn,  # Alias for bitmask 0xF0FF
            0xF: self._Ennn_Fnnn,  # Alias for bitmask 0xF0FF
            # Instructions beginning with nibble 0x0, bitmask 0xFFFF (i.e., exact match)
            0x00E0: self._00E0,
            0x00EE: self._00EE,
            # Instructions beginning with nibble 0x8, bitmask 0xF00F
            0x8000: self._8xy0,
            0x8001: self._8xy1,
            0x8002: self._8xy2,
            0x8003: self._8xy3,
            0x8004: self._8xy4,
            0x8005: self._8xy5,
            0x8006: self._8xy6,
            0x8007: self._8xy7,
            0x8008: self._invalid,
            0x8009: self._invalid,
            0x800A: self._invalid,
            0x800B: self._invalid,
            0x800C: self._invalid,
            0x800D: self._invalid,
            0x800E: self._8xyE,
            0x800F: self._invalid,
            # Instructions beginning with nibble 0xE/0xF, bitmask 0xF0FF
            0xE09E: self._Ex9E,
            0xE0A1: self._ExA1,
            0xF007: self._Fx07,
            0xF00A: self._Fx0A,
            0xF015: self._Fx15,
            0xF018: self._Fx18,
            0xF01E: self._Fx1E,
            0xF029: self._Fx29,
            0xF033: self._Fx33,
            0xF055: self._Fx55,
            0xF065: self._Fx65
        }

        self.initialize()

    def initialize(self):
        # Power-on state.  Can be called again at any time to reset the machine.
        self.ram.clear()
        self.ram.write_block(FONT_LOCATION, SYSTEM_FONT)
        self.stack.clear()
        self.framebuffer.clear()
        self.framebuffer.clear_draw_flag()

        # Initialise registers
        self.v = memoryview(bytearray(16))  # Bytearrays are mutable, so this should be fast when a register is updated
        self.i = 0  # Index register

        # Initialise timers
        self.dt = 0  # Delay timer (byte)
        self.st = 0  # Sound timer (byte)
        self.tone = False  # Set for a single cycle when the sound timer expires

        # Initialise program counter and current opcode
        self.pc = PROGRAM_LOCATION
        self.opcode = 0

        # Hex keypad state, 1 = held down
        self.keys = memoryview(bytearray(NUM_KEYS))

    def load_program(self, data):
        data_size = len(data)

        if data_size > PROGRAM_MAX_SIZE:
            raise ProgramError(
                "Program is {} bytes long, but only {} bytes are available from address 0x{:03x}".format(
                    data_size, PROGRAM_MAX_SIZE, PROGRAM_LOCATION
                )
            )

        self.ram.write_block(PROGRAM_LOCATION, data)

    def set_key(self, key, pressed):
        # Keys outside the hex keypad are ignored
        if 0 <= key < NUM_KEYS:
            self.keys[key] = int(bool(pressed))

    def is_key_down(self, key):
        return key < NUM_KEYS and self.keys[key] != 0

    def cycle(self):
        self.tone = False

        try:
            self.opcode = self.fetch()
            self.decode_exec()
        except (RAMError, StackError) as error:
            raise MachineError(self._fault_report(error)) from error

        self.inc_pc()
        self.tick_timers()

    def fetch(self):
        return int.from_bytes(self.ram.read_block(self.pc, 2), CPU_ENDIAN, signed=False)

    def _call_masked_instruction(self, masked_opcode):
        self.instructions.get(masked_opcode, self._invalid)()

    def decode_exec(self):
        self._call_masked_instruction((0xF000 & self.opcode) >> 12)

    def inc_pc(self):
        self.pc += 2

    def dec_pc(self):
        # Only used to jump to absolute addresses and to re-run instructions (e.g. keypress wait)
        self.pc -= 2

    def tick_timers(self):
        if self.dt > 0:
            self.dt -= 1

        if self.st > 0:
            if self.st == 1:
                # Sound timer is about to expire, so ask the host for a tone
                self.tone = True

            self.st -= 1

    # References to Vx, Vy, byte and addr are always in the same opcode position throughout all instructions, so avoid
    # excessive code duplication (ever so slight slowdown).  Don't reference these more than necessary as they are
    # recalculated each time.
    @property
    def vx(self):
        return (self.opcode & 0xF00) >> 8

    @property
    def vy(self):
        return (self.opcode & 0xF0) >> 4

    @property
    def addr(self):
        return self.opcode & 0xFFF

    @property
    def byte(self):
        return self.opcode & 0xFF

    @property
    def nibble(self):
        return self.opcode & 0xF

    def _fault_report(self, error):
        return (
            "Emulation halted.\n\n{}Debug info:\n{}\n\n{} while executing opcode 0x{:04x} at address 0x{:03x}."
        ).format(APP_INTRO, self.debugger.debug(self, "???", verbose=True), error, self.opcode, self.pc)

    def debug(self, instruction):
        self.debugger.output(self, instruction)

    def _invalid(self):
        # Unrecognised opcodes do nothing, and execution carries on with the next instruction
        if self.live_debug:
            self.debug("???")

    def _0nnn(self):
        opcode = self.opcode

        if opcode < 0x10:
            # Opcodes 0x0 - 0xF are used internally for indexing the first nibble
            self._invalid()
            return

        self._call_masked_instruction(opcode)

    def _8nnn(self):
        self._call_masked_instruction(self.opcode & 0xF00F)

    def _Ennn_Fnnn(self):
        self._call_masked_instruction(self.opcode & 0xF0FF)

    def _00E0(self):  # CLS
        if self.live_debug:
            self.debug("CLS")

        self.framebuffer.clear()

    def _00EE(self):  # RET
        if self.live_debug:
            self.debug("RET")

        # Resumes at the instruction after the CALL once the PC step is applied
        self.pc = self.stack.pop()

    def _1nnn(self):  # JP addr
        if self.live_debug:
            self.debug("JP 0x{:03x}".format(self.addr))

        self.pc = self.addr
        self.dec_pc()

    def _2nnn(self):  # CALL addr
        if self.live_debug:
            self.debug("CALL 0x{:03x}".format(self.addr))

        self.stack.push(self.pc)
        self.pc = self.addr

        if not self.call_quirks:
            self.dec_pc()

    def _3xkk(self):  # SE Vx, byte
        if self.live_debug:
            self.debug("SE V{:01x}, 0x{:02x}".format(self.vx, self.byte))

        if self.v[self.vx] == self.byte:
            self.inc_pc()

    def _4xkk(self):  # SNE Vx, byte
        if self.live_debug:
            self.debug("SNE V{:01x}, 0x{:02x}".format(self.vx, self.byte))

        if self.v[self.vx] != self.byte:
            self.inc_pc()

    def _5xy0(self):  # SE Vx, Vy
        # The last nibble is not checked, so 5xy1 - 5xyF behave the same way
        if self.live_debug:
            self.debug("SE V{:01x}, V{:01x}".format(self.vx, self.vy))

        if self.v[self.vx] == self.v[self.vy]:
            self.inc_pc()

    def _6xkk(self):  # LD Vx, byte
        if self.live_debug:
            self.debug("LD V{:01x}, 0x{:02x}".format(self.vx, self.byte))

        self.v[self.vx] = self.byte

    def _7xkk(self):  # ADD Vx, byte
        vx = self.vx
        byte = self.byte

        if self.live_debug:
            self.debug("ADD V{:01x}, 0x{:02x}".format(vx, byte))

        byte += self.v[vx]
        self.v[vx] = byte & 0xFF

    def _8xy0(self):  # LD Vx, Vy
        if self.live_debug:
            self.debug("LD V{:01x}, V{:01x}".format(self.vx, self.vy))

        self.v[self.vx] = self.v[self.vy]

    def _8xy1(self):  # OR Vx, Vy
        if self.live_debug:
            self.debug("OR V{:01x}, V{:01x}".format(self.vx, self.vy))

        self.v[self.vx] |= self.v[self.vy]

    def _8xy2(self):  # AND Vx, Vy
        if self.live_debug:
            self.debug("AND V{:01x}, V{:01x}".format(self.vx, self.vy))

        self.v[self.vx] &= self.v[self.vy]

    def _8xy3(self):  # XOR Vx, Vy
        if self.live_debug:
            self.debug("XOR V{:01x}, V{:01x}".format(self.vx, self.vy))

        self.v[self.vx] ^= self.v[self.vy]

    # In the flag-setting instructions below, both operands are read first, then Vf is written, then Vx.  If Vx is
    # Vf, the result overwrites the flag.

    def _8xy4(self):  # ADD Vx, Vy
        vx = self.vx
        vy = self.vy

        if self.live_debug:
            self.debug("ADD V{:01x}, V{:01x}".format(vx, vy))

        val = self.v[vx] + self.v[vy]
        self.v[0xF] = int(val > 0xFF)  # Vf is set when carrying
        self.v[vx] = val & 0xFF

    def _8xy5(self):  # SUB Vx, Vy
        vx = self.vx
        vy = self.vy

        if self.live_debug:
            self.debug("SUB V{:01x}, V{:01x}".format(vx, vy))

        x_val = self.v[vx]
        y_val = self.v[vy]
        self.v[0xF] = 0 if y_val >= x_val else 1  # Vf is set when NOT borrowing.  Equal operands count as a borrow.
        self.v[vx] = (x_val - y_val) & 0xFF

    def _8xy6(self):  # SHR Vx
        vx = self.vx

        if self.live_debug:
            self.debug("SHR V{:01x}".format(vx))

        val = self.v[vx]
        self.v[0xF] = val & 1
        self.v[vx] = val >> 1

    def _8xy7(self):  # SUBN Vx, Vy
        vx = self.vx
        vy = self.vy

        if self.live_debug:
            self.debug("SUBN V{:01x}, V{:01x}".format(vx, vy))

        x_val = self.v[vx]
        y_val = self.v[vy]
        self.v[0xF] = 1 if x_val < y_val else 0
        self.v[vx] = (y_val - x_val) & 0xFF

    def _8xyE(self):  # SHL Vx
        vx = self.vx

        if self.live_debug:
            self.debug("SHL V{:01x}".format(vx))

        val = self.v[vx]
        self.v[0xF] = val & 0x80  # The raw high bit (0x00 or 0x80), not normalised to 1
        self.v[vx] = (val << 1) & 0xFF

    def _9xy0(self):  # SNE Vx, Vy
        # As with 5xy0, the last nibble is not checked
        if self.live_debug:
            self.debug("SNE V{:01x}, V{:01x}".format(self.vx, self.vy))

        if self.v[self.vx] != self.v[self.vy]:
            self.inc_pc()

    def _Annn(self):  # LD I, addr
        if self.live_debug:
            self.debug("LD I, 0x{:03x}".format(self.addr))

        self.i = self.addr

    def _Bnnn(self):  # JP V0, addr
        if self.live_debug:
            self.debug("JP V0, 0x{:03x}".format(self.addr))

        # Not masked, so jumping past the top of memory faults on the next fetch
        self.pc = self.addr + self.v[0x0]
        self.dec_pc()

    def _Cxkk(self):  # RND Vx, byte
        if self.live_debug:
            self.debug("RND V{:01x}, 0x{:02x}".format(self.vx, self.byte))

        # The ANDing here is intentional.  This is not a random number between 0 and 'byte' inclusive.
        self.v[self.vx] = self.rng.randint(0, 0xFF) & self.byte

    def _Dxyn(self):  # DRW Vx, Vy, nibble
        height = self.nibble

        if self.live_debug:
            self.debug("DRW V{:01x}, V{:01x}, 0x{:01x}".format(self.vx, self.vy, height))

        # The sprite's start always wraps, but anything hanging off the right or bottom edge is trimmed
        vid_width, vid_height = self.framebuffer.get_vid_size()
        vx_pos = self.v[self.vx] % vid_width
        vy_pos = self.v[self.vy] % vid_height
        collided = False
        i = self.i
        self.v[0xF] = 0

        for y in range(height):
            spr_data = self.ram.read(i + y)
            scr_y = y + vy_pos

            for x in range(8):
                if spr_data & (0x80 >> x):
                    if self.framebuffer.xor_pixel(x + vx_pos, scr_y):
                        # Don't stop drawing.  Set the flag, and never unset it for this sprite.
                        collided = True

        self.v[0xF] = int(collided)
        self.framebuffer.request_draw()

    def _Ex9E(self):  # SKP Vx
        if self.live_debug:
            self.debug("SKP V{:01x}".format(self.vx))

        if self.is_key_down(self.v[self.vx]):
            self.inc_pc()

    def _ExA1(self):  # SKNP Vx
        if self.live_debug:
            self.debug("SKNP V{:01x}".format(self.vx))

        if not self.is_key_down(self.v[self.vx]):
            self.inc_pc()

    def _Fx07(self):  # LD Vx, DT
        if self.live_debug:
            self.debug("LD V{:01x}, DT".format(self.vx))

        self.v[self.vx] = self.dt

    def _Fx0A(self):  # LD Vx, K
        if self.live_debug:
            self.debug("LD V{:01x}, K".format(self.vx))

        # The timers still need to run while waiting, so rather than blocking, rewind the PC so this instruction is
        # executed again on the next cycle.  The lowest numbered key held down wins.
        for key in range(NUM_KEYS):
            if self.keys[key]:
                self.v[self.vx] = key if self.key_index_quirks else self.keys[key]
                return

        self.dec_pc()

    def _Fx15(self):  # LD DT, Vx
        if self.live_debug:
            self.debug("LD DT, V{:01x}".format(self.vx))

        self.dt = self.v[self.vx]

    def _Fx18(self):  # LD ST, Vx
        if self.live_debug:
            self.debug("LD ST, V{:01x}".format(self.vx))

        self.st = self.v[self.vx]

    def _Fx1E(self):  # ADD I, Vx
        if self.live_debug:
            self.debug("ADD I, V{:01x}".format(self.vx))

        # 16-bit wrap, and Vf is left alone
        self.i = (self.i + self.v[self.vx]) & 0xFFFF

    def _Fx29(self):  # LD F, Vx
        if self.live_debug:
            self.debug("LD F, V{:01x}".format(self.vx))

        self.i = (FONT_LOCATION + FONT_GLYPH_SIZE * self.v[self.vx]) & 0xFFFF

    def _Fx33(self):  # LD B, Vx
        if self.live_debug:
            self.debug("LD B, V{:01x}".format(self.vx))

        val = self.v[self.vx]
        i = self.i
        # Most-significant digit first.  Written as one block so nothing is stored if it would run off the end.
        self.ram.write_block(i, bytes((val // 100, (val // 10) % 10, val % 10)))

    def _Fx55(self):  # LD [I], Vx
        if self.live_debug:
            self.debug("LD [I], V{:01x}".format(self.vx))

        # Ensure with +1s that the final register is copied.  I is left unchanged.
        self.ram.write_block(self.i, self.v[:self.vx + 1])

    def _Fx65(self):  # LD Vx, [I]
        if self.live_debug:
            self.debug("LD V{:01x}, [I]".format(self.vx))

        count = self.vx + 1
        self.v[:count] = self.ram.read_block(self.i, count)
