"""Instruction executor.

One handler per opcode, looked up first by the family nibble and then, for the
0, 5, 8, 9, E and F families, by the secondary selector. Any combination not
in the tables raises InvalidOpcode. Handlers check their preconditions before
writing anything, so a failing instruction leaves the machine as it was.
"""

from __future__ import annotations

import random
from typing import Callable, Dict, Optional

from .constants import FLAG_REGISTER, FONT_GLYPH_SIZE, FONT_START, MEMORY_SIZE
from .decoder import Instruction
from .errors import AddressOutOfRange, InvalidFontIndex, InvalidOpcode
from .state import VMState

Handler = Callable[[Instruction], None]


class CPU:

    def __init__(self, state: VMState, rng: Optional[random.Random] = None):
        self.state = state
        self.rng = rng if rng is not None else random.Random()
        self.setup_funcmap()

    # ---- Opcode function map ----
    def setup_funcmap(self) -> None:
        self.funcmap: Dict[int, Handler] = {
            0x0: self._0xxx,         # 00E0 / 00EE - Clear screen / Return from subroutine
            0x1: self.op_JP,         # 1nnn - Jump to address
            0x2: self.op_CALL,       # 2nnn - Call subroutine
            0x3: self.op_SE_Vx_kk,   # 3xkk - Skip if Vx == kk
            0x4: self.op_SNE_Vx_kk,  # 4xkk - Skip if Vx != kk
            0x5: self._5xy0,         # 5xy0 - Skip if Vx == Vy
            0x6: self.op_LD_Vx_kk,   # 6xkk - Vx = kk
            0x7: self.op_ADD_Vx_kk,  # 7xkk - Vx += kk
            0x8: self._8xxx,         # 8xy0..8xyE - Math and logic between two registers
            0x9: self._9xy0,         # 9xy0 - Skip if Vx != Vy
            0xA: self.op_LD_I,       # Annn - I = nnn
            0xB: self.op_JP_V0,      # Bnnn - Jump to nnn + V0
            0xC: self.op_RND,        # Cxkk - Vx = random byte & kk
            0xD: self.op_DRW,        # Dxyn - Draw sprite at (Vx, Vy)
            0xE: self._Exxx,         # Ex9E / ExA1 - Skip on key state
            0xF: self._Fxxx,         # Fx07..Fx65 - Timers, memory, I and key input
        }
        self.alu_map: Dict[int, Handler] = {
            0x0: self.op_LD_Vx_Vy,
            0x1: self.op_OR,
            0x2: self.op_AND,
            0x3: self.op_XOR,
            0x4: self.op_ADD,
            0x5: self.op_SUB,
            0x6: self.op_SHR,
            0x7: self.op_SUBN,
            0xE: self.op_SHL,
        }
        self.key_map: Dict[int, Handler] = {
            0x9E: self.op_SKP,
            0xA1: self.op_SKNP,
        }
        self.misc_map: Dict[int, Handler] = {
            0x07: self.op_LD_Vx_DT,
            0x0A: self.op_WAITKEY,
            0x15: self.op_LD_DT_Vx,
            0x18: self.op_LD_ST_Vx,
            0x1E: self.op_ADD_I_Vx,
            0x29: self.op_FONT,
            0x33: self.op_BCD,
            0x55: self.op_STORE,
            0x65: self.op_LOAD,
        }

    def execute(self, ins: Instruction) -> None:
        self.funcmap[ins.family](ins)

    # ---- helpers ----
    def _invalid(self, ins: Instruction, reason: str = "Unknown opcode") -> InvalidOpcode:
        return InvalidOpcode(ins.word, self.state.pc, reason)

    def _next(self) -> None:
        self.state.pc += 2

    def _skip_if(self, condition: bool) -> None:
        self.state.pc += 4 if condition else 2

    def _check_range(self, start: int, count: int, ins: Instruction) -> None:
        if start < 0 or start + count > MEMORY_SIZE:
            raise AddressOutOfRange(
                "%04X touches 0x%04X..0x%04X, past end of memory" % (ins.word, start, start + count - 1),
                self.state.pc,
            )

    # ---- secondary dispatch ----
    def _0xxx(self, ins: Instruction) -> None:
        if ins.word == 0x00E0:
            self.op_CLS(ins)
        elif ins.word == 0x00EE:
            self.op_RET(ins)
        else:
            # 0nnn machine code routines are not supported
            raise self._invalid(ins, "Unsupported machine code routine")

    def _5xy0(self, ins: Instruction) -> None:
        if ins.n != 0:
            raise self._invalid(ins)
        self.op_SE_Vx_Vy(ins)

    def _8xxx(self, ins: Instruction) -> None:
        handler = self.alu_map.get(ins.n)
        if handler is None:
            raise self._invalid(ins)
        handler(ins)

    def _9xy0(self, ins: Instruction) -> None:
        if ins.n != 0:
            raise self._invalid(ins)
        self.op_SNE_Vx_Vy(ins)

    def _Exxx(self, ins: Instruction) -> None:
        handler = self.key_map.get(ins.nn)
        if handler is None:
            raise self._invalid(ins)
        handler(ins)

    def _Fxxx(self, ins: Instruction) -> None:
        handler = self.misc_map.get(ins.nn)
        if handler is None:
            raise self._invalid(ins)
        handler(ins)

    # ---- Opcode Handlers ----

    # 00E0 - CLS
    def op_CLS(self, ins: Instruction) -> None:
        self.state.display.clear()
        self._next()

    # 00EE - RET
    def op_RET(self, ins: Instruction) -> None:
        self.state.pc = self.state.pop()

    # 1nnn - Jump to address nnn
    def op_JP(self, ins: Instruction) -> None:
        self.state.pc = ins.nnn

    # 2nnn - Call subroutine at nnn
    def op_CALL(self, ins: Instruction) -> None:
        self.state.push(self.state.pc + 2)
        self.state.pc = ins.nnn

    # 3xkk - Skip next instruction if Vx == kk
    def op_SE_Vx_kk(self, ins: Instruction) -> None:
        self._skip_if(self.state.V[ins.x] == ins.nn)

    # 4xkk - Skip next instruction if Vx != kk
    def op_SNE_Vx_kk(self, ins: Instruction) -> None:
        self._skip_if(self.state.V[ins.x] != ins.nn)

    # 5xy0 - Skip next instruction if Vx == Vy
    def op_SE_Vx_Vy(self, ins: Instruction) -> None:
        self._skip_if(self.state.V[ins.x] == self.state.V[ins.y])

    # 6xkk - Vx = kk
    def op_LD_Vx_kk(self, ins: Instruction) -> None:
        self.state.V[ins.x] = ins.nn
        self._next()

    # 7xkk - Vx = Vx + kk, no carry flag
    def op_ADD_Vx_kk(self, ins: Instruction) -> None:
        V = self.state.V
        V[ins.x] = (V[ins.x] + ins.nn) & 0xFF
        self._next()

    # 8xy0 - Vx = Vy
    def op_LD_Vx_Vy(self, ins: Instruction) -> None:
        V = self.state.V
        V[ins.x] = V[ins.y]
        self._next()

    def op_OR(self, ins: Instruction) -> None:
        V = self.state.V
        V[ins.x] = V[ins.x] | V[ins.y]
        self._next()

    def op_AND(self, ins: Instruction) -> None:
        V = self.state.V
        V[ins.x] = V[ins.x] & V[ins.y]
        self._next()

    def op_XOR(self, ins: Instruction) -> None:
        V = self.state.V
        V[ins.x] = V[ins.x] ^ V[ins.y]
        self._next()

    # The flag ops below read both operands first and write VF last, so VF
    # holds the flag even when x or y is F.

    # 8xy4 - Vx = Vx + Vy, VF = carry
    def op_ADD(self, ins: Instruction) -> None:
        V = self.state.V
        total = V[ins.x] + V[ins.y]
        V[ins.x] = total & 0xFF
        V[FLAG_REGISTER] = 1 if total > 0xFF else 0
        self._next()

    # 8xy5 - Vx = Vx - Vy, VF = NOT borrow
    def op_SUB(self, ins: Instruction) -> None:
        V = self.state.V
        vx, vy = V[ins.x], V[ins.y]
        V[ins.x] = (vx - vy) & 0xFF
        V[FLAG_REGISTER] = 1 if vx >= vy else 0
        self._next()

    # 8xy6 - Vx >>= 1, VF = lsb before the shift
    def op_SHR(self, ins: Instruction) -> None:
        V = self.state.V
        vx = V[ins.x]
        V[ins.x] = vx >> 1
        V[FLAG_REGISTER] = vx & 1
        self._next()

    # 8xy7 - Vx = Vy - Vx, VF = NOT borrow
    def op_SUBN(self, ins: Instruction) -> None:
        V = self.state.V
        vx, vy = V[ins.x], V[ins.y]
        V[ins.x] = (vy - vx) & 0xFF
        V[FLAG_REGISTER] = 1 if vy >= vx else 0
        self._next()

    # 8xyE - Vx <<= 1, VF = msb before the shift
    def op_SHL(self, ins: Instruction) -> None:
        V = self.state.V
        vx = V[ins.x]
        V[ins.x] = (vx << 1) & 0xFF
        V[FLAG_REGISTER] = (vx >> 7) & 1
        self._next()

    # 9xy0 - Skip next instruction if Vx != Vy
    def op_SNE_Vx_Vy(self, ins: Instruction) -> None:
        self._skip_if(self.state.V[ins.x] != self.state.V[ins.y])

    # Annn - I = nnn
    def op_LD_I(self, ins: Instruction) -> None:
        self.state.I = ins.nnn
        self._next()

    # Bnnn - Jump to nnn + V0
    def op_JP_V0(self, ins: Instruction) -> None:
        self.state.pc = ins.nnn + self.state.V[0]

    # Cxkk - Vx = random byte & kk
    def op_RND(self, ins: Instruction) -> None:
        self.state.V[ins.x] = self.rng.getrandbits(8) & ins.nn
        self._next()

    # Dxyn - Draw n byte sprite from memory[I] at (Vx, Vy), VF = collision
    def op_DRW(self, ins: Instruction) -> None:
        state = self.state
        start = state.I
        self._check_range(start, ins.n, ins)
        x, y = state.V[ins.x], state.V[ins.y]
        rows = bytes(state.memory[start:start + ins.n])
        state.V[FLAG_REGISTER] = 0
        if state.display.draw_sprite(x, y, rows):
            state.V[FLAG_REGISTER] = 1
        self._next()

    # Ex9E - Skip next instruction if key Vx is down
    def op_SKP(self, ins: Instruction) -> None:
        key = self.state.V[ins.x] & 0xF
        self._skip_if(self.state.keypad.is_down(key))

    # ExA1 - Skip next instruction if key Vx is up
    def op_SKNP(self, ins: Instruction) -> None:
        key = self.state.V[ins.x] & 0xF
        self._skip_if(not self.state.keypad.is_down(key))

    # Fx07 - Vx = delay timer
    def op_LD_Vx_DT(self, ins: Instruction) -> None:
        self.state.V[ins.x] = self.state.timers.delay
        self._next()

    # Fx0A - Wait for a key press, store it in Vx. PC stays on this instruction
    # until the keypad resolves the wait.
    def op_WAITKEY(self, ins: Instruction) -> None:
        self.state.keypad.wait_for_key(ins.x)

    # Fx15 - delay timer = Vx
    def op_LD_DT_Vx(self, ins: Instruction) -> None:
        self.state.timers.delay = self.state.V[ins.x]
        self._next()

    # Fx18 - sound timer = Vx
    def op_LD_ST_Vx(self, ins: Instruction) -> None:
        self.state.timers.sound = self.state.V[ins.x]
        self._next()

    # Fx1E - I = I + Vx, VF untouched
    def op_ADD_I_Vx(self, ins: Instruction) -> None:
        self.state.I = (self.state.I + self.state.V[ins.x]) & 0xFFFF
        self._next()

    # Fx29 - I = address of the font glyph for digit Vx
    def op_FONT(self, ins: Instruction) -> None:
        digit = self.state.V[ins.x]
        if digit > 0xF:
            raise InvalidFontIndex(f"No font glyph for V{ins.x:X} = 0x{digit:02X}", self.state.pc)
        self.state.I = FONT_START + digit * FONT_GLYPH_SIZE
        self._next()

    # Fx33 - BCD of Vx into memory[I..I+2]
    def op_BCD(self, ins: Instruction) -> None:
        state = self.state
        self._check_range(state.I, 3, ins)
        val = state.V[ins.x]
        state.memory[state.I] = val // 100
        state.memory[state.I + 1] = (val // 10) % 10
        state.memory[state.I + 2] = val % 10
        self._next()

    # Fx55 - memory[I..I+x] = V0..Vx, I unchanged
    def op_STORE(self, ins: Instruction) -> None:
        state = self.state
        count = ins.x + 1
        self._check_range(state.I, count, ins)
        state.memory[state.I:state.I + count] = bytes(state.V[:count])
        self._next()

    # Fx65 - V0..Vx = memory[I..I+x], I unchanged
    def op_LOAD(self, ins: Instruction) -> None:
        state = self.state
        count = ins.x + 1
        self._check_range(state.I, count, ins)
        state.V[:count] = list(state.memory[state.I:state.I + count])
        self._next()
