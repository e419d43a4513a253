"""Mutable CHIP-8 machine state.

We store the 16 registers as a list of zeros, the two timers as counters that
the host decrements at 60 Hz, and the call stack as a bounded list of return
addresses.
"""

from __future__ import annotations

from typing import List

from .constants import (
    FONT_START,
    FONTSET,
    MEMORY_SIZE,
    NUM_REGISTERS,
    PROGRAM_START,
    STACK_SIZE,
)
from .display import Framebuffer
from .errors import StackOverflow, StackUnderflow
from .keypad import Keypad
from .timers import Timers


class VMState:

    def __init__(self):
        self.memory = bytearray(MEMORY_SIZE)
        self.V: List[int] = [0] * NUM_REGISTERS
        self.I = 0
        self.pc = PROGRAM_START
        self.stack: List[int] = []
        self.timers = Timers()
        self.display = Framebuffer()
        self.keypad = Keypad()
        self._load_font()

    def _load_font(self) -> None:
        self.memory[FONT_START:FONT_START + len(FONTSET)] = FONTSET

    def reset(self) -> None:
        self.memory[:] = bytes(MEMORY_SIZE)
        self.V = [0] * NUM_REGISTERS
        self.I = 0
        self.pc = PROGRAM_START
        self.stack = []
        self.timers.reset()
        self.display.reset()
        self.keypad.reset()
        self._load_font()

    def push(self, address: int) -> None:
        if len(self.stack) >= STACK_SIZE:
            raise StackOverflow(f"Stack overflow on CALL (depth {len(self.stack)})", self.pc)
        self.stack.append(address)

    def pop(self) -> int:
        if not self.stack:
            raise StackUnderflow("Stack underflow on RET", self.pc)
        return self.stack.pop()
