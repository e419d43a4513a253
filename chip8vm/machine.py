"""The CHIP-8 machine as seen by a host.

The host loads a program, calls ``step()`` as often as it likes, calls
``tick_timers()`` at 60 Hz, pushes key events in and reads the framebuffer and
the sound signal back out. Nothing here sleeps, schedules or renders.
"""

from __future__ import annotations

import logging
import random
from enum import Enum
from typing import NamedTuple, Optional

import numpy as np

from .constants import MAX_PROGRAM_SIZE, NUM_REGISTERS, PROGRAM_START
from .cpu import CPU
from .decoder import decode, disassemble, fetch
from .errors import Chip8Error, ErrorKind, ProgramTooLarge
from .state import VMState

log = logging.getLogger(__name__)


class StepStatus(Enum):
    EXECUTED = "executed"
    BLOCKED = "blocked"
    FATAL = "fatal"


class StepResult(NamedTuple):
    status: StepStatus
    error: Optional[Chip8Error] = None

    @property
    def kind(self) -> Optional[ErrorKind]:
        return self.error.kind if self.error is not None else None


EXECUTED = StepResult(StepStatus.EXECUTED)
BLOCKED = StepResult(StepStatus.BLOCKED)


class Chip8:

    def __init__(self, rng: Optional[random.Random] = None):
        self.state = VMState()
        self.cpu = CPU(self.state, rng)
        self.fault: Optional[Chip8Error] = None
        self.cycle_count = 0

    # ---- Load ROM ----
    def load(self, data: bytes) -> int:
        """Copy ``data`` to 0x200 and return the number of bytes loaded."""
        size = len(data)
        if size > MAX_PROGRAM_SIZE:
            raise ProgramTooLarge(size, MAX_PROGRAM_SIZE)
        self.state.memory[PROGRAM_START:PROGRAM_START + size] = data
        log.info("Loaded %d byte program at 0x%03X", size, PROGRAM_START)
        return size

    def reset(self) -> None:
        self.state.reset()
        self.fault = None
        self.cycle_count = 0

    # ---- Cycle ----
    def step(self) -> StepResult:
        if self.fault is not None:
            return StepResult(StepStatus.FATAL, self.fault)
        if self.state.keypad.waiting:
            return BLOCKED

        pc = self.state.pc
        try:
            word = fetch(self.state.memory, pc)
            if log.isEnabledFor(logging.DEBUG):
                log.debug("%03X: %04X  %s", pc, word, disassemble(word))
            self.cpu.execute(decode(word))
        except Chip8Error as e:
            self.fault = e
            log.error("Emulation error at 0x%03X: %s", pc, e)
            return StepResult(StepStatus.FATAL, e)

        self.cycle_count += 1
        return EXECUTED

    # ---- timers ----
    def tick_timers(self) -> None:
        self.state.timers.tick()

    def is_sound_active(self) -> bool:
        return self.state.timers.sound_active

    # ---- Drawing ----
    def framebuffer(self) -> np.ndarray:
        return self.state.display.snapshot()

    @property
    def needs_redraw(self) -> bool:
        return self.state.display.should_draw

    def clear_redraw(self) -> None:
        self.state.display.should_draw = False

    # ---- Input ----
    def key_down(self, code: int) -> None:
        register = self.state.keypad.press(code)
        if register is not None:
            # Fx0A finishes now: store the key and move past it
            self.state.V[register] = code
            self.state.pc += 2

    def key_up(self, code: int) -> None:
        self.state.keypad.release(code)

    @property
    def blocked(self) -> bool:
        return self.state.keypad.waiting

    def dump_registers(self) -> str:
        state = self.state
        lines = [f"PC: {state.pc:04X}  I: {state.I:04X}  SP: {len(state.stack)}"]
        for index in range(NUM_REGISTERS):
            lines.append(f"V{index:X}: {state.V[index]:02X}")
        lines.append(f"DT: {state.timers.delay:02X}  ST: {state.timers.sound:02X}")
        lines.append(f"Cycles: {self.cycle_count}")
        return "\n".join(lines)

    def __str__(self):
        return self.dump_registers()
