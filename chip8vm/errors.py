"""Fatal error kinds raised by the CHIP-8 core.

Every error stops the instruction stream: ``Chip8.step()`` turns the exception
into a fatal ``StepResult`` and the machine stays frozen until ``reset()``.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(Enum):
    PROGRAM_TOO_LARGE = "ProgramTooLarge"
    STACK_OVERFLOW = "StackOverflow"
    STACK_UNDERFLOW = "StackUnderflow"
    INVALID_OPCODE = "InvalidOpcode"
    INVALID_FONT_INDEX = "InvalidFontIndex"
    ADDRESS_OUT_OF_RANGE = "AddressOutOfRange"


class Chip8Error(Exception):
    kind: ErrorKind

    def __init__(self, message: str, pc: int | None = None):
        super().__init__(message)
        self.pc = pc


class ProgramTooLarge(Chip8Error):
    kind = ErrorKind.PROGRAM_TOO_LARGE

    def __init__(self, size: int, limit: int):
        super().__init__(f"Program is {size} bytes, limit is {limit}")
        self.size = size
        self.limit = limit


class StackOverflow(Chip8Error):
    kind = ErrorKind.STACK_OVERFLOW


class StackUnderflow(Chip8Error):
    kind = ErrorKind.STACK_UNDERFLOW


class InvalidOpcode(Chip8Error):
    kind = ErrorKind.INVALID_OPCODE

    def __init__(self, opcode: int, pc: int | None = None, reason: str = "Unknown opcode"):
        super().__init__(f"{reason}: {opcode:04X}", pc)
        self.opcode = opcode


class InvalidFontIndex(Chip8Error):
    kind = ErrorKind.INVALID_FONT_INDEX


class AddressOutOfRange(Chip8Error):
    kind = ErrorKind.ADDRESS_OUT_OF_RANGE
