"""CHIP-8 virtual machine with a pyglet front end."""

from .config import EmulatorConfig
from .errors import (
    AddressOutOfRange,
    Chip8Error,
    ErrorKind,
    InvalidFontIndex,
    InvalidOpcode,
    ProgramTooLarge,
    StackOverflow,
    StackUnderflow,
)
from .machine import Chip8, StepResult, StepStatus

__all__ = [
    "AddressOutOfRange",
    "Chip8",
    "Chip8Error",
    "EmulatorConfig",
    "ErrorKind",
    "InvalidFontIndex",
    "InvalidOpcode",
    "ProgramTooLarge",
    "StackOverflow",
    "StackUnderflow",
    "StepResult",
    "StepStatus",
]

__version__ = "0.1.0"
