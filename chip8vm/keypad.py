"""Hex keypad state and the FX0A key-wait state machine.

The keypad is either running or waiting for a key on behalf of a register.
A key-down while waiting resolves the wait; key-up never touches it.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from .constants import NUM_KEYS

log = logging.getLogger(__name__)


def _check_key(code: int) -> None:
    if not 0 <= code < NUM_KEYS:
        raise ValueError(f"Key code out of range: {code!r}")


class Keypad:

    def __init__(self):
        self.keys: List[bool] = [False] * NUM_KEYS
        self.waiting_register: Optional[int] = None

    @property
    def waiting(self) -> bool:
        return self.waiting_register is not None

    def is_down(self, code: int) -> bool:
        return self.keys[code]

    def wait_for_key(self, register: int) -> None:
        self.waiting_register = register
        log.debug("Waiting for key press into V%X", register)

    def press(self, code: int) -> Optional[int]:
        """Record a key-down. Returns the register the wait was resolved for, if any."""
        _check_key(code)
        self.keys[code] = True
        register = self.waiting_register
        if register is not None:
            self.waiting_register = None
            log.debug("Key %X resolved wait on V%X", code, register)
        return register

    def release(self, code: int) -> None:
        _check_key(code)
        self.keys[code] = False

    def reset(self) -> None:
        self.keys = [False] * NUM_KEYS
        self.waiting_register = None
