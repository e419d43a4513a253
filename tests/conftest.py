from __future__ import annotations

import random

import pytest

from chip8vm.machine import Chip8


def assemble(*words: int) -> bytes:
    out = bytearray()
    for word in words:
        out += word.to_bytes(2, "big")
    return bytes(out)


@pytest.fixture
def vm() -> Chip8:
    return Chip8(rng=random.Random(1234))


@pytest.fixture
def load(vm):
    """Load opcode words at 0x200 and return the machine."""

    def _load(*words: int) -> Chip8:
        vm.load(assemble(*words))
        return vm

    return _load
