"""Opcode fetch, field decoding and disassembly."""

from __future__ import annotations

from typing import NamedTuple

from .constants import MAX_PC
from .errors import AddressOutOfRange


class Instruction(NamedTuple):
    word: int
    family: int   # bits 15-12
    x: int        # bits 11-8
    y: int        # bits 7-4
    n: int        # bits 3-0
    nn: int       # bits 7-0
    nnn: int      # bits 11-0


def decode(word: int) -> Instruction:
    word &= 0xFFFF
    return Instruction(
        word=word,
        family=(word & 0xF000) >> 12,
        x=(word & 0x0F00) >> 8,
        y=(word & 0x00F0) >> 4,
        n=word & 0x000F,
        nn=word & 0x00FF,
        nnn=word & 0x0FFF,
    )


def fetch(memory, pc: int) -> int:
    # guard pc bounds
    if pc < 0 or pc > MAX_PC:
        raise AddressOutOfRange("PC out of bounds: 0x%03X" % pc, pc)
    return (memory[pc] << 8) | memory[pc + 1]


_ALU = {
    0x0: "LD", 0x1: "OR", 0x2: "AND", 0x3: "XOR", 0x4: "ADD",
    0x5: "SUB", 0x6: "SHR", 0x7: "SUBN", 0xE: "SHL",
}

_MISC = {
    0x07: "LD V{x:X}, DT",
    0x0A: "LD V{x:X}, K",
    0x15: "LD DT, V{x:X}",
    0x18: "LD ST, V{x:X}",
    0x1E: "ADD I, V{x:X}",
    0x29: "LD F, V{x:X}",
    0x33: "LD B, V{x:X}",
    0x55: "LD [I], V{x:X}",
    0x65: "LD V{x:X}, [I]",
}


def disassemble(word: int) -> str:
    """Render ``word`` as a Cowgod style mnemonic, or ``DW`` when it is not an instruction."""
    ins = decode(word)
    f, x, y = ins.family, ins.x, ins.y

    if ins.word == 0x00E0:
        return "CLS"
    if ins.word == 0x00EE:
        return "RET"
    if f == 0x1:
        return f"JP 0x{ins.nnn:03X}"
    if f == 0x2:
        return f"CALL 0x{ins.nnn:03X}"
    if f == 0x3:
        return f"SE V{x:X}, 0x{ins.nn:02X}"
    if f == 0x4:
        return f"SNE V{x:X}, 0x{ins.nn:02X}"
    if f == 0x5 and ins.n == 0:
        return f"SE V{x:X}, V{y:X}"
    if f == 0x6:
        return f"LD V{x:X}, 0x{ins.nn:02X}"
    if f == 0x7:
        return f"ADD V{x:X}, 0x{ins.nn:02X}"
    if f == 0x8 and ins.n in _ALU:
        if ins.n in (0x6, 0xE):
            return f"{_ALU[ins.n]} V{x:X}"
        return f"{_ALU[ins.n]} V{x:X}, V{y:X}"
    if f == 0x9 and ins.n == 0:
        return f"SNE V{x:X}, V{y:X}"
    if f == 0xA:
        return f"LD I, 0x{ins.nnn:03X}"
    if f == 0xB:
        return f"JP V0, 0x{ins.nnn:03X}"
    if f == 0xC:
        return f"RND V{x:X}, 0x{ins.nn:02X}"
    if f == 0xD:
        return f"DRW V{x:X}, V{y:X}, {ins.n}"
    if f == 0xE and ins.nn == 0x9E:
        return f"SKP V{x:X}"
    if f == 0xE and ins.nn == 0xA1:
        return f"SKNP V{x:X}"
    if f == 0xF and ins.nn in _MISC:
        return _MISC[ins.nn].format(x=x)
    return f"DW 0x{ins.word:04X}"
