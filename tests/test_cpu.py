"""Opcode semantics, run through the machine one instruction at a time."""

from __future__ import annotations

import random

import pytest

from chip8vm.constants import DISPLAY_WIDTH
from chip8vm.errors import ErrorKind
from chip8vm.machine import Chip8, StepStatus


def _run(vm: Chip8, count: int) -> None:
    for _ in range(count):
        result = vm.step()
        assert result.status is StepStatus.EXECUTED, result


def _lit(vm: Chip8):
    frame = vm.framebuffer()
    return {(x, y) for y in range(frame.shape[0]) for x in range(frame.shape[1]) if frame[y, x]}


def test_clear_screen(load):
    vm = load(0x00E0)
    vm.state.display.vram[:] = b"\x01" * len(vm.state.display.vram)
    vm.clear_redraw()
    _run(vm, 1)
    assert not vm.framebuffer().any()
    assert vm.state.pc == 0x202
    assert vm.needs_redraw


def test_call_and_return_round_trip(load):
    vm = load(0x2206, 0x0000, 0x0000, 0x00EE)
    _run(vm, 1)
    assert vm.state.pc == 0x206
    assert vm.state.stack == [0x202]
    _run(vm, 1)
    assert vm.state.pc == 0x202
    assert vm.state.stack == []


def test_jump(load):
    vm = load(0x1ABC)
    _run(vm, 1)
    assert vm.state.pc == 0xABC


def test_jump_plus_v0(load):
    vm = load(0x6004, 0xB300)
    _run(vm, 2)
    assert vm.state.pc == 0x304


@pytest.mark.parametrize(
    "words, pc",
    [
        ((0x6105, 0x3105), 0x206),  # SE taken
        ((0x6105, 0x3106), 0x204),
        ((0x6105, 0x4106), 0x206),  # SNE taken
        ((0x6105, 0x4105), 0x204),
        ((0x6105, 0x6205, 0x5120), 0x208),  # SE Vx, Vy taken
        ((0x6105, 0x6206, 0x5120), 0x206),
        ((0x6105, 0x6206, 0x9120), 0x208),  # SNE Vx, Vy taken
        ((0x6105, 0x6205, 0x9120), 0x206),
    ],
)
def test_skips(load, words, pc):
    vm = load(*words)
    _run(vm, len(words))
    assert vm.state.pc == pc


def test_load_and_add_immediate_wraps_without_flag(load):
    vm = load(0x6F07, 0x61FF, 0x7102)
    _run(vm, 3)
    assert vm.state.V[1] == 0x01
    assert vm.state.V[0xF] == 0x07


@pytest.mark.parametrize(
    "sub, expected",
    [(0x0, 0x0F), (0x1, 0x3F), (0x2, 0x00), (0x3, 0x3F)],
)
def test_register_logic(load, sub, expected):
    vm = load(0x6130, 0x620F, 0x8120 | sub)
    _run(vm, 3)
    assert vm.state.V[1] == expected
    assert vm.state.V[2] == 0x0F


@pytest.mark.parametrize(
    "vx, vy, result, flag",
    [(0xFF, 0xFF, 0xFE, 1), (0x01, 0x01, 0x02, 0), (0xF0, 0x10, 0x00, 1)],
)
def test_add_with_carry(load, vx, vy, result, flag):
    vm = load(0x6100 | vx, 0x6200 | vy, 0x8124)
    _run(vm, 3)
    assert vm.state.V[1] == result
    assert vm.state.V[0xF] == flag


@pytest.mark.parametrize(
    "vx, vy, result, flag",
    [(0x78, 0x24, 0x54, 1), (0x00, 0x01, 0xFF, 0), (0x05, 0x05, 0x00, 1)],
)
def test_subtract_sets_flag_when_no_borrow(load, vx, vy, result, flag):
    vm = load(0x6100 | vx, 0x6200 | vy, 0x8125)
    _run(vm, 3)
    assert vm.state.V[1] == result
    assert vm.state.V[0xF] == flag


@pytest.mark.parametrize(
    "vx, vy, result, flag",
    [(0x24, 0x78, 0x54, 1), (0x01, 0x00, 0xFF, 0)],
)
def test_reverse_subtract(load, vx, vy, result, flag):
    vm = load(0x6100 | vx, 0x6200 | vy, 0x8127)
    _run(vm, 3)
    assert vm.state.V[1] == result
    assert vm.state.V[0xF] == flag


@pytest.mark.parametrize("vx, result, flag", [(0xFD, 0x7E, 1), (0x7E, 0x3F, 0)])
def test_shift_right(load, vx, result, flag):
    vm = load(0x6100 | vx, 0x8126)
    _run(vm, 2)
    assert vm.state.V[1] == result
    assert vm.state.V[0xF] == flag


@pytest.mark.parametrize("vx, result, flag", [(0x81, 0x02, 1), (0x41, 0x82, 0)])
def test_shift_left(load, vx, result, flag):
    vm = load(0x6100 | vx, 0x812E)
    _run(vm, 2)
    assert vm.state.V[1] == result
    assert vm.state.V[0xF] == flag


def test_same_register_operands(load):
    vm = load(0x6180, 0x8114)
    _run(vm, 2)
    assert vm.state.V[1] == 0x00
    assert vm.state.V[0xF] == 1


def test_flag_overwrites_result_in_vf(load):
    vm = load(0x6FFF, 0x6101, 0x8F14)
    _run(vm, 3)
    assert vm.state.V[0xF] == 1


def test_set_index(load):
    vm = load(0xA123)
    _run(vm, 1)
    assert vm.state.I == 0x123


def test_random_is_masked(load):
    vm = load(0xC10F, 0xC200)
    _run(vm, 2)
    assert vm.state.V[1] == random.Random(1234).getrandbits(8) & 0x0F
    assert vm.state.V[2] == 0


def test_key_skips(load):
    vm = load(0x6107, 0xE19E, 0x0000, 0xE1A1)
    vm.key_down(7)
    _run(vm, 2)
    assert vm.state.pc == 0x206
    _run(vm, 1)
    assert vm.state.pc == 0x208

    vm.reset()
    vm.load(bytes([0x61, 0x07, 0xE1, 0x9E]))
    _run(vm, 2)
    assert vm.state.pc == 0x204


def test_timer_registers(load):
    vm = load(0x6133, 0xF115, 0xF118, 0xF207)
    _run(vm, 4)
    assert vm.state.timers.delay == 0x33
    assert vm.state.timers.sound == 0x33
    assert vm.state.V[2] == 0x33


def test_add_to_index_is_not_clamped(load):
    vm = load(0xAFFE, 0x6105, 0xF11E)
    _run(vm, 3)
    assert vm.state.I == 0x1003
    assert vm.state.V[0xF] == 0


def test_font_address(load):
    vm = load(0x610A, 0xF129)
    _run(vm, 2)
    assert vm.state.I == 50


def test_font_index_out_of_range(load):
    vm = load(0x6110, 0xA123, 0xF129)
    _run(vm, 2)
    result = vm.step()
    assert result.status is StepStatus.FATAL
    assert result.kind is ErrorKind.INVALID_FONT_INDEX
    assert vm.state.I == 0x123
    assert vm.state.pc == 0x204


def test_bcd(load):
    vm = load(0x61ED, 0xA300, 0xF133)
    _run(vm, 3)
    assert list(vm.state.memory[0x300:0x303]) == [2, 3, 7]
    assert vm.state.I == 0x300


def test_register_dump_and_load_round_trip(load):
    vm = load(
        0x6011, 0x6122, 0x6233, 0x6344, 0x64FF,
        0xA400, 0xF355,
        0x6000, 0x6100, 0x6200, 0x6300,
        0xF365,
    )
    _run(vm, 12)
    assert vm.state.V[:5] == [0x11, 0x22, 0x33, 0x44, 0xFF]
    assert list(vm.state.memory[0x400:0x405]) == [0x11, 0x22, 0x33, 0x44, 0x00]
    assert vm.state.I == 0x400


def test_register_dump_past_end_of_memory(load):
    vm = load(0x6001, 0xAFFE, 0xF355)
    _run(vm, 2)
    result = vm.step()
    assert result.kind is ErrorKind.ADDRESS_OUT_OF_RANGE
    assert vm.state.memory[0xFFE] == 0
    assert vm.state.memory[0xFFF] == 0


def test_draw_twice_restores_screen_and_reports_collision(load):
    # I = glyph "0", drawn at (0, 0)
    vm = load(0xA000, 0xD015, 0xD015)
    _run(vm, 2)
    assert vm.state.V[0xF] == 0
    assert {(0, 0), (1, 0), (2, 0), (3, 0), (0, 1), (3, 1)} <= _lit(vm)
    assert len(_lit(vm)) == 14
    _run(vm, 1)
    assert vm.state.V[0xF] == 1
    assert not vm.framebuffer().any()
    assert vm.state.I == 0


def test_draw_collision_is_sticky(load):
    # second sprite row overlaps nothing, first row overlaps: VF stays 1
    vm = load(0x6000, 0x6100, 0xA000, 0xD011, 0xA00F, 0xD012)
    _run(vm, 6)
    assert vm.state.V[0xF] == 1


def test_draw_wraps_at_edges(load):
    vm = load(0x603E, 0x611F, 0xA000, 0xD012)
    _run(vm, 4)
    # row 0 = 0xF0 at y=31, row 1 = 0x90 wraps to y=0
    assert _lit(vm) == {(62, 31), (63, 31), (0, 31), (1, 31), (62, 0), (1, 0)}
    assert vm.state.display.pixel(DISPLAY_WIDTH - 1, 31) == 1


def test_draw_out_of_memory_is_fatal(load):
    vm = load(0x6F05, 0xAFFF, 0xD015)
    _run(vm, 2)
    vm.clear_redraw()
    result = vm.step()
    assert result.kind is ErrorKind.ADDRESS_OUT_OF_RANGE
    assert not vm.framebuffer().any()
    assert vm.state.V[0xF] == 5
    assert not vm.needs_redraw


def test_draw_zero_rows(load):
    vm = load(0x6F05, 0xD010)
    _run(vm, 2)
    assert vm.state.V[0xF] == 0
    assert not vm.framebuffer().any()


@pytest.mark.parametrize(
    "word",
    [0x0000, 0x0123, 0x00E1, 0x00FF, 0x5121, 0x8008, 0x800F, 0x9001,
     0xE000, 0xE19F, 0xF000, 0xF0FF, 0xFFFF],
)
def test_invalid_opcodes_are_fatal(load, word):
    vm = load(word)
    result = vm.step()
    assert result.status is StepStatus.FATAL
    assert result.kind is ErrorKind.INVALID_OPCODE
    assert result.error.opcode == word
    assert vm.state.pc == 0x200


def test_stack_overflow(load):
    vm = load(0x2200)
    _run(vm, 24)
    result = vm.step()
    assert result.kind is ErrorKind.STACK_OVERFLOW
    assert len(vm.state.stack) == 24
    assert vm.state.pc == 0x200


def test_return_with_empty_stack(load):
    vm = load(0x00EE)
    result = vm.step()
    assert result.kind is ErrorKind.STACK_UNDERFLOW
    assert vm.state.pc == 0x200
