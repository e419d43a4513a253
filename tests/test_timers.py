from __future__ import annotations

from chip8vm.timers import Timers


def test_timers_count_down_independently_and_stop_at_zero():
    timers = Timers()
    timers.delay = 3
    timers.sound = 1
    assert timers.sound_active
    timers.tick()
    assert (timers.delay, timers.sound) == (2, 0)
    assert not timers.sound_active
    for _ in range(5):
        timers.tick()
    assert (timers.delay, timers.sound) == (0, 0)


def test_reset():
    timers = Timers()
    timers.delay = timers.sound = 9
    timers.reset()
    assert (timers.delay, timers.sound) == (0, 0)
