from __future__ import annotations


class Timers:
    """Delay and sound timers, both counted down toward 0 at the host's timer rate (60 Hz)."""

    def __init__(self):
        self.delay = 0
        self.sound = 0

    @property
    def sound_active(self) -> bool:
        return self.sound > 0

    def tick(self) -> None:
        if self.delay > 0:
            self.delay -= 1
        if self.sound > 0:
            self.sound -= 1

    def reset(self) -> None:
        self.delay = 0
        self.sound = 0
