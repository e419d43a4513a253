# We're subclassing pyglet (that'll handle graphics, sound output, and keyboard handling)
# and overriding whatever on_* handlers we need from there. The window only drives
# the machine: it calls step()/tick_timers(), pushes key events and draws the
# framebuffer snapshot when the machine says it changed.

from __future__ import annotations

import logging
import random

import numpy as np
import pyglet
from pyglet.media import synthesis
from pyglet.window import key

from .config import EmulatorConfig
from .constants import DISPLAY_HEIGHT, DISPLAY_WIDTH
from .machine import Chip8, StepStatus

log = logging.getLogger(__name__)

# map binding keys - physical keyboard to CHIP-8 keypad
KEYMAP = {
    key._1: 0x1, key._2: 0x2, key._3: 0x3, key._4: 0xC,
    key.Q: 0x4, key.W: 0x5, key.E: 0x6, key.R: 0xD,
    key.A: 0x7, key.S: 0x8, key.D: 0x9, key.F: 0xE,
    key.Z: 0xA, key.X: 0x0, key.C: 0xB, key.V: 0xF,
}

HUD_COLOR = (255, 255, 255, 255)


class Chip8Window(pyglet.window.Window):

    def __init__(self, machine: Chip8, config: EmulatorConfig):
        self.config = config
        self.machine = machine
        self.window_width = DISPLAY_WIDTH * config.scale
        self.window_height = DISPLAY_HEIGHT * config.scale
        super().__init__(
            width=self.window_width,
            height=self.window_height,
            caption=config.caption,
            resizable=False,
            vsync=config.vsync,
        )
        self.has_exit = False
        self.sound_playing = False

        # Pre-allocated small framebuffer (64x32 RGBA), upscaled with numpy.repeat
        self._small_framebuf = np.zeros((DISPLAY_HEIGHT, DISPLAY_WIDTH, 4), dtype=np.uint8)
        self._small_framebuf[..., 3] = 255
        self.image = pyglet.image.ImageData(
            self.window_width,
            self.window_height,
            'RGBA',
            self._upscaled().tobytes(),
        )

        # ---- Performance Counters ----
        self._fps_counter = 0
        self._cps_counter = 0
        self.fps_label = pyglet.text.Label(
            "FPS: 0", font_size=12, x=5, y=self.window_height - 15,
            anchor_x='left', anchor_y='center', color=HUD_COLOR,
        )
        self.cps_label = pyglet.text.Label(
            "Cycles/s: 0", font_size=12, x=5, y=self.window_height - 30,
            anchor_x='left', anchor_y='center', color=HUD_COLOR,
        )
        self.show_hud = False

        # CPU batches and timers share one 60 Hz schedule
        pyglet.clock.schedule_interval(self._frame, 1.0 / config.timer_hz)
        pyglet.clock.schedule_interval(self._update_bench, 1.0)

    # ---- CPU + timers ----
    def _frame(self, dt):
        if self.has_exit:
            return
        for _ in range(self.config.steps_per_tick):
            result = self.machine.step()
            if result.status is StepStatus.FATAL:
                log.error("Stopping emulation: %s", result.error)
                self.has_exit = True
                self.dispatch_event("on_close")
                return
            if result.status is StepStatus.BLOCKED:
                break
            self._cps_counter += 1
        self.machine.tick_timers()
        self._update_sound()

    def _update_sound(self):
        # Play beep only if it hasn't started yet
        if self.machine.is_sound_active():
            if not self.sound_playing:
                self._play_beep()
        else:
            self.sound_playing = False

    # ---- sound ----
    def _play_beep(self):
        cfg = self.config
        freq = cfg.beep_frequency + random.randint(-cfg.pitch_variation, cfg.pitch_variation)
        wave = synthesis.Sine(duration=cfg.beep_duration, frequency=freq, sample_rate=44100)

        player = pyglet.media.Player()
        player.queue(wave)
        player.play()
        self.sound_playing = True

        # Ensure the sound stops after the requested duration
        def on_eos():
            self.sound_playing = False
            player.delete()

        player.on_eos = on_eos

    # ---- FPS / CPS ----
    def _update_bench(self, dt):
        self.fps_label.text = f"FPS: {self._fps_counter / dt:.1f}"
        self.cps_label.text = f"Cycles/s: {self._cps_counter / dt:.0f}"
        self._fps_counter = 0
        self._cps_counter = 0

    # ---- Drawing ----
    def _upscaled(self) -> np.ndarray:
        scale = self.config.scale
        if scale == 1:
            return self._small_framebuf
        return np.repeat(np.repeat(self._small_framebuf, scale, axis=0), scale, axis=1)

    def _refresh_image(self):
        # pyglet draws bottom-up, the framebuffer is top-down
        pixels = np.flipud(self.machine.framebuffer()) * 255
        self._small_framebuf[..., :3] = pixels[..., np.newaxis]
        self.image.set_data('RGBA', self.window_width * 4, self._upscaled().tobytes())
        self.machine.clear_redraw()

    def on_draw(self):
        self.clear()
        if self.machine.needs_redraw:
            self._refresh_image()
        self.image.blit(0, 0)
        if self.show_hud:
            self.fps_label.draw()
            self.cps_label.draw()
        self._fps_counter += 1

    # ---- Input ----
    def on_key_press(self, symbol, modifiers):
        if symbol == key.ESCAPE:
            self.has_exit = True
            self.dispatch_event("on_close")
            return
        if symbol == key.F1:
            toggle_logs()
        elif symbol == key.F2:
            self.show_hud = not self.show_hud
        elif symbol in KEYMAP:
            self.machine.key_down(KEYMAP[symbol])

    def on_key_release(self, symbol, modifiers):
        if symbol in KEYMAP:
            self.machine.key_up(KEYMAP[symbol])

    def on_close(self):
        pyglet.clock.unschedule(self._frame)
        pyglet.clock.unschedule(self._update_bench)
        super().on_close()


def toggle_logs() -> bool:
    """Flip the package logger between DEBUG and WARNING. Returns True when logs are on."""
    package_log = logging.getLogger("chip8vm")
    logs_on = package_log.getEffectiveLevel() > logging.DEBUG
    package_log.setLevel(logging.DEBUG if logs_on else logging.WARNING)
    log.warning("logsOn: %s", logs_on)
    return logs_on


def run(machine: Chip8, config: EmulatorConfig) -> None:
    Chip8Window(machine, config)
    pyglet.app.run()
