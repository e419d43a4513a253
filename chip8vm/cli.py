"""Command line entry point: load a ROM and run it in a window or headless."""

from __future__ import annotations

import argparse
import logging
import random
import sys
from pathlib import Path
from typing import List, Optional, TextIO, Union

from .config import EmulatorConfig
from .constants import MAX_PC
from .decoder import disassemble, fetch
from .errors import Chip8Error
from .machine import Chip8, StepResult, StepStatus

log = logging.getLogger(__name__)


def read_rom(machine: Chip8, path: Union[str, Path]) -> int:
    log.info("Loading ROM: %s", path)
    return machine.load(Path(path).read_bytes())


def run_headless(
    machine: Chip8,
    steps: int,
    steps_per_tick: int,
    trace: Optional[TextIO] = None,
) -> StepResult:
    """Run up to ``steps`` instructions, ticking the timers every ``steps_per_tick``.

    Stops early on a fatal error or when the program blocks waiting for a key,
    since nothing can press one. Returns the last step result.
    """
    result = StepResult(StepStatus.EXECUTED)
    for count in range(1, steps + 1):
        if trace is not None and not machine.blocked and machine.fault is None:
            pc = machine.state.pc
            if 0 <= pc <= MAX_PC:
                word = fetch(machine.state.memory, pc)
                trace.write(f"{pc:03X}: {word:04X}  {disassemble(word)}\n")
        result = machine.step()
        if result.status is not StepStatus.EXECUTED:
            break
        if count % steps_per_tick == 0:
            machine.tick_timers()
    return result


def render_text(machine: Chip8, on: str = "#", off: str = ".") -> str:
    frame = machine.framebuffer()
    return "\n".join("".join(on if px else off for px in row) for row in frame)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="chip8vm", description="CHIP-8 interpreter")
    parser.add_argument("rom", type=Path, help="ROM file to load at 0x200")
    parser.add_argument("--config", type=Path, help="JSON file with emulator settings")
    parser.add_argument("--scale", type=int, help="Window pixels per CHIP-8 pixel")
    parser.add_argument("--cpu-hz", type=int, help="Instructions per second")
    parser.add_argument("--timer-hz", type=int, help="Timer tick rate")
    parser.add_argument(
        "--headless",
        action="store_true",
        help="Run without a window and print the final screen",
    )
    parser.add_argument(
        "--steps", type=int, default=10000, help="Instructions to run in headless mode"
    )
    parser.add_argument(
        "--trace", action="store_true", help="Print each instruction in headless mode"
    )
    parser.add_argument(
        "--seed", type=int, help="Seed for the RND instruction"
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )
    return parser


def load_config(ns: argparse.Namespace) -> EmulatorConfig:
    data = EmulatorConfig.load(ns.config).to_dict() if ns.config else {}
    overrides = {"scale": ns.scale, "cpu_hz": ns.cpu_hz, "timer_hz": ns.timer_hz}
    data.update({k: v for k, v in overrides.items() if v is not None})
    return EmulatorConfig.from_dict(data)


def main(argv: Optional[List[str]] = None) -> int:
    ns = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, ns.log_level),
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config = load_config(ns)
    except (OSError, ValueError) as e:
        print(f"Bad config: {e}", file=sys.stderr)
        return 1

    machine = Chip8(rng=random.Random(ns.seed))
    try:
        size = read_rom(machine, ns.rom)
    except (OSError, Chip8Error) as e:
        print(f"Cannot load {ns.rom}: {e}", file=sys.stderr)
        return 1
    log.info("%d bytes loaded", size)

    if not ns.headless:
        from .window import run

        run(machine, config)
        return 1 if machine.fault is not None else 0

    result = run_headless(
        machine,
        ns.steps,
        config.steps_per_tick,
        trace=sys.stdout if ns.trace else None,
    )
    print(render_text(machine))
    print(machine.dump_registers())
    if result.status is StepStatus.FATAL:
        print(f"Fatal {result.kind.value}: {result.error}", file=sys.stderr)
        return 1
    if result.status is StepStatus.BLOCKED:
        print("Stopped: waiting for a key press")
    return 0
