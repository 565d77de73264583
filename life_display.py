#!/usr/bin/env python3
"""
Terminal viewer for the torus Life pipeline.

Shows each grayscale frame with half-block characters, two raster rows per
terminal row. A new random wave starts every --steps generations.

  Controls:
    q         quit

Usage:
  python3 life_display.py                    # 100x100, curses window
  python3 life_display.py --seed 7 --waves 2
  python3 life_display.py --text --frames 5  # plain text, no curses

Stats are logged to life_stats.csv beside this script unless --no-log.
"""

from __future__ import annotations

import argparse
import curses
import sys
import time
from pathlib import Path
from typing import TextIO

import numpy as np
from numpy.typing import NDArray

from life import (
    ALIVE_PIXEL,
    DEFAULT_HEIGHT,
    DEFAULT_STEPS,
    DEFAULT_WIDTH,
    LOG_PATH,
    Field,
    LifeConfig,
    render_text,
)
from life_pipeline import Frame, Pipeline, RenderError, StatsLogger

# ── Half-block characters ───────────────────────────────────────────────
UPPER_HALF = "\u2580"  # ▀  top pixel alive
LOWER_HALF = "\u2584"  # ▄  bottom pixel alive
FULL_BLOCK = "\u2588"  # █  both alive

# index = top_alive + 2 * bottom_alive
_BLOCKS: NDArray = np.array([" ", UPPER_HALF, LOWER_HALF, FULL_BLOCK])


def _check_raster(raster: object) -> NDArray[np.uint8]:
    if not isinstance(raster, np.ndarray):
        raise RenderError(f"raster must be a numpy array, got {type(raster).__name__}")
    if raster.ndim != 2 or raster.dtype != np.uint8:
        raise RenderError(
            f"unsupported raster format: shape={raster.shape} dtype={raster.dtype}"
        )
    return raster


def raster_rows(raster: NDArray[np.uint8]) -> list[str]:
    """Fold a grayscale raster into half-block text rows.

    Dark pixels (< 128) count as alive. An odd final row gets a dead
    bottom half.
    """
    raster = _check_raster(raster)
    alive = raster < 128
    h, w = alive.shape
    if h % 2:
        alive = np.vstack([alive, np.zeros((1, w), dtype=np.bool_)])
    codes = alive[0::2].astype(np.intp) + 2 * alive[1::2].astype(np.intp)
    return ["".join(row) for row in _BLOCKS[codes].tolist()]


def raster_text(raster: NDArray[np.uint8]) -> str:
    """Raster back to the ``*`` text form, one line per pixel row."""
    raster = _check_raster(raster)
    return render_text(Field.from_array(raster == ALIVE_PIXEL))


# ═══════════════════════════════════════════════════════════════════════
#  Displays
# ═══════════════════════════════════════════════════════════════════════

class CursesDisplay:
    """Presents frames in a curses window; ``q`` requests quit."""

    def __init__(self, stdscr: curses.window, delay_ms: float = 0.0) -> None:
        self.stdscr = stdscr
        self.delay_ms = delay_ms
        self.last_event: str = ""
        self.last_event_gen: int = 0

    def setup(self) -> None:
        try:
            curses.curs_set(0)
        except curses.error:
            pass
        self.stdscr.nodelay(True)
        self.stdscr.timeout(0)

    def show(self, frame: Frame) -> None:
        rows = raster_rows(frame.raster)
        if frame.event:
            self.last_event = frame.event
            self.last_event_gen = frame.generation

        stdscr = self.stdscr
        max_y, max_x = stdscr.getmaxyx()
        stdscr.erase()
        for y, line in enumerate(rows[: max(0, max_y - 1)]):
            try:
                stdscr.addstr(y, 0, line[:max_x])
            except curses.error:
                pass

        # ── Status bar ─────────────────────────────────────────────
        event = f"  {self.last_event} @ {self.last_event_gen:,}" if self.last_event else ""
        status = (
            f"  wave {frame.wave}  gen {frame.generation:,}"
            f"  pop {frame.population:,}{event}   q quit  "
        )
        try:
            stdscr.addstr(max_y - 1, 0, status[: max_x - 1], curses.A_DIM)
        except curses.error:
            pass
        stdscr.refresh()

        if self.delay_ms:
            time.sleep(self.delay_ms / 1000.0)

    def poll_quit(self) -> bool:
        try:
            key = self.stdscr.getch()
        except curses.error:
            key = -1
        return key in (ord("q"), ord("Q"))


class TextDisplay:
    """Writes frames as ``*`` text. Quits after ``max_frames`` if given."""

    def __init__(
        self,
        stream: TextIO = sys.stdout,
        max_frames: int | None = None,
        every: int = 1,
    ) -> None:
        if every <= 0:
            raise ValueError(f"every must be positive, got {every}")
        self.stream = stream
        self.max_frames = max_frames
        self.every = every
        self.shown: int = 0

    def show(self, frame: Frame) -> None:
        self.shown += 1
        if (self.shown - 1) % self.every:
            return
        tag = f" [{frame.event}]" if frame.event else ""
        self.stream.write(
            f"wave {frame.wave} gen {frame.generation} pop {frame.population}{tag}\n"
        )
        self.stream.write(raster_text(frame.raster))
        self.stream.flush()

    def poll_quit(self) -> bool:
        return self.max_frames is not None and self.shown >= self.max_frames


# ═══════════════════════════════════════════════════════════════════════
#  Entry points
# ═══════════════════════════════════════════════════════════════════════

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Conway's Life on a torus")
    parser.add_argument("--width", type=int, default=DEFAULT_WIDTH,
                        help=f"Grid width (default: {DEFAULT_WIDTH})")
    parser.add_argument("--height", type=int, default=DEFAULT_HEIGHT,
                        help=f"Grid height (default: {DEFAULT_HEIGHT})")
    parser.add_argument("--steps", type=int, default=DEFAULT_STEPS,
                        help=f"Generations per wave (default: {DEFAULT_STEPS})")
    parser.add_argument("--seed", type=int, default=None,
                        help="RNG seed for a reproducible run")
    parser.add_argument("--waves", type=int, default=None,
                        help="Stop after this many waves (default: run forever)")
    parser.add_argument("--no-reseed", action="store_true",
                        help="Do not reseed frozen boards")
    parser.add_argument("--delay", type=float, default=0.0,
                        help="Milliseconds to hold each frame (default: 0)")
    parser.add_argument("--log", type=Path, default=LOG_PATH,
                        help="CSV stats path (default: life_stats.csv beside this script)")
    parser.add_argument("--no-log", action="store_true",
                        help="Disable the CSV stats log")
    parser.add_argument("--text", action="store_true",
                        help="Print frames as text instead of using curses")
    parser.add_argument("--frames", type=int, default=None,
                        help="With --text: stop after this many frames")
    return parser


def run_text(config: LifeConfig, stream: TextIO, max_frames: int | None) -> int:
    logger = StatsLogger(config.log_path)
    logger.open()
    try:
        return Pipeline(config, TextDisplay(stream, max_frames), logger=logger).run()
    finally:
        logger.close()


def main(stdscr: curses.window, config: LifeConfig) -> int:
    display = CursesDisplay(stdscr, delay_ms=config.delay_ms)
    display.setup()

    logger = StatsLogger(config.log_path)
    logger.open()
    try:
        return Pipeline(config, display, logger=logger).run()
    finally:
        logger.close()


def cli(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.frames is not None:
        if not args.text:
            parser.error("--frames requires --text")
        if args.frames <= 0:
            parser.error(f"--frames must be positive, got {args.frames}")
    try:
        config = LifeConfig.from_args(args)
    except ValueError as e:
        parser.error(str(e))

    try:
        if args.text:
            run_text(config, sys.stdout, args.frames)
        else:
            curses.wrapper(main, config)
    except KeyboardInterrupt:
        pass
    return 0


if __name__ == "__main__":
    sys.exit(cli())
