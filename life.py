#!/usr/bin/env python3
"""
  L I F E  on a torus
  Conway's Game of Life on a fixed, wrap-around grid.

  The grid has no edges: a glider leaving on the right comes back on the
  left. Each generation is computed into a scratch buffer and the two
  buffers trade places, so advancing costs no copy. When a generation
  comes out identical to the one before it, the board is frozen and gets
  a sprinkle of fresh cells so the show goes on.

  This module holds the engine and the renderers. The frame pipeline lives
  in life_pipeline.py, the terminal viewer in life_display.py.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import numpy as np
from numpy.typing import NDArray
from scipy.ndimage import convolve

# ── Convolution kernel (reused every step) ────────────────────────────
NEIGHBOR_KERNEL: NDArray = np.array([[1, 1, 1], [1, 0, 1], [1, 1, 1]], dtype=np.int16)

# ── Raster levels ───────────────────────────────────────────────────────
ALIVE_PIXEL: int = 0     # black
DEAD_PIXEL: int = 255    # white

ALIVE_CHAR = "*"
DEAD_CHAR = " "

# ── Defaults ────────────────────────────────────────────────────────────
DEFAULT_WIDTH = 100
DEFAULT_HEIGHT = 100
DEFAULT_STEPS = 1500

LOG_PATH = Path(__file__).resolve().parent / "life_stats.csv"

# ── Pattern library ─────────────────────────────────────────────────────
# Offsets are (dy, dx) from the placement anchor.
PATTERNS: dict[str, list[tuple[int, int]]] = {
    "block": [(0, 0), (0, 1), (1, 0), (1, 1)],
    "blinker": [(0, 0), (0, 1), (0, 2)],
    "glider": [(0, 1), (1, 2), (2, 0), (2, 1), (2, 2)],
}


def _check_positive_int(name: str, v: Any) -> None:
    if isinstance(v, bool) or not isinstance(v, (int, np.integer)):
        raise ValueError(f"{name} must be an int, got {type(v).__name__}")
    if v <= 0:
        raise ValueError(f"{name} must be positive, got {v}")


def _check_dims(w: Any, h: Any) -> None:
    _check_positive_int("width", w)
    _check_positive_int("height", h)


# ═══════════════════════════════════════════════════════════════════════
#  Configuration
# ═══════════════════════════════════════════════════════════════════════

@dataclass
class LifeConfig:
    """Knobs for a pipeline run. Validated on construction."""

    width: int = DEFAULT_WIDTH
    height: int = DEFAULT_HEIGHT
    steps_per_epoch: int = DEFAULT_STEPS
    seed: int | None = None
    reseed: bool = True
    max_waves: int | None = None     # None = until cancelled
    delay_ms: float = 0.0            # display pacing
    log_path: Path | None = LOG_PATH

    def __post_init__(self) -> None:
        _check_dims(self.width, self.height)
        _check_positive_int("steps_per_epoch", self.steps_per_epoch)
        if self.max_waves is not None:
            _check_positive_int("max_waves", self.max_waves)
        if self.delay_ms < 0:
            raise ValueError(f"delay_ms must be >= 0, got {self.delay_ms}")
        if self.log_path is not None:
            self.log_path = Path(self.log_path)

    @classmethod
    def from_args(cls, args: Any) -> LifeConfig:
        """Build a config from an argparse namespace (see life_display.cli)."""
        return cls(
            width=args.width,
            height=args.height,
            steps_per_epoch=args.steps,
            seed=args.seed,
            reseed=not args.no_reseed,
            max_waves=args.waves,
            delay_ms=args.delay,
            log_path=None if args.no_log else args.log,
        )


# ═══════════════════════════════════════════════════════════════════════
#  Field
# ═══════════════════════════════════════════════════════════════════════

class Field:
    """A two-dimensional field of cells on a torus.

    Cells live in a bool array of shape (h, w), indexed [y, x]. Reads wrap
    around both axes; writes must already be in range.
    """

    __slots__ = ("w", "h", "cells")

    def __init__(self, w: int, h: int) -> None:
        _check_dims(w, h)
        self.w: int = int(w)
        self.h: int = int(h)
        self.cells: NDArray[np.bool_] = np.zeros((self.h, self.w), dtype=np.bool_)

    def set(self, x: int, y: int, alive: bool) -> None:
        """Set the cell at exact coordinates (no wrapping)."""
        if not (0 <= x < self.w and 0 <= y < self.h):
            raise IndexError(
                f"cell ({x}, {y}) outside {self.w}x{self.h} field"
            )
        self.cells[y, x] = alive

    def alive(self, x: int, y: int) -> bool:
        """Report whether a cell is alive, wrapping x and y toroidally.

        An x of -1 reads column w-1; an x of w reads column 0.
        """
        return bool(self.cells[y % self.h, x % self.w])

    def next(self, x: int, y: int) -> bool:
        """State of the cell at (x, y) in the next generation."""
        n = 0
        for dy in (-1, 0, 1):
            for dx in (-1, 0, 1):
                if (dx or dy) and self.alive(x + dx, y + dy):
                    n += 1
        # exactly 3: on, exactly 2: keep, otherwise: off
        return n == 3 or (n == 2 and self.alive(x, y))

    def neighbors(self) -> NDArray[np.int16]:
        """Live-neighbour count of every cell, toroidal wrap-around."""
        return convolve(
            self.cells.astype(np.int16), NEIGHBOR_KERNEL, mode="wrap"
        )

    def step_into(self, dst: Field) -> int:
        """Write the next generation into dst. Returns how many cells changed."""
        if dst is self:
            raise ValueError("cannot step a field into itself")
        if (dst.w, dst.h) != (self.w, self.h):
            raise ValueError(
                f"field size mismatch: {self.w}x{self.h} -> {dst.w}x{dst.h}"
            )
        n = self.neighbors()
        np.logical_or(n == 3, self.cells & (n == 2), out=dst.cells)
        return int(np.count_nonzero(dst.cells != self.cells))

    def clear(self) -> None:
        self.cells.fill(False)

    def population(self) -> int:
        return int(np.count_nonzero(self.cells))

    def copy(self) -> Field:
        f = Field(self.w, self.h)
        np.copyto(f.cells, self.cells)
        return f

    @classmethod
    def from_array(cls, arr: Any) -> Field:
        """Field from any 2-D array-like; truthy entries are alive."""
        a = np.asarray(arr)
        if a.ndim != 2:
            raise ValueError(f"expected a 2-D array, got shape {a.shape}")
        h, w = a.shape
        f = cls(w, h)
        f.cells[:] = a.astype(bool)
        return f

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Field):
            return NotImplemented
        return (self.w, self.h) == (other.w, other.h) and bool(
            np.array_equal(self.cells, other.cells)
        )

    def __repr__(self) -> str:
        return f"Field({self.w}x{self.h}, pop={self.population()})"

    def __str__(self) -> str:
        return render_text(self)


# ═══════════════════════════════════════════════════════════════════════
#  The engine
# ═══════════════════════════════════════════════════════════════════════

class Life:
    """
    One wave of Conway's Game of Life.

    Two fields sit in a two-slot arena; ``_cur`` names the slot holding the
    finished generation and the other slot is scratch. A step computes into
    scratch and flips the index. Only the current field is ever handed out.

    Randomness comes from the engine's own numpy Generator, so a seed fully
    determines a run.
    """

    def __init__(
        self,
        w: int,
        h: int,
        rng: np.random.Generator | None = None,
        seed: int | None = None,
        reseed: bool = True,
        populate: bool = True,
    ) -> None:
        _check_dims(w, h)
        self.w: int = int(w)
        self.h: int = int(h)
        self.rng: np.random.Generator = (
            rng if rng is not None else np.random.default_rng(seed)
        )
        self.reseed: bool = reseed

        self._fields: tuple[Field, Field] = (Field(w, h), Field(w, h))
        self._cur: int = 0

        self.generation: int = 0

        # ── Engine telemetry (read by the pipeline and stats logger) ───
        self.changed: int = 0         # cells flipped by the last step
        self.last_event: str = ""
        self.total_reseeds: int = 0

        if populate:
            self._scatter(self.current, self.w * self.h)

    @classmethod
    def from_field(
        cls,
        field: Field,
        rng: np.random.Generator | None = None,
        seed: int | None = None,
        reseed: bool = True,
    ) -> Life:
        """An engine whose current generation is a copy of ``field``."""
        life = cls(field.w, field.h, rng=rng, seed=seed, reseed=reseed, populate=False)
        np.copyto(life.current.cells, field.cells)
        return life

    @property
    def current(self) -> Field:
        return self._fields[self._cur]

    @property
    def _scratch(self) -> Field:
        return self._fields[1 - self._cur]

    # ── Seeding ─────────────────────────────────────────────────────

    def _scatter(self, field: Field, attempts: int) -> None:
        """Set ``attempts`` uniformly random cells alive; repeats are no-ops."""
        if attempts <= 0:
            return
        xs = self.rng.integers(0, self.w, size=attempts)
        ys = self.rng.integers(0, self.h, size=attempts)
        field.cells[ys, xs] = True

    def place(self, name: str, x: int, y: int, rotation: int = 0) -> None:
        """Stamp a named pattern with its anchor at (x, y), wrapping edges.

        ``rotation`` counts quarter turns.
        """
        cells = PATTERNS.get(name)
        if cells is None:
            raise KeyError(f"unknown pattern {name!r}")
        f = self.current
        for dy, dx in cells:
            for _ in range(rotation % 4):
                dy, dx = dx, -dy
            f.set((x + dx) % self.w, (y + dy) % self.h, True)

    def clear(self) -> None:
        self.current.clear()

    # ── Simulation ──────────────────────────────────────────────────

    def step(self) -> str:
        """Advance one generation. Returns event string (empty if none)."""
        cur, nxt = self.current, self._scratch
        self.changed = cur.step_into(nxt)

        event = ""
        if self.changed == 0 and self.reseed:
            # Frozen board: nothing moved, so nothing ever will.
            self._scatter(nxt, self.w * self.h // 4)
            self.total_reseeds += 1
            event = "reseed"

        self._cur = 1 - self._cur
        self.generation += 1
        if event:
            self.last_event = event
        return event

    def population(self) -> int:
        return self.current.population()

    def __str__(self) -> str:
        return render_text(self.current)


# ═══════════════════════════════════════════════════════════════════════
#  Rendering
# ═══════════════════════════════════════════════════════════════════════

def render(field: Field) -> NDArray[np.uint8]:
    """Grayscale raster of shape (h, w): black where alive, white where dead.

    Pixel (x, y) is ``raster[y, x]``.
    """
    return np.where(field.cells, ALIVE_PIXEL, DEAD_PIXEL).astype(np.uint8)


def render_text(field: Field) -> str:
    """The field as text, ``*`` alive, one newline-terminated line per row."""
    rows = np.where(field.cells, ALIVE_CHAR, DEAD_CHAR)
    return "".join("".join(row) + "\n" for row in rows.tolist())
