"""
Frame pipeline for the torus Life viewer.

Architecture:
  A producer thread owns the engine. It steps, renders each generation to
  a grayscale raster and hands the Frame over a zero-capacity channel: the
  send only returns once the consumer has taken the frame, so frames are
  never buffered, dropped or reordered. The consumer runs on the calling
  thread (curses wants the main thread), shows each frame and polls the
  display for a quit request.

  Shutdown is a shared cancel Event plus closing the channel. Closing wakes
  a producer blocked in send, so stopping never leaves a thread behind.

Stats go to a CSV file beside the scripts for post-hoc inspection.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Any, ClassVar, Protocol

import numpy as np
from numpy.typing import NDArray

from life import Life, LifeConfig, render


# ═══════════════════════════════════════════════════════════════════════
#  Errors
# ═══════════════════════════════════════════════════════════════════════

class PipelineError(RuntimeError):
    """The producer failed; the frame sequence cannot continue."""


class RenderError(PipelineError):
    """A raster could not be produced or presented."""


class ChannelClosed(Exception):
    """The channel was closed while sending or receiving."""


# ═══════════════════════════════════════════════════════════════════════
#  Frames and the handoff channel
# ═══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True, eq=False)
class Frame:
    """One rendered generation, as handed from producer to consumer."""

    wave: int
    generation: int
    raster: NDArray[np.uint8]
    population: int
    event: str = ""


_EMPTY: Any = object()


class FrameChannel:
    """Unbuffered rendezvous channel between exactly one sender and receiver.

    ``send`` offers an item and blocks until ``recv`` has taken it.
    ``recv`` blocks until an item is offered. ``close`` wakes everyone up;
    afterwards both sides raise (``recv`` raises the close error if given).
    """

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._slot: Any = _EMPTY
        self._sent: int = 0
        self._taken: int = 0
        self._closed: bool = False
        self._error: BaseException | None = None

    @property
    def closed(self) -> bool:
        return self._closed

    def send(self, item: Any) -> None:
        with self._cond:
            while self._slot is not _EMPTY and not self._closed:
                self._cond.wait()
            if self._closed:
                raise ChannelClosed()
            self._slot = item
            self._sent += 1
            ticket = self._sent
            self._cond.notify_all()
            while self._taken < ticket and not self._closed:
                self._cond.wait()
            if self._taken < ticket:
                # Closed before anyone took it: withdraw the offer.
                self._slot = _EMPTY
                raise ChannelClosed()

    def recv(self) -> Any:
        with self._cond:
            while self._slot is _EMPTY and not self._closed:
                self._cond.wait()
            if self._slot is _EMPTY or self._closed:
                if self._error is not None:
                    raise self._error
                raise ChannelClosed()
            item = self._slot
            self._slot = _EMPTY
            self._taken += 1
            self._cond.notify_all()
            return item

    def close(self, error: BaseException | None = None) -> None:
        """Close the channel. The first error given wins."""
        with self._cond:
            if error is not None and self._error is None:
                self._error = error
            self._closed = True
            self._cond.notify_all()


# ═══════════════════════════════════════════════════════════════════════
#  Display contract
# ═══════════════════════════════════════════════════════════════════════

class Display(Protocol):
    def show(self, frame: Frame) -> None: ...

    def poll_quit(self) -> bool: ...


# ═══════════════════════════════════════════════════════════════════════
#  Stats logger
# ═══════════════════════════════════════════════════════════════════════

class StatsLogger:
    """Writes per-generation engine telemetry to CSV."""

    HEADER: ClassVar[str] = "wave,gen,time_s,population,changed,event\n"

    def __init__(self, path: Path | None) -> None:
        self._path = path
        self._fh: IO[str] | None = None
        self._t0: float = time.monotonic()

    @property
    def active(self) -> bool:
        return self._fh is not None

    def open(self) -> None:
        if self._path is None:
            return
        try:
            self._fh = open(self._path, "w")
            self._fh.write(self.HEADER)
            self._fh.flush()
        except OSError:
            self._fh = None

    def log(
        self,
        wave: int,
        gen: int,
        population: int,
        changed: int,
        event: str = "",
    ) -> None:
        if self._fh is None:
            return
        t = time.monotonic() - self._t0
        self._fh.write(f"{wave},{gen},{t:.3f},{population},{changed},{event}\n")
        # Flush on events or periodically
        if event or gen % 50 == 0:
            try:
                self._fh.flush()
            except OSError:
                pass

    def close(self) -> None:
        if self._fh is not None:
            try:
                self._fh.close()
            except OSError:
                pass
            self._fh = None


# ═══════════════════════════════════════════════════════════════════════
#  Producer / consumer
# ═══════════════════════════════════════════════════════════════════════

def produce(
    channel: FrameChannel,
    config: LifeConfig,
    cancel: threading.Event,
    rng: np.random.Generator,
    logger: StatsLogger | None = None,
) -> None:
    """Run waves of Life, sending one Frame per generation.

    Returns when cancelled, when the channel closes, or after
    ``config.max_waves`` waves (closing the channel behind it). Any other
    failure closes the channel with a PipelineError for the consumer.
    """
    wave = 0
    try:
        while not cancel.is_set():
            if config.max_waves is not None and wave >= config.max_waves:
                channel.close()
                return
            wave += 1
            life = Life(config.width, config.height, rng=rng, reseed=config.reseed)
            if logger is not None:
                logger.log(wave, 0, life.population(), 0, "wave")

            for _ in range(config.steps_per_epoch):
                if cancel.is_set():
                    return
                event = life.step()
                try:
                    raster = render(life.current)
                except Exception as e:
                    raise RenderError(
                        f"render failed at wave {wave} gen {life.generation}: {e}"
                    ) from e
                pop = life.population()
                if logger is not None:
                    logger.log(wave, life.generation, pop, life.changed, event)
                channel.send(
                    Frame(
                        wave=wave,
                        generation=life.generation,
                        raster=raster,
                        population=pop,
                        event=event,
                    )
                )
    except ChannelClosed:
        return
    except PipelineError as e:
        channel.close(e)
    except Exception as e:
        err = PipelineError(f"producer failed: {e}")
        err.__cause__ = e
        channel.close(err)


def consume(channel: FrameChannel, display: Display) -> int:
    """Show frames until the display asks to quit or the channel closes.

    Returns the number of frames shown. A producer failure is re-raised.
    """
    shown = 0
    while True:
        try:
            frame = channel.recv()
        except ChannelClosed:
            return shown
        display.show(frame)
        shown += 1
        if display.poll_quit():
            return shown


class Pipeline:
    """Wires a producer thread to a display over a FrameChannel."""

    def __init__(
        self,
        config: LifeConfig,
        display: Display,
        rng: np.random.Generator | None = None,
        logger: StatsLogger | None = None,
    ) -> None:
        self.config = config
        self.display = display
        self.rng: np.random.Generator = (
            rng if rng is not None else np.random.default_rng(config.seed)
        )
        self.logger = logger
        self.cancel = threading.Event()
        self.channel = FrameChannel()
        self._producer: threading.Thread | None = None

    def stop(self) -> None:
        """Ask both sides to stop. Safe from any thread, idempotent."""
        self.cancel.set()
        self.channel.close()

    def run(self) -> int:
        """Run until quit, cancellation or the last wave. Returns frames shown.

        A Pipeline runs once; build a new one for another run.
        """
        if self._producer is not None:
            raise RuntimeError("pipeline already ran; create a new Pipeline")
        self._producer = threading.Thread(
            target=produce,
            args=(self.channel, self.config, self.cancel, self.rng, self.logger),
            name="life-producer",
            daemon=True,
        )
        self._producer.start()
        try:
            return consume(self.channel, self.display)
        finally:
            self.stop()
            self._producer.join()

    @property
    def producer_alive(self) -> bool:
        return self._producer is not None and self._producer.is_alive()
