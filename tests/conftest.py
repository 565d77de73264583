from __future__ import annotations

import pytest

from life_pipeline import Frame


class RecordingDisplay:
    """Keeps every frame it is shown; quits after ``quit_after`` frames."""

    def __init__(self, quit_after: int | None = None) -> None:
        self.quit_after = quit_after
        self.frames: list[Frame] = []

    def show(self, frame: Frame) -> None:
        self.frames.append(frame)

    def poll_quit(self) -> bool:
        return self.quit_after is not None and len(self.frames) >= self.quit_after

    @property
    def order(self) -> list[tuple[int, int]]:
        return [(f.wave, f.generation) for f in self.frames]


class FakeWindow:
    """Minimal curses.window stub that records addstr calls."""

    def __init__(self, rows: int, cols: int, keys: list[int] | None = None) -> None:
        self._rows = rows
        self._cols = cols
        self.keys = list(keys or [])
        self.lines: dict[int, str] = {}
        self.refreshed = 0

    def getmaxyx(self) -> tuple[int, int]:
        return self._rows, self._cols

    def addstr(self, y: int, x: int, text: str, *attr: int) -> None:
        self.lines[y] = text

    def erase(self) -> None:
        self.lines.clear()

    def refresh(self) -> None:
        self.refreshed += 1

    def nodelay(self, flag: bool) -> None:
        pass

    def timeout(self, ms: int) -> None:
        pass

    def getch(self) -> int:
        return self.keys.pop(0) if self.keys else -1


@pytest.fixture
def make_display():
    return RecordingDisplay


@pytest.fixture
def fake_window():
    return FakeWindow
