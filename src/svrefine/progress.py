"""Progress reporting handed to the annotation driver.

The driver never writes to the console itself; it talks to a
:class:`ProgressReporter`. The CLI passes a :class:`TqdmReporter`, library
callers and tests get the silent :class:`NullReporter` by default.
"""

from __future__ import annotations

from typing import Optional, Protocol

from tqdm import tqdm


class ProgressReporter(Protocol):
    def start(self, total: int, desc: str) -> None:
        ...

    def advance(self, n: int = 1) -> None:
        ...

    def close(self) -> None:
        ...


class NullReporter:
    def start(self, total: int, desc: str) -> None:
        pass

    def advance(self, n: int = 1) -> None:
        pass

    def close(self) -> None:
        pass


class TqdmReporter:
    def __init__(self, *, unit: str = "chrom", disable: bool = False) -> None:
        self.unit = unit
        self.disable = disable
        self._bar: Optional[tqdm] = None

    def start(self, total: int, desc: str) -> None:
        self.close()
        self._bar = tqdm(total=total, unit=self.unit, desc=desc, disable=self.disable)

    def advance(self, n: int = 1) -> None:
        if self._bar is not None:
            self._bar.update(n)

    def close(self) -> None:
        if self._bar is not None:
            self._bar.close()
            self._bar = None
