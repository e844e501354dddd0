"""
Duplicating text sink.

A Tee forwards every write and flush to two sinks, in order. Wider fan-out is
built by nesting: Tee(Tee(console, aggregator), page_log) is a 3-way sink.
"""

from __future__ import annotations

from typing import Iterable, TextIO, Union


class Tee:
    """Text sink that writes to `primary` then `secondary`."""

    def __init__(self, primary: Union[TextIO, "Tee"], secondary: Union[TextIO, "Tee"]) -> None:
        self.primary = primary
        self.secondary = secondary

    @property
    def encoding(self) -> str:
        return getattr(self.primary, "encoding", None) or "utf-8"

    def writable(self) -> bool:
        return True

    def write(self, text: str) -> int:
        self.primary.write(text)
        self.secondary.write(text)
        return len(text)

    def writelines(self, lines: Iterable[str]) -> None:
        for line in lines:
            self.write(line)

    def flush(self) -> None:
        self.primary.flush()
        self.secondary.flush()


def tee(*sinks: Union[TextIO, Tee]) -> Union[TextIO, Tee]:
    """Fold sinks left to right into nested two-way tees."""

    if not sinks:
        raise ValueError("tee() needs at least one sink.")
    combined = sinks[0]
    for sink in sinks[1:]:
        combined = Tee(combined, sink)
    return combined
