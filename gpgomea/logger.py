"""Appending line logger that keeps one file open at a time."""

from __future__ import annotations

from pathlib import Path
from typing import IO


class Logger:
    """Writes messages as lines, appending to the file named on each call."""

    def __init__(self) -> None:
        self._path: str = ""
        self._stream: IO[str] | None = None

    def log(self, message: str, path) -> None:
        """Append ``message`` and a newline to the file at ``path``."""
        path = str(Path(path))
        if path != self._path or self._stream is None:
            self.close()
            self._path = path
            self._stream = open(path, "a", encoding="utf-8")
        self._stream.write(f"{message}\n")
        self._stream.flush()

    def close(self) -> None:
        """Close the currently open file, if any."""
        if self._stream is not None:
            self._stream.close()
            self._stream = None
        self._path = ""

    def __enter__(self) -> "Logger":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


_instance: Logger | None = None


def get_logger() -> Logger:
    """The shared logger instance."""
    global _instance
    if _instance is None:
        _instance = Logger()
    return _instance