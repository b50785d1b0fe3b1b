"""
Error taxonomy for ReadCore.

Structural ceilings and final fallback exhaustion surface as exceptions;
malformed markup is reported as non-fatal ``ParseDiagnostic`` entries.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence


class ReadCoreError(Exception):
    """Base exception for all ReadCore failures."""

    pass


class DocumentTooLarge(ReadCoreError):
    """Raised when the markup parser hits its element ceiling."""

    def __init__(self, count: int) -> None:
        self.count = count
        super().__init__(f"Aborting parsing markup; element ceiling exceeded at {count} elements")


class TooManyElements(ReadCoreError):
    """Raised by the extractor before any mutation when the tree is too large."""

    def __init__(self, count: int) -> None:
        self.count = count
        super().__init__(f"Aborting parsing document; {count} elements found")


class NotReadable(ReadCoreError):
    """Raised when every fallback attempt produced too little content."""

    def __init__(self, attempts: Sequence[int] = (), char_threshold: int = 0) -> None:
        self.attempts = tuple(attempts)
        self.char_threshold = char_threshold
        lengths = ", ".join(str(length) for length in self.attempts) or "none"
        super().__init__(
            f"No readable content found; attempt lengths [{lengths}] below threshold {char_threshold}"
        )


@dataclass(frozen=True, slots=True)
class ParseDiagnostic:
    """A non-fatal note about malformed markup."""

    kind: str
    message: str
    position: int = -1

    def __str__(self) -> str:
        if self.position >= 0:
            return f"{self.kind} at offset {self.position}: {self.message}"
        return f"{self.kind}: {self.message}"
