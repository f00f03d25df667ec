"""Errors raised by a reconciliation pass.

Only the fatal cases live here. Missing join targets, malformed currency or
dates and unknown payment conditions are recovered inside the pass and never
surface as exceptions.
"""

from typing import Iterable, List, Optional


class ReconciliationError(Exception):
    """Base error for reconciliation failures."""


class NoRecognizedSources(ReconciliationError):
    """None of the six expected sources were supplied to the pass."""

    message = "Nenhum arquivo CSV válido encontrado."

    def __init__(self, supplied: Optional[Iterable[str]] = None, expected: Optional[Iterable[str]] = None):
        self.supplied: List[str] = sorted(supplied or [])
        self.expected: List[str] = list(expected or [])
        detail = self.message
        if self.expected:
            detail += f" Expected any of: {', '.join(self.expected)}."
        if self.supplied:
            detail += f" Got: {', '.join(self.supplied)}."
        super().__init__(detail)


class SourceDirectoryNotFound(ReconciliationError):
    """The directory holding the exports does not exist."""

    def __init__(self, path):
        self.path = path
        super().__init__(f"Data directory not found: {path}")
