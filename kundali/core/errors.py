# kundali/core/errors.py
from __future__ import annotations


class KundaliError(ValueError):
    """
    Base exception for all chart computation failures.

    Carries a stable machine-readable `code` next to the human message so the
    HTTP layer can map it without string matching.
    """
    code = "kundali_error"

    def __init__(self, message: str, *, code: str | None = None):
        if code is not None:
            self.code = code
        self.message = message
        super().__init__(f"{self.code}: {message}")


class NumericDegeneracyError(KundaliError):
    """
    Raised when the geometry is undefined for the request (polar latitude in
    the ascendant formula, non-finite intermediates).
    """
    code = "numeric_degeneracy"
