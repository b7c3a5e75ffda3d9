"""Icon consistency detection."""

from .detector import Inconsistency, InconsistencyDetector

__all__ = ["Inconsistency", "InconsistencyDetector"]
