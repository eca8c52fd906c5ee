"""
Exception types raised by the analysis pipeline.
"""
from __future__ import annotations


class QkdBerError(Exception):
    """Base class for errors that abort a run."""


class ConfigurationError(QkdBerError, ValueError):
    """Invalid analysis parameters (e.g. window wider than the histogram)."""


class InputError(QkdBerError, OSError):
    """Input source missing or unreadable."""


class OutputError(QkdBerError, OSError):
    """Report or figure could not be written."""
