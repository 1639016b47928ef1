"""
Exceptions
==========

Error types raised by the pipeline. Every error is terminal for the run.
"""


class ForestFiresError(Exception):
    """Base class for pipeline errors."""


class DataFormatError(ForestFiresError, ValueError):
    """Input file is malformed or does not match the expected schema."""


class NumericDomainError(ForestFiresError, ValueError):
    """A value lies outside its documented valid range."""


class InputLengthMismatchError(ForestFiresError, ValueError):
    """Actual and predicted sequences have different lengths."""
