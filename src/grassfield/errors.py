"""
Exceptions raised by the grassfield engine.
"""


class GrassfieldError(Exception):
    """Base class for all grassfield errors."""


class ConfigurationError(GrassfieldError, ValueError):
    """Invalid generation, brush, density or placement parameters."""


class GridIndexError(GrassfieldError, IndexError):
    """Grid coordinates outside the heightfield bounds."""
