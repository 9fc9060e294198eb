"""Exceptions raised by the baking and sampling core."""


class DemBakeryError(Exception):
    """Base class for all dem-bakery errors."""


class DimensionMismatch(DemBakeryError, ValueError):
    """Decoded raster dimensions differ from the configured profile."""


class DecodeFailure(DemBakeryError):
    """The raster could not be decoded into unsigned-integer pixels."""


class IndexOutOfBounds(DemBakeryError, IndexError):
    """A pixel or tile index lies outside the addressed grid."""


class CorruptChunk(DemBakeryError, ValueError):
    """A chunk's stored fields are inconsistent or unreadable."""
