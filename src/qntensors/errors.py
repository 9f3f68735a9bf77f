"""Exceptions raised by the contraction engine.

The engine never recovers from any of these: they are reported to the caller
as is.
"""


class ContractionError(ValueError):
    """Base class of all errors raised while contracting tensors."""

    pass


class ShapeMismatchError(ContractionError):
    """Indices that should be contracted (or traced, or added) have different
    dimensions.
    """

    pass


class QuantumNumberMismatchError(ContractionError):
    """The quantum numbers of contracted indices are not mutually inverse."""

    pass


class BlockSizeError(ContractionError):
    """A block of the middle operand of a three-tensor `dot` does not have the
    size of the product of its partner blocks.
    """

    pass
