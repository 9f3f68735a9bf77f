"""Element type promotion for contractions.

The element type of a contraction result is decided by `promote`, an explicit
function over the small closed set of numeric kinds in `NumericKind`, rather
than left to whatever the multiplication routine happens to return.
"""
import numbers
from enum import Enum

import numpy as np


class NumericKind(Enum):
    integer = "integer"
    real32 = "real32"
    real64 = "real64"
    complex64 = "complex64"
    complex128 = "complex128"


_DTYPES = {
    NumericKind.integer: np.dtype(np.int64),
    NumericKind.real32: np.dtype(np.float32),
    NumericKind.real64: np.dtype(np.float64),
    NumericKind.complex64: np.dtype(np.complex64),
    NumericKind.complex128: np.dtype(np.complex128),
}

# Every kind is described by whether it is complex and by its precision
# level: 0 for integers, 1 for single and 2 for double precision.
_TRAITS = {
    NumericKind.integer: (False, 0),
    NumericKind.real32: (False, 1),
    NumericKind.real64: (False, 2),
    NumericKind.complex64: (True, 1),
    NumericKind.complex128: (True, 2),
}


def kind_of(dtype):
    """Return the `NumericKind` of a numpy dtype.

    Booleans and integers of any width are `NumericKind.integer`. Extended
    precision floats are treated as double precision.
    """
    dtype = np.dtype(dtype)
    if dtype.kind in "biu":
        return NumericKind.integer
    if dtype.kind == "f":
        if dtype.itemsize <= 4:
            return NumericKind.real32
        return NumericKind.real64
    if dtype.kind == "c":
        if dtype.itemsize <= 8:
            return NumericKind.complex64
        return NumericKind.complex128
    raise TypeError("Unsupported element type for contraction: %s" % dtype)


def to_dtype(kind):
    """Return the numpy dtype used for results of the given kind."""
    return _DTYPES[kind]


def promote(*kinds):
    """Return the kind of the product of elements of the given kinds.

    The result is complex if any input is complex. Its precision is the
    highest input precision, except that an integer combined with a single
    precision kind gives double precision, since single precision can not
    represent all integers exactly. `promote()` with no arguments is
    `NumericKind.integer`.
    """
    is_complex = any(_TRAITS[k][0] for k in kinds)
    levels = [_TRAITS[k][1] for k in kinds]
    level = max(levels, default=0)
    if level == 1 and 0 in levels:
        level = 2
    if level == 0:
        if is_complex:
            return NumericKind.complex128
        return NumericKind.integer
    if is_complex:
        return NumericKind.complex64 if level == 1 else NumericKind.complex128
    return NumericKind.real32 if level == 1 else NumericKind.real64


def lift_by_scalar(kind, scalar):
    """Return the kind that results from multiplying elements of `kind` by the
    Python or numpy scalar `scalar`.

    Python scalars only lift the category (integer to real to complex) and
    never the precision: a `float` times a ``float32`` array stays single
    precision. numpy scalars count with their own dtype.
    """
    if isinstance(scalar, np.generic):
        return promote(kind, kind_of(scalar.dtype))
    is_complex, level = _TRAITS[kind]
    if isinstance(scalar, numbers.Integral):
        return kind
    if isinstance(scalar, numbers.Real):
        if level == 0:
            return NumericKind.real64
        return kind
    if isinstance(scalar, numbers.Complex):
        if is_complex:
            return kind
        return NumericKind.complex64 if level == 1 else NumericKind.complex128
    raise TypeError("Unsupported scalar for contraction: %r" % (scalar,))


def result_dtype(*dtypes, scalars=()):
    """Return the dtype of the product of arrays of `dtypes`, multiplied by
    and summed with the coefficients in `scalars`.
    """
    kind = promote(*map(kind_of, dtypes))
    for s in scalars:
        kind = lift_by_scalar(kind, s)
    return to_dtype(kind)
