import numpy as np
from collections.abc import Iterable


class Qnum:
    """A quantum number: an element of a product of abelian groups.

    A `Qnum` holds a tuple of integer `charges` and a tuple of `moduli` of the
    same length. A modulus of 0 means the corresponding charge is a U(1)
    charge and is added as a usual integer. A positive modulus `n` means the
    charge is a Z_n charge and arithmetic on it is done modulo `n`. Having
    several charges in one `Qnum` allows conserving several quantities at once,
    for instance particle number and spin.

    `Qnums` are immutable and hashable, so they can be used as dictionary
    keys.
    """

    __slots__ = ("_charges", "_moduli")

    def __init__(self, charges=(0,), moduli=None):
        if not isinstance(charges, Iterable):
            charges = (charges,)
        charges = tuple(int(c) for c in charges)
        if moduli is None:
            moduli = (0,) * len(charges)
        elif not isinstance(moduli, Iterable):
            moduli = (moduli,)
        moduli = tuple(int(m) for m in moduli)
        if len(moduli) != len(charges):
            raise ValueError(
                "Qnum got %i charges but %i moduli."
                % (len(charges), len(moduli))
            )
        charges = tuple(c % m if m else c for c, m in zip(charges, moduli))
        object.__setattr__(self, "_charges", charges)
        object.__setattr__(self, "_moduli", moduli)

    @classmethod
    def u1(cls, n):
        """Return the U(1) quantum number `n`."""
        return cls((n,), (0,))

    @classmethod
    def zn(cls, n, N):
        """Return the quantum number `n` of the cyclic group Z_N."""
        return cls((n,), (N,))

    @property
    def charges(self):
        return self._charges

    @property
    def moduli(self):
        return self._moduli

    def __setattr__(self, name, value):
        raise AttributeError("Qnum is immutable.")

    # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # #
    # Group operations

    def _check_group(self, other):
        if not isinstance(other, Qnum):
            return NotImplemented
        if self._moduli != other._moduli:
            raise ValueError(
                "Can not combine quantum numbers of different groups: "
                "moduli %s and %s." % (self._moduli, other._moduli)
            )
        return True

    def __add__(self, other):
        if self._check_group(other) is NotImplemented:
            return NotImplemented
        charges = map(sum, zip(self._charges, other._charges))
        return type(self)(charges, self._moduli)

    def __sub__(self, other):
        if self._check_group(other) is NotImplemented:
            return NotImplemented
        return self + other.inv()

    def inv(self):
        """Return the group inverse."""
        return type(self)((-c for c in self._charges), self._moduli)

    __neg__ = inv

    def identity(self):
        """Return the identity element of the group `self` belongs to."""
        return type(self)((0,) * len(self._charges), self._moduli)

    def is_identity(self):
        return not any(self._charges)

    # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # #
    # Comparison and hashing

    def __eq__(self, other):
        if not isinstance(other, Qnum):
            return NotImplemented
        return (
            self._charges == other._charges and self._moduli == other._moduli
        )

    def __ne__(self, other):
        res = self.__eq__(other)
        if res is NotImplemented:
            return res
        return not res

    def __hash__(self):
        return hash((self._charges, self._moduli))

    def __repr__(self):
        if len(self._charges) == 1:
            if self._moduli[0]:
                return "Qnum(%i mod %i)" % (self._charges[0], self._moduli[0])
            return "Qnum(%i)" % self._charges[0]
        return "Qnum(%r, moduli=%r)" % (self._charges, self._moduli)

    def __reduce__(self):
        return (type(self), (self._charges, self._moduli))


# # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # #
# Vectorised helpers for the block-sparse reshaping code.


def reduce_charges(charges, moduli):
    """Take the charges in an integer array of shape ``(..., len(moduli))``
    modulo `moduli`, leaving the U(1) columns (modulus 0) as they are.
    """
    moduli = np.asarray(moduli, dtype=np.int64)
    if not moduli.any():
        return charges
    safe = np.where(moduli > 0, moduli, 1)
    return np.where(moduli > 0, np.mod(charges, safe), charges)


def charge_array(qnums, moduli):
    """Return the charges of the `Qnums` in `qnums` as an ``int64`` array of
    shape ``(len(qnums), len(moduli))``.
    """
    if not qnums:
        return np.zeros((0, len(moduli)), dtype=np.int64)
    return np.array([q.charges for q in qnums], dtype=np.int64).reshape(
        len(qnums), len(moduli)
    )


def qnums_from_array(charges, moduli):
    """The inverse of `charge_array`."""
    return [Qnum(row, moduli) for row in np.asarray(charges).tolist()]
