import numpy as np
from .qtensor import QTensor


class QTensorZN(QTensor):
    """A symmetric tensor class for the cyclic group of order N.

    See `QTensor` for the details: A `QTensorZN` is just a `QTensor` whose
    quantum numbers are added modulo N, and which accepts them as plain
    integers.
    """

    # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # #
    # Initializers and factory methods

    # We implement some of the initialization methods so that if the quantum
    # numbers aren't given in qnummat, they are automatically generated.

    def __init__(self, shape, *args, qnummat=None, **kwargs):
        if qnummat is None:
            qnummat = type(self)._shape_to_qnummat(shape)
        super(QTensorZN, self).__init__(
            shape, *args, qnummat=qnummat, **kwargs
        )

    @classmethod
    def eye(cls, dim, qnums=None, dtype=np.float64):
        """Return the identity matrix of the given dimension `dim`."""
        if qnums is None:
            qnums = cls._dim_to_qnums(dim)
        return super(QTensorZN, cls).eye(dim, qnums=qnums, dtype=dtype)

    @classmethod
    def initialize_with(cls, numpy_func, shape, *args, qnummat=None, **kwargs):
        """Return a tensor of the given `shape`, initialized with
        `numpy_func`.
        """
        if qnummat is None:
            qnummat = cls._shape_to_qnummat(shape)
        return super(QTensorZN, cls).initialize_with(
            numpy_func, shape, *args, qnummat=qnummat, **kwargs
        )

    @classmethod
    def from_ndarray(cls, a, qnummat=None, **kwargs):
        """Build a tensor out of a given NumPy array, using the provided form
        data.

        If `qnummat` is not provided, it is automatically generated based on
        the shape of `a`, see `_dim_to_qnums`. See `QTensor.from_ndarray` for
        more documentation.
        """
        if qnummat is None:
            qnummat = cls._shape_to_qnummat(np.shape(a))
        return super(QTensorZN, cls).from_ndarray(a, qnummat=qnummat, **kwargs)

    # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # #
    # Miscellaneous

    @classmethod
    def _dim_to_qnums(cls, dim):
        """Generate the default quantum numbers of an index of dimension
        `dim`: ``0, 1, ..., N-1, 0, 1, ...``.
        """
        return [i % cls.moduli[0] for i in range(dim)]

    @classmethod
    def _shape_to_qnummat(cls, shape):
        """Given the `shape` of a tensor, generate the corresponding default
        quantum numbers.
        """
        return [cls._dim_to_qnums(dim) for dim in shape]


class QTensorZ2(QTensorZN):
    """A class for Z2 symmetric tensors.

    See the parent class `QTensor` for details.
    """

    moduli = (2,)


class QTensorZ3(QTensorZN):
    """A class for Z3 symmetric tensors.

    See the parent class `QTensor` for details.
    """

    moduli = (3,)


class QTensorU1(QTensor):
    """A class for U(1) symmetric tensors.

    See the parent class `QTensor` for details.
    """

    moduli = (0,)
