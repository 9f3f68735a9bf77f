import numpy as np
from .tensorcommon import TensorCommon


class Tensor(TensorCommon, np.ndarray):
    """A wrapper class for NumPy arrays: the dense tensor variant.

    This class implements little new functionality beyond NumPy arrays, but
    provides them with the same interface that is used by the block-sparse
    `QTensor` class. `Tensors` always have ``qnummat == None`` and ``flux ==
    None``.

    Elements are stored in row-major (C) order, and all reshaping is done
    with that convention: the last index runs fastest.

    Note that `Tensor` is a subclass of both `TensorCommon` and
    `numpy.ndarray`, so many NumPy functions work directly on `Tensors`. It's
    preferable to use methods of the `Tensor` class and the functions of
    `qntensors.contractions` instead though, because it allows to easily
    switch to a block-sparse tensor without modifying the code.
    """

    # Practically all constructors of Tensor take keyword arguments like
    # qnummat and flux, and do nothing with them. This is to match the
    # interface of QTensor, where these keyword arguments are needed.

    variant = "dense"
    qnummat = None
    flux = None

    def __new__(cls, shape, *args, qnummat=None, flux=None, **kwargs):
        res = np.ndarray(tuple(shape), *args, **kwargs).view(cls)
        return res

    @classmethod
    def initialize_with(
        cls, numpy_func, shape, *args, qnummat=None, flux=None, **kwargs
    ):
        """Use the given `numpy_func` to initialize a tensor of `shape`."""
        res = numpy_func(tuple(shape), *args, **kwargs)
        return np.asarray(res).view(cls)

    @classmethod
    def eye(cls, dim, qnums=None, dtype=np.float64):
        """Return the identity matrix of the given dimension `dim`."""
        return np.eye(dim, dtype=dtype).view(cls)

    # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # #
    # To and from numpy arrays

    def to_ndarray(self):
        """Return the corresponding NumPy array, as a copy."""
        return np.array(self, copy=True).view(np.ndarray)

    @classmethod
    def from_ndarray(cls, a, qnummat=None, flux=None, **kwargs):
        """Given an NumPy array, return the corresponding `Tensor` instance."""
        if isinstance(a, np.ndarray):
            res = a.copy().view(cls)
        else:
            res = np.array(a).view(cls)
        return res

    # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # #
    # Operator methods

    def conj(self):
        """Return the complex conjugate."""
        # Ufuncs turn zero-index arrays into scalars.
        return np.asarray(np.conj(np.asarray(self))).view(type(self))

    conjugate = conj

    def allclose(self, other, *args, **kwargs):
        """Return whether self and other are nearly element-wise equal.

        See `numpy.allclose` for details.
        """
        if isinstance(other, TensorCommon):
            other = other.to_ndarray()
        return np.allclose(np.asarray(self), other, *args, **kwargs)

    # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # #
    # Miscellaneous

    def value(self):
        """For a scalar tensor, return the scalar. For a non-scalar one, raise
        a `ValueError`.
        """
        if not self.isscalar():
            raise ValueError("value called on a non-scalar tensor.")
        else:
            return self[()]

    def permute(self, order):
        """Permute the indices so that index `i` of the result is index
        ``order[i]`` of `self`. Returns a view.
        """
        return np.transpose(self, tuple(order))

    # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # #
    # The meat: matrix-form adaptation

    @staticmethod
    def is_matrix_ordered(left_inds, right_inds):
        """Return True if a tensor whose indices are split into `left_inds`
        and `right_inds` can be reshaped into a matrix without moving any
        data, i.e. if both lists are ascending and every left index comes
        before every right index.
        """
        for a, b in zip(left_inds, left_inds[1:]):
            if a >= b:
                return False
        for a, b in zip(right_inds, right_inds[1:]):
            if a >= b:
                return False
        if left_inds and right_inds and left_inds[-1] >= right_inds[0]:
            return False
        return True

    def to_matrix(self, left_inds, right_inds, conj=False):
        """Reshape the tensor into a matrix.

        The rows of the matrix run over the indices in `left_inds` and the
        columns over those in `right_inds`, in the order given, so that the
        result has ``prod(dims of left_inds)`` rows and ``prod(dims of
        right_inds)`` columns. Together the two lists must be a permutation of
        all the indices.

        If the indices are already in matrix order (see `is_matrix_ordered`)
        the buffer is merely reinterpreted. Otherwise the indices are
        transposed first, which copies the data.

        If `conj` is True the result is complex conjugated. `self` is never
        modified. The result is a plain `numpy.ndarray`.
        """
        left_inds = tuple(left_inds)
        right_inds = tuple(right_inds)
        shp = self.shape
        n_rows = int(np.prod([shp[i] for i in left_inds], dtype=np.int64))
        n_cols = int(np.prod([shp[i] for i in right_inds], dtype=np.int64))
        a = np.asarray(self)
        if not type(self).is_matrix_ordered(left_inds, right_inds):
            a = np.transpose(a, left_inds + right_inds)
        res = np.reshape(a, (n_rows, n_cols))
        if conj and np.iscomplexobj(res):
            # np.conj makes a new array, so self is left untouched.
            res = np.conj(res)
        return res
