import numpy as np


class TensorCommon:
    """A base class for `Tensor` and `QTensor`, that defines the interface the
    contraction engine relies on and implements some higher level functions
    that are common to the two.

    Every subclass has a class attribute `variant`, a string tag that the
    contraction engine uses to pick the implementation of an operation. The
    capabilities a variant must provide are matrix-form adaptation
    (`to_matrix` for dense tensors, `changeblock` and block iteration for
    block-sparse ones), `conj`, `permute`, `value` and `to_ndarray`.

    Useful also for type checking as in ``isinstance(T, TensorCommon)``.
    """

    variant = None

    # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # #
    # Initializing tensors

    @classmethod
    def empty(cls, *args, **kwargs):
        """Initialize a tensor of given form with `np.empty`."""
        return cls.initialize_with(np.empty, *args, **kwargs)

    @classmethod
    def zeros(cls, *args, **kwargs):
        """Initialize a tensor of given form with `np.zeros`."""
        return cls.initialize_with(np.zeros, *args, **kwargs)

    @classmethod
    def ones(cls, *args, **kwargs):
        """Initialize a tensor of given form with `np.ones`."""
        return cls.initialize_with(np.ones, *args, **kwargs)

    @classmethod
    def random(cls, *args, **kwargs):
        """Initialize a tensor of given form with np.random.random_sample."""
        return cls.initialize_with(np.random.random_sample, *args, **kwargs)

    # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # #
    # The interface every variant implements

    @classmethod
    def initialize_with(cls, numpy_func, *args, **kwargs):
        raise NotImplementedError

    @classmethod
    def from_ndarray(cls, a, **kwargs):
        raise NotImplementedError

    def to_ndarray(self):
        raise NotImplementedError

    def conj(self):
        raise NotImplementedError

    def permute(self, order):
        raise NotImplementedError

    def value(self):
        raise NotImplementedError

    @property
    def ndims(self):
        """The number of indices."""
        return len(self.shape)

    def isscalar(self):
        """Return whether this tensor has no indices."""
        return not bool(self.shape)

    # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # #
    # Miscellaneous

    def form_str(self):
        """Return a string that describes the form of the tensor: the `shape`,
        `qnummat` and `flux`.
        """
        s = "shape: %s\nqnummat: %s\nflux: %s" % (
            str(self.shape),
            str(self.qnummat),
            str(self.flux),
        )
        return s

    def norm_sq(self):
        """Return the Frobenius norm squared of the tensor."""
        from .contractions import ccontract

        return np.abs(ccontract(self))

    def norm(self):
        """Return the Frobenius norm of the tensor."""
        return np.sqrt(self.norm_sq())

    # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # #
    # The meat: contractions as methods
    #
    # These just call the functions of the same names in
    # qntensors.contractions, with self as the first operand.

    def contract(self, *args, **kwargs):
        """Contract `self` with another tensor, see
        `qntensors.contractions.contract`.
        """
        from .contractions import contract

        return contract(self, *args, **kwargs)

    def ccontract(self, *args, **kwargs):
        """Like `contract`, but with `self` complex conjugated."""
        from .contractions import ccontract

        return ccontract(self, *args, **kwargs)

    def contractc(self, *args, **kwargs):
        """Like `contract`, but with the other tensor complex conjugated."""
        from .contractions import contractc

        return contractc(self, *args, **kwargs)

    def ccontractc(self, *args, **kwargs):
        """Like `contract`, but with both tensors complex conjugated."""
        from .contractions import ccontractc

        return ccontractc(self, *args, **kwargs)

    def dot(self, *args, **kwargs):
        """Full scalar contraction, see `qntensors.contractions.dot`."""
        from .contractions import dot

        return dot(self, *args, **kwargs)

    def trace(self, pairs=None):
        """Trace over pairs of indices, see `qntensors.contractions.trace`."""
        from .contractions import trace

        return trace(self, pairs)
