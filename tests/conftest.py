"""Define utility functions and set up pytest fixtures for the test suite."""
import pytest
import numpy as np
from qntensors import Tensor
from qntensors import QTensorZ2, QTensorU1, QTensorZ3


@pytest.fixture(scope="module")
def tensorclass(request):
    """A pytest fixture that returns the tensor class currently being tested.
    """
    return request.param


def pytest_addoption(parser):
    """Add command line options for setting the tensorclass(es) to test and
    the number of times to repeat each test.
    """
    parser.addoption(
        "--tensorclass",
        action="append",
        default=[],
        help="Tensor class(es) to run tests on.",
    )
    parser.addoption(
        "--n_iters",
        type=int,
        default=20,
        help="Number of times to run each test on new random input.",
    )


def parse_tensorclass(s):
    """Take a string representing a tensorclass, such as "QTensorZ2", and
    return the corresponding class.
    """
    s = s.lower().strip()
    if s == "tensor":
        return Tensor
    elif s == "qtensorz2":
        return QTensorZ2
    elif s == "qtensorz3":
        return QTensorZ3
    elif s == "qtensoru1":
        return QTensorU1
    else:
        msg = "Unknown tensor class name: {}".format(s)
        raise ValueError(msg)


def pytest_generate_tests(metafunc):
    """Set up passing the command line arguments for n_iters and for the
    tensorclass fixture, and give the latter's default value.
    """
    default_classes = ["Tensor", "QTensorZ2", "QTensorU1", "QTensorZ3"]
    tensorclass_opts = (
        metafunc.config.getoption("tensorclass") or default_classes
    )
    tensorclasses = list(map(parse_tensorclass, tensorclass_opts))
    if "tensorclass" in metafunc.fixturenames:
        metafunc.parametrize("tensorclass", tensorclasses, indirect=True)
    n_iters = metafunc.config.getoption("n_iters")
    if "n_iters" in metafunc.fixturenames:
        metafunc.parametrize("n_iters", [n_iters])


@pytest.fixture
def n_qnums(tensorclass):
    """Return the number of different possible quantum numbers for the given
    tensorclass, or None if the answer is infinite or undefined.
    """
    if tensorclass == QTensorZ2:
        n_qnums = 2
    elif tensorclass == QTensorZ3:
        n_qnums = 3
    else:
        n_qnums = None
    return n_qnums


@pytest.fixture
def rshape():
    """Return a function that generates random shapes."""

    def _rshape(n=None, nlow=0, nhigh=5, dimlow=1, dimhigh=5):
        """Return a random shape with `n` indices, or a random number of
        indices between `nlow` and `nhigh` (exclusive). The dimensions are
        between `dimlow` and `dimhigh` (exclusive).
        """
        if n is None:
            n = np.random.randint(nlow, high=nhigh)
        return [int(np.random.randint(dimlow, high=dimhigh)) for _ in range(n)]

    return _rshape


@pytest.fixture
def rqnummat(n_qnums):
    """Return a function that generates random `qnummat`s for symmetric
    tensors.
    """

    def _rqnummat(shape, qlow=-2, qhigh=2):
        """Return a random `qnummat` for a symmetric tensor of the given
        `shape`.

        For the `QTensorZN` classes quantum numbers are randomly picked from
        `range(0, n_qnums)`. For `QTensorU1`, they are randomly picked from
        `range(qlow, qhigh+1)`. Tensors ignore the `qnummat`, so for them
        the same random integers are generated.
        """
        if n_qnums is not None:
            qlow = 0
            qhigh = n_qnums - 1
        return [
            [int(q) for q in np.random.randint(qlow, qhigh + 1, size=dim)]
            for dim in shape
        ]

    return _rqnummat


@pytest.fixture
def rflux(n_qnums):
    """Return a function that generates random fluxes for symmetric tensors.
    """

    def _rflux(low=-1, high=1):
        """Return a random flux, an integer between `low` and `high`,
        inclusive. The range is small so that most random tensors have some
        non-zero blocks.
        """
        if n_qnums is not None:
            low = 0
            high = n_qnums - 1
        return int(np.random.randint(low, high + 1))

    return _rflux


def inverse_qnums(qnums):
    """The inverse quantum numbers of a list of integer quantum numbers."""
    return [-q for q in qnums]


@pytest.fixture
def rtensor(tensorclass, rshape, rqnummat, rflux):
    """Return a function that generates a random tensor of the given
    tensorclass, using the given fixtures for generating form data.
    """

    def _rtensor(
        shape=None,
        qnummat=None,
        flux=None,
        n=None,
        nlow=0,
        nhigh=5,
        cmplx=True,
        **kwargs
    ):
        """Return a random tensor of the given form data.

        Full form data (`shape`, `qnummat`, `flux`) can be provided, in which
        case only the elements of the tensor are random. Missing form data is
        generated randomly, with `n`, `nlow` and `nhigh` passed to `rshape`.

        `cmplx` sets whether the tensor should be complex instead of real,
        and is by default True.
        """
        if shape is None:
            shape = rshape(n=n, nlow=nlow, nhigh=nhigh)
        if qnummat is None:
            qnummat = rqnummat(shape)
        if flux is None:
            flux = rflux()
        real = tensorclass.random(shape, qnummat=qnummat, flux=flux, **kwargs)
        if cmplx:
            imag = tensorclass.random(
                shape, qnummat=qnummat, flux=flux, **kwargs
            )
            res = tensorclass.from_ndarray(
                real.to_ndarray() + 1j * imag.to_ndarray(),
                qnummat=qnummat,
                flux=flux,
            )
        else:
            res = real
        return res

    return _rtensor


@pytest.fixture
def rcontraction(rshape, rqnummat, rtensor):
    """Return a function that generates a random pair of tensors and indices
    to contract them over.
    """

    def _rcontraction(conj_A=False, conj_B=False, n_con=None, cmplx=True):
        """Return ``A, iA, B, iB``, where the indices `iA` of `A` can be
        contracted with the indices `iB` of `B`.

        The quantum numbers of the contracted indices of `B` are set so that
        they are inverse to those of `A` once the conjugations given by
        `conj_A` and `conj_B` are applied.
        """
        if n_con is None:
            shape_A = rshape(nlow=0, nhigh=4)
            n_con = np.random.randint(0, len(shape_A) + 1)
        else:
            shape_A = rshape(nlow=n_con, nhigh=max(n_con + 1, 4))
        shape_B = rshape(nlow=n_con, nhigh=max(n_con + 1, 4))
        iA = [int(i) for i in np.random.permutation(len(shape_A))[:n_con]]
        iB = [int(i) for i in np.random.permutation(len(shape_B))[:n_con]]
        qnummat_A = rqnummat(shape_A)
        qnummat_B = rqnummat(shape_B)
        for a, b in zip(iA, iB):
            shape_B[b] = shape_A[a]
            if conj_A == conj_B:
                qnummat_B[b] = inverse_qnums(qnummat_A[a])
            else:
                qnummat_B[b] = list(qnummat_A[a])
        A = rtensor(shape=shape_A, qnummat=qnummat_A, cmplx=cmplx)
        B = rtensor(shape=shape_B, qnummat=qnummat_B, cmplx=cmplx)
        return A, iA, B, iB

    return _rcontraction
