import threading
import numpy as np
import pytest
from qntensors.kernels import matmul, parallel_for
from qntensors.dtypes import (
    NumericKind,
    kind_of,
    promote,
    result_dtype,
)


@pytest.mark.parametrize(
    "dtype", [np.float32, np.float64, np.complex64, np.complex128, np.int64]
)
def test_matmul(dtype):
    """Compare matmul with NumPy, with and without Z."""
    C = (10 * np.random.random_sample((4, 3))).astype(dtype)
    D = (10 * np.random.random_sample((3, 5))).astype(dtype)
    Z = (10 * np.random.random_sample((4, 5))).astype(dtype)
    Z_orig = Z.copy()
    res = matmul(C, D)
    assert res.dtype == dtype
    assert np.allclose(res, np.dot(C, D), rtol=1e-4)
    res = matmul(C, D, Z=Z, alpha=2, beta=3)
    assert res.dtype == dtype
    assert np.allclose(res, 2 * np.dot(C, D) + 3 * Z, rtol=1e-4)
    assert np.all(Z == Z_orig)


def test_matmul_zero_dimensions():
    C = np.ones((3, 0))
    D = np.ones((0, 2))
    assert np.all(matmul(C, D) == np.zeros((3, 2)))
    Z = np.ones((3, 2))
    assert np.all(matmul(C, D, Z=Z, beta=2) == 2 * Z)
    assert matmul(np.ones((0, 2)), np.ones((2, 4))).shape == (0, 4)


def test_matmul_fortran_ordered_input():
    C = np.asfortranarray(np.random.random_sample((3, 3)))
    D = np.random.random_sample((3, 3)).T
    assert np.allclose(matmul(C, D), np.dot(C, D))


def test_parallel_for():
    out = [None] * 50
    main_thread = threading.get_ident()
    threads = set()

    def work(slot):
        out[slot] = slot ** 2
        threads.add(threading.get_ident())

    parallel_for(len(out), work, num_threads=4)
    assert main_thread not in threads
    assert out == [i ** 2 for i in range(50)]
    parallel_for(len(out), lambda slot: out.__setitem__(slot, 0), 1)
    assert out == [0] * 50
    parallel_for(0, work, num_threads=4)


def test_parallel_for_reraises():
    def work(slot):
        if slot == 3:
            raise RuntimeError("slot 3 failed")

    with pytest.raises(RuntimeError):
        parallel_for(10, work, num_threads=3)
    with pytest.raises(RuntimeError):
        parallel_for(10, work, num_threads=1)


def test_kinds():
    assert kind_of(np.bool_) == NumericKind.integer
    assert kind_of(np.int8) == NumericKind.integer
    assert kind_of(np.uint32) == NumericKind.integer
    assert kind_of(np.float16) == NumericKind.real32
    assert kind_of(np.float32) == NumericKind.real32
    assert kind_of(np.float64) == NumericKind.real64
    assert kind_of(np.complex64) == NumericKind.complex64
    assert kind_of(np.complex128) == NumericKind.complex128
    with pytest.raises(TypeError):
        kind_of(np.dtype("U3"))


def test_promote():
    K = NumericKind
    assert promote() == K.integer
    assert promote(K.integer, K.integer) == K.integer
    assert promote(K.integer, K.real32) == K.real64
    assert promote(K.real32, K.real32) == K.real32
    assert promote(K.real32, K.real64) == K.real64
    assert promote(K.real32, K.complex64) == K.complex64
    assert promote(K.real64, K.complex64) == K.complex128
    assert promote(K.integer, K.complex64) == K.complex128
    # The result does not depend on the order of the arguments.
    kinds = list(K)
    for a in kinds:
        for b in kinds:
            assert promote(a, b) == promote(b, a)
            assert promote(a, promote(a, b)) == promote(a, b)


def test_result_dtype_scalars():
    assert result_dtype(np.float32, scalars=(2.0,)) == np.float32
    assert result_dtype(np.float32, scalars=(1j,)) == np.complex64
    assert result_dtype(np.int64, scalars=(1, 2)) == np.int64
    assert result_dtype(np.int64, scalars=(0.5,)) == np.float64
    assert result_dtype(np.int64, scalars=(1j,)) == np.complex128
    assert result_dtype(np.float32, scalars=(np.float64(2),)) == np.float64
