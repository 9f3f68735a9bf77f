"""Dense matrix multiplication and the loop that runs the block products of
block-sparse contractions.
"""
import numpy as np
import scipy.linalg.blas as blas
from concurrent.futures import ThreadPoolExecutor
from . import config
from .dtypes import result_dtype

# Element types that BLAS gemm handles.
_BLAS_DTYPES = frozenset(
    map(np.dtype, (np.float32, np.float64, np.complex64, np.complex128))
)


def matmul(C, D, Z=None, alpha=1, beta=1, dtype=None):
    """Return ``alpha * C . D`` or, if `Z` is given, ``alpha * C . D + beta *
    Z``, for two-dimensional arrays `C` and `D`.

    The element type of the result is `dtype`, by default the promotion of
    the types of the operands and the coefficients. For floating point and
    complex types the product is done with BLAS gemm, with `alpha` and `beta`
    fused into the call. For integers, or when some dimension is zero, plain
    numpy multiplication is used instead.

    `Z` is never modified.
    """
    if dtype is None:
        if Z is None:
            dtype = result_dtype(C.dtype, D.dtype, scalars=(alpha,))
        else:
            dtype = result_dtype(
                C.dtype, D.dtype, Z.dtype, scalars=(alpha, beta)
            )
    dtype = np.dtype(dtype)
    C = np.asarray(C).astype(dtype, copy=False)
    D = np.asarray(D).astype(dtype, copy=False)
    if Z is not None:
        Z = np.asarray(Z).astype(dtype, copy=False)
    if dtype in _BLAS_DTYPES and 0 not in C.shape + D.shape:
        gemm = blas.get_blas_funcs("gemm", (C, D))
        if Z is None:
            return gemm(alpha, C, D)
        # Without overwrite_c gemm works on a copy of Z.
        return gemm(alpha, C, D, beta=beta, c=Z, overwrite_c=False)
    res = np.dot(C, D)
    if alpha != 1:
        res = res * alpha
    if Z is not None:
        res = res + beta * Z
    return res.astype(dtype, copy=False)


def parallel_for(n, func, num_threads=None):
    """Call ``func(slot)`` for every ``slot in range(n)``.

    The calls must be independent of each other. With more than one thread
    (by default `config.get_num_threads()`) they are distributed over a thread
    pool. In either case the function returns only once all calls have
    finished, and exceptions raised by `func` are re-raised.
    """
    if num_threads is None:
        num_threads = config.get_num_threads()
    num_threads = min(num_threads, n)
    if num_threads <= 1:
        for slot in range(n):
            func(slot)
        return
    with ThreadPoolExecutor(max_workers=num_threads) as executor:
        # list() waits for all the calls and re-raises their exceptions.
        list(executor.map(func, range(n)))
