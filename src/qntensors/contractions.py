"""The contraction engine: `contract` and its conjugated variants `ccontract`,
`contractc` and `ccontractc`, full contractions with `dot`, partial traces
with `trace`, and the diagnostic `checkcontract`.

All the functions work on both dense `Tensors` and block-sparse `QTensors`,
picking the implementation based on the `variant` of the operands. Mixing a
dense and a block-sparse operand in one call is allowed, but the block-sparse
one is then converted to a dense tensor, and a warning is raised.

A contraction always reduces to a matrix product: the first operand is
brought to a matrix with its free indices as rows and its contracted indices
as columns, the second operand the other way around, and the two are
multiplied. For block-sparse tensors the matrices are block diagonal, and
only blocks with matching quantum numbers are multiplied.

Indices are counted from zero. The free indices of the result are those of
the first operand followed by those of the second, both in their original
order.
"""
import logging
import warnings
import numpy as np
from numbers import Integral
from . import config
from .errors import (
    ContractionError,
    ShapeMismatchError,
    QuantumNumberMismatchError,
)
from .blockmatch import match_blocks
from .dtypes import result_dtype
from .kernels import matmul, parallel_for
from .tensorcommon import TensorCommon
from .tensor import Tensor

logger = logging.getLogger(__name__)


# # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # #
# Element transforms for dot.


def identity(x):
    """Leave elements as they are."""
    return x


def adjoint(x):
    """Complex conjugate elements."""
    return np.conj(x)


# # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # #
# Helpers


def _as_tensor(T):
    """Wrap plain arrays and nested lists as dense `Tensors`."""
    if isinstance(T, TensorCommon):
        return T
    return Tensor.from_ndarray(np.asarray(T))


def _densify(T):
    if T.variant == "dense":
        return T
    return Tensor.from_ndarray(T.to_ndarray())


def _common_variant(*tensors):
    """Return the variant in which the given tensors should be handled, and
    the tensors, converted to dense ones if the variants are mixed.
    """
    variants = set(T.variant for T in tensors)
    if len(variants) == 1:
        return variants.pop(), tensors
    warnings.warn(
        "Operands of variants %s mixed, converting all of them to dense "
        "tensors." % sorted(variants)
    )
    return "dense", tuple(map(_densify, tensors))


def _index_list(inds, ndims, name):
    """Turn `inds`, an integer or an iterable of integers, into a list of
    indices of a tensor with `ndims` indices.
    """
    if isinstance(inds, Integral):
        inds = [inds]
    inds = [int(i) for i in inds]
    for i in inds:
        if not 0 <= i < ndims:
            raise ContractionError(
                "Index %i of %s out of range for a tensor with %i indices."
                % (i, name, ndims)
            )
    if len(set(inds)) != len(inds):
        raise ContractionError("Repeated indices %s in %s." % (inds, name))
    return inds


def _free_inds(ndims, inds):
    return [i for i in range(ndims) if i not in inds]


def _check_shapes(A, iA, B, iB):
    if len(iA) != len(iB):
        raise ShapeMismatchError(
            "Contracting %i indices of A with %i indices of B."
            % (len(iA), len(iB))
        )
    for a, b in zip(iA, iB):
        if A.shape[a] != B.shape[b]:
            raise ShapeMismatchError(
                "Dimension mismatch in contraction: index %i of A has "
                "dimension %i, index %i of B has dimension %i."
                % (a, A.shape[a], b, B.shape[b])
            )


def _eff(q, conj):
    return q.inv() if conj else q


def _conj_block(v, conj):
    if conj and np.iscomplexobj(v):
        return np.conj(v)
    return v


# # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # #
# The two implementations of the index form of contract


def _contract_dense(A, iA, B, iB, conj_A, conj_B, Z, alpha, beta, dtype):
    free_A = _free_inds(A.ndims, iA)
    free_B = _free_inds(B.ndims, iB)
    C = A.to_matrix(free_A, iA, conj=conj_A)
    D = B.to_matrix(iB, free_B, conj=conj_B)
    n_free = len(free_A)
    if Z is not None:
        Z = Z.to_matrix(range(n_free), range(n_free, Z.ndims))
    res = matmul(C, D, Z=Z, alpha=alpha, beta=beta, dtype=dtype)
    shape = [A.shape[i] for i in free_A] + [B.shape[i] for i in free_B]
    return np.reshape(res, shape).view(Tensor)


def _contract_blocksparse(A, iA, B, iB, conj_A, conj_B, Z, alpha, beta, dtype):
    free_A = _free_inds(A.ndims, iA)
    free_B = _free_inds(B.ndims, iB)
    A = A.changeblock(free_A, iA)
    B = B.changeblock(iB, free_B)
    pairs = match_blocks((conj_A, conj_B), A, B)
    logger.debug(
        "Block-sparse contraction: %i blocks in A, %i in B, %i matched.",
        len(A.blocks),
        len(B.blocks),
        len(pairs),
    )

    n_free = len(free_A) + len(free_B)
    currblock = (range(len(free_A)), range(len(free_A), n_free))
    qnummat = [
        [_eff(q, conj_A) for q in A.qnummat[i]] for i in free_A
    ] + [[_eff(q, conj_B) for q in B.qnummat[i]] for i in free_B]
    res = type(A)(
        [A.shape[i] for i in free_A] + [B.shape[i] for i in free_B],
        qnummat=qnummat,
        flux=_eff(A.flux, conj_A) + _eff(B.flux, conj_B),
        currblock=currblock,
        dtype=dtype,
    )

    # For every pair, the block of Z with the same row quantum number, if
    # any.
    if Z is not None:
        Z = Z.changeblock(*currblock)
        z_of_q = Z._block_dict()
        z_blocks = [
            z_of_q.pop(_eff(A.qblocksum[a][0], conj_A), None)
            for a, _ in pairs
        ]
    else:
        z_of_q = {}
        z_blocks = [None] * len(pairs)

    # Every slot writes only to its own entry of products.
    products = [None] * len(pairs)

    def multiply(slot):
        a, b = pairs[slot]
        C = _conj_block(A.blocks[a], conj_A)
        D = _conj_block(B.blocks[b], conj_B)
        z = z_blocks[slot]
        if z is None:
            products[slot] = matmul(C, D, alpha=alpha, dtype=dtype)
        else:
            products[slot] = matmul(
                C, D, Z=Z.blocks[z], alpha=alpha, beta=beta, dtype=dtype
            )

    parallel_for(len(pairs), multiply)

    for (a, b), block in zip(pairs, products):
        if block.size == 0:
            continue
        res.blocks.append(block)
        res.blockindex.append((A.blockindex[a][0], B.blockindex[b][1]))
        res.qblocksum.append(
            (_eff(A.qblocksum[a][0], conj_A), _eff(B.qblocksum[b][1], conj_B))
        )
    # Blocks of Z that no product landed on.
    for z in sorted(z_of_q.values()):
        block = Z.blocks[z]
        if block.size == 0:
            continue
        res.blocks.append(np.asarray(beta * block).astype(dtype, copy=False))
        res.blockindex.append(Z.blockindex[z])
        res.qblocksum.append(Z.qblocksum[z])
    return res


_CONTRACTORS = {
    "dense": _contract_dense,
    "blocksparse": _contract_blocksparse,
}


def _contract_inds(conj_A, conj_B, A, iA, B, iB, Z, alpha, beta, order):
    A, B = _as_tensor(A), _as_tensor(B)
    iA = _index_list(iA, A.ndims, "A")
    iB = _index_list(iB, B.ndims, "B")
    _check_shapes(A, iA, B, iB)
    if Z is None:
        variant, (A, B) = _common_variant(A, B)
    else:
        Z = _as_tensor(Z)
        shape = tuple(
            [A.shape[i] for i in _free_inds(A.ndims, iA)]
            + [B.shape[i] for i in _free_inds(B.ndims, iB)]
        )
        if tuple(Z.shape) != shape:
            raise ShapeMismatchError(
                "Z has shape %s, but the contraction results in shape %s."
                % (tuple(Z.shape), shape)
            )
        variant, (A, B, Z) = _common_variant(A, B, Z)
    if config.get_validation():
        checkcontract(A, iA, B, iB, Z=Z, conj_A=conj_A, conj_B=conj_B)

    if Z is None:
        dtype = result_dtype(A.dtype, B.dtype, scalars=(alpha,))
    else:
        dtype = result_dtype(A.dtype, B.dtype, Z.dtype, scalars=(alpha, beta))
    logger.debug(
        "Contracting %s tensors over indices %s and %s, result dtype %s.",
        variant,
        iA,
        iB,
        dtype,
    )
    res = _CONTRACTORS[variant](
        A, iA, B, iB, conj_A, conj_B, Z, alpha, beta, dtype
    )
    if order is not None:
        res = res.permute(order)
    return res


def _contract_any(conj_A, conj_B, A, args, Z, alpha, beta, order):
    """Dispatch the different call signatures of the `contract` family."""
    Afct = adjoint if conj_A else identity
    Bfct = adjoint if conj_B else identity
    if len(args) == 0:
        return alpha * dot(A, A, Afct=Afct, Bfct=Bfct)
    elif len(args) == 1:
        return alpha * dot(A, args[0], Afct=Afct, Bfct=Bfct)
    elif len(args) in (3, 4):
        iA, B, iB = args[:3]
        if len(args) == 4:
            if Z is not None:
                raise TypeError("Z given both as positional and keyword.")
            Z = args[3]
        return _contract_inds(
            conj_A, conj_B, A, iA, B, iB, Z, alpha, beta, order
        )
    else:
        raise TypeError(
            "contract takes the arguments (A), (A, B) or (A, iA, B, iB[, Z]),"
            " got %i positional arguments." % (len(args) + 1)
        )


# # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # #
# The public contraction functions


def contract(A, *args, Z=None, alpha=1, beta=1, order=None):
    """Contract tensors.

    ``contract(A, iA, B, iB)`` contracts the indices `iA` of `A` with the
    indices `iB` of `B`. `iA` and `iB` may be integers or sequences of
    integers of the same length. The result has the free indices of `A`
    followed by those of `B`. With `Z` given, either as a fifth positional
    argument or as a keyword, the result is ``alpha * A.B + beta * Z``, else
    it is ``alpha * A.B``. `Z` is not modified. If `order` is given, the
    result is permuted with it before being returned.

    ``contract(A, B)`` contracts all the indices of `A` with the indices of
    `B` in order and returns ``alpha`` times the resulting scalar.

    ``contract(A)`` contracts `A` with itself in the same way.

    Dimensions of contracted indices are always checked, and a
    `ShapeMismatchError` raised if they differ. Quantum numbers of
    block-sparse tensors are checked only if validation is switched on, see
    `qntensors.config`.
    """
    return _contract_any(False, False, A, args, Z, alpha, beta, order)


def ccontract(A, *args, Z=None, alpha=1, beta=1, order=None):
    """Like `contract`, but with `A` complex conjugated."""
    return _contract_any(True, False, A, args, Z, alpha, beta, order)


def contractc(A, *args, Z=None, alpha=1, beta=1, order=None):
    """Like `contract`, but with `B` complex conjugated."""
    return _contract_any(False, True, A, args, Z, alpha, beta, order)


def ccontractc(A, *args, Z=None, alpha=1, beta=1, order=None):
    """Like `contract`, but with both `A` and `B` complex conjugated."""
    return _contract_any(True, True, A, args, Z, alpha, beta, order)


# # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # #
# dot


def _dot2_dense(A, B, Afct, Bfct, dtype):
    a = Afct(np.asarray(A).reshape(-1)).astype(dtype, copy=False)
    b = Bfct(np.asarray(B).reshape(-1)).astype(dtype, copy=False)
    return np.dot(a, b)


def _dot2_blocksparse(A, B, Afct, Bfct, dtype):
    if tuple(A.shape) != tuple(B.shape):
        raise ShapeMismatchError(
            "dot of block-sparse tensors of shapes %s and %s."
            % (A.shape, B.shape)
        )
    # The elementwise product needs the blocks of A and B to cover the same
    # elements. That is the case when B has the same quantum numbers as A,
    # or the inverse ones.
    if A.qnummat == B.qnummat:
        conj_flags = (True, False)
    elif all(
        all(q == p.inv() for q, p in zip(qa, qb))
        for qa, qb in zip(A.qnummat, B.qnummat)
    ):
        conj_flags = (False, False)
    else:
        raise QuantumNumberMismatchError(
            "dot of tensors whose quantum numbers are neither equal nor "
            "inverse to each other."
        )
    all_inds = range(A.ndims)
    A = A.changeblock((), all_inds)
    B = B.changeblock(all_inds, ())
    val = dtype.type(0)
    for a, b in match_blocks(conj_flags, A, B):
        val += _dot2_dense(A.blocks[a], B.blocks[b], Afct, Bfct, dtype)
    return val


def _dot3_dense(A, H, B, Afct, Bfct, dtype):
    a = Afct(np.asarray(A).reshape(-1)).astype(dtype, copy=False)
    b = Bfct(np.asarray(B).reshape(-1)).astype(dtype, copy=False)
    h = np.asarray(H).reshape(a.size, b.size).astype(dtype, copy=False)
    return np.dot(a, np.dot(h, b))


def _dot3_blocksparse(A, H, B, Afct, Bfct, dtype):
    conj_flags = (Afct is not identity, False, Bfct is not identity)
    A = A.changeblock((), range(A.ndims))
    H = H.changeblock(range(A.ndims), range(A.ndims, H.ndims))
    B = B.changeblock(range(B.ndims), ())
    val = dtype.type(0)
    for a, h, b in match_blocks(conj_flags, A, H, B):
        val += _dot3_dense(
            A.blocks[a], H.blocks[h], B.blocks[b], Afct, Bfct, dtype
        )
    return val


_DOTTERS = {
    ("dense", 2): _dot2_dense,
    ("blocksparse", 2): _dot2_blocksparse,
    ("dense", 3): _dot3_dense,
    ("blocksparse", 3): _dot3_blocksparse,
}


def dot(A, *args, Afct=adjoint, Bfct=identity):
    """Full contraction of two or three tensors into a scalar.

    ``dot(A, B)`` is the sum over all elements of ``Afct(A) * Bfct(B)``, with
    the elements of `A` and `B` taken in row-major order. The two must have
    the same number of elements. By default `A` is conjugated, so that
    ``dot(A, B)`` is the usual overlap of two vectors. Block-sparse `A` and
    `B` must have the same quantum numbers, or inverse ones.

    ``dot(A, H, B)`` is ``Afct(a) . h . Bfct(b)``, where `a` and `b` are `A`
    and `B` flattened and `h` is `H` reshaped into a matrix with as many rows
    as `A` has elements and as many columns as `B` has. For block-sparse
    tensors the first ``A.ndims`` indices of `H` are the rows.

    `Afct` and `Bfct` should be `identity` or `adjoint`.
    """
    tensors = tuple(map(_as_tensor, (A,) + args))
    if len(tensors) == 2:
        A, B = tensors
        if A.size != B.size:
            raise ShapeMismatchError(
                "dot of tensors with %i and %i elements." % (A.size, B.size)
            )
    elif len(tensors) == 3:
        A, H, B = tensors
        if H.size != A.size * B.size:
            raise ShapeMismatchError(
                "dot of tensors with %i, %i and %i elements, but H should "
                "have %i * %i." % (A.size, H.size, B.size, A.size, B.size)
            )
    else:
        raise TypeError(
            "dot takes two or three tensors, got %i." % len(tensors)
        )
    variant, tensors = _common_variant(*tensors)
    dtype = result_dtype(*(T.dtype for T in tensors))
    logger.debug("dot of %i %s tensors.", len(tensors), variant)
    dotter = _DOTTERS[(variant, len(tensors))]
    return dotter(*tensors, Afct, Bfct, dtype)


# # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # #
# trace


def _trace_pairs(pairs, ndims):
    """Turn the argument of `trace` into two lists of indices, the first and
    the second indices of the pairs.
    """
    if pairs is None:
        pairs = [(0, 1)]
    pairs = list(pairs)
    if len(pairs) == 2 and all(isinstance(i, Integral) for i in pairs):
        pairs = [pairs]
    left = _index_list([p[0] for p in pairs], ndims, "the trace pairs")
    right = _index_list([p[1] for p in pairs], ndims, "the trace pairs")
    if len(set(left + right)) != len(left + right):
        raise ContractionError("Repeated indices in trace pairs %s." % pairs)
    return left, right


def _trace_dense(A, left, right):
    rest = _free_inds(A.ndims, left + right)
    rest_shape = [A.shape[i] for i in rest]
    n_pair = int(np.prod([A.shape[i] for i in left], dtype=np.int64))
    a = np.transpose(np.asarray(A), rest + left + right)
    a = a.reshape(-1, n_pair, n_pair)
    res = np.trace(a, axis1=1, axis2=2)
    return np.reshape(res, rest_shape).view(Tensor)


def _trace_blocksparse(A, left, right):
    for l, r in zip(left, right):
        if not A.compatible_indices(A, l, r):
            raise QuantumNumberMismatchError(
                "Can not trace over indices %i and %i, their quantum numbers "
                "are not inverse to each other." % (l, r)
            )
    # An identity between the left and the right indices of the pairs, with
    # quantum numbers inverse to those of A.
    n = len(left)
    Id = type(A)(
        [A.shape[i] for i in left + right],
        qnummat=[[q.inv() for q in A.qnummat[i]] for i in left + right],
        currblock=(range(n), range(n, 2 * n)),
        dtype=A.dtype,
    )
    rsec = Id._sectors(range(n))
    csec = Id._sectors(range(n, 2 * n))
    for r, q in enumerate(rsec.qnums):
        c = csec.index.get(Id.flux - q)
        if c is None:
            continue
        Id._append_block(
            np.eye(len(rsec.flats[r]), dtype=A.dtype), rsec, r, csec, c
        )
    dtype = result_dtype(A.dtype)
    return _contract_blocksparse(
        A,
        left + right,
        Id,
        list(range(2 * n)),
        False,
        False,
        None,
        1,
        1,
        dtype,
    )


_TRACERS = {
    "dense": _trace_dense,
    "blocksparse": _trace_blocksparse,
}


def trace(A, pairs=None):
    """Trace over pairs of indices of `A`.

    `pairs` is a pair of indices ``[i, j]``, or a list of such pairs. By
    default the first two indices are traced over. The result is a tensor
    with the traced indices removed, which has no indices at all if every
    index of `A` was traced over.
    """
    A = _as_tensor(A)
    left, right = _trace_pairs(pairs, A.ndims)
    for l, r in zip(left, right):
        if A.shape[l] != A.shape[r]:
            raise ShapeMismatchError(
                "Can not trace over indices %i and %i of dimensions %i and "
                "%i." % (l, r, A.shape[l], A.shape[r])
            )
    logger.debug("Trace of a %s tensor over %s, %s.", A.variant, left, right)
    return _TRACERS[A.variant](A, left, right)


# # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # #
# Diagnostics


def checkcontract(A, iA, B, iB, Z=None, conj_A=False, conj_B=False):
    """Check that `A` and `B` can be contracted over `iA` and `iB`.

    Dimensions of the contracted indices must match, or a
    `ShapeMismatchError` is raised. For block-sparse tensors, both tensors
    are also checked for internal consistency with `check_consistency`, and
    the quantum numbers of every pair of contracted indices must be inverse
    to each other, taking into account the conjugations given by `conj_A`
    and `conj_B`. Otherwise a `QuantumNumberMismatchError` is raised. If `Z`
    is given, its quantum numbers must match those of the result.

    Progress is logged at the INFO level. Returns True if all is well.
    """
    A, B = _as_tensor(A), _as_tensor(B)
    iA = _index_list(iA, A.ndims, "A")
    iB = _index_list(iB, B.ndims, "B")
    _check_shapes(A, iA, B, iB)
    logger.info("Contracting over indices with equal sizes.")
    if A.variant != "blocksparse" or B.variant != "blocksparse":
        return True

    logger.info("Checking consistency of A.")
    A.check_consistency()
    logger.info("Checking consistency of B.")
    B.check_consistency()
    for n, (a, b) in enumerate(zip(iA, iB)):
        logger.info(
            "Contracted index pair %i: index %i of A, index %i of B.", n, a, b
        )
        for w, (qa, qb) in enumerate(zip(A.qnummat[a], B.qnummat[b])):
            if _eff(qa, conj_A) != _eff(qb, conj_B).inv():
                raise QuantumNumberMismatchError(
                    "Unmatching quantum numbers on index %i of A and index %i"
                    " of B, at position %i: %s and %s."
                    % (a, b, w, qa, qb)
                )
        logger.info("Matching quantum numbers on both indices.")

    if Z is not None and Z.variant == "blocksparse":
        logger.info("Checking consistency of Z.")
        Z.check_consistency()
        free_A = _free_inds(A.ndims, iA)
        free_B = _free_inds(B.ndims, iB)
        qnummat = [
            [_eff(q, conj_A) for q in A.qnummat[i]] for i in free_A
        ] + [[_eff(q, conj_B) for q in B.qnummat[i]] for i in free_B]
        flux = _eff(A.flux, conj_A) + _eff(B.flux, conj_B)
        if Z.qnummat != qnummat or Z.flux != flux:
            raise QuantumNumberMismatchError(
                "The quantum numbers of Z do not match those of the result "
                "of the contraction."
            )
    return True
