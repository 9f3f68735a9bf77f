import numpy as np
import operator as opr
import functools as fct
import collections
from copy import deepcopy
from .tensorcommon import TensorCommon
from .qnum import Qnum, charge_array, qnums_from_array, reduce_charges
from .errors import QuantumNumberMismatchError, ShapeMismatchError

# Sectors describes how the multi-indices of a group of indices split into
# sectors of equal total quantum number. See QTensor._sectors.
_Sectors = collections.namedtuple(
    "_Sectors", ["dims", "qnums", "index", "sector", "offset", "flats"]
)


def _flat_positions(dims, positions):
    """Return the row-major flat index of the multi-indices given by
    `positions`, one array per index of dimension `dims`. The arrays may be
    of any mutually broadcastable shapes.
    """
    flat = 0
    for d, p in zip(dims, positions):
        flat = flat * d + p
    return flat


def _prod(dims):
    return fct.reduce(opr.mul, dims, 1)


class QTensor(TensorCommon):
    """A class for block-sparse tensors whose indices carry conserved quantum
    numbers.

    This class can be used as is, with the quantum numbers given as `Qnum`
    objects, or subclassed to fix the symmetry group (see the `moduli` class
    attribute), in which case quantum numbers can be given as plain integers.

    Every `QTensor` has the following attributes:

    `shape`: A tuple of integers, the dimensions of the indices.

    `qnummat`: A list of lists of `Qnums`, one list per index, with one `Qnum`
    for every basis state of that index. So ``len(qnummat[i]) == shape[i]``.

    `flux`: A `Qnum`, the total quantum number of the tensor. An element at
    position ``(s_0, s_1, ...)`` can be non-zero only if ``qnummat[0][s_0] +
    qnummat[1][s_1] + ... == flux``.

    `currblock`: A pair of tuples ``(row_inds, col_inds)`` that together are a
    permutation of all the indices. The tensor is stored as a block-diagonal
    matrix, with rows running over `row_inds` and columns over `col_inds`.

    `blocks`: A list of two-dimensional numpy arrays. The rows of the block
    with row quantum number `q` are all the multi-indices over `row_inds`
    whose quantum numbers sum to `q`, in ascending row-major order, and
    similarly for the columns. Every block satisfies ``row_qnum + col_qnum ==
    flux``, and there is at most one block per row quantum number. Blocks
    that are allowed by the flux but not present are zero.

    `blockindex`: A list with one pair ``(row_positions, col_positions)`` per
    block. `row_positions` is an integer array of shape ``(len(row_inds),
    n_rows)`` so that row `r` of the block sits at position
    ``row_positions[k, r]`` along index ``row_inds[k]``. Likewise for
    columns.

    `qblocksum`: A list with one pair ``(row_qnum, col_qnum)`` per block.

    `dtype`: A NumPy dtype, that is the dtype of all the blocks.

    Note that many of these rules are not constantly checked for and can be
    broken by the user. In such cases behavior of the class is not
    guaranteed. The method `check_consistency` can be used to check that the
    tensor conforms to this definition.
    """

    variant = "blocksparse"
    # The moduli of the charges, see Qnum. If None, quantum numbers must be
    # given as Qnums, or else integers are read as U(1) charges.
    moduli = None

    # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # #
    # Methods for creating QTensors.

    def __init__(
        self,
        shape,
        qnummat=None,
        flux=None,
        currblock=None,
        blocks=None,
        blockindex=None,
        qblocksum=None,
        dtype=np.float64,
    ):
        """Initialize a QTensor.

        Although `qnummat` is a keyword argument to conform to the interface
        of the `Tensor` class, it must in fact be set. `flux` defaults to the
        identity and `currblock` to having the last index as the column
        index. `blocks` defaults to none, i.e. a zero tensor.
        """
        assert qnummat is not None
        shape = tuple(int(d) for d in shape)
        qnummat = [list(map(self._to_qnum, qim)) for qim in qnummat]
        assert len(shape) == len(qnummat)
        assert all(len(qim) == d for qim, d in zip(qnummat, shape))
        if flux is None:
            flux = self._identity_qnum(qnummat)
        else:
            flux = self._to_qnum(flux)
        if currblock is None:
            currblock = type(self).default_currblock(len(shape))
        currblock = (tuple(currblock[0]), tuple(currblock[1]))
        if blocks is None:
            blocks, blockindex, qblocksum = [], [], []

        self.shape = shape
        self.qnummat = qnummat
        self.flux = flux
        self.currblock = currblock
        self.blocks = list(blocks)
        self.blockindex = list(blockindex)
        self.qblocksum = list(qblocksum)
        self.dtype = np.dtype(dtype)

    # Shallow copies of tensors are a bit dangerous, since the user may not
    # realise the blocks are not copies, but just the list. Thus by default we
    # deepcopy.
    copy = deepcopy
    __copy__ = copy

    @classmethod
    def _to_qnum(cls, q):
        """Turn `q` into a `Qnum` of the group of this class."""
        if isinstance(q, Qnum):
            return q
        if cls.moduli is None:
            return Qnum(q)
        return Qnum(q, cls.moduli)

    @classmethod
    def _identity_qnum(cls, qnummat=()):
        for qim in qnummat:
            if qim:
                return qim[0].identity()
        if cls.moduli is None:
            return Qnum()
        return Qnum((0,) * len(cls.moduli), cls.moduli)

    @staticmethod
    def default_currblock(n):
        """The default `currblock` of an `n`-index tensor: the last index
        forms the columns, the rest the rows.
        """
        if n == 0:
            return ((), ())
        return (tuple(range(n - 1)), (n - 1,))

    def empty_like(self):
        """Initialize a tensor that is like a copy of this one, but with no
        blocks.
        """
        res = type(self)(
            self.shape,
            qnummat=[list(qim) for qim in self.qnummat],
            flux=self.flux,
            currblock=self.currblock,
            dtype=self.dtype,
        )
        return res

    def view(self):
        """Return a view of this tensor.

        A view is otherwise independent but identical to the original, but
        its `blocks` are the same numpy arrays as the blocks of the original.
        In other words replacing a whole block is ok, but modifying a block in
        place modifies the original as well.
        """
        view = self.empty_like()
        view.blocks = list(self.blocks)
        view.blockindex = list(self.blockindex)
        view.qblocksum = list(self.qblocksum)
        return view

    @classmethod
    def initialize_with(
        cls,
        numpy_func,
        shape,
        *args,
        qnummat=None,
        flux=None,
        currblock=None,
        **kwargs
    ):
        """Create a tensor initialized with a given numpy function.

        `initialize_with` will be called with different `numpy_funcs` to create
        initializer functions such as `zeros` and `random`. It sets all the
        blocks allowed by the flux to ``numpy_func(block_shape, *args,
        **kwargs)``.
        """
        res = cls(shape, qnummat=qnummat, flux=flux, currblock=currblock)
        if "dtype" in kwargs:
            res.dtype = np.dtype(kwargs["dtype"])
        rows, cols = res.currblock
        rsec = res._sectors(rows)
        csec = res._sectors(cols)
        for r, q in enumerate(rsec.qnums):
            c = csec.index.get(res.flux - q)
            if c is None:
                continue
            block_shape = (len(rsec.flats[r]), len(csec.flats[c]))
            block = np.asarray(numpy_func(block_shape, *args, **kwargs))
            res._append_block(block, rsec, r, csec, c)
        if res.blocks and "dtype" not in kwargs:
            res.dtype = res.blocks[0].dtype
        return res

    @classmethod
    def eye(cls, dim, qnums=None, dtype=np.float64):
        """Return an identity matrix of ``shape = [dim, dim]``, with quantum
        numbers `qnums` on the rows and their inverses on the columns.
        """
        assert qnums is not None and len(qnums) == dim
        qnums = list(map(cls._to_qnum, qnums))
        qnummat = [qnums, [q.inv() for q in qnums]]
        return cls.from_ndarray(
            np.eye(dim, dtype=dtype), qnummat=qnummat, flux=None
        )

    def _append_block(self, block, rsec, r, csec, c):
        """Add `block` as the block of row sector `r` and column sector `c`,
        with sector data from `_sectors`.
        """
        self.blocks.append(block)
        self.blockindex.append(
            (self._positions(rsec, r), self._positions(csec, c))
        )
        self.qblocksum.append((rsec.qnums[r], csec.qnums[c]))

    # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # #
    # To and from numpy arrays

    def to_ndarray(self):
        """Return the corresponding dense numpy array."""
        res = np.zeros(self.shape, dtype=self.dtype)
        for block, (rowpos, colpos) in zip(self.blocks, self.blockindex):
            if self.isscalar():
                res[()] = block[0, 0]
            else:
                res[self._element_positions(rowpos, colpos)] = block
        return res

    @classmethod
    def from_ndarray(cls, a, qnummat=None, flux=None, currblock=None):
        """Build a `QTensor` out of a given NumPy array, using the provided
        form data.

        Although `qnummat` is a keyword argument to maintain a common
        interface with `Tensor`, it is not optional. Elements of `a` that are
        forbidden by the `flux` are ignored.
        """
        a = np.asarray(a)
        res = cls(
            a.shape,
            qnummat=qnummat,
            flux=flux,
            currblock=currblock,
            dtype=a.dtype,
        )
        rows, cols = res.currblock
        rsec = res._sectors(rows)
        csec = res._sectors(cols)
        mat = np.transpose(a, rows + cols).reshape(
            _prod(rsec.dims), _prod(csec.dims)
        )
        for r, q in enumerate(rsec.qnums):
            c = csec.index.get(res.flux - q)
            if c is None:
                continue
            block = mat[np.ix_(rsec.flats[r], csec.flats[c])]
            res._append_block(block, rsec, r, csec, c)
        return res

    # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # #
    # Operator methods

    def __repr__(self):
        r = "%r(%r, qnummat=%r, flux=%r, currblock=%r, dtype=%r)" % (
            type(self),
            self.shape,
            self.qnummat,
            self.flux,
            self.currblock,
            self.dtype,
        )
        return r

    def __str__(self):
        r = (
            "%s object:\n"
            "shape = %s,\n"
            "flux = %s, currblock = %s, dtype = %s\n"
            "blocks:"
        ) % (str(type(self)), self.shape, self.flux, self.currblock, self.dtype)
        for (rq, cq), v in zip(self.qblocksum, self.blocks):
            r += "\n%s, %s:\n%s" % (rq, cq, v)
        return r

    def _defer_unary_elementwise(self, op_func, *args, **kwargs):
        """Produce a new tensor that is like this one, but all the blocks `v`
        have been acted on with ``op_func(v, *args, **kwargs)``.

        The operation must map zero to zero, or the result does not respect
        the flux anymore.
        """
        res = self.view()
        res.blocks = [op_func(v, *args, **kwargs) for v in self.blocks]
        if res.blocks:
            res.dtype = res.blocks[0].dtype
        return res

    def _defer_binary_elementwise(self, B, op_func):
        """Apply the binary operator `op_func` block by block to `self` and
        the `QTensor` `B`, or to the blocks of `self` and the scalar `B`.

        Two tensors must have the same `shape`, `qnummat` and `flux`. `B` is
        brought to the `currblock` of `self` first. Blocks missing from one of
        the two are treated as zeros, so `op_func` should be something like
        addition, for which that makes sense.
        """
        if not isinstance(B, QTensor):
            res = self._defer_unary_elementwise(op_func, B)
            if not res.blocks:
                res.dtype = op_func(np.zeros(1, dtype=self.dtype), B).dtype
            return res
        if not type(self).check_form_match(self, B):
            raise ShapeMismatchError(
                "Elementwise operation on tensors of different form:\n%s\n%s"
                % (self.form_str(), B.form_str())
            )
        B = B.changeblock(*self.currblock)
        res = self.empty_like()
        res.dtype = np.result_type(self.dtype, B.dtype)
        b_of_q = B._block_dict()
        for v, ind, qs in zip(self.blocks, self.blockindex, self.qblocksum):
            b = b_of_q.pop(qs[0], None)
            w = B.blocks[b] if b is not None else np.zeros_like(v)
            res.blocks.append(op_func(v, w))
            res.blockindex.append(ind)
            res.qblocksum.append(qs)
        for b in sorted(b_of_q.values()):
            w = B.blocks[b]
            res.blocks.append(op_func(np.zeros_like(w), w))
            res.blockindex.append(B.blockindex[b])
            res.qblocksum.append(B.qblocksum[b])
        for i, v in enumerate(res.blocks):
            res.blocks[i] = v.astype(res.dtype, copy=False)
        return res

    def __add__(self, other):
        return self._defer_binary_elementwise(other, opr.add)

    def __sub__(self, other):
        return self._defer_binary_elementwise(other, opr.sub)

    def __mul__(self, other):
        if isinstance(other, QTensor):
            return NotImplemented
        return self._defer_binary_elementwise(other, opr.mul)

    __rmul__ = __mul__

    def __truediv__(self, other):
        if isinstance(other, QTensor):
            return NotImplemented
        return self._defer_binary_elementwise(other, opr.truediv)

    def __neg__(self):
        return self._defer_unary_elementwise(opr.neg)

    def conj(self):
        """Return a new tensor that is the complex conjugate of this one, with
        all quantum numbers, including the flux, inverted.
        """
        res = self._defer_unary_elementwise(np.conj)
        res.qnummat = [[q.inv() for q in qim] for qim in self.qnummat]
        res.flux = self.flux.inv()
        res.qblocksum = [(rq.inv(), cq.inv()) for rq, cq in self.qblocksum]
        return res

    conjugate = conj

    def astype(self, dtype, casting="unsafe"):
        """Return a copy of the tensor with the dtype changed."""
        res = self._defer_unary_elementwise(
            lambda v: v.astype(dtype, casting=casting)
        )
        res.dtype = np.dtype(dtype)
        return res

    def allclose(self, other, rtol=1e-05, atol=1e-08):
        """Check whether all of the elements of the two tensors are close to
        each other.

        `other` may be a `QTensor`, a `Tensor` or an array. See
        `numpy.allclose` for explanations of the tolerance arguments.
        """
        if isinstance(other, TensorCommon):
            other = other.to_ndarray()
        return np.allclose(self.to_ndarray(), other, rtol=rtol, atol=atol)

    def value(self):
        """For a scalar tensor, return the scalar."""
        if not self.isscalar():
            raise ValueError("value called on a non-scalar tensor.")
        if self.blocks:
            return self.blocks[0][0, 0]
        return self.dtype.type(0)

    # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # #
    # Miscellaneous

    @property
    def size(self):
        """The number of elements, stored or not."""
        return _prod(self.shape)

    @property
    def _moduli(self):
        return self.flux.moduli

    def _block_dict(self):
        """Return a dictionary from row quantum numbers to block numbers."""
        return {qs[0]: b for b, qs in enumerate(self.qblocksum)}

    def _group_charges(self, group):
        """Return the total charges of all the multi-indices over the indices
        in `group`, as an array with one row per multi-index, in row-major
        order.
        """
        moduli = self._moduli
        n_charges = len(moduli)
        tot = np.zeros((1, n_charges), dtype=np.int64)
        for i in group:
            ch = charge_array(self.qnummat[i], moduli)
            tot = (tot[:, None, :] + ch[None, :, :]).reshape(-1, n_charges)
        return reduce_charges(tot, moduli)

    def _sectors(self, group):
        """Split the multi-indices over the indices in `group` into sectors
        of equal total quantum number.

        Returns a `_Sectors` tuple with
        `dims`: the dimensions of the group,
        `qnums`: the quantum number of each sector, in sorted order,
        `index`: a dictionary from quantum numbers to sector numbers,
        `sector`: for each flat multi-index, the number of its sector,
        `offset`: for each flat multi-index, its position within its sector,
        `flats`: for each sector, the ascending array of its flat
        multi-indices.
        """
        group = tuple(group)
        dims = tuple(self.shape[i] for i in group)
        tot = self._group_charges(group)
        if len(tot) == 0:
            empty = np.zeros(0, dtype=np.int64)
            return _Sectors(dims, [], {}, empty, empty, [])
        uniq, sector = np.unique(tot, axis=0, return_inverse=True)
        sector = sector.reshape(-1)
        counts = np.bincount(sector, minlength=len(uniq))
        starts = np.concatenate(([0], np.cumsum(counts)[:-1]))
        order = np.argsort(sector, kind="stable")
        offset = np.empty(len(sector), dtype=np.int64)
        offset[order] = np.arange(len(sector)) - np.repeat(starts, counts)
        flats = [order[s : s + n] for s, n in zip(starts, counts)]
        qnums = qnums_from_array(uniq, self._moduli)
        index = {q: i for i, q in enumerate(qnums)}
        return _Sectors(dims, qnums, index, sector, offset, flats)

    @staticmethod
    def _positions(sectors, k):
        """Return the positions array of sector `k`, as stored in
        `blockindex`.
        """
        flats = sectors.flats[k]
        if not sectors.dims:
            return np.zeros((0, len(flats)), dtype=np.int64)
        return np.array(np.unravel_index(flats, sectors.dims), dtype=np.int64)

    def _element_positions(self, rowpos, colpos):
        """Return a tuple of index arrays, one per index of the tensor, that
        broadcast to the shape of the block with positions `rowpos` and
        `colpos`.
        """
        pos = [None] * len(self.shape)
        rows, cols = self.currblock
        for k, i in enumerate(rows):
            pos[i] = rowpos[k][:, None]
        for k, i in enumerate(cols):
            pos[i] = colpos[k][None, :]
        return tuple(pos)

    def compatible_indices(self, other, i, j):
        """Return True if index `i` of `self` may be contracted with index `j`
        of `other`, i.e. they have the same dimension and mutually inverse
        quantum numbers.
        """
        if self.shape[i] != other.shape[j]:
            return False
        return all(
            q == p.inv() for q, p in zip(self.qnummat[i], other.qnummat[j])
        )

    @classmethod
    def check_form_match(cls, tensor1, tensor2):
        """Check that two tensors have the same `shape`, `qnummat` and
        `flux`, so that they can be added together.
        """
        return (
            tensor1.shape == tensor2.shape
            and tensor1.flux == tensor2.flux
            and tensor1.qnummat == tensor2.qnummat
        )

    def check_consistency(self):
        """Check internal consistency of a tensor.

        Check that self conforms to the defition given in the documentation
        of the class. Structural problems raise an `AssertionError`, and a
        block that violates the flux rule raises a
        `QuantumNumberMismatchError`. Returns True if all is well. This method
        is meant for debugging, and the contraction functions only call it
        when validation is switched on, see `qntensors.config`.
        """
        assert len(self.shape) == len(self.qnummat)
        assert all(len(q) == d for q, d in zip(self.qnummat, self.shape))
        rows, cols = self.currblock
        assert sorted(rows + cols) == list(range(len(self.shape)))
        assert len(self.blocks) == len(self.blockindex) == len(self.qblocksum)
        row_qnums = [qs[0] for qs in self.qblocksum]
        assert len(set(row_qnums)) == len(row_qnums)
        moduli = self._moduli
        for b, (v, (rowpos, colpos), (rq, cq)) in enumerate(
            zip(self.blocks, self.blockindex, self.qblocksum)
        ):
            assert v.dtype == self.dtype
            assert v.ndim == 2
            assert rowpos.shape == (len(rows), v.shape[0])
            assert colpos.shape == (len(cols), v.shape[1])
            for group, pos, q in ((rows, rowpos, rq), (cols, colpos, cq)):
                tot = np.zeros((pos.shape[1], len(moduli)), dtype=np.int64)
                for k, i in enumerate(group):
                    ch = charge_array(self.qnummat[i], moduli)
                    tot += ch[pos[k]]
                tot = reduce_charges(tot, moduli)
                assert all(
                    p == q for p in qnums_from_array(tot, moduli)
                ), "Block %i has positions of the wrong quantum number." % b
            if rq + cq != self.flux:
                raise QuantumNumberMismatchError(
                    "Block %i has quantum numbers %s + %s, but the flux is %s."
                    % (b, rq, cq, self.flux)
                )
        return True

    # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # #
    # The meat: whole-tensor transformations

    def changeblock(self, row_inds, col_inds):
        """Return an equivalent tensor stored with ``currblock = (row_inds,
        col_inds)``.

        This is the block-sparse counterpart of reshaping a tensor into a
        matrix. If the tensor is already in the requested form, `self` is
        returned as is. Otherwise the stored elements are scattered into the
        blocks of the new form, at a cost proportional to their number. Blocks
        that receive no elements are left out.
        """
        row_inds = tuple(int(i) for i in row_inds)
        col_inds = tuple(int(i) for i in col_inds)
        if (row_inds, col_inds) == self.currblock:
            return self
        assert sorted(row_inds + col_inds) == list(range(len(self.shape)))
        rsec = self._sectors(row_inds)
        csec = self._sectors(col_inds)

        # new_blocks[r] is a pair (c, block), where r and c are the row and
        # column sector numbers.
        new_blocks = {}
        for v, (rowpos, colpos) in zip(self.blocks, self.blockindex):
            if v.size == 0:
                continue
            pos = self._element_positions(rowpos, colpos)
            rflat = _flat_positions(rsec.dims, [pos[i] for i in row_inds])
            cflat = _flat_positions(csec.dims, [pos[i] for i in col_inds])
            rflat = np.broadcast_to(rflat, v.shape)
            cflat = np.broadcast_to(cflat, v.shape)
            rsect = rsec.sector[rflat]
            roffs = rsec.offset[rflat]
            coffs = csec.offset[cflat]
            for r in np.unique(rsect):
                if r not in new_blocks:
                    c = csec.index[self.flux - rsec.qnums[r]]
                    shp = (len(rsec.flats[r]), len(csec.flats[c]))
                    new_blocks[r] = (c, np.zeros(shp, dtype=self.dtype))
                mask = rsect == r
                new_blocks[r][1][roffs[mask], coffs[mask]] = v[mask]

        res = self.empty_like()
        res.currblock = (row_inds, col_inds)
        for r in sorted(new_blocks):
            c, block = new_blocks[r]
            res._append_block(block, rsec, r, csec, c)
        return res

    def permute(self, order):
        """Permute the indices so that index `i` of the result is index
        ``order[i]`` of `self`.

        Only the form data is rearranged, the blocks are shared with `self`.
        """
        order = tuple(int(i) for i in order)
        assert sorted(order) == list(range(len(self.shape)))
        new_pos = {old: new for new, old in enumerate(order)}
        res = self.view()
        res.shape = tuple(self.shape[i] for i in order)
        res.qnummat = [list(self.qnummat[i]) for i in order]
        rows, cols = self.currblock
        res.currblock = (
            tuple(new_pos[i] for i in rows),
            tuple(new_pos[i] for i in cols),
        )
        return res

    def reshape(self, groups):
        """Merge groups of consecutive indices into single indices.

        `groups` is a list of lists of indices, such as ``[[0, 1], [2], [3,
        4]]``, that in order cover all the indices. Each group becomes one
        index, whose basis states run over the multi-indices of the group in
        row-major order, and whose quantum numbers are the sums of those of
        the merged indices.
        """
        groups = [list(g) for g in groups]
        if sum(groups, []) != list(range(len(self.shape))):
            raise ValueError(
                "reshape groups %s do not cover the indices of a tensor "
                "with %i indices in order." % (groups, len(self.shape))
            )
        # Bring the tensor to a form where every group is fully on the rows
        # or fully on the columns, with indices in ascending order.
        rows, cols = self.currblock
        splits = [0]
        for g in groups:
            splits.append(splits[-1] + len(g))
        n_rows = len(rows) if len(rows) in splits else splits[-2]
        T = self.changeblock(
            range(n_rows), range(n_rows, len(self.shape))
        )
        n_row_groups = splits.index(n_rows)

        res = T.empty_like()
        res.shape = tuple(_prod(T.shape[i] for i in g) for g in groups)
        res.qnummat = [
            qnums_from_array(T._group_charges(g), T._moduli) for g in groups
        ]
        res.currblock = (
            tuple(range(n_row_groups)),
            tuple(range(n_row_groups, len(groups))),
        )
        res.blocks = list(T.blocks)
        res.qblocksum = list(T.qblocksum)
        for rowpos, colpos in T.blockindex:
            new_pos = []
            for pos, offset, gs in (
                (rowpos, 0, groups[:n_row_groups]),
                (colpos, n_rows, groups[n_row_groups:]),
            ):
                merged = [
                    _flat_positions(
                        [T.shape[i] for i in g],
                        [pos[i - offset] for i in g],
                    )
                    for g in gs
                ]
                merged = np.array(merged, dtype=np.int64).reshape(
                    len(gs), pos.shape[1]
                )
                new_pos.append(merged)
            res.blockindex.append(tuple(new_pos))
        return res
