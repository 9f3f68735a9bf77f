"""Pairing of the blocks of block-sparse tensors in a contraction.

Once two `QTensors` have been brought to matrix form with `changeblock`, a
block of the left operand multiplies a block of the right operand iff the
column quantum number of the first and the row quantum number of the second
sum to the identity. A conjugated operand has all its quantum numbers
inverted, which is taken into account through `conj_flags`.
"""
from .errors import BlockSizeError


def _eff(q, conj):
    """The quantum number `q` as seen by the contraction."""
    return q.inv() if conj else q


def _join(conj_left, left, conj_right, right):
    """Return a list of pairs ``(l, r)`` of block numbers of `left` and
    `right` whose quantum numbers match, in the order of the blocks of
    `left`.

    This is a hash join: the row quantum numbers of `right` go in a
    dictionary, and the blocks of `left` look up their partner in it.
    """
    partner = {}
    for r, (row_q, _) in enumerate(right.qblocksum):
        partner[_eff(row_q, conj_right).inv()] = r
    pairs = []
    for l, (_, col_q) in enumerate(left.qblocksum):
        r = partner.get(_eff(col_q, conj_left))
        if r is not None:
            pairs.append((l, r))
    return pairs


def _check_sizes(A, H, B, triple):
    a, h, b = triple
    if A.blocks[a].size * B.blocks[b].size != H.blocks[h].size:
        raise BlockSizeError(
            "Unequal sizes in dot for A block %i (size %i), H block %i "
            "(size %i) and B block %i (size %i)."
            % (
                a,
                A.blocks[a].size,
                h,
                H.blocks[h].size,
                b,
                B.blocks[b].size,
            )
        )


def match_blocks(conj_flags, *tensors):
    """Return the tuples of block numbers of `tensors` that multiply
    together.

    With two tensors ``A, B`` the result is a list of pairs ``(a, b)`` such
    that the column quantum number of block `a` of `A` and the row quantum
    number of block `b` of `B` add up to the identity, after inverting the
    quantum numbers of the tensors for which `conj_flags` is True. Blocks
    without a partner are left out. The pairs come in the order of the blocks
    of `A`. The cost is linear in the number of blocks.

    With three tensors ``A, H, B`` the result is a list of triples ``(a, h,
    b)``, with the same rule applied between `A` and `H` and between `H` and
    `B`. A triple where the size of the block of `H` is not the product of
    the sizes of the blocks of `A` and `B` raises a `BlockSizeError`.
    """
    if len(tensors) == 2:
        A, B = tensors
        conj_A, conj_B = conj_flags
        return _join(conj_A, A, conj_B, B)
    elif len(tensors) == 3:
        A, H, B = tensors
        conj_A, conj_H, conj_B = conj_flags
        h_to_b = dict(_join(conj_H, H, conj_B, B))
        triples = []
        for a, h in _join(conj_A, A, conj_H, H):
            if h in h_to_b:
                triple = (a, h, h_to_b[h])
                _check_sizes(A, H, B, triple)
                triples.append(triple)
        return triples
    else:
        raise ValueError(
            "match_blocks takes two or three tensors, got %i." % len(tensors)
        )


def match_blocks_nested(conj_flags, *tensors):
    """The same as `match_blocks`, but implemented by comparing every block
    of one tensor with every block of the next. Quadratic in the number of
    blocks, used as a reference in testing.
    """

    def matches(conj_left, left, l, conj_right, right, r):
        col_q = _eff(left.qblocksum[l][1], conj_left)
        row_q = _eff(right.qblocksum[r][0], conj_right)
        return (col_q + row_q).is_identity()

    if len(tensors) == 2:
        A, B = tensors
        conj_A, conj_B = conj_flags
        return [
            (a, b)
            for a in range(len(A.blocks))
            for b in range(len(B.blocks))
            if matches(conj_A, A, a, conj_B, B, b)
        ]
    elif len(tensors) == 3:
        A, H, B = tensors
        conj_A, conj_H, conj_B = conj_flags
        triples = []
        for a in range(len(A.blocks)):
            for h in range(len(H.blocks)):
                if not matches(conj_A, A, a, conj_H, H, h):
                    continue
                for b in range(len(B.blocks)):
                    if matches(conj_H, H, h, conj_B, B, b):
                        triple = (a, h, b)
                        _check_sizes(A, H, B, triple)
                        triples.append(triple)
        return triples
    else:
        raise ValueError(
            "match_blocks takes two or three tensors, got %i." % len(tensors)
        )
