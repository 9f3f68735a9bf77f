import pickle
import numpy as np
import pytest
from qntensors import Qnum
from qntensors.qnum import charge_array, qnums_from_array, reduce_charges


def random_qnum(moduli):
    charges = [np.random.randint(-5, 6) for _ in moduli]
    return Qnum(charges, moduli)


@pytest.mark.parametrize("moduli", [(0,), (2,), (3,), (0, 2), (0, 0, 3)])
def test_group_laws(moduli):
    """Check that Qnums form an abelian group under addition."""
    for _ in range(20):
        p, q, r = (random_qnum(moduli) for _ in range(3))
        e = p.identity()
        assert e.is_identity()
        assert p + q == q + p
        assert (p + q) + r == p + (q + r)
        assert p + e == p
        assert (p + p.inv()).is_identity()
        assert -p == p.inv()
        assert p - q == p + q.inv()


def test_zn_reduction():
    assert Qnum.zn(5, 3) == Qnum.zn(2, 3)
    assert Qnum.zn(-1, 2) == Qnum.zn(1, 2)
    assert Qnum.zn(1, 2).inv() == Qnum.zn(1, 2)
    assert Qnum.u1(-1) != Qnum.u1(1)
    assert Qnum.u1(3).charges == (3,)
    assert Qnum((1, 4), (0, 3)).charges == (1, 1)


def test_different_groups():
    with pytest.raises(ValueError):
        Qnum.u1(1) + Qnum.zn(1, 2)
    with pytest.raises(ValueError):
        Qnum((1, 2), (0,))
    assert Qnum.u1(1) != Qnum.zn(1, 2)


def test_hashing_and_immutability():
    d = {Qnum.u1(1): "a", Qnum.zn(1, 2): "b"}
    assert d[Qnum(1)] == "a"
    assert d[Qnum.zn(3, 2)] == "b"
    q = Qnum.u1(1)
    with pytest.raises(AttributeError):
        q.foo = 2
    assert pickle.loads(pickle.dumps(q)) == q


def test_array_helpers():
    moduli = (0, 3)
    qnums = [random_qnum(moduli) for _ in range(10)]
    arr = charge_array(qnums, moduli)
    assert arr.shape == (10, 2)
    assert qnums_from_array(arr, moduli) == qnums
    assert charge_array([], moduli).shape == (0, 2)
    summed = reduce_charges(arr + arr, moduli)
    assert qnums_from_array(summed, moduli) == [q + q for q in qnums]
