"""Global settings of the contraction engine.

Two knobs can be turned at runtime:

1) Validation. By default the contraction functions trust that the quantum
   numbers of contracted indices have been assigned correctly upstream, and
   only check index dimensions. With validation switched on, every
   contraction first runs `qntensors.contractions.checkcontract`, which also
   compares quantum numbers and checks the flux of every block. This is slow,
   and meant for debugging. The initial value is read from the environment
   variable ``QNTENSORS_VALIDATE``. The context manager `validation` switches
   it on temporarily::

        with validation():
            C = contract(A, [1, 2], B, [0, 1])

2) The number of threads used to multiply the matched blocks of block-sparse
   tensors. Block products are independent of each other, so they can be done
   in parallel. numpy releases the GIL during matrix products, so threads
   help when the blocks are large. The initial value is read from
   ``QNTENSORS_NUM_THREADS`` and defaults to 1, i.e. serial execution.
"""
import os


def _to_bool(value):
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def set_validation(flag=True):
    """Switch the validation of contractions on or off."""
    global _validate
    _validate = _to_bool(flag)


def get_validation():
    """Return whether contractions are validated."""
    return _validate


class validation:
    """Context manager that sets the validation flag for the duration of a
    ``with`` block, and restores the old value afterwards.
    """

    def __init__(self, flag=True):
        self.flag = flag

    def __enter__(self):
        self._old_flag = get_validation()
        set_validation(self.flag)
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        set_validation(self._old_flag)


def set_num_threads(n=1):
    """Set the number of threads used for multiplying blocks."""
    global _num_threads
    n = int(n)
    if n < 1:
        raise ValueError("Number of threads must be positive, got %i." % n)
    _num_threads = n


def get_num_threads():
    """Return the number of threads used for multiplying blocks."""
    return _num_threads


_validate = False
_num_threads = 1
set_validation(os.getenv("QNTENSORS_VALIDATE", default="0"))
set_num_threads(os.getenv("QNTENSORS_NUM_THREADS", default="1"))
