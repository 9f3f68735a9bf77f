from .qnum import Qnum
from .tensorcommon import TensorCommon
from .tensor import Tensor
from .qtensor import QTensor
from .symmetrytensors import QTensorU1, QTensorZN, QTensorZ2, QTensorZ3
from .contractions import (
    contract,
    ccontract,
    contractc,
    ccontractc,
    dot,
    trace,
    checkcontract,
    identity,
    adjoint,
)
from .errors import (
    ContractionError,
    ShapeMismatchError,
    QuantumNumberMismatchError,
    BlockSizeError,
)
from . import config
