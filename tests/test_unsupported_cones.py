import numpy as np
import pytest

from conic_bridge.errors import DimensionMismatchError, UnsupportedConeError
from conic_bridge.reformulate.bridge import LPQPtoConicBridge
from conic_bridge.reformulate.utils import partition_constraint_cones
from conic_bridge.schemas import Cone


@pytest.mark.parametrize("kind", ["SOCRotated", "SDP", "ExpPrimal", "ExpDual"])
def test_unsupported_constraint_cone_fails_before_backend_call(recording_model, kind):
    bridge = LPQPtoConicBridge(recording_model)

    with pytest.raises(UnsupportedConeError) as excinfo:
        bridge.load_problem([1.0, 1.0, 1.0], np.eye(3), [0.0, 0.0, 0.0], [(kind, [0, 1, 2])], [("Free", [0, 1, 2])])

    assert excinfo.value.kind == kind
    assert recording_model.calls == []
    assert bridge.lpqp_problem is None


@pytest.mark.parametrize("kind", ["SOCRotated", "SDP"])
def test_unsupported_variable_cone_fails_before_backend_call(recording_model, kind):
    bridge = LPQPtoConicBridge(recording_model)

    with pytest.raises(UnsupportedConeError, match=kind):
        bridge.load_problem([1.0, 1.0, 1.0], np.eye(3), [0.0, 0.0, 0.0], [("SOC", [0, 1, 2])], [(kind, [0, 1, 2])])

    assert recording_model.calls == []


def test_unsupported_cone_is_a_value_error():
    with pytest.raises(ValueError):
        raise UnsupportedConeError("SDP")


def test_unknown_cone_kind_is_rejected_by_schema():
    with pytest.raises(ValueError):
        Cone(kind="Banana", indices=[0])


def test_shape_mismatch_raises(recording_model):
    bridge = LPQPtoConicBridge(recording_model)

    with pytest.raises(DimensionMismatchError):
        bridge.load_problem([1.0, 1.0], np.eye(3), [0.0, 0.0, 0.0], [("Zero", [0, 1, 2])], [("Free", [0, 1])])
    assert recording_model.calls == []


def test_negative_index_fails_before_backend_call(recording_model):
    bridge = LPQPtoConicBridge(recording_model)

    with pytest.raises(ValueError):
        bridge.load_problem(
            [1.0, 1.0], np.eye(2), [0.0, 0.0], [("SOC", [0, 1])], [("NonNeg", [-1]), ("Free", [0, 1])]
        )
    assert recording_model.calls == []
    assert bridge.lpqp_problem is None


def test_partition_counts_one_auxiliary_per_soc_row():
    cones = [Cone(kind="SOC", indices=[3, 4, 5]), Cone(kind="Zero", indices=[0]), Cone(kind="SOC", indices=[1, 2])]
    linear_rows, linear_kinds, soc_rows, num_aux = partition_constraint_cones(cones)

    assert linear_rows == [0]
    assert linear_kinds == ["Zero"]
    assert soc_rows == [3, 4, 5, 1, 2]
    assert num_aux == len(soc_rows) == 5
