# tests/test_evaluator.py
"""Unit tests for single grid point evaluation."""

import pandas as pd
import pytest

from pdp_toolkit.dependence.evaluator import DependenceEvaluator, evaluate_point
from pdp_toolkit.dependence.prediction import PER_ROW, SCALAR, DefaultPrediction
from pdp_toolkit.utils.exceptions import ContractViolationError, EvaluationFailure


class RecordingPrediction:
    """Keeps the data frames it was called with."""

    def __init__(self):
        self.calls = []

    def __call__(self, model, data):
        self.calls.append(data)
        return 0.0


@pytest.mark.unit
class TestDependenceEvaluator:
    """Test cases for DependenceEvaluator."""

    def test_predictors_overwritten_others_untouched(self, regression_frame):
        recorder = RecordingPrediction()
        evaluator = DependenceEvaluator(None, regression_frame, ["x1", "group"], recorder)

        evaluator.evaluate(0, {"x1": 4.5, "group": "b"})

        seen = recorder.calls[0]
        assert (seen["x1"] == 4.5).all()
        assert (seen["group"] == "b").all()
        pd.testing.assert_series_equal(seen["x2"], regression_frame["x2"])
        pd.testing.assert_index_equal(seen.index, regression_frame.index)

    def test_training_data_not_modified(self, regression_frame):
        snapshot = regression_frame.copy()
        evaluator = DependenceEvaluator(None, regression_frame, ["x1"], RecordingPrediction())

        evaluator.evaluate(0, {"x1": -100.0})

        pd.testing.assert_frame_equal(regression_frame, snapshot)

    def test_each_evaluation_gets_its_own_copy(self, regression_frame):
        recorder = RecordingPrediction()
        evaluator = DependenceEvaluator(None, regression_frame, ["x1"], recorder)

        evaluator.evaluate(0, {"x1": 1.0})
        evaluator.evaluate(1, {"x1": 2.0})

        assert recorder.calls[0] is not recorder.calls[1]
        assert (recorder.calls[0]["x1"] == 1.0).all()

    def test_categorical_dtype_preserved(self, regression_frame):
        recorder = RecordingPrediction()
        evaluator = DependenceEvaluator(None, regression_frame, ["group"], recorder)

        evaluator.evaluate(0, {"group": "c"})

        assert recorder.calls[0]["group"].dtype == regression_frame["group"].dtype

    def test_default_prediction(self, additive_model, regression_frame):
        evaluator = DependenceEvaluator(additive_model, regression_frame, ["x1"], DefaultPrediction(ice=True))

        output = evaluate_point(evaluator, 3, {"x1": 0.0})

        assert output.kind == PER_ROW
        assert len(output.values) == len(regression_frame)

    def test_prediction_failure_wrapped(self, regression_frame):
        def failing(model, data):
            raise ValueError("model exploded")

        evaluator = DependenceEvaluator(None, regression_frame, ["x1"], failing)

        with pytest.raises(EvaluationFailure) as exc_info:
            evaluator.evaluate(2, {"x1": 1.0})

        error = exc_info.value
        assert isinstance(error.__cause__, ValueError)
        assert error.context["grid_index"] == 2
        assert error.context["point"] == {"x1": 1.0}
        assert error.error_code == "EVALUATION_FAILED"

    def test_package_errors_pass_through(self, regression_frame):
        def strict(model, data):
            raise ContractViolationError("custom contract", error_code="CUSTOM")

        evaluator = DependenceEvaluator(None, regression_frame, ["x1"], strict)

        with pytest.raises(ContractViolationError) as exc_info:
            evaluator.evaluate(0, {"x1": 1.0})
        assert exc_info.value.error_code == "CUSTOM"

    def test_output_shape_validated(self, regression_frame):
        evaluator = DependenceEvaluator(None, regression_frame, ["x1"], lambda model, data: [1.0, 2.0])

        with pytest.raises(ContractViolationError):
            evaluator.evaluate(0, {"x1": 1.0})

    def test_scalar_output(self, regression_frame):
        evaluator = DependenceEvaluator(None, regression_frame, ["x1"], lambda model, data: data["x1"].mean())
        output = evaluator.evaluate(0, {"x1": 2.5})
        assert output.kind == SCALAR
        assert output.values.tolist() == [2.5]
