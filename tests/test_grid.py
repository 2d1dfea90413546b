# tests/test_grid.py
"""Unit tests for grid construction and the convex hull filter."""

import warnings

import numpy as np
import pandas as pd
import pytest

from pdp_toolkit.config.dependence_config import ExplicitGrid, QuantileGrid, ResolutionGrid
from pdp_toolkit.dependence.grid import (
    DEFAULT_RESOLUTION,
    GridWarning,
    build_grid,
    filter_convex_hull,
    is_categorical
)
from pdp_toolkit.utils.exceptions import ConfigurationError, DataValidationError


@pytest.mark.unit
class TestResolutionGrid:
    """Test cases for equally spaced grids."""

    def test_resolution_example(self, x_frame):
        grid = build_grid(x_frame, ["x"], ResolutionGrid(5))
        assert grid["x"].tolist() == pytest.approx([1.0, 3.25, 5.5, 7.75, 10.0])
        assert list(grid.columns) == ["x"]
        assert isinstance(grid.index, pd.RangeIndex)

    @pytest.mark.parametrize("resolution", [2, 3, 7, 20])
    def test_cardinality_and_endpoints(self, regression_frame, resolution):
        grid = build_grid(regression_frame, ["x1"], ResolutionGrid(resolution))
        values = grid["x1"].to_numpy()

        assert len(values) == resolution
        assert len(np.unique(values)) == resolution
        assert values[0] == regression_frame["x1"].min()
        assert values[-1] == regression_frame["x1"].max()

    def test_resolution_below_two_rejected(self):
        with pytest.raises(ConfigurationError):
            ResolutionGrid(1)

    def test_default_uses_unique_values_when_few(self, regression_frame):
        grid = build_grid(regression_frame, ["x3"])
        assert grid["x3"].tolist() == sorted(regression_frame["x3"].unique())

    def test_default_caps_at_default_resolution(self, regression_frame):
        grid = build_grid(regression_frame, ["x1"])
        assert len(grid) == DEFAULT_RESOLUTION

    def test_cartesian_product_first_predictor_fastest(self):
        data = pd.DataFrame({"a": [0.0, 1.0], "b": [10.0, 20.0]})
        grid = build_grid(data, ["a", "b"], ResolutionGrid(2))

        assert len(grid) == 4
        assert grid["a"].tolist() == [0.0, 1.0, 0.0, 1.0]
        assert grid["b"].tolist() == [10.0, 10.0, 20.0, 20.0]

    def test_mixed_predictors(self, regression_frame):
        grid = build_grid(regression_frame, ["x1", "group"], ResolutionGrid(4))

        # three observed levels; the unused category is not part of the grid
        assert len(grid) == 4 * 3
        assert list(grid.columns) == ["x1", "group"]
        assert grid["group"].dtype == regression_frame["group"].dtype
        assert set(grid["group"]) == {"a", "b", "c"}

    def test_trim_outliers_narrows_range(self):
        data = pd.DataFrame({"x": list(range(1, 21)) + [1000]})

        full = build_grid(data, ["x"], ResolutionGrid(3))
        trimmed = build_grid(data, ["x"], ResolutionGrid(3), trim_outliers=True)

        assert full["x"].max() == 1000
        assert trimmed["x"].max() == 20
        assert trimmed["x"].min() == 1

    def test_missing_values_ignored(self):
        data = pd.DataFrame({"x": [1.0, np.nan, 3.0]})
        grid = build_grid(data, ["x"], ResolutionGrid(3))
        assert grid["x"].tolist() == [1.0, 2.0, 3.0]

    def test_all_missing_predictor_rejected(self):
        data = pd.DataFrame({"x": [np.nan, np.nan]})
        with pytest.raises(DataValidationError):
            build_grid(data, ["x"], ResolutionGrid(3))


@pytest.mark.unit
class TestQuantileGrid:
    """Test cases for quantile grids."""

    def test_quantile_values(self, x_frame):
        grid = build_grid(x_frame, ["x"], QuantileGrid((0.0, 0.5, 1.0)))
        assert grid["x"].tolist() == pytest.approx([1.0, 5.5, 10.0])

    def test_default_deciles(self, x_frame):
        grid = build_grid(x_frame, ["x"], {"quantile_probs": None})
        assert len(grid) == 9
        assert grid["x"].is_monotonic_increasing

    def test_invalid_probabilities_rejected(self):
        with pytest.raises(ConfigurationError):
            QuantileGrid((0.5, 1.5))
        with pytest.raises(ConfigurationError):
            QuantileGrid(())

    def test_collapsed_quantiles_warn(self):
        data = pd.DataFrame({"x": [5.0] * 10})
        with pytest.warns(GridWarning):
            grid = build_grid(data, ["x"], QuantileGrid((0.25, 0.75)))
        assert grid["x"].tolist() == [5.0, 5.0]


@pytest.mark.unit
class TestCategoricalAxes:
    """Test cases for discrete predictors."""

    def test_detection(self, regression_frame):
        assert is_categorical(regression_frame["group"])
        assert not is_categorical(regression_frame["x1"])
        assert is_categorical(regression_frame["x3"], categorical=["x3"])
        assert is_categorical(pd.Series([True, False], name="flag"))

    def test_object_levels_sorted(self):
        data = pd.DataFrame({"s": ["b", "a", "c", "a"]})
        grid = build_grid(data, ["s"], ResolutionGrid(10))
        assert grid["s"].tolist() == ["a", "b", "c"]
        assert grid["s"].dtype == object

    def test_integer_declared_categorical(self, regression_frame):
        grid = build_grid(regression_frame, ["x3"], ResolutionGrid(2), categorical=["x3"])
        assert grid["x3"].tolist() == sorted(regression_frame["x3"].unique())
        assert grid["x3"].dtype == regression_frame["x3"].dtype


@pytest.mark.unit
class TestExplicitGrid:
    """Test cases for user supplied grids."""

    def test_columns_reordered_and_index_reset(self):
        data = pd.DataFrame({"a": [1, 2], "b": [3, 4]})
        values = pd.DataFrame({"b": [30, 40], "a": [10, 20]}, index=[7, 9])

        grid = build_grid(data, ["a", "b"], ExplicitGrid(values))

        assert list(grid.columns) == ["a", "b"]
        assert grid["a"].tolist() == [10, 20]
        assert grid["b"].tolist() == [30, 40]
        assert isinstance(grid.index, pd.RangeIndex)

    def test_dataframe_shorthand(self, x_frame):
        grid = build_grid(x_frame, ["x"], pd.DataFrame({"x": [2, 4]}))
        assert grid["x"].tolist() == [2, 4]

    def test_missing_column_rejected(self):
        data = pd.DataFrame({"a": [1], "b": [2]})
        with pytest.raises(ConfigurationError) as exc_info:
            build_grid(data, ["a", "b"], ExplicitGrid(pd.DataFrame({"a": [1]})))
        assert exc_info.value.error_code == "GRID_COLUMNS_MISMATCH"

    def test_extra_column_rejected(self):
        data = pd.DataFrame({"a": [1], "b": [2]})
        with pytest.raises(ConfigurationError):
            build_grid(data, ["a"], ExplicitGrid(pd.DataFrame({"a": [1], "b": [2]})))

    def test_empty_grid_rejected(self):
        with pytest.raises(ConfigurationError):
            ExplicitGrid(pd.DataFrame({"a": []}))

    def test_ambiguous_mapping_rejected(self, x_frame):
        with pytest.raises(ConfigurationError):
            build_grid(x_frame, ["x"], {"resolution": 5, "quantile_probs": [0.5]})


@pytest.mark.unit
class TestConvexHull:
    """Test cases for the convex hull filter."""

    def test_triangle_support(self):
        data = pd.DataFrame({"a": [0.0, 1.0, 0.0], "b": [0.0, 0.0, 1.0]})
        grid = build_grid(data, ["a", "b"], ResolutionGrid(3))

        filtered = filter_convex_hull(grid, data, ["a", "b"])

        # boundary points such as (0.5, 0.5) are kept
        kept = list(zip(filtered["a"], filtered["b"]))
        assert kept == [(0.0, 0.0), (0.5, 0.0), (1.0, 0.0), (0.0, 0.5), (0.5, 0.5), (0.0, 1.0)]
        assert isinstance(filtered.index, pd.RangeIndex)

    def test_never_grows_and_only_removes_outside_points(self, regression_frame):
        predictors = ["x1", "x2"]
        grid = build_grid(regression_frame, predictors, ResolutionGrid(8))
        filtered = filter_convex_hull(grid, regression_frame, predictors)

        assert len(filtered) <= len(grid)
        merged = filtered.merge(grid, on=predictors, how="left", indicator=True)
        assert (merged["_merge"] == "both").all()

    def test_square_support_keeps_everything(self):
        data = pd.DataFrame({"a": [0.0, 1.0, 0.0, 1.0], "b": [0.0, 0.0, 1.0, 1.0]})
        grid = build_grid(data, ["a", "b"], ResolutionGrid(5))
        assert len(filter_convex_hull(grid, data, ["a", "b"])) == len(grid)

    def test_extra_predictors_carried_along(self):
        data = pd.DataFrame({
            "a": [0.0, 1.0, 0.0],
            "b": [0.0, 0.0, 1.0],
            "c": [5.0, 6.0, 7.0]
        })
        grid = build_grid(data, ["a", "b", "c"], ResolutionGrid(2))
        filtered = filter_convex_hull(grid, data, ["a", "b", "c"])

        assert list(filtered.columns) == ["a", "b", "c"]
        assert not ((filtered["a"] == 1.0) & (filtered["b"] == 1.0)).any()
        assert len(filtered) == 6

    def test_single_predictor_rejected(self, x_frame):
        grid = build_grid(x_frame, ["x"], ResolutionGrid(3))
        with pytest.raises(ConfigurationError):
            filter_convex_hull(grid, x_frame, ["x"])

    def test_categorical_predictor_rejected(self, regression_frame):
        grid = build_grid(regression_frame, ["x1", "group"], ResolutionGrid(3))
        with pytest.raises(ConfigurationError):
            filter_convex_hull(grid, regression_frame, ["x1", "group"])

    def test_degenerate_support_rejected(self):
        data = pd.DataFrame({"a": [0.0, 1.0, 2.0], "b": [0.0, 1.0, 2.0]})
        grid = build_grid(data, ["a", "b"], ResolutionGrid(3))
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            with pytest.raises(ConfigurationError) as exc_info:
                filter_convex_hull(grid, data, ["a", "b"])
        assert exc_info.value.error_code == "CHULL_FAILED"
