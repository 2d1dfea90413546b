# pdp_toolkit/dependence/assembler.py
"""Assembly of per-point prediction outputs into the result table.

Layout by output kind:

* scalar   -> predictor columns + ``yhat``, one row per grid point
* summary  -> predictor columns + one column per summary name
* per-row  -> predictor columns + ``yhat`` + ``yhat.id``; rows ordered by
  grid point, then by training row (``yhat.id`` is the 0-based row position)
"""

from typing import List, Sequence

import numpy as np
import pandas as pd

from .prediction import PER_ROW, PredictionOutput
from ..utils.logger import get_logger
from ..utils.exceptions import ConfigurationError, ContractViolationError

logger = get_logger(__name__)

ID_COLUMN = "yhat.id"


def _check_consistent(outputs: Sequence[PredictionOutput]) -> None:
    first = outputs[0]
    for index, output in enumerate(outputs):
        if output.signature != first.signature:
            raise ContractViolationError(
                f"Prediction output at grid point {index} does not match grid point 0",
                error_code="PREDICTION_SHAPE_INCONSISTENT",
                context={
                    "grid_index": index,
                    "expected": first.signature,
                    "got": output.signature
                }
            )


def _check_names(names: Sequence[str], predictors: List[str], per_row: bool) -> None:
    if per_row or names == ("yhat",):
        reserved = ["yhat", ID_COLUMN] if per_row else ["yhat"]
        clashing = [name for name in reserved if name in predictors]
        if clashing:
            raise ConfigurationError(
                f"Predictors {clashing} clash with the result columns; rename them",
                error_code="PREDICTOR_NAME_RESERVED",
                context={"predictors": list(predictors), "reserved": reserved}
            )
        return

    clashing = [name for name in names if name in predictors or name == ID_COLUMN]
    if clashing:
        raise ContractViolationError(
            f"Prediction summary names {clashing} clash with the predictor or '{ID_COLUMN}' columns",
            error_code="PREDICTION_NAME_COLLISION",
            context={"names": list(names), "predictors": list(predictors)}
        )


def assemble_results(
    grid: pd.DataFrame,
    outputs: Sequence[PredictionOutput],
    predictors: List[str],
    center: bool = False,
    per_row: bool = False
) -> pd.DataFrame:
    """Combine the grid with one prediction output per grid point.

    Args:
        grid: Grid the outputs were computed on
        outputs: Outputs in grid order
        predictors: Ordered predictor names
        center: Center per-row curves at their first grid point (c-ICE)
        per_row: Whether per-row outputs were requested; only decides the
            layout of an empty table

    Returns:
        Result table; ``attrs`` holds ``predictors``, ``kind`` and ``n_grid``

    Raises:
        ContractViolationError: If outputs disagree in kind, names or length,
            or summary names clash with other columns
        ConfigurationError: If ``center`` is requested for averaged outputs,
            or a predictor is named like a result column
    """
    if len(outputs) != len(grid):
        raise ContractViolationError(
            f"Got {len(outputs)} prediction outputs for {len(grid)} grid points",
            error_code="OUTPUT_COUNT_MISMATCH",
            context={"n_outputs": len(outputs), "n_grid": len(grid)}
        )

    if not outputs:
        # every grid point was filtered out
        _check_names(("yhat",), predictors, per_row)
        table = grid.loc[:, predictors].reset_index(drop=True).copy()
        table["yhat"] = pd.Series(dtype=float)
        if per_row:
            table[ID_COLUMN] = pd.Series(dtype=np.int64)
        table.attrs.update({"predictors": list(predictors), "kind": "ice" if per_row else "partial", "n_grid": 0})
        return center_curves(table) if center else table

    _check_consistent(outputs)
    first = outputs[0]
    _check_names(first.names, predictors, first.kind == PER_ROW)
    k = len(first.values) if first.kind == PER_ROW else 1

    positions = np.repeat(np.arange(len(grid)), k)
    table = grid.loc[:, predictors].iloc[positions].reset_index(drop=True)

    if first.kind == PER_ROW:
        table["yhat"] = np.concatenate([output.values for output in outputs])
        table[ID_COLUMN] = np.tile(np.arange(k, dtype=np.int64), len(grid))
        kind = "ice"
    else:
        values = np.vstack([output.values for output in outputs])
        for column, name in enumerate(first.names):
            table[name] = values[:, column]
        kind = "partial"

    table.attrs.update({"predictors": list(predictors), "kind": kind, "n_grid": len(grid)})
    logger.debug(f"Assembled {kind} table: {table.shape}")

    if center:
        table = center_curves(table)

    return table


def center_curves(table: pd.DataFrame) -> pd.DataFrame:
    """Center each ICE curve at its value on the first grid point (c-ICE).

    Args:
        table: Per-row result table from ``assemble_results``

    Returns:
        New table with centered ``yhat`` and ``attrs['kind'] == 'cice'``

    Raises:
        ConfigurationError: If ``table`` has no per-row curves
    """
    if ID_COLUMN not in table.columns:
        raise ConfigurationError(
            "Centering needs individual curves; use ice=True or a per-row prediction function",
            error_code="CENTER_REQUIRES_ICE",
            context={"columns": list(table.columns)}
        )

    centered = table.copy()
    if len(centered) == 0:
        centered.attrs["kind"] = "cice"
        return centered

    # rows are grid-major, so the first block holds every curve's first point
    n_curves = int(centered[ID_COLUMN].max()) + 1
    baseline = centered["yhat"].to_numpy()[:n_curves]
    centered["yhat"] = centered["yhat"].to_numpy() - np.tile(baseline, len(centered) // n_curves)
    centered.attrs = dict(table.attrs, kind="cice")
    return centered
