# svar/models/structural/variance_decomposition.py

"""
Forecast error variance decomposition.

The h-step forecast error variance of each variable accumulates
psi[k] sigma psi[k]' over k <= h; the contribution of structural shock m
accumulates psi[k] b_m b_m' psi[k]'. The decomposition is the ratio of the
diagonals in percent, and the forecast standard errors are the square roots
of the total diagonal.

A variable whose forecast error variance is zero (up to
``numerical.variance_tol``) has no meaningful decomposition. Those cells are
reported rather than divided through.

Classes:
    VarianceDecompositionResult: Results container for the decomposition

Functions:
    compute_variance_decomposition: Decomposition and forecast standard errors
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import numpy as np
import pandas as pd

from svar.core.config import get_core_config, get_numerical_config
from svar.core.exceptions import (
    DegenerateForecastVarianceError, DimensionError, PartialIdentificationError, warn_numeric
)
from svar.core.types import CovarianceMatrix, ImpactMatrix, Matrix, MultiplierSequence, VarianceDecompositionTensor
from svar.core.validation import validate_finite, validate_positive_int, validate_square_matrix
from svar.models.structural._numba_core import forecast_variance_numba

# Set up module-level logger
logger = logging.getLogger("svar.models.structural.variance_decomposition")


@dataclass
class VarianceDecompositionResult:
    """
    Results container for the forecast error variance decomposition.

    Attributes:
        fevd: Shares in percent (nsteps x nshock x nvar), indexed
            [horizon, shock, variable]; NaN in degenerate cells
        forecast_se: Forecast standard errors (nsteps x nvar)
        degenerate_cells: (horizon, variable) pairs with zero forecast variance
        var_names: Names of the variables
        scheme: Name of the identification scheme, if known
    """

    fevd: VarianceDecompositionTensor
    forecast_se: Matrix
    degenerate_cells: List[Tuple[int, int]] = field(default_factory=list)
    var_names: Optional[List[str]] = None
    scheme: Optional[str] = None

    def __post_init__(self) -> None:
        if self.fevd.ndim != 3:
            raise DimensionError(
                "fevd must be 3-dimensional (nsteps x nshock x nvar)",
                array_name="fevd",
                expected_shape="(nsteps, nshock, nvar)",
                actual_shape=self.fevd.shape
            )

        if self.var_names is None:
            self.var_names = [f"y{i+1}" for i in range(self.fevd.shape[2])]

    @property
    def nsteps(self) -> int:
        return self.fevd.shape[0]

    def to_pandas(self) -> Dict[str, pd.DataFrame]:
        """
        Convert the decomposition to DataFrames.

        Returns:
            Dict[str, pd.DataFrame]: ``fevd_<name>`` frames (horizon by shock)
            for each variable, plus ``forecast_se`` (horizon by variable)
        """
        results = {}
        for v, name in enumerate(self.var_names):
            fevd_df = pd.DataFrame(
                self.fevd[:, :, v],
                columns=[f"Contribution from {var}" for var in self.var_names]
            )
            fevd_df.index.name = "Horizon"
            results[f"fevd_{name}"] = fevd_df

        se_df = pd.DataFrame(self.forecast_se, columns=self.var_names)
        se_df.index.name = "Horizon"
        results["forecast_se"] = se_df

        return results

    def summary(self) -> str:
        """
        Generate a text summary of the decomposition at the first and last horizon.
        """
        header = "Forecast Error Variance Decomposition\n"
        header += "=" * len(header) + "\n\n"

        info = ""
        if self.scheme is not None:
            info += f"Identification: {self.scheme}\n"
        info += f"Number of horizons: {self.nsteps}\n"
        if self.degenerate_cells:
            info += f"Degenerate cells: {len(self.degenerate_cells)}\n"
        info += "\n"

        body = ""
        for v, name in enumerate(self.var_names):
            body += f"Variable {name}:\n"
            body += "-" * 80 + "\n"
            for h in sorted({0, self.nsteps - 1}):
                shares = ", ".join(
                    f"{self.var_names[m]}: {self.fevd[h, m, v]:.2f}%"
                    for m in range(self.fevd.shape[1])
                )
                body += f"  Horizon {h}: {shares} (SE {self.forecast_se[h, v]:.6f})\n"
            body += "\n"

        return header + info + body


def compute_variance_decomposition(impact_matrix: ImpactMatrix,
                                   multipliers: MultiplierSequence,
                                   sigma: CovarianceMatrix,
                                   nsteps: int,
                                   strict: bool = False,
                                   var_names: Optional[List[str]] = None,
                                   scheme: Optional[str] = None) -> VarianceDecompositionResult:
    """
    Compute the forecast error variance decomposition.

    Args:
        impact_matrix: Structural impact matrix B; every column must be identified
        multipliers: Wold multipliers covering at least ``nsteps`` horizons
        sigma: Residual covariance matrix
        nsteps: Number of horizons
        strict: Raise on degenerate cells instead of reporting them as NaN
        var_names: Names of the variables
        scheme: Name of the identification scheme, for reporting

    Returns:
        VarianceDecompositionResult: Shares in percent and forecast standard errors

    Raises:
        DimensionError: If the inputs do not conform
        PartialIdentificationError: If whole columns of B are unidentified (NaN)
        DataError: If B holds other non-finite values
        DegenerateForecastVarianceError: With ``strict=True``, if any forecast
            error variance is zero
    """
    nsteps = validate_positive_int(nsteps, "nsteps")
    impact_matrix = validate_square_matrix(impact_matrix, "impact_matrix")
    nvar = impact_matrix.shape[0]

    identified = [m for m in range(nvar) if np.all(np.isfinite(impact_matrix[:, m]))]
    if len(identified) < nvar and np.all(np.isnan(np.delete(impact_matrix, identified, axis=1))):
        raise PartialIdentificationError(
            "Variance decomposition needs every structural shock identified",
            identified_shocks=identified,
            details="The shares of the identified shocks cannot be separated from the rest"
        )
    validate_finite(impact_matrix, "impact_matrix")
    sigma = validate_square_matrix(sigma, "sigma", size=nvar)

    multipliers = np.asarray(multipliers, dtype=np.float64)
    if multipliers.ndim != 3 or multipliers.shape[0] < nsteps or multipliers.shape[1:] != (nvar, nvar):
        raise DimensionError(
            f"multipliers must cover {nsteps} horizons of a {nvar}-variable system",
            array_name="multipliers",
            expected_shape=(nsteps, nvar, nvar),
            actual_shape=multipliers.shape
        )
    psi = np.ascontiguousarray(multipliers[:nsteps])

    if get_core_config().enable_numba:
        total, contrib = forecast_variance_numba(psi, np.ascontiguousarray(sigma), np.ascontiguousarray(impact_matrix))
    else:
        step_total = np.einsum("hvi,ij,hvj->hv", psi, sigma, psi)
        step_contrib = np.einsum("hvi,im->hmv", psi, impact_matrix) ** 2
        total = np.cumsum(step_total, axis=0)
        contrib = np.cumsum(step_contrib, axis=0)

    tol = get_numerical_config().variance_tol
    degenerate = total <= tol
    cells = [(int(h), int(v)) for h, v in np.argwhere(degenerate)]

    if cells and strict:
        raise DegenerateForecastVarianceError(
            f"Forecast error variance is zero in {len(cells)} (horizon, variable) cell(s)",
            cells=cells,
            context={"Variance Tolerance": tol}
        )

    safe_total = np.where(degenerate, 1.0, total)
    fevd = 100.0 * contrib / safe_total[:, None, :]
    fevd = np.where(degenerate[:, None, :], np.nan, fevd)

    if cells:
        warn_numeric(
            f"Forecast error variance is zero in {len(cells)} cell(s); their shares are NaN",
            operation="variance decomposition",
            issue="zero forecast error variance",
            value=cells[:10]
        )
        logger.warning(f"Degenerate forecast error variance in cells {cells[:10]}")

    forecast_se = np.sqrt(np.maximum(total, 0.0))

    return VarianceDecompositionResult(
        fevd=fevd,
        forecast_se=forecast_se,
        degenerate_cells=cells,
        var_names=list(var_names) if var_names is not None else None,
        scheme=scheme
    )
