# svar/models/structural/instrument.py

"""
External instrument (proxy) identification.

Recovers the first column of the structural impact matrix from an observed
series correlated with the first structural shock and uncorrelated with the
others. The residual of the first variable is instrumented in a first-stage
OLS regression; the remaining residuals are regressed on the first-stage
fitted values, and the resulting slopes are rescaled so the identified shock
has unit variance (Gertler and Karadi, 2015, equation 4).

Only the first column is identified. Callers building a full impact matrix
must mark the other columns as unidentified.

Classes:
    InstrumentDiagnostics: First- and second-stage results and the identified column

Functions:
    common_sample: Trim series to their common non-missing range
    instrument_identification: Two-stage identification of the first column of B
"""

import logging
from dataclasses import dataclass
from typing import Tuple

import numpy as np
import pandas as pd
import statsmodels.api as sm

from svar.core.exceptions import InsufficientOverlapError, NumericError, raise_data_error, raise_dimension_error, warn_model
from svar.core.types import InstrumentData, Matrix, Vector
from svar.core.validation import validate_finite, validate_matrix_shape, validate_positive_int
from svar.utils.misc import ensure_dataframe

# Set up module-level logger
logger = logging.getLogger("svar.models.structural.instrument")

# Conventional threshold for a weak first stage (Staiger and Stock, 1997)
WEAK_INSTRUMENT_F = 10.0


@dataclass
class InstrumentDiagnostics:
    """
    Results of external instrument identification.

    Attributes:
        first_stage_params: Constant and instrument coefficients of the first stage
        first_stage_fitted: Fitted values of the instrumented residual
        rsquared: First-stage R-squared
        fstat: First-stage F-statistic
        nobs: Length of the common sample
        first_obs: First residual row in the common sample
        last_obs: Last residual row in the common sample
        second_stage_slopes: Slopes of the remaining residuals on the fitted values
        sigma_b: Degrees-of-freedom corrected covariance of the aligned residuals
        sp: Scale of the identified shock
        b: Identified first column of B (first entry normalised to 1 before scaling)
    """
    first_stage_params: Vector
    first_stage_fitted: Vector
    rsquared: float
    fstat: float
    nobs: int
    first_obs: int
    last_obs: int
    second_stage_slopes: Vector
    sigma_b: Matrix
    sp: float
    b: Vector

    @property
    def is_weak(self) -> bool:
        """True when the first-stage F-statistic is below 10."""
        return bool(self.fstat < WEAK_INSTRUMENT_F)


def common_sample(data: pd.DataFrame) -> Tuple[pd.DataFrame, int, int]:
    """
    Trim a frame to the range where every column is observed.

    The range runs from the first to the last row without missing values.
    Missing values inside that range cannot be aligned and are rejected.

    Args:
        data: Frame of series sharing one time index

    Returns:
        Tuple of the trimmed frame and the positions of its first and last rows

    Raises:
        DataError: If no row is complete or a gap falls inside the common range
    """
    complete = data.notna().all(axis=1).to_numpy()
    rows = np.flatnonzero(complete)

    if rows.size == 0:
        raise InsufficientOverlapError(
            "Instrument and residuals share no complete observation",
            nobs=0
        )

    first, last = int(rows[0]), int(rows[-1])
    if not complete[first:last + 1].all():
        gap = first + int(np.flatnonzero(~complete[first:last + 1])[0])
        raise_data_error(
            "Missing values inside the common sample cannot be aligned",
            data_name="instrument",
            issue="interior missing values",
            index=gap
        )

    logger.debug(f"Common sample runs from row {first} to row {last}")
    return data.iloc[first:last + 1], first, last


def instrument_identification(residuals: Matrix,
                              instrument: InstrumentData,
                              nlag: int,
                              ntotcoeff: int) -> InstrumentDiagnostics:
    """
    Identify the first column of B with an external instrument.

    Args:
        residuals: Reduced-form residuals (T x nvar); column 0 is instrumented
        instrument: Instrument series with T rows (aligned with the residuals)
            or T + nlag rows (aligned with the original data, the first
            ``nlag`` rows are dropped); one or more columns; NaN marks
            missing observations
        nlag: Lag order of the VAR
        ntotcoeff: Coefficients per equation, for the covariance correction

    Returns:
        InstrumentDiagnostics: Diagnostics including the identified column ``b``

    Raises:
        DimensionError: If the instrument length matches neither T nor T + nlag
        DataError: If the residuals hold NaN or infinite values
        DataError: If missing values fall inside the common sample
        InsufficientOverlapError: If the common sample is too short
        NumericError: If the shock scale is not a real number
    """
    residuals = validate_matrix_shape(residuals, (None, None), "residuals")
    validate_finite(residuals, "residuals")
    nlag = validate_positive_int(nlag, "nlag")
    ntotcoeff = validate_positive_int(ntotcoeff, "ntotcoeff")
    nobs_resid, nvar = residuals.shape

    z = ensure_dataframe(instrument)
    z.columns = [f"z{i+1}" for i in range(z.shape[1])]
    if len(z) == nobs_resid + nlag:
        z = z.iloc[nlag:]
    elif len(z) != nobs_resid:
        raise_dimension_error(
            "instrument must have T or T + nlag rows",
            array_name="instrument",
            expected_shape=f"({nobs_resid} or {nobs_resid + nlag}, nz)",
            actual_shape=z.shape
        )
    z = z.reset_index(drop=True).astype(np.float64)

    data = pd.concat([pd.DataFrame({"p": residuals[:, 0]}), z], axis=1)
    aligned, first, last = common_sample(data)
    nobs = len(aligned)
    nz = z.shape[1]

    required = max(ntotcoeff, nz + 1)
    if nobs <= required:
        raise InsufficientOverlapError(
            f"Common sample of {nobs} observations is too short",
            nobs=nobs,
            required=required + 1
        )

    p = aligned["p"].to_numpy()
    q = residuals[first:last + 1, 1:]

    # First stage: instrumented residual on the instrument(s)
    first_stage = sm.OLS(p, sm.add_constant(aligned[z.columns].to_numpy(), has_constant="add")).fit()
    p_hat = np.asarray(first_stage.fittedvalues)
    fstat = float(first_stage.fvalue)
    logger.debug(f"First stage: nobs={nobs}, R2={first_stage.rsquared:.4f}, F={fstat:.4f}")

    if fstat < WEAK_INSTRUMENT_F:
        warn_model(
            f"Weak instrument: first-stage F-statistic {fstat:.2f} is below {WEAK_INSTRUMENT_F:.0f}",
            model_type="SVAR",
            issue="weak instrument"
        )

    # Second stage: remaining residuals on the fitted values
    exog = sm.add_constant(p_hat, has_constant="add")
    slopes = np.array([sm.OLS(q[:, i], exog).fit().params[1] for i in range(nvar - 1)])

    pq = np.column_stack([p, q])
    demeaned = pq - pq.mean(axis=0)
    sigma_b = demeaned.T @ demeaned / (nobs - ntotcoeff)

    s11 = sigma_b[0, 0]
    if nvar > 1:
        s = slopes.reshape(-1, 1)
        s21 = sigma_b[1:, :1]
        s22 = sigma_b[1:, 1:]
        big_q = s * s11 @ s.T - (s21 @ s.T + s @ s21.T) + s22
        gap = s21 - s * s11
        sp2 = float(s11 - (gap.T @ np.linalg.solve(big_q, gap)).item())
    else:
        sp2 = s11

    if not np.isfinite(sp2) or sp2 < 0:
        raise NumericError(
            "Shock scale of the instrumented shock is not a real number",
            operation="instrument shock scaling",
            values=sp2,
            error_type="negative variance"
        )
    sp = float(np.sqrt(sp2))

    b = np.concatenate([[1.0], slopes]) * sp

    return InstrumentDiagnostics(
        first_stage_params=np.asarray(first_stage.params),
        first_stage_fitted=p_hat,
        rsquared=float(first_stage.rsquared),
        fstat=fstat,
        nobs=nobs,
        first_obs=first,
        last_obs=last,
        second_stage_slopes=slopes,
        sigma_b=sigma_b,
        sp=sp,
        b=b
    )
