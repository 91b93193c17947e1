# svar/models/structural/impulse_response.py

"""
Structural impulse responses.

This module propagates structural shocks through either the Wold multiplier
sequence or repeated powers of the companion matrix. The companion route does
not depend on the multipliers and is useful to cross-check them.

Classes:
    ImpulseResponseResult: Results container for structural impulse responses

Functions:
    impulse_vectors: Impact responses B @ impulse for every shock
    propagate: Responses at every horizon from the impact responses
    compute_impulse_response: Full impulse response tensor from B
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from svar.core.config import get_core_config
from svar.core.exceptions import DimensionError, MissingConfigurationError, NumericError
from svar.core.types import CompanionMatrix, ImpactMatrix, ImpulseResponseTensor, Matrix, MultiplierSequence
from svar.core.validation import validate_index, validate_square_matrix
from svar.models.structural._numba_core import propagate_impact_numba
from svar.models.structural.base import IdentificationConfig, Recursion, ShockSize
from svar.utils.matrix_ops import matrix_power

# Set up module-level logger
logger = logging.getLogger("svar.models.structural.impulse_response")


@dataclass
class ImpulseResponseResult:
    """
    Results container for structural impulse responses.

    Attributes:
        irf: Responses (nsteps x nvar x nshock), indexed [horizon, response, shock]
        impact: Impact normalisation used
        recursion: Propagation mode used
        shut: Shut-down variable, if any
        identified_shocks: Shocks whose responses are defined; others are NaN
        var_names: Names of the variables
        scheme: Name of the identification scheme, if known
    """

    irf: ImpulseResponseTensor
    impact: ShockSize = ShockSize.ONE_STD_DEV
    recursion: Recursion = Recursion.WOLD
    shut: Optional[int] = None
    identified_shocks: Optional[Tuple[int, ...]] = None
    var_names: Optional[List[str]] = None
    scheme: Optional[str] = None

    def __post_init__(self) -> None:
        if self.irf.ndim != 3:
            raise DimensionError(
                "irf must be 3-dimensional (nsteps x nvar x nshock)",
                array_name="irf",
                expected_shape="(nsteps, nvar, nshock)",
                actual_shape=self.irf.shape
            )

        if self.var_names is None:
            self.var_names = [f"y{i+1}" for i in range(self.irf.shape[1])]

        if self.identified_shocks is None:
            self.identified_shocks = tuple(range(self.irf.shape[2]))

    @property
    def nsteps(self) -> int:
        return self.irf.shape[0]

    def to_pandas(self) -> Dict[str, pd.DataFrame]:
        """
        Convert the responses to one DataFrame per shock.

        Returns:
            Dict[str, pd.DataFrame]: ``irf_shock_<name>`` frames indexed by
            horizon with one column per responding variable
        """
        results = {}
        for m in range(self.irf.shape[2]):
            irf_df = pd.DataFrame(
                self.irf[:, :, m],
                columns=[f"Response of {var}" for var in self.var_names]
            )
            irf_df.index.name = "Horizon"
            results[f"irf_shock_{self.var_names[m]}"] = irf_df

        return results

    def summary(self) -> str:
        """
        Generate a text summary of the impulse responses.

        Returns:
            str: Peak response and its horizon for each identified pair
        """
        header = "Structural Impulse Response Analysis\n"
        header += "=" * len(header) + "\n\n"

        info = ""
        if self.scheme is not None:
            info += f"Identification: {self.scheme}\n"
        info += f"Impact: {self.impact.value}\n"
        info += f"Recursion: {self.recursion.value}\n"
        info += f"Number of horizons: {self.nsteps}\n"
        if self.shut is not None:
            info += f"Shut-down channel: {self.var_names[self.shut]}\n"
        info += "\n"

        irf_summary = "Impulse Response Summary:\n"
        irf_summary += "-" * 80 + "\n"
        for m in self.identified_shocks:
            for i, name in enumerate(self.var_names):
                irf_im = self.irf[:, i, m]
                peak_idx = int(np.argmax(np.abs(irf_im)))
                irf_summary += f"Response of {name} to shock {self.var_names[m]}:\n"
                irf_summary += f"  Impact response: {irf_im[0]:.6f}\n"
                irf_summary += f"  Peak response: {irf_im[peak_idx]:.6f} at horizon {peak_idx}\n\n"

        return header + info + irf_summary


def impulse_vectors(impact_matrix: ImpactMatrix,
                    impact: ShockSize,
                    shocks: Optional[Sequence[int]] = None) -> Matrix:
    """
    Impact responses ``B @ impulse`` for every shock, as columns.

    The impulse for shock m is e_m (one standard deviation) or e_m / B[m, m]
    (unit shock). Columns of shocks not in ``shocks`` are NaN.

    Raises:
        NumericError: If a unit shock is requested where B[m, m] is zero
    """
    nvar = impact_matrix.shape[0]
    if shocks is None:
        shocks = range(nvar)

    vectors = np.full((nvar, nvar), np.nan)
    for m in shocks:
        if impact == ShockSize.UNIT:
            if impact_matrix[m, m] == 0.0:
                raise NumericError(
                    f"Unit shock undefined for shock {m}: zero impact on its own variable",
                    operation="unit shock normalisation",
                    values=0.0,
                    error_type="division by zero"
                )
            vectors[:, m] = impact_matrix[:, m] / impact_matrix[m, m]
        else:
            vectors[:, m] = impact_matrix[:, m]

    return vectors


def propagate(vectors: Matrix,
              nsteps: int,
              recursion: Recursion = Recursion.WOLD,
              multipliers: Optional[MultiplierSequence] = None,
              companion: Optional[CompanionMatrix] = None,
              shut: Optional[int] = None) -> ImpulseResponseTensor:
    """
    Propagate impact responses over ``nsteps`` horizons.

    Horizon 0 is the impact response itself, with the ``shut`` row zeroed.
    Later horizons use ``multipliers[h] @ vectors`` (Wold) or the first
    nvar x nvar block of ``companion**h`` applied to ``vectors`` (companion,
    with the ``shut`` row of the companion matrix zeroed).

    Raises:
        MissingConfigurationError: If the input the recursion needs is absent
        DimensionError: If the multipliers are shorter than ``nsteps``
    """
    nvar, nshock = vectors.shape
    resp = np.empty((nsteps, nvar, nshock))

    impact_resp = vectors.copy()
    if shut is not None:
        impact_resp[shut, :] = 0.0
    resp[0] = impact_resp

    if nsteps == 1:
        return resp

    if recursion == Recursion.WOLD:
        if multipliers is None:
            raise MissingConfigurationError(
                "Wold recursion needs the multiplier sequence",
                setting="multipliers"
            )
        multipliers = np.asarray(multipliers, dtype=np.float64)
        if multipliers.ndim != 3 or multipliers.shape[0] < nsteps or multipliers.shape[1:] != (nvar, nvar):
            raise DimensionError(
                f"multipliers must cover {nsteps} horizons of a {nvar}-variable system",
                array_name="multipliers",
                expected_shape=(nsteps, nvar, nvar),
                actual_shape=multipliers.shape
            )
        psi = np.ascontiguousarray(multipliers[1:nsteps])
        if get_core_config().enable_numba:
            resp[1:] = propagate_impact_numba(psi, np.ascontiguousarray(vectors))
        else:
            resp[1:] = np.einsum("hij,jm->him", psi, vectors)
    else:
        if companion is None:
            raise MissingConfigurationError(
                "Companion recursion needs the companion matrix",
                setting="companion"
            )
        fcomp = np.array(validate_square_matrix(companion, "companion"), copy=True)
        if fcomp.shape[0] < nvar:
            raise DimensionError(
                "companion matrix is smaller than the system",
                array_name="companion",
                expected_shape=f"(>= {nvar}, >= {nvar})",
                actual_shape=fcomp.shape
            )
        if shut is not None:
            fcomp[shut, :] = 0.0
        for h in range(1, nsteps):
            resp[h] = matrix_power(fcomp, h)[:nvar, :nvar] @ vectors

    return resp


def compute_impulse_response(impact_matrix: ImpactMatrix,
                             config: IdentificationConfig,
                             multipliers: Optional[MultiplierSequence] = None,
                             companion: Optional[CompanionMatrix] = None,
                             identified_shocks: Optional[Sequence[int]] = None,
                             var_names: Optional[List[str]] = None) -> ImpulseResponseResult:
    """
    Compute structural impulse responses from an impact matrix.

    Args:
        impact_matrix: Structural impact matrix B (nvar x nvar)
        config: Options (``nsteps``, ``impact``, ``shut``, ``recursion``)
        multipliers: Wold multipliers, needed for the Wold recursion
        companion: Companion matrix, needed for the companion recursion
        identified_shocks: Shocks to compute; defaults to the columns of B
            that are fully finite. Other shock slices are NaN.
        var_names: Names of the variables

    Returns:
        ImpulseResponseResult: Responses indexed [horizon, response, shock]

    Raises:
        DimensionError: If B is not square or the multipliers are too short
        ParameterError: If ``shut`` is out of range
        MissingConfigurationError: If the recursion input is missing
        NumericError: If a unit shock is requested where B[m, m] is zero
    """
    impact_matrix = validate_square_matrix(impact_matrix, "impact_matrix")
    nvar = impact_matrix.shape[0]
    config.validate_for(nvar)

    if identified_shocks is None:
        identified_shocks = tuple(
            m for m in range(nvar) if np.all(np.isfinite(impact_matrix[:, m]))
        )
    else:
        identified_shocks = tuple(validate_index(m, nvar, "identified_shocks") for m in identified_shocks)

    vectors = impulse_vectors(impact_matrix, config.impact, identified_shocks)
    irf = propagate(
        vectors,
        config.nsteps,
        recursion=config.recursion,
        multipliers=multipliers,
        companion=companion,
        shut=config.shut
    )

    unidentified = [m for m in range(nvar) if m not in identified_shocks]
    if unidentified:
        irf[:, :, unidentified] = np.nan
        logger.debug(f"Shocks {unidentified} are unidentified; their responses are NaN")

    return ImpulseResponseResult(
        irf=irf,
        impact=config.impact,
        recursion=config.recursion,
        shut=config.shut,
        identified_shocks=identified_shocks,
        var_names=list(var_names) if var_names is not None else None,
        scheme=config.scheme.name
    )
