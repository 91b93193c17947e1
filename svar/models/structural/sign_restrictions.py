# svar/models/structural/sign_restrictions.py

"""
Sign-restriction identification by rejection sampling.

Draws orthonormal rotations of a square root of the covariance matrix until
the implied responses match a sign pattern. Restrictions are matched greedily:
for each restricted shock in pattern order the first unassigned candidate
column whose responses (or negated responses) satisfy the pattern is taken,
with no backtracking. A draw that fails under this order is rejected even if
another assignment would have succeeded.

The first draw is the unrotated starting matrix, so a pattern that the
Cholesky root already satisfies is accepted without rotating.

Classes:
    SignSearchResult: Outcome of a rotation search

Functions:
    sign_restriction_search: Search for an impact matrix satisfying a sign pattern
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np
from scipy import linalg

from svar.core.config import get_defaults_config
from svar.core.exceptions import MissingConfigurationError, raise_dimension_error, raise_parameter_error
from svar.core.types import CompanionMatrix, CovarianceMatrix, ImpactMatrix, Matrix, MultiplierSequence, RandomState, SignPattern
from svar.core.validation import validate_matrix_shape, validate_positive_int, validate_sign_pattern
from svar.models.structural.base import Recursion
from svar.models.structural.impulse_response import propagate
from svar.utils.matrix_ops import cholesky_lower, random_orthonormal
from svar.utils.misc import as_generator

# Set up module-level logger
logger = logging.getLogger("svar.models.structural.sign_restrictions")


@dataclass
class SignSearchResult:
    """
    Outcome of a sign-restriction rotation search.

    Attributes:
        impact_matrix: Accepted impact matrix, None when the search failed
        success: Whether a draw satisfied every restriction
        rotations: Number of draws made
        max_rotations: The cap on draws
        order: Candidate column placed at each position of the impact matrix
    """
    impact_matrix: Optional[ImpactMatrix]
    success: bool
    rotations: int
    max_rotations: int
    order: Optional[Tuple[int, ...]] = None


def _starting_matrix(chol: Matrix,
                     fixed: Optional[Matrix],
                     rng: np.random.Generator) -> Matrix:
    """Square root of sigma whose leading columns reproduce ``fixed``."""
    if fixed is None or fixed.shape[1] == 0:
        return chol.copy()

    nvar = chol.shape[0]
    q = linalg.solve_triangular(chol, fixed, lower=True)
    for _ in range(fixed.shape[1], nvar):
        r = rng.standard_normal(nvar)
        direction = r - q @ (q.T @ r)
        q = np.column_stack([q, direction / np.linalg.norm(direction)])

    return chol @ q


def _match_columns(candidate: Matrix,
                   responses: np.ndarray,
                   signs: SignPattern,
                   nfixed: int) -> Optional[np.ndarray]:
    """
    Assign candidate columns to restrictions in pattern order.

    ``responses`` is (horizons x nvar x nvar). Columns matched through their
    negation are flipped in ``candidate`` in place. Returns the column order,
    or None if some restriction finds no column.
    """
    nvar = candidate.shape[0]
    order = np.arange(nvar)
    assigned = np.zeros(nvar, dtype=bool)

    for ii in range(signs.shape[1]):
        pattern = signs[:, ii]
        for jj in range(nfixed, nvar):
            if assigned[jj]:
                continue
            check = responses[:, :, jj] * pattern
            if np.all(check >= 0):
                pass
            elif np.all(-check >= 0):
                candidate[:, jj] = -candidate[:, jj]
            else:
                continue
            assigned[jj] = True
            order[nfixed + ii] = jj
            break
        else:
            return None

    return order


def sign_restriction_search(sigma: CovarianceMatrix,
                            signs: SignPattern,
                            *,
                            horizon: Optional[int] = None,
                            max_rotations: Optional[int] = None,
                            multipliers: Optional[MultiplierSequence] = None,
                            companion: Optional[CompanionMatrix] = None,
                            recursion: Recursion = Recursion.WOLD,
                            fixed_columns: Optional[Matrix] = None,
                            random_state: RandomState = None) -> SignSearchResult:
    """
    Search for an impact matrix whose responses satisfy a sign pattern.

    Each draw builds a square root of ``sigma`` (the lower Cholesky root, or a
    root whose leading columns equal ``fixed_columns``), rotates its free
    columns by a random orthonormal matrix and checks the pattern against the
    impact responses, or the one-standard-deviation responses over ``horizon``
    periods when ``horizon > 1``.

    The horizon check propagates every channel; a ``shut`` setting on the
    identification config is not applied to it.

    Args:
        sigma: Covariance to factor; with ``fixed_columns`` this is the
            covariance those columns were identified under
        signs: Sign pattern (nvar x ds) with entries in {-1, 0, 1}; rows are
            responding variables, columns restricted shocks
        horizon: Number of horizons checked (None uses ``defaults.sign_horizon``)
        max_rotations: Cap on draws (None uses ``defaults.max_rotations``)
        multipliers: Wold multipliers covering ``horizon`` (Wold recursion)
        companion: Companion matrix (companion recursion)
        recursion: Propagation mode used for the horizon check
        fixed_columns: Pre-identified leading columns (nvar x (nvar - ds))
        random_state: Seed or generator for the rotation draws

    Returns:
        SignSearchResult: ``success`` is False when the cap was exhausted; the
        search never raises for an unsatisfiable pattern

    Raises:
        DimensionError: If ``signs`` and ``fixed_columns`` do not fit together
        NotPositiveDefiniteError: If ``sigma`` cannot be factored
        MissingConfigurationError: If ``horizon > 1`` without the recursion input
    """
    defaults = get_defaults_config()
    horizon = validate_positive_int(defaults.sign_horizon if horizon is None else horizon, "horizon")
    max_rotations = validate_positive_int(
        defaults.max_rotations if max_rotations is None else max_rotations, "max_rotations"
    )

    chol = cholesky_lower(sigma, "sigma")
    nvar = chol.shape[0]
    signs = validate_sign_pattern(signs, nvar)
    ds = signs.shape[1]
    if ds == 0:
        raise_parameter_error(
            "signs must restrict at least one shock",
            param_name="signs",
            param_value=signs.shape,
            constraint="at least one column"
        )

    nfixed = nvar - ds
    if fixed_columns is not None:
        fixed = np.asarray(fixed_columns, dtype=np.float64)
        if fixed.ndim == 1:
            fixed = fixed[:, None]
        fixed = validate_matrix_shape(fixed, (nvar, None), "fixed_columns")
        if fixed.shape[1] != nfixed:
            raise_dimension_error(
                "fixed_columns and signs must together cover every shock",
                array_name="fixed_columns",
                expected_shape=(nvar, nfixed),
                actual_shape=fixed.shape
            )
    elif nfixed != 0:
        raise_dimension_error(
            "signs must have one column per variable when no columns are fixed",
            array_name="signs",
            expected_shape=(nvar, nvar),
            actual_shape=signs.shape
        )
    else:
        fixed = None

    if horizon > 1:
        if recursion == Recursion.WOLD and multipliers is None:
            raise MissingConfigurationError(
                "Checking signs beyond the impact horizon needs the multipliers",
                scheme="sign",
                setting="multipliers"
            )
        if recursion == Recursion.COMPANION and companion is None:
            raise MissingConfigurationError(
                "Checking signs beyond the impact horizon needs the companion matrix",
                scheme="sign",
                setting="companion"
            )

    rng = as_generator(random_state)

    for attempt in range(1, max_rotations + 1):
        candidate = _starting_matrix(chol, fixed, rng)
        if attempt > 1:
            rotation = np.eye(nvar)
            rotation[nfixed:, nfixed:] = random_orthonormal(ds, rng)
            candidate = candidate @ rotation

        if horizon > 1:
            responses = propagate(
                candidate, horizon,
                recursion=recursion,
                multipliers=multipliers,
                companion=companion
            )
        else:
            responses = candidate[None, :, :]

        order = _match_columns(candidate, responses, signs, nfixed)
        if order is not None:
            logger.debug(f"Sign restrictions satisfied after {attempt} rotation(s)")
            return SignSearchResult(
                impact_matrix=candidate[:, order],
                success=True,
                rotations=attempt,
                max_rotations=max_rotations,
                order=tuple(int(j) for j in order)
            )

    logger.debug(f"Sign restrictions not satisfied within {max_rotations} rotations")
    return SignSearchResult(
        impact_matrix=None,
        success=False,
        rotations=max_rotations,
        max_rotations=max_rotations
    )
