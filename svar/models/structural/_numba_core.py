"""
Numba-accelerated core functions for structural VAR analysis.

This module provides JIT-compiled implementations of the horizon recursions
used by the structural components:
- Wold multiplier convolution over the lag blocks
- Propagation of impact vectors through the multiplier sequence
- Accumulation of total and shock-specific forecast error variances

Every recursion runs in strictly increasing horizon order since each step
depends on the previous ones. Pure NumPy counterparts live beside each caller
and are used when ``core.enable_numba`` is switched off.
"""

import logging

import numpy as np
from numba import jit

# Set up module-level logger
logger = logging.getLogger("svar.models.structural._numba_core")


@jit(nopython=True, cache=True)
def wold_multipliers_numba(lag_blocks: np.ndarray, nsteps: int) -> np.ndarray:
    """
    Compute the Wold multiplier sequence.

    psi[0] = I and psi[h] = sum_{j=1}^{h} psi[h-j] @ A_j, where A_j is zero for
    j > nlag.

    Args:
        lag_blocks: Lag matrices (nlag x nvar x nvar)
        nsteps: Number of multipliers to compute

    Returns:
        np.ndarray: Multipliers (nsteps x nvar x nvar)
    """
    nlag = lag_blocks.shape[0]
    nvar = lag_blocks.shape[1]
    psi = np.zeros((nsteps, nvar, nvar))

    for i in range(nvar):
        psi[0, i, i] = 1.0

    for h in range(1, nsteps):
        for j in range(1, min(h, nlag) + 1):
            for r in range(nvar):
                for c in range(nvar):
                    acc = 0.0
                    for m in range(nvar):
                        acc += psi[h - j, r, m] * lag_blocks[j - 1, m, c]
                    psi[h, r, c] += acc

    return psi


@jit(nopython=True, cache=True)
def propagate_impact_numba(psi: np.ndarray, impact: np.ndarray) -> np.ndarray:
    """
    Propagate impact vectors through the multipliers.

    Args:
        psi: Multipliers (nsteps x nvar x nvar)
        impact: Impact vectors as columns (nvar x nshock)

    Returns:
        np.ndarray: Responses (nsteps x nvar x nshock) with resp[h] = psi[h] @ impact
    """
    nsteps = psi.shape[0]
    nvar = psi.shape[1]
    nshock = impact.shape[1]
    resp = np.zeros((nsteps, nvar, nshock))

    for h in range(nsteps):
        for r in range(nvar):
            for s in range(nshock):
                acc = 0.0
                for m in range(nvar):
                    acc += psi[h, r, m] * impact[m, s]
                resp[h, r, s] = acc

    return resp


@jit(nopython=True, cache=True)
def forecast_variance_numba(psi: np.ndarray,
                            sigma: np.ndarray,
                            impact: np.ndarray):
    """
    Accumulate forecast error variances by horizon.

    Only the diagonals are needed: the total variance of variable v grows by
    (psi[h] sigma psi[h]')[v, v] and the share of shock m by (psi[h] b_m)[v]**2.

    Args:
        psi: Multipliers (nsteps x nvar x nvar)
        sigma: Residual covariance (nvar x nvar)
        impact: Structural impact matrix (nvar x nshock)

    Returns:
        Tuple of total variances (nsteps x nvar) and shock contributions
        (nsteps x nshock x nvar)
    """
    nsteps = psi.shape[0]
    nvar = psi.shape[1]
    nshock = impact.shape[1]
    total = np.zeros((nsteps, nvar))
    contrib = np.zeros((nsteps, nshock, nvar))

    for h in range(nsteps):
        for v in range(nvar):
            acc = 0.0
            for i in range(nvar):
                for j in range(nvar):
                    acc += psi[h, v, i] * sigma[i, j] * psi[h, v, j]
            total[h, v] = acc if h == 0 else total[h - 1, v] + acc

            for m in range(nshock):
                proj = 0.0
                for i in range(nvar):
                    proj += psi[h, v, i] * impact[i, m]
                if h == 0:
                    contrib[h, m, v] = proj * proj
                else:
                    contrib[h, m, v] = contrib[h - 1, m, v] + proj * proj

    return total, contrib
