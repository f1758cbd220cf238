# src/ecatsim_core/simulation/solver.py
import logging
import warnings

import numpy as np
import scipy.sparse as sp
import scipy.sparse.linalg as splinalg

from .exceptions import SingularMatrixError
from .mna import MnaSystem

logger = logging.getLogger(__name__)


def factorize_mna_matrix(matrix: sp.csc_matrix, frequency: float) -> splinalg.SuperLU:
    """
    Factorizes an MNA matrix using sparse LU decomposition.

    Args:
        matrix: The square system matrix (CSC format).
        frequency: The frequency of the system, for error context.

    Returns:
        The LU factorization object (splinalg.SuperLU).

    Raises:
        SingularMatrixError: If the matrix is singular.
        TypeError: If input is not a sparse matrix.
    """
    if not sp.issparse(matrix):
        raise TypeError("MNA matrix must be a SciPy sparse matrix.")
    if matrix.shape[0] != matrix.shape[1]:
        raise ValueError("MNA matrix must be square.")

    logger.debug(f"Factorizing MNA matrix ({matrix.shape}) at {frequency:.4e} Hz...")
    try:
        with warnings.catch_warnings():
            warnings.simplefilter("error", splinalg.MatrixRankWarning)
            lu = splinalg.splu(matrix.tocsc())
    except (RuntimeError, splinalg.MatrixRankWarning) as e:
        logger.error(f"LU factorization failed at {frequency:.4e} Hz, matrix appears singular: {e}")
        raise SingularMatrixError(details=str(e), frequency=frequency) from e
    logger.debug("LU factorization successful.")
    return lu


def solve_mna_system(lu_factorization: splinalg.SuperLU, rhs: np.ndarray, frequency: float = None) -> np.ndarray:
    """Solves a factorized MNA system for one right-hand side."""
    if not isinstance(lu_factorization, splinalg.SuperLU):
        raise TypeError("lu_factorization must be a SuperLU object from splinalg.splu.")

    solution = lu_factorization.solve(np.asarray(rhs, dtype=complex))

    if np.any(np.isnan(solution)) or np.any(np.isinf(solution)):
        logger.error("NaN or Inf detected in MNA solution vector.")
        raise SingularMatrixError(details="MNA system solve resulted in NaN/Inf values.", frequency=frequency)
    return solution


def solve(system: MnaSystem) -> np.ndarray:
    """Factorizes and solves an assembled system; returns the unknown vector."""
    lu = factorize_mna_matrix(system.matrix, system.frequency)
    return solve_mna_system(lu, system.rhs, system.frequency)
