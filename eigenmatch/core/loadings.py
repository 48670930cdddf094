"""
Least-squares loadings of faces over an eigenface basis.

A loading is the coefficient vector w minimising ||face - B.w||^2 with no
intercept term. It is obtained from the normal equations (B^T.B) w = B^T.face,
which stays exact when the eigenfaces are not perfectly orthonormal.
Training and test faces go through exactly the same solve.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Optional, Sequence

import numpy as np

from eigenmatch import config
from .eigenbasis import EigenBasis
from .errors import EmptyInputError, DimensionMismatchError, SingularSystemError

logger = logging.getLogger(__name__)


def _normal_matrix(basis: EigenBasis) -> np.ndarray:
    """Return B^T.B, raising if it cannot be inverted reliably."""
    gram = basis.vectors.T @ basis.vectors
    condition = np.linalg.cond(gram)
    if not np.isfinite(condition) or condition > config.SINGULAR_CONDITION_LIMIT:
        raise SingularSystemError(
            f"Normal equations are singular (condition number {condition:.3e}); "
            "the eigenfaces are linearly dependent or null",
            stage="loading", shape=gram.shape
        )
    return gram


def _solve(gram: np.ndarray, basis: EigenBasis, face: np.ndarray) -> np.ndarray:
    face = np.asarray(face, dtype=np.float64)
    if face.ndim != 1 or face.shape[0] != basis.dimension:
        raise DimensionMismatchError(
            f"Face of shape {face.shape} does not match eigenfaces of length {basis.dimension}",
            stage="loading", shape=face.shape
        )
    try:
        return np.linalg.solve(gram, basis.vectors.T @ face)
    except np.linalg.LinAlgError as e:
        raise SingularSystemError(
            f"Normal equations could not be solved: {e}", stage="loading", shape=gram.shape
        ) from e


def solve_loading(face: Sequence[float], basis: EigenBasis) -> np.ndarray:
    """
    Compute the loading of a single (centred) face.

    Args:
        face: Centred face vector of length d
        basis: Eigenface basis (d x k)

    Returns:
        np.ndarray: Loading of length k

    Raises:
        DimensionMismatchError: If the face length differs from d
        SingularSystemError: If B^T.B is not invertible
    """
    return _solve(_normal_matrix(basis), basis, face)


def solve_loadings(faces: Sequence[Sequence[float]], basis: EigenBasis,
                   n_workers: Optional[int] = None) -> np.ndarray:
    """
    Compute the loadings of a set of centred faces.

    Each face is solved independently; with n_workers > 1 the solves run on a
    thread pool that shares only the read-only basis. Row i of the result always
    belongs to faces[i].

    Args:
        faces: n centred face vectors of length d
        basis: Eigenface basis (d x k)
        n_workers: Number of worker threads (None or 1 runs sequentially)

    Returns:
        np.ndarray: n x k matrix of loadings
    """
    if len(faces) == 0:
        raise EmptyInputError("No faces to project", stage="loading", shape=(0, basis.dimension))

    gram = _normal_matrix(basis)

    if n_workers is None or n_workers <= 1:
        loadings = [_solve(gram, basis, face) for face in faces]
    else:
        with ThreadPoolExecutor(max_workers=n_workers) as executor:
            # map keeps the input order
            loadings = list(executor.map(lambda face: _solve(gram, basis, face), faces))

    logger.debug("Solved %d loadings of length %d", len(loadings), basis.n_components)
    return np.vstack(loadings)


def reconstruct(loadings: np.ndarray, basis: EigenBasis, mean: Optional[np.ndarray] = None) -> np.ndarray:
    """
    Rebuild faces from their loadings.

    Args:
        loadings: Loading of length k, or n x k matrix of loadings
        basis: Eigenface basis used to compute the loadings
        mean: Mean face to add back (optional)

    Returns:
        np.ndarray: Reconstructed face(s), B.w (+ mean)
    """
    loadings = np.asarray(loadings, dtype=np.float64)
    if loadings.shape[-1] != basis.n_components:
        raise DimensionMismatchError(
            f"Loadings of length {loadings.shape[-1]} do not match a basis of {basis.n_components} eigenfaces",
            stage="reconstruct", shape=loadings.shape
        )
    reconstructed = loadings @ basis.vectors.T
    if mean is not None:
        reconstructed = reconstructed + mean
    return reconstructed


def reconstruction_error(faces: np.ndarray, loadings: np.ndarray, basis: EigenBasis,
                         mean: Optional[np.ndarray] = None) -> np.ndarray:
    """
    Per-face mean squared reconstruction error.

    Args:
        faces: n x d faces (centred if mean is None, raw otherwise)
        loadings: n x k loadings of those faces
        basis: Eigenface basis
        mean: Mean face that was subtracted before solving

    Returns:
        np.ndarray: n mean squared errors
    """
    faces = np.atleast_2d(np.asarray(faces, dtype=np.float64))
    rebuilt = np.atleast_2d(reconstruct(loadings, basis, mean))
    return np.mean((faces - rebuilt) ** 2, axis=1)
