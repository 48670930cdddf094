"""
Eigenfaces recognition pipeline.

This module chains the numerical stages: mean-centering, eigenface extraction
on the training set, least-squares loadings for train and test faces, and
nearest-neighbour matching of the loadings.
"""

import logging
import time
from dataclasses import dataclass
from typing import List, Optional, Callable

import numpy as np
import pandas as pd

from eigenmatch.config import PipelineConfig, DEFAULT_N_COMPONENTS
from .normalizer import compute_mean, center_vectors
from .eigenbasis import EigenBasis, build_eigenbasis
from .loadings import solve_loadings, reconstruct
from .matcher import MatchResult, match, compute_distance_matrix, matches_from_distances, results_table
from .errors import DimensionMismatchError

logger = logging.getLogger(__name__)


class EigenfacesModel:
    """
    Recognition model based on Eigenfaces.

    The mean face and the eigenface basis are learned once from the training
    vectors and are read-only afterwards. Any face, train or test, is then
    represented by its least-squares loading over that basis.
    """

    def __init__(self, n_components: int = DEFAULT_N_COMPONENTS, normalize_basis: bool = False,
                 n_workers: Optional[int] = None):
        """
        Initialize the Eigenfaces model.

        Args:
            n_components: Number of eigenfaces to keep (k).
            normalize_basis: Scale eigenfaces to unit length. The default keeps
                them unnormalized so that their scale is folded into the loadings.
            n_workers: Thread pool size used for the loading solves.
        """
        self.n_components = n_components
        self.normalize_basis = normalize_basis
        self.n_workers = n_workers
        self.mean_face = None
        self.basis = None
        self.train_loadings = None
        self.is_fitted = False

    def fit(self, train_vectors: np.ndarray) -> 'EigenfacesModel':
        """
        Learn the mean face and the eigenfaces from the training vectors.

        Args:
            train_vectors: n x d training vectors, one per identity

        Returns:
            self: The trained model.
        """
        # Mean face from the training set only
        self.mean_face = compute_mean(train_vectors)
        centered = center_vectors(train_vectors, self.mean_face)

        self.basis = build_eigenbasis(centered, self.n_components, normalize=self.normalize_basis)

        self.train_loadings = solve_loadings(centered, self.basis, n_workers=self.n_workers)
        self.is_fitted = True
        return self

    def _check_fitted(self, action: str):
        if not self.is_fitted:
            raise ValueError(f"The model must be trained before {action}")

    def project(self, vectors: np.ndarray) -> np.ndarray:
        """
        Compute the loadings of raw face vectors.

        Args:
            vectors: m x d face vectors (not centred)

        Returns:
            np.ndarray: m x k loadings
        """
        self._check_fitted("projecting faces")
        centered = center_vectors(vectors, self.mean_face)
        return solve_loadings(centered, self.basis, n_workers=self.n_workers)

    def reconstruct(self, loadings: np.ndarray) -> np.ndarray:
        """
        Reconstruct faces from their loadings, mean face included.

        Args:
            loadings: m x k loadings

        Returns:
            np.ndarray: m x d reconstructed faces
        """
        self._check_fitted("reconstructing faces")
        return reconstruct(loadings, self.basis, self.mean_face)

    def match(self, test_vectors: np.ndarray) -> List[MatchResult]:
        """
        Match the training faces against index-aligned test faces.

        Args:
            test_vectors: n x d test vectors, test_vectors[i] showing training identity i

        Returns:
            List[MatchResult]: One result per training face
        """
        self._check_fitted("matching faces")
        return match(self.train_loadings, self.project(test_vectors))


@dataclass
class PipelineResult:
    """
    Outputs of one evaluation run.

    Attributes:
        mean_face: Mean of the training vectors (length d)
        basis: Eigenface basis (d x k)
        train_loadings: n x k loadings of the training faces
        test_loadings: n x k loadings of the test faces
        distances: n x n squared distances between train and test loadings
        matches: Per train image match results
        table: Result table built from the matches
        execution_time: Wall time of the run in seconds
    """
    mean_face: np.ndarray
    basis: EigenBasis
    train_loadings: np.ndarray
    test_loadings: np.ndarray
    distances: np.ndarray
    matches: List[MatchResult]
    table: pd.DataFrame
    execution_time: float

    @property
    def recognition_rate(self) -> float:
        """Fraction of train images whose closest test image has the same index"""
        if not self.matches:
            return 0.0
        return sum(m.is_correct for m in self.matches) / len(self.matches)


def run_pipeline(train_vectors: np.ndarray, test_vectors: np.ndarray,
                 pipeline_config: Optional[PipelineConfig] = None,
                 progress_callback: Optional[Callable] = None) -> PipelineResult:
    """
    Run the full recognition pipeline on an aligned train/test split.

    Args:
        train_vectors: n x d training vectors, one per identity
        test_vectors: n x d test vectors, test_vectors[i] showing the identity of train_vectors[i]
        pipeline_config: Run parameters (defaults to PipelineConfig())
        progress_callback: Callback function for progress reporting,
            called with a percentage and a message

    Returns:
        PipelineResult: Mean face, basis, loadings, distances and match results

    Raises:
        EigenfacesError: On the first failing stage; no partial result is returned
    """
    if pipeline_config is None:
        pipeline_config = PipelineConfig()

    start_time = time.time()

    if len(train_vectors) and len(test_vectors) and len(train_vectors) != len(test_vectors):
        raise DimensionMismatchError(
            f"Train and test sets must hold one vector per identity, got {len(train_vectors)} and {len(test_vectors)}",
            stage="split", shape=(len(train_vectors), len(test_vectors))
        )

    if progress_callback:
        progress_callback(5, "Computing mean face...")

    mean_face = compute_mean(train_vectors)
    pipeline_config.validate(len(train_vectors))
    train_centered = center_vectors(train_vectors, mean_face)
    # Same training mean for the test set
    test_centered = center_vectors(test_vectors, mean_face)

    if progress_callback:
        progress_callback(20, f"Extracting {pipeline_config.n_components} eigenfaces...")

    basis = build_eigenbasis(train_centered, pipeline_config.n_components,
                             normalize=pipeline_config.normalize_basis)

    if progress_callback:
        progress_callback(45, "Solving train loadings...")

    train_loadings = solve_loadings(train_centered, basis, n_workers=pipeline_config.n_workers)

    if progress_callback:
        progress_callback(65, "Solving test loadings...")

    test_loadings = solve_loadings(test_centered, basis, n_workers=pipeline_config.n_workers)

    if progress_callback:
        progress_callback(85, "Matching train and test faces...")

    distances = compute_distance_matrix(train_loadings, test_loadings)
    matches = matches_from_distances(distances)
    table = results_table(matches)

    execution_time = time.time() - start_time

    if progress_callback:
        progress_callback(100, f"Pipeline completed in {execution_time:.2f} seconds")

    logger.info("Pipeline finished in %.3fs: n=%d, d=%d, k=%d",
                execution_time, train_centered.shape[0], train_centered.shape[1], basis.n_components)

    return PipelineResult(
        mean_face=mean_face,
        basis=basis,
        train_loadings=train_loadings,
        test_loadings=test_loadings,
        distances=distances,
        matches=matches,
        table=table,
        execution_time=execution_time,
    )
