"""
Core functionality for eigenfaces recognition.

This package contains the implementation of the numerical pipeline:
- Mean-centering
- Eigenface extraction with the Gram-matrix trick
- Least-squares loadings
- Nearest-neighbour matching
- Dataset management and evaluation
"""

from .errors import (EigenfacesError, EmptyInputError, DimensionMismatchError,
                     InsufficientSamplesError, SingularSystemError)
from .normalizer import compute_mean, center_vector, center_vectors
from .eigenbasis import EigenBasis, build_eigenbasis
from .loadings import solve_loading, solve_loadings, reconstruct, reconstruction_error
from .matcher import MatchResult, compute_distance_matrix, match, results_table
from .pipeline import EigenfacesModel, PipelineResult, run_pipeline
from .dataset import FaceSet, split_first_last, load_olivetti, create_synthetic_dataset
from .evaluation import evaluate_matches, compare_basis_variants

__all__ = [
    'EigenfacesError',
    'EmptyInputError',
    'DimensionMismatchError',
    'InsufficientSamplesError',
    'SingularSystemError',
    'compute_mean',
    'center_vector',
    'center_vectors',
    'EigenBasis',
    'build_eigenbasis',
    'solve_loading',
    'solve_loadings',
    'reconstruct',
    'reconstruction_error',
    'MatchResult',
    'compute_distance_matrix',
    'match',
    'results_table',
    'EigenfacesModel',
    'PipelineResult',
    'run_pipeline',
    'FaceSet',
    'split_first_last',
    'load_olivetti',
    'create_synthetic_dataset',
    'evaluate_matches',
    'compare_basis_variants',
]
