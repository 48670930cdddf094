"""
Evaluation module for eigenfaces recognition runs.

This module summarises match results and compares the unnormalized eigenface
basis with its unit-norm variant on the same train/test split.
"""

import logging
from typing import Dict, List, Any

import numpy as np
from sklearn.metrics import accuracy_score

from eigenmatch.config import PipelineConfig, DEFAULT_N_COMPONENTS
from .matcher import MatchResult
from .loadings import reconstruction_error
from .normalizer import center_vectors
from .pipeline import run_pipeline

logger = logging.getLogger(__name__)


def evaluate_matches(matches: List[MatchResult]) -> Dict[str, Any]:
    """
    Calculate recognition metrics from match results.

    Args:
        matches: Per train image match results

    Returns:
        Dict[str, Any]: Recognition rate, failures and margin statistics
    """
    if not matches:
        return {
            'recognition_rate': 0.0,
            'n_images': 0,
            'n_failures': 0,
            'failed_indices': [],
            'mean_margin': 0.0,
            'max_margin': 0.0,
        }

    expected = [m.train_index for m in matches]
    predicted = [m.nearest_index for m in matches]
    margins = np.array([m.margin for m in matches])
    failed = [m.train_index for m in matches if not m.is_correct]

    return {
        'recognition_rate': float(accuracy_score(expected, predicted)),
        'n_images': len(matches),
        'n_failures': len(failed),
        'failed_indices': failed,
        'mean_margin': float(np.mean(margins)),
        'max_margin': float(np.max(margins)),
    }


def compare_basis_variants(train_vectors: np.ndarray, test_vectors: np.ndarray,
                           n_components: int = DEFAULT_N_COMPONENTS) -> Dict[str, Any]:
    """
    Compare the unnormalized and the unit-norm eigenface basis.

    Both variants span the same subspace, so reconstructions are identical;
    the loadings differ by a per-eigenface scale, which can change the
    nearest-neighbour ranking.

    Args:
        train_vectors: n x d training vectors
        test_vectors: n x d index-aligned test vectors
        n_components: Number of eigenfaces

    Returns:
        Dict[str, Any]: Metrics per variant and whether the nearest test images agree
    """
    comparison = {}
    nearest = {}

    for name, normalize in [('unnormalized', False), ('normalized', True)]:
        result = run_pipeline(train_vectors, test_vectors,
                              PipelineConfig(n_components=n_components, normalize_basis=normalize))
        metrics = evaluate_matches(result.matches)

        test_centered = center_vectors(test_vectors, result.mean_face)
        errors = reconstruction_error(test_centered, result.test_loadings, result.basis)
        metrics['reconstruction_mse'] = float(np.mean(errors))
        metrics['execution_time'] = result.execution_time

        comparison[name] = metrics
        nearest[name] = [m.nearest_index for m in result.matches]

    agreement = np.mean(np.array(nearest['unnormalized']) == np.array(nearest['normalized']))
    comparison['ranking_agreement'] = float(agreement)

    # Determine overall winner based on recognition rate
    unnormalized_rate = comparison['unnormalized']['recognition_rate']
    normalized_rate = comparison['normalized']['recognition_rate']
    if unnormalized_rate > normalized_rate:
        comparison['winner'] = 'unnormalized'
    elif normalized_rate > unnormalized_rate:
        comparison['winner'] = 'normalized'
    else:
        comparison['winner'] = 'tie'

    logger.info("Basis comparison: unnormalized %.2f%%, normalized %.2f%%, agreement %.2f%%",
                100 * unnormalized_rate, 100 * normalized_rate, 100 * agreement)
    return comparison


def format_execution_time(seconds: float) -> str:
    """
    Format execution time in a human-readable format.

    Args:
        seconds: Execution time in seconds

    Returns:
        str: Formatted time string
    """
    if seconds < 0.001:
        return f"{seconds * 1_000_000:.2f} µs"
    elif seconds < 1:
        return f"{seconds * 1_000:.2f} ms"
    elif seconds < 60:
        return f"{seconds:.2f} s"
    else:
        minutes = int(seconds // 60)
        seconds = seconds % 60
        return f"{minutes} min {seconds:.2f} s"


def create_performance_summary(result, method_name: str = "eigenfaces") -> Dict[str, Any]:
    """
    Create a summary of a pipeline result for display.

    Args:
        result: PipelineResult of a run
        method_name: Label of the run

    Returns:
        Dict[str, Any]: Printable summary
    """
    metrics = evaluate_matches(result.matches)
    explained = float(np.sum(result.basis.explained_variance_ratio))
    return {
        'method': method_name,
        'n_components': result.basis.n_components,
        'recognition_rate': f"{metrics['recognition_rate']:.2%}",
        'failures': metrics['n_failures'],
        'mean_margin': f"{metrics['mean_margin']:.4f}",
        'explained_variance': f"{explained:.2%}",
        'execution_time': format_execution_time(result.execution_time),
    }
