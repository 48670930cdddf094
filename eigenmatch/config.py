"""
Configuration for the eigenfaces recognition pipeline.

Module-level constants hold the reference configuration; PipelineConfig bundles
the values a single run needs so they can be overridden from the command line.
"""

from dataclasses import dataclass
from typing import Optional, Dict, Any

import numpy as np

RANDOM_STATE = 42

# Number of eigenfaces kept in the basis
DEFAULT_N_COMPONENTS = 6

# Square images of IMAGE_SIDE x IMAGE_SIDE pixels, flattened
IMAGE_SIDE = 64
VECTOR_DIMENSION = IMAGE_SIDE * IMAGE_SIDE

# Normal equations with a condition number above this are treated as singular
SINGULAR_CONDITION_LIMIT = 1.0 / np.finfo(np.float64).eps

SYNTHETIC_N_SUBJECTS = 10
SYNTHETIC_IMAGES_PER_SUBJECT = 4
SYNTHETIC_IMG_SIZE = 16
SYNTHETIC_NOISE = 0.05

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


@dataclass(frozen=True)
class PipelineConfig:
    """
    Parameters of one evaluation run.

    Attributes:
        n_components: Number of eigenfaces (k), must satisfy 1 <= k <= n
        image_side: Side length of the square images the vectors come from
        normalize_basis: Scale eigenfaces to unit length before solving loadings
        n_workers: Thread pool size for the loading solves (None or 1 = sequential)
    """
    n_components: int = DEFAULT_N_COMPONENTS
    image_side: int = IMAGE_SIDE
    normalize_basis: bool = False
    n_workers: Optional[int] = None

    @property
    def vector_dimension(self) -> int:
        """Length d of the face vectors"""
        return self.image_side * self.image_side

    def validate(self, n_samples: int) -> None:
        """
        Check the eigenface count against the number of training samples.

        Args:
            n_samples: Number of training vectors (n)

        Raises:
            InsufficientSamplesError: If k < 1 or k > n
        """
        from eigenmatch.core.errors import InsufficientSamplesError

        if self.n_components < 1 or self.n_components > n_samples:
            raise InsufficientSamplesError(
                f"n_components must satisfy 1 <= k <= n, got k={self.n_components} with n={n_samples}",
                stage="config", shape=(n_samples, self.n_components)
            )
        if self.n_workers is not None and self.n_workers < 1:
            raise ValueError(f"n_workers must be positive, got {self.n_workers}")

    def summary(self) -> Dict[str, Any]:
        return {
            'n_components': self.n_components,
            'image_side': self.image_side,
            'vector_dimension': self.vector_dimension,
            'normalize_basis': self.normalize_basis,
            'n_workers': self.n_workers,
        }
