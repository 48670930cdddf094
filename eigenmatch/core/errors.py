"""
Exceptions raised by the eigenfaces pipeline.

Every failure carries the pipeline stage and the offending dimensions so that
a batch run can abort with a precise report. None of them is retried.
"""

from typing import Optional, Tuple

import numpy as np


class EigenfacesError(Exception):
    """
    Base class for pipeline failures.

    Attributes:
        stage: Pipeline stage that failed ("normalize", "eigenbasis", "loading", "match", ...)
        shape: Dimensions involved in the failure, if known
    """

    def __init__(self, message: str, stage: Optional[str] = None,
                 shape: Optional[Tuple[int, ...]] = None):
        self.stage = stage
        self.shape = tuple(shape) if shape is not None else None
        details = []
        if stage:
            details.append(f"stage={stage}")
        if self.shape is not None:
            details.append(f"shape={self.shape}")
        if details:
            message = f"{message} [{', '.join(details)}]"
        super().__init__(message)


class EmptyInputError(EigenfacesError, ValueError):
    """No vectors were supplied."""


class DimensionMismatchError(EigenfacesError, ValueError):
    """A vector length does not match the expected dimension."""


class InsufficientSamplesError(EigenfacesError, ValueError):
    """More eigenfaces were requested than there are training samples."""


class SingularSystemError(EigenfacesError, np.linalg.LinAlgError):
    """The normal equations are not invertible or the decomposition did not converge."""
