"""Custom exceptions for parameter space partitioning.

Exception Hierarchy:
    PartitionError (base)
    ├── DegenerateCovarianceError (covariance cannot be factored)
    └── OptionsError (invalid configuration)

Errors raised by the user's pattern function are never wrapped; they reach
the caller of :func:`parspace.find_partitions` unchanged.

Examples
--------
>>> try:
...     make_unique(chains, options)
... except DegenerateCovarianceError as e:
...     print(f"chain too small: {e.n_samples} samples in {e.n_dims} dims")
"""

from __future__ import annotations


class PartitionError(Exception):
    """Base exception for all partitioning errors.

    Attributes
    ----------
    error_context : dict
        Additional context about the error (sample counts, option values, ...)
    """

    def __init__(self, message: str, error_context: dict | None = None):
        super().__init__(message)
        self.error_context = error_context or {}

    def __str__(self) -> str:
        base_msg = super().__str__()
        if self.error_context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.error_context.items())
            return f"{base_msg} (context: {context_str})"
        return base_msg


class DegenerateCovarianceError(PartitionError):
    """Raised when a covariance matrix is not positive definite.

    Common Causes
    -------------
    - A chain holds fewer distinct samples than parameter dimensions
    - Samples are collinear (all moves along one direction)
    - A variance too small to survive the zero-variance floor

    The intersection test and volume estimator refuse to guess in these
    cases: treating such a chain as "never intersects" or "always
    intersects" would both silently corrupt the deduplication.

    Attributes
    ----------
    n_samples : int or None
        Number of samples the covariance was estimated from
    n_dims : int or None
        Dimensionality of the parameter space
    """

    def __init__(
        self,
        message: str,
        n_samples: int | None = None,
        n_dims: int | None = None,
        error_context: dict | None = None,
    ):
        context = error_context or {}
        if n_samples is not None:
            context["n_samples"] = n_samples
        if n_dims is not None:
            context["n_dims"] = n_dims

        super().__init__(message, context)
        self.n_samples = n_samples
        self.n_dims = n_dims


class OptionsError(PartitionError, ValueError):
    """Raised for invalid sampler configuration.

    Attributes
    ----------
    errors : list[str]
        Every validation message found, not just the first
    """

    def __init__(
        self,
        message: str,
        errors: list[str] | None = None,
        error_context: dict | None = None,
    ):
        context = error_context or {}
        if errors:
            context["n_errors"] = len(errors)

        super().__init__(message, context)
        self.errors = errors or []
