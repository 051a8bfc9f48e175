"""
Core simulation primitives: design grid, covariance, sampling,
discretization and the reliability estimator.
"""

from .conditions import (
    DEFAULT_CORRELATIONS,
    DEFAULT_ITEM_COUNTS,
    DEFAULT_SAMPLE_SIZES,
    Condition,
    ConditionSpace,
    iter_conditions,
)
from .config import SimulationConfig, validate_config
from .covariance import build_equicorrelated_matrix
from .discretize import DEFAULT_CUT_POINTS, category_representatives, discretize
from .errors import (
    AlphaSimError,
    DecompositionError,
    InsufficientDataError,
    InvalidParameterError,
)
from .reliability import cronbach_alpha
from .sampling import (
    MultivariateNormalSampler,
    factorize_covariance,
    rng_for_replication,
    sample_multivariate_normal,
)

__all__ = [
    "DEFAULT_CORRELATIONS",
    "DEFAULT_CUT_POINTS",
    "DEFAULT_ITEM_COUNTS",
    "DEFAULT_SAMPLE_SIZES",
    "AlphaSimError",
    "Condition",
    "ConditionSpace",
    "DecompositionError",
    "InsufficientDataError",
    "InvalidParameterError",
    "MultivariateNormalSampler",
    "SimulationConfig",
    "build_equicorrelated_matrix",
    "category_representatives",
    "cronbach_alpha",
    "discretize",
    "factorize_covariance",
    "iter_conditions",
    "rng_for_replication",
    "sample_multivariate_normal",
    "validate_config",
]
