# tests/unit/core/test_sampling.py
"""Multivariate normal sampler and per-replication RNG streams."""

import numpy as np
import pytest

from alphasim.core.conditions import Condition
from alphasim.core.covariance import build_equicorrelated_matrix
from alphasim.core.errors import DecompositionError, InvalidParameterError
from alphasim.core.sampling import (
    MultivariateNormalSampler,
    factorize_covariance,
    rng_for_replication,
    sample_covariance_error,
    sample_multivariate_normal,
)

COND = Condition(5, 0.25, 500)


def test_rng_streams_are_deterministic_per_key():
    a = rng_for_replication(1337, COND, 7).standard_normal(16)
    b = rng_for_replication(1337, COND, 7).standard_normal(16)
    np.testing.assert_array_equal(a, b)


@pytest.mark.parametrize(
    "other",
    [
        (1338, COND, 7),
        (1337, COND, 8),
        (1337, Condition(5, 0.20, 500), 7),
        (1337, Condition(6, 0.25, 500), 7),
        (1337, Condition(5, 0.25, 1000), 7),
    ],
)
def test_rng_streams_differ_across_keys(other):
    a = rng_for_replication(1337, COND, 7).standard_normal(16)
    b = rng_for_replication(*other).standard_normal(16)
    assert not np.array_equal(a, b)


def test_rng_rejects_negative_seed():
    with pytest.raises(InvalidParameterError):
        rng_for_replication(-1, COND, 1)


def test_factorization_prefers_cholesky():
    sigma = build_equicorrelated_matrix(6, 0.2)
    L, method = factorize_covariance(sigma)
    assert method == "cholesky"
    np.testing.assert_allclose(L @ L.T, sigma, atol=1e-12)


def test_singular_psd_matrix_falls_back_to_eigh():
    sigma = np.ones((4, 4))
    L, method = factorize_covariance(sigma)
    assert method == "eigh"
    np.testing.assert_allclose(L @ L.T, sigma, atol=1e-10)

    # perfectly correlated draws: every column identical
    x = MultivariateNormalSampler(sigma).draw(50, np.random.default_rng(0))
    np.testing.assert_allclose(x, np.repeat(x[:, :1], 4, axis=1), atol=1e-10)


@pytest.mark.parametrize(
    "sigma",
    [
        np.array([[1.0, 2.0], [2.0, 1.0]]),  # indefinite
        np.array([[1.0, 0.2], [0.3, 1.0]]),  # asymmetric
        np.ones((2, 3)),  # not square
        np.array([[1.0, np.nan], [np.nan, 1.0]]),
        np.empty((0, 0)),
    ],
)
def test_invalid_covariance_raises_decomposition_error(sigma):
    with pytest.raises(DecompositionError):
        factorize_covariance(sigma)
    with pytest.raises(DecompositionError):
        MultivariateNormalSampler(sigma)


def test_draw_shape_and_determinism():
    sampler = MultivariateNormalSampler(build_equicorrelated_matrix(5, 0.25))
    x1 = sampler.draw(500, rng_for_replication(1, COND, 1))
    x2 = sampler.draw(500, rng_for_replication(1, COND, 1))
    assert x1.shape == (500, 5)
    np.testing.assert_array_equal(x1, x2)


def test_draw_rejects_bad_arguments():
    sampler = MultivariateNormalSampler(build_equicorrelated_matrix(3, 0.1))
    with pytest.raises(TypeError):
        sampler.draw(10, np.random.RandomState(0))
    with pytest.raises(InvalidParameterError):
        sampler.draw(0, np.random.default_rng(0))


def test_factor_is_shared_read_only():
    sampler = MultivariateNormalSampler(build_equicorrelated_matrix(3, 0.1))
    with pytest.raises(ValueError):
        sampler.factor[0, 0] = 2.0


def test_sample_covariance_converges_to_target():
    sigma = build_equicorrelated_matrix(4, 0.10)
    x = sample_multivariate_normal(sigma, 200_000, np.random.default_rng(2024))
    assert sample_covariance_error(x, sigma) < 0.02
    assert np.abs(x.mean(axis=0)).max() < 0.01
