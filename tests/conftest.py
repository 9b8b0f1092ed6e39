"""Shared fixtures for the bayesviz test suite."""

import arviz as az
import numpy as np
import pandas as pd
import pytest


@pytest.fixture
def rng():
    """Seeded random number generator."""
    return np.random.default_rng(1025)


@pytest.fixture
def two_parameter_samples(rng):
    """Long-format raw samples of two parameters with 100 draws each."""
    return pd.DataFrame(
        {
            "Parameter": ["a"] * 100 + ["b"] * 100,
            "x": np.concatenate([rng.normal(0, 1, 100), rng.normal(5, 2, 100)]),
        }
    )


@pytest.fixture
def inference_data(rng):
    """InferenceData with scalar, vector, intercept and random-effect variables."""
    posterior = {
        "b_Intercept": rng.normal(1, 0.1, (2, 200)),
        "beta": rng.normal([0.0, 1.0, 2.0], 0.5, (2, 200, 3)),
        "sigma": rng.gamma(5, 0.2, (2, 200)),
        "1|subject": rng.normal(0, 0.3, (2, 200)),
    }
    prior = {
        "b_Intercept": rng.normal(0, 2, (1, 300)),
        "beta": rng.normal(0, 2, (1, 300, 3)),
        "sigma": rng.gamma(2, 1, (1, 300)),
        "1|subject": rng.normal(0, 1, (1, 300)),
    }
    return az.from_dict(posterior=posterior, prior=prior)


@pytest.fixture
def posterior_only_data(rng):
    """InferenceData without a prior group."""
    return az.from_dict(
        posterior={"mu": rng.normal(0, 1, (2, 100)), "tau": rng.gamma(3, 1, (2, 100))}
    )
