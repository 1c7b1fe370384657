"""Shared fixtures for the lizard allometry tests."""

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest

from lizard_allometry.data.data_loader import Observation, ObservationSet


def make_observations(groups, name="synthetic", noise=0.0, seed=0):
    """
    Build an ObservationSet from (species, sex, lengths, a, b) groups.

    noise is a multiplicative log-normal sigma applied to every weight.
    """
    rng = np.random.RandomState(seed)
    observations = []
    for species, sex, lengths, a, b in groups:
        lengths = np.asarray(lengths, dtype=float)
        weights = a * lengths ** b
        if noise:
            weights = weights * np.exp(rng.normal(0, noise, size=len(lengths)))
        observations.extend(
            Observation(species, sex, float(l), float(w)) for l, w in zip(lengths, weights)
        )
    return ObservationSet(name=name, observations=tuple(observations))


@pytest.fixture
def mixed_observations():
    """Two species with different allometry; only CNTI males follow a=0.001, b=3."""
    return make_observations(
        [
            ("CNTI", "Male", np.linspace(10, 50, 15), 0.001, 3.0),
            ("CNTI", "Female", np.linspace(12, 48, 10), 0.004, 2.6),
            ("UTST", "Male", np.linspace(20, 60, 12), 0.01, 2.5),
        ],
        name="lizards",
    )


@pytest.fixture
def noisy_observations():
    return make_observations(
        [
            ("CNTI", "Male", np.linspace(10, 50, 20), 0.001, 3.0),
            ("UTST", "Female", np.linspace(20, 60, 20), 0.01, 2.5),
        ],
        name="lizards",
        noise=0.05,
        seed=7,
    )


@pytest.fixture
def lizard_csv(tmp_path):
    path = tmp_path / "lizards.csv"
    path.write_text(
        "date,spp,sex,sv_length,weight\n"
        "2003-04-09,CNTI,M,61,6.6\n"
        "2003-04-09,CNTI,F,64,7.4\n"
        "2003-04-10,UTST,m,40,2.7\n"
        "2003-04-10,UTST,F,43,\n"
        "2003-04-11,UTST,F,45,0\n"
        "2003-04-11,CNTI,M,-3,4.0\n"
        "2003-04-12,CNTI,J,35,1.1\n"
    )
    return path


@pytest.fixture
def observation_factory():
    return make_observations
