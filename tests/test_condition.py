# Copyright 2025 Cisco Systems, Inc. and its affiliates
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
# SPDX-License-Identifier: Apache-2.0

"""Tests for experiment conditions."""

import numpy as np
import pytest

from hubminer.core.condition import ExperimentCondition
from hubminer.core.data import Dataset
from hubminer.core.errors import ConfigurationError
from hubminer.core.metrics import EuclideanMetric
from hubminer.core.secondary import NICDM
from hubminer.core.state import CoreState


@pytest.fixture
def dataset():
    """Random labeled dataset."""
    rng = np.random.default_rng(21)
    return Dataset.from_arrays(rng.normal(size=(25, 3)), labels=rng.integers(0, 2, size=25))


def test_condition_lifecycle(dataset):
    with ExperimentCondition(dataset, EuclideanMetric(), num_threads=2) as condition:
        assert condition.state == CoreState.UNINITIALIZED

        primary = condition.primary_distances
        assert condition.state == CoreState.DISTANCES_READY

        finder = condition.neighbor_sets(5)
        assert condition.state == CoreState.NEIGHBOR_SETS_READY
        assert finder.neighbor_frequencies.sum() == 25 * 5

        secondary = condition.secondary_distances("mutual_proximity")
        assert condition.state == CoreState.SECONDARY_DISTANCES_READY
        assert condition.secondary_distances("mutual_proximity") is secondary

        mp_finder = condition.secondary_neighbor_sets("mutual_proximity", 5)
        assert mp_finder.distance_matrix is secondary
        assert condition.state == CoreState.NEIGHBOR_SETS_READY

    assert condition.state == CoreState.RELEASED
    assert primary.released
    assert secondary.released
    assert finder.state == CoreState.RELEASED
    assert mp_finder.state == CoreState.RELEASED

    with pytest.raises(ConfigurationError):
        condition.primary_distances


def test_neighbor_sets_shrink_in_place(dataset):
    with ExperimentCondition(dataset, EuclideanMetric()) as condition:
        large = condition.neighbor_sets(8)
        small = condition.neighbor_sets(3)
        assert small is large
        assert small.k == 3


def test_calculator_instances(dataset):
    with ExperimentCondition(dataset, EuclideanMetric()) as condition:
        condition.neighbor_sets(4)
        matrix = condition.secondary_distances(NICDM(k=4))
        assert matrix.n == 25
        assert condition.secondary_methods == ["NICDM(k=4)"]


def test_precomputed_matrix_only():
    dense = np.array([
        [0.0, 1.0, 4.0],
        [1.0, 0.0, 2.0],
        [4.0, 2.0, 0.0],
    ])
    with ExperimentCondition(distance_matrix=dense) as condition:
        assert condition.state == CoreState.DISTANCES_READY
        finder = condition.neighbor_sets(1)
        np.testing.assert_array_equal(finder.kneighbors.ravel(), [1, 0, 1])


def test_condition_needs_input():
    with pytest.raises(ConfigurationError):
        ExperimentCondition()


def test_condition_needs_metric(dataset):
    condition = ExperimentCondition(dataset)
    with pytest.raises(ConfigurationError):
        condition.primary_distances
