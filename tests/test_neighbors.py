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

"""Tests for exact k-NN sets and occurrence statistics."""

import numpy as np
import pytest

from hubminer.core.data import NOISE_LABEL, Dataset
from hubminer.core.distances import UpperTriangularMatrix
from hubminer.core.errors import (
    ConfigurationError,
    MatrixDimensionError,
    NonFiniteDistanceError,
)
from hubminer.core.metrics import EuclideanMetric
from hubminer.core.neighbors import NeighborSetFinder, select_k_smallest
from hubminer.core.state import CoreState


def make_finder(features, labels=None, num_threads=1):
    dataset = Dataset.from_arrays(np.asarray(features, dtype=float), labels=labels)
    finder = NeighborSetFinder(dataset, metric=EuclideanMetric(), num_threads=num_threads)
    finder.calculate_distances()
    return finder


@pytest.fixture
def random_finder():
    """Finder over a random labeled dataset."""
    rng = np.random.default_rng(7)
    features = rng.normal(size=(60, 8))
    labels = rng.integers(0, 3, size=60)
    return make_finder(features, labels=labels)


def test_select_k_smallest_breaks_ties_by_position():
    distances = np.array([2.0, 1.0, 1.0, 0.5, 1.0])
    np.testing.assert_array_equal(select_k_smallest(distances, 3), [3, 1, 2])
    np.testing.assert_array_equal(select_k_smallest(distances, 10), [3, 1, 2, 4, 0])


def test_points_on_a_line():
    finder = make_finder([[0.0], [1.0], [2.0], [3.0], [10.0]])
    finder.calculate_neighbor_sets(1)

    # The point at 3 is closer to 2 than to 10
    np.testing.assert_array_equal(finder.get_kneighbors(3), [2])
    np.testing.assert_allclose(finder.get_kdistances(3), [1.0])
    np.testing.assert_array_equal(finder.get_kneighbors(4), [3])

    # The point at 1 is equally close to 0 and 2 and takes the lower index
    np.testing.assert_array_equal(finder.get_kneighbors(1), [0])
    np.testing.assert_array_equal(finder.neighbor_frequencies, [1, 2, 1, 1, 0])

    finder.calculate_neighbor_sets(2)
    np.testing.assert_array_equal(finder.get_kneighbors(1), [0, 2])
    np.testing.assert_array_equal(finder.get_kneighbors(3), [2, 1])
    np.testing.assert_array_equal(finder.get_reverse_neighbors(2), [0, 1, 3, 4])


def test_identical_points_use_lowest_indices():
    finder = make_finder(np.zeros((4, 3)))
    finder.calculate_neighbor_sets(2)

    np.testing.assert_array_equal(finder.kneighbors, [[1, 2], [0, 2], [0, 1], [0, 1]])
    np.testing.assert_array_equal(finder.kdistances, np.zeros((4, 2)))
    np.testing.assert_array_equal(finder.neighbor_frequencies, [3, 3, 2, 0])


def test_occurrences_sum_to_n_times_k(random_finder):
    for k in (1, 5, 12):
        random_finder.calculate_neighbor_sets(k)
        assert random_finder.neighbor_frequencies.sum() == 60 * k


def test_neighbor_lists_sorted_and_exclude_self(random_finder):
    random_finder.calculate_neighbor_sets(6)
    for i in range(60):
        neighbors = random_finder.get_kneighbors(i)
        distances = random_finder.get_kdistances(i)
        assert i not in neighbors
        assert len(set(neighbors.tolist())) == 6
        assert np.all(np.diff(distances) >= 0)


def test_shrinking_matches_fresh_computation(random_finder):
    fresh = random_finder.copy()

    random_finder.calculate_neighbor_sets(10)
    random_finder.recalculate_stats_for_smaller_k(4)
    fresh.calculate_neighbor_sets(4)

    np.testing.assert_array_equal(random_finder.kneighbors, fresh.kneighbors)
    np.testing.assert_array_equal(random_finder.kdistances, fresh.kdistances)
    np.testing.assert_array_equal(random_finder.neighbor_frequencies, fresh.neighbor_frequencies)
    np.testing.assert_array_equal(random_finder.bad_frequencies, fresh.bad_frequencies)


def test_shrinking_to_larger_k_fails(random_finder):
    random_finder.calculate_neighbor_sets(3)
    with pytest.raises(ConfigurationError):
        random_finder.recalculate_stats_for_smaller_k(5)


def test_ensure_neighbor_sets_grows_and_shrinks(random_finder):
    fresh = random_finder.copy()
    random_finder.calculate_neighbor_sets(2)
    random_finder.ensure_neighbor_sets(7)
    fresh.calculate_neighbor_sets(7)
    np.testing.assert_array_equal(random_finder.kneighbors, fresh.kneighbors)

    random_finder.ensure_neighbor_sets(3)
    assert random_finder.k == 3


def test_threads_agree(random_finder):
    multi = NeighborSetFinder(
        random_finder.dataset,
        distance_matrix=random_finder.distance_matrix,
        num_threads=4,
    )
    random_finder.calculate_neighbor_sets(5)
    multi.calculate_neighbor_sets(5)
    np.testing.assert_array_equal(random_finder.kneighbors, multi.kneighbors)
    np.testing.assert_array_equal(random_finder.neighbor_frequencies, multi.neighbor_frequencies)
    np.testing.assert_array_equal(random_finder.bad_frequencies, multi.bad_frequencies)


def test_bad_occurrences():
    finder = make_finder([[0.0], [1.0], [2.0], [3.0]], labels=[0, 0, 1, 1])
    finder.calculate_neighbor_sets(1)

    np.testing.assert_array_equal(finder.kneighbors.ravel(), [1, 0, 1, 2])
    np.testing.assert_array_equal(finder.bad_frequencies, [0, 1, 0, 0])
    np.testing.assert_array_equal(finder.good_frequencies, [1, 1, 1, 0])


def test_unlabeled_points_never_bad():
    finder = make_finder([[0.0], [1.0], [2.0], [3.0]], labels=[0, NOISE_LABEL, 1, 1])
    finder.calculate_neighbor_sets(1)
    np.testing.assert_array_equal(finder.bad_frequencies, [0, 0, 0, 0])


def test_k_larger_than_dataset_uses_all_points():
    finder = make_finder([[0.0], [4.0], [1.0], [9.0], [2.0]])
    finder.calculate_neighbor_sets(10)

    assert finder.k == 4
    np.testing.assert_array_equal(finder.get_kneighbors(0), [2, 4, 1, 3])
    np.testing.assert_array_equal(finder.neighbor_frequencies, [4, 4, 4, 4, 4])


def test_invalid_k(random_finder):
    with pytest.raises(ConfigurationError):
        random_finder.calculate_neighbor_sets(0)
    with pytest.raises(ConfigurationError):
        random_finder.calculate_neighbor_sets(-3)


def test_empty_dataset():
    finder = make_finder(np.zeros((0, 2)))
    finder.calculate_neighbor_sets(3)
    assert finder.kneighbors.shape[0] == 0
    assert finder.neighbor_frequencies.shape == (0,)
    assert finder.reverse_neighbors() == []


def test_missing_metric():
    finder = NeighborSetFinder(Dataset.from_arrays(np.zeros((3, 2))))
    with pytest.raises(ConfigurationError):
        finder.calculate_distances()


def test_missing_distances():
    finder = NeighborSetFinder(Dataset.from_arrays(np.zeros((3, 2))))
    with pytest.raises(ConfigurationError):
        finder.calculate_neighbor_sets(1)


def test_matrix_dimension_mismatch():
    dataset = Dataset.from_arrays(np.zeros((5, 2)))
    with pytest.raises(MatrixDimensionError):
        NeighborSetFinder(dataset, distance_matrix=UpperTriangularMatrix(4))


def test_non_finite_distances_rejected():
    dense = np.array([
        [0.0, 1.0, np.nan],
        [1.0, 0.0, 2.0],
        [np.nan, 2.0, 0.0],
    ])
    finder = NeighborSetFinder(distance_matrix=dense)
    with pytest.raises(NonFiniteDistanceError):
        finder.calculate_neighbor_sets(1)


def test_precomputed_matrix_without_dataset():
    dense = np.array([
        [0.0, 1.0, 5.0],
        [1.0, 0.0, 2.0],
        [5.0, 2.0, 0.0],
    ])
    finder = NeighborSetFinder(distance_matrix=dense)
    finder.calculate_neighbor_sets(1)

    assert finder.size == 3
    np.testing.assert_array_equal(finder.labels, [NOISE_LABEL] * 3)
    np.testing.assert_array_equal(finder.kneighbors.ravel(), [1, 0, 1])
    np.testing.assert_array_equal(finder.bad_frequencies, [0, 0, 0])


def test_results_are_read_only(random_finder):
    random_finder.calculate_neighbor_sets(3)
    with pytest.raises(ValueError):
        random_finder.kneighbors[0, 0] = 5
    with pytest.raises(ValueError):
        random_finder.neighbor_frequencies[0] = 5


def test_reverse_neighbors_invert_forward_lists(random_finder):
    random_finder.calculate_neighbor_sets(4)
    reverse = random_finder.reverse_neighbors()
    for j, queries in enumerate(reverse):
        assert len(queries) == random_finder.neighbor_frequencies[j]
        assert np.all(np.diff(queries) > 0)
        for i in queries:
            assert j in random_finder.get_kneighbors(i)
    np.testing.assert_array_equal(
        random_finder.reverse_neighbor_counts, random_finder.neighbor_frequencies
    )


def test_class_occurrences(random_finder):
    random_finder.calculate_neighbor_sets(5)
    class_occ = random_finder.class_occurrences()
    assert class_occ.shape == (3, 60)
    np.testing.assert_array_equal(class_occ.sum(axis=0), random_finder.neighbor_frequencies)


def test_neighbor_entropies():
    finder = make_finder([[0.0], [0.1], [5.0], [5.1]], labels=[0, 1, 0, 0])
    finder.calculate_neighbor_sets(1)
    # Point 0 is listed only by point 1 and point 1 only by point 0
    np.testing.assert_allclose(finder.reverse_neighbor_entropies(), [0.0, 0.0, 0.0, 0.0])

    finder.calculate_neighbor_sets(2)
    direct = finder.direct_neighbor_entropies()
    assert direct.shape == (4,)
    assert np.all(direct >= 0)
    assert np.all(direct <= 1.0 + 1e-12)


def test_hubness_weights(random_finder):
    random_finder.calculate_neighbor_sets(5)

    weights = random_finder.hubness_information_weights(theta=1.0)
    assert np.all(weights >= 0) and np.all(weights <= 1)
    np.testing.assert_array_equal(random_finder.hubness_information_weights(theta=0.0), np.ones(60))

    occ = random_finder.neighbor_frequencies
    penalties = random_finder.penalize_hubness_weights()
    assert penalties[np.argmax(occ)] == penalties.min()
    assert random_finder.bad_hubness_weights().shape == (60,)

    with pytest.raises(ConfigurationError):
        random_finder.hubness_information_weights(theta=-1.0)


def test_copy_is_independent(random_finder):
    random_finder.calculate_neighbor_sets(5)
    copied = random_finder.copy()
    random_finder.recalculate_stats_for_smaller_k(2)
    assert copied.k == 5
    assert copied.neighbor_frequencies.sum() == 60 * 5


def test_state_transitions_and_release(random_finder):
    assert random_finder.state == CoreState.DISTANCES_READY
    random_finder.calculate_neighbor_sets(3)
    assert random_finder.state == CoreState.NEIGHBOR_SETS_READY

    random_finder.release()
    assert random_finder.state == CoreState.RELEASED
    with pytest.raises(ConfigurationError):
        random_finder.kneighbors


def test_direct_entropies_ignore_labels_beyond_num_classes():
    finder = make_finder([[0.0], [0.1], [5.0], [5.1]], labels=[1, 2, 1, 1])
    finder.calculate_neighbor_sets(1)
    # Point 1 lists only point 0; the class-2 neighbor of point 0 is dropped
    np.testing.assert_allclose(finder.direct_neighbor_entropies(num_classes=2), [0.0, 0.0, 0.0, 0.0])


def test_global_class_to_class():
    finder = make_finder([[0.0], [0.1], [5.0], [5.1]], labels=[0, 1, 0, 0])
    finder.calculate_neighbor_sets(1)
    np.testing.assert_array_equal(finder.global_class_to_class(), [[2, 1], [1, 0]])


def test_global_class_to_class_uses_first_k(random_finder):
    random_finder.calculate_neighbor_sets(6)
    full = random_finder.global_class_to_class()
    assert full.sum() == 60 * 6
    assert random_finder.global_class_to_class(2).sum() == 60 * 2
    with pytest.raises(ConfigurationError):
        random_finder.global_class_to_class(7)


def test_unlabeled_dataset_matches_matrix_only_finder():
    finder = make_finder([[0.0], [1.0], [3.0]])
    finder.calculate_neighbor_sets(1)
    assert finder.num_classes == 0
    np.testing.assert_array_equal(finder.labels, [NOISE_LABEL] * 3)
    assert finder.class_occurrences().shape == (0, 3)
