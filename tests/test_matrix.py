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

"""Tests for upper-triangular distance matrices."""

import numpy as np
import pytest
from scipy import sparse

from hubminer.core.data import Dataset, SparseDataset
from hubminer.core.distances import (
    UpperTriangularMatrix,
    check_matrix_size,
    compute_distance_matrix,
    condensed_size,
)
from hubminer.core.errors import ConfigurationError, MatrixDimensionError, MatrixTooLargeError
from hubminer.core.metrics import EuclideanMetric, ManhattanMetric, SparseCombinedMetric, SparseManhattan


@pytest.fixture
def dense():
    """Symmetric dense matrix with zero diagonal."""
    rng = np.random.default_rng(0)
    points = rng.normal(size=(6, 3))
    return np.linalg.norm(points[:, None, :] - points[None, :, :], axis=2)


def test_condensed_size():
    assert condensed_size(0) == 0
    assert condensed_size(1) == 0
    assert condensed_size(5) == 10


def test_get_is_symmetric(dense):
    matrix = UpperTriangularMatrix.from_dense(dense)
    for i in range(6):
        for j in range(6):
            if i != j:
                assert matrix.get(i, j) == pytest.approx(dense[i, j])
                assert matrix.get(i, j) == matrix.get(j, i)


def test_diagonal_rejected(dense):
    matrix = UpperTriangularMatrix.from_dense(dense)
    with pytest.raises(IndexError):
        matrix.get(2, 2)
    with pytest.raises(IndexError):
        matrix.set(0, 0, 1.0)


def test_set_updates_both_orders():
    matrix = UpperTriangularMatrix(4)
    matrix.set(3, 1, 2.5)
    assert matrix.get(1, 3) == 2.5
    assert matrix.row(1)[1] == 2.5


def test_row_and_column_views(dense):
    matrix = UpperTriangularMatrix.from_dense(dense)
    np.testing.assert_allclose(matrix.row(2), dense[2, 3:])
    np.testing.assert_allclose(matrix.column(2), dense[:2, 2])
    assert len(matrix.row(5)) == 0


def test_full_row_excludes_self(dense):
    matrix = UpperTriangularMatrix.from_dense(dense)
    indices, distances = matrix.full_row(3)
    np.testing.assert_array_equal(indices, [0, 1, 2, 4, 5])
    np.testing.assert_allclose(distances, dense[3, [0, 1, 2, 4, 5]])


def test_dense_roundtrip(dense):
    matrix = UpperTriangularMatrix.from_dense(dense)
    np.testing.assert_allclose(matrix.to_dense(), dense)


def test_from_rows_validates_lengths():
    matrix = UpperTriangularMatrix.from_rows([[1.0, 2.0], [3.0], []])
    assert matrix.n == 3
    assert matrix.get(1, 2) == 3.0

    with pytest.raises(MatrixDimensionError):
        UpperTriangularMatrix.from_rows([[1.0], [3.0], []])


def test_wrong_data_length():
    with pytest.raises(MatrixDimensionError):
        UpperTriangularMatrix(4, data=np.zeros(5))


def test_release():
    matrix = UpperTriangularMatrix(3)
    matrix.release()
    assert matrix.released
    with pytest.raises(RuntimeError):
        matrix.get(0, 1)


def test_compute_distance_matrix_matches_dense():
    rng = np.random.default_rng(1)
    features = rng.normal(size=(20, 4))
    dataset = Dataset.from_arrays(features)

    matrix = compute_distance_matrix(dataset, EuclideanMetric())
    expected = np.linalg.norm(features[:, None, :] - features[None, :, :], axis=2)
    np.testing.assert_allclose(matrix.to_dense(), expected)


def test_compute_distance_matrix_threads_agree():
    rng = np.random.default_rng(2)
    dataset = Dataset.from_arrays(rng.normal(size=(37, 5)))

    single = compute_distance_matrix(dataset, ManhattanMetric(), num_threads=1)
    multi = compute_distance_matrix(dataset, ManhattanMetric(), num_threads=4)
    assert single == multi


def test_compute_distance_matrix_small_datasets():
    assert compute_distance_matrix(Dataset.from_arrays(np.zeros((0, 2))), EuclideanMetric()).n == 0
    assert compute_distance_matrix(Dataset.from_arrays(np.zeros((1, 2))), EuclideanMetric()).n == 1


def test_size_check():
    assert check_matrix_size(100) == condensed_size(100) * 8
    with pytest.raises(MatrixTooLargeError, match="exceeds"):
        check_matrix_size(10000, max_bytes=1024)

    dataset = Dataset.from_arrays(np.zeros((100, 2)))
    with pytest.raises(MatrixTooLargeError):
        compute_distance_matrix(dataset, EuclideanMetric(), max_bytes=100)


def test_metric_and_dataset_kind_must_agree():
    dense = Dataset.from_arrays(np.eye(3))
    bag = SparseDataset(sparse.csr_matrix(np.eye(3)))

    with pytest.raises(ConfigurationError, match="sparse dataset"):
        compute_distance_matrix(dense, SparseCombinedMetric(SparseManhattan()))
    with pytest.raises(ConfigurationError, match="dense dataset"):
        compute_distance_matrix(bag, EuclideanMetric())

    matrix = compute_distance_matrix(bag, SparseCombinedMetric(SparseManhattan()))
    np.testing.assert_allclose(matrix.to_dense(), 2.0 * (1.0 - np.eye(3)))
