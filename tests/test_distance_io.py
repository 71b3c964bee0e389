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

"""Tests for distance matrix persistence and caching."""

import numpy as np
import pytest

from hubminer.core.data import Dataset
from hubminer.core.distances import (
    DistanceMatrixCache,
    UpperTriangularMatrix,
    load_distance_matrix,
    save_distance_matrix,
)
from hubminer.core.errors import MatrixDimensionError
from hubminer.core.metrics import CombinedMetric, EuclideanMetric


def test_text_roundtrip_is_bit_identical(tmp_path):
    rng = np.random.default_rng(3)
    n = 15
    matrix = UpperTriangularMatrix(n, data=rng.random(n * (n - 1) // 2) * 1e3)

    path = tmp_path / "matrix.dmat"
    save_distance_matrix(matrix, str(path))
    loaded = load_distance_matrix(str(path))

    assert loaded.n == n
    assert np.array_equal(loaded.data, matrix.data)


def test_file_layout(tmp_path):
    matrix = UpperTriangularMatrix.from_rows([[1.0, 2.0], [0.5], []])
    path = tmp_path / "small.dmat"
    save_distance_matrix(matrix, str(path))

    lines = path.read_text().split("\n")
    assert lines[0] == "1.0,2.0"
    assert lines[1] == "0.5"


def test_reader_accepts_whitespace(tmp_path):
    path = tmp_path / "spaces.dmat"
    path.write_text("1.0 2.0\n0.5\n\n")
    matrix = load_distance_matrix(str(path))
    assert matrix.get(0, 2) == 2.0
    assert matrix.get(2, 1) == 0.5


def test_reader_rejects_bad_rows(tmp_path):
    path = tmp_path / "bad.dmat"
    path.write_text("1.0\n0.5\n\n")
    with pytest.raises(MatrixDimensionError):
        load_distance_matrix(str(path))


def test_cache_path_layout(tmp_path):
    cache = DistanceMatrixCache(str(tmp_path))
    path = cache.path_for("iris", "euclidean-sum", "zscore")
    assert path == tmp_path / "euclidean-sum" / "zscore" / "iris.dmat"


def test_cache_load_or_compute(tmp_path):
    rng = np.random.default_rng(4)
    dataset = Dataset.from_arrays(rng.normal(size=(10, 3)), name="toy")
    metric = CombinedMetric(float_metric=EuclideanMetric())
    cache = DistanceMatrixCache(str(tmp_path))

    first = cache.load_or_compute(dataset, metric)
    assert cache.path_for("toy", str(metric)).exists()

    second = cache.load_or_compute(dataset, metric)
    assert second == first


def test_cache_rejects_mismatched_dataset(tmp_path):
    cache = DistanceMatrixCache(str(tmp_path))
    metric = CombinedMetric()
    cache.store(UpperTriangularMatrix(4), "toy", str(metric))

    dataset = Dataset.from_arrays(np.zeros((6, 2)), name="toy")
    with pytest.raises(MatrixDimensionError):
        cache.load_or_compute(dataset, metric)
