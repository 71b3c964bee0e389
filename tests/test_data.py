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

"""Tests for datasets and dataset loading."""

import numpy as np
import pandas as pd
import pytest
from scipy import sparse

from hubminer.core.data import NOISE_LABEL, Dataset, SparseDataset, load_dataset
from hubminer.core.distances import compute_distance_matrix
from hubminer.core.metrics import EuclideanMetric


def test_from_arrays():
    dataset = Dataset.from_arrays(np.arange(6.0).reshape(3, 2), labels=[0, 1, 1], name="toy")
    assert len(dataset) == 3
    assert dataset.size == 3
    assert dataset.num_classes == 2
    np.testing.assert_array_equal(dataset.class_frequencies(), [1, 2])
    assert dataset.float_names == ["f0", "f1"]


def test_instance_view():
    dataset = Dataset.from_arrays(np.arange(6.0).reshape(3, 2), labels=[0, NOISE_LABEL, 1])
    instance = dataset[1]
    np.testing.assert_array_equal(instance.float_values, [2.0, 3.0])
    assert instance.is_noise()
    assert not dataset[2].is_noise()
    with pytest.raises(IndexError):
        dataset[3]


def test_noise_is_not_a_class():
    dataset = Dataset.from_arrays(np.zeros((3, 1)), labels=[NOISE_LABEL, NOISE_LABEL, 2])
    assert dataset.num_classes == 3
    np.testing.assert_array_equal(dataset.class_frequencies(), [0, 0, 1])


def test_subset_preserves_order():
    dataset = Dataset.from_arrays(np.arange(8.0).reshape(4, 2), labels=[0, 1, 2, 3])
    subset = dataset.subset([3, 1])
    np.testing.assert_array_equal(subset.labels, [3, 1])
    np.testing.assert_array_equal(subset.float_data[0], [6.0, 7.0])


def test_label_count_mismatch():
    with pytest.raises(ValueError):
        Dataset.from_arrays(np.zeros((3, 2)), labels=[0, 1])


def test_load_npy(tmp_path):
    path = tmp_path / "features.npy"
    np.save(path, np.arange(12.0).reshape(4, 3))
    dataset = load_dataset(str(path))
    assert len(dataset) == 4
    assert dataset.name == "features"


def test_load_npz_with_labels(tmp_path):
    path = tmp_path / "data.npz"
    np.savez(path, features=np.ones((5, 2)), labels=np.array([0, 0, 1, 1, -1]))
    dataset = load_dataset(str(path), normalize=True)
    np.testing.assert_array_equal(dataset.labels, [0, 0, 1, 1, -1])
    np.testing.assert_allclose(np.linalg.norm(dataset.float_data, axis=1), 1.0)


def test_load_csv_splits_feature_blocks(tmp_path):
    path = tmp_path / "table.csv"
    pd.DataFrame({
        "height": [1.5, 1.7, np.nan],
        "count": [1, 2, 3],
        "color": ["red", "blue", None],
        "label": [0, 1, 1],
    }).to_csv(path, index=False)

    dataset = load_dataset(str(path), label_column="label")
    assert dataset.float_names == ["height"]
    assert dataset.int_names == ["count"]
    assert dataset.nominal_names == ["color"]
    np.testing.assert_array_equal(dataset.labels, [0, 1, 1])
    assert np.isnan(dataset.float_data[2, 0])
    assert dataset.nominal_data[2, 0] is None


def test_unsupported_format(tmp_path):
    path = tmp_path / "data.arff"
    path.write_text("@relation x")
    with pytest.raises(ValueError, match="Unsupported"):
        load_dataset(str(path))


def test_unlabeled_instances_are_noise():
    dataset = Dataset.from_arrays(np.zeros((3, 2)))
    np.testing.assert_array_equal(dataset.labels, [NOISE_LABEL] * 3)
    assert dataset.num_classes == 0
    assert SparseDataset(sparse.csr_matrix(np.eye(3))).num_classes == 0


def test_normalize_keeps_missing_values(tmp_path):
    path = tmp_path / "features.npy"
    np.save(path, np.array([[1.0, np.nan, 2.0], [1.0, 5.0, 2.0], [2.0, 1.0, 1.0]]))
    dataset = load_dataset(str(path), normalize=True)

    assert np.isnan(dataset.float_data[0, 1])
    np.testing.assert_allclose(dataset.float_data[0, [0, 2]], np.array([1.0, 2.0]) / np.sqrt(5.0))
    np.testing.assert_allclose(np.linalg.norm(dataset.float_data[1:], axis=1), 1.0)

    matrix = compute_distance_matrix(dataset, EuclideanMetric())
    assert matrix.get(0, 1) < 2.0
    assert matrix.get(0, 2) < 2.0


def test_load_sparse_npz(tmp_path):
    path = tmp_path / "bow.npz"
    sparse.save_npz(path, sparse.csr_matrix(np.array([[3.0, 0.0, 4.0], [0.0, 2.0, 0.0]])))

    dataset = load_dataset(str(path), normalize=True)
    assert isinstance(dataset, SparseDataset)
    assert len(dataset) == 2
    assert dataset.name == "bow"
    np.testing.assert_allclose(dataset.data.toarray(), [[0.6, 0.0, 0.8], [0.0, 1.0, 0.0]])
    np.testing.assert_array_equal(dataset.labels, [NOISE_LABEL, NOISE_LABEL])
