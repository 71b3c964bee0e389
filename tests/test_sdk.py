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

"""Tests for SDK interface."""

import numpy as np
import pytest

from hubminer.core.distances import compute_distance_matrix, save_distance_matrix
from hubminer.core.data import Dataset
from hubminer.core.metrics import EuclideanMetric
from hubminer.sdk import analyze, get_top_hubs, quick_analyze


@pytest.fixture
def sample_features():
    rng = np.random.default_rng(42)
    return rng.normal(size=(60, 20))


def test_quick_analyze(sample_features):
    results = quick_analyze(sample_features, k=5, k_values=[2, 10])

    assert [summary.k for summary in results["summaries"]] == [2, 5, 10]
    for summary in results["summaries"]:
        assert summary.num_points == 60
        assert summary.mean_occurrence == pytest.approx(summary.k)
    assert set(results["json_report"]["results"]) == {"2", "5", "10"}


def test_quick_analyze_secondary_reduces_hubness():
    features = np.random.default_rng(7).normal(size=(300, 50))
    primary = quick_analyze(features, k=5)["summaries"][0]
    secondary = quick_analyze(features, k=5, secondary="mutual_proximity")["summaries"][0]

    assert secondary.num_points == 300
    assert secondary.skewness < primary.skewness


def test_quick_analyze_with_labels(sample_features):
    labels = np.arange(60) % 2
    summary = quick_analyze(sample_features, labels=labels, k=5)["summaries"][0]
    assert summary.bad_hubness_percentage > 0


def test_analyze_precomputed_matrix(sample_features, tmp_path):
    matrix = compute_distance_matrix(Dataset.from_arrays(sample_features), EuclideanMetric())
    path = tmp_path / "features.dmat"
    save_distance_matrix(matrix, str(path))

    results = analyze(distance_matrix_path=str(path), k=5, output_dir=str(tmp_path / "out"))

    assert results["json_report"]["analysis_info"]["dataset"] == "features"
    assert (tmp_path / "out" / "report.json").exists()


def test_get_top_hubs(sample_features):
    results = quick_analyze(sample_features, k=5, k_values=[10])

    hubs = get_top_hubs(results, top_n=3)
    assert len(hubs) == 3
    assert hubs[0]["occurrences"] >= hubs[-1]["occurrences"]

    assert get_top_hubs(results, k=10)[0]["occurrences"] >= 10
    with pytest.raises(KeyError):
        get_top_hubs(results, k=7)
