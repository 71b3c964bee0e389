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

"""Tests for CLI interface."""

import json

import numpy as np
import pytest
from click.testing import CliRunner
from scipy import sparse

from hubminer.cli import cli
from hubminer.core.distances import load_distance_matrix


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def features_file(tmp_path):
    rng = np.random.default_rng(4)
    path = tmp_path / "features.npy"
    np.save(path, rng.normal(size=(40, 8)))
    return str(path)


def test_cli_help(runner):
    result = runner.invoke(cli, ["--help"])
    assert result.exit_code == 0
    assert "analyze" in result.output
    assert "distances" in result.output


def test_distances_command(runner, features_file, tmp_path):
    out = tmp_path / "matrix.dmat"
    result = runner.invoke(cli, ["distances", "-d", features_file, "-o", str(out), "-t", "2"])

    assert result.exit_code == 0, result.output
    matrix = load_distance_matrix(str(out))
    assert matrix.n == 40


def test_analyze_command(runner, features_file, tmp_path):
    out_dir = tmp_path / "out"
    result = runner.invoke(
        cli, ["analyze", "-d", features_file, "-k", "3", "-k", "5", "-o", str(out_dir)]
    )

    assert result.exit_code == 0, result.output
    assert "Occurrence Statistics" in result.output
    report = json.loads((out_dir / "report.json").read_text())
    assert set(report["results"]) == {"3", "5"}
    assert report["analysis_info"]["num_points"] == 40


def test_analyze_with_secondary(runner, features_file, tmp_path):
    out_dir = tmp_path / "out"
    result = runner.invoke(
        cli, ["analyze", "-d", features_file, "-k", "4", "-s", "local_scaling", "-o", str(out_dir)]
    )

    assert result.exit_code == 0, result.output
    report = json.loads((out_dir / "report.json").read_text())
    assert report["analysis_info"]["secondary"] == "local_scaling"


def test_analyze_summary_only(runner, features_file, tmp_path):
    out_dir = tmp_path / "out"
    result = runner.invoke(
        cli, ["analyze", "-d", features_file, "-k", "3", "-o", str(out_dir), "--summary-only"]
    )

    assert result.exit_code == 0, result.output
    assert not (out_dir / "report.json").exists()


def test_analyze_without_input_fails(runner):
    result = runner.invoke(cli, ["analyze", "-k", "3"])
    assert result.exit_code == 1


def test_hubs_command(runner, features_file, tmp_path):
    out_dir = tmp_path / "out"
    runner.invoke(cli, ["analyze", "-d", features_file, "-k", "5", "-o", str(out_dir)])

    result = runner.invoke(cli, ["hubs", "--report", str(out_dir / "report.json"), "-n", "3"])
    assert result.exit_code == 0, result.output
    assert "Top Hubs (k=5)" in result.output


@pytest.fixture
def sparse_file(tmp_path):
    path = tmp_path / "bow.npz"
    counts = sparse.random(30, 50, density=0.2, format="csr", random_state=3)
    sparse.save_npz(path, counts)
    return str(path)


def test_sparse_metric_end_to_end(runner, sparse_file, tmp_path):
    out = tmp_path / "bow.dmat"
    result = runner.invoke(cli, ["distances", "-d", sparse_file, "-o", str(out), "-m", "sparse_cosine"])
    assert result.exit_code == 0, result.output
    assert load_distance_matrix(str(out)).n == 30

    out_dir = tmp_path / "out"
    result = runner.invoke(
        cli, ["analyze", "-d", sparse_file, "-m", "sparse_manhattan", "-k", "4", "-o", str(out_dir)]
    )
    assert result.exit_code == 0, result.output
    report = json.loads((out_dir / "report.json").read_text())
    assert report["analysis_info"]["metric"] == "sparse_manhattan"
    assert report["analysis_info"]["num_points"] == 30


def test_sparse_metric_rejects_dense_input(runner, features_file, tmp_path):
    out = tmp_path / "matrix.dmat"
    result = runner.invoke(cli, ["distances", "-d", features_file, "-o", str(out), "-m", "sparse_cosine"])
    assert result.exit_code == 1
    assert "sparse dataset" in result.output
