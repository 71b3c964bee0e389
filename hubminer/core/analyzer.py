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

"""Main hubness analysis orchestrator."""

import time
from pathlib import Path
from typing import Any, Dict, Optional

import numpy as np

from ..config import Config
from ..utils.logging import get_logger
from .analysis import summarize_hubness
from .condition import ExperimentCondition
from .data import Dataset, load_dataset
from .distances import DistanceMatrixCache, load_distance_matrix, save_distance_matrix
from .errors import ConfigurationError
from .metrics import build_combined_metric
from .report import generate_json_report, save_json_report

logger = get_logger()


class HubnessAnalyzer:
    """Runs the configured distance, neighbor and hubness computations."""

    def __init__(self, config: Config):
        """Initialize analyzer with configuration."""
        self.config = config
        self.dataset: Optional[Dataset] = None
        self.distance_matrix = None
        self.metric = None

    def load_data(self):
        """Load the dataset and/or the precomputed distance matrix."""
        input_cfg = self.config.input
        if not input_cfg.dataset_path and not input_cfg.distance_matrix_path:
            raise ConfigurationError("dataset_path or distance_matrix_path required")

        if input_cfg.dataset_path:
            self.dataset = load_dataset(
                input_cfg.dataset_path,
                label_column=input_cfg.label_column,
                normalize=input_cfg.normalize,
                name=input_cfg.dataset_name,
            )

        if input_cfg.distance_matrix_path:
            logger.info(f"Loading distance matrix from {input_cfg.distance_matrix_path}")
            self.distance_matrix = load_distance_matrix(
                input_cfg.distance_matrix_path,
                dtype=np.dtype(self.config.distances.dtype),
            )
        else:
            metric_cfg = self.config.metric
            self.metric = build_combined_metric(
                name=metric_cfg.name,
                params=metric_cfg.params,
                combination=metric_cfg.combination,
                kernel=metric_cfg.kernel,
                kernel_params=metric_cfg.kernel_params,
            )

    @property
    def dataset_name(self) -> str:
        if self.dataset is not None:
            return self.dataset.name
        if self.config.input.dataset_name:
            return self.config.input.dataset_name
        return Path(self.config.input.distance_matrix_path or "dataset").stem

    def create_condition(self) -> ExperimentCondition:
        distance_cfg = self.config.distances
        cache = DistanceMatrixCache(distance_cfg.cache_dir) if distance_cfg.cache_dir else None
        return ExperimentCondition(
            dataset=self.dataset,
            metric=self.metric,
            distance_matrix=self.distance_matrix,
            num_threads=distance_cfg.num_threads,
            dtype=np.dtype(distance_cfg.dtype),
            max_matrix_bytes=distance_cfg.max_matrix_bytes,
            cache=cache,
            normalization=distance_cfg.normalization,
        )

    def analyze(self, save: bool = True) -> Dict[str, Any]:
        """
        Run the analysis.

        Neighbor sets are computed once for the largest k and shrunk for
        the smaller ones.

        Args:
            save: Whether to write reports to the output directory

        Returns:
            Dictionary with the hubness summaries and the JSON report
        """
        if self.dataset is None and self.distance_matrix is None:
            self.load_data()

        start_time = time.time()
        neighbor_cfg = self.config.neighbors
        secondary_cfg = self.config.secondary
        k_values = neighbor_cfg.all_k()

        with self.create_condition() as condition:
            if self.config.output.save_distance_matrix and save:
                path = Path(self.config.output.out_dir) / f"{self.dataset_name}.dmat"
                save_distance_matrix(condition.primary_distances, str(path))

            summaries = []
            for k in sorted(k_values, reverse=True):
                if secondary_cfg.method:
                    finder = condition.secondary_neighbor_sets(
                        secondary_cfg.method,
                        k,
                        **secondary_cfg.params(),
                    )
                else:
                    finder = condition.neighbor_sets(k)
                summary = summarize_hubness(finder, top_n=neighbor_cfg.top_hubs)
                logger.info(
                    f"k={summary.k}: skewness={summary.skewness:.3f}, "
                    f"bad hubness={summary.bad_hubness_percentage:.2f}%"
                )
                summaries.append(summary)

        runtime = time.time() - start_time
        metric_name = str(self.metric) if self.metric is not None else "precomputed"
        json_report = generate_json_report(
            summaries,
            dataset_name=self.dataset_name,
            metric=metric_name,
            secondary=secondary_cfg.method,
            num_threads=self.config.distances.num_threads,
            runtime_seconds=runtime,
        )

        if save:
            out_path = Path(self.config.output.out_dir) / "report.json"
            save_json_report(json_report, str(out_path))
            logger.info(f"Saved report to {out_path}")

        return {
            "summaries": sorted(summaries, key=lambda summary: summary.k),
            "json_report": json_report,
            "runtime": runtime,
        }
