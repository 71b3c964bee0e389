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

"""SDK for hubminer - programmatic interface to hubness analysis."""

from typing import Optional, Dict, Any, List

import numpy as np

from .config import Config
from .core.analyzer import HubnessAnalyzer
from .core.data import Dataset


def analyze(
    dataset_path: Optional[str] = None,
    distance_matrix_path: Optional[str] = None,
    config_path: Optional[str] = None,
    output_dir: str = "reports/",
    k: int = 10,
    k_values: Optional[List[int]] = None,
    metric: str = "euclidean",
    secondary: Optional[str] = None,
    num_threads: int = 1,
    label_column: Optional[str] = None,
    save: bool = True,
    **kwargs,
) -> Dict[str, Any]:
    """
    Run a hubness analysis with simple parameters.

    Args:
        dataset_path: Path to dataset file (.npy/.npz/.csv/.parquet)
        distance_matrix_path: Path to a precomputed distance matrix
        config_path: Optional path to YAML config file (overrides other params)
        output_dir: Directory to save reports
        k: Neighborhood size
        k_values: Additional neighborhood sizes
        metric: Registered metric name
        secondary: Optional secondary distance method
        num_threads: Worker threads
        label_column: Label column for tables
        save: Whether to write reports
        **kwargs: Additional secondary distance options (theta, sample_size, seed)

    Returns:
        Dictionary with:
        - summaries: HubnessSummary per k, ascending
        - json_report: Full JSON report
        - runtime: Runtime in seconds

    Example:
        ```python
        from hubminer.sdk import analyze

        results = analyze(dataset_path="data/features.npz", k=10, k_values=[5, 20])
        for summary in results["summaries"]:
            print(summary.k, summary.skewness)
        ```
    """
    if config_path:
        config = Config.from_yaml(config_path)
    else:
        config = _create_config_from_params(
            dataset_path=dataset_path,
            distance_matrix_path=distance_matrix_path,
            output_dir=output_dir,
            k=k,
            k_values=k_values,
            metric=metric,
            secondary=secondary,
            num_threads=num_threads,
            label_column=label_column,
            **kwargs,
        )

    analyzer = HubnessAnalyzer(config)
    analyzer.load_data()
    return analyzer.analyze(save=save)


def quick_analyze(
    features: np.ndarray,
    labels: Optional[np.ndarray] = None,
    k: int = 10,
    k_values: Optional[List[int]] = None,
    metric: str = "euclidean",
    secondary: Optional[str] = None,
    num_threads: int = 1,
    **kwargs,
) -> Dict[str, Any]:
    """
    Run a hubness analysis on in-memory features without writing reports.

    Example:
        ```python
        import numpy as np
        from hubminer.sdk import quick_analyze

        features = np.random.randn(500, 50)
        results = quick_analyze(features, k=10, secondary="mutual_proximity")
        ```
    """
    config = _create_config_from_params(
        k=k,
        k_values=k_values,
        metric=metric,
        secondary=secondary,
        num_threads=num_threads,
        **kwargs,
    )
    analyzer = HubnessAnalyzer(config)
    analyzer.dataset = Dataset.from_arrays(features, labels=labels, name="in_memory")
    analyzer.metric = _build_metric(config)
    return analyzer.analyze(save=False)


def analyze_from_config(config_path: str) -> Dict[str, Any]:
    """Run an analysis described by a YAML config file."""
    return analyze(config_path=config_path)


def get_top_hubs(
    results: Dict[str, Any],
    k: Optional[int] = None,
    top_n: Optional[int] = None,
) -> List[Dict[str, Any]]:
    """
    Strongest hubs of an analysis.

    Args:
        results: Results from analyze() or quick_analyze()
        k: Neighborhood size (defaults to the smallest analyzed k)
        top_n: Number of hubs to return (defaults to all reported)

    Returns:
        List of hub dictionaries (index, occurrences, bad_occurrences, hub_z)
    """
    summaries = {summary.k: summary for summary in results["summaries"]}
    if not summaries:
        return []
    k = min(summaries) if k is None else k
    if k not in summaries:
        raise KeyError(f"No summary for k={k}. Available: {sorted(summaries)}")
    hubs = summaries[k].top_hubs
    return hubs if top_n is None else hubs[:top_n]


def _build_metric(config: Config):
    from .core.metrics import build_combined_metric

    return build_combined_metric(
        name=config.metric.name,
        params=config.metric.params,
        combination=config.metric.combination,
        kernel=config.metric.kernel,
        kernel_params=config.metric.kernel_params,
    )


def _create_config_from_params(
    dataset_path: Optional[str] = None,
    distance_matrix_path: Optional[str] = None,
    output_dir: str = "reports/",
    k: int = 10,
    k_values: Optional[List[int]] = None,
    metric: str = "euclidean",
    secondary: Optional[str] = None,
    num_threads: int = 1,
    label_column: Optional[str] = None,
    **kwargs,
) -> Config:
    """Create Config from simple parameters."""
    config = Config()

    config.input.dataset_path = dataset_path
    config.input.distance_matrix_path = distance_matrix_path
    config.input.label_column = label_column
    config.metric.name = metric
    config.distances.num_threads = num_threads
    config.neighbors.k = k
    config.neighbors.k_values = list(k_values or [])
    config.output.out_dir = output_dir

    config.secondary.method = secondary
    for key in ("theta", "sample_size", "seed"):
        if key in kwargs:
            setattr(config.secondary, key, kwargs[key])
    if "secondary_k" in kwargs:
        config.secondary.k = kwargs["secondary_k"]

    return config
