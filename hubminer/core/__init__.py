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

"""Core modules for neighbor sets, hubness and secondary distances."""

from .errors import (
    ConfigurationError,
    MatrixDimensionError,
    MatrixTooLargeError,
    NonFiniteDistanceError,
    WorkerFailedError,
)
from .state import CoreState
from .data import Dataset, Instance, SparseDataset, NOISE_LABEL, load_dataset
from .metrics import (
    Metric,
    DatasetMetric,
    CombinedMetric,
    MAX_DISTANCE,
    get_metric,
    get_kernel,
    build_combined_metric,
)
from .distances import (
    UpperTriangularMatrix,
    compute_distance_matrix,
    save_distance_matrix,
    load_distance_matrix,
    DistanceMatrixCache,
)
from .neighbors import NeighborSetFinder, SharedNeighborFinder
from .secondary import (
    SecondaryDistanceCalculator,
    MutualProximity,
    LocalScaling,
    NICDM,
    SharedNeighborDistance,
    get_secondary,
)
from .condition import ExperimentCondition
from .analysis import HubnessSummary, summarize_hubness
from .report import generate_json_report, save_json_report
from .analyzer import HubnessAnalyzer

__all__ = [
    # Errors
    "ConfigurationError",
    "MatrixDimensionError",
    "MatrixTooLargeError",
    "NonFiniteDistanceError",
    "WorkerFailedError",
    "CoreState",
    # Data
    "Dataset",
    "Instance",
    "SparseDataset",
    "NOISE_LABEL",
    "load_dataset",
    # Metrics
    "Metric",
    "DatasetMetric",
    "CombinedMetric",
    "MAX_DISTANCE",
    "get_metric",
    "get_kernel",
    "build_combined_metric",
    # Distances
    "UpperTriangularMatrix",
    "compute_distance_matrix",
    "save_distance_matrix",
    "load_distance_matrix",
    "DistanceMatrixCache",
    # Neighbors
    "NeighborSetFinder",
    "SharedNeighborFinder",
    # Secondary distances
    "SecondaryDistanceCalculator",
    "MutualProximity",
    "LocalScaling",
    "NICDM",
    "SharedNeighborDistance",
    "get_secondary",
    # Conditions and analysis
    "ExperimentCondition",
    "HubnessSummary",
    "summarize_hubness",
    "generate_json_report",
    "save_json_report",
    "HubnessAnalyzer",
]
