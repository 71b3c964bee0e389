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

"""Primary metrics, kernels and the metric registry."""

from .base import Metric, DatasetMetric, MAX_DISTANCE
from .primary import (
    MinkowskiMetric,
    ManhattanMetric,
    EuclideanMetric,
    CosineMetric,
    HammingMetric,
)
from .kernels import (
    Kernel,
    KernelMetric,
    LinearKernel,
    RBFKernel,
    SphericalKernel,
    CauchyKernel,
    MinKernel,
    PowerKernel,
)
from .combined import CombinedMetric, COMBINATION_RULES, as_dataset_metric
from .sparse import SparseMetric, SparseManhattan, SparseCosine, SparseCombinedMetric
from .registry import (
    register_metric,
    register_kernel,
    get_metric,
    get_kernel,
    list_metrics,
    list_kernels,
    build_combined_metric,
)

__all__ = [
    "Metric",
    "DatasetMetric",
    "MAX_DISTANCE",
    "MinkowskiMetric",
    "ManhattanMetric",
    "EuclideanMetric",
    "CosineMetric",
    "HammingMetric",
    "Kernel",
    "KernelMetric",
    "LinearKernel",
    "RBFKernel",
    "SphericalKernel",
    "CauchyKernel",
    "MinKernel",
    "PowerKernel",
    "CombinedMetric",
    "COMBINATION_RULES",
    "as_dataset_metric",
    "SparseMetric",
    "SparseManhattan",
    "SparseCosine",
    "SparseCombinedMetric",
    "register_metric",
    "register_kernel",
    "get_metric",
    "get_kernel",
    "list_metrics",
    "list_kernels",
    "build_combined_metric",
]
