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

"""Metric and kernel registries for selection by name."""

import warnings
from typing import Any, Callable, Dict, List, Optional

from .base import DatasetMetric, Metric
from .combined import CombinedMetric
from .kernels import (
    CauchyKernel,
    Kernel,
    LinearKernel,
    MinKernel,
    PowerKernel,
    RBFKernel,
    SphericalKernel,
)
from .primary import CosineMetric, EuclideanMetric, HammingMetric, ManhattanMetric, MinkowskiMetric
from .sparse import SparseCombinedMetric, SparseCosine, SparseManhattan

_METRIC_REGISTRY: Dict[str, Callable[..., Any]] = {}
_KERNEL_REGISTRY: Dict[str, Callable[..., Kernel]] = {}


def register_metric(name: str, factory: Callable[..., Any]):
    """
    Register a metric factory.

    Args:
        name: Unique name for the metric
        factory: Callable returning a Metric or DatasetMetric
    """
    if name in _METRIC_REGISTRY:
        warnings.warn(f"Metric '{name}' is already registered. Overwriting.")
    _METRIC_REGISTRY[name] = factory


def register_kernel(name: str, factory: Callable[..., Kernel]):
    """Register a kernel factory."""
    if name in _KERNEL_REGISTRY:
        warnings.warn(f"Kernel '{name}' is already registered. Overwriting.")
    _KERNEL_REGISTRY[name] = factory


def get_metric(name: str, **params) -> Any:
    """
    Create a registered metric.

    Args:
        name: Name of the metric
        **params: Factory parameters (e.g. p for minkowski)

    Returns:
        Metric instance

    Raises:
        ValueError: If the name is not registered
    """
    factory = _METRIC_REGISTRY.get(name)
    if factory is None:
        raise ValueError(f"Unknown metric: {name}. Available: {list_metrics()}")
    return factory(**params)


def get_kernel(name: str, **params) -> Kernel:
    factory = _KERNEL_REGISTRY.get(name)
    if factory is None:
        raise ValueError(f"Unknown kernel: {name}. Available: {list_kernels()}")
    return factory(**params)


def list_metrics() -> List[str]:
    """List all registered metric names."""
    return list(_METRIC_REGISTRY.keys())


def list_kernels() -> List[str]:
    """List all registered kernel names."""
    return list(_KERNEL_REGISTRY.keys())


def build_combined_metric(
    name: str = "euclidean",
    params: Optional[Dict[str, Any]] = None,
    combination: str = "sum",
    kernel: Optional[str] = None,
    kernel_params: Optional[Dict[str, Any]] = None,
) -> DatasetMetric:
    """Build the dataset metric described by a metric configuration."""
    params = params or {}
    if kernel is not None:
        return CombinedMetric(kernel=get_kernel(kernel, **(kernel_params or {})), combination=combination)

    metric = get_metric(name, **params)
    if isinstance(metric, DatasetMetric):
        return metric
    if not isinstance(metric, Metric):
        raise TypeError(f"Metric factory '{name}' returned {type(metric)}")
    return CombinedMetric(float_metric=metric, combination=combination)


register_metric("minkowski", MinkowskiMetric)
register_metric("manhattan", ManhattanMetric)
register_metric("euclidean", EuclideanMetric)
register_metric("cosine", CosineMetric)
register_metric("hamming", HammingMetric)
register_metric("sparse_manhattan", lambda: SparseCombinedMetric(SparseManhattan()))
register_metric("sparse_cosine", lambda: SparseCombinedMetric(SparseCosine()))

register_kernel("linear", LinearKernel)
register_kernel("rbf", RBFKernel)
register_kernel("spherical", SphericalKernel)
register_kernel("cauchy", CauchyKernel)
register_kernel("min", MinKernel)
register_kernel("power", PowerKernel)
