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

"""Combined metric over float, integer and nominal feature blocks."""

from typing import Callable, Optional, Sequence

import numpy as np

from .base import DatasetMetric, Metric, MAX_DISTANCE
from .kernels import Kernel, KernelMetric
from .primary import EuclideanMetric, HammingMetric, MinkowskiMetric

Combiner = Callable[[Sequence[np.ndarray]], np.ndarray]


def combine_sum(components: Sequence[np.ndarray]) -> np.ndarray:
    return np.sum(components, axis=0)


def combine_euclidean(components: Sequence[np.ndarray]) -> np.ndarray:
    return np.sqrt(np.sum(np.square(components), axis=0))


COMBINATION_RULES = {
    "sum": combine_sum,
    "euclidean": combine_euclidean,
}


class CombinedMetric(DatasetMetric):
    """Distance between dataset instances composed from per-block metrics.

    Each feature block (float, integer, nominal) is measured by its own
    sub-metric; blocks without features, or without a sub-metric, do not
    contribute. The per-block distances are merged by the combination
    rule: "sum" (default), "euclidean", or a custom combiner callable.
    A kernel, when given, replaces the float sub-metric with the
    kernel-induced distance.
    """

    name = "combined"

    def __init__(
        self,
        float_metric: Optional[Metric] = None,
        int_metric: Optional[Metric] = None,
        nominal_metric: Optional[Metric] = None,
        combination: str = "sum",
        combiner: Optional[Combiner] = None,
        kernel: Optional[Kernel] = None,
    ):
        if kernel is not None:
            float_metric = KernelMetric(kernel)
        self.float_metric = float_metric if float_metric is not None else EuclideanMetric()
        self.int_metric = int_metric if int_metric is not None else MinkowskiMetric(self._degree(self.float_metric))
        self.nominal_metric = nominal_metric if nominal_metric is not None else HammingMetric()
        self.kernel = kernel

        if combiner is None:
            if combination not in COMBINATION_RULES:
                raise ValueError(
                    f"Unknown combination rule: {combination}. "
                    f"Available: {list(COMBINATION_RULES)}"
                )
            combiner = COMBINATION_RULES[combination]
        self.combination = combination
        self.combiner = combiner

    @staticmethod
    def _degree(metric: Metric) -> float:
        return getattr(metric, "p", 2.0)

    def row_distances(self, dataset, i: int, js: np.ndarray) -> np.ndarray:
        js = np.asarray(js, dtype=np.int64)
        components = []
        blocks = (
            (dataset.float_data, self.float_metric),
            (dataset.int_data, self.int_metric),
            (dataset.nominal_data, self.nominal_metric),
        )
        for block, metric in blocks:
            if metric is None or block.shape[1] == 0:
                continue
            components.append(metric.row_distances(block[i], block[js]))

        if not components:
            return np.zeros(len(js))

        result = np.asarray(self.combiner(components), dtype=np.float64)
        return np.minimum(result, MAX_DISTANCE)

    def distance(self, first, second) -> float:
        """Distance between two Instance views of the same dataset."""
        if first.dataset is not second.dataset:
            raise ValueError("Instances must belong to the same dataset")
        return self.pair_distance(first.dataset, first.index, second.index)

    def __str__(self) -> str:
        if self.kernel is not None:
            return f"kernel-{self.kernel.name}"
        return f"{self.float_metric.name}-{self.combination}"

    def __repr__(self) -> str:
        return (
            f"CombinedMetric(float={self.float_metric!r}, int={self.int_metric!r}, "
            f"nominal={self.nominal_metric!r}, combination={self.combination!r})"
        )


def as_dataset_metric(metric) -> DatasetMetric:
    """Wrap a plain vector metric so it can address dataset instances."""
    if metric is None:
        return None
    if isinstance(metric, DatasetMetric):
        return metric
    if isinstance(metric, Metric):
        return CombinedMetric(float_metric=metric)
    raise TypeError(f"Expected a Metric or DatasetMetric, got {type(metric)}")
