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

"""Base metric interfaces and the missing-value policy."""

from abc import ABC, abstractmethod
from typing import Any, Tuple

import numpy as np

# Sentinel returned when exactly one side of a pair has no usable values.
MAX_DISTANCE = float(np.finfo(np.float32).max)


def acceptable_mask(x: np.ndarray, Y: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Compute usable-dimension masks for a vector against a block of vectors.

    Args:
        x: Vector (D,)
        Y: Vectors (M, D)

    Returns:
        mask: (M, D) dimensions usable on both sides
        x_has: Whether x has any finite value
        Y_has: (M,) whether each row of Y has any finite value
    """
    valid_x = np.isfinite(x)
    valid_Y = np.isfinite(Y)
    return valid_x & valid_Y, valid_x.any(), valid_Y.any(axis=1)


def apply_missing_policy(result: np.ndarray, x_has: bool, Y_has: np.ndarray) -> np.ndarray:
    """Zero for all-missing pairs, MAX_DISTANCE for one-sided missing pairs."""
    result = np.where(~x_has & ~Y_has, 0.0, result)
    result = np.where(x_has ^ Y_has, MAX_DISTANCE, result)
    return result


class Metric(ABC):
    """Distance between two feature vectors."""

    name: str = "metric"

    @abstractmethod
    def row_distances(self, x: np.ndarray, Y: np.ndarray) -> np.ndarray:
        """
        Distances from one vector to a block of vectors.

        Args:
            x: Vector (D,)
            Y: Vectors (M, D)

        Returns:
            Distances (M,)
        """
        pass

    def distance(self, x: np.ndarray, y: np.ndarray) -> float:
        """Distance between two vectors."""
        x = np.asarray(x)
        y = np.asarray(y)
        return float(self.row_distances(x, y.reshape(1, -1))[0])

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class DatasetMetric(ABC):
    """Distance between instances of a dataset, addressed by index.

    This is the interface distance-matrix computation calls; it never
    inspects how the distance is composed.
    """

    name: str = "dataset_metric"
    # Whether the metric reads SparseDataset rows instead of dense feature blocks
    sparse_input: bool = False

    @abstractmethod
    def row_distances(self, dataset: Any, i: int, js: np.ndarray) -> np.ndarray:
        """Distances from instance i to instances js."""
        pass

    def pair_distance(self, dataset: Any, i: int, j: int) -> float:
        """Distance between instances i and j."""
        return float(self.row_distances(dataset, i, np.array([j], dtype=np.int64))[0])
