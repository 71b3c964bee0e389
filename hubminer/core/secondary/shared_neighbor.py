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

"""Shared-neighbor secondary distances (simcos and simhub)."""

from typing import Optional

import numpy as np

from .base import SecondaryDistanceCalculator, neighborhood_finder
from ..distances.matrix import UpperTriangularMatrix, as_matrix
from ..errors import ConfigurationError
from ..neighbors.shared import SharedNeighborFinder
from ...utils.logging import get_logger
from ...utils.metrics import min_max_normalize

logger = get_logger()

DEFAULT_K_SND = 50


def similarity_to_distance(counts: UpperTriangularMatrix, k_snd: int) -> UpperTriangularMatrix:
    """distance = k_snd - similarity, min-max normalized to [0, 1]."""
    result = counts.empty_like()
    if counts.n > 1:
        result.data[:] = min_max_normalize(k_snd - np.asarray(counts.data, dtype=np.float64))
    return result


class SharedNeighborDistance(SecondaryDistanceCalculator):
    """Distances from shared k-NN counts.

    "simcos" counts every shared neighbor once; "simhub" weights each shared
    neighbor by its occurrence self-information (and, with num_classes, by
    the class purity of its reverse neighbors), raised to theta.
    """

    MODES = ("simcos", "simhub")

    def __init__(
        self,
        mode: str = "simcos",
        k: int = DEFAULT_K_SND,
        theta: float = 1.0,
        num_classes: Optional[int] = None,
        num_threads: int = 1,
    ):
        super().__init__(num_threads)
        if mode not in self.MODES:
            raise ConfigurationError(f"Unknown shared-neighbor mode: {mode}. Available: {list(self.MODES)}")
        self.mode = mode
        self.k = k
        self.theta = theta
        self.num_classes = num_classes

    @property
    def name(self) -> str:
        return self.mode

    def shared_neighbor_finder(self, matrix, finder=None) -> SharedNeighborFinder:
        matrix = as_matrix(matrix)
        finder = neighborhood_finder(matrix, self.k, finder, self.num_threads)
        snf = SharedNeighborFinder(finder, k=min(self.k, finder.k), num_threads=self.num_threads)
        if self.mode == "simhub":
            snf.obtain_weights_from_hubness_information(theta=self.theta, num_classes=self.num_classes)
        return snf

    def transform(self, matrix, finder=None) -> UpperTriangularMatrix:
        matrix = as_matrix(matrix)
        if matrix.n < 2:
            return matrix.empty_like()
        snf = self.shared_neighbor_finder(matrix, finder)
        counts = snf.count_shared_neighbors()
        logger.info(f"Computed {self.mode} distances for {matrix.n} points with k={snf.k}")
        return similarity_to_distance(counts, snf.k)

    def __repr__(self) -> str:
        return f"SharedNeighborDistance(mode={self.mode!r}, k={self.k}, theta={self.theta})"
