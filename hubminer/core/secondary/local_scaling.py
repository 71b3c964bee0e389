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

"""Local Scaling and NICDM secondary distances.

Both rescale d(x, y) by the local neighborhood radius of x and y, so that
points in dense and sparse regions become comparable.
"""

from abc import abstractmethod

import numpy as np

from .base import SecondaryDistanceCalculator, neighborhood_finder, neighborhood_kdistances
from ..distances.matrix import UpperTriangularMatrix, as_matrix
from ..metrics.base import MAX_DISTANCE
from ...utils.logging import get_logger
from ...utils.parallel import run_partitioned

logger = get_logger()

DEFAULT_K = 10


class _NeighborhoodScaling(SecondaryDistanceCalculator):

    def __init__(self, k: int = DEFAULT_K, num_threads: int = 1):
        super().__init__(num_threads)
        self.k = k

    @abstractmethod
    def scale_factors(self, kdistances: np.ndarray) -> np.ndarray:
        """Per-point neighborhood radius from the (N, k) k-NN distances."""
        pass

    @abstractmethod
    def rescale(self, distances: np.ndarray, scale_i: float, scale_js: np.ndarray) -> np.ndarray:
        pass

    def transform(self, matrix, finder=None) -> UpperTriangularMatrix:
        matrix = as_matrix(matrix)
        n = matrix.n
        result = matrix.empty_like()
        if n < 2:
            return result

        finder = neighborhood_finder(matrix, self.k, finder, self.num_threads)
        scales = self.scale_factors(neighborhood_kdistances(finder, self.k))

        def transform_rows(start: int, end: int):
            for i in range(start, min(end, n - 1)):
                distances = np.asarray(matrix.row(i), dtype=np.float64)
                result.row(i)[:] = self.rescale(distances, scales[i], scales[i + 1:])

        run_partitioned(transform_rows, n, self.num_threads, description=self.name)
        logger.info(f"Computed {self.name} distances for {n} points with k={self.k}")
        return result

    def __repr__(self) -> str:
        return f"{type(self).__name__}(k={self.k})"


class LocalScaling(_NeighborhoodScaling):
    """d' = 1 - exp(-d^2 / (sigma_x sigma_y)), sigma = distance to the k-th neighbor."""

    name = "local_scaling"

    def scale_factors(self, kdistances):
        return kdistances[:, -1]

    def rescale(self, distances, scale_i, scale_js):
        product = scale_i * scale_js
        positive = product > 0
        with np.errstate(divide="ignore", invalid="ignore"):
            scaled = 1.0 - np.exp(-np.square(distances) / np.where(positive, product, 1.0))
        # A zero radius only admits duplicates as close points
        return np.where(positive, scaled, np.where(distances == 0, 0.0, 1.0))


class NICDM(_NeighborhoodScaling):
    """d' = d / sqrt(mu_x mu_y), mu = mean distance to the k nearest neighbors."""

    name = "nicdm"

    def scale_factors(self, kdistances):
        return kdistances.mean(axis=1)

    def rescale(self, distances, scale_i, scale_js):
        product = scale_i * scale_js
        positive = product > 0
        with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
            scaled = distances / np.sqrt(np.where(positive, product, 1.0))
        scaled = np.minimum(scaled, MAX_DISTANCE)
        return np.where(positive, scaled, np.where(distances == 0, 0.0, MAX_DISTANCE))
