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

"""Base interface for secondary distance calculators."""

from abc import ABC, abstractmethod
from typing import Optional

import numpy as np

from ..distances.matrix import UpperTriangularMatrix, as_matrix
from ..errors import ConfigurationError
from ..neighbors.finder import NeighborSetFinder


class SecondaryDistanceCalculator(ABC):
    """Turns a primary distance matrix into a secondary one."""

    name: str = "secondary"

    def __init__(self, num_threads: int = 1):
        self.num_threads = max(1, int(num_threads))

    @abstractmethod
    def transform(
        self,
        matrix: UpperTriangularMatrix,
        finder: Optional[NeighborSetFinder] = None,
    ) -> UpperTriangularMatrix:
        """
        Compute the secondary distance matrix.

        Args:
            matrix: Primary distances
            finder: Optional NeighborSetFinder already computed on matrix,
                reused by neighborhood-based calculators

        Returns:
            New UpperTriangularMatrix of secondary distances
        """
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


def neighborhood_finder(
    matrix: UpperTriangularMatrix,
    k: int,
    finder: Optional[NeighborSetFinder] = None,
    num_threads: int = 1,
) -> NeighborSetFinder:
    """
    Return a finder holding at least k neighbors on this matrix.

    A supplied finder is reused when it was computed on the same matrix
    with a large enough k; otherwise a new one is built.
    """
    if k <= 0:
        raise ConfigurationError(f"Neighborhood size must be positive, got {k}")
    matrix = as_matrix(matrix)
    max_k = max(matrix.n - 1, 0)
    if (
        finder is not None
        and finder.k >= min(k, max_k)
        and finder.distance_matrix is matrix
    ):
        return finder
    fresh = NeighborSetFinder(distance_matrix=matrix, num_threads=num_threads)
    fresh.calculate_neighbor_sets(k)
    return fresh


def neighborhood_kdistances(finder: NeighborSetFinder, k: int) -> np.ndarray:
    """Distances to the first k neighbors (fewer when n - 1 < k)."""
    return np.asarray(finder.kdistances[:, :min(k, finder.k)], dtype=np.float64)
