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

"""Ownership of all buffers belonging to one experimental condition."""

from typing import Dict, Optional, Union

import numpy as np

from .distances.cache import DistanceMatrixCache
from .distances.matrix import UpperTriangularMatrix, as_matrix, compute_distance_matrix
from .errors import ConfigurationError
from .neighbors.finder import NeighborSetFinder
from .secondary.base import SecondaryDistanceCalculator
from .secondary.registry import get_secondary
from .state import CoreState
from ..utils.logging import get_logger

logger = get_logger()


class ExperimentCondition:
    """One dataset under one metric, with everything derived from it.

    The condition owns the primary distance matrix, the neighbor-set finders
    built on it, and any secondary distance matrices with their finders.
    Leaving the ``with`` block releases all of them at once.

    Example:
        >>> with ExperimentCondition(dataset, metric, num_threads=4) as condition:
        ...     finder = condition.neighbor_sets(10)
        ...     mp_finder = condition.secondary_neighbor_sets("mutual_proximity", 10)
    """

    def __init__(
        self,
        dataset=None,
        metric=None,
        distance_matrix=None,
        num_threads: int = 1,
        dtype=np.float64,
        max_matrix_bytes: Optional[int] = None,
        cache: Optional[DistanceMatrixCache] = None,
        normalization: str = "none",
    ):
        """
        Initialize the condition.

        Args:
            dataset: Dataset the points come from
            metric: Metric for the primary distances
            distance_matrix: Optional precomputed primary distances
            num_threads: Workers for every computation in this condition
            dtype: Storage dtype for computed distances
            max_matrix_bytes: Optional memory budget per distance matrix
            cache: Optional on-disk cache for the primary matrix
            normalization: Normalization name used as a cache key
        """
        if dataset is None and distance_matrix is None:
            raise ConfigurationError("A condition needs a dataset or a distance matrix")
        self.dataset = dataset
        self.metric = metric
        self.num_threads = max(1, int(num_threads))
        self.dtype = dtype
        self.max_matrix_bytes = max_matrix_bytes
        self.cache = cache
        self.normalization = normalization

        self._primary: Optional[UpperTriangularMatrix] = None
        if distance_matrix is not None:
            self._primary = as_matrix(distance_matrix, dtype=dtype)
        self._finder: Optional[NeighborSetFinder] = None
        self._secondary: Dict[str, UpperTriangularMatrix] = {}
        self._secondary_finders: Dict[str, NeighborSetFinder] = {}
        self.state = CoreState.DISTANCES_READY if self._primary is not None else CoreState.UNINITIALIZED

    def __enter__(self) -> "ExperimentCondition":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.release()
        return False

    def _check_not_released(self):
        if self.state == CoreState.RELEASED:
            raise ConfigurationError("Experiment condition has been released")

    @property
    def labels(self) -> Optional[np.ndarray]:
        if self.dataset is None:
            return None
        return np.asarray(self.dataset.labels, dtype=np.int64)

    @property
    def primary_distances(self) -> UpperTriangularMatrix:
        """Primary distance matrix, computed (or loaded from cache) on first use."""
        self._check_not_released()
        if self._primary is None:
            if self.metric is None:
                raise ConfigurationError("No metric set for distance calculation")
            if self.cache is not None:
                self._primary = self.cache.load_or_compute(
                    self.dataset,
                    self.metric,
                    normalization=self.normalization,
                    num_threads=self.num_threads,
                    dtype=self.dtype,
                    max_bytes=self.max_matrix_bytes,
                )
            else:
                self._primary = compute_distance_matrix(
                    self.dataset,
                    self.metric,
                    num_threads=self.num_threads,
                    dtype=self.dtype,
                    max_bytes=self.max_matrix_bytes,
                )
            self.state = CoreState.DISTANCES_READY
        return self._primary

    def _new_finder(self, matrix: UpperTriangularMatrix) -> NeighborSetFinder:
        return NeighborSetFinder(
            dataset=self.dataset,
            distance_matrix=matrix,
            num_threads=self.num_threads,
            dtype=self.dtype,
        )

    def neighbor_sets(self, k: int) -> NeighborSetFinder:
        """Finder over the primary distances holding k-NN sets for this k."""
        matrix = self.primary_distances
        if self._finder is None:
            self._finder = self._new_finder(matrix)
        self._finder.ensure_neighbor_sets(k)
        if self.state == CoreState.DISTANCES_READY:
            self.state = CoreState.NEIGHBOR_SETS_READY
        return self._finder

    def secondary_distances(
        self,
        method: Union[str, SecondaryDistanceCalculator],
        **params,
    ) -> UpperTriangularMatrix:
        """
        Secondary distance matrix for a method, computed once per condition.

        Args:
            method: Registered method name or a calculator instance
            **params: Parameters for a named method

        Returns:
            Secondary UpperTriangularMatrix
        """
        self._check_not_released()
        if isinstance(method, SecondaryDistanceCalculator):
            calculator = method
            key = repr(method)
        else:
            params.setdefault("num_threads", self.num_threads)
            calculator = get_secondary(method, **params)
            key = repr(calculator)

        if key not in self._secondary:
            finder = self._finder if self._finder is not None and self._finder.k > 0 else None
            self._secondary[key] = calculator.transform(self.primary_distances, finder=finder)
            self.state = CoreState.SECONDARY_DISTANCES_READY
            logger.debug(f"Stored secondary distances {key}")
        return self._secondary[key]

    def secondary_neighbor_sets(
        self,
        method: Union[str, SecondaryDistanceCalculator],
        k: int,
        **params,
    ) -> NeighborSetFinder:
        """Finder over a secondary matrix holding k-NN sets for this k."""
        matrix = self.secondary_distances(method, **params)
        key = next(name for name, stored in self._secondary.items() if stored is matrix)
        finder = self._secondary_finders.get(key)
        if finder is None:
            finder = self._new_finder(matrix)
            self._secondary_finders[key] = finder
        finder.ensure_neighbor_sets(k)
        self.state = CoreState.NEIGHBOR_SETS_READY
        return finder

    @property
    def secondary_methods(self):
        return list(self._secondary.keys())

    def release(self):
        """Release every buffer owned by this condition."""
        if self.state == CoreState.RELEASED:
            return
        for finder in self._secondary_finders.values():
            finder.release()
        for matrix in self._secondary.values():
            matrix.release()
        if self._finder is not None:
            self._finder.release()
        if self._primary is not None:
            self._primary.release()
        self._secondary_finders.clear()
        self._secondary.clear()
        self._finder = None
        self._primary = None
        self.state = CoreState.RELEASED
        logger.debug("Released experiment condition")

    def __repr__(self) -> str:
        n = len(self.dataset) if self.dataset is not None else (self._primary.n if self._primary is not None else 0)
        return f"ExperimentCondition(n={n}, state={self.state.value})"
