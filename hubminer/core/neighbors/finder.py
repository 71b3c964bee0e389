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

"""Exact k-nearest neighbor sets and neighbor occurrence statistics."""

import time
from typing import List, Optional, Tuple

import numpy as np
from scipy.stats import entropy

from ..data.dataset import NOISE_LABEL
from ..distances.matrix import (
    UpperTriangularMatrix,
    as_matrix,
    compute_distance_matrix,
    validate_matrix_for,
)
from ..errors import ConfigurationError, NonFiniteDistanceError
from ..state import CoreState
from ...utils.logging import get_logger
from ...utils.metrics import zscore
from ...utils.parallel import run_partitioned

logger = get_logger()


def select_k_smallest(distances: np.ndarray, k: int) -> np.ndarray:
    """
    Positions of the k smallest distances, sorted by (distance, position).

    Equal distances are ordered by ascending position, which makes the
    selection deterministic when positions follow point indices.
    """
    m = len(distances)
    if k >= m:
        candidates = np.arange(m)
    else:
        kth = np.partition(distances, k - 1)[k - 1]
        below = np.flatnonzero(distances < kth)
        tied = np.flatnonzero(distances == kth)[:k - len(below)]
        candidates = np.concatenate([below, tied])
    order = np.lexsort((candidates, distances[candidates]))
    return candidates[order]


def count_occurrences(
    kneighbors: np.ndarray,
    query_labels: np.ndarray,
    labels: np.ndarray,
    n: int,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Count neighbor occurrences and bad occurrences for a block of k-NN lists.

    An occurrence is bad when both the querying point and the neighbor are
    labeled and their labels differ.

    Args:
        kneighbors: Neighbor indices of the querying points (M, k)
        query_labels: Labels of the querying points (M,)
        labels: Labels of all points (N,)
        n: Number of points

    Returns:
        occurrences: (N,) int64
        bad_occurrences: (N,) int64
    """
    if kneighbors.size == 0:
        return np.zeros(n, dtype=np.int64), np.zeros(n, dtype=np.int64)

    occurrences = np.bincount(kneighbors.ravel(), minlength=n).astype(np.int64)

    neighbor_labels = labels[kneighbors]
    query = query_labels[:, None]
    bad_mask = (
        (neighbor_labels != query)
        & (neighbor_labels != NOISE_LABEL)
        & (query != NOISE_LABEL)
    )
    bad_occurrences = np.bincount(kneighbors[bad_mask], minlength=n).astype(np.int64)
    return occurrences, bad_occurrences


def _read_only(array: np.ndarray) -> np.ndarray:
    view = array.view()
    view.flags.writeable = False
    return view


class NeighborSetFinder:
    """Exact k-NN search over an upper-triangular distance matrix.

    For the current k this holds, per point, the indices of its k nearest
    neighbors sorted by ascending distance (ties by ascending index) and
    the matching distances, together with the neighbor occurrence
    frequencies (hubness) and bad occurrence frequencies of every point.

    Lists for a smaller k are derived from the current ones without touching
    the distances (recalculate_stats_for_smaller_k); a larger k reruns the
    search over the already known distances.

    Consumers read the k-NN lists and occurrence arrays through the query
    methods; the returned arrays are read-only views.
    """

    def __init__(
        self,
        dataset=None,
        distance_matrix=None,
        metric=None,
        num_threads: int = 1,
        labels: Optional[np.ndarray] = None,
        dtype=np.float64,
        max_matrix_bytes: Optional[int] = None,
    ):
        """
        Initialize the finder.

        Args:
            dataset: Dataset the points come from (provides labels)
            distance_matrix: Optional precomputed matrix (upper-triangular,
                dense square, or row lists)
            metric: Metric used when distances must be computed
            num_threads: Workers for distance and k-NN computation
            labels: Optional labels overriding the dataset labels
            dtype: Storage dtype for computed distances
            max_matrix_bytes: Optional memory budget for the distance matrix
        """
        self.dataset = dataset
        self.metric = metric
        self.num_threads = max(1, int(num_threads))
        self.dtype = dtype
        self.max_matrix_bytes = max_matrix_bytes
        self._labels = None if labels is None else np.asarray(labels, dtype=np.int64)

        self._matrix: Optional[UpperTriangularMatrix] = None
        self.state = CoreState.UNINITIALIZED
        self._reset_neighbor_state()

        if distance_matrix is not None:
            self.set_distance_matrix(distance_matrix)

    def _reset_neighbor_state(self):
        self.k = 0
        self._kneighbors: Optional[np.ndarray] = None
        self._kdistances: Optional[np.ndarray] = None
        self._occurrences: Optional[np.ndarray] = None
        self._bad_occurrences: Optional[np.ndarray] = None
        self._reverse_neighbors: Optional[List[np.ndarray]] = None

    # ------------------------------------------------------------------
    # Distances
    # ------------------------------------------------------------------

    @property
    def size(self) -> int:
        if self.dataset is not None:
            return len(self.dataset)
        if self._matrix is not None:
            return self._matrix.n
        return 0

    @property
    def labels(self) -> np.ndarray:
        if self._labels is not None:
            return self._labels
        if self.dataset is not None:
            return np.asarray(self.dataset.labels, dtype=np.int64)
        return np.full(self.size, NOISE_LABEL, dtype=np.int64)

    @property
    def num_classes(self) -> int:
        labeled = self.labels[self.labels != NOISE_LABEL]
        return int(labeled.max()) + 1 if labeled.size else 0

    def set_distance_matrix(self, distance_matrix):
        """
        Use a precomputed distance matrix.

        Raises:
            MatrixDimensionError: If the matrix does not match the dataset
        """
        matrix = as_matrix(distance_matrix, dtype=self.dtype)
        if self.dataset is not None:
            validate_matrix_for(matrix, len(self.dataset))
        if self._labels is not None:
            validate_matrix_for(matrix, len(self._labels))
        self._matrix = matrix
        self._reset_neighbor_state()
        self.state = CoreState.DISTANCES_READY

    def calculate_distances(self) -> UpperTriangularMatrix:
        """
        Compute the distance matrix, unless one was supplied.

        Raises:
            ConfigurationError: If there is no dataset or metric to compute from
        """
        self._check_not_released()
        if self._matrix is not None:
            return self._matrix
        if self.dataset is None:
            raise ConfigurationError("No dataset to calculate distances from")
        if self.metric is None:
            raise ConfigurationError("No metric set for distance calculation")

        self._matrix = compute_distance_matrix(
            self.dataset,
            self.metric,
            num_threads=self.num_threads,
            dtype=self.dtype,
            max_bytes=self.max_matrix_bytes,
        )
        self._reset_neighbor_state()
        self.state = CoreState.DISTANCES_READY
        return self._matrix

    @property
    def distance_matrix(self) -> UpperTriangularMatrix:
        self._check_not_released()
        if self._matrix is None:
            raise ConfigurationError("Distances have not been calculated")
        return self._matrix

    # ------------------------------------------------------------------
    # Neighbor sets
    # ------------------------------------------------------------------

    def _validate_k(self, k: int) -> int:
        if isinstance(k, bool) or not isinstance(k, (int, np.integer)):
            raise ConfigurationError(f"k must be an integer, got {k!r}")
        if k <= 0:
            raise ConfigurationError(f"k must be positive, got {k}")
        return int(k)

    def _effective_k(self, k: int) -> int:
        max_k = max(self.size - 1, 0)
        if k > max_k:
            logger.warning(
                f"k={k} exceeds the {max_k} available neighbors; "
                f"using all other points"
            )
            return max_k
        return k

    def calculate_neighbor_sets(self, k: int):
        """
        Compute the k-NN sets of all points and their occurrence statistics.

        The per-point search is split over workers by contiguous point
        ranges. Each worker writes its own rows of the k-NN arrays and counts
        occurrences into its own partial arrays, which are summed after the
        join.

        Args:
            k: Neighborhood size; values of n-1 or more use all other points

        Raises:
            ConfigurationError: If k is not positive or distances are missing
            NonFiniteDistanceError: If the matrix holds NaN or infinite values
        """
        k = self._validate_k(k)
        matrix = self.distance_matrix
        n = matrix.n
        k_eff = self._effective_k(k)

        if not matrix.is_finite():
            raise NonFiniteDistanceError("Distance matrix contains NaN or infinite values")

        labels = self.labels
        kneighbors = np.empty((n, k_eff), dtype=np.int64)
        kdistances = np.empty((n, k_eff), dtype=np.float64)

        def search(start: int, end: int) -> Tuple[np.ndarray, np.ndarray]:
            for i in range(start, end):
                indices, distances = matrix.full_row(i)
                selected = select_k_smallest(distances, k_eff)
                kneighbors[i] = indices[selected]
                kdistances[i] = distances[selected]
            return count_occurrences(kneighbors[start:end], labels[start:end], labels, n)

        start_time = time.time()
        partials = run_partitioned(search, n, self.num_threads, description="k-NN search")

        occurrences = np.zeros(n, dtype=np.int64)
        bad_occurrences = np.zeros(n, dtype=np.int64)
        for partial_occ, partial_bad in partials:
            occurrences += partial_occ
            bad_occurrences += partial_bad

        self._reset_neighbor_state()
        self.k = k_eff
        self._kneighbors = kneighbors
        self._kdistances = kdistances
        self._occurrences = occurrences
        self._bad_occurrences = bad_occurrences
        self.state = CoreState.NEIGHBOR_SETS_READY

        logger.info(f"Calculated {k_eff}-NN sets for {n} points in {time.time() - start_time:.2f}s")

    def recalculate_stats_for_smaller_k(self, k: int):
        """
        Restrict the k-NN sets to their first k entries and recount.

        The result is identical to calculate_neighbor_sets(k) on the same
        distances.

        Raises:
            ConfigurationError: If no neighbor sets exist or k exceeds the current k
        """
        k = self._validate_k(k)
        self._require_neighbor_sets()
        k_eff = self._effective_k(k)
        if k_eff > self.k:
            raise ConfigurationError(
                f"Cannot shrink to k={k} from k={self.k}; use calculate_neighbor_sets"
            )
        if k_eff == self.k:
            return

        n = self._kneighbors.shape[0]
        kneighbors = np.ascontiguousarray(self._kneighbors[:, :k_eff])
        kdistances = np.ascontiguousarray(self._kdistances[:, :k_eff])
        labels = self.labels
        occurrences, bad_occurrences = count_occurrences(kneighbors, labels, labels, n)

        self._reset_neighbor_state()
        self.k = k_eff
        self._kneighbors = kneighbors
        self._kdistances = kdistances
        self._occurrences = occurrences
        self._bad_occurrences = bad_occurrences
        logger.debug(f"Shrunk neighbor sets to k={k_eff}")

    def ensure_neighbor_sets(self, k: int):
        """Shrink the current neighbor sets to k, or recompute when k is larger."""
        k = self._validate_k(k)
        if self.state == CoreState.NEIGHBOR_SETS_READY and self._effective_k(k) <= self.k:
            self.recalculate_stats_for_smaller_k(k)
        else:
            self.calculate_neighbor_sets(k)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def _check_not_released(self):
        if self.state == CoreState.RELEASED:
            raise ConfigurationError("NeighborSetFinder has been released")

    def _require_neighbor_sets(self):
        self._check_not_released()
        if self._kneighbors is None:
            raise ConfigurationError("Neighbor sets have not been calculated")

    @property
    def kneighbors(self) -> np.ndarray:
        """k-NN indices of all points (N, k)."""
        self._require_neighbor_sets()
        return _read_only(self._kneighbors)

    @property
    def kdistances(self) -> np.ndarray:
        """k-NN distances of all points (N, k)."""
        self._require_neighbor_sets()
        return _read_only(self._kdistances)

    def get_kneighbors(self, i: int) -> np.ndarray:
        return self.kneighbors[i]

    def get_kdistances(self, i: int) -> np.ndarray:
        return self.kdistances[i]

    @property
    def neighbor_frequencies(self) -> np.ndarray:
        """Number of k-NN lists each point occurs in (its hubness)."""
        self._require_neighbor_sets()
        return _read_only(self._occurrences)

    @property
    def bad_frequencies(self) -> np.ndarray:
        """Occurrences in k-NN lists of points with a different label."""
        self._require_neighbor_sets()
        return _read_only(self._bad_occurrences)

    @property
    def good_frequencies(self) -> np.ndarray:
        """Occurrences that are not bad occurrences."""
        self._require_neighbor_sets()
        return _read_only(self._occurrences - self._bad_occurrences)

    def reverse_neighbors(self) -> List[np.ndarray]:
        """
        Reverse k-NN lists: for each point, the points that list it.

        Computed once per neighbor-set state by inverting the forward lists;
        each list is in ascending index order.
        """
        self._require_neighbor_sets()
        if self._reverse_neighbors is None:
            n, k = self._kneighbors.shape
            if n == 0:
                self._reverse_neighbors = []
                return self._reverse_neighbors
            flat = self._kneighbors.ravel()
            order = np.argsort(flat, kind="stable")
            queries = np.repeat(np.arange(n, dtype=np.int64), k)[order]
            bounds = np.cumsum(self._occurrences)[:-1]
            self._reverse_neighbors = [_read_only(part) for part in np.split(queries, bounds)]
        return self._reverse_neighbors

    def get_reverse_neighbors(self, i: int) -> np.ndarray:
        return self.reverse_neighbors()[i]

    @property
    def reverse_neighbor_counts(self) -> np.ndarray:
        """Length of each reverse k-NN list (equal to the occurrence counts)."""
        return np.array([len(part) for part in self.reverse_neighbors()], dtype=np.int64)

    # ------------------------------------------------------------------
    # Class-aware statistics
    # ------------------------------------------------------------------

    def class_occurrences(self, num_classes: Optional[int] = None) -> np.ndarray:
        """
        Class-conditional occurrence counts.

        Returns:
            (C, N) array; entry (c, i) counts how often point i occurs in the
            k-NN lists of labeled points of class c
        """
        self._require_neighbor_sets()
        num_classes = self.num_classes if num_classes is None else num_classes
        n, k = self._kneighbors.shape
        query_labels = np.repeat(self.labels, k)
        flat = self._kneighbors.ravel()
        labeled = query_labels != NOISE_LABEL
        counts = np.bincount(
            query_labels[labeled] * n + flat[labeled],
            minlength=num_classes * n,
        )
        return counts[:num_classes * n].reshape(num_classes, n)

    def reverse_neighbor_entropies(self, num_classes: Optional[int] = None) -> np.ndarray:
        """Entropy (bits) of the class distribution among each point's reverse neighbors."""
        return _column_entropies(self.class_occurrences(num_classes))

    def direct_neighbor_entropies(self, num_classes: Optional[int] = None) -> np.ndarray:
        """Entropy (bits) of the class distribution within each point's k-NN list."""
        self._require_neighbor_sets()
        num_classes = self.num_classes if num_classes is None else num_classes
        n = self._kneighbors.shape[0]
        neighbor_labels = self.labels[self._kneighbors]
        # Labels outside [0, num_classes) would land in the next point's bins
        counted = (neighbor_labels != NOISE_LABEL) & (neighbor_labels < num_classes)
        rows = np.broadcast_to(np.arange(n)[:, None], neighbor_labels.shape)
        counts = np.bincount(
            rows[counted] * num_classes + neighbor_labels[counted],
            minlength=n * num_classes,
        )[:n * num_classes].reshape(n, num_classes)
        return _column_entropies(counts.T)

    def global_class_to_class(
        self,
        k: Optional[int] = None,
        num_classes: Optional[int] = None,
    ) -> np.ndarray:
        """
        Class-to-class occurrence counts over the first k neighbors.

        Returns:
            (C, C) array; entry (a, b) counts how often points of class a
            occur in the k-NN lists of points of class b
        """
        self._require_neighbor_sets()
        num_classes = self.num_classes if num_classes is None else num_classes
        k = self.k if k is None else int(k)
        if k <= 0 or k > self.k:
            raise ConfigurationError(f"k must be in [1, {self.k}], got {k}")
        kneighbors = self._kneighbors[:, :k]
        neighbor_labels = self.labels[kneighbors].ravel()
        query_labels = np.repeat(self.labels, kneighbors.shape[1])
        counted = (
            (neighbor_labels != NOISE_LABEL)
            & (query_labels != NOISE_LABEL)
            & (neighbor_labels < num_classes)
            & (query_labels < num_classes)
        )
        counts = np.bincount(
            neighbor_labels[counted] * num_classes + query_labels[counted],
            minlength=num_classes * num_classes,
        )
        return counts.reshape(num_classes, num_classes)

    # ------------------------------------------------------------------
    # Hubness-based instance weights
    # ------------------------------------------------------------------

    def penalize_hubness_weights(self) -> np.ndarray:
        """Weights exp(-z) of standardized occurrence frequencies."""
        self._require_neighbor_sets()
        return np.exp(-zscore(self._occurrences))

    def bad_hubness_weights(self) -> np.ndarray:
        """Weights exp(-z) of standardized bad occurrence frequencies (HW-kNN)."""
        self._require_neighbor_sets()
        return np.exp(-zscore(self._bad_occurrences))

    def hubness_information_weights(
        self,
        theta: float = 1.0,
        num_classes: Optional[int] = None,
    ) -> np.ndarray:
        """
        Occurrence self-information weights in [0, 1].

        The information of point i is log2(n / (N_k(i) + 1)), scaled by its
        maximum so rarely occurring points get weights near 1 and hubs near 0.
        With num_classes, each weight is further multiplied by the class purity
        of the point's reverse neighbors, 1 - H_rev(i) / log2(C). The result
        is raised to theta; theta = 0 gives unit weights.
        """
        self._require_neighbor_sets()
        if theta < 0:
            raise ConfigurationError(f"theta must be non-negative, got {theta}")
        n = len(self._occurrences)
        if n == 0:
            return np.zeros(0)

        information = np.log2(n / (self._occurrences + 1.0))
        max_information = information.max()
        if max_information > 0:
            information = information / max_information
        else:
            information = np.ones(n)

        if num_classes is not None and num_classes > 1:
            max_entropy = np.log2(num_classes)
            purity = 1.0 - self.reverse_neighbor_entropies(num_classes) / max_entropy
            information = information * np.clip(purity, 0.0, 1.0)

        return np.power(information, theta)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def copy(self) -> "NeighborSetFinder":
        """Copy of the neighbor state; the distance matrix is shared."""
        self._check_not_released()
        other = NeighborSetFinder(
            dataset=self.dataset,
            metric=self.metric,
            num_threads=self.num_threads,
            labels=self._labels,
            dtype=self.dtype,
            max_matrix_bytes=self.max_matrix_bytes,
        )
        other._matrix = self._matrix
        other.state = self.state
        other.k = self.k
        if self._kneighbors is not None:
            other._kneighbors = self._kneighbors.copy()
            other._kdistances = self._kdistances.copy()
            other._occurrences = self._occurrences.copy()
            other._bad_occurrences = self._bad_occurrences.copy()
        return other

    def release(self, release_matrix: bool = False):
        """Drop neighbor buffers (and optionally the distance matrix)."""
        if release_matrix and self._matrix is not None:
            self._matrix.release()
        self._matrix = None
        self._reset_neighbor_state()
        self.state = CoreState.RELEASED

    def __repr__(self) -> str:
        return f"NeighborSetFinder(n={self.size}, k={self.k}, state={self.state.value})"


def _column_entropies(counts: np.ndarray) -> np.ndarray:
    """Base-2 entropy of each column of a count matrix; empty columns give 0."""
    if counts.size == 0:
        return np.zeros(counts.shape[1] if counts.ndim == 2 else 0)
    totals = counts.sum(axis=0)
    result = np.zeros(counts.shape[1])
    nonzero = totals > 0
    if nonzero.any():
        result[nonzero] = entropy(counts[:, nonzero], base=2, axis=0)
    return result
