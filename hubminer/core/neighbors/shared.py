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

"""Shared-neighbor counts between k-NN sets."""

from typing import Optional

import numpy as np
from scipy import sparse

from .finder import NeighborSetFinder, _column_entropies
from ..data.dataset import NOISE_LABEL
from ..distances.matrix import UpperTriangularMatrix
from ..errors import ConfigurationError
from ...utils.batching import batch_ranges
from ...utils.logging import get_logger
from ...utils.metrics import zscore
from ...utils.parallel import run_partitioned

logger = get_logger()

DEFAULT_ROW_BATCH = 256


class SharedNeighborFinder:
    """Counts the neighbors shared by the k-NN sets of every pair of points.

    The count for (i, j) is the size of the intersection of the first
    k_snd neighbors of i and of j, so it lies in [0, k_snd]. With instance
    weights set, every shared neighbor contributes its weight instead of 1;
    the hubness-derived weights lie in [0, 1], with hubs weighted down.
    """

    def __init__(
        self,
        finder: NeighborSetFinder,
        k: Optional[int] = None,
        num_threads: Optional[int] = None,
        row_batch: int = DEFAULT_ROW_BATCH,
    ):
        """
        Initialize the finder.

        Args:
            finder: NeighborSetFinder with computed neighbor sets
            k: Neighborhood size for shared neighbors (defaults to finder.k)
            num_threads: Workers (defaults to the finder's)
            row_batch: Rows multiplied at once inside a worker
        """
        kneighbors = finder.kneighbors
        k = finder.k if k is None else int(k)
        if k > finder.k:
            raise ConfigurationError(
                f"Shared-neighbor k={k} exceeds the neighbor sets' k={finder.k}"
            )
        if k <= 0 and finder.k > 0:
            raise ConfigurationError(f"Shared-neighbor k must be positive, got {k}")

        self.finder = finder
        self.k = k
        self.num_threads = finder.num_threads if num_threads is None else max(1, int(num_threads))
        self.row_batch = max(1, int(row_batch))
        self.instance_weights: Optional[np.ndarray] = None
        self._kneighbors = np.ascontiguousarray(kneighbors[:, :k])
        self._counts: Optional[UpperTriangularMatrix] = None

    @property
    def size(self) -> int:
        return self._kneighbors.shape[0]

    # ------------------------------------------------------------------
    # Instance weights
    # ------------------------------------------------------------------

    def set_weights(self, weights: np.ndarray):
        weights = np.asarray(weights, dtype=np.float64)
        if weights.shape != (self.size,):
            raise ConfigurationError(
                f"Expected {self.size} instance weights, got shape {weights.shape}"
            )
        self.instance_weights = weights
        self._counts = None

    def remove_weights(self):
        self.instance_weights = None
        self._counts = None

    def _set_scaled_weights(self, weights: np.ndarray):
        top = weights.max() if weights.size else 0.0
        self.set_weights(weights / top if top > 0 else weights)

    def obtain_weights_from_general_hubness(self):
        """Down-weight neighbors that occur often."""
        self._set_scaled_weights(self.finder.penalize_hubness_weights())

    def obtain_weights_from_bad_hubness(self):
        """Down-weight neighbors that occur often in other classes' neighbor sets."""
        self._set_scaled_weights(self.finder.bad_hubness_weights())

    def obtain_weights_from_hubness_information(self, theta: float = 1.0, num_classes: Optional[int] = None):
        """Weight neighbors by occurrence self-information; theta = 0 gives unit weights."""
        self.set_weights(self.finder.hubness_information_weights(theta=theta, num_classes=num_classes))

    def obtain_weights_for_class_imbalanced_data(self, k_classification: Optional[int] = None):
        """
        Weights for class-imbalanced data.

        Each weight is the product of three factors in [0, 1]:

        - the occurrence self-information log2(n / (N_k(i) + 1)), scaled by its maximum;
        - the class purity of the point's reverse neighbors, with every class
          weighted by its relevance 1 - (within-class occurrences) / (k * class size);
        - a sigmoid of the standardized difference between the good and the bad
          class-to-class hubness the point takes part in.

        Class-to-class statistics use the first k_classification neighbors
        (defaults to the shared-neighbor k).

        Raises:
            ConfigurationError: If the data holds no labeled points
        """
        finder = self.finder
        k_classification = self.k if k_classification is None else int(k_classification)
        num_classes = finder.num_classes
        if num_classes == 0:
            raise ConfigurationError("Class-imbalanced weights need labeled points")

        n, k = self._kneighbors.shape
        if n == 0:
            self.set_weights(np.zeros(0))
            return
        labels = finder.labels
        labeled = labels != NOISE_LABEL
        class_counts = np.bincount(labels[labeled], minlength=num_classes).astype(np.float64)
        class_to_class = finder.global_class_to_class(k_classification, num_classes).astype(np.float64)

        # (C, N): occurrences of point i among the first k neighbors of class c
        query_labels = np.repeat(labels, k)
        flat = self._kneighbors.ravel()
        mask = query_labels != NOISE_LABEL
        chubness = np.bincount(
            query_labels[mask] * n + flat[mask],
            minlength=num_classes * n,
        )[:num_classes * n].reshape(num_classes, n).astype(np.float64)

        # (a, b): share of the neighbor slots of class b taken by class a
        slots = k_classification * class_counts + 1e-5
        rates = (class_to_class + 1e-5) / slots[None, :]
        relevance = 1.0 - np.diag(rates)

        occurrences = np.asarray(finder.neighbor_frequencies, dtype=np.float64)
        information = np.log2(n / (occurrences + 1.0))
        information = information / max(1.0, np.abs(information).max())

        good = (relevance[:, None] * chubness * (chubness - 1.0) / 2.0).sum(axis=0)
        pair_rates = 0.5 * (rates + rates.T)
        np.fill_diagonal(pair_rates, 0.0)
        bad = np.einsum("ci,cd,di->i", chubness, pair_rates, chubness)
        indicator = np.where(occurrences < 1, 1.0, good - bad)
        balance = 1.0 / (1.0 + np.exp(-zscore(indicator)))

        weighted_occurrences = chubness * relevance[:, None]
        max_entropy = np.log2(num_classes) if num_classes > 1 else 0.0
        if max_entropy > 0:
            purity = 1.0 - _column_entropies(weighted_occurrences) / max_entropy
        else:
            purity = np.ones(n)

        self.set_weights(information * np.clip(purity, 0.0, 1.0) * balance)

    # ------------------------------------------------------------------
    # Counting
    # ------------------------------------------------------------------

    def _membership(self, weights: Optional[np.ndarray]) -> sparse.csr_matrix:
        n, k = self._kneighbors.shape
        rows = np.repeat(np.arange(n, dtype=np.int64), k)
        cols = self._kneighbors.ravel()
        data = np.ones(len(cols)) if weights is None else weights[cols]
        return sparse.csr_matrix((data, (rows, cols)), shape=(n, n))

    def count_pair(self, i: int, j: int) -> float:
        """Shared-neighbor count of a single pair."""
        if i == j:
            raise IndexError("Shared-neighbor counts are not defined for a point with itself")
        shared = np.intersect1d(self._kneighbors[i], self._kneighbors[j], assume_unique=True)
        if self.instance_weights is None:
            return float(len(shared))
        return float(self.instance_weights[shared].sum())

    def count_shared_neighbors(self) -> UpperTriangularMatrix:
        """
        Shared-neighbor counts for all pairs, in upper-triangular layout.

        Rows are split over workers by contiguous ranges; each worker writes
        only its own rows.
        """
        n = self.size
        weighted = self._membership(self.instance_weights)
        binary_t = self._membership(None).T.tocsc()
        counts = UpperTriangularMatrix(n, dtype=np.float64)

        def count_rows(start: int, end: int):
            for batch_start, batch_end in batch_ranges(end - start, self.row_batch):
                lo, hi = start + batch_start, start + batch_end
                block = (weighted[lo:hi] @ binary_t).toarray()
                for offset, i in enumerate(range(lo, hi)):
                    if i < n - 1:
                        counts.row(i)[:] = block[offset, i + 1:]

        run_partitioned(count_rows, n, self.num_threads, description="shared-neighbor counting")
        self._counts = counts
        logger.info(f"Counted shared neighbors for {n} points with k={self.k}")
        return counts

    @property
    def shared_neighbor_counts(self) -> UpperTriangularMatrix:
        if self._counts is None:
            return self.count_shared_neighbors()
        return self._counts

