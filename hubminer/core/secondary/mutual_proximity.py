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

"""Mutual Proximity secondary distances.

Each point's distances to all other points are modelled by a Gaussian fit
to their mean and standard deviation. The mutual proximity of x and y is
the probability that a random distance from x and a random distance from
y both exceed d(x, y), with the two models treated as independent:

    MP(x, y) = P(X > d) * P(Y > d)

The calculator returns 1 - MP, so that the result is again a distance.
See "Using Mutual Proximity to Improve Content-Based Audio Similarity"
(Schnitzer, Flexer, Schedl, Widmer, 2011).
"""

from typing import Optional, Tuple

import numpy as np
from scipy.stats import norm

from .base import SecondaryDistanceCalculator
from ..distances.matrix import UpperTriangularMatrix, as_matrix
from ..errors import ConfigurationError
from ...utils.logging import get_logger
from ...utils.parallel import run_partitioned

logger = get_logger()

MAX_SAMPLE_FRACTION = 0.8

# Running statistics: (count, mean, sum of squared deviations)
Moments = Tuple[np.ndarray, np.ndarray, np.ndarray]


def merge_moments(first: Moments, second: Moments) -> Moments:
    """Combine two sets of per-point running statistics (Chan et al.)."""
    count_a, mean_a, m2_a = first
    count_b, mean_b, m2_b = second
    count = count_a + count_b
    safe = np.where(count > 0, count, 1.0)
    delta = mean_b - mean_a
    mean = mean_a + delta * count_b / safe
    m2 = m2_a + m2_b + delta * delta * count_a * count_b / safe
    return count, mean, m2


def row_moments(matrix: UpperTriangularMatrix, start: int, end: int) -> Moments:
    """
    Single-pass running statistics from the stored rows start..end-1.

    Every stored value d(i, j) is a sample for both point i and point j.
    Row i contributes a batch to point i and one value to each j > i.
    """
    n = matrix.n
    count = np.zeros(n)
    mean = np.zeros(n)
    m2 = np.zeros(n)
    for i in range(start, min(end, n - 1)):
        values = np.asarray(matrix.row(i), dtype=np.float64)
        js = np.arange(i + 1, n)

        # Batch update of point i
        batch_mean = values.mean()
        batch_m2 = np.square(values - batch_mean).sum()
        total = count[i] + len(values)
        delta = batch_mean - mean[i]
        mean[i] += delta * len(values) / total
        m2[i] += batch_m2 + delta * delta * count[i] * len(values) / total
        count[i] = total

        # Single-value Welford update of every later point
        count[js] += 1
        delta = values - mean[js]
        mean[js] += delta / count[js]
        m2[js] += delta * (values - mean[js])
    return count, mean, m2


def survival(distances: np.ndarray, means: np.ndarray, stds: np.ndarray) -> np.ndarray:
    """
    P(D > d) under per-point Gaussian models.

    A point with zero spread has all its distances equal to its mean; its
    model degenerates to a step: 1 below the mean, 0.5 at it, 0 above.
    """
    spread = stds > 0
    result = norm.sf(distances, loc=means, scale=np.where(spread, stds, 1.0))
    step = np.where(distances < means, 1.0, np.where(distances == means, 0.5, 0.0))
    return np.where(spread, result, step)


class MutualProximity(SecondaryDistanceCalculator):
    """Gaussian Mutual Proximity, returned as 1 - MP."""

    name = "mutual_proximity"

    def __init__(
        self,
        num_threads: int = 1,
        sample_size: Optional[int] = None,
        seed: int = 42,
    ):
        """
        Initialize the calculator.

        Args:
            num_threads: Workers for statistics and transformation
            sample_size: If set, estimate each point's statistics from at most
                this many randomly drawn other points (capped at 80% of n)
                instead of all of them
            seed: Random seed for the sampled estimates
        """
        super().__init__(num_threads)
        if sample_size is not None and sample_size <= 0:
            raise ConfigurationError(f"sample_size must be positive, got {sample_size}")
        self.sample_size = sample_size
        self.seed = seed
        self.means_: Optional[np.ndarray] = None
        self.stds_: Optional[np.ndarray] = None

    def fit(self, matrix: UpperTriangularMatrix) -> "MutualProximity":
        """Estimate the per-point distance means and standard deviations."""
        matrix = as_matrix(matrix)
        if self.sample_size is None:
            self.means_, self.stds_ = self._full_statistics(matrix)
        else:
            self.means_, self.stds_ = self._sampled_statistics(matrix)
        return self

    def _full_statistics(self, matrix: UpperTriangularMatrix) -> Tuple[np.ndarray, np.ndarray]:
        n = matrix.n
        partials = run_partitioned(
            lambda start, end: row_moments(matrix, start, end),
            n,
            self.num_threads,
            description="mutual proximity statistics",
        )
        moments: Moments = (np.zeros(n), np.zeros(n), np.zeros(n))
        for partial in partials:
            moments = merge_moments(moments, partial)
        count, mean, m2 = moments
        variance = np.where(count > 0, m2 / np.where(count > 0, count, 1.0), 0.0)
        return mean, np.sqrt(np.maximum(variance, 0.0))

    def effective_sample_size(self, n: int) -> int:
        cap = int(MAX_SAMPLE_FRACTION * n)
        return max(1, min(self.sample_size, cap, n - 1))

    def _sampled_statistics(self, matrix: UpperTriangularMatrix) -> Tuple[np.ndarray, np.ndarray]:
        n = matrix.n
        means = np.zeros(n)
        stds = np.zeros(n)
        if n < 2:
            return means, stds
        size = self.effective_sample_size(n)
        logger.debug(f"Estimating mutual proximity statistics from {size} samples per point")

        def estimate(start: int, end: int):
            for i in range(start, end):
                # Per-point generators keep results independent of the partitioning
                rng = np.random.default_rng([self.seed, i])
                _, distances = matrix.full_row(i)
                sample = distances[rng.choice(n - 1, size=size, replace=False)]
                means[i] = sample.mean()
                stds[i] = sample.std()

        run_partitioned(estimate, n, self.num_threads, description="sampled mutual proximity statistics")
        return means, stds

    def transform(self, matrix, finder=None) -> UpperTriangularMatrix:
        matrix = as_matrix(matrix)
        self.fit(matrix)
        n = matrix.n
        means, stds = self.means_, self.stds_
        result = matrix.empty_like()

        def transform_rows(start: int, end: int):
            for i in range(start, min(end, n - 1)):
                distances = np.asarray(matrix.row(i), dtype=np.float64)
                js = np.arange(i + 1, n)
                p_i = survival(distances, means[i], stds[i])
                p_j = survival(distances, means[js], stds[js])
                result.row(i)[:] = 1.0 - p_i * p_j

        run_partitioned(transform_rows, n, self.num_threads, description="mutual proximity")
        logger.info(f"Computed mutual proximity distances for {n} points")
        return result

    def __repr__(self) -> str:
        return f"MutualProximity(sample_size={self.sample_size}, seed={self.seed})"
