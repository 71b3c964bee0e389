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

"""Primary metrics on dense float, integer and nominal vectors.

Every metric skips dimensions where either side is missing (NaN/inf or
None for nominal values). Two vectors without any usable value are at
distance 0; a pair where only one side has usable values gets
MAX_DISTANCE.
"""

import numpy as np

from .base import Metric, MAX_DISTANCE, acceptable_mask, apply_missing_policy


class MinkowskiMetric(Metric):
    """Minkowski distance of degree p (p=1 Manhattan, p=2 Euclidean, inf Chebyshev)."""

    name = "minkowski"

    def __init__(self, p: float = 2.0):
        if p <= 0:
            raise ValueError(f"Minkowski degree must be positive, got {p}")
        self.p = float(p)

    def row_distances(self, x: np.ndarray, Y: np.ndarray) -> np.ndarray:
        x = np.asarray(x, dtype=np.float64)
        Y = np.asarray(Y, dtype=np.float64)
        if Y.shape[0] == 0:
            return np.zeros(0)
        if x.shape[0] == 0:
            return np.zeros(Y.shape[0])

        mask, x_has, Y_has = acceptable_mask(x, Y)
        with np.errstate(invalid="ignore", over="ignore"):
            diff = np.where(mask, np.abs(x - Y), 0.0)
            if np.isinf(self.p):
                result = diff.max(axis=1)
            elif self.p == 1.0:
                result = diff.sum(axis=1)
            elif self.p == 2.0:
                result = np.sqrt(np.einsum("ij,ij->i", diff, diff))
            else:
                result = np.power(np.power(diff, self.p).sum(axis=1), 1.0 / self.p)
        result = np.minimum(result, MAX_DISTANCE)
        return apply_missing_policy(result, x_has, Y_has)

    def __repr__(self) -> str:
        return f"MinkowskiMetric(p={self.p})"


class ManhattanMetric(MinkowskiMetric):
    name = "manhattan"

    def __init__(self):
        super().__init__(p=1.0)


class EuclideanMetric(MinkowskiMetric):
    name = "euclidean"

    def __init__(self):
        super().__init__(p=2.0)


class CosineMetric(Metric):
    """Cosine distance, 1 - cos(x, y), over dimensions usable on both sides."""

    name = "cosine"

    def row_distances(self, x: np.ndarray, Y: np.ndarray) -> np.ndarray:
        x = np.asarray(x, dtype=np.float64)
        Y = np.asarray(Y, dtype=np.float64)
        if Y.shape[0] == 0:
            return np.zeros(0)
        if x.shape[0] == 0:
            return np.zeros(Y.shape[0])

        mask, x_has, Y_has = acceptable_mask(x, Y)
        xm = np.where(mask, x, 0.0)
        Ym = np.where(mask, Y, 0.0)
        dots = np.einsum("ij,ij->i", xm, Ym)
        norms = np.sqrt(np.einsum("ij,ij->i", xm, xm)) * np.sqrt(np.einsum("ij,ij->i", Ym, Ym))

        result = np.ones(Y.shape[0])
        nonzero = norms > 0
        result[nonzero] = 1.0 - dots[nonzero] / norms[nonzero]
        # Rounding can push identical directions slightly below zero
        result = np.clip(result, 0.0, 2.0)
        return apply_missing_policy(result, x_has, Y_has)


class HammingMetric(Metric):
    """Number of mismatching nominal values."""

    name = "hamming"

    @staticmethod
    def _present(values: np.ndarray) -> np.ndarray:
        return np.vectorize(lambda v: v is not None and v == v and v != "", otypes=[bool])(values)

    def row_distances(self, x: np.ndarray, Y: np.ndarray) -> np.ndarray:
        x = np.asarray(x, dtype=object)
        Y = np.asarray(Y, dtype=object)
        if Y.shape[0] == 0:
            return np.zeros(0)
        if x.shape[0] == 0:
            return np.zeros(Y.shape[0])

        valid_x = self._present(x)
        valid_Y = self._present(Y).reshape(Y.shape)
        mask = valid_x & valid_Y
        mismatch = (Y != x) & mask
        result = mismatch.sum(axis=1).astype(np.float64)
        return apply_missing_policy(result, valid_x.any(), valid_Y.any(axis=1))
