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

"""Metrics on sparse bag-of-words vectors."""

from abc import ABC, abstractmethod

import numpy as np
from scipy import sparse

from .base import DatasetMetric, MAX_DISTANCE


def _row_nonempty(rows: sparse.csr_matrix) -> np.ndarray:
    return np.diff(rows.indptr) > 0


def _apply_empty_policy(result: np.ndarray, x: sparse.csr_matrix, Y: sparse.csr_matrix) -> np.ndarray:
    x_has = bool(_row_nonempty(x)[0])
    Y_has = _row_nonempty(Y)
    result = np.where(~x_has & ~Y_has, 0.0, result)
    return np.where(x_has ^ Y_has, MAX_DISTANCE, result)


class SparseMetric(ABC):
    """Distance between a sparse row and a block of sparse rows."""

    name: str = "sparse"

    @abstractmethod
    def row_distances(self, x: sparse.csr_matrix, Y: sparse.csr_matrix) -> np.ndarray:
        pass


class SparseManhattan(SparseMetric):
    name = "sparse_manhattan"

    def row_distances(self, x, Y):
        if Y.shape[0] == 0:
            return np.zeros(0)
        repeated = x[np.zeros(Y.shape[0], dtype=np.int64)]
        result = np.asarray(abs(Y - repeated).sum(axis=1)).ravel()
        return _apply_empty_policy(result, x, Y)


class SparseCosine(SparseMetric):
    name = "sparse_cosine"

    def row_distances(self, x, Y):
        if Y.shape[0] == 0:
            return np.zeros(0)
        dots = np.asarray((Y @ x.T).todense()).ravel()
        x_norm = np.sqrt(x.multiply(x).sum())
        Y_norms = np.sqrt(np.asarray(Y.multiply(Y).sum(axis=1)).ravel())
        norms = x_norm * Y_norms
        result = np.ones(Y.shape[0])
        nonzero = norms > 0
        result[nonzero] = 1.0 - dots[nonzero] / norms[nonzero]
        result = np.clip(result, 0.0, 2.0)
        return _apply_empty_policy(result, x, Y)


class SparseCombinedMetric(DatasetMetric):
    """Dataset metric for SparseDataset instances."""

    name = "sparse_combined"
    sparse_input = True

    def __init__(self, sparse_metric: SparseMetric = None):
        self.sparse_metric = sparse_metric if sparse_metric is not None else SparseCosine()

    def row_distances(self, dataset, i: int, js: np.ndarray) -> np.ndarray:
        js = np.asarray(js, dtype=np.int64)
        data = dataset.data
        return self.sparse_metric.row_distances(data[i], data[js])

    def __str__(self) -> str:
        return self.sparse_metric.name
