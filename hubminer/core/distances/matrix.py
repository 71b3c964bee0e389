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

"""Upper-triangular distance matrix storage and computation."""

import time
from typing import Iterator, List, Optional, Sequence, Tuple

import numpy as np
from scipy.spatial.distance import squareform

from ..data.dataset import SparseDataset
from ..errors import ConfigurationError, MatrixDimensionError, MatrixTooLargeError
from ..metrics.combined import as_dataset_metric
from ...utils.logging import get_logger
from ...utils.parallel import run_partitioned

logger = get_logger()


def condensed_size(n: int) -> int:
    """Number of stored entries for n points."""
    return n * (n - 1) // 2 if n > 1 else 0


def check_matrix_size(n: int, dtype=np.float64, max_bytes: Optional[int] = None) -> int:
    """
    Check that a distance matrix for n points fits the memory budget.

    Returns:
        Required number of bytes

    Raises:
        MatrixTooLargeError: If max_bytes is set and would be exceeded
    """
    required = condensed_size(n) * np.dtype(dtype).itemsize
    if max_bytes is not None and required > max_bytes:
        raise MatrixTooLargeError(
            f"Distance matrix for {n} points needs {required / 2**20:.1f} MiB, "
            f"which exceeds the configured limit of {max_bytes / 2**20:.1f} MiB"
        )
    return required


class UpperTriangularMatrix:
    """Symmetric matrix with zero diagonal, stored as its strict upper triangle.

    Row i holds the n-i-1 values d(i, i+1) ... d(i, n-1), laid out
    row after row in one flat array. d(i, j) for i > j is read from
    the stored d(j, i).
    """

    def __init__(self, n: int, data: Optional[np.ndarray] = None, dtype=np.float64):
        if n < 0:
            raise ValueError(f"Matrix size must be non-negative, got {n}")
        self.n = n
        if data is None:
            data = np.zeros(condensed_size(n), dtype=dtype)
        else:
            data = np.asarray(data, dtype=dtype)
            if data.shape != (condensed_size(n),):
                raise MatrixDimensionError(
                    f"Expected {condensed_size(n)} entries for {n} points, got {data.shape}"
                )
        self._data = data
        idx = np.arange(n, dtype=np.int64)
        self._offsets = idx * n - idx * (idx + 1) // 2

    @property
    def data(self) -> np.ndarray:
        if self._data is None:
            raise RuntimeError("Distance matrix has been released")
        return self._data

    @property
    def dtype(self):
        return self.data.dtype

    @property
    def released(self) -> bool:
        return self._data is None

    @property
    def nbytes(self) -> int:
        return 0 if self._data is None else self._data.nbytes

    def __len__(self) -> int:
        return self.n

    def _position(self, i: int, j: int) -> int:
        if i == j:
            raise IndexError(f"No stored entry for the diagonal ({i}, {j})")
        if i > j:
            i, j = j, i
        if i < 0 or j >= self.n:
            raise IndexError(f"Index ({i}, {j}) out of range for {self.n} points")
        return int(self._offsets[i] + (j - i - 1))

    def get(self, i: int, j: int) -> float:
        return float(self.data[self._position(i, j)])

    def set(self, i: int, j: int, value: float):
        self.data[self._position(i, j)] = value

    def row(self, i: int) -> np.ndarray:
        """View of the stored entries of row i (distances to i+1 .. n-1)."""
        start = self._offsets[i]
        return self.data[start:start + self.n - i - 1]

    def rows(self) -> Iterator[np.ndarray]:
        for i in range(self.n):
            yield self.row(i)

    def column(self, i: int) -> np.ndarray:
        """Distances d(j, i) for j < i."""
        js = np.arange(i, dtype=np.int64)
        return self.data[self._offsets[:i] + (i - js - 1)]

    def full_row(self, i: int) -> Tuple[np.ndarray, np.ndarray]:
        """
        Distances from point i to every other point.

        Returns:
            indices: Other point indices in ascending order (N-1,)
            distances: Matching distances (N-1,)
        """
        indices = np.concatenate([
            np.arange(i, dtype=np.int64),
            np.arange(i + 1, self.n, dtype=np.int64),
        ])
        distances = np.concatenate([self.column(i), self.row(i)])
        return indices, distances

    def to_dense(self) -> np.ndarray:
        if self.n <= 1:
            return np.zeros((self.n, self.n), dtype=self.dtype)
        return squareform(self.data, checks=False)

    @classmethod
    def from_dense(cls, matrix: np.ndarray, dtype=np.float64) -> "UpperTriangularMatrix":
        matrix = np.asarray(matrix)
        if matrix.ndim != 2 or matrix.shape[0] != matrix.shape[1]:
            raise MatrixDimensionError(f"Expected a square matrix, got shape {matrix.shape}")
        n = matrix.shape[0]
        iu = np.triu_indices(n, k=1)
        return cls(n, data=matrix[iu], dtype=dtype)

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[float]], dtype=np.float64) -> "UpperTriangularMatrix":
        """Build from row-wise upper-triangular lists (row i has n-i-1 values)."""
        n = len(rows)
        for i, row in enumerate(rows):
            if len(row) != n - i - 1:
                raise MatrixDimensionError(
                    f"Row {i} has {len(row)} entries, expected {n - i - 1} for {n} points"
                )
        if n <= 1:
            return cls(n, dtype=dtype)
        data = np.concatenate([np.asarray(row, dtype=dtype) for row in rows])
        return cls(n, data=data, dtype=dtype)

    def copy(self) -> "UpperTriangularMatrix":
        return UpperTriangularMatrix(self.n, data=self.data.copy(), dtype=self.dtype)

    def empty_like(self) -> "UpperTriangularMatrix":
        return UpperTriangularMatrix(self.n, dtype=self.dtype)

    def is_finite(self) -> bool:
        return bool(np.all(np.isfinite(self.data)))

    def release(self):
        """Drop the stored values; further access raises."""
        self._data = None

    def __eq__(self, other) -> bool:
        if not isinstance(other, UpperTriangularMatrix):
            return NotImplemented
        return self.n == other.n and np.array_equal(self.data, other.data)

    def __repr__(self) -> str:
        state = "released" if self.released else str(self.dtype)
        return f"UpperTriangularMatrix(n={self.n}, {state})"


def compute_distance_matrix(
    dataset,
    metric,
    num_threads: int = 1,
    dtype=np.float64,
    max_bytes: Optional[int] = None,
) -> UpperTriangularMatrix:
    """
    Compute the upper-triangular distance matrix of a dataset.

    Rows are split into contiguous chunks, one per worker; every worker
    fills only its own rows of the preallocated output. The dataset is
    only read.

    Args:
        dataset: Dataset (or SparseDataset) to measure
        metric: Metric or DatasetMetric
        num_threads: Number of workers
        dtype: Storage dtype
        max_bytes: Optional memory budget for the matrix

    Returns:
        UpperTriangularMatrix
    """
    dataset_metric = as_dataset_metric(metric)
    if dataset_metric is None:
        raise ConfigurationError("A metric is required to compute distances")
    if dataset is None:
        raise ConfigurationError("A dataset is required to compute distances")
    if isinstance(dataset, SparseDataset) != dataset_metric.sparse_input:
        kind = "sparse" if dataset_metric.sparse_input else "dense"
        raise ConfigurationError(
            f"Metric {dataset_metric} needs a {kind} dataset, got {type(dataset).__name__}"
        )

    n = len(dataset)
    check_matrix_size(n, dtype, max_bytes)
    matrix = UpperTriangularMatrix(n, dtype=dtype)

    def fill_rows(start: int, end: int):
        for i in range(start, min(end, n - 1)):
            js = np.arange(i + 1, n, dtype=np.int64)
            matrix.row(i)[:] = dataset_metric.row_distances(dataset, i, js)

    start_time = time.time()
    run_partitioned(fill_rows, n, num_threads, description="distance matrix")
    logger.info(
        f"Computed distance matrix for {n} points with {dataset_metric} "
        f"in {time.time() - start_time:.2f}s"
    )
    return matrix


def validate_matrix_for(matrix: UpperTriangularMatrix, n: int):
    """Raise MatrixDimensionError if the matrix does not cover n points."""
    if not isinstance(matrix, UpperTriangularMatrix):
        raise MatrixDimensionError(f"Expected an UpperTriangularMatrix, got {type(matrix)}")
    if matrix.n != n:
        raise MatrixDimensionError(
            f"Distance matrix covers {matrix.n} points but the dataset has {n}"
        )


def as_matrix(matrix, dtype=np.float64) -> UpperTriangularMatrix:
    """Accept an UpperTriangularMatrix, a dense square array or row lists."""
    if isinstance(matrix, UpperTriangularMatrix):
        return matrix
    if isinstance(matrix, np.ndarray) and matrix.ndim == 2:
        return UpperTriangularMatrix.from_dense(matrix, dtype=dtype)
    if isinstance(matrix, (list, tuple)):
        return UpperTriangularMatrix.from_rows(matrix, dtype=dtype)
    raise MatrixDimensionError(f"Cannot interpret {type(matrix)} as a distance matrix")
