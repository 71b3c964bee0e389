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

"""On-disk cache of distance matrices keyed by metric and normalization."""

import re
from pathlib import Path
from typing import Optional

import numpy as np

from .io import load_distance_matrix, save_distance_matrix
from .matrix import UpperTriangularMatrix, compute_distance_matrix, validate_matrix_for
from ...utils.logging import get_logger

logger = get_logger()

MATRIX_SUFFIX = ".dmat"


def _path_segment(value: str) -> str:
    return re.sub(r"[^A-Za-z0-9_.-]+", "_", str(value)) or "default"


class DistanceMatrixCache:
    """Distance matrices stored as <root>/<metric>/<normalization>/<dataset>.dmat.

    A cached matrix is only valid for the instance ordering it was computed
    on; reloading a dataset in a different order invalidates it.
    """

    def __init__(self, root: str):
        self.root = Path(root)

    def path_for(self, dataset_name: str, metric_name: str, normalization: str = "none") -> Path:
        return (
            self.root
            / _path_segment(metric_name)
            / _path_segment(normalization)
            / f"{_path_segment(dataset_name)}{MATRIX_SUFFIX}"
        )

    def load(
        self,
        dataset_name: str,
        metric_name: str,
        normalization: str = "none",
        dtype=np.float64,
    ) -> Optional[UpperTriangularMatrix]:
        path = self.path_for(dataset_name, metric_name, normalization)
        if not path.exists():
            return None
        logger.info(f"Loading cached distance matrix from {path}")
        return load_distance_matrix(str(path), dtype=dtype)

    def store(
        self,
        matrix: UpperTriangularMatrix,
        dataset_name: str,
        metric_name: str,
        normalization: str = "none",
    ) -> Path:
        path = self.path_for(dataset_name, metric_name, normalization)
        logger.info(f"Saving distance matrix to {path}")
        save_distance_matrix(matrix, str(path))
        return path

    def load_or_compute(
        self,
        dataset,
        metric,
        normalization: str = "none",
        num_threads: int = 1,
        dtype=np.float64,
        max_bytes: Optional[int] = None,
    ) -> UpperTriangularMatrix:
        """
        Return the cached matrix for (dataset, metric, normalization), computing
        and storing it on a miss.

        Raises:
            MatrixDimensionError: If a cached matrix does not match the dataset size
        """
        dataset_name = getattr(dataset, "name", "dataset")
        metric_name = str(metric)
        matrix = self.load(dataset_name, metric_name, normalization, dtype=dtype)
        if matrix is not None:
            validate_matrix_for(matrix, len(dataset))
            return matrix

        matrix = compute_distance_matrix(
            dataset, metric, num_threads=num_threads, dtype=dtype, max_bytes=max_bytes
        )
        self.store(matrix, dataset_name, metric_name, normalization)
        return matrix
