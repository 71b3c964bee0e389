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

"""Distance matrix persistence.

The text format has one line per point holding the stored upper-triangular
row (distances to the following points), comma separated. The last line is
empty. Values are written in their shortest round-trip representation, so
reading a file back yields bit-identical values. The reader also accepts
whitespace-separated rows.
"""

import re
from pathlib import Path
from typing import List

import numpy as np

from .matrix import UpperTriangularMatrix
from ..errors import MatrixDimensionError

_SEPARATOR = re.compile(r"[,\s]+")


def save_distance_matrix(matrix: UpperTriangularMatrix, path: str, delimiter: str = ","):
    """Write a distance matrix in the row-per-point text format."""
    path_obj = Path(path)
    path_obj.parent.mkdir(parents=True, exist_ok=True)

    with open(path_obj, "w") as f:
        for row in matrix.rows():
            f.write(delimiter.join(repr(float(value)) for value in row))
            f.write("\n")


def load_distance_matrix(path: str, dtype=np.float64) -> UpperTriangularMatrix:
    """
    Read a distance matrix written by save_distance_matrix.

    Raises:
        MatrixDimensionError: If row lengths do not form an upper triangle
    """
    with open(path, "r") as f:
        lines = f.read().splitlines()

    rows: List[np.ndarray] = []
    for line_num, line in enumerate(lines):
        line = line.strip()
        if not line:
            rows.append(np.zeros(0, dtype=dtype))
            continue
        try:
            values = [float(token) for token in _SEPARATOR.split(line) if token]
        except ValueError as e:
            raise MatrixDimensionError(f"Malformed value on line {line_num + 1} of {path}: {e}") from e
        rows.append(np.asarray(values, dtype=dtype))

    return UpperTriangularMatrix.from_rows(rows, dtype=dtype)
