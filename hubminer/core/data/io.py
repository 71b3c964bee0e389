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

"""Dataset I/O operations."""

from pathlib import Path
from typing import Optional, Union

import numpy as np
import pandas as pd
from scipy import sparse

from .dataset import Dataset, SparseDataset
from ...utils.logging import get_logger
from ...utils.metrics import normalize_vectors

logger = get_logger()


def load_dataset(
    path: str,
    label_column: Optional[str] = None,
    normalize: bool = False,
    name: Optional[str] = None,
) -> Union[Dataset, SparseDataset]:
    """
    Load a dataset from file.

    Supports:
    - .npy: NumPy array of float features
    - .npz: NumPy archive with a features array and optional "labels"
    - .npz written by scipy.sparse.save_npz: bag-of-words SparseDataset
      (an optional "labels" array may be stored alongside)
    - .csv / .parquet: Tables; float columns become float features,
      integer columns integer features, other columns nominal features

    Row order in the file is preserved, since instance position is the
    identity used by distance matrices and neighbor lists.

    Args:
        path: Path to the data file
        label_column: Column (tables) holding class labels
        normalize: Whether to normalize float vectors to unit length
        name: Dataset name (defaults to the file stem)

    Returns:
        Dataset, or SparseDataset for sparse archives
    """
    path_obj = Path(path)
    name = name or path_obj.stem

    if path_obj.suffix == ".npy":
        dataset = Dataset.from_arrays(np.load(path), name=name)
    elif path_obj.suffix == ".npz":
        data = np.load(path)
        if "format" in data.files and "shape" in data.files:
            return _load_sparse(path, data, normalize=normalize, name=name)
        keys = [key for key in data.keys() if key != "labels"]
        if not keys:
            raise ValueError(f"No feature array found in {path}")
        labels = data["labels"] if "labels" in data else None
        dataset = Dataset.from_arrays(data[keys[0]], labels=labels, name=name)
    elif path_obj.suffix in [".csv", ".parquet", ".pq"]:
        if path_obj.suffix == ".csv":
            df = pd.read_csv(path)
        else:
            df = pd.read_parquet(path)
        dataset = dataset_from_frame(df, label_column=label_column, name=name)
    else:
        raise ValueError(f"Unsupported dataset format: {path_obj.suffix}")

    if normalize and dataset.float_data.shape[1] > 0:
        dataset.float_data = normalize_vectors(dataset.float_data)

    logger.info(f"Loaded {len(dataset)} instances from {path}")
    return dataset


def dataset_from_frame(
    df: pd.DataFrame,
    label_column: Optional[str] = None,
    name: str = "dataset",
) -> Dataset:
    """Split a data frame into float, integer and nominal feature blocks."""
    labels = None
    if label_column is not None:
        if label_column not in df.columns:
            raise ValueError(f"Label column '{label_column}' not found")
        labels = df[label_column].to_numpy(dtype=np.int64)
        df = df.drop(columns=[label_column])

    float_cols = [c for c in df.columns if pd.api.types.is_float_dtype(df[c])]
    int_cols = [c for c in df.columns if pd.api.types.is_integer_dtype(df[c])]
    nominal_cols = [c for c in df.columns if c not in float_cols and c not in int_cols]

    n = len(df)
    nominal = df[nominal_cols].astype(object).where(df[nominal_cols].notna(), None)
    return Dataset(
        float_data=df[float_cols].to_numpy(dtype=np.float64) if float_cols else np.zeros((n, 0)),
        int_data=df[int_cols].to_numpy(dtype=np.int64) if int_cols else None,
        nominal_data=nominal.to_numpy(dtype=object) if nominal_cols else None,
        labels=labels,
        float_names=[str(c) for c in float_cols],
        int_names=[str(c) for c in int_cols],
        nominal_names=[str(c) for c in nominal_cols],
        name=name,
    )


def _load_sparse(path: str, archive, normalize: bool, name: str) -> SparseDataset:
    labels = archive["labels"] if "labels" in archive.files else None
    matrix = sparse.load_npz(path).tocsr().astype(np.float64)
    if normalize:
        norms = np.sqrt(np.asarray(matrix.multiply(matrix).sum(axis=1)).ravel())
        norms[norms == 0] = 1.0
        matrix = sparse.diags(1.0 / norms) @ matrix
    dataset = SparseDataset(matrix, labels=labels, name=name)
    logger.info(f"Loaded {len(dataset)} sparse instances from {path}")
    return dataset
