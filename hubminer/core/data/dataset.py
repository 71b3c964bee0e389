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

"""Dataset and instance representations."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import numpy as np
from scipy import sparse

NOISE_LABEL = -1


class Instance:
    """A single data point, viewed through its owning dataset.

    The instance does not copy feature values; it reads the rows of the
    dataset blocks at its index. Position in the dataset is its identity.
    """

    __slots__ = ("dataset", "index")

    def __init__(self, dataset: "Dataset", index: int):
        self.dataset = dataset
        self.index = index

    @property
    def float_values(self) -> np.ndarray:
        return self.dataset.float_data[self.index]

    @property
    def int_values(self) -> np.ndarray:
        return self.dataset.int_data[self.index]

    @property
    def nominal_values(self) -> np.ndarray:
        return self.dataset.nominal_data[self.index]

    @property
    def label(self) -> int:
        return int(self.dataset.labels[self.index])

    def is_noise(self) -> bool:
        return self.label == NOISE_LABEL

    def __repr__(self) -> str:
        return f"Instance(index={self.index}, label={self.label})"


@dataclass
class Dataset:
    """Ordered collection of instances with shared feature metadata.

    Feature values live in three dense blocks, one row per instance:
    float features, integer features and nominal (string) features.
    Missing float values are stored as NaN.
    """
    float_data: np.ndarray = field(default_factory=lambda: np.zeros((0, 0), dtype=np.float64))
    int_data: Optional[np.ndarray] = None
    nominal_data: Optional[np.ndarray] = None
    labels: Optional[np.ndarray] = None
    float_names: List[str] = field(default_factory=list)
    int_names: List[str] = field(default_factory=list)
    nominal_names: List[str] = field(default_factory=list)
    name: str = "dataset"

    def __post_init__(self):
        self.float_data = np.asarray(self.float_data, dtype=np.float64)
        if self.float_data.ndim == 1:
            self.float_data = self.float_data.reshape(-1, 1)
        n = len(self.float_data)

        if self.int_data is None:
            self.int_data = np.zeros((n, 0), dtype=np.int64)
        self.int_data = np.asarray(self.int_data, dtype=np.int64).reshape(n, -1)

        if self.nominal_data is None:
            self.nominal_data = np.empty((n, 0), dtype=object)
        self.nominal_data = np.asarray(self.nominal_data, dtype=object).reshape(n, -1)

        if self.labels is None:
            self.labels = np.full(n, NOISE_LABEL, dtype=np.int64)
        self.labels = np.asarray(self.labels, dtype=np.int64)

        if len(self.labels) != n:
            raise ValueError(f"Got {len(self.labels)} labels for {n} instances")

        if not self.float_names:
            self.float_names = [f"f{i}" for i in range(self.float_data.shape[1])]
        if not self.int_names:
            self.int_names = [f"i{i}" for i in range(self.int_data.shape[1])]
        if not self.nominal_names:
            self.nominal_names = [f"s{i}" for i in range(self.nominal_data.shape[1])]

    @classmethod
    def from_arrays(
        cls,
        features: np.ndarray,
        labels: Optional[Sequence[int]] = None,
        name: str = "dataset",
    ) -> "Dataset":
        """Create a float-only dataset from an (N, D) array."""
        return cls(
            float_data=np.asarray(features, dtype=np.float64),
            labels=None if labels is None else np.asarray(labels, dtype=np.int64),
            name=name,
        )

    def __len__(self) -> int:
        return len(self.float_data)

    def __getitem__(self, index: int) -> Instance:
        if index < 0 or index >= len(self):
            raise IndexError(f"Instance index {index} out of range for {len(self)} instances")
        return Instance(self, index)

    def __iter__(self):
        for i in range(len(self)):
            yield Instance(self, i)

    @property
    def size(self) -> int:
        return len(self)

    @property
    def num_classes(self) -> int:
        """Number of classes, counted as max label + 1 over labeled points."""
        labeled = self.labels[self.labels != NOISE_LABEL]
        if labeled.size == 0:
            return 0
        return int(labeled.max()) + 1

    def class_frequencies(self) -> np.ndarray:
        """Count of labeled instances per class."""
        labeled = self.labels[self.labels != NOISE_LABEL]
        return np.bincount(labeled, minlength=self.num_classes)

    def subset(self, indices: Sequence[int]) -> "Dataset":
        """Create a new dataset holding the given instances, in the given order."""
        indices = np.asarray(indices, dtype=np.int64)
        return Dataset(
            float_data=self.float_data[indices],
            int_data=self.int_data[indices],
            nominal_data=self.nominal_data[indices],
            labels=self.labels[indices],
            float_names=list(self.float_names),
            int_names=list(self.int_names),
            nominal_names=list(self.nominal_names),
            name=self.name,
        )

    def describe(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "size": len(self),
            "num_float": self.float_data.shape[1],
            "num_int": self.int_data.shape[1],
            "num_nominal": self.nominal_data.shape[1],
            "num_classes": self.num_classes,
        }


class SparseDataset:
    """Bag-of-words dataset backed by a CSR matrix."""

    def __init__(
        self,
        data: sparse.spmatrix,
        labels: Optional[Sequence[int]] = None,
        name: str = "dataset",
    ):
        self.data = sparse.csr_matrix(data, dtype=np.float64)
        n = self.data.shape[0]
        if labels is None:
            labels = np.full(n, NOISE_LABEL, dtype=np.int64)
        self.labels = np.asarray(labels, dtype=np.int64)
        if len(self.labels) != n:
            raise ValueError(f"Got {len(self.labels)} labels for {n} instances")
        self.name = name

    def __len__(self) -> int:
        return self.data.shape[0]

    @property
    def size(self) -> int:
        return len(self)

    @property
    def num_classes(self) -> int:
        labeled = self.labels[self.labels != NOISE_LABEL]
        if labeled.size == 0:
            return 0
        return int(labeled.max()) + 1
