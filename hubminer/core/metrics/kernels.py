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

"""Kernel functions and kernel-induced distances."""

from abc import ABC, abstractmethod

import numpy as np

from .base import Metric, acceptable_mask, apply_missing_policy


def _masked_sq_euclidean(x: np.ndarray, Y: np.ndarray, mask: np.ndarray) -> np.ndarray:
    with np.errstate(invalid="ignore", over="ignore"):
        diff = np.where(mask, x - Y, 0.0)
    return np.einsum("ij,ij->i", diff, diff)


class Kernel(ABC):
    """Dot product in an implicitly mapped feature space."""

    name: str = "kernel"

    @abstractmethod
    def row_dot(self, x: np.ndarray, Y: np.ndarray, mask: np.ndarray) -> np.ndarray:
        """
        Kernel values between x and each row of Y.

        Args:
            x: Vector (D,)
            Y: Vectors (M, D)
            mask: (M, D) dimensions usable on both sides

        Returns:
            Kernel values (M,)
        """
        pass

    def dot(self, x: np.ndarray, y: np.ndarray) -> float:
        x = np.asarray(x, dtype=np.float64)
        Y = np.asarray(y, dtype=np.float64).reshape(1, -1)
        mask, _, _ = acceptable_mask(x, Y)
        return float(self.row_dot(x, Y, mask)[0])


class LinearKernel(Kernel):
    name = "linear"

    def row_dot(self, x, Y, mask):
        return np.einsum("ij,ij->i", np.where(mask, x, 0.0), np.where(mask, Y, 0.0))


class RBFKernel(Kernel):
    name = "rbf"

    def __init__(self, sigma: float = 1.0):
        self.sigma = sigma

    def row_dot(self, x, Y, mask):
        return np.exp(-_masked_sq_euclidean(x, Y, mask) / (2.0 * self.sigma ** 2))


class SphericalKernel(Kernel):
    """Compactly supported kernel; zero beyond the width sigma."""

    name = "spherical"

    def __init__(self, sigma: float = 1.0):
        self.sigma = sigma

    def row_dot(self, x, Y, mask):
        q = np.sqrt(_masked_sq_euclidean(x, Y, mask)) / self.sigma
        return np.where(q < 1.0, 1.0 - 1.5 * q + 0.5 * q ** 3, 0.0)


class CauchyKernel(Kernel):
    name = "cauchy"

    def __init__(self, sigma: float = 1.0):
        self.sigma = sigma

    def row_dot(self, x, Y, mask):
        return 1.0 / (1.0 + _masked_sq_euclidean(x, Y, mask) / self.sigma ** 2)


class MinKernel(Kernel):
    """Histogram intersection kernel."""

    name = "min"

    def row_dot(self, x, Y, mask):
        return np.where(mask, np.minimum(x, Y), 0.0).sum(axis=1)


class PowerKernel(Kernel):
    """Conditionally positive definite kernel -||x - y||^degree."""

    name = "power"

    def __init__(self, degree: float = 1.0):
        self.degree = degree

    def row_dot(self, x, Y, mask):
        return -np.power(np.sqrt(_masked_sq_euclidean(x, Y, mask)), self.degree)


class KernelMetric(Metric):
    """Distance induced by a kernel: sqrt(k(x,x) + k(y,y) - 2 k(x,y))."""

    name = "kernel"

    def __init__(self, kernel: Kernel):
        self.kernel = kernel

    def row_distances(self, x: np.ndarray, Y: np.ndarray) -> np.ndarray:
        x = np.asarray(x, dtype=np.float64)
        Y = np.asarray(Y, dtype=np.float64)
        if Y.shape[0] == 0:
            return np.zeros(0)
        if x.shape[0] == 0:
            return np.zeros(Y.shape[0])

        mask, x_has, Y_has = acceptable_mask(x, Y)
        cross = self.kernel.row_dot(x, Y, mask)
        # Self-similarity uses each vector's own usable dimensions
        x_self = self.kernel.row_dot(x, x.reshape(1, -1), np.isfinite(x).reshape(1, -1))[0]
        Y_self = np.array([
            self.kernel.row_dot(row, row.reshape(1, -1), np.isfinite(row).reshape(1, -1))[0]
            for row in Y
        ])
        result = np.sqrt(np.maximum(0.0, x_self + Y_self - 2.0 * cross))
        return apply_missing_policy(result, x_has, Y_has)

    def __repr__(self) -> str:
        return f"KernelMetric({self.kernel.name})"
