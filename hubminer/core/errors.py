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

"""Exception types raised by the neighbor-set engine."""


class ConfigurationError(ValueError):
    """Invalid setup: missing metric, bad k, inconsistent inputs."""


class MatrixDimensionError(ConfigurationError):
    """A distance matrix does not match the dataset it is used with."""


class MatrixTooLargeError(ConfigurationError):
    """A distance matrix would exceed the configured memory budget."""


class NonFiniteDistanceError(ValueError):
    """A NaN or infinite distance reached a k-NN computation."""


class WorkerFailedError(RuntimeError):
    """One or more workers of a partitioned operation raised."""

    def __init__(self, message: str, failures=None):
        super().__init__(message)
        self.failures = failures or []
