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

"""Secondary distances computed from a primary distance matrix."""

from .base import SecondaryDistanceCalculator, neighborhood_finder, neighborhood_kdistances
from .mutual_proximity import MutualProximity
from .local_scaling import LocalScaling, NICDM
from .shared_neighbor import SharedNeighborDistance, similarity_to_distance
from .registry import register_secondary, get_secondary, list_secondary

__all__ = [
    "SecondaryDistanceCalculator",
    "neighborhood_finder",
    "neighborhood_kdistances",
    "MutualProximity",
    "LocalScaling",
    "NICDM",
    "SharedNeighborDistance",
    "similarity_to_distance",
    "register_secondary",
    "get_secondary",
    "list_secondary",
]
