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

"""Registry of secondary distance calculators."""

import warnings
from typing import Callable, Dict, List

from .base import SecondaryDistanceCalculator
from .local_scaling import LocalScaling, NICDM
from .mutual_proximity import MutualProximity
from .shared_neighbor import SharedNeighborDistance

_SECONDARY_REGISTRY: Dict[str, Callable[..., SecondaryDistanceCalculator]] = {}


def register_secondary(name: str, factory: Callable[..., SecondaryDistanceCalculator]):
    """
    Register a secondary distance calculator factory.

    Args:
        name: Unique name for the method
        factory: Callable returning a SecondaryDistanceCalculator
    """
    if name in _SECONDARY_REGISTRY:
        warnings.warn(f"Secondary distance '{name}' is already registered. Overwriting.")
    _SECONDARY_REGISTRY[name] = factory


def get_secondary(name: str, **params) -> SecondaryDistanceCalculator:
    """
    Create a registered secondary distance calculator.

    Raises:
        ValueError: If the name is not registered
    """
    factory = _SECONDARY_REGISTRY.get(name)
    if factory is None:
        raise ValueError(f"Unknown secondary distance: {name}. Available: {list_secondary()}")
    return factory(**params)


def list_secondary() -> List[str]:
    """List all registered secondary distance names."""
    return list(_SECONDARY_REGISTRY.keys())


register_secondary("mutual_proximity", MutualProximity)
register_secondary("local_scaling", LocalScaling)
register_secondary("nicdm", NICDM)
register_secondary("simcos", lambda **params: SharedNeighborDistance(mode="simcos", **params))
register_secondary("simhub", lambda **params: SharedNeighborDistance(mode="simhub", **params))
