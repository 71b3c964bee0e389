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

"""Hubness statistics of a neighbor occurrence distribution."""

from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List

import numpy as np
from scipy.stats import kurtosis, skew

from ..neighbors.finder import NeighborSetFinder
from ...utils.metrics import robust_zscore

# Points occurring more than HUB_FACTOR * k times are hubs,
# points occurring fewer than ANTI_HUB_FACTOR * k times anti-hubs.
HUB_FACTOR = 2.0
ANTI_HUB_FACTOR = 0.5


@dataclass
class HubnessSummary:
    """Summary of the k-occurrence distribution for one k."""
    k: int
    num_points: int
    skewness: float
    kurtosis: float
    hub_percentage: float
    orphan_percentage: float
    anti_hub_percentage: float
    bad_hubness_percentage: float
    max_occurrence: int
    mean_occurrence: float
    occurrence_median: float
    occurrence_mad: float
    top_hubs: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def occurrence_skewness(occurrences: np.ndarray) -> float:
    """Skewness of the k-occurrence distribution; 0 when it is constant."""
    occurrences = np.asarray(occurrences, dtype=np.float64)
    if occurrences.size < 2 or occurrences.std() == 0:
        return 0.0
    return float(skew(occurrences))


def occurrence_kurtosis(occurrences: np.ndarray) -> float:
    """Excess kurtosis of the k-occurrence distribution; 0 when it is constant."""
    occurrences = np.asarray(occurrences, dtype=np.float64)
    if occurrences.size < 2 or occurrences.std() == 0:
        return 0.0
    return float(kurtosis(occurrences))


def _percentage(mask: np.ndarray) -> float:
    return float(100.0 * mask.mean()) if mask.size else 0.0


def summarize_hubness(finder: NeighborSetFinder, top_n: int = 10) -> HubnessSummary:
    """
    Summarize the hubness of a finder's current neighbor sets.

    Args:
        finder: NeighborSetFinder with computed neighbor sets
        top_n: Number of strongest hubs to list

    Returns:
        HubnessSummary
    """
    occurrences = np.asarray(finder.neighbor_frequencies, dtype=np.int64)
    bad = np.asarray(finder.bad_frequencies, dtype=np.int64)
    k = finder.k
    n = len(occurrences)

    hub_z, median, mad = robust_zscore(occurrences)
    total = occurrences.sum()

    top_hubs = []
    if n:
        order = np.lexsort((np.arange(n), -occurrences))[:top_n]
        for index in order:
            top_hubs.append({
                "index": int(index),
                "occurrences": int(occurrences[index]),
                "bad_occurrences": int(bad[index]),
                "hub_z": float(hub_z[index]),
            })

    return HubnessSummary(
        k=k,
        num_points=n,
        skewness=occurrence_skewness(occurrences),
        kurtosis=occurrence_kurtosis(occurrences),
        hub_percentage=_percentage(occurrences > HUB_FACTOR * k),
        orphan_percentage=_percentage(occurrences == 0),
        anti_hub_percentage=_percentage(occurrences < ANTI_HUB_FACTOR * k),
        bad_hubness_percentage=float(100.0 * bad.sum() / total) if total else 0.0,
        max_occurrence=int(occurrences.max()) if n else 0,
        mean_occurrence=float(occurrences.mean()) if n else 0.0,
        occurrence_median=float(median),
        occurrence_mad=float(mad) if n else 0.0,
        top_hubs=top_hubs,
    )
