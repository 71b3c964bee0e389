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

"""hubminer: k-nearest neighbor sets, hubness statistics and secondary distances"""

__version__ = "0.1.0"

from .config import Config
from .core import (
    Dataset,
    UpperTriangularMatrix,
    NeighborSetFinder,
    SharedNeighborFinder,
    MutualProximity,
    LocalScaling,
    NICDM,
    SharedNeighborDistance,
    ExperimentCondition,
    HubnessAnalyzer,
    summarize_hubness,
)
from .sdk import analyze, quick_analyze, analyze_from_config, get_top_hubs

__all__ = [
    "Config",
    "Dataset",
    "UpperTriangularMatrix",
    "NeighborSetFinder",
    "SharedNeighborFinder",
    "MutualProximity",
    "LocalScaling",
    "NICDM",
    "SharedNeighborDistance",
    "ExperimentCondition",
    "HubnessAnalyzer",
    "summarize_hubness",
    "analyze",
    "quick_analyze",
    "analyze_from_config",
    "get_top_hubs",
]
