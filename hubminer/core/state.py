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

"""Lifecycle states of the neighbor-set engine for one experimental condition."""

from enum import Enum


class CoreState(str, Enum):
    """Computation state.

    UNINITIALIZED -> DISTANCES_READY -> NEIGHBOR_SETS_READY, optionally
    followed by SECONDARY_DISTANCES_READY and NEIGHBOR_SETS_READY again on
    the secondary matrix. Shrinking k keeps NEIGHBOR_SETS_READY. RELEASED is
    terminal.
    """
    UNINITIALIZED = "UNINITIALIZED"
    DISTANCES_READY = "DISTANCES_READY"
    NEIGHBOR_SETS_READY = "NEIGHBOR_SETS_READY"
    SECONDARY_DISTANCES_READY = "SECONDARY_DISTANCES_READY"
    RELEASED = "RELEASED"
