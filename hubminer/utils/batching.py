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

"""Batching utilities for splitting index ranges."""

from typing import Iterator, List, Tuple


def batch_ranges(n: int, batch_size: int) -> Iterator[Tuple[int, int]]:
    """Iterate over [start, end) ranges of at most batch_size items."""
    for i in range(0, n, batch_size):
        yield i, min(i + batch_size, n)


def partition_range(n: int, num_parts: int) -> List[Tuple[int, int]]:
    """
    Split [0, n) into at most num_parts contiguous, non-empty chunks.

    Chunk sizes differ by at most one; earlier chunks get the remainder.
    """
    if n <= 0:
        return []
    num_parts = max(1, min(num_parts, n))
    base, extra = divmod(n, num_parts)
    chunks = []
    start = 0
    for part in range(num_parts):
        size = base + (1 if part < extra else 0)
        chunks.append((start, start + size))
        start += size
    return chunks
