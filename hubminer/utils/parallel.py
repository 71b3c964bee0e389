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

"""Fork-join execution over contiguous index ranges."""

from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Tuple, TypeVar

from ..core.errors import WorkerFailedError
from .batching import partition_range
from .logging import get_logger

logger = get_logger()

T = TypeVar("T")


def run_partitioned(
    func: Callable[[int, int], T],
    n: int,
    num_threads: int = 1,
    description: str = "task",
) -> List[T]:
    """
    Run func(start, end) over contiguous chunks of [0, n) and join.

    Each worker owns one chunk, so workers writing only to their own rows
    of a shared output never race. All workers are joined before returning.
    If any of them raised, the failures are logged and a WorkerFailedError
    is raised after the join.

    Args:
        func: Worker callable taking a [start, end) range
        n: Size of the index range
        num_threads: Number of workers (chunks)
        description: Name used in log messages

    Returns:
        Worker results in chunk order
    """
    chunks = partition_range(n, num_threads)
    if not chunks:
        return []

    if len(chunks) == 1:
        start, end = chunks[0]
        return [func(start, end)]

    logger.debug(f"Running {description} on {len(chunks)} workers over {n} items")

    results: List[T] = []
    failures: List[Tuple[Tuple[int, int], BaseException]] = []
    with ThreadPoolExecutor(max_workers=len(chunks)) as executor:
        futures = [(chunk, executor.submit(func, *chunk)) for chunk in chunks]
        for chunk, future in futures:
            try:
                results.append(future.result())
            except Exception as e:
                logger.error(f"Worker for {description} rows {chunk[0]}-{chunk[1]} failed: {e}")
                failures.append((chunk, e))

    if failures:
        chunk, first = failures[0]
        raise WorkerFailedError(
            f"{len(failures)} worker(s) failed during {description}",
            failures=failures,
        ) from first

    return results
