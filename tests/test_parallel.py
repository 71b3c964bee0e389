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

"""Tests for range partitioning and fork-join execution."""

import threading

import numpy as np
import pytest

from hubminer.core.errors import WorkerFailedError
from hubminer.utils.batching import batch_ranges, partition_range
from hubminer.utils.parallel import run_partitioned


def test_partition_range_covers_everything():
    chunks = partition_range(10, 3)
    assert chunks == [(0, 4), (4, 7), (7, 10)]
    assert partition_range(2, 8) == [(0, 1), (1, 2)]
    assert partition_range(0, 4) == []


def test_batch_ranges():
    assert list(batch_ranges(7, 3)) == [(0, 3), (3, 6), (6, 7)]
    assert list(batch_ranges(0, 3)) == []


def test_results_in_chunk_order():
    results = run_partitioned(lambda start, end: (start, end), 10, num_threads=4)
    assert results == partition_range(10, 4)


def test_workers_write_disjoint_rows():
    output = np.zeros(100)

    def fill(start, end):
        output[start:end] = np.arange(start, end)

    run_partitioned(fill, 100, num_threads=6)
    np.testing.assert_array_equal(output, np.arange(100))


def test_worker_failure_raises_after_join():
    finished = []
    lock = threading.Lock()

    def work(start, end):
        if start == 0:
            raise RuntimeError("boom")
        with lock:
            finished.append(start)
        return start

    with pytest.raises(WorkerFailedError) as excinfo:
        run_partitioned(work, 9, num_threads=3)

    assert len(excinfo.value.failures) == 1
    assert isinstance(excinfo.value.__cause__, RuntimeError)
    assert sorted(finished) == [3, 6]


def test_empty_range():
    assert run_partitioned(lambda start, end: 1, 0, num_threads=4) == []
