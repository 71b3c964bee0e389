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

"""JSON report generation."""

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

from ..analysis.hubness import HubnessSummary


def generate_json_report(
    summaries: Iterable[HubnessSummary],
    dataset_name: str = "dataset",
    metric: str = "",
    secondary: Optional[str] = None,
    num_threads: int = 1,
    runtime_seconds: float = 0.0,
) -> Dict[str, Any]:
    """
    Generate JSON report.

    Args:
        summaries: Hubness summaries, one per k
        dataset_name: Name of the analyzed dataset
        metric: Primary metric description
        secondary: Secondary distance method, if any
        num_threads: Workers used
        runtime_seconds: Runtime in seconds

    Returns:
        Report dictionary
    """
    summaries = sorted(summaries, key=lambda summary: summary.k)
    num_points = summaries[0].num_points if summaries else 0

    report: Dict[str, Any] = {
        "analysis_info": {
            "timestamp": datetime.now().isoformat(),
            "dataset": dataset_name,
            "num_points": num_points,
            "metric": metric,
            "secondary": secondary,
            "k_values": [summary.k for summary in summaries],
            "num_threads": num_threads,
            "runtime_seconds": runtime_seconds,
        },
        "results": {},
    }

    for summary in summaries:
        report["results"][str(summary.k)] = summary.to_dict()

    return report


def save_json_report(report: Dict[str, Any], output_path: str):
    """Save JSON report to file."""
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w") as f:
        json.dump(report, f, indent=2)


def load_json_report(path: str) -> Dict[str, Any]:
    with open(path, "r") as f:
        return json.load(f)
