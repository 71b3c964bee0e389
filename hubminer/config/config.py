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

"""Configuration management using Pydantic models."""

from typing import Literal, Optional, Dict, Any, List
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings


class InputConfig(BaseModel):
    """Input configuration."""
    dataset_path: Optional[str] = Field(default=None, description="Path to dataset file (.npy/.npz/.csv/.parquet)")
    distance_matrix_path: Optional[str] = Field(default=None, description="Path to a precomputed distance matrix")
    label_column: Optional[str] = Field(default=None, description="Column holding class labels (tables)")
    dataset_name: Optional[str] = Field(default=None, description="Dataset name (defaults to the file stem)")
    normalize: bool = Field(default=False, description="Normalize float features to unit length")


class MetricConfig(BaseModel):
    """Primary metric configuration."""
    name: str = Field(default="euclidean", description="Registered metric name")
    params: Dict[str, Any] = Field(default_factory=dict, description="Metric parameters (e.g. p for minkowski)")
    combination: Literal["sum", "euclidean"] = Field(default="sum", description="Rule combining feature-block distances")
    kernel: Optional[str] = Field(default=None, description="Kernel replacing the float metric")
    kernel_params: Dict[str, Any] = Field(default_factory=dict, description="Kernel parameters (e.g. sigma)")


class DistanceConfig(BaseModel):
    """Distance matrix configuration."""
    num_threads: int = Field(default=1, ge=1, description="Worker threads")
    dtype: Literal["float32", "float64"] = Field(default="float64", description="Storage dtype of distances")
    max_matrix_bytes: Optional[int] = Field(default=None, ge=1, description="Memory budget per distance matrix")
    cache_dir: Optional[str] = Field(default=None, description="Directory of the distance matrix cache")
    normalization: str = Field(default="none", description="Normalization name used as cache key")


class NeighborConfig(BaseModel):
    """Neighbor set configuration."""
    k: int = Field(default=10, ge=1, description="Neighborhood size")
    k_values: List[int] = Field(default_factory=list, description="Additional neighborhood sizes to analyze")
    top_hubs: int = Field(default=10, ge=0, description="Number of top hubs to report")

    @field_validator("k_values")
    @classmethod
    def validate_k_values(cls, v: List[int]) -> List[int]:
        """Validate that every k is positive."""
        if any(k < 1 for k in v):
            raise ValueError("k_values must all be positive")
        return v

    def all_k(self) -> List[int]:
        """Distinct neighborhood sizes in ascending order."""
        return sorted(set([self.k] + list(self.k_values)))


class SecondaryConfig(BaseModel):
    """Secondary distance configuration."""
    method: Optional[Literal["mutual_proximity", "local_scaling", "nicdm", "simcos", "simhub"]] = Field(
        default=None,
        description="Secondary distance method"
    )
    k: int = Field(default=10, ge=1, description="Neighborhood size of the secondary method")
    theta: float = Field(default=1.0, ge=0.0, description="Weight exponent for simhub")
    sample_size: Optional[int] = Field(default=None, ge=1, description="Sample size for fast mutual proximity")
    seed: int = Field(default=42, description="Random seed")

    def params(self) -> Dict[str, Any]:
        """Parameters for the registered secondary method."""
        if self.method == "mutual_proximity":
            return {"sample_size": self.sample_size, "seed": self.seed}
        if self.method in ("local_scaling", "nicdm", "simcos"):
            return {"k": self.k}
        if self.method == "simhub":
            return {"k": self.k, "theta": self.theta}
        return {}


class OutputConfig(BaseModel):
    """Output configuration."""
    out_dir: str = Field(default="reports/", description="Output directory")
    save_distance_matrix: bool = Field(default=False, description="Write the primary distance matrix")


class Config(BaseSettings):
    """Main configuration model."""
    input: InputConfig = Field(default_factory=InputConfig)
    metric: MetricConfig = Field(default_factory=MetricConfig)
    distances: DistanceConfig = Field(default_factory=DistanceConfig)
    neighbors: NeighborConfig = Field(default_factory=NeighborConfig)
    secondary: SecondaryConfig = Field(default_factory=SecondaryConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)

    @classmethod
    def from_yaml(cls, path: str) -> "Config":
        """Load configuration from YAML file."""
        import yaml
        with open(path, "r") as f:
            data = yaml.safe_load(f)
        return cls(**(data or {}))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return self.model_dump()
