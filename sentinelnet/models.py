"""Data records shared across the networking and learning components."""

from __future__ import annotations

import time
from dataclasses import dataclass, field


@dataclass
class FileInfo:
    """A tracked file with its content hash, origin device and version state."""

    path: str = ""
    hash: str = ""
    size: int = 0
    device_id: str = ""
    last_modified: str = field(default_factory=time.ctime)
    version: int = 1
    conflict_status: str = "none"


@dataclass
class PeerInfo:
    """A remote node reachable at ``address:port``."""

    id: str = ""
    address: str = ""
    port: int = 0
    latency: float = 0.0
    active: bool = True
    last_seen: str = ""


@dataclass
class StreamingSample:
    """One labelled sample fed to an online learner."""

    features: list[float] = field(default_factory=list)
    labels: list[float] = field(default_factory=list)
    source_id: str = ""
    timestamp: int = 0
    weight: float = 1.0


@dataclass
class TimeSeriesData:
    """A named metric sampled over time."""

    metric: str = ""
    values: list[float] = field(default_factory=list)
    timestamps: list[int] = field(default_factory=list)

    def add_point(self, value: float, timestamp: int) -> None:
        """Append one observation."""
        self.values.append(value)
        self.timestamps.append(timestamp)


@dataclass
class ForecastConfig:
    """Settings for a forecast: horizon, confidence and history length."""

    horizon: int = 10
    confidence: float = 0.95
    sequence_length: int = 50
    algorithm: str = "simple"


@dataclass
class MLModelMetadata:
    """Bookkeeping about a trained model."""

    model_id: str = ""
    model_type: str = ""
    version: int = 1
    accuracy: float = 0.0
    last_trained_timestamp: int = 0
    sample_count: int = 0