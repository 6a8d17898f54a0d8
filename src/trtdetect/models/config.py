"""
Typed configuration models matching the YAML config structure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

DEFAULT_WARMUP_INDEX = 5


@dataclass
class BenchmarkConfig:
    """Benchmark configuration."""
    warmup_index: int = DEFAULT_WARMUP_INDEX

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "BenchmarkConfig":
        return cls(
            warmup_index=d.get("warmup_index", DEFAULT_WARMUP_INDEX),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "warmup_index": self.warmup_index,
        }


@dataclass
class Settings:
    """
    Complete application settings.

    This is a typed representation of the YAML config structure. Command
    line flags are kept separate (see RunnerConfig).
    """
    benchmark: BenchmarkConfig = field(default_factory=BenchmarkConfig)
    log_level: str = "INFO"
    log_path: Optional[str] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Settings":
        """Adapter: Create Settings from raw dictionary (e.g., from load_config)."""
        return cls(
            benchmark=BenchmarkConfig.from_dict(d.get("benchmark", {}) or {}),
            log_level=d.get("log_level", "INFO"),
            log_path=d.get("log_path"),
        )

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "benchmark": self.benchmark.to_dict(),
            "log_level": self.log_level,
        }
        if self.log_path:
            d["log_path"] = self.log_path
        return d
