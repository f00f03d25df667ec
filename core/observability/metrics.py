"""
Metrics Collection for the Map Reconciliation Pipeline

Collects and exposes metrics for:
- Pass lifecycle (started, completed, failed)
- Source volumes (rows loaded per logical source)
- Reconciliation output (maps and invoices produced)
- Processing times per stage (average, p95)

Metrics live in memory only; nothing is carried across process restarts.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from threading import Lock
from typing import Dict, List, Optional, Any
import statistics


# =============================================================================
# Metric Data Classes
# =============================================================================

@dataclass
class PassMetrics:
    """Metrics for reconciliation passes."""
    started: int = 0
    completed: int = 0
    failed: int = 0
    in_progress: int = 0
    last_completed_at: Optional[datetime] = None
    last_error: Optional[str] = None


@dataclass
class VolumeMetrics:
    """Row and record volumes seen by the most recent passes."""
    maps_reconciled: int = 0
    invoices_classified: int = 0

    # Rows loaded per logical source in the last pass that supplied it
    rows_by_source: Dict[str, int] = field(default_factory=dict)


@dataclass
class TimingMetrics:
    """Processing time metrics."""
    samples: List[float] = field(default_factory=list)
    max_samples: int = 1000

    by_stage: Dict[str, List[float]] = field(default_factory=lambda: defaultdict(list))

    def add_sample(self, duration_ms: float, stage: str = None):
        """Add a timing sample."""
        self.samples.append(duration_ms)
        if len(self.samples) > self.max_samples:
            self.samples = self.samples[-self.max_samples:]

        if stage:
            self.by_stage[stage].append(duration_ms)
            if len(self.by_stage[stage]) > self.max_samples:
                self.by_stage[stage] = self.by_stage[stage][-self.max_samples:]

    def get_average(self, stage: str = None) -> float:
        """Get average processing time."""
        samples = self.by_stage.get(stage, []) if stage else self.samples
        return statistics.mean(samples) if samples else 0.0

    def get_p95(self, stage: str = None) -> float:
        """Get 95th percentile processing time."""
        samples = self.by_stage.get(stage, []) if stage else self.samples
        if not samples:
            return 0.0
        sorted_samples = sorted(samples)
        idx = int(len(sorted_samples) * 0.95)
        return sorted_samples[min(idx, len(sorted_samples) - 1)]


# =============================================================================
# Metrics Collector (Singleton)
# =============================================================================

class MetricsCollector:
    """
    Thread-safe metrics collector for reconciliation passes.

    Usage:
        metrics = MetricsCollector.instance()
        metrics.record_pass_started(pass_id)
        metrics.record_pass_completed(pass_id, duration_ms=42.0, maps=120, invoices=830)
    """

    _instance: Optional["MetricsCollector"] = None
    _lock = Lock()

    def __init__(self):
        self.passes = PassMetrics()
        self.volumes = VolumeMetrics()
        self.timings = TimingMetrics()
        self._lock = Lock()

    @classmethod
    def instance(cls) -> "MetricsCollector":
        """Get singleton instance."""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = cls()
        return cls._instance

    # =========================================================================
    # Pass Metrics
    # =========================================================================

    def record_pass_started(self, pass_id: str):
        """Record a pass start."""
        with self._lock:
            self.passes.started += 1
            self.passes.in_progress += 1

    def record_pass_completed(
        self,
        pass_id: str,
        duration_ms: float = None,
        maps: int = 0,
        invoices: int = 0,
    ):
        """Record a pass completion."""
        with self._lock:
            self.passes.completed += 1
            self.passes.in_progress = max(0, self.passes.in_progress - 1)
            self.passes.last_completed_at = datetime.utcnow()
            self.volumes.maps_reconciled += maps
            self.volumes.invoices_classified += invoices

            if duration_ms:
                self.timings.add_sample(duration_ms, "pass")

    def record_pass_failed(self, pass_id: str, error: str = None):
        """Record a pass failure."""
        with self._lock:
            self.passes.failed += 1
            self.passes.in_progress = max(0, self.passes.in_progress - 1)
            self.passes.last_error = error

    def record_source_rows(self, source_name: str, rows: int):
        """Record how many data rows a source contributed to a pass."""
        with self._lock:
            self.volumes.rows_by_source[source_name] = rows

    # =========================================================================
    # Timing Metrics
    # =========================================================================

    def record_processing_time(self, stage: str, duration_ms: float):
        """Record a processing time sample."""
        with self._lock:
            self.timings.add_sample(duration_ms, stage)

    def get_timing_stats(self, stage: str = None) -> Dict[str, float]:
        """Get timing statistics for a stage."""
        with self._lock:
            return {
                "average_ms": self.timings.get_average(stage),
                "p95_ms": self.timings.get_p95(stage),
                "sample_count": len(self.timings.by_stage.get(stage, []) if stage else self.timings.samples),
            }

    # =========================================================================
    # Summary
    # =========================================================================

    def get_summary(self) -> Dict[str, Any]:
        """Get a summary of all metrics."""
        with self._lock:
            last_completed = self.passes.last_completed_at
            return {
                "passes": {
                    "started": self.passes.started,
                    "completed": self.passes.completed,
                    "failed": self.passes.failed,
                    "in_progress": self.passes.in_progress,
                    "last_completed_at": last_completed.isoformat() if last_completed else None,
                    "last_error": self.passes.last_error,
                },
                "volumes": {
                    "maps_reconciled": self.volumes.maps_reconciled,
                    "invoices_classified": self.volumes.invoices_classified,
                    "rows_by_source": dict(self.volumes.rows_by_source),
                },
                "timings": {
                    "overall": {
                        "average_ms": self.timings.get_average(),
                        "p95_ms": self.timings.get_p95(),
                    },
                    "by_stage": {
                        stage: {
                            "average_ms": self.timings.get_average(stage),
                            "p95_ms": self.timings.get_p95(stage),
                        }
                        for stage in self.timings.by_stage.keys()
                    },
                },
            }


# =============================================================================
# Module-level convenience functions
# =============================================================================

def get_metrics() -> MetricsCollector:
    """Get the global metrics collector."""
    return MetricsCollector.instance()


def record_pass_started(pass_id: str):
    """Record a pass start."""
    get_metrics().record_pass_started(pass_id)


def record_pass_completed(pass_id: str, duration_ms: float = None, maps: int = 0, invoices: int = 0):
    """Record a pass completion."""
    get_metrics().record_pass_completed(pass_id, duration_ms, maps, invoices)


def record_pass_failed(pass_id: str, error: str = None):
    """Record a pass failure."""
    get_metrics().record_pass_failed(pass_id, error)


def record_source_rows(source_name: str, rows: int):
    """Record rows loaded for a source."""
    get_metrics().record_source_rows(source_name, rows)


def record_processing_time(stage: str, duration_ms: float):
    """Record a processing time sample."""
    get_metrics().record_processing_time(stage, duration_ms)
