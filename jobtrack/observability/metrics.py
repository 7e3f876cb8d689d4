from __future__ import annotations

import random
from collections.abc import Awaitable, Callable, Iterator, Mapping
from contextlib import contextmanager
from dataclasses import asdict, dataclass, field
from threading import Lock
from time import perf_counter
from typing import Any, Literal, TypeVar

from jobtrack.observability.clock import elapsed_ms
from jobtrack.observability.ports import LoggerPort, MetricsSinkPort


T = TypeVar("T")

MetricUnit = Literal["ms", "bytes", "count"]


@dataclass(frozen=True)
class PerformanceMetric:
    name: str
    value: float
    unit: MetricUnit
    tags: Mapping[str, str] = field(default_factory=dict)


@dataclass
class _MetricAgg:
    unit: str
    count: int = 0
    sum: float = 0.0
    max: float = 0.0

    def observe(self, value: float) -> None:
        self.count += 1
        self.sum += float(value)
        if value > self.max:
            self.max = float(value)


class InMemoryMetrics:
    """Thread-safe, process-local metrics sink (resets on restart).

    Aggregates count/sum/max per metric name; tags are not kept.
    """

    def __init__(self) -> None:
        self._lock = Lock()
        self._aggs: dict[str, _MetricAgg] = {}

    def write(self, metric: PerformanceMetric) -> None:
        with self._lock:
            agg = self._aggs.get(metric.name)
            if agg is None:
                agg = self._aggs[metric.name] = _MetricAgg(unit=metric.unit)
            agg.observe(metric.value)

    def snapshot(self) -> dict[str, Any]:
        with self._lock:
            return {name: asdict(agg) for name, agg in sorted(self._aggs.items())}

    def reset(self) -> None:
        with self._lock:
            self._aggs.clear()


@dataclass
class Timing:
    """Filled in by ``PerformanceMonitor.timer`` when the block exits."""

    name: str
    elapsed_ms: float | None = None
    success: bool | None = None
    error: str | None = None


class PerformanceMonitor:
    """Records named measurements and times operations.

    Stateless apart from its collaborators: every measurement is handed to the
    logger and the sink as it is taken.
    """

    def __init__(
        self,
        logger: LoggerPort,
        sink: MetricsSinkPort | None = None,
        *,
        production: bool = False,
        thresholds_ms: Mapping[str, float] | None = None,
        default_threshold_ms: float = 1000.0,
        breadcrumb_sample_rate: float = 0.05,
        metrics_sample_rate: float = 0.1,
        sampler: Callable[[], float] = random.random,
    ) -> None:
        self._logger = logger
        self._sink = sink
        self._production = production
        self._thresholds = dict(thresholds_ms or {})
        self._default_threshold = default_threshold_ms
        self._breadcrumb_sample_rate = breadcrumb_sample_rate
        self._metrics_sample_rate = metrics_sample_rate
        self._sample = sampler

    def threshold_for(self, name: str) -> float:
        return self._thresholds.get(name, self._default_threshold)

    def track_metric(self, metric: PerformanceMetric) -> None:
        self._logger.info(f"Metric: {metric.name}", {"value": metric.value, "unit": metric.unit, **metric.tags})
        if self._sink is not None:
            try:
                self._sink.write(metric)
            except Exception as exc:
                self._logger.warn("Metrics sink write failed", {"metric": metric.name, "error": f"{type(exc).__name__}: {exc}"})

        if self._production and metric.value > 0 and self._sample() < self._metrics_sample_rate:
            self._logger.breadcrumb(
                "metric",
                f"{metric.name}: {metric.value}{metric.unit}",
                {"name": metric.name, "value": metric.value, "unit": metric.unit, "tags": dict(metric.tags)},
            )

    @contextmanager
    def timer(self, name: str, context: Mapping[str, Any] | None = None) -> Iterator[Timing]:
        """Time the enclosed block; exactly one ``ms`` metric is emitted on every exit path."""

        timing = Timing(name=name)
        start = perf_counter()
        try:
            yield timing
            timing.success = True
        except BaseException as exc:
            timing.success = False
            timing.error = str(exc)
            raise
        finally:
            timing.elapsed_ms = elapsed_ms(start)
            self._record_timing(timing, context or {})

    async def time_async(
        self,
        name: str,
        operation: Callable[[], Awaitable[T]],
        context: Mapping[str, Any] | None = None,
    ) -> T:
        with self.timer(name, context):
            return await operation()

    def _record_timing(self, timing: Timing, context: Mapping[str, Any]) -> None:
        duration = timing.elapsed_ms or 0.0
        success = "true" if timing.success else "false"
        self.track_metric(PerformanceMetric(name=timing.name, value=duration, unit="ms", tags={"success": success}))

        threshold = self.threshold_for(timing.name)
        slow = duration > threshold
        if slow:
            warn_context = {"duration": round(duration), "threshold": threshold, **context}
            if timing.error is not None:
                warn_context["error"] = timing.error
            self._logger.warn(f"Slow operation detected: {timing.name}", warn_context)

        if not self._production:
            return
        if slow:
            self._logger.alert(f"Slow operation: {timing.name} ({round(duration)}ms)", level="warning")
        if self._sample() < self._breadcrumb_sample_rate:
            self._logger.breadcrumb(
                "performance",
                f"{timing.name} completed",
                {"duration": round(duration), "operation": timing.name},
            )
