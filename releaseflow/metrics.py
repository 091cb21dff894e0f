"""Release metrics kept in memory and exposed in the Prometheus text format."""

from __future__ import annotations

import bisect
import math
from abc import ABC, abstractmethod
from datetime import datetime
from itertools import accumulate
from typing import Any, Iterator, Mapping, NamedTuple, Sequence


class Sample(NamedTuple):
    name: str
    labels: dict[str, str]
    value: float


class Histogram:
    """A set of cumulative buckets with a running sum and count."""

    def __init__(self, buckets: Sequence[float]):
        bounds = sorted(float(b) for b in buckets)
        if len(set(bounds)) != len(bounds):
            raise ValueError("histogram buckets must be unique")
        self.buckets = tuple(bounds)
        self._counts = [0] * len(bounds)
        self.sum = 0.0
        self.count = 0

    def observe(self, value: float) -> None:
        index = bisect.bisect_left(self.buckets, value)
        if index < len(self.buckets):
            self._counts[index] += 1
        self.sum += value
        self.count += 1

    @property
    def bucket_counts(self) -> list[tuple[float, int]]:
        """Cumulative counts per upper bound, ending with +Inf."""
        pairs = list(zip(self.buckets, accumulate(self._counts)))
        pairs.append((math.inf, self.count))
        return pairs


class _Gauge:
    def __init__(self) -> None:
        self.value = 0.0

    def inc(self, amount: float = 1.0) -> None:
        self.value += amount

    def dec(self, amount: float = 1.0) -> None:
        self.value -= amount

    def set(self, value: float) -> None:
        self.value = float(value)


class _Counter:
    def __init__(self) -> None:
        self.value = 0.0

    def inc(self, amount: float = 1.0) -> None:
        if amount < 0:
            raise ValueError("counters can only increase")
        self.value += amount


class MetricVec(ABC):
    """A family of metrics distinguished by label values."""

    kind = "untyped"

    def __init__(self, name: str, help: str, label_names: Sequence[str] = ()):
        self.name = name
        self.help = help
        self.label_names = tuple(label_names)
        self._children: dict[tuple[str, ...], Any] = {}

    @abstractmethod
    def _new_child(self) -> Any:
        """Create the metric held for one set of label values."""

    @abstractmethod
    def _samples(self, labels: dict[str, str], child: Any) -> Iterator[Sample]:
        """Yield the samples of one child."""

    def labels(self, *args: str) -> Any:
        if len(args) != len(self.label_names):
            raise ValueError(
                f"{self.name}: expected {len(self.label_names)} label values, got {len(args)}"
            )
        key = tuple(str(a) for a in args)
        child = self._children.get(key)
        if child is None:
            child = self._children[key] = self._new_child()
        return child

    def with_labels(self, labels: Mapping[str, str]) -> Any:
        if set(labels) != set(self.label_names):
            raise ValueError(
                f"{self.name}: labels {sorted(labels)} do not match {list(self.label_names)}"
            )
        return self.labels(*(labels[name] for name in self.label_names))

    def reset(self) -> None:
        self._children.clear()

    def collect(self) -> Iterator[Sample]:
        for key in sorted(self._children):
            yield from self._samples(dict(zip(self.label_names, key)), self._children[key])


class GaugeVec(MetricVec):
    kind = "gauge"

    def _new_child(self) -> _Gauge:
        return _Gauge()

    def _samples(self, labels: dict[str, str], child: _Gauge) -> Iterator[Sample]:
        yield Sample(self.name, labels, child.value)

    def value(self, *args: str) -> float:
        return self.labels(*args).value


class CounterVec(MetricVec):
    kind = "counter"

    def _new_child(self) -> _Counter:
        return _Counter()

    def _samples(self, labels: dict[str, str], child: _Counter) -> Iterator[Sample]:
        yield Sample(self.name, labels, child.value)

    def value(self, *args: str) -> float:
        return self.labels(*args).value


class HistogramVec(MetricVec):
    kind = "histogram"

    def __init__(self, name: str, help: str, label_names: Sequence[str], buckets: Sequence[float]):
        super().__init__(name, help, label_names)
        self.buckets = tuple(buckets)

    def _new_child(self) -> Histogram:
        return Histogram(self.buckets)

    def _samples(self, labels: dict[str, str], child: Histogram) -> Iterator[Sample]:
        for bound, count in child.bucket_counts:
            yield Sample(f"{self.name}_bucket", {**labels, "le": _format_value(bound)}, count)
        yield Sample(f"{self.name}_sum", labels, child.sum)
        yield Sample(f"{self.name}_count", labels, child.count)


def _format_value(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def _escape_label(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")


def _format_labels(labels: Mapping[str, str]) -> str:
    if not labels:
        return ""
    return "{" + ",".join(f'{k}="{_escape_label(v)}"' for k, v in labels.items()) + "}"


class Registry:
    """Collects metric families and renders them as exposition text."""

    def __init__(self) -> None:
        self._metrics: dict[str, MetricVec] = {}

    def register(self, *args: MetricVec) -> None:
        for metric in args:
            if metric.name in self._metrics:
                raise ValueError(f"metric {metric.name!r} is already registered")
            self._metrics[metric.name] = metric

    def expose(self) -> str:
        lines: list[str] = []
        for name in sorted(self._metrics):
            metric = self._metrics[name]
            samples = list(metric.collect())
            if not samples:
                continue
            help_text = metric.help.replace("\\", "\\\\").replace("\n", "\\n")
            lines.append(f"# HELP {name} {help_text}")
            lines.append(f"# TYPE {name} {metric.kind}")
            lines.extend(
                f"{s.name}{_format_labels(s.labels)} {_format_value(s.value)}" for s in samples
            )
        return "\n".join(lines) + "\n" if lines else ""


_SHORT_BUCKETS = (5, 10, 15, 30, 45, 60, 90, 120, 180, 240, 300)
_LONG_BUCKETS = (60, 150, 300, 450, 600, 750, 900, 1050, 1200, 1800, 3600)

RELEASE_PRE_PROCESSING_DURATION_SECONDS_LABELS = ("reason", "target", "type")
RELEASE_VALIDATION_DURATION_SECONDS_LABELS = ("reason", "target")
RELEASE_PROCESSING_DURATION_SECONDS_LABELS = ("reason", "target", "type")
# Kept in alphabetical order.
RELEASE_DURATION_SECONDS_LABELS = (
    "final_pipeline_processing_reason",
    "managed_collectors_pipeline_processing_reason",
    "managed_pipeline_processing_reason",
    "release_reason",
    "target",
    "tenant_collectors_pipeline_processing_reason",
    "tenant_pipeline_processing_reason",
    "validation_reason",
)
RELEASE_TOTAL_LABELS = RELEASE_DURATION_SECONDS_LABELS

RELEASE_CONCURRENT_TOTAL = GaugeVec(
    "release_concurrent_total", "Total number of concurrent release attempts"
)
RELEASE_CONCURRENT_PROCESSINGS_TOTAL = GaugeVec(
    "release_concurrent_processings_total",
    "Total number of concurrent release processing attempts",
)
RELEASE_PRE_PROCESSING_DURATION_SECONDS = HistogramVec(
    "release_pre_processing_duration_seconds",
    "How long in seconds a Release takes to start processing",
    RELEASE_PRE_PROCESSING_DURATION_SECONDS_LABELS,
    _SHORT_BUCKETS,
)
RELEASE_VALIDATION_DURATION_SECONDS = HistogramVec(
    "release_validation_duration_seconds",
    "How long in seconds a Release takes to validate",
    RELEASE_VALIDATION_DURATION_SECONDS_LABELS,
    _SHORT_BUCKETS,
)
RELEASE_DURATION_SECONDS = HistogramVec(
    "release_duration_seconds",
    "How long in seconds a Release takes to complete",
    RELEASE_DURATION_SECONDS_LABELS,
    _LONG_BUCKETS,
)
RELEASE_PROCESSING_DURATION_SECONDS = HistogramVec(
    "release_processing_duration_seconds",
    "How long in seconds a Release processing takes to complete",
    RELEASE_PROCESSING_DURATION_SECONDS_LABELS,
    _LONG_BUCKETS,
)
RELEASE_TOTAL = CounterVec(
    "release_total",
    "Total number of releases reconciled by the operator",
    RELEASE_TOTAL_LABELS,
)

_ALL_METRICS = (
    RELEASE_CONCURRENT_TOTAL,
    RELEASE_CONCURRENT_PROCESSINGS_TOTAL,
    RELEASE_PRE_PROCESSING_DURATION_SECONDS,
    RELEASE_VALIDATION_DURATION_SECONDS,
    RELEASE_DURATION_SECONDS,
    RELEASE_PROCESSING_DURATION_SECONDS,
    RELEASE_TOTAL,
)

REGISTRY = Registry()
REGISTRY.register(*_ALL_METRICS)


def _seconds_between(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds()


def register_completed_release(
    start_time: datetime | None,
    completion_time: datetime | None,
    tenant_collectors_processing_reason: str,
    tenant_processing_reason: str,
    managed_collectors_processing_reason: str,
    managed_processing_reason: str,
    final_processing_reason: str,
    release_reason: str,
    target: str,
    validation_reason: str,
) -> None:
    """Record a finished Release; does nothing if either time is missing."""
    if start_time is None or completion_time is None:
        return
    labels = {
        "tenant_collectors_pipeline_processing_reason": tenant_collectors_processing_reason,
        "tenant_pipeline_processing_reason": tenant_processing_reason,
        "managed_collectors_pipeline_processing_reason": managed_collectors_processing_reason,
        "managed_pipeline_processing_reason": managed_processing_reason,
        "final_pipeline_processing_reason": final_processing_reason,
        "release_reason": release_reason,
        "target": target,
        "validation_reason": validation_reason,
    }
    RELEASE_CONCURRENT_TOTAL.labels().dec()
    RELEASE_DURATION_SECONDS.with_labels(labels).observe(
        _seconds_between(start_time, completion_time)
    )
    RELEASE_TOTAL.with_labels(labels).inc()


def register_completed_release_pipeline_processing(
    start_time: datetime | None,
    completion_time: datetime | None,
    reason: str,
    target: str,
    pipeline_type: str,
) -> None:
    """Record a finished pipeline processing; does nothing if either time is missing."""
    if start_time is None or completion_time is None:
        return
    RELEASE_PROCESSING_DURATION_SECONDS.with_labels(
        {"reason": reason, "target": target, "type": pipeline_type}
    ).observe(_seconds_between(start_time, completion_time))
    RELEASE_CONCURRENT_PROCESSINGS_TOTAL.labels().dec()


def register_validated_release(
    start_time: datetime | None,
    validation_time: datetime | None,
    reason: str,
    target: str,
) -> None:
    """Record a Release validation; does nothing if either time is missing."""
    if validation_time is None or start_time is None:
        return
    RELEASE_VALIDATION_DURATION_SECONDS.with_labels({"reason": reason, "target": target}).observe(
        _seconds_between(start_time, validation_time)
    )


def register_new_release() -> None:
    """Count one more concurrent Release."""
    RELEASE_CONCURRENT_TOTAL.labels().inc()


def register_new_release_pipeline_processing(
    start_time: datetime | None,
    processing_start_time: datetime | None,
    reason: str,
    target: str,
    pipeline_type: str,
) -> None:
    """Record the start of a pipeline processing; does nothing if either time is missing."""
    if start_time is None or processing_start_time is None:
        return
    RELEASE_PRE_PROCESSING_DURATION_SECONDS.with_labels(
        {"reason": reason, "target": target, "type": pipeline_type}
    ).observe(_seconds_between(start_time, processing_start_time))
    RELEASE_CONCURRENT_PROCESSINGS_TOTAL.labels().inc()


def reset_all() -> None:
    """Clear every release metric."""
    for metric in _ALL_METRICS:
        metric.reset()