"""Recognising release PipelineRuns and filtering their events."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional

from .metadata import (
    FINAL_PIPELINE_TYPE,
    MANAGED_COLLECTORS_PIPELINE_TYPE,
    MANAGED_PIPELINE_TYPE,
    PIPELINES_TYPE_LABEL,
    TENANT_COLLECTORS_PIPELINE_TYPE,
    TENANT_PIPELINE_TYPE,
)
from .pipeline_run_builder import CONDITION_SUCCEEDED, PipelineRun

_RELEASE_PIPELINE_TYPES = frozenset(
    {
        TENANT_COLLECTORS_PIPELINE_TYPE,
        MANAGED_COLLECTORS_PIPELINE_TYPE,
        FINAL_PIPELINE_TYPE,
        MANAGED_PIPELINE_TYPE,
        TENANT_PIPELINE_TYPE,
    }
)


def is_release_pipeline_run(obj: Any) -> bool:
    """Return True if obj is a PipelineRun labelled as one of the release pipeline types."""
    if not isinstance(obj, PipelineRun):
        return False
    labels = obj.labels or {}
    return labels.get(PIPELINES_TYPE_LABEL) in _RELEASE_PIPELINE_TYPES


def has_pipeline_succeeded(obj: Any) -> bool:
    """Return True if obj is a PipelineRun whose Succeeded condition is no longer unknown."""
    if not isinstance(obj, PipelineRun):
        return False
    condition = obj.status.get_condition(CONDITION_SUCCEEDED)
    return condition is not None and not condition.is_unknown()


_EventFilter = Callable[[Any], bool]
_UpdateFilter = Callable[[Any, Any], bool]


@dataclass(frozen=True)
class Predicate:
    """Decides which object events are let through; a missing filter lets events through."""

    create_func: Optional[_EventFilter] = None
    delete_func: Optional[_EventFilter] = None
    generic_func: Optional[_EventFilter] = None
    update_func: Optional[_UpdateFilter] = None

    def create(self, obj: Any) -> bool:
        return True if self.create_func is None else self.create_func(obj)

    def delete(self, obj: Any) -> bool:
        return True if self.delete_func is None else self.delete_func(obj)

    def generic(self, obj: Any) -> bool:
        return True if self.generic_func is None else self.generic_func(obj)

    def update(self, old: Any, new: Any) -> bool:
        return True if self.update_func is None else self.update_func(old, new)


def release_pipeline_run_succeeded_predicate() -> Predicate:
    """Return a predicate letting through only updates of release PipelineRuns that finished."""
    return Predicate(
        create_func=lambda obj: False,
        delete_func=lambda obj: False,
        generic_func=lambda obj: False,
        update_func=lambda old, new: is_release_pipeline_run(new) and has_pipeline_succeeded(new),
    )