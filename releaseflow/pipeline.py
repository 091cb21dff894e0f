"""Pipeline references, resolver parameters and their Tekton forms."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any

PARAM_TYPE_STRING = "string"

GIT_RESOLVER = "git"
CLUSTER_RESOLVER = "cluster"


@dataclass
class ParamValue:
    """The value of a Tekton parameter."""

    string_val: str = ""
    type: str = PARAM_TYPE_STRING


@dataclass
class TektonParam:
    """A named parameter as Tekton expects it."""

    name: str
    value: ParamValue = field(default_factory=ParamValue)


@dataclass
class ResolverRef:
    """A resolver name and the parameters handed to it."""

    resolver: str = ""
    params: list[TektonParam] = field(default_factory=list)


@dataclass
class TektonPipelineRef:
    """Tekton's reference to a Pipeline, either by name or through a resolver."""

    name: str = ""
    api_version: str = ""
    resolver_ref: ResolverRef = field(default_factory=ResolverRef)


@dataclass
class TimeoutFields:
    """Timeouts for the whole pipeline, its tasks and its finally tasks."""

    pipeline: timedelta | None = None
    tasks: timedelta | None = None
    finally_: timedelta | None = None

    def is_empty(self) -> bool:
        """Return True when no timeout is set."""
        return self.pipeline is None and self.tasks is None and self.finally_ is None


@dataclass
class Param:
    """A resolver parameter."""

    name: str
    value: str


@dataclass
class PipelineRef:
    """A reference to a Pipeline through a Tekton resolver."""

    resolver: str = ""
    params: list[Param] = field(default_factory=list)

    def get_git_resolver_params(self) -> tuple[str, str, str]:
        """Return url, revision and pathInRepo; raise ValueError if this is not a git reference."""
        if self.resolver != GIT_RESOLVER:
            raise ValueError("not a git ref")
        found = {"url": "", "revision": "", "pathInRepo": ""}
        for param in self.params:
            if param.name in found:
                found[param.name] = param.value
        return found["url"], found["revision"], found["pathInRepo"]

    def _first_value(self, name: str) -> str:
        for param in self.params:
            if param.name == name:
                return param.value
        raise LookupError(f"no {name} found")

    def get_revision(self) -> str:
        """Return the revision parameter; raise LookupError if there is none."""
        return self._first_value("revision")

    def get_url(self) -> str:
        """Return the url parameter; raise LookupError if there is none."""
        return self._first_value("url")

    def to_tekton_pipeline_ref(self) -> TektonPipelineRef:
        """Convert to Tekton's own pipeline reference."""
        return TektonPipelineRef(
            resolver_ref=ResolverRef(
                resolver=self.resolver,
                params=[TektonParam(p.name, ParamValue(p.value)) for p in self.params],
            )
        )

    def is_cluster_scoped(self) -> bool:
        """Return True when the cluster resolver is used."""
        return self.resolver == CLUSTER_RESOLVER


@dataclass
class Pipeline:
    """A pipeline reference with the service account, task specs and timeouts to run it with."""

    pipeline_ref: PipelineRef = field(default_factory=PipelineRef)
    service_account_name: str = ""
    task_run_specs: list[Any] = field(default_factory=list)
    timeouts: TimeoutFields = field(default_factory=TimeoutFields)


@dataclass
class ParameterizedPipeline(Pipeline):
    """A Pipeline together with the parameters passed to it."""

    params: list[Param] = field(default_factory=list)

    def get_tekton_params(self) -> list[TektonParam]:
        """Return the parameters as Tekton parameters."""
        return [TektonParam(p.name, ParamValue(p.value)) for p in self.params]