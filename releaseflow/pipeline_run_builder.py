"""PipelineRun objects and a fluent builder that assembles them."""

from __future__ import annotations

import dataclasses
import json
import re
from dataclasses import dataclass, field
from fractions import Fraction
from typing import Any, Iterable, Sequence

from .metadata import KubeObject
from .pipeline import ParamValue, TektonParam, TektonPipelineRef, TimeoutFields

CONDITION_SUCCEEDED = "Succeeded"
STATUS_TRUE = "True"
STATUS_FALSE = "False"
STATUS_UNKNOWN = "Unknown"

OWNER_NAMESPACED_NAME_ANNOTATION = "operator-sdk/primary-resource"
OWNER_TYPE_ANNOTATION = "operator-sdk/primary-resource-type"

READ_WRITE_ONCE = "ReadWriteOnce"

_QUANTITY_PATTERN = re.compile(
    r"([+-]?)(\d+(?:\.\d*)?|\.\d+)(Ki|Mi|Gi|Ti|Pi|Ei|[numkMGTPE]|[eE][+-]?\d+)?"
)
_BINARY = {"Ki": 1, "Mi": 2, "Gi": 3, "Ti": 4, "Pi": 5, "Ei": 6}
_DECIMAL = {"n": -9, "u": -6, "m": -3, "k": 3, "M": 6, "G": 9, "T": 12, "P": 15, "E": 18}


@dataclass(frozen=True)
class Quantity:
    """A resource quantity such as 5Gi or 100m."""

    amount: Fraction
    text: str = field(compare=False)

    @classmethod
    def parse(cls, text: str) -> "Quantity":
        """Parse a quantity; raise ValueError if the text is not one."""
        match = _QUANTITY_PATTERN.fullmatch(text)
        if match is None:
            raise ValueError(f"unable to parse quantity {text!r}")
        sign, number, suffix = match.groups()
        amount = Fraction(number)
        if suffix in _BINARY:
            amount *= 1024 ** _BINARY[suffix]
        elif suffix in _DECIMAL:
            amount *= Fraction(10) ** _DECIMAL[suffix]
        elif suffix:
            amount *= Fraction(10) ** int(suffix[1:])
        if sign == "-":
            amount = -amount
        return cls(amount, text.lstrip("+"))

    def __str__(self) -> str:
        return self.text


@dataclass
class Condition:
    """A status condition of a PipelineRun."""

    type: str
    status: str = STATUS_UNKNOWN
    reason: str = ""
    message: str = ""

    def is_unknown(self) -> bool:
        return self.status == STATUS_UNKNOWN


@dataclass
class WorkspaceBinding:
    """A workspace backed either by an emptyDir or by a volume claim template."""

    name: str
    empty_dir_size_limit: Quantity | None = None
    volume_claim_storage: Quantity | None = None
    volume_claim_access_modes: tuple[str, ...] = ()


@dataclass
class PipelineRunSpec:
    pipeline_ref: TektonPipelineRef | None = None
    params: list[TektonParam] = field(default_factory=list)
    service_account_name: str = ""
    task_run_specs: list[Any] = field(default_factory=list)
    timeouts: TimeoutFields | None = None
    workspaces: list[WorkspaceBinding] = field(default_factory=list)


@dataclass
class PipelineRunStatus:
    conditions: list[Condition] = field(default_factory=list)

    def get_condition(self, condition_type: str) -> Condition | None:
        """Return the condition of the given type, or None."""
        return next((c for c in self.conditions if c.type == condition_type), None)

    def _set_succeeded(self, status: str, reason: str, message: str) -> None:
        condition = Condition(CONDITION_SUCCEEDED, status, reason, message)
        self.conditions = [c for c in self.conditions if c.type != CONDITION_SUCCEEDED]
        self.conditions.append(condition)

    def mark_running(self, reason: str, message: str) -> None:
        self._set_succeeded(STATUS_UNKNOWN, reason, message)

    def mark_succeeded(self, reason: str, message: str) -> None:
        self._set_succeeded(STATUS_TRUE, reason, message)

    def mark_failed(self, reason: str, message: str) -> None:
        self._set_succeeded(STATUS_FALSE, reason, message)


@dataclass
class PipelineRun(KubeObject):
    kind: str = "PipelineRun"
    api_version: str = "tekton.dev/v1"
    spec: PipelineRunSpec = field(default_factory=PipelineRunSpec)
    status: PipelineRunStatus = field(default_factory=PipelineRunStatus)


class BuildError(Exception):
    """Every problem met while building a PipelineRun."""

    def __init__(self, errors: Iterable[Exception]):
        self.errors = tuple(errors)
        count = len(self.errors)
        heading = "1 error occurred:" if count == 1 else f"{count} errors occurred:"
        body = "".join(f"\n\t* {error}" for error in self.errors)
        super().__init__(f"{heading}{body}\n\n")


def _param_name(obj: KubeObject) -> str:
    kind = obj.kind
    if not kind:
        raise ValueError("object has no kind")
    return kind[0].lower() + kind[1:]


def _jsonable(spec: Any) -> Any:
    if dataclasses.is_dataclass(spec) and not isinstance(spec, type):
        return dataclasses.asdict(spec)
    return spec


_MISSING = object()


class PipelineRunBuilder:
    """Assembles a PipelineRun step by step, collecting errors until build()."""

    def __init__(self, name_prefix: str, namespace: str):
        self._errors: list[Exception] = []
        self._pipeline_run = PipelineRun()
        self._pipeline_run.metadata.generate_name = f"{name_prefix}-"
        self._pipeline_run.metadata.namespace = namespace

    @property
    def pipeline_run(self) -> PipelineRun:
        """The PipelineRun as built so far."""
        return self._pipeline_run

    @property
    def errors(self) -> tuple[Exception, ...]:
        return tuple(self._errors)

    def build(self) -> PipelineRun:
        """Return the PipelineRun, raising BuildError if any step failed."""
        if self._errors:
            raise BuildError(self._errors)
        return self._pipeline_run

    def with_annotations(self, annotations: dict[str, str]) -> "PipelineRunBuilder":
        meta = self._pipeline_run.metadata
        meta.annotations = {**(meta.annotations or {}), **annotations}
        return self

    def with_empty_dir_volume(self, name: str, size: str) -> "PipelineRunBuilder":
        try:
            quantity = Quantity.parse(size)
        except ValueError as exc:
            self._errors.append(ValueError(f"invalid size format: {exc}"))
            return self
        self._pipeline_run.spec.workspaces.append(
            WorkspaceBinding(name, empty_dir_size_limit=quantity)
        )
        return self

    def with_finalizer(self, finalizer: str) -> "PipelineRunBuilder":
        finalizers = self._pipeline_run.metadata.finalizers
        if finalizer not in finalizers:
            finalizers.append(finalizer)
        return self

    def with_labels(self, labels: dict[str, str]) -> "PipelineRunBuilder":
        meta = self._pipeline_run.metadata
        meta.labels = {**(meta.labels or {}), **labels}
        return self

    def with_object_references(self, *args: KubeObject) -> "PipelineRunBuilder":
        """Add a parameter per object, named after its kind and valued namespace/name."""
        for obj in args:
            self.with_params(
                TektonParam(_param_name(obj), ParamValue(f"{obj.namespace}/{obj.name}"))
            )
        return self

    def with_object_specs_as_json(self, *args: KubeObject) -> "PipelineRunBuilder":
        """Add a parameter per object holding its spec as JSON."""
        for obj in args:
            name = _param_name(obj)
            spec = getattr(obj, "spec", _MISSING)
            if spec is _MISSING:
                self._errors.append(ValueError(f"failed to extract spec for object: {name}"))
                continue
            try:
                data = json.dumps(_jsonable(spec), separators=(",", ":"))
            except (TypeError, ValueError) as exc:
                self._errors.append(
                    ValueError(f"failed to serialize spec of object {name} to JSON: {exc}")
                )
                continue
            self.with_params(TektonParam(name, ParamValue(data)))
        return self

    def with_owner(self, obj: KubeObject) -> "PipelineRunBuilder":
        """Record obj as the owner of the PipelineRun through annotations."""
        owner_type = type(obj).__name__
        if not obj.name:
            self._errors.append(
                ValueError(
                    f"failed to set owner annotations: {owner_type} does not have a name"
                )
            )
            return self
        if not obj.kind:
            self._errors.append(
                ValueError(
                    f"failed to set owner annotations: {owner_type} does not have a Kind"
                )
            )
            return self
        group = obj.api_version.split("/", 1)[0] if "/" in obj.api_version else ""
        group_kind = f"{obj.kind}.{group}" if group else obj.kind
        meta = self._pipeline_run.metadata
        meta.annotations = {
            **(meta.annotations or {}),
            OWNER_NAMESPACED_NAME_ANNOTATION: f"{obj.namespace}/{obj.name}",
            OWNER_TYPE_ANNOTATION: group_kind,
        }
        return self

    def with_params(self, *args: TektonParam) -> "PipelineRunBuilder":
        self._pipeline_run.spec.params.extend(args)
        return self

    def with_params_from_config_map(self, config_map: Any, keys: Sequence[str]) -> "PipelineRunBuilder":
        """Add a parameter for each key present in the config map's data."""
        if config_map is None:
            return self
        data = config_map.data or {}
        return self.with_params(
            *(TektonParam(key, ParamValue(data[key])) for key in keys if key in data)
        )

    def with_pipeline_ref(self, pipeline_ref: TektonPipelineRef) -> "PipelineRunBuilder":
        """Set the pipeline reference; git references also pass their url and revision on."""
        self._pipeline_run.spec.pipeline_ref = pipeline_ref
        if pipeline_ref.resolver_ref.resolver == "git":
            for param in pipeline_ref.resolver_ref.params:
                if param.name == "revision":
                    self.with_params(
                        TektonParam("taskGitRevision", ParamValue(param.value.string_val))
                    )
                if param.name == "url":
                    self.with_params(TektonParam("taskGitUrl", ParamValue(param.value.string_val)))
        return self

    def with_service_account(self, service_account: str) -> "PipelineRunBuilder":
        self._pipeline_run.spec.service_account_name = service_account
        return self

    def with_task_run_specs(self, *args: Any) -> "PipelineRunBuilder":
        self._pipeline_run.spec.task_run_specs = list(args)
        return self

    def with_timeouts(
        self, timeouts: TimeoutFields | None, default_timeouts: TimeoutFields | None
    ) -> "PipelineRunBuilder":
        """Use timeouts, or default_timeouts when timeouts is missing or empty."""
        if timeouts is None or timeouts.is_empty():
            self._pipeline_run.spec.timeouts = default_timeouts
        else:
            self._pipeline_run.spec.timeouts = timeouts
        return self

    def with_workspace_from_volume_template(self, name: str, size: str) -> "PipelineRunBuilder":
        try:
            quantity = Quantity.parse(size)
        except ValueError as exc:
            self._errors.append(ValueError(f"invalid size format: {exc}"))
            return self
        self._pipeline_run.spec.workspaces.append(
            WorkspaceBinding(
                name,
                volume_claim_storage=quantity,
                volume_claim_access_modes=(READ_WRITE_ONCE,),
            )
        )
        return self