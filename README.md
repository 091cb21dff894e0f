# releaseflow

Building blocks for a release service that drives pipeline runs. The package
has no dependencies outside the standard library.

## Modules

- `releaseflow.metadata`: the label, annotation and finalizer names used
  across releases (for example `PIPELINES_TYPE_LABEL`, `MANAGED_PIPELINE_TYPE`,
  `RELEASE_FINALIZER`), the `ObjectMeta` and `KubeObject` dataclasses, and
  helpers for an object's labels and annotations:
  - `add_labels(obj, entries)` and `add_annotations(obj, entries)` create the
    map if it is `None` and copy entries in, never overwriting a key that is
    already there.
  - `get_labels_with_prefix(obj, prefix)` and
    `get_annotations_with_prefix(obj, prefix)` return the entries whose keys
    start with `prefix`; an empty prefix returns the map unchanged.
  - `add_entries`, `filter_by_prefix` and `safe_copy` do the same on plain
    dictionaries.
- `releaseflow.metrics`: in-process gauges, counters and histograms
  (`GaugeVec`, `CounterVec`, `HistogramVec`, `Histogram`) that track releases.
  Record events with `register_new_release`, `register_validated_release`,
  `register_new_release_pipeline_processing`,
  `register_completed_release_pipeline_processing` and
  `register_completed_release`. The functions that take times do nothing when
  either time is `None`. All release metrics are registered in
  `metrics.REGISTRY`; `Registry.expose()` renders them in the text exposition
  format, and `reset_all()` clears them.
- `releaseflow.pipeline`: pipeline references resolved through a resolver
  (`Param`, `PipelineRef`, `Pipeline`, `ParameterizedPipeline`,
  `TimeoutFields`) and their Tekton forms (`TektonPipelineRef`,
  `ResolverRef`, `TektonParam`, `ParamValue`).
  `PipelineRef.get_git_resolver_params()` raises `ValueError` for a reference
  that does not use the git resolver; `get_url()` and `get_revision()` raise
  `LookupError` when the parameter is missing.
- `releaseflow.pipeline_run_builder`: the `PipelineRun` model and a fluent
  `PipelineRunBuilder`. Failed steps (such as an unparsable workspace size,
  checked by `Quantity.parse`) are collected and raised together as a
  `BuildError` by `build()`. A git pipeline reference also adds
  `taskGitUrl` and `taskGitRevision` parameters.
- `releaseflow.tekton`: `is_release_pipeline_run`, `has_pipeline_succeeded`,
  and `release_pipeline_run_succeeded_predicate()`, a `Predicate` that
  rejects create, delete and generic events and lets through only updates of
  release PipelineRuns whose `Succeeded` condition is no longer unknown.
- `releaseflow.syncer`: a `Syncer` that copies a `Snapshot` into another
  namespace through a client you supply. The client needs a
  `create(context, obj)` method and should raise `AlreadyExistsError` when the
  object exists; an existing copy is left as it is.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Example

```python
from releaseflow.metadata import PIPELINES_TYPE_LABEL, MANAGED_PIPELINE_TYPE
from releaseflow.pipeline import Param, PipelineRef
from releaseflow.pipeline_run_builder import PipelineRunBuilder
from releaseflow.tekton import release_pipeline_run_succeeded_predicate

ref = PipelineRef(
    resolver="git",
    params=[Param("url", "my-git-url"), Param("revision", "main")],
)

run = (
    PipelineRunBuilder("release", "default")
    .with_labels({PIPELINES_TYPE_LABEL: MANAGED_PIPELINE_TYPE})
    .with_pipeline_ref(ref.to_tekton_pipeline_ref())
    .with_workspace_from_volume_template("release-workspace", "1Gi")
    .with_service_account("release-service-account")
    .build()
)

run.status.mark_succeeded("Done", "All tasks finished")
assert release_pipeline_run_succeeded_predicate().update(run, run)
```

## What it does not do

The package holds objects in memory only. It does not talk to a cluster: it
has no API client, no controller or reconcile loop that watches and creates
PipelineRuns, and no HTTP endpoint that serves the metrics. Objects are
plain dataclasses, and creating them somewhere is left to the caller (as with
the client handed to `Syncer`).