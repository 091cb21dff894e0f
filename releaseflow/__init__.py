"""Release pipeline helpers: metadata, metrics, PipelineRun building, predicates and syncing."""

__version__ = "0.1.0"
__all__ = ["metadata", "metrics", "pipeline", "pipeline_run_builder", "tekton", "syncer"]