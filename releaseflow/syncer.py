"""Copying Snapshots from one namespace into another."""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol

from .metadata import KubeObject, ObjectMeta


class AlreadyExistsError(Exception):
    """Raised by a client when the object to create already exists."""


class _Client(Protocol):
    def create(self, context: Any, obj: KubeObject) -> Any:
        ...


@dataclass
class Snapshot(KubeObject):
    """A set of component images of an application."""

    kind: str = "Snapshot"
    api_version: str = "appstudio.redhat.com/v1alpha1"
    spec: dict[str, Any] = field(default_factory=dict)


class Syncer:
    """Creates copies of Snapshots in other namespaces through a client."""

    def __init__(
        self,
        client: _Client,
        logger: Optional[logging.Logger] = None,
        context: Any = None,
    ):
        self.client = client
        self.logger = logger or logging.getLogger(__name__)
        self.context = context

    def set_context(self, context: Any) -> None:
        """Use a new context for later client calls."""
        self.context = context

    def sync_snapshot(self, snapshot: Snapshot, namespace: str) -> Snapshot:
        """Create a copy of snapshot in namespace; an existing copy is left as it is."""
        synced = copy.deepcopy(snapshot)
        synced.metadata = ObjectMeta(
            name=snapshot.name,
            namespace=namespace,
            annotations=dict(snapshot.annotations) if snapshot.annotations is not None else None,
            labels=dict(snapshot.labels) if snapshot.labels is not None else None,
        )
        try:
            self.client.create(self.context, synced)
        except AlreadyExistsError:
            pass

        self.logger.info(
            "Snapshot synced: name=%s origin namespace=%s target namespace=%s",
            synced.name,
            snapshot.namespace,
            synced.namespace,
        )
        return synced