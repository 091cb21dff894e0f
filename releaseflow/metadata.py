"""Labels, annotations and finalizers shared by release resources."""

from __future__ import annotations

from dataclasses import dataclass, field

RELEASE_FINALIZER = "appstudio.redhat.com/release-finalizer"

RHTAP_DOMAIN = "appstudio.openshift.io"
MAX_LABEL_LENGTH = 63
SERVICE_NAME = "release"

PIPELINES_AS_CODE_PREFIX = "pac.test.appstudio.openshift.io"

ATTRIBUTION_LABEL = f"release.{RHTAP_DOMAIN}/standing-attribution"
AUTO_RELEASE_LABEL = f"release.{RHTAP_DOMAIN}/auto-release"
AUTHOR_LABEL = f"release.{RHTAP_DOMAIN}/author"
AUTOMATED_LABEL = f"release.{RHTAP_DOMAIN}/automated"
BLOCK_RELEASES_LABEL = f"release.{RHTAP_DOMAIN}/block-releases"
SERVICE_NAME_LABEL = f"{RHTAP_DOMAIN}/service"
RELEASE_PLAN_ADMISSION_LABEL = f"release.{RHTAP_DOMAIN}/releasePlanAdmission"

_PIPELINES_LABEL_PREFIX = f"pipelines.{RHTAP_DOMAIN}"
_RELEASE_LABEL_PREFIX = f"release.{RHTAP_DOMAIN}"

APPLICATION_NAME_LABEL = f"{RHTAP_DOMAIN}/application"
MANAGED_COLLECTORS_PIPELINE_TYPE = "managed-collectors"
TENANT_COLLECTORS_PIPELINE_TYPE = "tenant-collectors"
FINAL_PIPELINE_TYPE = "final"
MANAGED_PIPELINE_TYPE = "managed"
TENANT_PIPELINE_TYPE = "tenant"
PIPELINES_TYPE_LABEL = f"{_PIPELINES_LABEL_PREFIX}/type"
RELEASE_NAME_LABEL = f"{_RELEASE_LABEL_PREFIX}/name"
RELEASE_NAMESPACE_LABEL = f"{_RELEASE_LABEL_PREFIX}/namespace"
RELEASE_SNAPSHOT_LABEL = f"{RHTAP_DOMAIN}/snapshot"


@dataclass
class ObjectMeta:
    """Metadata carried by every cluster object."""

    name: str = ""
    namespace: str = ""
    generate_name: str = ""
    labels: dict[str, str] | None = None
    annotations: dict[str, str] | None = None
    finalizers: list[str] = field(default_factory=list)


@dataclass
class KubeObject:
    """A cluster object identified by its kind and metadata."""

    kind: str = ""
    api_version: str = ""
    metadata: ObjectMeta = field(default_factory=ObjectMeta)

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def namespace(self) -> str:
        return self.metadata.namespace

    @property
    def labels(self) -> dict[str, str] | None:
        return self.metadata.labels

    @labels.setter
    def labels(self, value: dict[str, str] | None) -> None:
        self.metadata.labels = value

    @property
    def annotations(self) -> dict[str, str] | None:
        return self.metadata.annotations

    @annotations.setter
    def annotations(self, value: dict[str, str] | None) -> None:
        self.metadata.annotations = value


def add_annotations(obj: KubeObject, entries: dict[str, str]) -> None:
    """Copy entries into the object's annotations without overwriting existing keys."""
    if obj.annotations is None:
        obj.annotations = {}
    add_entries(entries, obj.annotations)


def add_labels(obj: KubeObject, entries: dict[str, str]) -> None:
    """Copy entries into the object's labels without overwriting existing keys."""
    if obj.labels is None:
        obj.labels = {}
    add_entries(entries, obj.labels)


def get_annotations_with_prefix(obj: KubeObject, prefix: str) -> dict[str, str] | None:
    """Return the annotations whose keys start with prefix."""
    return filter_by_prefix(obj.annotations, prefix)


def get_labels_with_prefix(obj: KubeObject, prefix: str) -> dict[str, str] | None:
    """Return the labels whose keys start with prefix."""
    return filter_by_prefix(obj.labels, prefix)


def add_entries(source: dict[str, str], destination: dict[str, str]) -> None:
    """Copy source pairs into destination, keeping keys already present there."""
    for key, val in source.items():
        safe_copy(destination, key, val)


def filter_by_prefix(entries: dict[str, str] | None, prefix: str) -> dict[str, str] | None:
    """Return the entries whose keys start with prefix; an empty prefix returns entries as is."""
    if not prefix:
        return entries
    return {key: val for key, val in (entries or {}).items() if key.startswith(prefix)}


def safe_copy(dst: dict[str, str], key: str, val: str) -> None:
    """Set key to val in dst unless the key is already present."""
    dst.setdefault(key, val)