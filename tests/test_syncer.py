import logging

import pytest

from releaseflow.metadata import ObjectMeta
from releaseflow.syncer import AlreadyExistsError, Snapshot, Syncer

TARGET_NAMESPACE = "syncer"


class FakeClient:
    def __init__(self, fail_with=None):
        self.objects = {}
        self.contexts = []
        self.fail_with = fail_with

    def create(self, context, obj):
        self.contexts.append(context)
        if self.fail_with is not None:
            raise self.fail_with
        key = (obj.namespace, obj.name)
        if key in self.objects:
            raise AlreadyExistsError(f"{obj.namespace}/{obj.name} already exists")
        self.objects[key] = obj
        return obj


@pytest.fixture
def snapshot():
    return Snapshot(
        metadata=ObjectMeta(
            name="snapshot-abc",
            namespace="default",
            annotations={"foo": "bar"},
            labels={"foo": "bar"},
        ),
        spec={
            "application": "app",
            "components": [{"name": "foo", "containerImage": "quay.io/foo"}],
        },
    )


def test_syncer_without_context():
    syncer = Syncer(FakeClient())
    assert syncer.context is None


def test_syncer_with_context():
    context = {"key": "bar"}
    syncer = Syncer(FakeClient(), context=context)
    assert syncer.context == {"key": "bar"}


def test_set_context_replaces_context():
    syncer = Syncer(FakeClient(), context={"key": "bar"})
    assert syncer.context["key"] == "bar"
    syncer.set_context({})
    assert syncer.context.get("key") is None


def test_sync_snapshot_into_namespace(snapshot):
    client = FakeClient()
    syncer = Syncer(client)

    syncer.sync_snapshot(snapshot, TARGET_NAMESPACE)

    synced = client.objects[(TARGET_NAMESPACE, snapshot.name)]
    assert len(synced.annotations) == len(snapshot.annotations)
    assert len(synced.labels) == len(snapshot.labels)
    assert synced.spec["application"] == snapshot.spec["application"]
    assert len(synced.spec["components"]) == len(snapshot.spec["components"])


def test_sync_snapshot_leaves_original_untouched(snapshot):
    synced = Syncer(FakeClient()).sync_snapshot(snapshot, TARGET_NAMESPACE)
    assert snapshot.namespace == "default"
    assert synced.namespace == TARGET_NAMESPACE
    synced.spec["components"].append({"name": "bar"})
    assert len(snapshot.spec["components"]) == 1


def test_sync_snapshot_uses_context(snapshot):
    client = FakeClient()
    Syncer(client, context="ctx").sync_snapshot(snapshot, TARGET_NAMESPACE)
    assert client.contexts == ["ctx"]


def test_sync_snapshot_existing_is_not_an_error(snapshot):
    client = FakeClient()
    syncer = Syncer(client)
    syncer.sync_snapshot(snapshot, TARGET_NAMESPACE)
    result = syncer.sync_snapshot(snapshot, TARGET_NAMESPACE)
    assert result.namespace == TARGET_NAMESPACE
    assert len(client.objects) == 1


def test_sync_snapshot_propagates_other_errors(snapshot):
    syncer = Syncer(FakeClient(fail_with=RuntimeError("boom")))
    with pytest.raises(RuntimeError, match="boom"):
        syncer.sync_snapshot(snapshot, TARGET_NAMESPACE)


def test_sync_snapshot_logs(snapshot, caplog):
    logger = logging.getLogger("test-syncer")
    with caplog.at_level(logging.INFO, logger="test-syncer"):
        Syncer(FakeClient(), logger).sync_snapshot(snapshot, TARGET_NAMESPACE)
    assert "Snapshot synced" in caplog.text
    assert TARGET_NAMESPACE in caplog.text