import pytest

from releaseflow.metadata import (
    PIPELINES_TYPE_LABEL,
    RELEASE_FINALIZER,
    KubeObject,
    ObjectMeta,
    add_annotations,
    add_entries,
    add_labels,
    filter_by_prefix,
    get_annotations_with_prefix,
    get_labels_with_prefix,
    safe_copy,
)


@pytest.fixture
def source():
    return {"pet/dog": "bark", "pet/cat": "meow", "pond/frog": "ribit"}


def test_add_entries_into_empty_destination(source):
    dst = {}
    add_entries(source, dst)
    assert dst == {"pet/dog": "bark", "pet/cat": "meow", "pond/frog": "ribit"}
    assert len(dst) == len(source)


def test_add_entries_keeps_existing_keys(source):
    dst = {"pet/dog": "howl"}
    add_entries(source, dst)
    assert dst["pet/dog"] == "howl"
    assert dst["pet/cat"] == "meow"
    assert dst["pond/frog"] == "ribit"
    assert len(dst) == 3


def test_filter_by_prefix_empty_prefix_returns_same_map(source):
    dst = filter_by_prefix(source, "")
    assert dst is source
    assert dst["pet/dog"] == "bark"
    assert len(dst) == len(source)


def test_filter_by_prefix_non_empty(source):
    dst = filter_by_prefix(source, "pond")
    assert dst == {"pond/frog": "ribit"}


def test_filter_by_prefix_none_entries():
    assert filter_by_prefix(None, "pet") == {}


def test_safe_copy_new_key():
    dst = {"foo/dog": "bark"}
    safe_copy(dst, "foo/cat", "meow")
    assert dst == {"foo/dog": "bark", "foo/cat": "meow"}


def test_safe_copy_existing_key():
    dst = {"foo/dog": "bark"}
    safe_copy(dst, "foo/dog", "meow")
    assert dst == {"foo/dog": "bark"}


def test_add_annotations_creates_map():
    obj = KubeObject(metadata=ObjectMeta())
    add_annotations(obj, {})
    assert obj.annotations == {}
    assert obj.labels is None


def test_add_labels_creates_map():
    obj = KubeObject(metadata=ObjectMeta())
    add_labels(obj, {})
    assert obj.labels == {}
    assert obj.annotations is None


def test_add_labels_does_not_overwrite():
    obj = KubeObject(metadata=ObjectMeta(labels={"a": "1"}))
    add_labels(obj, {"a": "2", "b": "3"})
    assert obj.labels == {"a": "1", "b": "3"}


def test_get_annotations_with_prefix():
    obj = KubeObject(metadata=ObjectMeta(annotations={"pet/dog": "bark"}, labels={"foo": "bar"}))
    dst = get_annotations_with_prefix(obj, "pet/")
    assert dst["pet/dog"] == "bark"
    assert "foo" not in dst


def test_get_labels_with_prefix():
    obj = KubeObject(metadata=ObjectMeta(annotations={"foo": "bar"}, labels={"pet/dog": "bark"}))
    dst = get_labels_with_prefix(obj, "pet/")
    assert dst["pet/dog"] == "bark"
    assert "foo" not in dst


def test_pipelines_type_label_is_found_by_its_prefix():
    obj = KubeObject(metadata=ObjectMeta())
    add_labels(obj, {PIPELINES_TYPE_LABEL: "managed", "other": "x"})
    dst = get_labels_with_prefix(obj, "pipelines.appstudio.openshift.io/")
    assert dst == {"pipelines.appstudio.openshift.io/type": "managed"}


def test_release_finalizer_is_found_by_its_prefix():
    entries = {RELEASE_FINALIZER: "set", "unrelated/key": "y"}
    dst = filter_by_prefix(entries, "appstudio.redhat.com/")
    assert dst == {"appstudio.redhat.com/release-finalizer": "set"}