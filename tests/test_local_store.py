"""The LocalStore's Firestore semantics."""

from datetime import datetime

import pytest
from google.api_core.exceptions import AlreadyExists, InvalidArgument, NotFound
from google.cloud import firestore
from google.cloud.firestore_v1 import FieldFilter

from app.services.local_store import LocalStore


@pytest.fixture
def db():
    return LocalStore()


def test_set_and_get(db):
    db.collection("things").document("a").set({"name": "A", "count": 1})
    snapshot = db.collection("things").document("a").get()
    assert snapshot.exists
    assert snapshot.to_dict() == {"name": "A", "count": 1}
    assert not db.collection("things").document("b").get().exists


def test_write_transforms(db):
    ref = db.collection("things").document("a")
    ref.set({"count": 1, "tags": ["x"], "created_at": firestore.SERVER_TIMESTAMP})
    ref.update({
        "count": firestore.Increment(2),
        "tags": firestore.ArrayUnion(["x", "y"]),
        "nested.value": 5,
    })
    data = ref.get().to_dict()
    assert data["count"] == 3
    assert data["tags"] == ["x", "y"]
    assert data["nested"] == {"value": 5}
    assert isinstance(data["created_at"], datetime)

    ref.update({"tags": firestore.ArrayRemove(["x"])})
    assert ref.get().to_dict()["tags"] == ["y"]


def test_merge_set_keeps_other_fields(db):
    ref = db.collection("things").document("a")
    ref.set({"a": 1, "map": {"x": 1}})
    ref.set({"b": 2, "map": {"y": 2}}, merge=True)
    assert ref.get().to_dict() == {"a": 1, "b": 2, "map": {"x": 1, "y": 2}}


def test_create_and_update_errors(db):
    ref = db.collection("things").document("a")
    ref.create({"a": 1})
    with pytest.raises(AlreadyExists):
        ref.create({"a": 2})
    with pytest.raises(NotFound):
        db.collection("things").document("missing").update({"a": 1})


def test_query_filters_order_and_limit(db):
    things = db.collection("things")
    for name, score in [("a", 3), ("b", 1), ("c", 2), ("d", 5)]:
        things.document(name).set({"score": score, "members": [name]})

    docs = (
        things.where(filter=FieldFilter("score", ">", 1))
        .order_by("score", direction=firestore.Query.DESCENDING)
        .limit(2)
        .get()
    )
    assert [doc.id for doc in docs] == ["d", "a"]

    contains = things.where(filter=FieldFilter("members", "array_contains", "c")).get()
    assert [doc.id for doc in contains] == ["c"]


def test_ordering_drops_documents_without_the_field(db):
    things = db.collection("things")
    things.document("a").set({"score": 1})
    things.document("b").set({"other": True})
    assert [doc.id for doc in things.order_by("score").get()] == ["a"]


def test_batch_is_applied_on_commit(db):
    things = db.collection("things")
    batch = db.batch()
    batch.set(things.document("a"), {"n": 1})
    batch.set(things.document("b"), {"n": 2})
    assert things.get() == []
    batch.commit()
    assert len(things.get()) == 2


def test_batch_rejects_more_than_500_writes(db):
    things = db.collection("things")
    batch = db.batch()
    for i in range(501):
        batch.set(things.document(f"t{i}"), {"n": i})
    with pytest.raises(InvalidArgument):
        batch.commit()
    assert things.get() == []


def test_subcollections_are_separate(db):
    parent = db.collection("posts").document("p1")
    parent.set({"title": "hello"})
    parent.collection("comments").add({"text": "hi"})
    assert len(db.collection("posts").get()) == 1
    assert len(parent.collection("comments").get()) == 1


def test_on_snapshot_fires_on_register_and_on_write(db):
    seen = []
    watch = db.collection("things").on_snapshot(lambda docs, changes, read_time: seen.append(len(docs)))
    db.collection("things").document("a").set({"n": 1})
    db.collection("other").document("x").set({"n": 1})
    assert seen == [0, 1]

    watch.unsubscribe()
    db.collection("things").document("b").set({"n": 2})
    assert seen == [0, 1]


def test_persists_to_data_dir(tmp_path):
    first = LocalStore(str(tmp_path))
    first.collection("things").document("a").set({"n": 1, "at": firestore.SERVER_TIMESTAMP})
    first.collection("posts").document("p").collection("comments").document("c").set({"t": "x"})

    second = LocalStore(str(tmp_path))
    data = second.collection("things").document("a").get().to_dict()
    assert data["n"] == 1
    assert isinstance(data["at"], datetime)
    assert second.collection("posts").document("p").collection("comments").document("c").get().exists
