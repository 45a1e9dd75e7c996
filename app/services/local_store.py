"""
In-process data store that mimics the subset of the Firestore client we use.
Replaces Firestore when no Firebase credentials are found, and backs the
test suite. Optionally persists each collection as JSON so data survives
process restarts.
"""

import copy
import json
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

from google.api_core.exceptions import AlreadyExists, InvalidArgument, NotFound
from google.cloud import firestore
from google.cloud.firestore_v1 import FieldFilter

from app.utils.logger import get_logger

logger = get_logger(__name__)

_MISSING = object()


def _json_serial(obj):
    """JSON serializer for objects not serializable by default."""
    if isinstance(obj, datetime):
        return {"__datetime__": obj.isoformat()}
    raise TypeError(f"Type {type(obj)} not serializable")


def _json_restore(obj: dict):
    if "__datetime__" in obj and len(obj) == 1:
        return datetime.fromisoformat(obj["__datetime__"])
    return obj


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _get_path(data: Optional[dict], field_path: str, default=_MISSING):
    """Resolve a dotted field path inside a document."""
    current: Any = data
    for part in field_path.split("."):
        if not isinstance(current, dict) or part not in current:
            return default
        current = current[part]
    return current


def _resolve(value: Any, current: Any) -> Any:
    """Apply Firestore write transforms against the current field value."""
    if value is firestore.SERVER_TIMESTAMP:
        return _now()
    if isinstance(value, firestore.Increment):
        base = current if isinstance(current, (int, float)) and not isinstance(current, bool) else 0
        return base + value.value
    if isinstance(value, firestore.ArrayUnion):
        result = list(current) if isinstance(current, list) else []
        for item in value.values:
            if item not in result:
                result.append(item)
        return result
    if isinstance(value, firestore.ArrayRemove):
        result = list(current) if isinstance(current, list) else []
        return [item for item in result if item not in value.values]
    if isinstance(value, dict):
        base = current if isinstance(current, dict) else {}
        return {k: _resolve(v, base.get(k)) for k, v in value.items()}
    if isinstance(value, list):
        return [_resolve(v, None) for v in value]
    return copy.deepcopy(value)


def _write_field(doc: dict, parts: List[str], value: Any) -> None:
    """Write (or delete) a value at a nested path, creating maps as needed."""
    target = doc
    for part in parts[:-1]:
        if not isinstance(target.get(part), dict):
            target[part] = {}
        target = target[part]
    leaf = parts[-1]
    if value is firestore.DELETE_FIELD:
        target.pop(leaf, None)
        return
    target[leaf] = _resolve(value, target.get(leaf))


def _deep_merge(doc: dict, data: dict) -> None:
    for key, value in data.items():
        if isinstance(value, dict) and isinstance(doc.get(key), dict):
            _deep_merge(doc[key], value)
        else:
            _write_field(doc, [key], value)


def _matches(doc: dict, field_path: str, op: str, value: Any) -> bool:
    doc_val = _get_path(doc, field_path)
    if doc_val is _MISSING:
        return False
    try:
        if op == "==":
            return doc_val == value
        if op == "!=":
            return doc_val != value
        if op == "<":
            return doc_val < value
        if op == "<=":
            return doc_val <= value
        if op == ">":
            return doc_val > value
        if op == ">=":
            return doc_val >= value
        if op == "in":
            return doc_val in value
        if op == "not-in":
            return doc_val not in value
        if op == "array_contains":
            return isinstance(doc_val, list) and value in doc_val
        if op == "array_contains_any":
            return isinstance(doc_val, list) and any(v in doc_val for v in value)
    except TypeError:
        return False
    raise ValueError(f"Unsupported filter operator: {op}")


class LocalStore:
    """File-backed data store that mimics Firestore operations."""

    def __init__(self, data_dir: Optional[str] = None):
        self.collections: Dict[str, Dict[str, dict]] = {}
        self._lock = threading.RLock()
        self._listeners: List["_Watch"] = []

        self._data_dir = Path(data_dir) if data_dir else None
        if self._data_dir is not None:
            self._data_dir.mkdir(parents=True, exist_ok=True)
            self._load_data()

    # ── Persistence ─────────────────────────────────────────────

    def _file_for(self, path: str) -> Path:
        return self._data_dir / f"{path.replace('/', '~')}.json"

    def _load_data(self):
        """Load every persisted collection from the data dir."""
        for file in sorted(self._data_dir.glob("*.json")):
            path = file.stem.replace("~", "/")
            with open(file) as f:
                self.collections[path] = json.load(f, object_hook=_json_restore)
        logger.info(
            "LocalStore loaded %d collections from %s", len(self.collections), self._data_dir
        )

    def _persist(self, path: str):
        """Write a collection to disk after a write operation."""
        if self._data_dir is None:
            return
        try:
            with open(self._file_for(path), "w") as f:
                json.dump(self.collections.get(path, {}), f, indent=2, default=_json_serial)
        except OSError as e:
            logger.warning("LocalStore persist failed for %s: %s", path, e)

    # ── Client API ──────────────────────────────────────────────

    def collection(self, name: str) -> "CollectionRef":
        return CollectionRef(self, name)

    def document(self, path: str) -> "DocumentRef":
        collection_path, _, doc_id = path.rpartition("/")
        return CollectionRef(self, collection_path).document(doc_id)

    def batch(self) -> "WriteBatch":
        return WriteBatch(self)

    def _docs(self, path: str) -> Dict[str, dict]:
        return self.collections.setdefault(path, {})

    def _commit(self, writes: List[Tuple[str, "DocumentRef", Optional[dict], bool]]) -> None:
        """Apply writes atomically, then notify listeners of the touched collections."""
        touched = set()
        with self._lock:
            for kind, ref, _, _ in writes:
                exists = ref.id in self._docs(ref._collection_path)
                if kind == "update" and not exists:
                    raise NotFound(f"No document to update: {ref.path}")
                if kind == "create" and exists:
                    raise AlreadyExists(f"Document already exists: {ref.path}")
            for kind, ref, data, merge in writes:
                docs = self._docs(ref._collection_path)
                if kind in ("set", "create"):
                    if merge and ref.id in docs:
                        _deep_merge(docs[ref.id], data)
                    else:
                        fresh: dict = {}
                        _deep_merge(fresh, data)
                        docs[ref.id] = fresh
                elif kind == "update":
                    for key, value in data.items():
                        _write_field(docs[ref.id], key.split("."), value)
                elif kind == "delete":
                    docs.pop(ref.id, None)
                touched.add(ref._collection_path)
            for path in touched:
                self._persist(path)
            listeners = [w for w in self._listeners if w.path in touched]
        for watch in listeners:
            watch.fire()

    def _register(self, watch: "_Watch") -> "_Watch":
        with self._lock:
            self._listeners.append(watch)
        watch.fire()
        return watch

    def _unregister(self, watch: "_Watch") -> None:
        with self._lock:
            if watch in self._listeners:
                self._listeners.remove(watch)


class _Watch:
    """Mimics the Watch handle returned by Firestore's on_snapshot."""

    def __init__(self, store: LocalStore, path: str, snapshot: Callable[[], list], callback: Callable):
        self._store = store
        self.path = path
        self._snapshot = snapshot
        self._callback = callback
        self._active = True

    def fire(self) -> None:
        if not self._active:
            return
        try:
            self._callback(self._snapshot(), [], _now())
        except Exception as e:
            logger.error(f"Snapshot listener on {self.path} failed: {e}", exc_info=True)

    def unsubscribe(self) -> None:
        self._active = False
        self._store._unregister(self)


class Query:
    """Mimics a Firestore query: immutable filters, ordering and paging."""

    def __init__(
        self,
        store: LocalStore,
        path: str,
        filters: Tuple = (),
        orders: Tuple = (),
        limit_val: Optional[int] = None,
        offset_val: int = 0,
    ):
        self._store = store
        self._path = path
        self._filters = filters
        self._orders = orders
        self._limit_val = limit_val
        self._offset_val = offset_val

    def _copy(self, **changes) -> "Query":
        params = {
            "filters": self._filters,
            "orders": self._orders,
            "limit_val": self._limit_val,
            "offset_val": self._offset_val,
        }
        params.update(changes)
        return Query(self._store, self._path, **params)

    def where(self, field_path: Optional[str] = None, op_string: Optional[str] = None, value=None, *, filter: Optional[FieldFilter] = None) -> "Query":
        if filter is not None:
            field_path, op_string, value = filter.field_path, filter.op_string, filter.value
        return self._copy(filters=self._filters + ((field_path, op_string, value),))

    def order_by(self, field_path: str, direction: str = "ASCENDING") -> "Query":
        return self._copy(orders=self._orders + ((field_path, direction),))

    def limit(self, count: int) -> "Query":
        return self._copy(limit_val=count)

    def offset(self, num_to_skip: int) -> "Query":
        return self._copy(offset_val=num_to_skip)

    def get(self) -> List["DocumentSnapshot"]:
        with self._store._lock:
            items = list(self._store._docs(self._path).items())
            results = [(doc_id, copy.deepcopy(doc)) for doc_id, doc in items]

        for field_path, op, value in self._filters:
            results = [(i, d) for i, d in results if _matches(d, field_path, op, value)]

        # Firestore drops documents missing an ordered field
        for field_path, _ in self._orders:
            results = [(i, d) for i, d in results if _get_path(d, field_path) is not _MISSING]
        for field_path, direction in reversed(self._orders):
            def sort_key(item, field_path=field_path):
                val = _get_path(item[1], field_path)
                return (val is not None, val if val is not None else 0)
            try:
                results.sort(key=sort_key, reverse=direction == firestore.Query.DESCENDING)
            except TypeError:
                logger.warning("Mixed types while ordering %s by %s", self._path, field_path)

        if self._offset_val:
            results = results[self._offset_val:]
        if self._limit_val is not None:
            results = results[: self._limit_val]

        return [
            DocumentSnapshot(CollectionRef(self._store, self._path).document(doc_id), data)
            for doc_id, data in results
        ]

    def stream(self):
        return iter(self.get())

    def on_snapshot(self, callback: Callable) -> _Watch:
        return self._store._register(_Watch(self._store, self._path, self.get, callback))


class CollectionRef(Query):
    """Mimics Firestore collection reference."""

    def __init__(self, store: LocalStore, path: str):
        super().__init__(store, path)

    @property
    def id(self) -> str:
        return self._path.rsplit("/", 1)[-1]

    def document(self, doc_id: Optional[str] = None) -> "DocumentRef":
        return DocumentRef(self._store, self._path, doc_id or uuid.uuid4().hex[:20])

    def add(self, data: dict, document_id: Optional[str] = None) -> Tuple[datetime, "DocumentRef"]:
        ref = self.document(document_id)
        ref.set(data)
        return _now(), ref

    def list_documents(self) -> List["DocumentRef"]:
        with self._store._lock:
            ids = list(self._store._docs(self._path).keys())
        return [self.document(doc_id) for doc_id in ids]


class DocumentRef:
    """Mimics Firestore document reference."""

    def __init__(self, store: LocalStore, collection_path: str, doc_id: str):
        self._store = store
        self._collection_path = collection_path
        self._id = doc_id

    @property
    def id(self) -> str:
        return self._id

    @property
    def path(self) -> str:
        return f"{self._collection_path}/{self._id}"

    def collection(self, name: str) -> CollectionRef:
        return CollectionRef(self._store, f"{self.path}/{name}")

    def get(self) -> "DocumentSnapshot":
        with self._store._lock:
            doc = self._store._docs(self._collection_path).get(self._id)
            return DocumentSnapshot(self, copy.deepcopy(doc) if doc is not None else None)

    def create(self, data: dict):
        """Write a new document; fails with AlreadyExists if it is already there."""
        self._store._commit([("create", self, data, False)])

    def set(self, data: dict, merge: bool = False):
        self._store._commit([("set", self, data, merge)])

    def update(self, data: dict):
        self._store._commit([("update", self, data, False)])

    def delete(self):
        self._store._commit([("delete", self, None, False)])

    def on_snapshot(self, callback: Callable) -> _Watch:
        return self._store._register(
            _Watch(self._store, self._collection_path, lambda: [self.get()], callback)
        )

    def __eq__(self, other) -> bool:
        return isinstance(other, DocumentRef) and other.path == self.path

    def __hash__(self) -> int:
        return hash(self.path)


class DocumentSnapshot:
    """Mimics Firestore document snapshot."""

    def __init__(self, reference: DocumentRef, data: Optional[dict]):
        self.reference = reference
        self.id = reference.id
        self._data = data

    @property
    def exists(self) -> bool:
        return self._data is not None

    def to_dict(self) -> Optional[dict]:
        return copy.deepcopy(self._data) if self._data is not None else None

    def get(self, field_path: str, default=None):
        value = _get_path(self._data, field_path)
        return default if value is _MISSING else value


# Firestore rejects a commit with more writes than this.
MAX_BATCH_WRITES = 500


class WriteBatch:
    """Mimics a Firestore write batch: queued writes applied on commit."""

    def __init__(self, store: LocalStore):
        self._store = store
        self._writes: List[Tuple[str, DocumentRef, Optional[dict], bool]] = []

    def set(self, reference: DocumentRef, document_data: dict, merge: bool = False):
        self._writes.append(("set", reference, document_data, merge))

    def update(self, reference: DocumentRef, field_updates: dict):
        self._writes.append(("update", reference, field_updates, False))

    def delete(self, reference: DocumentRef):
        self._writes.append(("delete", reference, None, False))

    def commit(self):
        writes, self._writes = self._writes, []
        if len(writes) > MAX_BATCH_WRITES:
            raise InvalidArgument(f"maximum {MAX_BATCH_WRITES} writes allowed per request, got {len(writes)}")
        self._store._commit(writes)
        return []


# ── Singleton ────────────────────────────────────────────────────

_local_store: Optional[LocalStore] = None


def get_local_store(data_dir: Optional[str] = None) -> LocalStore:
    """Get or create the singleton LocalStore instance."""
    global _local_store
    if _local_store is None:
        _local_store = LocalStore(data_dir)
    return _local_store
