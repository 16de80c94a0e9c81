"""
In-memory collection handle

Mirrors the subset of ``AsyncIOMotorCollection`` that ``SoftDeleteMiddleware``
calls, so the soft delete layer can run in tests and local tooling without a
MongoDB server. Query and update support covers the common operators only.
"""

import copy
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.errors import BulkWriteError, DuplicateKeyError, OperationFailure
from pymongo.results import InsertManyResult, InsertOneResult, UpdateResult

from mongo_soft_delete.utils.logging import get_logger

logger = get_logger(__name__)

ID_INDEX_NAME = "_id_"


def _is_operator_dict(value: Any) -> bool:
    return isinstance(value, Mapping) and bool(value) and all(str(k).startswith("$") for k in value)


def _get_values(doc: Any, parts: Sequence[str]) -> List[Any]:
    """Values found at a dotted path, descending into arrays of sub-documents"""
    if not parts:
        return [doc]
    head, rest = parts[0], parts[1:]
    if isinstance(doc, Mapping):
        if head in doc:
            return _get_values(doc[head], rest)
        return []
    if isinstance(doc, list):
        if head.isdigit():
            index = int(head)
            return _get_values(doc[index], rest) if index < len(doc) else []
        values = []
        for item in doc:
            if isinstance(item, Mapping):
                values.extend(_get_values(item, parts))
        return values
    return []


def _candidates(values: Iterable[Any]) -> List[Any]:
    out = []
    for value in values:
        out.append(value)
        if isinstance(value, list):
            out.extend(value)
    return out


def _equals(left: Any, right: Any) -> bool:
    # bool and int are different BSON types
    if isinstance(left, bool) != isinstance(right, bool):
        return False
    return left == right


def _matches_value(values: List[Any], expected: Any) -> bool:
    if expected is None and not values:
        return True
    return any(_equals(candidate, expected) for candidate in _candidates(values))


def _compare(values: List[Any], expected: Any, op: str) -> bool:
    for candidate in _candidates(values):
        if isinstance(candidate, bool) != isinstance(expected, bool):
            continue
        try:
            if op == "$gt" and candidate > expected:
                return True
            if op == "$gte" and candidate >= expected:
                return True
            if op == "$lt" and candidate < expected:
                return True
            if op == "$lte" and candidate <= expected:
                return True
        except TypeError:
            continue
    return False


def _matches_condition(values: List[Any], condition: Any) -> bool:
    if not _is_operator_dict(condition):
        return _matches_value(values, condition)

    for op, arg in condition.items():
        if op == "$eq":
            ok = _matches_value(values, arg)
        elif op == "$ne":
            ok = not _matches_value(values, arg)
        elif op in ("$gt", "$gte", "$lt", "$lte"):
            ok = _compare(values, arg, op)
        elif op == "$in":
            ok = any(_matches_value(values, item) for item in arg)
        elif op == "$nin":
            ok = not any(_matches_value(values, item) for item in arg)
        elif op == "$exists":
            ok = bool(values) == bool(arg)
        else:
            raise OperationFailure(f"unknown operator: {op}", code=2)
        if not ok:
            return False
    return True


def matches(doc: Mapping[str, Any], filter: Optional[Mapping[str, Any]]) -> bool:
    """Whether doc satisfies a MongoDB query filter"""
    for key, condition in (filter or {}).items():
        if key == "$and":
            if not all(matches(doc, sub) for sub in condition):
                return False
        elif key == "$or":
            if not any(matches(doc, sub) for sub in condition):
                return False
        elif key == "$nor":
            if any(matches(doc, sub) for sub in condition):
                return False
        elif key.startswith("$"):
            raise OperationFailure(f"unknown top level operator: {key}", code=2)
        elif not _matches_condition(_get_values(doc, key.split(".")), condition):
            return False
    return True


def _set_path(doc: Dict[str, Any], path: str, value: Any) -> None:
    parts = path.split(".")
    target = doc
    for part in parts[:-1]:
        target = target.setdefault(part, {})
    target[parts[-1]] = value


def _unset_path(doc: Dict[str, Any], path: str) -> None:
    parts = path.split(".")
    target = doc
    for part in parts[:-1]:
        target = target.get(part)
        if not isinstance(target, dict):
            return
    target.pop(parts[-1], None)


def apply_update(doc: Dict[str, Any], update: Mapping[str, Any]) -> bool:
    """Apply update operators to doc in place, return True if it changed"""
    if not update or not all(str(k).startswith("$") for k in update):
        raise ValueError("update only works with $ operators")

    before = copy.deepcopy(doc)
    for op, fields in update.items():
        if op == "$set":
            for path, value in fields.items():
                _set_path(doc, path, copy.deepcopy(value))
        elif op == "$unset":
            for path in fields:
                _unset_path(doc, path)
        elif op == "$inc":
            for path, amount in fields.items():
                current = _get_values(doc, path.split("."))
                _set_path(doc, path, (current[0] if current else 0) + amount)
        else:
            raise OperationFailure(f"Unknown modifier: {op}", code=9)
    return doc != before


def _sort_key_spec(key_or_list: Any, direction: Optional[int] = None) -> List[Tuple[str, int]]:
    if isinstance(key_or_list, str):
        return [(key_or_list, direction or 1)]
    if isinstance(key_or_list, Mapping):
        return list(key_or_list.items())
    return [(key, value) for key, value in key_or_list]


def _sort_documents(docs: List[Dict[str, Any]], spec: List[Tuple[str, int]]) -> List[Dict[str, Any]]:
    # Stable sorts applied from the least significant key
    for key, direction in reversed(spec):
        def sort_key(doc, key=key):
            values = _get_values(doc, key.split("."))
            return (0, "") if not values or values[0] is None else (1, values[0])
        docs = sorted(docs, key=sort_key, reverse=direction < 0)
    return docs


def _project(doc: Dict[str, Any], projection: Optional[Any]) -> Dict[str, Any]:
    if not projection:
        return doc
    if not isinstance(projection, Mapping):
        projection = {field: 1 for field in projection}
    include_id = bool(projection.get("_id", 1))
    fields = {k: v for k, v in projection.items() if k != "_id"}
    if fields and all(fields.values()):
        out = {k: doc[k] for k in fields if k in doc}
        if include_id and "_id" in doc:
            out = {"_id": doc["_id"], **out}
        return out
    out = {k: v for k, v in doc.items() if k not in fields}
    if not include_id:
        out.pop("_id", None)
    return out


class InMemoryCursor:
    """Async cursor over a snapshot of documents"""

    def __init__(self, documents: List[Dict[str, Any]], projection: Optional[Any] = None):
        self._documents = documents
        self._projection = projection
        self._sort: List[Tuple[str, int]] = []
        self._skip = 0
        self._limit = 0
        self._iterator = None

    def sort(self, key_or_list: Any, direction: Optional[int] = None) -> "InMemoryCursor":
        self._sort = _sort_key_spec(key_or_list, direction)
        return self

    def skip(self, skip: int) -> "InMemoryCursor":
        self._skip = skip
        return self

    def limit(self, limit: int) -> "InMemoryCursor":
        self._limit = abs(limit)
        return self

    def _materialize(self) -> List[Dict[str, Any]]:
        docs = _sort_documents(self._documents, self._sort) if self._sort else list(self._documents)
        docs = docs[self._skip:]
        if self._limit:
            docs = docs[:self._limit]
        return [copy.deepcopy(_project(doc, self._projection)) for doc in docs]

    async def to_list(self, length: Optional[int] = None) -> List[Dict[str, Any]]:
        docs = self._materialize()
        return docs[:length] if length else docs

    def __aiter__(self):
        self._iterator = iter(self._materialize())
        return self

    async def __anext__(self) -> Dict[str, Any]:
        try:
            return next(self._iterator)
        except StopIteration:
            raise StopAsyncIteration


class InMemoryCollection:
    """Collection handle storing documents in a list"""

    def __init__(self, name: str = "collection", documents: Optional[Iterable[Mapping[str, Any]]] = None):
        self.name = name
        self._documents: List[Dict[str, Any]] = []
        self._indexes: Dict[str, Dict[str, Any]] = {
            ID_INDEX_NAME: {"v": 2, "key": [("_id", 1)]},
        }
        for doc in documents or []:
            self._insert(dict(doc))

    def _insert(self, document: Dict[str, Any]) -> Any:
        if "_id" not in document:
            document["_id"] = ObjectId()
        if any(_equals(existing["_id"], document["_id"]) for existing in self._documents):
            raise DuplicateKeyError(
                f"E11000 duplicate key error collection: {self.name} index: _id_ dup key: {{ _id: {document['_id']!r} }}",
                code=11000,
            )
        self._documents.append(copy.deepcopy(document))
        return document["_id"]

    def _matching(self, filter: Optional[Mapping[str, Any]]) -> List[Dict[str, Any]]:
        return [doc for doc in self._documents if matches(doc, filter)]

    def find(
        self,
        filter: Optional[Mapping[str, Any]] = None,
        projection: Optional[Any] = None,
        *,
        skip: int = 0,
        limit: int = 0,
        sort: Optional[Any] = None,
        session: Any = None,
        comment: Any = None,
    ) -> InMemoryCursor:
        cursor = InMemoryCursor(self._matching(filter), projection).skip(skip).limit(limit)
        if sort:
            cursor.sort(sort)
        return cursor

    async def find_one(self, filter: Optional[Mapping[str, Any]] = None, *args, **kwargs) -> Optional[Dict[str, Any]]:
        docs = await self.find(filter, *args, **kwargs).limit(1).to_list()
        return docs[0] if docs else None

    async def count_documents(self, filter: Mapping[str, Any], session: Any = None, comment: Any = None) -> int:
        return len(self._matching(filter))

    async def update_one(
        self,
        filter: Mapping[str, Any],
        update: Mapping[str, Any],
        upsert: bool = False,
        session: Any = None,
        comment: Any = None,
    ) -> UpdateResult:
        return self._update(filter, update, upsert, multi=False)

    async def update_many(
        self,
        filter: Mapping[str, Any],
        update: Mapping[str, Any],
        upsert: bool = False,
        session: Any = None,
        comment: Any = None,
    ) -> UpdateResult:
        return self._update(filter, update, upsert, multi=True)

    def _update(self, filter, update, upsert: bool, multi: bool) -> UpdateResult:
        if upsert:
            raise NotImplementedError("upsert is not supported by InMemoryCollection")
        targets = self._matching(filter)
        if not multi:
            targets = targets[:1]
        modified = 0
        for doc in targets:
            if apply_update(doc, update):
                modified += 1
        logger.debug(f"{self.name}: update matched={len(targets)} modified={modified}")
        return UpdateResult({"n": len(targets), "nModified": modified, "ok": 1.0}, acknowledged=True)

    async def find_one_and_update(
        self,
        filter: Mapping[str, Any],
        update: Mapping[str, Any],
        projection: Optional[Any] = None,
        sort: Optional[Any] = None,
        upsert: bool = False,
        return_document: bool = ReturnDocument.BEFORE,
        session: Any = None,
        comment: Any = None,
    ) -> Optional[Dict[str, Any]]:
        if upsert:
            raise NotImplementedError("upsert is not supported by InMemoryCollection")
        targets = self._matching(filter)
        if sort:
            targets = _sort_documents(targets, _sort_key_spec(sort))
        if not targets:
            return None
        doc = targets[0]
        before = copy.deepcopy(doc)
        apply_update(doc, update)
        chosen = doc if return_document == ReturnDocument.AFTER else before
        return copy.deepcopy(_project(chosen, projection))

    async def insert_one(self, document: Dict[str, Any], session: Any = None, comment: Any = None) -> InsertOneResult:
        return InsertOneResult(self._insert(document), acknowledged=True)

    async def insert_many(
        self,
        documents: Iterable[Dict[str, Any]],
        ordered: bool = True,
        session: Any = None,
        comment: Any = None,
    ) -> InsertManyResult:
        documents = list(documents)
        if not documents:
            raise TypeError("documents must be a non-empty list")
        inserted_ids = []
        write_errors = []
        for index, document in enumerate(documents):
            try:
                inserted_ids.append(self._insert(document))
            except DuplicateKeyError as e:
                write_errors.append({"index": index, "code": e.code, "errmsg": str(e)})
                if ordered:
                    break
        if write_errors:
            raise BulkWriteError({
                "writeErrors": write_errors,
                "writeConcernErrors": [],
                "nInserted": len(inserted_ids),
                "nUpserted": 0,
                "nMatched": 0,
                "nModified": 0,
                "nRemoved": 0,
                "upserted": [],
            })
        return InsertManyResult(inserted_ids, acknowledged=True)

    def aggregate(self, pipeline: List[Mapping[str, Any]], session: Any = None, **kwargs) -> InMemoryCursor:
        docs = [copy.deepcopy(doc) for doc in self._documents]
        for stage in pipeline:
            if len(stage) != 1:
                raise OperationFailure("A pipeline stage specification object must contain exactly one field.", code=40323)
            name, arg = next(iter(stage.items()))
            if name == "$match":
                docs = [doc for doc in docs if matches(doc, arg)]
            elif name == "$sort":
                docs = _sort_documents(docs, _sort_key_spec(arg))
            elif name == "$skip":
                docs = docs[arg:]
            elif name == "$limit":
                docs = docs[:arg]
            elif name == "$count":
                docs = [{arg: len(docs)}] if docs else []
            else:
                raise OperationFailure(f"Unrecognized pipeline stage name: '{name}'", code=40324)
        return InMemoryCursor(docs)

    async def create_index(self, keys: Any, **kwargs) -> str:
        key = _sort_key_spec(keys)
        name = kwargs.pop("name", None) or "_".join(f"{field}_{direction}" for field, direction in key)
        self._indexes[name] = {"v": 2, "key": key, **kwargs}
        return name

    async def create_indexes(self, indexes: Sequence[Any], session: Any = None, comment: Any = None) -> List[str]:
        names = []
        for model in indexes:
            document = dict(model.document)
            keys = list(document.pop("key").items())
            names.append(await self.create_index(keys, **document))
        return names

    def list_indexes(self, session: Any = None, comment: Any = None) -> InMemoryCursor:
        return InMemoryCursor([
            {**{k: v for k, v in info.items() if k != "key"}, "key": dict(info["key"]), "name": name}
            for name, info in self._indexes.items()
        ])

    async def index_information(self, session: Any = None, comment: Any = None) -> Dict[str, Dict[str, Any]]:
        return copy.deepcopy(self._indexes)

    async def drop_index(self, index_or_name: Any, session: Any = None, comment: Any = None) -> None:
        name = index_or_name
        if not isinstance(name, str):
            name = "_".join(f"{field}_{direction}" for field, direction in _sort_key_spec(index_or_name))
        if name == ID_INDEX_NAME:
            raise OperationFailure("cannot drop _id index", code=72)
        if name not in self._indexes:
            raise OperationFailure(f"index not found with name [{name}]", code=27)
        del self._indexes[name]
