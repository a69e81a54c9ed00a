# petloc/conftest.py
"""
테스트 공용 fixture.

실제 Firestore 대신 메모리 기반 대체 객체(FakeFirestore)를 사용합니다.
서비스 코드가 사용하는 범위(컬렉션/서브컬렉션, where/order_by/limit, 트랜잭션, batch,
SERVER_TIMESTAMP, on_snapshot)만 흉내냅니다. 네트워크에는 접근하지 않습니다.
"""

import copy
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

import pytest
import requests
from firebase_admin import firestore
from flask_jwt_extended import create_access_token, create_refresh_token
from google.api_core import exceptions as gcp_exceptions

from petloc import create_app

_MISSING = object()
MAX_BATCH_WRITES = 500


# =====================================================================================
# 메모리 Firestore
# =====================================================================================
class FakeSnapshot:
    def __init__(self, reference: "FakeDocumentReference", data: Optional[Dict[str, Any]]):
        self.reference = reference
        self.id = reference.id
        self._data = data

    @property
    def exists(self) -> bool:
        return self._data is not None

    def to_dict(self) -> Optional[Dict[str, Any]]:
        return copy.deepcopy(self._data) if self._data is not None else None

    def get(self, field: str) -> Any:
        return (self._data or {}).get(field)


class FakeWatch:
    def __init__(self, db: "FakeFirestore", query: "FakeQuery", callback: Callable):
        self._db = db
        self.query = query
        self.callback = callback

    def fire(self):
        self.callback(list(self.query.stream()), [], self._db.now())

    def unsubscribe(self):
        self._db.watches = [w for w in self._db.watches if w is not self]


class FakeQuery:
    def __init__(self, db: "FakeFirestore", path: str,
                 filters: Tuple = (), orders: Tuple = (), limit_count: Optional[int] = None):
        self._db = db
        self._path = path
        self._filters = filters
        self._orders = orders
        self._limit = limit_count

    def where(self, field: str, op: str, value: Any) -> "FakeQuery":
        return FakeQuery(self._db, self._path, self._filters + ((field, op, value),), self._orders, self._limit)

    def order_by(self, field: str, direction: str = 'ASCENDING') -> "FakeQuery":
        return FakeQuery(self._db, self._path, self._filters, self._orders + ((field, direction),), self._limit)

    def limit(self, count: int) -> "FakeQuery":
        return FakeQuery(self._db, self._path, self._filters, self._orders, count)

    @staticmethod
    def _matches(data: Dict[str, Any], field: str, op: str, value: Any) -> bool:
        current = data.get(field, _MISSING)
        if current is _MISSING:
            return False
        if op == '==':
            return current == value
        if op == '!=':
            return current != value
        if op == 'in':
            return current in value
        if op == 'array_contains':
            return isinstance(current, list) and value in current
        if op == '<':
            return current < value
        if op == '<=':
            return current <= value
        if op == '>':
            return current > value
        if op == '>=':
            return current >= value
        raise ValueError(f"지원하지 않는 연산자: {op}")

    def stream(self, transaction=None):
        self._db.check_failure(self._path)
        docs = self._db.collection_docs(self._path)
        rows = [(doc_id, data) for doc_id, data in docs.items()
                if all(self._matches(data, f, op, v) for f, op, v in self._filters)]
        for field, direction in reversed(self._orders):
            rows = [row for row in rows if field in row[1]]
            rows.sort(key=lambda row: row[1][field], reverse=(direction == firestore.Query.DESCENDING))
        if self._limit is not None:
            rows = rows[:self._limit]
        for doc_id, data in rows:
            yield FakeSnapshot(FakeDocumentReference(self._db, f"{self._path}/{doc_id}"), copy.deepcopy(data))

    def get(self, transaction=None) -> List[FakeSnapshot]:
        return list(self.stream())

    def on_snapshot(self, callback: Callable) -> FakeWatch:
        self._db.check_failure(self._path)
        watch = FakeWatch(self._db, self, callback)
        self._db.watches.append(watch)
        watch.fire()
        return watch


class FakeCollection(FakeQuery):
    def __init__(self, db: "FakeFirestore", path: str):
        super().__init__(db, path)
        self.id = path.rsplit('/', 1)[-1]

    def document(self, document_id: Optional[str] = None) -> "FakeDocumentReference":
        return FakeDocumentReference(self._db, f"{self._path}/{document_id or uuid.uuid4().hex}")


class FakeDocumentReference:
    def __init__(self, db: "FakeFirestore", path: str):
        self._db = db
        self.path = path
        self.parent_path, self.id = path.rsplit('/', 1)

    def collection(self, name: str) -> FakeCollection:
        return FakeCollection(self._db, f"{self.path}/{name}")

    def get(self, transaction=None) -> FakeSnapshot:
        self._db.check_failure(self.parent_path)
        data = self._db.collection_docs(self.parent_path).get(self.id)
        return FakeSnapshot(self, copy.deepcopy(data))

    def set(self, data: Dict[str, Any], merge: bool = False):
        self._db.apply_writes([('set', self, data, merge)])

    def update(self, data: Dict[str, Any]):
        self._db.apply_writes([('update', self, data, False)])

    def delete(self):
        self._db.apply_writes([('delete', self, None, False)])


class FakeWriteBatch:
    """set/update/delete를 모았다가 commit 시점에 한 번에 적용합니다."""
    def __init__(self, db: "FakeFirestore"):
        self._db = db
        self._writes: List[Tuple] = []

    def set(self, ref: FakeDocumentReference, data: Dict[str, Any], merge: bool = False):
        self._writes.append(('set', ref, data, merge))

    def update(self, ref: FakeDocumentReference, data: Dict[str, Any]):
        self._writes.append(('update', ref, data, False))

    def delete(self, ref: FakeDocumentReference):
        self._writes.append(('delete', ref, None, False))

    def commit(self):
        writes, self._writes = self._writes, []
        if len(writes) > MAX_BATCH_WRITES:
            raise gcp_exceptions.InvalidArgument(f"maximum {MAX_BATCH_WRITES} writes allowed per request")
        self._db.apply_writes(writes)


class FakeTransaction(FakeWriteBatch):
    pass


def _passthrough_transactional(fn):
    """firestore.transactional 대체: 함수 실행 후 쌓인 쓰기를 commit, 예외 시 모두 폐기."""
    def run(transaction, *args, **kwargs):
        result = fn(transaction, *args, **kwargs)
        transaction.commit()
        return result
    return run


class FakeFirestore:
    def __init__(self):
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self._failures: Dict[str, Exception] = {}
        self._last_server_time: Optional[datetime] = None
        self.watches: List[FakeWatch] = []

    # --- 클라이언트 API ---
    def collection(self, name: str) -> FakeCollection:
        return FakeCollection(self, name)

    def document(self, path: str) -> FakeDocumentReference:
        return FakeDocumentReference(self, path)

    def transaction(self) -> FakeTransaction:
        return FakeTransaction(self)

    def batch(self) -> FakeWriteBatch:
        return FakeWriteBatch(self)

    # --- 테스트 도우미 ---
    def fail_on(self, collection_path: str, error: Exception):
        """해당 컬렉션에 대한 모든 읽기/쓰기가 error를 발생시키도록 합니다."""
        self._failures[collection_path] = error

    def check_failure(self, collection_path: str):
        error = self._failures.get(collection_path)
        if error is not None:
            raise error

    def collection_docs(self, path: str) -> Dict[str, Dict[str, Any]]:
        return self._collections.setdefault(path, {})

    def now(self) -> datetime:
        """단조 증가하는 서버 시각 (같은 순간의 쓰기도 순서가 구분되도록)."""
        current = datetime.now(timezone.utc)
        if self._last_server_time and current <= self._last_server_time:
            current = self._last_server_time + timedelta(microseconds=1)
        self._last_server_time = current
        return current

    def _resolve_sentinels(self, data: Dict[str, Any]) -> Dict[str, Any]:
        resolved = {}
        for key, value in data.items():
            resolved[key] = self.now() if value is firestore.SERVER_TIMESTAMP else copy.deepcopy(value)
        return resolved

    def apply_writes(self, writes: List[Tuple]):
        for _, ref, _, _ in writes:
            self.check_failure(ref.parent_path)
        for op, ref, data, merge in writes:
            docs = self.collection_docs(ref.parent_path)
            if op == 'set':
                values = self._resolve_sentinels(data)
                docs[ref.id] = {**docs[ref.id], **values} if merge and ref.id in docs else values
            elif op == 'update':
                if ref.id not in docs:
                    raise gcp_exceptions.NotFound(f"No document to update: {ref.path}")
                docs[ref.id].update(self._resolve_sentinels(data))
            elif op == 'delete':
                docs.pop(ref.id, None)
        touched = {ref.parent_path for _, ref, _, _ in writes}
        for watch in list(self.watches):
            if watch.query._path in touched:
                watch.fire()


# =====================================================================================
# 외부 뉴스 API 대체 HTTP 세션
# =====================================================================================
class FakeResponse:
    def __init__(self, payload: Any, status_code: int = 200):
        self._payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")

    def json(self):
        return self._payload


class FakeHttp:
    """
    URL(쿼리 제외)별 응답을 등록해 두는 requests.Session 대체 객체.
    등록된 값이 예외면 발생시키고, 함수면 params를 받아 응답 payload를 만듭니다.
    등록되지 않은 URL은 연결 오류로 처리합니다.
    """
    def __init__(self):
        self.routes: Dict[str, Any] = {}
        self.calls: List[Tuple[str, Dict[str, Any]]] = []

    def get(self, url: str, params=None, timeout=None, headers=None):
        self.calls.append((url, dict(params or {})))
        route = self.routes.get(url, _MISSING)
        if route is _MISSING:
            raise requests.ConnectionError(f"no route for {url}")
        if isinstance(route, Exception):
            raise route
        if isinstance(route, FakeResponse):
            return route
        payload = route(params or {}) if callable(route) else route
        if isinstance(payload, Exception):
            raise payload
        return payload if isinstance(payload, FakeResponse) else FakeResponse(payload)


# =====================================================================================
# Fixtures
# =====================================================================================
@pytest.fixture
def fake_db(monkeypatch):
    monkeypatch.setattr(firestore, 'transactional', _passthrough_transactional)
    return FakeFirestore()


@pytest.fixture
def news_http():
    return FakeHttp()


@pytest.fixture
def app(fake_db, news_http):
    app = create_app('testing', db=fake_db, news_http=news_http)
    yield app


@pytest.fixture
def client(app):
    return app.test_client()


def seed_user(db: FakeFirestore, uid: str, role: str = 'user', email: Optional[str] = None,
              display_name: Optional[str] = None):
    now = datetime.now(timezone.utc)
    db.collection('users').document(uid).set({
        'user_id': uid,
        'email': email or f"{uid}@petloc.test",
        'display_name': display_name or uid.capitalize(),
        'role': role,
        'created_at': now,
        'updated_at': now,
    })


@pytest.fixture
def make_headers(app, fake_db):
    """uid(+역할)의 프로필을 만들고 Authorization 헤더를 반환하는 함수."""
    def _make(uid: str, role: str = 'user', name: Optional[str] = None, seed: bool = True) -> Dict[str, str]:
        if seed:
            seed_user(fake_db, uid, role=role, display_name=name)
        with app.app_context():
            token = create_access_token(
                identity=uid,
                additional_claims={"email": f"{uid}@petloc.test", "name": name or uid.capitalize(), "picture": None},
            )
        return {"Authorization": f"Bearer {token}"}
    return _make


@pytest.fixture
def make_refresh_token(app):
    def _make(uid: str) -> str:
        with app.app_context():
            return create_refresh_token(identity=uid, additional_claims={"email": None, "name": uid, "picture": None})
    return _make


@pytest.fixture
def user_headers(make_headers):
    return make_headers('alice')


@pytest.fixture
def other_headers(make_headers):
    return make_headers('bob')


@pytest.fixture
def admin_headers(make_headers):
    return make_headers('root', role='admin', name='Admin')
