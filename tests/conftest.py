import copy
import datetime
import os
import sys
import uuid

import pytest
from jose import jwt as jose_jwt

sys.path.insert(0, os.getcwd())

from mentorship import core
from mentorship import secret_store
from mentorship.adapters import firestore_adapter

SIGNING_KEY = "test-signing-key"


# In-memory stand-in for the small part of the Firestore client the adapter
# uses: documents, FieldFilter where clauses, order_by, limit, start_after.
class FakeSnapshot:
    def __init__(self, reference, data):
        self.reference = reference
        self.id = reference.id
        self.exists = data is not None
        self._data = data

    def to_dict(self):
        return copy.deepcopy(self._data) if self._data is not None else None


class FakeDocRef:
    def __init__(self, collection, doc_id):
        self._collection = collection
        self.id = doc_id

    @property
    def _docs(self):
        return self._collection.docs

    def get(self):
        return FakeSnapshot(self, self._docs.get(self.id))

    def set(self, data):
        self._docs[self.id] = copy.deepcopy(data)

    def update(self, updates):
        if self.id not in self._docs:
            raise KeyError(self.id)
        self._docs[self.id].update(copy.deepcopy(updates))

    def delete(self):
        self._docs.pop(self.id, None)


_OPS = {
    "==": lambda a, b: a == b,
    "!=": lambda a, b: a != b,
    "<": lambda a, b: a is not None and a < b,
    "<=": lambda a, b: a is not None and a <= b,
    ">": lambda a, b: a is not None and a > b,
    ">=": lambda a, b: a is not None and a >= b,
    "in": lambda a, b: a in b,
    "array_contains": lambda a, b: isinstance(a, list) and b in a,
}


def _sort_key(value):
    if isinstance(value, datetime.datetime) and value.tzinfo is None:
        return value.replace(tzinfo=datetime.timezone.utc)
    return value


class FakeQuery:
    def __init__(self, collection, filters=(), orders=(), limit=None, after=None):
        self._collection = collection
        self._filters = list(filters)
        self._orders = list(orders)
        self._limit = limit
        self._after = after

    def _copy(self, **changes):
        state = {
            "filters": self._filters,
            "orders": self._orders,
            "limit": self._limit,
            "after": self._after,
        }
        state.update(changes)
        return FakeQuery(self._collection, **state)

    def where(self, filter=None):
        op = filter.op_string.replace("-", "_")
        return self._copy(filters=self._filters + [(filter.field_path, op, filter.value)])

    def order_by(self, field, direction="ASCENDING"):
        return self._copy(orders=self._orders + [(field, direction == "DESCENDING")])

    def limit(self, count):
        return self._copy(limit=count)

    def start_after(self, snapshot):
        return self._copy(after=snapshot.id)

    def stream(self):
        rows = list(self._collection.docs.items())
        for field, op, value in self._filters:
            rows = [(i, d) for i, d in rows if _OPS[op](d.get(field), value)]
        for field, descending in reversed(self._orders):
            # Firestore leaves out documents without the ordered field
            rows = [(i, d) for i, d in rows if field in d]
            rows.sort(key=lambda row: _sort_key(row[1][field]), reverse=descending)
        if self._after is not None:
            ids = [i for i, _ in rows]
            if self._after in ids:
                rows = rows[ids.index(self._after) + 1 :]
        if self._limit is not None:
            rows = rows[: self._limit]
        for doc_id, data in rows:
            yield FakeSnapshot(FakeDocRef(self._collection, doc_id), data)


class FakeCollection(FakeQuery):
    def __init__(self, name):
        self.name = name
        self.docs = {}
        super().__init__(self)

    def document(self, doc_id=None):
        return FakeDocRef(self, doc_id or uuid.uuid4().hex[:20])


class FakeFirestore:
    def __init__(self):
        self.collections = {}

    def collection(self, name):
        if name not in self.collections:
            self.collections[name] = FakeCollection(name)
        return self.collections[name]

    def docs(self, name):
        """Stored documents of a collection, keyed by id (test helper)."""
        return self.collection(name).docs

    def add(self, name, data, doc_id=None):
        ref = self.collection(name).document(doc_id)
        ref.set(data)
        return ref.id


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch):
    for name in (
        "GCP_PROJECT",
        "GCP_PROJECT_ID",
        "GOOGLE_CLOUD_PROJECT",
        "GEMINI_API_KEY",
        "MAILTRAP_API_TOKEN",
        "GOOGLE_SERVICE_ACCOUNT_EMAIL",
        "GOOGLE_SERVICE_ACCOUNT_KEY",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("SESSION_SIGNING_KEY", SIGNING_KEY)
    monkeypatch.setenv("APP_URL", "https://mentors.test")
    monkeypatch.setenv("GOOGLE_CLIENT_ID", "test-client-id")
    monkeypatch.setattr(secret_store, "_metadata_project", lambda: None)
    core.get_settings.cache_clear()
    secret_store._load_managed_secret.cache_clear()
    yield
    core.get_settings.cache_clear()
    secret_store._load_managed_secret.cache_clear()


@pytest.fixture(autouse=True)
def db(monkeypatch):
    fake = FakeFirestore()
    monkeypatch.setattr(firestore_adapter, "_get_firestore_client", lambda: fake)
    return fake


@pytest.fixture
def sent_emails(monkeypatch):
    """Capture outgoing mail instead of calling Mailtrap."""
    from mentorship import mailer

    captured = []

    def _fake_send(to, subject, text, html_body, category="Transactional"):
        captured.append({"to": to, "subject": subject, "text": text, "category": category})
        return True

    monkeypatch.setattr(mailer, "send_email", _fake_send)
    return captured


def make_token(user_id, organization_id, role, expires_in=3600, key=SIGNING_KEY, issuer="mentorship-bridge"):
    now = int(datetime.datetime.now(tz=datetime.timezone.utc).timestamp())
    claims = {"sub": user_id, "org": organization_id, "role": role, "iss": issuer, "iat": now, "exp": now + expires_in}
    return jose_jwt.encode(claims, key, algorithm="HS256")


@pytest.fixture
def org(db):
    org_id = db.add(
        "organizations",
        {
            "name": "Acme Mentoring",
            "organizationCode": "ACME23",
            "subscriptionTier": "free",
            "programSettings": {"programName": "Acme Mentoring"},
            "createdAt": datetime.datetime(2026, 1, 1, tzinfo=datetime.timezone.utc),
        },
        doc_id="org-1",
    )
    return org_id


def _add_user(db, user_id, org_id, name, role, **extra):
    data = {
        "organizationId": org_id,
        "name": name,
        "email": f"{user_id}@example.com",
        "role": role,
        "skills": [],
        "createdAt": datetime.datetime(2026, 1, 2, tzinfo=datetime.timezone.utc),
    }
    data.update(extra)
    db.add("users", data, doc_id=user_id)
    return user_id


@pytest.fixture
def people(db, org):
    """One admin, two mentors and two mentees in `org`."""
    _add_user(db, "admin", org, "Ada Admin", "ORGANIZATION_ADMIN")
    _add_user(db, "mentor-1", org, "Grace Hopper", "MENTOR", skills=["Python", "Leadership"], company="Navy")
    _add_user(db, "mentor-2", org, "Linus T", "MENTOR", skills=["Kernel", "C"], company="OSDL")
    _add_user(db, "mentee-1", org, "Sam Student", "MENTEE", goals=["learn python"], skills=["sql"])
    _add_user(db, "mentee-2", org, "Pat Pupil", "MENTEE", goals=["public speaking"])
    return {"admin": "admin", "mentors": ["mentor-1", "mentor-2"], "mentees": ["mentee-1", "mentee-2"]}


@pytest.fixture
def add_user(db):
    def _add(user_id, org_id, name, role, **extra):
        return _add_user(db, user_id, org_id, name, role, **extra)

    return _add


@pytest.fixture
def auth_header(db):
    """Bearer header for `user_id`; sessions need a stored user, so one is added if missing."""

    def _header(user_id, organization_id="org-1", role="ORGANIZATION_ADMIN"):
        if user_id not in db.docs("users"):
            _add_user(db, user_id, organization_id, user_id, role)
        return {"Authorization": f"Bearer {make_token(user_id, organization_id, role)}"}

    return _header


@pytest.fixture
def client():
    from starlette.testclient import TestClient

    from mentorship.main import application

    return TestClient(application)
