"""
Shared fixtures: in-memory stand-ins for MongoDB (motor), the Drive v3
resource, Gemini and Firebase Authentication.
"""

import copy
import itertools
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from examai.app import create_app
from examai.config.settings import Settings
from examai.context import assemble_context
from examai.errors import IdentityError
from examai.services.drive import FOLDER_MIME, DriveService

ROOT_FOLDER_ID = "root-folder"
SUPERADMIN_UID = "root-admin"


# ============ MONGODB ============

class FakeCursor:
    def __init__(self, docs: List[Dict[str, Any]]):
        self._docs = docs

    def sort(self, key: str, direction: int = 1) -> "FakeCursor":
        self._docs = sorted(self._docs, key=lambda d: d.get(key) or "", reverse=direction < 0)
        return self

    async def to_list(self, length: Optional[int] = None) -> List[Dict[str, Any]]:
        return self._docs[:length] if length else list(self._docs)


class FakeCollection:
    _ids = itertools.count(1)

    def __init__(self, name: str):
        self.name = name
        self.docs: List[Dict[str, Any]] = []
        self.fail_writes = False

    @staticmethod
    def _matches(doc: Dict[str, Any], query: Optional[Dict[str, Any]]) -> bool:
        return all(doc.get(k) == v for k, v in (query or {}).items())

    @staticmethod
    def _project(doc: Dict[str, Any], projection: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        out = copy.deepcopy(doc)
        if projection and projection.get("_id") == 0:
            out.pop("_id", None)
        return out

    def seed(self, doc: Dict[str, Any]) -> Dict[str, Any]:
        stored = copy.deepcopy(doc)
        stored.setdefault("_id", f"oid-{next(self._ids)}")
        self.docs.append(stored)
        return stored

    def _check_write(self):
        if self.fail_writes:
            raise RuntimeError(f"write to {self.name} failed")

    async def insert_one(self, doc: Dict[str, Any]):
        self._check_write()
        doc.setdefault("_id", f"oid-{next(self._ids)}")
        self.docs.append(copy.deepcopy(doc))
        return doc["_id"]

    async def find_one(self, query=None, projection=None):
        for doc in self.docs:
            if self._matches(doc, query):
                return self._project(doc, projection)
        return None

    def find(self, query=None, projection=None) -> FakeCursor:
        return FakeCursor([self._project(d, projection) for d in self.docs if self._matches(d, query)])

    async def update_one(self, query, update, upsert: bool = False):
        self._check_write()
        changes = update.get("$set", {})
        for doc in self.docs:
            if self._matches(doc, query):
                doc.update(copy.deepcopy(changes))
                return 1
        if upsert:
            self.seed({**query, **changes})
        return 0

    async def delete_one(self, query):
        for i, doc in enumerate(self.docs):
            if self._matches(doc, query):
                del self.docs[i]
                return 1
        return 0

    async def delete_many(self, query):
        before = len(self.docs)
        self.docs = [d for d in self.docs if not self._matches(d, query)]
        return before - len(self.docs)

    async def count_documents(self, query):
        return len([d for d in self.docs if self._matches(d, query)])

    async def create_index(self, *args, **kwargs):
        return "index"


class FakeDatabase:
    def __init__(self):
        self._collections: Dict[str, FakeCollection] = {}

    def __getitem__(self, name: str) -> FakeCollection:
        if name not in self._collections:
            self._collections[name] = FakeCollection(name)
        return self._collections[name]

    def __getattr__(self, name: str) -> FakeCollection:
        if name.startswith("_"):
            raise AttributeError(name)
        return self[name]

    async def command(self, name: str):
        return {"ok": 1}


# ============ GOOGLE DRIVE ============

class FakeHttpError(Exception):
    pass


class FakeRequest:
    def __init__(self, fn):
        self._fn = fn

    def execute(self):
        return self._fn()


class FakeFilesResource:
    def __init__(self, drive: "FakeDriveResource"):
        self.drive = drive

    def list(self, q: str = "", fields: str = "", supportsAllDrives: bool = False, pageSize: int = 100):
        def run():
            self.drive.calls.append(("list", q))
            parent = re.search(r"'([^']*)' in parents", q)
            name = re.search(r"name='([^']*)'", q)
            mime = re.search(r"mimeType='([^']*)'", q)
            found = [
                {"id": f["id"], "name": f["name"], "mimeType": f["mimeType"]}
                for f in self.drive.store.values()
                if (not parent or parent.group(1) in f["parents"])
                and (not name or f["name"] == name.group(1))
                and (not mime or f["mimeType"] == mime.group(1))
            ]
            return {"files": found}

        return FakeRequest(run)

    def get(self, fileId: str, fields: str = "", supportsAllDrives: bool = False):
        def run():
            if fileId not in self.drive.store or fileId in self.drive.unreadable:
                raise FakeHttpError(f"File not found: {fileId}")
            f = self.drive.store[fileId]
            return {"id": f["id"], "name": f["name"], "mimeType": f["mimeType"]}

        return FakeRequest(run)

    def get_media(self, fileId: str, supportsAllDrives: bool = False):
        def run():
            if fileId not in self.drive.store or fileId in self.drive.unreadable:
                raise FakeHttpError(f"File not found: {fileId}")
            return self.drive.store[fileId]["content"]

        return FakeRequest(run)

    def create(self, body: Dict[str, Any], media_body=None, fields: str = "", supportsAllDrives: bool = False):
        def run():
            is_folder = body.get("mimeType") == FOLDER_MIME
            if self.drive.fail_uploads and not is_folder:
                raise FakeHttpError("upload quota exceeded")
            if self.drive.fail_folders and is_folder:
                raise FakeHttpError("folder creation denied")
            file_id = f"file-{next(self.drive.ids)}"
            content = media_body.getbytes(0, media_body.size()) if media_body is not None else b""
            self.drive.store[file_id] = {
                "id": file_id,
                "name": body["name"],
                "mimeType": body.get("mimeType") or getattr(media_body, "mimetype", lambda: "")(),
                "parents": list(body.get("parents", [])),
                "content": content,
            }
            return {"id": file_id}

        return FakeRequest(run)

    def update(self, fileId: str, media_body=None, supportsAllDrives: bool = False):
        def run():
            if self.drive.fail_updates:
                raise FakeHttpError("update failed")
            if fileId not in self.drive.store:
                raise FakeHttpError(f"File not found: {fileId}")
            self.drive.store[fileId]["content"] = media_body.getbytes(0, media_body.size())
            return {"id": fileId}

        return FakeRequest(run)

    def delete(self, fileId: str, supportsAllDrives: bool = False):
        def run():
            if fileId not in self.drive.store:
                raise FakeHttpError(f"File not found: {fileId}")
            del self.drive.store[fileId]
            return ""

        return FakeRequest(run)


class FakePermissionsResource:
    def __init__(self, drive: "FakeDriveResource"):
        self.drive = drive

    def create(self, fileId: str, body: Dict[str, Any], supportsAllDrives: bool = False):
        def run():
            self.drive.granted.append((fileId, body))
            return {"id": f"perm-{fileId}"}

        return FakeRequest(run)


class FakeDriveResource:
    """Enough of the Drive v3 discovery resource for DriveService."""

    def __init__(self):
        self.ids = itertools.count(1)
        self.store: Dict[str, Dict[str, Any]] = {
            ROOT_FOLDER_ID: {
                "id": ROOT_FOLDER_ID,
                "name": "Exam-AI",
                "mimeType": FOLDER_MIME,
                "parents": [],
                "content": b"",
            }
        }
        self.granted: List[Any] = []
        self.calls: List[Any] = []
        self.unreadable: set = set()
        self.fail_uploads = False
        self.fail_folders = False
        self.fail_updates = False

    def files(self):
        return FakeFilesResource(self)

    def permissions(self):
        return FakePermissionsResource(self)

    def children(self, parent_id: str) -> List[Dict[str, Any]]:
        return [f for f in self.store.values() if parent_id in f["parents"]]

    def put(self, file_id: str, content: bytes, parent: str = ROOT_FOLDER_ID, name: str = "raw.json"):
        self.store[file_id] = {
            "id": file_id,
            "name": name,
            "mimeType": "application/json",
            "parents": [parent],
            "content": content,
        }


# ============ GEMINI / FIREBASE ============

class FakeGemini:
    def __init__(self):
        self.replies: List[str] = []
        self.default_reply = "Sure, here is a hint."
        self.prompts: List[str] = []
        self.error: Optional[Exception] = None

    async def generate(self, prompt, model=None, session_id=None, user_id=None):
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return self.replies.pop(0) if self.replies else self.default_reply


class FakeIdentity:
    def __init__(self):
        self.tokens: Dict[str, Dict[str, Any]] = {}
        self.users: Dict[str, Dict[str, Any]] = {}
        self._ids = itertools.count(1)

    async def verify_id_token(self, id_token: str) -> Dict[str, Any]:
        if id_token not in self.tokens:
            raise IdentityError("Token is invalid")
        return self.tokens[id_token]

    async def create_user(self, email: str, password: str, display_name: str) -> Dict[str, Any]:
        if any(u["email"] == email for u in self.users.values()):
            raise IdentityError("EMAIL_EXISTS")
        uid = f"fb-{next(self._ids)}"
        self.users[uid] = {"uid": uid, "email": email, "displayName": display_name}
        return dict(self.users[uid])


# ============ FIXTURES ============

@pytest.fixture
def settings() -> Settings:
    s = Settings()
    s.DRIVE_ROOT_FOLDER_ID = ROOT_FOLDER_ID
    s.GEMINI_API_KEY = "test-key"
    s.SUPERADMIN_UID = SUPERADMIN_UID
    s.CORS_ORIGINS = ["http://localhost:5173"]
    return s


@pytest.fixture
def db() -> FakeDatabase:
    return FakeDatabase()


@pytest.fixture
def drive_resource() -> FakeDriveResource:
    return FakeDriveResource()


@pytest.fixture
def drive(settings, drive_resource) -> DriveService:
    return DriveService(settings, resource=drive_resource)


@pytest.fixture
def gemini() -> FakeGemini:
    return FakeGemini()


@pytest.fixture
def identity() -> FakeIdentity:
    return FakeIdentity()


@pytest.fixture
def ctx(settings, db, drive, gemini, identity):
    return assemble_context(settings, db, drive, gemini, identity)


@pytest.fixture
def client(ctx) -> TestClient:
    # lifespan is not entered: no settings validation or Mongo ping
    return TestClient(create_app(ctx))


def login_as(db: FakeDatabase, uid: str, role: str = "user", **profile) -> Dict[str, str]:
    """Seed a user and a live session; returns Bearer headers."""
    db.users.seed({"uid": uid, "email": f"{uid}@example.com", "fullName": uid.title(), "role": role, **profile})
    token = f"session_{uid}"
    db.user_sessions.seed(
        {
            "user_id": uid,
            "session_token": token,
            "expires_at": (datetime.now(timezone.utc) + timedelta(days=1)).isoformat(),
        }
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers(db) -> Dict[str, str]:
    return login_as(db, "alice", preferredExam="JEE", preferredSubject="Physics")
