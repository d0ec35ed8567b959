"""Shared fixtures: in-memory database, fake object store, API client."""

import itertools

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from trekdesk.core.config import settings
from trekdesk.core.errors import MediaStoreError
from trekdesk.core.rate_limiting import limiter
from trekdesk.db.database import get_db
from trekdesk.db.models import Base
from trekdesk.main import app
from trekdesk.services.media_store import RESOURCE_TYPES, MediaStore, StoredObject, get_media_store


class FakeStore(MediaStore):
    """In-memory object store. Flip fail_upload / fail_delete to simulate outages."""

    def __init__(self):
        self.objects = {}
        self.deleted = []
        self.fail_upload = False
        self.fail_delete = False
        self._ids = itertools.count(1)

    def upload(self, upload, kind):
        if self.fail_upload:
            raise MediaStoreError("upload refused")
        resource_type = RESOURCE_TYPES[kind]
        public_id = f"trekdesk/obj_{next(self._ids)}"
        self.objects[public_id] = upload.data
        return StoredObject(
            url=f"https://res.example.com/{resource_type}/{public_id}",
            public_id=public_id,
            resource_type=resource_type,
        )

    def delete(self, public_id, resource_type="image"):
        if self.fail_delete:
            raise MediaStoreError("delete refused")
        self.deleted.append(public_id)
        self.objects.pop(public_id, None)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def client(engine, store):
    Session = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def override_get_db():
        db = Session()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_media_store] = lambda: store
    limiter.enabled = False
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
        limiter.enabled = True


@pytest.fixture
def admin():
    return {"X-API-Key": settings.admin_api_key}


@pytest.fixture
def make_package(client, admin):
    """POST a package through the dashboard API and return the JSON body."""

    def _make(name, price, **fields):
        body = {"package_name": name, "price": price, **fields}
        response = client.post("/api/v1/packages", json=body, headers=admin)
        assert response.status_code == 201, response.text
        return response.json()

    return _make
