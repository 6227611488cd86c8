import os

# Engine and settings are read at import time
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["COOKIE_SECURE"] = "false"
os.environ.setdefault("ACCESS_TOKEN_SECRET", "test-access-secret")
os.environ.setdefault("REFRESH_TOKEN_SECRET", "test-refresh-secret")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from sybertailor import email_service  # noqa: E402
from sybertailor.database import Base, SessionLocal, engine  # noqa: E402
from sybertailor.main import app  # noqa: E402
from sybertailor.models import Measurement, User  # noqa: E402
from sybertailor.security_utils import create_access_token, hash_password  # noqa: E402
from sybertailor.services.payment_service import PaymentVerification, get_payment_gateway  # noqa: E402
from sybertailor.utils import image_storage  # noqa: E402

PASSWORD = "correct-horse-1"


class FakeJobQueue:
    """In-memory stand-in for JobQueue with the same id semantics"""

    def __init__(self):
        self.jobs = {}
        self.anonymous = []
        self.cancelled = []

    async def enqueue(self, function, *args, job_id=None, run_at=None, **kwargs):
        if job_id is None:
            self.anonymous.append((function, args, kwargs))
            return True
        if job_id in self.jobs:
            return False
        self.jobs[job_id] = {"function": function, "args": args, "run_at": run_at, "kwargs": kwargs}
        return True

    async def cancel(self, job_id):
        self.cancelled.append(job_id)
        return self.jobs.pop(job_id, None) is not None

    async def exists(self, job_id):
        return job_id in self.jobs

    def emails_to(self, address):
        return [args for function, args, _ in self.anonymous if function == "send_email_task" and args[0] == address]


class FakeGateway:
    def __init__(self):
        self.amount = None
        self.successful = True
        self.references = []

    async def verify(self, reference):
        self.references.append(reference)
        return PaymentVerification(self.successful, self.amount or 0.0, reference, "success" if self.successful else "failed")


class FakeStorage:
    def __init__(self):
        self.uploaded = []
        self.deleted = []

    def _store(self, folder):
        key = f"{folder}/image-{len(self.uploaded) + 1}.jpg"
        self.uploaded.append(key)
        return {"url": f"https://cdn.test/{key}", "key": key}

    async def upload_file(self, file, folder):
        await file.read()
        return self._store(folder)

    def upload_data_uri(self, value, folder):
        return self._store(folder)

    def delete_image(self, key):
        if key:
            self.deleted.append(key)
            return True
        return False


@pytest.fixture(autouse=True)
def database():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def queue():
    fake = FakeJobQueue()
    app.state.job_queue = fake
    yield fake
    app.state.job_queue = None


@pytest.fixture
def gateway():
    fake = FakeGateway()
    app.dependency_overrides[get_payment_gateway] = lambda: fake
    yield fake
    app.dependency_overrides.pop(get_payment_gateway, None)


@pytest.fixture
def storage(monkeypatch):
    fake = FakeStorage()
    monkeypatch.setattr(image_storage, "upload_file", fake.upload_file)
    monkeypatch.setattr(image_storage, "upload_data_uri", fake.upload_data_uri)
    monkeypatch.setattr(image_storage, "delete_image", fake.delete_image)
    return fake


@pytest.fixture(autouse=True)
def plain_email(monkeypatch):
    # Templates are sent as-is; compiling them is covered by the mjml package
    monkeypatch.setattr(email_service, "compile_mjml_to_html", lambda content: content)


@pytest.fixture
def client(queue, gateway, storage):
    # No context manager: the lifespan would try to reach Redis
    return TestClient(app)


def make_user(db, email="ada@example.com", name="Ada Obi", is_admin=False, is_verified=True):
    user = User(
        name=name,
        email=email,
        password_hash=hash_password(PASSWORD),
        is_admin=is_admin,
        is_verified=is_verified,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture
def user(db):
    return make_user(db)


@pytest.fixture
def other_user(db):
    return make_user(db, email="bayo@example.com", name="Bayo Ade")


@pytest.fixture
def admin(db):
    return make_user(db, email="admin@example.com", name="Shop Admin", is_admin=True)


@pytest.fixture
def measurement(db, user):
    item = Measurement(user_id=user.id, name="Ada's agbada", unit="cm", data={"chest": 96.0, "waist": 80.0})
    db.add(item)
    db.commit()
    db.refresh(item)
    return item
