"""Shared fixtures.

Tests run against an in-memory SQLite database, the in-memory key/value
store and fake external collaborators. Report timers never fire on their
own: tests fire them explicitly through ``timers``.
"""

import json
from typing import Any, Callable, Dict, Generator, List, Optional, Set

import pytest
from sqlalchemy.engine import Engine
from sqlmodel import Session

from albumcast.cache.memory_store import MemoryStore
from albumcast.classifiers.invoker import FunctionInvoker
from albumcast.config import Settings
from albumcast.db.connection import (
    SessionFactory,
    create_db_engine,
    init_db,
    make_session_factory,
)
from albumcast.errors import RetryableInfraError
from albumcast.models.album import AccessRole, Album, AlbumMember
from albumcast.models.image import Image, ImageStatus
from albumcast.models.user import User
from albumcast.notifications.push import PushGateway
from albumcast.storage.prober import ObjectProber

ALBUM_ID = 42
OTHER_ALBUM_ID = 43

# Owner and second admin, plus one viewer
OWNER_ID = 1
ADMIN_ID = 2
VIEWER_ID = 3


def envelope(body: Any) -> str:
    """Wrap a body the way the classification functions answer."""
    return json.dumps({"statusCode": 200, "body": json.dumps(body)})


class FakeClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ManualTimer:
    """threading.Timer stand-in that only fires when told to."""

    def __init__(self, interval: float, function: Callable, args=None, kwargs=None) -> None:
        self.interval = interval
        self.function = function
        self.args = args or ()
        self.kwargs = kwargs or {}
        self.daemon = False
        self.started = False
        self.cancelled = False
        self.fired = False

    def start(self) -> None:
        self.started = True

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        if self.cancelled or self.fired:
            return
        self.fired = True
        self.function(*self.args, **self.kwargs)


class ManualTimers:
    """Timer factory recording every timer it creates."""

    def __init__(self) -> None:
        self.created: List[ManualTimer] = []

    def __call__(self, interval: float, function: Callable, args=None, kwargs=None) -> ManualTimer:
        timer = ManualTimer(interval, function, args=args, kwargs=kwargs)
        self.created.append(timer)
        return timer

    def pending(self) -> List[ManualTimer]:
        return [t for t in self.created if t.started and not t.fired and not t.cancelled]

    def fire_all(self) -> int:
        timers = self.pending()
        for timer in timers:
            timer.fire()
        return len(timers)


class FakeProber(ObjectProber):
    """Prober answering from a set of visible keys."""

    def __init__(self, visible: Optional[Set[str]] = None, error: Optional[Exception] = None) -> None:
        self.visible = set(visible or ())
        self.error = error
        self.calls: List[str] = []

    def exists(self, bucket: str, key: str) -> bool:
        self.calls.append(key)
        if self.error is not None:
            raise self.error
        return key in self.visible


class FakeInvoker(FunctionInvoker):
    """Invoker returning canned responses per function name.

    A response may be a raw string, an exception to raise, or a list of
    either consumed one per call (the last entry repeats).
    """

    def __init__(self, responses: Optional[Dict[str, Any]] = None) -> None:
        self.responses: Dict[str, Any] = dict(responses or {})
        self.calls: List[tuple] = []

    def invoke(self, function_name: str, payload: Dict[str, Any]) -> str:
        self.calls.append((function_name, payload))
        response = self.responses.get(function_name, envelope({}))
        if isinstance(response, list):
            response = response.pop(0) if len(response) > 1 else response[0]
        if isinstance(response, Exception):
            raise response
        return response

    def calls_to(self, function_name: str) -> List[Dict[str, Any]]:
        return [payload for name, payload in self.calls if name == function_name]


class FakePush(PushGateway):
    """Push gateway recording deliveries."""

    def __init__(self, fail_for: Optional[Set[str]] = None) -> None:
        self.fail_for = set(fail_for or ())
        self.sent: List[Dict[str, Any]] = []

    def send(self, device_token: str, title: str, body: str, data: Dict[str, str]) -> Optional[str]:
        if device_token in self.fail_for:
            raise RetryableInfraError(f"Requested entity was not found: {device_token}")
        self.sent.append({"token": device_token, "title": title, "body": body, "data": data})
        return f"projects/albumcast/messages/{len(self.sent)}"


@pytest.fixture
def db_engine() -> Generator[Engine, None, None]:
    """Fresh in-memory database per test."""
    engine = create_db_engine("sqlite://")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(db_engine: Engine) -> SessionFactory:
    return make_session_factory(db_engine)


@pytest.fixture
def db_session(session_factory: SessionFactory) -> Generator[Session, None, None]:
    with session_factory() as session:
        yield session


@pytest.fixture
def album(db_session: Session) -> Album:
    """Album 42 with two admins and one viewer; album 43 owned by a stranger."""
    db_session.add(User(id=OWNER_ID, email="owner@example.com", fcm_token="tok-owner"))
    db_session.add(User(id=ADMIN_ID, email="admin@example.com"))
    db_session.add(User(id=VIEWER_ID, email="viewer@example.com", fcm_token="tok-viewer"))
    db_session.add(User(id=9, email="stranger@example.com", fcm_token="tok-stranger"))
    db_session.commit()

    album = Album(id=ALBUM_ID, user_id=OWNER_ID, album_title="Beach Trip", cover_image_url="cover.jpg")
    db_session.add(album)
    db_session.add(Album(id=OTHER_ALBUM_ID, user_id=9, album_title="Elsewhere"))
    db_session.commit()

    db_session.add(AlbumMember(album_id=ALBUM_ID, user_id=OWNER_ID, access_role=AccessRole.admin))
    db_session.add(AlbumMember(album_id=ALBUM_ID, user_id=ADMIN_ID, access_role=AccessRole.admin))
    db_session.add(AlbumMember(album_id=ALBUM_ID, user_id=VIEWER_ID, access_role=AccessRole.viewer))
    db_session.add(AlbumMember(album_id=OTHER_ALBUM_ID, user_id=9, access_role=AccessRole.admin))
    db_session.commit()
    return album


@pytest.fixture
def add_images(db_session: Session) -> Callable[..., None]:
    """Insert images into an album with the given flags."""

    def _add(album_id: int, count: int, status: ImageStatus = ImageStatus.active, duplicate: bool = False) -> None:
        for i in range(count):
            db_session.add(
                Image(
                    album_id=album_id,
                    user_id=OWNER_ID,
                    file_name=f"img-{status.value}-{duplicate}-{i}.jpg",
                    s3_url=f"https://bucket/images/{album_id}/{i}.jpg",
                    status=status,
                    duplicate=duplicate,
                )
            )
        db_session.commit()

    return _add


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock: FakeClock) -> MemoryStore:
    return MemoryStore(clock=clock)


@pytest.fixture
def timers() -> ManualTimers:
    return ManualTimers()


@pytest.fixture
def sleeps() -> List[float]:
    """Records every backoff delay instead of sleeping."""
    return []


@pytest.fixture
def push() -> FakePush:
    return FakePush()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        database_url="sqlite://",
        store_backend="memory",
        aws_bucket_name="test-bucket",
        firebase_credentials_path=None,
    )
