import os

# Keep the module-level engine off the filesystem during tests
os.environ.setdefault("DATABASE_URL", "sqlite://")

import json  # noqa: E402
from types import SimpleNamespace  # noqa: E402

import pytest  # noqa: E402
from fastapi import FastAPI  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from tyjson import dependencies as deps  # noqa: E402
from tyjson.db.base import Base, enable_case_sensitive_like, get_db  # noqa: E402
from tyjson.models.comment import Comment  # noqa: E402
from tyjson.models.content import Content  # noqa: E402
from tyjson.models.field import Field  # noqa: E402
from tyjson.models.meta import Meta, Relationship  # noqa: E402
from tyjson.models.option import Option  # noqa: E402
from tyjson.models.theme_setting import ThemeSetting  # noqa: F401,E402
from tyjson.models.user import User  # noqa: E402
from tyjson.routers import api  # noqa: E402
from tyjson.security import get_settings  # noqa: E402
from tyjson.services.cache import SettingsCache  # noqa: E402
from tyjson.settings import Settings  # noqa: E402

BASE_TS = 1_700_000_000
API = "/ty-json"
ADMIN_COOKIES = {"__typecho_uid": "1", "__typecho_authCode": "admin-code"}
EDITOR_COOKIES = {"__typecho_uid": "2", "__typecho_authCode": "editor-code"}
SUBSCRIBER_COOKIES = {"__typecho_uid": "3", "__typecho_authCode": "sub-code"}


def seed(db) -> None:
    """
    Twelve published posts (cid 1-12, newest has the highest cid), one draft,
    one page, one attachment, two categories, two tags, custom fields,
    comments, site options and three users.
    """
    for i in range(1, 13):
        db.add(
            Content(
                cid=i,
                title="Learning Python" if i == 3 else f"Post {i}",
                slug=f"post-{i}",
                created=BASE_TS + i * 100,
                modified=BASE_TS + i * 100 + 50,
                text=f"<!--markdown-->## Heading {i}\n\nHello **world** from post {i}.",
                type="post",
                status="publish",
                authorId=1,
                commentsNum=2 if i == 1 else 0,
            )
        )
    db.add(
        Content(
            cid=7_000,
            title="Python Tips",
            slug="python-tips",
            created=BASE_TS,
            modified=BASE_TS,
            text="Draft about Python",
            type="post",
            status="draft",
        )
    )
    db.add(
        Content(
            cid=20,
            title="About",
            slug="about",
            created=BASE_TS + 5,
            modified=BASE_TS + 5,
            text="About this **site**",
            type="page",
            status="publish",
        )
    )
    db.add(
        Content(
            cid=30,
            title="cover.png",
            slug="cover-png",
            created=BASE_TS + 7,
            modified=BASE_TS + 7,
            text=json.dumps({"name": "cover.png", "size": 2048, "mime": "image/png"}),
            type="attachment",
            status="publish",
        )
    )
    db.add_all(
        [
            Meta(mid=1, name="Default", slug="default", type="category", description="All posts", count=12, order=1),
            Meta(mid=2, name="Tech", slug="tech", type="category", description="*Tech* notes", count=2, order=0),
            Meta(mid=3, name="python", slug="python", type="tag", count=5),
            Meta(mid=4, name="misc", slug="misc", type="tag", count=1),
        ]
    )
    db.add_all([Relationship(cid=i, mid=1) for i in range(1, 13)])
    db.add_all([Relationship(cid=1, mid=2), Relationship(cid=2, mid=2)])
    db.add_all([Relationship(cid=i, mid=3) for i in range(1, 6)])

    db.add_all(
        [
            Field(cid=1, name="mood", type="str", str_value="happy"),
            Field(cid=2, name="mood", type="str", str_value="happy"),
            Field(cid=3, name="mood", type="str", str_value="sad"),
            Field(cid=1, name="rating", type="int", int_value=5),
            Field(cid=2, name="rating", type="int", int_value=3),
            Field(cid=3, name="rating", type="int", int_value=8),
            Field(cid=1, name="secret_note", type="str", str_value="hidden"),
        ]
    )

    db.add_all(
        [
            Comment(coid=1, cid=1, created=BASE_TS + 1000, author="bob", mail="bob@example.com", text="First!", status="approved"),
            Comment(coid=2, cid=1, created=BASE_TS + 2000, author="amy", mail="amy@example.com", text="Nice *post*", status="approved", parent=1),
            Comment(coid=3, cid=2, created=BASE_TS + 3000, author="cat", mail="cat@example.com", text="Hmm", status="waiting"),
        ]
    )

    db.add_all(
        [
            Option(name="title", user=0, value="My Blog"),
            Option(name="description", user=0, value="Notes and things"),
            Option(name="keywords", user=0, value="blog,notes"),
            Option(name="siteUrl", user=0, value="https://blog.example.com/"),
            Option(name="timezone", user=0, value="28800"),
            Option(name="theme", user=0, value="TTDF"),
            Option(name="charset", user=0, value="UTF-8"),
            Option(name="secret", user=0, value="do-not-share"),
            Option(name="commentsRequireModeration", user=0, value="0"),
        ]
    )

    db.add_all(
        [
            User(uid=1, name="admin", group="administrator", authCode="admin-code"),
            User(uid=2, name="editor", group="editor", authCode="editor-code"),
            User(uid=3, name="reader", group="subscriber", authCode="sub-code"),
        ]
    )
    db.commit()


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_case_sensitive_like(engine)
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autoflush=False, autocommit=False)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def seeded_db(db):
    seed(db)
    return db


@pytest.fixture
def make_client(seeded_db):
    """
    Build a TestClient around the API router with the seeded session,
    the given settings and an optional fake AI client.
    """

    def _make(settings: Settings | None = None, ai_client=None, cookies=None):
        current = settings or Settings()
        cache = SettingsCache()
        app = FastAPI()
        app.include_router(api.router)
        app.dependency_overrides[get_db] = lambda: seeded_db
        app.dependency_overrides[get_settings] = lambda: current
        app.dependency_overrides[deps.get_settings_cache] = lambda: cache
        app.dependency_overrides[deps.get_ai_client] = lambda: ai_client
        return TestClient(app, cookies=cookies)

    return _make


@pytest.fixture
def client(make_client):
    return make_client()


class FakeAIClient:
    """
    Minimal OpenAI client stand-in exposing ``chat.completions.create``.
    """

    def __init__(self, content: str | None = "A tidy summary.", error: Exception | None = None):
        self.content = content
        self.error = error
        self.calls = []
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))

    def _create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class FakeContentRepo:
    """
    Minimal content repo stand-in for formatter and service tests.
    """

    def __init__(self, posts=None, fields=None, terms=None):
        self.posts = {post.cid: post for post in posts or []}
        self.fields = fields or {}
        self.terms = terms or {}
        self.saved_fields = []

    def get_content(self, cid, published_only=True):
        return self.posts.get(cid)

    def get_post_fields(self, cid):
        return dict(self.fields.get(cid, {}))

    def get_post_terms(self, cid, term_type):
        return list(self.terms.get((cid, term_type), []))

    def set_post_field(self, cid, name, value):
        self.saved_fields.append((cid, name, value))
        self.fields.setdefault(cid, {})[name] = value


class FakeOptionsRepo:
    def __init__(self, values=None):
        self.values = values or {}

    def get(self, name, default=None):
        return self.values.get(name, default)

    def all(self):
        return dict(self.values)


class FakeSettingsRepo:
    """
    In-memory theme settings store keyed by bare field name.
    """

    def __init__(self, values=None):
        self.values = dict(values or {})

    def get(self, name, default=None):
        return self.values.get(name, default)

    def set(self, name, value):
        self.values[name] = value

    def all(self, current_theme_only=False):
        return dict(self.values)
