"""Pytest configuration and fixtures."""

import os
from datetime import datetime, timedelta

# Configuration is read at import time, so it has to be in place first.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret"
os.environ["ADMIN_EMAILS"] = "boss@example.com"
os.environ["REDIS_URL"] = ""
os.environ["RATE_LIMIT_DEFAULT_PER_MINUTE"] = "100000"
os.environ["RATE_LIMIT_LOGIN_PER_MINUTE"] = "100000"
os.environ["SEED_SAMPLE_DATA"] = "false"
os.environ["NOTIFICATION_WEBHOOK_URL"] = ""
os.environ["STRIPE_SECRET_KEY"] = ""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from gamebazaar.core.cache import cache_client
from gamebazaar.core.security import create_access_token, get_password_hash
from gamebazaar.db import Base, get_db
from gamebazaar.main import app
from gamebazaar.models import Blog, Game, GameGenre, User
from gamebazaar.utils.text import slugify

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

VALID_SHIPPING = {
    "street": "12 Harbour Road",
    "city": "Dhaka",
    "state": "Dhaka",
    "zip_code": "1207",
    "country": "Bangladesh",
    "mobile": "01712345678",
}


@pytest.fixture()
def db_session():
    """Fresh schema per test."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def client(db_session):
    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    cache_client.clear()
    yield TestClient(app)
    app.dependency_overrides.clear()
    cache_client.clear()


def _make_user(db, name: str, email: str, role: str = "user") -> User:
    user = User(name=name, email=email, password_hash=get_password_hash("secret123"), role=role)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture()
def user(db_session):
    return _make_user(db_session, "Rafi", "rafi@example.com")


@pytest.fixture()
def other_user(db_session):
    return _make_user(db_session, "Nadia", "nadia@example.com")


@pytest.fixture()
def admin(db_session):
    return _make_user(db_session, "Admin", "admin@example.com", role="admin")


def auth_headers(account: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(account.id)}"}


@pytest.fixture()
def make_game(db_session):
    def _make(title: str = "Aurora Shift", **overrides) -> Game:
        genres = overrides.pop("genre", ["Action"])
        values = {
            "description": f"{title} description",
            "price": 500.0,
            "discount_price": 0.0,
            "release_date": datetime(2024, 1, 1),
            "platform": ["PC"],
            "developer": "Arclight Studios",
            "publisher": "PulseWorks",
            "rating": "T",
            "stock": 10,
            "images": ["default.jpg"],
        }
        values.update(overrides)
        game = Game(title=title, slug=slugify(title), **values)
        game.genres = [GameGenre(name=name) for name in genres]
        db_session.add(game)
        db_session.commit()
        db_session.refresh(game)
        return game

    return _make


@pytest.fixture()
def make_blog(db_session):
    base_time = datetime(2025, 1, 1)

    def _make(title: str, author: User, offset_hours: int = 0, **overrides) -> Blog:
        values = {
            "description": f"{title} summary",
            "content": "A long read about games. " * 10,
            "blog_type": "Game Reviews",
            "frontpage_image": "cover.jpg",
            "images": [],
            "status": "published",
            "tags": [],
            "likes": [],
            "views": 0,
            "read_time": 1,
            "created_at": base_time + timedelta(hours=offset_hours),
        }
        values.update(overrides)
        blog = Blog(title=title, slug=slugify(title), author_id=author.id, **values)
        db_session.add(blog)
        db_session.commit()
        db_session.refresh(blog)
        return blog

    return _make
