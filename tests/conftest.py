import time

import jwt
import pytest
from fastapi.testclient import TestClient

from arcaide_server.config import Settings
from arcaide_server.db import (
    Campaign,
    ThingType,
    create_engine_from_settings,
    create_session_factory,
    init_db,
)
from arcaide_server.main import create_app
from arcaide_server.search.indexer import SearchIndexer
from arcaide_server.search.vocabulary import Vocabulary

TEST_JWT_SECRET = "test-secret-for-arcaide-must-be-long-enough"


def create_token(
    sub="user-1",
    name="Test User",
    issuer="arcaide-auth",
    audience="arcaide-server",
    expired=False,
    secret=TEST_JWT_SECRET,
    **extra,
):
    now = int(time.time())
    iat = now - 3600 if expired else now
    exp = iat - 10 if expired else now + 300

    payload = {
        "iss": issuer,
        "aud": audience,
        "iat": iat,
        "exp": exp,
        "sub": sub,
        "name": name,
        **extra,
    }
    return jwt.encode(payload, secret, algorithm="HS256")


def auth_headers(sub="user-1"):
    return {"Authorization": f"Bearer {create_token(sub=sub)}"}


def make_settings(tmp_path, **overrides):
    values = {
        "database_url": f"sqlite+aiosqlite:///{tmp_path / 'arcaide-test.db'}",
        "jwt_secret": TEST_JWT_SECRET,
        "log_level": "WARNING",
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def settings(tmp_path):
    return make_settings(tmp_path)


# ---------------------------------------------------------------------
# Database fixtures (service-level tests)
# ---------------------------------------------------------------------

@pytest.fixture
async def engine(settings):
    engine = create_engine_from_settings(settings)
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def vocabulary(session):
    return Vocabulary(session, max_distance=2)


@pytest.fixture
def indexer(session, vocabulary):
    return SearchIndexer(session, vocabulary)


async def add_campaign(session, slug="lost-mine", user_id="user-1"):
    campaign = Campaign(slug=slug, name=slug.replace("-", " ").title(), user_id=user_id)
    session.add(campaign)
    await session.flush()
    return campaign


async def add_thing_type(session, campaign, name="Character"):
    thing_type = ThingType(name=name, campaign_id=campaign.id)
    session.add(thing_type)
    await session.flush()
    return thing_type


# ---------------------------------------------------------------------
# HTTP fixtures
# ---------------------------------------------------------------------

@pytest.fixture
def client(settings):
    app = create_app(settings)
    with TestClient(app) as client:
        yield client


@pytest.fixture
def headers():
    return auth_headers()
