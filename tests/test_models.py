"""
Model, settings and request-schema tests.
"""

import pytest
from pydantic import ValidationError

from arcaide_server.api.models import ArcUpdate, SearchResult, ThingCreate, ThingUpdate
from arcaide_server.config import Settings
from arcaide_server.db import Arc, Campaign
from arcaide_server.search.executor import SearchHit
from arcaide_server.services.slugs import slugify


class TestSlugify:

    @pytest.mark.parametrize(
        "name, slug",
        [
            ("Goblin Chief Klarg", "goblin-chief-klarg"),
            ("  Wave Echo  Cave! ", "wave-echo-cave"),
            ("Act 1: The Road", "act-1-the-road"),
            ("Drachenhöhle", "drachenh-hle"),
            ("---", ""),
        ],
    )
    def test_slugify(self, name, slug):
        assert slugify(name) == slug


class TestDatabaseModels:

    def test_campaign_fields(self):
        campaign = Campaign(slug="lost-mine", name="Lost Mine", user_id="user-1")
        assert campaign.slug == "lost-mine"
        assert campaign.user_id == "user-1"

    def test_arc_has_text_shadow_for_every_rich_field(self):
        columns = set(Arc.__table__.columns.keys())
        for field in ("hook", "protagonist", "antagonist", "problem", "key", "outcome", "notes"):
            assert field in columns
            assert f"{field}_text" in columns


class TestSettings:

    def test_defaults(self, monkeypatch):
        monkeypatch.setenv("ARCAIDE_JWT_SECRET", "from-env-secret")
        settings = Settings(_env_file=None)

        assert settings.database_url.startswith("sqlite+aiosqlite://")
        assert settings.jwt_issuer == "arcaide-auth"
        assert settings.jwt_audience == "arcaide-server"
        assert settings.fuzzy_max_distance == 2
        assert settings.search_snippet_tokens == 5
        assert settings.jwt_secret.get_secret_value() == "from-env-secret"

    def test_secret_is_required(self, monkeypatch):
        monkeypatch.delenv("ARCAIDE_JWT_SECRET", raising=False)
        with pytest.raises(ValidationError):
            Settings(_env_file=None)


class TestRequestModels:

    def test_camel_case_aliases(self):
        req = ThingCreate.model_validate({"name": "Klarg", "typeId": 3})
        assert req.type_id == 3
        assert req.description is None

    def test_unknown_fields_rejected(self):
        with pytest.raises(ValidationError):
            ThingCreate.model_validate({"name": "Klarg", "typeId": 3, "slug": "nope"})

    def test_description_string_is_normalized(self):
        req = ThingCreate.model_validate({"name": "Klarg", "typeId": 3, "description": "a\nb"})
        assert len(req.description) == 2

    def test_update_tracks_sent_fields(self):
        assert ThingUpdate.model_validate({}).model_fields_set == set()
        assert ThingUpdate.model_validate({"description": None}).model_fields_set == {"description"}
        assert ArcUpdate.model_validate({"parentArcId": None}).model_fields_set == {"parent_arc_id"}


def test_search_result_from_hit_serializes_camel_case():
    hit = SearchHit(
        type="thing",
        entity_id=1,
        campaign_id=2,
        title="Klarg",
        content="klarg leads",
        slug="klarg",
        rank=-1.5,
        highlight="<mark>klarg</mark> leads",
    )
    data = SearchResult.model_validate(hit).model_dump(by_alias=True, exclude_none=True)

    assert data["entityId"] == 1
    assert data["campaignId"] == 2
    assert "originalQuery" not in data
