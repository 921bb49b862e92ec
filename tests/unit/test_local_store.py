"""Tests for the JSON-file store and the shared data models."""

import pytest
from pydantic import ValidationError

from agenda_pipeline.models import AgendaScrapingConfig, AIFieldToggle, EventData, IngestionRequest, Owner
from agenda_pipeline.models.event import coerce_flag
from agenda_pipeline.stores import LocalStore

URL = "https://venue.example/events/jazz-night"


class TestModels:
    """Tests for ownership and coercion rules."""

    def test_owner_requires_an_id(self):
        with pytest.raises(ValidationError):
            Owner()

    def test_organizer_wins_when_both_given(self):
        owner = Owner(organizer_id="org-1", location_id="loc-1")
        assert owner.location_id is None
        assert owner.label == "organizer:org-1"

    def test_config_needs_exactly_one_owner(self):
        with pytest.raises(ValidationError):
            AgendaScrapingConfig(
                organizer_id="org-1",
                location_id="loc-1",
                agenda_url=URL,
                event_link_selector="a",
            )

    @pytest.mark.parametrize("raw,expected", [
        ("Complet", True),
        ("true", True),
        ("false", False),
        ("Disponible", False),
        ("n/a", None),
        ("", None),
        (None, None),
        (1, True),
    ])
    def test_coerce_flag(self, raw, expected):
        assert coerce_flag(raw) is expected

    def test_stored_rows_ignore_unknown_columns(self):
        """Extra columns on config and request rows are dropped on load."""
        config = AgendaScrapingConfig.model_validate({
            "organizer_id": "org-1",
            "agenda_url": URL,
            "event_link_selector": "a",
            "updated_by": "admin",
        })
        request = IngestionRequest.model_validate({"id": "req-1", "reviewer_note": "later"})

        assert "updated_by" not in config.model_dump()
        assert "reviewer_note" not in request.model_dump()
        assert AgendaScrapingConfig.model_config["extra"] == "ignore"
        assert IngestionRequest.model_config["extra"] == "ignore"

    def test_event_data_keeps_extra_keys(self):
        data = EventData.model_validate({"title": "T", "moderation_note": "ok"})
        assert data.model_dump(exclude_none=True) == {"title": "T", "moderation_note": "ok"}


class TestLocalStore:
    """Tests for config scoping, request dedupe and persistence."""

    def test_agenda_configs_scoped_and_enabled(self, local_store, organizer):
        local_store.add_agenda_config(AgendaScrapingConfig(
            organizer_id="org-1", enabled=False, agenda_url=URL, event_link_selector="a",
        ))
        local_store.add_agenda_config(AgendaScrapingConfig(
            organizer_id="org-2", agenda_url=URL, event_link_selector="a",
        ))
        configs = local_store.get_agenda_configs(organizer)
        assert [c.id for c in configs] == ["cfg-1"]

    def test_ai_fields_do_not_leak_between_owners(self, local_store):
        local_store.add_ai_field(AIFieldToggle(organizer_id="org-1", field_name="price"))
        local_store.add_ai_field(AIFieldToggle(location_id="org-1", field_name="title"))

        org_fields = local_store.get_ai_fields(Owner(organizer_id="org-1"))
        loc_fields = local_store.get_ai_fields(Owner(location_id="org-1"))
        assert [t.field_name for t in org_fields] == ["price"]
        assert [t.field_name for t in loc_fields] == ["title"]

    def test_find_by_source_url(self, local_store):
        created = local_store.create_request(URL, EventData(scraping_url=URL, organizer_id="org-1"))
        assert local_store.find_by_source_url(URL).id == created.id
        assert local_store.find_by_source_url("https://other.example") is None

    def test_find_by_event_url_covers_legacy_rows(self, local_store):
        """Rows whose URL only lives inside event_data are still found."""
        legacy = local_store.create_request("", EventData(external_url=URL))
        assert local_store.find_by_source_url(URL) is None
        assert local_store.find_by_event_url(URL).id == legacy.id

    def test_update_reindexes_event_urls(self, local_store):
        request = local_store.create_request("https://a.example", EventData())
        local_store.update_event_data(request.id, EventData(external_url=URL))
        assert local_store.find_by_event_url(URL).id == request.id

    def test_get_event_data_is_a_copy(self, local_store):
        request = local_store.create_request(URL, EventData(title="Original"))
        data = local_store.get_event_data(request.id)
        data.title = "Changed"
        assert local_store.get_event_data(request.id).title == "Original"

    def test_unknown_request(self, local_store):
        with pytest.raises(KeyError):
            local_store.get_event_data("missing")

    def test_persists_to_disk(self, tmp_path, agenda_config):
        path = tmp_path / "store.json"
        store = LocalStore(path)
        store.add_agenda_config(agenda_config)
        store.add_location("loc-1", "Salle Pleyel")
        store.create_request(URL, EventData(scraping_url=URL, organizer_id="org-1"), location_name="Salle Pleyel")

        reloaded = LocalStore(path)
        assert len(reloaded.get_requests()) == 1
        assert reloaded.find_by_event_url(URL) is not None
        assert reloaded.get_location_name("loc-1") == "Salle Pleyel"
        assert reloaded.stats()["total"] == 1
