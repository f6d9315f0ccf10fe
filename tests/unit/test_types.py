"""
Unit tests for catalog records and error types.
"""

from datetime import datetime, timezone

from catalog.mvn_core.errors import AccessDeniedError, ConflictError, NotFoundError
from catalog.mvn_core.model import (
    EditPermission,
    LocalizedMetadata,
    Poster,
    Scanlator,
    ScanlatorRole,
    Series,
    Unit,
)


class TestSeries:
    """Tests for Series."""

    def test_from_dict_defaults(self):
        series = Series.from_dict({"id": "urn:mvn:series:s1", "title": "S"})
        assert series.media_type == "Photo"
        assert series.tags == ()
        assert series.localized == {}
        assert series.allowed_editors == ()

    def test_owner_is_creator(self):
        assert Series(id="urn:mvn:series:s1", title="S", created_by="urn:mvn:user:a").owner == (
            "urn:mvn:user:a"
        )

    def test_poster_for_language(self):
        """Localized cover wins, default cover is the fallback."""
        series = Series(
            id="urn:mvn:series:s1",
            title="S",
            poster=Poster("default.png"),
            localized={
                "ja": LocalizedMetadata(poster=Poster("ja.png")),
                "en": LocalizedMetadata(title="S"),
            },
        )
        assert series.poster_for("JA") == Poster("ja.png")
        assert series.poster_for("en") == Poster("default.png")
        assert series.poster_for() == Poster("default.png")

    def test_poster_for_upper_case_key(self):
        """A block stored under an upper-case code is still found."""
        series = Series(
            id="urn:mvn:series:s1",
            title="S",
            poster=Poster("default.png"),
            localized={"EN": LocalizedMetadata(poster=Poster("en.png"))},
        )
        assert series.poster_for("en") == Poster("en.png")
        assert series.poster_for("EN") == Poster("en.png")
        assert series.poster_for("fr") == Poster("default.png")

    def test_scanlator_role_from_dict(self):
        scanlator = Scanlator.from_dict({"id": "g1", "name": "G", "role": "Translation"})
        assert scanlator.role == ScanlatorRole.TRANSLATION
        assert scanlator.to_dict()["role"] == "translation"


class TestUnit:
    """Tests for Unit."""

    def test_unset_overrides_are_none(self):
        unit = Unit.from_dict({"id": "urn:mvn:unit:u1", "series_id": "urn:mvn:series:s1"})
        assert unit.tags is None
        assert unit.authors is None
        assert unit.localized is None
        assert unit.to_dict()["tags"] is None

    def test_empty_override_kept(self):
        unit = Unit.from_dict(
            {"id": "urn:mvn:unit:u1", "series_id": "urn:mvn:series:s1", "tags": []}
        )
        assert unit.tags == ()


class TestEditPermission:
    def test_dict_form(self):
        granted_at = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        record = EditPermission("urn:mvn:series:s1", "urn:mvn:user:b", "urn:mvn:user:a", granted_at)
        data = record.to_dict()
        assert data["granted_at"] == "2024-01-02T03:04:05+00:00"
        assert EditPermission.from_dict(data) == record


class TestErrors:
    """Tests for error codes and context."""

    def test_not_found(self):
        error = NotFoundError("gone", resource_type="series", resource_id="urn:mvn:series:s1")
        assert error.code == "NOT_FOUND"
        assert error.resource_id == "urn:mvn:series:s1"

    def test_conflict(self):
        assert ConflictError("dup", resource_type="unit", resource_id="x").code == "CONFLICT"

    def test_access_denied(self):
        error = AccessDeniedError("no", actor="urn:mvn:user:a", resource_id="urn:mvn:unit:u")
        assert error.code == "ACCESS_DENIED"
        assert error.actor == "urn:mvn:user:a"
