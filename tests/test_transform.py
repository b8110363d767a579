"""
Tests for converting local records to the sync wire format
"""
import pytest

from talentbook.transform import (
    WireValidationError, booking_to_wire, build_push_payload, category_to_wire, decimal_string,
    project_to_wire, settings_to_wire, talent_to_wire,
)


@pytest.mark.parametrize("value,expected", [
    (500, "500"),
    (500.0, "500"),
    (12.5, "12.5"),
    (0, "0"),
    (0.1, "0.1"),
    (1e21, "1000000000000000000000"),
    (-15, "-15"),
])
def test_decimal_string(value, expected):
    assert decimal_string(value) == expected


@pytest.mark.parametrize("value", [float("inf"), float("-inf"), float("nan"), "abc"])
def test_decimal_string_rejects_non_finite(value):
    with pytest.raises(WireValidationError):
        decimal_string(value)


@pytest.fixture
def talent(store, category_id):
    return store.talents.create(
        name="Amal", category_id=category_id, gender="female", price_per_project=500,
        social_media={"instagram": "@amal"}, custom_fields={"height": "170 cm", "hairColor": "black"},
    )


class TestTalentToWire:

    def test_placeholder_category_with_local_id(self, talent, category_id):
        wire = talent_to_wire(talent)
        assert wire["odId"] == talent.id
        assert wire["categoryId"] == 1
        assert wire["categoryOdId"] == category_id
        assert wire["pricePerProject"] == "500"

    def test_nested_objects_pass_through(self, talent):
        wire = talent_to_wire(talent)
        assert wire["socialMedia"] == {"instagram": "@amal"}
        assert wire["customFields"] == {"height": "170 cm", "hairColor": "black"}

    def test_optional_fields_normalized(self, talent):
        wire = talent_to_wire(talent)
        assert wire["profilePhoto"] is None
        assert wire["rating"] is None
        assert wire["tags"] == []
        assert wire["isFavorite"] is False

    def test_invalid_gender_rejected(self, talent):
        talent.gender = "unknown"
        with pytest.raises(WireValidationError):
            talent_to_wire(talent)


class TestProjectToWire:

    def test_missing_dates_become_none(self, store):
        project = store.projects.create(name="Campaign", profit_margin_percent=12.5)
        wire = project_to_wire(project)
        assert wire["startDate"] is None
        assert wire["endDate"] is None
        assert wire["profitMarginPercent"] == "12.5"
        assert wire["status"] == "draft"

    def test_line_items_use_camel_case(self, store):
        project = store.projects.create(name="Campaign", talents=[{"talent_id": "t1", "custom_price": 450}])
        assert project_to_wire(project)["talents"] == [{"talentId": "t1", "customPrice": 450}]

    @pytest.mark.parametrize("field,value", [
        ("status", "archived"),
        ("pdf_template", "poster"),
        ("phase", "wrapping"),
    ])
    def test_invalid_enum_rejected(self, store, field, value):
        project = store.projects.create(name="Campaign")
        setattr(project, field, value)
        with pytest.raises(WireValidationError):
            project_to_wire(project)

    def test_non_finite_margin_rejected(self, store):
        project = store.projects.create(name="Campaign")
        project.profit_margin_percent = float("inf")
        with pytest.raises(WireValidationError):
            project_to_wire(project)


def test_category_to_wire(store):
    category = store.categories.ordered()[0]
    assert category_to_wire(category) == {"odId": category.id, "name": "Actors", "nameAr": "ممثلين", "order": 1}


def test_booking_to_wire(store, clock):
    booking = store.bookings.create(talent_id="t1", title="Shoot", project_id="p1",
                                    start_date=clock.now(), end_date=clock.now())
    wire = booking_to_wire(booking)
    assert wire["talentId"] == 1
    assert wire["talentOdId"] == "t1"
    assert wire["projectOdId"] == "p1"
    assert wire["startDate"] == "2026-03-01T09:00:00+00:00"
    assert wire["allDay"] is False


def test_settings_numbers_are_strings(store):
    wire = settings_to_wire(store.settings.save({"defaultProfitMargin": 17.5}))
    assert wire["defaultProfitMargin"] == "17.5"
    assert wire["reminderDayOfMonth"] == "1"
    assert wire["viewMode"] == "grid"
    assert wire["language"] == "en"


def test_payload_aborts_on_any_invalid_record(store, talent):
    bad = store.projects.create(name="Broken")
    bad.status = "archived"
    with pytest.raises(WireValidationError):
        build_push_payload(talents=[talent], projects=[bad])


def test_payload_omits_settings_when_not_given(talent):
    payload = build_push_payload(talents=[talent])
    assert set(payload) == {"talents", "projects", "categories", "bookings"}
    assert len(payload["talents"]) == 1
