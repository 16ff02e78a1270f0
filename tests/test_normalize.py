from __future__ import annotations

from datetime import date, datetime, timezone

from membership.domain.normalize import first_text, id_list, normalize_key, parse_date, parse_datetime, parse_day


def test_normalize_key_unwraps_single_element_lists() -> None:
    assert normalize_key(["  L-100 "]) == "L-100"
    assert normalize_key("L-100") == "L-100"
    assert normalize_key(["L-100", "L-200"]) == "L-100"


def test_normalize_key_rejects_non_strings() -> None:
    assert normalize_key(None) is None
    assert normalize_key([]) is None
    assert normalize_key([["L-100"]]) is None
    assert normalize_key(12345) is None
    assert normalize_key({"id": "L-100"}) is None


def test_first_text_treats_blank_as_missing() -> None:
    assert first_text("   ") is None
    assert first_text([" Ada "]) == "Ada"


def test_id_list_keeps_order_and_drops_blanks() -> None:
    assert id_list(["a", " ", "b", None, "a"]) == ["a", "b", "a"]
    assert id_list("solo") == ["solo"]
    assert id_list(None) == []


def test_parse_date_accepts_iso_with_time_part() -> None:
    assert parse_date("2024-06-30") == date(2024, 6, 30)
    assert parse_date(["2024-06-30T00:00:00.000Z"]) == date(2024, 6, 30)
    assert parse_date("not a date") is None
    assert parse_date("2024-02-30") is None


def test_parse_datetime_handles_trailing_z() -> None:
    assert parse_datetime("2024-06-20T10:15:00Z") == datetime(2024, 6, 20, 10, 15, tzinfo=timezone.utc)
    assert parse_datetime("") is None


def test_parse_day_requires_positive_integer() -> None:
    assert parse_day(15) == 15
    assert parse_day(" 7 ") == 7
    assert parse_day([31]) == 31
    assert parse_day(0) is None
    assert parse_day(True) is None
    assert parse_day("abc") is None
    assert parse_day(None) is None
