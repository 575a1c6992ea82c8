from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone

import pytest

from fedora_oai_driver.core.dates import DATE_FORMATS, format_date, parse_date
from fedora_oai_driver.core.errors import RepositoryError, UnparsableDateError


@pytest.mark.parametrize(
    "lexical",
    [
        "2020-01-01T00:00:00",
        "2020-01-01T00:00:00Z",
        "2021-06-15T12:34:56.789",
        "2021-06-15T12:34:56.789Z",
    ],
)
def test_parse_date_round_trips_each_supported_length(lexical):
    parsed = parse_date(lexical)

    assert parsed.tzinfo is UTC
    assert format_date(parsed, len(lexical)) == lexical


def test_parse_date_trailing_z_is_utc():
    assert parse_date("2020-01-01T00:00:00Z") == datetime(2020, 1, 1, tzinfo=UTC)


def test_parse_date_keeps_milliseconds():
    parsed = parse_date("2021-06-15T12:34:56.789Z")

    assert parsed.microsecond == 789000
    assert parsed.second == 56


@pytest.mark.parametrize(
    "lexical",
    [
        "",
        "2020-01-01",
        "2020-01-01T00:00",
        "2020-01-01T00:00:00.1Z",
        "2020-01-01T00:00:00+02:00",
        "2020-01-01T00:00:00.123+02:00",
    ],
)
def test_parse_date_rejects_unsupported_lengths(lexical):
    with pytest.raises(UnparsableDateError) as excinfo:
        parse_date(lexical)

    assert excinfo.value.value == lexical
    assert str(excinfo.value) == f"Could not parse date: {lexical}"


@pytest.mark.parametrize(
    "lexical",
    [
        "2020-13-01T00:00:00Z",
        "2020-01-01 00:00:00",
        "2020-01-01T00:00:00X",
        "not-a-date-at-all-!!!!!",
    ],
)
def test_parse_date_rejects_malformed_text_of_supported_length(lexical):
    assert len(lexical) in {length for length, _ in DATE_FORMATS}

    with pytest.raises(RepositoryError):
        parse_date(lexical)


def test_format_date_converts_aware_values_to_utc():
    value = datetime(2020, 1, 1, 2, 0, tzinfo=timezone(timedelta(hours=2)))

    assert format_date(value) == "2020-01-01T00:00:00Z"


def test_format_date_rejects_unknown_length():
    with pytest.raises(ValueError):
        format_date(datetime(2020, 1, 1), 21)
