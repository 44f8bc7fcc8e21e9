"""Upstream payload validation tests."""

from datetime import date
from unittest.mock import patch

import pytest

from publisher.errors import DateMismatchError, ValidationError
from publisher.services.validator import (
    PLACEHOLDER_TEXT,
    DataValidator,
    ValidationPolicy,
)


def test_valid_payload_builds_record(raw_digest):
    record = DataValidator(ValidationPolicy.STRICT).validate(raw_digest)

    assert record.date == "2024-01-01"
    assert record.news_items == ("First headline", "Second headline")
    assert record.tip == "Keep going."
    assert record.lunar_date == "冬月二十"
    assert record.source_url == "https://upstream.example/article"
    assert record.cover_url == "https://upstream.example/cover.png"


def test_strict_policy_names_missing_tip(raw_digest):
    del raw_digest["tip"]

    with pytest.raises(ValidationError) as exc_info:
        DataValidator(ValidationPolicy.STRICT).validate(raw_digest)

    assert "tip" in exc_info.value.missing_fields
    assert "tip" in str(exc_info.value)


def test_strict_policy_reports_every_missing_field():
    with pytest.raises(ValidationError) as exc_info:
        DataValidator(ValidationPolicy.STRICT).validate({"news": []})

    assert exc_info.value.missing_fields == ["date", "news", "lunar_date", "tip"]


def test_lenient_policy_substitutes_placeholder_for_tip(raw_digest):
    del raw_digest["tip"]

    record = DataValidator(ValidationPolicy.LENIENT).validate(raw_digest)

    assert record.tip == PLACEHOLDER_TEXT
    assert record.news_items == ("First headline", "Second headline")


@patch("publisher.services.validator.today_local", return_value=date(2024, 3, 5))
def test_lenient_policy_fills_date_and_news(_mock_today):
    record = DataValidator(ValidationPolicy.LENIENT).validate({})

    assert record.date == "2024-03-05"
    assert record.news_items == ()
    assert record.tip == PLACEHOLDER_TEXT
    assert record.lunar_date == PLACEHOLDER_TEXT


@pytest.mark.parametrize("policy", list(ValidationPolicy))
def test_news_must_be_an_array(policy, raw_digest):
    raw_digest["news"] = "not a list"

    with pytest.raises(ValidationError):
        DataValidator(policy).validate(raw_digest)


@pytest.mark.parametrize("bad_date", ["2024/01/01", "20240101", "2024-02-30"])
def test_malformed_date_is_rejected(bad_date, raw_digest):
    raw_digest["date"] = bad_date

    with pytest.raises(ValidationError):
        DataValidator(ValidationPolicy.LENIENT).validate(raw_digest)


def test_date_gate_rejects_other_date(raw_digest):
    raw_digest["date"] = "2024-01-02"

    with pytest.raises(DateMismatchError) as exc_info:
        DataValidator().validate(raw_digest, expected_date="2024-01-01")

    assert exc_info.value.actual == "2024-01-02"
    assert exc_info.value.expected == "2024-01-01"
    assert not isinstance(exc_info.value, ValidationError)


def test_date_gate_accepts_matching_date(raw_digest):
    record = DataValidator().validate(raw_digest, expected_date="2024-01-01")

    assert record.date == "2024-01-01"


def test_news_entries_are_kept_verbatim_in_order(raw_digest):
    raw_digest["news"] = ["b", "", " a ", "b"]

    record = DataValidator().validate(raw_digest)

    assert record.news_items == ("b", "", " a ", "b")


@pytest.mark.parametrize("policy", list(ValidationPolicy))
def test_non_string_news_entry_is_rejected(policy, raw_digest):
    raw_digest["news"] = ["Headline", 42]

    with pytest.raises(ValidationError) as exc_info:
        DataValidator(policy).validate(raw_digest)

    assert exc_info.value.missing_fields == ["news"]


def test_strict_policy_rejects_blank_only_news(raw_digest):
    raw_digest["news"] = ["", "   "]

    with pytest.raises(ValidationError) as exc_info:
        DataValidator(ValidationPolicy.STRICT).validate(raw_digest)

    assert exc_info.value.missing_fields == ["news"]


def test_lenient_policy_treats_blank_only_news_as_empty(raw_digest):
    raw_digest["news"] = ["", "   "]

    record = DataValidator(ValidationPolicy.LENIENT).validate(raw_digest)

    assert record.news_items == ()


def test_policy_accepts_config_string():
    assert DataValidator("strict").policy is ValidationPolicy.STRICT
