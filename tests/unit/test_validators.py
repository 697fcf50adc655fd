"""Tests for shared validators and email templates."""

from datetime import time

import pytest

from realestate.email_templates import viewing_request_received_template, viewing_scheduled_template
from realestate.shared.validators import parse_time_of_day, validate_email, validate_phone


@pytest.mark.unit
def test_validate_email_normalizes():
    assert validate_email("  Jane.Doe@Example.COM ") == "jane.doe@example.com"


@pytest.mark.unit
@pytest.mark.parametrize("email", ["jane", "jane@", "jane@example", "@example.com", "jane doe@example.com"])
def test_validate_email_rejects_malformed(email):
    with pytest.raises(ValueError, match="Invalid email format"):
        validate_email(email)


@pytest.mark.unit
@pytest.mark.parametrize("phone", ["+63 917 555 0101", "(02) 8123-4567", "09175550101", "+1.415.555.0100"])
def test_validate_phone_accepts_common_formats(phone):
    assert validate_phone(f" {phone} ") == phone


@pytest.mark.unit
@pytest.mark.parametrize("phone", ["12345", "call me maybe", "+63 917 555 0101 ext 4", "1" * 21])
def test_validate_phone_rejects_malformed(phone):
    with pytest.raises(ValueError, match="Invalid phone number"):
        validate_phone(phone)


@pytest.mark.unit
def test_validate_phone_requires_value():
    with pytest.raises(ValueError, match="required"):
        validate_phone("   ")


@pytest.mark.unit
@pytest.mark.parametrize(
    "value, expected",
    [
        ("10:00", time(10, 0)),
        ("9:05", time(9, 5)),
        ("23:59:30", time(23, 59, 30)),
        (time(14, 30, 0, 500), time(14, 30)),
    ],
)
def test_parse_time_of_day(value, expected):
    assert parse_time_of_day(value) == expected


@pytest.mark.unit
@pytest.mark.parametrize("value", ["24:00", "10:60", "10am", "", 1000])
def test_parse_time_of_day_rejects_invalid(value):
    with pytest.raises(ValueError):
        parse_time_of_day(value)


@pytest.mark.unit
def test_templates_escape_customer_input():
    mjml = viewing_request_received_template("<script>alert(1)</script>", "Loft & Garden")

    assert "<script>" not in mjml
    assert "&lt;script&gt;" in mjml
    assert "Loft &amp; Garden" in mjml
    assert mjml.lstrip().startswith("<mjml>")


@pytest.mark.unit
def test_scheduled_template_includes_slot():
    mjml = viewing_scheduled_template("Jane Doe", "Sunny Loft", "2025-03-01", "10:00")

    assert "2025-03-01" in mjml
    assert "10:00" in mjml
