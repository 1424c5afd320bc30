"""Unit tests for app.services.validation."""

import pytest

from app.services.validation import (
    clean,
    has_contact_channel,
    is_valid_email,
    normalize_email,
    validate_application,
    validate_import_row,
)


def _application(**overrides):
    data = {
        "first_name": "Alice",
        "last_name": "Martin",
        "email": "alice@example.com",
        "enrollment_track": "L3 Informatique",
        "phone": None,
        "telegram": "@alice",
        "discord": None,
    }
    data.update(overrides)
    return data


# ---------------------------------------------------------------------------
# clean / normalize_email
# ---------------------------------------------------------------------------

class TestClean:
    def test_strips(self):
        assert clean("  Alice ") == "Alice"

    def test_blank_is_none(self):
        assert clean("   ") is None
        assert clean("") is None
        assert clean(None) is None


class TestNormalizeEmail:
    def test_lowercases_and_trims(self):
        assert normalize_email("  Alice@Example.COM ") == "alice@example.com"

    def test_blank(self):
        assert normalize_email(" ") is None


# ---------------------------------------------------------------------------
# is_valid_email
# ---------------------------------------------------------------------------

class TestIsValidEmail:
    @pytest.mark.parametrize("email", [
        "a@b.co",
        "first.last@univ-paris.fr",
        "x+tag@sub.example.org",
    ])
    def test_valid(self, email):
        assert is_valid_email(email)

    @pytest.mark.parametrize("email", [
        "",
        None,
        "plainaddress",
        "@example.com",
        "a@b@example.com",
        "a@example",
        "a@.example.com",
        "a@example.com.",
        "a b@example.com",
        "a@exa mple.com",
    ])
    def test_invalid(self, email):
        assert not is_valid_email(email)

    def test_too_long(self):
        assert not is_valid_email("a" * 250 + "@b.co")

    def test_pathological_input_is_rejected_quickly(self):
        assert not is_valid_email("a" * 100000 + "@")


# ---------------------------------------------------------------------------
# validate_application
# ---------------------------------------------------------------------------

class TestValidateApplication:
    def test_valid(self):
        assert validate_application(_application()) == []

    def test_reports_every_problem(self):
        errors = validate_application({})
        assert errors == [
            "Le prénom est requis",
            "Le nom est requis",
            "L'email est requis",
            "Le cursus est requis",
            "Au moins un moyen de contact est requis",
        ]

    def test_invalid_email(self):
        assert validate_application(_application(email="nope")) == ["L'email est invalide"]

    def test_whitespace_contact_does_not_count(self):
        data = _application(telegram="  ")
        assert not has_contact_channel(data)
        assert "Au moins un moyen de contact est requis" in validate_application(data)

    def test_any_one_channel_is_enough(self):
        assert validate_application(_application(telegram=None, discord="alice#1234")) == []


class TestValidateImportRow:
    def test_valid(self):
        assert validate_import_row("Alice", "Martin", "alice@example.com") == []

    def test_missing_fields(self):
        assert validate_import_row(None, None, None) == [
            "Missing first name",
            "Missing last name",
            "Missing email",
        ]

    def test_invalid_email_is_named(self):
        assert validate_import_row("Alice", "Martin", "alice@") == ["Invalid email 'alice@'"]
