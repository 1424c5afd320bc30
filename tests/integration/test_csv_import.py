"""Integration tests for the CSV roster import.

Tests:
  - insert vs. merge by normalized email, with blank cells preserving stored values
  - row-level errors: numbering, isolation, capped detail with exact counts
  - bureau roles: holders in the database and claims within the same file
  - whole-import failures: missing columns, no data rows
"""

from __future__ import annotations

import pytest

from app.core.exceptions import EmptyImportError, MissingColumnsError
from app.models import Member, MemberStatus, MembershipHistory
from app.services.csv_import import IMPORT_REASON, import_members
from app.services.history import get_member_history


def _csv(*lines: str) -> str:
    return "\n".join(lines) + "\n"


def _member(db, email: str) -> Member:
    db.expire_all()
    return db.query(Member).filter(Member.email == email).one()


# ---------------------------------------------------------------------------
# New and existing members
# ---------------------------------------------------------------------------

class TestInsertAndMerge:
    def test_inserts_new_members(self, db):
        result = import_members(db, _csv(
            "Prénom,Nom,Email,Téléphone,Cursus,Statut",
            "Alice,Martin,Alice@Example.com,0601020304,L3 Informatique,Membre actif",
            "Bob,Durand,bob@example.com,,M1 Informatique,",
        ), changed_by="admin")

        assert result.to_dict() == {"imported": 2, "updated": 0, "skipped": 0, "total": 2, "errors": []}
        alice = _member(db, "alice@example.com")
        assert alice.status is MemberStatus.ACTIVE
        assert alice.phone == "0601020304"
        assert alice.approved_at is not None
        assert alice.expires_at is not None
        history = get_member_history(db, alice.id)
        assert [(h.old_status, h.new_status, h.reason, h.changed_by) for h in history] == [
            (None, MemberStatus.ACTIVE, IMPORT_REASON, "admin"),
        ]

    def test_quoted_header_cell_containing_commas(self, db):
        result = import_members(db, _csv(
            'Prénom;Nom;Email;"Notes, a, b, c"',
            "Ann;Lee;ann@example.com;x",
        ))

        assert (result.imported, result.skipped) == (1, 0)
        assert _member(db, "ann@example.com").last_name == "Lee"

    def test_missing_track_defaults(self, db):
        import_members(db, _csv("Prénom,Nom,Email", "Alice,Martin,alice@example.com"))
        assert _member(db, "alice@example.com").enrollment_track == "Autre"

    def test_pending_and_rejected_rows_are_not_approved(self, db):
        import_members(db, _csv(
            "Prénom;Nom;Email;Statut",
            "Alice;Martin;alice@example.com;En attente",
            "Bob;Durand;bob@example.com;Refusé",
        ))
        for email, status in (("alice@example.com", MemberStatus.PENDING), ("bob@example.com", MemberStatus.REJECTED)):
            member = _member(db, email)
            assert member.status is status
            assert member.approved_at is None
            assert member.expires_at is None

    def test_status_labels(self, db):
        import_members(db, _csv(
            "Prénom\tNom\tEmail\tStatut",
            "Alice\tMartin\talice@example.com\tTrésorier",
            "Bob\tDurand\tbob@example.com\tUnknown",
            "Chloé\tPetit\tchloe@example.com\tPrésident d'honneur",
        ))
        assert _member(db, "alice@example.com").status is MemberStatus.TREASURER
        assert _member(db, "bob@example.com").status is MemberStatus.ACTIVE
        assert _member(db, "chloe@example.com").status is MemberStatus.HONORARY_PRESIDENT

    def test_merge_preserves_blank_optional_fields(self, db, make_member):
        make_member(
            "alice@example.com",
            MemberStatus.PENDING,
            first_name="Alice",
            last_name="Martin",
            phone="0601020304",
            student_id="22001234",
        )

        result = import_members(db, _csv(
            "Prénom,Nom,Email,Téléphone,Numéro étudiant,Telegram",
            "Alicia,Martin-Durand,ALICE@example.com,,,@alicia",
        ))

        assert (result.imported, result.updated, result.skipped) == (0, 1, 0)
        alice = _member(db, "alice@example.com")
        assert alice.first_name == "Alicia"
        assert alice.last_name == "Martin-Durand"
        assert alice.phone == "0601020304"
        assert alice.student_id == "22001234"
        assert alice.telegram == "@alicia"
        assert alice.status is MemberStatus.ACTIVE
        assert alice.approved_at is not None

    def test_reimport_without_status_change_adds_no_history(self, db):
        csv_text = _csv("Prénom,Nom,Email,Statut", "Alice,Martin,alice@example.com,Actif")
        import_members(db, csv_text)
        result = import_members(db, csv_text)

        assert result.updated == 1
        assert db.query(MembershipHistory).count() == 1

    def test_reimport_keeps_approval_dates(self, db):
        csv_text = _csv("Prénom,Nom,Email", "Alice,Martin,alice@example.com")
        import_members(db, csv_text)
        approved_at = _member(db, "alice@example.com").approved_at

        import_members(db, csv_text)

        assert _member(db, "alice@example.com").approved_at == approved_at


# ---------------------------------------------------------------------------
# Row-level errors
# ---------------------------------------------------------------------------

class TestRowErrors:
    def test_invalid_row_is_isolated_and_numbered(self, db):
        result = import_members(db, _csv(
            "Prénom,Nom,Email",
            "Alice,Martin,alice@example.com",
            "Bob,Durand,not-an-email",
            "Chloé,Petit,chloe@example.com",
        ))

        assert (result.imported, result.skipped, result.total) == (2, 1, 3)
        assert len(result.errors) == 1
        assert result.errors[0].startswith("Row 2: ")
        assert "not-an-email" in result.errors[0]

    def test_blank_lines_keep_row_numbers(self, db):
        result = import_members(db, _csv(
            "Prénom,Nom,Email",
            "Alice,Martin,alice@example.com",
            "",
            "Bob,Durand,not-an-email",
        ))

        assert (result.imported, result.skipped, result.total) == (1, 1, 2)
        assert result.errors == ["Row 3: Invalid email 'not-an-email'"]

    def test_missing_values(self, db):
        result = import_members(db, _csv("Prénom,Nom,Email", ",Martin,"))
        assert result.errors == ["Row 1: Missing first name; Missing email"]

    def test_error_detail_is_capped_but_counts_are_exact(self, db):
        lines = ["Prénom,Nom,Email"] + [f"User{i},Test,bad-{i}" for i in range(15)] + ["Ok,Test,ok@example.com"]

        result = import_members(db, _csv(*lines), error_limit=10)

        assert result.skipped == 15
        assert result.imported == 1
        assert result.total == 16
        assert len(result.errors) == 10
        assert result.error_count == 15
        assert result.errors[-1].startswith("Row 10: ")

    def test_default_error_limit_from_settings(self, db, monkeypatch):
        from app.core.config import settings

        monkeypatch.setattr(settings, "IMPORT_ERROR_LIMIT", 3)
        lines = ["Prénom,Nom,Email"] + [f"User{i},Test," for i in range(5)]

        result = import_members(db, _csv(*lines))

        assert len(result.errors) == 3
        assert result.skipped == 5

    def test_storage_failure_is_a_row_error(self, db, monkeypatch):
        from app.services import csv_import

        calls = {"n": 0}
        original = csv_import._insert_member

        def flaky_insert(db_, run, record, status):
            calls["n"] += 1
            if calls["n"] == 1:
                raise RuntimeError("disk full")
            return original(db_, run, record, status)

        monkeypatch.setattr(csv_import, "_insert_member", flaky_insert)

        result = import_members(db, _csv(
            "Prénom,Nom,Email",
            "Alice,Martin,alice@example.com",
            "Bob,Durand,bob@example.com",
        ))

        assert (result.imported, result.skipped) == (1, 1)
        assert result.errors == ["Row 1: Could not save alice@example.com (RuntimeError)"]
        assert db.query(Member).count() == 1


# ---------------------------------------------------------------------------
# Bureau roles
# ---------------------------------------------------------------------------

class TestBureauRoles:
    def test_duplicate_role_in_same_file(self, db):
        result = import_members(db, _csv(
            "Prénom,Nom,Email,Statut",
            "Alice,Martin,alice@example.com,Secrétaire",
            "Bob,Durand,bob@example.com,Secrétaire",
        ))

        assert (result.imported, result.skipped) == (1, 1)
        assert result.errors == ["Row 2: Secrétaire is already assigned to Alice Martin"]
        assert db.query(Member).filter(Member.status == MemberStatus.SECRETARY).count() == 1
        assert db.query(Member).filter(Member.email == "bob@example.com").count() == 0

    def test_role_held_in_database(self, db, make_member):
        make_member("paul@example.com", MemberStatus.PRESIDENT, first_name="Paul", last_name="Roux")

        result = import_members(db, _csv(
            "Prénom,Nom,Email,Statut",
            "Alice,Martin,alice@example.com,Président",
        ))

        assert result.skipped == 1
        assert result.errors == ["Row 1: Président is already assigned to Paul Roux"]
        assert _member(db, "paul@example.com").status is MemberStatus.PRESIDENT

    def test_current_holder_can_be_reimported(self, db, make_member):
        make_member("paul@example.com", MemberStatus.TREASURER, first_name="Paul", last_name="Roux")

        result = import_members(db, _csv(
            "Prénom,Nom,Email,Statut",
            "Paul,Roux,PAUL@example.com,Trésorier",
        ))

        assert (result.updated, result.skipped) == (1, 0)

    def test_role_released_earlier_in_file(self, db, make_member):
        make_member("paul@example.com", MemberStatus.PRESIDENT, first_name="Paul", last_name="Roux")

        result = import_members(db, _csv(
            "Prénom,Nom,Email,Statut",
            "Paul,Roux,paul@example.com,Membre actif",
            "Alice,Martin,alice@example.com,Président",
        ))

        assert result.skipped == 0
        assert _member(db, "paul@example.com").status is MemberStatus.ACTIVE
        assert _member(db, "alice@example.com").status is MemberStatus.PRESIDENT

    def test_failed_row_does_not_claim_role(self, db):
        result = import_members(db, _csv(
            "Prénom,Nom,Email,Statut",
            "Alice,,alice@example.com,Président",
            "Bob,Durand,bob@example.com,Président",
        ))

        assert (result.imported, result.skipped) == (1, 1)
        assert _member(db, "bob@example.com").status is MemberStatus.PRESIDENT

    def test_honorary_president_can_repeat(self, db):
        result = import_members(db, _csv(
            "Prénom,Nom,Email,Statut",
            "Alice,Martin,alice@example.com,Président d'honneur",
            "Bob,Durand,bob@example.com,Président d'honneur",
        ))
        assert (result.imported, result.skipped) == (2, 0)

    def test_claims_do_not_leak_between_imports(self, db, make_member):
        import_members(db, _csv("Prénom,Nom,Email,Statut", "Alice,Martin,alice@example.com,Trésorier"))
        alice = _member(db, "alice@example.com")
        db.delete(alice)
        db.commit()

        result = import_members(db, _csv("Prénom,Nom,Email,Statut", "Bob,Durand,bob@example.com,Trésorier"))

        assert result.skipped == 0


# ---------------------------------------------------------------------------
# Whole-import failures
# ---------------------------------------------------------------------------

class TestImportRefused:
    def test_missing_required_columns(self, db):
        with pytest.raises(MissingColumnsError) as exc_info:
            import_members(db, _csv("Prénom,Téléphone", "Alice,0601020304"))
        assert exc_info.value.missing == ["Nom", "Email"]
        assert str(exc_info.value) == "Missing required columns: Nom, Email"
        assert db.query(Member).count() == 0

    def test_header_only(self, db):
        with pytest.raises(EmptyImportError):
            import_members(db, _csv("Prénom,Nom,Email"))


class TestExportReimport:
    def test_export_can_be_reimported(self, db, make_member):
        from app.services.export import export_members_csv

        make_member("alice@example.com", MemberStatus.VICE_PRESIDENT, phone="0601020304", enrollment_number="INS-1")
        make_member("bob@example.com", MemberStatus.HONOR)
        content, filename = export_members_csv(db)

        result = import_members(db, content)

        assert filename == "members.csv"
        assert result.to_dict() == {"imported": 0, "updated": 2, "skipped": 0, "total": 2, "errors": []}
        alice = _member(db, "alice@example.com")
        assert alice.status is MemberStatus.VICE_PRESIDENT
        assert alice.enrollment_number == "INS-1"
