"""Tests for the secure-wallet maintenance CLI."""

import json

import pytest

from secure_wallet.__main__ import main
from secure_wallet.core.audit_log import EventType, get_audit_logger


@pytest.fixture
def definition(tmp_path):
    path = tmp_path / "gym.json"
    path.write_text(json.dumps({
        "id": "gym_locker",
        "label": "Gym Locker",
        "fields": [
            {"name": "gym", "label": "Gym", "required": True},
            {"name": "combination", "label": "Combination", "type": "password", "sensitive": True},
        ],
    }))
    return path


class TestCategoriesCommand:

    def test_lists_builtins(self, capsys):
        assert main(["categories"]) == 0
        out = capsys.readouterr().out
        assert "payment_cards" in out
        assert "cardNumber, cvv, pin" in out

    def test_json_output(self, capsys):
        assert main(["categories", "--json"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert len(data) == 10
        assert data[0]["provenance"] == "builtin"


class TestCustomCategoryCommands:

    def test_add_persists_and_audits(self, definition, capsys):
        assert main(["add-category", str(definition)]) == 0
        capsys.readouterr()

        assert main(["categories", "--json"]) == 0
        ids = [c["id"] for c in json.loads(capsys.readouterr().out)]
        assert ids[-1] == "gym_locker"

        events = get_audit_logger().query_events(event_types=[EventType.CATEGORY_REGISTERED])
        assert events[0]["details"]["category"] == "gym_locker"

    def test_add_duplicate_fails(self, definition, capsys):
        main(["add-category", str(definition)])
        assert main(["add-category", str(definition)]) == 1
        assert "duplicate_id" in capsys.readouterr().err

    def test_remove(self, definition, capsys):
        main(["add-category", str(definition)])
        assert main(["remove-category", "gym_locker"]) == 0
        assert main(["remove-category", "gym_locker"]) == 1
        assert "not_found" in capsys.readouterr().err

    def test_remove_builtin_fails(self, capsys):
        assert main(["remove-category", "passwords"]) == 1
        assert "schema" in capsys.readouterr().err

    def test_missing_definition_file(self, tmp_path, capsys):
        assert main(["add-category", str(tmp_path / "missing.json")]) == 2

    @pytest.mark.parametrize("payload", [
        ["gym_locker"],
        {"id": "gym_locker", "label": "Gym Locker", "fields": ["gym"]},
    ])
    def test_malformed_definition_reports_schema_error(self, tmp_path, capsys, payload):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps(payload))
        assert main(["add-category", str(path)]) == 1
        assert "Error (schema)" in capsys.readouterr().err


class TestGeneratorCommands:

    def test_generate_password_preset(self, capsys):
        assert main(["generate-password", "--preset", "pin"]) == 0
        assert capsys.readouterr().out.strip().isdigit()

    def test_generate_password_length(self, capsys):
        assert main(["generate-password", "--length", "40"]) == 0
        assert len(capsys.readouterr().out.strip()) == 40

    def test_passphrase(self, capsys):
        assert main(["passphrase", "--words", "3", "--separator", "."]) == 0
        assert len(capsys.readouterr().out.strip().split(".")) == 4


class TestAuditCommand:

    def test_prints_recent_events(self, definition, capsys):
        main(["add-category", str(definition)])
        capsys.readouterr()
        assert main(["audit", "--limit", "5"]) == 0
        assert "category.registered" in capsys.readouterr().out
