"""
Tests for the command line client
"""
import json

import pytest
from click.testing import CliRunner

from talentbook.cli import cli
from talentbook.config import Config
from talentbook.stores import LocalStore


@pytest.fixture
def data_dir(tmp_path):
    return str(tmp_path / "client")


@pytest.fixture
def run(data_dir):
    runner = CliRunner()

    def invoke(*args, **kwargs):
        return runner.invoke(cli, ["--data-dir", data_dir, *args], **kwargs)

    return invoke


def open_store(data_dir):
    return LocalStore.open(str(Config(config_dir=data_dir).db_file))


class TestClientCommands:

    def test_init_seeds_categories(self, run, data_dir):
        result = run("init", "--server", "http://example.test/api/")
        assert result.exit_code == 0, result.output
        assert "Categories: 4" in result.output
        assert Config(config_dir=data_dir).server_url == "http://example.test/api"
        assert Config(config_dir=data_dir).sync_pending is True
        assert set(Config(config_dir=data_dir).data) <= {"server_url", "session_token", "last_sync", "sync_pending"}

    def test_add_and_list_talents(self, run, data_dir):
        run("init")
        category_id = open_store(data_dir).categories.ordered()[0].id

        result = run("talents", "add", "Amal", "--category", category_id, "--gender", "female", "--price", "500")
        assert result.exit_code == 0, result.output

        result = run("talents", "list")
        assert "Amal" in result.output
        assert "Actors" in result.output
        assert "500 KWD" in result.output

    def test_invalid_talent_reports_error(self, run):
        result = run("talents", "add", "Amal", "--category", "c1", "--gender", "female", "--price", "-5")
        assert result.exit_code == 1
        assert "Error" in result.output

    def test_project_costs(self, run, data_dir):
        run("init")
        store = open_store(data_dir)
        category_id = store.categories.ordered()[0].id
        talent = store.talents.create(name="Amal", category_id=category_id, gender="female", price_per_project=500)

        result = run("projects", "add", "Campaign", "--talent", talent.id)
        assert result.exit_code == 0, result.output
        project = open_store(data_dir).projects.list()[0]
        assert project.profit_margin_percent == 15

        result = run("projects", "costs", project.id)
        assert "Subtotal: 500 KWD" in result.output
        assert "Profit (15%): 75 KWD" in result.output
        assert "Total: 575 KWD" in result.output

        run("projects", "pay", project.id, "200", "--date", "2026-03-02")
        result = run("projects", "costs", project.id)
        assert "Outstanding: 375 KWD" in result.output

    def test_delete_talent_removes_bookings(self, run, data_dir):
        store = open_store(data_dir)
        talent = store.talents.create(name="Amal", category_id="c1", gender="female")

        result = run("bookings", "add", talent.id, "Shoot", "--start", "2026-03-01 09:00:00",
                     "--end", "2026-03-01 17:00:00")
        assert result.exit_code == 0, result.output
        assert len(open_store(data_dir).bookings.list()) == 1

        result = run("talents", "delete", talent.id)
        assert result.exit_code == 0, result.output
        assert open_store(data_dir).bookings.list() == []

    def test_settings_set_and_show(self, run):
        result = run("settings", "set", "defaultProfitMargin", "20")
        assert result.exit_code == 0, result.output
        assert "20" in run("settings", "show").output

        result = run("settings", "set", "reminderDayOfMonth", "40")
        assert result.exit_code == 1

    def test_changes_mark_sync_pending(self, run, data_dir):
        run("categories", "add", "Singers")
        assert Config(config_dir=data_dir).sync_pending is True
        assert "Pending changes: yes" in run("status").output

    def test_sync_without_login(self, run):
        result = run("sync")
        assert result.exit_code == 0
        assert "Not logged in" in result.output

    def test_sync_failure_exits_nonzero(self, run):
        run("init", "--server", "http://127.0.0.1:9/api")
        run("login", "abc")
        result = run("sync")
        assert result.exit_code == 1

    def test_export_import(self, run, data_dir, tmp_path):
        store = open_store(data_dir)
        store.talents.create(name="Amal", category_id="c1", gender="female")
        backup = tmp_path / "backup.json"

        assert run("export", str(backup)).exit_code == 0
        assert json.loads(backup.read_text(encoding="utf-8"))["talents"][0]["name"] == "Amal"

        assert run("clear", "--yes").exit_code == 0
        assert open_store(data_dir).talents.list() == []

        result = run("import", str(backup), "--yes")
        assert result.exit_code == 0, result.output
        assert [t.name for t in open_store(data_dir).talents.list()] == ["Amal"]

    def test_import_rejects_bad_backup(self, run, tmp_path):
        backup = tmp_path / "bad.json"
        backup.write_text(json.dumps({"talents": "nope"}), encoding="utf-8")
        result = run("import", str(backup), "--yes")
        assert result.exit_code == 1
        assert "Error" in result.output
