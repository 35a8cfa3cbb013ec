"""Tests for CLI."""

import json

import pytest
import yaml

from slo_combine.cli.main import cli
from slo_combine.persistence import providers


@pytest.fixture(autouse=True)
def _builtin_store(monkeypatch):
    providers.clear_cache()
    monkeypatch.setattr(providers, "entry_points", lambda group: [])
    yield
    providers.clear_cache()


@pytest.fixture
def paths(tmp_path):
    catalog = tmp_path / "slos.yaml"
    catalog.write_text(yaml.dump([
        {"id": "a", "document": {"name": "Checkout", "tags": [{"key": "env", "values": ["prod"]}]}},
        {"id": "b", "document": {"name": "Search", "tags": [{"key": "env", "values": ["prod"]}]}},
        {"id": "c", "document": {"name": "Staging API", "tags": [{"key": "env", "values": ["staging"]}]}},
    ]), encoding="utf-8")
    return ["--catalog", str(catalog), "--store", str(tmp_path / "store.db")]


class TestCLI:
    def test_version(self, capsys):
        assert cli(["version"]) == 0
        assert "0.1.0" in capsys.readouterr().out

    def test_no_args(self):
        assert cli([]) == 1

    def test_tags(self, paths, capsys):
        assert cli(["tags", *paths]) == 0
        assert capsys.readouterr().out.split() == ["env=prod", "env=staging"]

    def test_list(self, paths, capsys):
        assert cli(["list", *paths]) == 0
        out = capsys.readouterr().out
        assert "[ ] a  Checkout  (env=prod)" in out
        assert "Staging API" in out

    def test_list_filtered(self, paths, capsys):
        assert cli(["list", "--tag", "env=prod", *paths]) == 0
        out = capsys.readouterr().out
        assert "Checkout" in out
        assert "Search" in out
        assert "Staging API" not in out

    def test_list_no_match(self, paths, capsys):
        assert cli(["list", "--tag", "env=qa", *paths]) == 0
        assert "No SLOs match." in capsys.readouterr().out

    def test_list_bad_tag(self, paths):
        assert cli(["list", "--tag", "env", *paths]) == 1

    def test_toggle_persists(self, paths, capsys):
        assert cli(["toggle", "a", "c", *paths]) == 0
        assert "Saved selection (+2)" in capsys.readouterr().out

        assert cli(["list", *paths]) == 0
        out = capsys.readouterr().out
        assert "[x] a" in out
        assert "[ ] b" in out
        assert "[x] c" in out

        assert cli(["toggle", "a", *paths]) == 0
        assert cli(["show", *paths]) == 0
        out = capsys.readouterr().out
        assert "Staging API" in out
        assert "Checkout" not in out

    def test_toggle_twice_unchanged(self, paths, capsys):
        assert cli(["toggle", "a", "a", *paths]) == 0
        assert "Selection unchanged." in capsys.readouterr().out

    def test_toggle_unknown_id(self, paths, capsys):
        assert cli(["toggle", "zzz", *paths]) == 1
        assert "zzz" in capsys.readouterr().err

    def test_show_empty(self, paths, capsys):
        assert cli(["show", *paths]) == 0
        assert "No SLOs selected" in capsys.readouterr().out

    def test_show_json(self, paths, capsys):
        cli(["toggle", "b", *paths])
        capsys.readouterr()
        assert cli(["show", "--json", *paths]) == 0
        data = json.loads(capsys.readouterr().out)
        assert [d["id"] for d in data] == ["b"]

    def test_clear(self, paths, capsys):
        cli(["toggle", "b", *paths])
        capsys.readouterr()
        assert cli(["clear", *paths]) == 0
        assert "Selection cleared." in capsys.readouterr().out
        assert cli(["clear", *paths]) == 0
        assert "No saved selection." in capsys.readouterr().out

    def test_missing_catalog(self, tmp_path):
        assert cli(["list", "--store", str(tmp_path / "s.db")]) == 1

    def test_bad_catalog(self, tmp_path):
        assert cli(["list", "--catalog", str(tmp_path / "nope.yaml"), "--store", str(tmp_path / "s.db")]) == 1

    def test_config_file(self, paths, tmp_path, capsys):
        config = tmp_path / "config.yaml"
        config.write_text(yaml.dump({"catalog_path": paths[1], "store_path": paths[3]}), encoding="utf-8")
        assert cli(["tags", "--config", str(config)]) == 0
        assert "env=prod" in capsys.readouterr().out

    def test_invalid_config(self, tmp_path):
        config = tmp_path / "config.yaml"
        config.write_text("unknown_option: 1\n", encoding="utf-8")
        assert cli(["tags", "--config", str(config)]) == 1

    def test_invalid_log_level(self, paths, tmp_path, capsys):
        config = tmp_path / "config.yaml"
        config.write_text("log_level: FOO\n", encoding="utf-8")
        assert cli(["list", "--config", str(config), *paths]) == 1
        assert "Invalid config" in capsys.readouterr().err

    @pytest.mark.parametrize("command", [["list"], ["toggle", "a"], ["clear"]])
    def test_unwritable_store(self, paths, tmp_path, capsys, command):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("x", encoding="utf-8")
        args = [*command, "--catalog", paths[1], "--store", str(blocker / "store.db")]
        assert cli(args) == 1
        assert "Cannot open document store" in capsys.readouterr().err

    def test_tags_does_not_open_store(self, paths, tmp_path):
        store = tmp_path / "unused" / "store.db"
        assert cli(["tags", "--catalog", paths[1], "--store", str(store)]) == 0
        assert not store.parent.exists()
