"""Tests for src.alerts.service — stacks, load/save, repository layout."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from src.alerts.service import AlertService, LocalDirectoryLister, clone_alert
from src.contracts.errors import SectionNotFoundError
from src.shared.settings import REPOSITORY_PATH_KEY, SELECTED_STACK_KEY
from src.tfvars.codec import parse_alerts
from tests.conftest import SAMPLE_TFVARS, DictSettings, make_alert

STACKS = "metaform/mpm/copies/production/prd/eu-west-1"


@pytest.fixture
def repo(tmp_path) -> Path:
    root = tmp_path / "infra"
    for folder in (".github", "ansible", "metaform", "terraform"):
        (root / folder).mkdir(parents=True)
    stacks = root / STACKS
    (stacks / "dpd").mkdir(parents=True)
    (stacks / "gls").mkdir()
    (stacks / "dpd" / "auto.tfvars").write_text(SAMPLE_TFVARS, encoding="utf-8")
    return root


@pytest.fixture
def service(repo) -> AlertService:
    return AlertService(DictSettings(**{REPOSITORY_PATH_KEY: str(repo), SELECTED_STACK_KEY: "dpd"}))


class TestSettings:
    def test_properties_read_settings(self, service, repo):
        assert service.repository_path == str(repo)
        assert service.selected_stack == "dpd"

    def test_setters_write_settings(self, service):
        service.selected_stack = "gls"
        assert service.settings.values[SELECTED_STACK_KEY] == "gls"

    def test_config_overrides(self, repo):
        cfg = {"alerts": {"stacks_path": "stacks", "file_name": "alerts.tfvars", "section_key": "x"}}
        svc = AlertService(DictSettings(**{REPOSITORY_PATH_KEY: str(repo)}), cfg)
        assert svc.stack_file("dpd") == repo / "stacks" / "dpd" / "alerts.tfvars"
        assert svc.section_key == "x"


class TestStacks:
    def test_list_stacks(self, service):
        assert service.list_stacks() == ["dpd", "gls"]

    def test_no_repository_configured(self):
        assert AlertService(DictSettings()).list_stacks() == []

    def test_missing_stacks_directory(self, tmp_path):
        svc = AlertService(DictSettings(**{REPOSITORY_PATH_KEY: str(tmp_path)}))
        assert svc.list_stacks() == []

    def test_injected_directory_lister(self):
        class Lister:
            def exists(self, path):
                return True

            def list_directories(self, path):
                return ["b", "a"]

        svc = AlertService(DictSettings(**{REPOSITORY_PATH_KEY: "/repo"}), directories=Lister())
        assert svc.list_stacks() == ["b", "a"]


class TestLoadSave:
    def test_load(self, service):
        alerts = service.load_alerts("dpd")
        assert len(alerts) == 2

    def test_load_missing_file(self, service):
        assert service.load_alerts("gls") == []

    def test_save_unchanged_does_not_write(self, service):
        path = service.stack_file("dpd")
        before = path.stat().st_mtime_ns
        os.utime(path, ns=(before - 10**9, before - 10**9))
        service.save_alerts("dpd", service.load_alerts("dpd"))
        assert path.stat().st_mtime_ns == before - 10**9

    def test_save_modified(self, service):
        alerts = service.load_alerts("dpd")
        alerts[0].critical_threshold = 8.0
        service.save_alerts("dpd", alerts)
        text = service.stack_file("dpd").read_text(encoding="utf-8")
        assert text.startswith("# Production alerts for the DPD stack\n")
        assert parse_alerts(text)[0].critical_threshold == 8.0

    def test_save_keeps_crlf(self, service):
        path = service.stack_file("dpd")
        path.write_bytes(SAMPLE_TFVARS.replace("\n", "\r\n").encode("utf-8"))
        alerts = service.load_alerts("dpd")
        alerts.append(make_alert(name="PrintParcel - GLS - Average Duration"))
        service.save_alerts("dpd", alerts)
        raw = path.read_bytes()
        assert raw.startswith(b"# Production alerts for the DPD stack\r\n")
        assert raw.endswith(b"other_setting = 42\r\n")

    def test_save_new_stack_requires_create(self, service):
        with pytest.raises(SectionNotFoundError):
            service.save_alerts("gls", [make_alert()])

    def test_save_new_stack(self, service):
        service.save_alerts("gls", [make_alert()], create=True)
        assert service.load_alerts("gls") == [make_alert()]

    def test_save_io_error_propagates(self, service, monkeypatch):
        def boom(*args, **kwargs):
            raise PermissionError("read-only")

        alerts = service.load_alerts("dpd")
        alerts[0].enabled = False
        monkeypatch.setattr(Path, "open", boom)
        with pytest.raises(PermissionError):
            service.save_alerts("dpd", alerts)


class TestRepositoryLayout:
    def test_valid(self, service, repo):
        assert service.validate_repository(str(repo)) == (True, [])

    def test_missing_folders(self, service, repo):
        (repo / "ansible").rmdir()
        ok, missing = service.validate_repository(str(repo))
        assert not ok
        assert missing == ["ansible"]

    def test_unreadable_path(self, service, tmp_path):
        ok, missing = service.validate_repository(str(tmp_path / "nope"))
        assert not ok
        assert missing == [".github", "ansible", "metaform", "terraform"]

    def test_local_lister(self, repo):
        lister = LocalDirectoryLister()
        assert lister.exists(str(repo))
        assert not lister.exists(str(repo / "missing"))
        assert ".github" in lister.list_directories(str(repo))


class TestCloneAlert:
    def test_clone(self):
        original = parse_alerts(SAMPLE_TFVARS)[0]
        copy = clone_alert(original)
        assert copy.name == original.name + " Copy"
        assert copy.origin is None
        assert copy.is_modified()
        assert copy.nrql_query == original.nrql_query

    def test_additional_fields_are_copied(self):
        original = make_alert(additional_fields={"labels": "{}"})
        copy = clone_alert(original)
        copy.additional_fields["labels"] = "[]"
        assert original.additional_fields == {"labels": "{}"}
