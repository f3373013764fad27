"""Tests for convergent.hcl."""

from __future__ import annotations

from enum import StrEnum
from pathlib import Path

import pytest

from convergent.actions import Step, action
from convergent.errors import TypeMismatch, UnknownProperty
from convergent.hcl import declare, load, scan
from convergent.notifications import Timing
from convergent.properties import Property
from convergent.resource import Resource, _resource_registry
from convergent.runner import Run


class Widget(Resource):
    resource_type = "widget"

    class Actions(StrEnum):
        BUILD = "build"
        RELOAD = "reload"
        NOTHING = "nothing"

    default_action = Actions.BUILD

    color = Property(str, default="grey")
    size = Property(int, default=1)
    enabled = Property(bool, default=True)

    @action(Actions.BUILD)
    def _build(self, ctx):
        yield Step(description=f"build {self.name}", command=f"build {self.name} {self.color}")

    @action(Actions.RELOAD)
    def _reload(self, ctx):
        yield Step(description=f"reload {self.name}", command=f"reload {self.name}")


def _write_hcl(tmp_path: Path, filename: str, content: str) -> Path:
    f = tmp_path / filename
    f.parent.mkdir(parents=True, exist_ok=True)
    f.write_text(content)
    return f


@pytest.fixture(autouse=True)
def _clean_registry():
    saved = _resource_registry.copy()
    _resource_registry["widget"] = Widget
    yield
    _resource_registry.clear()
    _resource_registry.update(saved)


@pytest.fixture
def run(shell, facts):
    return Run(shell=shell, facts=facts)


class TestLoad:
    def test_parses_resource_blocks(self, tmp_path):
        f = _write_hcl(
            tmp_path,
            "site.hcl",
            """
            resource "widget" "a" {
                color = "blue"
            }
        """,
        )
        data = load(f)
        assert data["resource"][0]["widget"]["a"]["color"] == "blue"

    def test_renders_jinja_context(self, tmp_path):
        f = _write_hcl(
            tmp_path,
            "site.hcl",
            """
            resource "widget" "{{ name }}" {
                color = "{{ color }}"
            }
        """,
        )
        data = load(f, context={"name": "a", "color": "red"})
        assert data["resource"][0]["widget"]["a"]["color"] == "red"

    def test_undefined_template_variable(self, tmp_path):
        f = _write_hcl(tmp_path, "site.hcl", 'resource "widget" "{{ missing }}" {}\n')
        with pytest.raises(ValueError, match="site.hcl"):
            load(f)


class TestDeclare:
    def test_declares_with_properties(self, tmp_path, run):
        f = _write_hcl(
            tmp_path,
            "site.hcl",
            """
            resource "widget" "a" {
                color = "blue"
                size = 3
                enabled = false
            }
        """,
        )
        declare(run, load(f))
        res = run["widget[a]"]
        assert (res.color, res.size, res.enabled) == ("blue", 3, False)

    def test_preserves_file_order(self, tmp_path, run):
        f = _write_hcl(
            tmp_path,
            "site.hcl",
            """
            resource "widget" "b" {}
            resource "facts" "reload all" {
                action = "nothing"
            }
            resource "widget" "a" {}
        """,
        )
        declare(run, load(f))
        assert list(run) == ["widget[b]", "facts[reload all]", "widget[a]"]

    def test_action_and_notifies(self, tmp_path, run, shell):
        f = _write_hcl(
            tmp_path,
            "site.hcl",
            """
            resource "widget" "a" {
                notifies = [
                    { action = "reload", target = "widget[b]", timing = "immediate" },
                ]
            }
            resource "widget" "b" {
                action = "nothing"
            }
        """,
        )
        declare(run, load(f))
        [n] = run["widget[a]"].notifications
        assert (n.action, n.target, n.timing) == ("reload", "widget[b]", Timing.IMMEDIATE)
        run.converge()
        assert shell.calls == ["build a grey", "reload b"]

    def test_malformed_notifies(self, tmp_path, run):
        f = _write_hcl(
            tmp_path,
            "site.hcl",
            """
            resource "widget" "a" {
                notifies = [{ action = "reload" }]
            }
        """,
        )
        with pytest.raises(ValueError, match="target"):
            declare(run, load(f), source=f)

    def test_unknown_type(self, tmp_path, run):
        f = _write_hcl(tmp_path, "site.hcl", 'resource "gizmo" "a" {}\n')
        with pytest.raises(ValueError, match="gizmo"):
            declare(run, load(f), source=f)

    def test_duplicate_resource(self, tmp_path, run):
        f = _write_hcl(
            tmp_path,
            "site.hcl",
            """
            resource "widget" "a" {}
            resource "widget" "a" {}
        """,
        )
        with pytest.raises(ValueError, match="site.hcl"):
            declare(run, load(f), source=f)

    def test_type_mismatch_surfaces(self, tmp_path, run):
        f = _write_hcl(tmp_path, "site.hcl", 'resource "widget" "a" {\n  size = "big"\n}\n')
        with pytest.raises(TypeMismatch):
            declare(run, load(f))

    def test_unknown_property_surfaces(self, tmp_path, run):
        f = _write_hcl(tmp_path, "site.hcl", 'resource "widget" "a" {\n  shape = "round"\n}\n')
        with pytest.raises(UnknownProperty):
            declare(run, load(f))


class TestInterpolation:
    def test_env_var(self, tmp_path, run, monkeypatch):
        monkeypatch.setenv("WIDGET_COLOR", "green")
        f = _write_hcl(tmp_path, "site.hcl", 'resource "widget" "a" {\n  color = "${env.WIDGET_COLOR}"\n}\n')
        declare(run, load(f))
        assert run["widget[a]"].color == "green"

    def test_missing_env_var_empty(self, tmp_path, run, monkeypatch, caplog):
        monkeypatch.delenv("WIDGET_COLOR", raising=False)
        f = _write_hcl(tmp_path, "site.hcl", 'resource "widget" "a" {\n  color = "x${env.WIDGET_COLOR}"\n}\n')
        declare(run, load(f))
        assert run["widget[a]"].color == "x"
        assert "WIDGET_COLOR" in caplog.text

    def test_cwd(self, tmp_path, run, monkeypatch):
        monkeypatch.chdir(tmp_path)
        f = _write_hcl(tmp_path, "site.hcl", 'resource "widget" "a" {\n  color = "${CWD}"\n}\n')
        declare(run, load(f))
        assert run["widget[a]"].color == str(tmp_path)


class TestScan:
    def test_scan_directory_recursive(self, tmp_path, shell, facts):
        _write_hcl(tmp_path, "a.hcl", 'resource "widget" "a" {}\n')
        _write_hcl(tmp_path, "nested/b.hcl", 'resource "widget" "b" {}\n')
        run = scan(tmp_path, run=Run(shell=shell, facts=facts))
        assert list(run) == ["widget[a]", "widget[b]"]

    def test_scan_not_recursive(self, tmp_path, shell, facts):
        _write_hcl(tmp_path, "a.hcl", 'resource "widget" "a" {}\n')
        _write_hcl(tmp_path, "nested/b.hcl", 'resource "widget" "b" {}\n')
        run = scan(tmp_path, recurse=False, run=Run(shell=shell, facts=facts))
        assert list(run) == ["widget[a]"]

    def test_scan_single_file(self, tmp_path, shell, facts):
        f = _write_hcl(tmp_path, "a.hcl", 'resource "widget" "a" {}\n')
        run = scan(f, run=Run(shell=shell, facts=facts))
        assert "widget[a]" in run

    def test_scan_creates_run(self, tmp_path):
        _write_hcl(tmp_path, "a.hcl", 'resource "widget" "a" {}\n')
        run = scan(tmp_path)
        assert isinstance(run, Run)
        assert len(run) == 1

    def test_macos_hostname_end_to_end(self, tmp_path, shell, facts):
        _write_hcl(
            tmp_path,
            "mac.hcl",
            """
            resource "macos_hostname" "awesome-mac01" {
                action = "local"
            }
        """,
        )
        shell.respond("/usr/sbin/scutil --get LocalHostName", "other\n")
        run = scan(tmp_path, run=Run(shell=shell, facts=facts))
        assert "/usr/sbin/scutil --set LocalHostName awesome-mac01" in shell.calls
        run.converge()
        assert facts.reloaded == ["hostname"]

    def test_explicit_facts_after_macos_hostname(self, tmp_path, shell, facts):
        _write_hcl(
            tmp_path,
            "mac.hcl",
            """
            resource "macos_hostname" "awesome-mac01" {
                action = "local"
            }
            resource "facts" "reload hostname" {
                plugin = "hostname"
                action = "reload"
            }
        """,
        )
        shell.respond("/usr/sbin/scutil --get LocalHostName", "awesome-mac01\n")
        run = scan(tmp_path, run=Run(shell=shell, facts=facts))
        assert run["facts[reload hostname]"].plugin == "hostname"
        run.converge()
        assert facts.reloaded == ["hostname"]
