"""Tests for convergent.errors."""

from __future__ import annotations

from convergent.errors import CommandError, ConvergeError, UnknownAction
from convergent.shell import CommandResult


class TestConvergeError:
    def test_str_without_location(self):
        assert str(ConvergeError("boom")) == "error: boom"

    def test_locate_renders_location(self):
        err = ConvergeError("boom").locate("facts[x]", "reload", "reload all facts")
        assert str(err).splitlines() == [
            "error: boom",
            "resource=facts[x]",
            "action=reload",
            "step=reload all facts",
        ]

    def test_locate_keeps_innermost(self):
        err = ConvergeError("boom").locate("inner[1]", "go")
        err.locate("outer[1]", "other", "step")
        assert (err.resource, err.action, err.step) == ("inner[1]", "go", "step")

    def test_details_rendered(self):
        err = UnknownAction("no action 'x'", available="set, local")
        assert "available=set, local" in str(err)
        assert isinstance(err, LookupError)


class TestCommandError:
    def test_with_result(self):
        result = CommandResult(command="scutil --set HostName x", stderr="denied", exit_status=1)
        err = CommandError(result.command, result)
        assert err.message == "'scutil --set HostName x' exited with status 1"
        assert "stderr=denied" in str(err)
        assert err.result is result

    def test_without_result(self):
        err = CommandError("scutil", reason="timed out after 2s")
        assert err.result is None
        assert "timed out" in str(err)
