"""Tests for app.processing.ghostscript: command building and outcome mapping."""

import subprocess

import pytest

from app.errors import ToolExecutionError
from app.processing import ghostscript
from app.processing.ghostscript import (
    GhostscriptRunner,
    ToolOutcome,
    ToolStatus,
    build_command,
)
from app.processing.sequencer import CompressParams, ResizeParams


class TestBuildCommand:
    def test_compress_sets_both_image_resolutions(self):
        cmd = build_command("gs", CompressParams(112), "in.pdf", "out.pdf")
        assert cmd[0] == "gs"
        assert "-sDEVICE=pdfwrite" in cmd
        assert "-dColorImageResolution=112" in cmd
        assert "-dGrayImageResolution=112" in cmd
        assert "-dPDFSETTINGS=/default" in cmd

    def test_runs_quietly_in_batch_mode(self):
        cmd = build_command("gs", CompressParams(200), "in.pdf", "out.pdf")
        for flag in ("-dNOPAUSE", "-dQUIET", "-dBATCH"):
            assert flag in cmd

    def test_output_then_input_last(self):
        cmd = build_command("gs", ResizeParams(0.5), "in.pdf", "out.pdf")
        assert cmd[-2:] == ["-sOutputFile=out.pdf", "in.pdf"]

    def test_resize_sets_page_points_and_fit(self):
        cmd = build_command("gs", ResizeParams(0.5), "in.pdf", "out.pdf")
        assert "-dDEVICEWIDTHPOINTS=298" in cmd
        assert "-dDEVICEHEIGHTPOINTS=421" in cmd
        assert "-dPDFFitPage" in cmd
        assert not any(a.startswith("-dColorImageResolution") for a in cmd)

    def test_unknown_params_rejected(self):
        with pytest.raises(TypeError):
            build_command("gs", object(), "in.pdf", "out.pdf")


class TestRunner:
    def _patch_run(self, monkeypatch, result=None, exc=None):
        seen = {}

        def fake_run(cmd, **kwargs):
            seen["cmd"] = cmd
            seen["kwargs"] = kwargs
            if exc is not None:
                raise exc
            return result

        monkeypatch.setattr(ghostscript.subprocess, "run", fake_run)
        return seen

    def test_success(self, monkeypatch):
        seen = self._patch_run(
            monkeypatch, subprocess.CompletedProcess(args=[], returncode=0, stdout="", stderr="")
        )
        outcome = GhostscriptRunner("gs", timeout_seconds=120).run(
            CompressParams(200), "in.pdf", "out.pdf"
        )
        assert outcome.ok
        assert outcome.exit_code == 0
        assert seen["kwargs"]["timeout"] == 120
        assert seen["kwargs"]["stdin"] == subprocess.DEVNULL

    def test_nonzero_exit(self, monkeypatch):
        self._patch_run(
            monkeypatch,
            subprocess.CompletedProcess(args=[], returncode=1, stdout="", stderr="Unrecoverable error"),
        )
        outcome = GhostscriptRunner("gs").run(CompressParams(200), "in.pdf", "out.pdf")
        assert outcome.status == ToolStatus.FAILED
        assert outcome.exit_code == 1
        assert outcome.diagnostics == "Unrecoverable error"

    def test_timeout(self, monkeypatch):
        self._patch_run(monkeypatch, exc=subprocess.TimeoutExpired(cmd="gs", timeout=1))
        outcome = GhostscriptRunner("gs", timeout_seconds=1).run(
            ResizeParams(1.0), "in.pdf", "out.pdf"
        )
        assert outcome.status == ToolStatus.TIMEOUT
        assert not outcome.ok

    def test_missing_executable(self, tmp_path):
        runner = GhostscriptRunner(str(tmp_path / "no-such-gs"))
        outcome = runner.run(CompressParams(200), "in.pdf", str(tmp_path / "out.pdf"))
        assert outcome.status == ToolStatus.SPAWN_ERROR
        assert "FileNotFoundError" in outcome.stderr

    def test_version_of_missing_executable(self, tmp_path):
        assert GhostscriptRunner(str(tmp_path / "no-such-gs")).version() is None


class TestOutcome:
    def test_success_does_not_raise(self):
        ToolOutcome(status=ToolStatus.SUCCESS, exit_code=0).raise_for_status()

    def test_failure_raises_with_diagnostics(self):
        outcome = ToolOutcome(status=ToolStatus.FAILED, exit_code=2, stderr="bad xref\n")
        with pytest.raises(ToolExecutionError, match="code 2") as exc_info:
            outcome.raise_for_status()
        assert exc_info.value.diagnostics == "bad xref"

    def test_spawn_error_raises(self):
        with pytest.raises(ToolExecutionError, match="could not be started"):
            ToolOutcome(status=ToolStatus.SPAWN_ERROR).raise_for_status()
