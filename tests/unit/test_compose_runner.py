import subprocess
import pytest
from sscompose.RUNNERS import compose_runner
from sscompose.RUNNERS.compose_runner import ComposeRunner
from sscompose.UTILS.exceptions import ExternalProcessError


class FakeRun:
    """Records subprocess.run calls and returns a canned result."""

    def __init__(self, returncode=0, stdout="", stderr="", error=None):
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        self.error = error
        self.calls = []

    def __call__(self, command, **kwargs):
        self.calls.append((command, kwargs))
        if self.error:
            raise self.error
        return subprocess.CompletedProcess(command, self.returncode, self.stdout, self.stderr)


def test_up_runs_detached(monkeypatch, tmp_path):
    fake = FakeRun(stdout="Creating server-0 ... done")
    monkeypatch.setattr(compose_runner.subprocess, "run", fake)

    output = ComposeRunner(str(tmp_path)).up("docker-compose.yml")

    command, kwargs = fake.calls[0]
    assert command == ["docker-compose", "-f", "docker-compose.yml", "up", "-d"]
    assert kwargs["cwd"] == str(tmp_path)
    assert kwargs["capture_output"] is True
    assert output == "Creating server-0 ... done"


def test_down_uses_custom_binary(monkeypatch):
    fake = FakeRun()
    monkeypatch.setattr(compose_runner.subprocess, "run", fake)

    ComposeRunner(".", compose_bin="podman-compose").down("stack.yml")

    assert fake.calls[0][0] == ["podman-compose", "-f", "stack.yml", "down"]


def test_nonzero_exit_surfaces_output(monkeypatch):
    fake = FakeRun(returncode=1, stdout="partial", stderr="no such service")
    monkeypatch.setattr(compose_runner.subprocess, "run", fake)

    with pytest.raises(ExternalProcessError) as exc:
        ComposeRunner(".").up("docker-compose.yml")

    assert exc.value.returncode == 1
    assert exc.value.stdout == "partial"
    assert exc.value.stderr == "no such service"
    assert "no such service" in str(exc.value)
    assert "partial" in str(exc.value)


def test_missing_binary(monkeypatch):
    fake = FakeRun(error=FileNotFoundError(2, "No such file or directory"))
    monkeypatch.setattr(compose_runner.subprocess, "run", fake)

    with pytest.raises(ExternalProcessError) as exc:
        ComposeRunner(".").down("docker-compose.yml")

    assert exc.value.returncode is None
    assert "docker-compose" in str(exc.value)
