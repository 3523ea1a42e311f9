"""
Shared fixtures for the Docker installer tests.

Commands never reach the host: run_command is replaced by a FakeRunner that
records every invocation and answers from a table of command prefixes.
"""

import subprocess
from typing import Dict, List, Tuple
from unittest.mock import patch

import pytest

import install_docker


class FakeRunner:
    """Stand-in for install_docker.run_command."""

    def __init__(self, responses: Dict[Tuple[str, ...], Tuple[int, str]] = None):
        self.responses = responses or {}
        self.calls: List[List[str]] = []
        self.inputs: Dict[str, str] = {}

    def __call__(self, cmd, check=True, input_text=None, **kwargs):
        cmd = list(cmd)
        self.calls.append(cmd)
        if input_text is not None:
            self.inputs[" ".join(cmd)] = input_text

        returncode, stdout = 0, ""
        for prefix, response in self.responses.items():
            if tuple(cmd[: len(prefix)]) == prefix:
                returncode, stdout = response
                break

        if check and returncode != 0:
            raise install_docker.ExecutionError(
                f"Command failed (code {returncode}): {' '.join(cmd)}"
            )
        return subprocess.CompletedProcess(cmd, returncode, stdout, "")

    def called(self, *prefix: str) -> List[List[str]]:
        return [c for c in self.calls if tuple(c[: len(prefix)]) == prefix]


@pytest.fixture
def host():
    return install_docker.HostEnvironment(
        architecture="amd64",
        codename="jammy",
        os_id="ubuntu",
        os_id_like="debian",
        target_user="alice",
        use_sudo=False,
    )


@pytest.fixture
def runner():
    fake = FakeRunner()
    with patch("install_docker.run_command", fake):
        yield fake


@pytest.fixture
def apt_paths(tmp_path):
    """Point the keyring and sources list at a temporary directory."""
    keyring = tmp_path / "keyrings" / "docker.gpg"
    sources = tmp_path / "sources.list.d" / "docker.list"
    with patch.object(
        install_docker.AppConfig, "KEYRING_DIR", str(keyring.parent)
    ), patch.object(
        install_docker.AppConfig, "KEYRING_PATH", str(keyring)
    ), patch.object(
        install_docker.AppConfig, "SOURCES_LIST_PATH", str(sources)
    ):
        yield keyring, sources
