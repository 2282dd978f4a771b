"""Pytest configuration and fixtures."""

import json
import shlex
from collections.abc import Callable
from pathlib import Path

import pytest

from offline_images.utils.command import CommandResult, CommandRunner


def ok(stdout: str = "") -> CommandResult:
    return CommandResult(returncode=0, stdout=stdout, stderr="")


def fail(stderr: str, returncode: int = 1) -> CommandResult:
    return CommandResult(returncode=returncode, stdout="", stderr=stderr)


class FakeCommandRunner(CommandRunner):
    """CommandRunner that answers from a script instead of spawning processes.

    Responses are matched on the longest command prefix. Pipelines are
    matched on their shell tokens, and a successful `... > file` pipeline
    creates the target file so archive sizes can be checked.
    """

    def __init__(self, default: CommandResult | None = None):
        super().__init__()
        self.default = default or ok()
        self.responses: list[tuple[list[str], CommandResult]] = []
        self.calls: list[list[str]] = []

    def script(self, prefix: list[str], result: CommandResult) -> "FakeCommandRunner":
        self.responses.append((prefix, result))
        return self

    def _answer(self, cmd: list[str]) -> CommandResult:
        matches = [(p, r) for p, r in self.responses if cmd[: len(p)] == p]
        if not matches:
            return self.default
        # Later scripts override earlier ones with the same prefix
        return max(reversed(matches), key=lambda m: len(m[0]))[1]

    def commands_starting_with(self, *prefix: str) -> list[list[str]]:
        return [c for c in self.calls if c[: len(prefix)] == list(prefix)]

    async def run(self, cmd, timeout=None, cwd=None) -> CommandResult:
        self.calls.append(list(cmd))
        return self._answer(list(cmd))

    async def stream(
        self,
        cmd,
        on_line: Callable[[str], None],
        on_error_line: Callable[[str], None] | None = None,
    ) -> CommandResult:
        self.calls.append(list(cmd))
        result = self._answer(list(cmd))
        for line in result.stdout.splitlines():
            on_line(line)
        if on_error_line:
            for line in result.stderr.splitlines():
                on_error_line(line)
        return result

    async def run_pipeline(self, script: str, timeout=None) -> CommandResult:
        tokens = shlex.split(script)
        self.calls.append(tokens)
        result = self._answer(tokens)
        if result.success and ">" in tokens:
            Path(tokens[tokens.index(">") + 1]).write_bytes(b"\x1f\x8b archive")
        return result


@pytest.fixture
def runner() -> FakeCommandRunner:
    """Fake runner where every unscripted command succeeds silently."""
    return FakeCommandRunner()


def make_pod(
    name: str,
    images: list[str],
    init_images: list[str] | None = None,
    labels: dict[str, str] | None = None,
    namespace: str = "default",
) -> dict:
    spec: dict = {
        "containers": [{"name": f"c{i}", "image": image} for i, image in enumerate(images)]
    }
    if init_images:
        spec["initContainers"] = [
            {"name": f"init{i}", "image": image} for i, image in enumerate(init_images)
        ]
    return {
        "metadata": {"name": name, "namespace": namespace, "labels": labels or {}},
        "spec": spec,
    }


@pytest.fixture
def sample_pod_list() -> dict:
    """Two pods of release `app`, one init container, one duplicated image."""
    return {
        "apiVersion": "v1",
        "kind": "List",
        "items": [
            make_pod(
                "p1",
                ["nginx:1.25", "busybox:1.36"],
                labels={"app.kubernetes.io/instance": "app"},
            ),
            make_pod(
                "p2",
                ["nginx:1.25"],
                init_images=["alpine:3.19"],
                labels={"release": "app"},
            ),
        ],
    }


@pytest.fixture
def sample_pod_json(sample_pod_list: dict) -> str:
    return json.dumps(sample_pod_list)


@pytest.fixture
def sample_trivy_json() -> str:
    """Trivy report with three scan targets: 2 CRITICAL, 3 HIGH overall."""
    return json.dumps(
        {
            "SchemaVersion": 2,
            "Results": [
                {
                    "Target": "nginx:1.25 (debian 12.4)",
                    "Vulnerabilities": [
                        {"VulnerabilityID": "CVE-1", "Severity": "CRITICAL"},
                        {"VulnerabilityID": "CVE-2", "Severity": "HIGH"},
                        {"VulnerabilityID": "CVE-3", "Severity": "HIGH"},
                    ],
                },
                {"Target": "Python", "Vulnerabilities": None},
                {
                    "Target": "Node.js",
                    "Vulnerabilities": [
                        {"VulnerabilityID": "CVE-4", "Severity": "CRITICAL"},
                        {"VulnerabilityID": "CVE-5", "Severity": "HIGH"},
                    ],
                },
            ],
        }
    )
