import asyncio
import io

import pytest

from packer_cli.client import PackerClient, PackerClientError
from packer_cli.models import PackerClientConfig


class DummyStream:
    def __init__(self, data: bytes = b"", *, hang: bool = False):
        self._lines = data.splitlines(keepends=True)
        self._hang = hang
        self._closed = asyncio.Event()

    async def readline(self):
        if self._lines:
            return self._lines.pop(0)
        if self._hang:
            await self._closed.wait()
        return b""

    async def read(self):
        remaining = b"".join(self._lines)
        self._lines = []
        return remaining

    def close(self):
        self._closed.set()


class OverrunStream(DummyStream):
    async def readline(self):
        if self._lines:
            return self._lines.pop(0)
        raise ValueError("Separator is not found, and chunk exceed the limit")


class DummyProcess:
    def __init__(self, *, stdout: bytes = b"", stderr: bytes = b"", returncode: int = 0, hang: bool = False):
        self.stdout = DummyStream(stdout, hang=hang)
        self.stderr = DummyStream(stderr)
        self._final_returncode = returncode
        self.returncode = None
        self.killed = False

    async def wait(self):
        if self.returncode is None:
            self.returncode = self._final_returncode
        return self.returncode

    def kill(self):
        self.killed = True
        self.returncode = -9
        self.stdout.close()


@pytest.fixture()
def client():
    return PackerClient(PackerClientConfig(executable_path="packer", execution_timeout=30))


def _patch_process(monkeypatch, process):
    calls = []

    async def fake_create_subprocess_exec(*args, **kwargs):
        calls.append((args, kwargs))
        return process

    monkeypatch.setattr(asyncio, "create_subprocess_exec", fake_create_subprocess_exec)
    return calls


@pytest.mark.asyncio
async def test_build_streams_artifacts(monkeypatch, client):
    stdout = b"1609459200,docker,ui,say,starting\n1609459200,docker,artifact,0,id-123,/out/image.tar\n"
    calls = _patch_process(monkeypatch, DummyProcess(stdout=stdout))
    live = io.StringIO()

    output = await client.build(
        "template.json",
        force=True,
        only=["docker", "qemu"],
        parallel=False,
        vars={"region": "us-east-1", "note": "it's; $(safe)"},
        var_file="vars.json",
        live_stream=live,
    )

    assert output.success is True
    assert output.artifacts_for("docker")[0].id == "id-123"
    assert live.getvalue() == stdout.decode()
    assert output.raw_output == stdout.decode()

    args, kwargs = calls[0]
    assert list(args) == [
        "packer",
        "build",
        "-machine-readable",
        "-force",
        "-only=docker,qemu",
        "-parallel=false",
        "-var-file=vars.json",
        "-var",
        "region=us-east-1",
        "-var",
        "note=it's; $(safe)",
        "template.json",
    ]
    assert kwargs["stdin"] == asyncio.subprocess.DEVNULL


@pytest.mark.asyncio
async def test_validate_failure_is_reported_not_raised(monkeypatch, client):
    stdout = b"1609459200,,error,template: missing required key 'source'\n"
    stderr = b"validation failed\n"
    _patch_process(monkeypatch, DummyProcess(stdout=stdout, stderr=stderr, returncode=1))

    output = await client.validate("template.json", syntax_only=True)

    assert output.success is False
    assert output.exit_status == 1
    assert output.error_messages == ["template: missing required key 'source'"]
    assert output.raw_output.endswith("validation failed\n")


@pytest.mark.asyncio
async def test_fix_returns_rewritten_template(monkeypatch, client):
    fixed = b'{\n  "builders": []\n}\n'
    calls = _patch_process(monkeypatch, DummyProcess(stdout=fixed))

    output = await client.fix("old.json")

    assert output.fixed_template == fixed.decode()
    assert list(calls[0][0]) == ["packer", "fix", "old.json"]


@pytest.mark.asyncio
async def test_fix_template_excludes_stderr(monkeypatch, client):
    fixed = b'{\n  "builders": []\n}\n'
    _patch_process(monkeypatch, DummyProcess(stdout=fixed, stderr=b"Warning: deprecated option\n"))

    output = await client.fix("old.json")

    assert output.fixed_template == fixed.decode()
    assert output.raw_output.endswith("Warning: deprecated option\n")


@pytest.mark.asyncio
async def test_inspect_and_version_use_machine_readable(monkeypatch, client):
    calls = _patch_process(monkeypatch, DummyProcess(stdout=b"1,,template-provisioner,shell\n"))
    inspected = await client.inspect_template("t.json")
    assert inspected.provisioners == ("shell",)
    assert list(calls[0][0]) == ["packer", "inspect", "-machine-readable", "t.json"]

    calls = _patch_process(monkeypatch, DummyProcess(stdout=b"1609459200,,version,1.9.4\n"))
    version = await client.version()
    assert version.version == "1.9.4"
    assert list(calls[0][0]) == ["packer", "version", "-machine-readable"]


@pytest.mark.asyncio
async def test_push_arguments(monkeypatch, client):
    calls = _patch_process(monkeypatch, DummyProcess(stdout=b"1,,ui,say,Push successful\n"))

    output = await client.push("t.json", message="release", name="acme/base", token="secret")

    assert output.success is True
    assert list(calls[0][0]) == [
        "packer",
        "push",
        "-machine-readable",
        "-message=release",
        "-name=acme/base",
        "-token=secret",
        "t.json",
    ]


@pytest.mark.asyncio
async def test_extra_args_and_env_are_applied(monkeypatch):
    config = PackerClientConfig(executable_path="/opt/packer", extra_args=["-color=false"], env={"PACKER_LOG": "1"})
    calls = _patch_process(monkeypatch, DummyProcess())

    await PackerClient(config).validate("t.json")

    args, kwargs = calls[0]
    assert list(args)[:3] == ["/opt/packer", "validate", "-color=false"]
    assert kwargs["env"]["PACKER_LOG"] == "1"


@pytest.mark.asyncio
async def test_timeout_returns_partial_output(monkeypatch):
    process = DummyProcess(stdout=b"1,docker,artifact,0,id-1,/out/a.tar\n", hang=True)
    _patch_process(monkeypatch, process)
    client = PackerClient(PackerClientConfig(execution_timeout=1))

    output = await client.build("t.json")

    assert process.killed is True
    assert output.timed_out is True
    assert output.success is False
    assert output.artifacts_for("docker")[0].id == "id-1"


@pytest.mark.asyncio
async def test_missing_executable_raises(monkeypatch, client):
    async def missing(*_args, **_kwargs):
        raise FileNotFoundError("packer")

    monkeypatch.setattr(asyncio, "create_subprocess_exec", missing)

    with pytest.raises(PackerClientError):
        await client.version()


@pytest.mark.asyncio
async def test_oversized_line_returns_partial_output(monkeypatch, client):
    process = DummyProcess(stderr=b"still captured\n")
    process.stdout = OverrunStream(b"1,docker,artifact,0,id-1,/out/a.tar\n")
    _patch_process(monkeypatch, process)

    output = await client.build("t.json")

    assert process.killed is True
    assert output.success is False
    assert output.exit_status == -9
    assert output.artifacts_for("docker")[0].id == "id-1"
    assert output.raw_output.endswith("still captured\n")
