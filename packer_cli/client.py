"""Run Packer subcommands and fold their output into typed results."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import os
import shlex
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any, TextIO

from packer_cli.config import load_client_config
from packer_cli.constants import DEFAULT_STREAM_LIMIT, MACHINE_READABLE_FLAG
from packer_cli.models import PackerClientConfig
from packer_cli.outputs import (
    BaseAggregator,
    BuildAggregator,
    BuildOutput,
    FixAggregator,
    FixOutput,
    InspectAggregator,
    InspectOutput,
    LineSink,
    Output,
    PushAggregator,
    PushOutput,
    ValidateAggregator,
    ValidateOutput,
    VersionAggregator,
    VersionOutput,
)

logger = logging.getLogger("packer_cli.client")

Template = str | Path


class PackerClientError(RuntimeError):
    """Raised when Packer cannot be started at all."""

    def __init__(self, message: str, *, returncode: int | None = None, stdout: str = "", stderr: str = "") -> None:
        super().__init__(message)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr


class PackerClient:
    """Async client for the Packer CLI.

    Every command returns an immutable output object; a non-zero exit status
    or a timeout is reported on that object rather than raised.
    """

    def __init__(self, config: PackerClientConfig | None = None) -> None:
        self.config = config or load_client_config()

    async def build(
        self,
        template: Template,
        *,
        force: bool = False,
        except_: Iterable[str] | None = None,
        only: Iterable[str] | None = None,
        parallel: bool | None = None,
        vars: Mapping[str, Any] | None = None,
        var_file: str | Path | None = None,
        live_stream: TextIO | None = None,
    ) -> BuildOutput:
        """Run ``packer build``; parallel builds are demultiplexed per builder."""

        args = ["build", MACHINE_READABLE_FLAG]
        if force:
            args.append("-force")
        args.extend(_filter_args(except_=except_, only=only))
        if parallel is not None:
            args.append(f"-parallel={'true' if parallel else 'false'}")
        args.extend(_variable_args(vars, var_file))
        args.append(str(template))
        return await self.command(args, BuildAggregator(), live_stream=live_stream)

    async def fix(self, template: Template) -> FixOutput:
        """Run ``packer fix``; the rewritten template is captured verbatim."""

        return await self.command(["fix", str(template)], FixAggregator())

    async def inspect_template(self, template: Template) -> InspectOutput:
        """Run ``packer inspect`` to list declared variables, builders and provisioners."""

        args = ["inspect", MACHINE_READABLE_FLAG, str(template)]
        return await self.command(args, InspectAggregator())

    async def push(
        self,
        template: Template,
        *,
        message: str | None = None,
        name: str | None = None,
        token: str | None = None,
        vars: Mapping[str, Any] | None = None,
        var_file: str | Path | None = None,
        live_stream: TextIO | None = None,
    ) -> PushOutput:
        """Run ``packer push`` to upload the template to a build service."""

        args = ["push", MACHINE_READABLE_FLAG]
        if message is not None:
            args.append(f"-message={message}")
        if name is not None:
            args.append(f"-name={name}")
        if token is not None:
            args.append(f"-token={token}")
        args.extend(_variable_args(vars, var_file))
        args.append(str(template))
        return await self.command(args, PushAggregator(), live_stream=live_stream)

    async def validate(
        self,
        template: Template,
        *,
        syntax_only: bool = False,
        except_: Iterable[str] | None = None,
        only: Iterable[str] | None = None,
        vars: Mapping[str, Any] | None = None,
        var_file: str | Path | None = None,
        live_stream: TextIO | None = None,
    ) -> ValidateOutput:
        """Run ``packer validate``."""

        args = ["validate", MACHINE_READABLE_FLAG]
        if syntax_only:
            args.append("-syntax-only")
        args.extend(_filter_args(except_=except_, only=only))
        args.extend(_variable_args(vars, var_file))
        args.append(str(template))
        return await self.command(args, ValidateAggregator(), live_stream=live_stream)

    async def version(self) -> VersionOutput:
        return await self.command(["version", MACHINE_READABLE_FLAG], VersionAggregator())

    async def command(
        self,
        args: list[str],
        aggregator: BaseAggregator,
        *,
        live_stream: TextIO | None = None,
    ) -> Any:
        """Execute Packer with ``args`` and return ``aggregator``'s output."""

        command = self._build_command(args)
        env = self._build_environment()
        cwd = str(self.config.working_dir) if self.config.working_dir else None
        timeout = self.config.execution_timeout

        logger.debug("Executing Packer command: %s", shlex.join(command))
        if cwd:
            logger.debug("Working directory: %s", cwd)

        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=cwd,
                limit=DEFAULT_STREAM_LIMIT,
                env=env,
            )
        except FileNotFoundError as exc:
            raise PackerClientError(f"Packer executable not found: {exc}") from exc

        sink: LineSink | None = live_stream.write if live_stream is not None else None
        stdout_chunks: list[str] = []
        stderr_task = asyncio.create_task(process.stderr.read())
        timed_out = False

        try:
            await asyncio.wait_for(self._pump(process, aggregator, stdout_chunks, sink), timeout=timeout)
        except asyncio.TimeoutError:
            timed_out = True
            logger.warning("Packer timed out after %s seconds; returning partial output", timeout)
        except ValueError as exc:
            # StreamReader raises ValueError for a line longer than the stream limit.
            logger.warning("Stopped reading Packer output (%s); returning partial output", exc)
        finally:
            if process.returncode is None:
                with contextlib.suppress(ProcessLookupError):
                    process.kill()
                await process.wait()
            stderr_bytes = await stderr_task

        stderr_text = stderr_bytes.decode("utf-8", errors="replace")
        returncode = process.returncode if process.returncode is not None else -1
        combined = "".join(stdout_chunks) + stderr_text

        if returncode != 0:
            logger.debug("Packer exited with status %s", returncode)
        return aggregator.finalize(returncode, combined, timed_out=timed_out)

    async def _pump(
        self,
        process: asyncio.subprocess.Process,
        aggregator: BaseAggregator,
        captured: list[str],
        sink: LineSink | None,
    ) -> None:
        while True:
            raw = await process.stdout.readline()
            if not raw:
                break
            line = raw.decode("utf-8", errors="replace")
            captured.append(line)
            aggregator.feed(line, sink)
        await process.wait()

    def _build_command(self, args: list[str]) -> list[str]:
        if not args:
            raise ValueError("A Packer subcommand is required")
        subcommand, *rest = args
        return [self.config.executable_path, subcommand, *self.config.extra_args, *rest]

    def _build_environment(self) -> dict[str, str]:
        env = os.environ.copy()
        env.update(self.config.env)
        return env


def _filter_args(*, except_: Iterable[str] | None, only: Iterable[str] | None) -> list[str]:
    args: list[str] = []
    if except_:
        args.append(f"-except={','.join(except_)}")
    if only:
        args.append(f"-only={','.join(only)}")
    return args


def _variable_args(vars: Mapping[str, Any] | None, var_file: str | Path | None) -> list[str]:
    # Each value is its own argv entry; nothing is interpreted by a shell.
    args: list[str] = []
    if var_file is not None:
        args.append(f"-var-file={var_file}")
    for key, value in (vars or {}).items():
        args.extend(["-var", f"{key}={value}"])
    return args
