from __future__ import annotations

import asyncio
import logging
import os
import shlex
from contextlib import suppress
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from ephemeral_share.exceptions import ValidationHookError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class HookContext:
    client_address: str
    original_name: str
    stored_path: Path

    def as_env(self) -> dict[str, str]:
        return {
            "REMOTE_ADDR": self.client_address,
            "ORIGINAL_NAME": self.original_name,
            "STORED_FILE": str(self.stored_path),
        }


@dataclass(frozen=True, slots=True)
class HookResult:
    exit_code: int
    last_line: str

    @property
    def accepted(self) -> bool:
        return self.exit_code == 0


class HookRunner(Protocol):
    async def run(self, context: HookContext) -> HookResult: ...


async def terminate(process: asyncio.subprocess.Process) -> None:
    # процесс мог завершиться сам между таймаутом и kill()
    with suppress(ProcessLookupError):
        process.kill()
    await process.wait()


def last_output_line(output: str) -> str:
    lines = output.rstrip().splitlines()
    return lines[-1].rstrip() if lines else ""


class SubprocessHookRunner:
    """Runs the external validation program once per upload."""

    def __init__(self, command: str, timeout: float) -> None:
        self.argv = shlex.split(command)
        self.timeout = timeout

    async def run(self, context: HookContext) -> HookResult:
        env = os.environ.copy()
        env.update(context.as_env())

        logger.info("hook_exec cmd=%s file=%s", self.argv, context.stored_path)
        try:
            process = await asyncio.create_subprocess_exec(
                *self.argv,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.DEVNULL,
                env=env,
            )
        except OSError as e:
            raise ValidationHookError(f"Validation hook could not be started: {e}") from e

        try:
            stdout_b, _ = await asyncio.wait_for(process.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            # Зависший хук убиваем, запрос завершается ошибкой
            await terminate(process)
            raise ValidationHookError(
                f"Validation hook timed out after {self.timeout:g} seconds"
            ) from e
        except asyncio.CancelledError:
            await terminate(process)
            raise

        exit_code = process.returncode if process.returncode is not None else -1
        logger.info("hook_exit code=%s", exit_code)
        return HookResult(exit_code=exit_code, last_line=last_output_line(stdout_b.decode(errors="replace")))
