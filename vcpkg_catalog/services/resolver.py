"""
Discover package versions from git remotes.

``RemoteVersionResolver.resolve`` runs ``git ls-remote <url>``, keeps the refs
that look like version tags and picks the last one listed as the current
version. It never raises: unreachable remotes, timeouts and non-zero exits
all degrade to ``("", [])``.
"""
from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass
from typing import List, Optional, Protocol, Tuple

from vcpkg_catalog.domain.models import Package
from vcpkg_catalog.domain.versions import parse_ls_remote, select_current

logger = logging.getLogger(__name__)

DEFAULT_LS_REMOTE_TIMEOUT = 30.0


@dataclass
class CommandResult:
    returncode: int
    stdout: str
    stderr: str = ""

    @property
    def success(self) -> bool:
        return self.returncode == 0


class GitRunner(Protocol):
    """Runs the remote ref listing. Tests inject fakes through the resolver constructor."""

    async def ls_remote(self, url: str, timeout: float) -> CommandResult:
        ...


class SubprocessGitRunner:
    """Default runner: spawns the git executable with asyncio."""

    def __init__(self, git_binary: str = "git"):
        self.git_binary = git_binary

    async def ls_remote(self, url: str, timeout: float) -> CommandResult:
        # Never block on a credential prompt for private or missing repositories.
        env = {**os.environ, "GIT_TERMINAL_PROMPT": "0"}
        proc = await asyncio.create_subprocess_exec(
            self.git_binary, "ls-remote", "--", url,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env=env,
        )
        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
        except asyncio.TimeoutError:
            proc.kill()
            await proc.wait()
            raise
        return CommandResult(
            returncode=proc.returncode if proc.returncode is not None else -1,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
        )


class RemoteVersionResolver:
    """
    Stateless apart from its configuration, so a single instance can serve
    many concurrent ``resolve`` calls.
    """

    def __init__(self, runner: Optional[GitRunner] = None, timeout: float = DEFAULT_LS_REMOTE_TIMEOUT):
        self.runner = runner or SubprocessGitRunner()
        self.timeout = timeout

    async def resolve(self, git_url: str) -> Tuple[str, List[str]]:
        if not git_url:
            return "", []
        if git_url.startswith("-"):
            logger.warning(f"Refusing git URL that looks like an option: {git_url!r}")
            return "", []

        try:
            result = await self.runner.ls_remote(git_url, self.timeout)
        except asyncio.TimeoutError:
            logger.warning(f"git ls-remote timed out after {self.timeout}s for {git_url}")
            return "", []
        except OSError as e:
            logger.warning(f"git ls-remote could not be started for {git_url}: {e}")
            return "", []

        if not result.success:
            logger.warning(
                f"git ls-remote failed for {git_url} (exit {result.returncode}): {result.stderr.strip()}"
            )
            return "", []

        versions = parse_ls_remote(result.stdout)
        logger.debug(f"Found {len(versions)} version tags for {git_url}")
        return select_current(versions), versions

    async def enrich(self, package: Package) -> Package:
        """
        Overwrite ``package.versions`` with the discovered tags. ``version`` is only
        replaced when a current version was found, so the manifest's own version
        survives unreachable remotes.
        """
        current, versions = await self.resolve(package.git_url)
        package.versions = versions
        if current:
            package.version = current
        return package
