"""
Git synchronization of the data file.

Drives the `git` executable. The data file is pulled (fast-forward only)
before it is loaded, committed and pushed after each save, and pushed again
at shutdown. A file outside any work tree makes every step a no-op.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from .storage import FileStorage

logger = logging.getLogger(__name__)

DEFAULT_AUTHOR_NAME = "gtdnota"
DEFAULT_AUTHOR_EMAIL = "gtdnota@localhost"


class GitSyncError(Exception):
    """A git command failed."""


class GitSync:
    """Git operations scoped to the repository that holds `path`."""

    def __init__(self, path: str | Path):
        self.path = Path(path).absolute()
        self._work_tree: Path | None = None
        self._repo_checked = False

    def _run(self, *args: str, check: bool = True) -> subprocess.CompletedProcess:
        try:
            result = subprocess.run(
                ["git", *args],
                cwd=self.path.parent,
                capture_output=True,
                text=True,
            )
        except OSError as e:
            raise GitSyncError(f"Could not run git: {e}") from e
        if check and result.returncode != 0:
            detail = (result.stderr or result.stdout).strip()
            raise GitSyncError(f"git {args[0]} failed: {detail}")
        return result

    @property
    def work_tree(self) -> Path | None:
        if not self._repo_checked:
            self._repo_checked = True
            if self.path.parent.is_dir():
                try:
                    result = self._run("rev-parse", "--show-toplevel", check=False)
                except GitSyncError as e:
                    logger.warning("Git sync disabled: %s", e)
                    return None
                if result.returncode == 0:
                    self._work_tree = Path(result.stdout.strip())
        return self._work_tree

    def is_git_managed(self) -> bool:
        return self.work_tree is not None

    def remote(self) -> str | None:
        """`origin` if configured, else the first remote, else None."""
        remotes = self._run("remote").stdout.split()
        if not remotes:
            return None
        return "origin" if "origin" in remotes else remotes[0]

    def pull(self) -> None:
        if not self.is_git_managed():
            return
        remote = self.remote()
        if remote is None:
            logger.debug("No git remote configured, skipping pull")
            return
        result = self._run("pull", "--ff-only", remote, check=False)
        if result.returncode != 0:
            raise GitSyncError(
                "Merge required but automatic merge is not supported. Please resolve manually. "
                f"({result.stderr.strip()})"
            )
        logger.info("Pulled %s from %s", self.path.name, remote)

    def _identity_args(self) -> list[str]:
        args: list[str] = []
        if self._run("config", "user.name", check=False).returncode != 0:
            args += ["-c", f"user.name={DEFAULT_AUTHOR_NAME}"]
        if self._run("config", "user.email", check=False).returncode != 0:
            args += ["-c", f"user.email={DEFAULT_AUTHOR_EMAIL}"]
        return args

    def commit(self, message: str) -> bool:
        """Stage and commit the data file. Returns False when it was unchanged."""
        if not self.is_git_managed():
            return False
        name = self.path.name
        self._run("add", "--", name)
        if self._run("diff", "--cached", "--quiet", "--", name, check=False).returncode == 0:
            logger.debug("No changes to commit for %s", name)
            return False
        self._run(*self._identity_args(), "commit", "-m", message, "--", name)
        logger.debug("Committed %s: %s", name, message)
        return True

    def push(self) -> None:
        if not self.is_git_managed():
            return
        remote = self.remote()
        if remote is None:
            logger.debug("No git remote configured, skipping push")
            return
        self._run("push", remote, "HEAD")
        logger.info("Pushed to %s", remote)


class SyncedStorage:
    """FileStorage whose saves are mirrored into git."""

    def __init__(self, storage: FileStorage, git: GitSync | None = None):
        self.storage = storage
        self.git = git or GitSync(storage.path)

    def load_raw(self) -> bytes:
        if self.git.is_git_managed():
            try:
                self.git.pull()
            except GitSyncError as e:
                logger.warning("Git pull failed, loading local copy: %s", e)
        return self.storage.load_raw()

    def persist(self, data: bytes, message: str) -> None:
        self.storage.persist(data, message)
        if self.git.commit(message):
            self.git.push()

    def close(self) -> None:
        self.git.push()
