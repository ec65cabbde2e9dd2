"""Build environment adapter.

A build environment is the source tree at one ref, ready to run the check
suite or to cross-compile release archives. The pipeline only sees the
``BuildEnvironment`` protocol; ``GoBuildEnvironment`` implements it with a
detached git worktree and the ``go`` toolchain.
"""

from __future__ import annotations

import os
import shutil
import tarfile
import tempfile
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol
from zipfile import ZIP_DEFLATED, ZipFile

from ship.core.config import ReleaseConfig
from ship.core.result import Err, Ok, Result
from ship.git.repository import Repository
from ship.platform.process import run as run_process
from ship.services.release.model import BuildArtifact
from ship.services.release.platforms import Platform
from ship.services.release.timeouts import GO_BUILD_TIMEOUT_SECONDS, GO_CHECK_TIMEOUT_SECONDS

# Shipped next to the binary in every archive, when present in the tree.
DIST_FILES: tuple[str, ...] = ("README.txt", "LICENSES.txt", "CHANGES.txt")

_ZIP_OSES = frozenset({"windows", "darwin"})


@dataclass(frozen=True, slots=True)
class BuildFailure:
    message: str
    log: str = ""


class BuildEnvironment(Protocol):
    def run_checks(self) -> Result[None, BuildFailure]:
        """Run the verification suite against the tree."""
        ...

    def build(self, platform: Platform, out_dir: Path) -> Result[BuildArtifact, BuildFailure]:
        """Build one platform into a uniquely named archive inside ``out_dir``.

        Called concurrently from several workers.
        """
        ...

    def close(self) -> None: ...


OpenBuildEnv = Callable[[str], Result[BuildEnvironment, BuildFailure]]


def artifact_stem(binary_name: str, tag: str, platform: Platform) -> str:
    return f"{binary_name}_{tag}_{platform.os}_{platform.arch_label}"


def artifact_filename(binary_name: str, tag: str, platform: Platform) -> str:
    ext = ".zip" if platform.os in _ZIP_OSES else ".tar.gz"
    return artifact_stem(binary_name, tag, platform) + ext


def _write_archive(archive: Path, files: list[tuple[Path, str]]) -> None:
    if archive.name.endswith(".zip"):
        with ZipFile(archive, "w", compression=ZIP_DEFLATED, strict_timestamps=False) as zf:
            for src, arc in files:
                zf.write(src, arcname=arc)
        return

    with tarfile.open(archive, "w:gz") as tf:
        for src, arc in files:
            tf.add(src, arcname=arc)


class GoBuildEnvironment:
    """Source checkout of ``ref`` in a private worktree.

    Attributes:
        ref: Tag or commit the worktree is checked out at.
        source_dir: Root of the checked-out tree.
    """

    def __init__(self, *, repo: Repository, ref: str, root: Path, config: ReleaseConfig) -> None:
        self.ref = ref
        self.source_dir = root / "src"
        self._repo = repo
        self._root = root
        self._config = config
        self._closed = False

    @classmethod
    def open(
        cls, *, repo: Repository, ref: str, config: ReleaseConfig
    ) -> Result[GoBuildEnvironment, BuildFailure]:
        root = Path(tempfile.mkdtemp(prefix="ship_buildenv_"))
        env = cls(repo=repo, ref=ref, root=root, config=config)
        added = repo.add_worktree(env.source_dir, ref)
        if isinstance(added, Err):
            shutil.rmtree(root, ignore_errors=True)
            return Err(
                BuildFailure(message=f"opening build environment at {ref}: {added.error.message}")
            )
        return Ok(env)

    def run_checks(self) -> Result[None, BuildFailure]:
        log: list[str] = []
        for cmd in (["go", "vet", "./..."], ["go", "test", "-race", "./..."]):
            log.append("$ " + " ".join(cmd))
            result = run_process(
                cmd, cwd=self.source_dir, env=dict(os.environ), timeout=GO_CHECK_TIMEOUT_SECONDS
            )
            if isinstance(result, Err):
                log.append(result.error.output)
                return Err(BuildFailure(message=f"{result.error}", log="\n".join(log)))
            log.append(result.value.strip())
        return Ok(None)

    def build(self, platform: Platform, out_dir: Path) -> Result[BuildArtifact, BuildFailure]:
        binary_name = self._config.binary_name
        binary = binary_name + (".exe" if platform.os == "windows" else "")
        archive = out_dir / artifact_filename(binary_name, self.ref, platform)
        staging = Path(tempfile.mkdtemp(dir=out_dir, prefix=f".{archive.name}_"))

        env = {
            **os.environ,
            "GOOS": platform.os,
            "GOARCH": platform.arch,
            "CGO_ENABLED": "0",
        }
        if platform.arm:
            env["GOARM"] = platform.arm

        cmd = [
            "go",
            "build",
            "-trimpath",
            "-ldflags",
            "-s -w",
            "-o",
            str(staging / binary),
            self._config.main_package,
        ]
        try:
            result = run_process(cmd, cwd=self.source_dir, env=env, timeout=GO_BUILD_TIMEOUT_SECONDS)
            if isinstance(result, Err):
                return Err(BuildFailure(message=str(result.error), log=result.error.output))

            files = [(staging / binary, binary)]
            files += [
                (self.source_dir / name, name)
                for name in DIST_FILES
                if (self.source_dir / name).is_file()
            ]
            try:
                _write_archive(archive, files)
            except OSError as e:
                archive.unlink(missing_ok=True)
                return Err(BuildFailure(message=f"archiving {archive.name}: {e}"))
            return Ok(BuildArtifact(platform=platform, path=archive))
        finally:
            shutil.rmtree(staging, ignore_errors=True)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        # Failure here only leaves a stale worktree entry; `git worktree prune` clears it.
        self._repo.remove_worktree(self.source_dir)
        shutil.rmtree(self._root, ignore_errors=True)


def go_build_env_opener(*, repo: Repository, config: ReleaseConfig) -> OpenBuildEnv:
    """Bind repository and config, returning a ``ref -> environment`` opener."""

    def open_env(ref: str) -> Result[BuildEnvironment, BuildFailure]:
        opened = GoBuildEnvironment.open(repo=repo, ref=ref, config=config)
        if isinstance(opened, Err):
            return opened
        return Ok(opened.value)

    return open_env
