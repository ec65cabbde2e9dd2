"""Release host adapter.

The pipeline talks to the release host through ``ReleaseHost``. The
production implementation drives the GitHub CLI (``gh api``) with the
configured token, so no HTTP or OAuth plumbing lives here.
"""

from __future__ import annotations

import json
import os
import shutil
from pathlib import Path
from typing import Protocol
from urllib.parse import quote

from ship.core.result import Err, Ok, Result
from ship.core.structured import as_str_dict, get_int, get_str
from ship.platform.process import run as run_process
from ship.services.release.errors import ReleaseError
from ship.services.release.model import HostedRelease
from ship.services.release.timeouts import GH_TIMEOUT_SECONDS, GH_UPLOAD_TIMEOUT_SECONDS

_UPLOADS_BASE_URL = "https://uploads.github.com"


class ReleaseHost(Protocol):
    def create_release(
        self, *, tag: str, name: str, prerelease: bool
    ) -> Result[HostedRelease, ReleaseError]:
        """Create the release record for an already-pushed tag."""
        ...

    def upload_asset(
        self, *, release: HostedRelease, path: Path, name: str
    ) -> Result[None, ReleaseError]:
        """Attach a file to the release. Safe to call from several threads."""
        ...


def ensure_gh_available() -> Result[None, ReleaseError]:
    if shutil.which("gh") is None:
        return Err(
            ReleaseError(
                kind="precondition",
                message="gh: missing",
                hint="Install GitHub CLI: https://cli.github.com/",
            )
        )
    return Ok(None)


class GhReleaseHost:
    """``ReleaseHost`` backed by ``gh api``.

    Attributes:
        repo_slug: owner/name of the repository to publish to.
    """

    def __init__(self, *, repo_slug: str, token: str, cwd: Path) -> None:
        self.repo_slug = repo_slug
        self._token = token
        self._cwd = cwd

    def _env(self) -> dict[str, str]:
        return {**os.environ, "GH_TOKEN": self._token}

    def create_release(
        self, *, tag: str, name: str, prerelease: bool
    ) -> Result[HostedRelease, ReleaseError]:
        cmd = [
            "gh",
            "api",
            "--method",
            "POST",
            f"repos/{self.repo_slug}/releases",
            "-f",
            f"tag_name={tag}",
            "-f",
            f"name={name}",
            "-F",
            f"prerelease={'true' if prerelease else 'false'}",
        ]
        result = run_process(cmd, cwd=self._cwd, env=self._env(), timeout=GH_TIMEOUT_SECONDS)
        if isinstance(result, Err):
            return Err(
                ReleaseError(
                    kind="publish_failed",
                    message=f"creating release {tag} failed",
                    hint=result.error.stderr.strip() or None,
                )
            )

        try:
            obj: object = json.loads(result.value)
        except json.JSONDecodeError as e:
            return Err(
                ReleaseError(
                    kind="publish_failed",
                    message=f"release host returned invalid JSON: {e}",
                )
            )

        data = as_str_dict(obj)
        release_id = get_int(data, "id") if data is not None else None
        if data is None or release_id is None:
            return Err(
                ReleaseError(
                    kind="publish_failed",
                    message=f"unexpected release payload for {tag}",
                )
            )

        return Ok(HostedRelease(id=release_id, tag=tag, url=get_str(data, "html_url") or ""))

    def upload_asset(
        self, *, release: HostedRelease, path: Path, name: str
    ) -> Result[None, ReleaseError]:
        url = (
            f"{_UPLOADS_BASE_URL}/repos/{self.repo_slug}/releases/{release.id}/assets"
            f"?name={quote(name)}"
        )
        cmd = [
            "gh",
            "api",
            "--method",
            "POST",
            "-H",
            "Content-Type: application/octet-stream",
            url,
            "--input",
            str(path),
        ]
        result = run_process(
            cmd, cwd=self._cwd, env=self._env(), timeout=GH_UPLOAD_TIMEOUT_SECONDS
        )
        if isinstance(result, Err):
            return Err(
                ReleaseError(
                    kind="platform_failed",
                    message=f"uploading {name} failed",
                    hint=result.error.stderr.strip() or None,
                )
            )
        return Ok(None)
