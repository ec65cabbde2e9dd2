from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path

from ship.services.release.errors import ReleaseError
from ship.services.release.platforms import Platform


class Stage(StrEnum):
    """Operator-visible progress of a release run, in order."""

    NOT_STARTED = "not_started"
    CHECKED = "checked"
    PLANNED = "planned"
    VERIFIED = "verified"
    TAGGED = "tagged"
    PUSHED = "pushed"
    PUBLISHED = "published"
    FANNED = "fanned"
    NOTIFIED = "notified"
    DONE = "done"
    ABORTED = "aborted"


@dataclass(frozen=True, slots=True)
class HostedRelease:
    """A release record on the release host."""

    id: int
    tag: str
    url: str = ""


@dataclass(frozen=True, slots=True)
class BuildArtifact:
    """One platform's archive, waiting in the temp directory for upload."""

    platform: Platform
    path: Path

    @property
    def name(self) -> str:
        return self.path.name


@dataclass(frozen=True, slots=True)
class PlatformOutcome:
    platform: Platform
    asset_name: str | None = None
    sha256: str | None = None
    error: ReleaseError | None = None

    @property
    def uploaded(self) -> bool:
        return self.error is None and self.asset_name is not None


@dataclass(frozen=True, slots=True)
class FanOutReport:
    outcomes: tuple[PlatformOutcome, ...]

    @property
    def uploaded(self) -> tuple[PlatformOutcome, ...]:
        return tuple(o for o in self.outcomes if o.uploaded)

    @property
    def failed(self) -> tuple[PlatformOutcome, ...]:
        return tuple(o for o in self.outcomes if not o.uploaded)


@dataclass(frozen=True, slots=True)
class ReleaseSession:
    """State carried from one pipeline transition to the next.

    Attributes:
        stage: Last stage reached.
        tag: Release tag, once chosen (new run) or read back (resumed run).
        prerelease: Whether ``tag`` is a pre-release.
        resumed: True for a run re-entered after a pushed tag.
        release: Hosted release record, once created.
        report: Fan-out outcome, once every unit finished.
        failed_at: Stage the run was in when it aborted.
    """

    stage: Stage = Stage.NOT_STARTED
    tag: str | None = None
    prerelease: bool = False
    resumed: bool = False
    release: HostedRelease | None = None
    report: FanOutReport | None = None
    failed_at: Stage | None = None

    @property
    def fan_out_started(self) -> bool:
        """True if the run got as far as the build/upload fan-out."""
        stage = self.failed_at if self.stage == Stage.ABORTED else self.stage
        return stage is not None and stage in (
            Stage.PUBLISHED,
            Stage.FANNED,
            Stage.NOTIFIED,
            Stage.DONE,
        )
