"""Release pipeline orchestrator.

A run is a sequence of transitions over ``Stage``:

    NOT_STARTED -> CHECKED -> PLANNED -> VERIFIED -> TAGGED -> PUSHED
        -> PUBLISHED -> FANNED -> NOTIFIED -> DONE

Everything before PUSHED is local and aborting leaves no trace. From
PUSHED on, the tag exists remotely; a later run resumed with ``publish``
starts at PUSHED again and creates the release from the pushed tag.
Pre-releases go from FANNED straight to DONE without notifying the
deployment service.
"""

from __future__ import annotations

import tempfile
import time
from collections.abc import Callable, Sequence
from dataclasses import replace
from pathlib import Path

from ship.core.config import ReleaseConfig
from ship.core.result import Err, Ok, Result
from ship.git.repository import Repository
from ship.output.console import ConsoleProtocol, Style
from ship.output.prompt import PromptProtocol
from ship.services.release import fsm
from ship.services.release.builder import OpenBuildEnv
from ship.services.release.errors import ReleaseError
from ship.services.release.fanout import checksums_text, fan_out, print_build_log
from ship.services.release.hosting import ReleaseHost
from ship.services.release.model import FanOutReport, ReleaseSession, Stage
from ship.services.release.notify import DeployNotifier
from ship.services.release.platforms import Platform
from ship.services.release.preflight import run_preflight
from ship.services.release.resume import ResumePoint, resume_session
from ship.services.release.tags import current_tag, display_name, is_prerelease, suggest_next
from ship.services.release.throttle import Throttle
from ship.services.release.timeouts import PUBLISH_SETTLE_SECONDS

OTHER_TAG = "Other..."

Step = Result[fsm.StepOutcome[ReleaseSession], ReleaseError]


class ReleasePipeline:
    """Runs one release from preflight to notification.

    Collaborators are injected so the whole flow can run against fakes.

    Attributes:
        session: Latest state reached; ``Stage.ABORTED`` after a fatal error.
        history: Every stage reached, in order.
    """

    def __init__(
        self,
        *,
        config: ReleaseConfig,
        repo: Repository,
        host: ReleaseHost,
        notifier: DeployNotifier,
        open_build_env: OpenBuildEnv,
        platforms: Sequence[Platform],
        prompter: PromptProtocol,
        console: ConsoleProtocol,
        sleep: Callable[[float], None] = time.sleep,
        work_root: Path | None = None,
    ) -> None:
        self._config = config
        self._repo = repo
        self._host = host
        self._notifier = notifier
        self._open_build_env = open_build_env
        self._platforms = tuple(platforms)
        self._prompter = prompter
        self._console = console
        self._sleep = sleep
        self._work_root = work_root
        self._resume: ResumePoint | None = None

        self.session = ReleaseSession()
        self.history: list[Stage] = []

    def run(self, *, resume: ResumePoint | None = None) -> Result[ReleaseSession, ReleaseError]:
        self._resume = resume
        self.session = ReleaseSession()
        self.history = [Stage.NOT_STARTED]

        handlers: dict[str, fsm.StepHandler[ReleaseSession]] = {
            Stage.NOT_STARTED: self._preflight,
            Stage.CHECKED: self._plan,
            Stage.PLANNED: self._verify,
            Stage.VERIFIED: self._tag,
            Stage.TAGGED: self._push,
            Stage.PUSHED: self._publish,
            Stage.PUBLISHED: self._fan_out,
            Stage.FANNED: self._notify,
            Stage.NOTIFIED: self._done,
        }

        result = fsm.run_state_machine(
            initial_state=self.session,
            get_step=lambda s: s.stage.value,
            handlers=handlers,
            save_state=self._save,
        )
        if isinstance(result, Err):
            self.session = replace(self.session, stage=Stage.ABORTED, failed_at=self.session.stage)
            self.history.append(Stage.ABORTED)
        return result

    def _save(self, session: ReleaseSession) -> None:
        self.session = session
        self.history.append(session.stage)
        self._console.print(f"stage: {session.stage}", Style.DIM)

    # -- transitions ---------------------------------------------------------

    def _preflight(self, s: ReleaseSession) -> Step:
        self._console.header("Preflight")
        checked = run_preflight(
            config=self._config,
            repo=self._repo,
            prompter=self._prompter,
            console=self._console,
            interactive=self._resume is None,
        )
        if isinstance(checked, Err):
            return checked
        return Ok(fsm.advance(replace(s, stage=Stage.CHECKED)))

    def _plan(self, s: ReleaseSession) -> Step:
        if self._resume is not None:
            resumed = resume_session(
                point=self._resume,
                repo=self._repo,
                prompter=self._prompter,
                console=self._console,
            )
            if isinstance(resumed, Err):
                return resumed
            return Ok(fsm.advance(resumed.value))

        tags = self._repo.tags()
        if isinstance(tags, Err):
            return Err(ReleaseError(kind="precondition", message=tags.error.message))

        current = current_tag(tags.value)
        choice = self._prompter.choose(
            f"Current tag is {current}. What should the new tag be?",
            [*suggest_next(current), OTHER_TAG],
        )
        if choice is None:
            return Err(ReleaseError(kind="user_aborted", message="no tag chosen"))
        tag = choice
        if choice == OTHER_TAG:
            tag = self._prompter.ask_text("Type a name for the new tag:").strip()
            if not tag:
                return Err(ReleaseError(kind="user_aborted", message="no tag chosen"))
        if tag in tags.value:
            return Err(
                ReleaseError(
                    kind="precondition",
                    message=f"tag already exists: {tag}",
                    hint="If a previous deploy pushed it, use --resume publish.",
                )
            )

        self._console.newline()
        self._console.warning(f"Tag {tag} will be created and pushed once the checks pass.")
        if not self._prompter.confirm("I'm ready. Are you ready? There's no going back:"):
            return Err(ReleaseError(kind="user_aborted", message="operator not ready"))

        return Ok(
            fsm.advance(replace(s, stage=Stage.PLANNED, tag=tag, prerelease=is_prerelease(tag)))
        )

    def _verify(self, s: ReleaseSession) -> Step:
        self._console.header("Checks")
        head = self._repo.head_sha()
        if isinstance(head, Err):
            return Err(ReleaseError(kind="precondition", message=head.error.message))

        opened = self._open_build_env(head.value)
        if isinstance(opened, Err):
            return Err(ReleaseError(kind="verification_failed", message=opened.error.message))

        env = opened.value
        try:
            checked = env.run_checks()
        finally:
            env.close()

        if isinstance(checked, Err):
            self._console.error("checks failed; here's the log:")
            print_build_log(self._console, checked.error.log)
            return Err(
                ReleaseError(
                    kind="verification_failed",
                    message=f"checks: {checked.error.message}",
                    hint=checked.error.log or None,
                )
            )
        self._console.success(f"checks passed at {head.value[:8]}")
        return Ok(fsm.advance(replace(s, stage=Stage.VERIFIED)))

    def _tag(self, s: ReleaseSession) -> Step:
        tag = _require_tag(s)
        created = self._repo.create_signed_tag(tag)
        if isinstance(created, Err):
            return Err(
                ReleaseError(
                    kind="publish_failed",
                    message=f"creating signed tag: {created.error.message}",
                )
            )
        return Ok(fsm.advance(replace(s, stage=Stage.TAGGED)))

    def _push(self, s: ReleaseSession) -> Step:
        pushed = self._repo.push()
        if isinstance(pushed, Err):
            return self._unwind_tag(s, f"git push: {pushed.error.message}")
        pushed = self._repo.push_tags()
        if isinstance(pushed, Err):
            return self._unwind_tag(s, f"pushing tag: {pushed.error.message}")
        return Ok(fsm.advance(replace(s, stage=Stage.PUSHED)))

    def _unwind_tag(self, s: ReleaseSession, message: str) -> Step:
        """Drop the local tag of a failed push so the next run starts clean."""
        tag = _require_tag(s)
        deleted = self._repo.delete_tag(tag)
        if isinstance(deleted, Err):
            return Err(
                ReleaseError(
                    kind="publish_failed",
                    message=message,
                    hint=f"Local tag {tag} could not be removed: {deleted.error.message}; "
                    f"run: git tag -d {tag}",
                )
            )
        self._console.print(f"Removed local tag {tag}", Style.DIM)
        return Err(ReleaseError(kind="publish_failed", message=message))

    def _publish(self, s: ReleaseSession) -> Step:
        tag = _require_tag(s)
        if not s.resumed:
            self._console.print("Waiting a few seconds before publishing release...")
            self._sleep(PUBLISH_SETTLE_SECONDS)

        self._console.header(f"Publishing release {tag}")
        created = self._host.create_release(
            tag=tag, name=display_name(tag), prerelease=s.prerelease
        )
        if isinstance(created, Err):
            return created
        if created.value.url:
            self._console.print(created.value.url, Style.DIM)
        return Ok(fsm.advance(replace(s, stage=Stage.PUBLISHED, release=created.value)))

    def _fan_out(self, s: ReleaseSession) -> Step:
        tag = _require_tag(s)
        release = s.release
        if release is None:
            raise AssertionError("fan-out reached without a hosted release")

        self._console.header(f"Building and uploading {len(self._platforms)} platforms")
        opened = self._open_build_env(tag)
        if isinstance(opened, Err):
            return Err(
                ReleaseError(
                    kind="publish_failed",
                    message=f"opening build environment: {opened.error.message}",
                )
            )

        env = opened.value
        try:
            with tempfile.TemporaryDirectory(
                prefix="ship_deployment_", dir=self._work_root
            ) as tmp:
                report = fan_out(
                    platforms=self._platforms,
                    build_env=env,
                    host=self._host,
                    release=release,
                    work_dir=Path(tmp),
                    build_throttle=Throttle(self._config.build_concurrency),
                    upload_throttle=Throttle(self._config.upload_concurrency),
                    console=self._console,
                )
                self._upload_checksums(s, report, Path(tmp))
        finally:
            env.close()

        self._report(report)
        return Ok(fsm.advance(replace(s, stage=Stage.FANNED, report=report)))

    def _upload_checksums(self, s: ReleaseSession, report: FanOutReport, work_dir: Path) -> None:
        text = checksums_text(report)
        if not text or s.release is None:
            return
        name = f"{self._config.binary_name}_{s.tag}_checksums.txt"
        path = work_dir / name
        try:
            path.write_text(text, encoding="utf-8")
        except OSError as e:
            self._console.error(f"writing {name}: {e}")
            return
        uploaded = self._host.upload_asset(release=s.release, path=path, name=name)
        if isinstance(uploaded, Err):
            self._console.error(f"uploading {name}: {uploaded.error.pretty()}")
        else:
            self._console.success(f"Uploaded {name}")

    def _report(self, report: FanOutReport) -> None:
        total = len(report.outcomes)
        uploaded = len(report.uploaded)
        if report.failed:
            self._console.warning(f"{uploaded}/{total} platforms uploaded")
            for outcome in report.failed:
                reason = outcome.error.message if outcome.error is not None else "unknown"
                self._console.print(f"  missing {outcome.platform}: {reason}", Style.WARNING)
        else:
            self._console.success(f"{uploaded}/{total} platforms uploaded")

    def _notify(self, s: ReleaseSession) -> Step:
        tag = _require_tag(s)
        if s.prerelease:
            self._console.info(f"{tag} is a pre-release; not deploying to build server")
            return Ok(fsm.finish(replace(s, stage=Stage.DONE)))

        self._console.print("Deploying to build server")
        notified = self._notifier.notify(tag)
        if isinstance(notified, Err):
            return notified
        self._console.success("Deploy request successfully sent to build server")
        return Ok(fsm.advance(replace(s, stage=Stage.NOTIFIED)))

    def _done(self, s: ReleaseSession) -> Step:
        return Ok(fsm.finish(replace(s, stage=Stage.DONE)))


def _require_tag(s: ReleaseSession) -> str:
    if s.tag is None:
        raise AssertionError(f"stage {s.stage} reached without a tag")
    return s.tag
