"""Concurrent build-and-upload over the platform matrix.

Every platform gets its own worker thread up front; the two throttles, not
the pool size, bound how many builds and uploads actually run at once. A
worker gives its build permit back as soon as its build ends, so uploads
overlap with builds still in flight. One platform failing never affects the
others: the failure is reported and that platform is left out of the
release.
"""

from __future__ import annotations

import hashlib
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from ship.core.result import Err
from ship.output.console import ConsoleProtocol, Style
from ship.services.release.builder import BuildEnvironment
from ship.services.release.errors import ReleaseError
from ship.services.release.hosting import ReleaseHost
from ship.services.release.model import FanOutReport, HostedRelease, PlatformOutcome
from ship.services.release.platforms import Platform
from ship.services.release.throttle import Throttle


def sha256_file(path: Path) -> str:
    h = hashlib.sha256()
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(1024 * 1024), b""):
            h.update(chunk)
    return h.hexdigest()


def print_build_log(console: ConsoleProtocol, log: str) -> None:
    # One call, so concurrent workers cannot interleave inside the frame.
    console.print(f">>>>>>>>>>>>\n{log}\n<<<<<<<<<<<<", Style.DIM)


def _failed(platform: Platform, message: str, hint: str | None = None) -> PlatformOutcome:
    return PlatformOutcome(
        platform=platform,
        error=ReleaseError(kind="platform_failed", message=message, hint=hint),
    )


def build_and_upload(
    *,
    platform: Platform,
    build_env: BuildEnvironment,
    host: ReleaseHost,
    release: HostedRelease,
    work_dir: Path,
    build_throttle: Throttle,
    upload_throttle: Throttle,
    console: ConsoleProtocol,
) -> PlatformOutcome:
    """One unit of fan-out work: build ``platform``, upload it, clean up."""
    with build_throttle:
        console.print(f"Building {platform}...")
        built = build_env.build(platform, work_dir)

    if isinstance(built, Err):
        console.error(f"building {platform}: {built.error.message}")
        if built.error.log:
            print_build_log(console, built.error.log)
        return _failed(platform, f"build failed: {built.error.message}")

    artifact = built.value
    try:
        digest = sha256_file(artifact.path)
        with upload_throttle:
            console.print(f"Uploading {platform}...")
            uploaded = host.upload_asset(release=release, path=artifact.path, name=artifact.name)
    except OSError as e:
        console.error(f"uploading {platform}: {e}")
        return _failed(platform, f"upload failed: {e}")
    finally:
        artifact.path.unlink(missing_ok=True)

    if isinstance(uploaded, Err):
        console.error(f"uploading {platform}: {uploaded.error.pretty()}")
        return _failed(platform, uploaded.error.message, uploaded.error.hint)

    console.success(f"Uploaded {platform}")
    return PlatformOutcome(platform=platform, asset_name=artifact.name, sha256=digest)


def fan_out(
    *,
    platforms: Sequence[Platform],
    build_env: BuildEnvironment,
    host: ReleaseHost,
    release: HostedRelease,
    work_dir: Path,
    build_throttle: Throttle,
    upload_throttle: Throttle,
    console: ConsoleProtocol,
) -> FanOutReport:
    """Run one ``build_and_upload`` per platform and wait for all of them.

    Outcomes are reported in ``platforms`` order, whatever order the units
    actually finished in.
    """
    if not platforms:
        return FanOutReport(outcomes=())

    with ThreadPoolExecutor(
        max_workers=len(platforms), thread_name_prefix="ship-fanout"
    ) as pool:
        futures = [
            pool.submit(
                build_and_upload,
                platform=platform,
                build_env=build_env,
                host=host,
                release=release,
                work_dir=work_dir,
                build_throttle=build_throttle,
                upload_throttle=upload_throttle,
                console=console,
            )
            for platform in platforms
        ]

        outcomes: list[PlatformOutcome] = []
        for platform, future in zip(platforms, futures):
            try:
                outcomes.append(future.result())
            except Exception as e:
                console.error(f"{platform}: {e}")
                outcomes.append(_failed(platform, f"unexpected error: {e}"))

    return FanOutReport(outcomes=tuple(outcomes))


def checksums_text(report: FanOutReport) -> str:
    """``sha256sum``-style listing of every uploaded asset, sorted by name."""
    lines = [
        f"{o.sha256}  {o.asset_name}"
        for o in sorted(report.uploaded, key=lambda o: o.asset_name or "")
        if o.sha256 is not None
    ]
    return "\n".join(lines) + ("\n" if lines else "")
