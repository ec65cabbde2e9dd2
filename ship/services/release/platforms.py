"""Target platform matrix.

The matrix is every GOOS/GOARCH pair the toolchain can cross-compile
without cgo, with ``arm`` expanded into its GOARM variants. Exclusions are
partial patterns: an empty field matches anything, so ``Platform(os="solaris")``
drops every Solaris target and ``Platform(arm="5")`` drops ARMv5 everywhere.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from ship.core.result import Err, Ok, Result

__all__ = [
    "DEFAULT_SKIP",
    "SUPPORTED_PLATFORMS",
    "UNSUPPORTED_PLATFORMS",
    "Platform",
    "filter_platforms",
    "parse_platform_pattern",
    "supported_platforms",
]


@dataclass(frozen=True, slots=True, order=True)
class Platform:
    os: str = ""
    arch: str = ""
    arm: str = ""

    def __str__(self) -> str:
        if self.arm:
            return f"{self.os}/{self.arch}/v{self.arm}"
        return f"{self.os}/{self.arch}"

    @property
    def arch_label(self) -> str:
        """Architecture as it appears in artifact names (``arm7``, ``amd64``)."""
        return f"{self.arch}{self.arm}"

    def matches(self, pattern: Platform) -> bool:
        """True if every non-empty field of ``pattern`` equals ours."""
        return (
            (not pattern.os or pattern.os == self.os)
            and (not pattern.arch or pattern.arch == self.arch)
            and (not pattern.arm or pattern.arm == self.arm)
        )


_ARM_VARIANTS: tuple[str, ...] = ("5", "6", "7")

_DIST_LIST: tuple[tuple[str, str], ...] = (
    ("android", "arm"),
    ("darwin", "386"),
    ("darwin", "amd64"),
    ("darwin", "arm"),
    ("darwin", "arm64"),
    ("dragonfly", "amd64"),
    ("freebsd", "386"),
    ("freebsd", "amd64"),
    ("freebsd", "arm"),
    ("linux", "386"),
    ("linux", "amd64"),
    ("linux", "arm"),
    ("linux", "arm64"),
    ("linux", "ppc64"),
    ("linux", "ppc64le"),
    ("linux", "mips"),
    ("linux", "mipsle"),
    ("linux", "mips64"),
    ("linux", "mips64le"),
    ("linux", "s390x"),
    ("netbsd", "386"),
    ("netbsd", "amd64"),
    ("netbsd", "arm"),
    ("openbsd", "386"),
    ("openbsd", "amd64"),
    ("openbsd", "arm"),
    ("plan9", "386"),
    ("plan9", "amd64"),
    ("solaris", "amd64"),
    ("windows", "386"),
    ("windows", "amd64"),
)


def _expand(pairs: Iterable[tuple[str, str]]) -> tuple[Platform, ...]:
    out: list[Platform] = []
    for os_name, arch in pairs:
        if arch == "arm" and os_name != "android" and os_name != "darwin":
            out.extend(Platform(os=os_name, arch=arch, arm=v) for v in _ARM_VARIANTS)
        else:
            out.append(Platform(os=os_name, arch=arch))
    return tuple(out)


SUPPORTED_PLATFORMS: tuple[Platform, ...] = _expand(_DIST_LIST)

# Targets that need cgo or an SDK and cannot be cross-compiled statically.
UNSUPPORTED_PLATFORMS: tuple[Platform, ...] = (
    Platform(os="android"),
    Platform(os="darwin", arch="arm"),
    Platform(os="plan9"),
)

# Demand for these is very low and the CPU cost of building them is high.
DEFAULT_SKIP: tuple[Platform, ...] = (
    Platform(os="dragonfly"),
    Platform(os="solaris"),
    Platform(os="netbsd"),
    Platform(arm="5"),
    Platform(arm="6"),
    Platform(os="darwin", arch="386"),
    Platform(os="darwin", arch="arm64"),
    Platform(arch="mips64"),
    Platform(arch="mips64le"),
    Platform(arch="ppc64"),
    Platform(arch="ppc64le"),
    Platform(os="openbsd", arch="386"),
    Platform(os="openbsd", arch="arm"),
    Platform(os="freebsd", arch="386"),
    Platform(os="freebsd", arch="arm"),
)


def filter_platforms(
    platforms: Iterable[Platform],
    skip: Iterable[Platform],
) -> tuple[Platform, ...]:
    """Platforms not matched by any pattern in ``skip``, order preserved."""
    patterns = tuple(skip)
    return tuple(p for p in platforms if not any(p.matches(s) for s in patterns))


def supported_platforms(extra_skip: Iterable[Platform] = ()) -> tuple[Platform, ...]:
    """The release matrix: supported targets minus unsupported and skipped ones."""
    return filter_platforms(
        SUPPORTED_PLATFORMS,
        (*UNSUPPORTED_PLATFORMS, *DEFAULT_SKIP, *extra_skip),
    )


def parse_platform_pattern(text: str) -> Result[Platform, str]:
    """Parse ``os``, ``os/arch``, ``os/arm/v7`` or ``*/arch`` into a pattern.

    ``*`` (or an empty segment) is a wildcard.
    """
    parts = [p.strip() for p in text.strip().split("/")]
    if not text.strip() or len(parts) > 3:
        return Err(f"invalid platform pattern: {text!r} (expected os[/arch[/vN]])")

    fields = [("" if p == "*" else p) for p in parts]
    while len(fields) < 3:
        fields.append("")

    arm = fields[2].removeprefix("v")
    if arm and not arm.isdigit():
        return Err(f"invalid ARM variant in pattern: {text!r}")

    pattern = Platform(os=fields[0], arch=fields[1], arm=arm)
    if pattern == Platform():
        return Err(f"platform pattern matches everything: {text!r}")
    return Ok(pattern)
