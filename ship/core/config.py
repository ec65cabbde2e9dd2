"""Typed release configuration.

Credentials and the source location come from the environment and are read
exactly once, at process start. Tunables (concurrency, target repository,
extra platform exclusions) have defaults and may be overridden by an
optional TOML file. The resulting ``ReleaseConfig`` is immutable and is
passed explicitly to every component that needs it.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace
from pathlib import Path

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_int, get_str, get_str_list, get_table

__all__ = [
    "ConfigError",
    "ReleaseConfig",
    "load_config",
    "ENV_GITHUB_TOKEN",
    "ENV_DEVPORTAL_ID",
    "ENV_DEVPORTAL_KEY",
    "ENV_GOPATH",
    "REQUIRED_ENV",
]

# -----------------------------------------------------------------------------
# Environment variables
# -----------------------------------------------------------------------------

ENV_GITHUB_TOKEN = "GITHUB_TOKEN"
ENV_DEVPORTAL_ID = "DEVPORTAL_ID"  # account ID at the deployment portal
ENV_DEVPORTAL_KEY = "DEVPORTAL_KEY"  # associated API key
ENV_GOPATH = "GOPATH"

REQUIRED_ENV: tuple[str, ...] = (
    ENV_GITHUB_TOKEN,
    ENV_DEVPORTAL_ID,
    ENV_DEVPORTAL_KEY,
    ENV_GOPATH,
)

# -----------------------------------------------------------------------------
# Defaults
# -----------------------------------------------------------------------------

DEFAULT_REPO_SLUG = "mholt/caddy"
DEFAULT_PACKAGE = "github.com/mholt/caddy"
DEFAULT_MAIN_PACKAGE = "./caddy"
DEFAULT_BINARY_NAME = "caddy"
DEFAULT_WEBSITE_URL = "http://localhost:2015"
DEFAULT_BUILD_CONCURRENCY = 2
DEFAULT_UPLOAD_CONCURRENCY = 3


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class ReleaseConfig:
    """Everything a release run needs to know about its surroundings.

    Attributes:
        github_token: Access token for the release host.
        devportal_id: Account id for the deployment endpoint.
        devportal_key: API key for the deployment endpoint.
        gopath: Root under which the source repository lives.
        repo_slug: owner/name of the repository releases are published to.
        package: Import path of the project, relative to ``$GOPATH/src``.
        main_package: Package built into the release binary.
        binary_name: Name of the built binary (and artifact prefix).
        website_url: Base URL of the deployment service.
        build_concurrency: Max builds in flight.
        upload_concurrency: Max uploads in flight.
        skip: Extra platform exclusion patterns (``os/arch`` or ``os/arm/vN``).
    """

    github_token: str = ""
    devportal_id: str = ""
    devportal_key: str = ""
    gopath: str = ""
    repo_slug: str = DEFAULT_REPO_SLUG
    package: str = DEFAULT_PACKAGE
    main_package: str = DEFAULT_MAIN_PACKAGE
    binary_name: str = DEFAULT_BINARY_NAME
    website_url: str = DEFAULT_WEBSITE_URL
    build_concurrency: int = DEFAULT_BUILD_CONCURRENCY
    upload_concurrency: int = DEFAULT_UPLOAD_CONCURRENCY
    skip: tuple[str, ...] = ()

    @classmethod
    def from_env(cls, environ: Mapping[str, str]) -> ReleaseConfig:
        """Snapshot credentials from an environment mapping.

        Missing values become empty strings; the preflight check reports them.
        """
        return cls(
            github_token=environ.get(ENV_GITHUB_TOKEN, "").strip(),
            devportal_id=environ.get(ENV_DEVPORTAL_ID, "").strip(),
            devportal_key=environ.get(ENV_DEVPORTAL_KEY, "").strip(),
            gopath=environ.get(ENV_GOPATH, "").strip(),
        )

    @property
    def repo_path(self) -> Path:
        """Location of the source repository."""
        return Path(self.gopath) / "src" / self.package

    def missing_env(self) -> tuple[str, ...]:
        """Names of required environment variables that are unset."""
        values = {
            ENV_GITHUB_TOKEN: self.github_token,
            ENV_DEVPORTAL_ID: self.devportal_id,
            ENV_DEVPORTAL_KEY: self.devportal_key,
            ENV_GOPATH: self.gopath,
        }
        return tuple(name for name in REQUIRED_ENV if not values[name])

    def with_overrides(self, data: Mapping[str, object]) -> ReleaseConfig:
        """Apply the ``[release]`` table of a config file.

        Raises:
            ValueError: On an invalid value.
        """
        table: StrDict = get_table(data, "release") or {}

        build = get_int(table, "build_concurrency")
        upload = get_int(table, "upload_concurrency")
        for key, value in (("build_concurrency", build), ("upload_concurrency", upload)):
            if value is not None and value < 1:
                raise ValueError(f"{key} must be >= 1")

        skip: list[str] = []
        if "skip" in table:
            parsed = get_str_list(table, "skip")
            if parsed is None:
                raise ValueError("skip must be a list of platform patterns")
            skip = parsed

        return replace(
            self,
            repo_slug=get_str(table, "repo") or self.repo_slug,
            package=get_str(table, "package") or self.package,
            main_package=get_str(table, "main_package") or self.main_package,
            binary_name=get_str(table, "binary_name") or self.binary_name,
            website_url=(get_str(table, "website_url") or self.website_url).rstrip("/"),
            build_concurrency=build or self.build_concurrency,
            upload_concurrency=upload or self.upload_concurrency,
            skip=self.skip + tuple(skip),
        )


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    """Parse a TOML file, handling read and parse errors."""
    import tomllib

    try:
        content = path.read_bytes()
        data_obj: object = tomllib.loads(content.decode("utf-8"))
        data = as_str_dict(data_obj)
        if data is None:
            return Err(ConfigError("Config root must be a TOML table", path=path))
        return Ok(data)
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))


def load_config(
    environ: Mapping[str, str],
    path: Path | None = None,
) -> Result[ReleaseConfig, ConfigError]:
    """Build the release configuration.

    Args:
        environ: Environment mapping (usually ``os.environ``).
        path: Optional TOML file with a ``[release]`` table.

    Returns:
        Ok(ReleaseConfig) on success, Err(ConfigError) on failure
    """
    config = ReleaseConfig.from_env(environ)
    if path is None:
        return Ok(config)

    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    try:
        return Ok(config.with_overrides(result.value))
    except (KeyError, TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid config structure: {e}", path=path))
