from __future__ import annotations

from ship.core.config import ReleaseConfig
from ship.core.result import Err, Ok, Result
from ship.platform.http import BasicAuth, HttpClient
from ship.services.release.errors import ReleaseError

DEPLOY_PATH = "/api/deploy-caddy"
VERSION_FIELD = "caddy_version"


class DeployNotifier:
    """Tells the build server a new stable version is available."""

    def __init__(self, *, base_url: str, auth: BasicAuth, client: HttpClient) -> None:
        self.url = base_url.rstrip("/") + DEPLOY_PATH
        self._auth = auth
        self._client = client

    @classmethod
    def from_config(cls, config: ReleaseConfig, client: HttpClient) -> DeployNotifier:
        return cls(
            base_url=config.website_url,
            auth=BasicAuth(config.devportal_id, config.devportal_key),
            client=client,
        )

    def notify(self, tag: str) -> Result[None, ReleaseError]:
        result = self._client.post_json(self.url, {VERSION_FIELD: tag}, auth=self._auth)
        if isinstance(result, Err):
            e = result.error
            if e.status:
                message = f"deploy to build server failed, HTTP {e.status}: {e.message}"
            else:
                message = f"network error deploying to website: {e.message}"
            return Err(
                ReleaseError(
                    kind="notification_failed",
                    message=message,
                    hint=f"Tag, release and assets exist; retry with: ship notify {tag}",
                )
            )
        return Ok(None)
