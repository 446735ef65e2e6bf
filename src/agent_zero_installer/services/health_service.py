from __future__ import annotations

import logging
import time
import urllib.error
import urllib.request
from typing import Callable

from installer_core.config import RuntimeConfig
from installer_core.errors import HealthCheckTimeoutError, ServiceCrashedError

from ..store.pid_store import PidFileHandle


LOGGER = logging.getLogger("agent_zero_installer.health")

HEALTH_ATTEMPTS = 30
HEALTH_INTERVAL_SECONDS = 1.0
HEALTH_REQUEST_TIMEOUT_SECONDS = 5.0


def probe_http(url: str, timeout_seconds: float = HEALTH_REQUEST_TIMEOUT_SECONDS) -> bool:
    request = urllib.request.Request(
        url,
        headers={"User-Agent": "agent-zero-installer-health/1.0"},
        method="GET",
    )
    # The service is local; proxy settings from the environment must not apply.
    opener = urllib.request.build_opener(urllib.request.ProxyHandler({}))
    try:
        with opener.open(request, timeout=timeout_seconds) as response:
            status = int(response.getcode() or 0)
            response.read()
    except urllib.error.HTTPError as exc:
        status = int(exc.code or 0)
    except (urllib.error.URLError, TimeoutError, OSError):
        return False
    return 0 < status < 400


class HealthService:
    def __init__(
        self,
        *,
        config: RuntimeConfig,
        handle: PidFileHandle,
        probe: Callable[[str], bool] = probe_http,
        sleep: Callable[[float], None] = time.sleep,
        attempts: int = HEALTH_ATTEMPTS,
        interval_seconds: float = HEALTH_INTERVAL_SECONDS,
    ) -> None:
        self._config = config
        self._handle = handle
        self._probe = probe
        self._sleep = sleep
        self._attempts = max(1, int(attempts))
        self._interval_seconds = float(interval_seconds)

    def wait_until_healthy(self) -> int:
        url = self._config.gui_url
        for attempt in range(1, self._attempts + 1):
            if not self._handle.is_alive():
                raise ServiceCrashedError(self._config.log_file)
            if self._probe(url):
                LOGGER.info("Service healthy after %s attempt(s) at %s", attempt, url)
                return attempt
            LOGGER.debug("Health probe %s/%s failed for %s", attempt, self._attempts, url)
            self._sleep(self._interval_seconds)
        raise HealthCheckTimeoutError(
            f"Health check timeout. Service not responding at {url} after {self._attempts} attempts."
        )
