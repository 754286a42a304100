"""
HTTP client for the ServerTech JAWS monitoring API.
"""
import logging

import requests
from requests.auth import HTTPBasicAuth

from .base import ServerTechError

MONITOR_URL = "https://{target}/jaws/monitor/{path}"


class FetchError(ServerTechError):
    """The device could not be reached or answered with an error."""


class ServerTechClient:
    """
    Fetches raw category payloads from a PDU.

    One client is shared by all scrapes; the target and credentials come with
    each request and are never logged.
    """

    def __init__(self, timeout: float = 20.0, verify_tls: bool = True):
        self.timeout = timeout
        self.verify_tls = verify_tls
        self.logger = logging.getLogger(self.__class__.__name__)

        if not verify_tls:
            self.logger.warning("TLS certificate verification is disabled for device requests")

    def fetch(self, target: str, user: str, password: str, path: str) -> bytes:
        """
        GET https://<target>/jaws/monitor/<path> with basic auth.

        Args:
            target: Device host[:port]
            user: Basic auth username
            password: Basic auth password
            path: Category path, e.g. "outlets"

        Returns:
            Raw response body

        Raises:
            FetchError: On connection failure, timeout or non-200 status
        """
        url = MONITOR_URL.format(target=target, path=path)

        try:
            response = requests.get(
                url,
                auth=HTTPBasicAuth(user, password),
                timeout=self.timeout,
                verify=self.verify_tls,
            )
        except requests.exceptions.Timeout:
            raise FetchError(f"timeout after {self.timeout}s fetching {path}")
        except requests.exceptions.RequestException as e:
            raise FetchError(f"failed to perform http request: {e}")

        if response.status_code != 200:
            raise FetchError(f"incorrect status code received from device: {response.status_code}")

        return response.content
