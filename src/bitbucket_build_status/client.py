"""Bitbucket Server HTTP client."""

import logging
import ssl
from typing import Any

import httpx

from .constants import (
    DEFAULT_ACCEPT_ENCODING,
    DEFAULT_SSL_VERIFY,
    EXIT_COULDNT_CONNECT,
    EXIT_COULDNT_RESOLVE_HOST,
    EXIT_OPERATION_TIMEDOUT,
    EXIT_RECV_ERROR,
    EXIT_SSL_CERTPROBLEM,
    EXIT_SSL_CONNECT_ERROR,
    EXIT_URL_MALFORMAT,
)
from .exceptions import BuildStatusTransferError
from .models import AuthMethod, BasicAuth, CertAuth

logger = logging.getLogger("bitbucket-build-status.client")

_RESOLVE_ERROR_MARKERS = (
    "name or service not known",
    "nodename nor servname",
    "temporary failure in name resolution",
    "getaddrinfo failed",
    "no address associated",
)


def transfer_exit_code(error: httpx.RequestError) -> int:
    """Map a transport failure to the exit code curl would have used.

    Args:
        error: The httpx transport error

    Returns:
        Process exit code describing the failure
    """
    if isinstance(error, httpx.TimeoutException):
        return EXIT_OPERATION_TIMEDOUT
    if isinstance(error, httpx.ConnectError):
        message = str(error).lower()
        if any(marker in message for marker in _RESOLVE_ERROR_MARKERS):
            return EXIT_COULDNT_RESOLVE_HOST
        if "ssl" in message or "certificate" in message:
            return EXIT_SSL_CONNECT_ERROR
        return EXIT_COULDNT_CONNECT
    return EXIT_RECV_ERROR


class BitbucketServerClient:
    """Client for the Bitbucket Server REST API."""

    def __init__(
        self,
        auth: AuthMethod,
        ssl_verify: bool = DEFAULT_SSL_VERIFY,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize Bitbucket Server client.

        Args:
            auth: Basic credentials or client certificate files
            ssl_verify: Whether to verify the server's SSL certificate
            transport: Optional transport, replaces the network one

        Raises:
            BuildStatusTransferError: If the client certificate cannot be loaded
        """
        self.auth = auth
        self.ssl_verify = ssl_verify
        self.transport = transport
        self.session = self._create_session()

    def _create_ssl_context(self, auth: CertAuth) -> ssl.SSLContext:
        context = ssl.create_default_context()
        if not self.ssl_verify:
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE

        try:
            context.load_cert_chain(certfile=auth.cert_path, keyfile=auth.key_path)
        except (ssl.SSLError, OSError) as e:
            logger.error(f"Unable to load client certificate/key: {str(e)}")
            raise BuildStatusTransferError(
                f"Unable to load client certificate/key: {str(e)}",
                exit_code=EXIT_SSL_CERTPROBLEM,
            ) from e

        return context

    def _create_session(self) -> httpx.Client:
        """Create HTTP session with authentication.

        The session has no timeout: the request runs until the server
        answers or the connection fails.

        Returns:
            Authenticated HTTP session
        """
        headers = {"Accept-Encoding": DEFAULT_ACCEPT_ENCODING}

        if isinstance(self.auth, BasicAuth):
            return httpx.Client(
                auth=self.auth.as_tuple(),
                verify=self.ssl_verify,
                headers=headers,
                timeout=None,
                transport=self.transport,
            )

        return httpx.Client(
            verify=self._create_ssl_context(self.auth),
            headers=headers,
            timeout=None,
            transport=self.transport,
        )

    def post(self, url: str, json: dict[str, Any]) -> httpx.Response:
        """Send a JSON POST request.

        The response is returned whatever its status code; only failures to
        perform the transfer are raised.

        Args:
            url: Full request URL
            json: JSON request body

        Returns:
            The HTTP response

        Raises:
            BuildStatusTransferError: If the URL is malformed or the request
                could not be performed
        """
        logger.debug(f"Sending POST request to {url}")

        try:
            response = self.session.post(
                url, json=json, headers={"Content-Type": "application/json"}
            )
        except httpx.InvalidURL as e:
            logger.error(f"Invalid URL {url}: {str(e)}")
            raise BuildStatusTransferError(
                f"Invalid URL: {str(e)}", exit_code=EXIT_URL_MALFORMAT
            ) from e
        except httpx.RequestError as e:
            logger.error(f"Request error for {url}: {str(e)}")
            raise BuildStatusTransferError(
                f"Request error: {str(e)}", exit_code=transfer_exit_code(e)
            ) from e

        logger.debug(f"Received HTTP {response.status_code} from {url}")
        return response

    def close(self) -> None:
        """Close HTTP session."""
        self.session.close()

    def __enter__(self) -> "BitbucketServerClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
