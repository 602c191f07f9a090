"""Build status operations for Bitbucket Server."""

import logging

import httpx

from .client import BitbucketServerClient
from .models import BuildStatusRequest

logger = logging.getLogger("bitbucket-build-status.builds")


class BitbucketServerBuilds:
    """Bitbucket Server build status operations."""

    def __init__(self, client: BitbucketServerClient) -> None:
        """Initialize Bitbucket Server build status operations.

        Args:
            client: Bitbucket Server client
        """
        self.client = client

    def set_build_status(self, request: BuildStatusRequest) -> httpx.Response:
        """Post a build status for a commit.

        The response is not interpreted; a rejected status is returned like
        an accepted one.

        Args:
            request: Build status to post

        Returns:
            The raw HTTP response

        Raises:
            BuildStatusTransferError: If the request could not be performed
        """
        logger.debug(
            f"Setting build status {request.state.value} "
            f"for commit {request.commit_hash}"
        )

        # Lives outside the normal /rest/api base path
        return self.client.post(request.endpoint, json=request.to_payload())
