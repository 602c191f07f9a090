"""Build status models for Bitbucket Server."""

from enum import Enum
from typing import Any, Literal

from pydantic import SecretStr

from ..constants import (
    BUILD_STATUS_PATH,
    DESCRIPTION_TEMPLATE,
    KEY_TEMPLATE,
    NAME_TEMPLATE,
)
from .base import FrozenModel


class BuildState(str, Enum):
    """Build state accepted by the Bitbucket Server build-status API."""

    INPROGRESS = "INPROGRESS"
    SUCCESSFUL = "SUCCESSFUL"
    FAILED = "FAILED"

    @classmethod
    def parse(cls, value: str) -> "BuildState":
        """Parse a build state, matching names exactly.

        Args:
            value: Raw state string

        Returns:
            The matching BuildState

        Raises:
            ValueError: If the value is not one of the known states
        """
        try:
            return cls(value)
        except ValueError:
            choices = ", ".join(state.value for state in cls)
            raise ValueError(
                f"Unknown build state {value!r}, expected one of {choices}"
            ) from None

    def __str__(self) -> str:
        return self.value


class BasicAuth(FrozenModel):
    """HTTP Basic credentials."""

    kind: Literal["basic"] = "basic"
    username: str
    password: SecretStr

    def as_tuple(self) -> tuple[str, str]:
        return (self.username, self.password.get_secret_value())


class CertAuth(FrozenModel):
    """TLS client certificate authentication using PEM files on disk."""

    kind: Literal["cert"] = "cert"
    cert_path: str
    key_path: str


AuthMethod = BasicAuth | CertAuth


class BuildStatusRequest(FrozenModel):
    """A single build status entry to post for a commit.

    Bitbucket stores one status per commit and key, so posting again with
    the same pair updates the earlier entry instead of adding a new one.
    """

    domain: str
    commit_hash: str
    state: BuildState
    key: str
    name: str
    url: str
    description: str

    @classmethod
    def create(
        cls,
        *,
        domain: str,
        commit_hash: str,
        state: BuildState,
        build_slug: str,
        ci_build_number: str,
        build_number: str,
        app_title: str,
        workflow_id: str,
        build_url: str,
    ) -> "BuildStatusRequest":
        """Assemble a request, deriving key, name and description.

        The key uses the CI build number while the name uses the
        ``build_number`` step input; both are kept as the step defines them.

        Args:
            domain: Bitbucket Server host name
            commit_hash: Commit the status is attached to
            state: Build state to report
            build_slug: Bitrise build slug
            ci_build_number: Bitrise build number (``BITRISE_BUILD_NUMBER``)
            build_number: Build number step input
            app_title: Application title
            workflow_id: Triggered workflow ID
            build_url: Link to the build

        Returns:
            BuildStatusRequest instance
        """
        return cls(
            domain=domain,
            commit_hash=commit_hash,
            state=state,
            key=KEY_TEMPLATE.format(
                slug=build_slug, workflow_id=workflow_id, build_number=ci_build_number
            ),
            name=NAME_TEMPLATE.format(
                app_title=app_title, workflow_id=workflow_id, build_number=build_number
            ),
            url=build_url,
            description=DESCRIPTION_TEMPLATE.format(workflow_id=workflow_id),
        )

    @property
    def endpoint(self) -> str:
        return f"https://{self.domain}{BUILD_STATUS_PATH}/{self.commit_hash}"

    def to_payload(self) -> dict[str, Any]:
        """Convert to the JSON body expected by the build-status API.

        Returns:
            Dictionary with state, key, name, url and description
        """
        return {
            "state": self.state.value,
            "key": self.key,
            "name": self.name,
            "url": self.url,
            "description": self.description,
        }
