"""Configuration for the Bitbucket Server build status step."""

import os
from collections.abc import Mapping
from dataclasses import dataclass

from .constants import (
    DEFAULT_SSL_VERIFY,
    ENV_APP_TITLE,
    ENV_BITRISE_BUILD_NUMBER,
    ENV_BITRISE_BUILD_SLUG,
    ENV_BITRISE_BUILD_STATUS,
    ENV_BITRISE_TRIGGER_METHOD,
    ENV_BUILD_NUMBER,
    ENV_BUILD_URL,
    ENV_CLIENT_CERT,
    ENV_CLIENT_KEY,
    ENV_COMMIT_HASH,
    ENV_DOMAIN,
    ENV_PASSWORD,
    ENV_PRESET_STATUS,
    ENV_SSL_VERIFY,
    ENV_TRIGGERED_WORKFLOW_ID,
    ENV_USERNAME,
    TRIGGER_METHOD_MANUAL,
)


def getenv(env: Mapping[str, str] | None, name: str, default: str = "") -> str:
    """Look up a variable in ``env`` first, then in the process environment.

    Args:
        env: Override values, typically collected from command-line options
        name: Variable name
        default: Value returned when the variable is unset everywhere

    Returns:
        The variable's value, or ``default``
    """
    if env and name in env:
        return env[name]
    return os.getenv(name, default)


def parse_ssl_verify(value: str) -> bool:
    """Parse an SSL verification flag; anything but an explicit false verifies."""
    return value.strip().lower() not in ("false", "0", "no")


@dataclass(frozen=True)
class StepInputs:
    """Inputs of the build status step.

    Values are kept as given; emptiness is checked by validation so that
    every problem can be reported at once.
    """

    domain: str = ""
    username: str = ""
    password: str = ""
    client_cert: str = ""  # Path to a PEM file or inline PEM content
    client_key: str = ""  # Path to a PEM file or inline PEM content
    commit_hash: str = ""
    app_title: str = ""
    build_number: str = ""
    build_url: str = ""
    triggered_workflow_id: str = ""
    preset_status: str = ""
    ssl_verify: bool = DEFAULT_SSL_VERIFY

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "StepInputs":
        """Create step inputs from environment variables.

        Args:
            env: Overrides consulted before ``os.environ``

        Returns:
            StepInputs instance
        """
        return cls(
            domain=getenv(env, ENV_DOMAIN),
            username=getenv(env, ENV_USERNAME),
            password=getenv(env, ENV_PASSWORD),
            client_cert=getenv(env, ENV_CLIENT_CERT),
            client_key=getenv(env, ENV_CLIENT_KEY),
            commit_hash=getenv(env, ENV_COMMIT_HASH),
            app_title=getenv(env, ENV_APP_TITLE),
            build_number=getenv(env, ENV_BUILD_NUMBER),
            build_url=getenv(env, ENV_BUILD_URL),
            triggered_workflow_id=getenv(env, ENV_TRIGGERED_WORKFLOW_ID),
            preset_status=getenv(env, ENV_PRESET_STATUS),
            ssl_verify=parse_ssl_verify(
                getenv(env, ENV_SSL_VERIFY, str(DEFAULT_SSL_VERIFY))
            ),
        )


@dataclass(frozen=True)
class CIContext:
    """Read-only values provided by the Bitrise build environment."""

    build_status: str = ""  # "0" success, "1" failure
    build_slug: str = ""
    build_number: str = ""
    trigger_method: str = ""

    @property
    def is_manual_trigger(self) -> bool:
        return self.trigger_method == TRIGGER_METHOD_MANUAL

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "CIContext":
        """Create the CI context from environment variables.

        Args:
            env: Overrides consulted before ``os.environ``

        Returns:
            CIContext instance
        """
        return cls(
            build_status=getenv(env, ENV_BITRISE_BUILD_STATUS),
            build_slug=getenv(env, ENV_BITRISE_BUILD_SLUG),
            build_number=getenv(env, ENV_BITRISE_BUILD_NUMBER),
            trigger_method=getenv(env, ENV_BITRISE_TRIGGER_METHOD),
        )
