"""Report a CI build's status to Bitbucket Server."""

import logging
from collections.abc import Callable
from typing import cast

import click
import httpx

from .builds import BitbucketServerBuilds
from .client import BitbucketServerClient
from .config import CIContext, StepInputs
from .constants import (
    EXIT_INVALID_INPUT,
    EXIT_OK,
    PRESET_STATUS_AUTO,
    UNSET,
)
from .credentials import TempCredentialFiles
from .exceptions import BuildStatusTransferError
from .git import resolve_head_commit
from .logging_config import DEFAULT_LOGGER_NAME, ContextualLogger, log_operation
from .models import AuthMethod, BuildStatusRequest
from .validation import ValidationResult, validate_inputs

logger = logging.getLogger(DEFAULT_LOGGER_NAME)

ClientFactory = Callable[[AuthMethod, bool], BitbucketServerClient]


def format_response(response: httpx.Response) -> str:
    """Render a response with its status line and headers, like ``curl -i``."""
    lines = [f"{response.http_version} {response.status_code} {response.reason_phrase}"]
    lines.extend(f"{name}: {value}" for name, value in response.headers.multi_items())
    lines.append("")
    lines.append(response.text)
    return "\n".join(lines)


class StatusReporter:
    """Validates the step inputs and posts one build status to Bitbucket."""

    def __init__(
        self,
        inputs: StepInputs,
        context: CIContext,
        head_resolver: Callable[[], str] | None = None,
        client_factory: ClientFactory | None = None,
        temp_dir: str | None = None,
    ) -> None:
        """Initialize the reporter.

        Args:
            inputs: Step inputs
            context: Bitrise build context
            head_resolver: Returns the current HEAD commit, or "" if unknown
                (defaults to git rev-parse HEAD)
            client_factory: Builds the HTTP client from auth and SSL setting
                (defaults to BitbucketServerClient)
            temp_dir: Directory for temporary PEM files (system default if None)
        """
        self.inputs = inputs
        self.context = context
        self.head_resolver = head_resolver or resolve_head_commit
        self.client_factory = client_factory or BitbucketServerClient
        self.temp_dir = temp_dir

    def run(self) -> int:
        """Run the step.

        Returns:
            Process exit code
        """
        if self.context.is_manual_trigger:
            click.echo("- Build triggered manually, skipping")
            return EXIT_OK

        with log_operation(cast(ContextualLogger, logger), "report_build_status"):
            with TempCredentialFiles(self.temp_dir) as temp_files:
                result = validate_inputs(
                    self.inputs, self.context, temp_files, self.head_resolver
                )
                for message in result.messages:
                    click.echo(f"- {message}")

                if not result.is_valid:
                    logger.warning(
                        f"Input validation failed with {len(result.errors)} error(s)"
                    )
                    return EXIT_INVALID_INPUT

                self.print_inputs(result)
                request = self.build_request(result)

                click.echo(f"Post build status: {request.state.value}")
                click.echo(f"API Endpoint: {request.endpoint}")

                return self.send_status(request, cast(AuthMethod, result.auth))

    def build_request(self, result: ValidationResult) -> BuildStatusRequest:
        return BuildStatusRequest.create(
            domain=self.inputs.domain,
            commit_hash=result.commit_hash,
            state=result.state,
            build_slug=self.context.build_slug,
            ci_build_number=self.context.build_number,
            build_number=self.inputs.build_number,
            app_title=self.inputs.app_title,
            workflow_id=self.inputs.triggered_workflow_id,
            build_url=self.inputs.build_url,
        )

    def send_status(self, request: BuildStatusRequest, auth: AuthMethod) -> int:
        """Post the status and print the raw response.

        Any HTTP status counts as a completed transfer.

        Args:
            request: Build status to post
            auth: Authentication method

        Returns:
            0 if the transfer completed, otherwise the transfer failure code
        """
        try:
            with self.client_factory(auth, self.inputs.ssl_verify) as client:
                response = BitbucketServerBuilds(client).set_build_status(request)
        except BuildStatusTransferError as e:
            click.echo(f"- {e}", err=True)
            return e.exit_code

        click.echo(format_response(response))
        if response.is_error:
            logger.warning(f"Bitbucket answered HTTP {response.status_code}")
        return EXIT_OK

    def print_inputs(self, result: ValidationResult) -> None:
        """Echo the inputs, leaving out password, certificate and key."""
        inputs = self.inputs
        state = result.state.value if result.state else UNSET
        lines = [
            "--- step inputs (non-sensitive) ---",
            f"- domain: {inputs.domain}",
            f"- username: {inputs.username}",
            f"- preset_status: {inputs.preset_status or PRESET_STATUS_AUTO}",
            f"- BITRISE_BUILD_STATUS: {self.context.build_status or UNSET}",
            f"- computed Bitbucket state: {state}",
            f"- git_clone_commit_hash: {result.commit_hash or UNSET}",
            f"- app_title: {inputs.app_title or UNSET}",
            f"- build_number: {inputs.build_number or UNSET}",
            f"- build_url: {inputs.build_url or UNSET}",
            f"- triggered_workflow_id: {inputs.triggered_workflow_id or UNSET}",
            f"- using_cert_auth: {str(result.uses_cert_auth).lower()}",
            f"- trigger_method: {self.context.trigger_method}",
            "-----------------------------------",
        ]
        for line in lines:
            click.echo(line)
