"""Input validation for the build status step."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from .config import CIContext, StepInputs
from .constants import (
    BITRISE_STATUS_FAILURE,
    BITRISE_STATUS_SUCCESS,
    PRESET_STATUS_AUTO,
)
from .credentials import TempCredentialFiles, resolve_auth
from .exceptions import InvalidInputError
from .git import resolve_head_commit
from .models import AuthMethod, BuildState

logger = logging.getLogger("bitbucket-build-status.validation")

PRESET_STATUS_CHOICES = [PRESET_STATUS_AUTO] + [state.value for state in BuildState]


@dataclass
class ValidationResult:
    """Outcome of validating the step inputs.

    When ``errors`` is empty, ``commit_hash``, ``state`` and ``auth`` are set.
    ``messages`` holds every warning and error in the order the checks ran.
    """

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    messages: list[str] = field(default_factory=list)
    commit_hash: str = ""
    state: BuildState | None = None
    auth: AuthMethod | None = None

    @property
    def is_valid(self) -> bool:
        return not self.errors

    @property
    def uses_cert_auth(self) -> bool:
        return self.auth is not None and self.auth.kind == "cert"

    def add_error(self, message: str) -> None:
        self.errors.append(message)
        self.messages.append(message)

    def add_warning(self, message: str) -> None:
        self.warnings.append(message)
        self.messages.append(message)


def resolve_build_state(preset_status: str, build_status: str) -> BuildState:
    """Work out which state to report.

    An explicit preset other than AUTO wins; otherwise the numeric Bitrise
    build status decides. There is no fallback when neither is usable.

    Args:
        preset_status: ``preset_status`` input, may be empty
        build_status: ``BITRISE_BUILD_STATUS`` value, may be empty

    Returns:
        The build state

    Raises:
        InvalidInputError: If the preset or the build status is invalid
    """
    if preset_status and preset_status != PRESET_STATUS_AUTO:
        try:
            return BuildState.parse(preset_status)
        except ValueError:
            choices = ", ".join(f'"{choice}"' for choice in PRESET_STATUS_CHOICES)
            raise InvalidInputError(
                f"Invalid preset_status, must be one of [{choices}]"
            ) from None

    if not build_status:
        raise InvalidInputError("Missing env var: $BITRISE_BUILD_STATUS")
    if build_status == BITRISE_STATUS_SUCCESS:
        return BuildState.SUCCESSFUL
    if build_status == BITRISE_STATUS_FAILURE:
        return BuildState.FAILED

    raise InvalidInputError(
        f'Invalid $BITRISE_BUILD_STATUS. Should be "0" or "1", not \'{build_status}\''
    )


def validate_inputs(
    inputs: StepInputs,
    context: CIContext,
    temp_files: TempCredentialFiles,
    head_resolver: Callable[[], str] = resolve_head_commit,
) -> ValidationResult:
    """Check every input and collect all problems found.

    Args:
        inputs: Step inputs
        context: Bitrise build context
        temp_files: Owner of temporary files for inline PEM content
        head_resolver: Returns the current HEAD commit, or "" if unknown

    Returns:
        ValidationResult listing every error, or the resolved values
    """
    result = ValidationResult()

    def require(name: str, value: str) -> None:
        if not value:
            result.add_error(f"Missing input field: {name}")

    require("domain", inputs.domain)

    try:
        result.auth = resolve_auth(
            inputs.client_cert,
            inputs.client_key,
            inputs.username,
            inputs.password,
            temp_files,
        )
    except InvalidInputError as e:
        for error in e.errors:
            result.add_error(error)

    result.commit_hash = inputs.commit_hash
    if not result.commit_hash:
        result.commit_hash = head_resolver()
        result.add_warning(
            "Missing input field: git_clone_commit_hash, falling back to "
            f"'git rev-parse HEAD' ({result.commit_hash})"
        )
        if not result.commit_hash:
            result.add_error(
                "Unable to get git commit from current directory or "
                "git_clone_commit_hash input field"
            )

    require("app_title", inputs.app_title)
    require("build_number", inputs.build_number)
    require("build_url", inputs.build_url)
    require("triggered_workflow_id", inputs.triggered_workflow_id)

    try:
        result.state = resolve_build_state(inputs.preset_status, context.build_status)
    except InvalidInputError as e:
        for error in e.errors:
            result.add_error(error)

    for error in result.errors:
        logger.debug(f"Validation error: {error}")

    return result
