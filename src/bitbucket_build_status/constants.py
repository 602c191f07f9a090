"""Constants for the Bitbucket Server build status step."""

from typing import Final

# Step inputs
ENV_DOMAIN: Final[str] = "domain"
ENV_USERNAME: Final[str] = "username"
ENV_PASSWORD: Final[str] = "password"
ENV_CLIENT_CERT: Final[str] = "client_cert"
ENV_CLIENT_KEY: Final[str] = "client_key"
ENV_COMMIT_HASH: Final[str] = "git_clone_commit_hash"
ENV_APP_TITLE: Final[str] = "app_title"
ENV_BUILD_NUMBER: Final[str] = "build_number"
ENV_BUILD_URL: Final[str] = "build_url"
ENV_TRIGGERED_WORKFLOW_ID: Final[str] = "triggered_workflow_id"
ENV_PRESET_STATUS: Final[str] = "preset_status"
ENV_SSL_VERIFY: Final[str] = "ssl_verify"

# Bitrise-provided environment
ENV_BITRISE_BUILD_STATUS: Final[str] = "BITRISE_BUILD_STATUS"
ENV_BITRISE_BUILD_SLUG: Final[str] = "BITRISE_BUILD_SLUG"
ENV_BITRISE_BUILD_NUMBER: Final[str] = "BITRISE_BUILD_NUMBER"
ENV_BITRISE_TRIGGER_METHOD: Final[str] = "BITRISE_TRIGGER_METHOD"

TRIGGER_METHOD_MANUAL: Final[str] = "manual"

# Build status
PRESET_STATUS_AUTO: Final[str] = "AUTO"
BITRISE_STATUS_SUCCESS: Final[str] = "0"
BITRISE_STATUS_FAILURE: Final[str] = "1"

# API endpoints
BUILD_STATUS_PATH: Final[str] = "/rest/build-status/1.0/commits"

# Request body templates
KEY_TEMPLATE: Final[str] = "Bitrise - {slug} - Build {workflow_id} - #{build_number}"
NAME_TEMPLATE: Final[str] = "Bitrise {app_title} ({workflow_id}) #{build_number}"
DESCRIPTION_TEMPLATE: Final[str] = "workflow: {workflow_id}"

# Default values
DEFAULT_SSL_VERIFY: Final[bool] = True
DEFAULT_ACCEPT_ENCODING: Final[str] = "gzip, deflate"
UNSET: Final[str] = "<unset>"

# Exit codes (curl-compatible for transfer failures)
EXIT_OK: Final[int] = 0
EXIT_INVALID_INPUT: Final[int] = 1
EXIT_URL_MALFORMAT: Final[int] = 3
EXIT_COULDNT_RESOLVE_HOST: Final[int] = 6
EXIT_COULDNT_CONNECT: Final[int] = 7
EXIT_OPERATION_TIMEDOUT: Final[int] = 28
EXIT_SSL_CONNECT_ERROR: Final[int] = 35
EXIT_RECV_ERROR: Final[int] = 56
EXIT_SSL_CERTPROBLEM: Final[int] = 58
