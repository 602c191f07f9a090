"""Data models for the build status step."""

from .build_status import (
    AuthMethod,
    BasicAuth,
    BuildState,
    BuildStatusRequest,
    CertAuth,
)

__all__ = [
    "AuthMethod",
    "BasicAuth",
    "BuildState",
    "BuildStatusRequest",
    "CertAuth",
]
