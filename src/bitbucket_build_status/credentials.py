"""Authentication resolution and temporary credential files."""

import logging
import os
import tempfile
import types

from .exceptions import InvalidInputError
from .models import AuthMethod, BasicAuth, CertAuth

logger = logging.getLogger("bitbucket-build-status.credentials")

MSG_CERT_PAIR_INCOMPLETE = "If using client_cert/client_key both must be provided"
MSG_CERT_PREPARE_FAILED = "Unable to prepare client_cert/client_key files"


class TempCredentialFiles:
    """Owns temporary files holding inline PEM material.

    Used as a context manager: every file written through it is removed on
    exit, whichever way the block is left.
    """

    def __init__(self, directory: str | None = None) -> None:
        self.directory = directory
        self.paths: list[str] = []

    def __enter__(self) -> "TempCredentialFiles":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: types.TracebackType | None,
    ) -> None:
        self.cleanup()

    def write(self, content: str, suffix: str = ".pem") -> str:
        """Write PEM content to a new private temporary file.

        Args:
            content: Inline PEM content
            suffix: File name suffix

        Returns:
            Path of the created file

        Raises:
            OSError: If the file cannot be created or written
        """
        with tempfile.NamedTemporaryFile(
            mode="w",
            suffix=suffix,
            dir=self.directory,
            delete=False,
            encoding="utf-8",
        ) as tmp_file:
            # Registered before writing so a failed write is still cleaned up
            self.paths.append(tmp_file.name)
            tmp_file.write(content if content.endswith("\n") else f"{content}\n")

        logger.debug(f"Wrote inline PEM content to {tmp_file.name}")
        return tmp_file.name

    def cleanup(self) -> None:
        """Delete every registered file that still exists."""
        while self.paths:
            path = self.paths.pop()
            try:
                os.unlink(path)
            except FileNotFoundError:
                pass
            except OSError as e:
                logger.warning(f"Unable to remove temporary file {path}: {e}")


def materialize_pem(value: str, temp_files: TempCredentialFiles) -> str:
    """Return a path for a certificate or key input.

    An existing file path is used as is; anything else is taken to be inline
    PEM content and written to a temporary file.

    Args:
        value: File path or inline PEM content
        temp_files: Owner of any temporary file created

    Returns:
        Path to a file holding the PEM material

    Raises:
        OSError: If a temporary file cannot be created
    """
    if os.path.isfile(value):
        return value
    return temp_files.write(value)


def resolve_auth(
    client_cert: str,
    client_key: str,
    username: str,
    password: str,
    temp_files: TempCredentialFiles,
) -> AuthMethod:
    """Select the authentication method for the request.

    Args:
        client_cert: Certificate path or inline PEM (may be empty)
        client_key: Private key path or inline PEM (may be empty)
        username: Username for basic auth
        password: Password for basic auth
        temp_files: Owner of temporary files for inline PEM content

    Returns:
        CertAuth when both cert and key are given, otherwise BasicAuth

    Raises:
        InvalidInputError: If only one of cert/key is given, the PEM files
            cannot be prepared, or basic credentials are missing while the
            cert pair is incomplete. Every applicable message is carried.
    """
    if not client_cert or not client_key:
        errors = [
            f"Missing input field: {name}"
            for name, value in (("username", username), ("password", password))
            if not value
        ]
        if client_cert or client_key:
            errors.append(MSG_CERT_PAIR_INCOMPLETE)
        if errors:
            raise InvalidInputError(errors)
        return BasicAuth(username=username, password=password)

    try:
        cert_path = materialize_pem(client_cert, temp_files)
        key_path = materialize_pem(client_key, temp_files)
    except OSError as e:
        logger.error(f"Unable to write client certificate files: {e}")
        raise InvalidInputError(MSG_CERT_PREPARE_FAILED) from e

    return CertAuth(cert_path=cert_path, key_path=key_path)
