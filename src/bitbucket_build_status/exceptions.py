class BuildStatusError(Exception):
    """Base exception for build status reporting errors."""

    pass


class InvalidInputError(BuildStatusError):
    """Raised when one or more step inputs are missing or invalid."""

    def __init__(self, errors: list[str] | str) -> None:
        if isinstance(errors, str):
            errors = [errors]
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


class BuildStatusTransferError(BuildStatusError):
    """Raised when the HTTP request could not be performed at all."""

    def __init__(self, message: str, exit_code: int) -> None:
        super().__init__(message)
        self.exit_code = exit_code
