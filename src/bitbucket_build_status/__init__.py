import sys

import click
from dotenv import load_dotenv

__version__ = "1.1.0"

from .logging_config import log_operation, setup_logger

# Installed before the submodules create their loggers
logger = setup_logger()

from .config import CIContext, StepInputs  # noqa: E402
from .constants import (  # noqa: E402
    ENV_COMMIT_HASH,
    ENV_DOMAIN,
    ENV_PRESET_STATUS,
    ENV_SSL_VERIFY,
    ENV_USERNAME,
)
from .reporter import StatusReporter  # noqa: E402


@click.command()
@click.option(
    "-v",
    "--verbose",
    count=True,
    help="Increase verbosity (can be used multiple times)",
)
@click.option(
    "--env-file", type=click.Path(exists=True, dir_okay=False), help="Path to .env file"
)
@click.option(
    "--log-dir",
    help="Directory to store log files",
)
@click.option(
    "--log-to-file/--no-log-to-file",
    default=False,
    help="Enable/disable file logging",
)
@click.option(
    "--domain",
    help="Bitbucket Server domain (e.g., bitbucket.your-company.com)",
)
@click.option("--username", help="Bitbucket Server username for basic auth")
@click.option(
    "--commit-hash",
    help="Commit to attach the status to (default: git rev-parse HEAD)",
)
@click.option(
    "--preset-status",
    help="AUTO, INPROGRESS, SUCCESSFUL or FAILED (default: AUTO)",
)
@click.option(
    "--ssl-verify/--no-ssl-verify",
    default=None,
    help="Verify the Bitbucket Server SSL certificate (default: verify)",
)
def main(
    verbose: int,
    env_file: str | None,
    log_dir: str | None,
    log_to_file: bool,
    domain: str | None,
    username: str | None,
    commit_hash: str | None,
    preset_status: str | None,
    ssl_verify: bool | None,
) -> None:
    """Report a Bitrise build status to Bitbucket Server.

    Inputs are read from the environment; passwords, client certificates
    and keys are only ever taken from there.
    """
    logging_level = None
    if verbose == 1:
        logging_level = "INFO"
    elif verbose >= 2:
        logging_level = "DEBUG"

    setup_logger(level=logging_level, log_to_file=log_to_file, log_dir=log_dir)

    with log_operation(logger, "step_startup", app_version=__version__):
        if env_file:
            logger.info(f"Loading environment from file: {env_file}")
            load_dotenv(env_file)
        else:
            logger.debug("Attempting to load environment from default .env file")
            load_dotenv()

        overrides: dict[str, str] = {}
        if domain:
            overrides[ENV_DOMAIN] = domain
        if username:
            overrides[ENV_USERNAME] = username
        if commit_hash:
            overrides[ENV_COMMIT_HASH] = commit_hash
        if preset_status:
            overrides[ENV_PRESET_STATUS] = preset_status
        if ssl_verify is not None:
            overrides[ENV_SSL_VERIFY] = str(ssl_verify).lower()

        reporter = StatusReporter(
            StepInputs.from_env(overrides), CIContext.from_env(overrides)
        )

    sys.exit(reporter.run())


__all__ = ["main", "StatusReporter", "__version__", "setup_logger", "log_operation"]

if __name__ == "__main__":
    main()
