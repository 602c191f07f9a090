"""Entry point for ``python -m bitbucket_build_status``."""

from bitbucket_build_status import main

if __name__ == "__main__":
    main()
