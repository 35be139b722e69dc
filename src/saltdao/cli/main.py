"""
Main CLI entry point for SaltDao.
"""

import logging
import sys

import yaml

from saltdao.cli.governance_commands import governance
from saltdao.core.config import ConfigurationError, load_config
from saltdao.core.logging_config import setup_logging_from_config

logger = logging.getLogger(__name__)


def main():
    """Configure logging from the environment and run the CLI."""
    try:
        config = load_config()
    except (ConfigurationError, OSError, yaml.YAMLError) as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2

    # JSON logs go to stderr so --json-output stays parseable
    setup_logging_from_config(config, stream=sys.stderr)
    logger.debug("Starting SaltDao CLI", extra={"event": "cli.started"})
    return governance(obj={"config": config})


if __name__ == "__main__":
    sys.exit(main() or 0)
