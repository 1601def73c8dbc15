"""Entry point for running the commit assistant MCP server.

This module provides the entry point for the MCP server with stdio transport.
It handles:
- Configuration loading from environment variables
- Logging setup
- Error handling and graceful shutdown
"""

import sys

from commit_assistant import __version__
from commit_assistant.config import CommitSettings
from commit_assistant.errors import ConfigurationError
from commit_assistant.logging_config import get_logger, setup_logging

# Get logger for this module
logger = get_logger(__name__)


def main():
    """Main entry point for the MCP server.

    Exit codes:
    - 0: Successful execution
    - 1: Configuration error
    - 2: Server startup error
    """
    try:
        settings = CommitSettings.from_env()

        # stdout is reserved for MCP protocol JSON
        setup_logging(
            log_level=settings.log_level,
            use_json=False,
            log_file=None,
            stream="stderr",
        )

        logger.info(
            "Starting commit assistant MCP server",
            extra={"version": __version__, "transport": "stdio"},
        )

        from commit_assistant.server import run_stdio_server
        run_stdio_server()

    except ConfigurationError as e:
        logger.error("Configuration error", extra={"error": str(e)})
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Received interrupt signal, shutting down")
        sys.exit(0)
    except Exception as e:
        logger.exception("Failed to start server", extra={"error": str(e)})
        sys.exit(2)


if __name__ == "__main__":
    main()
