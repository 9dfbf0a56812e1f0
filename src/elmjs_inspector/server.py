"""FastMCP server for attributing compiled Elm bundle size to definitions."""

import logging
from typing import Optional

from mcp.server.fastmcp import FastMCP

from .config import LOG_FORMAT, build_minifier, get_env_config
from .tools.size_tool import SizeTool

logger = logging.getLogger(__name__)

# Initialize FastMCP server
mcp = FastMCP("elmjs-inspector")

# Global components (initialized on startup)
size_tool: Optional[SizeTool] = None


def configure_logging(log_level: str) -> None:
    """Send log records to stderr; stdout carries the MCP stdio protocol."""
    handler = logging.StreamHandler()
    handler.setLevel(log_level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.addHandler(handler)


def initialize_components() -> None:
    """Initialize all components on startup."""
    global size_tool

    config = get_env_config()
    logger.info("Initializing elmjs-inspector...")
    logger.info(
        f"Terser: {config['terser_bin']} (passes: {config['terser_passes']}, "
        f"aggressiveness: {config['aggressiveness']}, preserve names: {config['preserve_names']})"
    )

    size_tool = SizeTool(build_minifier(config), strict=config["strict_ranges"])
    logger.info("All components initialized successfully!")


@mcp.tool()
async def analyze_bundle_size(
    file_path: str,
    terser: bool = False,
    name_marker: Optional[str] = None,
    name_pattern: Optional[str] = None,
    limit: int = 50,
) -> dict:
    """Rank the top-level definitions of a compiled Elm JavaScript file by size.

    Args:
        file_path: Path to the unminified elm.js output
        terser: Minify with terser first and measure the minified code (default: False)
        name_marker: Only report definitions whose name contains this text (e.g. "$")
        name_pattern: Only report definitions whose name matches this regular expression
        limit: Maximum number of definitions to return (default: 50)

    Returns:
        Dictionary with ranked definitions, their sizes and percentages, and overall coverage
    """
    if not size_tool:
        return {"success": False, "error": "Server not initialized"}

    return await size_tool.analyze_bundle(file_path, terser, name_marker, name_pattern, limit)


def main() -> None:
    configure_logging(get_env_config()["log_level"])
    logger.info("Starting elmjs-inspector MCP Server...")

    initialize_components()
    logger.info("Server ready!")

    # Run the MCP server (blocks until shutdown)
    try:
        mcp.run()
    except KeyboardInterrupt:
        logger.info("Server interrupted")
    except Exception as e:
        logger.error(f"Server error: {e}")
        raise


if __name__ == "__main__":
    main()
