"""Serve the Joan MCP tools over streamable HTTP instead of stdio.

Binds to JOAN_MCP_HTTP_HOST / JOAN_MCP_HTTP_PORT (default 127.0.0.1:8808).
"""

from joan_mcp import config
from joan_mcp.mcp_server import mcp


def main():
    config.configure_logging()
    mcp.settings.host = config.env.get("JOAN_MCP_HTTP_HOST", "127.0.0.1")
    mcp.settings.port = config._env_int("JOAN_MCP_HTTP_PORT", 8808)
    mcp.run(transport="streamable-http")


if __name__ == "__main__":
    main()
