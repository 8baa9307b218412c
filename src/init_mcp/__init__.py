"""init-mcp: write template files into a directory over MCP stdio or the CLI."""

__version__ = "1.0.0"
