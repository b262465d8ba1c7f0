"""Service functions shared by the MCP server and the CLI."""
