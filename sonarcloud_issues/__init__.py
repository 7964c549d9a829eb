"""Fetch and summarize SonarCloud issues over MCP or the command line."""

__version__ = "1.0.0"
