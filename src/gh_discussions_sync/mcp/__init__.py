"""MCP server exposing discussion sync operations as tools."""
