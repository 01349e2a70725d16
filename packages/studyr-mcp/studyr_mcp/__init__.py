"""
Studyr MCP server package.
"""
