"""
Additional MCP tool groups registered by the server.
"""
