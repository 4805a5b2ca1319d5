"""GT60 tracker server: TCP packet engine plus an MCP status surface."""

__version__ = "0.1.0"
