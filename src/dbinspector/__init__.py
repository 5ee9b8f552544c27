# -*- coding: utf-8 -*-
"""
db-inspector

Read-only MySQL/PostgreSQL schema inspection, validated query execution
and execution-plan analysis, exposed as MCP tools.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
