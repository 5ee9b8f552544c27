# -*- coding: utf-8 -*-
"""Database access: URL parsing, catalog queries, connections and inspection"""

from .connector import DatabaseConnection, DatabaseManager, get_db_manager, reset_db_manager
from .inspector import DatabaseInspector, TableInspection, get_inspector, reset_inspector
from .url import detect_dialect, extract_database_name, parse_connection_url, split_alias

__all__ = [
    "DatabaseConnection",
    "DatabaseManager",
    "get_db_manager",
    "reset_db_manager",
    "DatabaseInspector",
    "TableInspection",
    "get_inspector",
    "reset_inspector",
    "detect_dialect",
    "extract_database_name",
    "parse_connection_url",
    "split_alias",
]
