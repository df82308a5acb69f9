"""SOQL query-literal analysis and extraction."""

from apexscan.soql.parser import (
    exclude_system_fields,
    extract_fields,
    extract_object_name,
    format_query_for_display,
    has_limit_clause,
    has_nested_queries,
    has_where_clause,
    is_valid_soql,
    remove_unused_fields,
)

__all__ = [
    "exclude_system_fields",
    "extract_fields",
    "extract_object_name",
    "format_query_for_display",
    "has_limit_clause",
    "has_nested_queries",
    "has_where_clause",
    "is_valid_soql",
    "remove_unused_fields",
]
