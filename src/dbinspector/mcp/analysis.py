# -*- coding: utf-8 -*-
"""
Response shaping for tool output

Relationship summaries for foreign keys, statistics and recommendations for
indexes, and column summaries for table inspection. Informational only:
nothing here feeds a control decision.
"""

from typing import Any, Iterable

from ..db.catalog import classify_relationship_strength, classify_relationship_type
from ..types import ColumnDescriptor, ForeignKeyDescriptor, IndexDescriptor


def _unique(values: Iterable[Any]) -> list:
    """Distinct values in first-seen order"""
    return list(dict.fromkeys(values))


def _rule(value) -> str:
    return (value or "").upper()


# ============================================
# Foreign keys
# ============================================

def describe_foreign_key(fk: ForeignKeyDescriptor) -> dict:
    return {
        **fk.to_dict(),
        "relationshipType": classify_relationship_type(fk.delete_rule),
    }


def analyze_relationships(foreign_keys: list[ForeignKeyDescriptor]) -> dict:
    """One relationship per constraint; composite keys keep column order"""
    groups: dict[str, list[ForeignKeyDescriptor]] = {}
    for fk in foreign_keys:
        groups.setdefault(fk.constraint_name, []).append(fk)

    relationships = []
    connections: dict[str, list[str]] = {}
    for constraint_name, fks in groups.items():
        first = fks[0]
        relationships.append({
            "constraintName": constraint_name,
            "fromTable": first.table_name,
            "toTable": first.referenced_table_name,
            "columns": [{"from": fk.column_name, "to": fk.referenced_column_name} for fk in fks],
            "isComposite": len(fks) > 1,
            "updateRule": first.update_rule,
            "deleteRule": first.delete_rule,
            "relationshipStrength": classify_relationship_strength(first.update_rule, first.delete_rule),
        })
        targets = connections.setdefault(first.table_name, [])
        if first.referenced_table_name not in targets:
            targets.append(first.referenced_table_name)

    return {
        "relationships": relationships,
        "tableConnections": connections,
        "totalRelationships": len(relationships),
        "compositeRelationships": sum(1 for r in relationships if r["isComposite"]),
    }


def foreign_key_statistics(foreign_keys: list[ForeignKeyDescriptor]) -> dict:
    return {
        "totalForeignKeys": len(foreign_keys),
        "uniqueConstraints": len(_unique(fk.constraint_name for fk in foreign_keys)),
        "affectedTables": len(_unique(fk.table_name for fk in foreign_keys)),
        "referencedTables": len(_unique(fk.referenced_table_name for fk in foreign_keys)),
        "cascadeDeleteCount": sum(1 for fk in foreign_keys if _rule(fk.delete_rule) == "CASCADE"),
        "cascadeUpdateCount": sum(1 for fk in foreign_keys if _rule(fk.update_rule) == "CASCADE"),
        "restrictDeleteCount": sum(1 for fk in foreign_keys if _rule(fk.delete_rule) == "RESTRICT"),
        "restrictUpdateCount": sum(1 for fk in foreign_keys if _rule(fk.update_rule) == "RESTRICT"),
    }


def integrity_summary(foreign_keys: list[ForeignKeyDescriptor]) -> dict:
    return {
        "cascadeDeleteTables": _unique(
            fk.table_name for fk in foreign_keys if _rule(fk.delete_rule) == "CASCADE"
        ),
        "protectedTables": _unique(
            fk.referenced_table_name
            for fk in foreign_keys
            if _rule(fk.delete_rule) in ("RESTRICT", "NO ACTION")
        ),
        "weaklyReferencedTables": _unique(
            fk.referenced_table_name for fk in foreign_keys if _rule(fk.delete_rule) == "SET NULL"
        ),
    }


def foreign_key_issues(foreign_keys: list[ForeignKeyDescriptor]) -> list[str]:
    issues = []

    graph: dict[str, list[str]] = {}
    for fk in foreign_keys:
        graph.setdefault(fk.table_name, []).append(fk.referenced_table_name)

    # Mutual references only; longer cycles are not searched for
    for table, referenced_tables in graph.items():
        for referenced in referenced_tables:
            if table in graph.get(referenced, []):
                issues.append(
                    f"Potential circular reference detected between tables '{table}' and '{referenced}'"
                )

    cascade_children: dict[str, int] = {}
    for fk in foreign_keys:
        if _rule(fk.delete_rule) == "CASCADE":
            cascade_children[fk.referenced_table_name] = cascade_children.get(fk.referenced_table_name, 0) + 1
    for table, count in cascade_children.items():
        if count > 5:
            issues.append(
                f"Table '{table}' has {count} cascade delete relationships - "
                f"consider the impact of deletions"
            )

    names = [fk.constraint_name for fk in foreign_keys]
    consistent = all(
        name.lower().startswith("fk_") or "_fk" in name.lower()
        for name in names
    )
    if not consistent and len(names) > 1:
        issues.append("Foreign key constraint names follow inconsistent naming patterns")

    return issues


# ============================================
# Indexes
# ============================================

def estimated_table_size(indexes: list[IndexDescriptor]) -> int:
    """Primary key cardinality, else the largest unique-index cardinality"""
    primary = next((idx for idx in indexes if idx.is_primary), None)
    if primary is not None and primary.columns:
        return primary.columns[0].cardinality or 0
    cardinalities = [
        col.cardinality or 0
        for idx in indexes
        if idx.unique
        for col in idx.columns
    ]
    return max(cardinalities, default=0)


def index_purpose(index: IndexDescriptor) -> str:
    if index.is_primary:
        return "primary_key"
    if index.unique:
        return "unique_constraint"
    if len(index.columns) > 1:
        return "composite_query_optimization"

    column = index.columns[0].name.lower() if index.columns else ""
    if "foreign" in column or column.endswith("_id"):
        return "foreign_key_optimization"
    if "created" in column or "updated" in column:
        return "temporal_queries"
    if "status" in column or "state" in column:
        return "filtering_optimization"
    return "query_optimization"


def describe_index(index: IndexDescriptor, table_size: int) -> dict:
    columns = []
    for col in index.columns:
        selectivity = None
        if col.cardinality and table_size:
            selectivity = round(col.cardinality / table_size, 4)
        columns.append({
            "name": col.name,
            "cardinality": col.cardinality,
            "subPart": col.sub_part,
            "nullable": col.nullable,
            "selectivity": selectivity,
        })
    return {
        "name": index.index_name,
        "type": index.index_type,
        "unique": index.unique,
        "columns": columns,
        "isComposite": len(index.columns) > 1,
        "isPrimary": index.is_primary,
        "purpose": index_purpose(index),
    }


def index_statistics(indexes: list[IndexDescriptor]) -> dict:
    indexed_columns = _unique(col.name for idx in indexes for col in idx.columns)
    first_cardinalities = [(idx.columns[0].cardinality or 0) if idx.columns else 0 for idx in indexes]
    return {
        "totalIndexes": len(indexes),
        "uniqueIndexes": sum(1 for idx in indexes if idx.unique),
        "primaryKeyIndex": any(idx.is_primary for idx in indexes),
        "compositeIndexes": sum(1 for idx in indexes if len(idx.columns) > 1),
        "singleColumnIndexes": sum(1 for idx in indexes if len(idx.columns) == 1),
        "totalIndexedColumns": len(indexed_columns),
        "estimatedTableSize": estimated_table_size(indexes),
        "averageIndexCardinality": (
            sum(first_cardinalities) / len(indexes) if indexes else 0
        ),
    }


def index_performance(indexes: list[IndexDescriptor]) -> dict:
    """Selectivity of leading columns, composite ordering and prefix redundancy"""
    performance: dict[str, list] = {
        "highSelectivity": [],
        "lowSelectivity": [],
        "potentiallyRedundant": [],
        "wellDesigned": [],
    }

    for idx in indexes:
        if not idx.columns:
            continue
        cardinality = idx.columns[0].cardinality or 0
        if cardinality < 10 and not idx.unique and not idx.is_primary:
            performance["lowSelectivity"].append({
                "name": idx.index_name,
                "cardinality": cardinality,
                "reason": "Low cardinality may not provide good query performance",
            })
        elif cardinality > 1000:
            performance["highSelectivity"].append({
                "name": idx.index_name,
                "cardinality": cardinality,
                "reason": "High selectivity should provide good query performance",
            })

        if len(idx.columns) > 1:
            cardinalities = [col.cardinality or 0 for col in idx.columns]
            if all(later <= earlier for earlier, later in zip(cardinalities, cardinalities[1:])):
                performance["wellDesigned"].append({
                    "name": idx.index_name,
                    "columns": ", ".join(f"{col.name}({col.cardinality})" for col in idx.columns),
                    "reason": "Columns ordered by decreasing selectivity",
                })

    for i, shorter in enumerate(indexes):
        for longer in indexes[i + 1:]:
            short_cols = [col.name for col in shorter.columns]
            long_cols = [col.name for col in longer.columns]
            if len(short_cols) > len(long_cols) or shorter.unique or longer.unique:
                continue
            if long_cols[:len(short_cols)] == short_cols:
                performance["potentiallyRedundant"].append({
                    "redundantIndex": shorter.index_name,
                    "supersetIndex": longer.index_name,
                    "reason": (
                        f"Index '{shorter.index_name}' may be redundant as "
                        f"'{longer.index_name}' covers the same columns and more"
                    ),
                })

    return performance


def _indexed_names(indexes: list[IndexDescriptor]) -> list[str]:
    return [col.name.lower() for idx in indexes for col in idx.columns]


def index_coverage(indexes: list[IndexDescriptor]) -> dict:
    names = _indexed_names(indexes)
    return {
        "primaryKey": any(idx.is_primary for idx in indexes),
        "commonPatterns": {
            "hasTimestampIndex": any(
                "created" in n or "updated" in n or "timestamp" in n for n in names
            ),
            "hasStatusIndex": any("status" in n or "state" in n or "active" in n for n in names),
            "hasNameIndex": any("name" in n or "title" in n or "description" in n for n in names),
        },
    }


def index_recommendations(indexes: list[IndexDescriptor], statistics: dict) -> list[str]:
    recommendations = []

    if not statistics["primaryKeyIndex"]:
        recommendations.append("Add a primary key index for better performance and data integrity")

    if statistics["totalIndexes"] == 0:
        recommendations.append(
            "Table has no indexes. Consider adding indexes on frequently queried columns"
        )
    elif statistics["totalIndexes"] > 10:
        recommendations.append(
            "Table has many indexes. Consider removing unused indexes to improve write performance"
        )

    if statistics["compositeIndexes"] == 0 and statistics["totalIndexes"] > 3:
        recommendations.append(
            "Consider creating composite indexes for queries filtering on multiple columns"
        )

    if not any("created" in n or "timestamp" in n for n in _indexed_names(indexes)):
        recommendations.append(
            "Consider adding an index on timestamp/created_at columns for temporal queries"
        )

    if sum(1 for idx in indexes if not idx.unique) > 6:
        recommendations.append(
            "Many non-unique indexes detected. Review if all are necessary for your query patterns"
        )

    return recommendations


def analyze_indexes(indexes: list[IndexDescriptor]) -> dict:
    """Full index report for one table"""
    statistics = index_statistics(indexes)
    table_size = statistics["estimatedTableSize"]
    return {
        "indexes": [describe_index(idx, table_size) for idx in indexes],
        "statistics": statistics,
        "performance": index_performance(indexes),
        "coverage": index_coverage(indexes),
        "recommendations": index_recommendations(indexes, statistics),
    }


# ============================================
# Columns
# ============================================

_TYPE_GROUPS = [
    ("numeric", ("int", "decimal", "numeric", "float", "double", "bit", "real", "serial")),
    ("string", ("char", "text", "enum", "set", "uuid", "inet", "cidr", "macaddr")),
    ("datetime", ("date", "time", "year", "interval")),
    ("binary", ("binary", "blob", "bytea")),
]


def full_data_type(column: ColumnDescriptor) -> str:
    """`varchar(255)`, `decimal(10,2)`, `int(11)` style type text"""
    data_type = column.data_type.lower()
    if column.character_maximum_length is not None:
        return f"{data_type}({column.character_maximum_length})"
    if column.numeric_precision is not None:
        if column.numeric_scale:
            return f"{data_type}({column.numeric_precision},{column.numeric_scale})"
        return f"{data_type}({column.numeric_precision})"
    return data_type


def group_columns_by_type(columns: list[ColumnDescriptor]) -> dict[str, list[str]]:
    groups: dict[str, list[str]] = {}
    for column in columns:
        data_type = column.data_type.lower()
        if data_type in ("json", "jsonb"):
            group = "json"
        else:
            group = next(
                (name for name, markers in _TYPE_GROUPS if any(m in data_type for m in markers)),
                "other",
            )
        groups.setdefault(group, []).append(column.column_name)
    return groups


def describe_column(column: ColumnDescriptor) -> dict:
    constraints = []
    if column.is_primary_key:
        constraints.append("PRIMARY KEY")
    if column.is_auto_increment:
        constraints.append("AUTO_INCREMENT")
    if not column.is_nullable:
        constraints.append("NOT NULL")
    return {
        **column.to_dict(),
        "fullType": full_data_type(column),
        "constraints": constraints,
    }


def column_summary(columns: list[ColumnDescriptor]) -> dict:
    return {
        "totalColumns": len(columns),
        "primaryKeyColumns": sum(1 for c in columns if c.is_primary_key),
        "nullableColumns": sum(1 for c in columns if c.is_nullable),
        "autoIncrementColumns": sum(1 for c in columns if c.is_auto_increment),
    }


__all__ = [
    "describe_foreign_key",
    "analyze_relationships",
    "foreign_key_statistics",
    "integrity_summary",
    "foreign_key_issues",
    "estimated_table_size",
    "index_purpose",
    "describe_index",
    "index_statistics",
    "index_performance",
    "index_coverage",
    "index_recommendations",
    "analyze_indexes",
    "full_data_type",
    "group_columns_by_type",
    "describe_column",
    "column_summary",
]
