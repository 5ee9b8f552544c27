"""Foreign key, index and column report tests"""

from dbinspector.mcp.analysis import (
    analyze_indexes,
    analyze_relationships,
    column_summary,
    describe_column,
    foreign_key_issues,
    foreign_key_statistics,
    full_data_type,
    group_columns_by_type,
    index_purpose,
    integrity_summary,
)
from dbinspector.types import ColumnDescriptor, ForeignKeyDescriptor, IndexColumn, IndexDescriptor


def fk(name, table, column, ref_table, ref_column="id", update="NO ACTION", delete="NO ACTION"):
    return ForeignKeyDescriptor(name, table, column, ref_table, ref_column, update, delete)


def index(name, *columns, unique=False, primary=False):
    return IndexDescriptor(
        index_name=name,
        unique=unique or primary,
        columns=tuple(IndexColumn(col, cardinality=card) for col, card in columns),
        index_type="BTREE",
        is_primary=primary,
    )


class TestForeignKeyReports:

    def test_composite_constraint_is_one_relationship(self):
        report = analyze_relationships([
            fk("fk_line_order", "order_lines", "order_id", "orders", "id", "CASCADE", "CASCADE"),
            fk("fk_line_order", "order_lines", "order_rev", "orders", "rev", "CASCADE", "CASCADE"),
            fk("fk_line_product", "order_lines", "product_id", "products", delete="RESTRICT"),
        ])
        assert report["totalRelationships"] == 2
        assert report["compositeRelationships"] == 1
        first = report["relationships"][0]
        assert first["columns"] == [{"from": "order_id", "to": "id"}, {"from": "order_rev", "to": "rev"}]
        assert first["relationshipStrength"] == "strong"
        assert report["relationships"][1]["relationshipStrength"] == "medium"
        assert report["tableConnections"] == {"order_lines": ["orders", "products"]}

    def test_statistics_and_integrity(self):
        fks = [
            fk("fk_a", "orders", "user_id", "users", update="CASCADE", delete="CASCADE"),
            fk("fk_b", "reviews", "user_id", "users", delete="SET NULL"),
            fk("fk_c", "payments", "order_id", "orders", update="RESTRICT", delete="RESTRICT"),
        ]
        stats = foreign_key_statistics(fks)
        assert stats["totalForeignKeys"] == 3
        assert stats["referencedTables"] == 2
        assert stats["cascadeDeleteCount"] == 1
        assert stats["restrictUpdateCount"] == 1
        rules = integrity_summary(fks)
        assert rules["cascadeDeleteTables"] == ["orders"]
        assert rules["protectedTables"] == ["orders"]
        assert rules["weaklyReferencedTables"] == ["users"]

    def test_mutual_reference_and_naming_issues(self):
        issues = foreign_key_issues([
            fk("fk_a_b", "a", "b_id", "b"),
            fk("b_to_a", "b", "a_id", "a"),
        ])
        assert "Potential circular reference detected between tables 'a' and 'b'" in issues
        assert "Foreign key constraint names follow inconsistent naming patterns" in issues

    def test_many_cascading_children(self):
        fks = [fk(f"fk_child{i}", f"child{i}", "parent_id", "parent", delete="CASCADE") for i in range(6)]
        issues = foreign_key_issues(fks)
        assert issues == [
            "Table 'parent' has 6 cascade delete relationships - consider the impact of deletions"
        ]


class TestIndexReports:

    def test_report(self):
        indexes = [
            index("PRIMARY", ("id", 5000), primary=True),
            index("idx_status", ("status", 3)),
            index("idx_user", ("user_id", 1200)),
            index("idx_user_created", ("user_id", 1200), ("created_at", 900)),
        ]
        report = analyze_indexes(indexes)
        stats = report["statistics"]

        assert stats["totalIndexes"] == 4
        assert stats["compositeIndexes"] == 1
        assert stats["estimatedTableSize"] == 5000
        assert stats["totalIndexedColumns"] == 4
        assert [i["purpose"] for i in report["indexes"]] == [
            "primary_key", "filtering_optimization", "foreign_key_optimization", "composite_query_optimization",
        ]
        assert report["indexes"][1]["columns"][0]["selectivity"] == 0.0006

        performance = report["performance"]
        assert [i["name"] for i in performance["lowSelectivity"]] == ["idx_status"]
        assert performance["potentiallyRedundant"][0]["redundantIndex"] == "idx_user"
        assert performance["potentiallyRedundant"][0]["supersetIndex"] == "idx_user_created"
        assert [i["name"] for i in performance["wellDesigned"]] == ["idx_user_created"]
        assert report["coverage"]["commonPatterns"]["hasTimestampIndex"]
        assert report["recommendations"] == []

    def test_table_without_indexes(self):
        report = analyze_indexes([])
        assert report["statistics"]["estimatedTableSize"] == 0
        assert report["recommendations"][:2] == [
            "Add a primary key index for better performance and data integrity",
            "Table has no indexes. Consider adding indexes on frequently queried columns",
        ]

    def test_purpose_of_unique_index(self):
        assert index_purpose(index("uq_email", ("email", 10), unique=True)) == "unique_constraint"


class TestColumnReports:

    columns = [
        ColumnDescriptor("id", "int", False, True, True, numeric_precision=10),
        ColumnDescriptor("price", "decimal", True, False, False, numeric_precision=10, numeric_scale=2),
        ColumnDescriptor("name", "varchar", True, False, False, character_maximum_length=120),
        ColumnDescriptor("created_at", "timestamp", False, False, False),
        ColumnDescriptor("meta", "jsonb", True, False, False),
    ]

    def test_full_data_type(self):
        assert [full_data_type(c) for c in self.columns] == [
            "int(10)", "decimal(10,2)", "varchar(120)", "timestamp", "jsonb",
        ]

    def test_groups(self):
        assert group_columns_by_type(self.columns) == {
            "numeric": ["id", "price"],
            "string": ["name"],
            "datetime": ["created_at"],
            "json": ["meta"],
        }

    def test_describe_and_summary(self):
        assert describe_column(self.columns[0])["constraints"] == ["PRIMARY KEY", "AUTO_INCREMENT", "NOT NULL"]
        assert column_summary(self.columns) == {
            "totalColumns": 5,
            "primaryKeyColumns": 1,
            "nullableColumns": 3,
            "autoIncrementColumns": 1,
        }
