"""Query validator tests"""

import pytest
from structlog.testing import capture_logs

from dbinspector.sql import (
    QueryValidator,
    get_query_complexity,
    is_simple_read_query,
    normalize_query,
    validate_query,
)
from dbinspector.sql.validator import MAX_OPEN_PARENS, MAX_QUERY_LENGTH
from dbinspector.types import Dialect


class TestNormalize:

    def test_strips_comments_and_collapses_whitespace(self):
        query = "select id -- trailing\n  from /* block\ncomment */ users"
        assert normalize_query(query) == "SELECT ID FROM USERS"


class TestRejections:

    @pytest.mark.parametrize("query,keyword", [
        ("DROP TABLE users", "DROP"),
        ("SELECT 1; DELETE FROM users", "DELETE"),
        ("update users set name = 'x'", "UPDATE"),
        ("WITH x AS (SELECT 1) INSERT INTO t SELECT * FROM x", "INSERT"),
        ("GRANT ALL ON *.* TO bob", "GRANT"),
        ("select * from users for update", "UPDATE"),
    ])
    def test_forbidden_keywords_anywhere(self, query, keyword):
        result = validate_query(query)
        assert not result.is_valid
        assert result.error.startswith(f"Forbidden keyword detected: {keyword}.")

    def test_keyword_in_comment_is_ignored(self):
        assert validate_query("SELECT id FROM users -- DROP TABLE users").is_valid

    def test_keyword_as_part_of_identifier_is_allowed(self):
        assert validate_query("SELECT updated_at, deleted FROM users").is_valid

    @pytest.mark.parametrize("query,func", [
        ("SELECT LOAD_FILE('/etc/passwd')", "LOAD_FILE"),
        ("SELECT * FROM users INTO OUTFILE '/tmp/x'", "INTO OUTFILE"),
        ("SELECT pg_read_file('/etc/passwd')", "PG_READ_FILE"),
    ])
    def test_forbidden_functions(self, query, func):
        result = validate_query(query)
        assert not result.is_valid
        assert result.error.startswith(f"Forbidden function detected: {func}.")

    def test_must_start_with_allowed_keyword(self):
        result = validate_query("(SELECT 1)")
        assert not result.is_valid
        assert result.error.startswith("Query must start with one of: SELECT, SHOW")

    @pytest.mark.parametrize("query", [
        "SELECT id FROM users WHERE id = 1 UNION SELECT password FROM admins",
        "SELECT id FROM users WHERE name = '' OR '1'='1'",
        "SELECT id FROM users WHERE name = 'a' OR 1=1",
        "SELECT SLEEP(5)",
        "SELECT CONCAT(0x41424344)",
    ])
    def test_injection_patterns(self, query):
        result = validate_query(query)
        assert not result.is_valid
        assert "SQL injection" in result.error

    def test_information_schema_probe_only_flagged_for_mysql(self):
        query = "SELECT * FROM information_schema.tables WHERE table_schema = 'shop'"
        assert not validate_query(query, Dialect.MYSQL).is_valid
        assert validate_query(query, Dialect.POSTGRESQL).is_valid

    def test_too_long(self):
        query = "SELECT " + ", ".join(["col"] * (MAX_QUERY_LENGTH // 4)) + " FROM t"
        result = validate_query(query)
        assert not result.is_valid
        assert result.error.startswith("Query is too long")

    def test_too_many_parentheses(self):
        query = "SELECT " + "(" * (MAX_OPEN_PARENS + 1) + "1" + ")" * (MAX_OPEN_PARENS + 1)
        result = validate_query(query)
        assert not result.is_valid
        assert "too many nested expressions" in result.error

    def test_empty(self):
        assert validate_query("   ").error == "Query cannot be empty"

    def test_first_failing_check_wins(self):
        # forbidden keyword is checked before the leading-keyword rule
        result = validate_query("DELETE FROM users")
        assert result.error.startswith("Forbidden keyword detected: DELETE")

    def test_rejection_is_logged(self):
        with capture_logs() as logs:
            QueryValidator().validate("DROP TABLE users")
        assert logs[0]["event"] == "query_rejected"
        assert logs[0]["check"] == "check_forbidden_keywords"


class TestAcceptance:

    @pytest.mark.parametrize("query", [
        "SELECT id, name FROM users WHERE id = ?",
        "show tables",
        "DESCRIBE users",
        "EXPLAIN SELECT * FROM users",
        "WITH recent AS (SELECT id FROM orders) SELECT COUNT(*) FROM recent",
    ])
    def test_read_queries_pass(self, query):
        result = validate_query(query)
        assert result.is_valid
        assert result.error is None

    def test_warnings(self):
        result = validate_query("SELECT * FROM users WHERE name LIKE '%bob' ORDER BY id")
        assert result.is_valid
        assert len(result.warnings) == 3
        assert result.warnings[0].startswith("Using SELECT *")
        assert result.warnings[1] == "ORDER BY without LIMIT may be slow on large tables."

    def test_cartesian_product_warning(self):
        result = validate_query("SELECT a.id FROM a, b")
        assert any("cartesian product" in w for w in result.warnings)

    def test_is_valid_shortcut(self):
        validator = QueryValidator(Dialect.POSTGRESQL)
        assert validator.is_valid("SELECT 1")
        assert not validator.is_valid("TRUNCATE users")


class TestHelpers:

    def test_is_simple_read_query(self):
        assert is_simple_read_query("  select 1")
        assert not is_simple_read_query("ANALYZE TABLE users")

    @pytest.mark.parametrize("query,expected", [
        ("SELECT id FROM users", "low"),
        ("SELECT u.id, COUNT(*) FROM users u JOIN orders o ON o.user_id = u.id GROUP BY u.id", "medium"),
        (
            "SELECT u.id, SUM(o.total) FROM users u JOIN orders o ON o.user_id = u.id "
            "JOIN items i ON i.order_id = o.id GROUP BY u.id HAVING SUM(o.total) > 10 ORDER BY u.id",
            "high",
        ),
    ])
    def test_complexity(self, query, expected):
        assert get_query_complexity(query) == expected
