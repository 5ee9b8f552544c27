"""Input sanitizer tests"""

import pytest

from dbinspector.security import (
    MAX_IDENTIFIER_LENGTH,
    redact,
    sanitize,
    validate_connection_url,
    validate_identifier,
)
from dbinspector.types import Dialect, IdentifierKind


class TestSanitize:

    def test_strips_null_bytes_and_control_characters(self):
        assert sanitize("us\x00ers\x07") == "users"

    def test_keeps_tabs_and_newlines_inside(self):
        assert sanitize("  a\tb\nc  ") == "a\tb\nc"

    def test_empty_input(self):
        assert sanitize(None) == ""
        assert sanitize("") == ""


class TestValidateIdentifier:

    @pytest.mark.parametrize("name", ["users", "_tmp", "order_items2", "a$b", "my-table"])
    def test_bare_identifiers_pass(self, name):
        assert validate_identifier(name).is_valid

    @pytest.mark.parametrize("name", ["1users", "users;", "users name", "users'--", "a.b"])
    def test_malformed_identifiers_fail(self, name):
        result = validate_identifier(name, IdentifierKind.TABLE)
        assert not result.is_valid
        assert "table name" in result.error

    def test_empty_identifier_fails(self):
        result = validate_identifier("   ", IdentifierKind.COLUMN)
        assert not result.is_valid
        assert result.error == "Column name cannot be empty"

    def test_length_limit(self):
        assert validate_identifier("a" * MAX_IDENTIFIER_LENGTH).is_valid
        result = validate_identifier("a" * (MAX_IDENTIFIER_LENGTH + 1), IdentifierKind.DATABASE)
        assert not result.is_valid
        assert "cannot exceed 64" in result.error

    def test_quoted_length_counts_inner_text(self):
        assert validate_identifier("`" + "a" * 64 + "`", dialect=Dialect.MYSQL).is_valid

    def test_quote_style_follows_dialect(self):
        assert validate_identifier("`order details`", dialect=Dialect.MYSQL).is_valid
        assert validate_identifier('"order details"', dialect=Dialect.POSTGRESQL).is_valid
        assert not validate_identifier('"order details"', dialect=Dialect.MYSQL).is_valid
        assert not validate_identifier("`order details`", dialect=Dialect.POSTGRESQL).is_valid

    def test_either_quote_style_without_dialect(self):
        assert validate_identifier("`x y`").is_valid
        assert validate_identifier('"x y"').is_valid

    def test_partial_quoting_fails(self):
        assert not validate_identifier("`users", dialect=Dialect.MYSQL).is_valid


class TestValidateConnectionUrl:

    @pytest.mark.parametrize("url", [
        "mysql://root:pw@localhost:3306/shop",
        "postgresql://app:pw@pg.internal/warehouse",
        "postgres://app:pw@pg.internal:6432/warehouse?ssl=true",
    ])
    def test_complete_urls_pass(self, url):
        assert validate_connection_url(url).is_valid

    def test_unsupported_scheme(self):
        result = validate_connection_url("sqlite://u:p@host/db")
        assert not result.is_valid
        assert "Unsupported URL scheme" in result.error

    def test_missing_parts_are_named(self):
        result = validate_connection_url("mysql://localhost/shop")
        assert not result.is_valid
        assert result.error == "URL must contain username, password"

    def test_bad_port(self):
        assert not validate_connection_url("mysql://u:p@host:notaport/db").is_valid

    def test_empty(self):
        assert validate_connection_url("").error == "Connection URL cannot be empty"


class TestRedact:

    def test_masks_url_password(self):
        text = "cannot reach postgresql://app:hunter2@pg:5432/db"
        assert redact(text) == "cannot reach postgresql://app:***@pg:5432/db"

    def test_masks_driver_qualified_url(self):
        assert "hunter2" not in redact("mysql+aiomysql://root:hunter2@db/shop")

    def test_masks_credential_parameters(self):
        redacted = redact("host=db password=hunter2 token: abc123")
        assert "hunter2" not in redacted
        assert "abc123" not in redacted
        assert "password=***" in redacted

    def test_leaves_plain_text(self):
        assert redact("Table 'users' not found") == "Table 'users' not found"
