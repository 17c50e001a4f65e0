import pytest

from sqlweave.dialects import SQLiteDialect, get_dialect


def test_sqlite_identifier_quoting():
    dialect = SQLiteDialect()
    assert dialect.quote_identifier("table") == '"table"'
    assert dialect.quote_identifier('bad"name') == '"bad""name"'


def test_sqlite_emulates_multi_table_delete_with_rowid():
    capabilities = SQLiteDialect().capabilities
    assert capabilities.native_multi_table_delete is False
    assert capabilities.row_identity_column == "rowid"


def test_get_dialect_by_name():
    assert isinstance(get_dialect("sqlite"), SQLiteDialect)
    with pytest.raises(ValueError):
        get_dialect("oracle")
