from sqlweave.dialects import SqlServerDialect


def test_sqlserver_brackets_identifiers():
    dialect = SqlServerDialect()
    assert dialect.quote_identifier("users") == "[users]"
    assert dialect.quote_identifier("odd]name") == "[odd]]name]"


def test_sqlserver_unicode_string_literals():
    assert SqlServerDialect().quote_string("Zoë") == "N'Zoë'"


def test_sqlserver_has_no_recursive_keyword():
    capabilities = SqlServerDialect().capabilities
    assert capabilities.supports_recursive_keyword is False
    assert capabilities.supports_cycle_detection is False
