import pytest

from sqlweave.utils.performance import SLOW_QUERY_ENV, resolve_slow_query_ms


def test_override_wins(monkeypatch):
    monkeypatch.setenv(SLOW_QUERY_ENV, "5")
    assert resolve_slow_query_ms(default=100, override=250) == 250


def test_environment_value(monkeypatch):
    monkeypatch.setenv(SLOW_QUERY_ENV, "5")
    assert resolve_slow_query_ms(default=100) == 5


@pytest.mark.parametrize("value", ["abc", "-3", ""])
def test_invalid_environment_values_fall_back(monkeypatch, value):
    monkeypatch.setenv(SLOW_QUERY_ENV, value)
    assert resolve_slow_query_ms(default=100) == 100


def test_negative_override_is_rejected():
    with pytest.raises(ValueError):
        resolve_slow_query_ms(override=-1)
