import pytest
from media_studio_mcp.options import coerce_bool

@pytest.mark.parametrize("value", [True, "true", "TRUE", "True", "1"])
def test_truthy_values(value):
    assert coerce_bool(value, default=False) is True

@pytest.mark.parametrize("value", [False, "false", "", "0", "yes", "on"])
def test_falsy_values(value):
    assert coerce_bool(value, default=True) is False

def test_absent_value_uses_field_default():
    assert coerce_bool(None, default=False) is False
    assert coerce_bool(None, default=True) is True
