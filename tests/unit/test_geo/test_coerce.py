from geo.coerce import is_absent, prop, prop_float, to_optional_float, to_optional_int, to_optional_str


def test_absent_markers():
    """Verify empty strings and "null" are treated as missing."""
    assert is_absent(None)
    assert is_absent("")
    assert is_absent("  null ")
    assert not is_absent("0")
    assert not is_absent(0)


def test_float_coercion():
    """Verify numeric strings parse and junk becomes None."""
    assert to_optional_float("12.5") == 12.5
    assert to_optional_float(7) == 7.0
    assert to_optional_float("abc") is None
    assert to_optional_float("nan") is None
    assert to_optional_float(True) is None
    assert to_optional_float("null") is None


def test_int_and_str_coercion():
    """Verify int truncation and string conversion."""
    assert to_optional_int("3.7") == 3
    assert to_optional_int("") is None
    assert to_optional_str(220) == "220"
    assert to_optional_str("NULL") is None


def test_prop_takes_first_present_key():
    """Verify fallback across alternative property names."""
    props = {"a": "", "b": "null", "c": 5, "d": "x"}
    assert prop(props, "a", "b", "c", "d") == "5"
    assert prop(props, "missing") is None
    assert prop_float({"kv": "not a number", "CAPACITYKV": "330"}, "kv", "CAPACITYKV") == 330.0
