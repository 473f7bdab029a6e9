from ncloud_provider.validators import (
    validate_bool_value,
    validate_include_int_values,
    validate_include_values,
    validate_integer_in_range,
    validate_internet_line_type_code,
    validate_regexp,
    validate_server_name,
    validate_string_length_in_range,
)


def test_validate_server_name() -> None:
    assert validate_server_name("web-01", "server_name") == []
    assert validate_server_name("ab", "server_name")
    assert validate_server_name("web-", "server_name")
    assert validate_server_name("web_01", "server_name")
    assert validate_server_name("a" * 31, "server_name")


def test_validate_internet_line_type_code() -> None:
    assert validate_internet_line_type_code("PUBLC", "k") == []
    assert validate_internet_line_type_code("GLBL", "k") == []
    assert validate_internet_line_type_code("LOCAL", "k")


def test_validate_regexp() -> None:
    assert validate_regexp("^web-[0-9]+$", "k") == []
    assert validate_regexp("web-(", "k")


def test_range_validators() -> None:
    assert validate_string_length_in_range(1, 3)("abc", "k") == []
    assert validate_string_length_in_range(1, 3)("abcd", "k")

    in_range = validate_integer_in_range(1, 10)
    assert in_range(5, "k") == []
    assert in_range("5", "k") == []
    assert in_range(11, "k")
    assert in_range("five", "k") == ["'k' must be int"]


def test_include_validators() -> None:
    assert validate_bool_value("true", "k") == []
    assert validate_bool_value("yes", "k")
    assert validate_include_values(["NET", "LOCAL"])(["NET"], "k") == []
    assert validate_include_values(["NET", "LOCAL"])("SSD", "k")
    assert validate_include_int_values([10, 20])(20, "k") == []
    assert validate_include_int_values([10, 20])([10, 30], "k")
