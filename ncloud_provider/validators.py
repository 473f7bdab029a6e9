"""
validators
----------

속성 값 검증 함수들. 모두 (value, key) 를 받아 오류 메시지 리스트를 돌려준다.
"""

from __future__ import annotations

import re
from typing import Any, Callable, List, Sequence


Validator = Callable[[Any, str], List[str]]

BOOL_VALUE_STRINGS = ["true", "false"]
INTERNET_LINE_TYPE_CODES = ["PUBLC", "GLBL"]

_SERVER_NAME_PATTERN = re.compile(r"^[A-Za-z0-9\-*]+$")


def validate_bool_value(value: Any, key: str) -> List[str]:
    if str(value) in BOOL_VALUE_STRINGS:
        return []
    return [f"{key} should be {' or '.join(BOOL_VALUE_STRINGS)}"]


def validate_internet_line_type_code(value: Any, key: str) -> List[str]:
    if value in INTERNET_LINE_TYPE_CODES:
        return []
    return [f"{key} must be one of {' '.join(INTERNET_LINE_TYPE_CODES)}"]


def validate_string_length_in_range(min_len: int, max_len: int) -> Validator:
    def _validate(value: Any, key: str) -> List[str]:
        if len(str(value)) < min_len or len(str(value)) > max_len:
            return [f"must be a valid {key!r} characters between {min_len} and {max_len}"]
        return []
    return _validate


def validate_server_name(value: Any, key: str) -> List[str]:
    errors = validate_string_length_in_range(3, 30)(value, key)

    # 알파벳, 숫자, 하이픈(-), 와일드카드(*)만 가능하며 마지막 문자는 하이픈(-)이 올 수 없다.
    name = str(value)
    if not _SERVER_NAME_PATTERN.match(name) or name.endswith("-"):
        errors.append(
            "server name is composed of alphabets, numbers, hyphen (-) and wild card (*). "
            "Hyphen (-) cannot be used for the last character."
        )
    return errors


def validate_integer_in_range(min_value: int, max_value: int) -> Validator:
    def _validate(value: Any, key: str) -> List[str]:
        if isinstance(value, bool):
            return [f"{key!r} must be int"]
        try:
            number = int(value)
        except (TypeError, ValueError):
            return [f"{key!r} must be int"]
        errors: List[str] = []
        if number < min_value:
            errors.append(f"{key!r} cannot be lower than {min_value}: {number}")
        if number > max_value:
            errors.append(f"{key!r} cannot be higher than {max_value}: {number}")
        return errors
    return _validate


def validate_regexp(value: Any, key: str) -> List[str]:
    try:
        re.compile(str(value))
    except re.error as e:
        return [f"{key!r}: {e}"]
    return []


def validate_include_values(include_values: Sequence[str]) -> Validator:
    def _validate(value: Any, key: str) -> List[str]:
        values = value if isinstance(value, (list, tuple)) else [value]
        for v in values:
            if v not in include_values:
                return [f"{key} should be {' or '.join(include_values)}"]
        return []
    return _validate


def validate_include_int_values(include_values: Sequence[int]) -> Validator:
    def _validate(value: Any, key: str) -> List[str]:
        values = value if isinstance(value, (list, tuple)) else [value]
        for v in values:
            if v not in include_values:
                return [f"{key} should be {' or '.join(str(i) for i in include_values)}"]
        return []
    return _validate
