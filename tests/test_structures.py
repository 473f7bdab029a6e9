import zlib

import pytest

from ncloud_provider.common import data_resource_id_hash, parse_duration
from ncloud_provider.schema import ResourceData
from ncloud_provider.structures import (
    expand_string_list,
    expand_tag_list_params,
    flatten_common_code,
    flatten_instance_tag_list,
    flatten_zone,
    string_or_none,
)


def test_flatten_common_code_and_missing_objects() -> None:
    assert flatten_common_code({"code": "RUN", "codeName": "Run"}) == {"code": "RUN", "code_name": "Run"}
    assert flatten_common_code(None) == {}
    assert flatten_zone(None) == {}


def test_tag_list_expand_and_flatten() -> None:
    tags = [{"tag_key": "env", "tag_value": "dev"}]
    expanded = expand_tag_list_params(tags)
    assert expanded == [{"tagKey": "env", "tagValue": "dev"}]
    assert flatten_instance_tag_list(expanded) == tags

    with pytest.raises(ValueError):
        expand_tag_list_params([{"tag_key": "env"}])


def test_expand_string_list_and_string_or_none() -> None:
    assert expand_string_list(None) == []
    assert expand_string_list(["1", "", 2]) == ["1", "2"]
    assert string_or_none("") is None
    assert string_or_none("a") == "a"


def test_data_resource_id_hash_is_crc32_of_joined_ids() -> None:
    assert data_resource_id_hash(["1", "3"]) == str(zlib.crc32(b"1-3-"))


@pytest.mark.parametrize(
    "raw, expected",
    [("30s", 30.0), ("10m", 600.0), ("1h", 3600.0), (45, 45.0), ("90", 90.0)],
)
def test_parse_duration(raw, expected) -> None:
    assert parse_duration(raw) == expected


def test_parse_duration_rejects_garbage() -> None:
    with pytest.raises(ValueError):
        parse_duration("soon")


def test_resource_data_lookup_order_and_change() -> None:
    d = ResourceData(
        config={"server_product_code": "B", "server_name": ""},
        state={"id": "7", "server_product_code": "A", "cpu_count": 2},
        timeouts={"create": 10, "default": 3},
    )

    assert d.id == "7"
    assert d.get("cpu_count") == 2
    assert d.has_change("server_product_code")
    assert not d.has_change("cpu_count")
    assert not d.is_set("server_name")
    assert d.timeout("create") == 10
    assert d.timeout("delete") == 3

    d.set("cpu_count", 4)
    state = d.to_state()
    assert state["cpu_count"] == 4
    assert state["server_product_code"] == "B"
    assert state["id"] == "7"
