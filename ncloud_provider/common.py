"""
common
------

리소스 공통 상수와 헬퍼.
(재시도 허용 오류 코드, region/zone 파라미터 해석, data source id 해시, output_file 기록)
"""

from __future__ import annotations

import json
import os
import re
import zlib
from typing import Any, Iterable, Optional, Union

from .api_client import NcloudAPIClient
from .logging_utils import get_logger
from .schema import ResourceData


logger = get_logger(__name__)


# ncloud returnCode
API_ERROR_UNKNOWN = "500"
API_ERROR_AUTHORITY_PARAMETER = "800"
API_ERROR_OBJECT_IN_OPERATION = "1300"
API_ERROR_SERVER_OBJECT_IN_OPERATION = "23006"
API_ERROR_SERVER_OBJECT_IN_OPERATION_2 = "25040"
API_ERROR_PREVIOUS_SERVERS_NOT_TERMINATED = "23003"


_DURATION_PATTERN = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*([smh]?)\s*$")
_DURATION_UNITS = {"": 1, "s": 1, "m": 60, "h": 3600}


def parse_duration(value: Union[str, int, float]) -> float:
    """'10m', '30s', '1h' 또는 초 단위 숫자를 초(float)로 변환한다."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    m = _DURATION_PATTERN.match(str(value))
    if not m:
        raise ValueError(f"시간 형식이 올바르지 않습니다: {value!r} (예: 30s, 10m, 1h)")
    return float(m.group(1)) * _DURATION_UNITS[m.group(2)]


def get_region_no_by_code(client: NcloudAPIClient, region_code: str) -> str:
    resp = client.get_region_list()
    for region in resp.get("regionList") or []:
        if region.get("regionCode") == region_code:
            return str(region.get("regionNo") or "")
    return ""


def get_zone_no_by_code(client: NcloudAPIClient, zone_code: str) -> str:
    resp = client.get_zone_list()
    for zone in resp.get("zoneList") or []:
        if zone.get("zoneCode") == zone_code:
            return str(zone.get("zoneNo") or "")
    return ""


def parse_region_no_parameter(
    client: NcloudAPIClient,
    d: ResourceData,
    default_region: Optional[str] = None,
) -> Optional[str]:
    """
    region_no > region_code > 프로바이더 기본 리전 순으로 regionNo 를 결정한다.
    아무것도 없으면 None (API 기본값 사용).
    """
    if d.is_set("region_no"):
        return str(d.get("region_no"))

    region_code = d.get("region_code") if d.is_set("region_code") else default_region
    if not region_code:
        return None

    region_no = get_region_no_by_code(client, region_code)
    if not region_no:
        raise ValueError(
            f"no region data for region_code `{region_code}`. please change region_code and try again"
        )
    return region_no


def parse_zone_no_parameter(client: NcloudAPIClient, d: ResourceData) -> Optional[str]:
    if d.is_set("zone_no"):
        return str(d.get("zone_no"))

    if not d.is_set("zone_code"):
        return None

    zone_code = d.get("zone_code")
    zone_no = get_zone_no_by_code(client, zone_code)
    if not zone_no:
        raise ValueError(
            f"no zone data for zone_code `{zone_code}`. please change zone_code and try again"
        )
    return zone_no


def data_resource_id_hash(ids: Iterable[str]) -> str:
    buf = "".join(f"{i}-" for i in ids)
    return str(zlib.crc32(buf.encode("utf-8")))


def write_to_file(file_path: str, data: Any) -> None:
    logger.info("output_file 기록: %s", file_path)
    if os.path.exists(file_path):
        os.remove(file_path)

    if isinstance(data, str):
        text = data
    else:
        text = json.dumps(data, indent="\t", ensure_ascii=False)

    with open(file_path, "w", encoding="utf-8") as f:
        f.write(text)
