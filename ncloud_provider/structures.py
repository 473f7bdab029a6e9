"""
structures
----------

속성 맵 <-> ncloud 요청/응답 변환 헬퍼.

ncloud 응답은 camelCase dict 이고, 속성 맵은 snake_case 를 쓴다.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence


def string_or_none(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


def expand_string_list(values: Optional[Sequence[Any]]) -> List[str]:
    if not values:
        return []
    return [str(v) for v in values if v is not None and v != ""]


def expand_tag_list_params(tags: Optional[Sequence[Mapping[str, Any]]]) -> List[Dict[str, str]]:
    result: List[Dict[str, str]] = []
    for idx, tag in enumerate(tags or [], start=1):
        key = (tag or {}).get("tag_key")
        value = (tag or {}).get("tag_value")
        if not key or value is None:
            raise ValueError(f"tag_list[{idx}] 에는 tag_key 와 tag_value 가 모두 필요합니다.")
        result.append({"tagKey": str(key), "tagValue": str(value)})
    return result


def flatten_common_code(common_code: Optional[Mapping[str, Any]]) -> Dict[str, str]:
    if not common_code:
        return {}
    return {
        "code": common_code.get("code") or "",
        "code_name": common_code.get("codeName") or "",
    }


def flatten_region(region: Optional[Mapping[str, Any]]) -> Dict[str, str]:
    if not region:
        return {}
    return {
        "region_no": region.get("regionNo") or "",
        "region_code": region.get("regionCode") or "",
        "region_name": region.get("regionName") or "",
    }


def flatten_zone(zone: Optional[Mapping[str, Any]]) -> Dict[str, str]:
    if not zone:
        return {}
    return {
        "zone_no": zone.get("zoneNo") or "",
        "zone_code": zone.get("zoneCode") or "",
        "zone_name": zone.get("zoneName") or "",
        "zone_description": zone.get("zoneDescription") or "",
        "region_no": zone.get("regionNo") or "",
    }


def flatten_instance_tag_list(tags: Optional[Sequence[Mapping[str, Any]]]) -> List[Dict[str, str]]:
    return [
        {"tag_key": t.get("tagKey") or "", "tag_value": t.get("tagValue") or ""}
        for t in tags or []
    ]


def flatten_member_server_image(image: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        "member_server_image_no": image.get("memberServerImageNo") or "",
        "member_server_image_name": image.get("memberServerImageName") or "",
        "member_server_image_description": image.get("memberServerImageDescription") or "",
        "original_server_instance_no": image.get("originalServerInstanceNo") or "",
        "original_server_product_code": image.get("originalServerProductCode") or "",
        "original_server_name": image.get("originalServerName") or "",
        "original_base_block_storage_disk_type": flatten_common_code(
            image.get("originalBaseBlockStorageDiskType")
        ),
        "original_server_image_product_code": image.get("originalServerImageProductCode") or "",
        "original_os_information": image.get("originalOsInformation") or "",
        "original_server_image_name": image.get("originalServerImageName") or "",
        "member_server_image_status_name": image.get("memberServerImageStatusName") or "",
        "member_server_image_status": flatten_common_code(image.get("memberServerImageStatus")),
        "member_server_image_operation": flatten_common_code(image.get("memberServerImageOperation")),
        "member_server_image_platform_type": flatten_common_code(
            image.get("memberServerImagePlatformType")
        ),
        "create_date": image.get("createDate") or "",
        "region": flatten_region(image.get("region")),
        "member_server_image_block_storage_total_rows": int(
            image.get("memberServerImageBlockStorageTotalRows") or 0
        ),
        "member_server_image_block_storage_total_size": int(
            image.get("memberServerImageBlockStorageTotalSize") or 0
        ),
    }


def flatten_member_server_images(images: Sequence[Mapping[str, Any]]) -> List[Dict[str, Any]]:
    return [flatten_member_server_image(i) for i in images]
