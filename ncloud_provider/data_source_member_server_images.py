"""
data_source_member_server_images
--------------------------------

ncloud_member_server_images data source.
회원 서버 이미지 목록을 조회하고, 이름 정규식으로 필터링한다.
"""

from __future__ import annotations

import re
from typing import Any, Dict, List

from .api_client import NcloudAPIClient, NcloudApiError
from .common import data_resource_id_hash, parse_region_no_parameter, write_to_file
from .logging_utils import get_logger, log_common_request, log_common_response, log_error_response
from .schema import ResourceData
from .structures import expand_string_list, flatten_member_server_images


logger = get_logger(__name__)


NO_RESULTS_MESSAGE = "no results. please change search criteria and try again"


def read(d: ResourceData, client: NcloudAPIClient) -> None:
    region_no = parse_region_no_parameter(client, d, client.config.region)
    params = {
        "memberServerImageNoList": expand_string_list(d.get("member_server_image_no_list")),
        "platformTypeCodeList": expand_string_list(d.get("platform_type_code_list")),
        "regionNo": region_no,
    }

    log_common_request("GetMemberServerImageList", params)
    try:
        resp = client.get_member_server_image_list(params)
    except NcloudApiError as e:
        log_error_response("GetMemberServerImageList", e, params)
        raise
    log_common_response("GetMemberServerImageList", resp)

    images: List[Dict[str, Any]] = list(resp.get("memberServerImageList") or [])
    if d.is_set("member_server_image_name_regex"):
        pattern = re.compile(d.get("member_server_image_name_regex"))
        images = [i for i in images if pattern.search(i.get("memberServerImageName") or "")]

    if not images:
        raise RuntimeError(NO_RESULTS_MESSAGE)

    _set_attributes(d, images)


def _set_attributes(d: ResourceData, images: List[Dict[str, Any]]) -> None:
    ids = [str(i.get("memberServerImageNo")) for i in images]
    d.set_id(data_resource_id_hash(ids))
    d.set("member_server_images", flatten_member_server_images(images))
    logger.info("회원 서버 이미지 %d 건 조회", len(images))

    output = d.get("output_file")
    if output:
        write_to_file(output, d.get("member_server_images"))
