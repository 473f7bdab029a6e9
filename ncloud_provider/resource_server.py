"""
resource_server
---------------

ncloud_server 리소스 (서버 인스턴스) 의 생성/조회/변경/삭제.

생성: createServerInstances -> RUN 상태까지 대기 -> 조회
삭제: 정지(NSTOP 대기) -> 추가 블록 스토리지 분리 -> 반납 -> 사라질 때까지 대기
"""

from __future__ import annotations

import time
from typing import Any, Dict, List, Mapping, Optional

from .api_client import NcloudAPIClient, NcloudApiError
from .common import (
    API_ERROR_AUTHORITY_PARAMETER,
    API_ERROR_OBJECT_IN_OPERATION,
    API_ERROR_PREVIOUS_SERVERS_NOT_TERMINATED,
    API_ERROR_SERVER_OBJECT_IN_OPERATION,
    API_ERROR_SERVER_OBJECT_IN_OPERATION_2,
    API_ERROR_UNKNOWN,
    parse_zone_no_parameter,
)
from .logging_utils import (
    get_logger,
    log_common_request,
    log_common_response,
    log_error_response,
)
from .retry import retry, wait_for
from .schema import ResourceData
from .structures import (
    expand_string_list,
    expand_tag_list_params,
    flatten_common_code,
    flatten_instance_tag_list,
    flatten_region,
    flatten_zone,
    string_or_none,
)


logger = get_logger(__name__)


STATUS_RUN = "RUN"
STATUS_STOPPED = "NSTOP"
STATUS_TERMINATED = "TERMT"

BLOCK_STORAGE_TYPE_ADDITIONAL = "SVRBS"
BLOCK_STORAGE_STATUS_DETACHED = "CREAT"

CREATE_RETRY_CODES = [
    API_ERROR_UNKNOWN,
    API_ERROR_AUTHORITY_PARAMETER,
    API_ERROR_SERVER_OBJECT_IN_OPERATION,
    API_ERROR_PREVIOUS_SERVERS_NOT_TERMINATED,
]
CHANGE_SPEC_RETRY_CODES = [API_ERROR_UNKNOWN, API_ERROR_OBJECT_IN_OPERATION]
TERMINATE_RETRY_CODES = [API_ERROR_UNKNOWN, API_ERROR_SERVER_OBJECT_IN_OPERATION_2]
DETACH_RETRY_CODES = [API_ERROR_UNKNOWN, API_ERROR_OBJECT_IN_OPERATION]

TERMINATE_RETRY_TIMEOUT = 60.0
CHANGE_SPEC_RETRY_PAUSE = 5.0

# 상태 폴링 간격(초)
WAIT_INTERVAL = 1.0


def _sleep(seconds: float) -> None:
    time.sleep(seconds)


def validate_server_config(config: Mapping[str, Any]) -> List[str]:
    if not config.get("server_image_product_code") and not config.get("member_server_image_no"):
        return [
            "server_image_product_code 와 member_server_image_no 중 하나는 반드시 지정해야 합니다."
        ]
    return []


def build_create_server_instance_params(client: NcloudAPIClient, d: ResourceData) -> Dict[str, Any]:
    params: Dict[str, Any] = {
        "serverImageProductCode": string_or_none(d.get("server_image_product_code")),
        "serverProductCode": string_or_none(d.get("server_product_code")),
        "memberServerImageNo": string_or_none(d.get("member_server_image_no")),
        "serverName": string_or_none(d.get("server_name")),
        "serverDescription": string_or_none(d.get("server_description")),
        "loginKeyName": string_or_none(d.get("login_key_name")),
        "internetLineTypeCode": string_or_none(d.get("internet_line_type_code")),
        "feeSystemTypeCode": string_or_none(d.get("fee_system_type_code")),
        "zoneNo": parse_zone_no_parameter(client, d),
        "accessControlGroupConfigurationNoList": expand_string_list(
            d.get("access_control_group_configuration_no_list")
        ),
        "userData": string_or_none(d.get("user_data")),
        "raidTypeName": string_or_none(d.get("raid_type_name")),
        "instanceTagList": expand_tag_list_params(d.get("tag_list")),
    }

    if d.get("is_protect_server_termination") is not None:
        params["isProtectServerTermination"] = bool(d.get("is_protect_server_termination"))

    return params


def get_server_instance(client: NcloudAPIClient, server_instance_no: str) -> Optional[Dict[str, Any]]:
    params = {"serverInstanceNoList": [server_instance_no]}
    log_common_request("GetServerInstanceList", params)
    try:
        resp = client.get_server_instance_list(params)
    except NcloudApiError as e:
        log_error_response("GetServerInstanceList", e, params)
        raise
    log_common_response("GetServerInstanceList", resp)

    instances = resp.get("serverInstanceList") or []
    if instances:
        return instances[0]
    return None


def _status_code(instance: Mapping[str, Any]) -> Optional[str]:
    return (instance.get("serverInstanceStatus") or {}).get("code")


def wait_for_server_instance(
    client: NcloudAPIClient,
    server_instance_no: str,
    status: str,
    timeout: float,
) -> None:
    """인스턴스 상태 코드가 status 가 되거나 인스턴스가 사라질 때까지 기다린다."""

    def _refresh() -> bool:
        instance = get_server_instance(client, server_instance_no)
        if instance is None or _status_code(instance) == status:
            return True
        logger.debug(
            "Wait server instance [%s] status [%s] to be [%s]",
            server_instance_no,
            _status_code(instance),
            status,
        )
        return False

    wait_for(
        _refresh,
        timeout=timeout,
        interval=WAIT_INTERVAL,
        description=f"Wait to server instance ({server_instance_no}) status [{status}]",
    )


def create(d: ResourceData, client: NcloudAPIClient) -> None:
    params = build_create_server_instance_params(client, d)

    def _call() -> Dict[str, Any]:
        log_common_request("CreateServerInstances", params)
        return client.create_server_instances(params)

    try:
        resp = retry(
            d.timeout("create"),
            _call,
            codes=CREATE_RETRY_CODES,
            sleep=_sleep,
            on_retry=lambda e: log_error_response("retry CreateServerInstances", e, params),
        )
    except NcloudApiError as e:
        log_error_response("CreateServerInstances", e, params)
        raise
    log_common_response("CreateServerInstances", resp)

    instances = resp.get("serverInstanceList") or []
    if not instances:
        raise RuntimeError("CreateServerInstances 응답에 serverInstanceList 가 비어 있습니다.")

    server_instance_no = str(instances[0].get("serverInstanceNo"))
    d.set_id(server_instance_no)
    logger.info("서버 인스턴스 생성 요청 완료: %s", server_instance_no)

    wait_for_server_instance(client, server_instance_no, STATUS_RUN, d.timeout("create"))
    read(d, client)


def read(d: ResourceData, client: NcloudAPIClient) -> None:
    instance = get_server_instance(client, d.id)
    if instance is None:
        logger.warning("서버 인스턴스를 찾을 수 없어 state 에서 제거합니다: %s", d.id)
        d.set_id("")
        return

    d.set("server_instance_no", instance.get("serverInstanceNo"))
    d.set("server_name", instance.get("serverName"))
    d.set("server_description", instance.get("serverDescription"))
    d.set("server_image_product_code", instance.get("serverImageProductCode"))
    d.set("server_product_code", instance.get("serverProductCode"))
    d.set("server_instance_status_name", instance.get("serverInstanceStatusName"))
    d.set("server_image_name", instance.get("serverImageName"))
    d.set("cpu_count", int(instance.get("cpuCount") or 0))
    d.set("memory_size", int(instance.get("memorySize") or 0))
    d.set("base_block_storage_size", int(instance.get("baseBlockStorageSize") or 0))
    d.set("is_fee_charging_monitoring", bool(instance.get("isFeeChargingMonitoring")))
    d.set("public_ip", instance.get("publicIp") or "")
    d.set("private_ip", instance.get("privateIp") or "")
    d.set("create_date", instance.get("createDate") or "")
    d.set("uptime", instance.get("uptime") or "")
    d.set("port_forwarding_public_ip", instance.get("portForwardingPublicIp") or "")
    d.set("port_forwarding_external_port", str(instance.get("portForwardingExternalPort") or ""))
    d.set("port_forwarding_internal_port", str(instance.get("portForwardingInternalPort") or ""))
    # user_data 는 조회 응답에 없으므로 설정값을 유지한다.
    d.set("user_data", d.get("user_data") or "")

    d.set("server_instance_status", flatten_common_code(instance.get("serverInstanceStatus")))
    d.set("platform_type", flatten_common_code(instance.get("platformType")))
    d.set("server_instance_operation", flatten_common_code(instance.get("serverInstanceOperation")))
    d.set("zone", flatten_zone(instance.get("zone")))
    d.set("region", flatten_region(instance.get("region")))
    d.set("base_block_storage_disk_type", flatten_common_code(instance.get("baseBlockStorageDiskType")))
    d.set(
        "base_block_storage_disk_detail_type",
        flatten_common_code(instance.get("baseBlockStroageDiskDetailType")
                            or instance.get("baseBlockStorageDiskDetailType")),
    )
    d.set("internet_line_type", flatten_common_code(instance.get("internetLineType")))

    d.set("tag_list", flatten_instance_tag_list(instance.get("instanceTagList")))


def update(d: ResourceData, client: NcloudAPIClient) -> None:
    if d.has_change("server_product_code"):
        params = {
            "serverInstanceNo": d.get("server_instance_no") or d.id,
            "serverProductCode": d.get("server_product_code"),
        }

        def _call() -> Dict[str, Any]:
            log_common_request("ChangeServerInstanceSpec", params)
            return client.change_server_instance_spec(params)

        def _on_retry(e: BaseException) -> None:
            log_error_response("retry ChangeServerInstanceSpec", e, params)
            _sleep(CHANGE_SPEC_RETRY_PAUSE)

        try:
            resp = retry(
                d.timeout("delete"),
                _call,
                codes=CHANGE_SPEC_RETRY_CODES,
                sleep=_sleep,
                on_retry=_on_retry,
            )
        except NcloudApiError as e:
            log_error_response("ChangeServerInstanceSpec", e, params)
            raise
        log_common_response("ChangeServerInstanceSpec", resp)

    read(d, client)


def stop_server_instance(client: NcloudAPIClient, server_instance_no: str) -> None:
    params = {"serverInstanceNoList": [server_instance_no]}
    log_common_request("StopServerInstances", params)
    try:
        resp = client.stop_server_instances(params)
    except NcloudApiError as e:
        log_error_response("StopServerInstances", e, params)
        raise
    log_common_response("StopServerInstances", resp)


def terminate_server_instance(client: NcloudAPIClient, server_instance_no: str) -> None:
    params = {"serverInstanceNoList": [server_instance_no]}

    def _call() -> Dict[str, Any]:
        log_common_request("TerminateServerInstances", params)
        return client.terminate_server_instances(params)

    try:
        resp = retry(
            TERMINATE_RETRY_TIMEOUT,
            _call,
            codes=TERMINATE_RETRY_CODES,
            sleep=_sleep,
            on_retry=lambda e: log_error_response("retry TerminateServerInstances", e, params),
        )
    except NcloudApiError as e:
        log_error_response("TerminateServerInstances", e, params)
        raise
    log_common_response("TerminateServerInstances", resp)


def get_block_storage_instance_list(
    client: NcloudAPIClient,
    server_instance_no: str,
) -> List[Dict[str, Any]]:
    params = {"serverInstanceNo": server_instance_no}
    log_common_request("GetBlockStorageInstanceList", params)
    try:
        resp = client.get_block_storage_instance_list(params)
    except NcloudApiError as e:
        log_error_response("GetBlockStorageInstanceList", e, params)
        raise
    log_common_response("GetBlockStorageInstanceList", resp)
    return list(resp.get("blockStorageInstanceList") or [])


def _get_block_storage_instance(client: NcloudAPIClient, block_storage_no: str) -> Optional[Dict[str, Any]]:
    resp = client.get_block_storage_instance_list({"blockStorageInstanceNoList": [block_storage_no]})
    storages = resp.get("blockStorageInstanceList") or []
    return storages[0] if storages else None


def detach_block_storage(client: NcloudAPIClient, block_storage_no: str, timeout: float) -> None:
    params = {"blockStorageInstanceNoList": [block_storage_no]}

    def _call() -> Dict[str, Any]:
        log_common_request("DetachBlockStorageInstances", params)
        return client.detach_block_storage_instances(params)

    try:
        resp = retry(
            timeout,
            _call,
            codes=DETACH_RETRY_CODES,
            sleep=_sleep,
            on_retry=lambda e: log_error_response("retry DetachBlockStorageInstances", e, params),
        )
    except NcloudApiError as e:
        log_error_response("DetachBlockStorageInstances", e, params)
        raise
    log_common_response("DetachBlockStorageInstances", resp)

    def _refresh() -> bool:
        storage = _get_block_storage_instance(client, block_storage_no)
        if storage is None:
            return True
        return (storage.get("blockStorageInstanceStatus") or {}).get("code") == BLOCK_STORAGE_STATUS_DETACHED

    wait_for(
        _refresh,
        timeout=timeout,
        interval=WAIT_INTERVAL,
        description=f"Wait to block storage ({block_storage_no}) status [{BLOCK_STORAGE_STATUS_DETACHED}]",
    )


def detach_block_storage_by_server_instance_no(
    client: NcloudAPIClient,
    server_instance_no: str,
    timeout: float,
) -> None:
    """기본 스토리지(BASIC)를 제외한 추가 블록 스토리지를 모두 분리한다."""
    for storage in get_block_storage_instance_list(client, server_instance_no):
        if (storage.get("blockStorageType") or {}).get("code") != BLOCK_STORAGE_TYPE_ADDITIONAL:
            continue
        block_storage_no = str(storage.get("blockStorageInstanceNo"))
        logger.info("추가 블록 스토리지 분리: %s (server=%s)", block_storage_no, server_instance_no)
        detach_block_storage(client, block_storage_no, timeout)


def delete(d: ResourceData, client: NcloudAPIClient) -> None:
    server_instance_no = d.id
    instance = get_server_instance(client, server_instance_no)
    if instance is None:
        logger.info("이미 삭제된 서버 인스턴스입니다: %s", server_instance_no)
        d.set_id("")
        return

    timeout = d.timeout("delete")
    if _status_code(instance) != STATUS_STOPPED:
        stop_server_instance(client, server_instance_no)
        wait_for_server_instance(client, server_instance_no, STATUS_STOPPED, timeout)

    detach_block_storage_by_server_instance_no(client, server_instance_no, timeout)

    terminate_server_instance(client, server_instance_no)
    wait_for_server_instance(client, server_instance_no, STATUS_TERMINATED, timeout)
    logger.info("서버 인스턴스 반납 완료: %s", server_instance_no)
    d.set_id("")
