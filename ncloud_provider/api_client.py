"""
api_client
----------

Naver Cloud Platform(Classic) server API v2 REST 호출을 담당하는 모듈.

모든 action 은 API Gateway 를 통해 GET 으로 호출하며,
signature v2 (HMAC-SHA256) 헤더로 인증한다.
응답은 JSON 으로 받아 `<action>Response` 내부 객체(dict)를 그대로 돌려준다.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import time
from textwrap import shorten
from typing import Any, Dict, List, Mapping, Optional, Tuple
from urllib.parse import urlencode

import requests

from .config import ProviderConfig
from .logging_utils import get_logger


logger = get_logger(__name__)

SERVER_API_PATH = "/server/v2"


class NcloudApiError(RuntimeError):
    """
    ncloud API 가 오류 응답을 돌려준 경우.

    return_code 는 재시도 여부 판단(allow-list)에 사용된다.
    전송 계층 오류(연결 실패 등)는 return_code 가 None 이다.
    """

    def __init__(self, action: str, return_code: Optional[str], message: str) -> None:
        self.action = action
        self.return_code = return_code
        self.message = message
        super().__init__(f"{action} 실패 (returnCode={return_code}): {message}")


def make_signature(method: str, uri: str, timestamp: str, access_key: str, secret_key: str) -> str:
    message = f"{method} {uri}\n{timestamp}\n{access_key}"
    digest = hmac.new(secret_key.encode("utf-8"), message.encode("utf-8"), hashlib.sha256).digest()
    return base64.b64encode(digest).decode("utf-8")


def _scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def encode_params(params: Mapping[str, Any]) -> List[Tuple[str, str]]:
    """
    요청 파라미터를 ncloud 쿼리 형식으로 펼친다.

    - 리스트: name.1, name.2, ...
    - dict 리스트: name.1.key, ...
    - None / 빈 문자열은 생략
    """
    pairs: List[Tuple[str, str]] = []
    for name, value in params.items():
        if value is None or value == "":
            continue
        if isinstance(value, (list, tuple)):
            for idx, item in enumerate(value, start=1):
                if isinstance(item, Mapping):
                    for sub_key, sub_value in item.items():
                        if sub_value is None or sub_value == "":
                            continue
                        pairs.append((f"{name}.{idx}.{sub_key}", _scalar(sub_value)))
                elif item is not None and item != "":
                    pairs.append((f"{name}.{idx}", _scalar(item)))
            continue
        pairs.append((name, _scalar(value)))
    return pairs


def _parse_error_body(body: Any) -> Tuple[Optional[str], str]:
    if isinstance(body, Mapping):
        err = body.get("responseError")
        if isinstance(err, Mapping):
            return err.get("returnCode"), err.get("returnMessage") or ""
        err = body.get("error")
        if isinstance(err, Mapping):
            return err.get("errorCode"), err.get("message") or ""
    return None, ""


class NcloudAPIClient:
    def __init__(self, config: ProviderConfig, session: Optional[requests.Session] = None) -> None:
        self._config = config
        self._session = session or requests.Session()

    @property
    def config(self) -> ProviderConfig:
        return self._config

    def _headers(self, uri: str) -> Dict[str, str]:
        ts = str(int(time.time() * 1000))
        return {
            "x-ncp-apigw-timestamp": ts,
            "x-ncp-iam-access-key": self._config.access_key,
            "x-ncp-apigw-signature-v2": make_signature(
                "GET", uri, ts, self._config.access_key, self._config.secret_key
            ),
        }

    def call(self, action: str, params: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        pairs = encode_params(params or {})
        pairs.append(("responseFormatType", "json"))
        uri = f"{SERVER_API_PATH}/{action}?{urlencode(pairs)}"
        url = self._config.api_gw_url + uri

        logger.debug("API 호출: GET %s", uri)
        try:
            resp = self._session.get(url, headers=self._headers(uri), timeout=self._config.request_timeout)
        except requests.RequestException as e:
            raise NcloudApiError(action, None, f"요청 전송 실패: {e}") from e

        try:
            body = resp.json()
        except ValueError:
            body = None

        if resp.status_code >= 400:
            code, message = _parse_error_body(body)
            if not message:
                message = shorten((resp.text or "").strip(), width=500) or f"HTTP {resp.status_code}"
            raise NcloudApiError(action, code or str(resp.status_code), message)

        key = f"{action}Response"
        if not isinstance(body, Mapping) or key not in body:
            code, message = _parse_error_body(body)
            if code is not None:
                raise NcloudApiError(action, code, message)
            raise NcloudApiError(action, None, f"예상하지 못한 응답 형식입니다: {shorten(resp.text or '', width=300)}")

        result = dict(body[key])
        code = str(result.get("returnCode", "0"))
        if code != "0":
            raise NcloudApiError(action, code, result.get("returnMessage") or "")
        return result

    # ---- server ----

    def get_server_instance_list(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        return self.call("getServerInstanceList", params)

    def create_server_instances(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        return self.call("createServerInstances", params)

    def stop_server_instances(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        return self.call("stopServerInstances", params)

    def terminate_server_instances(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        return self.call("terminateServerInstances", params)

    def change_server_instance_spec(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        return self.call("changeServerInstanceSpec", params)

    # ---- image ----

    def get_member_server_image_list(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        return self.call("getMemberServerImageList", params)

    # ---- region / zone ----

    def get_region_list(self) -> Dict[str, Any]:
        return self.call("getRegionList")

    def get_zone_list(self, params: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        return self.call("getZoneList", params)

    # ---- block storage ----

    def get_block_storage_instance_list(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        return self.call("getBlockStorageInstanceList", params)

    def detach_block_storage_instances(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        return self.call("detachBlockStorageInstances", params)
