import json
import logging
import os
import sys
from typing import Any, Mapping, Optional


_TF_LOG_LEVELS = {
    "TRACE": logging.DEBUG,
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
}


def setup_logging(verbosity: int = 0) -> None:
    level = logging.INFO
    tf_log = (os.getenv("TF_LOG") or "").strip().upper()
    if tf_log in _TF_LOG_LEVELS:
        level = _TF_LOG_LEVELS[tf_log]
    if verbosity >= 1:
        level = logging.DEBUG

    # stdout 은 CLI 결과(JSON) 출력용이므로 로그는 stderr 로 보낸다.
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        stream=sys.stderr,
    )


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


_api_logger = get_logger("ncloud_provider.api")


def _dump(params: Any) -> str:
    try:
        return json.dumps(params, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        return repr(params)


def log_common_request(tag: str, params: Any) -> None:
    _api_logger.debug("%s params=%s", tag, _dump(params))


def log_common_response(tag: str, common: Optional[Mapping[str, Any]]) -> None:
    common = common or {}
    _api_logger.debug(
        "%s response code=%s, msg=%s, requestId=%s",
        tag,
        common.get("returnCode"),
        common.get("returnMessage"),
        common.get("requestId"),
    )


def log_error_response(tag: str, err: BaseException, params: Any) -> None:
    _api_logger.error("%s error params=%s, err=%s", tag, _dump(params), err)
