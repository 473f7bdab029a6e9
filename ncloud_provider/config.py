from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional, List

from dotenv import load_dotenv


ENV_FILES_DEFAULT_ORDER = [".env", ".env.ncloud"]

DEFAULT_API_GW_URL = "https://ncloud.apigw.ntruss.com"

# 초 단위
DEFAULT_REQUEST_TIMEOUT = 30.0
DEFAULT_CREATE_TIMEOUT = 30 * 60.0
DEFAULT_TIMEOUT = 10 * 60.0


def load_env_files(base_dir: str = ".",
                   files: Optional[List[str]] = None) -> None:
    """
    주어진 디렉토리에서 .env 계열 파일을 순서대로 로드한다.
    후순위 파일이 같은 키를 덮어쓴다.
    """
    order = files or ENV_FILES_DEFAULT_ORDER
    for name in order:
        path = os.path.join(base_dir, name)
        if os.path.exists(path):
            load_dotenv(path, override=True)


def _get_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ValueError(f"{name} 는 숫자(초)여야 합니다: {raw!r}") from e


@dataclass
class ProviderConfig:
    # 필수 인증 정보
    access_key: str
    secret_key: str

    # 기본 리전 코드 (예: KR). data source 에서 region_* 미지정 시 사용
    region: Optional[str] = None
    api_gw_url: str = DEFAULT_API_GW_URL

    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    create_timeout: float = DEFAULT_CREATE_TIMEOUT
    default_timeout: float = DEFAULT_TIMEOUT

    @classmethod
    def from_env(cls) -> "ProviderConfig":
        missing: List[str] = []
        def req(name: str) -> str:
            val = os.getenv(name)
            if not val:
                missing.append(name)
            return val or ""

        cfg = cls(
            access_key=req("NCLOUD_ACCESS_KEY"),
            secret_key=req("NCLOUD_SECRET_KEY"),
            region=os.getenv("NCLOUD_REGION") or None,
            api_gw_url=os.getenv("NCLOUD_API_GW") or DEFAULT_API_GW_URL,
            request_timeout=_get_float("NCLOUD_REQUEST_TIMEOUT", DEFAULT_REQUEST_TIMEOUT),
            create_timeout=_get_float("NCLOUD_CREATE_TIMEOUT", DEFAULT_CREATE_TIMEOUT),
            default_timeout=_get_float("NCLOUD_DEFAULT_TIMEOUT", DEFAULT_TIMEOUT),
        )

        if missing:
            raise ValueError(
                "필수 환경변수가 누락되었습니다: " + ", ".join(sorted(set(missing)))
            )

        # 끝의 / 는 서명 대상 URI 를 어긋나게 하므로 제거
        cfg.api_gw_url = cfg.api_gw_url.rstrip("/")
        return cfg

    def __repr__(self) -> str:
        # 로그에 secret_key 가 남지 않도록 마스킹
        return (
            f"ProviderConfig(access_key={self.access_key!r}, secret_key='***', "
            f"region={self.region!r}, api_gw_url={self.api_gw_url!r})"
        )
