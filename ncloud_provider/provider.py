"""
provider
--------

리소스/data source 레지스트리와 라이프사이클 실행(Provider).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from .api_client import NcloudAPIClient
from .common import parse_duration
from .config import ProviderConfig
from .logging_utils import get_logger
from . import data_source_member_server_images, resource_server
from .schema import ResourceData
from .validators import (
    Validator,
    validate_internet_line_type_code,
    validate_regexp,
    validate_server_name,
)


logger = get_logger(__name__)

LifecycleFunc = Callable[[ResourceData, NcloudAPIClient], None]


class PartialStateError(RuntimeError):
    """생성 도중 실패했지만 id 가 이미 발급된 경우. state 에 그때까지의 속성을 담는다."""

    def __init__(self, message: str, state: Dict[str, Any]) -> None:
        super().__init__(message)
        self.state = state


@dataclass
class Resource:
    name: str
    read: LifecycleFunc
    create: Optional[LifecycleFunc] = None
    update: Optional[LifecycleFunc] = None
    delete: Optional[LifecycleFunc] = None
    validators: Dict[str, Validator] = field(default_factory=dict)
    conflicts_with: List[Tuple[str, str]] = field(default_factory=list)
    min_items: Dict[str, int] = field(default_factory=dict)
    extra_validator: Optional[Callable[[Mapping[str, Any]], List[str]]] = None
    # timeout 종류 -> ProviderConfig 속성 이름
    timeouts: Dict[str, str] = field(default_factory=dict)
    importable: bool = False

    def validate(self, config: Mapping[str, Any]) -> None:
        """설정값을 검증하고, 오류가 있으면 모두 모아 하나의 ValueError 로 던진다."""
        errors: List[str] = []

        for key, validator in self.validators.items():
            value = config.get(key)
            if value is None or value == "":
                continue
            errors.extend(validator(value, key))

        for a, b in self.conflicts_with:
            if config.get(a) not in (None, "") and config.get(b) not in (None, ""):
                errors.append(f"{a!r}: conflicts with {b}")

        for key, minimum in self.min_items.items():
            value = config.get(key)
            if value is not None and len(value) < minimum:
                errors.append(f"{key}: attribute supports {minimum} item minimum, config has {len(value)} declared")

        if self.extra_validator is not None:
            errors.extend(self.extra_validator(config))

        if errors:
            raise ValueError(f"{self.name} 설정 검증 실패:\n- " + "\n- ".join(errors))


RESOURCES: Dict[str, Resource] = {
    "ncloud_server": Resource(
        name="ncloud_server",
        create=resource_server.create,
        read=resource_server.read,
        update=resource_server.update,
        delete=resource_server.delete,
        validators={
            "server_name": validate_server_name,
            "internet_line_type_code": validate_internet_line_type_code,
        },
        conflicts_with=[("zone_code", "zone_no")],
        min_items={"access_control_group_configuration_no_list": 1},
        extra_validator=resource_server.validate_server_config,
        timeouts={"create": "create_timeout", "delete": "default_timeout"},
        importable=True,
    ),
}

DATA_SOURCES: Dict[str, Resource] = {
    "ncloud_member_server_images": Resource(
        name="ncloud_member_server_images",
        read=data_source_member_server_images.read,
        validators={"member_server_image_name_regex": validate_regexp},
        conflicts_with=[("region_code", "region_no")],
    ),
}


def _lookup(registry: Dict[str, Resource], name: str, kind: str) -> Resource:
    try:
        return registry[name]
    except KeyError:
        raise KeyError(
            f"알 수 없는 {kind} 입니다: {name} (허용: {', '.join(sorted(registry))})"
        ) from None


class Provider:
    def __init__(self, config: ProviderConfig, client: Optional[NcloudAPIClient] = None) -> None:
        self.config = config
        self._client = client

    @property
    def client(self) -> NcloudAPIClient:
        if self._client is None:
            self._client = NcloudAPIClient(self.config)
        return self._client

    def resource(self, name: str) -> Resource:
        return _lookup(RESOURCES, name, "resource")

    def data_source(self, name: str) -> Resource:
        return _lookup(DATA_SOURCES, name, "data source")

    def _timeouts(self, res: Resource, config: Mapping[str, Any]) -> Dict[str, float]:
        timeouts: Dict[str, float] = {"default": self.config.default_timeout}
        for kind, attr in res.timeouts.items():
            timeouts[kind] = float(getattr(self.config, attr))
        for kind, raw in (config.get("timeouts") or {}).items():
            timeouts[kind] = parse_duration(raw)
        return timeouts

    def _resource_data(
        self,
        res: Resource,
        config: Optional[Mapping[str, Any]] = None,
        state: Optional[Mapping[str, Any]] = None,
        id: str = "",  # noqa: A002
    ) -> ResourceData:
        config = dict(config or {})
        timeouts = self._timeouts(res, config)
        config.pop("timeouts", None)
        return ResourceData(config=config, state=state, id=id, timeouts=timeouts)

    def apply(
        self,
        name: str,
        config: Mapping[str, Any],
        state: Optional[Mapping[str, Any]] = None,
    ) -> Optional[Dict[str, Any]]:
        """
        직전 state 에 id 가 없으면 생성, 있으면 변경을 수행하고 새 state 를 돌려준다.
        리소스가 사라졌으면 None.
        생성 중 id 가 발급된 뒤 실패하면 PartialStateError 로 그 state 를 함께 전달한다.
        """
        res = self.resource(name)
        res.validate(config)
        d = self._resource_data(res, config, state)

        if not d.id:
            logger.info("%s 생성", name)
            if res.create is None:
                raise ValueError(f"{name} 는 생성을 지원하지 않습니다.")
            try:
                res.create(d, self.client)
            except Exception as e:
                if d.id:
                    raise PartialStateError(str(e), d.to_state()) from e
                raise
        else:
            logger.info("%s 변경: %s", name, d.id)
            if res.update is None:
                raise ValueError(f"{name} 는 변경을 지원하지 않습니다.")
            res.update(d, self.client)

        return d.to_state() if d.id else None

    def refresh(self, name: str, state: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        res = self.resource(name)
        d = self._resource_data(res, state=state)
        res.read(d, self.client)
        return d.to_state() if d.id else None

    def destroy(self, name: str, state: Mapping[str, Any]) -> None:
        res = self.resource(name)
        d = self._resource_data(res, state=state)
        if not d.id:
            logger.info("%s: state 에 id 가 없어 삭제를 건너뜁니다.", name)
            return
        if res.delete is None:
            raise ValueError(f"{name} 는 삭제를 지원하지 않습니다.")
        res.delete(d, self.client)

    def import_resource(self, name: str, id: str) -> Optional[Dict[str, Any]]:  # noqa: A002
        res = self.resource(name)
        if not res.importable:
            raise ValueError(f"{name} 는 import 를 지원하지 않습니다.")
        d = self._resource_data(res, id=id)
        res.read(d, self.client)
        return d.to_state() if d.id else None

    def read_data_source(self, name: str, config: Mapping[str, Any]) -> Dict[str, Any]:
        ds = self.data_source(name)
        ds.validate(config)
        d = self._resource_data(ds, config)
        ds.read(d, self.client)
        return d.to_state()
