"""
schema
------

리소스 라이프사이클 함수가 다루는 속성 맵.

config 는 사용자가 원하는 값, state 는 직전 상태이다.
set() 으로 기록한 값이 가장 우선하며, 그 다음 config, state 순으로 조회한다.
"""

from __future__ import annotations

import copy
from typing import Any, Dict, Mapping, Optional


def _is_zero(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, bool):
        return value is False
    if isinstance(value, (int, float)):
        return value == 0
    if isinstance(value, (str, list, tuple, dict, set)):
        return len(value) == 0
    return False


class ResourceData:
    def __init__(
        self,
        config: Optional[Mapping[str, Any]] = None,
        state: Optional[Mapping[str, Any]] = None,
        id: str = "",  # noqa: A002
        timeouts: Optional[Mapping[str, float]] = None,
    ) -> None:
        self._config: Dict[str, Any] = dict(config or {})
        self._state: Dict[str, Any] = dict(state or {})
        self._set: Dict[str, Any] = {}
        self._id = id or str(self._state.get("id") or "")
        self._timeouts: Dict[str, float] = dict(timeouts or {})

    @property
    def id(self) -> str:
        return self._id

    def set_id(self, value: Optional[str]) -> None:
        self._id = value or ""

    def get(self, key: str, default: Any = None) -> Any:
        if key in self._set:
            return self._set[key]
        if key in self._config:
            return self._config[key]
        if key in self._state:
            return self._state[key]
        return default

    def is_set(self, key: str) -> bool:
        """값이 있고, 타입의 zero value("" / 0 / False / 빈 리스트)가 아닌 경우 True."""
        return not _is_zero(self.get(key))

    def set(self, key: str, value: Any) -> None:
        self._set[key] = value

    def has_change(self, key: str) -> bool:
        if key not in self._config:
            return False
        return self._config.get(key) != self._state.get(key)

    def timeout(self, kind: str) -> float:
        if kind in self._timeouts:
            return float(self._timeouts[kind])
        return float(self._timeouts.get("default", 0.0))

    def to_state(self) -> Dict[str, Any]:
        merged: Dict[str, Any] = {}
        merged.update(copy.deepcopy(self._state))
        merged.update(copy.deepcopy(self._config))
        merged.update(copy.deepcopy(self._set))
        merged.pop("timeouts", None)
        merged["id"] = self._id
        return merged
