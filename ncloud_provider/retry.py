"""
retry
-----

일시적인 API 오류에 대한 재시도 래퍼와,
리소스가 목표 상태에 도달할 때까지 기다리는 폴링 유틸.
"""

from __future__ import annotations

import queue
import threading
import time
from typing import Callable, Iterable, Optional, TypeVar

from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception,
    stop_after_delay,
    wait_exponential,
)

from .api_client import NcloudApiError
from .logging_utils import get_logger


logger = get_logger(__name__)

T = TypeVar("T")


class WaitTimeoutError(RuntimeError):
    pass


def is_retryable_error(err: BaseException, codes: Iterable[str]) -> bool:
    if not isinstance(err, NcloudApiError) or err.return_code is None:
        return False
    return str(err.return_code) in {str(c) for c in codes}


def retry(
    timeout: float,
    fn: Callable[[], T],
    *,
    codes: Iterable[str],
    min_delay: float = 0.5,
    max_delay: float = 10.0,
    sleep: Callable[[float], None] = time.sleep,
    on_retry: Optional[Callable[[BaseException], None]] = None,
) -> T:
    """
    fn 을 성공할 때까지 호출한다.

    - returnCode 가 codes 에 포함된 NcloudApiError: 지수 백오프(max_delay 까지)로 재시도
    - 그 외 예외: 즉시 전파
    - timeout 초과: 마지막 예외를 전파
    """
    allowed = [str(c) for c in codes]

    def _before_sleep(state: RetryCallState) -> None:
        err = state.outcome.exception() if state.outcome is not None else None
        logger.debug(
            "재시도 대기 %.1fs (attempt=%d): %s",
            state.next_action.sleep if state.next_action is not None else 0.0,
            state.attempt_number,
            err,
        )
        if on_retry is not None and err is not None:
            on_retry(err)

    retrying = Retrying(
        retry=retry_if_exception(lambda e: is_retryable_error(e, allowed)),
        stop=stop_after_delay(timeout),
        wait=wait_exponential(multiplier=min_delay, max=max_delay),
        sleep=sleep,
        before_sleep=_before_sleep,
        reraise=True,
    )
    return retrying(fn)


def wait_for(
    refresh: Callable[[], bool],
    *,
    timeout: float,
    interval: float = 1.0,
    description: str = "",
) -> None:
    """
    refresh() 가 True 를 돌려줄 때까지 백그라운드 스레드에서 interval 간격으로 폴링한다.

    결과는 크기 1짜리 큐로 전달받고, 호출 측은 timeout 과 경쟁한다.
    refresh() 에서 발생한 예외는 그대로 호출 측으로 전파된다.
    """
    results: queue.Queue[Optional[BaseException]] = queue.Queue(maxsize=1)
    stop = threading.Event()

    def _poll() -> None:
        while not stop.is_set():
            try:
                done = refresh()
            except Exception as e:  # noqa: BLE001
                results.put(e)
                return
            if done:
                results.put(None)
                return
            stop.wait(interval)

    poller = threading.Thread(target=_poll, daemon=True)
    poller.start()

    try:
        outcome = results.get(timeout=timeout)
    except queue.Empty as e:
        stop.set()
        raise WaitTimeoutError(f"TIMEOUT : {description} ({timeout}초)") from e

    if outcome is not None:
        raise outcome
