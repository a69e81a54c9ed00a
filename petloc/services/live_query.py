# petloc/services/live_query.py
"""
Firestore 실시간 쿼리(on_snapshot)를 메모리 목록으로 유지하는 구독 도우미.

- 스냅샷 알림이 올 때마다 목록 전체를 새로 만듭니다 (증분 patch 없음).
- 서버 정렬을 쓸 수 없는 쿼리는 sort_key로 매번 클라이언트 정렬합니다.
- with 블록을 벗어나면(예외, 클라이언트 연결 종료 포함) 반드시 구독을 해제합니다.
- 오류는 error 속성과 오류 이벤트로 전달되며 자동 재구독은 하지 않습니다.
"""

import json
import queue
import logging
import threading
from typing import Any, Callable, Iterator, List, Optional

from petloc.utils.datetime_utils import DateTimeUtils

logger = logging.getLogger(__name__)


class LiveQueryError(RuntimeError):
    """구독 중 발생한 오류. 소비자에게 오류 이벤트로 전달됩니다."""


class LiveQuery:
    def __init__(self,
                 query,
                 to_item: Callable[[Any], Optional[dict]],
                 sort_key: Optional[str] = None,
                 descending: bool = True,
                 item_filter: Optional[Callable[[dict], bool]] = None):
        self._query = query
        self._to_item = to_item
        self._sort_key = sort_key
        self._descending = descending
        self._item_filter = item_filter
        self._watch = None
        self._updates: "queue.Queue" = queue.Queue()
        self._lock = threading.Lock()
        self.items: List[dict] = []
        self.error: Optional[str] = None

    # --- 구독 수명 관리 ---
    def __enter__(self) -> "LiveQuery":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.stop()
        return False

    def start(self):
        try:
            self._watch = self._query.on_snapshot(self._on_snapshot)
        except Exception as e:
            logger.error(f"실시간 구독 시작 실패: {e}", exc_info=True)
            self._fail(e)

    def stop(self):
        watch, self._watch = self._watch, None
        if watch is not None:
            try:
                watch.unsubscribe()
            except Exception as e:
                logger.warning(f"실시간 구독 해제 중 오류 (무시됨): {e}")

    # --- 스냅샷 처리 ---
    def _on_snapshot(self, docs, changes, read_time):
        try:
            items = [item for item in (self._to_item(doc) for doc in docs) if item is not None]
            if self._item_filter:
                items = [item for item in items if self._item_filter(item)]
            if self._sort_key:
                items.sort(key=lambda item: DateTimeUtils.sort_value(item.get(self._sort_key)),
                           reverse=self._descending)
        except Exception as e:
            logger.error(f"스냅샷 처리 실패: {e}", exc_info=True)
            self._fail(e)
            return

        with self._lock:
            self.items = items
        self._updates.put(items)

    def _fail(self, e: Exception):
        self.error = str(e)
        self._updates.put(LiveQueryError(self.error))

    def updates(self, timeout: float) -> Iterator[Optional[List[dict]]]:
        """
        새 목록이 올 때마다 yield합니다. timeout 동안 변화가 없으면 None(heartbeat).
        오류가 전달되면 LiveQueryError를 발생시키고 종료합니다.
        """
        while True:
            try:
                update = self._updates.get(timeout=timeout)
            except queue.Empty:
                yield None
                continue
            if isinstance(update, LiveQueryError):
                raise update
            yield update


def _sse_frame(event: str, payload: Any) -> str:
    return f"event: {event}\ndata: {json.dumps(payload, ensure_ascii=False, default=str)}\n\n"


def sse_stream(live_query: LiveQuery, dump: Callable[[List[dict]], Any], heartbeat: float) -> Iterator[str]:
    """
    LiveQuery를 Server-Sent Events 프레임으로 변환하는 제너레이터.
    클라이언트가 연결을 끊으면 제너레이터가 닫히면서 with 블록이 구독을 해제합니다.
    """
    with live_query:
        try:
            for items in live_query.updates(timeout=heartbeat):
                if items is None:
                    yield ": keep-alive\n\n"
                    continue
                yield _sse_frame('snapshot', dump(items))
        except LiveQueryError as e:
            yield _sse_frame('error', {"error_code": "SUBSCRIPTION_FAILED", "message": str(e)})
