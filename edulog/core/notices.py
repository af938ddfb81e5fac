"""
User-visible notices (toasts) and the board that collects them.
"""

from collections import deque
from dataclasses import dataclass, asdict
from enum import Enum
from typing import Deque, Dict, List


class NoticeKind(str, Enum):
    SUCCESS = "success"
    INFO = "info"
    ERROR = "error"


@dataclass(frozen=True)
class Notice:
    text: str
    kind: NoticeKind = NoticeKind.SUCCESS

    def to_dict(self) -> Dict[str, str]:
        data = asdict(self)
        data["kind"] = self.kind.value
        return data


RECORD_SAVED_LOCALLY = "로컬 저장 완료"
RECORD_UPDATED = "수정 완료"
PUSH_SENT = "구글 시트 전송 성공"
PUSH_FAILED = "시트 전송 실패"
ROSTER_FETCH_FAILED = "명단 불러오기 실패"
SETTINGS_SAVED = "설정이 저장되었습니다."
POLISH_SUCCEEDED = "AI 변환 성공"
POLISH_FAILED = "AI 변환 실패"


class NoticeBoard:
    """
    Bounded feed of notices that arrive after their request returned:
    record push results and roster refresh failures.
    """

    def __init__(self, maxlen: int = 50):
        self._notices: Deque[Notice] = deque(maxlen=maxlen)

    def post(self, notice: Notice) -> Notice:
        self._notices.append(notice)
        return notice

    def peek(self) -> List[Notice]:
        return list(self._notices)

    def drain(self) -> List[Notice]:
        """Return and clear all pending notices, oldest first."""
        notices = list(self._notices)
        self._notices.clear()
        return notices
