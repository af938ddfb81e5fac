"""
Tests for EduLogService: local-first saves, fire-and-forget push, notices.
"""

import asyncio
import json

import httpx
import pytest

from edulog.core.notices import NoticeKind
from edulog.core.service import EduLogService
from edulog.normalizer.client import TextNormalizer
from edulog.records.store import RecordStore
from edulog.roster.cache import RefreshStatus, RosterCache
from edulog.shared.exceptions import InvalidRecordError, RecordNotFoundError
from edulog.shared.llm import LLMError
from edulog.storage.local import SHEET_URL_KEY
from edulog.sync.synchronizer import PushOutcome, RecordSynchronizer


@pytest.fixture
def make_service(storage, roster_client, mock_llm):
    def _make(sync_client=None):
        return EduLogService(
            storage=storage,
            roster=RosterCache(storage, http_client=roster_client),
            synchronizer=RecordSynchronizer(http_client=sync_client or roster_client),
            normalizer=TextNormalizer(llm=mock_llm),
        )
    return _make


@pytest.mark.asyncio
async def test_startup_loads_records_and_roster(storage, make_service, make_record, roster_url):
    RecordStore(storage).insert(make_record())
    storage.set(SHEET_URL_KEY, roster_url)

    service = make_service()
    await service.startup()

    assert len(service.store) == 1
    assert len(service.roster.classes) == 2
    assert service.roster.connected


@pytest.mark.asyncio
async def test_startup_without_url_skips_fetch(make_service, http_log):
    service = make_service()
    await service.startup()

    assert http_log == []
    assert service.roster.connected is False


@pytest.mark.asyncio
async def test_create_without_url_stays_local(make_service, student, http_log):
    service = make_service()

    result = service.create_record(student, "  수업에 적극적으로 참여함 ")

    assert result.created
    assert result.push_task is None
    assert result.record.content == "수업에 적극적으로 참여함"
    assert result.record.class_name == "2-1"
    assert result.notice.text == "로컬 저장 완료"
    assert http_log == []


@pytest.mark.asyncio
async def test_create_pushes_after_local_write(make_service, roster_url, http_log):
    service = make_service()
    await service.save_settings(roster_url)
    student = service.roster.get_student("c2", "s1")

    result = service.create_record(student, "실험 보고서를 성실히 작성함", class_id="c2")
    # Local write already durable before the push runs
    assert RecordStore(service.storage).load()[0].id == result.record.id

    push = await result.push_task
    assert push.outcome == PushOutcome.UNVERIFIED

    posts = [r for r in http_log if r.method == "POST"]
    assert len(posts) == 1
    assert json.loads(posts[0].content)["className"] == "3-2 Science"
    assert result.record.class_name == "3-2 Science"
    assert result.record.class_id == "c2"
    assert "구글 시트 전송 성공" in [n.text for n in service.notices.drain()]


@pytest.mark.asyncio
async def test_push_failure_keeps_local_record(make_service, client_for, storage, student, roster_url):
    def offline(request):
        raise httpx.ConnectError("offline", request=request)

    service = make_service(sync_client=client_for(offline))
    storage.set(SHEET_URL_KEY, roster_url)
    service.roster.save_url(roster_url)

    result = service.create_record(student, "수업에 적극적으로 참여함", class_id="c1")
    push = await result.push_task

    assert push.outcome == PushOutcome.DISPATCH_FAILED
    reloaded = RecordStore(storage).load()
    assert reloaded == [result.record]
    notices = service.notices.drain()
    assert notices[-1].text == "시트 전송 실패"
    assert notices[-1].kind == NoticeKind.ERROR


@pytest.mark.asyncio
async def test_edit_is_local_only(make_service, student, roster_url, http_log):
    service = make_service()
    await service.save_settings(roster_url)
    created = service.create_record(student, "수업에 적극적으로 참여함", class_id="c1")
    await created.push_task
    posts_before = len([r for r in http_log if r.method == "POST"])

    edited = service.save_record(student, "수업 태도가 크게 개선됨", editing_id=created.record.id)

    assert not edited.created
    assert edited.push_task is None
    assert edited.notice.text == "수정 완료"
    assert edited.record.timestamp == created.record.timestamp
    assert len(service.store) == 1
    assert len([r for r in http_log if r.method == "POST"]) == posts_before


def test_edit_unknown_record(make_service):
    with pytest.raises(RecordNotFoundError):
        make_service().edit_record("missing", "text")


def test_blank_content_rejected(make_service, student):
    service = make_service()
    with pytest.raises(InvalidRecordError):
        service.create_record(student, "   ")
    assert len(service.store) == 0


@pytest.mark.asyncio
async def test_failed_refresh_posts_notice(make_service, client_for, roster_url):
    service = make_service()
    service.roster.http_client = client_for(lambda r: httpx.Response(200, json={"not": "a list"}))

    result = await service.refresh_roster(roster_url)

    assert result.status == RefreshStatus.FAILED
    assert service.notices.drain()[-1].text == "명단 불러오기 실패"


@pytest.mark.asyncio
async def test_save_settings(make_service, roster_url):
    result = await make_service().save_settings(f" {roster_url} ")

    assert result.url == roster_url
    assert result.refresh.ok
    assert [n.text for n in result.notices] == ["설정이 저장되었습니다."]


@pytest.mark.asyncio
async def test_polish_success(make_service):
    result = await make_service().polish("발표 열심히 함")

    assert result.ok
    assert result.text == "수업 시간에 적극적으로 발표하며 탐구 태도가 향상됨."
    assert result.notice.text == "AI 변환 성공"


@pytest.mark.asyncio
async def test_polish_failure_keeps_input(make_service, mock_llm):
    mock_llm.get_completion.side_effect = LLMError("Gemini request failed (400): API key not valid.")

    result = await make_service().polish("발표 열심히 함")

    assert not result.ok
    assert result.text == "발표 열심히 함"
    assert result.notice.kind == NoticeKind.ERROR
    assert "유효하지 않은 API Key" in result.notice.text


@pytest.mark.asyncio
async def test_status_and_recent(make_service, student):
    service = make_service()
    service.create_record(student, "기록")

    status = service.status()
    assert status["record_count"] == 1
    assert status["syncing"] is False
    assert status["normalizing"] is False
    assert len(service.recent()) == 1


@pytest.mark.asyncio
async def test_returned_notices_are_not_queued(make_service, student):
    service = make_service()

    service.create_record(student, "기록")
    await service.polish("발표 열심히 함")
    await service.save_settings("")

    assert service.notices.drain() == []


@pytest.mark.asyncio
async def test_settings_saved_during_refresh_are_adopted(storage, client_for, roster_payload, mock_llm):
    entered = asyncio.Event()
    release = asyncio.Event()
    hosts = []

    async def handler(request):
        hosts.append(request.url.host)
        if request.url.host == "old.example":
            entered.set()
            await release.wait()
        return httpx.Response(200, json=roster_payload)

    service = EduLogService(
        storage=storage,
        roster=RosterCache(storage, http_client=client_for(handler)),
        normalizer=TextNormalizer(llm=mock_llm),
    )
    service.roster.save_url("https://old.example/exec")
    in_flight = asyncio.create_task(service.refresh_roster())
    await entered.wait()

    saved = await service.save_settings("https://new.example/exec")
    assert saved.refresh.status == RefreshStatus.BUSY

    release.set()
    result = await in_flight

    assert result.ok
    assert hosts == ["old.example", "new.example"]
    assert service.roster.configured_url == "https://new.example/exec"
    assert storage.get(SHEET_URL_KEY) == "https://new.example/exec"
    await service.aclose()
