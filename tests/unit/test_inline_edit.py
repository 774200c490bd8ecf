"""Tests for the inline edit dispatcher."""

import asyncio

import pytest

from dealdesk.core.fields import DealField, EnumValue, NumericValue
from dealdesk.core.model import DealStage
from dealdesk.ui.inline_edit import EditStatus, InlineEditDispatcher
from dealdesk.ui.notices import NoticeLevel, NoticeRecorder

pytestmark = pytest.mark.unit


def test_successful_edit_forwards_raw_payload():
    calls = []
    notices = NoticeRecorder()

    async def update(deal_id, fields):
        calls.append((deal_id, fields))

    dispatcher = InlineEditDispatcher(update, notices)
    outcome = asyncio.run(dispatcher.submit("d1", "probability", "65"))

    assert outcome.ok
    assert outcome.value == NumericValue(65.0)
    assert calls == [("d1", {"probability": 65})]
    assert notices.last.title == "Deal updated"
    assert notices.last.level is NoticeLevel.INFO
    assert not dispatcher.pending


def test_sync_collaborator_is_supported():
    calls = []
    dispatcher = InlineEditDispatcher(lambda deal_id, fields: calls.append(fields))
    outcome = asyncio.run(dispatcher.submit("d1", DealField.STAGE, "Won"))
    assert outcome.status is EditStatus.UPDATED
    assert outcome.value == EnumValue(DealStage.WON)
    assert calls == [{"stage": "Won"}]


def test_rejected_update_emits_failure_notice_and_changes_nothing():
    notices = NoticeRecorder()

    async def update(deal_id, fields):
        raise RuntimeError("backend said no")

    dispatcher = InlineEditDispatcher(update, notices)
    outcome = asyncio.run(dispatcher.submit("d1", "customer_name", "Acme"))

    assert outcome.status is EditStatus.FAILED
    assert outcome.error == "backend said no"
    assert len(notices.notices) == 1
    assert notices.last.title == "Update failed"
    assert "customer_name" in notices.last.description
    assert notices.last.level is NoticeLevel.ERROR
    assert not dispatcher.is_pending("d1", "customer_name")


def test_false_result_counts_as_failure():
    notices = NoticeRecorder()
    dispatcher = InlineEditDispatcher(lambda deal_id, fields: False, notices)
    outcome = asyncio.run(dispatcher.submit("d1", "region", "EU"))
    assert outcome.status is EditStatus.FAILED
    assert notices.last.level is NoticeLevel.ERROR


@pytest.mark.parametrize("field, value", [("probability", "200"), ("colour", "red")])
def test_invalid_edit_never_reaches_collaborator(field, value):
    calls = []
    notices = NoticeRecorder()
    dispatcher = InlineEditDispatcher(lambda *args: calls.append(args), notices)
    outcome = asyncio.run(dispatcher.submit("d1", field, value))
    assert outcome.status is EditStatus.FAILED
    assert calls == []
    assert notices.last.title == "Update failed"


def test_same_cell_is_rejected_while_pending_other_cells_proceed():
    calls = []
    notices = NoticeRecorder()

    async def scenario():
        release = asyncio.Event()

        async def update(deal_id, fields):
            calls.append(fields)
            await release.wait()

        dispatcher = InlineEditDispatcher(update, notices)
        first = asyncio.create_task(dispatcher.submit("d1", "stage", "Won"))
        await asyncio.sleep(0)
        assert dispatcher.is_pending("d1", "stage")
        second = await dispatcher.submit("d1", "stage", "Lost")
        other = asyncio.create_task(dispatcher.submit("d1", "priority", 2))
        await asyncio.sleep(0)
        release.set()
        return await first, second, await other, dispatcher

    first, second, other, dispatcher = asyncio.run(scenario())
    assert first.status is EditStatus.UPDATED
    assert second.status is EditStatus.REJECTED
    assert other.status is EditStatus.UPDATED
    assert calls == [{"stage": "Won"}, {"priority": 2}]
    assert not dispatcher.pending
    assert [n.title for n in notices.notices] == ["Deal updated", "Deal updated"]
