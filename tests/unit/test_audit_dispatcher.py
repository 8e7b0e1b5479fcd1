"""AuditDispatcher: fire-and-forget queueing, sink failures, drop on overflow."""

import asyncio

from sqlgate.application.dtos.audit_log import QueryAuditEntry
from sqlgate.infrastructure.services.audit_dispatcher import AuditDispatcher


def _entry(query: str = "SELECT 1") -> QueryAuditEntry:
    return QueryAuditEntry(
        connection_id="c1",
        query=query,
        status="SUCCESS",
        executed_by="alice",
        execution_status="success",
    )


class RecordingSink:
    def __init__(self, fail_on: str | None = None) -> None:
        self.written: list[QueryAuditEntry] = []
        self.fail_on = fail_on

    async def write(self, entry: QueryAuditEntry) -> None:
        if entry.query == self.fail_on:
            raise RuntimeError("audit store unavailable")
        self.written.append(entry)


async def test_submitted_entries_reach_sink() -> None:
    sink = RecordingSink()
    dispatcher = AuditDispatcher(sink, max_size=10)
    dispatcher.start()
    dispatcher.submit(_entry("SELECT 1"))
    dispatcher.submit(_entry("SELECT 2"))
    await dispatcher.flush()
    assert [e.query for e in sink.written] == ["SELECT 1", "SELECT 2"]
    await dispatcher.stop()
    assert dispatcher.running is False


async def test_sink_failure_does_not_stop_dispatcher() -> None:
    sink = RecordingSink(fail_on="boom")
    dispatcher = AuditDispatcher(sink)
    dispatcher.start()
    dispatcher.submit(_entry("boom"))
    dispatcher.submit(_entry("SELECT 2"))
    await dispatcher.flush()
    assert [e.query for e in sink.written] == ["SELECT 2"]
    assert dispatcher.running is True
    await dispatcher.stop()


async def test_submit_before_start_drops_entry() -> None:
    sink = RecordingSink()
    dispatcher = AuditDispatcher(sink)
    dispatcher.submit(_entry())
    assert sink.written == []


async def test_full_queue_drops_without_blocking() -> None:
    release = asyncio.Event()

    class SlowSink(RecordingSink):
        async def write(self, entry: QueryAuditEntry) -> None:
            await release.wait()
            self.written.append(entry)

    sink = SlowSink()
    dispatcher = AuditDispatcher(sink, max_size=1)
    dispatcher.start()
    dispatcher.submit(_entry("first"))
    await asyncio.sleep(0)  # drain task picks up "first" and waits
    dispatcher.submit(_entry("second"))
    dispatcher.submit(_entry("third"))  # queue holds one; dropped
    release.set()
    await dispatcher.flush()
    assert [e.query for e in sink.written] == ["first", "second"]
    await dispatcher.stop()
