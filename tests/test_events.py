from jarloc.translation.events import KIND_LOG, EventLog, TranslationEvent, emit_log
from jarloc.web.tasks import TranslationSession


def _emit(log, *messages):
    for message in messages:
        log.emit(TranslationEvent(kind=KIND_LOG, message=message))


def test_read_returns_events_after_cursor():
    log = EventLog()
    _emit(log, "m0", "m1", "m2")

    events, next_index = log.read(1)

    assert [e.message for e in events] == ["m1", "m2"]
    assert next_index == 3


def test_cursor_stays_valid_after_trimming():
    log = EventLog(max_events=5)
    _emit(log, "m0", "m1", "m2", "m3", "m4")
    _, cursor = log.read(0)
    assert cursor == 5

    _emit(log, "m5", "m6", "m7")

    events, next_index = log.read(cursor)
    assert [e.message for e in events] == ["m5", "m6", "m7"]
    assert next_index == 8
    assert len(log) == 5


def test_stale_cursor_gets_the_oldest_kept_events():
    log = EventLog(max_events=3)
    _emit(log, *[f"m{i}" for i in range(6)])

    events, next_index = log.read(1)

    assert [e.message for e in events] == ["m3", "m4", "m5"]
    assert next_index == 6


def test_clear_keeps_numbering():
    log = EventLog()
    _emit(log, "m0", "m1")
    log.clear()
    _emit(log, "m2")

    events, next_index = log.read(2)
    assert [e.message for e in events] == ["m2"]
    assert next_index == 3


def test_messages_filter_log_events():
    log = EventLog()
    emit_log(log, "hello", "success")
    log.emit(TranslationEvent(kind="state", status="running"))

    assert log.messages() == ["hello"]


def test_session_status_follows_trimmed_log():
    session = TranslationSession(config={})
    session.events = EventLog(max_events=5)
    _emit(session.events, *[f"m{i}" for i in range(5)])

    first = session.status(0)
    assert first["next"] == 5

    _emit(session.events, "m5", "m6", "m7")
    later = session.status(first["next"])

    assert [e["message"] for e in later["events"]] == ["m5", "m6", "m7"]
    assert later["next"] == 8
