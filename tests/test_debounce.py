"""
tests/test_debounce.py

Coalescing of raw events and delivery of batches through the bounded
channel.
"""
import asyncio

import pytest

from watchrun.exceptions import DebounceError
from watchrun.watchdog.debounce import CHANNEL_CLOSED, DebounceResult, EventDebouncer, merge_kinds
from watchrun.watchdog.events import EventKind
from tests.conftest import make_event


def test_repeated_event_is_coalesced():
    debouncer = EventDebouncer(debounce_time=0)
    for _ in range(3):
        debouncer.add_event(make_event(EventKind.MODIFY_CONTENT, "/w/a.txt"))

    events, errors = debouncer.take_ready()

    assert events == [make_event(EventKind.MODIFY_CONTENT, "/w/a.txt")]
    assert errors == []
    assert debouncer.get_stats()['events_debounced'] == 2


def test_create_followed_by_writes_is_one_create():
    debouncer = EventDebouncer(debounce_time=0)
    debouncer.add_event(make_event(EventKind.CREATE_FILE, "/w/a.txt"))
    debouncer.add_event(make_event(EventKind.MODIFY_CONTENT, "/w/a.txt"))
    debouncer.add_event(make_event(EventKind.ACCESS_CLOSE_WRITE, "/w/a.txt"))

    events, _ = debouncer.take_ready()

    assert events == [make_event(EventKind.CREATE_FILE, "/w/a.txt")]


def test_modify_and_close_write_are_one_content_change():
    debouncer = EventDebouncer(debounce_time=0)
    debouncer.add_event(make_event(EventKind.MODIFY_CONTENT, "/w/a.txt"))
    debouncer.add_event(make_event(EventKind.ACCESS_CLOSE_WRITE, "/w/a.txt"))

    events, _ = debouncer.take_ready()

    assert [e.kind for e in events] == [EventKind.MODIFY_CONTENT]


def test_different_paths_stay_separate():
    debouncer = EventDebouncer(debounce_time=0)
    debouncer.add_event(make_event(EventKind.CREATE_FILE, "/w/a.txt"))
    debouncer.add_event(make_event(EventKind.CREATE_FILE, "/w/b.txt"))
    debouncer.add_event(make_event(EventKind.RENAME_BOTH, "/w/a.txt", "/w/c.txt"))

    events, _ = debouncer.take_ready()

    assert [e.kind for e in events] == [
        EventKind.CREATE_FILE, EventKind.CREATE_FILE, EventKind.RENAME_BOTH,
    ]


@pytest.mark.parametrize("earlier, later, merged", [
    (EventKind.CREATE_FILE, EventKind.MODIFY_CONTENT, EventKind.CREATE_FILE),
    (EventKind.CREATE_FOLDER, EventKind.MODIFY_METADATA, EventKind.CREATE_FOLDER),
    (EventKind.CREATE_FILE, EventKind.ACCESS_CLOSE_WRITE, EventKind.CREATE_FILE),
    (EventKind.ACCESS_CLOSE_WRITE, EventKind.MODIFY_CONTENT, EventKind.MODIFY_CONTENT),
    (EventKind.MODIFY_METADATA, EventKind.MODIFY_METADATA, EventKind.MODIFY_METADATA),
    (EventKind.MODIFY_METADATA, EventKind.MODIFY_CONTENT, EventKind.MODIFY_CONTENT),
    (EventKind.CREATE_FILE, EventKind.REMOVE_FILE, EventKind.REMOVE_FILE),
    (EventKind.REMOVE_FILE, EventKind.CREATE_FILE, EventKind.CREATE_FILE),
])
def test_merge_kinds(earlier, later, merged):
    assert merge_kinds(earlier, later) is merged


def test_events_inside_window_are_held_back():
    debouncer = EventDebouncer(debounce_time=60)
    debouncer.add_event(make_event(EventKind.CREATE_FILE, "/w/a.txt"))

    assert debouncer.take_ready() == ([], [])
    assert debouncer.get_stats()['active_events'] == 1

    events, _ = debouncer.take_ready(force=True)
    assert len(events) == 1
    assert debouncer.get_stats()['active_events'] == 0


def test_errors_are_returned_once():
    debouncer = EventDebouncer(debounce_time=60)
    debouncer.add_error(DebounceError("overflow"))

    _, errors = debouncer.take_ready()
    assert [str(e) for e in errors] == ["overflow"]
    assert debouncer.take_ready() == ([], [])


def test_default_tick_follows_window():
    assert EventDebouncer(debounce_time=2.0).tick == 0.5
    assert EventDebouncer(debounce_time=0).tick == 0.05


@pytest.mark.asyncio
async def test_run_delivers_error_batch_before_event_batch():
    debouncer = EventDebouncer(debounce_time=0, tick=0.01)
    channel = asyncio.Queue()
    debouncer.add_event(make_event(EventKind.CREATE_FILE, "/w/a.txt"))
    debouncer.add_error(DebounceError("overflow"))

    task = asyncio.create_task(debouncer.run(channel))
    first = await asyncio.wait_for(channel.get(), timeout=5)
    second = await asyncio.wait_for(channel.get(), timeout=5)
    debouncer.stop()
    await asyncio.wait_for(task, timeout=5)

    assert not first.ok and first.events == []
    assert second.ok
    assert second.events == [make_event(EventKind.CREATE_FILE, "/w/a.txt")]


@pytest.mark.asyncio
async def test_run_suspends_while_channel_is_full():
    debouncer = EventDebouncer(debounce_time=0, tick=0.01)
    channel = asyncio.Queue(maxsize=1)
    task = asyncio.create_task(debouncer.run(channel))

    debouncer.add_event(make_event(EventKind.CREATE_FILE, "/w/a"))
    first = await asyncio.wait_for(channel.get(), timeout=5)
    debouncer.add_event(make_event(EventKind.CREATE_FILE, "/w/b"))
    await asyncio.sleep(0.05)
    debouncer.add_event(make_event(EventKind.CREATE_FILE, "/w/c"))
    await asyncio.sleep(0.05)

    # b fills the channel; c is taken but its put is blocked
    assert channel.full()
    second = await asyncio.wait_for(channel.get(), timeout=5)
    third = await asyncio.wait_for(channel.get(), timeout=5)
    debouncer.stop()
    await asyncio.wait_for(task, timeout=5)

    names = [batch.events[0].paths[0].name for batch in (first, second, third)]
    assert names == ["a", "b", "c"]


@pytest.mark.asyncio
async def test_close_puts_end_marker():
    debouncer = EventDebouncer()
    channel = asyncio.Queue()
    await debouncer.close(channel)
    assert channel.get_nowait() is CHANNEL_CLOSED


def test_debounce_result_ok():
    assert DebounceResult().ok
    assert not DebounceResult(errors=[DebounceError("x")]).ok
