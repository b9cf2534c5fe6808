import pytest

from voicedriver.event_store import EventStore, GlobalEvents
from voicedriver.events import (
    Cancel,
    CoreEvent,
    Delayed,
    EventData,
    EventHandler,
    Periodic,
    TrackEvent,
)


class Recorder(EventHandler):
    def __init__(self, reply=None, log=None, name=None):
        self.reply = reply
        self.calls = []
        self.log = log
        self.name = name

    async def act(self, ctx):
        self.calls.append(ctx)
        if self.log is not None:
            self.log.append(self.name)
        return self.reply


def test_delayed_event_ready_only_once_due():
    store = EventStore()
    store.add_event(EventData(Delayed(1.0), Recorder()), 0.0)
    assert not store.timed_event_ready(0.5)
    assert store.timed_event_ready(1.0)


def test_empty_store_is_never_ready():
    assert not EventStore().timed_event_ready(100.0)


@pytest.mark.asyncio
async def test_delayed_event_fires_once_and_is_removed():
    store = EventStore()
    handler = Recorder()
    store.add_event(EventData(Delayed(1.0), handler), 0.0)
    await store.process_timed(1.0, "ctx")
    assert handler.calls == ["ctx"]
    assert len(store) == 0


@pytest.mark.asyncio
async def test_periodic_event_is_rescheduled():
    store = EventStore()
    handler = Recorder()
    store.add_event(EventData(Periodic(1.0), handler), 0.0)
    await store.process_timed(1.0, "tick")
    assert handler.calls == ["tick"]
    assert len(store) == 1
    assert not store.timed_event_ready(1.5)
    assert store.timed_event_ready(2.0)


@pytest.mark.asyncio
async def test_periodic_phase_only_applies_first_time():
    store = EventStore()
    handler = Recorder()
    store.add_event(EventData(Periodic(1.0, 0.25), handler), 0.0)
    assert store.timed_event_ready(0.25)
    await store.process_timed(0.25, None)
    assert not store.timed_event_ready(1.0)
    assert store.timed_event_ready(1.25)


@pytest.mark.asyncio
async def test_cancel_removes_periodic_event():
    store = EventStore()
    handler = Recorder(reply=Cancel())
    store.add_event(EventData(Periodic(1.0), handler), 0.0)
    await store.process_timed(1.0, None)
    assert len(handler.calls) == 1
    assert len(store) == 0


@pytest.mark.asyncio
async def test_delayed_handler_can_reschedule_itself():
    store = EventStore()
    handler = Recorder(reply=Delayed(2.0))
    store.add_event(EventData(Delayed(1.0), handler), 0.0)
    await store.process_timed(1.0, None)
    assert len(store) == 1
    assert not store.timed_event_ready(2.0)
    assert store.timed_event_ready(3.0)


@pytest.mark.asyncio
async def test_timed_events_fire_in_time_order():
    store = EventStore()
    order = []
    store.add_event(EventData(Delayed(3.0), Recorder(log=order, name="late")), 0.0)
    store.add_event(EventData(Delayed(1.0), Recorder(log=order, name="early")), 0.0)
    store.add_event(EventData(Delayed(5.0), Recorder(log=order, name="future")), 0.0)
    await store.process_timed(3.0, None)
    assert order == ["early", "late"]
    assert len(store) == 1


def test_local_store_drops_core_events():
    store = EventStore.new_local()
    store.add_event(EventData(CoreEvent.VOICE_PACKET, Recorder()), 0.0)
    assert len(store) == 0
    assert CoreEvent.VOICE_PACKET not in store


def test_local_store_keeps_track_events():
    store = EventStore.new_local()
    store.add_event(EventData(TrackEvent.END, Recorder()), 0.0)
    assert TrackEvent.END in store
    assert len(store) == 1


def test_cancel_event_is_not_stored():
    store = EventStore()
    store.add_event(EventData(Cancel(), Recorder()), 0.0)
    assert len(store) == 0


@pytest.mark.asyncio
async def test_untimed_handler_returning_none_persists():
    store = EventStore()
    handler = Recorder()
    store.add_event(EventData(CoreEvent.SPEAKING_UPDATE, handler), 0.0)
    await store.process_untimed(0.0, CoreEvent.SPEAKING_UPDATE, "first")
    await store.process_untimed(0.0, CoreEvent.SPEAKING_UPDATE, "second")
    assert handler.calls == ["first", "second"]
    assert CoreEvent.SPEAKING_UPDATE in store


@pytest.mark.asyncio
async def test_untimed_only_matching_handlers_fire():
    store = EventStore()
    end = Recorder()
    loop = Recorder()
    store.add_event(EventData(TrackEvent.END, end), 0.0)
    store.add_event(EventData(TrackEvent.LOOP, loop), 0.0)
    await store.process_untimed(0.0, TrackEvent.END, "ctx")
    assert end.calls == ["ctx"]
    assert loop.calls == []


@pytest.mark.asyncio
async def test_untimed_without_handlers_is_noop():
    store = EventStore()
    await store.process_untimed(0.0, TrackEvent.PAUSE, None)
    assert TrackEvent.PAUSE not in store
    assert len(store) == 0


def test_global_add_event_uses_global_time():
    global_events = GlobalEvents(time=5.0)
    global_events.add_event(EventData(Delayed(1.0), Recorder()))
    assert not global_events.store.timed_event_ready(5.5)
    assert global_events.store.timed_event_ready(6.0)


@pytest.mark.asyncio
async def test_global_fire_core_event_calls_handler():
    global_events = GlobalEvents()
    handler = Recorder()
    global_events.add_event(EventData(CoreEvent.DRIVER_CONNECT, handler))
    await global_events.fire_core_event(CoreEvent.DRIVER_CONNECT, "connected")
    assert handler.calls == ["connected"]


def test_fire_track_event_queues_indices():
    global_events = GlobalEvents()
    global_events.fire_track_event(TrackEvent.END, 0)
    global_events.fire_track_event(TrackEvent.END, 2)
    global_events.fire_track_event(TrackEvent.PAUSE, 1)
    assert global_events.awaiting_tick == {TrackEvent.END: [0, 2], TrackEvent.PAUSE: [1]}


def test_remove_handlers_clears_store():
    global_events = GlobalEvents()
    global_events.add_event(EventData(CoreEvent.RTCP_PACKET, Recorder()))
    global_events.add_event(EventData(Periodic(1.0), Recorder()))
    assert len(global_events.store) == 2
    global_events.remove_handlers()
    assert len(global_events.store) == 0