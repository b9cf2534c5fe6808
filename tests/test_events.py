import asyncio

import pytest

from voicedriver.events import (
    Cancel,
    CoreEvent,
    Delayed,
    EventData,
    EventHandler,
    Periodic,
    TrackEvent,
    is_global_only,
)


class Reply(EventHandler):
    def __init__(self, reply=None):
        self.reply = reply
        self.seen = []

    async def act(self, ctx):
        self.seen.append(ctx)
        return self.reply


def test_periodic_without_phase_fires_after_one_period():
    data = EventData(Periodic(2.0), Reply())
    data.compute_activation(10.0)
    assert data.fire_time == pytest.approx(10.0 + 2.0)


def test_periodic_with_phase_fires_after_phase():
    data = EventData(Periodic(2.0, 0.5), Reply())
    data.compute_activation(10.0)
    assert data.fire_time == pytest.approx(10.0 + 0.5)


def test_delayed_fires_after_delay():
    data = EventData(Delayed(3.0), Reply())
    data.compute_activation(1.0)
    assert data.fire_time == pytest.approx(1.0 + 3.0)


@pytest.mark.parametrize("event", [TrackEvent.END, CoreEvent.VOICE_PACKET, Cancel()])
def test_untimed_events_have_no_fire_time(event):
    data = EventData(event, Reply())
    data.compute_activation(5.0)
    assert data.fire_time is None


def test_fire_time_starts_unset():
    assert EventData(Delayed(1.0), Reply()).fire_time is None


@pytest.mark.parametrize(
    "event, expected",
    [
        (CoreEvent.DRIVER_CONNECT, True),
        (CoreEvent.SPEAKING_UPDATE, True),
        (TrackEvent.LOOP, False),
        (Periodic(1.0), False),
        (Delayed(1.0), False),
        (Cancel(), False),
    ],
)
def test_is_global_only(event, expected):
    assert is_global_only(event) is expected


def test_cancel_event_data_keeps_equal_cancel():
    data = EventData(Cancel(), Reply())
    assert data.event == Cancel()
    assert {data.event, Cancel()} == {Cancel()}


def test_track_and_core_events_are_distinct_keys():
    pairs = [(TrackEvent.END, "track"), (CoreEvent.DRIVER_DISCONNECT, "core")]
    keys = {EventData(event, Reply()).event: name for event, name in pairs}
    assert keys == {TrackEvent.END: "track", CoreEvent.DRIVER_DISCONNECT: "core"}


def test_handler_reply_is_returned():
    handler = Reply(Cancel())
    result = asyncio.run(handler.act("ctx"))
    assert result == Cancel()
    assert handler.seen == ["ctx"]


def test_event_handler_is_abstract():
    with pytest.raises(TypeError):
        EventHandler()


def test_repr_hides_action():
    text = repr(EventData(TrackEvent.PLAY, Reply()))
    assert "<fn>" in text
    assert "PLAY" in text