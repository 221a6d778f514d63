"""Tests for trill.realtime.notifier — change broadcast and ping deadlines."""

import asyncio

from trill.realtime.events import SSEEvent
from trill.realtime.notifier import ChangeNotifier


async def _next(events, timeout: float = 1.0) -> SSEEvent:
    return await asyncio.wait_for(anext(events), timeout)


class TestChangeNotifier:
    async def test_subscribe_and_unsubscribe(self) -> None:
        notifier = ChangeNotifier()
        a = notifier.subscribe()
        b = notifier.subscribe()
        assert len(notifier) == 2

        notifier.unsubscribe(a)
        assert a.closed
        assert len(notifier) == 1

        b.close()
        b.close()  # idempotent
        assert len(notifier) == 0

    async def test_publish_reaches_every_listener(self) -> None:
        notifier = ChangeNotifier()
        listeners = [notifier.subscribe() for _ in range(3)]

        assert notifier.publish("app.ts") == 3

        for listener in listeners:
            events = listener.events()
            assert (await _next(events)).event == "ping"
            event = await _next(events)
            assert event.event == "change"
            assert event.data == "app.ts"
            await events.aclose()

    async def test_publish_skips_closed_listeners(self) -> None:
        notifier = ChangeNotifier()
        open_listener = notifier.subscribe()
        closed_listener = notifier.subscribe()
        closed_listener.close()

        assert notifier.publish("a.js") == 1
        assert closed_listener.deliver("a.js") is False
        assert not open_listener.closed

    async def test_slow_listener_drops_changes(self) -> None:
        notifier = ChangeNotifier()
        listener = notifier.subscribe()
        for i in range(256):
            assert listener.deliver(f"{i}.js")
        assert listener.deliver("overflow.js") is False

    async def test_close_ends_every_stream(self) -> None:
        notifier = ChangeNotifier()
        listener = notifier.subscribe()
        events = listener.events()
        assert (await _next(events)).event == "ping"

        notifier.close()

        collected = [event async for event in events]
        assert collected == []
        assert len(notifier) == 0


class TestChangeListenerEvents:
    async def test_first_event_is_ping(self) -> None:
        listener = ChangeNotifier().subscribe()
        events = listener.events()
        first = await _next(events)
        assert first == SSEEvent(data="ping!", event="ping")
        await events.aclose()

    async def test_periodic_pings(self) -> None:
        listener = ChangeNotifier(ping_interval=0.05).subscribe()
        events = listener.events()
        kinds = [(await _next(events)).event for _ in range(3)]
        assert kinds == ["ping", "ping", "ping"]
        await events.aclose()

    async def test_changes_do_not_reset_ping_deadline(self) -> None:
        listener = ChangeNotifier(ping_interval=0.1).subscribe()
        events = listener.events()
        await _next(events)  # initial ping

        listener.deliver("a.js")
        assert (await _next(events)).data == "a.js"
        # Next ping still arrives on the original schedule
        assert (await _next(events, timeout=0.5)).event == "ping"
        await events.aclose()

    async def test_closing_iterator_deregisters(self) -> None:
        notifier = ChangeNotifier()
        listener = notifier.subscribe()
        events = listener.events()
        await _next(events)

        await events.aclose()

        assert listener.closed
        assert len(notifier) == 0

    async def test_listeners_are_independent(self) -> None:
        notifier = ChangeNotifier(ping_interval=10.0)
        a = notifier.subscribe()
        b = notifier.subscribe()
        a_events, b_events = a.events(), b.events()
        await _next(a_events)
        await _next(b_events)

        await a_events.aclose()
        notifier.publish("b.js")

        event = await _next(b_events)
        assert event.data == "b.js"
        await b_events.aclose()
