import asyncio
import logging
from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from helpers import ASLEEP, AWAKE, CRYING, at, event
from sleeplog.app.errors import NoIdentityError, StoreError
from sleeplog.app.sample_data import load_sample_sleep
from sleeplog.app.session import LocalSessionGate, SignedIn, SignedOut
from sleeplog.app.sleep_service import SleepTimeService
from sleeplog.db import MemoryEventStore


class CountingStore(MemoryEventStore):
    def __init__(self):
        super().__init__()
        self.calls = 0

    async def list_events(self, user_id):
        self.calls += 1
        return await super().list_events(user_id)

    async def set_event(self, user_id, event):
        self.calls += 1
        await super().set_event(user_id, event)


class BrokenReadStore(MemoryEventStore):
    async def list_events(self, user_id):
        raise StoreError("collection unavailable")


async def _next(feed):
    return await asyncio.wait_for(anext(feed), 1)


def _service(store=None, identity=SignedIn("amy"), tz=timezone.utc):
    store = store or MemoryEventStore()
    gate = LocalSessionGate(identity)
    return store, gate, SleepTimeService(store, gate, tz)


def test_signed_out_one_shot_operations_raise_without_touching_store():
    async def scenario():
        store, _, service = _service(CountingStore(), SignedOut())
        for operation in (
            service.get_sleep_times(),
            service.set_sleep_time(at(8, 23, 2, 15), AWAKE),
            service.delete_sleep_time("1534990500000"),
            service.delete_all_sleep_times(),
            service.add_sample_sleep(),
        ):
            with pytest.raises(NoIdentityError):
                await operation
        return store.calls

    assert asyncio.run(scenario()) == 0


def test_set_and_read_back_in_ascending_order():
    async def scenario():
        _, _, service = _service()
        await service.set_sleep_time(at(8, 23, 5, 45), AWAKE)
        await service.set_sleep_time(at(8, 23, 2, 15), AWAKE)
        await service.set_sleep_time(at(8, 23, 2, 45), ASLEEP)
        return await service.get_sleep_times()

    events = asyncio.run(scenario())

    assert [item.start_timestamp for item in events] == [at(8, 23, 2, 15), at(8, 23, 2, 45), at(8, 23, 5, 45)]


def test_same_instant_replaces_previous_event():
    async def scenario():
        _, _, service = _service()
        await service.set_sleep_time(at(8, 23, 2, 15), AWAKE)
        await service.set_sleep_time(at(8, 23, 2, 15), CRYING)
        return await service.get_sleep_times()

    events = asyncio.run(scenario())

    assert [item.sleep_state for item in events] == [CRYING]


def test_delete_one_and_delete_all():
    async def scenario():
        _, _, service = _service()
        first = await service.set_sleep_time(at(8, 23, 2, 15), AWAKE)
        await service.set_sleep_time(at(8, 23, 2, 45), ASLEEP)
        await service.set_sleep_time(at(8, 24, 1, 15), AWAKE)
        await service.delete_sleep_time(first.event_id)
        after_one = await service.get_sleep_times()
        deleted = await service.delete_all_sleep_times()
        return after_one, deleted, await service.get_sleep_times()

    after_one, deleted, remaining = asyncio.run(scenario())

    assert len(after_one) == 2
    assert deleted == 2
    assert remaining == []


def test_delete_rejects_malformed_id():
    async def scenario():
        _, _, service = _service()
        with pytest.raises(ValueError):
            await service.delete_sleep_time("yesterday")

    asyncio.run(scenario())


def test_naive_start_uses_display_timezone():
    plus_two = timezone(timedelta(hours=2))

    async def scenario():
        _, _, service = _service(tz=plus_two)
        stored = await service.set_sleep_time(datetime(2018, 8, 24, 1, 15), AWAKE)
        rows = await service.get_chart_rows()
        return stored, rows

    stored, rows = asyncio.run(scenario())

    assert stored.start_timestamp == datetime(2018, 8, 23, 23, 15, tzinfo=timezone.utc)
    assert rows[0].date == date(2018, 8, 24)
    assert rows[0].start == timedelta(hours=1, minutes=15)


def test_chart_rows_split_at_midnight_in_display_timezone():
    minus_three = timezone(timedelta(hours=-3))

    async def scenario():
        _, _, service = _service(tz=minus_three)
        await service.set_sleep_time(at(8, 23, 23, 0), ASLEEP)
        await service.set_sleep_time(at(8, 24, 2, 0), AWAKE)
        return await service.get_chart_rows()

    rows = asyncio.run(scenario())

    assert len(rows) == 2
    assert rows[0].date == rows[1].date == date(2018, 8, 23)


def test_add_sample_sleep_seeds_bundled_log():
    async def scenario():
        _, _, service = _service()
        added = await service.add_sample_sleep()
        return added, await service.get_sleep_times()

    added, events = asyncio.run(scenario())

    assert added == len(load_sample_sleep()) == len(events)
    assert {item.sleep_state for item in events} == {AWAKE, ASLEEP, CRYING}


def test_watch_follows_writes_and_identity():
    async def scenario():
        store, gate, service = _service()
        snapshots = []
        async with service.watch_sleep_times() as feed:
            snapshots.append(await _next(feed))
            await service.set_sleep_time(at(8, 23, 2, 15), AWAKE)
            snapshots.append(await _next(feed))
            gate.sign_out()
            snapshots.append(await _next(feed))
            released_on_sign_out = store.watching("amy") == 0
            gate.sign_in("amy")
            snapshots.append(await _next(feed))
        return snapshots, released_on_sign_out, store.watching("amy")

    snapshots, released_on_sign_out, watching = asyncio.run(scenario())

    assert snapshots[0] == []
    assert [item.sleep_state for item in snapshots[1]] == [AWAKE]
    assert snapshots[2] == []
    assert [item.sleep_state for item in snapshots[3]] == [AWAKE]
    assert released_on_sign_out
    assert watching == 0


def test_watch_switches_users():
    async def scenario():
        store, gate, service = _service()
        await store.set_event("ben", event(8, 23, 2, 15, AWAKE))
        async with service.watch_sleep_times() as feed:
            amy = await _next(feed)
            gate.sign_in("ben")
            ben = await _next(feed)
        return amy, ben

    amy, ben = asyncio.run(scenario())

    assert amy == []
    assert len(ben) == 1


def test_watch_signed_out_yields_empty():
    async def scenario():
        store, _, service = _service(identity=SignedOut())
        async with service.watch_sleep_times() as feed:
            return await _next(feed), store.watching("amy")

    snapshot, watching = asyncio.run(scenario())

    assert snapshot == []
    assert watching == 0


def test_watch_read_failure_degrades_to_empty(caplog):
    async def scenario():
        _, _, service = _service(BrokenReadStore())
        async with service.watch_sleep_times() as feed:
            return await _next(feed)

    with caplog.at_level(logging.ERROR, logger="sleeplog.app.sleep_service"):
        snapshot = asyncio.run(scenario())

    assert snapshot == []
    assert "Couldn't get sleep times" in caplog.text


def test_watch_released_when_consumer_fails():
    store, _, service = _service()

    async def scenario():
        async with service.watch_sleep_times() as feed:
            await _next(feed)
            raise RuntimeError("view torn down")

    with pytest.raises(RuntimeError):
        asyncio.run(scenario())
    assert store.watching("amy") == 0


def test_watch_chart_rows_compiles_snapshots():
    async def scenario():
        _, _, service = _service()
        await service.set_sleep_time(at(8, 23, 22, 0), ASLEEP)
        await service.set_sleep_time(at(8, 24, 1, 15), AWAKE)
        async with service.watch_chart_rows() as feed:
            return await _next(feed)

    rows = asyncio.run(scenario())

    assert [(row.date.day, row.state) for row in rows] == [(23, ASLEEP), (24, ASLEEP), (24, AWAKE)]


def test_chart_rows_stay_ordered_when_clocks_fall_back():
    new_york = ZoneInfo("America/New_York")

    async def scenario():
        _, _, service = _service(tz=new_york)
        # 01:30 EDT, then 01:15 EST after the clocks went back.
        await service.set_sleep_time(datetime(2018, 11, 4, 5, 30, tzinfo=timezone.utc), AWAKE)
        await service.set_sleep_time(datetime(2018, 11, 4, 6, 15, tzinfo=timezone.utc), ASLEEP)
        same_day = await service.get_chart_rows()
        await service.set_sleep_time(datetime(2018, 11, 5, 5, 0, tzinfo=timezone.utc), AWAKE)
        return same_day, await service.get_chart_rows()

    same_day, next_day = asyncio.run(scenario())

    assert all(row.end >= row.start for row in same_day + next_day)
    assert [(row.state, row.start, row.end) for row in same_day] == [
        (AWAKE, timedelta(hours=1, minutes=30), timedelta(hours=2, minutes=15)),
        (ASLEEP, timedelta(hours=2, minutes=15), timedelta(hours=2, minutes=15, seconds=1)),
    ]
    assert [(row.date, row.state, row.start, row.end) for row in next_day[1:]] == [
        (date(2018, 11, 4), ASLEEP, timedelta(hours=2, minutes=15), timedelta(hours=25)),
        (date(2018, 11, 5), ASLEEP, timedelta(0), timedelta(0)),
        (date(2018, 11, 5), AWAKE, timedelta(0), timedelta(seconds=1)),
    ]
