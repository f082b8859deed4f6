"""Event Broadcaster - fan-out to subscribers with bounded queues."""

from nfcdesk.infrastructure.broadcaster import EventBroadcaster


async def test_publish_reaches_every_subscriber():
    broadcaster = EventBroadcaster()
    async with broadcaster.subscribe() as q1, broadcaster.subscribe() as q2:
        broadcaster.publish({"type": "access_event", "data": {"id": 1}})
        assert (await q1.get())["data"]["id"] == 1
        assert (await q2.get())["data"]["id"] == 1
    assert broadcaster.subscriber_count == 0


async def test_publish_without_subscribers_is_noop():
    EventBroadcaster().publish({"type": "access_event"})


async def test_full_queue_drops_event():
    broadcaster = EventBroadcaster(queue_size=1)
    async with broadcaster.subscribe() as queue:
        broadcaster.publish({"n": 1})
        broadcaster.publish({"n": 2})
        assert queue.qsize() == 1
        assert (await queue.get())["n"] == 1
