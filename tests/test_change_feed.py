from academy.services.change_feed import ChangeFeed


async def test_predicate_filters_events():
    feed = ChangeFeed()
    received = []
    feed.subscribe("enrollments", received.append, lambda e: e["student_id"] == "a")

    assert await feed.publish("enrollments", {"student_id": "b"}) == 0
    assert await feed.publish("enrollments", {"student_id": "a"}) == 1
    assert received == [{"student_id": "a"}]


async def test_unsubscribe_stops_delivery():
    feed = ChangeFeed()
    received = []
    subscription = feed.subscribe("notifications", received.append)

    subscription.unsubscribe()
    subscription.unsubscribe()
    await feed.publish("notifications", {"student_id": "a"})

    assert received == []
    assert feed.subscriber_count("notifications") == 0


async def test_failing_subscriber_does_not_block_others():
    feed = ChangeFeed()
    received = []

    def broken(event):
        raise RuntimeError("boom")

    async def collector(event):
        received.append(event)

    feed.subscribe("enrollments", broken)
    feed.subscribe("enrollments", collector)

    assert await feed.publish("enrollments", {"action": "approved"}) == 1
    assert received == [{"action": "approved"}]


async def test_topics_are_independent():
    feed = ChangeFeed()
    received = []
    feed.subscribe("enrollments", received.append)

    await feed.publish("notifications", {"student_id": "a"})

    assert received == []
