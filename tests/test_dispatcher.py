import asyncio
import logging

import pytest

from kubecontexts.core.errors import ConfigurationError
from kubecontexts.dispatch.channels import AvailableContextsInfo, Channel
from kubecontexts.dispatch.dispatcher import ChannelProducer, Dispatcher, RecordingBroadcaster
from kubecontexts.dispatch.producers import AvailableContextsProducer
from kubecontexts.dispatch.subscriber import ChannelSubscriber
from tests.helpers import two_context_config

AVAILABLE = Channel.AVAILABLE_CONTEXTS.value


class CountingProducer(ChannelProducer):

    def __init__(self, channel_name, broadcaster):
        super().__init__(broadcaster)
        self.channel_name = channel_name
        self.calls = []

    async def dispatch(self, subscriptions):
        self.calls.append(list(subscriptions))

    def get_data(self, params):
        return None


def test_subscription_registry_keeps_order_and_duplicates():
    subscriber = ChannelSubscriber()
    first = subscriber.subscribe("chan", {"a": 1})
    subscriber.subscribe("chan", {"a": 1})
    subscriber.subscribe("chan", {"b": 2})

    assert subscriber.has_subscribers("chan")
    assert subscriber.get_subscriptions("chan") == [{"a": 1}, {"a": 1}, {"b": 2}]

    first.dispose()
    assert subscriber.get_subscriptions("chan") == [{"a": 1}, {"b": 2}]
    assert not subscriber.has_subscribers("other")


def test_unsubscribe_last_handle_clears_channel():
    subscriber = ChannelSubscriber()
    handle = subscriber.subscribe("chan")
    subscriber.unsubscribe(handle)
    subscriber.unsubscribe(handle)
    assert not subscriber.has_subscribers("chan")
    assert subscriber.get_subscriptions("chan") == []


def test_subscribe_fires_new_subscriber_event():
    subscriber = ChannelSubscriber()
    seen = []
    subscriber.on_subscribe(seen.append)
    subscriber.subscribe("chan", {})
    assert seen == ["chan"]


def test_dispatch_is_noop_without_subscribers(manager):
    producer = CountingProducer(AVAILABLE, RecordingBroadcaster())
    dispatcher = Dispatcher(manager, ChannelSubscriber(), [producer])
    asyncio.run(dispatcher.dispatch_by_channel_name(AVAILABLE))
    assert producer.calls == []


def test_dispatch_calls_matching_producer(manager):
    subscriber = ChannelSubscriber()
    producer = CountingProducer(AVAILABLE, RecordingBroadcaster())
    other = CountingProducer("Other", RecordingBroadcaster())
    dispatcher = Dispatcher(manager, subscriber, [producer, other])

    async def scenario():
        subscriber.subscribe(AVAILABLE, {"id": 1})
        await dispatcher.dispatch_by_channel_name(AVAILABLE)

    asyncio.run(scenario())
    assert producer.calls == [[{"id": 1}]]
    assert other.calls == []


def test_missing_producer_is_logged(manager, caplog):
    subscriber = ChannelSubscriber()
    dispatcher = Dispatcher(manager, subscriber, [])

    async def scenario():
        subscriber.subscribe("Unknown", {})
        await dispatcher.dispatch_by_channel_name("Unknown")

    with caplog.at_level(logging.ERROR, logger="kubecontexts.dispatcher"):
        asyncio.run(scenario())
    assert "dispatcher not found for channel Unknown" in caplog.text


def test_strict_dispatcher_requires_known_channels(manager):
    with pytest.raises(ConfigurationError):
        Dispatcher(manager, ChannelSubscriber(), [], strict=True).init()


def test_contexts_change_dispatches_available_contexts(manager):
    subscriber = ChannelSubscriber()
    producer = CountingProducer(AVAILABLE, RecordingBroadcaster())
    dispatcher = Dispatcher(manager, subscriber, [producer])
    dispatcher.init()

    async def scenario():
        subscriber.subscribe(AVAILABLE, {"id": 1})
        await subscriber.subscribe_event.drain()
        await manager.update(two_context_config())
        await manager.contexts_change.drain()

    asyncio.run(scenario())
    # once for the new subscriber, once for the change
    assert producer.calls == [[{"id": 1}], [{"id": 1}]]


def test_new_subscriber_triggers_dispatch(manager):
    subscriber = ChannelSubscriber()
    producer = CountingProducer(AVAILABLE, RecordingBroadcaster())
    Dispatcher(manager, subscriber, [producer]).init()

    async def scenario():
        subscriber.subscribe(AVAILABLE, {"view": "list"})
        await subscriber.subscribe_event.drain()

    asyncio.run(scenario())
    assert producer.calls == [[{"view": "list"}]]


def test_disposed_dispatcher_stops_listening(manager):
    subscriber = ChannelSubscriber()
    producer = CountingProducer(AVAILABLE, RecordingBroadcaster())
    dispatcher = Dispatcher(manager, subscriber, [producer])
    dispatcher.init()
    dispatcher.dispose()

    async def scenario():
        subscriber.subscribe(AVAILABLE, {})
        await manager.update(two_context_config())
        await manager.contexts_change.drain()

    asyncio.run(scenario())
    assert producer.calls == []


def test_available_contexts_payload_per_subscription(manager):
    broadcaster = RecordingBroadcaster()
    subscriber = ChannelSubscriber()
    dispatcher = Dispatcher(manager, subscriber, [AvailableContextsProducer(manager, broadcaster)], strict=True)
    dispatcher.init()

    async def scenario():
        await manager.update(two_context_config())
        subscriber.subscribe(AVAILABLE, {"id": "a"})
        subscriber.subscribe(AVAILABLE, {"id": "b"})
        await subscriber.subscribe_event.drain()
        broadcaster.deliveries.clear()
        await manager.set_current_context("context2")
        await manager.contexts_change.drain()

    asyncio.run(scenario())
    assert [target for _, _, target in broadcaster.deliveries] == [{"id": "a"}, {"id": "b"}]
    payload = broadcaster.last(AVAILABLE)
    assert isinstance(payload, AvailableContextsInfo)
    assert payload.current_context == "context2"
    assert [(c.name, c.server, c.current) for c in payload.contexts] == [
        ("context1", "https://server1", False),
        ("context2", "https://server2", True),
    ]
