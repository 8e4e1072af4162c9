#!/usr/bin/env python3
"""
KUBECONTEXTS DISPATCHER - Channel Fan-out
-----------------------------------------
Reacts to two events:
  1. the engine reporting that the contexts changed -> AvailableContexts
  2. a consumer subscribing to a channel -> that channel

For each, the matching producer recomputes the payload for the current
subscription list and pushes it out. Nothing is computed for a channel
without subscribers.

Author: KubeContexts Team
Date: 2026-10-18
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional, Protocol, Tuple, Union

from kubecontexts.core.engine import ContextsManager
from kubecontexts.core.errors import ConfigurationError
from kubecontexts.core.events import Disposable
from kubecontexts.dispatch.channels import Channel
from kubecontexts.dispatch.subscriber import ChannelSubscriber

logger = logging.getLogger("kubecontexts.dispatcher")


class Broadcaster(Protocol):
    """Delivery primitive towards the consumers on the other side of the process boundary."""

    async def fire(self, channel_name: str, payload: Any, target: Optional[Dict[str, Any]] = None) -> None: ...


class RecordingBroadcaster:
    """In-process broadcaster keeping every delivery, for hosts without a transport."""

    def __init__(self):
        self.deliveries: List[Tuple[str, Any, Optional[Dict[str, Any]]]] = []

    async def fire(self, channel_name: str, payload: Any, target: Optional[Dict[str, Any]] = None):
        self.deliveries.append((channel_name, payload, target))

    def last(self, channel_name: str) -> Any:
        for name, payload, _ in reversed(self.deliveries):
            if name == channel_name:
                return payload
        return None


class ChannelProducer(ABC):
    """
    Computes and delivers the payload of one channel.
    Subclasses implement `get_data`; `dispatch` sends one payload per subscription.
    """

    channel_name: str = ""

    def __init__(self, broadcaster: Broadcaster):
        self.broadcaster = broadcaster

    async def dispatch(self, subscriptions: List[Dict[str, Any]]):
        for params in subscriptions:
            payload = self.get_data(params)
            await self.broadcaster.fire(self.channel_name, payload, params)

    @abstractmethod
    def get_data(self, params: Dict[str, Any]) -> Any:
        ...


class Dispatcher:

    def __init__(self, manager: ContextsManager, channel_subscriber: ChannelSubscriber,
                 producers: Iterable[ChannelProducer], strict: bool = False):
        self.manager = manager
        self.channel_subscriber = channel_subscriber
        self.strict = strict
        self._producers: Dict[str, ChannelProducer] = {}
        self._disposables: List[Disposable] = []
        for producer in producers:
            self._producers[producer.channel_name] = producer

    def init(self):
        if self.strict:
            missing = [c.value for c in Channel if c.value not in self._producers]
            if missing:
                raise ConfigurationError(f"No producer registered for channels: {', '.join(missing)}")

        self._disposables.append(self.manager.on_contexts_change(self._on_contexts_change))
        self._disposables.append(self.channel_subscriber.on_subscribe(self.dispatch_by_channel_name))

    def dispose(self):
        for disposable in self._disposables:
            disposable.dispose()
        self._disposables.clear()

    async def _on_contexts_change(self):
        await self.dispatch(Channel.AVAILABLE_CONTEXTS)

    async def dispatch(self, channel: Union[Channel, str]):
        name = channel.value if isinstance(channel, Channel) else channel
        await self.dispatch_by_channel_name(name)

    async def dispatch_by_channel_name(self, channel_name: str):
        if not self.channel_subscriber.has_subscribers(channel_name):
            return
        subscriptions = self.channel_subscriber.get_subscriptions(channel_name)

        producer = self._producers.get(channel_name)
        if producer is None:
            logger.error(f"dispatcher not found for channel {channel_name}")
            return
        await producer.dispatch(subscriptions)
