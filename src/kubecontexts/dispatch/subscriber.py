#!/usr/bin/env python3
"""
KUBECONTEXTS SUBSCRIBER - Channel Subscription Registry
-------------------------------------------------------
Tracks which consumers listen to which channel, with the parameters each
subscription supplied. A consumer may subscribe several times to the same
channel; every subscription is kept, in arrival order.

Author: KubeContexts Team
Date: 2026-10-18
"""

import itertools
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from kubecontexts.core.events import Disposable, Emitter

logger = logging.getLogger("kubecontexts.subscriber")

_ids = itertools.count(1)


@dataclass(eq=False)
class Subscription:
    """Handle returned by `subscribe`. Identity, not value, distinguishes two subscriptions."""
    channel_name: str
    params: Dict[str, Any] = field(default_factory=dict)
    id: int = field(default_factory=lambda: next(_ids))
    registry: Optional["ChannelSubscriber"] = field(default=None, repr=False)

    def dispose(self):
        if self.registry is not None:
            self.registry.unsubscribe(self)


class ChannelSubscriber:

    def __init__(self):
        self._subscriptions: Dict[str, List[Subscription]] = {}
        self._on_subscribe: Emitter[str] = Emitter()

    def on_subscribe(self, listener: Callable[[str], object]) -> Disposable:
        return self._on_subscribe.event(listener)

    @property
    def subscribe_event(self) -> Emitter[str]:
        return self._on_subscribe

    def subscribe(self, channel_name: str, params: Optional[Dict[str, Any]] = None) -> Subscription:
        subscription = Subscription(channel_name=channel_name, params=dict(params or {}), registry=self)
        self._subscriptions.setdefault(channel_name, []).append(subscription)
        logger.debug(f"Subscription {subscription.id} added on {channel_name}")
        self._on_subscribe.fire(channel_name)
        return subscription

    def unsubscribe(self, subscription: Subscription):
        entries = self._subscriptions.get(subscription.channel_name, [])
        if subscription in entries:
            entries.remove(subscription)
            logger.debug(f"Subscription {subscription.id} removed from {subscription.channel_name}")
        if not entries:
            self._subscriptions.pop(subscription.channel_name, None)

    def has_subscribers(self, channel_name: str) -> bool:
        return bool(self._subscriptions.get(channel_name))

    def get_subscriptions(self, channel_name: str) -> List[Dict[str, Any]]:
        return [s.params for s in self._subscriptions.get(channel_name, [])]

    def dispose(self):
        """Drops every subscription, e.g. when the consuming view goes inactive."""
        self._subscriptions.clear()
