"""Composition root: wires the engine, the subscription registry and the dispatcher."""

import logging
from typing import Optional

from kubecontexts.core.engine import ContextsManager
from kubecontexts.dispatch.dispatcher import Broadcaster, Dispatcher, RecordingBroadcaster
from kubecontexts.dispatch.producers import AvailableContextsProducer
from kubecontexts.dispatch.subscriber import ChannelSubscriber
from kubecontexts.notify.console import ConsoleNotifier, Notifier
from kubecontexts.persistence.kubeconfig import KubeConfigStore

logger = logging.getLogger("kubecontexts.app")


class ContextsApp:

    def __init__(self, store: Optional[KubeConfigStore] = None, notifier: Optional[Notifier] = None,
                 broadcaster: Optional[Broadcaster] = None):
        self.broadcaster = broadcaster or RecordingBroadcaster()
        self.manager = ContextsManager(store or KubeConfigStore(), notifier or ConsoleNotifier())
        self.channel_subscriber = ChannelSubscriber()
        self.dispatcher = Dispatcher(
            self.manager,
            self.channel_subscriber,
            [AvailableContextsProducer(self.manager, self.broadcaster)],
            strict=True,
        )

    async def activate(self, load: bool = True):
        self.dispatcher.init()
        if load:
            await self.manager.load_from_disk()
        logger.info("kubecontexts activated")

    async def deactivate(self):
        """Drops subscriptions and listeners, then waits for in-flight deliveries."""
        self.channel_subscriber.dispose()
        self.dispatcher.dispose()
        await self.manager.contexts_change.drain()
        await self.channel_subscriber.subscribe_event.drain()
