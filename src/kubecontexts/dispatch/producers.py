"""Per-channel payload producers."""

from typing import Any, Dict

from kubecontexts.core.engine import ContextsManager
from kubecontexts.core.models import find_cluster
from kubecontexts.dispatch.channels import AvailableContextsInfo, Channel, ContextInfo
from kubecontexts.dispatch.dispatcher import Broadcaster, ChannelProducer


class AvailableContextsProducer(ChannelProducer):
    """Publishes the contexts of the live document, with their resolved servers."""

    channel_name = Channel.AVAILABLE_CONTEXTS.value

    def __init__(self, manager: ContextsManager, broadcaster: Broadcaster):
        super().__init__(broadcaster)
        self.manager = manager

    def get_data(self, params: Dict[str, Any]) -> AvailableContextsInfo:
        doc = self.manager.get_kube_config()
        contexts = []
        for context in doc.contexts:
            cluster = find_cluster(doc, context.cluster)
            contexts.append(ContextInfo(
                name=context.name,
                cluster=context.cluster,
                user=context.user,
                namespace=context.namespace,
                server=cluster.server if cluster else None,
                current=context.name == doc.current_context,
            ))
        return AvailableContextsInfo(contexts=contexts, current_context=doc.current_context)
