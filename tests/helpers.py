from kubecontexts.core.errors import PersistenceError
from kubecontexts.core.models import Cluster, Context, KubeConfig, User
from kubecontexts.persistence.kubeconfig import KubeConfigStore


class RecordingNotifier:
    """Collects notifications and answers confirmations with a fixed label."""

    def __init__(self, answer="Yes"):
        self.notifications = []
        self.prompts = []
        self.answer = answer

    def notify(self, title, body, severity="error"):
        self.notifications.append((title, body, severity))

    async def confirm(self, prompt, affirmative, negative):
        self.prompts.append(prompt)
        return self.answer


class BrokenStore(KubeConfigStore):
    """Store whose writes always fail."""

    def write(self, path, content):
        raise PersistenceError("disk full")


def two_context_config() -> KubeConfig:
    return KubeConfig(
        clusters=[Cluster("cluster1", "https://server1"), Cluster("cluster2", "https://server2")],
        users=[User("user1", token="token1"), User("user2", token="token2")],
        contexts=[
            Context("context1", "cluster1", "user1", "ns1"),
            Context("context2", "cluster2", "user2"),
        ],
        current_context="context1",
    )
