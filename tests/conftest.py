import pytest

from kubecontexts.core.engine import ContextsManager
from kubecontexts.persistence.kubeconfig import KubeConfigStore
from tests.helpers import BrokenStore, RecordingNotifier


@pytest.fixture
def kubeconfig_path(tmp_path):
    return tmp_path / "config"


@pytest.fixture
def store(kubeconfig_path):
    return KubeConfigStore(path_resolver=lambda: kubeconfig_path)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def manager(store, notifier):
    return ContextsManager(store, notifier)


@pytest.fixture
def broken_manager(kubeconfig_path, notifier):
    return ContextsManager(BrokenStore(path_resolver=lambda: kubeconfig_path), notifier)
