import pytest

from kubecontexts.core.models import (
    Cluster,
    Context,
    KubeConfig,
    User,
    find_cluster,
    find_context,
    find_user,
    remove_context,
    unique_name,
)
from tests.helpers import two_context_config


def test_find_helpers():
    doc = two_context_config()
    assert find_context(doc, "context2").cluster == "cluster2"
    assert find_cluster(doc, "cluster1").server == "https://server1"
    assert find_user(doc, "user2").token == "token2"
    assert find_context(doc, "nope") is None


def test_unique_name_always_suffixes():
    doc = KubeConfig(contexts=[Context("context1", "c", "u")])
    assert unique_name(doc, "context1") == "context1-1"
    assert unique_name(doc, "fresh") == "fresh-1"


def test_unique_name_skips_taken_suffixes():
    doc = KubeConfig(contexts=[Context("a", "c", "u"), Context("a-1", "c", "u"), Context("a-2", "c", "u")])
    assert unique_name(doc, "a") == "a-3"


def test_remove_unknown_context_returns_same_document():
    doc = two_context_config()
    assert remove_context(doc, "missing") is doc


def test_remove_current_context_clears_pointer_and_orphans():
    """
    SCENARIO: deleting context1 drops cluster1/user1 and clears the current context.
    """
    doc = two_context_config()
    result = remove_context(doc, "context1")

    assert [c.name for c in result.contexts] == ["context2"]
    assert [c.name for c in result.clusters] == ["cluster2"]
    assert [u.name for u in result.users] == ["user2"]
    assert result.current_context == ""
    # Original untouched
    assert len(doc.contexts) == 2


def test_remove_keeps_current_pointer_for_other_context():
    doc = two_context_config()
    result = remove_context(doc, "context2")
    assert result.current_context == "context1"


def test_shared_cluster_and_user_survive():
    doc = KubeConfig(
        clusters=[Cluster("shared", "https://s")],
        users=[User("shared-user")],
        contexts=[Context("a", "shared", "shared-user"), Context("b", "shared", "shared-user")],
    )
    result = remove_context(doc, "a")
    assert [c.name for c in result.clusters] == ["shared"]
    assert [u.name for u in result.users] == ["shared-user"]


def test_preexisting_orphans_are_never_removed():
    doc = two_context_config()
    doc.clusters.append(Cluster("orphan-cluster", "https://orphan"))
    doc.users.append(User("orphan-user"))

    result = remove_context(doc, "context1")
    assert "orphan-cluster" in [c.name for c in result.clusters]
    assert "orphan-user" in [u.name for u in result.users]


@pytest.mark.parametrize("name", ["context1", "context2"])
def test_removal_introduces_no_dangling_references(name):
    doc = two_context_config()
    result = remove_context(doc, name)
    cluster_names = {c.name for c in result.clusters}
    user_names = {u.name for u in result.users}
    for context in result.contexts:
        assert context.cluster in cluster_names
        assert context.user in user_names


def test_from_dict_tolerates_missing_sections_and_dangling_refs():
    doc = KubeConfig.from_dict({
        "contexts": [{"name": "dangling", "context": {"cluster": "ghost", "user": "nobody"}}],
    })
    assert doc.clusters == []
    assert doc.users == []
    assert doc.contexts[0].cluster == "ghost"
    assert doc.current_context == ""


def test_to_dict_omits_absent_optionals():
    data = two_context_config().to_dict()
    assert data["contexts"][1]["context"] == {"cluster": "cluster2", "user": "user2"}
    assert data["contexts"][0]["context"]["namespace"] == "ns1"
    assert data["users"][0]["user"] == {"token": "token1"}
    assert data["current-context"] == "context1"


def test_unknown_keys_are_carried_through():
    data = {
        "preferences": {},
        "clusters": [{"name": "c", "cluster": {"server": "https://c", "tls-server-name": "inner"}}],
        "users": [{"name": "u", "user": {"auth-provider": {"name": "oidc"}, "username": "admin"}}],
        "contexts": [{"name": "x", "context": {"cluster": "c", "user": "u"}}],
    }
    doc = KubeConfig.from_dict(data)
    assert doc.users[0].extra == {"auth-provider": {"name": "oidc"}, "username": "admin"}

    out = doc.to_dict()
    assert out["preferences"] == {}
    assert out["clusters"][0]["cluster"] == {"server": "https://c", "tls-server-name": "inner"}
    assert out["users"][0]["user"] == {"auth-provider": {"name": "oidc"}, "username": "admin"}
