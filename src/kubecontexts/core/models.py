#!/usr/bin/env python3
"""
KUBECONTEXTS CORE MODELS
------------------------
Defines the kubeconfig document model: clusters, users, contexts and the
current-context pointer, plus the pure structural operations applied to it.
Nothing in this module performs I/O.

Author: KubeContexts Team
Date: 2026-10-18
"""

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

CLUSTER_KEYS = ("server", "insecure-skip-tls-verify", "certificate-authority", "certificate-authority-data")
USER_KEYS = ("client-certificate", "client-certificate-data", "client-key", "client-key-data", "token")
CONTEXT_KEYS = ("cluster", "user", "namespace")
DOCUMENT_KEYS = ("apiVersion", "kind", "clusters", "users", "contexts", "current-context")


@dataclass
class Cluster:
    """A named API server endpoint plus its TLS trust material."""
    name: str
    server: str = ""
    skip_tls_verify: bool = False
    ca_file: Optional[str] = None
    ca_data: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass
class User:
    """A named credential (client certificate, key or bearer token)."""
    name: str
    cert_file: Optional[str] = None
    cert_data: Optional[str] = None
    key_file: Optional[str] = None
    key_data: Optional[str] = None
    token: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def credentials(self) -> Tuple[Optional[str], ...]:
        """Credential material compared when deciding whether a certificate changed."""
        return (self.cert_file, self.cert_data, self.key_file, self.key_data, self.token)


@dataclass
class Context:
    name: str
    cluster: str
    user: str
    namespace: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass
class KubeConfig:
    """
    The in-memory configuration document.

    Names are unique within each list. References from a Context to a
    Cluster or User may dangle when loaded from disk; the engine only
    guarantees integrity for entries it creates itself.

    Keys the model does not know about (exec plugins, auth-provider,
    extensions, preferences, ...) are carried in `extra` and written back
    unchanged.
    """
    clusters: List[Cluster] = field(default_factory=list)
    users: List[User] = field(default_factory=list)
    contexts: List[Context] = field(default_factory=list)
    current_context: str = ""
    extra: Dict[str, Any] = field(default_factory=dict)

    def copy(self) -> "KubeConfig":
        return copy.deepcopy(self)

    # --- Structural wire shape (kubeconfig keys) ---

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "KubeConfig":
        """Builds a document from the parsed kubeconfig mapping. Unknown keys are kept in `extra`."""
        data = data or {}
        clusters = []
        for item in data.get("clusters") or []:
            body = item.get("cluster") or {}
            clusters.append(Cluster(
                name=item.get("name", ""),
                server=body.get("server", "") or "",
                skip_tls_verify=bool(body.get("insecure-skip-tls-verify", False)),
                ca_file=body.get("certificate-authority"),
                ca_data=body.get("certificate-authority-data"),
                extra=_unknown(body, CLUSTER_KEYS),
            ))

        users = []
        for item in data.get("users") or []:
            body = item.get("user") or {}
            users.append(User(
                name=item.get("name", ""),
                cert_file=body.get("client-certificate"),
                cert_data=body.get("client-certificate-data"),
                key_file=body.get("client-key"),
                key_data=body.get("client-key-data"),
                token=body.get("token"),
                extra=_unknown(body, USER_KEYS),
            ))

        contexts = []
        for item in data.get("contexts") or []:
            body = item.get("context") or {}
            contexts.append(Context(
                name=item.get("name", ""),
                cluster=body.get("cluster", ""),
                user=body.get("user", ""),
                namespace=body.get("namespace") or None,
                extra=_unknown(body, CONTEXT_KEYS),
            ))

        return cls(
            clusters=clusters,
            users=users,
            contexts=contexts,
            current_context=data.get("current-context") or "",
            extra=_unknown(data, DOCUMENT_KEYS),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Returns the kubeconfig mapping. Absent optional fields are omitted, never written empty."""
        clusters = []
        for cluster in self.clusters:
            body: Dict[str, Any] = {"server": cluster.server}
            if cluster.skip_tls_verify:
                body["insecure-skip-tls-verify"] = True
            _put(body, "certificate-authority", cluster.ca_file)
            _put(body, "certificate-authority-data", cluster.ca_data)
            _merge_extra(body, cluster.extra)
            clusters.append({"name": cluster.name, "cluster": body})

        users = []
        for user in self.users:
            body = {}
            _put(body, "client-certificate", user.cert_file)
            _put(body, "client-certificate-data", user.cert_data)
            _put(body, "client-key", user.key_file)
            _put(body, "client-key-data", user.key_data)
            _put(body, "token", user.token)
            _merge_extra(body, user.extra)
            users.append({"name": user.name, "user": body})

        contexts = []
        for context in self.contexts:
            body = {"cluster": context.cluster, "user": context.user}
            _put(body, "namespace", context.namespace)
            _merge_extra(body, context.extra)
            contexts.append({"name": context.name, "context": body})

        data = {
            "apiVersion": "v1",
            "kind": "Config",
            "clusters": clusters,
            "users": users,
            "contexts": contexts,
            "current-context": self.current_context,
        }
        _merge_extra(data, self.extra)
        return data


def _put(body: Dict[str, Any], key: str, value: Optional[str]):
    if value:
        body[key] = value


def _unknown(body: Dict[str, Any], known: Tuple[str, ...]) -> Dict[str, Any]:
    return {k: copy.deepcopy(v) for k, v in body.items() if k not in known}


def _merge_extra(body: Dict[str, Any], extra: Dict[str, Any]):
    for key, value in extra.items():
        body.setdefault(key, copy.deepcopy(value))


class ImportResolution(str, Enum):
    """Strategy applied to an imported context whose name already exists."""
    KEEP_BOTH = "keep-both"
    REPLACE = "replace"


@dataclass(frozen=True)
class ImportCandidate:
    """Read-only view of one context found in a foreign kubeconfig."""
    name: str
    cluster: str
    user: str
    namespace: Optional[str] = None
    server: Optional[str] = None
    has_conflict: bool = False
    certificate_changed: bool = False


# --- Pure structural operations ---

def find_context(doc: KubeConfig, name: str) -> Optional[Context]:
    return next((c for c in doc.contexts if c.name == name), None)


def find_cluster(doc: KubeConfig, name: str) -> Optional[Cluster]:
    return next((c for c in doc.clusters if c.name == name), None)


def find_user(doc: KubeConfig, name: str) -> Optional[User]:
    return next((u for u in doc.users if u.name == name), None)


def unique_name(doc: KubeConfig, base_name: str) -> str:
    """
    Returns `base_name-N` for the smallest N >= 1 not used by a context.
    The base name itself is never returned.
    """
    counter = 1
    new_name = f"{base_name}-{counter}"
    while find_context(doc, new_name):
        counter += 1
        new_name = f"{base_name}-{counter}"
    return new_name


def remove_context(doc: KubeConfig, name: str) -> KubeConfig:
    """
    Returns a new document without the named context.

    Clusters and users are dropped only when no surviving context references
    them AND at least one context referenced them before the removal, so
    pre-existing orphans are left alone. The same document is returned when
    `name` is not present.
    """
    previous = doc.contexts
    remaining = [c for c in previous if c.name != name]
    if len(remaining) == len(previous):
        return doc

    def keep_cluster(cluster: Cluster) -> bool:
        return (any(c.cluster == cluster.name for c in remaining)
                or not any(c.cluster == cluster.name for c in previous))

    def keep_user(user: User) -> bool:
        return (any(c.user == user.name for c in remaining)
                or not any(c.user == user.name for c in previous))

    current = "" if doc.current_context == name else doc.current_context
    return KubeConfig(
        clusters=[copy.deepcopy(c) for c in doc.clusters if keep_cluster(c)],
        users=[copy.deepcopy(u) for u in doc.users if keep_user(u)],
        contexts=[copy.deepcopy(c) for c in remaining],
        current_context=current,
    )
