#!/usr/bin/env python3
"""
KUBECONTEXTS ENGINE - Context Reconciliation
--------------------------------------------
ContextsManager owns the live kubeconfig document. Every mutation follows
the same lifecycle:

    IDLE -> VALIDATING -> MUTATING -> PERSISTING -> NOTIFYING -> IDLE

A failure at any step (or a declined confirmation) aborts back to IDLE
without replacing the held document. The new document is computed on a
copy and only swapped in once it has been written to disk.

Author: KubeContexts Team
Date: 2026-10-18
"""

import asyncio
import copy
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Tuple, Type, Union

from kubecontexts.core import models
from kubecontexts.core.errors import (
    MissingReferenceError,
    NotFoundError,
    ParseFailureError,
)
from kubecontexts.core.events import Disposable, Emitter
from kubecontexts.core.models import (
    Context,
    ImportCandidate,
    ImportResolution,
    KubeConfig,
    find_cluster,
    find_context,
    find_user,
)
from kubecontexts.core.validator import ReferenceValidator
from kubecontexts.notify.console import Notifier, Severity
from kubecontexts.persistence.kubeconfig import KubeConfigStore

logger = logging.getLogger("kubecontexts.engine")

DELETE_CURRENT_PROMPT = (
    "You will delete the current context. If you delete it, "
    "you will need to switch to another context. Continue?"
)


class MutationPhase(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    MUTATING = "mutating"
    PERSISTING = "persisting"
    NOTIFYING = "notifying"
    ABORTED = "aborted"


@dataclass(frozen=True)
class ContextEdit:
    """New field values for `edit_context`. An empty namespace removes the field."""
    name: str
    cluster: str
    user: str
    namespace: Optional[str] = None


class ContextsManager:
    """
    Single writer of the kubeconfig document.

    Mutations are serialized through an asyncio.Lock. Change listeners are
    fired once per successful mutation and are not awaited.
    """

    def __init__(self, store: KubeConfigStore, notifier: Notifier,
                 validator: Optional[ReferenceValidator] = None):
        self.store = store
        self.notifier = notifier
        self.validator = validator or ReferenceValidator()
        self.phase = MutationPhase.IDLE

        # start with an empty kubeconfig
        self._kube_config = KubeConfig()
        self._lock = asyncio.Lock()
        self._on_contexts_change: Emitter[None] = Emitter()

    # --- Observation ---

    def on_contexts_change(self, listener: Callable[[], object]) -> Disposable:
        return self._on_contexts_change.event(listener)

    @property
    def contexts_change(self) -> Emitter[None]:
        return self._on_contexts_change

    def get_kube_config(self) -> KubeConfig:
        return self._kube_config

    # --- Wholesale replacement ---

    async def update(self, kube_config: KubeConfig):
        """Replaces the held document without persisting it."""
        self._kube_config = kube_config
        self._on_contexts_change.fire()

    async def load_from_disk(self) -> bool:
        """Initial load of the canonical kubeconfig. A missing file yields an empty document."""
        try:
            path = self.store.current_path()
            doc = await asyncio.to_thread(self.store.load_from_path, path)
        except NotFoundError:
            logger.info("No kubeconfig on disk yet, starting empty")
            doc = KubeConfig()
        except Exception as e:
            logger.error(f"Unable to load kubeconfig: {e}")
            self._notify("Error loading kubeconfig", f"Loading kubeconfig failed: {e}")
            return False
        await self.update(doc)
        return True

    async def save_kube_config(self, kube_config: Optional[KubeConfig] = None) -> Path:
        doc = self._kube_config if kube_config is None else kube_config
        path = self.store.current_path()
        content = self.store.serialize(doc)
        await asyncio.to_thread(self.store.write, path, content)
        return path

    # --- Pure helpers kept on the manager for callers ---

    def find_new_context_name(self, kube_config: KubeConfig, context_name: str) -> str:
        return models.unique_name(kube_config, context_name)

    def remove_context(self, kube_config: KubeConfig, context_name: str) -> KubeConfig:
        return models.remove_context(kube_config, context_name)

    # --- Mutations on the live document ---

    async def set_current_context(self, context_name: str) -> bool:
        def build(doc: KubeConfig) -> KubeConfig:
            if not find_context(doc, context_name):
                raise NotFoundError(f"context '{context_name}' does not exist")
            new_doc = doc.copy()
            new_doc.current_context = context_name
            return new_doc

        return await self._commit(
            build,
            title="Error setting current context",
            body=f'Setting current context to "{context_name}" failed',
        )

    async def delete_context(self, context_name: str) -> bool:
        if context_name == self._kube_config.current_context:
            self._set_phase(MutationPhase.VALIDATING)
            result = await self.notifier.confirm(DELETE_CURRENT_PROMPT, "Yes", "Cancel")
            if result != "Yes":
                logger.info(f"Deletion of current context '{context_name}' declined")
                self._abort()
                return False
        return await self.delete_context_internal(context_name)

    async def delete_context_internal(self, context_name: str) -> bool:
        return await self._commit(
            lambda doc: models.remove_context(doc, context_name),
            title="Error deleting context",
            body=f'Deleting context "{context_name}" failed',
        )

    async def duplicate_context(self, context_name: str) -> bool:
        def build(doc: KubeConfig) -> Optional[KubeConfig]:
            original = find_context(doc, context_name)
            if original is None:
                return None
            new_name = models.unique_name(doc, context_name)
            new_doc = doc.copy()
            new_doc.contexts.append(Context(
                name=new_name,
                cluster=original.cluster,
                user=original.user,
                namespace=original.namespace,
                extra=copy.deepcopy(original.extra),
            ))
            self.validator.require(new_doc, [new_name])
            return new_doc

        return await self._commit(
            build,
            title="Error duplicating context",
            body=f'Duplicating context "{context_name}" failed',
        )

    async def edit_context(self, context_name: str, new_fields: ContextEdit) -> bool:
        def build(doc: KubeConfig) -> KubeConfig:
            original = find_context(doc, context_name)
            if original is None:
                raise NotFoundError(f"context '{context_name}' does not exist")
            if new_fields.name != context_name and find_context(doc, new_fields.name):
                raise ValueError(f"a context named '{new_fields.name}' already exists")

            replacement = Context(name=new_fields.name, cluster=new_fields.cluster, user=new_fields.user,
                                  extra=copy.deepcopy(original.extra))
            if new_fields.namespace:
                replacement.namespace = new_fields.namespace

            new_doc = doc.copy()
            new_doc.contexts = [replacement if c.name == context_name else c for c in new_doc.contexts]
            if doc.current_context == context_name:
                new_doc.current_context = new_fields.name
            self.validator.require(new_doc, [replacement.name])
            return new_doc

        return await self._commit(
            build,
            title="Error editing context",
            body=f'Editing context "{context_name}" failed',
        )

    # --- Import workflow ---

    async def get_import_contexts(self, file_path: Union[str, Path]) -> List[ImportCandidate]:
        try:
            foreign = await asyncio.to_thread(self.store.load_from_path, file_path)
        except NotFoundError as e:
            logger.error(f"Import source missing: {e}")
            self._notify("Error reading kubeconfig file", f'File "{file_path}" does not exist')
            return []
        except ParseFailureError as e:
            logger.error(f"Import source unreadable: {e}")
            self._notify("Error reading kubeconfig file", f'Parsing "{file_path}" failed: {e}')
            return []

        live = self._kube_config
        candidates = []
        for context in foreign.contexts:
            cluster = find_cluster(foreign, context.cluster)
            existing = find_context(live, context.name)
            candidates.append(ImportCandidate(
                name=context.name,
                cluster=context.cluster,
                user=context.user,
                namespace=context.namespace,
                server=cluster.server if cluster else None,
                has_conflict=existing is not None,
                certificate_changed=existing is not None and self._credentials_differ(foreign, context, live, existing),
            ))
        return candidates

    async def import_contexts_from_file(self, file_path: Union[str, Path], selected_names: Iterable[str],
                                        resolutions: Optional[Mapping[str, Union[str, ImportResolution]]] = None) -> bool:
        """
        Merges the selected contexts of a foreign kubeconfig into the live one.
        MissingReferenceError propagates; every other failure is notified.
        """
        names = list(selected_names)
        try:
            foreign = await asyncio.to_thread(self.store.load_from_path, file_path)
        except (NotFoundError, ParseFailureError) as e:
            logger.error(f"Import source unusable: {e}")
            self._notify("Error importing contexts", f'Importing contexts from "{file_path}" failed: {e}')
            return False

        wanted = {name: ImportResolution(value) for name, value in (resolutions or {}).items()}
        return await self._commit(
            lambda doc: self._merge(doc, foreign, names, wanted, str(file_path)),
            title="Error importing contexts",
            body=f'Importing contexts from "{file_path}" failed',
            propagate=(MissingReferenceError,),
        )

    def _merge(self, live: KubeConfig, foreign: KubeConfig, names: List[str],
               resolutions: Dict[str, ImportResolution], source: str) -> KubeConfig:
        working = live.copy()
        imported = []
        for name in names:
            context = find_context(foreign, name)
            if context is None:
                continue
            cluster = find_cluster(foreign, context.cluster)
            user = find_user(foreign, context.user)
            if cluster is None or user is None:
                missing = f"cluster '{context.cluster}'" if cluster is None else f"user '{context.user}'"
                raise MissingReferenceError(f"context '{name}' in {source} references missing {missing}")

            resolution = resolutions.get(name) if find_context(working, name) else None
            if resolution == ImportResolution.REPLACE:
                current = working.current_context
                working = models.remove_context(working, name)
                working.current_context = current
                _upsert(working.clusters, copy.deepcopy(cluster))
                _upsert(working.users, copy.deepcopy(user))
                new_name = name
            else:
                new_name = models.unique_name(working, name) if find_context(working, name) else name
                if not find_cluster(working, cluster.name):
                    working.clusters.append(copy.deepcopy(cluster))
                if not find_user(working, user.name):
                    working.users.append(copy.deepcopy(user))

            working.contexts.append(Context(
                name=new_name,
                cluster=context.cluster,
                user=context.user,
                namespace=context.namespace,
                extra=copy.deepcopy(context.extra),
            ))
            imported.append(new_name)
            logger.info(f"Imported context '{name}' as '{new_name}' ({(resolution or ImportResolution.KEEP_BOTH).value})")

        self.validator.require(working, imported, source=source)
        return working

    def _credentials_differ(self, foreign: KubeConfig, foreign_context: Context,
                            live: KubeConfig, live_context: Context) -> bool:
        foreign_user = find_user(foreign, foreign_context.user)
        live_user = find_user(live, live_context.user)
        return _credentials(foreign_user) != _credentials(live_user)

    # --- Lifecycle plumbing ---

    async def _commit(self, build: Callable[[KubeConfig], Optional[KubeConfig]], title: str, body: str,
                      propagate: Tuple[Type[BaseException], ...] = ()) -> bool:
        """
        Runs one mutation. `build` computes the new document from the held
        one (returning None for a silent no-op); it is only swapped in after
        a successful write.
        """
        async with self._lock:
            try:
                self._set_phase(MutationPhase.MUTATING)
                new_doc = build(self._kube_config)
                if new_doc is None:
                    self._set_phase(MutationPhase.IDLE)
                    return False
                self._set_phase(MutationPhase.PERSISTING)
                await self.save_kube_config(new_doc)
            except propagate:
                self._abort()
                raise
            except Exception as e:
                logger.error(f"{body}: {e}")
                self._abort()
                self._notify(title, f"{body}: {e}")
                return False

            self._set_phase(MutationPhase.NOTIFYING)
            await self.update(new_doc)
            self._set_phase(MutationPhase.IDLE)
            return True

    def _set_phase(self, phase: MutationPhase):
        logger.debug(f"{self.phase.value} -> {phase.value}")
        self.phase = phase

    def _abort(self):
        self._set_phase(MutationPhase.ABORTED)
        self._set_phase(MutationPhase.IDLE)

    def _notify(self, title: str, body: str):
        self.notifier.notify(title, body, Severity.ERROR)


def _credentials(user: Optional[models.User]) -> Tuple[Optional[str], ...]:
    return user.credentials() if user else (None,) * 5


def _upsert(entries: list, entry):
    """Replaces the same-named entry in place, or appends."""
    for i, existing in enumerate(entries):
        if existing.name == entry.name:
            entries[i] = entry
            return
    entries.append(entry)
