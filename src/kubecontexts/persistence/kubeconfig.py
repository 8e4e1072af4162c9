#!/usr/bin/env python3
"""
KUBECONTEXTS PERSISTENCE - Kubeconfig Store
-------------------------------------------
Loads kubeconfig documents from disk or text, serializes them back to YAML
with a stable key order, and writes the canonical file atomically.

Author: KubeContexts Team
Date: 2026-10-18
"""

import io
import logging
import os
import stat
from pathlib import Path
from typing import Any, Callable, Optional, Union

from ruamel.yaml import YAML, YAMLError
from ruamel.yaml.comments import CommentedMap

from kubecontexts.config import Settings
from kubecontexts.core.errors import NotFoundError, ParseFailureError, PersistenceError
from kubecontexts.core.models import KubeConfig

logger = logging.getLogger("kubecontexts.persistence")


class KubeConfigStore:
    """
    The persistence adapter consumed by the engine.

    Path resolution is delegated to `path_resolver` so hosts can point the
    store at whatever their environment considers the canonical kubeconfig.
    """

    def __init__(self, path_resolver: Optional[Callable[[], Path]] = None):
        self._path_resolver = path_resolver or Settings.from_env().kubeconfig_path
        self.yaml = YAML(typ='rt')
        self.yaml.preserve_quotes = True
        self.yaml.indent(mapping=2, sequence=4, offset=2)
        self.yaml.width = 4096
        self.preferred_order = ["apiVersion", "kind", "clusters", "users", "contexts", "current-context"]

    def current_path(self) -> Path:
        """May raise ResolutionError."""
        return self._path_resolver()

    def load_from_path(self, path: Union[str, Path]) -> KubeConfig:
        file_path = Path(path).expanduser()
        if not file_path.exists():
            raise NotFoundError(f"File not found: {file_path}")
        try:
            text = file_path.read_text(encoding='utf-8-sig')
        except (OSError, UnicodeDecodeError) as e:
            raise ParseFailureError(f"Unable to read {file_path}: {e}") from e
        return self.load_from_string(text, source=str(file_path))

    def load_from_string(self, text: str, source: str = "<string>") -> KubeConfig:
        try:
            data = self.yaml.load(text)
        except YAMLError as e:
            raise ParseFailureError(f"Invalid YAML in {source}: {e}") from e
        if data is None:
            return KubeConfig()
        if not isinstance(data, dict):
            raise ParseFailureError(f"{source} is not a kubeconfig mapping")
        try:
            return KubeConfig.from_dict(data)
        except (AttributeError, TypeError) as e:
            raise ParseFailureError(f"Malformed kubeconfig in {source}: {e}") from e

    def serialize(self, doc: KubeConfig) -> str:
        stream = io.StringIO()
        self.yaml.dump(self._ordered(doc.to_dict()), stream)
        return stream.getvalue()

    def write(self, path: Union[str, Path], content: str):
        """Atomic replace through a sibling temp file, preserving the target's permissions."""
        target_path = Path(path)
        temp_file = target_path.with_name(target_path.name + ".kubecontexts.tmp")
        try:
            target_path.parent.mkdir(parents=True, exist_ok=True)
            # existing mode is kept; new files are owner-only
            mode = stat.S_IMODE(target_path.stat().st_mode) if target_path.exists() else 0o600
            fd = os.open(temp_file, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(content)
            os.chmod(temp_file, mode)
            os.replace(temp_file, target_path)
        except OSError as e:
            if temp_file.exists():
                temp_file.unlink()
            raise PersistenceError(f"Writing {target_path} failed: {e}") from e
        logger.debug(f"Wrote kubeconfig to {target_path}")

    def _ordered(self, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        keys = list(data.keys())

        def sort_logic(key):
            if key in self.preferred_order:
                return self.preferred_order.index(key)
            return len(self.preferred_order) + keys.index(key)

        ordered = CommentedMap()
        for key in sorted(keys, key=sort_logic):
            value = data[key]
            if isinstance(value, list):
                value = [self._plain(item) for item in value]
            ordered[key] = value
        return ordered

    def _plain(self, item: Any) -> Any:
        if isinstance(item, dict):
            return CommentedMap((k, self._plain(v)) for k, v in item.items())
        if isinstance(item, list):
            return [self._plain(v) for v in item]
        return item
