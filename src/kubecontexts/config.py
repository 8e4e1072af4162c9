"""Runtime settings resolved from the environment."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from kubecontexts.core.errors import ResolutionError

DEFAULT_KUBECONFIG = Path("~/.kube/config")
DEFAULT_LOG_LEVEL = "WARNING"


@dataclass(frozen=True)
class Settings:
    kubeconfig: Optional[str] = None
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        return cls(
            kubeconfig=env.get("KUBECONFIG"),
            log_level=env.get("KUBECONTEXTS_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper(),
        )

    def kubeconfig_path(self) -> Path:
        """
        Canonical kubeconfig location. Like kubectl, only the first entry of
        a KUBECONFIG path list is written to.
        """
        if self.kubeconfig is None:
            return DEFAULT_KUBECONFIG.expanduser()
        first = next((p for p in self.kubeconfig.split(os.pathsep) if p.strip()), "")
        if not first:
            raise ResolutionError("KUBECONFIG is set but contains no usable path")
        return Path(first).expanduser()

    def log_level_value(self) -> int:
        level = logging.getLevelName(self.log_level)
        return level if isinstance(level, int) else logging.WARNING
