"""Channel identifiers and the payloads pushed on them."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class Channel(str, Enum):
    AVAILABLE_CONTEXTS = "AvailableContexts"


@dataclass(frozen=True)
class ContextInfo:
    name: str
    cluster: str
    user: str
    namespace: Optional[str] = None
    server: Optional[str] = None
    current: bool = False


@dataclass(frozen=True)
class AvailableContextsInfo:
    contexts: List[ContextInfo] = field(default_factory=list)
    current_context: str = ""
