#!/usr/bin/env python3
"""
KUBECONTEXTS NOTIFIER - User-Facing Messages
--------------------------------------------
The engine never raises to its caller for failures on the live document;
it reports them here instead. `ConsoleNotifier` renders through rich for
the command-line host.

Author: KubeContexts Team
Date: 2026-10-18
"""

import asyncio
from enum import Enum
from typing import Optional, Protocol

from rich.console import Console
from rich.panel import Panel


class Severity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class Notifier(Protocol):

    def notify(self, title: str, body: str, severity: Severity = Severity.ERROR) -> None: ...

    async def confirm(self, prompt: str, affirmative: str, negative: str) -> Optional[str]: ...


class ConsoleNotifier:
    """
    Notification sink backed by a rich Console.
    `assume_yes` answers every confirmation with the affirmative label.
    """

    STYLES = {
        Severity.INFO: "cyan",
        Severity.WARNING: "yellow",
        Severity.ERROR: "red",
    }

    def __init__(self, console: Optional[Console] = None, assume_yes: bool = False):
        self.console = console or Console(stderr=True)
        self.assume_yes = assume_yes

    def notify(self, title: str, body: str, severity: Severity = Severity.ERROR):
        style = self.STYLES.get(Severity(severity), "white")
        self.console.print(Panel(body, title=f"[bold {style}]{title}[/bold {style}]", border_style=style, expand=False))

    async def confirm(self, prompt: str, affirmative: str, negative: str) -> Optional[str]:
        if self.assume_yes:
            return affirmative
        question = f"[bold yellow]{prompt} ({affirmative}/{negative}): [/bold yellow]"
        answer = await asyncio.to_thread(self.console.input, question)
        return affirmative if answer.strip().lower() in (affirmative.lower(), affirmative[:1].lower()) else negative
