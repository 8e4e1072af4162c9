# src/kubecontexts/cli/formatter.py
from typing import List

from rich.console import Console
from rich.table import Table

from kubecontexts.core.models import ImportCandidate, KubeConfig, find_cluster

console = Console()


class ContextsFormatter:
    """
    Renders the kubeconfig contexts and import previews as rich tables.
    """

    def __init__(self, out: Console = console):
        self.console = out

    def print_contexts(self, doc: KubeConfig):
        if not doc.contexts:
            self.console.print("[dim]No contexts defined.[/dim]")
            return

        table = Table(title="Kubernetes Contexts", show_header=True, header_style="bold magenta")
        table.add_column("Current", justify="center")
        table.add_column("Name", style="cyan")
        table.add_column("Cluster")
        table.add_column("Server", style="dim")
        table.add_column("User")
        table.add_column("Namespace")

        for context in doc.contexts:
            cluster = find_cluster(doc, context.cluster)
            table.add_row(
                "*" if context.name == doc.current_context else "",
                context.name,
                context.cluster,
                cluster.server if cluster else "[red]missing[/red]",
                context.user,
                context.namespace or "",
            )
        self.console.print(table)

    def print_import_candidates(self, candidates: List[ImportCandidate]):
        if not candidates:
            self.console.print("[dim]No contexts to import.[/dim]")
            return

        table = Table(title="Importable Contexts", show_header=True, header_style="bold magenta")
        table.add_column("Name", style="cyan")
        table.add_column("Cluster")
        table.add_column("Server", style="dim")
        table.add_column("User")
        table.add_column("Namespace")
        table.add_column("Status")

        for c in candidates:
            if c.certificate_changed:
                status = "[yellow]conflict, certificate updated[/yellow]"
            elif c.has_conflict:
                status = "[yellow]conflict[/yellow]"
            else:
                status = "[green]new[/green]"
            table.add_row(c.name, c.cluster, c.server or "", c.user, c.namespace or "", status)
        self.console.print(table)
