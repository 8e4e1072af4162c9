#!/usr/bin/env python3
"""
KUBECONTEXTS CLI
----------------
Command-line host for the contexts manager: lists, switches, duplicates,
edits, deletes and imports kubeconfig contexts.

Author: KubeContexts Team
Date: 2026-10-18
"""

import argparse
import asyncio
import sys
from typing import List, Optional

from rich.console import Console

from kubecontexts import __version__
from kubecontexts.cli.formatter import ContextsFormatter
from kubecontexts.config import Settings
from kubecontexts.core.engine import ContextEdit, ContextsManager
from kubecontexts.core.errors import MissingReferenceError
from kubecontexts.core.models import ImportResolution, find_context
from kubecontexts.logging import configure_logging
from kubecontexts.notify.console import ConsoleNotifier
from kubecontexts.persistence.kubeconfig import KubeConfigStore

console = Console()


class KubeContextsCLI:
    """Translates subcommands into ContextsManager operations."""

    def __init__(self):
        self.parser = argparse.ArgumentParser(
            prog="kubecontexts",
            description="KubeContexts - manage kubeconfig contexts",
        )
        self.formatter = ContextsFormatter(console)
        self._setup_args()

    def _setup_args(self):
        self.parser.add_argument("-v", "--version", action="version", version=f"kubecontexts v{__version__}")
        self.parser.add_argument("--kubeconfig", help="Kubeconfig file to manage (default: $KUBECONFIG or ~/.kube/config)")
        self.parser.add_argument("-y", "--yes", action="store_true", help="Answer yes to confirmations")
        subparsers = self.parser.add_subparsers(dest="command", metavar="Command")

        subparsers.add_parser("list", help="List contexts")

        use_parser = subparsers.add_parser("use", help="Switch the current context")
        use_parser.add_argument("name")

        delete_parser = subparsers.add_parser("delete", help="Delete a context and its unused cluster/user")
        delete_parser.add_argument("name")

        dup_parser = subparsers.add_parser("duplicate", help="Duplicate a context under a new name")
        dup_parser.add_argument("name")

        edit_parser = subparsers.add_parser("edit", help="Edit a context")
        edit_parser.add_argument("name")
        edit_parser.add_argument("--name", dest="new_name", help="Rename the context")
        edit_parser.add_argument("--cluster", help="Cluster to reference")
        edit_parser.add_argument("--user", help="User to reference")
        edit_parser.add_argument("--namespace", help="Namespace; pass an empty string to remove it")

        preview_parser = subparsers.add_parser("preview", help="Show the contexts a file would import")
        preview_parser.add_argument("file")

        import_parser = subparsers.add_parser("import", help="Import contexts from another kubeconfig")
        import_parser.add_argument("file")
        import_parser.add_argument("--select", action="append", metavar="NAME", help="Context to import (repeatable, default: all)")
        import_parser.add_argument("--replace", action="append", default=[], metavar="NAME",
                                   help="Replace the existing context of that name instead of keeping both")

    def _build_manager(self, args: argparse.Namespace, settings: Settings) -> ContextsManager:
        if args.kubeconfig:
            settings = Settings(kubeconfig=args.kubeconfig, log_level=settings.log_level)
        store = KubeConfigStore(path_resolver=settings.kubeconfig_path)
        notifier = ConsoleNotifier(assume_yes=args.yes)
        return ContextsManager(store, notifier)

    async def _run(self, args: argparse.Namespace, settings: Settings) -> int:
        manager = self._build_manager(args, settings)
        if not await manager.load_from_disk():
            return 1

        if args.command == "list":
            self.formatter.print_contexts(manager.get_kube_config())
            return 0

        if args.command == "use":
            ok = await manager.set_current_context(args.name)
        elif args.command == "delete":
            ok = await manager.delete_context(args.name)
        elif args.command == "duplicate":
            if not find_context(manager.get_kube_config(), args.name):
                console.print(f"[yellow]Context '{args.name}' not found, nothing to duplicate.[/yellow]")
                return 1
            ok = await manager.duplicate_context(args.name)
        elif args.command == "edit":
            ok = await self._edit(manager, args)
        elif args.command == "preview":
            self.formatter.print_import_candidates(await manager.get_import_contexts(args.file))
            return 0
        elif args.command == "import":
            ok = await self._import(manager, args)
        else:
            self.parser.print_help()
            return 2

        await manager.contexts_change.drain()
        if ok:
            self.formatter.print_contexts(manager.get_kube_config())
        return 0 if ok else 1

    async def _edit(self, manager: ContextsManager, args: argparse.Namespace) -> bool:
        original = find_context(manager.get_kube_config(), args.name)
        if original is None:
            # Let the engine report the missing context
            return await manager.edit_context(args.name, ContextEdit(args.name, "", ""))
        edit = ContextEdit(
            name=args.new_name or original.name,
            cluster=args.cluster or original.cluster,
            user=args.user or original.user,
            namespace=original.namespace if args.namespace is None else args.namespace,
        )
        return await manager.edit_context(args.name, edit)

    async def _import(self, manager: ContextsManager, args: argparse.Namespace) -> bool:
        selected: Optional[List[str]] = args.select
        if selected is None:
            selected = [c.name for c in await manager.get_import_contexts(args.file)]
        resolutions = {name: ImportResolution.REPLACE for name in args.replace}
        try:
            return await manager.import_contexts_from_file(args.file, selected, resolutions)
        except MissingReferenceError as e:
            console.print(f"[bold red]Import aborted:[/bold red] {e}")
            return False

    def run(self, argv: Optional[List[str]] = None) -> int:
        args = self.parser.parse_args(argv)
        settings = Settings.from_env()
        configure_logging(settings.log_level_value())
        if not args.command:
            self.parser.print_help()
            return 0
        return asyncio.run(self._run(args, settings))


def main():
    try:
        sys.exit(KubeContextsCLI().run())
    except KeyboardInterrupt:
        console.print("\n[bold red]Terminated by user.[/bold red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
