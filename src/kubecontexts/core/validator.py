#!/usr/bin/env python3
"""
KUBECONTEXTS VALIDATOR - Referential Integrity Gate
---------------------------------------------------
Final check applied before the engine commits a document it built itself
(duplicate, edit, import). Contexts loaded from disk may dangle; contexts
the engine creates may not.

Author: KubeContexts Team
Date: 2026-10-18
"""

import logging
from typing import Iterable, Optional, Tuple

from kubecontexts.core.errors import MissingReferenceError
from kubecontexts.core.models import Context, KubeConfig, find_cluster, find_context, find_user

logger = logging.getLogger("kubecontexts.validator")


class ReferenceValidator:
    """Enforces that engine-created contexts resolve their cluster and user."""

    def check_context(self, doc: KubeConfig, context: Context) -> Tuple[bool, str]:
        if not find_cluster(doc, context.cluster):
            return False, f"context '{context.name}' references missing cluster '{context.cluster}'"
        if not find_user(doc, context.user):
            return False, f"context '{context.name}' references missing user '{context.user}'"
        return True, "references resolved"

    def validate(self, doc: KubeConfig, names: Iterable[str]) -> Tuple[bool, str]:
        """
        Checks the named contexts of `doc`. Names that are not present are
        reported as failures too, since the caller just created them.
        """
        for name in names:
            context = find_context(doc, name)
            if context is None:
                return False, f"context '{name}' is missing from the document"
            valid, err = self.check_context(doc, context)
            if not valid:
                return False, err
        return True, "document passes reference check"

    def require(self, doc: KubeConfig, names: Iterable[str], source: Optional[str] = None):
        """Raises MissingReferenceError instead of returning a verdict."""
        valid, err = self.validate(doc, names)
        if not valid:
            where = f" in {source}" if source else ""
            logger.error(f"Reference check failed{where}: {err}")
            raise MissingReferenceError(err)
