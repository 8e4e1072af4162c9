"""Error taxonomy shared by the engine, the persistence adapter and the dispatcher."""


class KubeContextsError(Exception):
    """Base class for every error raised by kubecontexts."""


class NotFoundError(KubeContextsError):
    """A referenced file or entry does not exist."""


class ParseFailureError(KubeContextsError):
    """A kubeconfig document could not be parsed."""


class MissingReferenceError(KubeContextsError):
    """A context names a cluster or user that does not exist in its own document."""


class PersistenceError(KubeContextsError, OSError):
    """Writing the canonical kubeconfig failed."""


class ResolutionError(KubeContextsError):
    """The location of the canonical kubeconfig could not be determined."""


class ConfigurationError(KubeContextsError):
    """The wiring of channels and producers is inconsistent."""
