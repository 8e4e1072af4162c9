"""KubeContexts: kubeconfig context reconciliation and change dispatch."""

__version__ = "0.1.0"
