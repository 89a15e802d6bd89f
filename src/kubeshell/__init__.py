"""kubeshell - an interactive, stateful shell for Kubernetes clusters."""

__version__ = "0.1.0"
