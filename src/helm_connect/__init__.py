"""helm-connect - Kubernetes connection resolution and Helm action configuration."""

__version__ = "0.1.0"
