"""Kubernetes integration for the forward-rule manager."""

from corefwd.core.k8s.cache import ClientCache
from corefwd.core.k8s.client import KubernetesClusterHandle, build_handle

__all__ = ["ClientCache", "KubernetesClusterHandle", "build_handle"]
