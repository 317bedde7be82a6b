"""Builders for Kubernetes resources."""

from .site import DependentResource, build_dependent_resources

__all__ = ["DependentResource", "build_dependent_resources"]
