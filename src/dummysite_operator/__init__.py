"""Kubernetes operator that turns DummySite resources into running static sites."""

__version__ = "0.1.0"
