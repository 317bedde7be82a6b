"""Clients for the Kubernetes API and the remote content source."""
