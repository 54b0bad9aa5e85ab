"""
GHE Registry - GitHub Enterprise server registry

A small REST service that keeps track of GitHub Enterprise API endpoints. Each
endpoint is probed for GitHub identity before it is accepted, and names and
URLs are kept unique across the registry.
"""

__version__ = "0.1.0"
