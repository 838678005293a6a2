"""
Core of the certificate policy controller: resolving manifests to live cluster objects and bootstrapping the hub
cluster configuration.
"""

__version__ = "0.1.0"
