"""
This package resolves serialized Kubernetes manifests to the live objects they describe, without any knowledge of
the object's schema. The type of the manifest is mapped to a resource through the API server's discovery endpoints,
which also tell whether the resource is namespaced or cluster-scoped.
"""

from dataclasses import dataclass

from kubernetes.client.api_client import ApiClient
from loguru import logger

from certpolicy.resolver.decoder import decode_manifest
from certpolicy.resolver.discovery import Discovery
from certpolicy.resolver.errors import (
    DecodeError,
    DiscoveryError,
    FetchError,
    MappingError,
    ObjectNotFoundError,
    ResolverError,
    ScopeUnknownError,
)
from certpolicy.resolver.fetcher import fetch_object
from certpolicy.resolver.mapper import map_resource
from certpolicy.resolver.scope import resolve_scope
from certpolicy.tools.types import Manifest

__all__ = [
    "DecodeError",
    "DiscoveryError",
    "FetchError",
    "GenericObjectResolver",
    "MappingError",
    "ObjectNotFoundError",
    "ResolverError",
    "ScopeUnknownError",
]


@dataclass
class GenericObjectResolver:
    """
    Resolves manifests to live objects using the given Kubernetes API client.
    """

    client: ApiClient
    """ The base Kubernetes API client. """

    strict_scope: bool = False
    """ Raise a [ScopeUnknownError] instead of assuming a resource is namespaced when discovery has no entry. """

    timeout: float | None = None
    """ An optional timeout in seconds for the request that retrieves the object. """

    def get(self, data: bytes, namespace: str) -> Manifest | None:
        """
        Retrieve the live object described by the manifest *data*.

        Args:
            data: The JSON or YAML serialized manifest.
            namespace: The namespace to look the object up in. Ignored for cluster-scoped resources.
        Returns:
            The live object, or `None` if the resource is cluster-scoped and the object does not exist.
        Raises:
            DecodeError: If the manifest cannot be decoded.
            DiscoveryError: If the API server's resources cannot be discovered.
            MappingError: If the manifest's type is not served by the API server.
            ScopeUnknownError: If [strict_scope] is enabled and the resource's scope cannot be determined.
            ObjectNotFoundError: If the resource is namespaced and the object does not exist.
            FetchError: If the manifest has no name, or the object cannot be retrieved for any other reason.
        """

        decoded = decode_manifest(data)
        name = decoded.name

        snapshot = Discovery(self.client).snapshot()
        mapping = map_resource(decoded.type_identity, snapshot)
        namespaced = resolve_scope(mapping, snapshot, strict=self.strict_scope)

        logger.debug("Resolving {} {!r} (namespaced: {})", mapping, name, namespaced)
        return fetch_object(snapshot.client, mapping, namespaced, namespace, name, timeout=self.timeout)
