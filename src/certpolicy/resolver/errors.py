"""
Exceptions raised while resolving a manifest to the live object it describes.
"""

from dataclasses import dataclass


class ResolverError(Exception):
    """
    Base class for all errors raised by the generic object resolver.
    """


class DecodeError(ResolverError):
    """
    The manifest bytes could not be decoded into an object with type metadata.
    """


class DiscoveryError(ResolverError):
    """
    The API server could not be queried for the resources it serves. The resolver cannot function without discovery,
    so callers are expected to treat this as unrecoverable.
    """


@dataclass
class MappingError(ResolverError):
    """
    The type of the manifest is not served by the API server.
    """

    api_version: str
    kind: str

    def __str__(self) -> str:
        return f"no resource mapping found for kind {self.kind!r} in apiVersion {self.api_version!r}"


@dataclass
class ScopeUnknownError(ResolverError):
    """
    The discovery snapshot contains no entry for a mapped resource, so its scope cannot be determined.
    """

    group_version: str
    resource: str
    kind: str

    def __str__(self) -> str:
        return f"scope of resource {self.resource!r} (kind {self.kind!r}) in {self.group_version!r} is unknown"


@dataclass
class FetchError(ResolverError):
    """
    Retrieving an object from the API server failed for a reason other than the object not existing.
    """

    path: str
    status: int | None = None
    reason: str | None = None

    def __str__(self) -> str:
        message = f"failed to retrieve {self.path}"
        if self.status is not None:
            message += f" (status {self.status})"
        if self.reason:
            message += f": {self.reason}"
        return message


@dataclass
class ObjectNotFoundError(ResolverError):
    """
    A namespaced object does not exist in the requested namespace. Absent cluster-scoped objects are not reported
    with this error, the resolver returns `None` for those instead.
    """

    resource: str
    name: str
    namespace: str

    def __str__(self) -> str:
        return f"{self.resource} {self.name!r} not found in namespace {self.namespace!r}"
