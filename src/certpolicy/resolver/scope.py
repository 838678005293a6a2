from loguru import logger

from certpolicy.resolver.discovery import DiscoverySnapshot
from certpolicy.resolver.errors import ScopeUnknownError
from certpolicy.resolver.types import ResourceMapping


def resolve_scope(mapping: ResourceMapping, snapshot: DiscoverySnapshot, strict: bool = False) -> bool:
    """
    Return `True` if the mapped resource is namespaced and `False` if it is cluster-scoped.

    If the snapshot has no entry for the resource, it is assumed to be namespaced unless *strict* is enabled.

    Raises:
        ScopeUnknownError: If *strict* is enabled and the snapshot has no entry for the resource.
    """

    for resource in snapshot.iter_resources(mapping.group_version):
        if resource.name == mapping.resource and resource.kind == mapping.kind:
            logger.debug("Resource {} namespaced: {}", mapping, resource.namespaced)
            return resource.namespaced

    if strict:
        raise ScopeUnknownError(mapping.group_version, mapping.resource, mapping.kind)

    logger.warning("Resource {} not found in discovery, assuming it is namespaced.", mapping)
    return True
