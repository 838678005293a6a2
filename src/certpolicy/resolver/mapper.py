from loguru import logger

from certpolicy.resolver.discovery import DiscoverySnapshot
from certpolicy.resolver.errors import MappingError
from certpolicy.resolver.types import ResourceMapping, TypeIdentity


def map_resource(identity: TypeIdentity, snapshot: DiscoverySnapshot) -> ResourceMapping:
    """
    Map a type identity to the resource that serves its kind in exactly the identity's version. Other versions of
    the group are never substituted.

    Raises:
        MappingError: If the identity's version does not serve its kind.
    """

    for resource in snapshot.iter_resources(identity.api_version):
        if resource.kind == identity.kind:
            mapping = ResourceMapping(identity.group, identity.version, resource.name, resource.kind)
            logger.trace("Mapping found for {}: {}", identity, mapping)
            return mapping

    if identity.group in snapshot.groups:
        logger.debug(
            "Kind {} is not served in {}; group {!r} serves versions {}.",
            identity.kind,
            identity.api_version,
            identity.group,
            snapshot.groups[identity.group],
        )
    raise MappingError(identity.api_version, identity.kind)
