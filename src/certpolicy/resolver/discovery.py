"""
Query the API server for the resource types it serves.

The snapshot returned by [Discovery.snapshot()] is the input for both the REST mapper and the scope resolver. It is
fetched fresh for every resolution and never cached, so that it always reflects the resources currently served by
the cluster.
"""

from collections.abc import Iterator
from dataclasses import dataclass, field
import os
from tempfile import TemporaryDirectory

from kubernetes.client.api_client import ApiClient
from kubernetes.dynamic import DynamicClient
from kubernetes.dynamic.exceptions import DynamicApiError
from kubernetes.dynamic.resource import Resource, ResourceList
from loguru import logger
import urllib3.exceptions

from certpolicy.resolver.errors import DiscoveryError
from certpolicy.resolver.types import join_group_version

GROUPS_PREFIX = "apis"

# Malformed discovery documents surface from the dynamic client as lookup and type errors.
DISCOVERY_ERRORS = (DynamicApiError, urllib3.exceptions.HTTPError, ValueError, KeyError, TypeError, AttributeError)


@dataclass
class DiscoverySnapshot:
    """
    The API groups and resources served by the API server at the time of discovery.
    """

    client: DynamicClient
    """ The dynamic client the snapshot was discovered with. """

    groups: dict[str, list[str]] = field(default_factory=dict)
    """ The versions of every API group, keyed by group name. The core group has an empty name. """

    resources: dict[str, list[Resource]] = field(default_factory=dict)
    """ The resources served in each group version, without subresources. """

    failed_group_versions: dict[str, str] = field(default_factory=dict)
    """ Group versions whose resources could not be listed, mapped to the error message. """

    def iter_resources(self, group_version: str) -> Iterator[Resource]:
        yield from self.resources.get(group_version, ())


class Discovery:
    """
    Discovers the resources served by the Kubernetes API server through a [DynamicClient].

    Args:
        client: The Kubernetes API client to use.
    """

    def __init__(self, client: ApiClient) -> None:
        self._client = client

    def snapshot(self) -> DiscoverySnapshot:
        """
        Retrieve all API groups and the resources in every served group version.

        Failing to list the resources of a version of a non-core group is tolerated; the group version is recorded
        in [DiscoverySnapshot.failed_group_versions] and skipped. This happens for example when the API server denies
        access to a group.

        Raises:
            DiscoveryError: If the API groups or the core resources cannot be retrieved.
        """

        # The dynamic client persists what it discovered to a cache file. Giving it a file that is removed right
        # after ensures that every snapshot queries the API server.
        with TemporaryDirectory(prefix="certpolicy-discovery-") as tmpdir:
            try:
                dynamic = DynamicClient(self._client, cache_file=os.path.join(tmpdir, "discovery.json"))
                api_groups = dynamic.resources.parse_api_groups(request_resources=False)
            except DISCOVERY_ERRORS as exc:
                raise DiscoveryError(f"failed to retrieve API groups from the API server: {exc}") from exc

        snapshot = DiscoverySnapshot(client=dynamic)
        for prefix, groups in api_groups.items():
            for group, versions in groups.items():
                if prefix == GROUPS_PREFIX and not group:
                    # Only holds the generic `List` kind.
                    continue

                snapshot.groups[group] = list(versions)
                for version, resource_group in versions.items():
                    group_version = join_group_version(group, version)
                    try:
                        by_kind = dynamic.resources.get_resources_for_api_version(
                            prefix, group, version, resource_group.preferred
                        )
                    except DISCOVERY_ERRORS as exc:
                        if not group:
                            raise DiscoveryError(f"failed to retrieve core resources ({group_version}): {exc}") from exc
                        logger.warning("Unable to retrieve resources for group version {}: {}", group_version, exc)
                        snapshot.failed_group_versions[group_version] = str(exc)
                        continue

                    snapshot.resources[group_version] = [
                        resource
                        for resources in by_kind.values()
                        for resource in resources
                        if not isinstance(resource, ResourceList)
                    ]

        logger.trace(
            "Discovered {} group version(s) across {} API group(s).", len(snapshot.resources), len(snapshot.groups)
        )
        return snapshot
