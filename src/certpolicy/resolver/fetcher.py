from urllib.parse import quote

from kubernetes.dynamic import DynamicClient
from kubernetes.dynamic.exceptions import DynamicApiError, NotFoundError
from kubernetes.dynamic.resource import Resource, ResourceInstance
from loguru import logger
import urllib3.exceptions

from certpolicy.resolver.errors import FetchError, ObjectNotFoundError
from certpolicy.resolver.types import ResourceMapping
from certpolicy.tools.types import Manifest


class NotFound(Exception):
    """
    Raised by [GroupVersionClient.get()] when the API server responds with 404.
    """


class GroupVersionClient:
    """
    Reads objects of any resource in a single API group version through the dynamic client.

    Args:
        client: The dynamic client to send requests with.
        group: The API group; empty for the core group.
        version: The API version.
        timeout: An optional timeout in seconds for each request.
    """

    def __init__(self, client: DynamicClient, group: str, version: str, timeout: float | None = None) -> None:
        self._client = client
        self.group = group
        self.version = version
        self._timeout = timeout

    def resource(self, name: str, kind: str, namespaced: bool) -> Resource:
        return Resource(
            prefix="apis" if self.group else "api",
            group=self.group,
            api_version=self.version,
            kind=kind,
            name=name,
            namespaced=namespaced,
            client=self._client,
        )

    def get(self, resource: Resource, name: str, namespace: str | None = None) -> Manifest:
        """
        Get an object by name. The namespace is only used if the *resource* is namespaced.

        Raises:
            NotFound: If the object does not exist.
            FetchError: If the name is empty or the request failed for any other reason.
        """

        if namespace is not None:
            namespace = quote(namespace, safe="")
        if not name:
            raise FetchError(resource.path(namespace=namespace), reason="resource name may not be empty")

        name = quote(name, safe="")
        path = resource.path(name=name, namespace=namespace)
        try:
            result = resource.get(name=name, namespace=namespace, _request_timeout=self._timeout)
        except NotFoundError as exc:
            raise NotFound(path) from exc
        except DynamicApiError as exc:
            raise FetchError(path, exc.status, exc.reason) from exc
        except urllib3.exceptions.HTTPError as exc:
            raise FetchError(path, reason=str(exc)) from exc
        except (KeyError, TypeError) as exc:
            # JSON that is not an object with a kind.
            raise FetchError(path, reason=f"malformed response: {exc}") from exc

        if not isinstance(result, ResourceInstance):
            raise FetchError(path, reason=f"unexpected response of type {type(result).__name__}")
        return Manifest(result.to_dict())


def fetch_object(
    client: DynamicClient,
    mapping: ResourceMapping,
    namespaced: bool,
    namespace: str,
    name: str,
    timeout: float | None = None,
) -> Manifest | None:
    """
    Retrieve the live object for a resource mapping.

    An absent cluster-scoped object is not an error and results in `None`. An absent namespaced object is reported
    with an [ObjectNotFoundError].

    Raises:
        ObjectNotFoundError: If *namespaced* is set and the object does not exist in *namespace*.
        FetchError: If the object could not be retrieved for any other reason.
    """

    gv_client = GroupVersionClient(client, mapping.group, mapping.version, timeout=timeout)
    resource = gv_client.resource(mapping.resource, mapping.kind, namespaced)

    if not namespaced:
        try:
            instance = gv_client.get(resource, name)
        except NotFound:
            logger.debug("Cluster-scoped object {} {!r} does not exist.", mapping, name)
            return None
        except FetchError:
            logger.error("Object {} {!r} cannot be retrieved from the API server.", mapping, name)
            raise
        logger.debug("Object {} {!r} retrieved from the API server.", mapping, name)
        return instance

    try:
        instance = gv_client.get(resource, name, namespace)
    except NotFound as exc:
        logger.debug("Object {} {!r} does not exist in namespace {!r}.", mapping, name, namespace)
        raise ObjectNotFoundError(mapping.resource, name, namespace) from exc
    except FetchError:
        logger.error(
            "Object {} {!r} in namespace {!r} cannot be retrieved from the API server.", mapping, name, namespace
        )
        raise
    logger.debug("Object {} {!r} retrieved from namespace {!r}.", mapping, name, namespace)
    return instance
