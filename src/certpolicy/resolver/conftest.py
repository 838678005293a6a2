import copy
import json
from typing import Any
from unittest.mock import MagicMock

from kubernetes.client import Configuration
from kubernetes.client.api_client import ApiClient
from kubernetes.client.exceptions import ApiException
import pytest

from certpolicy.resolver.discovery import Discovery, DiscoverySnapshot

POLICY_GROUP = "policy.open-cluster-management.io"

SERVER_VERSION = {"major": "1", "minor": "30", "gitVersion": "v1.30.0"}

API_GROUPS = {
    "kind": "APIGroupList",
    "apiVersion": "v1",
    "groups": [
        {
            "name": "apps",
            "versions": [{"groupVersion": "apps/v1", "version": "v1"}],
            "preferredVersion": {"groupVersion": "apps/v1", "version": "v1"},
        },
        {
            "name": "autoscaling",
            "versions": [
                {"groupVersion": "autoscaling/v2", "version": "v2"},
                {"groupVersion": "autoscaling/v1", "version": "v1"},
            ],
            "preferredVersion": {"groupVersion": "autoscaling/v2", "version": "v2"},
        },
        {
            "name": "rbac.authorization.k8s.io",
            "versions": [{"groupVersion": "rbac.authorization.k8s.io/v1", "version": "v1"}],
            "preferredVersion": {"groupVersion": "rbac.authorization.k8s.io/v1", "version": "v1"},
        },
        {
            "name": POLICY_GROUP,
            "versions": [{"groupVersion": f"{POLICY_GROUP}/v1", "version": "v1"}],
            "preferredVersion": {"groupVersion": f"{POLICY_GROUP}/v1", "version": "v1"},
        },
    ],
}

RESOURCE_LISTS = [
    {
        "kind": "APIResourceList",
        "groupVersion": "v1",
        "resources": [
            {"name": "namespaces", "singularName": "namespace", "namespaced": False, "kind": "Namespace"},
            {"name": "pods", "singularName": "pod", "namespaced": True, "kind": "Pod", "shortNames": ["po"]},
            {"name": "pods/status", "singularName": "", "namespaced": True, "kind": "Pod"},
            {"name": "secrets", "singularName": "secret", "namespaced": True, "kind": "Secret"},
        ],
    },
    {
        "kind": "APIResourceList",
        "apiVersion": "v1",
        "groupVersion": "apps/v1",
        "resources": [
            {"name": "deployments", "singularName": "deployment", "namespaced": True, "kind": "Deployment"},
            {"name": "deployments/scale", "singularName": "", "namespaced": True, "kind": "Scale"},
        ],
    },
    {
        "kind": "APIResourceList",
        "apiVersion": "v1",
        "groupVersion": "autoscaling/v2",
        "resources": [
            {"name": "horizontalpodautoscalers", "namespaced": True, "kind": "HorizontalPodAutoscaler"},
        ],
    },
    {
        "kind": "APIResourceList",
        "apiVersion": "v1",
        "groupVersion": "autoscaling/v1",
        "resources": [
            {"name": "horizontalpodautoscalers", "namespaced": True, "kind": "HorizontalPodAutoscaler"},
        ],
    },
    {
        "kind": "APIResourceList",
        "apiVersion": "v1",
        "groupVersion": "rbac.authorization.k8s.io/v1",
        "resources": [
            {"name": "clusterroles", "singularName": "clusterrole", "namespaced": False, "kind": "ClusterRole"},
        ],
    },
    {
        "kind": "APIResourceList",
        "apiVersion": "v1",
        "groupVersion": f"{POLICY_GROUP}/v1",
        "resources": [
            {"name": "certificatepolicies", "namespaced": True, "kind": "CertificatePolicy"},
        ],
    },
]


def _discovery_responses() -> dict[str, Any]:
    responses: dict[str, Any] = {"/version": SERVER_VERSION, "/apis": API_GROUPS}
    for resource_list in RESOURCE_LISTS:
        group_version = resource_list["groupVersion"]
        prefix = "/apis" if "/" in group_version else "/api"
        responses[f"{prefix}/{group_version}"] = resource_list
    return copy.deepcopy(responses)


class _Response:
    """
    An HTTP response as the dynamic client reads it.
    """

    status = 200

    def __init__(self, data: bytes) -> None:
        self.data = data

    @property
    def response(self) -> "_Response":
        return self


@pytest.fixture
def responses() -> dict[str, Any]:
    """
    The responses of the fake API server, keyed by path. Values that are exceptions are raised instead and `bytes`
    are returned as the raw body. Paths that are not present respond with 404.
    """

    return _discovery_responses()


@pytest.fixture
def requested() -> list[str]:
    """
    The paths requested from the fake API server, in order.
    """

    return []


@pytest.fixture
def client(responses: dict[str, Any], requested: list[str]) -> MagicMock:
    def param_serialize(method: str, resource_path: str, **kwargs: Any) -> tuple[Any, ...]:
        return method, resource_path, kwargs.get("header_params"), kwargs.get("body"), kwargs.get("post_params")

    def call_api(method: str, path: str, *args: Any, **kwargs: Any) -> _Response:
        assert method == "GET"
        requested.append(path)
        if path not in responses:
            raise ApiException(status=404, reason="Not Found")
        value = responses[path]
        if isinstance(value, Exception):
            raise value
        if isinstance(value, bytes):
            return _Response(value)
        return _Response(json.dumps(value).encode())

    client = MagicMock(spec=ApiClient)
    client.configuration = Configuration(host="https://cluster.example.com")
    client.param_serialize.side_effect = param_serialize
    client.call_api.side_effect = call_api
    return client


@pytest.fixture
def snapshot(client: MagicMock) -> DiscoverySnapshot:
    return Discovery(client).snapshot()
