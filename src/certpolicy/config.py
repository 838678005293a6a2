from dataclasses import dataclass, field
import os
from pathlib import Path

from loguru import logger


WATCH_NAMESPACE_ENV = "WATCH_NAMESPACE"
SERVICE_ACCOUNT_NAMESPACE_FILE = Path("/var/run/secrets/kubernetes.io/serviceaccount/namespace")


class NoNamespaceError(Exception):
    """
    The controller is not running inside a cluster, so it has no namespace of its own.
    """


class WatchNamespaceError(Exception):
    """
    The `WATCH_NAMESPACE` environment variable is not set.
    """


@dataclass
class HubSecretRef:
    """
    Locates the secret on the managed cluster that holds the kubeconfig for the hub cluster.
    """

    namespace: str = "open-cluster-management-agent-addon"
    name: str = "cert-policy-controller-hub-kubeconfig"


@dataclass
class ControllerConfig:
    """
    Configuration for the controller that is stored in a `cert-policy-controller.yaml` file.
    """

    FILENAME = "cert-policy-controller.yaml"

    cluster_name: str = "default-cluster"
    """ The name of the managed cluster, as known to the hub. """

    hub: HubSecretRef = field(default_factory=HubSecretRef)

    strict_scope: bool = False
    """
    Fail resolving objects whose resource scope is not known from discovery instead of assuming they are namespaced.
    """

    request_timeout: float | None = None
    """ Timeout in seconds for each request to the Kubernetes API server. No timeout if not set. """

    @staticmethod
    def load(file: Path | None = None, /) -> "ControllerConfig":
        """
        Load the configuration from the given file, or from the default configuration file if one can be found in
        the working directory or any of its parents. Without a configuration file, the defaults are returned.
        """

        from databind.json import load as deser
        from yaml import safe_load

        if file is None:
            file = _find_config_file(ControllerConfig.FILENAME, Path.cwd())
        if file is None:
            return ControllerConfig()

        logger.debug("Loading controller configuration from '{}'", file)
        return deser(safe_load(file.read_text()) or {}, ControllerConfig, filename=str(file))


def get_watch_namespaces() -> list[str]:
    """
    Return the namespaces the controller watches, per the `WATCH_NAMESPACE` environment variable. An empty list means
    that the controller watches all namespaces.

    Raises:
        WatchNamespaceError: If `WATCH_NAMESPACE` is not set.
    """

    value = os.environ.get(WATCH_NAMESPACE_ENV)
    if value is None:
        raise WatchNamespaceError(f"{WATCH_NAMESPACE_ENV} must be set")
    return [ns.strip() for ns in value.split(",") if ns.strip()]


def get_operator_namespace(file: Path = SERVICE_ACCOUNT_NAMESPACE_FILE) -> str:
    """
    Return the namespace the controller is running in, read from its service account.

    Raises:
        NoNamespaceError: If the controller is not running in a cluster.
    """

    try:
        namespace = file.read_text().strip()
    except FileNotFoundError as exc:
        raise NoNamespaceError("namespace not found for current environment") from exc

    logger.debug("Found namespace {}", namespace)
    return namespace


def _find_config_file(filename: str, cwd: Path) -> Path | None:
    for directory in (cwd, *cwd.parents):
        if (directory / filename).is_file():
            return directory / filename
    return None
