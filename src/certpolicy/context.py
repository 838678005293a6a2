from dataclasses import dataclass
from pathlib import Path

from kubernetes.client import Configuration
from kubernetes.client.api_client import ApiClient
from kubernetes.config.incluster_config import load_incluster_config
from kubernetes.config.kube_config import load_kube_config
from loguru import logger

from certpolicy.hub import HubConfigLoader
from certpolicy.resolver import GenericObjectResolver


@dataclass
class ControllerContext:
    """
    The state shared by all components of the controller: the base Kubernetes API client and the loader that holds
    the cached hub configuration. Create it once at process start and pass it on.
    """

    client: ApiClient
    hub: HubConfigLoader

    @property
    def configuration(self) -> Configuration:
        """
        The base client configuration.
        """

        return self.client.configuration

    def resolver(self, strict_scope: bool = False, timeout: float | None = None) -> GenericObjectResolver:
        return GenericObjectResolver(self.client, strict_scope=strict_scope, timeout=timeout)

    @staticmethod
    def create(
        *, in_cluster: bool = False, kubeconfig: Path | None = None, context: str | None = None
    ) -> "ControllerContext":
        """
        Load the base client configuration, either from the in-cluster service account or from a kubeconfig file,
        and create the context from it.

        Args:
            in_cluster: Use the in-cluster configuration. *kubeconfig* and *context* are ignored.
            kubeconfig: The kubeconfig file to use. Defaults to `KUBECONFIG` or `~/.kube/config`.
            context: The kubeconfig context to use. Defaults to the current context.
        """

        configuration = Configuration()
        if in_cluster:
            logger.info("Using in-cluster configuration.")
            load_incluster_config(client_configuration=configuration)
        else:
            logger.debug("Using kubeconfig '{}' (context: {}).", kubeconfig or "default", context or "current")
            load_kube_config(
                config_file=str(kubeconfig) if kubeconfig else None,
                context=context,
                client_configuration=configuration,
                persist_config=False,
            )

        client = ApiClient(configuration)
        return ControllerContext(client=client, hub=HubConfigLoader(client))
