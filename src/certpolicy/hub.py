"""
Derive the client configuration for the hub cluster from the kubeconfig secret that is deployed alongside the
controller.

The secret carries a kubeconfig that references the client certificate and key as files (`tls.crt` and `tls.key`),
as it is meant to be mounted into a pod. The certificate and key are stored in the same secret, so the kubeconfig is
made self-contained by embedding them as `client-certificate-data` and `client-key-data`.
"""

import base64
import binascii
from dataclasses import dataclass
import threading
from typing import Any

from kubernetes.client import Configuration, CoreV1Api
from kubernetes.client.api_client import ApiClient
from kubernetes.client.exceptions import ApiException
from kubernetes.config.config_exception import ConfigException
from kubernetes.config.kube_config import load_kube_config_from_dict
from loguru import logger
import urllib3.exceptions
import yaml

KUBECONFIG_KEY = "kubeconfig"
TLS_CERT_KEY = "tls.crt"
TLS_KEY_KEY = "tls.key"


class HubConfigError(Exception):
    """
    Base class for errors raised while deriving the hub configuration.
    """


@dataclass
class SecretFetchError(HubConfigError):
    """
    The hub kubeconfig secret could not be retrieved or is incomplete.
    """

    namespace: str
    name: str
    reason: str | None = None

    def __str__(self) -> str:
        message = f"failed to retrieve hub kubeconfig secret '{self.namespace}/{self.name}'"
        if self.reason:
            message += f": {self.reason}"
        return message


@dataclass
class SecretNotFoundError(SecretFetchError):
    def __str__(self) -> str:
        return f"hub kubeconfig secret '{self.namespace}/{self.name}' does not exist"


class KubeconfigParseError(HubConfigError):
    """
    The kubeconfig in the hub secret is not valid.
    """


class HubConfigLoader:
    """
    Loads the hub configuration once and serves the cached configuration afterwards. The configuration is never
    refreshed, even if the secret changes.

    Args:
        client: The Kubernetes API client of the managed cluster, used to read the secret.
    """

    def __init__(self, client: ApiClient) -> None:
        self._client = client
        self._lock = threading.Lock()
        self._config: Configuration | None = None

    @property
    def cached(self) -> Configuration | None:
        return self._config

    def load(self, namespace: str, secret_name: str, timeout: float | None = None) -> Configuration:
        """
        Return the hub configuration, deriving it from the secret *secret_name* in *namespace* on first use.

        Concurrent first-time calls are serialized, so the secret is read at most once.

        Raises:
            SecretNotFoundError: If the secret does not exist.
            SecretFetchError: If the secret cannot be retrieved or lacks one of the expected keys.
            KubeconfigParseError: If the kubeconfig in the secret is invalid.
        """

        with self._lock:
            if self._config is None:
                self._config = self._derive(namespace, secret_name, timeout)
            else:
                logger.trace("Reusing cached hub configuration.")
            return self._config

    def _derive(self, namespace: str, secret_name: str, timeout: float | None) -> Configuration:
        logger.info("Loading hub configuration from secret '{}/{}'.", namespace, secret_name)

        try:
            secret = CoreV1Api(self._client).read_namespaced_secret(
                secret_name, namespace, _request_timeout=timeout
            )
        except ApiException as exc:
            logger.error("Error getting hub config secret '{}/{}': {}", namespace, secret_name, exc.reason)
            if exc.status == 404:
                raise SecretNotFoundError(namespace, secret_name) from exc
            raise SecretFetchError(namespace, secret_name, exc.reason) from exc
        except urllib3.exceptions.HTTPError as exc:
            logger.error("Error getting hub config secret '{}/{}': {}", namespace, secret_name, exc)
            raise SecretFetchError(namespace, secret_name, str(exc)) from exc

        data: dict[str, str] = secret.data or {}
        values: dict[str, bytes] = {}
        for key in (KUBECONFIG_KEY, TLS_CERT_KEY, TLS_KEY_KEY):
            if key not in data:
                raise SecretFetchError(namespace, secret_name, f"missing key {key!r}")
            try:
                values[key] = base64.b64decode(data[key], validate=True)
            except binascii.Error as exc:
                raise SecretFetchError(namespace, secret_name, f"key {key!r} is not valid base64") from exc

        try:
            template = values[KUBECONFIG_KEY].decode("utf-8")
        except UnicodeDecodeError as exc:
            raise KubeconfigParseError(f"kubeconfig is not valid UTF-8: {exc}") from exc

        kubeconfig = rewrite_kubeconfig(template, values[TLS_CERT_KEY], values[TLS_KEY_KEY])
        try:
            configuration = build_configuration(kubeconfig)
        except KubeconfigParseError as exc:
            logger.error("Error getting REST config for hub: {}", exc)
            raise

        logger.info("Loaded hub configuration for server {}.", configuration.host)
        return configuration


def rewrite_kubeconfig(template: str, certificate: bytes, key: bytes) -> dict[str, Any]:
    """
    Parse the kubeconfig *template* and embed the client *certificate* and *key* in place of the file references to
    `tls.crt` and `tls.key`.

    Raises:
        KubeconfigParseError: If the template is not a valid kubeconfig document.
    """

    try:
        kubeconfig = yaml.safe_load(template)
    except yaml.YAMLError as exc:
        raise KubeconfigParseError(f"kubeconfig could not be parsed: {exc}") from exc

    if not isinstance(kubeconfig, dict):
        raise KubeconfigParseError("kubeconfig must be a mapping")

    return inline_client_credentials(kubeconfig, certificate, key)


def inline_client_credentials(kubeconfig: dict[str, Any], certificate: bytes, key: bytes) -> dict[str, Any]:
    """
    Return a copy of *kubeconfig* in which every user's `client-certificate: tls.crt` is replaced with
    `client-certificate-data` and every `client-key: tls.key` with `client-key-data`, carrying the base64 encoded
    *certificate* and *key*. File references to other files and all other fields are left as they are.
    """

    users = kubeconfig.get("users")
    if users is None:
        return dict(kubeconfig)
    if not isinstance(users, list):
        raise KubeconfigParseError("kubeconfig 'users' must be a list")

    certificate_data = base64.b64encode(certificate).decode("ascii")
    key_data = base64.b64encode(key).decode("ascii")

    new_users = []
    for entry in users:
        if isinstance(entry, dict) and isinstance(entry.get("user"), dict):
            user = entry["user"]
            user = _replace_file_reference(user, "client-certificate", TLS_CERT_KEY, certificate_data)
            user = _replace_file_reference(user, "client-key", TLS_KEY_KEY, key_data)
            entry = {**entry, "user": user}
        new_users.append(entry)

    return {**kubeconfig, "users": new_users}


def build_configuration(kubeconfig: dict[str, Any]) -> Configuration:
    """
    Create a client configuration from a kubeconfig, using its current context.

    Raises:
        KubeconfigParseError: If the kubeconfig is invalid.
    """

    configuration = Configuration()
    try:
        load_kube_config_from_dict(config_dict=kubeconfig, client_configuration=configuration, persist_config=False)
    except ConfigException as exc:
        raise KubeconfigParseError(str(exc)) from exc
    return configuration


def _replace_file_reference(user: dict[str, Any], field: str, filename: str, data: str) -> dict[str, Any]:
    value = user.get(field)
    if not isinstance(value, str) or value.strip() != filename:
        return user
    # Rebuild the mapping to keep the replaced field at its position.
    return {(f"{field}-data" if k == field else k): (data if k == field else v) for k, v in user.items()}
