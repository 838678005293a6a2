from dataclasses import dataclass

import yaml
from loguru import logger

from certpolicy.resolver.errors import DecodeError
from certpolicy.resolver.types import TypeIdentity
from certpolicy.tools.types import Manifest


@dataclass
class DecodedManifest:
    """
    A manifest decoded into an untyped object together with its type identity.
    """

    type_identity: TypeIdentity
    object: Manifest

    @property
    def name(self) -> str:
        """
        The `metadata.name` of the object, or an empty string if the object has no name.

        Raises:
            DecodeError: If `metadata` is not a mapping or the name is not a string.
        """

        return _get_metadata_field(self.object, "name")

    @property
    def namespace(self) -> str:
        """
        The `metadata.namespace` of the object, or an empty string if the object has no namespace.
        """

        return _get_metadata_field(self.object, "namespace")


def decode_manifest(data: bytes) -> DecodedManifest:
    """
    Decode the serialized form of a single Kubernetes object. Both JSON and YAML are accepted.

    Raises:
        DecodeError: If the data is not a single structured object with a valid `apiVersion` and `kind`.
    """

    logger.trace("Reading raw object: {}", data)

    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise DecodeError(f"manifest is not valid UTF-8: {exc}") from exc

    try:
        obj = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise DecodeError(f"manifest could not be parsed: {exc}") from exc

    if obj is None:
        raise DecodeError("manifest is empty")
    if not isinstance(obj, dict):
        raise DecodeError(f"manifest must be an object, got {type(obj).__name__}")

    api_version = obj.get("apiVersion")
    kind = obj.get("kind")
    if not isinstance(api_version, str) or not api_version:
        raise DecodeError("manifest is missing 'apiVersion'")
    if not isinstance(kind, str) or not kind:
        raise DecodeError("manifest is missing 'kind'")

    try:
        identity = TypeIdentity.from_api_version(api_version, kind)
    except ValueError as exc:
        raise DecodeError(f"manifest has an invalid 'apiVersion': {exc}") from exc

    return DecodedManifest(identity, Manifest(obj))


def _get_metadata_field(obj: Manifest, key: str) -> str:
    metadata = obj.get("metadata")
    if metadata is None:
        return ""
    if not isinstance(metadata, dict):
        raise DecodeError(f"'metadata' must be an object, got {type(metadata).__name__}")
    value = metadata.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise DecodeError(f"'metadata.{key}' must be a string, got {type(value).__name__}")
    return value
