from dataclasses import dataclass


def join_group_version(group: str, version: str) -> str:
    """
    Join an API group and version into the `group/version` form used by the API server. The core API group has an
    empty name and its group version is just the version.
    """

    if not group:
        return version
    return f"{group}/{version}"


def split_group_version(group_version: str) -> tuple[str, str]:
    """
    Split a `group/version` (or bare `version` for the core group) into its group and version.

    Raises:
        ValueError: If the value has more than one `/` or an empty component.
    """

    parts = group_version.split("/")
    if len(parts) == 1 and parts[0]:
        return "", parts[0]
    if len(parts) == 2 and all(parts):
        return parts[0], parts[1]
    raise ValueError(f"invalid group version: {group_version!r}")


@dataclass(frozen=True)
class TypeIdentity:
    """
    The group, version and kind of an object (GVK).
    """

    group: str
    version: str
    kind: str

    @staticmethod
    def from_api_version(api_version: str, kind: str) -> "TypeIdentity":
        group, version = split_group_version(api_version)
        return TypeIdentity(group, version, kind)

    @property
    def api_version(self) -> str:
        return join_group_version(self.group, self.version)

    def __str__(self) -> str:
        return f"{self.api_version}, Kind={self.kind}"


@dataclass(frozen=True)
class ResourceMapping:
    """
    The REST-addressable form of a type (GVR), along with the kind it was mapped from.
    """

    group: str
    version: str
    resource: str
    kind: str

    @property
    def group_version(self) -> str:
        return join_group_version(self.group, self.version)

    def __str__(self) -> str:
        return f"{self.group_version}/{self.resource}"
