from typing import Any, NewType


Manifest = NewType("Manifest", dict[str, Any])
""" Represents an untyped Kubernetes object, either decoded from a manifest or retrieved from the API server. """
