from typing import Any, NewType


Manifest = NewType("Manifest", dict[str, Any])
""" Represents a Kubernetes object manifest. """

Manifests = NewType("Manifests", list[Manifest])
""" Represents a list of Kubernetes object manifests. """


def describe_manifest(manifest: Manifest) -> str:
    """
    Return a short `kind/name` reference for the manifest, suitable for log and error messages.
    """

    kind = manifest.get("kind") or "<unknown>"
    name = (manifest.get("metadata") or {}).get("name") or "<unnamed>"
    return f"{kind.lower()}/{name}"
