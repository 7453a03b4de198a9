"""
This package contains the typed Kubernetes-esque resources that appimport reads and writes, as opposed to the
generated objects, which are passed around as plain manifests.
"""

from abc import ABC
from dataclasses import dataclass
from typing import ClassVar, cast
from typing_extensions import Self
from databind.core import ExtraKeys
from databind.json import load as deser, dump as ser

from appimport.tools.types import Manifest


class Resource(ABC):
    """
    Base class for typed resources. Subclasses are dataclasses that declare their `apiVersion` and `kind` as class
    arguments; all other fields are (de)serialized with databind.
    """

    API_VERSION: ClassVar[str]
    """ The API version of the resource, e.g. `template.openshift.io/v1`. """

    KIND: ClassVar[str]
    """
    The kind identifier of the resource. If not set, this will default to the class name.
    """

    def __init_subclass__(cls, api_version: str, kind: str | None = None) -> None:
        cls.API_VERSION = api_version
        if kind is not None or "KIND" not in vars(cls):
            cls.KIND = kind or cls.__name__

    @classmethod
    def load(cls, manifest: Manifest) -> "Self":
        """
        Load the resource from a manifest. The `apiVersion` group must match, the version is not checked so that
        objects returned by an API server in an equivalent version are accepted.
        """

        group = cls.API_VERSION.rpartition("/")[0]
        if manifest.get("apiVersion", "").rpartition("/")[0] != group:
            raise ValueError(f"Unsupported apiVersion: {manifest.get('apiVersion')!r}, expected {cls.API_VERSION!r}")
        if manifest.get("kind") != cls.KIND:
            raise ValueError(f"Expected kind {cls.KIND!r}, got {manifest.get('kind')!r}")

        manifest = Manifest(dict(manifest))
        manifest.pop("apiVersion")
        manifest.pop("kind")

        return cast(Self, deser(manifest, cls))

    def dump(self) -> Manifest:
        """
        Dump the resource to a manifest.
        """

        manifest = cast(Manifest, ser(self, type(self)))
        return Manifest({"apiVersion": self.API_VERSION, "kind": self.KIND, **manifest})


@ExtraKeys()
@dataclass
class ObjectMetadata:
    """
    Kubernetes object metadata.
    """

    name: str
    namespace: str | None = None
    labels: dict[str, str] | None = None
    annotations: dict[str, str] | None = None
