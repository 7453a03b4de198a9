from dataclasses import dataclass, field
from typing import Annotated, Any, ClassVar

from databind.core import Alias, ExtraKeys, SerializeDefaults
from databind.json import dump as ser

from appimport.resources import ObjectMetadata, Resource
from appimport.tools.types import Manifest, Manifests

API_VERSION_TEMPLATE = "template.openshift.io/v1"


@ExtraKeys()
@dataclass
class TemplateParameter:
    """
    A parameter of a template. Objects in the template reference parameters as `${NAME}`.
    """

    name: str
    displayName: str | None = None
    description: str | None = None
    value: str | None = None
    """ The value of the parameter. Set by the template processor if the parameter is generated. """

    generate: str | None = None
    """ If set to `expression`, a value is generated from the expression in `from`. """

    from_: Annotated[str | None, Alias("from")] = None
    required: bool = False


@ExtraKeys()
@dataclass(kw_only=True)
class Template(Resource, api_version=API_VERSION_TEMPLATE):
    """
    A named, parameterized collection of objects. The `labels` are applied to every object when the template is
    processed.
    """

    GENERATE_EXPRESSION: ClassVar[str] = "expression"

    metadata: Annotated[ObjectMetadata, SerializeDefaults(False)]
    objects: list[dict[str, Any]] = field(default_factory=list)
    parameters: list[TemplateParameter] = field(default_factory=list)
    labels: dict[str, str] = field(default_factory=dict)

    @property
    def name(self) -> str:
        return self.metadata.name

    @name.setter
    def name(self, value: str) -> None:
        self.metadata.name = value

    def get_parameter(self, name: str) -> TemplateParameter:
        """
        Raises:
            KeyError: If the template has no parameter with the given name.
        """

        for parameter in self.parameters:
            if parameter.name == name:
                return parameter
        raise KeyError(name)

    def dump(self) -> Manifest:
        manifest = super().dump()
        manifest["parameters"] = [
            {k: v for k, v in ser(p, TemplateParameter).items() if v is not None} for p in self.parameters
        ]
        if not manifest["parameters"]:
            del manifest["parameters"]
        if not manifest["labels"]:
            del manifest["labels"]
        return manifest


def object_list(objects: list[dict[str, Any]]) -> Manifest:
    """
    Wrap the objects into a `v1/List`, the flat form used when printing objects without template semantics.
    """

    return Manifest({"apiVersion": "v1", "kind": "List", "items": Manifests([Manifest(o) for o in objects])})
