"""
This package contains everything related to the generation of a template from an application manifest.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from appimport.resources.template import Template

DEFAULT_TEMPLATE_NAME = "app"


@dataclass
class ManifestGenerator(ABC):
    """
    Base class for transforming the raw content of an application manifest into a template.
    """

    name: str
    """ The name of the template to generate. """

    base_image: str | None = None
    """ An image to build the application on, if the generator supports it. """

    local_path: Path | None = None
    """ The local path that the manifest was read from, if any. """

    @abstractmethod
    def generate(self, /, content: bytes) -> Template:
        """
        Transform the manifest content into a template.

        Raises:
            GeneratorError: If the content can not be transformed.
        """

        raise NotImplementedError


def derive_template_name(as_template: str | None, local_path: Path | None, locator: str) -> str:
    """
    Determine the name of the generated template. In order of precedence, this is the explicitly requested template
    name, the base name of the local path that the manifest was resolved from, or the name of the parent directory
    of the locator. Falls back to `app` so that the name is never empty.
    """

    if as_template:
        name = as_template
    elif local_path is not None:
        name = local_path.name
    else:
        name = PurePosixPath(locator).parent.name
    return name or DEFAULT_TEMPLATE_NAME


def _generators() -> dict[str, type[ManifestGenerator]]:
    from appimport.generator.appjson import AppJsonGenerator

    return {AppJsonGenerator.STRATEGY: AppJsonGenerator}


def supported_strategies() -> list[str]:
    return sorted(_generators())


def get_generator_class(strategy: str) -> type[ManifestGenerator]:
    """
    Return the generator class for the given strategy identifier.

    Raises:
        KeyError: If the strategy is not supported.
    """

    return _generators()[strategy]
