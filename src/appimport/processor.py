"""
Template processors resolve the parameters of a template into a list of objects that can be created.
"""

from abc import ABC, abstractmethod
import copy
from dataclasses import dataclass
import re
import secrets
from typing import Any, TextIO

from kubernetes.client import ApiClient, CustomObjectsApi
from kubernetes.client.exceptions import ApiException
from loguru import logger

from appimport.errors import TemplateProcessingError
from appimport.resources.template import API_VERSION_TEMPLATE, Template
from appimport.tools.types import Manifest, describe_manifest


class TemplateProcessor(ABC):
    """
    Resolves the parameters of a template.
    """

    @abstractmethod
    def process(self, template: Template, namespace: str) -> Template:
        """
        Return a copy of the template with all parameter references in its objects substituted.

        Raises:
            TemplateProcessingError: If the template can not be processed.
        """

        raise NotImplementedError


def set_parameters(template: Template, values: dict[str, str]) -> None:
    """
    Set the values of template parameters, e.g. from `--param NAME=VALUE` options.

    Raises:
        TemplateProcessingError: If the template has no parameter of one of the given names.
    """

    for name, value in values.items():
        try:
            template.get_parameter(name).value = value
        except KeyError:
            raise TemplateProcessingError(f"unknown parameter name {name!r}")


@dataclass
class ClusterTemplateProcessor(TemplateProcessor):
    """
    Processes templates with the `processedtemplates` API of an OpenShift cluster.
    """

    client: ApiClient

    def process(self, template: Template, namespace: str) -> Template:
        group, version = API_VERSION_TEMPLATE.split("/")
        logger.debug("Processing template '{}' in namespace '{}'", template.name, namespace)
        try:
            result = CustomObjectsApi(self.client).create_namespaced_custom_object(
                group=group,
                version=version,
                namespace=namespace,
                plural="processedtemplates",
                body=template.dump(),
            )
        except ApiException as exc:
            raise TemplateProcessingError(
                f"error processing the template \"{namespace}/{template.name}\": {exc.reason or exc.status}"
            )
        return Template.load(result)


# A sequence of characters from a character class, e.g. `[a-zA-Z0-9]{32}`.
_EXPRESSION = re.compile(r"\[([^\]]+)\]\{(\d+)\}")
_RANGE = re.compile(r"(.)-(.)|(.)")
_REFERENCE = re.compile(r"\$\{([a-zA-Z0-9_]+)\}")


def generate_from_expression(expression: str) -> str:
    """
    Generate a random value from an expression of the form `[a-z0-9]{8}`. Text outside of the character class
    repetitions is copied literally.

    Raises:
        TemplateProcessingError: If a character class is empty.
    """

    def _generate(match: re.Match[str]) -> str:
        chars = []
        for start, end, single in _RANGE.findall(match.group(1)):
            if single:
                chars.append(single)
            else:
                chars.extend(chr(c) for c in range(ord(start), ord(end) + 1))
        if not chars:
            raise TemplateProcessingError(f"invalid expression {expression!r}")
        return "".join(secrets.choice(chars) for _ in range(int(match.group(2))))

    return _EXPRESSION.sub(_generate, expression)


@dataclass
class LocalTemplateProcessor(TemplateProcessor):
    """
    Processes templates locally, for clusters that do not serve the template API. References to parameters are
    substituted in string values, and the template labels are added to every object.
    """

    def process(self, template: Template, namespace: str) -> Template:
        result = copy.deepcopy(template)
        values: dict[str, str] = {}
        for parameter in result.parameters:
            if not parameter.value and parameter.generate == Template.GENERATE_EXPRESSION and parameter.from_:
                parameter.value = generate_from_expression(parameter.from_)
            if not parameter.value and parameter.required:
                raise TemplateProcessingError(f"template parameter {parameter.name!r} is required and must be set")
            values[parameter.name] = parameter.value or ""

        def _substitute(value: Any) -> Any:
            if isinstance(value, str):
                return _REFERENCE.sub(lambda m: values.get(m.group(1), m.group(0)), value)
            if isinstance(value, dict):
                return {k: _substitute(v) for k, v in value.items()}
            if isinstance(value, list):
                return [_substitute(v) for v in value]
            return value

        result.objects = [_substitute(obj) for obj in result.objects]
        for obj in result.objects:
            labels = obj.setdefault("metadata", {}).setdefault("labels", {})
            for key, value in result.labels.items():
                labels.setdefault(key, value)

        logger.debug("Processed template '{}' with {} parameter(s)", result.name, len(values))
        return result


def describe_template(out: TextIO, template: Template, namespace: str) -> None:
    """
    Write a human readable summary of a processed template: its parameters (with generated values) and objects.
    """

    print(f'--> Deploying template "{namespace}/{template.name}" for "{template.name}"', file=out)
    description = (template.metadata.annotations or {}).get("description")
    if description:
        print(f"\n     {description}", file=out)
    if template.parameters:
        print("\n     * With parameters:", file=out)
        for parameter in template.parameters:
            value = parameter.value or ""
            suffix = " # generated" if parameter.generate else ""
            print(f"        * {parameter.name}={value}{suffix}", file=out)
    print(f"\n     * {len(template.objects)} object(s):", file=out)
    for obj in template.objects:
        print(f"        * {describe_manifest(Manifest(obj))}", file=out)
    print(file=out)
