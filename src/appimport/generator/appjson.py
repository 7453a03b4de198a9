"""
Transforms an [app.json][1] manifest into a template of Kubernetes objects. Fields that have no equivalent on a
container platform are ignored with a warning.

[1]: https://devcenter.heroku.com/articles/app-json-schema
"""

from dataclasses import dataclass, field
import json
import re
from typing import Any, ClassVar

from databind.core import ConversionError, ExtraKeys
from databind.json import load as deser
from loguru import logger

from appimport.errors import GeneratorError
from appimport.generator import DEFAULT_TEMPLATE_NAME, ManifestGenerator
from appimport.resources import ObjectMetadata
from appimport.resources.template import Template, TemplateParameter
from appimport.tools.types import Manifest, Manifests

WEB_PROCESS = "web"
WEB_PORT = 8080
SECRET_EXPRESSION = "[a-zA-Z0-9]{32}"

# Makes a Deployment resolve image references against ImageStreams in the same namespace on OpenShift.
ANNOTATION_RESOLVE_NAMES = "alpha.image.policy.openshift.io/resolve-names"


@ExtraKeys()
@dataclass
class EnvVar:
    description: str | None = None
    value: str | None = None
    required: bool = True
    generator: str | None = None
    """ Only `secret` is defined, which asks for a random value to be generated. """


@ExtraKeys()
@dataclass
class Formation:
    quantity: int = 1
    size: str | None = None
    command: str | None = None


@ExtraKeys()
@dataclass
class AppJson:
    """
    The subset of the app.json schema that is relevant when running the application in containers.
    """

    name: str | None = None
    description: str | None = None
    repository: str | None = None
    image: str | None = None
    env: dict[str, EnvVar] = field(default_factory=dict)
    formation: dict[str, Formation] = field(default_factory=dict)

    # Fields without an equivalent. Only parsed to warn about them.
    addons: list[Any] = field(default_factory=list)
    buildpacks: list[Any] = field(default_factory=list)
    environments: dict[str, Any] = field(default_factory=dict)
    scripts: dict[str, Any] = field(default_factory=dict)
    success_url: str | None = None


def load_app_json(content: bytes, filename: str | None = None) -> AppJson:
    """
    Parse the app.json content.

    Raises:
        GeneratorError: If the content is not valid JSON or does not match the app.json structure.
    """

    try:
        data = json.loads(content or b"{}")
    except ValueError as exc:
        raise GeneratorError(f"unable to parse app.json: {exc}")
    if not isinstance(data, dict):
        raise GeneratorError(f"unable to parse app.json: expected an object, got {type(data).__name__}")

    # Plain string values are shorthand for an env var with just a value.
    env = data.get("env")
    if isinstance(env, dict):
        data["env"] = {k: {"value": v} if isinstance(v, str) else v for k, v in env.items()}

    try:
        return deser(data, AppJson, filename=filename)
    except ConversionError as exc:
        raise GeneratorError(f"unable to parse app.json: {exc}")


def dns_label(value: str) -> str:
    """
    Convert *value* into a valid DNS-1123 label, which is what most Kubernetes object names must be.
    """

    label = re.sub(r"[^a-z0-9-]+", "-", value.lower()).strip("-")[:63].rstrip("-")
    return label or DEFAULT_TEMPLATE_NAME


@dataclass
class AppJsonGenerator(ManifestGenerator):
    STRATEGY: ClassVar[str] = "app-json/v1"

    def generate(self, /, content: bytes) -> Template:
        app = load_app_json(content, str(self.local_path) if self.local_path else None)
        self._warn_ignored_fields(app)

        base_name = dns_label(app.name or self.name)
        metadata = ObjectMetadata(name=self.name)
        if app.description:
            metadata.annotations = {"description": app.description}

        template = Template(metadata=metadata, parameters=self._parameters(app))
        objects = Manifests([])

        if app.repository and self.base_image:
            logger.debug("Building {} from repository {} on {}", base_name, app.repository, self.base_image)
            objects.append(self._image_stream(base_name))
            objects.append(self._build_config(base_name, app.repository, self.base_image))
            image = f"{base_name}:latest"
        elif app.image or self.base_image:
            if app.repository:
                logger.warning("Ignoring repository {}, use --image to build it from a base image", app.repository)
            image = app.image or self.base_image
        else:
            raise GeneratorError("app.json must specify an image, or a repository and an --image to build it on")

        formation = app.formation or {WEB_PROCESS: Formation()}
        for process, spec in formation.items():
            objects.append(self._deployment(base_name, process, spec, image, sorted(app.env)))
        if WEB_PROCESS in formation:
            objects.append(self._service(base_name))

        template.objects = list(objects)
        return template

    def _warn_ignored_fields(self, app: AppJson) -> None:
        if app.addons:
            logger.warning("Ignoring {} addon(s), provision them separately", len(app.addons))
        if app.buildpacks:
            logger.warning("Ignoring buildpacks, images are built with a Docker strategy")
        for key in app.environments:
            logger.warning("Ignoring environment '{}'", key)
        for key in app.scripts:
            logger.warning("Ignoring script '{}'", key)
        if app.success_url:
            logger.warning("Ignoring success_url")
        for process, spec in app.formation.items():
            if spec.size:
                logger.warning("Ignoring size '{}' of process '{}'", spec.size, process)

    def _parameters(self, app: AppJson) -> list[TemplateParameter]:
        parameters = []
        for name, env in sorted(app.env.items()):
            parameter = TemplateParameter(name=name, description=env.description, value=env.value)
            if env.generator == "secret":
                parameter.generate = Template.GENERATE_EXPRESSION
                parameter.from_ = SECRET_EXPRESSION
            elif env.generator is not None:
                logger.warning("Ignoring unknown generator '{}' of env var '{}'", env.generator, name)
            parameter.required = env.required and parameter.generate is None
            parameters.append(parameter)
        return parameters

    def _image_stream(self, name: str) -> Manifest:
        return Manifest(
            {
                "apiVersion": "image.openshift.io/v1",
                "kind": "ImageStream",
                "metadata": {"name": name, "labels": {"app": name}},
                "spec": {"lookupPolicy": {"local": True}},
            }
        )

    def _build_config(self, name: str, repository: str, base_image: str) -> Manifest:
        return Manifest(
            {
                "apiVersion": "build.openshift.io/v1",
                "kind": "BuildConfig",
                "metadata": {"name": name, "labels": {"app": name}},
                "spec": {
                    "source": {"git": {"uri": repository}, "dockerfile": f"FROM {base_image}"},
                    "strategy": {
                        "type": "Docker",
                        "dockerStrategy": {"from": {"kind": "DockerImage", "name": base_image}},
                    },
                    "output": {"to": {"kind": "ImageStreamTag", "name": f"{name}:latest"}},
                    "triggers": [{"type": "ConfigChange"}],
                },
            }
        )

    def _deployment(self, name: str, process: str, spec: Formation, image: str, env: list[str]) -> Manifest:
        labels = {"app": name, "process": process}
        object_name = name if process == WEB_PROCESS else f"{name}-{dns_label(process)}"
        container: dict[str, Any] = {
            "name": process,
            "image": image,
            "env": [{"name": key, "value": f"${{{key}}}"} for key in env],
        }
        if spec.command:
            container["command"] = ["/bin/sh", "-c", spec.command]
        if process == WEB_PROCESS:
            if "PORT" not in env:
                container["env"].append({"name": "PORT", "value": str(WEB_PORT)})
            container["ports"] = [{"name": "web", "containerPort": WEB_PORT}]

        return Manifest(
            {
                "apiVersion": "apps/v1",
                "kind": "Deployment",
                "metadata": {"name": object_name, "labels": labels},
                "spec": {
                    "replicas": spec.quantity,
                    "selector": {"matchLabels": labels},
                    "template": {
                        "metadata": {"labels": labels, "annotations": {ANNOTATION_RESOLVE_NAMES: "*"}},
                        "spec": {"containers": [container]},
                    },
                },
            }
        )

    def _service(self, name: str) -> Manifest:
        return Manifest(
            {
                "apiVersion": "v1",
                "kind": "Service",
                "metadata": {"name": name, "labels": {"app": name}},
                "spec": {
                    "selector": {"app": name, "process": WEB_PROCESS},
                    "ports": [{"name": "web", "port": WEB_PORT, "targetPort": WEB_PORT}],
                },
            }
        )
