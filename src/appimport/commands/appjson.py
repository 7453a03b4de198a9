import dataclasses
from pathlib import Path
import sys
from textwrap import dedent
from typing import Optional

from databind.core import ConversionError
from kubernetes.config import ConfigException, list_kube_config_contexts, new_client_from_config
from loguru import logger
from typer import Exit, Option
from yaml import YAMLError

from appimport.bulk import Bulk, DryRunCreator, KubectlCreator
from appimport.config import ProjectConfig
from appimport.errors import BulkApplyError, InvalidOptionsError
from appimport.generator import get_generator_class
from appimport.generator.appjson import AppJsonGenerator
from appimport.options import ImportOptions, parse_parameters
from appimport.pipeline import AppJsonImport
from appimport.processor import ClusterTemplateProcessor, LocalTemplateProcessor, TemplateProcessor
from appimport.scheme import Scheme, build_output_versions
from appimport.tools.kubectl import Kubectl

from . import app

EXIT_FAILURE = 1
EXIT_PARTIAL_FAILURE = 2
""" Exit code when at least one object could not be created. """

DEFAULT_NAMESPACE = "default"


@app.command(
    "app.json",
    help=dedent(
        """
        Import an app.json definition as Kubernetes objects.

        app.json defines the pattern of a simple, stateless web application that can be horizontally scaled. This
        command transforms an app.json document into its Kubernetes equivalent. Fields that are not relevant when
        running on a container platform are ignored and a warning is logged.

        Objects are created unless you pass `-o yaml` or `--as-template` to generate configuration for later use.
        """
    ),
)
def app_json(
    filename: list[str] = Option(
        [], "--filename", "-f", help="Filename, directory, or URL to the app.json file to use. Use - for stdin."
    ),
    image: Optional[str] = Option(
        None, help="An image to use as the base of the build of the application (must have ONBUILD directives)."
    ),
    generator: str = Option(AppJsonGenerator.STRATEGY, help="The name of the generator strategy to use."),
    as_template: Optional[str] = Option(None, help="If set, generate a template with the provided name."),
    output_version: list[str] = Option(
        [], help="The preferred API versions of the output objects. Comma-separated, may be repeated."
    ),
    output: str = Option(
        "",
        "--output",
        "-o",
        help="Print the result as yaml or json instead of creating it, or use name for succinct output.",
    ),
    dry_run: bool = Option(False, help="Show the result of the import without creating any objects."),
    namespace: Optional[str] = Option(None, "--namespace", "-n", help="The namespace to import into."),
    local: Optional[bool] = Option(
        None, "--local/--cluster", help="Process the template locally instead of with the cluster's template API."
    ),
    param: list[str] = Option([], "--param", "-p", help="Set a template parameter, as NAME=VALUE. May be repeated."),
    kubeconfig: Optional[Path] = Option(None, help="Path to the kubeconfig file to use."),
    context: Optional[str] = Option(None, help="The kubeconfig context to use."),
    config: Optional[Path] = Option(None, help="Path to the `appimport.yaml` configuration file."),
) -> None:
    scheme = Scheme.default()

    # Options given on the command-line are validated before the project configuration is read.
    try:
        options = ImportOptions(
            filenames=tuple(filename),
            namespace=namespace or "",
            base_image=image,
            generator=generator,
            as_template=as_template,
            output_versions=tuple(build_output_versions(output_version, scheme)),
            output=output,
            dry_run=dry_run,
            parameters=parse_parameters(param),
        )
        options.validate()
    except InvalidOptionsError as exc:
        logger.error("{}", exc)
        raise Exit(EXIT_FAILURE)

    try:
        project = ProjectConfig.load(config).config
    except (OSError, YAMLError, ConversionError) as exc:
        logger.error("could not load the project configuration: {}", exc)
        raise Exit(EXIT_FAILURE)

    try:
        options = dataclasses.replace(
            options,
            namespace=options.namespace or project.namespace or "",
            base_image=options.base_image or project.image,
            output_versions=tuple(build_output_versions([*output_version, *project.outputVersions], scheme)),
            local=project.local if local is None else local,
            candidates=tuple(project.candidates),
        )
        options.validate()
    except InvalidOptionsError as exc:
        logger.error("{}", exc)
        raise Exit(EXIT_FAILURE)

    if not options.namespace:
        options = dataclasses.replace(options, namespace=_current_namespace(kubeconfig, context))

    # The template processor is only used when the result is not printed.
    processor: TemplateProcessor
    if options.local or options.should_print:
        processor = LocalTemplateProcessor()
    else:
        try:
            client = new_client_from_config(config_file=str(kubeconfig) if kubeconfig else None, context=context)
        except ConfigException as exc:
            logger.error("{}", exc)
            raise Exit(EXIT_FAILURE)
        processor = ClusterTemplateProcessor(client)

    applier = Bulk(
        creator=DryRunCreator() if options.dry_run else KubectlCreator(Kubectl(kubeconfig, context)),
        out=sys.stdout,
        err=sys.stderr,
        message="Importing app.json",
        compact=options.compact,
        dry_run=options.dry_run,
    )

    pipeline = AppJsonImport(
        options=options,
        generator=get_generator_class(options.generator),
        processor=processor,
        applier=applier,
        source_scheme=scheme,
        target_scheme=scheme,
    )

    try:
        pipeline.run()
    except BulkApplyError as exc:
        logger.debug("{}", exc)
        raise Exit(EXIT_PARTIAL_FAILURE)
    except Exception as exc:
        logger.error("{}", exc)
        raise Exit(EXIT_FAILURE)


def _current_namespace(kubeconfig: Path | None, context: str | None) -> str:
    """
    Return the namespace of the kubeconfig context, or `default` if there is no kubeconfig or the context has no
    namespace.
    """

    try:
        contexts, active = list_kube_config_contexts(config_file=str(kubeconfig) if kubeconfig else None)
    except (ConfigException, OSError) as exc:
        logger.debug("Could not load kubeconfig, using namespace '{}': {}", DEFAULT_NAMESPACE, exc)
        return DEFAULT_NAMESPACE

    if context is not None:
        active = next((c for c in contexts if c["name"] == context), None)
    if not active:
        return DEFAULT_NAMESPACE
    return active.get("context", {}).get("namespace") or DEFAULT_NAMESPACE
