"""
The app.json import pipeline: resolve the manifest content, generate a template from it, check that the generated
objects are representable in the requested API versions, then either print the result or process the template and
create its objects.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
import json
import sys
from pathlib import Path
from typing import BinaryIO, TextIO

import requests
import yaml
from loguru import logger

from appimport.bulk import BulkApplier
from appimport.errors import BulkApplyError
from appimport.generator import ManifestGenerator, derive_template_name
from appimport.options import OUTPUT_NAME, ImportOptions
from appimport.processor import TemplateProcessor, describe_template, set_parameters
from appimport.resolver import resolve_content
from appimport.resources.template import Template, object_list
from appimport.scheme import Scheme, check_versions
from appimport.tools.types import Manifest, describe_manifest

OBJECT_LABEL = "app.json"
""" Label key set on every object of the generated template; the value is the template name. """

GeneratorFactory = Callable[..., ManifestGenerator]


@dataclass
class AppJsonImport:
    """
    Imports an app.json manifest. The collaborators that talk to the cluster are injected, so that the pipeline can
    run without one.
    """

    options: ImportOptions
    generator: GeneratorFactory
    """ Creates the generator, called with `name`, `base_image` and `local_path` keyword arguments. """

    processor: TemplateProcessor
    applier: BulkApplier
    source_scheme: Scheme = field(default_factory=Scheme.default)
    target_scheme: Scheme = field(default_factory=Scheme.default)
    stdin: BinaryIO = field(default_factory=lambda: sys.stdin.buffer)
    out: TextIO = field(default_factory=lambda: sys.stdout)
    err: TextIO = field(default_factory=lambda: sys.stderr)
    session: requests.Session | None = None

    def run(self) -> None:
        """
        Raises:
            InvalidOptionsError: If the options are invalid. Nothing is read in that case.
            BulkApplyError: If one or more objects could not be created. Every error has been reported already.
            Exception: Any error of the resolver, generator or template processor is propagated unchanged.
        """

        options = self.options
        options.validate()

        content = resolve_content(options.locator, self.stdin, *options.candidates, session=self.session)
        template = self._generate(content.content, content.local_path)

        # All generated objects should be known in at least one output version; if not, we still carry on.
        versions = list(options.output_versions) or self.target_scheme.prioritized_versions()
        for error in check_versions(template.objects, self.source_scheme, self.target_scheme, versions):
            print(f"error: {error}", file=self.err)

        if options.should_print:
            if options.as_template:
                template.name = options.as_template
                self._print(template.dump())
            else:
                self._print(object_list(template.objects))
            return

        set_parameters(template, options.parameters)
        result = self.processor.process(template, options.namespace)

        if options.verbose:
            try:
                describe_template(self.out, result, options.namespace)
            except Exception as exc:
                logger.warning("Could not describe template '{}': {}", result.name, exc)

        errors = self.applier.run(object_list(result.objects), options.namespace)
        if errors:
            raise BulkApplyError(errors, len(result.objects))

    def _generate(self, content: bytes, local_path: Path | None) -> Template:
        options = self.options
        name = derive_template_name(options.as_template, local_path, options.locator)
        logger.debug("Generating template '{}' with generator '{}'", name, options.generator)

        generator = self.generator(name=name, base_image=options.base_image, local_path=local_path)
        template = generator.generate(content)
        template.labels = {OBJECT_LABEL: template.name}
        return template

    def _print(self, manifest: Manifest) -> None:
        print_object(manifest, self.options.output, self.out)


def print_object(manifest: Manifest, output: str, out: TextIO) -> None:
    """
    Print a manifest as YAML or JSON, or print its `kind/name` (the items' for a `v1/List`) if *output* is `name`.
    """

    if output == "json":
        print(json.dumps(manifest, indent=2), file=out)
    elif output == OUTPUT_NAME:
        items = manifest.get("items", []) if manifest.get("kind") == "List" else [manifest]
        for item in items:
            print(describe_manifest(Manifest(item)), file=out)
    else:
        print(yaml.safe_dump(manifest, sort_keys=False), end="", file=out)
