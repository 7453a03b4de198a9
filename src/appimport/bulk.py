"""
Creates a list of objects one by one. Creation is not atomic: a failure to create one object does not stop the
creation of the others, and objects that were created are kept.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
import sys
from typing import Any, TextIO

from loguru import logger

from appimport.tools.kubectl import Kubectl
from appimport.tools.types import Manifest, describe_manifest


class Creator(ABC):
    """
    Creates a single object.
    """

    @abstractmethod
    def create(self, manifest: Manifest, namespace: str) -> None:
        """
        Raises:
            Exception: Any exception is recorded as the failure of this object.
        """


@dataclass
class KubectlCreator(Creator):
    kubectl: Kubectl

    def create(self, manifest: Manifest, namespace: str) -> None:
        self.kubectl.create(manifest, namespace)


class DryRunCreator(Creator):
    def create(self, manifest: Manifest, namespace: str) -> None:
        logger.debug("Dry-run, not creating {}", describe_manifest(manifest))


class BulkApplier(ABC):
    """
    Applies an object list in a namespace.
    """

    @abstractmethod
    def run(self, object_list: Manifest, namespace: str) -> list[Exception]:
        """
        Apply every item of the `v1/List` *object_list*.

        Returns:
            The errors of the objects that could not be applied, in order. Empty if all objects were applied.
        """


@dataclass
class Bulk(BulkApplier):
    """
    Creates the items of an object list with a #Creator and reports the outcome of every object.
    """

    creator: Creator
    out: TextIO = field(default_factory=lambda: sys.stdout)
    err: TextIO = field(default_factory=lambda: sys.stderr)

    message: str = "Importing"
    """ Printed as the header before any object is created. """

    action: str = "creating"
    """ The verb to report in the header, e.g. `creating`. """

    compact: bool = False
    """ Print only `kind/name` of the created objects, without the header (`-o name`). """

    dry_run: bool = False

    def run(self, object_list: Manifest, namespace: str) -> list[Exception]:
        items: list[dict[str, Any]] = object_list.get("items") or []
        if not self.compact:
            suffix = " (dry run)" if self.dry_run else ""
            print(f"--> {self.message} ...{suffix}", file=self.out)

        errors: list[Exception] = []
        for item in items:
            manifest = Manifest(item)
            try:
                self.creator.create(manifest, namespace)
            except Exception as exc:
                logger.debug("Failed to create {}: {}", describe_manifest(manifest), exc)
                print(f"error: {exc}", file=self.err)
                errors.append(exc)
                continue

            kind_name = describe_manifest(manifest)
            if self.compact:
                print(kind_name, file=self.out)
            else:
                kind, _, name = kind_name.partition("/")
                print(f'    {kind} "{name}" {"created (dry run)" if self.dry_run else "created"}', file=self.out)

        if not self.compact:
            if errors:
                print(f"--> Failed {self.action} {len(errors)} of {len(items)} object(s)", file=self.out)
            else:
                print("--> Success", file=self.out)
        return errors
