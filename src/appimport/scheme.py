"""
API group/version handling and the compatibility check that verifies that generated objects can be represented in
one of the requested output versions.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from appimport.errors import InvalidOptionsError
from appimport.tools.types import Manifest, describe_manifest


class InvalidOutputVersionError(InvalidOptionsError):
    pass


@dataclass(frozen=True)
class GroupVersion:
    group: str
    version: str

    @staticmethod
    def parse(value: str) -> "GroupVersion":
        """
        Parse a group/version string such as `v1` (the core group) or `apps/v1`.

        Raises:
            ValueError: If the string contains more than one `/`.
        """

        if not value:
            return GroupVersion("", "")
        if value.count("/") > 1:
            raise ValueError(f"unexpected GroupVersion string: {value}")
        group, _, version = value.rpartition("/")
        return GroupVersion(group, version)

    @staticmethod
    def of(manifest: Manifest) -> "GroupVersion":
        return GroupVersion.parse(manifest.get("apiVersion") or "")

    def __str__(self) -> str:
        return f"{self.group}/{self.version}" if self.group else self.version


def parse_output_versions(value: str) -> list[GroupVersion]:
    """
    Parse a comma-separated list of group/versions. Empty entries are skipped.

    Raises:
        InvalidOutputVersionError: Naming the first entry that can not be parsed.
    """

    result = []
    for item in value.split(","):
        item = item.strip()
        if not item:
            continue
        try:
            result.append(GroupVersion.parse(item))
        except ValueError as exc:
            raise InvalidOutputVersionError(f"provided output-version {item!r} is not valid: {exc}")
    return result


def build_output_versions(overrides: Iterable[str], scheme: "Scheme") -> list[GroupVersion]:
    """
    The explicitly requested output versions, followed by the prioritized versions of the *scheme*. The explicit
    versions take precedence when an object is checked for compatibility.

    Raises:
        InvalidOutputVersionError: If one of the *overrides* can not be parsed.
    """

    result = []
    for value in overrides:
        result.extend(parse_output_versions(value))
    result.extend(scheme.prioritized_versions())
    return result


@dataclass
class Scheme:
    """
    A registry of the kinds known per API group/version. The order in which group/versions are registered is their
    priority.
    """

    kinds: dict[GroupVersion, set[str]] = field(default_factory=dict)

    def register(self, group_version: str | GroupVersion, *kinds: str) -> "Scheme":
        if isinstance(group_version, str):
            group_version = GroupVersion.parse(group_version)
        self.kinds.setdefault(group_version, set()).update(kinds)
        return self

    def recognizes(self, group_version: GroupVersion, kind: str) -> bool:
        return kind in self.kinds.get(group_version, ())

    def prioritized_versions(self) -> list[GroupVersion]:
        return list(self.kinds)

    @staticmethod
    def default() -> "Scheme":
        """
        The scheme of the kinds that appimport generates or is likely to receive from a template processor.
        """

        return (
            Scheme()
            .register("v1", "ConfigMap", "List", "PersistentVolumeClaim", "Secret", "Service", "ServiceAccount")
            .register("apps/v1", "DaemonSet", "Deployment", "ReplicaSet", "StatefulSet")
            .register("batch/v1", "CronJob", "Job")
            .register("networking.k8s.io/v1", "Ingress", "NetworkPolicy")
            .register("apps.openshift.io/v1", "DeploymentConfig")
            .register("build.openshift.io/v1", "BuildConfig")
            .register("image.openshift.io/v1", "ImageStream", "ImageStreamTag")
            .register("route.openshift.io/v1", "Route")
            .register("template.openshift.io/v1", "Template")
        )


@dataclass
class IncompatibleObjectError(Exception):
    """
    An object that can not be represented in any of the requested output versions.
    """

    object: Manifest
    versions: Sequence[GroupVersion]
    reason: str

    def __str__(self) -> str:
        return f"{describe_manifest(self.object)} ({self.object.get('apiVersion')}) {self.reason}"


def check_versions(
    objects: Iterable[dict[str, Any]],
    source_scheme: Scheme,
    target_scheme: Scheme,
    output_versions: Sequence[GroupVersion],
) -> list[IncompatibleObjectError]:
    """
    Check that every object can be converted to at least one of the *output_versions*. The object must be known to
    the *source_scheme* at its current `apiVersion`, and its kind must be registered in the *target_scheme* under
    one of the output versions of the same API group.

    Returns:
        One error per incompatible object, in the order of the objects. The check never raises for an object.
    """

    errors: list[IncompatibleObjectError] = []
    for obj in objects:
        manifest = Manifest(obj)
        kind = manifest.get("kind") or ""
        try:
            current = GroupVersion.of(manifest)
        except ValueError as exc:
            errors.append(IncompatibleObjectError(manifest, output_versions, str(exc)))
            continue

        if not source_scheme.recognizes(current, kind):
            errors.append(IncompatibleObjectError(manifest, output_versions, f"is not a known kind {kind!r}"))
            continue

        if not any(gv.group == current.group and target_scheme.recognizes(gv, kind) for gv in output_versions):
            errors.append(
                IncompatibleObjectError(
                    manifest,
                    output_versions,
                    f"can not be converted to any of the output versions: {', '.join(map(str, output_versions))}",
                )
            )
    return errors
