import pytest

from appimport.errors import InvalidOptionsError
from appimport.scheme import (
    GroupVersion,
    InvalidOutputVersionError,
    Scheme,
    build_output_versions,
    check_versions,
    parse_output_versions,
)


def test__GroupVersion__parse() -> None:
    assert GroupVersion.parse("v1") == GroupVersion("", "v1")
    assert GroupVersion.parse("apps/v1") == GroupVersion("apps", "v1")
    assert GroupVersion.parse("") == GroupVersion("", "")
    assert str(GroupVersion("apps", "v1")) == "apps/v1"
    assert str(GroupVersion("", "v1")) == "v1"
    with pytest.raises(ValueError):
        GroupVersion.parse("a/b/c")


def test__parse_output_versions__keeps_order() -> None:
    assert parse_output_versions("v1,apps/v1") == [GroupVersion("", "v1"), GroupVersion("apps", "v1")]
    assert parse_output_versions("") == []


def test__parse_output_versions__names_invalid_value() -> None:
    with pytest.raises(InvalidOutputVersionError) as excinfo:
        parse_output_versions("v1,/v1/")
    assert "'/v1/'" in str(excinfo.value)
    assert isinstance(excinfo.value, InvalidOptionsError)


def test__build_output_versions__overrides_precede_scheme_defaults() -> None:
    scheme = Scheme().register("v1", "Service").register("batch/v1", "Job")
    assert build_output_versions(["v1,apps/v1"], scheme) == [
        GroupVersion("", "v1"),
        GroupVersion("apps", "v1"),
        GroupVersion("", "v1"),
        GroupVersion("batch", "v1"),
    ]


def test__Scheme__default__knows_generated_kinds() -> None:
    scheme = Scheme.default()
    assert scheme.recognizes(GroupVersion("apps", "v1"), "Deployment")
    assert scheme.recognizes(GroupVersion("", "v1"), "Service")
    assert scheme.recognizes(GroupVersion("build.openshift.io", "v1"), "BuildConfig")
    assert not scheme.recognizes(GroupVersion("", "v1"), "Deployment")
    assert scheme.prioritized_versions()[0] == GroupVersion("", "v1")


def test__check_versions__reports_one_error_per_incompatible_object() -> None:
    scheme = Scheme.default()
    objects = [
        {"apiVersion": "apps/v1", "kind": "Deployment", "metadata": {"name": "web"}},
        {"apiVersion": "example.com/v1", "kind": "Widget", "metadata": {"name": "w"}},
    ]

    errors = check_versions(objects, scheme, scheme, scheme.prioritized_versions())

    assert len(errors) == 1
    assert errors[0].object["kind"] == "Widget"
    assert "widget/w" in str(errors[0])


def test__check_versions__object_group_not_in_output_versions() -> None:
    source = Scheme.default()
    target = Scheme().register("v1", "Service")
    objects = [
        {"apiVersion": "v1", "kind": "Service", "metadata": {"name": "web"}},
        {"apiVersion": "apps/v1", "kind": "Deployment", "metadata": {"name": "web"}},
    ]

    errors = check_versions(objects, source, target, [GroupVersion("", "v1")])

    assert [e.object["kind"] for e in errors] == ["Deployment"]
    assert "can not be converted" in str(errors[0])


def test__check_versions__malformed_api_version_is_an_error_not_an_exception() -> None:
    scheme = Scheme.default()
    errors = check_versions([{"apiVersion": "a/b/c", "kind": "Foo"}], scheme, scheme, [GroupVersion("", "v1")])
    assert len(errors) == 1
