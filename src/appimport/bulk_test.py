import io
import sys

import pytest

from appimport.bulk import Bulk, Creator, DryRunCreator, KubectlCreator
from appimport.resources.template import object_list
from appimport.tools.kubectl import KubectlError
from appimport.tools.types import Manifest


class RecordingCreator(Creator):
    def __init__(self, fail: frozenset[str] = frozenset()) -> None:
        self.fail = fail
        self.created: list[tuple[str, str]] = []

    def create(self, manifest: Manifest, namespace: str) -> None:
        name = manifest["metadata"]["name"]
        if name in self.fail:
            raise KubectlError(1, f'error: services "{name}" already exists\n')
        self.created.append((name, namespace))


def _objects(*names: str) -> Manifest:
    return object_list([{"apiVersion": "v1", "kind": "Service", "metadata": {"name": n}} for n in names])


def test__Bulk__run__continues_past_failures_and_reports_each() -> None:
    creator = RecordingCreator(fail=frozenset({"b"}))
    out, err = io.StringIO(), io.StringIO()

    errors = Bulk(creator, out=out, err=err, message="Importing app.json").run(_objects("a", "b", "c"), "ns")

    assert len(errors) == 1
    assert str(errors[0]) == 'services "b" already exists'
    assert creator.created == [("a", "ns"), ("c", "ns")]
    assert err.getvalue() == 'error: services "b" already exists\n'
    assert out.getvalue().splitlines() == [
        "--> Importing app.json ...",
        '    service "a" created',
        '    service "c" created',
        "--> Failed creating 1 of 3 object(s)",
    ]


def test__Bulk__run__compact_output() -> None:
    out, err = io.StringIO(), io.StringIO()

    errors = Bulk(RecordingCreator(), out=out, err=err, compact=True).run(_objects("a", "b"), "ns")

    assert errors == []
    assert out.getvalue() == "service/a\nservice/b\n"


def test__Bulk__run__dry_run() -> None:
    out, err = io.StringIO(), io.StringIO()

    errors = Bulk(DryRunCreator(), out=out, err=err, dry_run=True).run(_objects("a"), "ns")

    assert errors == []
    assert '    service "a" created (dry run)' in out.getvalue().splitlines()
    assert out.getvalue().splitlines()[-1] == "--> Success"


def test__KubectlCreator__create__delegates_to_kubectl() -> None:
    class FakeKubectl:
        def __init__(self) -> None:
            self.calls: list[tuple[Manifest, str | None]] = []

        def create(self, manifest: Manifest, namespace: str | None = None, output: str | None = None) -> str:
            self.calls.append((manifest, namespace))
            return ""

    kubectl = FakeKubectl()
    manifest = Manifest({"apiVersion": "v1", "kind": "Service", "metadata": {"name": "a"}})
    KubectlCreator(kubectl).create(manifest, "ns")  # type: ignore[arg-type]
    assert kubectl.calls == [(manifest, "ns")]


def test__Bulk__default_streams_follow_redirection(monkeypatch: pytest.MonkeyPatch) -> None:
    out, err = io.StringIO(), io.StringIO()
    monkeypatch.setattr(sys, "stdout", out)
    monkeypatch.setattr(sys, "stderr", err)

    Bulk(RecordingCreator(fail=frozenset({"b"}))).run(_objects("a", "b"), "ns")

    assert '    service "a" created' in out.getvalue().splitlines()
    assert err.getvalue() == 'error: services "b" already exists\n'
