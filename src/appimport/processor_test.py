import io
import re
from unittest.mock import MagicMock

import pytest
from kubernetes.client.exceptions import ApiException

from appimport.errors import TemplateProcessingError
from appimport.processor import (
    ClusterTemplateProcessor,
    LocalTemplateProcessor,
    describe_template,
    generate_from_expression,
    set_parameters,
)
from appimport.resources import ObjectMetadata
from appimport.resources.template import Template, TemplateParameter


@pytest.fixture
def template() -> Template:
    return Template(
        metadata=ObjectMetadata(name="shop"),
        labels={"app.json": "shop"},
        parameters=[
            TemplateParameter(name="GREETING", value="hello"),
            TemplateParameter(name="SECRET_KEY", generate="expression", from_="[a-zA-Z0-9]{32}"),
        ],
        objects=[
            {
                "apiVersion": "v1",
                "kind": "ConfigMap",
                "metadata": {"name": "shop", "labels": {"app": "shop"}},
                "data": {"greeting": "${GREETING}, world", "key": "${SECRET_KEY}", "other": "${UNKNOWN}"},
            }
        ],
    )


def test__generate_from_expression() -> None:
    assert re.fullmatch(r"[a-c]{5}", generate_from_expression("[a-c]{5}"))
    assert re.fullmatch(r"x-[0-9]{3}", generate_from_expression("x-[0-9]{3}"))
    assert re.fullmatch(r"[a-zA-Z0-9_]{16}", generate_from_expression("[a-zA-Z0-9_]{16}"))


def test__LocalTemplateProcessor__process__substitutes_parameters_and_applies_labels(template: Template) -> None:
    result = LocalTemplateProcessor().process(template, "default")

    obj = result.objects[0]
    assert obj["data"]["greeting"] == "hello, world"
    assert re.fullmatch(r"[a-zA-Z0-9]{32}", obj["data"]["key"])
    assert obj["data"]["other"] == "${UNKNOWN}"
    assert obj["metadata"]["labels"] == {"app": "shop", "app.json": "shop"}
    assert result.get_parameter("SECRET_KEY").value == obj["data"]["key"]

    # The input template is left untouched.
    assert template.objects[0]["data"]["greeting"] == "${GREETING}, world"
    assert template.get_parameter("SECRET_KEY").value is None


def test__LocalTemplateProcessor__process__missing_required_parameter(template: Template) -> None:
    template.parameters.append(TemplateParameter(name="DATABASE_URL", required=True))

    with pytest.raises(TemplateProcessingError, match="DATABASE_URL"):
        LocalTemplateProcessor().process(template, "default")


def test__set_parameters(template: Template) -> None:
    set_parameters(template, {"GREETING": "hi"})
    assert template.get_parameter("GREETING").value == "hi"

    with pytest.raises(TemplateProcessingError, match="unknown parameter name 'NOPE'"):
        set_parameters(template, {"NOPE": "x"})


def test__ClusterTemplateProcessor__process__posts_to_processedtemplates(
    template: Template, monkeypatch: pytest.MonkeyPatch
) -> None:
    processed = template.dump()
    processed["objects"] = [{"apiVersion": "v1", "kind": "ConfigMap", "metadata": {"name": "shop"}}]
    processed["metadata"]["uid"] = "1234"
    api = MagicMock()
    api.return_value.create_namespaced_custom_object.return_value = processed
    monkeypatch.setattr("appimport.processor.CustomObjectsApi", api)
    client = MagicMock()

    result = ClusterTemplateProcessor(client).process(template, "shop-ns")

    api.assert_called_once_with(client)
    api.return_value.create_namespaced_custom_object.assert_called_once_with(
        group="template.openshift.io",
        version="v1",
        namespace="shop-ns",
        plural="processedtemplates",
        body=template.dump(),
    )
    assert result.name == "shop"
    assert result.objects == processed["objects"]


def test__ClusterTemplateProcessor__process__api_error(template: Template, monkeypatch: pytest.MonkeyPatch) -> None:
    api = MagicMock()
    api.return_value.create_namespaced_custom_object.side_effect = ApiException(status=403, reason="Forbidden")
    monkeypatch.setattr("appimport.processor.CustomObjectsApi", api)

    with pytest.raises(TemplateProcessingError, match='"shop-ns/shop": Forbidden'):
        ClusterTemplateProcessor(MagicMock()).process(template, "shop-ns")


def test__describe_template(template: Template) -> None:
    out = io.StringIO()
    describe_template(out, template, "default")
    text = out.getvalue()

    assert '--> Deploying template "default/shop"' in text
    assert "* GREETING=hello" in text
    assert "* SECRET_KEY= # generated" in text
    assert "* configmap/shop" in text
