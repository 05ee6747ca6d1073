"""Tests for operation resolution."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import pytest

from openapi_ts_client_generator.model_types import (
    FieldDef,
    ObjectTypedef,
    OperationDescriptor,
    ResponseTranslation,
)
from openapi_ts_client_generator.operations import (
    UnresolvedPathParameterError,
    collect_operations,
    generate_operation,
    group_operations,
    resolve_api_name,
)
from openapi_ts_client_generator.resolver import dereference
from openapi_ts_client_generator.schema import SchemaPathError, TranslationStep, parse_schema
from openapi_ts_client_generator.scope import Scope
from openapi_ts_client_generator.type_resolver import ModuleCodegen

from .fixture_helpers import load_dereferenced

_OK_OBJECT = {
    "type": "object",
    "properties": {"id": {"type": "string"}, "name": {"type": "string"}},
}


def _resolve(
    document: Mapping[str, Any],
) -> tuple[dict[str, ModuleCodegen], dict[str, OperationDescriptor]]:
    root = Scope("root")
    definitions = ModuleCodegen(
        filename="definitions.ts", scope=root.scope("definitions", "definitions.ts")
    )
    for name, node in document.get("components", {}).get("schemas", {}).items():
        schema = parse_schema(node)
        assert schema is not None
        definitions.generate_typedef(name, schema)

    modules: dict[str, ModuleCodegen] = {}
    descriptors: dict[str, OperationDescriptor] = {}
    for api_name, specs in group_operations(document, "DefaultApi").items():
        filename = f"apis/{api_name}.ts"
        codegen = ModuleCodegen(
            filename=filename, scope=root.scope(api_name, filename), api_name=api_name
        )
        for spec in specs:
            descriptor = generate_operation(codegen, spec)
            descriptors[descriptor.name] = descriptor
        modules[api_name] = codegen
    return modules, descriptors


def _single_operation(operation: dict[str, Any], path: str = "/things") -> OperationDescriptor:
    document = dereference({"openapi": "3.0.3", "paths": {path: {"get": operation}}})
    _, descriptors = _resolve(document)
    (descriptor,) = descriptors.values()
    return descriptor


def test_collect_operations_skips_non_methods() -> None:
    document = {
        "paths": {
            "/a": {"summary": "A", "parameters": [], "get": {}, "post": {}},
            "/b": {"x-extension": {}, "delete": {}},
        }
    }

    assert [(spec.path, spec.method) for spec in collect_operations(document)] == [
        ("/a", "get"),
        ("/a", "post"),
        ("/b", "delete"),
    ]


def test_resolve_api_name_uses_first_tag_with_class() -> None:
    tags = [{"name": "plain"}, {"name": "admin", "x-codegen-class": "AdminApi"}]

    assert resolve_api_name({"tags": ["plain", "admin"]}, tags, "DefaultApi") == "AdminApi"
    assert resolve_api_name({"tags": ["plain"]}, tags, "DefaultApi") == "DefaultApi"
    assert resolve_api_name({}, tags, "DefaultApi") == "DefaultApi"


def test_widgets_fixture_operations() -> None:
    modules, descriptors = _resolve(load_dereferenced("widgets.yaml"))

    assert list(modules) == ["DefaultApi", "AdminApi"]
    assert [operation.name for operation in modules["DefaultApi"].operations] == [
        "getWidget",
        "WidgetsGet",
    ]

    get_widget = descriptors["getWidget"]
    assert get_widget.method == "get"
    assert get_widget.path_expression == "`/widgets/${id}`"
    assert get_widget.return_type == "Widget | Error"
    assert [(p.argument_name, p.type_expression, p.optional) for p in get_widget.parameters] == [
        ("id", "number", False)
    ]
    assert get_widget.documentation == "Fetch one widget.\n\n@param id - Widget identifier."

    list_widgets = descriptors["WidgetsGet"]
    assert list_widgets.return_type == "Array<Widget>"
    assert [(p.argument_name, p.optional) for p in list_widgets.query_parameters] == [
        ("limit", True)
    ]


def test_request_body_gets_named_typedef() -> None:
    modules, descriptors = _resolve(load_dereferenced("widgets.yaml"))
    admin = modules["AdminApi"]
    create_widget = descriptors["createWidget"]

    assert create_widget.body_parameter == "payload"
    assert create_widget.return_type == "Widget"
    (payload,) = create_widget.parameters
    assert (payload.argument_name, payload.type_expression, payload.location) == (
        "payload",
        "CreateWidgetRequest",
        "body",
    )
    assert payload.required
    assert admin.typedefs == [
        ObjectTypedef(
            name="CreateWidgetRequest",
            fields=(
                FieldDef(name="name", type_expression="string", required=False),
                FieldDef(name="kind", type_expression="WidgetKind", required=False),
            ),
        )
    ]
    assert [entry.local_name for entry in admin.scope.imports()] == ["WidgetKind", "Widget"]


def test_single_property_response_is_unwrapped() -> None:
    _, descriptors = _resolve(load_dereferenced("translations.yaml"))
    list_products = descriptors["listProducts"]

    assert list_products.return_type == "Array<Product>"
    assert list_products.response_translations == (
        ResponseTranslation(
            status_code="200",
            content_type="application/json",
            property_path="products",
            steps=(TranslationStep(kind="property", name="products"),),
        ),
    )


def test_explicit_translation_and_path_item_parameters() -> None:
    _, descriptors = _resolve(load_dereferenced("translations.yaml"))
    get_product = descriptors["getProduct"]

    assert get_product.return_type == "Product"
    assert get_product.path_expression == "`/products/${barcode}`"
    assert [p.argument_name for p in get_product.parameters] == ["barcode"]
    (translation,) = get_product.response_translations
    assert translation.property_path == "data.product"
    assert [step.name for step in translation.steps] == ["data", "product"]


def test_operation_without_content_returns_void() -> None:
    _, descriptors = _resolve(load_dereferenced("translations.yaml"))

    delete = descriptors["ProductsBarcodeDelete"]
    assert delete.return_type == "void"
    assert delete.response_translations == ()


def test_undeclared_path_parameter_is_fatal() -> None:
    with pytest.raises(UnresolvedPathParameterError, match="thingId"):
        _single_operation({"operationId": "getThing", "responses": {}}, path="/things/{thingId}")


def test_method_name_extension_is_used_without_operation_id() -> None:
    descriptor = _single_operation({"x-codegen-method-name": "fetchThings", "responses": {}})
    assert descriptor.name == "fetchThings"


def test_argument_names_avoid_response_variable() -> None:
    descriptor = _single_operation(
        {
            "operationId": "search",
            "parameters": [
                {"name": "res", "in": "query", "schema": {"type": "string"}},
                {"name": "payload", "in": "query", "schema": {"type": "string"}},
            ],
            "requestBody": {"content": {"application/json": {"schema": {"type": "string"}}}},
            "responses": {},
        }
    )

    assert [p.argument_name for p in descriptor.parameters] == ["res2", "payload", "payload2"]
    assert descriptor.body_parameter == "payload2"
    assert all(p.optional for p in descriptor.parameters)
    assert descriptor.documentation == "@param payload2 - Request body"


def test_only_trailing_optional_parameters_are_marked() -> None:
    descriptor = _single_operation(
        {
            "operationId": "filter",
            "parameters": [
                {"name": "a", "in": "query", "required": True, "schema": {"type": "string"}},
                {"name": "b", "in": "query", "schema": {"type": "string"}},
                {"name": "c", "in": "header", "required": True, "schema": {"type": "string"}},
                {"name": "d", "in": "query", "schema": {"type": "string"}},
            ],
            "responses": {},
        }
    )

    assert [(p.argument_name, p.optional) for p in descriptor.parameters] == [
        ("a", False),
        ("b", False),
        ("c", False),
        ("d", True),
    ]
    assert [p.path_name for p in descriptor.header_parameters] == ["c"]


def test_duplicate_return_types_collapse() -> None:
    widget = {"$ref": "#/components/schemas/Widget"}
    document = dereference(
        {
            "paths": {
                "/widgets": {
                    "get": {
                        "operationId": "listWidgets",
                        "responses": {
                            "200": {"content": {"application/json": {"schema": widget}}},
                            "default": {"content": {"application/json": {"schema": widget}}},
                        },
                    }
                }
            },
            "components": {"schemas": {"Widget": _OK_OBJECT}},
        }
    )

    _, descriptors = _resolve(document)
    assert descriptors["listWidgets"].return_type == "Widget"


def test_multiple_content_types_are_labelled() -> None:
    modules, descriptors = _resolve(
        dereference(
            {
                "paths": {
                    "/report": {
                        "get": {
                            "operationId": "getReport",
                            "responses": {
                                "200": {
                                    "content": {
                                        "application/json": {"schema": _OK_OBJECT},
                                        "text/csv": {"schema": {"type": "string"}},
                                    }
                                }
                            },
                        }
                    }
                }
            }
        )
    )

    assert descriptors["getReport"].return_type == "GetReportSuccessJsonResponse | string"
    assert [typedef.name for typedef in modules["DefaultApi"].typedefs] == [
        "GetReportSuccessJsonResponse"
    ]


def test_translation_into_scalar_is_fatal() -> None:
    with pytest.raises(SchemaPathError):
        _single_operation(
            {
                "operationId": "broken",
                "responses": {
                    "200": {
                        "content": {
                            "application/json": {
                                "x-codegen-translate-response": "count.value",
                                "schema": {
                                    "type": "object",
                                    "properties": {"count": {"type": "integer"}},
                                },
                            }
                        }
                    }
                },
            }
        )


def test_operation_parameters_override_path_item() -> None:
    document = dereference(
        {
            "paths": {
                "/items/{itemId}": {
                    "parameters": [
                        {"name": "itemId", "in": "path", "schema": {"type": "string"}},
                    ],
                    "get": {
                        "operationId": "getItem",
                        "parameters": [
                            {"name": "itemId", "in": "path", "schema": {"type": "integer"}},
                        ],
                        "responses": {},
                    },
                }
            }
        }
    )

    _, descriptors = _resolve(document)
    (parameter,) = descriptors["getItem"].parameters
    assert parameter.type_expression == "number"
    assert parameter.required


def test_missing_responses_and_schemas_warn() -> None:
    root = Scope("root")
    codegen = ModuleCodegen(
        filename="apis/DefaultApi.ts",
        scope=root.scope("DefaultApi", "apis/DefaultApi.ts"),
        api_name="DefaultApi",
    )
    (spec,) = collect_operations(
        {"paths": {"/ping": {"get": {"parameters": [{"name": "q", "in": "query"}]}}}}
    )

    descriptor = generate_operation(codegen, spec)

    assert descriptor.return_type == "void"
    assert descriptor.parameters[0].type_expression == "undefined"
    assert codegen.warnings == [
        "Parameter 'q' of PingGet has no schema",
        "Operation PingGet declares no responses",
    ]


def _message_wrapper() -> dict[str, Any]:
    return {
        "content": {
            "application/json": {
                "schema": {"type": "object", "properties": {"message": {"type": "string"}}}
            }
        }
    }


def test_default_translation_does_not_shadow_declared_codes() -> None:
    document = dereference(
        {
            "paths": {
                "/widgets/{id}": {
                    "get": {
                        "operationId": "getWidget",
                        "parameters": [{"name": "id", "in": "path", "schema": {"type": "string"}}],
                        "responses": {
                            "default": _message_wrapper(),
                            "200": {
                                "content": {
                                    "application/json": {
                                        "schema": {"$ref": "#/components/schemas/Widget"}
                                    }
                                }
                            },
                        },
                    }
                }
            },
            "components": {"schemas": {"Widget": _OK_OBJECT}},
        }
    )

    _, descriptors = _resolve(document)
    (translation,) = descriptors["getWidget"].response_translations
    assert translation.status_code == "default"
    assert translation.shadowed_status_codes == ("200",)
    assert descriptors["getWidget"].return_type == "string | Widget"


def test_translations_are_ordered_by_status_specificity() -> None:
    descriptor = _single_operation(
        {
            "operationId": "lookup",
            "responses": {
                "default": _message_wrapper(),
                "4XX": _message_wrapper(),
                "404": _message_wrapper(),
            },
        }
    )

    assert [
        (translation.status_code, translation.shadowed_status_codes)
        for translation in descriptor.response_translations
    ] == [
        ("404", ()),
        ("4XX", ("404",)),
        ("default", ("4XX", "404")),
    ]


def test_named_single_property_schema_is_not_unwrapped() -> None:
    document = dereference(
        {
            "paths": {
                "/widgets/{id}": {
                    "get": {
                        "parameters": [{"name": "id", "in": "path", "schema": {"type": "integer"}}],
                        "responses": {
                            "200": {
                                "content": {
                                    "application/json": {
                                        "schema": {"$ref": "#/components/schemas/Widget"}
                                    }
                                }
                            }
                        },
                    }
                }
            },
            "components": {
                "schemas": {
                    "Widget": {"type": "object", "properties": {"id": {"type": "integer"}}}
                }
            },
        }
    )

    _, descriptors = _resolve(document)
    descriptor = descriptors["WidgetsIdGet"]
    assert descriptor.return_type == "Widget"
    assert descriptor.response_translations == ()
