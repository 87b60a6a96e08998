from fastapi import FastAPI


def custom_openapi(app: FastAPI):
    """Generate the OpenAPI schema with the service error envelope.

    FastAPI documents 422 as HTTPValidationError by default, but validation
    failures are rendered as ErrorResponse by our handlers.
    """
    if app.openapi_schema:
        return app.openapi_schema

    from fastapi.openapi.utils import get_openapi

    openapi_schema = get_openapi(
        title=app.title,
        version=app.version,
        description=app.description,
        routes=app.routes,
    )

    for path in openapi_schema.get("paths", {}).values():
        for method in path.values():
            responses = method.get("responses", {})
            if "422" in responses:
                content = responses["422"].get("content", {})
                json_schema = content.get("application/json", {}).get("schema", {})
                if "HTTPValidationError" in json_schema.get("$ref", ""):
                    responses["422"] = {
                        "description": "Validation Error",
                        "content": {
                            "application/json": {
                                "schema": {"$ref": "#/components/schemas/ErrorResponse"}
                            }
                        },
                    }

    schemas = openapi_schema.get("components", {}).get("schemas", {})
    schemas.pop("HTTPValidationError", None)
    schemas.pop("ValidationError", None)

    app.openapi_schema = openapi_schema
    return app.openapi_schema
