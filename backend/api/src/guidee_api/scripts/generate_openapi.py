#!/usr/bin/env python3
"""Generate the OpenAPI schema with AWS API Gateway (HTTP API) extensions.

The schema is built from the FastAPI app and decorated with:
- x-amazon-apigateway-integration: Lambda proxy (AWS_PROXY, payload 2.0)
- x-amazon-apigateway-cors: CORS configuration at root level
- a ``bearerAuth`` security scheme on every route that resolves the caller

Tokens are verified inside the Lambda, so API Gateway carries no authorizer;
the security entries document which routes need a token.

Usage:
    As Terraform external data source (reads JSON from stdin):
        echo '{"lambda_arn": "...", "cors_allow_origins": ["..."]}' | \
            python -m guidee_api.scripts.generate_openapi

    Direct invocation for testing:
        python -m guidee_api.scripts.generate_openapi --test

Output:
    JSON to stdout: {"openapi_spec": "<json-encoded-openapi>"}
"""

from __future__ import annotations

import json
import sys
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator

SECURITY_SCHEME_NAME = "bearerAuth"
HTTP_METHODS = ["get", "post", "put", "delete", "patch", "options", "head"]


class OpenAPIGeneratorConfig(BaseModel):
    """Configuration for the generator, read from stdin JSON."""

    lambda_arn: str = Field(..., description="Full Lambda ARN for API integration")
    cors_allow_origins: list[str] = Field(default=["*"], description="Allowed CORS origins")

    @field_validator("lambda_arn")
    @classmethod
    def validate_lambda_arn(cls, v: str) -> str:
        if not v.startswith("arn:aws:lambda:"):
            raise ValueError(f"Invalid Lambda ARN: must start with 'arn:aws:lambda:', got {v}")
        parts = v.split(":")
        if len(parts) < 7:
            raise ValueError(f"Invalid Lambda ARN: expected 7+ parts, got {len(parts)}")
        return v

    @field_validator("cors_allow_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: str | list[str]) -> list[str]:
        """Terraform passes arrays as JSON-encoded strings."""
        if isinstance(v, str):
            if v.startswith("["):
                return json.loads(v)
            return [v]
        return v


class ScriptError(Exception):
    """Structured error for the generator script."""

    def __init__(self, code: str, message: str, details: dict[str, Any] | None = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": True,
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }

    def exit(self) -> None:
        """Print error to stderr and exit with non-zero status."""
        print(json.dumps(self.to_dict()), file=sys.stderr)
        sys.exit(1)


def get_lambda_integration_uri(lambda_arn: str) -> str:
    """Build the API Gateway integration URI for a Lambda ARN.

    Args:
        lambda_arn: e.g. arn:aws:lambda:ap-northeast-1:123456789012:function:orders-api

    Returns:
        API Gateway integration URI.
    """
    region = lambda_arn.split(":")[3]
    return (
        f"arn:aws:apigateway:{region}:lambda:path/2015-03-31"
        f"/functions/{lambda_arn}/invocations"
    )


def get_protected_routes(app: Any) -> set[str]:
    """Return "METHOD /path" keys for routes depending on the caller."""
    from guidee_api.security import get_current_caller

    protected: set[str] = set()
    for route in app.routes:
        dependant = getattr(route, "dependant", None)
        if dependant is None or not hasattr(route, "methods"):
            continue
        if any(dep.call is get_current_caller for dep in dependant.dependencies):
            for method in route.methods:
                if method == "HEAD":
                    continue
                protected.add(f"{method} {route.path}")
    return protected


def generate_openapi(lambda_arn: str, cors_allow_origins: list[str] | None = None) -> dict[str, Any]:
    """Generate the OpenAPI schema with API Gateway extensions.

    Args:
        lambda_arn: Full Lambda ARN for integration.
        cors_allow_origins: Allowed CORS origins (default: ["*"]).

    Returns:
        OpenAPI schema dict.
    """
    from fastapi.openapi.utils import get_openapi

    from guidee_api.main import app

    openapi = get_openapi(
        title=app.title,
        version=app.version,
        openapi_version="3.0.1",  # API Gateway supports 3.0.x
        description=app.description,
        routes=app.routes,
    )

    origins = cors_allow_origins or ["*"]
    openapi["x-amazon-apigateway-cors"] = {
        "allowOrigins": origins,
        "allowMethods": ["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        "allowHeaders": ["Content-Type", "Authorization", "X-Correlation-ID"],
        "exposeHeaders": ["X-Correlation-ID"],
        "maxAge": 86400,
        # Credentials are only allowed with explicit origins
        "allowCredentials": "*" not in origins,
    }

    components = openapi.setdefault("components", {})
    components.setdefault("securitySchemes", {})[SECURITY_SCHEME_NAME] = {
        "type": "http",
        "scheme": "bearer",
        "bearerFormat": "JWT",
    }

    integration_uri = get_lambda_integration_uri(lambda_arn)
    protected = get_protected_routes(app)

    for path, path_item in openapi.get("paths", {}).items():
        for method in HTTP_METHODS:
            if method not in path_item:
                continue
            operation = path_item[method]
            operation["x-amazon-apigateway-integration"] = {
                "type": "AWS_PROXY",
                "httpMethod": "POST",
                "uri": integration_uri,
                "payloadFormatVersion": "2.0",
            }
            if f"{method.upper()} {path}" in protected:
                operation["security"] = [{SECURITY_SCHEME_NAME: []}]
            else:
                operation["security"] = []

    return openapi


def main() -> None:
    """Main entry point for the generator script."""
    if "--test" in sys.argv:
        config = OpenAPIGeneratorConfig(
            lambda_arn="arn:aws:lambda:ap-northeast-1:123456789012:function:guidee-orders-api",
        )
    else:
        input_json = sys.stdin.read()
        if not input_json.strip():
            ScriptError(
                code="INVALID_INPUT",
                message="No input provided on stdin",
                details={"hint": "Terraform external data source should provide JSON input"},
            ).exit()
        try:
            config = OpenAPIGeneratorConfig(**json.loads(input_json))
        except (json.JSONDecodeError, ValidationError) as e:
            ScriptError(
                code="INVALID_INPUT",
                message=f"Invalid configuration: {e}",
                details={"input_preview": input_json[:100]},
            ).exit()
            return

    openapi = generate_openapi(
        lambda_arn=config.lambda_arn,
        cors_allow_origins=config.cors_allow_origins,
    )
    print(json.dumps({"openapi_spec": json.dumps(openapi)}))


if __name__ == "__main__":
    main()
