# This file is part of cloudboot. See LICENSE file for license information.

"""jsonschema validation of the cloudboot system config."""

import logging
from typing import List, NamedTuple, Optional

from jsonschema import Draft4Validator, FormatChecker

LOG = logging.getLogger(__name__)

_TIMEOUT = {"type": ["number", "null"], "minimum": 0}
_PLATFORM_TIMEOUT = {"type": "number", "exclusiveMinimum": True, "minimum": 0}

_PLATFORM_SCHEMA = {
    "type": "object",
    "properties": {
        "metadata_url": {"type": "string", "format": "uri"},
        "user_data_url": {"type": "string", "format": "uri"},
        "timeout": _PLATFORM_TIMEOUT,
    },
    "additionalProperties": False,
}

SYSTEM_CONFIG_SCHEMA = {
    "$schema": "http://json-schema.org/draft-04/schema#",
    "type": "object",
    "properties": {
        "platform": {"type": ["string", "null"]},
        "platforms": {
            "type": "object",
            "additionalProperties": _PLATFORM_SCHEMA,
        },
        "network_wait": {
            "type": "object",
            "properties": {
                "timeout": _TIMEOUT,
                "interval": {
                    "type": "number",
                    "exclusiveMinimum": True,
                    "minimum": 0,
                },
            },
            "additionalProperties": False,
        },
        "log_cfgs": {"type": "array"},
        "log_basic": {"type": "boolean"},
    },
}


class SchemaProblem(NamedTuple):
    path: str
    message: str

    def format(self) -> str:
        return f"{self.path}: {self.message}"


SchemaProblems = List[SchemaProblem]


class SchemaValidationError(ValueError):
    """Raised when validating a system config against the schema."""

    def __init__(self, schema_errors: Optional[SchemaProblems] = None):
        self.schema_errors = sorted(set(schema_errors or []))
        super().__init__(
            "System config schema errors: "
            + ", ".join(p.format() for p in self.schema_errors)
        )


def validate_config(
    config: dict, schema: Optional[dict] = None, strict: bool = False
) -> bool:
    """Validate config against the system config schema.

    @param strict: Boolean, when True raise SchemaValidationError instead of
       logging warnings.

    @return: True when config is valid.
    @raises: SchemaValidationError when strict and config is invalid.
    """
    if schema is None:
        schema = SYSTEM_CONFIG_SCHEMA
    validator = Draft4Validator(schema, format_checker=FormatChecker())
    errors: SchemaProblems = []
    for schema_error in sorted(
        validator.iter_errors(config), key=lambda e: [str(p) for p in e.path]
    ):
        path = ".".join([str(p) for p in schema_error.path])
        errors.append(SchemaProblem(path, schema_error.message))
    if not errors:
        return True
    if strict:
        raise SchemaValidationError(errors)
    LOG.warning(
        "System config failed schema validation!\n%s",
        "\n".join(p.format() for p in errors),
    )
    return False
