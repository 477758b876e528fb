"""JSON schema definition for reporter output."""
from __future__ import annotations

SCHEMA_VERSION = "1.0.0"

JSON_SCHEMA_V1 = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "sltest report",
    "type": "object",
    "required": ["schema_version", "generated_at", "script", "summary", "directives", "violations"],
    "properties": {
        "schema_version": {"type": "string"},
        "generated_at": {"type": "string", "format": "date-time"},
        "script": {"type": "string"},
        "summary": {
            "type": "object",
            "required": ["total", "executed", "passed", "failed", "halted", "status", "duration_s"],
            "properties": {
                "total": {"type": "integer"},
                "executed": {"type": "integer"},
                "passed": {"type": "integer"},
                "failed": {"type": "integer"},
                "halted": {"type": "boolean"},
                "status": {"type": "string", "enum": ["passed", "failed"]},
                "duration_s": {"type": "number"},
                "write_count": {"type": ["integer", "null"]},
                "delete_count": {"type": ["integer", "null"]},
            },
        },
        "directives": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["location", "kind", "status", "details", "metrics"],
                "properties": {
                    "location": {"type": "string"},
                    "kind": {"type": "string", "enum": ["halt", "sleep", "statement", "query"]},
                    "status": {"type": "string", "enum": ["passed", "failed", "halted"]},
                    "failure": {"type": ["string", "null"]},
                    "details": {"type": "string"},
                    "metrics": {"type": "object"},
                },
            },
        },
        "violations": {"type": "array", "items": {"type": "string"}},
    },
}
