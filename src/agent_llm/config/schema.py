"""
JSON schemas for configuration validation.
"""

CLAUDE_CODE_SCHEMA = {
    "type": "object",
    "properties": {
        "model": {"type": "string", "minLength": 1},
        "max_tokens": {"type": "integer", "minimum": 1},
        "allowed_tools": {
            "type": "array",
            "items": {"type": "string", "minLength": 1},
        },
        "model_properties": {"type": "object"},
    },
    "additionalProperties": False,
}

LOGGING_SCHEMA = {
    "type": "object",
    "properties": {
        "level": {"type": "string", "enum": ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]},
        "format": {"type": "string", "enum": ["text", "json"]},
        "logger_name": {"type": "string", "minLength": 1},
    },
    "additionalProperties": False,
}

CONFIG_SCHEMA = {
    "type": "object",
    "properties": {
        "claude_code": CLAUDE_CODE_SCHEMA,
        "logging": LOGGING_SCHEMA,
    },
    "additionalProperties": False,
}


__all__ = ["CLAUDE_CODE_SCHEMA", "LOGGING_SCHEMA", "CONFIG_SCHEMA"]
