"""
Protocol constants and defaults for the Pengines client

This module centralizes endpoint names, command bodies and default settings
so the request-forming code and the tests agree on a single source.
"""

# Endpoint and action names
ENDPOINT_PREFIX = "/pengine/"
ACTION_CREATE = "create"
ACTION_SEND = "send"

# Content types
JSON_CONTENT_TYPE = "application/json"
PROLOG_CONTENT_TYPE = "application/x-prolog; charset=UTF-8"

# Command bodies posted to the send endpoint
NEXT_COMMAND = "next."
STOP_COMMAND = "stop."
DESTROY_COMMAND = "destroy."
PULL_RESPONSE_COMMAND = "pull_response."

# Builder defaults
DEFAULT_APPLICATION = "sandbox"
DEFAULT_CHUNK = 1
RESPONSE_FORMAT = "json"
NETWORK_TIMEOUT = 30.0  # seconds

# Environment variables
ENV_SERVER = "PENGINE_SERVER"
ENV_APPLICATION = "PENGINE_APPLICATION"
ENV_CHUNK = "PENGINE_CHUNK"
ENV_DESTROY = "PENGINE_DESTROY"
ENV_TIMEOUT = "PENGINE_TIMEOUT"
ENV_TELEMETRY = "PENGINE_TELEMETRY"
