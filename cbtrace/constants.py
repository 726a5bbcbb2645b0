"""
This module contains constants used across cbtrace.

Constants that should NOT be referenced by cbtrace users are marked with a leading underscore.
"""
ENV_KEY = "env"
VERSION_KEY = "version"
SPAN_KIND = "span.kind"
COMPONENT = "component"

ERROR_MSG = "error.message"  # a string representing the error message
ERROR_TYPE = "error.type"  # a string representing the type of the error
ERROR_STACK = "error.stack"  # a human readable version of the stack.

PID = "process_id"

_DD_PATCH_ATTR = "__datadog_patch"
