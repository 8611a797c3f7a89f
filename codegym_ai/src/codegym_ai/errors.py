"""
Error Types

Exception hierarchy shared by the flows, actions, gateways and the HTTP layer.
"""

from typing import Dict, List, Optional


class CodeGymError(Exception):
    """Base class for all CodeGym errors."""


class ConfigurationError(CodeGymError):
    """Required configuration is missing or malformed. Fatal at startup."""


class InvalidInputError(CodeGymError):
    """
    A flow payload failed schema validation.

    Raised before any model call is made.
    """

    def __init__(self, flow: str, errors: Optional[List[Dict[str, str]]] = None):
        self.flow = flow
        self.errors = errors or []
        details = "; ".join(f"{e['field']}: {e['message']}" for e in self.errors)
        message = f"Invalid input for {flow}"
        if details:
            message += f" ({details})"
        super().__init__(message)

    @property
    def fields(self) -> List[str]:
        return [e["field"] for e in self.errors]


class ModelError(CodeGymError):
    """The hosted model call failed or returned output that does not fit the schema."""

    def __init__(self, flow: str, reason: str):
        self.flow = flow
        self.reason = reason
        super().__init__(f"{flow}: {reason}")


class ActionError(CodeGymError):
    """User-facing failure raised by an action after the flow gave up."""


class GatewayError(CodeGymError):
    """The HTTP gateway got an error body or a non-2xx status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)
