# SPDX-FileCopyrightText: 2025 Lucas S
#
# SPDX-License-Identifier: GPL-3.0-or-later

from typing import Optional


class AgentError(Exception):
    """Base exception for every failure raised by an Agent."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ConstructionError(AgentError):
    """Raised when the agent could not be built (bad URL, marshal failure)"""


class CipherError(AgentError):
    """Raised when the configured cipher fails to encrypt or decrypt a body"""


class ProcessorError(AgentError):
    """Raised when a request or response processor fails"""


class TransportError(AgentError):

    def __init__(self, original_exception: Exception) -> None:
        super().__init__(str(original_exception) or repr(original_exception), 500)
        self.original_exception = original_exception


class StatusError(AgentError):

    def __init__(self, status_code: int, message: str, body: bytes = b"") -> None:
        super().__init__(message, status_code)
        self.body = body


class DecodeError(AgentError):
    """Raised when a successful response body does not match the expected format"""


__all__ = [
    "AgentError",
    "ConstructionError",
    "CipherError",
    "ProcessorError",
    "TransportError",
    "StatusError",
    "DecodeError",
]
