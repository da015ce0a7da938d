# SPDX-FileCopyrightText: 2025 Lucas S
#
# SPDX-License-Identifier: GPL-3.0-or-later

# Fluent HTTP request builder
"""
Build an HTTP request by chaining configuration calls on an `Agent` and
execute it once through a single pipeline:
- method, header, query, cookie and basic auth configuration
- form, JSON, XML, protobuf JSON and multipart bodies
- transparent body encryption through a `Cipher`
- request/response processors
- typed decoding of the response (bytes, text, JSON, XML, protobuf JSON)
"""

from .agent import (
    DELETE,
    GET,
    HEAD,
    METHODS,
    PATCH,
    POST,
    PUT,
    Agent,
    AgentState,
    Building,
    Failed,
    client_from_settings,
    default_client,
    delete,
    get,
    head,
    http,
    https,
    patch,
    post,
    put,
)
from .cipher import CIPHER_HEADER, AESGCMCipher, Cipher
from .config import AgentSettings, load_settings
from .encoding import CONTENT_TYPES
from .exceptions import (
    AgentError,
    CipherError,
    ConstructionError,
    DecodeError,
    ProcessorError,
    StatusError,
    TransportError,
)
from .files import File
from .processors import (
    ApiKeyAuth,
    BearerTokenAuth,
    ChainedRequestProcessor,
    RequestProcessor,
    ResponseProcessor,
)

__all__ = [
    # Agent and constructors
    "Agent",
    "AgentState",
    "Building",
    "Failed",
    "get",
    "post",
    "put",
    "patch",
    "head",
    "delete",
    "http",
    "https",
    "default_client",
    "client_from_settings",
    # Methods and content types
    "GET",
    "POST",
    "PUT",
    "PATCH",
    "HEAD",
    "DELETE",
    "METHODS",
    "CONTENT_TYPES",
    # Attachments
    "File",
    # Cipher
    "Cipher",
    "AESGCMCipher",
    "CIPHER_HEADER",
    # Processors
    "RequestProcessor",
    "ResponseProcessor",
    "ChainedRequestProcessor",
    "BearerTokenAuth",
    "ApiKeyAuth",
    # Configuration
    "AgentSettings",
    "load_settings",
    # Exceptions
    "AgentError",
    "ConstructionError",
    "CipherError",
    "ProcessorError",
    "TransportError",
    "StatusError",
    "DecodeError",
]
