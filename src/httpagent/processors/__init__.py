# SPDX-FileCopyrightText: 2025 Lucas S
#
# SPDX-License-Identifier: GPL-3.0-or-later

# Request/response processors
"""
Hooks invoked by `Agent.do` around the exchange.

A request processor wraps the dispatch in a context manager: whatever runs
after its `yield` is the cleanup, executed once the exchange finished,
whether it succeeded or not.
"""

from contextlib import ExitStack, contextmanager
from typing import ContextManager, Generator, Iterable, Protocol

import httpx

from .auth import ApiKeyAuth, BearerTokenAuth


class RequestProcessor(Protocol):
    """Protocol for request processors"""

    def process(self, request: httpx.Request) -> ContextManager[httpx.Request]: ...


class ResponseProcessor(Protocol):
    """Protocol for response processors"""

    def process(self, response: httpx.Response) -> httpx.Response: ...


class ChainedRequestProcessor:
    """
    Runs several request processors in the single processor slot of an agent.

    Processors are entered in order, each one receiving the request yielded by
    the previous one, and their cleanups unwind in reverse order.
    """

    def __init__(self, processors: Iterable[RequestProcessor]):
        self.processors = list(processors)

    @contextmanager
    def process(self, request: httpx.Request) -> Generator[httpx.Request, None, None]:
        with ExitStack() as stack:
            for processor in self.processors:
                request = stack.enter_context(processor.process(request))
            yield request


__all__ = [
    "RequestProcessor",
    "ResponseProcessor",
    "ChainedRequestProcessor",
    "BearerTokenAuth",
    "ApiKeyAuth",
]
