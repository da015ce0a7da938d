# SPDX-FileCopyrightText: 2025 Lucas S
#
# SPDX-License-Identifier: GPL-3.0-or-later

from contextlib import contextmanager
from typing import Generator

import httpx
from opentelemetry import trace
from opentelemetry.baggage.propagation import W3CBaggagePropagator
from opentelemetry.trace.propagation.tracecontext import TraceContextTextMapPropagator

default_tracer: trace.Tracer = trace.get_tracer(__name__)


class TracedRequestProcessor:
    """
    Opens a client span for the exchange and propagates its context.

    The span is ended when the agent leaves the processor, after the response
    has been received and post-processed.
    """

    def __init__(
        self, span_name: str | None = None, tracer: trace.Tracer | None = None
    ):
        self.span_name = span_name
        self.tracer = tracer or default_tracer

    @contextmanager
    def process(self, request: httpx.Request) -> Generator[httpx.Request, None, None]:
        name = self.span_name or f"HTTP {request.method}"

        with self.tracer.start_as_current_span(
            name,
            kind=trace.SpanKind.CLIENT,
            attributes={
                "http.method": request.method,
                "http.url": str(request.url),
            },
        ):
            headers: dict[str, str] = {}
            W3CBaggagePropagator().inject(headers)
            TraceContextTextMapPropagator().inject(headers)

            for key, value in headers.items():
                request.headers[key] = value

            yield request
