# SPDX-FileCopyrightText: 2025 Lucas S
#
# SPDX-License-Identifier: GPL-3.0-or-later

from contextlib import contextmanager
from typing import Generator

import httpx


class BearerTokenAuth:
    """Bearer token authentication processor"""

    def __init__(self, token: str):
        self.token = token

    @contextmanager
    def process(self, request: httpx.Request) -> Generator[httpx.Request, None, None]:
        request.headers["Authorization"] = f"Bearer {self.token}"
        yield request


class ApiKeyAuth:
    """API key authentication processor"""

    def __init__(self, api_key: str, header_name: str = "X-API-Key"):
        self.api_key = api_key
        self.header_name = header_name

    @contextmanager
    def process(self, request: httpx.Request) -> Generator[httpx.Request, None, None]:
        request.headers[self.header_name] = self.api_key
        yield request
