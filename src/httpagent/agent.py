# SPDX-FileCopyrightText: 2025 Lucas S
#
# SPDX-License-Identifier: GPL-3.0-or-later

import base64
import json
import logging
import threading
from contextlib import ExitStack
from http.cookiejar import CookieJar, DefaultCookiePolicy
from dataclasses import dataclass
from functools import wraps
from typing import Any, Callable, Mapping, Optional, Sequence, TypeVar, Union, cast
from xml.parsers.expat import ExpatError

import httpx
import xmltodict
from google.protobuf import json_format
from google.protobuf.message import Message as ProtoMessage
from pydantic import BaseModel, TypeAdapter

from httpagent.cipher import CIPHER_HEADER, Cipher
from httpagent.config import AgentSettings, load_settings
from httpagent.dump import SEPARATOR, dump_request, dump_response
from httpagent.encoding import (
    CONTENT_TYPES,
    DEFAULT_CONTENT_TYPE,
    encode_form,
    encode_json,
    encode_multipart,
    encode_protobuf_json,
    encode_xml,
)
from httpagent.exceptions import (
    AgentError,
    CipherError,
    ConstructionError,
    DecodeError,
    ProcessorError,
    StatusError,
    TransportError,
)
from httpagent.files import File
from httpagent.processors import RequestProcessor, ResponseProcessor

logger = logging.getLogger(__name__)

GET = "GET"
POST = "POST"
PUT = "PUT"
PATCH = "PATCH"
HEAD = "HEAD"
DELETE = "DELETE"

METHODS = (GET, POST, PUT, PATCH, HEAD, DELETE)

P = TypeVar("P", bound=ProtoMessage)
MUTATOR = TypeVar("MUTATOR", bound=Callable[..., "Agent"])


@dataclass(frozen=True)
class Building:
    """The agent is being configured and can be executed."""


@dataclass(frozen=True)
class Failed:
    """A step failed; the agent refuses to execute until it is reset."""

    error: AgentError


AgentState = Union[Building, Failed]


_default_client: Optional[httpx.Client] = None
_default_client_lock = threading.Lock()


def client_from_settings(
    settings: AgentSettings, transport: Optional[httpx.BaseTransport] = None
) -> httpx.Client:
    """
    Build a client configured from `settings`.

    Its cookie jar refuses every cookie, so responses never leak cookies
    into later requests sharing the client.
    """
    headers = {"User-Agent": settings.user_agent} if settings.user_agent else None
    return httpx.Client(
        headers=headers,
        cookies=CookieJar(policy=DefaultCookiePolicy(allowed_domains=[])),
        timeout=settings.timeout,
        follow_redirects=settings.follow_redirects,
        transport=transport,
    )


def default_client() -> httpx.Client:
    """Shared client used by every agent that was not given its own."""
    global _default_client

    with _default_client_lock:
        if _default_client is None:
            _default_client = client_from_settings(load_settings())
        return _default_client


def _building(method: MUTATOR) -> MUTATOR:

    @wraps(method)
    def mutator(self: "Agent", *args: Any, **kwargs: Any) -> "Agent":
        if isinstance(self._state, Failed):
            return self
        return method(self, *args, **kwargs)

    return cast(MUTATOR, mutator)


class Agent:
    """
    Fluent HTTP request builder.

    Configure the agent by chaining its mutators, then consume it once with
    one of the decode helpers (`content`, `text`, `json`, `xml`, `jsonpb`,
    `status`) or with `do` for the raw response.
    """

    def __init__(
        self,
        url: str,
        client: Optional[httpx.Client] = None,
        settings: Optional[AgentSettings] = None,
    ):
        settings = settings or load_settings()

        self._state: AgentState = Building()
        self._method = GET
        self._content_type = DEFAULT_CONTENT_TYPE
        self._request_headers = httpx.Headers()
        self._response_headers = httpx.Headers()
        self._query: dict[str, list[str]] = {}
        self._cookies: list[tuple[str, str]] = []
        self._files: list[File] = []
        self._body: bytes = b""
        self._cipher: Optional[Cipher] = None
        self._request_processor: Optional[RequestProcessor] = None
        self._response_processor: Optional[ResponseProcessor] = None
        self._settings = settings
        self._debug = settings.debug
        self._client = client
        self._owned_client: Optional[httpx.Client] = None
        self._basic_auth: Optional[tuple[str, str]] = None
        self._response: Optional[httpx.Response] = None

        try:
            self._url = httpx.URL(url)
        except httpx.InvalidURL as err:
            self._url = httpx.URL()
            self._fail(ConstructionError(f"Invalid URL {url!r}: {err}"))

        if b":" in self._url.userinfo:
            self._basic_auth = (self._url.username, self._url.password)

        self._prefix = self._url.path.rstrip("/")

    # State

    @property
    def state(self) -> AgentState:
        return self._state

    @property
    def error(self) -> Optional[AgentError]:
        if isinstance(self._state, Failed):
            return self._state.error
        return None

    @property
    def response(self) -> Optional[httpx.Response]:
        """Last response received, with its body buffered."""
        return self._response

    @property
    def current_method(self) -> str:
        return self._method

    @property
    def url(self) -> httpx.URL:
        return self._url

    def _fail(self, error: AgentError) -> None:
        logger.debug("Agent failed: %s", error)
        self._state = Failed(error)

    def reset(self) -> "Agent":
        """Clear the failure state and everything learnt from the last response."""
        self._state = Building()
        self._response_headers = httpx.Headers()
        self._response = None
        return self

    def close(self) -> None:
        """Close the client created by `transport()`, if any."""
        if self._owned_client is not None:
            if self._client is self._owned_client:
                self._client = None
            self._owned_client.close()
            self._owned_client = None

    # Target

    @_building
    def prefix(self, prefix: str) -> "Agent":
        self._prefix = prefix.rstrip("/")
        return self

    @_building
    def uri(self, uri: str) -> "Agent":
        self._url = self._url.copy_with(path=self._prefix + uri if self._prefix else uri)
        return self

    @_building
    def fragment(self, value: str) -> "Agent":
        self._url = self._url.copy_with(fragment=value)
        return self

    @_building
    def basic_auth_set(self, user: str, password: str) -> "Agent":
        self._basic_auth = (user, password)
        self._url = self._url.copy_with(username=user, password=password)
        return self

    @_building
    def basic_auth_del(self) -> "Agent":
        self._basic_auth = None
        self._url = self._url.copy_with(username=None, password=None)
        return self

    @_building
    def method(self, method: str) -> "Agent":
        self._method = method.upper()
        return self

    # Query

    def query_get(self) -> list[tuple[str, str]]:
        """Parameters of the URL followed by the ones added on the agent."""
        params = list(self._url.params.multi_items())
        for key, values in self._query.items():
            params.extend((key, value) for value in values)
        return params

    @_building
    def query_set(self, key: str, value: str) -> "Agent":
        self._query[key] = [value]
        return self

    @_building
    def query_add(self, key: str, value: str) -> "Agent":
        self._query.setdefault(key, []).append(value)
        return self

    @_building
    def query_del(self, key: str) -> "Agent":
        self._query.pop(key, None)
        return self

    # Headers and cookies

    @_building
    def set_head(self, headers: Mapping[str, str] | httpx.Headers) -> "Agent":
        items = (
            headers.multi_items()
            if isinstance(headers, httpx.Headers)
            else list(headers.items())
        )
        self._request_headers = httpx.Headers(
            [*self._request_headers.multi_items(), *items]
        )
        return self

    @_building
    def head_set(self, key: str, value: str) -> "Agent":
        self._request_headers[key] = value
        return self

    @_building
    def head_add(self, key: str, value: str) -> "Agent":
        self._request_headers = httpx.Headers(
            [*self._request_headers.multi_items(), (key, value)]
        )
        return self

    @_building
    def head_del(self, key: str) -> "Agent":
        if key in self._request_headers:
            del self._request_headers[key]
        return self

    def get_head_in(self) -> httpx.Headers:
        """Headers sent with the request."""
        return self._request_headers

    def get_head_out(self) -> httpx.Headers:
        """Headers received with the last response."""
        return self._response_headers

    @_building
    def cookies_add(self, *cookies: tuple[str, str]) -> "Agent":
        self._cookies.extend(cookies)
        return self

    # Body

    @_building
    def content_type(self, content_type: str) -> "Agent":
        if content_type in CONTENT_TYPES:
            self._content_type = content_type
        else:
            logger.debug("Ignoring unknown content type %s", content_type)
        return self

    @_building
    def form_data(self, form: Mapping[str, str | Sequence[str]]) -> "Agent":
        self._body = encode_form(form)
        self._content_type = "form"
        return self

    @_building
    def json_data(self, obj: Any) -> "Agent":
        self._content_type = "json"
        try:
            self._body = encode_json(obj)
        except ConstructionError as err:
            self._fail(err)
        return self

    @_building
    def xml_data(self, obj: Any, root: Optional[str] = None) -> "Agent":
        self._content_type = "xml"
        try:
            self._body = encode_xml(obj, root)
        except ConstructionError as err:
            self._fail(err)
        return self

    @_building
    def pb_data(self, message: ProtoMessage) -> "Agent":
        self._content_type = "json"
        try:
            self._body = encode_protobuf_json(message)
        except ConstructionError as err:
            self._fail(err)
        return self

    @_building
    def file_data(self, *files: File) -> "Agent":
        self._files.extend(files)
        self._content_type = "multipart"
        return self

    # Plumbing

    @_building
    def set_cipher(self, cipher: Optional[Cipher]) -> "Agent":
        self._cipher = cipher
        return self

    @_building
    def request_processor(self, processor: Optional[RequestProcessor]) -> "Agent":
        self._request_processor = processor
        return self

    @_building
    def response_processor(self, processor: Optional[ResponseProcessor]) -> "Agent":
        self._response_processor = processor
        return self

    @_building
    def client(self, client: httpx.Client) -> "Agent":
        """Use `client` for dispatch. The caller keeps ownership of it."""
        self.close()
        self._client = client
        return self

    @_building
    def transport(self, transport: httpx.BaseTransport) -> "Agent":
        """
        Dispatch through `transport`.

        The agent owns the client wrapping it, configured like the default
        client, and closes it on `close()` or when the client is replaced.
        """
        self.close()
        self._owned_client = client_from_settings(self._settings, transport)
        self._client = self._owned_client
        return self

    @_building
    def debug(self, flag: bool = True) -> "Agent":
        self._debug = flag
        return self

    # Execution

    def _wire_url(self) -> httpx.URL:
        params = self.query_get()
        return self._url.copy_with(
            username=None, password=None, params=httpx.QueryParams(params)
        )

    def _wire_headers(self, content_type: str) -> httpx.Headers:
        headers = httpx.Headers(self._request_headers)
        headers["Content-Type"] = content_type

        if self._basic_auth is not None:
            user, password = self._basic_auth
            credentials = base64.b64encode(f"{user}:{password}".encode()).decode()
            headers["Authorization"] = f"Basic {credentials}"

        if self._cookies:
            cookies = [f"{name}={value}" for name, value in self._cookies]
            if "Cookie" in headers:
                cookies.insert(0, headers["Cookie"])
            headers["Cookie"] = "; ".join(cookies)

        return headers

    def _build_request(
        self,
        client: httpx.Client,
        url: httpx.URL,
        headers: httpx.Headers,
        content: bytes,
    ) -> httpx.Request:
        # Client headers and timeout apply, the client cookie jar does not.
        merged = httpx.Headers(client.headers)
        merged.update(headers)
        return httpx.Request(
            self._method,
            url,
            headers=merged,
            content=content,
            extensions={"timeout": client.timeout.as_dict()},
        )

    def _enter_request_processor(
        self, stack: ExitStack, request: httpx.Request
    ) -> httpx.Request:
        assert self._request_processor is not None
        try:
            return stack.enter_context(self._request_processor.process(request))
        except AgentError:
            raise
        except Exception as err:
            raise ProcessorError(f"Request processor failed: {err}") from err

    def _apply_response_processor(self, response: httpx.Response) -> httpx.Response:
        assert self._response_processor is not None
        try:
            return self._response_processor.process(response)
        except AgentError:
            raise
        except Exception as err:
            raise ProcessorError(
                f"Response processor failed: {err}", response.status_code
            ) from err

    def _decrypt_response(self, response: httpx.Response) -> httpx.Response:
        assert self._cipher is not None
        try:
            decrypted = self._cipher.decrypt(response.content)
        except Exception as err:
            raise CipherError(
                f"Unable to decrypt response body: {err}", response.status_code
            ) from err

        headers = httpx.Headers(response.headers)
        for key in (CIPHER_HEADER, "Content-Encoding", "Transfer-Encoding"):
            if key in headers:
                del headers[key]
        headers["Content-Length"] = str(len(decrypted))

        return httpx.Response(
            response.status_code,
            headers=headers,
            content=decrypted,
            request=response.request,
            extensions=response.extensions,
        )

    def do(self) -> httpx.Response:
        """
        Assemble the request, dispatch it and post-process the response.

        Raises the stored error right away when the agent already failed.
        Transport failures from httpx are propagated unmodified.
        """
        if isinstance(self._state, Failed):
            logger.debug("Agent already failed, not sending the request")
            raise self._state.error

        client = self._client or default_client()

        content_type = CONTENT_TYPES[self._content_type]
        body = self._body
        if self._files:
            body, content_type = encode_multipart(self._files)

        url = self._wire_url()
        headers = self._wire_headers(content_type)
        request = self._build_request(client, url, headers, body)

        if self._debug:
            logger.info("api request\n%s\n%s", SEPARATOR, dump_request(request))

        if self._cipher is not None:
            try:
                encrypted = self._cipher.encrypt(body)
            except Exception as err:
                raise CipherError(f"Unable to encrypt request body: {err}") from err
            request = self._build_request(client, url, headers, encrypted)

        with ExitStack() as stack:
            if self._request_processor is not None:
                request = self._enter_request_processor(stack, request)

            logger.debug("Executing request: %s %s", request.method, request.url)
            response = client.send(request)
            logger.debug("Received response: status=%s", response.status_code)

            self._response_headers = httpx.Headers(response.headers)

            if (
                self._cipher is not None
                and response.headers.get(CIPHER_HEADER, "").lower() == "true"
            ):
                response = self._decrypt_response(response)

            if self._debug:
                logger.info("api response\n%s\n%s", SEPARATOR, dump_response(response))

            if self._response_processor is not None:
                response = self._apply_response_processor(response)

        self._response = response
        return response

    # Decoding

    def _dispatch(self) -> httpx.Response:
        try:
            return self.do()
        except AgentError as err:
            if err.status_code is None:
                err.status_code = 500
            self._fail(err)
            raise
        except httpx.HTTPError as err:
            error = TransportError(err)
            self._fail(error)
            raise error from err

    def _execute(self) -> httpx.Response:
        response = self._dispatch()

        if not response.is_success:
            logger.warning(
                "Response status %s for %s %s",
                response.status_code,
                self._method,
                self._url,
            )
            message = response.text or f"{response.status_code} {response.reason_phrase}"
            error = StatusError(response.status_code, message, response.content)
            self._fail(error)
            raise error

        return response

    def _decode_failed(self, response: httpx.Response, kind: str, err: Exception) -> DecodeError:
        error = DecodeError(f"Unable to decode {kind} body: {err}", response.status_code)
        self._fail(error)
        return error

    def status(self) -> tuple[int, str]:
        """Status code and status line of the response, whatever the status."""
        response = self._dispatch()
        return response.status_code, f"{response.status_code} {response.reason_phrase}"

    def content(self) -> tuple[int, bytes]:
        response = self._execute()
        return response.status_code, response.content

    def text(self) -> tuple[int, str]:
        response = self._execute()
        return response.status_code, response.text

    def json(self, target: Any = None) -> tuple[int, Any]:
        """
        Decode a JSON body.

        `target` may be a pydantic model, any type pydantic can validate
        (`dict[str, int]`, dataclasses...) or None for plain `json.loads`.
        """
        response = self._execute()
        try:
            if target is None:
                return response.status_code, json.loads(response.content)
            if isinstance(target, type) and issubclass(target, BaseModel):
                return response.status_code, target.model_validate_json(response.content)
            return response.status_code, TypeAdapter(target).validate_json(response.content)
        except ValueError as err:
            raise self._decode_failed(response, "JSON", err) from err

    def xml(self, target: Any = None) -> tuple[int, Any]:
        """
        Decode an XML body.

        Without `target` the whole document is returned as parsed by
        xmltodict. Otherwise the content of the root element is validated
        into `target`.
        """
        response = self._execute()
        try:
            document = xmltodict.parse(response.content)
            if target is None:
                return response.status_code, document
            (root,) = document.values()
            if isinstance(target, type) and issubclass(target, BaseModel):
                return response.status_code, target.model_validate(root)
            return response.status_code, TypeAdapter(target).validate_python(root)
        except (ExpatError, ValueError) as err:
            raise self._decode_failed(response, "XML", err) from err

    def jsonpb(self, message: P) -> tuple[int, P]:
        """Merge a protobuf JSON body into `message`."""
        response = self._execute()
        try:
            json_format.Parse(response.text, message)
        except json_format.ParseError as err:
            raise self._decode_failed(response, "protobuf JSON", err) from err
        return response.status_code, message


def get(url: str) -> Agent:
    return Agent(url).method(GET)


def post(url: str) -> Agent:
    return Agent(url).method(POST)


def put(url: str) -> Agent:
    return Agent(url).method(PUT)


def patch(url: str) -> Agent:
    return Agent(url).method(PATCH)


def head(url: str) -> Agent:
    return Agent(url).method(HEAD)


def delete(url: str) -> Agent:
    return Agent(url).method(DELETE)


def http(host: str) -> Agent:
    return Agent(f"http://{host}")


def https(host: str) -> Agent:
    return Agent(f"https://{host}")
