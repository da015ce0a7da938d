# SPDX-FileCopyrightText: 2025 Lucas S
#
# SPDX-License-Identifier: GPL-3.0-or-later

import json
import logging
from typing import Any, Iterable, Mapping, Optional, Sequence
from urllib.parse import urlencode

import urllib3
import xmltodict
from google.protobuf import json_format
from google.protobuf.message import Message as ProtoMessage
from pydantic import BaseModel

from httpagent.exceptions import ConstructionError
from httpagent.files import File

logger = logging.getLogger(__name__)

CONTENT_TYPES: dict[str, str] = {
    "html": "text/html",
    "json": "application/json",
    "xml": "application/xml",
    "text": "text/plain",
    "urlencoded": "application/x-www-form-urlencoded",
    "form": "application/x-www-form-urlencoded",
    "form-data": "application/x-www-form-urlencoded",
    "multipart": "multipart/form-data",
}

DEFAULT_CONTENT_TYPE = "html"


def encode_form(form: Mapping[str, str | Sequence[str]]) -> bytes:
    """Urlencode a form, repeating keys that carry several values."""
    items: list[tuple[str, str]] = []
    for key, values in form.items():
        if isinstance(values, str):
            items.append((key, values))
        else:
            items.extend((key, value) for value in values)
    return urlencode(items).encode()


def encode_json(obj: Any) -> bytes:
    try:
        if isinstance(obj, BaseModel):
            return obj.model_dump_json().encode()
        return json.dumps(obj).encode()
    except (TypeError, ValueError) as err:
        raise ConstructionError(f"Unable to encode JSON body: {err}") from err


def encode_xml(obj: Any, root: Optional[str] = None) -> bytes:
    """
    Encode a mapping or a pydantic model as an XML document.

    Models are wrapped in an element named after their class unless `root`
    is given. Mappings without `root` must hold exactly one top level key.
    """
    if isinstance(obj, BaseModel):
        document: Any = {root or type(obj).__name__: obj.model_dump(mode="json")}
    elif root is not None:
        document = {root: obj}
    else:
        document = obj

    try:
        return str(xmltodict.unparse(document)).encode()
    except (TypeError, ValueError, AttributeError) as err:
        raise ConstructionError(f"Unable to encode XML body: {err}") from err


def encode_protobuf_json(message: ProtoMessage) -> bytes:
    try:
        return json_format.MessageToJson(
            message, always_print_fields_with_no_presence=True
        ).encode()
    except (json_format.Error, TypeError, AttributeError) as err:
        raise ConstructionError(f"Unable to encode protobuf body: {err}") from err


def encode_multipart(files: Iterable[File]) -> tuple[bytes, str]:
    """Build a multipart/form-data body holding one part per file."""
    fields = [
        (file.fieldname, (file.filename, file.data, "application/octet-stream"))
        for file in files
    ]
    body, content_type = urllib3.encode_multipart_formdata(fields)
    logger.debug("Encoded %s file(s) as %s", len(fields), content_type)
    return body, content_type


__all__ = [
    "CONTENT_TYPES",
    "DEFAULT_CONTENT_TYPE",
    "encode_form",
    "encode_json",
    "encode_xml",
    "encode_protobuf_json",
    "encode_multipart",
]
