# SPDX-FileCopyrightText: 2025 Lucas S
#
# SPDX-License-Identifier: GPL-3.0-or-later

import os
from dataclasses import dataclass
from typing import BinaryIO


@dataclass(frozen=True)
class File:
    """A multipart attachment: form field name, file name and raw payload."""

    fieldname: str
    filename: str
    data: bytes

    @classmethod
    def from_path(cls, field: str, path: str | os.PathLike[str]) -> "File":
        abs_path = os.path.abspath(path)
        with open(abs_path, "rb") as fp:
            data = fp.read()
        return cls(fieldname=field, filename=os.path.basename(abs_path), data=data)

    @classmethod
    def from_bytes(cls, field: str, filename: str, data: bytes) -> "File":
        return cls(fieldname=field, filename=os.path.basename(filename), data=data)

    @classmethod
    def from_reader(cls, field: str, filename: str, reader: BinaryIO) -> "File":
        return cls(
            fieldname=field,
            filename=os.path.basename(filename),
            data=reader.read(),
        )
