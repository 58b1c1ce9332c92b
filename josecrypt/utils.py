################################################################################
# If not stated otherwise in this file or this component's Licenses.txt file the
# following copyright and licenses apply:
#
# Copyright 2021 Liberty Global B.V.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
# http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
################################################################################

import hmac
import importlib.resources
import json
import logging
import os
import re
import secrets

import coloredlogs
import jose.utils

from .exceptions import (
    ComponentNotValidBase64URL,
    HeaderNotValidJSONObject,
    JoseCryptConfigError,
)


logger = logging.getLogger(__name__)

_BASE64URL_PATTERN = re.compile(r"^[A-Za-z0-9_-]*$")


def configure_logging(verbose_logging):
    coloredlogs.install(level=logging.DEBUG if verbose_logging else logging.INFO)


def get_int_from_environment(name: str, default: int) -> int:
    value = os.environ.get(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        raise JoseCryptConfigError(
            f"Invalid integer value '{value}' in environment variable '{name}'"
        ) from None


def base64url_encode(data: bytes) -> str:
    return jose.utils.base64url_encode(data).decode("ascii")


def base64url_decode(value) -> bytes:
    """Strict unpadded Base64URL decoding.

    The decoder in python-jose silently drops characters outside of the
    alphabet, so the alphabet and length are checked up front.
    """
    if isinstance(value, bytes):
        try:
            value = value.decode("ascii")
        except UnicodeDecodeError:
            raise ComponentNotValidBase64URL(repr(value)) from None
    if not _BASE64URL_PATTERN.match(value) or len(value) % 4 == 1:
        raise ComponentNotValidBase64URL(value)
    return jose.utils.base64url_decode(value.encode("ascii"))


def secure_random_bytes(count: int) -> bytes:
    return secrets.token_bytes(count)


def constant_time_equals(left: bytes, right: bytes) -> bool:
    return hmac.compare_digest(left, right)


def uint32_be(value: int) -> bytes:
    return value.to_bytes(4, "big")


def uint64_be(value: int) -> bytes:
    return value.to_bytes(8, "big")


def length_prefixed(data: bytes) -> bytes:
    return uint32_be(len(data)) + data


def json_dumps(parameters) -> bytes:
    return json.dumps(parameters, separators=(",", ":")).encode("utf-8")


def json_loads_object(data: bytes) -> dict:
    try:
        parameters = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as error:
        raise HeaderNotValidJSONObject(str(error)) from error
    if not isinstance(parameters, dict):
        raise HeaderNotValidJSONObject()
    return parameters


def load_schema(name: str) -> dict:
    schema_text = (importlib.resources.files("josecrypt") / name).read_text()
    return json.loads(schema_text)
