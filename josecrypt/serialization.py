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

import json

import jsonschema

from .exceptions import (
    ComponentNotValidBase64URL,
    InvalidCompactSerializationComponentCount,
    InvalidJSONSerialization,
)
from .utils import base64url_decode, load_schema

JWS_COMPONENT_COUNT = 3
JWE_COMPONENT_COUNT = 5


def split_compact(serialization, expected_count: int):
    if isinstance(serialization, bytes):
        try:
            serialization = serialization.decode("ascii")
        except UnicodeDecodeError:
            raise ComponentNotValidBase64URL(repr(serialization)) from None
    components = serialization.strip().split(".")
    if len(components) != expected_count:
        raise InvalidCompactSerializationComponentCount(len(components), expected_count)
    return components


def join_compact(*components) -> str:
    return ".".join(components)


def decode_components(components):
    return [base64url_decode(component) for component in components]


_schemas = {}


def load_json_serialization(serialization, schema_name: str) -> dict:
    """Parses and shape-checks a JWE/JWS JSON serialization."""
    if isinstance(serialization, dict):
        parameters = serialization
    else:
        try:
            parameters = json.loads(serialization)
        except ValueError as error:
            raise InvalidJSONSerialization(f"Not a JSON document: {error}") from error

    schema = _schemas.get(schema_name)
    if schema is None:
        schema = _schemas[schema_name] = load_schema(schema_name)
    try:
        jsonschema.validate(instance=parameters, schema=schema)
    except jsonschema.exceptions.ValidationError as error:
        raise InvalidJSONSerialization(error.message) from error
    return parameters
