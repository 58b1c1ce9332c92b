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

"""JOSE header parameter containers.

A header keeps the exact bytes it was parsed from, so that re-serializing a
parsed header reproduces the original encoding (and therefore the original
signing input / additional authenticated data).
"""

from enum import Enum

from .algorithms import (
    ContentEncryptionAlgorithm,
    KeyManagementAlgorithm,
    SignatureAlgorithm,
    parse_algorithm,
)
from .compression import parse_compression_algorithm
from .exceptions import (
    InvalidHeaderParameterValue,
    InvalidJSONSerialization,
    RequiredHeaderParameterMissing,
)
from .utils import base64url_decode, base64url_encode, json_dumps, json_loads_object


def _is_string(value):
    return isinstance(value, str)


def _is_integer(value):
    return isinstance(value, int) and not isinstance(value, bool)


def _is_boolean(value):
    return isinstance(value, bool)


def _is_object(value):
    return isinstance(value, dict)


def _is_string_list(value):
    return isinstance(value, list) and all(isinstance(item, str) for item in value)


# registered parameters and the JSON type each one must hold
_PARAMETER_TYPES = {
    "alg": (_is_string, "a string"),
    "enc": (_is_string, "a string"),
    "zip": (_is_string, "a string"),
    "kid": (_is_string, "a string"),
    "typ": (_is_string, "a string"),
    "cty": (_is_string, "a string"),
    "jku": (_is_string, "a string"),
    "x5u": (_is_string, "a string"),
    "x5t": (_is_string, "a string"),
    "x5t#S256": (_is_string, "a string"),
    "x5c": (_is_string_list, "an array of strings"),
    "crit": (_is_string_list, "an array of strings"),
    "jwk": (_is_object, "a JSON object"),
    "epk": (_is_object, "a JSON object"),
    "apu": (_is_string, "a string"),
    "apv": (_is_string, "a string"),
    "p2s": (_is_string, "a string"),
    "p2c": (_is_integer, "an integer"),
    "b64": (_is_boolean, "a boolean"),
    "iv": (_is_string, "a string"),
    "tag": (_is_string, "a string"),
}


def _normalize(value):
    if isinstance(value, Enum):
        return value.value
    return value


def check_parameter(name: str, value):
    expected = _PARAMETER_TYPES.get(name)
    if expected is None:
        return
    check, description = expected
    if not check(value):
        raise InvalidHeaderParameterValue(name, f"expected {description}")


class JOSEHeader:
    required_parameters = ()

    def __init__(self, parameters: dict, data: bytes = None):
        parameters = {name: _normalize(value) for name, value in parameters.items()}
        for name, value in parameters.items():
            check_parameter(name, value)
        for name in self.required_parameters:
            if name not in parameters:
                raise RequiredHeaderParameterMissing(name)
        self._parameters = parameters
        self._data = data
        self._segment = None
        self._validate()

    def _validate(self):
        pass

    @classmethod
    def from_data(cls, data: bytes):
        return cls(json_loads_object(data), data)

    @classmethod
    def from_base64url(cls, segment: str):
        header = cls.from_data(base64url_decode(segment))
        header._segment = segment
        return header

    @property
    def data(self) -> bytes:
        if self._data is None:
            self._data = json_dumps(self._parameters)
        return self._data

    def base64url(self) -> str:
        if self._segment is None:
            self._segment = base64url_encode(self.data)
        return self._segment

    @property
    def parameters(self) -> dict:
        return dict(self._parameters)

    def get(self, name, default=None):
        return self._parameters.get(name, default)

    def __getitem__(self, name):
        return self._parameters[name]

    def __contains__(self, name):
        return name in self._parameters

    def __iter__(self):
        return iter(self._parameters)

    def __eq__(self, other):
        if not isinstance(other, JOSEHeader):
            return NotImplemented
        return self._parameters == other._parameters

    def __repr__(self):
        return f"{type(self).__name__}({self._parameters})"

    def set(self, name: str, value):
        """Sets a parameter, leaving the header untouched if the value is invalid."""
        value = _normalize(value)
        check_parameter(name, value)
        updated = dict(self._parameters)
        updated[name] = value
        type(self)(updated)
        self._parameters = updated
        self._data = None
        self._segment = None

    def with_parameters(self, parameters: dict):
        """Returns a copy with the given parameters added or replaced."""
        updated = dict(self._parameters)
        updated.update(parameters)
        return type(self)(updated)

    @property
    def kid(self):
        return self._parameters.get("kid")

    @property
    def typ(self):
        return self._parameters.get("typ")

    @property
    def cty(self):
        return self._parameters.get("cty")

    @property
    def crit(self):
        return self._parameters.get("crit")

    @property
    def jku(self):
        return self._parameters.get("jku")

    @property
    def jwk(self):
        return self._parameters.get("jwk")

    @property
    def x5u(self):
        return self._parameters.get("x5u")

    @property
    def x5c(self):
        return self._parameters.get("x5c")

    @property
    def x5t(self):
        return self._parameters.get("x5t")

    @property
    def x5t_s256(self):
        return self._parameters.get("x5t#S256")

    def _bytes_parameter(self, name):
        value = self._parameters.get(name)
        if value is None:
            return None
        return base64url_decode(value)


class UnprotectedHeader(JOSEHeader):
    """Shared or per-recipient header of the JSON serialization."""


class JWSHeader(JOSEHeader):
    required_parameters = ("alg",)

    def _validate(self):
        if self.b64 is False and "b64" not in (self.crit or []):
            raise InvalidHeaderParameterValue(
                "crit", "must list 'b64' when 'b64' is false"
            )

    @classmethod
    def for_algorithm(cls, algorithm: SignatureAlgorithm, **parameters):
        return cls({"alg": algorithm, **parameters})

    @property
    def algorithm(self) -> SignatureAlgorithm:
        return parse_algorithm(SignatureAlgorithm, self._parameters["alg"])

    @property
    def b64(self):
        return self._parameters.get("b64")

    @property
    def is_payload_base64url_encoded(self) -> bool:
        return self.b64 is not False


class JWEHeader(JOSEHeader):
    required_parameters = ("alg", "enc")

    @classmethod
    def for_algorithms(
        cls,
        algorithm: KeyManagementAlgorithm,
        encryption_algorithm: ContentEncryptionAlgorithm,
        **parameters,
    ):
        return cls({"alg": algorithm, "enc": encryption_algorithm, **parameters})

    @property
    def algorithm(self) -> KeyManagementAlgorithm:
        return parse_algorithm(KeyManagementAlgorithm, self._parameters["alg"])

    @property
    def encryption_algorithm(self) -> ContentEncryptionAlgorithm:
        return parse_algorithm(ContentEncryptionAlgorithm, self._parameters["enc"], "enc")

    @property
    def compression_algorithm(self):
        return parse_compression_algorithm(self._parameters.get("zip"))

    @property
    def epk(self):
        return self._parameters.get("epk")

    @property
    def apu(self):
        return self._bytes_parameter("apu")

    @property
    def apv(self):
        return self._bytes_parameter("apv")

    @property
    def p2s(self):
        return self._bytes_parameter("p2s")

    @property
    def p2c(self):
        return self._parameters.get("p2c")


def join_headers(*headers) -> dict:
    """Union of header parameters; a name present in more than one header is an error."""
    joined = {}
    for header in headers:
        if header is None:
            continue
        for name in header:
            if name in joined:
                raise InvalidJSONSerialization(
                    f"Header parameter '{name}' occurs in more than one header"
                )
            joined[name] = header[name]
    return joined
