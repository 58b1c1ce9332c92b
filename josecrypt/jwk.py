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

"""JSON Web Key (RFC 7517) and JWK thumbprints (RFC 7638)."""

import json

import jsonschema
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa

from .algorithms import ECCurveType
from .exceptions import (
    ComponentNotValidBase64URL,
    CompressedCurvePointsUnsupported,
    InvalidCurvePointOctetLength,
    InvalidCurveType,
    JWKParameterError,
    WrongKeyType,
)
from .primitives import curve_type_of, ec_curve
from .utils import base64url_decode, base64url_encode, load_schema

_schema = None


def _get_schema():
    global _schema
    if _schema is None:
        _schema = load_schema("jwk-schema.json")
    return _schema


def _int_to_base64url(value: int, length: int = None) -> str:
    if length is None:
        length = max(1, (value.bit_length() + 7) // 8)
    return base64url_encode(value.to_bytes(length, "big"))


def _decode_parameter(parameters: dict, name: str) -> bytes:
    try:
        return base64url_decode(parameters[name])
    except ComponentNotValidBase64URL:
        raise JWKParameterError(f"JWK parameter '{name}' is not valid Base64URL") from None


def _int_parameter(parameters: dict, name: str) -> int:
    return int.from_bytes(_decode_parameter(parameters, name), "big")


class JWK:
    key_type = None
    thumbprint_parameters = ()
    private_parameters = ()

    def __init__(self, parameters: dict):
        self._parameters = dict(parameters)
        self._validate()

    def _validate(self):
        pass

    @staticmethod
    def from_dict(parameters: dict):
        try:
            jsonschema.validate(instance=parameters, schema=_get_schema())
        except jsonschema.exceptions.ValidationError as error:
            raise JWKParameterError(f"Invalid JWK: {error.message}") from error
        key_class = _KEY_CLASSES[parameters["kty"]]
        return key_class(parameters)

    @staticmethod
    def from_json(text):
        try:
            parameters = json.loads(text)
        except ValueError as error:
            raise JWKParameterError(f"JWK is not valid JSON: {error}") from error
        return JWK.from_dict(parameters)

    @staticmethod
    def from_key(key, **parameters):
        """Wraps raw key bytes or a cryptography key object."""
        if isinstance(key, (bytes, bytearray)):
            return SymmetricKey.from_bytes(bytes(key), **parameters)
        if isinstance(key, (rsa.RSAPublicKey, rsa.RSAPrivateKey)):
            return RSAKey.from_cryptography(key, **parameters)
        if isinstance(key, (ec.EllipticCurvePublicKey, ec.EllipticCurvePrivateKey)):
            return ECKey.from_cryptography(key, **parameters)
        raise WrongKeyType(f"Unsupported key type '{type(key).__name__}'")

    @staticmethod
    def from_pem(pem, **parameters):
        """Private key, public key or certificate in PEM format."""
        if isinstance(pem, str):
            pem = pem.encode("ascii")
        if b"PRIVATE KEY" in pem:
            key = serialization.load_pem_private_key(pem, password=None)
        elif b"CERTIFICATE" in pem:
            key = x509.load_pem_x509_certificate(pem).public_key()
        else:
            key = serialization.load_pem_public_key(pem)
        return JWK.from_key(key, **parameters)

    @property
    def parameters(self) -> dict:
        return dict(self._parameters)

    def get(self, name, default=None):
        return self._parameters.get(name, default)

    def __getitem__(self, name):
        return self._parameters[name]

    def __contains__(self, name):
        return name in self._parameters

    def __eq__(self, other):
        if not isinstance(other, JWK):
            return NotImplemented
        return self._parameters == other._parameters

    def __repr__(self):
        # only public parameters
        return f"{type(self).__name__}(kty={self.key_type!r}, kid={self.kid!r})"

    @property
    def kid(self):
        return self._parameters.get("kid")

    @property
    def use(self):
        return self._parameters.get("use")

    @property
    def alg(self):
        return self._parameters.get("alg")

    @property
    def is_private(self) -> bool:
        return any(name in self._parameters for name in self.private_parameters)

    def to_dict(self) -> dict:
        return dict(self._parameters)

    def to_json(self) -> str:
        return json.dumps(self._parameters)

    def public_jwk(self):
        public = {
            name: value
            for name, value in self._parameters.items()
            if name not in self.private_parameters
        }
        return type(self)(public)

    def thumbprint(self, hash_algorithm=hashes.SHA256) -> str:
        members = {name: self._parameters[name] for name in self.thumbprint_parameters}
        members["kty"] = self.key_type
        canonical = json.dumps(members, sort_keys=True, separators=(",", ":"))
        digest = hashes.Hash(hash_algorithm())
        digest.update(canonical.encode("utf-8"))
        return base64url_encode(digest.finalize())


class RSAKey(JWK):
    key_type = "RSA"
    thumbprint_parameters = ("e", "n")
    private_parameters = ("d", "p", "q", "dp", "dq", "qi", "oth")

    @classmethod
    def from_cryptography(cls, key, **parameters):
        if isinstance(key, rsa.RSAPrivateKey):
            private_numbers = key.private_numbers()
            public_numbers = private_numbers.public_numbers
        else:
            private_numbers = None
            public_numbers = key.public_numbers()

        key_parameters = {
            "kty": cls.key_type,
            "n": _int_to_base64url(public_numbers.n),
            "e": _int_to_base64url(public_numbers.e),
        }
        if private_numbers is not None:
            key_parameters.update(
                {
                    "d": _int_to_base64url(private_numbers.d),
                    "p": _int_to_base64url(private_numbers.p),
                    "q": _int_to_base64url(private_numbers.q),
                    "dp": _int_to_base64url(private_numbers.dmp1),
                    "dq": _int_to_base64url(private_numbers.dmq1),
                    "qi": _int_to_base64url(private_numbers.iqmp),
                }
            )
        key_parameters.update(parameters)
        return cls(key_parameters)

    def _public_numbers(self):
        return rsa.RSAPublicNumbers(
            _int_parameter(self._parameters, "e"), _int_parameter(self._parameters, "n")
        )

    def public_key(self):
        try:
            return self._public_numbers().public_key()
        except ValueError as error:
            raise JWKParameterError(f"Invalid RSA public key: {error}") from error

    def private_key(self):
        if "d" not in self._parameters:
            raise WrongKeyType("RSA JWK does not contain a private key")
        public_numbers = self._public_numbers()
        d = _int_parameter(self._parameters, "d")
        if "p" in self._parameters and "q" in self._parameters:
            p = _int_parameter(self._parameters, "p")
            q = _int_parameter(self._parameters, "q")
        else:
            p, q = rsa.rsa_recover_prime_factors(public_numbers.n, public_numbers.e, d)
        private_numbers = rsa.RSAPrivateNumbers(
            p=p,
            q=q,
            d=d,
            dmp1=rsa.rsa_crt_dmp1(d, p),
            dmq1=rsa.rsa_crt_dmq1(d, q),
            iqmp=rsa.rsa_crt_iqmp(p, q),
            public_numbers=public_numbers,
        )
        try:
            return private_numbers.private_key()
        except ValueError as error:
            raise JWKParameterError(f"Invalid RSA private key: {error}") from error


class ECKey(JWK):
    key_type = "EC"
    thumbprint_parameters = ("crv", "x", "y")
    private_parameters = ("d",)

    def _validate(self):
        curve_type = self.curve_type
        length = curve_type.coordinate_octet_length
        for name in ("x", "y", "d"):
            if name not in self._parameters:
                continue
            if len(_decode_parameter(self._parameters, name)) != length:
                raise InvalidCurvePointOctetLength(
                    f"EC JWK parameter '{name}' must be {length} bytes long for '{curve_type.value}'"
                )

    @property
    def curve_type(self) -> ECCurveType:
        try:
            return ECCurveType(self._parameters["crv"])
        except ValueError:
            raise InvalidCurveType(f"Unsupported curve '{self._parameters['crv']}'") from None

    @classmethod
    def from_cryptography(cls, key, **parameters):
        curve_type = curve_type_of(key)
        length = curve_type.coordinate_octet_length
        if isinstance(key, ec.EllipticCurvePrivateKey):
            private_numbers = key.private_numbers()
            public_numbers = private_numbers.public_numbers
        else:
            private_numbers = None
            public_numbers = key.public_numbers()

        key_parameters = {
            "kty": cls.key_type,
            "crv": curve_type.value,
            "x": _int_to_base64url(public_numbers.x, length),
            "y": _int_to_base64url(public_numbers.y, length),
        }
        if private_numbers is not None:
            key_parameters["d"] = _int_to_base64url(private_numbers.private_value, length)
        key_parameters.update(parameters)
        return cls(key_parameters)

    @classmethod
    def from_sec1(cls, data: bytes, curve_type: ECCurveType, **parameters):
        """Public key from an uncompressed SEC1 point (0x04 || x || y)."""
        length = curve_type.coordinate_octet_length
        if data[:1] in (b"\x02", b"\x03"):
            raise CompressedCurvePointsUnsupported("Compressed EC points are not supported")
        if data[:1] != b"\x04" or len(data) != 1 + 2 * length:
            raise InvalidCurvePointOctetLength(
                f"Uncompressed '{curve_type.value}' point must be {1 + 2 * length} bytes long"
            )
        key_parameters = {
            "kty": cls.key_type,
            "crv": curve_type.value,
            "x": base64url_encode(data[1 : 1 + length]),
            "y": base64url_encode(data[1 + length :]),
        }
        key_parameters.update(parameters)
        return cls(key_parameters)

    def to_sec1(self) -> bytes:
        return (
            b"\x04"
            + _decode_parameter(self._parameters, "x")
            + _decode_parameter(self._parameters, "y")
        )

    def _public_numbers(self):
        return ec.EllipticCurvePublicNumbers(
            _int_parameter(self._parameters, "x"),
            _int_parameter(self._parameters, "y"),
            ec_curve(self.curve_type),
        )

    def public_key(self):
        try:
            return self._public_numbers().public_key()
        except ValueError as error:
            raise JWKParameterError(f"Invalid EC public key: {error}") from error

    def private_key(self):
        if "d" not in self._parameters:
            raise WrongKeyType("EC JWK does not contain a private key")
        private_numbers = ec.EllipticCurvePrivateNumbers(
            _int_parameter(self._parameters, "d"), self._public_numbers()
        )
        try:
            return private_numbers.private_key()
        except ValueError as error:
            raise JWKParameterError(f"Invalid EC private key: {error}") from error


class SymmetricKey(JWK):
    key_type = "oct"
    thumbprint_parameters = ("k",)
    private_parameters = ("k",)

    def _validate(self):
        _decode_parameter(self._parameters, "k")

    @classmethod
    def from_bytes(cls, key: bytes, **parameters):
        return cls({"kty": cls.key_type, "k": base64url_encode(key), **parameters})

    @property
    def is_private(self) -> bool:
        return True

    def public_jwk(self):
        raise WrongKeyType("Symmetric keys have no public part")

    def key_bytes(self) -> bytes:
        return _decode_parameter(self._parameters, "k")


_KEY_CLASSES = {
    RSAKey.key_type: RSAKey,
    ECKey.key_type: ECKey,
    SymmetricKey.key_type: SymmetricKey,
}


class JWKSet:
    def __init__(self, keys=None):
        self.keys = list(keys or [])

    @staticmethod
    def from_dict(parameters: dict):
        keys = parameters.get("keys") if isinstance(parameters, dict) else None
        if not isinstance(keys, list):
            raise JWKParameterError("JWK Set must contain a 'keys' array")
        return JWKSet(JWK.from_dict(key) for key in keys)

    @staticmethod
    def from_json(text):
        try:
            parameters = json.loads(text)
        except ValueError as error:
            raise JWKParameterError(f"JWK Set is not valid JSON: {error}") from error
        return JWKSet.from_dict(parameters)

    def to_dict(self) -> dict:
        return {"keys": [key.to_dict() for key in self.keys]}

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    def get(self, kid):
        for key in self.keys:
            if key.kid == kid:
                return key
        return None

    def __iter__(self):
        return iter(self.keys)

    def __len__(self):
        return len(self.keys)
