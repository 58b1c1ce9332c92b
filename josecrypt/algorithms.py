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

"""Algorithm identifiers registered in RFC 7518 and their fixed parameters."""

from enum import Enum

from cryptography.hazmat.primitives import hashes

from .exceptions import UnsupportedAlgorithm


class SignatureAlgorithm(str, Enum):
    HS256 = "HS256"
    HS384 = "HS384"
    HS512 = "HS512"
    RS256 = "RS256"
    RS384 = "RS384"
    RS512 = "RS512"
    PS256 = "PS256"
    PS384 = "PS384"
    PS512 = "PS512"
    ES256 = "ES256"
    ES384 = "ES384"
    ES512 = "ES512"

    @property
    def hash_algorithm(self):
        return _SIGNATURE_HASHES[self.value[2:]]

    @property
    def family(self) -> str:
        # "HS", "RS", "PS" or "ES"
        return self.value[:2]

    @property
    def curve(self):
        return _SIGNATURE_CURVES.get(self)


class KeyManagementAlgorithm(str, Enum):
    RSA1_5 = "RSA1_5"
    RSA_OAEP = "RSA-OAEP"
    RSA_OAEP_256 = "RSA-OAEP-256"
    A128KW = "A128KW"
    A192KW = "A192KW"
    A256KW = "A256KW"
    DIRECT = "dir"
    ECDH_ES = "ECDH-ES"
    ECDH_ES_A128KW = "ECDH-ES+A128KW"
    ECDH_ES_A192KW = "ECDH-ES+A192KW"
    ECDH_ES_A256KW = "ECDH-ES+A256KW"
    PBES2_HS256_A128KW = "PBES2-HS256+A128KW"
    PBES2_HS384_A192KW = "PBES2-HS384+A192KW"
    PBES2_HS512_A256KW = "PBES2-HS512+A256KW"

    @property
    def is_rsa(self) -> bool:
        return self in _RSA_ALGORITHMS

    @property
    def is_aes_key_wrap(self) -> bool:
        return self in _KEY_ENCRYPTION_KEY_LENGTHS

    @property
    def is_ecdh_es(self) -> bool:
        return self.value.startswith("ECDH-ES")

    @property
    def is_pbes2(self) -> bool:
        return self.value.startswith("PBES2")

    @property
    def key_wrap_algorithm(self):
        """The AES key wrap variant used on top of ECDH-ES or PBES2, if any."""
        return _KEY_WRAP_ALGORITHMS.get(self)

    @property
    def key_encryption_key_length(self):
        """Required KEK length in bytes for the AES key wrap algorithms."""
        return _KEY_ENCRYPTION_KEY_LENGTHS.get(self)

    @property
    def pbes2_hash_algorithm(self):
        return _PBES2_HASHES.get(self)


class ContentEncryptionAlgorithm(str, Enum):
    A128CBC_HS256 = "A128CBC-HS256"
    A192CBC_HS384 = "A192CBC-HS384"
    A256CBC_HS512 = "A256CBC-HS512"
    A128GCM = "A128GCM"
    A192GCM = "A192GCM"
    A256GCM = "A256GCM"

    @property
    def is_cbc_hmac(self) -> bool:
        return "CBC" in self.value

    @property
    def key_length(self) -> int:
        """Required CEK length in bytes."""
        return _CONTENT_ENCRYPTION_PARAMETERS[self][0]

    @property
    def key_bit_length(self) -> int:
        return self.key_length * 8

    @property
    def initialization_vector_length(self) -> int:
        return _CONTENT_ENCRYPTION_PARAMETERS[self][1]

    @property
    def tag_length(self) -> int:
        return _CONTENT_ENCRYPTION_PARAMETERS[self][2]

    @property
    def hmac_hash_algorithm(self):
        return _CONTENT_ENCRYPTION_PARAMETERS[self][3]

    def check_key_length(self, key: bytes) -> bool:
        return len(key) == self.key_length


class CompressionAlgorithm(str, Enum):
    DEFLATE = "DEF"
    NONE = "NONE"


class ECCurveType(str, Enum):
    P256 = "P-256"
    P384 = "P-384"
    P521 = "P-521"

    @property
    def coordinate_octet_length(self) -> int:
        return _CURVE_COORDINATE_OCTET_LENGTHS[self]

    @classmethod
    def from_curve_name(cls, name: str):
        for curve_type, curve_name in _CURVE_NAMES.items():
            if curve_name == name:
                return curve_type
        return None


def parse_algorithm(algorithm_class, value, parameter="alg"):
    if isinstance(value, algorithm_class):
        return value
    try:
        return algorithm_class(value)
    except ValueError:
        raise UnsupportedAlgorithm(
            f"Unsupported value '{value}' for '{parameter}' ({algorithm_class.__name__})"
        ) from None


_SIGNATURE_HASHES = {
    "256": hashes.SHA256,
    "384": hashes.SHA384,
    "512": hashes.SHA512,
}

_SIGNATURE_CURVES = {
    SignatureAlgorithm.ES256: ECCurveType.P256,
    SignatureAlgorithm.ES384: ECCurveType.P384,
    SignatureAlgorithm.ES512: ECCurveType.P521,
}

_RSA_ALGORITHMS = frozenset(
    {
        KeyManagementAlgorithm.RSA1_5,
        KeyManagementAlgorithm.RSA_OAEP,
        KeyManagementAlgorithm.RSA_OAEP_256,
    }
)

_KEY_ENCRYPTION_KEY_LENGTHS = {
    KeyManagementAlgorithm.A128KW: 16,
    KeyManagementAlgorithm.A192KW: 24,
    KeyManagementAlgorithm.A256KW: 32,
}

_KEY_WRAP_ALGORITHMS = {
    KeyManagementAlgorithm.ECDH_ES_A128KW: KeyManagementAlgorithm.A128KW,
    KeyManagementAlgorithm.ECDH_ES_A192KW: KeyManagementAlgorithm.A192KW,
    KeyManagementAlgorithm.ECDH_ES_A256KW: KeyManagementAlgorithm.A256KW,
    KeyManagementAlgorithm.PBES2_HS256_A128KW: KeyManagementAlgorithm.A128KW,
    KeyManagementAlgorithm.PBES2_HS384_A192KW: KeyManagementAlgorithm.A192KW,
    KeyManagementAlgorithm.PBES2_HS512_A256KW: KeyManagementAlgorithm.A256KW,
}

_PBES2_HASHES = {
    KeyManagementAlgorithm.PBES2_HS256_A128KW: hashes.SHA256,
    KeyManagementAlgorithm.PBES2_HS384_A192KW: hashes.SHA384,
    KeyManagementAlgorithm.PBES2_HS512_A256KW: hashes.SHA512,
}

# (CEK length, IV length, tag length, HMAC hash) in bytes
_CONTENT_ENCRYPTION_PARAMETERS = {
    ContentEncryptionAlgorithm.A128CBC_HS256: (32, 16, 16, hashes.SHA256),
    ContentEncryptionAlgorithm.A192CBC_HS384: (48, 16, 24, hashes.SHA384),
    ContentEncryptionAlgorithm.A256CBC_HS512: (64, 16, 32, hashes.SHA512),
    ContentEncryptionAlgorithm.A128GCM: (16, 12, 16, None),
    ContentEncryptionAlgorithm.A192GCM: (24, 12, 16, None),
    ContentEncryptionAlgorithm.A256GCM: (32, 12, 16, None),
}

_CURVE_COORDINATE_OCTET_LENGTHS = {
    ECCurveType.P256: 32,
    ECCurveType.P384: 48,
    ECCurveType.P521: 66,
}

_CURVE_NAMES = {
    ECCurveType.P256: "secp256r1",
    ECCurveType.P384: "secp384r1",
    ECCurveType.P521: "secp521r1",
}
