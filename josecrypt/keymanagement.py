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

"""Key management modes.

An encryption mode determines the content encryption key (CEK) for a JWE and
what gets transported for the recipient: the encrypted key plus any header
parameters the recipient needs to recover the CEK. A decryption mode recovers
the CEK from the encrypted key and the JWE header.

Modes are stateless, one instance can be used for any number of operations.
"""

from dataclasses import dataclass, field

from cryptography.hazmat.primitives.asymmetric import ec, rsa

from . import aeskw, pbes2
from .algorithms import ContentEncryptionAlgorithm, KeyManagementAlgorithm
from .concatkdf import derive_ecdh_key
from .exceptions import (
    DecryptingFailed,
    InvalidHeaderParameterValue,
    KeyLengthNotSatisfied,
    RequiredHeaderParameterMissing,
    UnsupportedAlgorithm,
    WrongKeyType,
)
from .jwk import JWK, ECKey, RSAKey, SymmetricKey
from .primitives import (
    curve_type_of,
    ecdh_raw_bits,
    generate_ec_private_key,
    rsa_decrypt,
    rsa_encrypt,
)
from .utils import base64url_decode, base64url_encode, secure_random_bytes


@dataclass
class KeyManagementContext:
    content_encryption_key: bytes
    encrypted_key: bytes
    header_parameters: dict = field(default_factory=dict)


def _check_key_encryption_key(algorithm: KeyManagementAlgorithm, key: bytes):
    expected_length = algorithm.key_encryption_key_length
    if len(key) != expected_length:
        raise KeyLengthNotSatisfied(
            f"Key encryption key for '{algorithm.value}' must be {expected_length} bytes long, got {len(key)}"
        )


def _check_unwrapped_key(encryption_algorithm: ContentEncryptionAlgorithm, key: bytes):
    if not encryption_algorithm.check_key_length(key):
        raise KeyLengthNotSatisfied(
            f"Decrypted content encryption key does not match the length required by '{encryption_algorithm.value}'"
        )


def _check_empty_encrypted_key(algorithm: KeyManagementAlgorithm, encrypted_key: bytes):
    if encrypted_key:
        raise DecryptingFailed(f"Encrypted key must be empty for '{algorithm.value}'")


def _check_key_class(algorithm: KeyManagementAlgorithm, key, key_class, description: str):
    if not isinstance(key, key_class):
        raise WrongKeyType(
            f"'{algorithm.value}' requires {description}, got '{type(key).__name__}'"
        )


def _random_content_encryption_key(encryption_algorithm: ContentEncryptionAlgorithm) -> bytes:
    return secure_random_bytes(encryption_algorithm.key_length)


class _KeyManagementMode:
    def __init__(self, algorithm, encryption_algorithm):
        self.algorithm = algorithm
        self.encryption_algorithm = encryption_algorithm

    def __repr__(self):
        return f"{type(self).__name__}({self.algorithm.value}, {self.encryption_algorithm.value})"


# dir


class DirectEncryptionMode(_KeyManagementMode):
    """The shared key is the CEK; its length is checked by content encryption."""

    def __init__(self, encryption_algorithm, shared_key: bytes):
        super().__init__(KeyManagementAlgorithm.DIRECT, encryption_algorithm)
        self._shared_key = shared_key

    def determine_content_encryption_key(self, header=None) -> KeyManagementContext:
        return KeyManagementContext(self._shared_key, b"")


class DirectDecryptionMode(_KeyManagementMode):
    def __init__(self, encryption_algorithm, shared_key: bytes):
        super().__init__(KeyManagementAlgorithm.DIRECT, encryption_algorithm)
        self._shared_key = shared_key

    def determine_content_encryption_key(self, encrypted_key: bytes, header=None) -> bytes:
        _check_empty_encrypted_key(self.algorithm, encrypted_key)
        return self._shared_key


# A128KW, A192KW, A256KW


class AESKeyWrapEncryptionMode(_KeyManagementMode):
    def __init__(self, algorithm, encryption_algorithm, shared_key: bytes):
        if not algorithm.is_aes_key_wrap:
            raise UnsupportedAlgorithm(f"'{algorithm.value}' is not an AES key wrap algorithm")
        super().__init__(algorithm, encryption_algorithm)
        self._shared_key = shared_key

    def determine_content_encryption_key(self, header=None) -> KeyManagementContext:
        _check_key_encryption_key(self.algorithm, self._shared_key)
        content_encryption_key = _random_content_encryption_key(self.encryption_algorithm)
        encrypted_key = aeskw.wrap(self._shared_key, content_encryption_key)
        return KeyManagementContext(content_encryption_key, encrypted_key)


class AESKeyWrapDecryptionMode(_KeyManagementMode):
    def __init__(self, algorithm, encryption_algorithm, shared_key: bytes):
        if not algorithm.is_aes_key_wrap:
            raise UnsupportedAlgorithm(f"'{algorithm.value}' is not an AES key wrap algorithm")
        super().__init__(algorithm, encryption_algorithm)
        self._shared_key = shared_key

    def determine_content_encryption_key(self, encrypted_key: bytes, header=None) -> bytes:
        _check_key_encryption_key(self.algorithm, self._shared_key)
        content_encryption_key = aeskw.unwrap(self._shared_key, encrypted_key)
        _check_unwrapped_key(self.encryption_algorithm, content_encryption_key)
        return content_encryption_key


# RSA1_5, RSA-OAEP, RSA-OAEP-256


class RSAEncryptionMode(_KeyManagementMode):
    def __init__(self, algorithm, encryption_algorithm, recipient_public_key):
        if not algorithm.is_rsa:
            raise UnsupportedAlgorithm(f"'{algorithm.value}' is not an RSA algorithm")
        super().__init__(algorithm, encryption_algorithm)
        _check_key_class(algorithm, recipient_public_key, rsa.RSAPublicKey, "an RSA public key")
        self._recipient_public_key = recipient_public_key

    def determine_content_encryption_key(self, header=None) -> KeyManagementContext:
        content_encryption_key = _random_content_encryption_key(self.encryption_algorithm)
        encrypted_key = rsa_encrypt(self._recipient_public_key, content_encryption_key, self.algorithm)
        return KeyManagementContext(content_encryption_key, encrypted_key)


class RSADecryptionMode(_KeyManagementMode):
    def __init__(self, algorithm, encryption_algorithm, recipient_private_key):
        if not algorithm.is_rsa:
            raise UnsupportedAlgorithm(f"'{algorithm.value}' is not an RSA algorithm")
        super().__init__(algorithm, encryption_algorithm)
        _check_key_class(algorithm, recipient_private_key, rsa.RSAPrivateKey, "an RSA private key")
        self._recipient_private_key = recipient_private_key

    def determine_content_encryption_key(self, encrypted_key: bytes, header=None) -> bytes:
        # A random CEK stands in for one that fails to decrypt (RFC 3218, section 2.3.2),
        # so the failure surfaces as an authentication tag mismatch later on.
        substitute_key = _random_content_encryption_key(self.encryption_algorithm)
        try:
            content_encryption_key = rsa_decrypt(
                self._recipient_private_key, encrypted_key, self.algorithm
            )
        except DecryptingFailed:
            return substitute_key
        if not self.encryption_algorithm.check_key_length(content_encryption_key):
            return substitute_key
        return content_encryption_key


# ECDH-ES, ECDH-ES+A128KW, ECDH-ES+A192KW, ECDH-ES+A256KW


def _agreement_parameters(algorithm, encryption_algorithm):
    """AlgorithmID and keydatalen (bits) for the Concat KDF."""
    if algorithm == KeyManagementAlgorithm.ECDH_ES:
        return encryption_algorithm.value, encryption_algorithm.key_bit_length
    return algorithm.value, algorithm.key_wrap_algorithm.key_encryption_key_length * 8


class ECDHESEncryptionMode(_KeyManagementMode):
    def __init__(
        self,
        algorithm,
        encryption_algorithm,
        recipient_public_key,
        ephemeral_private_key=None,
        agreement_party_u_info: bytes = None,
        agreement_party_v_info: bytes = None,
    ):
        if not algorithm.is_ecdh_es:
            raise UnsupportedAlgorithm(f"'{algorithm.value}' is not an ECDH-ES algorithm")
        super().__init__(algorithm, encryption_algorithm)
        _check_key_class(
            algorithm, recipient_public_key, ec.EllipticCurvePublicKey, "an EC public key"
        )
        self._recipient_public_key = recipient_public_key
        self._ephemeral_private_key = ephemeral_private_key
        self._apu = agreement_party_u_info
        self._apv = agreement_party_v_info

    def determine_content_encryption_key(self, header=None) -> KeyManagementContext:
        apu = self._apu if self._apu is not None else _header_bytes(header, "apu")
        apv = self._apv if self._apv is not None else _header_bytes(header, "apv")

        ephemeral_private_key = self._ephemeral_private_key
        if ephemeral_private_key is None:
            ephemeral_private_key = generate_ec_private_key(
                curve_type_of(self._recipient_public_key)
            )
        shared_secret = ecdh_raw_bits(ephemeral_private_key, self._recipient_public_key)

        algorithm_id, key_data_length = _agreement_parameters(
            self.algorithm, self.encryption_algorithm
        )
        derived_key = derive_ecdh_key(shared_secret, algorithm_id, key_data_length, apu, apv)

        header_parameters = {
            "epk": ECKey.from_cryptography(ephemeral_private_key.public_key()).to_dict()
        }
        if apu:
            header_parameters["apu"] = base64url_encode(apu)
        if apv:
            header_parameters["apv"] = base64url_encode(apv)

        if self.algorithm == KeyManagementAlgorithm.ECDH_ES:
            return KeyManagementContext(derived_key, b"", header_parameters)

        content_encryption_key = _random_content_encryption_key(self.encryption_algorithm)
        encrypted_key = aeskw.wrap(derived_key, content_encryption_key)
        return KeyManagementContext(content_encryption_key, encrypted_key, header_parameters)


class ECDHESDecryptionMode(_KeyManagementMode):
    def __init__(self, algorithm, encryption_algorithm, recipient_private_key):
        if not algorithm.is_ecdh_es:
            raise UnsupportedAlgorithm(f"'{algorithm.value}' is not an ECDH-ES algorithm")
        super().__init__(algorithm, encryption_algorithm)
        _check_key_class(
            algorithm, recipient_private_key, ec.EllipticCurvePrivateKey, "an EC private key"
        )
        self._recipient_private_key = recipient_private_key

    def _ephemeral_public_key(self, header):
        epk = header.get("epk") if header is not None else None
        if epk is None:
            raise RequiredHeaderParameterMissing("epk")
        if not isinstance(epk, dict) or epk.get("kty") != ECKey.key_type:
            raise InvalidHeaderParameterValue("epk", "expected an EC public key")
        ephemeral_key = JWK.from_dict(epk)
        if ephemeral_key.is_private:
            raise InvalidHeaderParameterValue("epk", "must not contain private key material")
        return ephemeral_key.public_key()

    def determine_content_encryption_key(self, encrypted_key: bytes, header=None) -> bytes:
        ephemeral_public_key = self._ephemeral_public_key(header)
        shared_secret = ecdh_raw_bits(self._recipient_private_key, ephemeral_public_key)

        algorithm_id, key_data_length = _agreement_parameters(
            self.algorithm, self.encryption_algorithm
        )
        derived_key = derive_ecdh_key(
            shared_secret,
            algorithm_id,
            key_data_length,
            _header_bytes(header, "apu"),
            _header_bytes(header, "apv"),
        )

        if self.algorithm == KeyManagementAlgorithm.ECDH_ES:
            _check_empty_encrypted_key(self.algorithm, encrypted_key)
            return derived_key

        content_encryption_key = aeskw.unwrap(derived_key, encrypted_key)
        _check_unwrapped_key(self.encryption_algorithm, content_encryption_key)
        return content_encryption_key


def _header_bytes(header, name) -> bytes:
    if header is None or header.get(name) is None:
        return b""
    value = header.get(name)
    if not isinstance(value, str):
        raise InvalidHeaderParameterValue(name, "expected a string")
    return base64url_decode(value)


# PBES2-HS256+A128KW, PBES2-HS384+A192KW, PBES2-HS512+A256KW


def _password_bytes(algorithm: KeyManagementAlgorithm, password) -> bytes:
    if isinstance(password, str):
        return password.encode("utf-8")
    _check_key_class(algorithm, password, (bytes, bytearray), "a password")
    return bytes(password)


class PBES2EncryptionMode(_KeyManagementMode):
    def __init__(
        self,
        algorithm,
        encryption_algorithm,
        password,
        salt_input_length: int = None,
        iteration_count: int = None,
    ):
        if not algorithm.is_pbes2:
            raise UnsupportedAlgorithm(f"'{algorithm.value}' is not a PBES2 algorithm")
        super().__init__(algorithm, encryption_algorithm)
        self._password = _password_bytes(algorithm, password)
        self._salt_input_length = salt_input_length
        self._iteration_count = iteration_count

    def _resolve_iteration_count(self, header) -> int:
        if header is not None and header.get("p2c") is not None:
            return header.get("p2c")
        if self._iteration_count is not None:
            return self._iteration_count
        return pbes2.get_default_iteration_count()

    def determine_content_encryption_key(self, header=None) -> KeyManagementContext:
        configured_length = self._salt_input_length
        if configured_length is None:
            configured_length = pbes2.get_default_salt_input_length()
        salt_input = secure_random_bytes(pbes2.salt_input_length(configured_length))
        iteration_count = self._resolve_iteration_count(header)

        wrapping_key = pbes2.derive_wrapping_key(
            self._password, self.algorithm, salt_input, iteration_count
        )
        content_encryption_key = _random_content_encryption_key(self.encryption_algorithm)
        encrypted_key = aeskw.wrap(wrapping_key, content_encryption_key)

        header_parameters = {"p2s": base64url_encode(salt_input), "p2c": iteration_count}
        return KeyManagementContext(content_encryption_key, encrypted_key, header_parameters)


class PBES2DecryptionMode(_KeyManagementMode):
    def __init__(
        self,
        algorithm,
        encryption_algorithm,
        password,
        max_iteration_count: int = None,
    ):
        if not algorithm.is_pbes2:
            raise UnsupportedAlgorithm(f"'{algorithm.value}' is not a PBES2 algorithm")
        super().__init__(algorithm, encryption_algorithm)
        self._password = _password_bytes(algorithm, password)
        self._max_iteration_count = max_iteration_count

    def determine_content_encryption_key(self, encrypted_key: bytes, header=None) -> bytes:
        if header is None or header.get("p2s") is None:
            raise RequiredHeaderParameterMissing("p2s")
        if header.get("p2c") is None:
            raise RequiredHeaderParameterMissing("p2c")

        iteration_count = header.get("p2c")
        max_iteration_count = self._max_iteration_count
        if max_iteration_count is None:
            max_iteration_count = pbes2.get_max_iteration_count()
        if iteration_count > max_iteration_count:
            raise InvalidHeaderParameterValue(
                "p2c", f"iteration count exceeds the maximum of {max_iteration_count}"
            )

        salt_input = _header_bytes(header, "p2s")
        wrapping_key = pbes2.derive_wrapping_key(
            self._password, self.algorithm, salt_input, iteration_count
        )
        content_encryption_key = aeskw.unwrap(wrapping_key, encrypted_key)
        _check_unwrapped_key(self.encryption_algorithm, content_encryption_key)
        return content_encryption_key


# factories


def _symmetric_key(key) -> bytes:
    if isinstance(key, SymmetricKey):
        return key.key_bytes()
    if isinstance(key, (bytes, bytearray)):
        return bytes(key)
    raise WrongKeyType(f"Expected a symmetric key, got '{type(key).__name__}'")


def _public_key(key):
    if isinstance(key, (RSAKey, ECKey)):
        return key.public_key()
    if isinstance(key, JWK):
        raise WrongKeyType(f"Expected an asymmetric key, got a '{key.key_type}' JWK")
    return key


def _private_key(key):
    if isinstance(key, (RSAKey, ECKey)):
        return key.private_key()
    if isinstance(key, JWK):
        raise WrongKeyType(f"Expected an asymmetric key, got a '{key.key_type}' JWK")
    return key


def make_encryption_mode(algorithm, encryption_algorithm, key, **options):
    """Encryption mode for `algorithm`.

    `key` is the shared key (bytes or an `oct` JWK) for dir and AES key wrap,
    the recipient public key (cryptography key or JWK) for RSA and ECDH-ES,
    and the password for PBES2. `options` are passed on to the ECDH-ES and
    PBES2 modes.
    """
    if algorithm == KeyManagementAlgorithm.DIRECT:
        return DirectEncryptionMode(encryption_algorithm, _symmetric_key(key))
    if algorithm.is_aes_key_wrap:
        return AESKeyWrapEncryptionMode(algorithm, encryption_algorithm, _symmetric_key(key))
    if algorithm.is_rsa:
        return RSAEncryptionMode(algorithm, encryption_algorithm, _public_key(key))
    if algorithm.is_ecdh_es:
        return ECDHESEncryptionMode(algorithm, encryption_algorithm, _public_key(key), **options)
    if algorithm.is_pbes2:
        if isinstance(key, SymmetricKey):
            key = key.key_bytes()
        return PBES2EncryptionMode(algorithm, encryption_algorithm, key, **options)
    raise UnsupportedAlgorithm(f"Unsupported key management algorithm '{algorithm.value}'")


def make_decryption_mode(algorithm, encryption_algorithm, key, **options):
    if algorithm == KeyManagementAlgorithm.DIRECT:
        return DirectDecryptionMode(encryption_algorithm, _symmetric_key(key))
    if algorithm.is_aes_key_wrap:
        return AESKeyWrapDecryptionMode(algorithm, encryption_algorithm, _symmetric_key(key))
    if algorithm.is_rsa:
        return RSADecryptionMode(algorithm, encryption_algorithm, _private_key(key))
    if algorithm.is_ecdh_es:
        return ECDHESDecryptionMode(algorithm, encryption_algorithm, _private_key(key))
    if algorithm.is_pbes2:
        if isinstance(key, SymmetricKey):
            key = key.key_bytes()
        return PBES2DecryptionMode(algorithm, encryption_algorithm, key, **options)
    raise UnsupportedAlgorithm(f"Unsupported key management algorithm '{algorithm.value}'")
