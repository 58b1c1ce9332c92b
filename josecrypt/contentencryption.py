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

from dataclasses import dataclass
from typing import Optional

from .algorithms import ContentEncryptionAlgorithm
from .exceptions import (
    AuthenticationTagMismatch,
    DecryptingFailed,
    KeyLengthNotSatisfied,
    UnsupportedAlgorithm,
)
from .primitives import (
    aes_cbc_decrypt,
    aes_cbc_encrypt,
    aes_gcm_open,
    aes_gcm_seal,
    hmac_digest,
)
from .utils import constant_time_equals, secure_random_bytes, uint64_be


@dataclass(frozen=True)
class ContentEncryptionContext:
    ciphertext: bytes
    initialization_vector: bytes
    authentication_tag: bytes


@dataclass
class ContentDecryptionContext:
    ciphertext: bytes
    initialization_vector: bytes
    additional_authenticated_data: bytes
    authentication_tag: bytes
    content_encryption_key: Optional[bytes] = None


def _check_key_length(algorithm: ContentEncryptionAlgorithm, key: bytes):
    if key is None or not algorithm.check_key_length(key):
        raise KeyLengthNotSatisfied(
            f"Content encryption key for '{algorithm.value}' must be {algorithm.key_length} bytes long"
        )


class AESCBCEncryption:
    """AES_CBC_HMAC_SHA2 composite authenticated encryption, RFC 7518 section 5.2."""

    def __init__(self, algorithm: ContentEncryptionAlgorithm):
        if not algorithm.is_cbc_hmac:
            raise UnsupportedAlgorithm(f"'{algorithm.value}' is not an AES-CBC-HMAC algorithm")
        self.algorithm = algorithm

    def _split_key(self, key: bytes):
        half = len(key) // 2
        return key[:half], key[half:]

    def _tag(self, mac_key, aad, iv, ciphertext):
        al = uint64_be(len(aad) * 8)
        mac = hmac_digest(mac_key, aad + iv + ciphertext + al, self.algorithm.hmac_hash_algorithm)
        return mac[: len(mac_key)]

    def encrypt(self, aad: bytes, payload: bytes, content_encryption_key: bytes, iv: bytes = None):
        _check_key_length(self.algorithm, content_encryption_key)
        mac_key, encryption_key = self._split_key(content_encryption_key)
        if iv is None:
            iv = secure_random_bytes(self.algorithm.initialization_vector_length)
        ciphertext = aes_cbc_encrypt(encryption_key, iv, payload)
        tag = self._tag(mac_key, aad, iv, ciphertext)
        return ContentEncryptionContext(ciphertext, iv, tag)

    def decrypt(self, context: ContentDecryptionContext) -> bytes:
        _check_key_length(self.algorithm, context.content_encryption_key)
        mac_key, encryption_key = self._split_key(context.content_encryption_key)
        if len(context.initialization_vector) != self.algorithm.initialization_vector_length:
            raise DecryptingFailed("Invalid initialization vector length")

        expected_tag = self._tag(
            mac_key,
            context.additional_authenticated_data,
            context.initialization_vector,
            context.ciphertext,
        )
        if not constant_time_equals(expected_tag, context.authentication_tag):
            raise AuthenticationTagMismatch()

        return aes_cbc_decrypt(encryption_key, context.initialization_vector, context.ciphertext)


class AESGCMEncryption:
    def __init__(self, algorithm: ContentEncryptionAlgorithm):
        if algorithm.is_cbc_hmac:
            raise UnsupportedAlgorithm(f"'{algorithm.value}' is not an AES-GCM algorithm")
        self.algorithm = algorithm

    def encrypt(self, aad: bytes, payload: bytes, content_encryption_key: bytes, iv: bytes = None):
        _check_key_length(self.algorithm, content_encryption_key)
        if iv is None:
            iv = secure_random_bytes(self.algorithm.initialization_vector_length)
        ciphertext, tag = aes_gcm_seal(content_encryption_key, iv, payload, aad)
        return ContentEncryptionContext(ciphertext, iv, tag)

    def decrypt(self, context: ContentDecryptionContext) -> bytes:
        _check_key_length(self.algorithm, context.content_encryption_key)
        if len(context.initialization_vector) != self.algorithm.initialization_vector_length:
            raise DecryptingFailed("Invalid initialization vector length")
        if len(context.authentication_tag) != self.algorithm.tag_length:
            raise AuthenticationTagMismatch()
        return aes_gcm_open(
            context.content_encryption_key,
            context.initialization_vector,
            context.ciphertext,
            context.additional_authenticated_data,
            context.authentication_tag,
        )


def make_content_encryption(algorithm: ContentEncryptionAlgorithm):
    if algorithm.is_cbc_hmac:
        return AESCBCEncryption(algorithm)
    return AESGCMEncryption(algorithm)
