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

"""JSON Web Encryption (RFC 7516).

The header `alg`/`enc` are always checked against the algorithms an
`Encrypter`/`Decrypter` was built for, before any key material is used.
"""

import json
import logging
from dataclasses import dataclass
from typing import Optional

from .algorithms import ContentEncryptionAlgorithm, KeyManagementAlgorithm, parse_algorithm
from .compression import compress, decompress
from .contentencryption import ContentDecryptionContext, make_content_encryption
from .exceptions import (
    ContentEncryptionAlgorithmMismatch,
    DecryptingFailed,
    KeyManagementAlgorithmMismatch,
)
from .header import JOSEHeader, JWEHeader, UnprotectedHeader, join_headers
from .jwk import JWK
from .keymanagement import make_decryption_mode, make_encryption_mode
from .serialization import (
    JWE_COMPONENT_COUNT,
    decode_components,
    join_compact,
    load_json_serialization,
    split_compact,
)
from .utils import base64url_decode, base64url_encode

logger = logging.getLogger(__name__)


def _check_algorithms(header, algorithm, encryption_algorithm):
    if header.get("alg") != algorithm.value:
        raise KeyManagementAlgorithmMismatch(algorithm, header.get("alg"))
    if header.get("enc") != encryption_algorithm.value:
        raise ContentEncryptionAlgorithmMismatch(encryption_algorithm, header.get("enc"))


def _additional_authenticated_data(header: JOSEHeader, aad: bytes = None) -> bytes:
    data = header.base64url().encode("ascii")
    if aad is not None:
        data += b"." + base64url_encode(aad).encode("ascii")
    return data


class Encrypter:
    def __init__(self, algorithm, encryption_algorithm, key, **options):
        self.algorithm = parse_algorithm(KeyManagementAlgorithm, algorithm)
        self.encryption_algorithm = parse_algorithm(
            ContentEncryptionAlgorithm, encryption_algorithm, "enc"
        )
        self.kid = key.kid if isinstance(key, JWK) else None
        self.key_management_mode = make_encryption_mode(
            self.algorithm, self.encryption_algorithm, key, **options
        )
        self.content_encryption = make_content_encryption(self.encryption_algorithm)

    def check_header(self, header):
        _check_algorithms(header, self.algorithm, self.encryption_algorithm)

    def determine_content_encryption_key(self, header):
        return self.key_management_mode.determine_content_encryption_key(header)

    def encrypt_content(self, aad: bytes, plaintext: bytes, content_encryption_key: bytes):
        return self.content_encryption.encrypt(aad, plaintext, content_encryption_key)


class Decrypter:
    def __init__(self, algorithm, encryption_algorithm, key, kid=None, **options):
        self.algorithm = parse_algorithm(KeyManagementAlgorithm, algorithm)
        self.encryption_algorithm = parse_algorithm(
            ContentEncryptionAlgorithm, encryption_algorithm, "enc"
        )
        if kid is None and isinstance(key, JWK):
            kid = key.kid
        self.kid = kid
        self.key_management_mode = make_decryption_mode(
            self.algorithm, self.encryption_algorithm, key, **options
        )
        self.content_encryption = make_content_encryption(self.encryption_algorithm)

    def check_header(self, header):
        _check_algorithms(header, self.algorithm, self.encryption_algorithm)

    def determine_content_encryption_key(self, encrypted_key: bytes, header):
        return self.key_management_mode.determine_content_encryption_key(encrypted_key, header)

    def decrypt_content(self, context: ContentDecryptionContext) -> bytes:
        return self.content_encryption.decrypt(context)


def _encrypt(header: JWEHeader, payload: bytes, encrypter: Encrypter, aad_header=None, aad=None):
    """Returns the protected header with key management parameters and the encrypted parts.

    `aad_header` is the header whose encoding is authenticated, it defaults to `header`.
    """
    encrypter.check_header(header)
    compression_algorithm = header.compression_algorithm

    key_management_context = encrypter.determine_content_encryption_key(header)
    protected_header = aad_header if aad_header is not None else header
    if key_management_context.header_parameters:
        protected_header = protected_header.with_parameters(
            key_management_context.header_parameters
        )

    logger.info(
        f"Encrypting with '{encrypter.algorithm.value}' and '{encrypter.encryption_algorithm.value}'"
    )
    content_context = encrypter.encrypt_content(
        _additional_authenticated_data(protected_header, aad),
        compress(compression_algorithm, payload),
        key_management_context.content_encryption_key,
    )
    return protected_header, key_management_context.encrypted_key, content_context


def _decrypt(
    header: JWEHeader,
    decrypter: Decrypter,
    encrypted_key: bytes,
    initialization_vector: bytes,
    ciphertext: bytes,
    authentication_tag: bytes,
    aad: bytes,
) -> bytes:
    decrypter.check_header(header)
    compression_algorithm = header.compression_algorithm

    logger.info(
        f"Decrypting with '{decrypter.algorithm.value}' and '{decrypter.encryption_algorithm.value}'"
    )
    content_encryption_key = decrypter.determine_content_encryption_key(encrypted_key, header)
    context = ContentDecryptionContext(
        ciphertext=ciphertext,
        initialization_vector=initialization_vector,
        additional_authenticated_data=aad,
        authentication_tag=authentication_tag,
        content_encryption_key=content_encryption_key,
    )
    return decompress(compression_algorithm, decrypter.decrypt_content(context))


class JWE:
    """A JWE in compact serialization."""

    def __init__(
        self,
        header: JWEHeader,
        encrypted_key: bytes,
        initialization_vector: bytes,
        ciphertext: bytes,
        authentication_tag: bytes,
    ):
        self.header = header
        self.encrypted_key = encrypted_key
        self.initialization_vector = initialization_vector
        self.ciphertext = ciphertext
        self.authentication_tag = authentication_tag

    @classmethod
    def encrypt(cls, header: JWEHeader, payload: bytes, encrypter: Encrypter):
        header, encrypted_key, content_context = _encrypt(header, payload, encrypter)
        logger.debug(f"JWE header: {header.parameters}")
        return cls(
            header,
            encrypted_key,
            content_context.initialization_vector,
            content_context.ciphertext,
            content_context.authentication_tag,
        )

    @classmethod
    def deserialize(cls, compact_serialization):
        components = split_compact(compact_serialization, JWE_COMPONENT_COUNT)
        header = JWEHeader.from_base64url(components[0])
        logger.debug(f"JWE header: {header.parameters}")
        encrypted_key, initialization_vector, ciphertext, authentication_tag = decode_components(
            components[1:]
        )
        return cls(header, encrypted_key, initialization_vector, ciphertext, authentication_tag)

    def serialize(self) -> str:
        return join_compact(
            self.header.base64url(),
            base64url_encode(self.encrypted_key),
            base64url_encode(self.initialization_vector),
            base64url_encode(self.ciphertext),
            base64url_encode(self.authentication_tag),
        )

    def decrypt(self, decrypter: Decrypter) -> bytes:
        return _decrypt(
            self.header,
            decrypter,
            self.encrypted_key,
            self.initialization_vector,
            self.ciphertext,
            self.authentication_tag,
            _additional_authenticated_data(self.header),
        )


@dataclass
class JWERecipient:
    header: Optional[UnprotectedHeader]
    encrypted_key: bytes


def _optional_header(parameters):
    if parameters is None:
        return None
    return UnprotectedHeader(parameters)


class JWEObjectJSON:
    """A JWE in general or flattened JSON serialization."""

    def __init__(
        self,
        protected_header: Optional[JOSEHeader],
        unprotected_header: Optional[UnprotectedHeader],
        recipients,
        initialization_vector: bytes,
        ciphertext: bytes,
        authentication_tag: bytes,
        aad: bytes = None,
    ):
        self.protected_header = protected_header
        self.unprotected_header = unprotected_header
        self.recipients = list(recipients)
        self.initialization_vector = initialization_vector
        self.ciphertext = ciphertext
        self.authentication_tag = authentication_tag
        self.aad = aad

    @classmethod
    def encrypt(
        cls,
        protected_header,
        payload: bytes,
        encrypter: Encrypter,
        unprotected_header=None,
        recipient_header=None,
        aad: bytes = None,
    ):
        if protected_header is None:
            protected_header = JOSEHeader({})
        elif isinstance(protected_header, dict):
            protected_header = JOSEHeader(protected_header)
        unprotected_header = _optional_header(
            unprotected_header.parameters
            if isinstance(unprotected_header, UnprotectedHeader)
            else unprotected_header
        )
        recipient_header = _optional_header(
            recipient_header.parameters
            if isinstance(recipient_header, UnprotectedHeader)
            else recipient_header
        )

        joined = JWEHeader(join_headers(protected_header, unprotected_header, recipient_header))
        protected_header, encrypted_key, content_context = _encrypt(
            joined, payload, encrypter, aad_header=protected_header, aad=aad
        )
        # key management parameters must not clash with the unprotected ones
        join_headers(protected_header, unprotected_header, recipient_header)
        logger.debug(f"JWE protected header: {protected_header.parameters}")

        return cls(
            protected_header,
            unprotected_header,
            [JWERecipient(recipient_header, encrypted_key)],
            content_context.initialization_vector,
            content_context.ciphertext,
            content_context.authentication_tag,
            aad,
        )

    @classmethod
    def deserialize(cls, json_serialization):
        parameters = load_json_serialization(json_serialization, "jwe-json-schema.json")

        protected_header = None
        if "protected" in parameters:
            protected_header = JOSEHeader.from_base64url(parameters["protected"])
            logger.debug(f"JWE protected header: {protected_header.parameters}")

        if "recipients" in parameters:
            recipient_entries = parameters["recipients"]
        else:
            recipient_entries = [
                {
                    name: parameters[name]
                    for name in ("header", "encrypted_key")
                    if name in parameters
                }
            ]
        recipients = [
            JWERecipient(
                _optional_header(entry.get("header")),
                base64url_decode(entry.get("encrypted_key", "")),
            )
            for entry in recipient_entries
        ]

        aad = base64url_decode(parameters["aad"]) if "aad" in parameters else None
        return cls(
            protected_header,
            _optional_header(parameters.get("unprotected")),
            recipients,
            base64url_decode(parameters.get("iv", "")),
            base64url_decode(parameters["ciphertext"]),
            base64url_decode(parameters.get("tag", "")),
            aad,
        )

    def _joined_header(self, recipient: JWERecipient) -> JWEHeader:
        return JWEHeader(
            join_headers(self.protected_header, self.unprotected_header, recipient.header)
        )

    def _select_recipient(self, decrypter: Decrypter) -> JWERecipient:
        if len(self.recipients) == 1:
            return self.recipients[0]
        for recipient in self.recipients:
            joined = join_headers(self.protected_header, self.unprotected_header, recipient.header)
            if decrypter.kid is not None and joined.get("kid") != decrypter.kid:
                continue
            if joined.get("alg") == decrypter.algorithm.value:
                return recipient
        raise DecryptingFailed(
            f"No recipient matches '{decrypter.algorithm.value}' with kid '{decrypter.kid}'"
        )

    def decrypt(self, decrypter: Decrypter) -> bytes:
        recipient = self._select_recipient(decrypter)
        header = self._joined_header(recipient)
        aad = b"" if self.protected_header is None else self.protected_header.base64url().encode("ascii")
        if self.aad is not None:
            aad += b"." + base64url_encode(self.aad).encode("ascii")
        return _decrypt(
            header,
            decrypter,
            recipient.encrypted_key,
            self.initialization_vector,
            self.ciphertext,
            self.authentication_tag,
            aad,
        )

    def to_dict(self, flattened=False) -> dict:
        serialization = {}
        if self.protected_header is not None:
            serialization["protected"] = self.protected_header.base64url()
        if self.unprotected_header is not None:
            serialization["unprotected"] = self.unprotected_header.parameters

        recipients = []
        for recipient in self.recipients:
            entry = {}
            if recipient.header is not None:
                entry["header"] = recipient.header.parameters
            if recipient.encrypted_key:
                entry["encrypted_key"] = base64url_encode(recipient.encrypted_key)
            recipients.append(entry)
        if flattened and len(recipients) == 1:
            serialization.update(recipients[0])
        else:
            serialization["recipients"] = recipients

        if self.aad is not None:
            serialization["aad"] = base64url_encode(self.aad)
        serialization["iv"] = base64url_encode(self.initialization_vector)
        serialization["ciphertext"] = base64url_encode(self.ciphertext)
        serialization["tag"] = base64url_encode(self.authentication_tag)
        return serialization

    def serialize(self, flattened=False) -> str:
        return json.dumps(self.to_dict(flattened))
