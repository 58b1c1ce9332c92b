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

"""JSON Web Signature (RFC 7515), with unencoded payloads (RFC 7797)."""

import json
import logging
from dataclasses import dataclass
from typing import Optional

from .algorithms import SignatureAlgorithm, parse_algorithm
from .exceptions import (
    AlgorithmMismatch,
    InvalidJSONSerialization,
    KeyLengthNotSatisfied,
    SignatureAlgorithmMismatch,
    SignatureInvalid,
    WrongKeyType,
)
from .header import JOSEHeader, JWSHeader, UnprotectedHeader, join_headers
from .jwk import JWK, ECKey, RSAKey, SymmetricKey
from .primitives import (
    ec_sign,
    ec_verify,
    hmac_digest,
    rsa_sign,
    rsa_verify,
)
from .serialization import (
    JWS_COMPONENT_COUNT,
    join_compact,
    load_json_serialization,
    split_compact,
)
from .utils import base64url_decode, base64url_encode, constant_time_equals

logger = logging.getLogger(__name__)


def _hmac_key(algorithm: SignatureAlgorithm, key) -> bytes:
    if isinstance(key, SymmetricKey):
        key = key.key_bytes()
    if not isinstance(key, (bytes, bytearray)):
        raise WrongKeyType(f"'{algorithm.value}' requires a symmetric key")
    minimum_length = algorithm.hash_algorithm.digest_size
    if len(key) < minimum_length:
        raise KeyLengthNotSatisfied(
            f"'{algorithm.value}' key must be at least {minimum_length} bytes long, got {len(key)}"
        )
    return bytes(key)


def _asymmetric_key(algorithm: SignatureAlgorithm, key, private: bool):
    expected_class = ECKey if algorithm.family == "ES" else RSAKey
    if isinstance(key, JWK):
        if not isinstance(key, expected_class):
            raise WrongKeyType(f"'{algorithm.value}' cannot use a '{key.key_type}' key")
        return key.private_key() if private else key.public_key()
    return key


class Signer:
    def __init__(self, algorithm, key):
        self.algorithm = parse_algorithm(SignatureAlgorithm, algorithm)
        self.kid = key.kid if isinstance(key, JWK) else None
        if self.algorithm.family == "HS":
            self._key = _hmac_key(self.algorithm, key)
        else:
            self._key = _asymmetric_key(self.algorithm, key, private=True)

    def sign(self, signing_input: bytes) -> bytes:
        algorithm = self.algorithm
        hash_algorithm = algorithm.hash_algorithm
        if algorithm.family == "HS":
            return hmac_digest(self._key, signing_input, hash_algorithm)
        if algorithm.family == "ES":
            return ec_sign(self._key, signing_input, hash_algorithm, algorithm.curve)
        return rsa_sign(self._key, signing_input, hash_algorithm, pss=algorithm.family == "PS")


class Verifier:
    def __init__(self, algorithm, key, kid=None):
        self.algorithm = parse_algorithm(SignatureAlgorithm, algorithm)
        if kid is None and isinstance(key, JWK):
            kid = key.kid
        self.kid = kid
        if self.algorithm.family == "HS":
            self._key = _hmac_key(self.algorithm, key)
        else:
            self._key = _asymmetric_key(self.algorithm, key, private=False)

    def verify(self, signing_input: bytes, signature: bytes) -> bool:
        algorithm = self.algorithm
        hash_algorithm = algorithm.hash_algorithm
        if algorithm.family == "HS":
            expected = hmac_digest(self._key, signing_input, hash_algorithm)
            return constant_time_equals(expected, signature)
        if algorithm.family == "ES":
            return ec_verify(self._key, signature, signing_input, hash_algorithm, algorithm.curve)
        return rsa_verify(
            self._key, signature, signing_input, hash_algorithm, pss=algorithm.family == "PS"
        )


def _check_algorithm(header, algorithm: SignatureAlgorithm):
    if header.get("alg") != algorithm.value:
        raise SignatureAlgorithmMismatch(algorithm, header.get("alg"))


def _signing_input(header, payload: bytes, encoded_payload: bool) -> bytes:
    header_segment = b"" if header is None else header.base64url().encode("ascii")
    if encoded_payload:
        return header_segment + b"." + base64url_encode(payload).encode("ascii")
    return header_segment + b"." + payload


class JWS:
    """A JWS in compact serialization."""

    def __init__(self, header: JWSHeader, payload: bytes, signature: bytes):
        self.header = header
        self.payload = payload
        self.signature = signature

    @classmethod
    def sign(cls, header: JWSHeader, payload: bytes, signer: Signer):
        _check_algorithm(header, signer.algorithm)
        logger.info(f"Signing with '{signer.algorithm.value}'")
        logger.debug(f"JWS header: {header.parameters}")
        signing_input = _signing_input(header, payload, header.is_payload_base64url_encoded)
        return cls(header, payload, signer.sign(signing_input))

    @classmethod
    def deserialize(cls, compact_serialization, detached_payload: bytes = None):
        header_segment, payload_segment, signature_segment = split_compact(
            compact_serialization, JWS_COMPONENT_COUNT
        )
        header = JWSHeader.from_base64url(header_segment)
        logger.debug(f"JWS header: {header.parameters}")

        if payload_segment == "" and detached_payload is not None:
            payload = detached_payload
        elif header.is_payload_base64url_encoded:
            payload = base64url_decode(payload_segment)
        else:
            payload = payload_segment.encode("utf-8")
        return cls(header, payload, base64url_decode(signature_segment))

    @property
    def signing_input(self) -> bytes:
        return _signing_input(self.header, self.payload, self.header.is_payload_base64url_encoded)

    def serialize(self, detached=False) -> str:
        """Compact serialization; the payload segment is left empty for unencoded or detached payloads."""
        if detached or not self.header.is_payload_base64url_encoded:
            payload_segment = ""
        else:
            payload_segment = base64url_encode(self.payload)
        return join_compact(self.header.base64url(), payload_segment, base64url_encode(self.signature))

    def validate(self, verifier: Verifier):
        _check_algorithm(self.header, verifier.algorithm)
        logger.info(f"Verifying with '{verifier.algorithm.value}'")
        if not verifier.verify(self.signing_input, self.signature):
            raise SignatureInvalid()
        return self

    def is_valid(self, verifier: Verifier) -> bool:
        try:
            self.validate(verifier)
        except (AlgorithmMismatch, SignatureInvalid):
            return False
        return True


@dataclass
class JWSSignature:
    protected_header: Optional[JOSEHeader]
    unprotected_header: Optional[UnprotectedHeader]
    signature: bytes

    @property
    def joined_header(self) -> dict:
        return join_headers(self.protected_header, self.unprotected_header)


class JWSObjectJSON:
    """A JWS in general or flattened JSON serialization."""

    def __init__(self, payload: bytes, signatures=None):
        self.payload = payload
        self.signatures = list(signatures or [])

    def _is_payload_base64url_encoded(self, protected_header) -> bool:
        if protected_header is None:
            return True
        return protected_header.get("b64") is not False

    def add_signature(self, protected_header, signer: Signer, unprotected_header=None):
        if isinstance(protected_header, dict):
            protected_header = JOSEHeader(protected_header)
        if isinstance(unprotected_header, dict):
            unprotected_header = UnprotectedHeader(unprotected_header)

        joined = JWSHeader(join_headers(protected_header, unprotected_header))
        _check_algorithm(joined, signer.algorithm)
        encoded_payload = self._is_payload_base64url_encoded(protected_header)
        if self.signatures and encoded_payload != self._is_payload_base64url_encoded(
            self.signatures[0].protected_header
        ):
            raise InvalidJSONSerialization("All signatures must agree on 'b64'")

        logger.info(f"Signing with '{signer.algorithm.value}'")
        signing_input = _signing_input(protected_header, self.payload, encoded_payload)
        self.signatures.append(
            JWSSignature(protected_header, unprotected_header, signer.sign(signing_input))
        )
        return self

    @classmethod
    def sign(cls, payload: bytes, protected_header, signer: Signer, unprotected_header=None):
        return cls(payload).add_signature(protected_header, signer, unprotected_header)

    @classmethod
    def deserialize(cls, json_serialization):
        parameters = load_json_serialization(json_serialization, "jws-json-schema.json")
        if "signatures" in parameters:
            entries = parameters["signatures"]
        else:
            entries = [
                {name: parameters[name] for name in ("protected", "header", "signature") if name in parameters}
            ]

        signatures = []
        for entry in entries:
            protected_header = None
            if "protected" in entry:
                protected_header = JOSEHeader.from_base64url(entry["protected"])
                logger.debug(f"JWS protected header: {protected_header.parameters}")
            unprotected_header = None
            if "header" in entry:
                unprotected_header = UnprotectedHeader(entry["header"])
            signatures.append(
                JWSSignature(protected_header, unprotected_header, base64url_decode(entry["signature"]))
            )

        jws_object = cls(b"", signatures)
        if jws_object._is_payload_base64url_encoded(signatures[0].protected_header):
            jws_object.payload = base64url_decode(parameters["payload"])
        else:
            jws_object.payload = parameters["payload"].encode("utf-8")
        return jws_object

    def _find_signature(self, verifier: Verifier) -> JWSSignature:
        for signature in self.signatures:
            joined = signature.joined_header
            if joined.get("alg") != verifier.algorithm.value:
                continue
            if verifier.kid is not None and joined.get("kid") not in (None, verifier.kid):
                continue
            return signature
        declared = self.signatures[0].joined_header.get("alg") if self.signatures else None
        raise SignatureAlgorithmMismatch(verifier.algorithm, declared)

    def validate(self, verifier: Verifier):
        signature = self._find_signature(verifier)
        # b64 and crit consistency
        JWSHeader(signature.joined_header)
        signing_input = _signing_input(
            signature.protected_header,
            self.payload,
            self._is_payload_base64url_encoded(signature.protected_header),
        )
        logger.info(f"Verifying with '{verifier.algorithm.value}'")
        if not verifier.verify(signing_input, signature.signature):
            raise SignatureInvalid()
        return self

    def is_valid(self, verifier: Verifier) -> bool:
        try:
            self.validate(verifier)
        except (AlgorithmMismatch, SignatureInvalid):
            return False
        return True

    def to_dict(self, flattened=False) -> dict:
        if self._is_payload_base64url_encoded(
            self.signatures[0].protected_header if self.signatures else None
        ):
            payload = base64url_encode(self.payload)
        else:
            payload = self.payload.decode("utf-8")

        entries = []
        for signature in self.signatures:
            entry = {}
            if signature.protected_header is not None:
                entry["protected"] = signature.protected_header.base64url()
            if signature.unprotected_header is not None:
                entry["header"] = signature.unprotected_header.parameters
            entry["signature"] = base64url_encode(signature.signature)
            entries.append(entry)

        if flattened and len(entries) == 1:
            return {"payload": payload, **entries[0]}
        return {"payload": payload, "signatures": entries}

    def serialize(self, flattened=False) -> str:
        return json.dumps(self.to_dict(flattened))
