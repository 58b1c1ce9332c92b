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

from .header import JWEHeader, JWSHeader
from .jwe import JWE, Decrypter, Encrypter
from .jwk import JWK
from .jws import JWS, Signer, Verifier


def _as_key(key):
    # PEM text as read from a key file
    if isinstance(key, str):
        return JWK.from_pem(key)
    return key


# operations touching private key material go through here, so they can be
# backed by an HSM instead of in-process keys
class JOSESecureOperations:
    def jws_sign(self, payload: bytes, key, headers: dict, algorithm: str) -> str:
        header = JWSHeader({**headers, "alg": algorithm})
        return JWS.sign(header, payload, Signer(algorithm, _as_key(key))).serialize()

    def jws_verify(self, token: str, key, algorithm: str) -> bytes:
        jws = JWS.deserialize(token)
        jws.validate(Verifier(algorithm, _as_key(key)))
        return jws.payload

    def jwe_encrypt(
        self, payload: bytes, key, algorithm: str, encryption: str, headers: dict = None
    ) -> str:
        header = JWEHeader({**(headers or {}), "alg": algorithm, "enc": encryption})
        encrypter = Encrypter(algorithm, encryption, _as_key(key))
        return JWE.encrypt(header, payload, encrypter).serialize()

    def jwe_decrypt(self, token: str, key, algorithm: str, encryption: str) -> bytes:
        decrypter = Decrypter(algorithm, encryption, _as_key(key))
        return JWE.deserialize(token).decrypt(decrypter)


JOSE_SECURE_OPS = JOSESecureOperations()
