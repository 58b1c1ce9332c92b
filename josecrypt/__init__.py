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

from .algorithms import (
    CompressionAlgorithm,
    ContentEncryptionAlgorithm,
    ECCurveType,
    KeyManagementAlgorithm,
    SignatureAlgorithm,
)
from .header import JOSEHeader, JWEHeader, JWSHeader, UnprotectedHeader
from .jwe import JWE, Decrypter, Encrypter, JWEObjectJSON
from .jwk import JWK, ECKey, JWKSet, RSAKey, SymmetricKey
from .jws import JWS, JWSObjectJSON, Signer, Verifier
