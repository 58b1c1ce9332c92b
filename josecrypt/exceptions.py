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


class JoseCryptError(Exception):
    pass


class JoseCryptConfigError(JoseCryptError):
    pass


# structural / parsing errors


class DeserializationError(JoseCryptError):
    pass


class InvalidCompactSerializationComponentCount(DeserializationError):
    def __init__(self, count: int, expected: int):
        super().__init__(
            f"Invalid compact serialization component count: {count} (expected {expected})"
        )
        self.count = count
        self.expected = expected


class ComponentNotValidBase64URL(DeserializationError):
    def __init__(self, component: str):
        # only a prefix is kept, components may be large
        super().__init__(f"Component is not valid Base64URL: '{component[:32]}'")
        self.component = component


class HeaderNotValidJSONObject(DeserializationError):
    def __init__(self, reason: str = "header is not a JSON object"):
        super().__init__(f"Invalid header: {reason}")


class RequiredHeaderParameterMissing(DeserializationError):
    def __init__(self, parameter: str):
        super().__init__(f"Required header parameter '{parameter}' missing")
        self.parameter = parameter


class InvalidHeaderParameterValue(DeserializationError):
    def __init__(self, parameter: str, reason: str):
        super().__init__(f"Invalid value for header parameter '{parameter}': {reason}")
        self.parameter = parameter


class InvalidJSONSerialization(DeserializationError):
    pass


# algorithm errors


class AlgorithmError(JoseCryptError):
    pass


class UnsupportedAlgorithm(AlgorithmError):
    pass


class AlgorithmMismatch(AlgorithmError):
    def __init__(self, parameter: str, expected, actual):
        super().__init__(
            f"Algorithm mismatch for '{parameter}': configured '{_name(expected)}', header declares '{_name(actual)}'"
        )
        self.parameter = parameter
        self.expected = expected
        self.actual = actual


class KeyManagementAlgorithmMismatch(AlgorithmMismatch):
    def __init__(self, expected, actual):
        super().__init__("alg", expected, actual)


class ContentEncryptionAlgorithmMismatch(AlgorithmMismatch):
    def __init__(self, expected, actual):
        super().__init__("enc", expected, actual)


class SignatureAlgorithmMismatch(AlgorithmMismatch):
    def __init__(self, expected, actual):
        super().__init__("alg", expected, actual)


class CompressionAlgorithmNotSupported(AlgorithmError):
    def __init__(self, value):
        super().__init__(f"Compression algorithm '{value}' is not supported")
        self.value = value


# key errors


class JoseKeyError(JoseCryptError):
    pass


class KeyLengthNotSatisfied(JoseKeyError):
    pass


class WrongKeyType(JoseKeyError):
    pass


class InvalidCurveType(JoseKeyError):
    pass


class CompressedCurvePointsUnsupported(JoseKeyError):
    pass


class InvalidCurvePointOctetLength(JoseKeyError):
    pass


class JWKParameterError(JoseKeyError):
    pass


# cryptographic operation failures


class CryptoOperationError(JoseCryptError):
    pass


class EncryptingFailed(CryptoOperationError):
    pass


class DecryptingFailed(CryptoOperationError):
    pass


class AuthenticationTagMismatch(DecryptingFailed):
    def __init__(self):
        super().__init__("Authentication tag mismatch")


class SigningFailed(CryptoOperationError):
    pass


class VerifyingFailed(CryptoOperationError):
    pass


class SignatureInvalid(VerifyingFailed):
    def __init__(self):
        super().__init__("Signature invalid")


class CompressionFailed(CryptoOperationError):
    pass


class DecompressionFailed(CryptoOperationError):
    pass


def _name(algorithm):
    return getattr(algorithm, "value", algorithm)
