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

"""Thin adapters over the cryptography package.

Every function here fails with a josecrypt exception, never with a
cryptography one, and never includes key bytes in the message.
"""

from cryptography.exceptions import InvalidSignature, InvalidTag
from cryptography.hazmat.primitives import hashes, hmac, padding
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from cryptography.hazmat.primitives.asymmetric import padding as asymmetric_padding
from cryptography.hazmat.primitives.asymmetric.utils import (
    decode_dss_signature,
    encode_dss_signature,
)
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from .algorithms import ECCurveType, KeyManagementAlgorithm
from .exceptions import (
    AuthenticationTagMismatch,
    DecryptingFailed,
    EncryptingFailed,
    InvalidCurveType,
    KeyLengthNotSatisfied,
    SigningFailed,
    UnsupportedAlgorithm,
    WrongKeyType,
)

AES_BLOCK_SIZE = 16
_AES_KEY_LENGTHS = (16, 24, 32)


def _check_aes_key(key: bytes):
    if len(key) not in _AES_KEY_LENGTHS:
        raise KeyLengthNotSatisfied(
            f"AES key must be 16, 24 or 32 bytes long, got {len(key)}"
        )


# AES


def aes_encrypt_block(key: bytes, block: bytes) -> bytes:
    _check_aes_key(key)
    if len(block) != AES_BLOCK_SIZE:
        raise EncryptingFailed(f"AES block must be {AES_BLOCK_SIZE} bytes long")
    encryptor = Cipher(algorithms.AES(key), modes.ECB()).encryptor()
    return encryptor.update(block) + encryptor.finalize()


def aes_decrypt_block(key: bytes, block: bytes) -> bytes:
    _check_aes_key(key)
    if len(block) != AES_BLOCK_SIZE:
        raise DecryptingFailed(f"AES block must be {AES_BLOCK_SIZE} bytes long")
    decryptor = Cipher(algorithms.AES(key), modes.ECB()).decryptor()
    return decryptor.update(block) + decryptor.finalize()


def aes_cbc_encrypt(key: bytes, iv: bytes, plaintext: bytes) -> bytes:
    _check_aes_key(key)
    padder = padding.PKCS7(algorithms.AES.block_size).padder()
    padded = padder.update(plaintext) + padder.finalize()
    try:
        encryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
    except ValueError as error:
        raise EncryptingFailed(str(error)) from error
    return encryptor.update(padded) + encryptor.finalize()


def aes_cbc_decrypt(key: bytes, iv: bytes, ciphertext: bytes) -> bytes:
    _check_aes_key(key)
    try:
        decryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).decryptor()
        padded = decryptor.update(ciphertext) + decryptor.finalize()
        unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
        return unpadder.update(padded) + unpadder.finalize()
    except ValueError as error:
        raise DecryptingFailed("AES-CBC decryption failed") from error


def aes_gcm_seal(key: bytes, iv: bytes, plaintext: bytes, aad: bytes):
    """Returns (ciphertext, tag)."""
    _check_aes_key(key)
    try:
        sealed = AESGCM(key).encrypt(iv, plaintext, aad)
    except ValueError as error:
        raise EncryptingFailed(str(error)) from error
    return sealed[:-16], sealed[-16:]


def aes_gcm_open(key: bytes, iv: bytes, ciphertext: bytes, aad: bytes, tag: bytes):
    _check_aes_key(key)
    try:
        return AESGCM(key).decrypt(iv, ciphertext + tag, aad)
    except InvalidTag as error:
        raise AuthenticationTagMismatch() from error
    except ValueError as error:
        raise DecryptingFailed(str(error)) from error


# HMAC


def hmac_digest(key: bytes, data: bytes, hash_algorithm) -> bytes:
    mac = hmac.HMAC(key, hash_algorithm())
    mac.update(data)
    return mac.finalize()


# RSA

_OAEP_SHA1_OVERHEAD = 2 * 20 + 2
_OAEP_SHA256_OVERHEAD = 2 * 32 + 2
_PKCS1_OVERHEAD = 11


def _rsa_padding(algorithm: KeyManagementAlgorithm):
    if algorithm == KeyManagementAlgorithm.RSA1_5:
        return asymmetric_padding.PKCS1v15(), _PKCS1_OVERHEAD
    if algorithm == KeyManagementAlgorithm.RSA_OAEP:
        return (
            asymmetric_padding.OAEP(
                mgf=asymmetric_padding.MGF1(hashes.SHA1()),
                algorithm=hashes.SHA1(),
                label=None,
            ),
            _OAEP_SHA1_OVERHEAD,
        )
    if algorithm == KeyManagementAlgorithm.RSA_OAEP_256:
        return (
            asymmetric_padding.OAEP(
                mgf=asymmetric_padding.MGF1(hashes.SHA256()),
                algorithm=hashes.SHA256(),
                label=None,
            ),
            _OAEP_SHA256_OVERHEAD,
        )
    raise UnsupportedAlgorithm(f"'{algorithm.value}' is not an RSA algorithm")


def _modulus_length(key) -> int:
    return (key.key_size + 7) // 8


def rsa_encrypt(public_key, plaintext: bytes, algorithm: KeyManagementAlgorithm) -> bytes:
    if not isinstance(public_key, rsa.RSAPublicKey):
        raise WrongKeyType("RSA encryption requires an RSA public key")
    rsa_padding, overhead = _rsa_padding(algorithm)
    max_length = _modulus_length(public_key) - overhead
    if len(plaintext) > max_length:
        raise EncryptingFailed(
            f"Plaintext too long for '{algorithm.value}': {len(plaintext)} > {max_length}"
        )
    return public_key.encrypt(plaintext, rsa_padding)


def rsa_decrypt(private_key, ciphertext: bytes, algorithm: KeyManagementAlgorithm) -> bytes:
    if not isinstance(private_key, rsa.RSAPrivateKey):
        raise WrongKeyType("RSA decryption requires an RSA private key")
    rsa_padding, _ = _rsa_padding(algorithm)
    if len(ciphertext) != _modulus_length(private_key):
        raise DecryptingFailed("RSA ciphertext length does not match the modulus")
    try:
        return private_key.decrypt(ciphertext, rsa_padding)
    except ValueError as error:
        raise DecryptingFailed("RSA decryption failed") from error


def rsa_sign(private_key, data: bytes, hash_algorithm, pss: bool = False) -> bytes:
    if not isinstance(private_key, rsa.RSAPrivateKey):
        raise WrongKeyType("RSA signing requires an RSA private key")
    return private_key.sign(data, _signature_padding(hash_algorithm, pss), hash_algorithm())


def rsa_verify(public_key, signature: bytes, data: bytes, hash_algorithm, pss: bool = False) -> bool:
    if not isinstance(public_key, rsa.RSAPublicKey):
        raise WrongKeyType("RSA verification requires an RSA public key")
    try:
        public_key.verify(
            signature, data, _signature_padding(hash_algorithm, pss), hash_algorithm()
        )
    except InvalidSignature:
        return False
    return True


def _signature_padding(hash_algorithm, pss):
    if pss:
        return asymmetric_padding.PSS(
            mgf=asymmetric_padding.MGF1(hash_algorithm()),
            salt_length=hash_algorithm.digest_size,
        )
    return asymmetric_padding.PKCS1v15()


# EC


def curve_type_of(key) -> ECCurveType:
    curve_type = ECCurveType.from_curve_name(key.curve.name)
    if curve_type is None:
        raise InvalidCurveType(f"Unsupported curve '{key.curve.name}'")
    return curve_type


def generate_ec_private_key(curve_type: ECCurveType):
    return ec.generate_private_key(ec_curve(curve_type))


def ec_curve(curve_type: ECCurveType):
    return {
        ECCurveType.P256: ec.SECP256R1,
        ECCurveType.P384: ec.SECP384R1,
        ECCurveType.P521: ec.SECP521R1,
    }[curve_type]()


def ec_sign(private_key, data: bytes, hash_algorithm, curve_type: ECCurveType) -> bytes:
    """ECDSA signature in the fixed length r || s form."""
    if not isinstance(private_key, ec.EllipticCurvePrivateKey):
        raise WrongKeyType("ECDSA signing requires an EC private key")
    if curve_type_of(private_key) != curve_type:
        raise InvalidCurveType(f"Signing key is not on curve '{curve_type.value}'")
    try:
        der_signature = private_key.sign(data, ec.ECDSA(hash_algorithm()))
    except ValueError as error:
        raise SigningFailed(str(error)) from error
    r, s = decode_dss_signature(der_signature)
    length = curve_type.coordinate_octet_length
    return r.to_bytes(length, "big") + s.to_bytes(length, "big")


def ec_verify(public_key, signature: bytes, data: bytes, hash_algorithm, curve_type: ECCurveType) -> bool:
    if not isinstance(public_key, ec.EllipticCurvePublicKey):
        raise WrongKeyType("ECDSA verification requires an EC public key")
    if curve_type_of(public_key) != curve_type:
        raise InvalidCurveType(f"Verification key is not on curve '{curve_type.value}'")
    length = curve_type.coordinate_octet_length
    if len(signature) != 2 * length:
        return False
    r = int.from_bytes(signature[:length], "big")
    s = int.from_bytes(signature[length:], "big")
    try:
        public_key.verify(encode_dss_signature(r, s), data, ec.ECDSA(hash_algorithm()))
    except InvalidSignature:
        return False
    return True


def ecdh_raw_bits(private_key, public_key) -> bytes:
    if not isinstance(private_key, ec.EllipticCurvePrivateKey):
        raise WrongKeyType("ECDH requires an EC private key")
    if not isinstance(public_key, ec.EllipticCurvePublicKey):
        raise WrongKeyType("ECDH requires an EC public key")
    if curve_type_of(private_key) != curve_type_of(public_key):
        raise InvalidCurveType(
            f"Curve mismatch: '{private_key.curve.name}' and '{public_key.curve.name}'"
        )
    try:
        return private_key.exchange(ec.ECDH(), public_key)
    except ValueError as error:
        raise DecryptingFailed("ECDH key agreement failed") from error


# PBKDF2


def pbkdf2(password: bytes, salt: bytes, iterations: int, key_length: int, hash_algorithm) -> bytes:
    kdf = PBKDF2HMAC(
        algorithm=hash_algorithm(),
        length=key_length,
        salt=salt,
        iterations=iterations,
    )
    return kdf.derive(password)
