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

"""AES Key Wrap as specified in RFC 3394, section 2.2."""

from .exceptions import DecryptingFailed, EncryptingFailed, KeyLengthNotSatisfied
from .primitives import aes_decrypt_block, aes_encrypt_block
from .utils import constant_time_equals, uint64_be

DEFAULT_IV = bytes.fromhex("A6A6A6A6A6A6A6A6")

_SEMIBLOCK = 8
_KEY_ENCRYPTION_KEY_LENGTHS = (16, 24, 32)


def _check_kek(kek: bytes):
    if len(kek) not in _KEY_ENCRYPTION_KEY_LENGTHS:
        raise KeyLengthNotSatisfied(
            f"Key encryption key must be 16, 24 or 32 bytes long, got {len(kek)}"
        )


def _xor_counter(register: bytes, counter: int) -> bytes:
    return bytes(a ^ b for a, b in zip(register, uint64_be(counter)))


def wrap(kek: bytes, plaintext: bytes) -> bytes:
    _check_kek(kek)
    if len(plaintext) < 2 * _SEMIBLOCK or len(plaintext) % _SEMIBLOCK:
        raise EncryptingFailed(
            "Key data must be a multiple of 8 bytes and at least 16 bytes long"
        )

    n = len(plaintext) // _SEMIBLOCK
    registers = [
        plaintext[i * _SEMIBLOCK : (i + 1) * _SEMIBLOCK] for i in range(n)
    ]
    a = DEFAULT_IV
    for j in range(6):
        for i in range(n):
            block = aes_encrypt_block(kek, a + registers[i])
            a = _xor_counter(block[:_SEMIBLOCK], n * j + i + 1)
            registers[i] = block[_SEMIBLOCK:]

    return a + b"".join(registers)


def unwrap(kek: bytes, ciphertext: bytes) -> bytes:
    _check_kek(kek)
    if len(ciphertext) < 3 * _SEMIBLOCK or len(ciphertext) % _SEMIBLOCK:
        raise DecryptingFailed(
            "Wrapped key must be a multiple of 8 bytes and at least 24 bytes long"
        )

    n = len(ciphertext) // _SEMIBLOCK - 1
    a = ciphertext[:_SEMIBLOCK]
    registers = [
        ciphertext[(i + 1) * _SEMIBLOCK : (i + 2) * _SEMIBLOCK] for i in range(n)
    ]
    for j in reversed(range(6)):
        for i in reversed(range(n)):
            block = aes_decrypt_block(kek, _xor_counter(a, n * j + i + 1) + registers[i])
            a = block[:_SEMIBLOCK]
            registers[i] = block[_SEMIBLOCK:]

    # integrity check
    if not constant_time_equals(a, DEFAULT_IV):
        raise DecryptingFailed("AES key unwrap integrity check failed")

    return b"".join(registers)
