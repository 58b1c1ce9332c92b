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

import pytest
from cryptography.hazmat.primitives import keywrap

from josecrypt import aeskw
from josecrypt.exceptions import DecryptingFailed, EncryptingFailed, KeyLengthNotSatisfied

KEY_DATA = bytes.fromhex("00112233445566778899AABBCCDDEEFF")


@pytest.mark.parametrize(
    "kek_length, expected",
    [
        (16, "1FA68B0A8112B447AEF34BD8FB5A7B829D3E862371D2CFE5"),
        (24, "96778B25AE6CA435F92B5B97C050AED2468AB8A17AD84E5D"),
        (32, "64E8C3F9CE0F5BA263E9777905818A2A93C8191E7D6E8AE7"),
    ],
)
def test_wrapping_128_bits_of_key_data(kek_length, expected):
    kek = bytes(range(kek_length))
    wrapped = aeskw.wrap(kek, KEY_DATA)
    assert wrapped == bytes.fromhex(expected)
    assert aeskw.unwrap(kek, wrapped) == KEY_DATA


def test_wrapping_256_bits_of_key_data_with_256_bit_kek():
    kek = bytes(range(32))
    key_data = bytes.fromhex(
        "00112233445566778899AABBCCDDEEFF000102030405060708090A0B0C0D0E0F"
    )
    wrapped = aeskw.wrap(kek, key_data)
    assert wrapped == bytes.fromhex(
        "28C9F404C4B810F4CBCCB35CFB87F8263F5786E2D80ED326CBC7F0E71A99F43BFB988B9B7A02DD21"
    )
    assert aeskw.unwrap(kek, wrapped) == key_data


@pytest.mark.parametrize("kek_length", [16, 24, 32])
@pytest.mark.parametrize("data_length", [16, 24, 32, 64])
def test_wrapping_agrees_with_cryptography_keywrap(kek_length, data_length):
    kek = bytes(range(100, 100 + kek_length))
    key_data = bytes(range(data_length))
    wrapped = aeskw.wrap(kek, key_data)
    assert wrapped == keywrap.aes_key_wrap(kek, key_data)
    assert aeskw.unwrap(kek, keywrap.aes_key_wrap(kek, key_data)) == key_data


def test_unwrapping_with_wrong_kek_fails():
    wrapped = aeskw.wrap(bytes(range(16)), KEY_DATA)
    with pytest.raises(DecryptingFailed, match="^AES key unwrap integrity check failed"):
        aeskw.unwrap(bytes(16), wrapped)


def test_unwrapping_tampered_ciphertext_fails():
    wrapped = bytearray(aeskw.wrap(bytes(range(16)), KEY_DATA))
    wrapped[-1] ^= 0x01
    with pytest.raises(DecryptingFailed):
        aeskw.unwrap(bytes(range(16)), bytes(wrapped))


@pytest.mark.parametrize("kek_length", [0, 15, 17, 64])
def test_invalid_kek_length_is_rejected(kek_length):
    with pytest.raises(KeyLengthNotSatisfied):
        aeskw.wrap(bytes(kek_length), KEY_DATA)
    with pytest.raises(KeyLengthNotSatisfied):
        aeskw.unwrap(bytes(kek_length), bytes(24))


@pytest.mark.parametrize("length", [0, 8, 17, 20])
def test_wrapping_key_data_of_invalid_length_fails(length):
    with pytest.raises(EncryptingFailed):
        aeskw.wrap(bytes(16), bytes(length))


@pytest.mark.parametrize("length", [0, 16, 25])
def test_unwrapping_ciphertext_of_invalid_length_fails(length):
    with pytest.raises(DecryptingFailed):
        aeskw.unwrap(bytes(16), bytes(length))
