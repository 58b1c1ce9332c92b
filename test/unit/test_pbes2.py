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

import logging

import pytest

from josecrypt import pbes2
from josecrypt.algorithms import KeyManagementAlgorithm
from josecrypt.exceptions import (
    InvalidHeaderParameterValue,
    JoseCryptConfigError,
    UnsupportedAlgorithm,
)

# RFC 7517 appendix C
PASSWORD = b"Thus from my lips, by yours, my sin is purged."
SALT_INPUT = bytes(
    [217, 96, 147, 112, 150, 117, 70, 247, 127, 8, 155, 137, 174, 42, 80, 215]
)


def test_deriving_wrapping_key():
    key = pbes2.derive_wrapping_key(
        PASSWORD, KeyManagementAlgorithm.PBES2_HS256_A128KW, SALT_INPUT, 4096
    )
    assert key == bytes(
        [110, 171, 169, 92, 129, 92, 109, 117, 233, 242, 116, 233, 170, 14, 24, 75]
    )


@pytest.mark.parametrize(
    "algorithm, length",
    [
        (KeyManagementAlgorithm.PBES2_HS256_A128KW, 16),
        (KeyManagementAlgorithm.PBES2_HS384_A192KW, 24),
        (KeyManagementAlgorithm.PBES2_HS512_A256KW, 32),
    ],
)
def test_wrapping_key_length_follows_key_wrap_algorithm(algorithm, length):
    assert len(pbes2.derive_wrapping_key(PASSWORD, algorithm, SALT_INPUT, 1)) == length


def test_full_salt_is_prefixed_with_algorithm_name():
    salt = pbes2.full_salt(KeyManagementAlgorithm.PBES2_HS256_A128KW, b"\x01\x02")
    assert salt == b"PBES2-HS256+A128KW\x00\x01\x02"


def test_non_positive_iteration_count_is_rejected():
    with pytest.raises(InvalidHeaderParameterValue, match="^Invalid value for header parameter 'p2c'"):
        pbes2.derive_wrapping_key(
            PASSWORD, KeyManagementAlgorithm.PBES2_HS256_A128KW, SALT_INPUT, 0
        )


def test_non_pbes2_algorithm_is_rejected():
    with pytest.raises(UnsupportedAlgorithm):
        pbes2.derive_wrapping_key(PASSWORD, KeyManagementAlgorithm.A128KW, SALT_INPUT, 1)


@pytest.mark.parametrize("configured, expected", [(None, 8), (8, 8), (9, 9), (32, 32)])
def test_salt_input_length(configured, expected):
    assert pbes2.salt_input_length(configured) == expected


@pytest.mark.parametrize("configured", [0, 4, -1])
def test_short_salt_input_length_falls_back_to_default(configured, caplog):
    caplog.set_level(logging.DEBUG)
    assert pbes2.salt_input_length(configured) == pbes2.DEFAULT_SALT_INPUT_LENGTH
    assert f"PBES2 salt input length {configured} out of range, using 8" in caplog.messages


def test_defaults_without_environment(monkeypatch):
    monkeypatch.delenv("JOSECRYPT_PBES2_ITERATION_COUNT", raising=False)
    monkeypatch.delenv("JOSECRYPT_PBES2_SALT_INPUT_LENGTH", raising=False)
    monkeypatch.delenv("JOSECRYPT_PBES2_MAX_ITERATION_COUNT", raising=False)
    assert pbes2.get_default_iteration_count() == 1000
    assert pbes2.get_default_salt_input_length() == 8
    assert pbes2.get_max_iteration_count() == 1000000


def test_defaults_from_environment(monkeypatch):
    monkeypatch.setenv("JOSECRYPT_PBES2_ITERATION_COUNT", "2000")
    monkeypatch.setenv("JOSECRYPT_PBES2_SALT_INPUT_LENGTH", "16")
    monkeypatch.setenv("JOSECRYPT_PBES2_MAX_ITERATION_COUNT", "5000")
    assert pbes2.get_default_iteration_count() == 2000
    assert pbes2.get_default_salt_input_length() == 16
    assert pbes2.get_max_iteration_count() == 5000


def test_invalid_environment_value_fails(monkeypatch):
    monkeypatch.setenv("JOSECRYPT_PBES2_ITERATION_COUNT", "many")
    with pytest.raises(
        JoseCryptConfigError,
        match="^Invalid integer value 'many' in environment variable 'JOSECRYPT_PBES2_ITERATION_COUNT'",
    ):
        pbes2.get_default_iteration_count()
