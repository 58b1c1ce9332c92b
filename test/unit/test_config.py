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

import json.decoder
import pathlib

import jsonschema.exceptions
import pytest

from josecrypt.config import JoseCryptConfig
from josecrypt.exceptions import JoseCryptConfigError, KeyManagementAlgorithmMismatch
from josecrypt.jwe import JWE
from josecrypt.jws import JWS


def test_parsing_fails_on_invalid_json_on_input(tmp_path):
    config_path: pathlib.Path = tmp_path / "config.json"
    config_path.write_text("x")
    with pytest.raises(json.decoder.JSONDecodeError):
        JoseCryptConfig.parse(config_path, "")


def test_parsing_fails_on_invalid_josecrypt_config_on_input(tmp_path):
    config_path: pathlib.Path = tmp_path / "config.json"
    config_path.write_text("{}")
    with pytest.raises(jsonschema.exceptions.ValidationError):
        JoseCryptConfig.parse(config_path, "")


@pytest.mark.parametrize(
    "section, name, value",
    [("jwe", "alg", "A512KW"), ("jwe", "zip", "GZIP"), ("jws", "alg", "none")],
)
def test_parsing_fails_on_unsupported_algorithm_in_profile(
    tmp_path, valid_config_dict, section, name, value
):
    valid_config_dict["profiles"]["test"][section][name] = value
    config_path: pathlib.Path = tmp_path / "config.json"
    config_path.write_text(json.dumps(valid_config_dict))
    with pytest.raises(jsonschema.exceptions.ValidationError):
        JoseCryptConfig.parse(config_path, "test")


def test_parsing_fails_on_missing_profile_in_josecrypt_config(tmp_path, valid_config_dict):
    profile_id = "xxx"
    assert profile_id not in valid_config_dict["profiles"]

    config_path: pathlib.Path = tmp_path / "config.json"
    config_path.write_text(json.dumps(valid_config_dict))

    with pytest.raises(
        JoseCryptConfigError,
        match=f"Failed to find '{profile_id}' in 'profiles' in '{config_path}'",
    ):
        JoseCryptConfig.parse(config_path, profile_id)


def test_parsing_valid_config_succeeds(valid_config_path):
    config = JoseCryptConfig.parse(valid_config_path, "test")
    assert isinstance(config, JoseCryptConfig)


def test_retrieving_config_encryption_settings(valid_config):
    assert valid_config.get_encryption_algorithm() == "RSA-OAEP"
    assert valid_config.get_encryption_encryption() == "A256CBC-HS512"
    assert valid_config.get_encryption_key_id() == "josecrypt-test-rsa"
    assert valid_config.get_compression_algorithm() == "DEF"


def test_retrieving_config_signing_settings(valid_config):
    assert valid_config.get_signing_algorithm() == "RS256"
    assert valid_config.get_signing_key_id() == "josecrypt-test-rsa"


def test_creating_headers_from_profile(valid_config):
    assert valid_config.create_jwe_header(cty="JWT").parameters == {
        "alg": "RSA-OAEP",
        "enc": "A256CBC-HS512",
        "kid": "josecrypt-test-rsa",
        "zip": "DEF",
        "cty": "JWT",
    }
    assert valid_config.create_jws_header().parameters == {
        "alg": "RS256",
        "kid": "josecrypt-test-rsa",
    }


@pytest.mark.parametrize("profile_id", ["test", "symmetric", "ec"])
def test_encrypting_and_decrypting_with_profile(valid_config_path, profile_id):
    config = JoseCryptConfig.parse(valid_config_path, profile_id)
    token = JWE.encrypt(
        config.create_jwe_header(), b"payload" * 10, config.create_encrypter()
    ).serialize()
    assert JWE.deserialize(token).decrypt(config.create_decrypter()) == b"payload" * 10


@pytest.mark.parametrize("profile_id", ["test", "symmetric", "ec"])
def test_signing_and_verifying_with_profile(valid_config_path, profile_id):
    config = JoseCryptConfig.parse(valid_config_path, profile_id)
    token = JWS.sign(config.create_jws_header(), b"payload", config.create_signer()).serialize()
    assert JWS.deserialize(token).is_valid(config.create_verifier())


def test_decrypting_with_other_profile_fails(valid_config_path):
    config = JoseCryptConfig.parse(valid_config_path, "symmetric")
    token = JWE.encrypt(
        config.create_jwe_header(), b"payload", config.create_encrypter()
    ).serialize()
    other_config = JoseCryptConfig.parse(valid_config_path, "test")
    with pytest.raises(KeyManagementAlgorithmMismatch):
        JWE.deserialize(token).decrypt(other_config.create_decrypter())


def test_profile_without_encryption_section_fails(valid_config_path):
    config = JoseCryptConfig.parse(valid_config_path, "signing-only")
    with pytest.raises(
        JoseCryptConfigError,
        match=f"^Profile in '{valid_config_path}' has no 'jwe' section",
    ):
        config.create_encrypter()


def test_retrieving_encryption_key_without_definition_in_keys_section_fails(
    tmp_path, valid_config_dict
):
    key_id = "josecrypt-test-rsa"
    del valid_config_dict["keys"][key_id]
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps(valid_config_dict))

    config = JoseCryptConfig.parse(config_path, "test")
    with pytest.raises(
        JoseCryptConfigError,
        match=f"Failed to find '{key_id}' in 'keys' in '{config_path}'",
    ):
        config.create_encrypter()
