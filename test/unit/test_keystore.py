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

import json

import pytest

from josecrypt.config import JoseCryptConfig
from josecrypt.exceptions import JoseCryptConfigError
from josecrypt.jwk import ECKey, RSAKey, SymmetricKey
from josecrypt.keystore import KeyStore


def test_retrieving_private_key_by_key_id(valid_config_path):
    key_store: KeyStore = JoseCryptConfig.parse(valid_config_path, None)
    key = key_store.get_private_key("josecrypt-test-rsa")
    assert isinstance(key, RSAKey)
    assert key.is_private
    assert key.kid == "josecrypt-test-rsa"


def test_retrieving_public_key_by_key_id(key_store):
    key = key_store.get_public_key("josecrypt-test-rsa")
    assert isinstance(key, RSAKey)
    assert not key.is_private


def test_retrieving_key_with_kid_differing_from_key_id(key_store):
    key = key_store.get_public_key("josecrypt-test-ec")
    assert isinstance(key, ECKey)
    assert key.kid == "josecrypt-test-ec-bob"
    assert "d" not in key


def test_retrieving_public_part_of_symmetric_key_returns_the_key(key_store):
    key = key_store.get_public_key("josecrypt-test-kw")
    assert isinstance(key, SymmetricKey)
    assert key == key_store.get_private_key("josecrypt-test-kw")


def test_retrieving_key_without_definition_in_keys_section_fails(key_store, valid_config_path):
    with pytest.raises(
        JoseCryptConfigError,
        match=f"^Failed to find 'missing' in 'keys' in '{valid_config_path}'",
    ):
        key_store.get_private_key("missing")


def test_retrieving_key_missing_from_jwk_set_fails(valid_config_dict, tmp_path):
    valid_config_dict["keys"]["josecrypt-test-ec"]["kid"] = "missing"
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps(valid_config_dict))

    key_store: KeyStore = JoseCryptConfig.parse(config_path, None)

    with pytest.raises(
        JoseCryptConfigError, match="^Failed to find key 'josecrypt-test-ec' in JWK Set"
    ):
        key_store.get_public_key("josecrypt-test-ec")


def test_retrieving_private_key_from_public_jwk_set_fails(valid_config_dict, tmp_path, jwk_set, monkeypatch):
    keys_path = tmp_path / "keys"
    keys_path.mkdir()
    public_set = {"keys": [jwk_set.get("josecrypt-test-rsa").public_jwk().to_dict()]}
    (keys_path / "public.json").write_text(json.dumps(public_set))
    monkeypatch.setenv("JOSECRYPT_KEYSDIR", str(keys_path))

    valid_config_dict["keys"]["josecrypt-test-rsa"]["jwks"] = "public.json"
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps(valid_config_dict))

    key_store: KeyStore = JoseCryptConfig.parse(config_path, None)
    assert not key_store.get_public_key("josecrypt-test-rsa").is_private
    with pytest.raises(
        JoseCryptConfigError,
        match=f"^Key 'josecrypt-test-rsa' in '{config_path}' has no private part",
    ):
        key_store.get_private_key("josecrypt-test-rsa")


def test_parsing_config_with_absolute_jwks_path_fails(valid_config_dict, tmp_path):
    valid_config_dict["keys"]["josecrypt-test-kw"]["jwks"] = "/keys/test/jwks-test.json"
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps(valid_config_dict))

    with pytest.raises(
        JoseCryptConfigError,
        match="^Invalid configuration for key 'josecrypt-test-kw' - jwks path must be relative to the keys directory",
    ):
        JoseCryptConfig.parse(config_path, "test")


def test_keys_directory_defaults_to_root_keys(monkeypatch):
    monkeypatch.delenv("JOSECRYPT_KEYSDIR")
    assert str(KeyStore.get_root_path()) == "/keys"
