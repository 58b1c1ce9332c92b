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
import os
import pathlib

from .exceptions import JoseCryptConfigError
from .jwk import JWKSet, SymmetricKey

logger = logging.getLogger(__name__)


class KeyStore:
    @staticmethod
    def get_root_path():
        return pathlib.Path(os.environ.get("JOSECRYPT_KEYSDIR", "/keys"))

    def __init__(self, config_path: pathlib.Path, keys_mapping: dict):
        self._config_path = config_path
        self._keys_mapping = keys_mapping
        self._root_path = KeyStore.get_root_path()
        self._validate()

    def get_key(self, key_id: str):
        keys_info = self._get_keys_info(key_id)
        jwks_path = self._root_path / keys_info["jwks"]
        logger.debug(f"Loading key '{key_id}' from '{jwks_path}'")
        jwk_set = JWKSet.from_json(jwks_path.read_text())
        key = jwk_set.get(keys_info.get("kid", key_id))
        if key is None:
            raise JoseCryptConfigError(
                f"Failed to find key '{key_id}' in JWK Set '{jwks_path}'"
            )
        return key

    def get_private_key(self, key_id: str):
        key = self.get_key(key_id)
        if not key.is_private:
            raise JoseCryptConfigError(
                f"Key '{key_id}' in '{self._config_path}' has no private part"
            )
        return key

    def get_public_key(self, key_id: str):
        key = self.get_key(key_id)
        if isinstance(key, SymmetricKey):
            return key
        return key.public_jwk()

    def _get_keys_info(self, key_id):
        keys_info = self._keys_mapping.get(key_id)
        if keys_info is None:
            raise JoseCryptConfigError(
                f"Failed to find '{key_id}' in 'keys' in '{self._config_path}'"
            )
        return keys_info

    def _validate(self):
        for key_id, key_info in self._keys_mapping.items():
            if pathlib.PurePath(key_info["jwks"]).is_absolute():
                raise JoseCryptConfigError(
                    f"Invalid configuration for key '{key_id}' - jwks path must be relative to the keys directory"
                )
