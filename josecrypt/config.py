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
import logging
import pathlib

import jsonschema

from .exceptions import JoseCryptConfigError
from .header import JWEHeader, JWSHeader
from .jwe import Decrypter, Encrypter
from .jws import Signer, Verifier
from .keystore import KeyStore
from .utils import load_schema


logger = logging.getLogger(__name__)


class JoseCryptConfig:
    @staticmethod
    def parse(config_path: pathlib.Path, profile_id: str):
        schema = JoseCryptConfig.get_schema()
        config = json.loads(config_path.read_text())

        jsonschema.validate(instance=config, schema=schema)

        key_store = KeyStore(config_path, config["keys"])

        if profile_id is not None:
            profile = config["profiles"].get(profile_id)
            if profile is None:
                raise JoseCryptConfigError(
                    f"Failed to find '{profile_id}' in 'profiles' in '{config_path}'"
                )
            logger.debug(f"Profile: {profile}")
            return JoseCryptConfig(config_path, profile, key_store)
        else:
            return key_store

    @staticmethod
    def get_schema():
        return load_schema("config-schema.json")

    def __init__(self, config_path, profile, key_store: KeyStore):
        self._config_path = config_path
        self._profile = profile
        self._key_store = key_store

    def _section(self, name):
        section = self._profile.get(name)
        if section is None:
            raise JoseCryptConfigError(
                f"Profile in '{self._config_path}' has no '{name}' section"
            )
        return section

    def get_encryption_algorithm(self):
        return self._section("jwe")["alg"]

    def get_encryption_encryption(self):
        return self._section("jwe")["enc"]

    def get_encryption_key_id(self):
        return self._section("jwe")["kid"]

    def get_compression_algorithm(self):
        return self._section("jwe").get("zip")

    def get_signing_algorithm(self):
        return self._section("jws")["alg"]

    def get_signing_key_id(self):
        return self._section("jws")["kid"]

    def create_jwe_header(self, **parameters) -> JWEHeader:
        header = {
            "alg": self.get_encryption_algorithm(),
            "enc": self.get_encryption_encryption(),
            "kid": self.get_encryption_key_id(),
        }
        if self.get_compression_algorithm() is not None:
            header["zip"] = self.get_compression_algorithm()
        header.update(parameters)
        return JWEHeader(header)

    def create_jws_header(self, **parameters) -> JWSHeader:
        header = {"alg": self.get_signing_algorithm(), "kid": self.get_signing_key_id()}
        header.update(parameters)
        return JWSHeader(header)

    def create_encrypter(self, **options) -> Encrypter:
        key = self._key_store.get_public_key(self.get_encryption_key_id())
        return Encrypter(
            self.get_encryption_algorithm(), self.get_encryption_encryption(), key, **options
        )

    def create_decrypter(self, **options) -> Decrypter:
        key = self._key_store.get_private_key(self.get_encryption_key_id())
        return Decrypter(
            self.get_encryption_algorithm(), self.get_encryption_encryption(), key, **options
        )

    def create_signer(self) -> Signer:
        key = self._key_store.get_private_key(self.get_signing_key_id())
        return Signer(self.get_signing_algorithm(), key)

    def create_verifier(self) -> Verifier:
        key = self._key_store.get_public_key(self.get_signing_key_id())
        return Verifier(self.get_signing_algorithm(), key)
