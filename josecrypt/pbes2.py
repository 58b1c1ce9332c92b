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

from .algorithms import KeyManagementAlgorithm
from .exceptions import InvalidHeaderParameterValue, UnsupportedAlgorithm
from .primitives import pbkdf2
from .utils import get_int_from_environment

logger = logging.getLogger(__name__)

DEFAULT_SALT_INPUT_LENGTH = 8
DEFAULT_ITERATION_COUNT = 1000
DEFAULT_MAX_ITERATION_COUNT = 1000000


def get_default_iteration_count() -> int:
    return get_int_from_environment(
        "JOSECRYPT_PBES2_ITERATION_COUNT", DEFAULT_ITERATION_COUNT
    )


def get_default_salt_input_length() -> int:
    return get_int_from_environment(
        "JOSECRYPT_PBES2_SALT_INPUT_LENGTH", DEFAULT_SALT_INPUT_LENGTH
    )


def get_max_iteration_count() -> int:
    return get_int_from_environment(
        "JOSECRYPT_PBES2_MAX_ITERATION_COUNT", DEFAULT_MAX_ITERATION_COUNT
    )


def _check_algorithm(algorithm: KeyManagementAlgorithm):
    if not algorithm.is_pbes2:
        raise UnsupportedAlgorithm(f"'{algorithm.value}' is not a PBES2 algorithm")


def salt_input_length(configured_length) -> int:
    """Salt input lengths not above the default silently fall back to it."""
    if configured_length is None or configured_length <= DEFAULT_SALT_INPUT_LENGTH:
        if configured_length is not None and configured_length != DEFAULT_SALT_INPUT_LENGTH:
            logger.debug(
                f"PBES2 salt input length {configured_length} out of range, using {DEFAULT_SALT_INPUT_LENGTH}"
            )
        return DEFAULT_SALT_INPUT_LENGTH
    return configured_length


def full_salt(algorithm: KeyManagementAlgorithm, salt_input: bytes) -> bytes:
    # RFC 7518 section 4.8.1.1
    return algorithm.value.encode("utf-8") + b"\x00" + salt_input


def derive_wrapping_key(
    password: bytes,
    algorithm: KeyManagementAlgorithm,
    salt_input: bytes,
    iteration_count: int,
) -> bytes:
    _check_algorithm(algorithm)
    if iteration_count < 1:
        raise InvalidHeaderParameterValue("p2c", "iteration count must be positive")
    wrap_algorithm = algorithm.key_wrap_algorithm
    return pbkdf2(
        password,
        full_salt(algorithm, salt_input),
        iteration_count,
        wrap_algorithm.key_encryption_key_length,
        algorithm.pbes2_hash_algorithm,
    )
