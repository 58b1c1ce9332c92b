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

"""Concat KDF (NIST SP 800-56A, single step) as profiled by RFC 7518 section 4.6.2."""

from cryptography.hazmat.primitives import hashes

from .utils import length_prefixed, uint32_be


def derive_key(
    hash_algorithm,
    shared_secret: bytes,
    key_data_length: int,
    algorithm_id: bytes,
    party_u_info: bytes,
    party_v_info: bytes,
    supp_pub_info: bytes,
    supp_priv_info: bytes = b"",
) -> bytes:
    """Derives `key_data_length` bits of key material.

    `algorithm_id`, `party_u_info` and `party_v_info` are expected already
    length prefixed, `supp_pub_info` and `supp_priv_info` are used verbatim.
    """
    other_info = algorithm_id + party_u_info + party_v_info + supp_pub_info + supp_priv_info
    key_data_bytes = (key_data_length + 7) // 8

    derived = b""
    counter = 1
    while len(derived) < key_data_bytes:
        digest = hashes.Hash(hash_algorithm())
        digest.update(uint32_be(counter))
        digest.update(shared_secret)
        digest.update(other_info)
        derived += digest.finalize()
        counter += 1

    return derived[:key_data_bytes]


def derive_ecdh_key(
    shared_secret: bytes,
    algorithm_name: str,
    key_data_length: int,
    apu: bytes = b"",
    apv: bytes = b"",
) -> bytes:
    """Concat KDF with the SHA-256 and OtherInfo layout used by ECDH-ES."""
    return derive_key(
        hashes.SHA256,
        shared_secret,
        key_data_length,
        length_prefixed(algorithm_name.encode("ascii")),
        length_prefixed(apu),
        length_prefixed(apv),
        uint32_be(key_data_length),
    )
