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
from cryptography.hazmat.primitives.asymmetric import ec, rsa

from josecrypt.algorithms import ECCurveType
from josecrypt.exceptions import (
    CompressedCurvePointsUnsupported,
    InvalidCurvePointOctetLength,
    InvalidCurveType,
    JWKParameterError,
    WrongKeyType,
)
from josecrypt.jwk import JWK, ECKey, JWKSet, RSAKey, SymmetricKey
from josecrypt.utils import base64url_encode

# RFC 7638 section 3.1
THUMBPRINT_KEY = {
    "kty": "RSA",
    "n": (
        "0vx7agoebGcQSuuPiLJXZptN9nndrQmbXEps2aiAFbWhM78LhWx4cbbfAAtVT86zwu1RK7aPFFxuhDR1L6tSoc_BJECP"
        "ebWKRXjBZCiFV4n3oknjhMstn64tZ_2W-5JsGY4Hc5n9yBXArwl93lqt7_RN5w6Cf0h4QyQ5v-65YGjQR0_FDW2QvzqY"
        "368QQMicAtaSqzs8KJZgnYb9c7d0zgdAZHzu6qMQvRL5hajrn1n91CbOpbISD08qNLyrdkt-bFTWhAI4vMQFh6WeZu0f"
        "M4lFd2NcRwr3XPksINHaQ-G_xBniIqbw0Ls1jF44-csFCur-kEgU8awapJzKnqDKgw"
    ),
    "e": "AQAB",
    "alg": "RS256",
    "kid": "2011-04-29",
}


def test_thumbprint():
    key = JWK.from_dict(THUMBPRINT_KEY)
    assert key.thumbprint() == "NzbLsXh8uDCcd-6MNwXF4W_7noWXFZAfHkxZsRGC9Xs"


def test_thumbprint_ignores_private_and_optional_parameters(rsa_jwk):
    assert rsa_jwk.thumbprint() == rsa_jwk.public_jwk().thumbprint()


def test_parsing_dispatches_by_key_type(rsa_jwk, ec_jwk, kw_jwk):
    assert isinstance(rsa_jwk, RSAKey)
    assert isinstance(ec_jwk, ECKey)
    assert isinstance(kw_jwk, SymmetricKey)
    assert ec_jwk.curve_type is ECCurveType.P256
    assert len(kw_jwk.key_bytes()) == 16


@pytest.mark.parametrize(
    "parameters",
    [
        {"kty": "OKP", "crv": "Ed25519", "x": "AA"},
        {"kty": "RSA", "e": "AQAB"},
        {"kty": "EC", "crv": "P-256", "x": "AA"},
        {"kty": "oct"},
        {"kid": "no-key-type"},
        {"kty": "oct", "k": 1},
    ],
)
def test_parsing_invalid_jwk_fails(parameters):
    with pytest.raises(JWKParameterError):
        JWK.from_dict(parameters)


def test_parsing_jwk_with_invalid_base64url_fails():
    with pytest.raises(JWKParameterError, match="^JWK parameter 'k' is not valid Base64URL"):
        JWK.from_dict({"kty": "oct", "k": "a+b/"})


def test_parsing_jwk_that_is_not_json_fails():
    with pytest.raises(JWKParameterError):
        JWK.from_json("{")


def test_ec_coordinates_with_wrong_length_fail(ec_jwk):
    parameters = ec_jwk.public_jwk().to_dict()
    parameters["x"] = base64url_encode(bytes(31))
    with pytest.raises(InvalidCurvePointOctetLength):
        JWK.from_dict(parameters)


def test_ec_key_on_unsupported_curve_fails():
    with pytest.raises(InvalidCurveType, match="^Unsupported curve 'P-192'"):
        JWK.from_dict({"kty": "EC", "crv": "P-192", "x": "AA", "y": "AA"})


def test_public_jwk_drops_private_parameters(rsa_jwk, ec_jwk):
    assert rsa_jwk.is_private
    public = rsa_jwk.public_jwk()
    assert not public.is_private
    assert set(public.to_dict()) == {"kty", "kid", "use", "n", "e"}

    assert ec_jwk.is_private
    assert "d" not in ec_jwk.public_jwk()


def test_symmetric_key_has_no_public_part(kw_jwk):
    assert kw_jwk.is_private
    with pytest.raises(WrongKeyType):
        kw_jwk.public_jwk()


def test_converting_to_and_from_cryptography_keys(rsa_jwk, ec_jwk):
    private_key = rsa_jwk.private_key()
    assert isinstance(private_key, rsa.RSAPrivateKey)
    converted = RSAKey.from_cryptography(private_key, kid=rsa_jwk.kid)
    assert converted.kid == rsa_jwk.kid
    assert converted.thumbprint() == rsa_jwk.thumbprint()
    assert converted.private_key().private_numbers() == private_key.private_numbers()

    public_key = ec_jwk.public_key()
    assert isinstance(public_key, ec.EllipticCurvePublicKey)
    assert ECKey.from_cryptography(public_key, kid=ec_jwk.kid) == ec_jwk.public_jwk()
    assert ECKey.from_cryptography(ec_jwk.private_key()).is_private


def test_rsa_private_key_without_prime_factors(rsa_jwk):
    parameters = rsa_jwk.to_dict()
    for name in ("p", "q", "dp", "dq", "qi"):
        del parameters[name]
    key = JWK.from_dict(parameters)
    recovered = key.private_key().private_numbers()
    expected = rsa_jwk.private_key().private_numbers()
    assert recovered.d == expected.d
    assert {recovered.p, recovered.q} == {expected.p, expected.q}


def test_private_key_of_public_jwk_fails(rsa_jwk, ec_jwk):
    with pytest.raises(WrongKeyType):
        rsa_jwk.public_jwk().private_key()
    with pytest.raises(WrongKeyType):
        ec_jwk.public_jwk().private_key()


def test_sec1_encoding(ec_jwk):
    encoded = ec_jwk.to_sec1()
    assert len(encoded) == 65
    assert encoded[0] == 0x04
    assert ECKey.from_sec1(encoded, ECCurveType.P256, kid=ec_jwk.kid) == ec_jwk.public_jwk()


def test_compressed_sec1_points_are_unsupported(ec_jwk):
    compressed = b"\x02" + ec_jwk.to_sec1()[1:33]
    with pytest.raises(CompressedCurvePointsUnsupported):
        ECKey.from_sec1(compressed, ECCurveType.P256)


def test_sec1_point_of_wrong_length_fails(ec_jwk):
    with pytest.raises(InvalidCurvePointOctetLength):
        ECKey.from_sec1(ec_jwk.to_sec1(), ECCurveType.P384)


def test_loading_keys_from_pem(keys_path):
    key = JWK.from_pem((keys_path / "test" / "josecrypt-test-rsa-key.pem").read_text(), kid="rsa")
    assert isinstance(key, RSAKey)
    assert key.is_private
    assert key.kid == "rsa"

    public = JWK.from_pem((keys_path / "test" / "josecrypt-test-rsa-pubkey.pem").read_text())
    assert public.thumbprint() == key.thumbprint()
    assert not public.is_private

    ec_key = JWK.from_pem((keys_path / "test" / "josecrypt-test-ec-key.pem").read_bytes())
    assert isinstance(ec_key, ECKey)
    assert ec_key.is_private
    ec_public = JWK.from_pem((keys_path / "test" / "josecrypt-test-ec-pubkey.pem").read_bytes())
    assert ec_public.thumbprint() == ec_key.thumbprint()


def test_wrapping_unsupported_key_fails():
    with pytest.raises(WrongKeyType):
        JWK.from_key("not a key")


def test_jwk_json_round_trip(ec_jwk):
    assert JWK.from_json(ec_jwk.to_json()) == ec_jwk
    assert ec_jwk["d"] not in repr(ec_jwk)


def test_jwk_set(jwk_set):
    assert len(jwk_set) == 4
    assert [key.kid for key in jwk_set] == [
        "josecrypt-test-rsa",
        "josecrypt-test-ec-bob",
        "josecrypt-test-kw",
        "josecrypt-test-hmac",
    ]
    assert jwk_set.get("missing") is None
    assert JWKSet.from_json(jwk_set.to_json()).to_dict() == jwk_set.to_dict()


@pytest.mark.parametrize("text", ["[]", "{}", '{"keys": {}}'])
def test_jwk_set_without_keys_array_fails(text):
    with pytest.raises(JWKParameterError, match="^JWK Set must contain a 'keys' array"):
        JWKSet.from_json(text)


def test_jwk_set_with_invalid_key_fails():
    with pytest.raises(JWKParameterError):
        JWKSet.from_dict({"keys": [{"kty": "oct"}]})
    assert json.loads(JWKSet().to_json()) == {"keys": []}
