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

import zlib

from .algorithms import CompressionAlgorithm
from .exceptions import (
    CompressionAlgorithmNotSupported,
    CompressionFailed,
    DecompressionFailed,
)

# raw DEFLATE (RFC 1951), no zlib header or trailer
_DEFLATE_WBITS = -15


def parse_compression_algorithm(value):
    """Maps a `zip` header value to a CompressionAlgorithm, None when absent."""
    if value is None:
        return None
    try:
        return CompressionAlgorithm(value)
    except ValueError:
        raise CompressionAlgorithmNotSupported(value) from None


def compress(algorithm, data: bytes) -> bytes:
    if algorithm in (None, CompressionAlgorithm.NONE):
        return data
    try:
        compressor = zlib.compressobj(zlib.Z_DEFAULT_COMPRESSION, zlib.DEFLATED, _DEFLATE_WBITS)
        return compressor.compress(data) + compressor.flush()
    except zlib.error as error:
        raise CompressionFailed(str(error)) from error


def decompress(algorithm, data: bytes) -> bytes:
    if algorithm in (None, CompressionAlgorithm.NONE):
        return data
    try:
        decompressor = zlib.decompressobj(_DEFLATE_WBITS)
        return decompressor.decompress(data) + decompressor.flush()
    except zlib.error as error:
        raise DecompressionFailed(str(error)) from error
