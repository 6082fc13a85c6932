"""
 * Python API for the Oasis app of Ledger hardware wallets
 *
 * Copyright 2024 The pyoasisledger developers
 *
 * Licensed under the Apache License, Version 2.0 (the "License");
 * you may not use this file except in compliance with the License.
 * You may obtain a copy of the License at
 *
 *      http://www.apache.org/licenses/LICENSE-2.0
 *
 * Unless required by applicable law or agreed to in writing, software
 * distributed under the License is distributed on an "AS IS" BASIS,
 * WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
 * See the License for the specific language governing permissions and
 * limitations under the License.
"""
import logging
from collections import namedtuple
from struct import pack
from typing import List, Tuple

from .LedgerConstants import LedgerConstants

logger = logging.getLogger(__name__)


class InvalidPathError(ValueError):
    """Raised when a derivation path is malformed"""
    pass

class PayloadTooLargeError(ValueError):
    """Raised when the signing context does not fit its one byte length prefix"""
    pass


VersionInfo = namedtuple('VersionInfo', ['mode', 'major', 'minor', 'patch'])
VersionInfo.__doc__ = "Identity of the Oasis app: app mode and (major, minor, patch) version."

def version_str(version: VersionInfo) -> str:
    return f"{version.major}.{version.minor}.{version.patch}"


###########################################
#            Derivation paths             #
###########################################

def parse_bip44path(bip44path: str) -> List[int]:
    """Parse a textual path such as m/44'/474'/0'/0'/0' into its 5 indices.

    Hardened components may be marked with ', h or H.
    """
    splitPath = bip44path.split('/')
    splitPath = [x.strip() for x in splitPath if x.strip()] # removes empty values
    if splitPath and splitPath[0] in ('m', 'M'):
        splitPath = splitPath[1:]

    path = []
    for index in splitPath:
        hardened = index[-1] in ("'", "h", "H")
        digits = index[:-1] if hardened else index
        if not digits.isdigit():
            raise InvalidPathError(f"Invalid path component: {index!r}")
        value = int(digits)
        if value >= LedgerConstants.HARDENED:
            raise InvalidPathError(f"Path component out of range: {index!r}")
        path.append(value | LedgerConstants.HARDENED if hardened else value)

    if len(path) != LedgerConstants.PATH_LENGTH:
        raise InvalidPathError(f"Path should contain {LedgerConstants.PATH_LENGTH} elements, got {len(path)}")
    return path

def bip44path2bytes(bip44path: List[int], harden_count: int) -> bytes:
    """Encode a 5 element BIP44 path the way the device expects it.

    Each index is a little-endian uint32. The hardened bit is forced on the
    first `harden_count` indices, the remaining ones are left as given.
    """
    if len(bip44path) != LedgerConstants.PATH_LENGTH:
        raise InvalidPathError(f"Path should contain {LedgerConstants.PATH_LENGTH} elements")
    if not 0 <= harden_count <= LedgerConstants.PATH_LENGTH:
        raise InvalidPathError(f"Harden count should be between 0 and {LedgerConstants.PATH_LENGTH}")

    pathBytes = b''
    for position, index in enumerate(bip44path):
        if not isinstance(index, int) or not 0 <= index <= 0xFFFFFFFF:
            raise InvalidPathError(f"Path element {position} is not an unsigned 32-bit integer: {index!r}")
        if position < harden_count:
            index |= LedgerConstants.HARDENED
        pathBytes += pack("<I", index)
    return pathBytes


###########################################
#             Payload chunks              #
###########################################

def prepare_chunks(path_bytes: bytes, context: bytes, transaction: bytes,
                    chunk_size: int = LedgerConstants.USER_MESSAGE_CHUNK_SIZE) -> List[bytes]:
    """Split a sign request into the chunks sent one APDU at a time.

    The first chunk holds the encoded path only. The following ones carry
    [len(context) | context | transaction], chunk_size bytes at most.
    """
    if len(context) > LedgerConstants.MAX_CONTEXT_SIZE:
        raise PayloadTooLargeError(f"Maximum supported context size is {LedgerConstants.MAX_CONTEXT_SIZE} bytes")
    if not 0 < chunk_size <= 0xFF:
        raise ValueError(f"Chunk size should be between 1 and 255, got {chunk_size}")

    body = bytes([len(context)]) + bytes(context) + bytes(transaction)
    chunks = [bytes(path_bytes)]
    for offset in range(0, len(body), chunk_size):
        chunks.append(body[offset:offset+chunk_size])
    logger.debug(f"prepare_chunks: {len(body)} bytes of data in {len(chunks)} chunks")
    return chunks

def chunk_tag(chunk_index: int, chunk_count: int) -> int:
    # a lone chunk is tagged as the first one
    if chunk_index == 0:
        return LedgerConstants.PAYLOAD_CHUNK_INIT
    if chunk_index == chunk_count-1:
        return LedgerConstants.PAYLOAD_CHUNK_LAST
    return LedgerConstants.PAYLOAD_CHUNK_ADD


###########################################
#                Responses                #
###########################################

def parse_version(response: bytes) -> VersionInfo:
    # response= [mode | major | minor | patch | ...]
    if len(response) < 4:
        raise ValueError(f"Version response too short: {len(response)} bytes")
    return VersionInfo(response[0], response[1], response[2], response[3])

def parse_address_pubkey(response: bytes) -> Tuple[bytes, str]:
    # response= [pubkey(32) | bech32 address]
    if len(response) < LedgerConstants.MIN_ADDRESS_RESPONSE_SIZE:
        raise ValueError(f"Address response too short: {len(response)} bytes")
    pubkey = bytes(response[0:LedgerConstants.PUBKEY_SIZE])
    address = bytes(response[LedgerConstants.PUBKEY_SIZE:]).decode('utf8', errors='replace')
    return pubkey, address

def is_version_supported(version: VersionInfo, minimum: Tuple[int, int, int]) -> bool:
    return (version.major, version.minor, version.patch) >= tuple(minimum)
