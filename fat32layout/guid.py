"""
fat32layout/guid.py

Microsoft style GUIDs.

A GUID holds the same 128 bits as a UUID, but its first three fields are
serialized little-endian on disk while the string form prints them as plain
big-endian hex numbers. The last eight bytes (data4) are never swapped.
"""
import io
import uuid

from fat32layout import logger
from fat32layout.contracts import contract
from fat32layout.errors import GuidDataInvalidSizeError, GuidStringBadError
from fat32layout.utils import check_uint, check_blob, buffer_size

GUID_BINARY_SIZE = 16
# 36 visible characters and the NUL terminator
GUID_STRING_SIZE = 37
GUID_DIGIT_COUNT = 32
GUID_HYPHEN_OFFSETS = (8, 13, 18, 23)

HEX_DIGITS = frozenset('0123456789abcdefABCDEF')


class GUID:
    def __init__(self, data1:int = 0, data2:int = 0, data3:int = 0, data4:bytes = bytes(8)):
        self.data1 = check_uint('data1', data1, 32)
        self.data2 = check_uint('data2', data2, 16)
        self.data3 = check_uint('data3', data3, 16)
        self.data4 = check_blob('data4', data4, 8)

    @staticmethod
    def from_string(s:str) -> "GUID":
        return guid_from_string(s)

    @staticmethod
    def from_bytes(data:bytes) -> "GUID":
        return guid_from_binary(data)

    @staticmethod
    def from_buffer(buff:io.BytesIO) -> "GUID":
        return guid_from_binary(buff.read(GUID_BINARY_SIZE))

    @staticmethod
    def from_uuid(u:uuid.UUID) -> "GUID":
        return guid_from_binary(u.bytes_le)

    def to_bytes(self) -> bytes:
        return guid_to_binary(self)

    def to_uuid(self) -> uuid.UUID:
        return uuid.UUID(bytes_le=self.to_bytes())

    def __eq__(self, other):
        if not isinstance(other, GUID):
            return NotImplemented
        return (self.data1, self.data2, self.data3, self.data4) == \
            (other.data1, other.data2, other.data3, other.data4)

    def __hash__(self):
        return hash((self.data1, self.data2, self.data3, self.data4))

    def __repr__(self):
        return 'GUID(%s)' % guid_to_string(self)

    def __str__(self):
        return guid_to_string(self)


def _is_guid(result, *args, **kwargs):
    return isinstance(result, GUID)

def _string_terminated(result, dest, guid):
    written = bytes(memoryview(dest).cast('B')[:GUID_STRING_SIZE])
    if written[-1] != 0:
        return False
    return all(written[i] == ord('-') for i in GUID_HYPHEN_OFFSETS)

def _binary_round_trips(result, dest, guid):
    return guid_from_binary(bytes(dest)) == guid


@contract(ensures=_is_guid, raises=(GuidStringBadError,))
def guid_from_string(s) -> GUID:
    """Parses a GUID from its string form.

    Every hex digit in `s` is collected and everything else is skipped, so the
    position of hyphens (or any other separator) is not checked, only that
    exactly 32 digits are present. Scanning stops at a NUL character, which
    lets a terminated buffer written by `guid_write_to_string` be parsed back.
    """
    if isinstance(s, (bytes, bytearray, memoryview)):
        s = bytes(s).decode('latin-1')

    digits = []
    for c in s:
        if c == '\x00':
            break
        if c not in HEX_DIGITS:
            continue
        if len(digits) == GUID_DIGIT_COUNT:
            logger.debug('[GUID] Too many hex digits in %r' % s)
            raise GuidStringBadError('More than %d hex digits' % GUID_DIGIT_COUNT)
        digits.append(c)

    if len(digits) != GUID_DIGIT_COUNT:
        logger.debug('[GUID] Expected %d hex digits, found %d' % (GUID_DIGIT_COUNT, len(digits)))
        raise GuidStringBadError('Expected %d hex digits, found %d' % (GUID_DIGIT_COUNT, len(digits)))

    digits = ''.join(digits)
    return GUID(
        int(digits[0:8], 16),
        int(digits[8:12], 16),
        int(digits[12:16], 16),
        bytes.fromhex(digits[16:32]),
    )


@contract(ensures=_is_guid, raises=(GuidDataInvalidSizeError,))
def guid_from_binary(data) -> GUID:
    """Parses a GUID from exactly 16 bytes of mixed-endian binary data."""
    data = bytes(data)
    if len(data) != GUID_BINARY_SIZE:
        logger.debug('[GUID] Binary data must be %d bytes, got %d' % (GUID_BINARY_SIZE, len(data)))
        raise GuidDataInvalidSizeError('Expected %d bytes, got %d' % (GUID_BINARY_SIZE, len(data)))
    return GUID(
        int.from_bytes(data[0:4], 'little'),
        int.from_bytes(data[4:6], 'little'),
        int.from_bytes(data[6:8], 'little'),
        data[8:16],
    )


def guid_to_binary(guid:GUID) -> bytes:
    dest = bytearray(GUID_BINARY_SIZE)
    guid_write_to_binary(dest, guid)
    return bytes(dest)


@contract(ensures=_binary_round_trips, raises=(GuidDataInvalidSizeError,))
def guid_write_to_binary(dest, guid:GUID):
    """Writes `guid` into `dest`, which must be exactly 16 bytes long.

    `dest` is left untouched when its size is wrong.
    """
    size = buffer_size(dest)
    if size != GUID_BINARY_SIZE:
        logger.debug('[GUID] Destination must be %d bytes, got %d' % (GUID_BINARY_SIZE, size))
        raise GuidDataInvalidSizeError('Expected %d bytes, got %d' % (GUID_BINARY_SIZE, size))
    data = guid.data1.to_bytes(4, 'little') \
        + guid.data2.to_bytes(2, 'little') \
        + guid.data3.to_bytes(2, 'little') \
        + guid.data4
    memoryview(dest).cast('B')[:] = data


def guid_to_string(guid:GUID) -> str:
    return '%08x-%04x-%04x-%02x%02x-%02x%02x%02x%02x%02x%02x' % (
        guid.data1, guid.data2, guid.data3, *guid.data4
    )


@contract(ensures=_string_terminated, raises=(GuidStringBadError,))
def guid_write_to_string(dest, guid:GUID):
    """Writes the 36 character lowercase string form of `guid` and a NUL
    terminator to the start of `dest`, which must hold at least 37 bytes.

    Bytes past the terminator are not touched, nor is `dest` when it is too
    small.
    """
    size = buffer_size(dest)
    if size < GUID_STRING_SIZE:
        logger.debug('[GUID] String buffer must hold %d bytes, got %d' % (GUID_STRING_SIZE, size))
        raise GuidStringBadError('Buffer of %d bytes cannot hold a GUID string' % size)
    memoryview(dest).cast('B')[:GUID_STRING_SIZE] = guid_to_string(guid).encode('ascii') + b'\x00'
