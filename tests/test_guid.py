import io
import uuid

import pytest
from config import *

from fat32layout.errors import GuidDataInvalidSizeError, GuidStringBadError, Status
from fat32layout.guid import GUID, guid_from_string, guid_from_binary, guid_to_binary, \
    guid_to_string, guid_write_to_binary, guid_write_to_string, GUID_STRING_SIZE


def test_guid_from_string():
    guid = guid_from_string(GUID_STRING)
    assert guid.data1 == GUID_FIELDS[0]
    assert guid.data2 == GUID_FIELDS[1]
    assert guid.data3 == GUID_FIELDS[2]
    assert guid.data4 == GUID_FIELDS[3]

def test_guid_from_string_uppercase():
    assert guid_from_string(GUID_STRING.upper()) == GUID(*GUID_FIELDS)

def test_guid_from_string_ignores_separators():
    # only the digit count matters, not where the hyphens are
    assert guid_from_string(GUID_STRING.replace('-', '')) == GUID(*GUID_FIELDS)
    assert guid_from_string('{' + GUID_STRING + '}') == GUID(*GUID_FIELDS)
    assert guid_from_string('dd-59d73bed164a2d813148d1fe45b0-08') == GUID(*GUID_FIELDS)

def test_guid_from_string_too_few_digits():
    with pytest.raises(GuidStringBadError) as e:
        guid_from_string(GUID_STRING[:-1])
    assert e.value.status == Status.GUID_STRING_BAD

def test_guid_from_string_too_many_digits():
    with pytest.raises(GuidStringBadError):
        guid_from_string(GUID_STRING + '0')

def test_guid_from_string_empty():
    with pytest.raises(GuidStringBadError):
        guid_from_string('')

def test_guid_from_string_stops_at_nul():
    assert guid_from_string(GUID_STRING + '\x00ffff') == GUID(*GUID_FIELDS)
    assert guid_from_string(GUID_STRING.encode('ascii') + b'\x00\xa5\xa5') == GUID(*GUID_FIELDS)

def test_guid_from_binary():
    guid = guid_from_binary(GUID_BINARY)
    assert str(guid) == GUID_BINARY_STRING

def test_guid_from_binary_small_size():
    with pytest.raises(GuidDataInvalidSizeError) as e:
        guid_from_binary(bytes(4))
    assert e.value.status == Status.GUID_DATA_INVALID_SIZE

def test_guid_from_binary_large_size():
    with pytest.raises(GuidDataInvalidSizeError):
        guid_from_binary(bytes(17))

def test_guid_write_to_binary():
    guid = guid_from_string(GUID_BINARY_STRING)
    dest = bytearray(16)
    guid_write_to_binary(dest, guid)
    assert dest == GUID_BINARY

def test_guid_write_to_binary_wrong_size():
    guid = guid_from_string(GUID_BINARY_STRING)
    for size in [0, 15, 17, 32]:
        dest = bytearray(b'\xa5' * size)
        with pytest.raises(GuidDataInvalidSizeError):
            guid_write_to_binary(dest, guid)
        assert dest == b'\xa5' * size

def test_guid_write_to_binary_read_only():
    with pytest.raises(TypeError):
        guid_write_to_binary(bytes(16), GUID())

def test_guid_write_noncontiguous_dest():
    buff = bytearray(b'\xa5' * 80)
    with memoryview(buff) as view:
        with pytest.raises(TypeError):
            guid_write_to_binary(view[:32:2], GUID())
        with pytest.raises(TypeError):
            guid_write_to_string(view[::2], GUID())
    assert buff == b'\xa5' * 80

def test_guid_to_binary():
    assert guid_to_binary(guid_from_string(GUID_BINARY_STRING)) == GUID_BINARY

def test_guid_to_string():
    assert guid_to_string(GUID(*GUID_FIELDS)) == GUID_STRING

def test_guid_to_string_zero_padding():
    guid = GUID(1, 2, 3, bytes([0, 1, 2, 3, 4, 5, 6, 7]))
    assert guid_to_string(guid) == '00000001-0002-0003-0001-020304050607'

def test_guid_write_to_string():
    dest = bytearray(b'\xa5' * 40)
    guid_write_to_string(dest, GUID(*GUID_FIELDS))
    assert dest[:36] == GUID_STRING.encode('ascii')
    assert dest[36] == 0
    assert dest[37:] == b'\xa5' * 3

def test_guid_write_to_string_small_buffer():
    dest = bytearray(b'\xa5' * (GUID_STRING_SIZE - 1))
    with pytest.raises(GuidStringBadError):
        guid_write_to_string(dest, GUID(*GUID_FIELDS))
    assert dest == b'\xa5' * (GUID_STRING_SIZE - 1)

def test_guid_string_buffer_round_trip():
    dest = bytearray(64)
    guid = GUID(*GUID_FIELDS)
    guid_write_to_string(dest, guid)
    assert guid_from_string(dest) == guid

def test_guid_binary_round_trip():
    guid = GUID(*GUID_FIELDS)
    assert guid_from_binary(guid_to_binary(guid)) == guid

def test_guid_class_helpers():
    guid = GUID.from_string(GUID_BINARY_STRING)
    assert guid.to_bytes() == GUID_BINARY
    assert GUID.from_bytes(GUID_BINARY) == guid
    assert GUID.from_buffer(io.BytesIO(GUID_BINARY + b'trailing')) == guid
    assert repr(guid) == 'GUID(%s)' % GUID_BINARY_STRING

def test_guid_uuid_interop():
    u = uuid.UUID(GUID_BINARY_STRING)
    assert u.bytes_le == GUID_BINARY
    guid = GUID.from_uuid(u)
    assert str(guid) == str(u)
    assert guid.to_uuid() == u

def test_guid_equality_and_hash():
    a = GUID(*GUID_FIELDS)
    b = guid_from_string(GUID_STRING)
    assert a == b
    assert hash(a) == hash(b)
    assert a != GUID()
    assert a != GUID_STRING
    assert len({a, b}) == 1

def test_guid_default_is_zero():
    assert str(GUID()) == '00000000-0000-0000-0000-000000000000'
    assert GUID().to_bytes() == bytes(16)

def test_guid_field_widths():
    with pytest.raises(ValueError):
        GUID(data1=0x100000000)
    with pytest.raises(ValueError):
        GUID(data2=0x10000)
    with pytest.raises(ValueError):
        GUID(data3=-1)
    with pytest.raises(ValueError):
        GUID(data4=bytes(7))
    with pytest.raises(TypeError):
        GUID(data1='1')
