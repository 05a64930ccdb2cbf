"""
fat32layout/crc.py

Table-driven reflected CRC-32 (CRC-32/ISO-HDLC, the gzip/zlib CRC).
"""
from cachetools import cached

from fat32layout.contracts import contract

CRC32_POLYNOMIAL = 0xEDB88320
CRC32_MASK = 0xFFFFFFFF


@cached(cache={})
def crc32_table() -> tuple:
    """Returns the 256-entry lookup table, computed once per process."""
    table = []
    for i in range(256):
        c = i
        for _ in range(8):
            if c & 1:
                c = CRC32_POLYNOMIAL ^ (c >> 1)
            else:
                c = c >> 1
        table.append(c)
    return tuple(table)


@contract(ensures=lambda result, *args, **kwargs: 0 <= result <= CRC32_MASK)
def crc32(data, value:int = 0) -> int:
    """Calculates the CRC-32 of `data`.

    :param data: contiguous bytes-like object, may be empty
    :param value: CRC of the preceding data when checksumming in pieces
    :returns: the CRC-32 as an unsigned 32 bit int
    """
    table = crc32_table()
    register = (value & CRC32_MASK) ^ CRC32_MASK
    for b in memoryview(data).cast('B'):
        register = table[(register ^ b) & 0xFF] ^ (register >> 8)
    return register ^ CRC32_MASK
