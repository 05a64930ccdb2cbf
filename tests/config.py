import random

KiB = 1024
MiB = 1024 * KiB
GiB = 1024 * MiB
TiB = 1024 * GiB

DISK_SIZE_128GB = 128 * GiB
DISK_SIZE_4TB = 4 * TiB

RANDOM_SEED = 0x5A17
RANDOM_ROUNDS = 200

# Ross N. Williams, "A Painless Guide to CRC Error Detection Algorithms"
CRC32_CHECK_INPUT = b'123456789'
CRC32_CHECK_VALUE = 0xCBF43926

CRC32_GOLDEN_VECTORS = [
    (b'', 0x00000000),
    (b'a', 0xE8B7BE43),
    (b'abc', 0x352441C2),
    (CRC32_CHECK_INPUT, CRC32_CHECK_VALUE),
    (b'The quick brown fox jumps over the lazy dog', 0x414FA339),
]

CRC32_TABLE_SAMPLES = {
    0: 0x00000000,
    1: 0x77073096,
    2: 0xEE0E612C,
    3: 0x990951BA,
    128: 0xEDB88320,
    255: 0x2D02EF8D,
}

GUID_STRING = 'dd59d73b-ed16-4a2d-8131-48d1fe45b008'
GUID_FIELDS = (0xdd59d73b, 0xed16, 0x4a2d, bytes([0x81, 0x31, 0x48, 0xd1, 0xfe, 0x45, 0xb0, 0x08]))

GUID_BINARY_STRING = '2109cb94-0999-4d91-ac62-a55c7bf988f9'
GUID_BINARY = bytes([
    0x94, 0xcb, 0x09, 0x21, 0x99, 0x09, 0x91, 0x4d,
    0xac, 0x62, 0xa5, 0x5c, 0x7b, 0xf9, 0x88, 0xf9,
])

UNUSED_RECORD_BYTES = bytes(16)

def span_record_bytes(size_in_lba):
    return b'\x00' + b'\x00\x02\x00' + b'\xee' + b'\xff\xff\xff' \
        + (1).to_bytes(4, 'little') + size_in_lba.to_bytes(4, 'little')

def protective_mbr_sector(size_in_lba, boot_code=None, disk_signature=bytes(4), signature=b'\x55\xaa'):
    if boot_code is None:
        boot_code = b'\x90' * 437 + b'\xf4\xeb\xfd'
    return boot_code + disk_signature + bytes(2) \
        + span_record_bytes(size_in_lba) + UNUSED_RECORD_BYTES * 3 + signature

def random_bytes(rng:random.Random, size:int) -> bytes:
    return bytes(rng.getrandbits(8) for _ in range(size))
