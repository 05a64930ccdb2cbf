import io

from fat32layout import logger
from fat32layout.config import config
from fat32layout.contracts import contract
from fat32layout.errors import GptBadSizeError, GptBadRecordError, GptMbrBadSignatureError
from fat32layout.utils import check_uint, check_blob, buffer_size, copy_into, hexdump

# UEFI 2.11, section 5.2.3
LBA_SIZE = 512

GPT_PROTECTIVE_MBR_PARTITION_RECORD_SIZE = 16
GPT_PROTECTIVE_MBR_PARTITION_RECORD_COUNT = 4
GPT_PROTECTIVE_MBR_MINIMUM_SIZE = 512
GPT_PROTECTIVE_MBR_BOOT_CODE_SIZE = 440
GPT_PROTECTIVE_MBR_DISK_SIGNATURE_SIZE = 4
GPT_PROTECTIVE_MBR_UNKNOWN_SIZE = 2
GPT_PROTECTIVE_MBR_PARTITION_TABLE_OFFSET = 446
GPT_PROTECTIVE_MBR_SIGNATURE_OFFSET = 510
GPT_PROTECTIVE_MBR_SIGNATURE = 0xAA55

GPT_PROTECTIVE_OS_TYPE = 0xEE
GPT_PROTECTIVE_STARTING_CHS = 0x000200
GPT_PROTECTIVE_ENDING_CHS = 0xFFFFFF
GPT_PROTECTIVE_STARTING_LBA = 1
# the span has to cover at least the GPT header and partition entry array
GPT_PROTECTIVE_MINIMUM_SIZE_IN_LBA = 33
GPT_PROTECTIVE_MAXIMUM_SIZE_IN_LBA = 0xFFFFFFFF
GPT_MINIMUM_DISK_SIZE = LBA_SIZE * (GPT_PROTECTIVE_MINIMUM_SIZE_IN_LBA + 1)

# nop sled into "hlt; jmp $-1"
GPT_PROTECTIVE_MBR_HALT_LOOP = b'\xF4\xEB\xFD'
GPT_PROTECTIVE_MBR_BOOT_CODE = b'\x90' * (GPT_PROTECTIVE_MBR_BOOT_CODE_SIZE - len(GPT_PROTECTIVE_MBR_HALT_LOOP)) \
    + GPT_PROTECTIVE_MBR_HALT_LOOP


class GPTProtectiveMBRPartitionRecord:
    """One of the four partition records in the LBA 0 protective MBR.

    Only two layouts are valid: the all-zero unused record and the span
    record that claims the whole disk for GPT (OS type 0xEE).
    """
    def __init__(self, boot_indicator:int = 0, starting_chs:int = 0, os_type:int = 0,
                 ending_chs:int = 0, starting_lba:int = 0, size_in_lba:int = 0):
        self.boot_indicator = check_uint('boot_indicator', boot_indicator, 8)
        self.starting_chs = check_uint('starting_chs', starting_chs, 24)
        self.os_type = check_uint('os_type', os_type, 8)
        self.ending_chs = check_uint('ending_chs', ending_chs, 24)
        self.starting_lba = check_uint('starting_lba', starting_lba, 32)
        self.size_in_lba = check_uint('size_in_lba', size_in_lba, 32)

    @staticmethod
    def from_bytes(data:bytes, strict:bool = False):
        return partition_record_read(data, strict=strict)

    @staticmethod
    def from_buffer(buff:io.BytesIO, strict:bool = False):
        return partition_record_read(buff.read(GPT_PROTECTIVE_MBR_PARTITION_RECORD_SIZE), strict=strict)

    def to_bytes(self) -> bytes:
        dest = bytearray(GPT_PROTECTIVE_MBR_PARTITION_RECORD_SIZE)
        partition_record_write(dest, self)
        return bytes(dest)

    def pack(self) -> bytes:
        buff = io.BytesIO()
        buff.write(self.boot_indicator.to_bytes(1, 'little'))
        buff.write(self.starting_chs.to_bytes(3, 'little'))
        buff.write(self.os_type.to_bytes(1, 'little'))
        buff.write(self.ending_chs.to_bytes(3, 'little'))
        buff.write(self.starting_lba.to_bytes(4, 'little'))
        buff.write(self.size_in_lba.to_bytes(4, 'little'))
        return buff.getvalue()

    @staticmethod
    def unpack(data:bytes):
        buff = io.BytesIO(data)
        rec = GPTProtectiveMBRPartitionRecord()
        rec.boot_indicator = int.from_bytes(buff.read(1), 'little')
        rec.starting_chs = int.from_bytes(buff.read(3), 'little')
        rec.os_type = int.from_bytes(buff.read(1), 'little')
        rec.ending_chs = int.from_bytes(buff.read(3), 'little')
        rec.starting_lba = int.from_bytes(buff.read(4), 'little')
        rec.size_in_lba = int.from_bytes(buff.read(4), 'little')
        return rec

    def fields(self) -> tuple:
        return (
            self.boot_indicator,
            self.starting_chs,
            self.os_type,
            self.ending_chs,
            self.starting_lba,
            self.size_in_lba,
        )

    def is_unused(self) -> bool:
        return self.fields() == (0, 0, 0, 0, 0, 0)

    def is_span(self) -> bool:
        return self.boot_indicator == 0 \
            and self.starting_chs == GPT_PROTECTIVE_STARTING_CHS \
            and self.os_type == GPT_PROTECTIVE_OS_TYPE \
            and self.ending_chs == GPT_PROTECTIVE_ENDING_CHS \
            and self.starting_lba == GPT_PROTECTIVE_STARTING_LBA \
            and self.size_in_lba >= GPT_PROTECTIVE_MINIMUM_SIZE_IN_LBA

    def is_valid(self) -> bool:
        return partition_record_valid(self)

    def __eq__(self, other):
        if not isinstance(other, GPTProtectiveMBRPartitionRecord):
            return NotImplemented
        return self.fields() == other.fields()

    def __repr__(self):
        return 'GPTProtectiveMBRPartitionRecord(%s)' % ', '.join(hex(x) for x in self.fields())

    def __str__(self):
        res = []
        res.append('GPTProtectiveMBRPartitionRecord')
        res.append('BootIndicator: {}'.format(hex(self.boot_indicator)))
        res.append('StartingCHS: {}'.format(hex(self.starting_chs)))
        res.append('OSType: {}'.format(hex(self.os_type)))
        res.append('EndingCHS: {}'.format(hex(self.ending_chs)))
        res.append('StartingLBA: {}'.format(self.starting_lba))
        res.append('SizeInLBA: {}'.format(self.size_in_lba))
        return '\n'.join(res)


class GPTProtectiveMBR:
    """The LBA 0 protective MBR (UEFI 2.11, section 5.2.3, table 5.3).

    `unknown` and `reserved` are carried for completeness only. Neither is
    transcribed by `protective_mbr_read` or `protective_mbr_write`.
    """
    def __init__(self):
        self.boot_code = bytes(GPT_PROTECTIVE_MBR_BOOT_CODE_SIZE)
        self.unique_disk_signature = bytes(GPT_PROTECTIVE_MBR_DISK_SIGNATURE_SIZE)
        self.unknown = bytes(GPT_PROTECTIVE_MBR_UNKNOWN_SIZE)
        self.partition_record = [
            GPTProtectiveMBRPartitionRecord() for _ in range(GPT_PROTECTIVE_MBR_PARTITION_RECORD_COUNT)
        ]
        self.signature = 0
        self.reserved = bytes(2)

    @staticmethod
    def from_bytes(data:bytes, strict:bool = None):
        return protective_mbr_read(data, strict=strict)

    @staticmethod
    def from_buffer(buff:io.BytesIO, strict:bool = None):
        return protective_mbr_read(buff.read(GPT_PROTECTIVE_MBR_MINIMUM_SIZE), strict=strict)

    def to_bytes(self, size:int = GPT_PROTECTIVE_MBR_MINIMUM_SIZE) -> bytes:
        dest = bytearray(size)
        protective_mbr_write(dest, self)
        return bytes(dest)

    def is_valid(self) -> bool:
        return protective_mbr_valid(self)

    def __eq__(self, other):
        if not isinstance(other, GPTProtectiveMBR):
            return NotImplemented
        return bytes(self.boot_code) == bytes(other.boot_code) \
            and bytes(self.unique_disk_signature) == bytes(other.unique_disk_signature) \
            and list(self.partition_record) == list(other.partition_record) \
            and self.signature == other.signature

    def __str__(self):
        res = []
        res.append('GPTProtectiveMBR')
        res.append('BootCode: {}'.format(bytes(self.boot_code).hex()))
        res.append('UniqueDiskSignature: {}'.format(bytes(self.unique_disk_signature).hex()))
        res.append('PartitionRecords:')
        for rec in self.partition_record:
            res.append('  {}'.format(repr(rec)))
        res.append('Signature: {}'.format(hex(self.signature)))
        return '\n'.join(res)


def partition_record_valid(rec:GPTProtectiveMBRPartitionRecord) -> bool:
    """Returns True if `rec` is either the unused record or the span record."""
    return rec.is_unused() or rec.is_span()


def protective_mbr_valid(mbr:GPTProtectiveMBR) -> bool:
    """Returns True if `mbr` is a well formed protective MBR.

    The disk signature must be zero, the boot signature 0xAA55, record 0 the
    span record and records 1 to 3 unused.
    """
    if bytes(mbr.unique_disk_signature) != bytes(GPT_PROTECTIVE_MBR_DISK_SIGNATURE_SIZE):
        return False
    if mbr.signature != GPT_PROTECTIVE_MBR_SIGNATURE:
        return False
    if len(mbr.partition_record) != GPT_PROTECTIVE_MBR_PARTITION_RECORD_COUNT:
        return False
    for rec in mbr.partition_record:
        if not partition_record_valid(rec):
            return False
    if mbr.partition_record[0].os_type != GPT_PROTECTIVE_OS_TYPE:
        return False
    for rec in mbr.partition_record[1:]:
        if not rec.is_unused():
            return False
    return True


def _resolve_strict(strict):
    if strict is None:
        return bool(config.strict_read)
    return bool(strict)

def _record_passes_read_checks(rec, strict):
    if strict:
        return partition_record_valid(rec)
    return rec.boot_indicator == 0 and rec.starting_chs in (0, GPT_PROTECTIVE_STARTING_CHS)

def _record_read_ensures(result, data, strict = False):
    return _record_passes_read_checks(result, bool(strict))

def _record_written_ensures(result, dest, rec):
    return partition_record_read(bytes(dest), strict=False) == rec

def _mbr_read_ensures(result, data, strict = None):
    if _resolve_strict(strict):
        return protective_mbr_valid(result)
    return result.signature == GPT_PROTECTIVE_MBR_SIGNATURE \
        and all(_record_passes_read_checks(rec, False) for rec in result.partition_record)

def _mbr_written_ensures(result, dest, mbr):
    written = bytes(dest)
    if any(written[GPT_PROTECTIVE_MBR_MINIMUM_SIZE:]):
        return False
    return protective_mbr_read(written, strict=True) == mbr


@contract(ensures=lambda result: partition_record_valid(result) and result.is_unused())
def partition_record_init_clear() -> GPTProtectiveMBRPartitionRecord:
    return GPTProtectiveMBRPartitionRecord()


@contract(
    ensures=lambda result, disk_size: partition_record_valid(result) and result.is_span(),
    raises=(GptBadSizeError,),
)
def partition_record_init_span(disk_size:int) -> GPTProtectiveMBRPartitionRecord:
    """Creates the protective record spanning a disk of `disk_size` bytes.

    The size in LBA excludes LBA 0 and is clamped to 0xFFFFFFFF for disks
    over 2TiB. Disks too small to hold a GPT header and partition entry
    array are rejected.
    """
    if disk_size < GPT_MINIMUM_DISK_SIZE:
        logger.debug('[GPT] Disk size %s is below the minimum of %s' % (disk_size, GPT_MINIMUM_DISK_SIZE))
        raise GptBadSizeError('Disk of %s bytes is too small for GPT' % disk_size)

    lba_size = min(disk_size // LBA_SIZE - 1, GPT_PROTECTIVE_MAXIMUM_SIZE_IN_LBA)
    return GPTProtectiveMBRPartitionRecord(
        boot_indicator = 0,
        starting_chs = GPT_PROTECTIVE_STARTING_CHS,
        os_type = GPT_PROTECTIVE_OS_TYPE,
        ending_chs = GPT_PROTECTIVE_ENDING_CHS,
        starting_lba = GPT_PROTECTIVE_STARTING_LBA,
        size_in_lba = lba_size,
    )


@contract(ensures=_record_read_ensures, raises=(GptBadSizeError, GptBadRecordError))
def partition_record_read(data, strict:bool = False) -> GPTProtectiveMBRPartitionRecord:
    """Parses a protective MBR partition record from exactly 16 bytes.

    A bootable record, or a starting CHS other than the unused or span
    pattern, is always rejected. Anything else is returned as parsed unless
    `strict` is set, in which case the full validity predicate is enforced
    as well.
    """
    data = bytes(data)
    if len(data) != GPT_PROTECTIVE_MBR_PARTITION_RECORD_SIZE:
        logger.debug('[GPT] Partition record must be %d bytes, got %d' % (GPT_PROTECTIVE_MBR_PARTITION_RECORD_SIZE, len(data)))
        raise GptBadSizeError('Expected %d bytes, got %d' % (GPT_PROTECTIVE_MBR_PARTITION_RECORD_SIZE, len(data)))

    rec = GPTProtectiveMBRPartitionRecord.unpack(data)
    if rec.boot_indicator != 0:
        logger.debug('[GPT] Bootable protective record\n%s' % hexdump(data))
        raise GptBadRecordError('Protective partition records cannot be bootable')
    if rec.starting_chs not in (0, GPT_PROTECTIVE_STARTING_CHS):
        logger.debug('[GPT] Unexpected starting CHS\n%s' % hexdump(data))
        raise GptBadRecordError('Unexpected starting CHS %s' % hex(rec.starting_chs))
    if strict and not partition_record_valid(rec):
        logger.debug('[GPT] Record is neither unused nor a span record\n%s' % hexdump(data))
        raise GptBadRecordError('Record is neither unused nor a protective span')
    return rec


@contract(
    requires=lambda dest, rec: partition_record_valid(rec),
    ensures=_record_written_ensures,
    raises=(GptBadSizeError,),
)
def partition_record_write(dest, rec:GPTProtectiveMBRPartitionRecord):
    """Serializes `rec` into `dest`, which must be exactly 16 bytes long.

    `dest` is left untouched when its size is wrong.
    """
    size = buffer_size(dest)
    if size != GPT_PROTECTIVE_MBR_PARTITION_RECORD_SIZE:
        logger.debug('[GPT] Partition record destination must be %d bytes, got %d' % (GPT_PROTECTIVE_MBR_PARTITION_RECORD_SIZE, size))
        raise GptBadSizeError('Expected %d bytes, got %d' % (GPT_PROTECTIVE_MBR_PARTITION_RECORD_SIZE, size))
    copy_into(dest, rec.pack())


@contract(ensures=lambda result, disk_size: protective_mbr_valid(result), raises=(GptBadSizeError,))
def protective_mbr_init_span(disk_size:int) -> GPTProtectiveMBR:
    """Creates a protective MBR for a disk of `disk_size` bytes.

    The boot code only halts, record 0 spans the disk and the other records
    are unused.
    """
    mbr = GPTProtectiveMBR()
    mbr.boot_code = GPT_PROTECTIVE_MBR_BOOT_CODE
    mbr.partition_record[0] = partition_record_init_span(disk_size)
    for i in range(1, GPT_PROTECTIVE_MBR_PARTITION_RECORD_COUNT):
        mbr.partition_record[i] = partition_record_init_clear()
    mbr.signature = GPT_PROTECTIVE_MBR_SIGNATURE
    return mbr


@contract(
    ensures=_mbr_read_ensures,
    raises=(GptBadSizeError, GptBadRecordError, GptMbrBadSignatureError),
)
def protective_mbr_read(data, strict:bool = None) -> GPTProtectiveMBR:
    """Parses a protective MBR from the first 512 bytes of `data`.

    Records are parsed in order and the first bad one aborts the read. The
    boot signature must be 0xAA55. With `strict` (the default comes from
    `config.strict_read`) the disk signature must be zero and the record
    layout must match `protective_mbr_valid`.
    """
    data = bytes(data)
    if len(data) < GPT_PROTECTIVE_MBR_MINIMUM_SIZE:
        logger.debug('[MBR] Protective MBR needs at least %d bytes, got %d' % (GPT_PROTECTIVE_MBR_MINIMUM_SIZE, len(data)))
        raise GptBadSizeError('Expected at least %d bytes, got %d' % (GPT_PROTECTIVE_MBR_MINIMUM_SIZE, len(data)))
    strict = _resolve_strict(strict)

    buff = io.BytesIO(data)
    mbr = GPTProtectiveMBR()
    mbr.boot_code = buff.read(GPT_PROTECTIVE_MBR_BOOT_CODE_SIZE)
    mbr.unique_disk_signature = buff.read(GPT_PROTECTIVE_MBR_DISK_SIGNATURE_SIZE)
    buff.seek(GPT_PROTECTIVE_MBR_UNKNOWN_SIZE, 1)
    for i in range(GPT_PROTECTIVE_MBR_PARTITION_RECORD_COUNT):
        mbr.partition_record[i] = GPTProtectiveMBRPartitionRecord.from_buffer(buff, strict=strict)
    mbr.signature = int.from_bytes(buff.read(2), 'little')

    if mbr.signature != GPT_PROTECTIVE_MBR_SIGNATURE:
        logger.debug('[MBR] Invalid boot signature\n%s' % hexdump(data[GPT_PROTECTIVE_MBR_SIGNATURE_OFFSET:GPT_PROTECTIVE_MBR_MINIMUM_SIZE]))
        raise GptMbrBadSignatureError('Invalid boot signature %s' % hex(mbr.signature))

    if strict:
        if mbr.unique_disk_signature != bytes(GPT_PROTECTIVE_MBR_DISK_SIGNATURE_SIZE):
            logger.debug('[MBR] Non-zero unique disk signature %s' % mbr.unique_disk_signature.hex())
            raise GptMbrBadSignatureError('Protective MBR has a unique disk signature')
        if not protective_mbr_valid(mbr):
            logger.debug('[MBR] Unexpected partition record layout\n%s' % hexdump(data[GPT_PROTECTIVE_MBR_PARTITION_TABLE_OFFSET:GPT_PROTECTIVE_MBR_SIGNATURE_OFFSET]))
            raise GptBadRecordError('Record 0 must be the span record and records 1-3 unused')
    return mbr


@contract(
    requires=lambda dest, mbr: protective_mbr_valid(mbr),
    ensures=_mbr_written_ensures,
    raises=(GptBadSizeError,),
)
def protective_mbr_write(dest, mbr:GPTProtectiveMBR):
    """Serializes `mbr` into `dest`, which must be at least 512 bytes long.

    All of `dest` is zeroed first, so anything past the MBR sector ends up
    zero too. The disk signature and unknown bytes are always written as zero.
    `dest` is left untouched when it is too small.
    """
    size = buffer_size(dest)
    if size < GPT_PROTECTIVE_MBR_MINIMUM_SIZE:
        logger.debug('[MBR] Destination needs at least %d bytes, got %d' % (GPT_PROTECTIVE_MBR_MINIMUM_SIZE, size))
        raise GptBadSizeError('Expected at least %d bytes, got %d' % (GPT_PROTECTIVE_MBR_MINIMUM_SIZE, size))

    sector = bytearray(GPT_PROTECTIVE_MBR_MINIMUM_SIZE)
    sector[0:GPT_PROTECTIVE_MBR_BOOT_CODE_SIZE] = check_blob('boot_code', mbr.boot_code, GPT_PROTECTIVE_MBR_BOOT_CODE_SIZE)
    for i, rec in enumerate(mbr.partition_record):
        record = bytearray(GPT_PROTECTIVE_MBR_PARTITION_RECORD_SIZE)
        partition_record_write(record, rec)
        offset = GPT_PROTECTIVE_MBR_PARTITION_TABLE_OFFSET + i * GPT_PROTECTIVE_MBR_PARTITION_RECORD_SIZE
        sector[offset:offset + GPT_PROTECTIVE_MBR_PARTITION_RECORD_SIZE] = record
    sector[GPT_PROTECTIVE_MBR_SIGNATURE_OFFSET:GPT_PROTECTIVE_MBR_MINIMUM_SIZE] = mbr.signature.to_bytes(2, 'little')
    copy_into(dest, bytes(sector))
