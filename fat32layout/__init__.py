import logging

logger = logging.getLogger(__name__)

from fat32layout._version import __version__
from fat32layout.config import load_config, Config
from fat32layout.errors import Status, Fat32Error, GuidDataInvalidSizeError, GuidStringBadError, \
    GptBadSizeError, GptBadRecordError, GptMbrBadSignatureError
from fat32layout.contracts import contract, ContractViolation
from fat32layout.crc import crc32, crc32_table
from fat32layout.guid import GUID, guid_from_string, guid_from_binary, guid_to_binary, \
    guid_to_string, guid_write_to_binary, guid_write_to_string
from fat32layout.partitions import *
