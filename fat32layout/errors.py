"""
fat32layout/errors.py

Status codes and exception hierarchy for the fat32layout codecs.
"""
import enum


class Status(enum.IntEnum):
    SUCCESS = 0
    GUID_DATA_INVALID_SIZE = 1
    GUID_STRING_BAD = 2
    GPT_BAD_SIZE = 3
    GPT_MBR_BAD_SIGNATURE = 4
    GPT_BAD_RECORD = 5


class Fat32Error(Exception):
    """Base class for all fat32layout codec errors."""
    status = None

    def __init__(self, msg=""):
        super().__init__(msg)
        self.msg = msg

    def __str__(self):
        if self.msg:
            return '[%s] %s' % (self.status.name, self.msg)
        return self.status.name


class GuidDataInvalidSizeError(Fat32Error):
    """Raised when GUID binary data is not exactly 16 bytes."""
    status = Status.GUID_DATA_INVALID_SIZE


class GuidStringBadError(Fat32Error):
    """Raised when a GUID string does not hold exactly 32 hex digits, or the
    destination is too small for the string form."""
    status = Status.GUID_STRING_BAD


class GptBadSizeError(Fat32Error):
    """Raised when a region does not match the wire size of a GPT structure."""
    status = Status.GPT_BAD_SIZE


class GptBadRecordError(Fat32Error):
    """Raised when a protective MBR partition record has an unexpected layout."""
    status = Status.GPT_BAD_RECORD


class GptMbrBadSignatureError(Fat32Error):
    """Raised when the protective MBR signature fields are wrong."""
    status = Status.GPT_MBR_BAD_SIGNATURE
