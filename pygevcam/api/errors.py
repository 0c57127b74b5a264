"""
Error codes and the exception raised by every camera access function
"""

from enum import IntEnum


class ErrorCode(IntEnum):
    """GenTL style error codes, shared by all backends"""
    SUCCESS = 0
    ERROR = -1001
    NOT_INITIALIZED = -1002
    NOT_IMPLEMENTED = -1003
    RESOURCE_IN_USE = -1004
    ACCESS_DENIED = -1005
    INVALID_HANDLE = -1006
    INVALID_ID = -1007
    NO_DATA = -1008
    INVALID_PARAMETER = -1009
    IO = -1010
    TIMEOUT = -1011
    ABORT = -1012
    INVALID_BUFFER = -1013
    NOT_AVAILABLE = -1014
    INVALID_ADDRESS = -1015
    BUFFER_TOO_SMALL = -1016
    INVALID_INDEX = -1017
    PARSING_CHUNK_DATA = -1018
    INVALID_VALUE = -1019
    RESOURCE_EXHAUSTED = -1020
    OUT_OF_MEMORY = -1021
    BUSY = -1022


class CameraError(Exception):
    def __init__(self, message, code=ErrorCode.ERROR):
        super().__init__(message)
        self.message = message
        self.code = ErrorCode(code)

    def __eq__(self, other):
        if isinstance(other, ErrorCode):
            return self.code == other
        return super().__eq__(other)

    __hash__ = Exception.__hash__

    def __str__(self):
        return f"{self.message} [{int(self.code)} {self.code.name}]"
