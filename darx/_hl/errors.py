"""
    Error codes and exceptions raised by the codec.

    This file is part of Darx.

    Darx is free software: you can redistribute it and/or modify
    it under the terms of the GNU General Public License as published by
    the Free Software Foundation, either version 3 of the License, or
    (at your option) any later version.

    Darx is distributed in the hope that it will be useful,
    but WITHOUT ANY WARRANTY; without even the implied warranty of
    MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
    GNU General Public License for more details.

    You should have received a copy of the GNU General Public License
    along with Darx.  If not, see <https://www.gnu.org/licenses/>.
"""
from enum import IntEnum


class ErrorCode(IntEnum):
    """
    Result of a load or save operation.
    """
    SUCCESS = 0
    UNSUPPORTED_ELEMENT_TYPE = 1
    UNSUPPORTED_COMPRESSION_TYPE = 2
    INVALID_STRUCT = 3


"""
Textual error code representations
"""
ERROR_MESSAGES = {
    ErrorCode.SUCCESS: 'success',
    ErrorCode.UNSUPPORTED_ELEMENT_TYPE: 'unsupported element type',
    ErrorCode.UNSUPPORTED_COMPRESSION_TYPE: 'unsupported compression type',
    ErrorCode.INVALID_STRUCT: 'invalid structure'
}


class DarxError(Exception):
    code = ErrorCode.INVALID_STRUCT

    def __init__(self, message: str = None):
        super().__init__(message or ERROR_MESSAGES[self.code])
        self.message = message or ERROR_MESSAGES[self.code]


class UnsupportedElementTypeError(DarxError):
    code = ErrorCode.UNSUPPORTED_ELEMENT_TYPE


class UnsupportedCompressionTypeError(DarxError):
    code = ErrorCode.UNSUPPORTED_COMPRESSION_TYPE


class InvalidStructError(DarxError):
    code = ErrorCode.INVALID_STRUCT


_ERRORS_BY_CODE = {
    ErrorCode.UNSUPPORTED_ELEMENT_TYPE: UnsupportedElementTypeError,
    ErrorCode.UNSUPPORTED_COMPRESSION_TYPE: UnsupportedCompressionTypeError,
    ErrorCode.INVALID_STRUCT: InvalidStructError
}


def error_from_code(code: ErrorCode) -> DarxError:
    """
    Build the exception matching a non-success error code.
    :param code: error code returned by the codec
    :return: exception instance
    """
    if code == ErrorCode.SUCCESS:
        raise ValueError('No exception matches a successful result.')

    return _ERRORS_BY_CODE[ErrorCode(code)]()
