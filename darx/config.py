"""
    Configuration file

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
from collections import namedtuple
from dataclasses import dataclass, field

import logging

from ._hl import endian

"""
    Magic bytes for format identification
"""
MAGIC_BYTES = b'DARX'

"""
    Endianness reference constant, "LIVE" when stored big endian and "EVIL" when stored little endian.
"""
ENDIAN_MARKER = 0x4c495645

"""
    Number of magic bytes.
"""
NUM_BYTES_MAGIC_BYTES = len(MAGIC_BYTES)
"""
    Number of bytes in which to store the endianness marker.
"""
NUM_BYTES_ENDIAN_MARKER = 4
"""
    Number of bytes in which to store the native integer and long integer widths.
"""
NUM_BYTES_SIZE_FIELD = 1
"""
    Number of bytes in which to store the number of tensors.
"""
NUM_BYTES_TENSOR_COUNT = 2
"""
    Number of bytes in which to store the length of the metadata.
"""
NUM_BYTES_METADATA_LENGTH = 2
"""
    Number of bytes in which to store a name length (tensor names and custom type names).
"""
NUM_BYTES_NAME_LENGTH = 1
"""
    Number of bytes in which to store the length of a tensor payload.
"""
NUM_BYTES_PAYLOAD_LENGTH = 4

"""
    Size of the fixed part of the archive header, up to and including the number of tensors.
"""
NUM_BYTES_HEADER = NUM_BYTES_MAGIC_BYTES + NUM_BYTES_ENDIAN_MARKER + 2 * NUM_BYTES_SIZE_FIELD + \
    NUM_BYTES_TENSOR_COUNT

"""
    Default width of a dimension length ("unsigned int") and of a file offset ("long int").
"""
DEFAULT_INT_SIZE = 4
DEFAULT_LONG_SIZE = 8
"""
    Integer widths a reader is able to decode.
"""
SUPPORTED_FIELD_SIZES = (1, 2, 4, 8)

"""
    Format limits.
"""
MAX_TENSORS = 0xFFFF
MAX_METADATA_LENGTH = 0xFFFF
MAX_NAME_LENGTH = 0xFF
MAX_RANK = 0xFF
MAX_PAYLOAD_LENGTH = 0xFFFFFFFF
MAX_TYPE_DEPTH = 64

"""
    Name written for a custom element type that has none.
"""
UNKNOWN_TYPE_NAME = 'Unknown'

"""
    Byte order and integer widths of the fields of an archive.
"""
FieldLayout = namedtuple('FieldLayout', 'big_endian int_size long_size')


@dataclass
class CodecConfig:
    """
        Settings used when reading or writing an archive.
        The byte order and integer widths only apply to writing, a reader always uses the ones recorded in the file.
    """
    big_endian: bool = field(default_factory=endian.is_big_endian)
    int_size: int = DEFAULT_INT_SIZE
    long_size: int = DEFAULT_LONG_SIZE
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger('darx'))

    @property
    def layout(self) -> FieldLayout:
        return FieldLayout(self.big_endian, self.int_size, self.long_size)
