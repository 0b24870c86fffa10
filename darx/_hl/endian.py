"""
    Implements byte order detection and reading/writing of fixed-width unsigned integer fields.

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
import io
from typing import AnyStr, BinaryIO, List, Sequence
from numpy import dtype

import numpy as np

from .errors import InvalidStructError

"""
Supported field widths (in bytes) and their unsigned numpy types
"""
uint_types = {
    1: 'u1',
    2: 'u2',
    4: 'u4',
    8: 'u8'
}


def is_big_endian() -> bool:
    """
    Inspect the native byte layout of a known multi-byte pattern.
    :return: True if the running machine stores integers most significant byte first
    """
    return np.array([0x00010203], dtype='=u4').tobytes()[0] == 0x00


def byte_order_char(big_endian: bool) -> str:
    return '>' if big_endian else '<'


def _swap(value: int, num_bytes: int) -> int:
    if not 0 <= value < 1 << (8 * num_bytes):
        raise ValueError(f'Value {value} does not fit in {num_bytes * 8} bits.')

    return int(np.array(value, dtype='=' + uint_types[num_bytes]).byteswap())


def swap8(value: int) -> int:
    return _swap(value, 1)


def swap16(value: int) -> int:
    return _swap(value, 2)


def swap32(value: int) -> int:
    return _swap(value, 4)


def swap64(value: int) -> int:
    return _swap(value, 8)


def field_dtype(num_bytes: int, big_endian: bool) -> dtype:
    """
    Get the numpy type of an unsigned field.
    :param num_bytes: width of the field
    :param big_endian: byte order of the field
    :return: numpy type
    """
    if num_bytes not in uint_types:
        raise InvalidStructError(f'Unsupported integer width {num_bytes}, expected one of '
                                 f'{", ".join(str(size) for size in uint_types)}.')

    return np.dtype(byte_order_char(big_endian) + uint_types[num_bytes])


def pack_uints(values: Sequence[int], num_bytes: int, big_endian: bool) -> bytes:
    """
    Serialize unsigned integers to fixed-width fields.
    :param values: values to serialize
    :param num_bytes: width of each field
    :param big_endian: byte order of the fields
    :return: serialized values
    """
    data_type = field_dtype(num_bytes, big_endian)
    upper_bound = 1 << (8 * num_bytes)

    for value in values:
        if not 0 <= value < upper_bound:
            raise InvalidStructError(f'Value {value} does not fit in an unsigned {num_bytes}-byte field.')

    return np.array(list(values), dtype=data_type).tobytes()


def pack_uint(value: int, num_bytes: int, big_endian: bool) -> bytes:
    return pack_uints([value], num_bytes, big_endian)


def unpack_uints(serialized: AnyStr, count: int, num_bytes: int, big_endian: bool) -> List[int]:
    """
    Deserialize fixed-width unsigned fields.
    :param serialized: serialized fields
    :param count: number of fields
    :param num_bytes: width of each field
    :param big_endian: byte order of the fields
    :return: list of values
    """
    data_type = field_dtype(num_bytes, big_endian)

    if len(serialized) != count * num_bytes:
        raise InvalidStructError(f'Expected {count * num_bytes} bytes, got {len(serialized)}.')
    if count == 0:
        return []

    return [int(value) for value in np.frombuffer(serialized, dtype=data_type, count=count)]


def unpack_uint(serialized: AnyStr, num_bytes: int, big_endian: bool) -> int:
    return unpack_uints(serialized, 1, num_bytes, big_endian)[0]


def file_end(fp: BinaryIO) -> int:
    """
    Get the size of a seekable file, the file position is left unchanged.
    :param fp: file object
    :return: file position of the end of the file
    """
    position = fp.tell()

    try:
        return fp.seek(0, io.SEEK_END)
    finally:
        fp.seek(position)


def read_bytes(fp: BinaryIO, num_bytes: int) -> bytes:
    """
    Read exactly the requested number of bytes from a file.
    Lengths running past the end of the file are rejected before anything is read.
    :param fp: file object
    :param num_bytes: number of bytes to read
    :return: bytes read
    """
    remaining = file_end(fp) - fp.tell()
    if num_bytes > remaining:
        raise InvalidStructError(f'Unexpected end of file, expected {num_bytes} bytes, {remaining} remaining.')

    serialized = fp.read(num_bytes)

    if len(serialized) != num_bytes:
        raise InvalidStructError(f'Unexpected end of file, expected {num_bytes} bytes, got {len(serialized)}.')

    return serialized


def read_uints(fp: BinaryIO, count: int, num_bytes: int, big_endian: bool) -> List[int]:
    return unpack_uints(read_bytes(fp, count * num_bytes), count, num_bytes, big_endian)


def read_uint(fp: BinaryIO, num_bytes: int, big_endian: bool) -> int:
    return unpack_uint(read_bytes(fp, num_bytes), num_bytes, big_endian)
