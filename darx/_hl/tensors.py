"""
    Implements tensors and their binary records.

    A tensor record is stored as follows:
    <NAME LENGTH><NAME><RANK><DIMENSIONS><ELEMENT TYPE><COMPRESSION><PAYLOAD LENGTH><PAYLOAD>

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
from dataclasses import dataclass
from typing import BinaryIO, Optional, Tuple

import logging

from .compression import CompressionKind, get_compression
from .endian import pack_uint, pack_uints, read_bytes, read_uint, read_uints
from .errors import InvalidStructError
from .types import ElementType, encode_element_type, encode_name, read_element_type, read_name
from .. import config
from ..config import FieldLayout

logger = logging.getLogger(__name__)


@dataclass
class Tensor:
    """
    Named, multi-dimensional buffer of typed elements.
    The payload is kept as raw bytes, its size is never checked against the dimensions and element type.
    """
    dims: Tuple[int, ...]
    element_type: ElementType
    payload: Optional[bytes] = None
    name: Optional[str] = None
    compression: int = CompressionKind.UNCOMPRESSED

    def __post_init__(self):
        self.dims = tuple(int(length) for length in self.dims)
        self.name = self.name or None

        if self.payload is not None and not isinstance(self.payload, bytes):
            self.payload = bytes(self.payload)

    @property
    def rank(self) -> int:
        return len(self.dims)

    @property
    def payload_size(self) -> int:
        return 0 if self.payload is None else len(self.payload)


def encode_tensor(tensor: Tensor, layout: FieldLayout, log: Optional[logging.Logger] = None) -> bytes:
    """
    Serialize a tensor record.
    :param tensor: tensor to serialize
    :param layout: byte order and integer widths of the archive
    :param log: diagnostics logger
    :return: serialized tensor record
    """
    log = log or logger
    serialized = bytearray()

    if tensor.name:
        log.debug('name: %s', tensor.name)
        serialized += encode_name(tensor.name)
    else:
        log.debug('(unnamed)')
        serialized += bytes([0])

    if tensor.rank > config.MAX_RANK:
        raise InvalidStructError(f'Tensor rank {tensor.rank} exceeds {config.MAX_RANK}.')

    log.debug('rank: %d, lengths: %s', tensor.rank, tensor.dims)
    serialized.append(tensor.rank)
    serialized += pack_uints(tensor.dims, layout.int_size, layout.big_endian)

    serialized += encode_element_type(tensor.element_type, log)

    if tensor.payload is None:
        raise InvalidStructError(f'Tensor {tensor.name or "(unnamed)"} has no payload.')

    compressed = get_compression(tensor.compression).compress(tensor)
    if compressed.length > config.MAX_PAYLOAD_LENGTH:
        raise InvalidStructError(f'Payload of {compressed.length} bytes exceeds {config.MAX_PAYLOAD_LENGTH} bytes.')

    log.debug('compression: %d, stored size: %d', tensor.compression, compressed.length)
    serialized.append(tensor.compression)
    serialized += pack_uint(compressed.length, config.NUM_BYTES_PAYLOAD_LENGTH, layout.big_endian)
    serialized += compressed.data

    return bytes(serialized)


def write_tensor(tensor: Tensor, fp: BinaryIO, layout: FieldLayout, log: Optional[logging.Logger] = None):
    """
    Write a tensor record at the current file position.
    Nothing is written if the tensor cannot be encoded.
    :param tensor: tensor to write
    :param fp: file object
    :param layout: byte order and integer widths of the archive
    :param log: diagnostics logger
    :return:
    """
    fp.write(encode_tensor(tensor, layout, log))


def read_tensor(fp: BinaryIO, layout: FieldLayout, log: Optional[logging.Logger] = None) -> Tensor:
    """
    Read a tensor record at the current file position.
    :param fp: file object
    :param layout: byte order and integer widths recorded in the archive
    :param log: diagnostics logger
    :return: tensor
    """
    log = log or logger

    name = read_name(fp) or None
    log.debug('name: %s', name or '(unnamed)')

    rank = read_bytes(fp, 1)[0]
    dims = tuple(read_uints(fp, rank, layout.int_size, layout.big_endian))
    log.debug('rank: %d, lengths: %s', rank, dims)

    element_type = read_element_type(fp, log)

    compression = read_bytes(fp, 1)[0]
    strategy = get_compression(compression)

    stored_size = read_uint(fp, config.NUM_BYTES_PAYLOAD_LENGTH, layout.big_endian)
    log.debug('compression: %d, stored size: %d', compression, stored_size)
    data = read_bytes(fp, stored_size)

    tensor = Tensor(dims, element_type, None, name, compression)
    strategy.decompress(tensor, data)
    if tensor.payload is None:
        raise InvalidStructError(f'Compression type {compression} did not produce a payload.')

    return tensor
