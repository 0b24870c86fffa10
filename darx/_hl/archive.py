"""
    Implements reading and writing of darx data archives.

    An archive is stored as follows:
    <MAGIC BYTES><ENDIAN MARKER><INT SIZE><LONG SIZE><NUMBER OF TENSORS><TENSOR INDEX>
    <METADATA LENGTH><METADATA><TENSOR RECORDS>

    The tensor index holds the file position of each tensor record, allowing for random access of the tensors.
    Multi-byte fields are written in the byte order of the writer, which is recorded by the endian marker.

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
from typing import BinaryIO, List, Optional

from .endian import file_end, is_big_endian, pack_uint, pack_uints, read_bytes, read_uint, read_uints
from .errors import DarxError, ErrorCode, InvalidStructError
from .tensors import Tensor, encode_tensor, read_tensor
from .. import config
from ..config import CodecConfig, FieldLayout


@dataclass
class Archive:
    """
    Collection of tensors with free-form metadata.
    """
    tensors: List[Tensor] = field(default_factory=list)
    metadata: bytes = b''
    valid: bool = True
    stored_big_endian: bool = field(default_factory=is_big_endian)

    def __post_init__(self):
        self.tensors = list(self.tensors)
        self.metadata = bytes(self.metadata or b'')

    @property
    def tensor_count(self) -> int:
        return len(self.tensors)

    @property
    def metadata_size(self) -> int:
        return len(self.metadata)


class ArchiveHeader(namedtuple('ArchiveHeader', 'stored_big_endian needs_swap int_size long_size offsets metadata')):
    """
    Everything stored before the tensor records.
    """
    @property
    def layout(self) -> FieldLayout:
        return FieldLayout(self.stored_big_endian, self.int_size, self.long_size)

    @property
    def tensor_count(self) -> int:
        return len(self.offsets)


class LoadResult(namedtuple('LoadResult', 'error archive')):
    """
    Outcome of loading an archive, `archive` is None unless `error` is ErrorCode.SUCCESS.
    """
    @property
    def ok(self) -> bool:
        return self.error == ErrorCode.SUCCESS


def _endian_marker(big_endian: bool) -> bytes:
    return pack_uint(config.ENDIAN_MARKER, config.NUM_BYTES_ENDIAN_MARKER, big_endian)


def is_darx(fp: BinaryIO) -> bool:
    """
    Check whether the data at the current file position is a darx archive.
    The file position is left unchanged.
    :param fp: file object
    :return: True if the magic bytes match
    """
    position = fp.tell()

    try:
        magic_bytes = fp.read(config.NUM_BYTES_MAGIC_BYTES)
    finally:
        fp.seek(position)

    return magic_bytes == config.MAGIC_BYTES


def encode_archive(archive: Archive, codec_config: Optional[CodecConfig] = None, base_offset: int = 0) -> bytes:
    """
    Serialize an archive.
    :param archive: archive to serialize
    :param codec_config: byte order, integer widths and logger to use (defaults to the archive's byte order)
    :param base_offset: file position at which the archive will be written
    :return: serialized archive
    """
    codec_config = codec_config or CodecConfig(big_endian=archive.stored_big_endian)
    layout = codec_config.layout
    log = codec_config.logger

    # payloads are opaque and already in the archive's byte order
    if layout.big_endian != archive.stored_big_endian:
        raise InvalidStructError(f'Archive payloads are stored {"big" if archive.stored_big_endian else "little"} '
                                 f'endian but {"big" if layout.big_endian else "little"} endian was requested.')

    if archive.tensor_count > config.MAX_TENSORS:
        raise InvalidStructError(f'Archive holds {archive.tensor_count} tensors, at most {config.MAX_TENSORS} '
                                 f'are allowed.')
    if archive.metadata_size > config.MAX_METADATA_LENGTH:
        raise InvalidStructError(f'Metadata is {archive.metadata_size} bytes long, at most '
                                 f'{config.MAX_METADATA_LENGTH} are allowed.')
    for size in (layout.int_size, layout.long_size):
        if size not in config.SUPPORTED_FIELD_SIZES:
            raise InvalidStructError(f'Unsupported integer width {size}.')

    records = []
    for tensor_index, tensor in enumerate(archive.tensors):
        log.debug('tensor[%d]', tensor_index)
        records.append(encode_tensor(tensor, layout, log))

    tensor_offset = base_offset + config.NUM_BYTES_HEADER + archive.tensor_count * layout.long_size + \
        config.NUM_BYTES_METADATA_LENGTH + archive.metadata_size
    offsets = []
    for record in records:
        offsets.append(tensor_offset)
        tensor_offset += len(record)

    log.debug('byte order: %s, int size: %d, long size: %d, tensors: %d, metadata size: %d',
              'big' if layout.big_endian else 'little', layout.int_size, layout.long_size,
              archive.tensor_count, archive.metadata_size)
    log.debug('tensor file positions: %s', offsets)

    header = config.MAGIC_BYTES + _endian_marker(layout.big_endian) + \
        bytes([layout.int_size, layout.long_size]) + \
        pack_uint(archive.tensor_count, config.NUM_BYTES_TENSOR_COUNT, layout.big_endian)

    return b''.join([
        header,
        pack_uints(offsets, layout.long_size, layout.big_endian),
        pack_uint(archive.metadata_size, config.NUM_BYTES_METADATA_LENGTH, layout.big_endian),
        archive.metadata
    ] + records)


def save(archive: Archive, fp: BinaryIO, codec_config: Optional[CodecConfig] = None) -> ErrorCode:
    """
    Write an archive at the current file position.
    The whole archive is encoded before writing, nothing is written if encoding fails.
    :param archive: archive to write
    :param fp: file object
    :param codec_config: byte order, integer widths and logger to use (defaults to the archive's byte order)
    :return: error code
    """
    codec_config = codec_config or CodecConfig(big_endian=archive.stored_big_endian)

    if not archive.valid:
        codec_config.logger.debug('refusing to save an archive not marked as valid')
        return ErrorCode.INVALID_STRUCT

    try:
        serialized = encode_archive(archive, codec_config, fp.tell())
    except DarxError as e:
        codec_config.logger.debug('could not save archive: %s', e.message)
        return e.code

    fp.write(serialized)

    return ErrorCode.SUCCESS


def read_header(fp: BinaryIO, codec_config: Optional[CodecConfig] = None) -> ArchiveHeader:
    """
    Read the archive headers, tensor index and metadata at the current file position.
    :param fp: file object
    :param codec_config: logger to use
    :return: archive header
    """
    log = (codec_config or CodecConfig()).logger

    magic_bytes = fp.read(config.NUM_BYTES_MAGIC_BYTES)
    if magic_bytes != config.MAGIC_BYTES:
        raise InvalidStructError(f'Expected magic bytes to be "{config.MAGIC_BYTES}", got "{magic_bytes}".')

    marker = read_bytes(fp, config.NUM_BYTES_ENDIAN_MARKER)
    if marker not in (_endian_marker(True), _endian_marker(False)):
        raise InvalidStructError(f'Invalid endian marker "{marker}".')

    stored_big_endian = marker[-1] == config.ENDIAN_MARKER & 0xFF
    needs_swap = stored_big_endian != is_big_endian()
    if needs_swap:
        log.info('archive stored in %s endian byte order, swapping multi-byte fields',
                 'big' if stored_big_endian else 'little')

    int_size, long_size = read_bytes(fp, 2 * config.NUM_BYTES_SIZE_FIELD)
    for size in (int_size, long_size):
        if size not in config.SUPPORTED_FIELD_SIZES:
            raise InvalidStructError(f'Archive uses a {size}-byte integer width which cannot be decoded.')

    tensor_count = read_uint(fp, config.NUM_BYTES_TENSOR_COUNT, stored_big_endian)
    offsets = read_uints(fp, tensor_count, long_size, stored_big_endian)
    log.debug('int size: %d, long size: %d, tensors: %d', int_size, long_size, tensor_count)
    log.debug('tensor file positions: %s', offsets)

    metadata_size = read_uint(fp, config.NUM_BYTES_METADATA_LENGTH, stored_big_endian)
    metadata = read_bytes(fp, metadata_size)
    log.debug('metadata size: %d', metadata_size)

    records_start, records_end = fp.tell(), file_end(fp)
    for index, offset in enumerate(offsets):
        if not records_start <= offset < records_end:
            raise InvalidStructError(f'Tensor {index} file position {offset} lies outside of the tensor records '
                                     f'[{records_start}, {records_end}).')

    return ArchiveHeader(stored_big_endian, needs_swap, int_size, long_size, tuple(offsets), metadata)


def read_tensor_at(fp: BinaryIO, header: ArchiveHeader, index: int,
                   codec_config: Optional[CodecConfig] = None) -> Tensor:
    """
    Read a single tensor using the tensor index.
    :param fp: file object
    :param header: header of the archive
    :param index: index of the tensor in the archive
    :param codec_config: logger to use
    :return: tensor
    """
    if not 0 <= index < header.tensor_count:
        raise IndexError(f'Tensor {index} out of range.')

    log = (codec_config or CodecConfig()).logger
    log.debug('tensor[%d] @ file position %d', index, header.offsets[index])

    fp.seek(header.offsets[index])

    return read_tensor(fp, header.layout, log)


def load(fp: BinaryIO, codec_config: Optional[CodecConfig] = None) -> LoadResult:
    """
    Read a whole archive at the current file position.
    :param fp: file object
    :param codec_config: logger to use
    :return: error code and archive (None on failure)
    """
    codec_config = codec_config or CodecConfig()

    try:
        header = read_header(fp, codec_config)
        tensors = [read_tensor_at(fp, header, index, codec_config) for index in range(header.tensor_count)]
    except DarxError as e:
        codec_config.logger.debug('could not load archive: %s', e.message)
        return LoadResult(e.code, None)

    codec_config.logger.debug('archive read successfully')

    return LoadResult(ErrorCode.SUCCESS, Archive(tensors, header.metadata, True, header.stored_big_endian))
