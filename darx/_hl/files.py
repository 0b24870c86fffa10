"""
    Implements high-level support for file objects.

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
from typing import Any, AnyStr, Dict, List, Optional, Type, Union
from types import TracebackType
from numpy import ndarray

from .archive import Archive, ArchiveHeader, load, read_header, read_tensor_at, save
from .errors import ErrorCode, error_from_code
from .metadata import deserialize_attrs, serialize_attrs
from .serialization import array_from_tensor, tensor_from_array
from .tensors import Tensor
from .types import read_name
from .. import config
from ..config import CodecConfig


class File:
    """
        Represents a darx archive file.
    """
    def __init__(self, file_path: str, mode: str, codec_config: Optional[CodecConfig] = None):
        """
        Create a new file object.
        :param file_path: path to the file on disk
        :param mode: opening mode (currently, only "r" or "w" supported)
        :param codec_config: byte order and integer widths used for writing, and diagnostics logger
        """
        self._file_path = file_path
        self._mode = mode
        self._fp = None
        self._config = codec_config or CodecConfig()
        self._header: Optional[ArchiveHeader] = None
        self._names: Optional[List[Optional[str]]] = None
        self._archive: Optional[Archive] = None

        self.open(file_path, mode)
        self._init_data()

    def open(self, file_path: str, mode: str):
        """
        Open the archive file.
        :param file_path: path to the file on disk
        :param mode: opening mode (currently, only "r" or "w" supported)
        :return:
        """
        self._file_path = file_path
        self._mode = mode

        if self._fp is not None:
            self.close()

        if mode not in ('r', 'w'):
            raise ValueError(f'Expected File opening mode to be "r" or "w", got {mode}.')

        self._fp = open(self._file_path, self._mode + 'b')

    def _init_data(self):
        """
        Initialize the archive being written or read the headers of the archive being read.
        :return:
        """
        if self._mode == 'w':
            self._archive = Archive(stored_big_endian=self._config.big_endian)
        else:
            self.validate_file_handle('r')
            self._fp.seek(0)
            try:
                self._header = read_header(self._fp, self._config)
            except Exception:
                self._fp.close()
                raise

    def __enter__(self):
        """
        Return File object when using a "with" statement.
        :return: File object
        """
        return self

    def __exit__(self, exception_type: Optional[Type[BaseException]], exception_value: Optional[BaseException],
                 traceback: Optional[TracebackType]):
        """
        Explicitly close the File when exiting a "with" context and handle exceptions.
        :param exception_type: type of exception
        :param exception_value: value of exception
        :param traceback: traceback
        :return:
        """
        self.close()

    def close(self):
        """
        Close file object, writing the archive in "w" mode.
        Needs to be called explicitly or use a "with" statement.
        :return:
        """
        if self._fp is None:
            return
        if self._fp.closed:
            return

        try:
            if self._mode == 'w':
                self._flush()
        finally:
            self._fp.close()

    def validate_file_handle(self, mode: str):
        if mode == 'r':
            message = 'Trying to read a tensor from'
        elif mode == 'w':
            message = 'Trying to write a tensor to'
        else:
            raise ValueError(f'Unknown mode "{mode}"')

        if self._fp is None:
            raise IOError(f'{message} a non initialized file.')
        if self._fp.closed:
            raise IOError(f'{message} a closed file.')
        if self._mode != mode:
            raise IOError(f'File is expected to be opened in "{mode}" mode, got "{self._mode}".')

    @property
    def stored_big_endian(self) -> bool:
        """
        Byte order of the archive.
        :return: True if multi-byte fields are stored big endian
        """
        if self._mode == 'w':
            return self._archive.stored_big_endian
        return self._header.stored_big_endian

    @property
    def metadata(self) -> bytes:
        if self._mode == 'w':
            return self._archive.metadata
        return self._header.metadata

    @property
    def attrs(self) -> Dict[str, Any]:
        """
        Attributes stored in the metadata of the archive.
        :return: dictionary of attributes
        """
        return deserialize_attrs(self.metadata)

    def num_tensors(self) -> int:
        """
        Get the number of tensors in the archive.
        :return: number of tensors
        """
        if self._mode == 'w':
            return self._archive.tensor_count
        return self._header.tensor_count

    def names(self) -> List[Optional[str]]:
        """
        Get the names of the tensors in the archive, None for unnamed tensors.
        Only the names are read from each tensor record.
        :return: list of names in tensor order
        """
        if self._mode == 'w':
            return [tensor.name for tensor in self._archive.tensors]

        if self._names is None:
            self.validate_file_handle('r')
            names = []
            for offset in self._header.offsets:
                self._fp.seek(offset)
                names.append(read_name(self._fp) or None)
            self._names = names

        return list(self._names)

    def _tensor_index(self, key: Union[int, str]) -> int:
        if isinstance(key, str):
            names = self.names()
            if key not in names:
                raise KeyError(f'Tensor {key} could not be found in the archive.')
            return names.index(key)

        if not 0 <= key < self.num_tensors():
            raise IndexError(f'Tensor {key} out of range.')

        return key

    def get_tensor(self, key: Union[int, str]) -> Tensor:
        """
        Get a tensor from the archive, only its record is read.
        :param key: index or name of the tensor
        :return: tensor
        """
        self.validate_file_handle('r')

        return read_tensor_at(self._fp, self._header, self._tensor_index(key), self._config)

    def get_array(self, key: Union[int, str], dtype: Optional[str] = None) -> ndarray:
        """
        Get a tensor from the archive as a numpy array.
        :param key: index or name of the tensor
        :param dtype: type of the array to decode (if specified, overrides the element type of the tensor)
        :return: an array
        """
        return array_from_tensor(self.get_tensor(key), self._header.stored_big_endian, dtype)

    def to_archive(self) -> Archive:
        """
        Read the whole archive.
        :return: archive
        """
        self.validate_file_handle('r')

        self._fp.seek(0)
        error, archive = load(self._fp, self._config)
        if error != ErrorCode.SUCCESS:
            raise error_from_code(error)

        return archive

    def add_tensor(self, tensor: Tensor):
        """
        Append a tensor to the archive.
        :param tensor: tensor to add
        :return:
        """
        self.validate_file_handle('w')

        if not isinstance(tensor, Tensor):
            raise ValueError(f'Expected value type to be Tensor, got {type(tensor)}.')
        if self._archive.tensor_count >= config.MAX_TENSORS:
            raise ValueError(f'An archive holds at most {config.MAX_TENSORS} tensors.')

        self._archive.tensors.append(tensor)

    def add_array(self, array: ndarray, name: Optional[str] = None):
        """
        Append a numpy array to the archive.
        :param array: array to add
        :param name: name of the tensor
        :return:
        """
        if type(array) is not ndarray:
            raise ValueError(f'Expected value type to be ndarray, got {type(array)}.')

        self.add_tensor(tensor_from_array(array, name, self._config.big_endian))

    def set_metadata(self, metadata: AnyStr):
        """
        Set the raw metadata of the archive.
        :param metadata: metadata bytes
        :return:
        """
        self.validate_file_handle('w')

        if isinstance(metadata, str):
            metadata = metadata.encode('utf-8')
        if len(metadata) > config.MAX_METADATA_LENGTH:
            raise ValueError(f'Metadata is {len(metadata)} bytes long, at most {config.MAX_METADATA_LENGTH} '
                             f'are allowed.')

        self._archive.metadata = bytes(metadata)

    def set_attrs(self, attrs: Dict[str, Any]):
        """
        Store a dictionary of attributes in the metadata of the archive.
        :param attrs: dictionary of attributes
        :return:
        """
        self.set_metadata(serialize_attrs(attrs))

    def _flush(self):
        """
        Write the archive to file.
        :return:
        """
        if self._fp.closed:
            raise IOError('Trying to flush to a closed file.')
        if self._mode != 'w':
            raise IOError(f'File is expected to be opened in write mode, got {self._mode}.')

        self._fp.seek(0)
        error = save(self._archive, self._fp, self._config)
        if error != ErrorCode.SUCCESS:
            raise error_from_code(error)

        self._fp.truncate()
