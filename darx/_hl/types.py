"""
    Implements the element type model and its binary encoding.

    An element type describes the layout of a single element of a tensor. It is either:
        - a simple type: components values of a signed/unsigned integer, floating point or character kind
        - a mixed type: a tuple of values, each described by its own (recursively defined) element type
        - a custom type: an application-specific layout identified by a name

    Encoding: <KIND><COMPONENTS><BIT WIDTH>, followed by nothing for simple types, <COMPONENTS> encoded subtypes
    for mixed types and <NAME LENGTH><NAME> for custom types.

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
from enum import IntEnum
from numbers import Integral
from typing import BinaryIO, Optional, Tuple, Union

import logging

from .endian import read_bytes
from .errors import InvalidStructError, UnsupportedElementTypeError
from .. import config

logger = logging.getLogger(__name__)


class ElementKind(IntEnum):
    INT = 0
    UINT = 1
    FLOAT = 2
    CHAR = 3
    MIXED = 4
    CUSTOM = 5


SIMPLE_KINDS = (ElementKind.INT, ElementKind.UINT, ElementKind.FLOAT, ElementKind.CHAR)


@dataclass(frozen=True)
class SimpleType:
    """
    Element made of `components` values of the same kind, each `bit_width` bits wide
    (e.g. an RGB pixel is SimpleType(ElementKind.UINT, 3, 8)).
    """
    kind: ElementKind
    components: int = 1
    bit_width: int = 8


@dataclass(frozen=True)
class MixedType:
    """
    Element made of a tuple of `components` values, the i-th one being described by `subtypes[i]`.
    """
    components: int
    bit_width: int
    subtypes: Tuple['ElementType', ...] = ()

    def __post_init__(self):
        object.__setattr__(self, 'subtypes', tuple(self.subtypes))

    @property
    def kind(self) -> ElementKind:
        return ElementKind.MIXED


@dataclass(frozen=True)
class CustomType:
    """
    Element with an application-defined layout, identified by its name.
    The components and bit width are descriptive only.
    """
    components: int
    bit_width: int
    name: Optional[str] = None

    @property
    def kind(self) -> ElementKind:
        return ElementKind.CUSTOM


ElementType = Union[SimpleType, MixedType, CustomType]


def _check_byte(value: int, field_name: str):
    if not isinstance(value, Integral) or not 0 <= value <= 0xFF:
        raise InvalidStructError(f'Expected {field_name} to fit in a byte, got {value}.')


def encode_name(name: str) -> bytes:
    """
    Encode a name with its single byte length prefix.
    :param name: name to encode
    :return: serialized name
    """
    name_serialized = name.encode('utf-8')

    if len(name_serialized) > config.MAX_NAME_LENGTH:
        raise InvalidStructError(f'Name "{name}" is {len(name_serialized)} bytes long, '
                                 f'at most {config.MAX_NAME_LENGTH} are allowed.')

    return bytes([len(name_serialized)]) + name_serialized


def read_name(fp: BinaryIO) -> str:
    """
    Read a name preceded by its single byte length.
    :param fp: file object
    :return: decoded name (empty if the length is zero)
    """
    name_length = read_bytes(fp, config.NUM_BYTES_NAME_LENGTH)[0]

    try:
        return read_bytes(fp, name_length).decode('utf-8')
    except UnicodeDecodeError as e:
        raise InvalidStructError(f'Name is not valid UTF-8: {e}.') from e


def write_element_type(element_type: ElementType, fp: BinaryIO, log: Optional[logging.Logger] = None):
    """
    Write an element type, recursively for mixed types.
    :param element_type: element type to write
    :param fp: file object
    :param log: diagnostics logger
    :return:
    """
    fp.write(encode_element_type(element_type, log))


def encode_element_type(element_type: ElementType, log: Optional[logging.Logger] = None) -> bytes:
    """
    Serialize an element type.
    :param element_type: element type to serialize
    :param log: diagnostics logger
    :return: serialized element type
    """
    log = log or logger

    if isinstance(element_type, SimpleType):
        if element_type.kind not in SIMPLE_KINDS:
            raise UnsupportedElementTypeError(f'Element kind {element_type.kind} is not a simple kind.')
    elif not isinstance(element_type, (MixedType, CustomType)):
        raise UnsupportedElementTypeError(f'Unsupported element type {element_type!r}.')

    _check_byte(element_type.components, 'components')
    _check_byte(element_type.bit_width, 'bit width')

    log.debug('element type: %d, components: %d, bit width: %d',
              element_type.kind, element_type.components, element_type.bit_width)
    serialized = bytes([element_type.kind, element_type.components, element_type.bit_width])

    if isinstance(element_type, MixedType):
        if len(element_type.subtypes) != element_type.components:
            raise InvalidStructError(f'Mixed type has {element_type.components} components '
                                     f'but {len(element_type.subtypes)} subtypes.')
        serialized += b''.join(encode_element_type(subtype, log) for subtype in element_type.subtypes)
    elif isinstance(element_type, CustomType):
        type_name = config.UNKNOWN_TYPE_NAME if element_type.name is None else element_type.name
        log.debug('custom type name: %s', type_name)
        serialized += encode_name(type_name)

    return serialized


def read_element_type(fp: BinaryIO, log: Optional[logging.Logger] = None, depth: int = 0) -> ElementType:
    """
    Read an element type, recursively for mixed types.
    :param fp: file object
    :param log: diagnostics logger
    :param depth: nesting level of the element type being read
    :return: element type
    """
    log = log or logger

    if depth > config.MAX_TYPE_DEPTH:
        raise InvalidStructError(f'Element type nesting exceeds {config.MAX_TYPE_DEPTH} levels.')

    tag, components, bit_width = read_bytes(fp, 3)
    log.debug('element type: %d, components: %d, bit width: %d', tag, components, bit_width)

    if tag in SIMPLE_KINDS:
        return SimpleType(ElementKind(tag), components, bit_width)
    if tag == ElementKind.MIXED:
        subtypes = tuple(read_element_type(fp, log, depth + 1) for _ in range(components))
        return MixedType(components, bit_width, subtypes)
    if tag == ElementKind.CUSTOM:
        type_name = read_name(fp)
        log.debug('custom type name: %s', type_name)
        return CustomType(components, bit_width, type_name)

    raise UnsupportedElementTypeError(f'Unsupported element type tag {tag}.')
