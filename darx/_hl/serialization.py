"""
    Implements conversion between Numpy arrays and tensors.

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
from typing import Optional, Union
from numpy import ndarray
from numpy import dtype

import numpy as np

from .endian import byte_order_char, is_big_endian
from .tensors import Tensor
from .types import CustomType, ElementKind, ElementType, MixedType, SimpleType

"""
Supported numeric types by numpy kind, with their allowed sizes in bytes
"""
dtype_kinds = {
    'i': (ElementKind.INT, (1, 2, 4, 8)),
    'u': (ElementKind.UINT, (1, 2, 4, 8)),
    'f': (ElementKind.FLOAT, (2, 4, 8))
}

"""
Numpy kind by element kind
"""
kind_chars = {kind: char for char, (kind, _) in dtype_kinds.items()}


def _fits_in_byte(value: int, description: str, data_type: dtype):
    if value > 0xFF:
        raise TypeError(f'Type {data_type} has {value} {description}, at most 255 are supported.')


def element_type_from_dtype(data_type: Union[dtype, str]) -> ElementType:
    """
    Converts a numpy array type in an element type, raises an exception if it is not possible.
    :param data_type: numpy array type
    :return: element type
    """
    data_type = np.dtype(data_type)

    if data_type.names is not None:
        if data_type.itemsize != sum(data_type.fields[name][0].itemsize for name in data_type.names):
            raise TypeError(f'Type {data_type} has padding bytes, only packed structured types are supported.')
        _fits_in_byte(len(data_type.names), 'fields', data_type)

        subtypes = tuple(element_type_from_dtype(data_type.fields[name][0]) for name in data_type.names)
        bit_width = data_type.itemsize * 8 if data_type.itemsize * 8 <= 0xFF else 0

        return MixedType(len(subtypes), bit_width, subtypes)

    if data_type.subdtype is not None:
        base_type, shape = data_type.subdtype
        element_type = element_type_from_dtype(base_type)

        if not isinstance(element_type, SimpleType) or element_type.kind == ElementKind.CHAR:
            raise TypeError(f'Type {data_type} is not supported, sub-arrays must hold numbers.')

        components = element_type.components * int(np.prod(shape))
        _fits_in_byte(components, 'components', data_type)

        return SimpleType(element_type.kind, components, element_type.bit_width)

    if data_type.kind in dtype_kinds and data_type.itemsize in dtype_kinds[data_type.kind][1]:
        return SimpleType(dtype_kinds[data_type.kind][0], 1, data_type.itemsize * 8)

    if data_type.kind == 'S':
        _fits_in_byte(data_type.itemsize, 'characters', data_type)
        return SimpleType(ElementKind.CHAR, data_type.itemsize, 8)

    if data_type.kind == 'U':
        _fits_in_byte(data_type.itemsize // 4, 'characters', data_type)
        return SimpleType(ElementKind.CHAR, data_type.itemsize // 4, 32)

    raise TypeError(f'Type {data_type} is not supported. Supported types are: signed/unsigned integers, '
                    f'floats, byte and unicode strings and packed structured types of those.')


def dtype_from_element_type(element_type: ElementType, big_endian: bool) -> dtype:
    """
    Converts an element type in a numpy array type, raises an exception if it is not possible.
    :param element_type: element type
    :param big_endian: byte order of the data
    :return: numpy array type
    """
    order = byte_order_char(big_endian)

    if isinstance(element_type, MixedType):
        return np.dtype([(f'f{index}', dtype_from_element_type(subtype, big_endian))
                         for index, subtype in enumerate(element_type.subtypes)])

    if isinstance(element_type, SimpleType):
        if element_type.kind == ElementKind.CHAR:
            if element_type.bit_width == 8:
                return np.dtype(f'S{element_type.components}')
            if element_type.bit_width == 32:
                return np.dtype(f'{order}U{element_type.components}')
            raise TypeError(f'Characters of {element_type.bit_width} bits are not supported.')

        num_bytes = element_type.bit_width // 8
        if element_type.bit_width % 8 or num_bytes not in dtype_kinds[kind_chars[element_type.kind]][1]:
            raise TypeError(f'{element_type.kind.name} values of {element_type.bit_width} bits are not supported.')

        base_type = np.dtype(f'{order}{kind_chars[element_type.kind]}{num_bytes}')

        return base_type if element_type.components == 1 else np.dtype((base_type, (element_type.components,)))

    raise TypeError(f'Element type {element_type!r} has no numpy equivalent.')


def tensor_from_array(array: ndarray, name: Optional[str] = None, big_endian: Optional[bool] = None) -> Tensor:
    """
    Serialize a numpy array to a tensor
    :param array: numpy array
    :param name: name of the tensor
    :param big_endian: byte order of the archive the tensor will be stored in (defaults to native)
    :return: tensor
    """
    if big_endian is None:
        big_endian = is_big_endian()

    element_type = element_type_from_dtype(array.dtype)
    stored_type = array.dtype.newbyteorder(byte_order_char(big_endian))
    array_serialized = np.ascontiguousarray(array).astype(stored_type, copy=False).tobytes()

    return Tensor(array.shape, element_type, array_serialized, name)


def array_from_tensor(tensor: Tensor, big_endian: Optional[bool] = None,
                      data_type: Optional[Union[dtype, str]] = None) -> ndarray:
    """
    Deserialize a tensor payload to a numpy array in native byte order.
    Custom element types are returned as flat byte arrays unless a type is given.
    :param tensor: tensor to deserialize
    :param big_endian: byte order of the archive the tensor was stored in (defaults to native)
    :param data_type: type of the resulting array (if specified, overrides the element type of the tensor)
    :return: numpy array
    """
    if big_endian is None:
        big_endian = is_big_endian()

    if data_type is not None:
        return np.frombuffer(tensor.payload, dtype=data_type)

    element_type = tensor.element_type

    if isinstance(element_type, CustomType):
        return np.frombuffer(tensor.payload, dtype=np.uint8)

    shape = tensor.dims
    if isinstance(element_type, SimpleType) and element_type.kind != ElementKind.CHAR \
            and element_type.components != 1:
        shape = shape + (element_type.components,)
        element_type = SimpleType(element_type.kind, 1, element_type.bit_width)

    stored_type = dtype_from_element_type(element_type, big_endian)
    array = np.frombuffer(tensor.payload, dtype=stored_type).reshape(shape)

    return array.astype(stored_type.newbyteorder('='))
