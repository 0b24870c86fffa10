"""
    Implements high-level support for archive attributes.

    The metadata block of an archive is opaque to the codec. The high-level interface stores a dictionary
    of attributes in it, serialized as BSON.

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
from typing import Any, AnyStr, Dict

import bson

from .errors import InvalidStructError
from .. import config


def serialize_attrs(attrs: Dict[str, Any]) -> bytes:
    """
    Serializes the attributes.
    :param attrs: dictionary of attributes
    :return: serialized attributes (empty if there are no attributes)
    """
    if not attrs:
        return b''

    for key in attrs.keys():
        if type(key) is not str:
            raise ValueError(f'Expected attribute key type to be str, got {type(key)}.')

    attrs_serialized = bson.dumps(attrs)

    if len(attrs_serialized) > config.MAX_METADATA_LENGTH:
        raise InvalidStructError(f'Serialized attributes are {len(attrs_serialized)} bytes long, '
                                 f'at most {config.MAX_METADATA_LENGTH} are allowed.')

    return attrs_serialized


def deserialize_attrs(serialized: AnyStr) -> Dict[str, Any]:
    """
    Deserialize attributes given as an argument.
    :param serialized: serialized attributes
    :return: dictionary of attributes
    """
    if not serialized:
        return dict()

    try:
        return bson.loads(serialized)
    except Exception as e:
        raise ValueError(f'Metadata does not hold BSON attributes: {e}') from e
