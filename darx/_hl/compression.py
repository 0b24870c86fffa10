"""
    Implements the compression strategies applied to tensor payloads.

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
from enum import IntEnum
from typing import Dict

import logging

from .errors import UnsupportedCompressionTypeError

logger = logging.getLogger(__name__)


class CompressionKind(IntEnum):
    UNCOMPRESSED = 0


"""
    Stored form of a payload. `is_temporary` is True when `data` was produced for writing only
    and is not the tensor's own buffer.
"""
CompressedPayload = namedtuple('CompressedPayload', 'data length is_temporary')


class CompressionStrategy:
    """
    Transform applied to a tensor payload before it is written and after it is read.
    """
    def compress(self, tensor: 'Tensor') -> CompressedPayload:
        """
        Get the stored form of the tensor payload.
        :param tensor: tensor to write
        :return: compressed payload
        """
        raise NotImplementedError

    def decompress(self, tensor: 'Tensor', data: bytes):
        """
        Populate the tensor payload from its stored form.
        Failures are reported by raising a DarxError (InvalidStructError for corrupt data),
        which aborts loading the archive.
        :param tensor: tensor being read
        :param data: stored payload
        :return:
        """
        raise NotImplementedError


class Uncompressed(CompressionStrategy):
    def compress(self, tensor: 'Tensor') -> CompressedPayload:
        return CompressedPayload(tensor.payload, len(tensor.payload), False)

    def decompress(self, tensor: 'Tensor', data: bytes):
        tensor.payload = bytes(data)


_BUILTIN_STRATEGIES: Dict[int, CompressionStrategy] = {
    CompressionKind.UNCOMPRESSED: Uncompressed()
}

_CUSTOM_STRATEGIES: Dict[int, CompressionStrategy] = dict()


def register_compression(kind: int, strategy: CompressionStrategy):
    """
    Register a compression strategy for a compression tag.
    :param kind: compression tag stored in the tensor records (1-255)
    :param strategy: strategy to use for this tag
    :return:
    """
    if not 0 <= kind <= 0xFF:
        raise ValueError(f'Compression kind must fit in a byte, got {kind}.')
    if kind in _BUILTIN_STRATEGIES:
        raise ValueError(f'Compression kind {kind} is built-in and cannot be replaced.')
    if kind in _CUSTOM_STRATEGIES:
        raise ValueError(f'Compression kind {kind} is already registered.')
    if not isinstance(strategy, CompressionStrategy):
        raise TypeError(f'Expected a CompressionStrategy, got {type(strategy)}.')

    _CUSTOM_STRATEGIES[kind] = strategy
    logger.debug('registered compression kind %d: %s', kind, type(strategy).__name__)


def remove_compression(kind: int):
    """
    Unregister a previously registered compression strategy.
    :param kind: compression tag
    :return:
    """
    if kind in _BUILTIN_STRATEGIES:
        raise ValueError(f'Compression kind {kind} is built-in and cannot be removed.')
    if kind not in _CUSTOM_STRATEGIES:
        raise KeyError(f'No compression registered for kind {kind}.')

    del _CUSTOM_STRATEGIES[kind]


def get_compression(kind: int) -> CompressionStrategy:
    """
    Get the strategy for a compression tag.
    :param kind: compression tag
    :return: compression strategy
    """
    strategy = _BUILTIN_STRATEGIES.get(kind) or _CUSTOM_STRATEGIES.get(kind)

    if strategy is None:
        raise UnsupportedCompressionTypeError(f'Unsupported compression type {kind}.')

    return strategy
