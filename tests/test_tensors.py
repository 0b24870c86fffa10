"""
    Run tests for the tensor records

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
import unittest
import zlib

import numpy as np

from darx import Tensor, ElementKind, SimpleType, MixedType, CustomType, CompressionKind, CompressionStrategy, \
    register_compression, remove_compression, get_compression, InvalidStructError, UnsupportedCompressionTypeError
from darx._hl.compression import CompressedPayload, Uncompressed
from darx._hl.tensors import encode_tensor, read_tensor, write_tensor
from darx.config import FieldLayout

LITTLE = FieldLayout(False, 4, 8)
INT32 = SimpleType(ElementKind.INT, 1, 32)
ZLIB_KIND = 7


class ZlibCompression(CompressionStrategy):
    def compress(self, tensor):
        data = zlib.compress(tensor.payload)
        return CompressedPayload(data, len(data), True)

    def decompress(self, tensor, data):
        try:
            tensor.payload = zlib.decompress(data)
        except zlib.error as e:
            raise InvalidStructError(f'Corrupt zlib payload: {e}')


class SilentCompression(CompressionStrategy):
    def compress(self, tensor):
        return CompressedPayload(tensor.payload, len(tensor.payload), False)

    def decompress(self, tensor, data):
        pass


def decode(serialized, layout=LITTLE):
    fp = io.BytesIO(serialized)
    tensor = read_tensor(fp, layout)
    assert fp.tell() == len(serialized)
    return tensor


class TestTensorModel(unittest.TestCase):
    def test_properties(self):
        tensor = Tensor([4, 4], INT32, bytearray(64), name='')
        assert tensor.rank == 2
        assert tensor.dims == (4, 4)
        assert tensor.payload_size == 64
        assert isinstance(tensor.payload, bytes)
        assert tensor.name is None
        assert tensor.compression == CompressionKind.UNCOMPRESSED


class TestTensorRecords(unittest.TestCase):
    def test_encoding(self):
        payload = np.array([1, 2, 3], dtype='<i4').tobytes()
        serialized = encode_tensor(Tensor([3], INT32, payload), LITTLE)

        assert serialized == b'\x00' + b'\x01' + b'\x03\x00\x00\x00' + b'\x00\x01\x20' + b'\x00' + \
            b'\x0c\x00\x00\x00' + payload

    def test_big_endian_fields(self):
        serialized = encode_tensor(Tensor([4, 4], INT32, b'\x00' * 4, 'a'), FieldLayout(True, 2, 8))

        assert serialized[:7] == b'\x01a\x02\x00\x04\x00\x04'
        assert serialized[-8:-4] == b'\x00\x00\x00\x04'

    def test_round_trip(self):
        tensor = Tensor([4, 4], MixedType(3, 24, [SimpleType(ElementKind.UINT, 1, 8)] * 3), bytes(range(48)),
                        'pixels')
        assert decode(encode_tensor(tensor, LITTLE)) == tensor

        fp = io.BytesIO()
        write_tensor(tensor, fp, FieldLayout(True, 8, 8))
        assert decode(fp.getvalue(), FieldLayout(True, 8, 8)) == tensor

    def test_unnamed(self):
        serialized = encode_tensor(Tensor([1], INT32, b'\x00' * 4, ''), LITTLE)
        assert serialized[0] == 0
        assert decode(serialized).name is None

    def test_rank_zero(self):
        tensor = Tensor([], CustomType(1, 8, 'blob'), b'opaque data')
        assert decode(encode_tensor(tensor, LITTLE)) == tensor

    def test_payload_not_checked_against_dims(self):
        tensor = Tensor([1000], INT32, b'\x01\x02')
        assert decode(encode_tensor(tensor, LITTLE)).payload == b'\x01\x02'


class TestInvalidRecords(unittest.TestCase):
    def test_no_payload(self):
        with self.assertRaises(InvalidStructError):
            encode_tensor(Tensor([3], INT32), LITTLE)

    def test_name_too_long(self):
        with self.assertRaises(InvalidStructError):
            encode_tensor(Tensor([1], INT32, b'\x00' * 4, 'n' * 256), LITTLE)
        assert decode(encode_tensor(Tensor([1], INT32, b'\x00' * 4, 'n' * 255), LITTLE)).name == 'n' * 255

    def test_dimension_too_large(self):
        with self.assertRaises(InvalidStructError):
            encode_tensor(Tensor([300], INT32, b'\x00'), FieldLayout(False, 1, 8))

    def test_unsupported_compression(self):
        with self.assertRaises(UnsupportedCompressionTypeError):
            encode_tensor(Tensor([1], INT32, b'\x00' * 4, compression=9), LITTLE)

        serialized = bytearray(encode_tensor(Tensor([1], INT32, b'\x00' * 4), LITTLE))
        serialized[1 + 1 + 4 + 3] = 9
        with self.assertRaises(UnsupportedCompressionTypeError):
            decode(bytes(serialized))

    def test_truncated_payload(self):
        serialized = encode_tensor(Tensor([3], INT32, b'\x00' * 12), LITTLE)
        with self.assertRaises(InvalidStructError):
            decode(serialized[:-1])


class TestCompression(unittest.TestCase):
    def setUp(self):
        register_compression(ZLIB_KIND, ZlibCompression())

    def tearDown(self):
        remove_compression(ZLIB_KIND)

    def test_uncompressed_passthrough(self):
        tensor = Tensor([2], INT32, b'\x01\x00\x00\x00\x02\x00\x00\x00')
        compressed = get_compression(CompressionKind.UNCOMPRESSED).compress(tensor)

        assert isinstance(get_compression(0), Uncompressed)
        assert compressed.data is tensor.payload
        assert compressed.length == 8
        assert not compressed.is_temporary

    def test_registered_compression(self):
        payload = b'\x00' * 4000
        tensor = Tensor([1000], INT32, payload, 'zeros', ZLIB_KIND)
        serialized = encode_tensor(tensor, LITTLE)

        assert len(serialized) < len(payload)
        assert decode(serialized) == tensor

    def test_decompression_failure(self):
        serialized = bytearray(encode_tensor(Tensor([1000], INT32, b'\x00' * 4000, 'zeros', ZLIB_KIND), LITTLE))
        serialized[-1] ^= 0xFF

        with self.assertRaises(InvalidStructError):
            decode(bytes(serialized))

    def test_missing_decompressed_payload(self):
        register_compression(ZLIB_KIND + 1, SilentCompression())
        try:
            serialized = encode_tensor(Tensor([2], INT32, bytes(8), compression=ZLIB_KIND + 1), LITTLE)
            with self.assertRaises(InvalidStructError):
                decode(serialized)
        finally:
            remove_compression(ZLIB_KIND + 1)

    def test_registry(self):
        with self.assertRaises(ValueError):
            register_compression(ZLIB_KIND, ZlibCompression())
        with self.assertRaises(ValueError):
            register_compression(CompressionKind.UNCOMPRESSED, ZlibCompression())
        with self.assertRaises(ValueError):
            remove_compression(CompressionKind.UNCOMPRESSED)
        with self.assertRaises(KeyError):
            remove_compression(200)
        with self.assertRaises(UnsupportedCompressionTypeError):
            get_compression(200)


if __name__ == '__main__':
    unittest.main()
