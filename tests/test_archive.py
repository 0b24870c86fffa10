"""
    Run tests for the archive format

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
import tempfile
import unittest

import numpy as np

from darx import Archive, Tensor, ElementKind, SimpleType, MixedType, CustomType, CodecConfig, ErrorCode, \
    array_from_tensor, is_darx, load, save, read_header, read_tensor_at
from darx._hl.endian import is_big_endian
from darx._hl.tensors import encode_tensor

UINT8 = SimpleType(ElementKind.UINT, 1, 8)


def create_test_archive(stored_big_endian=None):
    if stored_big_endian is None:
        stored_big_endian = is_big_endian()
    order = '>' if stored_big_endian else '<'

    tensor_a = Tensor([3], SimpleType(ElementKind.INT, 1, 32), np.array([1, 2, 3], dtype=order + 'i4').tobytes())
    tensor_b = Tensor([4, 4], MixedType(3, 24, [UINT8, UINT8, UINT8]), bytes(range(48)), 'pixels')

    return Archive([tensor_a, tensor_b], b'v1', stored_big_endian=stored_big_endian)


def create_mixed_archive():
    nested = MixedType(2, 0, [
        MixedType(2, 48, [SimpleType(ElementKind.FLOAT, 1, 32), SimpleType(ElementKind.INT, 1, 16)]),
        SimpleType(ElementKind.CHAR, 4, 8)
    ])
    return Archive([
        Tensor([2, 3, 5], SimpleType(ElementKind.FLOAT, 1, 64), np.random.random(30).tobytes(), 'weights'),
        Tensor([10], nested, bytes(100), 'records'),
        Tensor([70000], CustomType(1, 8, 'png'), b'\x89PNG' + bytes(64)),
        Tensor([], UINT8, b'\x2a', 'scalar')
    ], 'schema: 1'.encode('utf-8'))


def save_to_buffer(archive, codec_config=None):
    fp = io.BytesIO()
    assert save(archive, fp, codec_config) == ErrorCode.SUCCESS
    fp.seek(0)
    return fp


class TestRoundTrip(unittest.TestCase):
    def test_two_tensors(self):
        archive = create_test_archive()
        fp = save_to_buffer(archive)

        result = load(fp)
        assert result.ok
        assert result.error == ErrorCode.SUCCESS
        loaded = result.archive

        assert loaded.tensor_count == 2
        assert loaded.metadata == b'v1'
        assert loaded.tensors[0].name is None
        assert loaded.tensors[0].element_type.kind == ElementKind.INT
        assert loaded.tensors[0].dims == (3,)
        assert np.all(np.frombuffer(loaded.tensors[0].payload, dtype='=i4') == [1, 2, 3])
        assert loaded.tensors[1].name == 'pixels'
        assert isinstance(loaded.tensors[1].element_type, MixedType)
        assert [subtype.kind for subtype in loaded.tensors[1].element_type.subtypes] == [ElementKind.UINT] * 3
        assert loaded.tensors[1].payload_size == 48
        assert loaded == archive

    def test_all_element_types(self):
        archive = create_mixed_archive()
        assert load(save_to_buffer(archive)).archive == archive

    def test_empty_archive(self):
        archive = Archive()
        fp = save_to_buffer(archive)
        assert len(fp.getvalue()) == 4 + 4 + 1 + 1 + 2 + 2

        loaded = load(fp).archive
        assert loaded.tensor_count == 0
        assert loaded.metadata == b''
        assert loaded == archive

    def test_field_widths(self):
        archive = create_mixed_archive()
        for int_size, long_size in ((4, 4), (8, 8), (4, 2)):
            fp = save_to_buffer(archive, CodecConfig(int_size=int_size, long_size=long_size))
            header = read_header(fp)
            assert (header.int_size, header.long_size) == (int_size, long_size)

            fp.seek(0)
            assert load(fp).archive == archive

    def test_base_offset(self):
        archive = create_test_archive()
        fp = io.BytesIO()
        fp.write(b'prefix')
        assert save(archive, fp) == ErrorCode.SUCCESS

        fp.seek(6)
        assert is_darx(fp)
        assert load(fp).archive == archive


class TestLayout(unittest.TestCase):
    def test_header(self):
        serialized = save_to_buffer(create_test_archive()).getvalue()

        assert serialized[:4] == b'DARX'
        assert serialized[4:8] == (b'LIVE' if is_big_endian() else b'EVIL')
        assert serialized[8] == 4
        assert serialized[9] == 8
        assert serialized[10:12] == (b'\x00\x02' if is_big_endian() else b'\x02\x00')

    def test_index_table(self):
        archive = create_mixed_archive()
        codec_config = CodecConfig()
        fp = save_to_buffer(archive, codec_config)
        header = read_header(fp)

        assert header.tensor_count == archive.tensor_count
        assert header.metadata == archive.metadata
        for index, tensor in enumerate(archive.tensors):
            record = encode_tensor(tensor, codec_config.layout)
            fp.seek(header.offsets[index])
            assert fp.read(len(record)) == record

    def test_random_access(self):
        archive = create_mixed_archive()
        fp = save_to_buffer(archive)
        header = read_header(fp)

        for index in np.random.permutation(archive.tensor_count):
            assert read_tensor_at(fp, header, int(index)) == archive.tensors[index]

        with self.assertRaises(IndexError):
            read_tensor_at(fp, header, archive.tensor_count)


class TestIsDarx(unittest.TestCase):
    def test_position_preserved(self):
        fp = save_to_buffer(create_test_archive())

        assert is_darx(fp)
        assert fp.tell() == 0

        fp.seek(2)
        assert not is_darx(fp)
        assert fp.tell() == 2

    def test_short_files(self):
        assert not is_darx(io.BytesIO())
        assert not is_darx(io.BytesIO(b'DA'))
        assert not is_darx(io.BytesIO(b'NOPE1234'))
        assert is_darx(io.BytesIO(b'DARX'))


class TestCrossEndian(unittest.TestCase):
    def test_foreign_byte_order(self):
        foreign = not is_big_endian()
        archive = create_test_archive(stored_big_endian=foreign)
        archive.tensors.append(Tensor([70000, 2], UINT8, bytes(10), 'wide'))

        fp = save_to_buffer(archive, CodecConfig(big_endian=foreign))
        assert fp.getvalue()[4:8] == (b'LIVE' if foreign else b'EVIL')

        header = read_header(fp)
        assert header.stored_big_endian == foreign
        assert header.needs_swap
        assert header.tensor_count == 3

        fp.seek(0)
        with self.assertLogs('darx', level='INFO'):
            result = load(fp)

        assert result.ok
        assert result.archive.stored_big_endian == foreign
        assert result.archive.tensors[2].dims == (70000, 2)
        assert np.all(np.frombuffer(result.archive.tensors[0].payload,
                                    dtype=('>' if foreign else '<') + 'i4') == [1, 2, 3])
        assert result.archive == archive

    def test_resave_foreign_archive(self):
        foreign = not is_big_endian()
        fp = save_to_buffer(create_test_archive(stored_big_endian=foreign), CodecConfig(big_endian=foreign))
        loaded = load(fp).archive

        resaved = save_to_buffer(loaded)
        header = read_header(resaved)
        assert header.stored_big_endian == foreign

        resaved.seek(0)
        reloaded = load(resaved).archive
        assert reloaded == loaded
        assert list(array_from_tensor(reloaded.tensors[0], header.stored_big_endian)) == [1, 2, 3]

    def test_byte_order_mismatch(self):
        foreign = not is_big_endian()
        archive = create_test_archive(stored_big_endian=foreign)
        fp = io.BytesIO()

        assert save(archive, fp, CodecConfig(big_endian=not foreign)) == ErrorCode.INVALID_STRUCT
        assert fp.getvalue() == b''

    def test_native_byte_order(self):
        header = read_header(save_to_buffer(create_test_archive()))
        assert not header.needs_swap
        assert header.stored_big_endian == is_big_endian()


class TestErrors(unittest.TestCase):
    def test_invalid_archive(self):
        archive = create_test_archive()
        archive.valid = False
        fp = io.BytesIO()

        assert save(archive, fp) == ErrorCode.INVALID_STRUCT
        assert fp.getvalue() == b''

    def test_missing_payload(self):
        archive = create_test_archive()
        archive.tensors[1].payload = None
        fp = io.BytesIO()

        assert save(archive, fp) == ErrorCode.INVALID_STRUCT
        assert fp.getvalue() == b''

    def test_unsupported_type_on_save(self):
        archive = create_test_archive()
        archive.tensors[0].element_type = SimpleType(ElementKind.CUSTOM, 1, 8)

        assert save(archive, io.BytesIO()) == ErrorCode.UNSUPPORTED_ELEMENT_TYPE

    def test_unsupported_compression_on_save(self):
        archive = create_test_archive()
        archive.tensors[0].compression = 99

        assert save(archive, io.BytesIO()) == ErrorCode.UNSUPPORTED_COMPRESSION_TYPE

    def test_metadata_too_long(self):
        assert save(Archive(metadata=bytes(70000)), io.BytesIO()) == ErrorCode.INVALID_STRUCT

    def test_bad_magic(self):
        serialized = bytearray(save_to_buffer(create_test_archive()).getvalue())
        serialized[0:4] = b'DARK'

        assert load(io.BytesIO(bytes(serialized))) == (ErrorCode.INVALID_STRUCT, None)
        assert load(io.BytesIO()) == (ErrorCode.INVALID_STRUCT, None)

    def test_bad_endian_marker(self):
        serialized = bytearray(save_to_buffer(create_test_archive()).getvalue())
        serialized[4:8] = b'LOVE'

        assert load(io.BytesIO(bytes(serialized))).error == ErrorCode.INVALID_STRUCT

    def test_unsupported_field_width(self):
        serialized = bytearray(save_to_buffer(create_test_archive()).getvalue())
        serialized[8] = 3

        assert load(io.BytesIO(bytes(serialized))).error == ErrorCode.INVALID_STRUCT

    def test_truncated(self):
        serialized = save_to_buffer(create_test_archive()).getvalue()

        for length in (6, 11, 20, len(serialized) - 1):
            result = load(io.BytesIO(serialized[:length]))
            assert result.error == ErrorCode.INVALID_STRUCT
            assert result.archive is None

    def test_tensor_offsets_out_of_range(self):
        serialized = save_to_buffer(create_test_archive()).getvalue()

        for offset in (b'\xff' * 8, b'\x00' * 8, len(serialized).to_bytes(8, 'big' if is_big_endian() else 'little')):
            corrupted = serialized[:12] + offset + serialized[20:]
            assert load(io.BytesIO(corrupted)) == (ErrorCode.INVALID_STRUCT, None)

        with tempfile.TemporaryFile() as fp:
            fp.write(serialized[:12] + b'\xff' * 7 + b'\x7f' + serialized[20:])
            fp.seek(0)
            assert load(fp) == (ErrorCode.INVALID_STRUCT, None)

    def test_payload_length_past_end_of_file(self):
        fp = save_to_buffer(create_test_archive())
        header = read_header(fp)
        serialized = bytearray(fp.getvalue())
        # unnamed, rank 1, three type bytes and the compression tag precede the payload length
        position = header.offsets[0] + 1 + 1 + 4 + 3 + 1
        serialized[position:position + 4] = b'\xff' * 4

        assert load(io.BytesIO(bytes(serialized))) == (ErrorCode.INVALID_STRUCT, None)

    def test_unsupported_element_type_on_load(self):
        fp = save_to_buffer(create_test_archive())
        header = read_header(fp)
        serialized = bytearray(fp.getvalue())
        # unnamed, rank 1: name length, rank and a single 4-byte dimension precede the element type
        serialized[header.offsets[0] + 1 + 1 + 4] = 9

        result = load(io.BytesIO(bytes(serialized)))
        assert result.error == ErrorCode.UNSUPPORTED_ELEMENT_TYPE
        assert result.archive is None

    def test_unsupported_compression_on_load(self):
        fp = save_to_buffer(create_test_archive())
        header = read_header(fp)
        serialized = bytearray(fp.getvalue())
        serialized[header.offsets[0] + 1 + 1 + 4 + 3] = 42

        result = load(io.BytesIO(bytes(serialized)))
        assert result.error == ErrorCode.UNSUPPORTED_COMPRESSION_TYPE
        assert result.archive is None


if __name__ == '__main__':
    unittest.main()
