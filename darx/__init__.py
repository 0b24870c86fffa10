"""
    Python implementation of the darx data archive format.

    A darx archive stores a set of named tensors (multi-dimensional arrays of typed elements) along with
    free-form metadata in a single file. Each tensor describes its own dimensions and element type, which can be
    simple (integers, floats, characters), mixed (a tuple of recursively typed values) or custom
    (an application-defined layout identified by a name). A tensor index table allows for random access of the
    tensors.

    The data is stored in a binary file as follows:
    <MAGIC BYTES><ENDIAN MARKER><INT SIZE><LONG SIZE><NUMBER OF TENSORS><TENSOR INDEX>
    <METADATA LENGTH><METADATA><TENSOR RECORDS>
"""
from ._hl.archive import Archive, ArchiveHeader, LoadResult, is_darx, load, save, read_header, read_tensor_at
from ._hl.compression import CompressionKind, CompressionStrategy, Uncompressed, register_compression, \
    remove_compression, get_compression
from ._hl.errors import ErrorCode, DarxError, UnsupportedElementTypeError, UnsupportedCompressionTypeError, \
    InvalidStructError
from ._hl.files import File
from ._hl.serialization import tensor_from_array, array_from_tensor
from ._hl.tensors import Tensor
from ._hl.types import ElementKind, SimpleType, MixedType, CustomType
from .config import CodecConfig
from .version import version as __version__
