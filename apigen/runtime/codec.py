"""Standard message codec.

Binary layout of the Flutter standard message codec: a one byte type tag
followed by the value, little-endian, with sizes written in a variable
length form and numeric data aligned to its element size. Subclasses add
custom types by overriding ``write_value`` and ``read_value_of_type`` with
tags from 128 upward.
"""

import struct
from typing import Any, Optional

import numpy

from ..errors import CodecError

NULL = 0
TRUE = 1
FALSE = 2
INT32 = 3
INT64 = 4
FLOAT64 = 6
STRING = 7
UINT8_LIST = 8
INT32_LIST = 9
INT64_LIST = 10
FLOAT64_LIST = 11
LIST = 12
MAP = 13
FLOAT32_LIST = 14

# tag -> (dtype, element size) for typed numeric arrays
_TYPED_LISTS = {
    INT32_LIST: ('<i4', 4),
    INT64_LIST: ('<i8', 8),
    FLOAT64_LIST: ('<f8', 8),
    FLOAT32_LIST: ('<f4', 4),
}

_DTYPE_TAGS = {
    numpy.dtype('int32'): INT32_LIST,
    numpy.dtype('int64'): INT64_LIST,
    numpy.dtype('float64'): FLOAT64_LIST,
    numpy.dtype('float32'): FLOAT32_LIST,
}

_INT32_MIN, _INT32_MAX = -(1 << 31), (1 << 31) - 1
_INT64_MIN, _INT64_MAX = -(1 << 63), (1 << 63) - 1


class WriteBuffer:
    """Growable output buffer"""

    def __init__(self):
        self._data = bytearray()

    def put_uint8(self, value: int):
        self._data.append(value)

    def put_uint16(self, value: int):
        self._data += struct.pack('<H', value)

    def put_uint32(self, value: int):
        self._data += struct.pack('<I', value)

    def put_int32(self, value: int):
        self._data += struct.pack('<i', value)

    def put_int64(self, value: int):
        self._data += struct.pack('<q', value)

    def put_float64(self, value: float):
        self.align(8)
        self._data += struct.pack('<d', value)

    def put_bytes(self, data: bytes):
        self._data += data

    def align(self, alignment: int):
        mod = len(self._data) % alignment
        if mod:
            self._data += bytes(alignment - mod)

    def done(self) -> bytes:
        return bytes(self._data)


class ReadBuffer:
    """Cursor over an encoded message"""

    def __init__(self, data: bytes):
        self._data = memoryview(data)
        self._position = 0

    @property
    def has_remaining(self) -> bool:
        return self._position < len(self._data)

    def _take(self, count: int) -> memoryview:
        end = self._position + count
        if end > len(self._data):
            raise CodecError("Message corrupted: unexpected end of data")
        chunk = self._data[self._position:end]
        self._position = end
        return chunk

    def get_uint8(self) -> int:
        return self._take(1)[0]

    def get_uint16(self) -> int:
        return struct.unpack('<H', self._take(2))[0]

    def get_uint32(self) -> int:
        return struct.unpack('<I', self._take(4))[0]

    def get_int32(self) -> int:
        return struct.unpack('<i', self._take(4))[0]

    def get_int64(self) -> int:
        return struct.unpack('<q', self._take(8))[0]

    def get_float64(self) -> float:
        self.align(8)
        return struct.unpack('<d', self._take(8))[0]

    def get_bytes(self, count: int) -> bytes:
        return bytes(self._take(count))

    def align(self, alignment: int):
        mod = self._position % alignment
        if mod:
            self._take(alignment - mod)


class StandardMessageCodec:
    """Encodes None, bool, int, float, str, bytes, numpy arrays, lists and dicts"""

    def encode_message(self, message: Any) -> Optional[bytes]:
        if message is None:
            return None
        buffer = WriteBuffer()
        self.write_value(buffer, message)
        return buffer.done()

    def decode_message(self, data: Optional[bytes]) -> Any:
        if data is None:
            return None
        buffer = ReadBuffer(data)
        result = self.read_value(buffer)
        if buffer.has_remaining:
            raise CodecError("Message corrupted: trailing data")
        return result

    def write_size(self, buffer: WriteBuffer, value: int):
        if value < 254:
            buffer.put_uint8(value)
        elif value <= 0xFFFF:
            buffer.put_uint8(254)
            buffer.put_uint16(value)
        else:
            buffer.put_uint8(255)
            buffer.put_uint32(value)

    def read_size(self, buffer: ReadBuffer) -> int:
        value = buffer.get_uint8()
        if value < 254:
            return value
        if value == 254:
            return buffer.get_uint16()
        return buffer.get_uint32()

    def write_value(self, buffer: WriteBuffer, value: Any):
        if value is None:
            buffer.put_uint8(NULL)
        elif isinstance(value, (bool, numpy.bool_)):
            buffer.put_uint8(TRUE if value else FALSE)
        elif isinstance(value, (int, numpy.integer)):
            value = int(value)
            if _INT32_MIN <= value <= _INT32_MAX:
                buffer.put_uint8(INT32)
                buffer.put_int32(value)
            elif _INT64_MIN <= value <= _INT64_MAX:
                buffer.put_uint8(INT64)
                buffer.put_int64(value)
            else:
                raise CodecError(f"Integer {value} does not fit in 64 bits")
        elif isinstance(value, (float, numpy.floating)):
            buffer.put_uint8(FLOAT64)
            buffer.put_float64(float(value))
        elif isinstance(value, str):
            data = value.encode('utf-8')
            buffer.put_uint8(STRING)
            self.write_size(buffer, len(data))
            buffer.put_bytes(data)
        elif isinstance(value, (bytes, bytearray)):
            buffer.put_uint8(UINT8_LIST)
            self.write_size(buffer, len(value))
            buffer.put_bytes(bytes(value))
        elif isinstance(value, numpy.ndarray):
            self._write_array(buffer, value)
        elif isinstance(value, (list, tuple)):
            buffer.put_uint8(LIST)
            self.write_size(buffer, len(value))
            for item in value:
                self.write_value(buffer, item)
        elif isinstance(value, dict):
            buffer.put_uint8(MAP)
            self.write_size(buffer, len(value))
            for key, item in value.items():
                self.write_value(buffer, key)
                self.write_value(buffer, item)
        else:
            raise CodecError(f"Unsupported value: {value!r} of type {type(value).__name__}")

    def _write_array(self, buffer: WriteBuffer, value: numpy.ndarray):
        if value.ndim != 1:
            raise CodecError(f"Only one-dimensional arrays can be encoded, got shape {value.shape}")
        if value.dtype == numpy.uint8:
            buffer.put_uint8(UINT8_LIST)
            self.write_size(buffer, len(value))
            buffer.put_bytes(value.tobytes())
            return
        tag = _DTYPE_TAGS.get(value.dtype)
        if tag is None:
            raise CodecError(f"Unsupported array dtype: {value.dtype}")
        dtype, size = _TYPED_LISTS[tag]
        buffer.put_uint8(tag)
        self.write_size(buffer, len(value))
        buffer.align(size)
        buffer.put_bytes(value.astype(dtype, copy=False).tobytes())

    def read_value(self, buffer: ReadBuffer) -> Any:
        return self.read_value_of_type(buffer.get_uint8(), buffer)

    def read_value_of_type(self, type_: int, buffer: ReadBuffer) -> Any:
        if type_ == NULL:
            return None
        if type_ == TRUE:
            return True
        if type_ == FALSE:
            return False
        if type_ == INT32:
            return buffer.get_int32()
        if type_ == INT64:
            return buffer.get_int64()
        if type_ == FLOAT64:
            return buffer.get_float64()
        if type_ == STRING:
            length = self.read_size(buffer)
            return buffer.get_bytes(length).decode('utf-8')
        if type_ == UINT8_LIST:
            length = self.read_size(buffer)
            return buffer.get_bytes(length)
        if type_ in _TYPED_LISTS:
            dtype, size = _TYPED_LISTS[type_]
            length = self.read_size(buffer)
            buffer.align(size)
            return numpy.frombuffer(buffer.get_bytes(length * size), dtype=dtype).copy()
        if type_ == LIST:
            length = self.read_size(buffer)
            return [self.read_value(buffer) for _ in range(length)]
        if type_ == MAP:
            length = self.read_size(buffer)
            result = {}
            for _ in range(length):
                key = self.read_value(buffer)
                result[key] = self.read_value(buffer)
            return result
        raise CodecError(f"Message corrupted: unknown type {type_}")
