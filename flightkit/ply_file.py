"""Reading and writing PLY mesh files, one typed buffer per requested group."""

from __future__ import annotations

import io
import struct
from dataclasses import dataclass, field
from typing import IO, Any, Iterable, Sequence

import numpy as np

from flightkit.ply_header import PlyElement, PlyHeader, PlyProperty
from flightkit.ply_types import PlyType, property_info

__all__ = ["PlyData", "PlyFile"]

_FLOAT_TYPES = (PlyType.FLOAT32, PlyType.FLOAT64)


@dataclass(eq=False)
class PlyData:
    """Values of one group of requested properties, stored little-endian."""

    t: PlyType = PlyType.INVALID
    buffer: bytearray = field(default_factory=bytearray)
    count: int = 0
    is_list: bool = False

    def values(self) -> np.ndarray:
        """The buffer as a flat array of the group's scalar type."""
        info = property_info(self.t)
        if not info.code:
            raise ValueError("data has no valid property type")
        return np.frombuffer(bytes(self.buffer), dtype=np.dtype("<" + info.code))

    @property
    def size_bytes(self) -> int:
        return len(self.buffer)


@dataclass(eq=False)
class _Helper:
    data: PlyData
    list_size_hint: int = 0
    offset: int = 0


def _encode_ascii(ptype: PlyType, token: str) -> bytes:
    ptype = PlyType(ptype)
    if ptype == PlyType.INVALID:
        raise ValueError("invalid ply property")
    info = property_info(ptype)
    if ptype in _FLOAT_TYPES:
        try:
            return struct.pack("<" + info.code, float(token))
        except (ValueError, OverflowError) as exc:
            raise ValueError(f"bad {info.name} value {token!r}") from exc
    try:
        value = int(token)
    except ValueError as exc:
        raise ValueError(f"bad {info.name} value {token!r}") from exc
    mask = (1 << (8 * info.stride)) - 1
    return (value & mask).to_bytes(info.stride, "little")


def _format_ascii(ptype: PlyType, raw: bytes) -> str:
    ptype = PlyType(ptype)
    if ptype == PlyType.INVALID:
        raise ValueError("invalid ply property")
    value = struct.unpack("<" + property_info(ptype).code, raw)[0]
    if ptype in _FLOAT_TYPES:
        return format(value, "g")
    return str(value)


class _BinaryReader:
    def __init__(self, payload: bytes, big_endian: bool) -> None:
        self._view = memoryview(payload)
        self._pos = 0
        self._big = big_endian

    def _next(self, nbytes: int) -> bytes:
        end = self._pos + nbytes
        if end > len(self._view):
            raise ValueError("unexpected end of PLY data")
        chunk = bytes(self._view[self._pos:end])
        self._pos = end
        return chunk

    def list_count(self, ptype: PlyType) -> int:
        stride = property_info(ptype).stride
        if stride == 0:
            return 0
        return int.from_bytes(self._next(stride), "big" if self._big else "little")

    def take(self, ptype: PlyType, count: int) -> bytes:
        info = property_info(ptype)
        chunk = self._next(info.stride * count)
        if self._big and info.stride > 1:
            chunk = (
                np.frombuffer(chunk, dtype=np.dtype(">" + info.code))
                .astype(np.dtype("<" + info.code))
                .tobytes()
            )
        return chunk

    def skip(self, ptype: PlyType, count: int) -> None:
        self._next(property_info(ptype).stride * count)


class _AsciiReader:
    def __init__(self, payload: bytes) -> None:
        self._tokens = payload.decode("latin-1").split()
        self._pos = 0

    def _next(self) -> str:
        if self._pos >= len(self._tokens):
            raise ValueError("unexpected end of PLY data")
        token = self._tokens[self._pos]
        self._pos += 1
        return token

    def list_count(self, ptype: PlyType) -> int:
        return int.from_bytes(_encode_ascii(ptype, self._next()), "little")

    def take(self, ptype: PlyType, count: int) -> bytes:
        return b"".join(_encode_ascii(ptype, self._next()) for _ in range(count))

    def skip(self, ptype: PlyType, count: int) -> None:
        for _ in range(count):
            self._next()


class PlyFile:
    """A PLY file: a header plus the property groups requested or added."""

    def __init__(self) -> None:
        self._header = PlyHeader()
        self._user_data: dict[tuple[str, str], _Helper] = {}

    # -- header access ------------------------------------------------------

    def parse_header(self, stream: IO) -> bool:
        """Read the header; False if it held fields the format does not know."""
        self._header = PlyHeader.parse(stream)
        return self._header.valid

    def get_elements(self) -> list[PlyElement]:
        return list(self._header.elements)

    def get_info(self) -> list[str]:
        return list(self._header.obj_info)

    def get_comments(self) -> list[str]:
        """The header comments; the list may be edited before writing."""
        return self._header.comments

    def is_binary_file(self) -> bool:
        return self._header.is_binary

    def _helpers(self) -> list[_Helper]:
        return list({id(h): h for h in self._user_data.values()}.values())

    # -- requesting and adding data ----------------------------------------

    def request_properties_from_element(
        self,
        element_key: str,
        property_keys: Sequence[str] | str,
        list_size_hint: int = 0,
    ) -> PlyData:
        """Ask for properties of one element to be gathered into one buffer."""
        if isinstance(property_keys, str):
            property_keys = [property_keys]
        keys = list(property_keys)
        if not self._header.elements:
            raise ValueError("header had no elements defined. malformed file?")
        if not element_key:
            raise ValueError("`elementKey` argument is empty")
        if not keys:
            raise ValueError("`propertyKeys` argument is empty")

        element = self._header.find_element(element_key)
        if element is None:
            raise ValueError(f"the element key was not found in the header: {element_key}")

        missing = [key for key in keys if element.find_property(key) is None]
        if missing:
            raise ValueError(
                "the following property keys were not found in the header: "
                + "".join(f"{key}, " for key in missing)
            )

        props = [element.find_property(key) for key in keys]
        seen: set[str] = set()
        for prop in props:
            if (element.name, prop.name) in self._user_data or prop.name in seen:
                raise ValueError(
                    "element-property key has already been requested: "
                    f"{element.name} {prop.name}"
                )
            seen.add(prop.name)
        if len({prop.property_type for prop in props}) > 1:
            raise ValueError("all requested properties must share the same type.")

        data = PlyData(
            t=props[-1].property_type,
            count=element.size,
            is_list=props[-1].is_list,
        )
        helper = _Helper(data=data, list_size_hint=int(list_size_hint))
        for prop in props:
            self._user_data[(element.name, prop.name)] = helper
        return data

    def add_properties_to_element(
        self,
        element_key: str,
        property_keys: Sequence[str] | str,
        ptype: PlyType,
        count: int,
        data: Any,
        list_type: PlyType = PlyType.INVALID,
        list_count: int = 0,
    ) -> None:
        """Attach values to an element so that ``write`` will emit them."""
        if isinstance(property_keys, str):
            property_keys = [property_keys]
        ptype = PlyType(ptype)
        list_type = PlyType(list_type)
        if isinstance(data, (bytes, bytearray, memoryview)):
            raw = bytearray(data)
        else:
            code = property_info(ptype).code
            if not code:
                raise ValueError("invalid ply property")
            raw = bytearray(
                np.ascontiguousarray(np.asarray(data), dtype=np.dtype("<" + code)).tobytes()
            )
        helper = _Helper(data=PlyData(t=ptype, buffer=raw, count=int(count)))

        element = self._header.find_element(element_key)
        if element is None:
            element = PlyElement(element_key, int(count))
            self._header.elements.append(element)
        for key in property_keys:
            if list_type == PlyType.INVALID:
                prop = PlyProperty(name=key, property_type=ptype)
            else:
                prop = PlyProperty(
                    name=key,
                    property_type=ptype,
                    is_list=True,
                    list_type=list_type,
                    list_count=int(list_count),
                )
            self._user_data.setdefault((element_key, key), helper)
            element.properties.append(prop)

    # -- payload ------------------------------------------------------------

    def read(self, stream: IO) -> None:
        """Read the payload following the header into the requested buffers."""
        payload = stream.read()
        if isinstance(payload, str):
            payload = payload.encode("latin-1")
        helpers = self._helpers()
        for helper in helpers:
            helper.data.buffer = bytearray()
            helper.offset = 0
        hinted = any(helper.list_size_hint for helper in helpers)

        reader: _BinaryReader | _AsciiReader
        if self._header.is_binary:
            reader = _BinaryReader(payload, self._header.is_big_endian)
        else:
            reader = _AsciiReader(payload)

        for element in self._header.elements:
            for _ in range(element.size):
                for prop in element.properties:
                    helper = self._user_data.get((element.name, prop.name))
                    count = 1
                    if prop.is_list:
                        count = reader.list_count(prop.list_type)
                        if helper is not None and not hinted:
                            if prop.list_count == 0:
                                prop.list_count = count
                            if prop.list_count != count:
                                raise ValueError("variable length lists are not supported yet.")
                    if helper is None:
                        reader.skip(prop.property_type, count)
                    else:
                        helper.data.buffer += reader.take(prop.property_type, count)

    def write(self, stream: IO, binary: bool) -> None:
        """Write the header and every added or read property group."""
        text_stream = isinstance(stream, io.TextIOBase)
        if binary and text_stream:
            raise TypeError("binary PLY output needs a binary stream")
        for helper in self._helpers():
            helper.offset = 0
        self._header.is_binary = bool(binary)
        self._header.is_big_endian = False
        self._header.write(stream, requested=set(self._user_data))

        body = b"".join(self._payload_rows(bool(binary)))
        stream.write(body.decode("latin-1") if text_stream else body)

    def _payload_rows(self, binary: bool) -> Iterable[bytes]:
        for element in self._header.elements:
            for _ in range(element.size):
                row: list[bytes] = []
                for prop in element.properties:
                    helper = self._user_data.get((element.name, prop.name))
                    if helper is None:
                        continue
                    row.append(self._write_property(prop, helper, binary))
                if not binary:
                    row.append(b"\n")
                yield b"".join(row)

    @staticmethod
    def _write_property(prop: PlyProperty, helper: _Helper, binary: bool) -> bytes:
        count = prop.list_count if prop.is_list else 1
        stride = property_info(prop.property_type).stride
        end = helper.offset + stride * count
        raw = bytes(helper.data.buffer[helper.offset:end])
        if len(raw) < stride * count:
            raise ValueError(f"not enough data for property {prop.name}")
        helper.offset = end
        if binary:
            prefix = b""
            if prop.is_list:
                list_stride = property_info(prop.list_type).stride
                mask = (1 << (8 * list_stride)) - 1
                prefix = (count & mask).to_bytes(list_stride, "little")
            return prefix + raw
        parts = [f"{count} "] if prop.is_list else []
        parts.extend(
            _format_ascii(prop.property_type, raw[i * stride:(i + 1) * stride]) + " "
            for i in range(count)
        )
        return "".join(parts).encode("latin-1")