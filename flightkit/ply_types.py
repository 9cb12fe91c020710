"""Scalar property types used by the PLY mesh format."""

from __future__ import annotations

import enum
from dataclasses import dataclass

__all__ = ["PlyType", "PropertyInfo", "property_type_from_string", "property_info"]


class PlyType(enum.IntEnum):
    """Scalar types a PLY property may hold."""

    INVALID = 0
    INT8 = 1
    UINT8 = 2
    INT16 = 3
    UINT16 = 4
    INT32 = 5
    UINT32 = 6
    FLOAT32 = 7
    FLOAT64 = 8


@dataclass(frozen=True)
class PropertyInfo:
    """Size in bytes, canonical header name and struct code of a type."""

    stride: int
    name: str
    code: str = ""


_PROPERTY_TABLE: dict[PlyType, PropertyInfo] = {
    PlyType.INT8: PropertyInfo(1, "char", "b"),
    PlyType.UINT8: PropertyInfo(1, "uchar", "B"),
    PlyType.INT16: PropertyInfo(2, "short", "h"),
    PlyType.UINT16: PropertyInfo(2, "ushort", "H"),
    PlyType.INT32: PropertyInfo(4, "int", "i"),
    PlyType.UINT32: PropertyInfo(4, "uint", "I"),
    PlyType.FLOAT32: PropertyInfo(4, "float", "f"),
    PlyType.FLOAT64: PropertyInfo(8, "double", "d"),
    PlyType.INVALID: PropertyInfo(0, "INVALID", ""),
}

_NAME_TO_TYPE: dict[str, PlyType] = {
    "int8": PlyType.INT8,
    "char": PlyType.INT8,
    "uint8": PlyType.UINT8,
    "uchar": PlyType.UINT8,
    "int16": PlyType.INT16,
    "short": PlyType.INT16,
    "uint16": PlyType.UINT16,
    "ushort": PlyType.UINT16,
    "int32": PlyType.INT32,
    "int": PlyType.INT32,
    "uint32": PlyType.UINT32,
    "uint": PlyType.UINT32,
    "float32": PlyType.FLOAT32,
    "float": PlyType.FLOAT32,
    "float64": PlyType.FLOAT64,
    "double": PlyType.FLOAT64,
}


def property_type_from_string(name: str) -> PlyType:
    """Map a header type name to its PlyType; unknown names give INVALID."""
    return _NAME_TO_TYPE.get(name, PlyType.INVALID)


def property_info(ptype: PlyType) -> PropertyInfo:
    """Return the stride, header name and struct code of a type."""
    return _PROPERTY_TABLE[PlyType(ptype)]