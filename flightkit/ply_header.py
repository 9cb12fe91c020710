"""Header model of the PLY mesh format: elements, properties and metadata."""

from __future__ import annotations

import io
from dataclasses import dataclass, field
from typing import IO, Collection, Iterable, Sequence

from flightkit.ply_types import PlyType, property_info, property_type_from_string

__all__ = ["PlyProperty", "PlyElement", "PlyHeader"]


def _token(tokens: Sequence[str], index: int) -> str:
    return tokens[index] if index < len(tokens) else ""


@dataclass
class PlyProperty:
    """One property of an element, either a scalar or a fixed-length list."""

    name: str
    property_type: PlyType = PlyType.INVALID
    is_list: bool = False
    list_type: PlyType = PlyType.INVALID
    list_count: int = 0

    @classmethod
    def from_tokens(cls, tokens: Sequence[str]) -> PlyProperty:
        """Build a property from the words following ``property`` in a header."""
        tokens = list(tokens)
        if _token(tokens, 0) == "list":
            return cls(
                name=_token(tokens, 3),
                property_type=property_type_from_string(_token(tokens, 2)),
                is_list=True,
                list_type=property_type_from_string(_token(tokens, 1)),
            )
        return cls(
            name=_token(tokens, 1),
            property_type=property_type_from_string(_token(tokens, 0)),
        )

    def header_line(self) -> str:
        """The header line describing this property."""
        if self.is_list:
            return (
                f"property list {property_info(self.list_type).name} "
                f"{property_info(self.property_type).name} {self.name}"
            )
        return f"property {property_info(self.property_type).name} {self.name}"


@dataclass
class PlyElement:
    """A named element with a row count and its properties."""

    name: str
    size: int = 0
    properties: list[PlyProperty] = field(default_factory=list)

    @classmethod
    def from_tokens(cls, tokens: Sequence[str]) -> PlyElement:
        """Build an element from the words following ``element`` in a header."""
        try:
            size = int(_token(tokens, 1))
        except ValueError:
            size = 0
        return cls(name=_token(tokens, 0), size=max(size, 0))

    def find_property(self, name: str) -> PlyProperty | None:
        """Return the property called ``name``, or None."""
        return next((p for p in self.properties if p.name == name), None)


@dataclass
class PlyHeader:
    """The ASCII header that opens every PLY file."""

    is_binary: bool = False
    is_big_endian: bool = False
    elements: list[PlyElement] = field(default_factory=list)
    comments: list[str] = field(default_factory=list)
    obj_info: list[str] = field(default_factory=list)
    unknown_lines: list[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        """False when the header held fields the format does not know."""
        return not self.unknown_lines

    @classmethod
    def parse(cls, stream: IO) -> PlyHeader:
        """Read header lines from ``stream`` up to and including ``end_header``.

        The stream is left positioned at the first byte of the payload.
        """
        header = cls()
        for line in _lines(stream):
            words = line.split()
            token = words[0] if words else ""
            if token in ("ply", "PLY", ""):
                continue
            if token == "comment":
                header.comments.append(line[8:])
            elif token == "format":
                fmt = _token(words, 1)
                if fmt == "binary_little_endian":
                    header.is_binary = True
                elif fmt == "binary_big_endian":
                    header.is_binary = True
                    header.is_big_endian = True
            elif token == "element":
                header.elements.append(PlyElement.from_tokens(words[1:]))
            elif token == "property":
                if not header.elements:
                    raise ValueError("no elements defined; file is malformed")
                header.elements[-1].properties.append(PlyProperty.from_tokens(words[1:]))
            elif token == "obj_info":
                header.obj_info.append(line[9:])
            elif token == "end_header":
                break
            else:
                header.unknown_lines.append(line)
        return header

    def write(
        self,
        stream: IO,
        requested: Collection[tuple[str, str]] | None = None,
    ) -> None:
        """Write the header to ``stream``.

        Only properties whose ``(element, property)`` pair is in ``requested``
        are listed; ``None`` lists them all.
        """
        out = ["ply"]
        if self.is_binary:
            out.append(
                "format binary_big_endian 1.0"
                if self.is_big_endian
                else "format binary_little_endian 1.0"
            )
        else:
            out.append("format ascii 1.0")
        out.extend(f"comment {comment}" for comment in self.comments)
        for element in self.elements:
            out.append(f"element {element.name} {element.size}")
            out.extend(
                prop.header_line()
                for prop in element.properties
                if requested is None or (element.name, prop.name) in requested
            )
        out.append("end_header")
        text = "".join(line + "\n" for line in out)
        if isinstance(stream, io.TextIOBase):
            stream.write(text)
        else:
            stream.write(text.encode("latin-1"))

    def find_element(self, name: str) -> PlyElement | None:
        """Return the element called ``name``, or None."""
        return next((e for e in self.elements if e.name == name), None)


def _lines(stream: IO) -> Iterable[str]:
    while True:
        raw = stream.readline()
        if not raw:
            return
        if isinstance(raw, bytes):
            raw = raw.decode("latin-1")
        yield raw.rstrip("\r\n")