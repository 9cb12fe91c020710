import io
import struct

import pytest

from flightkit.ply_file import PlyData, PlyFile
from flightkit.ply_types import PlyType

ASCII_MESH = (
    b"ply\n"
    b"format ascii 1.0\n"
    b"comment made by hand\n"
    b"obj_info scanner one\n"
    b"element vertex 2\n"
    b"property float x\n"
    b"property float y\n"
    b"property float z\n"
    b"element face 1\n"
    b"property list uchar int vertex_indices\n"
    b"end_header\n"
    b"1 2 3\n"
    b"4 5 6\n"
    b"3 0 1 1\n"
)


def _open(data: bytes) -> tuple[PlyFile, io.BytesIO]:
    stream = io.BytesIO(data)
    ply = PlyFile()
    assert ply.parse_header(stream)
    return ply, stream


def test_read_ascii_vertices_and_faces():
    ply, stream = _open(ASCII_MESH)
    vertices = ply.request_properties_from_element("vertex", ["x", "y", "z"])
    faces = ply.request_properties_from_element("face", ["vertex_indices"])
    ply.read(stream)
    assert vertices.values().tolist() == [1.0, 2.0, 3.0, 4.0, 5.0, 6.0]
    assert vertices.count == 2
    assert vertices.t == PlyType.FLOAT32
    assert faces.values().tolist() == [0, 1, 1]
    assert faces.is_list


def test_header_metadata():
    ply, _ = _open(ASCII_MESH)
    assert ply.get_comments() == ["made by hand"]
    assert ply.get_info() == ["scanner one"]
    assert not ply.is_binary_file()
    assert [e.name for e in ply.get_elements()] == ["vertex", "face"]


def test_unknown_header_field_reported():
    ply = PlyFile()
    ok = ply.parse_header(io.BytesIO(b"ply\nformat ascii 1.0\nbogus line\nend_header\n"))
    assert ok is False


def test_write_ascii_exact():
    ply = PlyFile()
    ply.add_properties_to_element("vertex", ["x", "y", "z"], PlyType.FLOAT32, 2,
                                  [1, 2, 3, 4, 5, 6])
    out = io.BytesIO()
    ply.write(out, False)
    assert out.getvalue() == (
        b"ply\nformat ascii 1.0\nelement vertex 2\n"
        b"property float x\nproperty float y\nproperty float z\n"
        b"end_header\n1 2 3 \n4 5 6 \n"
    )


def test_write_ascii_list():
    ply = PlyFile()
    ply.add_properties_to_element("face", ["vertex_indices"], PlyType.INT32, 1,
                                  [0, 1, 2], PlyType.UINT8, 3)
    out = io.StringIO()
    ply.write(out, False)
    text = out.getvalue()
    assert "property list uchar int vertex_indices\n" in text
    assert text.endswith("end_header\n3 0 1 2 \n")


def test_write_binary_exact():
    ply = PlyFile()
    ply.add_properties_to_element("face", ["vertex_indices"], PlyType.INT32, 1,
                                  [0, 1, 2], PlyType.UINT8, 3)
    out = io.BytesIO()
    ply.write(out, True)
    header = (b"ply\nformat binary_little_endian 1.0\nelement face 1\n"
              b"property list uchar int vertex_indices\nend_header\n")
    assert out.getvalue() == header + b"\x03" + struct.pack("<3i", 0, 1, 2)


def test_binary_round_trip():
    source = PlyFile()
    points = [0.5, -1.25, 2.0, 3.5, 4.0, -8.0]
    source.add_properties_to_element("vertex", ["x", "y", "z"], PlyType.FLOAT64, 2, points)
    out = io.BytesIO()
    source.write(out, True)

    ply, stream = _open(out.getvalue())
    assert ply.is_binary_file()
    data = ply.request_properties_from_element("vertex", ["x", "y", "z"])
    ply.read(stream)
    assert data.values().tolist() == points


def test_ascii_round_trip_keeps_comments():
    source = PlyFile()
    source.get_comments().append("generated")
    source.add_properties_to_element("vertex", ["x"], PlyType.INT16, 3, [-5, 0, 7])
    out = io.BytesIO()
    source.write(out, False)

    ply, stream = _open(out.getvalue())
    assert ply.get_comments() == ["generated"]
    data = ply.request_properties_from_element("vertex", ["x"])
    ply.read(stream)
    assert data.values().tolist() == [-5, 0, 7]


def test_big_endian_read():
    header = (b"ply\nformat binary_big_endian 1.0\nelement vertex 1\n"
              b"property float x\nproperty float y\n"
              b"element face 1\nproperty list ushort int idx\nend_header\n")
    body = struct.pack(">ff", 1.5, -2.5) + struct.pack(">H", 3) + struct.pack(">3i", 4, 5, 6)
    ply, stream = _open(header + body)
    verts = ply.request_properties_from_element("vertex", ["x", "y"])
    faces = ply.request_properties_from_element("face", ["idx"])
    ply.read(stream)
    assert verts.values().tolist() == [1.5, -2.5]
    assert faces.values().tolist() == [4, 5, 6]


def test_unrequested_properties_are_skipped():
    header = (b"ply\nformat binary_little_endian 1.0\n"
              b"element face 1\nproperty list uchar int idx\n"
              b"element vertex 2\nproperty float x\nproperty double nx\n"
              b"property float z\nend_header\n")
    body = (b"\x02" + struct.pack("<2i", 9, 9)
            + struct.pack("<fdf", 1.0, 7.0, 2.0)
            + struct.pack("<fdf", 3.0, 7.0, 4.0))
    ply, stream = _open(header + body)
    data = ply.request_properties_from_element("vertex", ["x", "z"])
    ply.read(stream)
    assert data.values().tolist() == [1.0, 2.0, 3.0, 4.0]


def test_variable_length_lists_rejected():
    text = (b"ply\nformat ascii 1.0\nelement face 2\n"
            b"property list uchar int idx\nend_header\n3 0 1 2\n4 0 1 2 3\n")
    ply, stream = _open(text)
    ply.request_properties_from_element("face", ["idx"])
    with pytest.raises(ValueError, match="variable length"):
        ply.read(stream)


def test_list_size_hint_skips_length_check():
    text = (b"ply\nformat ascii 1.0\nelement face 2\n"
            b"property list uchar int idx\nend_header\n3 0 1 2\n4 0 1 2 3\n")
    ply, stream = _open(text)
    data = ply.request_properties_from_element("face", ["idx"], 3)
    ply.read(stream)
    assert data.values().tolist() == [0, 1, 2, 0, 1, 2, 3]


def test_truncated_binary_payload():
    header = b"ply\nformat binary_little_endian 1.0\nelement vertex 2\nproperty float x\nend_header\n"
    ply, stream = _open(header + struct.pack("<f", 1.0))
    ply.request_properties_from_element("vertex", ["x"])
    with pytest.raises(ValueError, match="end of PLY data"):
        ply.read(stream)


def test_request_without_header():
    with pytest.raises(ValueError, match="no elements"):
        PlyFile().request_properties_from_element("vertex", ["x"])


def test_request_missing_element_and_property():
    ply, _ = _open(ASCII_MESH)
    with pytest.raises(ValueError, match="element key was not found"):
        ply.request_properties_from_element("edge", ["x"])
    with pytest.raises(ValueError, match="nx, "):
        ply.request_properties_from_element("vertex", ["x", "nx"])
    with pytest.raises(ValueError, match="empty"):
        ply.request_properties_from_element("vertex", [])


def test_request_twice_rejected():
    ply, _ = _open(ASCII_MESH)
    ply.request_properties_from_element("vertex", ["x"])
    with pytest.raises(ValueError, match="already been requested"):
        ply.request_properties_from_element("vertex", ["x", "y"])


def test_request_mixed_types_rejected():
    text = (b"ply\nformat ascii 1.0\nelement vertex 1\nproperty float x\n"
            b"property uchar red\nend_header\n1 2\n")
    ply, _ = _open(text)
    with pytest.raises(ValueError, match="share the same type"):
        ply.request_properties_from_element("vertex", ["x", "red"])


def test_binary_write_to_text_stream_rejected():
    ply = PlyFile()
    ply.add_properties_to_element("vertex", ["x"], PlyType.FLOAT32, 1, [1.0])
    with pytest.raises(TypeError):
        ply.write(io.StringIO(), True)


def test_values_of_invalid_data():
    with pytest.raises(ValueError):
        PlyData().values()