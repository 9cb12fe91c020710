# flightkit

Tools for working with point clouds in quadrotor motion planning:

- **PLY files**: read and write ASCII and binary PLY meshes and point clouds.
  Little- and big-endian binary input is read; output is ASCII or
  little-endian binary (`flightkit.ply_file`, `flightkit.ply_header`,
  `flightkit.ply_types`).
- **Point-cloud helpers**: load the vertex positions of a PLY file, compute
  their bounding box, check whether a position is clear of obstacle points,
  and densify a waypoint path (`flightkit.planning`).

## Installation

```
pip install .
```

Requires Python 3.10 or later and NumPy.

## Reading a PLY file

```python
from flightkit.ply_file import PlyFile

ply = PlyFile()
with open("cloud.ply", "rb") as stream:
    ply.parse_header(stream)
    vertices = ply.request_properties_from_element("vertex", ["x", "y", "z"], 0)
    ply.read(stream)

print(ply.is_binary_file(), ply.get_comments(), ply.get_info())
xyz = vertices.values().reshape(-1, 3)  # values() is a flat array
```

`parse_header` returns `False` when the header holds lines the format does not
know. Call `request_properties_from_element` once for each group of properties
you want; each group is gathered into one `PlyData` buffer. Every property in a
group must have the same type. Asking for an element or property the header
does not list, or asking for the same property twice, raises `ValueError`.
Lists must all have the same length within a property.

`flightkit.ply_types` maps header type names to `PlyType` values
(`property_type_from_string`) and gives each type's byte size and header name
(`property_info`). `flightkit.ply_header.PlyHeader` parses and writes the
header on its own.

## Writing a PLY file

```python
import numpy as np
from flightkit.ply_file import PlyFile
from flightkit.ply_types import PlyType

points = np.array([[0, 0, 0], [1, 0, 0], [0, 1, 0]], dtype=np.float32)

ply = PlyFile()
ply.add_properties_to_element(
    "vertex", ["x", "y", "z"], PlyType.FLOAT32, len(points), points,
    PlyType.INVALID, 0,
)
with open("out.ply", "wb") as stream:
    ply.write(stream, True)
```

Binary output needs a binary stream; ASCII output may go to a text or a binary
stream. Only properties that were added or requested are written.

## Point-cloud helpers

```python
import numpy as np
from flightkit.planning import (
    PointCloudMap, load_point_cloud, compute_bounds, interpolate_waypoints,
)

points = load_point_cloud("point_cloud.ply")   # (n, 3) float64 array
world = PointCloudMap(points)
print(world.bounds())
print(world.is_free(np.array([0.0, 0.0, 2.0]), 1.0))

path = interpolate_waypoints([np.zeros(3), np.array([1.0, 0.0, 0.0])], 10)
```

- `is_free` returns `False` when any point of the map lies closer than
  `radius` to the query position.
- `compute_bounds` returns a `Bounds` box; its lower z bound is the z of the
  first point, not the lowest one. An empty cloud raises `ValueError`.
- `interpolate_waypoints` places `int(length * scaling)` evenly spaced points
  along each segment, starting at its first end; the last waypoint itself is
  not included.

## What this package does not do

It has no path planner that searches for a route between start and goal
states, no camera sensor and no connection to a renderer or simulator; it
provides the file I/O and geometric checks such a planner would use. There is
no command-line program.

## Running the tests

```
pip install .[test]
pytest
```