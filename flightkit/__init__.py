"""PLY point-cloud I/O and point-cloud collision helpers for quadrotor motion planning."""

__version__ = "0.1.0"

__all__ = ["planning", "ply_file", "ply_header", "ply_types"]