"""
CLI tools for the risk pipeline.
"""

from tools.load_spatial_store import load, traffic_files

__all__ = [
    "load",
    "traffic_files",
]
