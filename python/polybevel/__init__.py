# python/polybevel/__init__.py
# Public Python API for the polygon bevel builder
# Exists to re-export the builder, configuration and mesh helpers from one place
# RELEVANT FILES: python/polybevel/builder.py, python/polybevel/config.py, python/polybevel/mesh.py

from .builder import BevelExplodedError, PolygonMeshBuilder, SweepScratch
from .candidates import CandidatePairTracker
from .config import BevelConfig, load_bevel_config
from .edges import Edge, EdgeGraph, VertexPair
from .events import close_distance, get_epsilon, split_distance
from .mesh import BevelMesh, MeshSink, save_obj, validate_mesh
from .polygon import as_loop, ensure_winding, loop_tangents, signed_area

__version__ = "0.1.0"

__all__ = [
    "BevelConfig",
    "BevelExplodedError",
    "BevelMesh",
    "CandidatePairTracker",
    "Edge",
    "EdgeGraph",
    "MeshSink",
    "PolygonMeshBuilder",
    "SweepScratch",
    "VertexPair",
    "as_loop",
    "close_distance",
    "ensure_winding",
    "get_epsilon",
    "load_bevel_config",
    "loop_tangents",
    "save_obj",
    "signed_area",
    "split_distance",
    "validate_mesh",
]
