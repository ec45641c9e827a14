"""Scene module: the scene language and the documents it describes.

Components:
    errors: SceneError hierarchy
    sexp: S-expression tokenizer, parser and printer
    lights: Sun, point and emissive area lights
    document: SceneDocument and its records (instances, floor)
    loader: SceneLoader turning source files into SceneDocuments
    cornell_box: Programmatic Cornell box scene

Example:
    >>> from parametric_scene.scene import load_file
    >>> doc = load_file("examples/scenes/csg_showcase.scene")  # doctest: +SKIP
"""

from .cornell_box import CornellBoxParams, create_cornell_box_scene
from .document import FloorSettings, PatchInstance, SceneDocument
from .errors import (
    MissingPropertyError,
    SceneError,
    SceneIOError,
    SceneLoadError,
    SceneSyntaxError,
    UnknownGeometryTypeError,
)
from .lights import EmissiveLight, Light, LightList, LightType, SunLight
from .loader import LoadContext, SceneLoader, load_file, load_string
from .sexp import Number, SExp, SList, Symbol, parse, to_source

__all__ = [
    # Errors
    "SceneError",
    "SceneSyntaxError",
    "SceneLoadError",
    "MissingPropertyError",
    "UnknownGeometryTypeError",
    "SceneIOError",
    # Parsing
    "SExp",
    "Symbol",
    "Number",
    "SList",
    "parse",
    "to_source",
    # Lights
    "Light",
    "LightType",
    "SunLight",
    "EmissiveLight",
    "LightList",
    # Documents
    "SceneDocument",
    "PatchInstance",
    "FloorSettings",
    "SceneLoader",
    "LoadContext",
    "load_file",
    "load_string",
    "CornellBoxParams",
    "create_cornell_box_scene",
]
