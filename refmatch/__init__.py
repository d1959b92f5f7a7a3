"""
refmatch - identify which reference image a captured image shows

ORB keypoints, Hamming brute-force matching and a match-ratio confidence,
plus quadrilateral detection on the captured frame.
"""

from .catalog.reference_catalog import CatalogState, ReferenceCatalog
from .catalog.sources import directory_source, memory_source
from .config import DEFAULT_CONFIG, load_config
from .core import MatchProcessor
from .engine import ResourceScope, VisionEngine
from .exceptions import (ConfigError, DecodeError, EngineNotReadyError,
                         InsufficientFeaturesError, NativeResourceError,
                         RefMatchError)
from .results import ComparisonResult, DetectionResult, Quadrilateral

__all__ = [
    'MatchProcessor', 'ReferenceCatalog', 'CatalogState',
    'directory_source', 'memory_source',
    'DEFAULT_CONFIG', 'load_config',
    'VisionEngine', 'ResourceScope',
    'ComparisonResult', 'DetectionResult', 'Quadrilateral',
    'RefMatchError', 'DecodeError', 'EngineNotReadyError',
    'InsufficientFeaturesError', 'NativeResourceError', 'ConfigError',
]
__version__ = '1.0.0'
