"""
ImageSet Libraries

Generates, parses and reconciles ImageSetConfiguration documents.
"""

from .models import (
    DefaultChannelAction, OperatorAction, OperatorReport, Outcome, ParsedImageSet,
    ReconcileResult, Selection, VersionInfo
)
from .parser import ImageSetParser
from .reconciler import ImageSetReconciler
from .serializer import dump_document, load_document, read_document, write_document
from .synthesizer import ImageSetSynthesizer

__all__ = [
    # Models
    'Selection',
    'DefaultChannelAction',
    'OperatorAction',
    'Outcome',
    'OperatorReport',
    'ReconcileResult',
    'ParsedImageSet',
    'VersionInfo',
    # Main classes
    'ImageSetSynthesizer',
    'ImageSetParser',
    'ImageSetReconciler',
    # YAML I/O
    'load_document',
    'dump_document',
    'read_document',
    'write_document'
]
