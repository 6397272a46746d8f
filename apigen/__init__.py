"""
Message Channel Binding Generator Package

Parses API descriptions of records, enums and receiver/caller interfaces
and generates bindings that exchange messages over named channels:
  1. Python bindings on top of apigen.runtime
  2. Dart bindings
  3. Java bindings
  4. C++ bindings (header + implementation)
"""

from .types import (
    DiscriminantEntry, DispatchHint, Document, EnumType, Field, Interface, Method,
    RecordType, ResolvedType, Role, TypeReference,
)
from .errors import (
    ApiGenError, ChannelError, CodecError, NullValueError, ParseError, PlatformError,
    ProtocolError, ResolutionError,
)
from .parser import APIParser, parse
from .type_mapper import BuiltinTable, TypeMapper, resolve
from .discriminants import assign_discriminants
from .channel import channel_name
from .options import GeneratorOptions
from .common_generator import CommonGenerator
from .python_generator import PythonGenerator
from .dart_generator import DartGenerator
from .java_generator import JavaGenerator
from .cpp_generator import CppGenerator

__all__ = [
    'DiscriminantEntry', 'DispatchHint', 'Document', 'EnumType', 'Field', 'Interface',
    'Method', 'RecordType', 'ResolvedType', 'Role', 'TypeReference',
    'ApiGenError', 'ChannelError', 'CodecError', 'NullValueError', 'ParseError',
    'PlatformError', 'ProtocolError', 'ResolutionError',
    'APIParser', 'parse', 'BuiltinTable', 'TypeMapper', 'resolve',
    'assign_discriminants', 'channel_name', 'GeneratorOptions',
    'CommonGenerator', 'PythonGenerator', 'DartGenerator', 'JavaGenerator', 'CppGenerator',
]
