"""Type resolution from API description types to target language types"""

import logging
from dataclasses import dataclass
from typing import Mapping, Sequence

from .errors import ResolutionError
from .types import Document, EnumType, RecordType, ResolvedType, TypeReference

logger = logging.getLogger(__name__)

# Builtin base names every target language must map. The generic codec
# serializes exactly these natively.
BUILTIN_NAMES = frozenset({
    'bool', 'int', 'double', 'String',
    'Uint8List', 'Int32List', 'Int64List', 'Float64List', 'Float32List',
    'List', 'Map',
})

# Number of type arguments a container base name takes
GENERIC_ARITY = {'List': 1, 'Map': 2}


@dataclass(frozen=True)
class BuiltinTable:
    """Target vocabulary for builtin types.

    Container templates use positional placeholders (``{0}``, ``{1}``) for
    the resolved type arguments; missing arguments are filled with
    ``any_type``. ``nullable`` wraps the final representation of any
    nullable reference.
    """
    language: str
    types: Mapping[str, str]
    any_type: str
    nullable: str = '{}'
    void: str = 'void'

    def __post_init__(self):
        missing = BUILTIN_NAMES - set(self.types)
        extra = set(self.types) - BUILTIN_NAMES
        if missing or extra:
            raise ValueError(
                f"{self.language} builtin table must map exactly {sorted(BUILTIN_NAMES)}"
                f" (missing {sorted(missing)}, extra {sorted(extra)})"
            )


class TypeMapper:
    """Builtin tables for every supported target language"""

    CANONICAL = BuiltinTable(
        language='canonical',
        types={name: name for name in BUILTIN_NAMES if name not in GENERIC_ARITY}
        | {'List': 'List<{0}>', 'Map': 'Map<{0}, {1}>'},
        any_type='Object?',
        nullable='{}?',
    )

    PYTHON = BuiltinTable(
        language='python',
        types={
            'bool': 'bool',
            'int': 'int',
            'double': 'float',
            'String': 'str',
            'Uint8List': 'bytes',
            'Int32List': 'numpy.ndarray',
            'Int64List': 'numpy.ndarray',
            'Float64List': 'numpy.ndarray',
            'Float32List': 'numpy.ndarray',
            'List': 'List[{0}]',
            'Map': 'Dict[{0}, {1}]',
        },
        any_type='Any',
        nullable='Optional[{}]',
        void='None',
    )

    DART = BuiltinTable(
        language='dart',
        types={
            'bool': 'bool',
            'int': 'int',
            'double': 'double',
            'String': 'String',
            'Uint8List': 'Uint8List',
            'Int32List': 'Int32List',
            'Int64List': 'Int64List',
            'Float64List': 'Float64List',
            'Float32List': 'Float32List',
            'List': 'List<{0}>',
            'Map': 'Map<{0}, {1}>',
        },
        any_type='Object?',
        nullable='{}?',
    )

    # Java boxes everything, so nullability is expressed with annotations by
    # the generator rather than in the type itself.
    JAVA = BuiltinTable(
        language='java',
        types={
            'bool': 'Boolean',
            'int': 'Long',
            'double': 'Double',
            'String': 'String',
            'Uint8List': 'byte[]',
            'Int32List': 'int[]',
            'Int64List': 'long[]',
            'Float64List': 'double[]',
            'Float32List': 'float[]',
            'List': 'List<{0}>',
            'Map': 'Map<{0}, {1}>',
        },
        any_type='Object',
        void='Void',
    )

    CPP = BuiltinTable(
        language='cpp',
        types={
            'bool': 'bool',
            'int': 'int64_t',
            'double': 'double',
            'String': 'std::string',
            'Uint8List': 'std::vector<uint8_t>',
            'Int32List': 'std::vector<int32_t>',
            'Int64List': 'std::vector<int64_t>',
            'Float64List': 'std::vector<double>',
            'Float32List': 'std::vector<float>',
            'List': 'flutter::EncodableList',
            'Map': 'flutter::EncodableMap',
        },
        any_type='flutter::EncodableValue',
        nullable='std::optional<{}>',
    )

    @classmethod
    def is_container(cls, type_ref: TypeReference) -> bool:
        """Check if type is a generic list or map"""
        return type_ref.base_name in GENERIC_ARITY

    @classmethod
    def is_record(cls, type_ref: TypeReference, records: Sequence[RecordType]) -> bool:
        return any(r.name == type_ref.base_name for r in records)

    @classmethod
    def is_enum(cls, type_ref: TypeReference, enums: Sequence[EnumType]) -> bool:
        return any(e.name == type_ref.base_name for e in enums)


def resolve(
    type_ref: TypeReference,
    records: Sequence[RecordType],
    enums: Sequence[EnumType],
    builtin_table: BuiltinTable,
) -> ResolvedType:
    """Resolve a type reference to its representation in one target language.

    Builtins win over declared names, declared records and enums resolve to
    their own name, anything else raises ``ResolutionError``.
    """
    if type_ref.is_void:
        return ResolvedType(representation=builtin_table.void, is_builtin=True)

    name = type_ref.base_name
    if name in builtin_table.types:
        template = builtin_table.types[name]
        if name in GENERIC_ARITY:
            arity = GENERIC_ARITY[name]
            if type_ref.type_arguments and len(type_ref.type_arguments) != arity:
                raise ResolutionError(name, reason="Wrong number of type arguments for")
            arguments = [
                resolve(arg, records, enums, builtin_table).representation
                for arg in type_ref.type_arguments
            ]
            arguments += [builtin_table.any_type] * (arity - len(arguments))
            representation = template.format(*arguments)
        elif type_ref.type_arguments:
            raise ResolutionError(name, reason="Type arguments on non-generic type")
        else:
            representation = template
        is_builtin = True
    elif any(r.name == name for r in records) or any(e.name == name for e in enums):
        if type_ref.type_arguments:
            raise ResolutionError(name, reason="Type arguments on non-generic type")
        representation = name
        is_builtin = False
    else:
        raise ResolutionError(name)

    if type_ref.is_nullable:
        representation = builtin_table.nullable.format(representation)
    return ResolvedType(representation=representation, is_builtin=is_builtin)


def validate_document(document: Document) -> None:
    """Resolve every type reference in ``document``, failing on the first unknown name"""
    def check(type_ref: TypeReference, context: str):
        try:
            resolve(type_ref, document.records, document.enums, TypeMapper.CANONICAL)
        except ResolutionError as e:
            raise ResolutionError(e.base_name, context, e.reason) from None

    for record in document.records:
        for f in record.fields:
            if f.type.is_void:
                raise ResolutionError("void", f"{record.name}.{f.name}", "Field cannot have type")
            check(f.type, f"{record.name}.{f.name}")
    for iface in document.interfaces:
        for method in iface.methods:
            check(method.return_type, f"{iface.name}.{method.name}")
            for arg in method.arguments:
                context = f"{iface.name}.{method.name}({arg.name})"
                if arg.type.is_void:
                    raise ResolutionError("void", context, "Argument cannot have type")
                check(arg.type, context)
    logger.debug(
        "Validated %d records, %d enums, %d interfaces",
        len(document.records), len(document.enums), len(document.interfaces),
    )
