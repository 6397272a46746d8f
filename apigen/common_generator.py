"""Common Generator - the contract every target language generator fulfils"""

import abc
import logging
from typing import Optional

from .channel import argument_name, channel_name
from .discriminants import assign_discriminants
from .options import GeneratorOptions
from .type_mapper import BuiltinTable, TypeMapper, resolve, validate_document
from .types import (
    DiscriminantEntry, Document, EnumType, Field, Interface, Method, RecordType,
    ResolvedType, Role, TypeReference,
)

logger = logging.getLogger(__name__)

GENERATED_WARNING = "AUTO-GENERATED - DO NOT EDIT"


class CommonGenerator(abc.ABC):
    """Shared driver for all generators.

    Type resolution, discriminant assignment and channel naming live here so
    that every backend emits the same wire behaviour; subclasses only decide
    how records, enums, codecs, receivers and callers are spelled in their
    language.
    """

    builtin_table: BuiltinTable = TypeMapper.CANONICAL
    comment_prefix = "//"

    def __init__(self, document: Document, options: Optional[GeneratorOptions] = None):
        validate_document(document)
        self.document = document
        self.options = options or GeneratorOptions()

    @abc.abstractmethod
    def generate_files(self, basename: str) -> dict[str, str]:
        """Map of output file name to file content"""

    # ── Per-declaration obligations ──────────────────────────────────────

    @abc.abstractmethod
    def _enum(self, enum: EnumType) -> list[str]:
        """Type with one value per member; wire value is the declaration index"""

    @abc.abstractmethod
    def _record(self, record: RecordType) -> list[str]:
        """Record with constructor, accessors, encode and decode"""

    @abc.abstractmethod
    def _codec(self, iface: Interface) -> list[str]:
        """Message codec tagging the interface's records with their discriminants"""

    @abc.abstractmethod
    def _receiver(self, iface: Interface) -> list[str]:
        """Abstraction implemented by user code plus handler registration"""

    @abc.abstractmethod
    def _caller(self, iface: Interface) -> list[str]:
        """Class sending one request per call and resolving the reply"""

    def _interface(self, iface: Interface) -> list[str]:
        """Codec followed by the receiver or caller side of ``iface``"""
        lines = self._codec(iface)
        if iface.role is Role.RECEIVER:
            lines.extend(self._receiver(iface))
        elif iface.role is Role.CALLER:
            lines.extend(self._caller(iface))
        else:
            raise ValueError(f"Unknown role {iface.role!r} for {iface.name}")
        return lines

    # ── Shared helpers ───────────────────────────────────────────────────

    def resolve(self, type_ref: TypeReference) -> ResolvedType:
        return resolve(type_ref, self.document.records, self.document.enums, self.builtin_table)

    def type_name(self, type_ref: TypeReference) -> str:
        return self.resolve(type_ref).representation

    def non_null_type_name(self, type_ref: TypeReference) -> str:
        """Representation of ``type_ref`` ignoring its nullability"""
        if not type_ref.is_nullable:
            return self.type_name(type_ref)
        return self.resolve(TypeReference(
            base_name=type_ref.base_name,
            type_arguments=type_ref.type_arguments,
        )).representation

    def is_record(self, type_ref: TypeReference) -> bool:
        return not self.resolve(type_ref).is_builtin and TypeMapper.is_record(type_ref, self.document.records)

    def is_enum(self, type_ref: TypeReference) -> bool:
        return not self.resolve(type_ref).is_builtin and TypeMapper.is_enum(type_ref, self.document.enums)

    def discriminants(self, iface: Interface) -> list[DiscriminantEntry]:
        return assign_discriminants(iface, self.document)

    def channel_name(self, iface: Interface, method: Method) -> str:
        return channel_name(iface, method, self.options.channel_prefix)

    def argument_names(self, method: Method) -> list[str]:
        return [argument_name(i, arg.name) for i, arg in enumerate(method.arguments)]

    def header_lines(self) -> list[str]:
        """Copyright header and generated-code warning as comments"""
        lines = [
            f"{self.comment_prefix} {line}".rstrip()
            for line in (self.options.copyright_header or ())
        ]
        lines.append(f"{self.comment_prefix} {GENERATED_WARNING}")
        return lines

    def declarations(self) -> list[str]:
        """Enums, records and interfaces in declaration order"""
        lines = []
        for enum in self.document.enums:
            lines.extend(self._enum(enum))
        for record in self.document.records:
            lines.extend(self._record(record))
        for iface in self.document.interfaces:
            logger.debug("Generating %s side of %s", iface.role.value, iface.name)
            lines.extend(self._interface(iface))
        return lines

    @staticmethod
    def capitalize(name: str) -> str:
        return f"{name[0].upper()}{name[1:]}" if name else name

    @classmethod
    def getter_name(cls, f: Field) -> str:
        return f"get{cls.capitalize(f.name)}"

    @classmethod
    def setter_name(cls, f: Field) -> str:
        return f"set{cls.capitalize(f.name)}"
