"""Data types describing an API surface"""

import enum
from dataclasses import dataclass, field, replace
from typing import Optional


class Role(enum.Enum):
    """Which side of the channel an interface is generated for"""
    RECEIVER = "receiver"
    CALLER = "caller"

    @property
    def opposite(self) -> "Role":
        return Role.CALLER if self is Role.RECEIVER else Role.RECEIVER


class DispatchHint(enum.Enum):
    """Execution context a receiver handler runs on"""
    SERIAL = "serial"
    BACKGROUND = "background"


@dataclass(frozen=True)
class TypeReference:
    """Reference to a builtin, container or declared type"""
    base_name: str
    is_nullable: bool = False
    is_void: bool = False
    type_arguments: tuple["TypeReference", ...] = ()

    def __str__(self):
        text = self.base_name
        if self.type_arguments:
            text += "<" + ", ".join(str(arg) for arg in self.type_arguments) + ">"
        if self.is_nullable:
            text += "?"
        return text

    @classmethod
    def void(cls) -> "TypeReference":
        return cls(base_name="void", is_void=True)


@dataclass(frozen=True)
class Field:
    """Record member or method parameter"""
    name: str
    type: TypeReference


@dataclass(frozen=True)
class RecordType:
    """Structured message payload"""
    name: str
    fields: tuple[Field, ...] = ()


@dataclass(frozen=True)
class EnumType:
    """Enumeration; the wire value of a member is its declaration index"""
    name: str
    members: tuple[str, ...] = ()


@dataclass(frozen=True)
class Method:
    """Interface method"""
    name: str
    arguments: tuple[Field, ...] = ()
    return_type: TypeReference = field(default_factory=TypeReference.void)
    is_asynchronous: bool = False
    dispatch_hint: DispatchHint = DispatchHint.SERIAL


@dataclass(frozen=True)
class Interface:
    """Receiver or caller interface"""
    name: str
    role: Role
    methods: tuple[Method, ...] = ()

    def mirrored(self) -> "Interface":
        """Same interface seen from the other end of its channels"""
        return replace(self, role=self.role.opposite)


@dataclass(frozen=True)
class Document:
    """Complete parsed description"""
    records: tuple[RecordType, ...] = ()
    enums: tuple[EnumType, ...] = ()
    interfaces: tuple[Interface, ...] = ()

    def record(self, name: str) -> Optional[RecordType]:
        return next((r for r in self.records if r.name == name), None)

    def enum(self, name: str) -> Optional[EnumType]:
        return next((e for e in self.enums if e.name == name), None)

    def interface(self, name: str) -> Optional[Interface]:
        return next((i for i in self.interfaces if i.name == name), None)

    def mirrored(self) -> "Document":
        return replace(self, interfaces=tuple(i.mirrored() for i in self.interfaces))


@dataclass(frozen=True)
class ResolvedType:
    """Target representation of a type reference"""
    representation: str
    is_builtin: bool


@dataclass(frozen=True)
class DiscriminantEntry:
    """Codec tag assigned to a record within one interface"""
    record: RecordType
    code: int
