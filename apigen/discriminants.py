"""Codec discriminant assignment for custom records"""

import logging
from typing import Iterator

from .errors import CodecError
from .type_mapper import TypeMapper, resolve
from .types import DiscriminantEntry, Document, Interface, TypeReference

logger = logging.getLogger(__name__)

# Tags below this value belong to the builtin types of the standard codec
MIN_CUSTOM_DISCRIMINANT = 128

# Discriminants are written as a single unsigned byte
MAX_CUSTOM_DISCRIMINANT = 255


def iter_signature_types(interface: Interface) -> Iterator[TypeReference]:
    """Yield every type reference in the method signatures of ``interface``.

    Methods in declaration order; per method the return type, then the
    arguments in order; each reference before its type arguments.
    """
    def walk(type_ref: TypeReference) -> Iterator[TypeReference]:
        yield type_ref
        for arg in type_ref.type_arguments:
            yield from walk(arg)

    for method in interface.methods:
        if not method.return_type.is_void:
            yield from walk(method.return_type)
        for arg in method.arguments:
            yield from walk(arg.type)


def assign_discriminants(interface: Interface, document: Document) -> list[DiscriminantEntry]:
    """Assign a codec tag to every record used in the signatures of ``interface``.

    Records only reachable through the fields of other records are not
    tagged; their values travel inside the encoded map of the outer record.
    """
    entries: list[DiscriminantEntry] = []
    seen: set[str] = set()
    for type_ref in iter_signature_types(interface):
        resolved = resolve(type_ref, document.records, document.enums, TypeMapper.CANONICAL)
        if resolved.is_builtin or type_ref.base_name in seen:
            continue
        record = document.record(type_ref.base_name)
        if record is None:
            # enums travel as their integer index
            continue
        code = MIN_CUSTOM_DISCRIMINANT + len(entries)
        if code > MAX_CUSTOM_DISCRIMINANT:
            raise CodecError(
                f"Interface '{interface.name}' uses more than "
                f"{MAX_CUSTOM_DISCRIMINANT - MIN_CUSTOM_DISCRIMINANT + 1} custom records"
            )
        seen.add(record.name)
        entries.append(DiscriminantEntry(record=record, code=code))

    logger.debug(
        "Discriminants for %s: %s",
        interface.name, ", ".join(f"{e.record.name}={e.code}" for e in entries) or "none",
    )
    return entries
