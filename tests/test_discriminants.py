"""Tests for codec discriminant assignment"""

import pytest

from apigen import (
    CodecError, Document, EnumType, Field, Interface, Method, RecordType, Role, TypeReference,
    assign_discriminants,
)
from apigen.discriminants import MIN_CUSTOM_DISCRIMINANT, iter_signature_types


def ref(name, *args, nullable=False):
    return TypeReference(name, is_nullable=nullable, type_arguments=tuple(args))


def arg(name, type_ref):
    return Field(name, type_ref)


def codes(entries):
    return [(e.record.name, e.code) for e in entries]


class TestAssignDiscriminants:

    def test_return_before_arguments(self, search_document):
        entries = assign_discriminants(search_document.interface('Api'), search_document)
        assert codes(entries) == [('SearchReply', 128), ('SearchRequest', 129)]

    def test_deterministic(self, search_document):
        api = search_document.interface('Api')
        assert assign_discriminants(api, search_document) == assign_discriminants(api, search_document)

    def test_no_records(self, search_document):
        assert assign_discriminants(search_document.interface('Listener'), search_document) == []

    def test_enums_are_not_tagged(self):
        doc = Document(
            enums=(EnumType('E', ('a',)),),
            interfaces=(Interface('Api', Role.CALLER, (
                Method('f', arguments=(arg('e', ref('E')),), return_type=ref('E')),
            )),),
        )
        assert assign_discriminants(doc.interfaces[0], doc) == []

    def test_records_in_type_arguments(self):
        doc = Document(
            records=(RecordType('A'), RecordType('B'), RecordType('C')),
            interfaces=(Interface('Api', Role.RECEIVER, (
                Method('f', arguments=(arg('m', ref('Map', ref('B'), ref('List', ref('C')))),),
                       return_type=ref('List', ref('A', nullable=True))),
            )),),
        )
        assert codes(assign_discriminants(doc.interfaces[0], doc)) == [('A', 128), ('B', 129), ('C', 130)]

    def test_transitive_records_excluded(self):
        inner = RecordType('Inner', (Field('x', ref('int')),))
        outer = RecordType('Outer', (Field('inner', ref('Inner')),))
        doc = Document(
            records=(inner, outer),
            interfaces=(Interface('Api', Role.RECEIVER, (Method('f', arguments=(arg('o', ref('Outer')),)),)),),
        )
        assert codes(assign_discriminants(doc.interfaces[0], doc)) == [('Outer', 128)]

    def test_repeated_record_tagged_once(self):
        doc = Document(
            records=(RecordType('A'), RecordType('B')),
            interfaces=(Interface('Api', Role.RECEIVER, (
                Method('f', arguments=(arg('a', ref('A')),), return_type=ref('A')),
                Method('g', arguments=(arg('a', ref('A', nullable=True)), arg('b', ref('B')))),
            )),),
        )
        assert codes(assign_discriminants(doc.interfaces[0], doc)) == [('A', 128), ('B', 129)]

    def test_per_interface_numbering(self):
        doc = Document(
            records=(RecordType('A'), RecordType('B')),
            interfaces=(
                Interface('First', Role.RECEIVER, (Method('f', return_type=ref('A')),)),
                Interface('Second', Role.RECEIVER, (Method('g', return_type=ref('B')),)),
            ),
        )
        assert codes(assign_discriminants(doc.interfaces[1], doc)) == [('B', MIN_CUSTOM_DISCRIMINANT)]

    def test_too_many_records(self):
        records = tuple(RecordType(f"R{i}") for i in range(129))
        methods = tuple(Method(f"m{i}", return_type=ref(f"R{i}")) for i in range(129))
        doc = Document(records=records, interfaces=(Interface('Api', Role.RECEIVER, methods),))
        with pytest.raises(CodecError, match="more than 128"):
            assign_discriminants(doc.interfaces[0], doc)

    def test_exactly_128_records(self):
        records = tuple(RecordType(f"R{i}") for i in range(128))
        methods = tuple(Method(f"m{i}", return_type=ref(f"R{i}")) for i in range(128))
        doc = Document(records=records, interfaces=(Interface('Api', Role.RECEIVER, methods),))
        assert assign_discriminants(doc.interfaces[0], doc)[-1].code == 255


class TestIterSignatureTypes:

    def test_preorder(self):
        iface = Interface('Api', Role.RECEIVER, (
            Method('f', arguments=(arg('x', ref('List', ref('int'))),), return_type=ref('String')),
            Method('g'),
        ))
        assert [str(t) for t in iter_signature_types(iface)] == ['String', 'List<int>', 'int']
