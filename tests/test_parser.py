"""Tests for the API description parser"""

import pytest

from apigen import APIParser, DispatchHint, ParseError, Role, TypeReference, parse


class TestParser:

    def test_search_document(self, search_document):
        assert [r.name for r in search_document.records] == ['SearchRequest', 'SearchReply']
        assert [e.name for e in search_document.enums] == ['Code']
        assert [(i.name, i.role) for i in search_document.interfaces] == [
            ('Api', Role.RECEIVER), ('Listener', Role.CALLER),
        ]

    def test_method_annotations(self, search_document):
        api = search_document.interface('Api')
        search, calculate, flush = api.methods[:3]
        assert not search.is_asynchronous
        assert search.dispatch_hint is DispatchHint.SERIAL
        assert calculate.is_asynchronous
        assert calculate.return_type == TypeReference('int')
        assert flush.dispatch_hint is DispatchHint.BACKGROUND
        assert flush.return_type.is_void
        assert flush.arguments == ()

    def test_generic_types(self):
        doc = parse("""
            record R {
                Map<String, List<int?>>? values;
            }
        """)
        assert str(doc.records[0].fields[0].type) == "Map<String, List<int?>>?"

    def test_generic_arguments(self):
        doc = parse("caller interface Api { void f(Map<String, int> a, List<double> b); }")
        args = doc.interfaces[0].methods[0].arguments
        assert [a.name for a in args] == ['a', 'b']
        assert args[0].type.type_arguments == (TypeReference('String'), TypeReference('int'))

    def test_comments(self):
        doc = parse("""
            // leading
            enum E { a, /* inline */ b, }
            /* block
               comment */
            record R { int x; } // trailing
        """)
        assert doc.enums[0].members == ('a', 'b')
        assert doc.records[0].fields[0].name == 'x'

    def test_multiline_method(self):
        doc = parse("""
            receiver interface Api {
                @async @background
                String join(
                    String a,
                    String b);
            }
        """)
        method = doc.interfaces[0].methods[0]
        assert method.is_asynchronous
        assert method.dispatch_hint is DispatchHint.BACKGROUND
        assert [a.name for a in method.arguments] == ['a', 'b']

    def test_empty_declarations(self):
        doc = parse("record Empty {} receiver interface Nothing {}")
        assert doc.records[0].fields == ()
        assert doc.interfaces[0].methods == ()


class TestParseErrors:

    def test_line_numbers_survive_block_comments(self):
        with pytest.raises(ParseError) as info:
            parse("/*\n\n*/\nrecord R { int; }")
        assert info.value.line == 4

    def test_missing_role(self):
        with pytest.raises(ParseError, match="needs a 'receiver' or 'caller' role"):
            parse("interface Api { void f(); }")

    def test_unknown_role(self):
        with pytest.raises(ParseError, match="Unknown role 'server'"):
            parse("server interface Api { void f(); }")

    def test_role_on_record(self):
        with pytest.raises(ParseError, match="Unexpected 'receiver'"):
            parse("receiver record R { int x; }")

    def test_stray_text(self):
        with pytest.raises(ParseError) as info:
            parse("record R { int x; }\n\nbogus")
        assert info.value.line == 3
        assert "bogus" in str(info.value)

    def test_missing_semicolon(self):
        with pytest.raises(ParseError, match="Missing ';'"):
            parse("record R { int x; int y }")

    def test_void_field(self):
        with pytest.raises(ParseError, match="only valid as a return type"):
            parse("record R { void x; }")

    def test_void_argument(self):
        with pytest.raises(ParseError, match="only valid as a return type"):
            parse("caller interface Api { void f(void x); }")

    def test_void_type_argument(self):
        with pytest.raises(ParseError, match="only valid as a return type"):
            parse("caller interface Api { List<void> f(); }")

    def test_unterminated_generic(self):
        with pytest.raises(ParseError, match="Unterminated"):
            parse("record R { List<int x; }")

    def test_unknown_annotation(self):
        with pytest.raises(ParseError, match="Unknown annotation '@later'"):
            parse("receiver interface Api { @later void f(); }")

    def test_invalid_method(self):
        with pytest.raises(ParseError, match="Invalid method declaration"):
            parse("receiver interface Api { f; }")

    def test_duplicate_declaration(self):
        with pytest.raises(ParseError, match="Duplicate declaration 'R'"):
            parse("record R {} enum R { a }")

    def test_duplicate_field(self):
        with pytest.raises(ParseError, match="Duplicate field 'x'"):
            parse("record R { int x; String x; }")

    def test_duplicate_method(self):
        with pytest.raises(ParseError, match="Duplicate method 'f'"):
            parse("caller interface Api { void f(); void f(int a); }")

    def test_invalid_enum_member(self):
        with pytest.raises(ParseError, match="Invalid member"):
            parse("enum E { a b }")

    def test_parser_class(self):
        assert APIParser("enum E { a }").parse().enums[0].members == ('a',)
