"""Tests for the Dart, Java and C++ generators"""

import pytest

from apigen import (
    CppGenerator, DartGenerator, Document, Field, GeneratorOptions, Interface, JavaGenerator, Method,
    ResolutionError, Role, TypeReference, parse,
)


class TestDartGenerator:

    @pytest.fixture
    def source(self, search_document):
        return DartGenerator(search_document).generate()

    def test_header(self, source):
        assert source.startswith('// AUTO-GENERATED - DO NOT EDIT\n')
        assert "import 'package:flutter/services.dart';" in source

    def test_enum_and_record(self, source):
        assert 'enum Code {\n  one,\n  two,\n}' in source
        assert 'class SearchRequest {' in source
        assert "    pigeonMap['code'] = code?.index;" in source
        assert "      code: (pigeonMap['code'] != null ? Code.values[pigeonMap['code']! as int] : null)," in source

    def test_codec(self, source):
        assert 'class _ApiCodec extends StandardMessageCodec {' in source
        assert '    if (value is SearchReply) {\n      buffer.putUint8(128);' in source
        assert '    } else if (value is SearchRequest) {\n      buffer.putUint8(129);' in source
        assert '      case 129:\n        return SearchRequest.decode(readValue(buffer)!);' in source

    def test_receiver(self, source):
        assert 'abstract class Api {' in source
        assert '  Future<int> calculate(int value);' in source
        assert "'dev.flutter.pigeon.Api.search', codec, binaryMessenger: binaryMessenger);" in source

    def test_caller(self, source):
        assert 'class Listener {' in source
        assert '  Future<void> onEvent(String? name, Code code) async {' in source
        assert "await channel.send(<Object?>[name, code.index])" in source
        assert "code: 'channel-error'," in source

    def test_null_check_only_for_non_nullable_returns(self, search_document):
        source = DartGenerator(search_document.mirrored()).generate()
        search = source[source.index('Future<SearchReply> search('):source.index('Future<int> calculate(')]
        assert "code: 'null-error'," in search
        last_code = source[source.index('Future<Code?> lastCode('):]
        assert "code: 'null-error'," not in last_code.split('Future<String> echo(')[0]

    def test_files(self, search_document):
        assert list(DartGenerator(search_document).generate_files('search')) == ['search.dart']


class TestJavaGenerator:

    @pytest.fixture
    def source(self, search_document):
        options = GeneratorOptions(package='com.example.search', class_name='Search')
        return JavaGenerator(search_document, options).generate()

    def test_outer_class(self, source):
        assert 'package com.example.search;' in source
        assert 'public class Search {' in source

    def test_enum(self, source):
        assert '    public enum Code {\n        one(0),\n        two(1);' in source

    def test_record(self, source):
        assert '    public static final class SearchRequest {' in source
        assert '        public @Nullable String getQuery() { return query; }' in source
        assert '        public @NonNull Builder setCode(@Nullable Code setterArg) {' in source

    def test_codec(self, source):
        assert '                case (byte)128:' in source
        assert '                return SearchReply.fromMap((Map<String, Object>) readValue(buffer));' in source
        assert '                stream.write(129);' in source

    def test_receiver(self, source):
        assert '    public interface Api {' in source
        assert '        void calculate(@NonNull Long value, Result<Long> result);' in source
        assert 'binaryMessenger.makeBackgroundTaskQueue();' in source
        assert '"dev.flutter.pigeon.Api.flush", getCodec(), taskQueue);' in source

    def test_non_null_argument_check(self, source):
        assert 'throw new FlutterError("null-error", "messageArg unexpectedly null.", null);' in source

    def test_caller_reports_errors(self, source):
        assert '    public static class Listener {' in source
        assert 'result.error(new FlutterError("channel-error"' in source

    def test_file_name(self, search_document):
        files = JavaGenerator(search_document).generate_files('search')
        assert list(files) == ['Messages.java']


class TestCppGenerator:

    @pytest.fixture
    def files(self, search_document):
        options = GeneratorOptions(namespace='search_api')
        return CppGenerator(search_document, options).generate_files('search')

    def test_file_names(self, files):
        assert list(files) == ['search.h', 'search.cpp']

    def test_header(self, files):
        header = files['search.h']
        assert '#ifndef SEARCH_H_' in header
        assert 'namespace search_api {' in header
        assert 'enum class Code {\n  one = 0,\n  two = 1\n};' in header
        assert '  const std::optional<std::string>& query() const;' not in header
        assert '  const std::optional<std::string>& getQuery() const;' in header
        assert '  virtual ErrorOr<SearchReply> search(const SearchRequest& request) = 0;' in header
        assert '  virtual std::optional<FlutterError> flush() = 0;' in header
        assert ('  virtual void calculate(const int64_t& value, '
                'std::function<void(ErrorOr<int64_t> reply)> result) = 0;') in header

    def test_source(self, files):
        source = files['search.cpp']
        assert '#include "search.h"' in source
        assert '    case 128:\n      return flutter::CustomEncodableValue(SearchReply(' in source
        assert '"dev.flutter.pigeon.Api.search", &GetCodec());' in source
        assert 'reply(WrapError(FlutterError("null-error", "message_arg unexpectedly null.")));' in source
        assert 'void Listener::onEvent(' in source

    def test_custom_header_name(self, search_document):
        files = CppGenerator(search_document, GeneratorOptions(header='api/messages.h')).generate_files('search')
        assert list(files) == ['api/messages.h', 'search.cpp']
        assert '#include "api/messages.h"' in files['search.cpp']
        assert '#ifndef API_MESSAGES_H_' in files['api/messages.h']


class TestCommonContract:

    @pytest.mark.parametrize('generator', [DartGenerator, JavaGenerator, CppGenerator])
    def test_unknown_type_fails_generation(self, generator):
        doc = Document(interfaces=(
            Interface('Api', Role.RECEIVER, (Method('f', arguments=(Field('x', TypeReference('Nope')),)),)),
        ))
        with pytest.raises(ResolutionError):
            generator(doc)

    @pytest.mark.parametrize('generator', [DartGenerator, JavaGenerator, CppGenerator])
    def test_channel_prefix(self, search_document, generator):
        options = GeneratorOptions(channel_prefix='com.example')
        text = "\n".join(generator(search_document, options).generate_files('search').values())
        assert 'com.example.Api.search' in text
        assert 'dev.flutter.pigeon' not in text


CONTAINERS_API = """
enum Color { red, green }

record Inner { String name; }

record Outer {
  Inner? inner;
  List<Inner?> items;
  List<Color?> colors;
  Map<String, Color> palette;
}

receiver interface Host {
  String? greet(String? name);
  Outer echo(Outer outer);
}

caller interface Ui {
  void paint(List<Color> colors);
}
"""


@pytest.fixture
def containers_document():
    return parse(CONTAINERS_API)


class TestDartContainers:

    @pytest.fixture
    def source(self, containers_document):
        return DartGenerator(containers_document).generate()

    def test_encode_recurses_into_containers(self, source):
        assert "    pigeonMap['inner'] = inner?.encode();" in source
        assert "    pigeonMap['items'] = items.map((e0) => e0?.encode()).toList();" in source
        assert "    pigeonMap['colors'] = colors.map((e0) => e0?.index).toList();" in source
        assert "    pigeonMap['palette'] = palette.map((k0, v0) => MapEntry(k0, v0.index));" in source

    def test_decode_recurses_into_containers(self, source):
        assert ("colors: (pigeonMap['colors'] as List<Object?>?)!"
                ".map((Object? e0) => (e0 != null ? Color.values[e0! as int] : null)).toList(),") in source
        assert ("items: (pigeonMap['items'] as List<Object?>?)!"
                ".map((Object? e0) => (e0 != null ? Inner.decode(e0!) : null)).toList(),") in source
        assert ("palette: (pigeonMap['palette'] as Map<Object?, Object?>?)!"
                ".map((Object? k0, Object? v0) => MapEntry(k0! as String, Color.values[v0! as int])),") in source
        assert '.cast<Color' not in source

    def test_receiver_null_checks(self, source):
        echo = source[source.index("'dev.flutter.pigeon.Host.echo'"):]
        assert "if (args[0] == null) {" in echo
        assert "message: 'outer_arg unexpectedly null.'," in echo
        assert "code: 'null-error'," in echo
        assert 'ArgumentError' not in source
        greet = source[source.index("'dev.flutter.pigeon.Host.greet'"):source.index("'dev.flutter.pigeon.Host.echo'")]
        assert "if (args[0] == null) {" not in greet
        assert "final String? name_arg = args[0] as String?;" in greet

    def test_caller_encodes_enum_elements(self, source):
        assert "await channel.send(<Object?>[colors.map((e0) => e0.index).toList()])" in source


class TestJavaContainers:

    @pytest.fixture
    def source(self, containers_document):
        return JavaGenerator(containers_document).generate()

    def test_converters(self, source):
        assert 'private static <T, R> List<R> mapList(' in source
        assert 'private static <K, V, K2, V2> Map<K2, V2> mapMap(' in source
        assert 'import java.util.function.Function;' in source

    def test_to_map_recurses_into_containers(self, source):
        assert 'toMapResult.put("inner", (inner == null) ? null : inner.toMap());' in source
        assert 'toMapResult.put("items", mapList(items, e0 -> (e0 == null) ? null : e0.toMap()));' in source
        assert 'toMapResult.put("colors", mapList(colors, e0 -> e0 == null ? null : e0.index));' in source
        assert 'toMapResult.put("palette", mapMap(palette, k0 -> k0, v0 -> v0 == null ? null : v0.index));' in source

    def test_from_map_recurses_into_containers(self, source):
        assert ('pigeonResult.setColors(mapList((List<Object>) colors, '
                'e0 -> e0 == null ? null : Color.values()[(int) e0]));') in source
        assert ('pigeonResult.setItems(mapList((List<Object>) items, '
                'e0 -> e0 == null ? null : Inner.fromMap((Map<String, Object>) e0)));') in source
        assert ('pigeonResult.setPalette(mapMap((Map<Object, Object>) palette, '
                'k0 -> (String) k0, v0 -> v0 == null ? null : Color.values()[(int) v0]));') in source

    def test_caller_encodes_enum_elements(self, source):
        assert 'new ArrayList<Object>(Arrays.asList(mapList(colors, e0 -> e0 == null ? null : e0.index)))' in source


class TestCppContainers:

    @pytest.fixture
    def source(self, containers_document):
        return CppGenerator(containers_document).generate_files('shapes')['shapes.cpp']

    def test_nullable_argument(self, source):
        assert ('const std::optional<std::string> name_arg = encodable_name_arg.IsNull() ? std::nullopt : '
                'std::optional<std::string>(std::get<std::string>(encodable_name_arg));') in source

    def test_nullable_nested_record(self, source):
        assert ('to_map_result.emplace(flutter::EncodableValue("inner"), '
                'inner_ ? flutter::EncodableValue((*inner_).ToEncodableMap()) : flutter::EncodableValue());') in source
        assert '*inner_.ToEncodableMap()' not in source

    def test_container_fields_stay_encodable(self, source):
        assert 'palette_ = std::get<flutter::EncodableMap>(encodable_palette->second);' in source

    def test_caller_tolerates_missing_error_message(self, source):
        assert 'std::get<std::string>(error_map.at(' not in source
        assert 'std::get_if<std::string>(&error_message->second)' in source
        assert 'message_value ? *message_value : std::string(),' in source
        assert 'error_details != error_map.end() ? error_details->second : flutter::EncodableValue()));' in source
