"""Dart Generator - generates Dart bindings for the Flutter side of a channel"""

from .channel import Keys, CHANNEL_ERROR_CODE, NULL_ERROR_CODE
from .common_generator import CommonGenerator
from .type_mapper import TypeMapper
from .types import EnumType, Interface, Method, RecordType, TypeReference


class DartGenerator(CommonGenerator):
    """Generates a Dart library built on package:flutter/services.dart"""

    builtin_table = TypeMapper.DART

    def generate_files(self, basename: str) -> dict[str, str]:
        return {f"{basename}.dart": self.generate()}

    def generate(self) -> str:
        lines = self.header_lines()
        lines.extend([
            "// ignore_for_file: public_member_api_docs, non_constant_identifier_names",
            "// @dart = 2.12",
            "import 'dart:async';",
            "import 'dart:typed_data' show Float32List, Float64List, Int32List, Int64List, Uint8List;",
            "",
            "import 'package:flutter/foundation.dart' show WriteBuffer, ReadBuffer;",
            "import 'package:flutter/services.dart';",
        ])
        lines.extend(self.declarations())
        return "\n".join(lines).rstrip() + "\n"

    def _enum(self, enum: EnumType) -> list[str]:
        lines = ["", f"enum {enum.name} {{"]
        lines.extend(f"  {member}," for member in enum.members)
        lines.append("}")
        return lines

    def _record(self, record: RecordType) -> list[str]:
        """Generate class with named constructor, encode and static decode"""
        lines = ["", f"class {record.name} {{", f"  {record.name}({{"]
        for f in record.fields:
            required = "" if f.type.is_nullable else "required "
            lines.append(f"    {required}this.{f.name},")
        lines.extend(["  });", ""])
        for f in record.fields:
            lines.append(f"  {self.type_name(f.type)} {f.name};")
        lines.extend([
            "",
            "  Object encode() {",
            "    final Map<Object?, Object?> pigeonMap = <Object?, Object?>{};",
        ])
        for f in record.fields:
            lines.append(f"    pigeonMap['{f.name}'] = {self._encode_expr(f.type, f.name)};")
        lines.extend([
            "    return pigeonMap;",
            "  }",
            "",
            f"  static {record.name} decode(Object message) {{",
            "    final Map<Object?, Object?> pigeonMap = message as Map<Object?, Object?>;",
            f"    return {record.name}(",
        ])
        for f in record.fields:
            value = self._decode_expr(f.type, f"pigeonMap['{f.name}']")
            lines.append(f"      {f.name}: {value},")
        lines.extend(["    );", "  }", "}"])
        return lines

    def _codec(self, iface: Interface) -> list[str]:
        name = self._codec_name(iface)
        entries = self.discriminants(iface)
        lines = ["", f"class {name} extends StandardMessageCodec {{", f"  const {name}();"]
        if entries:
            lines.extend(["  @override", "  void writeValue(WriteBuffer buffer, Object? value) {"])
            for i, entry in enumerate(entries):
                prefix = "    " if i == 0 else "    } else "
                lines.extend([
                    f"{prefix}if (value is {entry.record.name}) {{",
                    f"      buffer.putUint8({entry.code});",
                    "      writeValue(buffer, value.encode());",
                ])
            lines.extend([
                "    } else {",
                "      super.writeValue(buffer, value);",
                "    }",
                "  }",
                "",
                "  @override",
                "  Object? readValueOfType(int type, ReadBuffer buffer) {",
                "    switch (type) {",
            ])
            for entry in entries:
                lines.extend([
                    f"      case {entry.code}:",
                    f"        return {entry.record.name}.decode(readValue(buffer)!);",
                    "",
                ])
            lines.extend([
                "      default:",
                "        return super.readValueOfType(type, buffer);",
                "    }",
                "  }",
            ])
        lines.append("}")
        return lines

    def _receiver(self, iface: Interface) -> list[str]:
        """Abstract class plus static setup registering one handler per method"""
        lines = [
            "",
            f"abstract class {iface.name} {{",
            f"  static const MessageCodec<Object?> codec = {self._codec_name(iface)}();",
            "",
        ]
        for method in iface.methods:
            ret = self.type_name(method.return_type)
            if method.is_asynchronous:
                ret = f"Future<{ret}>"
            lines.append(f"  {ret} {method.name}({self._signature(method)});")
        lines.extend([
            "",
            f"  static void setup({iface.name}? api, {{BinaryMessenger? binaryMessenger}}) {{",
        ])
        for method in iface.methods:
            lines.extend(self._setup_method(iface, method))
        lines.extend(["  }", "}"])
        return lines

    def _setup_method(self, iface: Interface, method: Method) -> list[str]:
        channel = self.channel_name(iface, method)
        lines = [
            "    {",
            "      final BasicMessageChannel<Object?> channel = BasicMessageChannel<Object?>(",
            f"          '{channel}', codec, binaryMessenger: binaryMessenger);",
            "      if (api == null) {",
            "        channel.setMessageHandler(null);",
            "      } else {",
            "        channel.setMessageHandler((Object? message) async {",
            "          try {",
        ]
        call_args = []
        if method.arguments:
            lines.extend([
                "            if (message == null) {",
                "              throw PlatformException(",
                f"                code: '{NULL_ERROR_CODE}',",
                f"                message: 'Arguments for {channel} unexpectedly null.',",
                "              );",
                "            }",
                "            final List<Object?> args = message as List<Object?>;",
            ])
            for index, (name, arg) in enumerate(zip(self.argument_names(method), method.arguments)):
                if not arg.type.is_nullable:
                    lines.extend([
                        f"            if (args[{index}] == null) {{",
                        "              throw PlatformException(",
                        f"                code: '{NULL_ERROR_CODE}',",
                        f"                message: '{name}_arg unexpectedly null.',",
                        "              );",
                        "            }",
                    ])
                value = self._decode_expr(arg.type, f"args[{index}]", nested=False)
                lines.append(f"            final {self.type_name(arg.type)} {name}_arg = {value};")
                call_args.append(f"{name}_arg")
        call = f"api.{method.name}({', '.join(call_args)})"
        if method.is_asynchronous:
            call = f"await {call}"
        if method.return_type.is_void:
            lines.extend([
                f"            {call};",
                f"            return <Object?, Object?>{{'{Keys.RESULT}': null}};",
            ])
        else:
            output = self._encode_expr(method.return_type, "output", nested=False)
            lines.extend([
                f"            final {self.type_name(method.return_type)} output = {call};",
                f"            return <Object?, Object?>{{'{Keys.RESULT}': {output}}};",
            ])
        lines.extend([
            "          } on PlatformException catch (e) {",
            f"            return <Object?, Object?>{{'{Keys.ERROR}': <Object?, Object?>{{",
            f"              '{Keys.ERROR_CODE}': e.code,",
            f"              '{Keys.ERROR_MESSAGE}': e.message,",
            f"              '{Keys.ERROR_DETAILS}': e.details,",
            "            }};",
            "          } catch (e, stackTrace) {",
            f"            return <Object?, Object?>{{'{Keys.ERROR}': <Object?, Object?>{{",
            f"              '{Keys.ERROR_CODE}': e.runtimeType.toString(),",
            f"              '{Keys.ERROR_MESSAGE}': e.toString(),",
            f"              '{Keys.ERROR_DETAILS}': stackTrace.toString(),",
            "            }};",
            "          }",
            "        });",
            "      }",
            "    }",
        ])
        return lines

    def _caller(self, iface: Interface) -> list[str]:
        """Class whose methods send one request and await the reply envelope"""
        lines = [
            "",
            f"class {iface.name} {{",
            f"  {iface.name}({{BinaryMessenger? binaryMessenger}}) : _binaryMessenger = binaryMessenger;",
            "",
            "  final BinaryMessenger? _binaryMessenger;",
            "",
            f"  static const MessageCodec<Object?> codec = {self._codec_name(iface)}();",
        ]
        for method in iface.methods:
            lines.extend(self._caller_method(iface, method))
        lines.append("}")
        return lines

    def _caller_method(self, iface: Interface, method: Method) -> list[str]:
        channel = self.channel_name(iface, method)
        if method.arguments:
            values = [
                self._encode_expr(arg.type, name, nested=False)
                for name, arg in zip(self.argument_names(method), method.arguments)
            ]
            send = f"<Object?>[{', '.join(values)}]"
        else:
            send = "null"
        ret = method.return_type
        lines = [
            "",
            f"  Future<{self.type_name(ret)}> {method.name}({self._signature(method)}) async {{",
            "    final BasicMessageChannel<Object?> channel = BasicMessageChannel<Object?>(",
            f"        '{channel}', codec, binaryMessenger: _binaryMessenger);",
            "    final Map<Object?, Object?>? replyMap =",
            f"        await channel.send({send}) as Map<Object?, Object?>?;",
            "    if (replyMap == null) {",
            "      throw PlatformException(",
            f"        code: '{CHANNEL_ERROR_CODE}',",
            f"        message: \"Unable to establish connection on channel: '{channel}'.\",",
            "      );",
            f"    }} else if (replyMap['{Keys.ERROR}'] != null) {{",
            f"      final Map<Object?, Object?> error = replyMap['{Keys.ERROR}']! as Map<Object?, Object?>;",
            "      throw PlatformException(",
            f"        code: error['{Keys.ERROR_CODE}']! as String,",
            f"        message: error['{Keys.ERROR_MESSAGE}'] as String?,",
            f"        details: error['{Keys.ERROR_DETAILS}'],",
            "      );",
        ]
        if not ret.is_void and not ret.is_nullable:
            lines.extend([
                f"    }} else if (replyMap['{Keys.RESULT}'] == null) {{",
                "      throw PlatformException(",
                f"        code: '{NULL_ERROR_CODE}',",
                "        message: 'Host platform returned null value for non-null return value.',",
                "      );",
            ])
        lines.append("    } else {")
        if ret.is_void:
            lines.append("      return;")
        else:
            value = self._decode_expr(ret, f"replyMap['{Keys.RESULT}']", nested=False)
            lines.append(f"      return {value};")
        lines.extend(["    }", "  }"])
        return lines

    def _codec_name(self, iface: Interface) -> str:
        return f"_{iface.name}Codec"

    def _signature(self, method: Method) -> str:
        return ", ".join(
            f"{self.type_name(arg.type)} {name}"
            for name, arg in zip(self.argument_names(method), method.arguments)
        )

    def _needs_conversion(self, type_ref: TypeReference, nested: bool) -> bool:
        """Check if values of this type differ between Dart and the wire"""
        if self.is_enum(type_ref):
            return True
        if self.is_record(type_ref):
            return nested
        return any(self._needs_conversion(arg, nested) for arg in type_ref.type_arguments)

    def _encode_expr(self, type_ref: TypeReference, expr: str, nested: bool = True, depth: int = 0) -> str:
        """Wire value of ``expr``; records stay objects unless ``nested``"""
        if not self._needs_conversion(type_ref, nested):
            return expr
        conditional = "?" if type_ref.is_nullable else ""
        if self.is_enum(type_ref):
            return f"{expr}{conditional}.index"
        if self.is_record(type_ref):
            return f"{expr}{conditional}.encode()"
        if type_ref.base_name == 'List':
            item = f"e{depth}"
            inner = self._encode_expr(type_ref.type_arguments[0], item, nested, depth + 1)
            return f"{expr}{conditional}.map(({item}) => {inner}).toList()"
        key, item = f"k{depth}", f"v{depth}"
        key_type, value_type = type_ref.type_arguments
        inner_key = self._encode_expr(key_type, key, nested, depth + 1)
        inner_value = self._encode_expr(value_type, item, nested, depth + 1)
        return f"{expr}{conditional}.map(({key}, {item}) => MapEntry({inner_key}, {inner_value}))"

    def _decode_expr(self, type_ref: TypeReference, expr: str, nested: bool = True, depth: int = 0) -> str:
        """Dart value of the wire value ``expr``"""
        suffix = "?" if type_ref.is_nullable else "!"
        if self.is_enum(type_ref):
            value = f"{type_ref.base_name}.values[{expr}! as int]"
        elif self.is_record(type_ref):
            value = f"{type_ref.base_name}.decode({expr}!)" if nested else f"{expr}! as {type_ref.base_name}"
        elif type_ref.type_arguments and self._needs_conversion(type_ref, nested=True):
            if type_ref.base_name == 'List':
                item = f"e{depth}"
                inner = self._decode_expr(type_ref.type_arguments[0], item, nested, depth + 1)
                return f"({expr} as List<Object?>?){suffix}.map((Object? {item}) => {inner}).toList()"
            key, item = f"k{depth}", f"v{depth}"
            key_type, value_type = type_ref.type_arguments
            inner_key = self._decode_expr(key_type, key, nested, depth + 1)
            inner_value = self._decode_expr(value_type, item, nested, depth + 1)
            return (
                f"({expr} as Map<Object?, Object?>?){suffix}"
                f".map((Object? {key}, Object? {item}) => MapEntry({inner_key}, {inner_value}))"
            )
        elif type_ref.type_arguments:
            cast = ", ".join(self.type_name(arg) for arg in type_ref.type_arguments)
            generic = "List<Object?>" if type_ref.base_name == 'List' else "Map<Object?, Object?>"
            return f"({expr} as {generic}?){suffix}.cast<{cast}>()"
        else:
            target = self.non_null_type_name(type_ref)
            return f"{expr} as {target}?" if type_ref.is_nullable else f"{expr}! as {target}"
        if type_ref.is_nullable:
            return f"({expr} != null ? {value} : null)"
        return value
