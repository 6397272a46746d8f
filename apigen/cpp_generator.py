"""C++ Generator - generates a header/source pair for the Windows side of a channel"""

from .channel import Keys, CHANNEL_ERROR_CODE, NULL_ERROR_CODE
from .common_generator import CommonGenerator
from .type_mapper import TypeMapper
from .types import EnumType, Interface, Method, RecordType, TypeReference

HEADER = "header"
SOURCE = "source"


class CppGenerator(CommonGenerator):
    """Generates declarations into the header and definitions into the source"""

    builtin_table = TypeMapper.CPP

    def __init__(self, document, options=None):
        super().__init__(document, options)
        self._part = HEADER

    def generate_files(self, basename: str) -> dict[str, str]:
        header_name = self.options.header or f"{basename}.h"
        return {
            header_name: self.generate_header(header_name),
            f"{basename}.cpp": self.generate_source(header_name),
        }

    def generate_header(self, header_name: str) -> str:
        """Generate C++ header"""
        self._part = HEADER
        guard = "".join(c if c.isalnum() else "_" for c in header_name).upper() + "_"
        lines = self.header_lines()
        lines.extend([
            "",
            f"#ifndef {guard}",
            f"#define {guard}",
            "#include <flutter/basic_message_channel.h>",
            "#include <flutter/binary_messenger.h>",
            "#include <flutter/encodable_value.h>",
            "#include <flutter/standard_message_codec.h>",
            "",
            "#include <functional>",
            "#include <map>",
            "#include <optional>",
            "#include <string>",
            "#include <variant>",
            "#include <vector>",
            "",
        ])
        lines.extend(self._namespace_open())
        lines.extend(self._error_types())
        lines.extend(self.declarations())
        lines.extend(self._namespace_close())
        lines.extend(["", f"#endif  // {guard}"])
        return "\n".join(lines) + "\n"

    def generate_source(self, header_name: str) -> str:
        """Generate C++ implementation"""
        self._part = SOURCE
        lines = self.header_lines()
        lines.extend([
            "",
            "#undef _HAS_EXCEPTIONS",
            "",
            f'#include "{header_name}"',
            "",
            "#include <flutter/basic_message_channel.h>",
            "#include <flutter/binary_messenger.h>",
            "#include <flutter/encodable_value.h>",
            "#include <flutter/standard_message_codec.h>",
            "",
            "#include <map>",
            "#include <optional>",
            "#include <string>",
            "",
        ])
        lines.extend(self._namespace_open())
        lines.extend(self.declarations())
        lines.extend(self._namespace_close())
        self._part = HEADER
        return "\n".join(lines) + "\n"

    def _namespace_open(self) -> list[str]:
        if not self.options.namespace:
            return []
        return [f"namespace {self.options.namespace} {{", ""]

    def _namespace_close(self) -> list[str]:
        if not self.options.namespace:
            return []
        return ["", f"}}  // namespace {self.options.namespace}"]

    def _error_types(self) -> list[str]:
        return [
            "class FlutterError {",
            " public:",
            "  explicit FlutterError(const std::string& code) : code_(code) {}",
            "  explicit FlutterError(const std::string& code, const std::string& message)",
            "      : code_(code), message_(message) {}",
            "  explicit FlutterError(const std::string& code, const std::string& message,",
            "                        const flutter::EncodableValue& details)",
            "      : code_(code), message_(message), details_(details) {}",
            "",
            "  const std::string& code() const { return code_; }",
            "  const std::string& message() const { return message_; }",
            "  const flutter::EncodableValue& details() const { return details_; }",
            "",
            " private:",
            "  std::string code_;",
            "  std::string message_;",
            "  flutter::EncodableValue details_;",
            "};",
            "",
            "template <class T> class ErrorOr {",
            " public:",
            "  ErrorOr(const T& rhs) : v_(rhs) {}",
            "  ErrorOr(const T&& rhs) : v_(std::move(rhs)) {}",
            "  ErrorOr(const FlutterError& rhs) : v_(rhs) {}",
            "  ErrorOr(const FlutterError&& rhs) : v_(std::move(rhs)) {}",
            "",
            "  bool has_error() const { return std::holds_alternative<FlutterError>(v_); }",
            "  const T& value() const { return std::get<T>(v_); };",
            "  const FlutterError& error() const { return std::get<FlutterError>(v_); };",
            "",
            " private:",
            "  std::variant<T, FlutterError> v_;",
            "};",
        ]

    # ── Declarations ─────────────────────────────────────────────────────

    def _enum(self, enum: EnumType) -> list[str]:
        if self._part == SOURCE:
            return []
        lines = ["", f"enum class {enum.name} {{"]
        for index, member in enumerate(enum.members):
            end = "" if index == len(enum.members) - 1 else ","
            lines.append(f"  {member} = {index}{end}")
        lines.append("};")
        return lines

    def _record(self, record: RecordType) -> list[str]:
        if self._part == HEADER:
            return self._record_header(record)
        return self._record_source(record)

    def _record_header(self, record: RecordType) -> list[str]:
        lines = [
            "",
            "// Generated class that represents data sent in messages.",
            f"class {record.name} {{",
            " public:",
            f"  {record.name}();",
            f"  explicit {record.name}(const flutter::EncodableMap& map);",
        ]
        for f in record.fields:
            cpp_type = self.type_name(f.type)
            lines.extend([
                f"  const {cpp_type}& {self.getter_name(f)}() const;",
                f"  void {self.setter_name(f)}(const {cpp_type}& value_arg);",
            ])
        lines.extend([
            "  flutter::EncodableMap ToEncodableMap() const;",
            "",
            " private:",
        ])
        for f in record.fields:
            lines.append(f"  {self.type_name(f.type)} {f.name}_;")
        lines.append("};")
        return lines

    def _record_source(self, record: RecordType) -> list[str]:
        lines = ["", f"// {record.name}", "", f"{record.name}::{record.name}() {{}}", ""]
        for f in record.fields:
            cpp_type = self.type_name(f.type)
            lines.extend([
                f"const {cpp_type}& {record.name}::{self.getter_name(f)}() const {{ return {f.name}_; }}",
                f"void {record.name}::{self.setter_name(f)}(const {cpp_type}& value_arg) {{ {f.name}_ = value_arg; }}",
                "",
            ])
        lines.extend([
            f"flutter::EncodableMap {record.name}::ToEncodableMap() const {{",
            "  flutter::EncodableMap to_map_result;",
        ])
        for f in record.fields:
            value = self._to_encodable(f.type, f"{f.name}_", nested=True)
            lines.append(f'  to_map_result.emplace(flutter::EncodableValue("{f.name}"), {value});')
        lines.extend([
            "  return to_map_result;",
            "}",
            "",
            f"{record.name}::{record.name}(const flutter::EncodableMap& map) {{",
        ])
        for f in record.fields:
            lines.extend([
                f'  auto encodable_{f.name} = map.find(flutter::EncodableValue("{f.name}"));',
                f"  if (encodable_{f.name} != map.end() && !encodable_{f.name}->second.IsNull()) {{",
                f"    {f.name}_ = {self._from_encodable(f.type, f'encodable_{f.name}->second', nested=True)};",
                "  }",
            ])
        lines.append("}")
        return lines

    def _codec(self, iface: Interface) -> list[str]:
        name = self._codec_name(iface)
        entries = self.discriminants(iface)
        if self._part == HEADER:
            return [
                "",
                f"class {name} : public flutter::StandardCodecSerializer {{",
                " public:",
                f"  static const {name}& GetInstance() {{",
                f"    static {name} sInstance;",
                "    return sInstance;",
                "  }",
                "",
                f"  {name}();",
                "",
                " public:",
                "  void WriteValue(const flutter::EncodableValue& value,",
                "                  flutter::ByteStreamWriter* stream) const override;",
                "",
                " protected:",
                "  flutter::EncodableValue ReadValueOfType(uint8_t type,",
                "                                          flutter::ByteStreamReader* stream) const override;",
                "};",
            ]

        lines = [
            "",
            f"{name}::{name}() {{}}",
            "",
            f"flutter::EncodableValue {name}::ReadValueOfType(uint8_t type,",
            "                                                flutter::ByteStreamReader* stream) const {",
            "  switch (type) {",
        ]
        for entry in entries:
            lines.extend([
                f"    case {entry.code}:",
                f"      return flutter::CustomEncodableValue({entry.record.name}(",
                "          std::get<flutter::EncodableMap>(ReadValue(stream))));",
            ])
        lines.extend([
            "    default:",
            "      return flutter::StandardCodecSerializer::ReadValueOfType(type, stream);",
            "  }",
            "}",
            "",
            f"void {name}::WriteValue(const flutter::EncodableValue& value,",
            "                        flutter::ByteStreamWriter* stream) const {",
        ])
        if entries:
            lines.append("  if (const flutter::CustomEncodableValue* custom_value = "
                         "std::get_if<flutter::CustomEncodableValue>(&value)) {")
            for entry in entries:
                record = entry.record.name
                lines.extend([
                    f"    if (custom_value->type() == typeid({record})) {{",
                    f"      stream->WriteByte({entry.code});",
                    f"      WriteValue(flutter::EncodableValue(std::any_cast<{record}>(*custom_value).ToEncodableMap()), stream);",
                    "      return;",
                    "    }",
                ])
            lines.append("  }")
        lines.extend([
            "  flutter::StandardCodecSerializer::WriteValue(value, stream);",
            "}",
        ])
        return lines

    def _receiver(self, iface: Interface) -> list[str]:
        if self._part == HEADER:
            return self._receiver_header(iface)
        return self._receiver_source(iface)

    def _return_type(self, method: Method) -> str:
        if method.return_type.is_void:
            return "std::optional<FlutterError>"
        return f"ErrorOr<{self.type_name(method.return_type)}>"

    def _params(self, method: Method) -> list[str]:
        return [
            f"const {self.type_name(arg.type)}& {name}"
            for name, arg in zip(self.argument_names(method), method.arguments)
        ]

    def _receiver_header(self, iface: Interface) -> list[str]:
        lines = [
            "",
            "// Generated interface that represents a handler of messages.",
            f"class {iface.name} {{",
            " public:",
            f"  {iface.name}(const {iface.name}&) = delete;",
            f"  {iface.name}& operator=(const {iface.name}&) = delete;",
            f"  virtual ~{iface.name}() {{}}",
        ]
        for method in iface.methods:
            params = self._params(method)
            if method.is_asynchronous:
                params.append(f"std::function<void({self._return_type(method)} reply)> result")
                lines.append(f"  virtual void {method.name}({', '.join(params)}) = 0;")
            else:
                lines.append(f"  virtual {self._return_type(method)} {method.name}({', '.join(params)}) = 0;")
        lines.extend([
            "",
            f"  // The codec used by {iface.name}.",
            "  static const flutter::StandardMessageCodec& GetCodec();",
            f"  // Sets up an instance of `{iface.name}` to handle messages through the `binary_messenger`.",
            f"  static void SetUp(flutter::BinaryMessenger* binary_messenger, {iface.name}* api);",
            "  static flutter::EncodableValue WrapError(std::string_view error_message);",
            "  static flutter::EncodableValue WrapError(const FlutterError& error);",
            "",
            " protected:",
            f"  {iface.name}() = default;",
            "};",
        ])
        return lines

    def _receiver_source(self, iface: Interface) -> list[str]:
        lines = self._get_codec(iface)
        lines.extend([
            "",
            f"void {iface.name}::SetUp(flutter::BinaryMessenger* binary_messenger, {iface.name}* api) {{",
        ])
        for method in iface.methods:
            lines.extend(self._setup_method(iface, method))
        lines.extend([
            "}",
            "",
            f"flutter::EncodableValue {iface.name}::WrapError(std::string_view error_message) {{",
            "  return flutter::EncodableValue(flutter::EncodableMap{",
            f'      {{flutter::EncodableValue("{Keys.ERROR}"), flutter::EncodableValue(flutter::EncodableMap{{',
            f'          {{flutter::EncodableValue("{Keys.ERROR_CODE}"), flutter::EncodableValue("Error")}},',
            f'          {{flutter::EncodableValue("{Keys.ERROR_MESSAGE}"), flutter::EncodableValue(std::string(error_message))}},',
            f'          {{flutter::EncodableValue("{Keys.ERROR_DETAILS}"), flutter::EncodableValue()}}}})}}}});',
            "}",
            "",
            f"flutter::EncodableValue {iface.name}::WrapError(const FlutterError& error) {{",
            "  return flutter::EncodableValue(flutter::EncodableMap{",
            f'      {{flutter::EncodableValue("{Keys.ERROR}"), flutter::EncodableValue(flutter::EncodableMap{{',
            f'          {{flutter::EncodableValue("{Keys.ERROR_CODE}"), flutter::EncodableValue(error.code())}},',
            f'          {{flutter::EncodableValue("{Keys.ERROR_MESSAGE}"), flutter::EncodableValue(error.message())}},',
            f'          {{flutter::EncodableValue("{Keys.ERROR_DETAILS}"), error.details()}}}})}}}});',
            "}",
        ])
        return lines

    def _wrap_output(self, method: Method, indent: str) -> list[str]:
        """Reply with the error or the result held by ``output``"""
        if method.return_type.is_void:
            condition, error, result = "output.has_value()", "output.value()", "flutter::EncodableValue()"
        else:
            condition, error = "output.has_error()", "output.error()"
            result = self._to_encodable(method.return_type, "output.value()", nested=False)
        return [
            f"{indent}if ({condition}) {{",
            f"{indent}  reply(WrapError({error}));",
            f"{indent}  return;",
            f"{indent}}}",
            f"{indent}reply(flutter::EncodableValue(flutter::EncodableMap{{",
            f'{indent}    {{flutter::EncodableValue("{Keys.RESULT}"), {result}}}}}));',
        ]

    def _setup_method(self, iface: Interface, method: Method) -> list[str]:
        channel = self.channel_name(iface, method)
        lines = [
            "  {",
            "    auto channel = std::make_unique<flutter::BasicMessageChannel<>>(",
            f'        binary_messenger, "{channel}", &GetCodec());',
            "    if (api != nullptr) {",
            "      channel->SetMessageHandler([api](const flutter::EncodableValue& message,",
            "                                       const flutter::MessageReply<flutter::EncodableValue>& reply) {",
            "        try {",
        ]
        call_args = []
        if method.arguments:
            lines.append("          const auto& args = std::get<flutter::EncodableList>(message);")
            for index, (name, arg) in enumerate(zip(self.argument_names(method), method.arguments)):
                encodable = f"encodable_{name}_arg"
                lines.append(f"          const auto& {encodable} = args.at({index});")
                if not arg.type.is_nullable:
                    lines.extend([
                        f"          if ({encodable}.IsNull()) {{",
                        f'            reply(WrapError(FlutterError("{NULL_ERROR_CODE}", "{name}_arg unexpectedly null.")));',
                        "            return;",
                        "          }",
                    ])
                value = self._from_encodable(arg.type, encodable, nested=False)
                if arg.type.is_nullable:
                    value = f"{encodable}.IsNull() ? std::nullopt : {self.type_name(arg.type)}({value})"
                lines.append(f"          const {self.type_name(arg.type)} {name}_arg = {value};")
                call_args.append(f"{name}_arg")
        if method.is_asynchronous:
            call_args.append(f"[reply]({self._return_type(method)}&& output) {{")
            lines.append(f"          api->{method.name}({', '.join(call_args)}")
            lines.extend(self._wrap_output(method, "            "))
            lines.append("          });")
        else:
            lines.append(f"          {self._return_type(method)} output = api->{method.name}({', '.join(call_args)});")
            lines.extend(self._wrap_output(method, "          "))
        lines.extend([
            "        } catch (const std::exception& exception) {",
            "          reply(WrapError(exception.what()));",
            "        }",
            "      });",
            "    } else {",
            "      channel->SetMessageHandler(nullptr);",
            "    }",
            "  }",
        ])
        return lines

    def _caller(self, iface: Interface) -> list[str]:
        if self._part == HEADER:
            lines = [
                "",
                "// Generated class that sends messages to the other side of the channel.",
                f"class {iface.name} {{",
                " public:",
                f"  {iface.name}(flutter::BinaryMessenger* binary_messenger);",
                "  static const flutter::StandardMessageCodec& GetCodec();",
            ]
            for method in iface.methods:
                lines.append(f"  void {method.name}({', '.join(self._caller_params(method))});")
            lines.extend([
                "",
                " private:",
                "  flutter::BinaryMessenger* binary_messenger_;",
                "};",
            ])
            return lines

        lines = [
            "",
            f"{iface.name}::{iface.name}(flutter::BinaryMessenger* binary_messenger)",
            "    : binary_messenger_(binary_messenger) {}",
        ]
        lines.extend(self._get_codec(iface))
        for method in iface.methods:
            lines.extend(self._caller_method(iface, method))
        return lines

    def _caller_params(self, method: Method) -> list[str]:
        if method.return_type.is_void:
            success = "std::function<void(void)>&& on_success"
        else:
            success = f"std::function<void(const {self.type_name(method.return_type)}&)>&& on_success"
        return self._params(method) + [success, "std::function<void(const FlutterError&)>&& on_error"]

    def _caller_method(self, iface: Interface, method: Method) -> list[str]:
        channel = self.channel_name(iface, method)
        if method.arguments:
            values = [
                self._to_encodable(arg.type, name, nested=False)
                for name, arg in zip(self.argument_names(method), method.arguments)
            ]
            send = f"flutter::EncodableValue(flutter::EncodableList{{{', '.join(values)}}})"
        else:
            send = "flutter::EncodableValue()"
        lines = [
            "",
            f"void {iface.name}::{method.name}({', '.join(self._caller_params(method))}) {{",
            "  auto channel = std::make_unique<flutter::BasicMessageChannel<>>(",
            f'      binary_messenger_, "{channel}", &GetCodec());',
            f"  flutter::EncodableValue encoded_api_arguments = {send};",
            "  channel->Send(encoded_api_arguments,",
            "                [on_success = std::move(on_success), on_error = std::move(on_error)](",
            "                    const uint8_t* reply, size_t reply_size) {",
            "    std::unique_ptr<flutter::EncodableValue> response =",
            "        GetCodec().DecodeMessage(reply, reply_size);",
            "    const auto* reply_map = response ? std::get_if<flutter::EncodableMap>(response.get()) : nullptr;",
            "    if (reply_map == nullptr) {",
            f'      on_error(FlutterError("{CHANNEL_ERROR_CODE}", "Unable to establish connection on channel: \'{channel}\'."));',
            "      return;",
            "    }",
            f'    auto error = reply_map->find(flutter::EncodableValue("{Keys.ERROR}"));',
            "    if (error != reply_map->end() && !error->second.IsNull()) {",
            "      const auto& error_map = std::get<flutter::EncodableMap>(error->second);",
            f'      auto error_code = error_map.find(flutter::EncodableValue("{Keys.ERROR_CODE}"));',
            f'      auto error_message = error_map.find(flutter::EncodableValue("{Keys.ERROR_MESSAGE}"));',
            f'      auto error_details = error_map.find(flutter::EncodableValue("{Keys.ERROR_DETAILS}"));',
            "      const auto* code_value =",
            "          error_code != error_map.end() ? std::get_if<std::string>(&error_code->second) : nullptr;",
            "      const auto* message_value =",
            "          error_message != error_map.end() ? std::get_if<std::string>(&error_message->second) : nullptr;",
            "      on_error(FlutterError(",
            "          code_value ? *code_value : std::string(),",
            "          message_value ? *message_value : std::string(),",
            "          error_details != error_map.end() ? error_details->second : flutter::EncodableValue()));",
            "      return;",
            "    }",
        ]
        ret = method.return_type
        if ret.is_void:
            lines.append("    on_success();")
        else:
            lines.extend([
                f'    auto result = reply_map->find(flutter::EncodableValue("{Keys.RESULT}"));',
                "    if (result == reply_map->end() || result->second.IsNull()) {",
            ])
            if ret.is_nullable:
                lines.extend([
                    f"      on_success({self.type_name(ret)}());",
                    "      return;",
                ])
            else:
                lines.extend([
                    f'      on_error(FlutterError("{NULL_ERROR_CODE}", '
                    '"Host platform returned null value for non-null return value."));',
                    "      return;",
                ])
            lines.extend([
                "    }",
                f"    const {self.type_name(ret)} output = {self._from_encodable(ret, 'result->second', nested=False)};",
                "    on_success(output);",
            ])
        lines.extend(["  });", "}"])
        return lines

    def _get_codec(self, iface: Interface) -> list[str]:
        return [
            "",
            f"// The codec used by {iface.name}.",
            f"const flutter::StandardMessageCodec& {iface.name}::GetCodec() {{",
            f"  return flutter::StandardMessageCodec::GetInstance(&{self._codec_name(iface)}::GetInstance());",
            "}",
        ]

    def _codec_name(self, iface: Interface) -> str:
        return f"{iface.name}CodecSerializer"

    def _to_encodable(self, type_ref: TypeReference, expr: str, nested: bool) -> str:
        """EncodableValue holding ``expr``; records become maps when ``nested``"""
        value = f"(*{expr})" if type_ref.is_nullable else expr
        if self.is_enum(type_ref):
            converted = f"flutter::EncodableValue((int){value})"
        elif self.is_record(type_ref):
            if nested:
                converted = f"flutter::EncodableValue({value}.ToEncodableMap())"
            else:
                converted = f"flutter::EncodableValue(flutter::CustomEncodableValue({value}))"
        else:
            converted = f"flutter::EncodableValue({value})"
        if type_ref.is_nullable:
            return f"{expr} ? {converted} : flutter::EncodableValue()"
        return converted

    def _from_encodable(self, type_ref: TypeReference, expr: str, nested: bool) -> str:
        """C++ value of the EncodableValue ``expr``"""
        if self.is_enum(type_ref):
            return f"({type_ref.base_name})std::get<int32_t>({expr})"
        if self.is_record(type_ref):
            if nested:
                return f"{type_ref.base_name}(std::get<flutter::EncodableMap>({expr}))"
            return f"std::any_cast<const {type_ref.base_name}&>(std::get<flutter::CustomEncodableValue>({expr}))"
        if type_ref.base_name == 'int':
            return f"{expr}.LongValue()"
        return f"std::get<{self.non_null_type_name(type_ref)}>({expr})"
