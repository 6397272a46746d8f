"""Python Generator - generates Python bindings on top of apigen.runtime"""

from .common_generator import CommonGenerator
from .type_mapper import TypeMapper
from .types import DispatchHint, EnumType, Interface, Method, RecordType, TypeReference

SECTION = "# ══════════════════════════════════════════════════════════════"


class PythonGenerator(CommonGenerator):
    """Generates a Python module with records, enums, receivers and callers"""

    builtin_table = TypeMapper.PYTHON
    comment_prefix = "#"

    def generate_files(self, basename: str) -> dict[str, str]:
        return {f"{basename}.py": self.generate()}

    def generate(self) -> str:
        """Generate complete Python module"""
        body = self.declarations()
        namespace = self.options.namespace or "bindings"

        lines = self.header_lines()
        lines.extend([
            '"""',
            f"Generated message bindings for {namespace}",
            '"""',
            "",
            "from __future__ import annotations",
            "",
            "import abc",
            "from dataclasses import dataclass",
            "from enum import IntEnum",
            "from typing import Any, Callable, Dict, List, Optional",
            "",
        ])
        if any("numpy." in line for line in body):
            lines.extend(["import numpy", ""])
        lines.extend([
            "from apigen.runtime import (",
            "    BasicMessageChannel,",
            "    BinaryMessenger,",
            "    Result,",
            "    StandardMessageCodec,",
            "    require,",
            "    unwrap_reply,",
            "    wrap_error,",
            "    wrap_result,",
            ")",
            "",
        ])
        lines.extend(body)
        return "\n".join(lines).rstrip() + "\n"

    def _enum(self, enum: EnumType) -> list[str]:
        """Generate IntEnum whose values are the declaration indexes"""
        lines = [
            "",
            f"class {enum.name}(IntEnum):",
            f'    """Enum {enum.name}"""',
        ]
        for index, member in enumerate(enum.members):
            lines.append(f"    {member} = {index}")
        if not enum.members:
            lines.append("    pass")
        lines.append("")
        return lines

    def _record(self, record: RecordType) -> list[str]:
        """Generate dataclass with encode/decode"""
        lines = [
            "",
            "@dataclass(kw_only=True)",
            f"class {record.name}:",
            f'    """Record {record.name}"""',
        ]
        for f in record.fields:
            default = " = None" if f.type.is_nullable else ""
            lines.append(f"    {f.name}: {self.type_name(f.type)}{default}")
        if record.fields:
            lines.append("")

        lines.extend([
            "    def encode(self) -> Dict[str, Any]:",
            "        return {",
        ])
        for f in record.fields:
            value = self._encode_expr(f.type, f"self.{f.name}", nested_records=True)
            lines.append(f"            '{f.name}': {value},")
        lines.extend([
            "        }",
            "",
            "    @classmethod",
            f"    def decode(cls, message: Any) -> {record.name}:",
            "        if isinstance(message, cls):",
            "            return message",
        ])
        for f in record.fields:
            lines.append(f"        {f.name}_value = message.get('{f.name}')")
        lines.append("        return cls(")
        for f in record.fields:
            value = self._decode_expr(f.type, f"{f.name}_value", f"{record.name}.{f.name}")
            lines.append(f"            {f.name}={value},")
        lines.extend([
            "        )",
            "",
        ])
        return lines

    def _codec(self, iface: Interface) -> list[str]:
        """Generate codec subclass writing the interface's discriminants"""
        entries = self.discriminants(iface)
        lines = [
            SECTION,
            f"# {iface.name}",
            SECTION,
            "",
            f"class {self._codec_name(iface)}(StandardMessageCodec):",
            f'    """Message codec for {iface.name}"""',
        ]
        if not entries:
            lines.extend(["", ""])
            return lines

        lines.extend([
            "",
            "    def write_value(self, buffer, value):",
        ])
        for i, entry in enumerate(entries):
            keyword = "if" if i == 0 else "elif"
            lines.extend([
                f"        {keyword} isinstance(value, {entry.record.name}):",
                f"            buffer.put_uint8({entry.code})",
                "            self.write_value(buffer, value.encode())",
            ])
        lines.extend([
            "        else:",
            "            super().write_value(buffer, value)",
            "",
            "    def read_value_of_type(self, type_, buffer):",
        ])
        for entry in entries:
            lines.extend([
                f"        if type_ == {entry.code}:",
                f"            return {entry.record.name}.decode(self.read_value(buffer))",
            ])
        lines.extend([
            "        return super().read_value_of_type(type_, buffer)",
            "",
            "",
        ])
        return lines

    def _receiver(self, iface: Interface) -> list[str]:
        """Generate abstract receiver with static setup"""
        lines = [
            f"class {iface.name}(abc.ABC):",
            f'    """Handles messages received on the {iface.name} channels"""',
            "",
            f"    codec = {self._codec_name(iface)}()",
            "",
        ]
        for method in iface.methods:
            params = ["self"] + [
                f"{name}: {self.type_name(arg.type)}"
                for name, arg in zip(self.argument_names(method), method.arguments)
            ]
            if method.is_asynchronous:
                params.append(f"result: Result[{self.non_null_type_name(method.return_type)}]")
                ret = "None"
            else:
                ret = self.type_name(method.return_type)
            lines.extend([
                "    @abc.abstractmethod",
                f"    def {method.name}({', '.join(params)}) -> {ret}:",
                "        ...",
                "",
            ])

        lines.extend([
            "    @staticmethod",
            f"    def setup(binary_messenger: BinaryMessenger, api: Optional[{iface.name}]) -> None:",
            f'        """Attach ``api`` to the {iface.name} channels; ``None`` detaches them"""',
        ])
        for method in iface.methods:
            lines.extend(self._setup_method(iface, method))
        lines.append("")
        return lines

    def _setup_method(self, iface: Interface, method: Method) -> list[str]:
        """Register the handler of one method"""
        channel = self.channel_name(iface, method)
        handler = f"{method.name}_handler"
        lines = []
        if method.dispatch_hint is DispatchHint.BACKGROUND:
            lines.extend([
                "        channel = BasicMessageChannel(",
                f"            binary_messenger, '{channel}', {iface.name}.codec,",
                "            task_queue=binary_messenger.make_background_task_queue())",
            ])
        else:
            lines.extend([
                "        channel = BasicMessageChannel(",
                f"            binary_messenger, '{channel}', {iface.name}.codec)",
            ])
        lines.extend([
            "        if api is None:",
            "            channel.set_message_handler(None)",
            "        else:",
            f"            def {handler}(message: Any, reply: Callable[[Any], None]) -> None:",
        ])

        body = []
        call_args = []
        if method.arguments:
            body.append(f"args = require(message, 'Arguments for {channel}')")
            for index, (name, arg) in enumerate(zip(self.argument_names(method), method.arguments)):
                value = self._decode_expr(arg.type, f"args[{index}]", f"Argument {name} for {channel}")
                body.append(f"{name}_arg = {value}")
                call_args.append(f"{name}_arg")

        if method.is_asynchronous:
            call_args.append("result")
            call = f"api.{method.name}({', '.join(call_args)})"
            lines.append(f"                result = Result(reply, '{channel}')")
            lines.append("                try:")
            lines.extend(f"                    {line}" for line in body + [call])
            lines.extend([
                "                except Exception as exception:",
                "                    result.reject(exception)",
            ])
        else:
            call = f"api.{method.name}({', '.join(call_args)})"
            if method.return_type.is_void:
                body.extend([call, "wrapped = wrap_result(None)"])
            else:
                output = self._encode_expr(method.return_type, "output", nested_records=False)
                body.extend([f"output = {call}", f"wrapped = wrap_result({output})"])
            lines.append("                try:")
            lines.extend(f"                    {line}" for line in body)
            lines.extend([
                "                except Exception as exception:",
                "                    wrapped = wrap_error(exception)",
                "                reply(wrapped)",
            ])
        lines.append(f"            channel.set_message_handler({handler})")
        lines.append("")
        return lines

    def _caller(self, iface: Interface) -> list[str]:
        """Generate class invoking the other side"""
        lines = [
            f"class {iface.name}:",
            f'    """Sends messages on the {iface.name} channels"""',
            "",
            f"    codec = {self._codec_name(iface)}()",
            "",
            "    def __init__(self, binary_messenger: BinaryMessenger):",
            "        self._binary_messenger = binary_messenger",
            "",
        ]
        for method in iface.methods:
            lines.extend(self._caller_method(iface, method))
        return lines

    def _caller_method(self, iface: Interface, method: Method) -> list[str]:
        names = self.argument_names(method)
        params = ["self"] + [
            f"{name}: {self.type_name(arg.type)}" for name, arg in zip(names, method.arguments)
        ]
        ret = self.type_name(method.return_type)
        if method.arguments:
            values = [
                self._encode_expr(arg.type, name, nested_records=False)
                for name, arg in zip(names, method.arguments)
            ]
            message = f"[{', '.join(values)}]"
        else:
            message = "None"

        lines = [
            f"    def {method.name}({', '.join(params)}) -> {ret}:",
            f'        """Call {iface.name}.{method.name} and wait for the reply"""',
            "        channel = BasicMessageChannel(",
            f"            self._binary_messenger, '{self.channel_name(iface, method)}', {iface.name}.codec)",
            f"        reply = channel.send({message}).result()",
        ]
        if method.return_type.is_void:
            lines.append("        unwrap_reply(reply, channel.name)")
        else:
            nullable = method.return_type.is_nullable
            lines.append(f"        output = unwrap_reply(reply, channel.name, nullable={nullable})")
            context = f"Return value of {iface.name}.{method.name}"
            value = self._decode_expr(method.return_type, "output", context, check_null=False)
            lines.append(f"        return {value}")
        lines.append("")
        return lines

    def _codec_name(self, iface: Interface) -> str:
        return f"_{iface.name}Codec"

    def _needs_conversion(self, type_ref: TypeReference, nested_records: bool) -> bool:
        """Check if values of this type differ between Python and the wire"""
        if self.is_enum(type_ref):
            return True
        if self.is_record(type_ref):
            return nested_records
        return any(self._needs_conversion(arg, nested_records) for arg in type_ref.type_arguments)

    def _needs_decoding(self, type_ref: TypeReference) -> bool:
        """Check if decoding has to visit the elements of this type"""
        if self._needs_conversion(type_ref, nested_records=True):
            return True
        return any(not arg.is_nullable or self._needs_decoding(arg) for arg in type_ref.type_arguments)

    def _encode_expr(self, type_ref: TypeReference, expr: str, nested_records: bool, depth: int = 0) -> str:
        """Expression turning ``expr`` into its wire value.

        With ``nested_records`` records become maps; otherwise they are left
        for the codec to tag with their discriminant.
        """
        if not self._needs_conversion(type_ref, nested_records):
            return expr
        if self.is_enum(type_ref):
            converted = f"int({expr})"
        elif self.is_record(type_ref):
            converted = f"{expr}.encode()"
        elif type_ref.base_name == 'List':
            item = f"v{depth}"
            inner = self._encode_expr(type_ref.type_arguments[0], item, nested_records, depth + 1)
            converted = f"[{inner} for {item} in {expr}]"
        else:
            key, item = f"k{depth}", f"v{depth}"
            key_type, value_type = type_ref.type_arguments
            inner_key = self._encode_expr(key_type, key, nested_records, depth + 1)
            inner_value = self._encode_expr(value_type, item, nested_records, depth + 1)
            converted = f"{{{inner_key}: {inner_value} for {key}, {item} in {expr}.items()}}"
        if type_ref.is_nullable:
            return f"(None if {expr} is None else {converted})"
        return converted

    def _decode_expr(
        self, type_ref: TypeReference, expr: str, context: str, depth: int = 0, check_null: bool = True,
    ) -> str:
        """Expression turning the wire value ``expr`` into its Python value"""
        source = expr
        if not type_ref.is_nullable and check_null:
            source = f"require({expr}, {context!r})"
        if not self._needs_decoding(type_ref):
            return source
        if self.is_enum(type_ref):
            converted = f"{type_ref.base_name}({source})"
        elif self.is_record(type_ref):
            converted = f"{type_ref.base_name}.decode({source})"
        elif type_ref.base_name == 'List':
            item = f"v{depth}"
            inner = self._decode_expr(type_ref.type_arguments[0], item, context, depth + 1)
            converted = f"[{inner} for {item} in {source}]"
        else:
            key, item = f"k{depth}", f"v{depth}"
            key_type, value_type = type_ref.type_arguments
            inner_key = self._decode_expr(key_type, key, context, depth + 1)
            inner_value = self._decode_expr(value_type, item, context, depth + 1)
            converted = f"{{{inner_key}: {inner_value} for {key}, {item} in {source}.items()}}"
        if type_ref.is_nullable:
            return f"(None if {expr} is None else {converted})"
        return converted
