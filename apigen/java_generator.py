"""Java Generator - generates Java bindings for the Android side of a channel"""

from .channel import Keys, CHANNEL_ERROR_CODE, NULL_ERROR_CODE
from .common_generator import CommonGenerator
from .type_mapper import TypeMapper
from .types import DispatchHint, EnumType, Interface, Method, RecordType, TypeReference

DEFAULT_CLASS_NAME = "Messages"


class JavaGenerator(CommonGenerator):
    """Generates one outer Java class nesting every declaration"""

    builtin_table = TypeMapper.JAVA

    @property
    def class_name(self) -> str:
        return self.options.class_name or DEFAULT_CLASS_NAME

    def generate_files(self, basename: str) -> dict[str, str]:
        return {f"{self.class_name}.java": self.generate()}

    def generate(self) -> str:
        lines = self.header_lines()
        lines.append("")
        if self.options.package:
            lines.extend([f"package {self.options.package};", ""])
        lines.extend([
            "import android.util.Log;",
            "import androidx.annotation.NonNull;",
            "import androidx.annotation.Nullable;",
            "import io.flutter.plugin.common.BasicMessageChannel;",
            "import io.flutter.plugin.common.BinaryMessenger;",
            "import io.flutter.plugin.common.MessageCodec;",
            "import io.flutter.plugin.common.StandardMessageCodec;",
            "import java.io.ByteArrayOutputStream;",
            "import java.nio.ByteBuffer;",
            "import java.util.ArrayList;",
            "import java.util.Arrays;",
            "import java.util.HashMap;",
            "import java.util.List;",
            "import java.util.Map;",
            "import java.util.function.Function;",
            "",
            "/** Generated message bindings. */",
            '@SuppressWarnings({"unused", "unchecked", "CodeBlock2Expr", "RedundantSuppression"})',
            f"public class {self.class_name} {{",
        ])
        body = self._support_types() + self.declarations() + self._wrap_error()
        lines.extend(f"    {line}" if line else "" for line in body)
        lines.append("}")
        return "\n".join(lines) + "\n"

    def _support_types(self) -> list[str]:
        """FlutterError, Result and the container converters shared by every interface"""
        return [
            "",
            "/** Error with a code, message and details sent across a channel. */",
            "public static class FlutterError extends RuntimeException {",
            "    public final String code;",
            "    public final Object details;",
            "",
            "    public FlutterError(@NonNull String code, @Nullable String message, @Nullable Object details) {",
            "        super(message);",
            "        this.code = code;",
            "        this.details = details;",
            "    }",
            "}",
            "",
            "public interface Result<T> {",
            "    void success(T result);",
            "    void error(Throwable error);",
            "}",
            "",
            "private static <T, R> List<R> mapList(@Nullable List<T> list, @NonNull Function<T, R> convert) {",
            "    if (list == null) {",
            "        return null;",
            "    }",
            "    List<R> result = new ArrayList<>(list.size());",
            "    for (T item : list) {",
            "        result.add(convert.apply(item));",
            "    }",
            "    return result;",
            "}",
            "",
            "private static <K, V, K2, V2> Map<K2, V2> mapMap(",
            "        @Nullable Map<K, V> map, @NonNull Function<K, K2> convertKey, @NonNull Function<V, V2> convertValue) {",
            "    if (map == null) {",
            "        return null;",
            "    }",
            "    Map<K2, V2> result = new HashMap<>();",
            "    for (Map.Entry<K, V> entry : map.entrySet()) {",
            "        result.put(convertKey.apply(entry.getKey()), convertValue.apply(entry.getValue()));",
            "    }",
            "    return result;",
            "}",
        ]

    def _enum(self, enum: EnumType) -> list[str]:
        lines = ["", f"public enum {enum.name} {{"]
        for index, member in enumerate(enum.members):
            end = ";" if index == len(enum.members) - 1 else ","
            lines.append(f"    {member}({index}){end}")
        lines.extend([
            "",
            "    final int index;",
            "",
            f"    private {enum.name}(final int index) {{",
            "        this.index = index;",
            "    }",
            "}",
        ])
        return lines

    def _record(self, record: RecordType) -> list[str]:
        """Generate class with accessors, Builder, toMap and fromMap"""
        lines = [
            "",
            "/** Generated class that represents data sent in messages. */",
            f"public static final class {record.name} {{",
        ]
        for f in record.fields:
            annotation = "@Nullable" if f.type.is_nullable else "@NonNull"
            java_type = self.type_name(f.type)
            lines.extend([
                f"    private {annotation} {java_type} {f.name};",
                f"    public {annotation} {java_type} {self.getter_name(f)}() {{ return {f.name}; }}",
                f"    public void {self.setter_name(f)}({annotation} {java_type} setterArg) {{",
            ])
            if not f.type.is_nullable:
                lines.extend([
                    "        if (setterArg == null) {",
                    f'            throw new IllegalStateException("Nonnull field \\"{f.name}\\" is null.");',
                    "        }",
                ])
            lines.extend([f"        this.{f.name} = setterArg;", "    }", ""])

        if any(not f.type.is_nullable for f in record.fields):
            lines.extend([
                "    /** Constructor is private to enforce null safety; use Builder. */",
                f"    private {record.name}() {{}}",
                "",
            ])

        lines.append("    public static final class Builder {")
        for f in record.fields:
            annotation = "@Nullable" if f.type.is_nullable else "@NonNull"
            java_type = self.type_name(f.type)
            lines.extend([
                f"        private @Nullable {java_type} {f.name};",
                f"        public @NonNull Builder {self.setter_name(f)}({annotation} {java_type} setterArg) {{",
                f"            this.{f.name} = setterArg;",
                "            return this;",
                "        }",
            ])
        lines.extend([
            f"        public @NonNull {record.name} build() {{",
            f"            {record.name} pigeonReturn = new {record.name}();",
        ])
        for f in record.fields:
            lines.append(f"            pigeonReturn.{self.setter_name(f)}({f.name});")
        lines.extend([
            "            return pigeonReturn;",
            "        }",
            "    }",
            "",
            "    @NonNull Map<String, Object> toMap() {",
            "        Map<String, Object> toMapResult = new HashMap<>();",
        ])
        for f in record.fields:
            lines.append(f'        toMapResult.put("{f.name}", {self._to_wire(f.type, f.name, nested=True)});')
        lines.extend([
            "        return toMapResult;",
            "    }",
            "",
            f"    static @NonNull {record.name} fromMap(@NonNull Map<String, Object> map) {{",
            f"        {record.name} pigeonResult = new {record.name}();",
        ])
        for f in record.fields:
            lines.extend([
                f'        Object {f.name} = map.get("{f.name}");',
                f"        pigeonResult.{self.setter_name(f)}({self._from_wire(f.type, f.name, nested=True)});",
            ])
        lines.extend(["        return pigeonResult;", "    }", "}"])
        return lines

    def _codec(self, iface: Interface) -> list[str]:
        name = self._codec_name(iface)
        entries = self.discriminants(iface)
        lines = [
            "",
            f"private static class {name} extends StandardMessageCodec {{",
            f"    public static final {name} INSTANCE = new {name}();",
            f"    private {name}() {{}}",
        ]
        if entries:
            lines.extend([
                "    @Override",
                "    protected Object readValueOfType(byte type, @NonNull ByteBuffer buffer) {",
                "        switch (type) {",
            ])
            for entry in entries:
                lines.extend([
                    f"            case (byte){entry.code}:",
                    f"                return {entry.record.name}.fromMap((Map<String, Object>) readValue(buffer));",
                ])
            lines.extend([
                "            default:",
                "                return super.readValueOfType(type, buffer);",
                "        }",
                "    }",
                "",
                "    @Override",
                "    protected void writeValue(@NonNull ByteArrayOutputStream stream, Object value) {",
            ])
            for i, entry in enumerate(entries):
                keyword = "if" if i == 0 else "} else if"
                lines.extend([
                    f"        {keyword} (value instanceof {entry.record.name}) {{",
                    f"            stream.write({entry.code});",
                    f"            writeValue(stream, (({entry.record.name}) value).toMap());",
                ])
            lines.extend([
                "        } else {",
                "            super.writeValue(stream, value);",
                "        }",
                "    }",
            ])
        lines.append("}")
        return lines

    def _receiver(self, iface: Interface) -> list[str]:
        """Interface implemented by user code with a static setup method"""
        lines = [
            "",
            "/** Generated interface from the API description that receives messages. */",
            f"public interface {iface.name} {{",
        ]
        for method in iface.methods:
            params = self._params(method)
            if method.is_asynchronous:
                params.append(f"Result<{self.non_null_type_name(method.return_type)}> result")
                ret = "void"
            elif method.return_type.is_void:
                ret = "void"
            else:
                ret = f"{self._annotation(method.return_type)} {self.type_name(method.return_type)}"
            lines.append(f"    {ret} {method.name}({', '.join(params)});")
        lines.extend([
            "",
            "    /** The codec used by " + iface.name + ". */",
            "    static MessageCodec<Object> getCodec() {",
            f"        return {self._codec_name(iface)}.INSTANCE;",
            "    }",
            "",
            f"    /** Sets up an instance of `{iface.name}` to handle messages through the `binaryMessenger`. */",
            f"    static void setup(BinaryMessenger binaryMessenger, {iface.name} api) {{",
        ])
        for method in iface.methods:
            lines.extend(self._setup_method(iface, method))
        lines.extend(["    }", "}"])
        return lines

    def _setup_method(self, iface: Interface, method: Method) -> list[str]:
        channel = self.channel_name(iface, method)
        lines = ["        {"]
        if method.dispatch_hint is DispatchHint.BACKGROUND:
            lines.extend([
                "            BinaryMessenger.TaskQueue taskQueue = binaryMessenger.makeBackgroundTaskQueue();",
                "            BasicMessageChannel<Object> channel =",
                f'                new BasicMessageChannel<>(binaryMessenger, "{channel}", getCodec(), taskQueue);',
            ])
        else:
            lines.extend([
                "            BasicMessageChannel<Object> channel =",
                f'                new BasicMessageChannel<>(binaryMessenger, "{channel}", getCodec());',
            ])
        lines.extend([
            "            if (api != null) {",
            "                channel.setMessageHandler((message, reply) -> {",
            "                    Map<String, Object> wrapped = new HashMap<>();",
            "                    try {",
        ])
        body = []
        call_args = []
        if method.arguments:
            body.append("ArrayList<Object> args = (ArrayList<Object>) message;")
            for index, (name, arg) in enumerate(zip(self.argument_names(method), method.arguments)):
                java_type = self.type_name(arg.type)
                body.append(f"{java_type} {name}Arg = {self._from_wire(arg.type, f'args.get({index})', nested=False)};")
                if not arg.type.is_nullable:
                    body.extend([
                        f"if ({name}Arg == null) {{",
                        f'    throw new FlutterError("{NULL_ERROR_CODE}", "{name}Arg unexpectedly null.", null);',
                        "}",
                    ])
                call_args.append(f"{name}Arg")
        result_type = self.non_null_type_name(method.return_type)
        if method.is_asynchronous:
            value = "null" if method.return_type.is_void else self._to_wire(method.return_type, "result", nested=False)
            body.extend([
                f"Result<{result_type}> resultCallback = new Result<{result_type}>() {{",
                f"    public void success({result_type} result) {{",
                f'        wrapped.put("{Keys.RESULT}", {value});',
                "        reply.reply(wrapped);",
                "    }",
                "    public void error(Throwable error) {",
                f'        wrapped.put("{Keys.ERROR}", wrapError(error));',
                "        reply.reply(wrapped);",
                "    }",
                "};",
            ])
            call_args.append("resultCallback")
        call = f"api.{method.name}({', '.join(call_args)})"
        if method.is_asynchronous:
            body.append(f"{call};")
        elif method.return_type.is_void:
            body.extend([f"{call};", f'wrapped.put("{Keys.RESULT}", null);'])
        else:
            output = self._to_wire(method.return_type, "output", nested=False)
            body.extend([f"{result_type} output = {call};", f'wrapped.put("{Keys.RESULT}", {output});'])
        lines.extend(f"                        {line}" for line in body)
        lines.extend([
            "                    } catch (Error | RuntimeException exception) {",
            f'                        wrapped.put("{Keys.ERROR}", wrapError(exception));',
        ])
        if method.is_asynchronous:
            lines.extend([
                "                        reply.reply(wrapped);",
                "                    }",
            ])
        else:
            lines.extend([
                "                    }",
                "                    reply.reply(wrapped);",
            ])
        lines.extend([
            "                });",
            "            } else {",
            "                channel.setMessageHandler(null);",
            "            }",
            "        }",
        ])
        return lines

    def _caller(self, iface: Interface) -> list[str]:
        """Class whose methods deliver a result or a FlutterError to a callback"""
        lines = [
            "",
            "/** Generated class from the API description that sends messages. */",
            f"public static class {iface.name} {{",
            "    private final BinaryMessenger binaryMessenger;",
            "",
            f"    public {iface.name}(BinaryMessenger argBinaryMessenger) {{",
            "        this.binaryMessenger = argBinaryMessenger;",
            "    }",
            "",
            f"    /** The codec used by {iface.name}. */",
            "    static MessageCodec<Object> getCodec() {",
            f"        return {self._codec_name(iface)}.INSTANCE;",
            "    }",
        ]
        for method in iface.methods:
            lines.extend(self._caller_method(iface, method))
        lines.append("}")
        return lines

    def _caller_method(self, iface: Interface, method: Method) -> list[str]:
        channel = self.channel_name(iface, method)
        result_type = self.non_null_type_name(method.return_type)
        params = self._params(method) + [f"Result<{result_type}> result"]
        if method.arguments:
            values = [
                self._to_wire(arg.type, name, nested=False)
                for name, arg in zip(self.argument_names(method), method.arguments)
            ]
            send = f"new ArrayList<Object>(Arrays.asList({', '.join(values)}))"
        else:
            send = "null"
        lines = [
            "",
            f"    public void {method.name}({', '.join(params)}) {{",
            "        BasicMessageChannel<Object> channel =",
            f'            new BasicMessageChannel<>(binaryMessenger, "{channel}", getCodec());',
            f"        channel.send({send}, channelReply -> {{",
            "            if (channelReply == null) {",
            f'                result.error(new FlutterError("{CHANNEL_ERROR_CODE}", '
            f'"Unable to establish connection on channel: \'{channel}\'.", null));',
            "                return;",
            "            }",
            "            Map<String, Object> replyMap = (Map<String, Object>) channelReply;",
            f'            Map<String, Object> error = (Map<String, Object>) replyMap.get("{Keys.ERROR}");',
            "            if (error != null) {",
            "                result.error(new FlutterError(",
            f'                    (String) error.get("{Keys.ERROR_CODE}"),',
            f'                    (String) error.get("{Keys.ERROR_MESSAGE}"),',
            f'                    error.get("{Keys.ERROR_DETAILS}")));',
        ]
        ret = method.return_type
        if not ret.is_void and not ret.is_nullable:
            lines.extend([
                f'            }} else if (replyMap.get("{Keys.RESULT}") == null) {{',
                f'                result.error(new FlutterError("{NULL_ERROR_CODE}", '
                '"Host platform returned null value for non-null return value.", null));',
            ])
        lines.append("            } else {")
        if ret.is_void:
            lines.append("                result.success(null);")
        else:
            value = self._from_wire(ret, f'replyMap.get("{Keys.RESULT}")', nested=False)
            lines.extend([
                '                @SuppressWarnings("ConstantConditions")',
                f"                {result_type} output = {value};",
                "                result.success(output);",
            ])
        lines.extend(["            }", "        });", "    }"])
        return lines

    def _wrap_error(self) -> list[str]:
        return [
            "",
            "@NonNull private static Map<String, Object> wrapError(@NonNull Throwable exception) {",
            "    Map<String, Object> errorMap = new HashMap<>();",
            "    if (exception instanceof FlutterError) {",
            "        FlutterError error = (FlutterError) exception;",
            f'        errorMap.put("{Keys.ERROR_CODE}", error.code);',
            f'        errorMap.put("{Keys.ERROR_MESSAGE}", error.getMessage());',
            f'        errorMap.put("{Keys.ERROR_DETAILS}", error.details);',
            "    } else {",
            f'        errorMap.put("{Keys.ERROR_CODE}", exception.getClass().getSimpleName());',
            f'        errorMap.put("{Keys.ERROR_MESSAGE}", exception.toString());',
            f'        errorMap.put("{Keys.ERROR_DETAILS}",',
            '            "Cause: " + exception.getCause() + ", Stacktrace: " + Log.getStackTraceString(exception));',
            "    }",
            "    return errorMap;",
            "}",
        ]

    def _codec_name(self, iface: Interface) -> str:
        return f"{iface.name}Codec"

    def _annotation(self, type_ref: TypeReference) -> str:
        return "@Nullable" if type_ref.is_nullable else "@NonNull"

    def _params(self, method: Method) -> list[str]:
        return [
            f"{self._annotation(arg.type)} {self.type_name(arg.type)} {name}"
            for name, arg in zip(self.argument_names(method), method.arguments)
        ]

    def _needs_conversion(self, type_ref: TypeReference, nested: bool, widen_ints: bool = False) -> bool:
        """Check if values of this type differ between Java and the wire"""
        if self.is_enum(type_ref) or (widen_ints and type_ref.base_name == 'int'):
            return True
        if self.is_record(type_ref):
            return nested
        return any(self._needs_conversion(arg, nested, widen_ints) for arg in type_ref.type_arguments)

    def _to_wire(self, type_ref: TypeReference, expr: str, nested: bool, depth: int = 0) -> str:
        """Wire value of ``expr``; records stay objects unless ``nested``"""
        if self.is_enum(type_ref):
            return f"{expr} == null ? null : {expr}.index"
        if self.is_record(type_ref) and nested:
            return f"({expr} == null) ? null : {expr}.toMap()"
        if not type_ref.type_arguments or not self._needs_conversion(type_ref, nested):
            return expr
        if type_ref.base_name == 'List':
            item = f"e{depth}"
            inner = self._to_wire(type_ref.type_arguments[0], item, nested, depth + 1)
            return f"mapList({expr}, {item} -> {inner})"
        key, item = f"k{depth}", f"v{depth}"
        key_type, value_type = type_ref.type_arguments
        inner_key = self._to_wire(key_type, key, nested, depth + 1)
        inner_value = self._to_wire(value_type, item, nested, depth + 1)
        return f"mapMap({expr}, {key} -> {inner_key}, {item} -> {inner_value})"

    def _from_wire(self, type_ref: TypeReference, expr: str, nested: bool, depth: int = 0) -> str:
        """Java value of the wire value ``expr``.

        The codec may deliver a Java Integer for any Dart int, so ints are
        widened through Number.
        """
        java_type = self.type_name(type_ref)
        if self.is_enum(type_ref):
            return f"{expr} == null ? null : {type_ref.base_name}.values()[(int) {expr}]"
        if self.is_record(type_ref) and nested:
            return f"{expr} == null ? null : {type_ref.base_name}.fromMap((Map<String, Object>) {expr})"
        if type_ref.base_name == 'int':
            return f"{expr} == null ? null : ((Number) {expr}).longValue()"
        if not type_ref.type_arguments or not self._needs_conversion(type_ref, nested, widen_ints=True):
            return f"({java_type}) {expr}"
        if type_ref.base_name == 'List':
            item = f"e{depth}"
            inner = self._from_wire(type_ref.type_arguments[0], item, nested, depth + 1)
            return f"mapList((List<Object>) {expr}, {item} -> {inner})"
        key, item = f"k{depth}", f"v{depth}"
        key_type, value_type = type_ref.type_arguments
        inner_key = self._from_wire(key_type, key, nested, depth + 1)
        inner_value = self._from_wire(value_type, item, nested, depth + 1)
        return f"mapMap((Map<Object, Object>) {expr}, {key} -> {inner_key}, {item} -> {inner_value})"
