"""Parser for the API description language"""

import logging
import re
from typing import Iterator

from .errors import ParseError
from .types import DispatchHint, Document, EnumType, Field, Interface, Method, RecordType, Role, TypeReference

logger = logging.getLogger(__name__)

DECLARATION = re.compile(
    r'(?:(?P<role>\w+)\s+)?(?P<kind>enum|record|interface)\s+(?P<name>\w+)\s*\{(?P<body>[^}]*)\}'
)
METHOD = re.compile(
    r'(?P<annotations>(?:@\w+\s*)*)(?P<return_type>.+?)\s+(?P<name>\w+)\s*\((?P<params>.*)\)',
    flags=re.DOTALL,
)
IDENTIFIER = re.compile(r'[A-Za-z_]\w*')
TYPE_TOKEN = re.compile(r'\w+|\S')

ANNOTATIONS = {'async', 'background'}


class APIParser:
    """Parses enum, record and interface declarations.

    Example::

        enum Code { one, two }
        record SearchRequest { String? query; Code? code; }
        receiver interface Api {
            SearchReply search(SearchRequest request);
            @async int calculate(int value);
            @background void flush();
        }
    """

    def __init__(self, content: str):
        self.content = self._strip_comments(content)

    def _strip_comments(self, content: str) -> str:
        """Blank out comments, keeping newlines so line numbers survive"""
        content = re.sub(r'/\*.*?\*/', lambda m: '\n' * m.group(0).count('\n'), content, flags=re.DOTALL)
        content = re.sub(r'//.*$', '', content, flags=re.MULTILINE)
        return content

    def parse(self) -> Document:
        records, enums, interfaces = [], [], []
        names = set()
        position = 0
        for match in DECLARATION.finditer(self.content):
            self._expect_blank(position, match.start())
            position = match.end()

            kind, name, role = match.group('kind'), match.group('name'), match.group('role')
            line = self._line(match.start('kind'))
            if name in names:
                raise ParseError(f"Duplicate declaration '{name}'", line)
            names.add(name)

            body_start = match.start('body')
            body = match.group('body')
            if kind == 'interface':
                interfaces.append(self._parse_interface(name, role, body, body_start, line))
            elif role is not None:
                raise ParseError(f"Unexpected '{role}' before {kind} '{name}'", self._line(match.start('role')))
            elif kind == 'enum':
                enums.append(self._parse_enum(name, body, body_start))
            else:
                records.append(self._parse_record(name, body, body_start))
        self._expect_blank(position, len(self.content))

        logger.debug("Parsed %d records, %d enums, %d interfaces", len(records), len(enums), len(interfaces))
        return Document(records=tuple(records), enums=tuple(enums), interfaces=tuple(interfaces))

    def _parse_enum(self, name: str, body: str, offset: int) -> EnumType:
        members = []
        for text, line in self._statements(body, offset, ','):
            if not IDENTIFIER.fullmatch(text):
                raise ParseError(f"Invalid member '{text}' in enum '{name}'", line)
            if text in members:
                raise ParseError(f"Duplicate member '{text}' in enum '{name}'", line)
            members.append(text)
        return EnumType(name=name, members=tuple(members))

    def _parse_record(self, name: str, body: str, offset: int) -> RecordType:
        fields = []
        for text, line in self._statements(body, offset, ';'):
            f = self._parse_field(text, line)
            if any(existing.name == f.name for existing in fields):
                raise ParseError(f"Duplicate field '{f.name}' in record '{name}'", line)
            fields.append(f)
        return RecordType(name=name, fields=tuple(fields))

    def _parse_interface(self, name: str, role: str, body: str, offset: int, line: int) -> Interface:
        if role is None:
            raise ParseError(f"Interface '{name}' needs a 'receiver' or 'caller' role", line)
        try:
            iface_role = Role(role)
        except ValueError:
            raise ParseError(f"Unknown role '{role}' for interface '{name}'", line) from None

        methods = []
        for text, method_line in self._statements(body, offset, ';'):
            method = self._parse_method(text, method_line)
            if any(existing.name == method.name for existing in methods):
                raise ParseError(f"Duplicate method '{method.name}' in interface '{name}'", method_line)
            methods.append(method)
        return Interface(name=name, role=iface_role, methods=tuple(methods))

    def _parse_method(self, text: str, line: int) -> Method:
        m = METHOD.fullmatch(text)
        if not m:
            raise ParseError(f"Invalid method declaration '{text}'", line)

        annotations = re.findall(r'@(\w+)', m.group('annotations'))
        for annotation in annotations:
            if annotation not in ANNOTATIONS:
                raise ParseError(f"Unknown annotation '@{annotation}'", line)

        return Method(
            name=m.group('name'),
            arguments=tuple(self._parse_params(m.group('params'), line)),
            return_type=self._parse_type(m.group('return_type'), line, allow_void=True),
            is_asynchronous='async' in annotations,
            dispatch_hint=DispatchHint.BACKGROUND if 'background' in annotations else DispatchHint.SERIAL,
        )

    def _parse_params(self, params_str: str, line: int) -> list[Field]:
        params = []
        if not params_str.strip():
            return params

        for p in self._split_top_level(params_str):
            param = self._parse_field(p.strip(), line)
            if any(existing.name == param.name for existing in params):
                raise ParseError(f"Duplicate argument '{param.name}'", line)
            params.append(param)
        return params

    def _parse_field(self, text: str, line: int) -> Field:
        """Parse ``Type name``"""
        parts = text.rsplit(None, 1)
        if len(parts) != 2 or not IDENTIFIER.fullmatch(parts[1]):
            raise ParseError(f"Expected '<type> <name>', got '{text}'", line)
        return Field(name=parts[1], type=self._parse_type(parts[0], line))

    def _parse_type(self, text: str, line: int, allow_void: bool = False) -> TypeReference:
        tokens = TYPE_TOKEN.findall(text)
        type_ref, index = self._read_type(tokens, 0, text, line)
        if index != len(tokens):
            raise ParseError(f"Unexpected '{tokens[index]}' in type '{text.strip()}'", line)
        if type_ref.is_void and not allow_void:
            raise ParseError("'void' is only valid as a return type", line)
        return type_ref

    def _read_type(self, tokens: list[str], index: int, text: str, line: int) -> tuple[TypeReference, int]:
        """Read one type starting at ``tokens[index]``; returns it and the next index"""
        if index >= len(tokens) or not IDENTIFIER.fullmatch(tokens[index]):
            raise ParseError(f"Invalid type '{text.strip()}'", line)
        name = tokens[index]
        index += 1

        arguments = []
        if index < len(tokens) and tokens[index] == '<':
            while True:
                argument, index = self._read_type(tokens, index + 1, text, line)
                if argument.is_void:
                    raise ParseError("'void' is only valid as a return type", line)
                arguments.append(argument)
                if index < len(tokens) and tokens[index] == ',':
                    continue
                if index < len(tokens) and tokens[index] == '>':
                    index += 1
                    break
                raise ParseError(f"Unterminated type arguments in '{text.strip()}'", line)

        nullable = index < len(tokens) and tokens[index] == '?'
        if nullable:
            index += 1

        if name == 'void':
            if nullable or arguments:
                raise ParseError(f"Invalid type '{text.strip()}'", line)
            return TypeReference.void(), index
        return TypeReference(base_name=name, is_nullable=nullable, type_arguments=tuple(arguments)), index

    def _split_top_level(self, text: str) -> list[str]:
        """Split on commas that are not inside angle brackets"""
        parts, depth, current = [], 0, []
        for char in text:
            if char == '<':
                depth += 1
            elif char == '>':
                depth -= 1
            elif char == ',' and depth == 0:
                parts.append("".join(current))
                current = []
                continue
            current.append(char)
        parts.append("".join(current))
        return parts

    def _statements(self, body: str, offset: int, separator: str) -> Iterator[tuple[str, int]]:
        """Non-empty separated statements of ``body`` with their line numbers"""
        position = 0
        pieces = body.split(separator)
        for i, piece in enumerate(pieces):
            stripped = piece.strip()
            if stripped:
                if separator == ';' and i == len(pieces) - 1:
                    line = self._line(offset + position + piece.index(stripped[0]))
                    raise ParseError(f"Missing ';' after '{stripped}'", line)
                yield stripped, self._line(offset + position + piece.index(stripped[0]))
            position += len(piece) + 1

    def _expect_blank(self, start: int, end: int):
        text = self.content[start:end]
        if text.strip():
            offset = start + text.index(text.strip()[0])
            raise ParseError(f"Unexpected text '{text.strip().split()[0]}'", self._line(offset))

    def _line(self, position: int) -> int:
        return self.content.count('\n', 0, position) + 1


def parse(content: str) -> Document:
    """Parse an API description"""
    return APIParser(content).parse()
