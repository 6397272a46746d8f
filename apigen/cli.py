"""
Command line entry point.

Parses an API description and generates bindings for each selected language:
  1. Python module on top of apigen.runtime
  2. Dart library
  3. Java class
  4. C++ header + implementation

Usage:
    apigen search.api --output-dir generated/
    apigen search.api -o generated/ --java --java-package com.example.search
"""

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import Optional, Sequence

from .cpp_generator import CppGenerator
from .dart_generator import DartGenerator
from .errors import ApiGenError
from .java_generator import JavaGenerator
from .options import GeneratorOptions
from .parser import APIParser
from .python_generator import PythonGenerator

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="apigen", description="Generate message channel bindings from an API description")
    parser.add_argument("api_file", help="Path to API description")
    parser.add_argument("--output-dir", "-o", default="generated", help="Output directory")
    parser.add_argument("--namespace", "-n", default="", help="Namespace and base name of generated files")
    parser.add_argument("--channel-prefix", default=None, help="Prefix of every channel name")
    parser.add_argument("--python", action="store_true", help="Generate Python bindings")
    parser.add_argument("--dart", action="store_true", help="Generate Dart bindings")
    parser.add_argument("--java", action="store_true", help="Generate Java bindings")
    parser.add_argument("--java-package", default="", help="Java package name")
    parser.add_argument("--java-class", default="", help="Name of the outer Java class")
    parser.add_argument("--cpp", action="store_true", help="Generate C++ bindings")
    parser.add_argument("--cpp-header", default="", help="Name of the generated C++ header")
    parser.add_argument("--mirror", action="store_true", help="Generate the opposite side of every interface")
    parser.add_argument("--copyright", default="", help="File whose lines are prepended to every output")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    start_time = time.perf_counter()

    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    api_path = Path(args.api_file)
    namespace = args.namespace or api_path.stem.replace("-", "_")
    options = GeneratorOptions.from_map({
        'namespace': namespace,
        'channel_prefix': args.channel_prefix,
        'header': args.cpp_header or None,
        'package': args.java_package or None,
        'class_name': args.java_class or None,
        'copyright_header': Path(args.copyright).read_text().splitlines() if args.copyright else None,
    })

    selected = {
        'python': args.python,
        'dart': args.dart,
        'java': args.java or bool(args.java_package),
        'cpp': args.cpp or bool(args.cpp_header),
    }
    if not any(selected.values()):
        selected = dict.fromkeys(selected, True)

    output_dir = Path(args.output_dir)
    try:
        document = APIParser(api_path.read_text()).parse()
        if args.mirror:
            document = document.mirrored()

        files = {}
        if selected['python']:
            files.update(PythonGenerator(document, options).generate_files(namespace))
        if selected['dart']:
            files.update(DartGenerator(document, options).generate_files(namespace))
        if selected['java']:
            java_dir = Path("java", *options.package.split(".")) if options.package else Path("java")
            for filename, content in JavaGenerator(document, options).generate_files(namespace).items():
                files[str(java_dir / filename)] = content
        if selected['cpp']:
            files.update(CppGenerator(document, options).generate_files(namespace))
    except ApiGenError as e:
        print(f"{api_path}: error: {e}", file=sys.stderr)
        return 1

    for filename, content in files.items():
        path = output_dir / filename
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
        logger.debug("Wrote %d bytes to %s", len(content), path)
        print(f"Generated: {path}")

    elapsed = time.perf_counter() - start_time
    print(f"Generation completed in {elapsed*1000:.2f} ms")
    return 0


if __name__ == "__main__":
    sys.exit(main())
