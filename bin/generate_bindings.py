#!/usr/bin/env python3
"""
Message Channel Binding Generator

Parses an API description and generates Python, Dart, Java and C++ bindings.

Usage:
    python generate_bindings.py input.api --output-dir generated/
    python generate_bindings.py input.api --output-dir generated/ --java --java-package com.example
"""

import sys
from pathlib import Path

# Add parent directory to path so apigen package can be found
sys.path.insert(0, str(Path(__file__).parent.parent))

from apigen.cli import main


if __name__ == "__main__":
    sys.exit(main())
