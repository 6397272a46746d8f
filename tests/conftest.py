"""
Pytest configuration and shared fixtures for apigen tests.
"""

import importlib.util
import itertools
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))
from apigen import APIParser, Document
from apigen.runtime import InMemoryBinaryMessenger


SEARCH_API = """
enum Code { one, two }

record SearchRequest {
  String? query;
  Code? code;
}

record SearchReply {
  String? result;
  List<String?>? tags;
}

receiver interface Api {
  SearchReply search(SearchRequest request);
  @async int calculate(int value);
  @background void flush();
  Code? lastCode();
  String echo(String message);
}

caller interface Listener {
  void onEvent(String? name, Code code);
}
"""

_module_ids = itertools.count()


@pytest.fixture
def search_document() -> Document:
    return APIParser(SEARCH_API).parse()


@pytest.fixture
def messenger():
    """In-memory messenger whose background queues are shut down after the test"""
    with InMemoryBinaryMessenger() as binary_messenger:
        yield binary_messenger


@pytest.fixture
def load_module(tmp_path):
    """Write generated Python source to disk and import it as a fresh module"""
    loaded = []

    def load(source: str):
        name = f"generated_{next(_module_ids)}"
        path = tmp_path / f"{name}.py"
        path.write_text(source)
        spec = importlib.util.spec_from_file_location(name, path)
        module = importlib.util.module_from_spec(spec)
        sys.modules[name] = module
        loaded.append(name)
        spec.loader.exec_module(module)
        return module

    yield load
    for name in loaded:
        sys.modules.pop(name, None)
