#!/usr/bin/env python3
"""
Sample application that talks to itself through generated Python bindings.

The host module is generated from samples/search.api and the UI module from
its mirror, then both are wired to one in-memory messenger.

Run:
    python samples/tests/python/samples_test.py
"""

import importlib.util
import os
import sys
import tempfile
import threading

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..', '..'))
sys.path.insert(0, ROOT)

from apigen import PlatformError, PythonGenerator, parse
from apigen.runtime import InMemoryBinaryMessenger


def load(name, source, directory):
    path = os.path.join(directory, f'{name}.py')
    with open(path, 'w') as f:
        f.write(source)
    spec = importlib.util.spec_from_file_location(name, path)
    module = importlib.util.module_from_spec(spec)
    sys.modules[name] = module
    spec.loader.exec_module(module)
    return module


def make_host_api(host):
    class HostApi(host.Api):
        def __init__(self):
            self.last = None
            self.flushed = threading.Event()

        def search(self, request):
            if request.query is None:
                raise PlatformError('EmptyQuery', 'query is required')
            self.last = request.code
            return host.SearchReply(result=request.query.upper(), tags=[request.query, None])

        def calculate(self, value, result):
            threading.Thread(target=result.success, args=(value + 1,)).start()

        def flush(self):
            self.flushed.set()

        def lastCode(self):
            return self.last

    return HostApi()


def test_api(host, ui, messenger):
    """Test UI -> host calls"""
    print("Testing Api...")
    passed = True

    host.Api.setup(messenger, make_host_api(host))
    api = ui.Api(messenger)

    reply = api.search(ui.SearchRequest(query='flutter', code=ui.Code.two))
    if reply.result != 'FLUTTER' or reply.tags != ['flutter', None]:
        print(f"  FAIL: search('flutter') = {reply}")
        passed = False
    else:
        print(f"  PASS: search('flutter') = {reply.result}")

    try:
        api.search(ui.SearchRequest())
        print("  FAIL: search() without query did not raise")
        passed = False
    except PlatformError as e:
        print(f"  PASS: search() without query raised {e.code}")

    value = api.calculate(41)
    if value != 42:
        print(f"  FAIL: calculate(41) = {value}, expected 42")
        passed = False
    else:
        print(f"  PASS: calculate(41) = {value}")

    api.flush()
    print("  PASS: flush() returned")

    code = api.lastCode()
    if code is not ui.Code.two:
        print(f"  FAIL: lastCode() = {code}, expected Code.two")
        passed = False
    else:
        print(f"  PASS: lastCode() = {code.name}")

    return passed


def test_listener(host, ui, messenger):
    """Test host -> UI notifications"""
    print("Testing Listener...")
    passed = True

    events = []

    class UiListener(ui.Listener):
        def onEvent(self, name, code):
            events.append((name, code))

    ui.Listener.setup(messenger, UiListener())
    host.Listener(messenger).onEvent('ready', host.Code.one)
    host.Listener(messenger).onEvent(None, host.Code.two)

    if events != [('ready', ui.Code.one), (None, ui.Code.two)]:
        print(f"  FAIL: received {events}")
        passed = False
    else:
        print(f"  PASS: received {len(events)} events")

    return passed


def main():
    print("=" * 50)
    print("Generated Bindings Sample")
    print("=" * 50)

    with open(os.path.join(ROOT, 'samples', 'search.api')) as f:
        document = parse(f.read())

    all_passed = True
    with tempfile.TemporaryDirectory() as directory:
        host = load('search_host', PythonGenerator(document).generate(), directory)
        ui = load('search_ui', PythonGenerator(document.mirrored()).generate(), directory)

        with InMemoryBinaryMessenger() as messenger:
            all_passed &= test_api(host, ui, messenger)
            print()
            all_passed &= test_listener(host, ui, messenger)

    print()
    print("=" * 50)
    if all_passed:
        print("All tests PASSED")
        return 0
    print("Some tests FAILED")
    return 1


if __name__ == "__main__":
    sys.exit(main())
