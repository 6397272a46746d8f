"""Tests for the command line entry point"""

from pathlib import Path

from apigen.cli import main

SAMPLE = Path(__file__).parent.parent / "samples" / "search.api"


class TestCli:

    def test_generates_all_languages_by_default(self, tmp_path, capsys):
        assert main([str(SAMPLE), "--output-dir", str(tmp_path)]) == 0
        assert (tmp_path / "search.py").exists()
        assert (tmp_path / "search.dart").exists()
        assert (tmp_path / "java" / "Messages.java").exists()
        assert (tmp_path / "search.h").exists()
        assert (tmp_path / "search.cpp").exists()
        out = capsys.readouterr().out
        assert f"Generated: {tmp_path / 'search.py'}" in out
        assert "Generation completed in" in out

    def test_selected_language(self, tmp_path):
        assert main([str(SAMPLE), "-o", str(tmp_path), "--python", "--namespace", "api"]) == 0
        assert sorted(p.name for p in tmp_path.iterdir()) == ["api.py"]

    def test_java_package_directory(self, tmp_path):
        assert main([
            str(SAMPLE), "-o", str(tmp_path), "--java-package", "com.example", "--java-class", "Search",
        ]) == 0
        java = (tmp_path / "java" / "com" / "example" / "Search.java").read_text()
        assert "package com.example;" in java

    def test_mirror_and_prefix(self, tmp_path):
        assert main([str(SAMPLE), "-o", str(tmp_path), "--python", "--mirror", "--channel-prefix", "com.example"]) == 0
        source = (tmp_path / "search.py").read_text()
        assert "class Api:" in source
        assert "class Listener(abc.ABC):" in source
        assert "'com.example.Api.search'" in source

    def test_copyright(self, tmp_path):
        header = tmp_path / "header.txt"
        header.write_text("Copyright Example Authors\n")
        out_dir = tmp_path / "out"
        assert main([str(SAMPLE), "-o", str(out_dir), "--dart", "--copyright", str(header)]) == 0
        assert (out_dir / "search.dart").read_text().startswith("// Copyright Example Authors\n")

    def test_invalid_description(self, tmp_path, capsys):
        api = tmp_path / "broken.api"
        api.write_text("record R {\n  Missing m;\n}\n")
        assert main([str(api), "-o", str(tmp_path / "out")]) == 1
        err = capsys.readouterr().err
        assert "error: Unknown type 'Missing' (in R.m)" in err
        assert not (tmp_path / "out").exists()

    def test_parse_error_reports_line(self, tmp_path, capsys):
        api = tmp_path / "broken.api"
        api.write_text("enum E { a }\n\nrecord R { int x }\n")
        assert main([str(api), "-o", str(tmp_path / "out")]) == 1
        assert "line 3: Missing ';'" in capsys.readouterr().err
