"""
Tests for the command-line entry point.
"""

import argparse

import pytest

from pixelblit.config import CONFIG_ENV
from pixelblit.main import build_parser, main, parse_num_workers


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    monkeypatch.setenv(CONFIG_ENV, str(tmp_path / "no-config.json"))


class TestArguments:
    @pytest.mark.parametrize("value, expected", [("1", 1), ("4", 4), ("016", 16)])
    def test_parse_num_workers(self, value, expected):
        assert parse_num_workers(value) == expected

    @pytest.mark.parametrize("value", ["0", "-2", "four", "", "3.5"])
    def test_parse_num_workers_rejects(self, value):
        with pytest.raises(argparse.ArgumentTypeError):
            parse_num_workers(value)

    def test_filters_optional(self):
        args = build_parser().parse_args(["2", "in.rgb"])
        assert args.filters == ""
        assert build_parser().parse_args(["2", "in.rgb", "gi"]).filters == "gi"

    def test_usage_error_exits_2(self, capsys):
        with pytest.raises(SystemExit) as excinfo:
            main(["zero", "in.rgb"])
        assert excinfo.value.code == 2
        assert "invalid number of workers" in capsys.readouterr().err

    def test_missing_arguments_exit_2(self):
        with pytest.raises(SystemExit) as excinfo:
            main(["3"])
        assert excinfo.value.code == 2


class TestMain:
    def test_missing_input_file(self, tmp_path, capsys):
        assert main(["2", str(tmp_path / "missing.rgb"), "--headless"]) == 1
        assert "pixelblit(collector): input file not found" in capsys.readouterr().err

    def test_wrong_input_size(self, tmp_path, capsys):
        path = tmp_path / "short.rgb"
        path.write_bytes(b"\x00" * 1200)
        assert main(["2", str(path), "--headless"]) == 1
        assert "invalid input length" in capsys.readouterr().err

    @pytest.mark.integration
    def test_headless_render(self, tmp_path, constant_buffer):
        path = tmp_path / "constant.rgb"
        path.write_bytes(constant_buffer)
        assert main(["2", str(path), "d", "--headless", "--batch-size", "20000"]) == 0

    def test_no_display_is_reported(self, tmp_path, constant_buffer, monkeypatch, capsys):
        ctk = pytest.importorskip("customtkinter")
        import tkinter as tk

        def no_display(self, *args, **kwargs):
            raise tk.TclError("no display name and no $DISPLAY environment variable")

        monkeypatch.setattr(ctk.CTk, "__init__", no_display)
        path = tmp_path / "constant.rgb"
        path.write_bytes(constant_buffer)

        assert main(["2", str(path)]) == 1
        assert "pixelblit(collector): could not open display" in capsys.readouterr().err
