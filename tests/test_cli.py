"""Tests for the command-line interface."""

import json
from unittest.mock import patch

import pytest

from target_context.cli import EXIT_UNRECOGNIZED, create_parser, main
from target_context.probe import ProbeError, ProbeResult


def test_no_command_prints_help(capsys):
    assert main([]) == 1
    assert "usage:" in capsys.readouterr().out


def test_version_flag(capsys):
    with pytest.raises(SystemExit) as exc:
        create_parser().parse_args(["--version"])
    assert exc.value.code == 0
    assert "target-context" in capsys.readouterr().out


def test_discover_with_tokens(tmp_path, capsys):
    output = tmp_path / "c_abi.py"
    rc = main(["discover", "--os-token", "Linux", "--abi-token", "linux_x86",
               "--output", str(output)])
    assert rc == 0
    assert "written" in capsys.readouterr().out
    text = output.read_text()
    assert "class V1:" in text and "class V3:" in text

    assert main(["discover", "--os-token", "Linux", "--abi-token", "linux_x86",
                 "--output", str(output)]) == 0
    assert "unchanged" in capsys.readouterr().out


def test_discover_embeds_unrecognized_token(tmp_path):
    output = tmp_path / "c_abi.py"
    rc = main(["discover", "--os-token", "Linux", "--abi-token", "s390x_oddball",
               "--output", str(output)])
    assert rc == 0
    assert "s390x_oddball" in output.read_text()


def test_discover_strict_rejects_unrecognized_token(tmp_path, capsys):
    output = tmp_path / "c_abi.py"
    rc = main(["discover", "--strict", "--os-token", "Linux", "--abi-token", "s390x_oddball",
               "--output", str(output)])
    assert rc == EXIT_UNRECOGNIZED
    assert "s390x_oddball" in capsys.readouterr().err
    assert not output.exists()


def test_discover_probe_failure(tmp_path, capsys):
    with patch("target_context.discovery.probe", side_effect=ProbeError("cc not found")):
        rc = main(["discover", "--output", str(tmp_path / "c_abi.py")])
    assert rc == 1
    assert "Error: cc not found" in capsys.readouterr().err


def test_discover_uses_config_file(tmp_path):
    config = tmp_path / "target-context.yaml"
    output = tmp_path / "out" / "abi.py"
    config.write_text(f"compiler: my-cc\noutput: {output}\n")
    probed = ProbeResult(os_token="OSX", abi_token="darwin_arm64", compiler="my-cc")
    with patch("target_context.discovery.probe", return_value=probed) as mock_probe:
        rc = main(["discover", "--config", str(config), "--cflags=-m64 -O2"])
    assert rc == 0
    toolchain = mock_probe.call_args[0][0]
    assert toolchain.command == ["my-cc"]
    assert toolchain.cflags == ["-m64", "-O2"]
    assert "Darwin_arm64" in output.read_text()


def test_discover_bad_config(tmp_path, capsys):
    config = tmp_path / "bad.yaml"
    config.write_text("nonsense: 1\n")
    assert main(["discover", "--config", str(config)]) == 1
    assert "unknown key(s) nonsense" in capsys.readouterr().err


def test_classify_text(capsys):
    assert main(["classify", "Linux", "linux_x86"]) == 0
    out = capsys.readouterr().out
    assert "V1:" in out and "V3:" in out
    assert "only available in API version 2" in out


def test_classify_json(capsys):
    assert main(["classify", "Unknown", "darwin_ppc64", "--format", "json"]) == 0
    data = json.loads(capsys.readouterr().out)
    assert [b["version"] for b in data] == [1, 2, 3]
    assert data[0]["os"]["ok"] is False
    assert data[2]["os"] == {"ok": True, "value": "Unknown"}
    assert data[2]["abi_name"] == {"ok": True, "value": "unknown"}


def test_classify_unrecognized(capsys):
    assert main(["classify", "Linux", "s390x_oddball"]) == EXIT_UNRECOGNIZED
    assert "s390x_oddball" in capsys.readouterr().out


def test_classify_bad_version(capsys):
    assert main(["classify", "Linux", "linux_x86", "--versions", "9"]) == 1
    assert "Unsupported API version 9" in capsys.readouterr().err


def test_table_json(capsys):
    assert main(["table", "--format", "json"]) == 0
    rows = json.loads(capsys.readouterr().out)
    by_token = {(r["kind"], r["token"]): r for r in rows}
    assert by_token[("ABI", "linux_x86")]["introduced"] == 2
    assert by_token[("ABI", "linux_s390x")]["variant"] == "Unknown"
    assert by_token[("OS", "Unknown")]["introduced"] == 3


def test_table_at_version(capsys):
    assert main(["table", "--at-version", "1"]) == 0
    out = capsys.readouterr().out
    assert "linux_x86_64" in out
    assert "linux_x86 " not in out
    assert "unknown" not in out


def test_table_bad_version(capsys):
    assert main(["table", "--at-version", "7"]) == 1


def test_discover_replaces_non_utf8_output(tmp_path, capsys):
    output = tmp_path / "c_abi.py"
    output.write_bytes(b"\xff\xfe stale")
    rc = main(["discover", "--os-token", "Linux", "--abi-token", "linux_arm64",
               "--output", str(output)])
    assert rc == 0
    assert "written" in capsys.readouterr().out
    assert "Linux_arm64" in output.read_text(encoding="utf-8")


def test_discover_module_name_with_quotes(tmp_path):
    output = tmp_path / "c_abi.py"
    rc = main(["discover", "--os-token", "Linux", "--abi-token", "linux_arm64",
               "--output", str(output), "--module-name", 'x"""y'])
    assert rc == 0
    compile(output.read_text(), str(output), "exec")


def test_table_at_version_zero_is_rejected(capsys):
    assert main(["table", "--at-version", "0"]) == 1
    assert "unsupported API version 0" in capsys.readouterr().err
