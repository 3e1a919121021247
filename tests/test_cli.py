from pathlib import Path
from unittest.mock import patch

import pytest
from loguru import logger

from l2mp3 import cli
from l2mp3.cli import (
    EXIT_FATAL,
    EXIT_OK,
    EXIT_PREFLIGHT_FAILED,
    EXIT_WITH_FILE_ERRORS,
    main,
    resolve_output_root,
)
from l2mp3.ffmpeg_check import FFmpegStatus, ShntoolStatus

from helpers import touch


FFMPEG_OK = FFmpegStatus(available=True, ffmpeg_path="/usr/bin/ffmpeg", ffmpeg_version="ffmpeg 6", has_libmp3lame=True)
SHNTOOL_MISSING = ShntoolStatus(available=False, error="not found in PATH: shnsplit")


@pytest.fixture(autouse=True)
def reset_logger():
    yield
    logger.remove()
    logger.configure(extra={})


@pytest.fixture
def tools():
    def fake_encode(src, dest, **kwargs):
        Path(dest).write_bytes(b"")
        return 0, ""

    with patch("l2mp3.cli.probe_ffmpeg", return_value=FFMPEG_OK), patch(
        "l2mp3.cli.probe_shntool", return_value=SHNTOOL_MISSING
    ), patch("l2mp3.album.encode_mp3", fake_encode):
        yield


def _argv(tmp_path, *extra):
    return ["--settings", str(tmp_path / "settings.toml"), *extra]


def test_default_output_is_sibling_with_suffix():
    assert resolve_output_root(Path("/m/Artist/Album"), None, batch=False) == Path("/m/Artist/Album (mp3)")
    assert resolve_output_root(Path("/m/Artist"), None, batch=True) == Path("/m/Artist (mp3)")


def test_explicit_output_nests_artist_and_album_in_single_mode():
    assert resolve_output_root(Path("/m/Artist/Album"), Path("/out"), batch=False) == Path("/out/Artist/Album")


def test_explicit_output_untouched_in_batch_mode():
    assert resolve_output_root(Path("/m/Artist"), Path("/out"), batch=True) == Path("/out")


def test_expand_path_drops_trailing_separator(tmp_path):
    assert cli.expand_path(f"{tmp_path}/Album/") == tmp_path / "Album"


def test_missing_input_is_a_usage_error(tmp_path):
    with pytest.raises(SystemExit) as exc:
        main(_argv(tmp_path))
    assert exc.value.code == 2


def test_unknown_option_is_a_usage_error(tmp_path):
    with pytest.raises(SystemExit) as exc:
        main(_argv(tmp_path, "-i", str(tmp_path), "--frobnicate"))
    assert exc.value.code == 2


def test_help_exits_cleanly(capsys):
    with pytest.raises(SystemExit) as exc:
        main(["--help"])
    assert exc.value.code == 0
    assert "--batch" in capsys.readouterr().out


def test_single_album_run(tmp_path, tools):
    album = tmp_path / "Artist" / "Album"
    touch(album / "01.flac")
    touch(album / "rip.log")

    rc = main(_argv(tmp_path, "-i", str(album)))

    out = tmp_path / "Artist" / "Album (mp3)"
    assert rc == EXIT_OK
    assert (out / "01.mp3").exists()
    # The bundled blacklist drops .log files
    assert not (out / "rip.log").exists()


def test_single_album_with_output_and_custom_blacklist(tmp_path, tools):
    album = tmp_path / "Artist" / "Album"
    touch(album / "rip.log", b"log")
    touch(album / "info.nfo")
    blacklist = tmp_path / "my.ignore"
    blacklist.write_text("nfo\n", encoding="utf-8")

    rc = main(_argv(tmp_path, "-i", str(album), "-o", str(tmp_path / "out"), "-c", str(blacklist)))

    out = tmp_path / "out" / "Artist" / "Album"
    assert rc == EXIT_OK
    assert (out / "rip.log").read_bytes() == b"log"
    assert not (out / "info.nfo").exists()


def test_batch_run(tmp_path, tools):
    artist = tmp_path / "Artist"
    touch(artist / "A" / "1.wav")
    touch(artist / "B" / "2.ape")

    rc = main(_argv(tmp_path, "-b", "-i", str(artist), "-o", str(tmp_path / "out")))

    assert rc == EXIT_OK
    assert (tmp_path / "out" / "Artist" / "A" / "1.mp3").exists()
    assert (tmp_path / "out" / "Artist" / "B" / "2.mp3").exists()


def test_file_failures_give_exit_2(tmp_path, tools):
    album = tmp_path / "Album"
    touch(album / "cover.png", b"not an image")
    assert main(_argv(tmp_path, "-i", str(album))) == EXIT_WITH_FILE_ERRORS


def test_nonexistent_input(tmp_path, tools):
    assert main(_argv(tmp_path, "-i", str(tmp_path / "nope"))) == EXIT_FATAL
    assert not (tmp_path / "nope (mp3)").exists()


def test_preflight_failure(tmp_path):
    missing = FFmpegStatus(available=False, error="ffmpeg not found in PATH")
    with patch("l2mp3.cli.probe_ffmpeg", return_value=missing):
        assert main(_argv(tmp_path, "-i", str(tmp_path))) == EXIT_PREFLIGHT_FAILED


def test_ffmpeg_without_lame_fails_preflight(tmp_path):
    no_lame = FFmpegStatus(available=True, ffmpeg_path="/usr/bin/ffmpeg", has_libmp3lame=False)
    with patch("l2mp3.cli.probe_ffmpeg", return_value=no_lame):
        assert main(_argv(tmp_path, "-i", str(tmp_path))) == EXIT_PREFLIGHT_FAILED


def test_write_config(tmp_path, capsys):
    rc = main(_argv(tmp_path, "--write-config", "--log-level", "DEBUG"))
    assert rc == EXIT_OK
    assert 'log_level = "DEBUG"' in (tmp_path / "settings.toml").read_text(encoding="utf-8")
    assert "Config written to:" in capsys.readouterr().out
