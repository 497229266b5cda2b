import os

import httpx
import pytest

from conftest import make_png
from upscaler import cli
from upscaler.client import PredictionClient
from upscaler.imaging import image_size


def fake_service(result_png, final_status="succeeded"):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/replicate":
            return httpx.Response(201, json={"id": "p1", "status": "starting"})
        if request.url.path == "/api/predictions/p1":
            return httpx.Response(
                200, json={"status": final_status, "output": ["https://cdn.test/out.png"], "error": "oom"}
            )
        if request.url.host == "cdn.test":
            return httpx.Response(200, content=result_png)
        return httpx.Response(404)

    return handler


def use_service(monkeypatch, handler):
    monkeypatch.setattr(
        cli, "build_client", lambda base_url: PredictionClient(base_url=base_url, transport=httpx.MockTransport(handler))
    )


def test_cli_processes_and_downloads(monkeypatch, png_file, tmp_path, capsys):
    use_service(monkeypatch, fake_service(make_png(w=128, h=96)))
    dest = str(tmp_path / "out" / "big.png")

    code = cli.main([png_file, "--user", "a@b.c", "--poll-interval", "0", "--scale", "2", "--output", dest])

    assert code == 0
    assert os.path.exists(dest)
    with open(dest, "rb") as f:
        assert image_size(f.read()) == (128, 96)
    out = capsys.readouterr().out.splitlines()
    assert out == ["https://cdn.test/out.png", dest]


def test_cli_no_download(monkeypatch, png_file, capsys):
    use_service(monkeypatch, fake_service(make_png()))

    code = cli.main([png_file, "--user", "a@b.c", "--poll-interval", "0", "--no-download"])

    assert code == 0
    assert capsys.readouterr().out.strip() == "https://cdn.test/out.png"


def test_cli_remote_failure(monkeypatch, png_file, capsys):
    use_service(monkeypatch, fake_service(make_png(), final_status="failed"))

    code = cli.main([png_file, "--user", "a@b.c", "--poll-interval", "0"])

    assert code == 1
    err = capsys.readouterr().err
    assert "[error] oom" in err
    assert "Processing failed. Please try again." in err


def test_cli_requires_login(monkeypatch, png_file, capsys):
    requests = []
    use_service(monkeypatch, lambda request: requests.append(request) or httpx.Response(500))
    monkeypatch.setattr(cli.settings, "UPSCALER_USER", None)

    code = cli.main([png_file, "--poll-interval", "0"])

    assert code == 1
    assert requests == []
    assert "Please log in to continue" in capsys.readouterr().err


def test_cli_undecodable_download_is_a_failure(monkeypatch, png_file, tmp_path, capsys):
    use_service(monkeypatch, fake_service(b"not an image"))
    dest = tmp_path / "out.png"

    code = cli.main([png_file, "--user", "a@b.c", "--poll-interval", "0", "--output", str(dest)])

    assert code == 1
    assert not dest.exists()
    assert "Cannot decode image" in capsys.readouterr().err


def test_cli_default_output_is_png(monkeypatch, tmp_path, png_bytes, capsys):
    source = tmp_path / "holiday photo.jpg"
    source.write_bytes(png_bytes)
    use_service(monkeypatch, fake_service(make_png(w=64, h=48)))

    code = cli.main([str(source), "--user", "a@b.c", "--poll-interval", "0"])

    assert code == 0
    expected = tmp_path / "upscaled_holiday_photo.png"
    assert expected.exists()
    assert capsys.readouterr().out.splitlines()[-1] == str(expected)


def test_default_output_path():
    assert cli.default_output_path(os.path.join("in", "a.jpeg")) == os.path.join("in", "upscaled_a.png")


@pytest.mark.parametrize("extra", [["--scale", "0"], ["--scale", "11"]])
def test_cli_bad_scale_is_usage_error(monkeypatch, png_file, extra):
    requests = []
    use_service(monkeypatch, lambda request: requests.append(request) or httpx.Response(500))

    with pytest.raises(SystemExit) as exc:
        cli.main([png_file, "--user", "a@b.c", *extra])

    assert exc.value.code == 2
    assert requests == []


def test_cli_unsupported_file_is_usage_error(monkeypatch, tmp_path):
    notes = tmp_path / "notes.txt"
    notes.write_text("hello")
    use_service(monkeypatch, fake_service(make_png()))

    with pytest.raises(SystemExit) as exc:
        cli.main([str(notes), "--user", "a@b.c"])

    assert exc.value.code == 2
