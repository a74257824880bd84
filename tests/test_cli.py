import json

from PIL import Image

from albumposter.cli import main, slug

TRACK_PAYLOAD = {
    "type": "track",
    "name": "Digital Love",
    "uri": "spotify:track:2VEZx7NWsZ1D0eJ4uv5Fym",
    "duration_ms": 301000,
    "artists": [{"name": "Daft Punk"}],
    "album": {"release_date": "2001-03-12", "images": []},
}


def write_payload(tmp_path, payload):
    path = tmp_path / "payload.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    return str(path)


def test_slug():
    assert slug("Daft Punk, Pharrell Williams") == "daft-punk-pharrell-williams"
    assert slug("!!!") == "poster"


def test_renders_saved_payload(tmp_path, capsys):
    out = tmp_path / "poster.png"
    code = main([write_payload(tmp_path, TRACK_PAYLOAD), "--no-code", "-o", str(out)])
    assert code == 0
    assert "Wrote:" in capsys.readouterr().out
    with Image.open(out) as img:
        assert img.size == (2550, 3300)
        assert round(img.info["dpi"][0]) == 300


def test_default_output_path(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert main([write_payload(tmp_path, TRACK_PAYLOAD), "--no-code"]) == 0
    assert (tmp_path / "albumposter_out" / "daft-punk-digital-love.track.png").is_file()


def test_unrecognized_source(tmp_path):
    assert main(["https://example.com/not-spotify", "-o", str(tmp_path / "x.png")]) == 2
    assert not (tmp_path / "x.png").exists()


def test_missing_duration_writes_nothing(tmp_path, capsys):
    payload = dict(TRACK_PAYLOAD)
    del payload["duration_ms"]
    out = tmp_path / "poster.png"
    assert main([write_payload(tmp_path, payload), "--no-code", "-o", str(out)]) == 1
    assert not out.exists()
    assert "Cannot render poster" in capsys.readouterr().err


def test_fetch_without_token(tmp_path, monkeypatch):
    monkeypatch.delenv("SPOTIFY_ACCESS_TOKEN", raising=False)
    assert main(["spotify:track:2VEZx7NWsZ1D0eJ4uv5Fym", "-o", str(tmp_path / "x.png")]) == 1
