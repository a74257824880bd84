import pytest

from albumposter.fonts import FACES, ensure_inter_fonts, load_font


def test_unknown_face():
    with pytest.raises(KeyError):
        load_font("condensed-black", 20)


@pytest.mark.parametrize("face", sorted(FACES))
def test_every_face_loads_and_measures(face):
    font = load_font(face, 24)
    assert font.getlength("Abbey Road") > 0


def test_load_font_is_cached():
    assert load_font("regular", 31) is load_font("regular", 31)


def test_missing_inter_zip(tmp_path):
    with pytest.raises(FileNotFoundError):
        ensure_inter_fonts(tmp_path / "fonts", tmp_path / "Inter.zip")


def test_faces_are_the_ones_the_layout_draws_with():
    assert set(FACES) == {"light", "regular", "semibold", "tabular"}
