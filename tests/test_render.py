import numpy as np

from life import DEAD_PIXEL, Field, Life, render, render_text


def test_single_live_cell_raster():
    f = Field(4, 3)
    f.set(0, 0, True)
    raster = render(f)
    assert raster.dtype == np.uint8
    assert raster.shape == (3, 4)
    assert raster[0, 0] == 0
    mask = np.ones_like(raster, dtype=bool)
    mask[0, 0] = False
    assert (raster[mask] == DEAD_PIXEL).all()


def test_raster_is_indexed_y_then_x():
    f = Field(4, 3)
    f.set(3, 1, True)
    raster = render(f)
    assert raster[1, 3] == 0
    assert int(raster.sum()) == 255 * 11


def test_render_does_not_alias_field():
    f = Field(2, 2)
    raster = render(f)
    f.set(0, 0, True)
    assert raster[0, 0] == 255


def test_render_text():
    f = Field(3, 2)
    f.set(0, 0, True)
    f.set(2, 1, True)
    assert render_text(f) == "*  \n  *\n"
    assert str(f) == render_text(f)


def test_render_text_of_engine():
    life = Life(8, 5, seed=4)
    text = render_text(life.current)
    lines = text.split("\n")
    assert text.endswith("\n")
    assert len(lines) == 6 and lines[-1] == ""
    assert all(len(line) == 8 for line in lines[:-1])
    assert text.count("*") == life.population()
