import pickle

import numpy as np
import pytest

import histnd as hn
from histnd.storage.state import is_histogram_state, load, save, to_state_dict


def make_filled():
    h = hn.create("stored", hn.linear(0, 10, 11, "dimension"), hn.General([0, 1, 2], "general"))
    h.fill(1.0, 1.0)
    h.fill_with_weight(2.0, 9.5, 0.5)
    return h


def test_state_dict_layout():
    h = make_filled()
    st = to_state_dict(h)

    assert st["ndim"] == 2
    assert st["nentries"] == 2
    assert st["title"] == "stored"
    assert st["label_0"] == "dimension"
    assert st["label_1"] == "general"
    assert st["_h_bincontent"].shape == h.shape()
    np.testing.assert_array_equal(st["_h_bincontent"], h.bincontent())
    np.testing.assert_array_equal(st["_h_squaredweights"], h.squaredweights())
    np.testing.assert_array_equal(st["_h_binedges_1"], [-np.inf, 0, 1, 2, np.inf])
    assert is_histogram_state(st)


def test_state_dict_is_a_copy():
    h = make_filled()
    st = to_state_dict(h)
    h.fill(1.0, 1.0)
    assert st["_h_bincontent"].sum() == 3.0
    assert st["nentries"] == 2
    assert st["_h_bincontent"].flags.writeable


def test_save_and_load(tmp_path):
    out = tmp_path / "hist.pkl"
    h = make_filled()
    save(h, out, "/", "foo")

    st = load(out, "/", "foo")
    np.testing.assert_array_equal(st["_h_bincontent"], h.bincontent())
    assert list(load(out).keys()) == ["foo"]


def test_save_nested_groups_keep_other_entries(tmp_path):
    out = tmp_path / "hist.pkl"
    h = make_filled()
    save(h, out, "/runs/a", "first")
    save(h, out, "/runs/b", "second")
    save(h, out, "/runs/a", "third")

    assert sorted(load(out, "/runs/a")) == ["first", "third"]
    assert is_histogram_state(load(out, "runs/b", "second"))


def test_save_refuses_to_overwrite(tmp_path):
    out = tmp_path / "hist.pkl"
    h = make_filled()
    save(h, out, name="foo")
    h.fill(3.0, 1.5)

    with pytest.raises(ValueError):
        save(h, out, name="foo")
    assert load(out, name="foo")["nentries"] == 2

    save(h, out, name="foo", overwrite=True)
    assert load(out, name="foo")["nentries"] == 3


def test_save_into_histogram_is_an_error(tmp_path):
    out = tmp_path / "hist.pkl"
    h = make_filled()
    save(h, out, name="foo")
    with pytest.raises(ValueError):
        save(h, out, where="/foo", name="bar")


def test_load_missing(tmp_path):
    out = tmp_path / "hist.pkl"
    with pytest.raises(FileNotFoundError):
        load(out)
    save(make_filled(), out, name="foo")
    with pytest.raises(KeyError):
        load(out, name="bar")
    with pytest.raises(KeyError):
        load(out, where="/nope")


def test_load_invalid_pickle(tmp_path):
    bad = tmp_path / "bad.pkl"
    bad.write_text("this is not a pickle\n")
    with pytest.raises(pickle.UnpicklingError):
        load(bad)
