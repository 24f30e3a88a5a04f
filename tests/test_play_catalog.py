"""Tests for the read-only play catalog."""
from __future__ import annotations

import pytest

from utils.data_loader import LoadFailure
from utils.play_catalog import PlayCatalog, build_catalog
from utils.play_models import PlayKey


def test_lookup_by_game_and_key(make_play):
    plays = [make_play("1", "10"), make_play("1", "20"), make_play("2", "5")]
    catalog = PlayCatalog(plays)

    assert len(catalog) == 3
    assert catalog.get_games() == ["1", "2"]
    assert [p.play_id for p in catalog.get_plays_for_game("1")] == ["10", "20"]
    assert catalog.get_plays_for_game("404") == []
    assert catalog.get_play(PlayKey("2", "5")) is plays[2]
    assert catalog.get_play(("2", "5")) is plays[2]
    assert catalog.get_play(PlayKey("2", "6")) is None


def test_duplicate_keys_are_rejected(make_play):
    with pytest.raises(ValueError):
        PlayCatalog([make_play("1", "10"), make_play("1", "10")])


def test_summary_has_one_row_per_play(make_play):
    catalog = PlayCatalog([make_play("1", "10"), make_play("1", "20")])

    assert len(catalog.summary()) == 2


def _write(path, header, rows):
    path.write_text(header + "\n" + "\n".join(rows) + "\n")
    return path


def test_build_catalog_from_files(tmp_path):
    header = "game_id,play_id,frame_id,nfl_id,player_name,player_role,player_side,x,y"
    inp = _write(tmp_path / "input.csv", header, [
        "1,10,1,100,Wide Out,Targeted Receiver,Offense,50,20",
        "1,10,1,200,Cover Corner,Defensive Coverage,Defense,50,25",
        "1,10,2,100,Wide Out,Targeted Receiver,Offense,51,20",
        "1,10,2,200,Cover Corner,Defensive Coverage,Defense,51,23",
    ])
    out = _write(tmp_path / "output.csv", "game_id,play_id,frame_id,nfl_id,x,y", [
        "1,10,3,100,53,21",
    ])
    supp = _write(tmp_path / "supp.csv", "game_id,play_id,route_of_targeted_receiver,pass_result", [
        "1,10,OUT,IN",
    ])

    catalog = build_catalog(inp, out, supp, verbose=False)

    assert catalog.get_games() == ["1"]
    play = catalog.get_play(PlayKey("1", "10"))
    assert play.description == "OUT"
    assert play.pass_result_label == "INTERCEPTION"
    assert [f.separation for f in play.frames] == [5.0, 3.0, 0.0]


def test_build_catalog_propagates_load_failure(tmp_path):
    with pytest.raises(LoadFailure):
        build_catalog(tmp_path / "a.csv", tmp_path / "b.csv", tmp_path / "c.csv", verbose=False)
