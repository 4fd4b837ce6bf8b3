import xml.etree.ElementTree as ET

import pytest

from game_rng import GameRNG
from labyrinth.game_state import GameState
from labyrinth.players import Player
from labyrinth.render import render_ascii, render_svg
from labyrinth.world.locations import LocationCatalog, default_catalog
from labyrinth.world.maze import Direction, Maze, Pos

SVG_NS = "{http://www.w3.org/2000/svg}"


def _state():
    maze = Maze(3, 2)
    maze.remove_wall((0, 0), Direction.RIGHT)
    maze.remove_wall((0, 0), Direction.DOWN)
    catalog = default_catalog()
    locations = [catalog.create("ARSENAL", [(2, 0), (2, 1)])]
    maze.remove_wall((1, 1), Direction.RIGHT)
    players = [Player("ann", Pos(0, 1), "#1f77b4")]
    return GameState(maze, GameRNG(seed=1), catalog, locations, players)


def test_ascii_single_cell():
    state = GameState(Maze(1, 1), GameRNG(seed=1), LocationCatalog())
    assert render_ascii(state) == "+---+\n|   |\n+---+"


def test_ascii_walls_locations_and_players():
    assert render_ascii(_state()).splitlines() == [
        "+---+---+---+",
        "|       | a |",
        "+   +---+---+",
        "| A |     a |",
        "+---+---+---+",
    ]


def test_svg_is_well_formed():
    svg = render_svg(_state(), cell_px=20, margin_px=5)
    root = ET.fromstring(svg.encode("utf-8"))
    assert root.tag == f"{SVG_NS}svg"
    assert root.get("width") == str(5 * 2 + 3 * 20)
    assert root.get("height") == str(5 * 2 + 2 * 20)

    groups = {g.get("id"): g for g in root.iter(f"{SVG_NS}g") if g.get("id")}
    assert set(groups) == {"grid", "locations", "walls", "players"}
    assert len(list(groups["players"].iter(f"{SVG_NS}circle"))) == 1
    assert groups["players"].find(f"{SVG_NS}text").text == "A"
    arsenal = groups["locations"].find(f"{SVG_NS}g")
    assert arsenal.get("fill") == "#ffcc00"
    assert len(list(arsenal.iter(f"{SVG_NS}rect"))) == 2


def test_svg_skips_empty_groups():
    state = GameState(Maze(2, 2), GameRNG(seed=1), LocationCatalog())
    root = ET.fromstring(render_svg(state).encode("utf-8"))
    ids = {g.get("id") for g in root.iter(f"{SVG_NS}g")}
    assert "players" not in ids and "locations" not in ids


def test_svg_rejects_bad_sizes():
    state = GameState(Maze(1, 1), GameRNG(seed=1), LocationCatalog())
    with pytest.raises(ValueError):
        render_svg(state, cell_px=0)
    with pytest.raises(ValueError):
        render_svg(state, margin_px=-1)


def test_players_sharing_a_cell_do_not_overlap():
    maze = Maze(2, 1)
    players = [
        Player("bob", Pos(1, 0), "#ff7f0e"),
        Player("ann", Pos(1, 0), "#1f77b4"),
        Player("cid", Pos(0, 0), "#2ca02c"),
    ]
    state = GameState(maze, GameRNG(seed=1), LocationCatalog(), players=players)
    root = ET.fromstring(render_svg(state, cell_px=24, margin_px=0).encode("utf-8"))
    circles = list(root.iter(f"{SVG_NS}circle"))
    labels = [t.text for t in root.iter(f"{SVG_NS}text")]
    assert labels == ["C", "A", "B"]

    lone, first, second = [(int(c.get("cx")), int(c.get("r"))) for c in circles]
    assert lone == (12, 8)
    assert 24 <= first[0] - first[1]
    assert first[0] + first[1] <= second[0] - second[1]
    assert second[0] + second[1] <= 48
