# labyrinth/render.py
"""Text and SVG views of a session.

Both renderers read the session only through its query surface, so they work
the same on a freshly generated state and on one loaded from a snapshot.
"""
from itertools import groupby
from typing import Dict, List, Tuple
from xml.sax.saxutils import quoteattr, escape

from labyrinth.game_state import GameState
from labyrinth.players import Player
from labyrinth.world.maze import Direction, Pos

CELL_PX = 24
MARGIN_PX = 10
STROKE_PX = 2


def _cell_glyphs(state: GameState) -> Dict[Pos, str]:
    glyphs: Dict[Pos, str] = {}
    for location in state.locations:
        for cell in location.cells:
            glyphs[cell] = location.type_name[0].lower()
    for player in state.players:
        glyphs[player.pos] = player.initial
    return glyphs


def render_ascii(state: GameState) -> str:
    """Box-drawing style map: ``+---+`` walls, location letters, player initials."""
    glyphs = _cell_glyphs(state)
    lines: List[str] = []
    for y in range(state.height):
        top = "+"
        middle = ""
        for x in range(state.width):
            pos = Pos(x, y)
            top += ("---" if state.has_wall(pos, Direction.UP) else "   ") + "+"
            middle += "|" if state.has_wall(pos, Direction.LEFT) else " "
            middle += f" {glyphs.get(pos, ' ')} "
        last = Pos(state.width - 1, y)
        middle += "|" if state.has_wall(last, Direction.RIGHT) else " "
        lines.append(top)
        lines.append(middle)

    bottom = "+"
    for x in range(state.width):
        pos = Pos(x, state.height - 1)
        bottom += ("---" if state.has_wall(pos, Direction.DOWN) else "   ") + "+"
    lines.append(bottom)
    return "\n".join(lines)


def _cell_rect(pos: Pos, margin_px: int, cell_px: int) -> Tuple[int, int, int, int]:
    x0 = margin_px + pos.x * cell_px
    y0 = margin_px + pos.y * cell_px
    return x0, y0, x0 + cell_px, y0 + cell_px


def _line(x0: int, y0: int, x1: int, y1: int) -> str:
    return f'<line x1="{x0}" y1="{y0}" x2="{x1}" y2="{y1}"/>'


def _player_marker(
    player: Player, pos: Pos, margin_px: int, cell_px: int, count: int, index: int
) -> List[str]:
    """Circle and initial for one of ``count`` players sharing a cell.

    The cell is split into ``count`` equal columns and the circle shrinks to
    fit its column.
    """
    x0, y0, x1, y1 = _cell_rect(pos, margin_px, cell_px)
    cx = x0 + (2 * index + 1) * cell_px // (2 * count)
    cy = (y0 + y1) // 2
    radius = max(1, min(cell_px // 3, cell_px * 2 // (5 * count)))
    return [
        f'<circle cx="{cx}" cy="{cy}" r="{radius}" '
        f'fill={quoteattr(player.color)} stroke="black"/>',
        f'<text x="{cx}" y="{cy}" fill="white" font-size="{radius * 1.5}" '
        f'font-weight="bold" text-anchor="middle" dominant-baseline="central">'
        f"{escape(player.initial)}</text>",
    ]


def render_svg(state: GameState, cell_px: int = CELL_PX, margin_px: int = MARGIN_PX) -> str:
    if cell_px <= 0 or margin_px < 0:
        raise ValueError("cell_px must be positive and margin_px non-negative")
    w_px = margin_px * 2 + state.width * cell_px
    h_px = margin_px * 2 + state.height * cell_px

    out: List[str] = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{w_px}" height="{h_px}" '
        f'viewBox="0 0 {w_px} {h_px}">',
        f'<rect x="0" y="0" width="{w_px}" height="{h_px}" fill="white"/>',
    ]

    out.append('<g id="grid" stroke="#dddddd" stroke-width="1" fill="none">')
    for x in range(state.width + 1):
        gx = margin_px + x * cell_px
        out.append(_line(gx, margin_px, gx, margin_px + state.height * cell_px))
    for y in range(state.height + 1):
        gy = margin_px + y * cell_px
        out.append(_line(margin_px, gy, margin_px + state.width * cell_px, gy))
    out.append("</g>")

    if state.locations:
        out.append('<g id="locations">')
        for location in state.locations:
            fill = quoteattr(location.kind.fill)
            out.append(
                f'<g class={quoteattr(location.type_name.lower())} fill={fill} '
                f'fill-opacity="0.25" stroke="none">'
            )
            for cell in location.cells:
                x0, y0, x1, y1 = _cell_rect(cell, margin_px, cell_px)
                out.append(f'<rect x="{x0}" y="{y0}" width="{x1 - x0}" height="{y1 - y0}"/>')
            out.append("</g>")
        out.append("</g>")

    # UP and LEFT per cell; the border rect below covers the bottom and right edges
    out.append(f'<g id="walls" stroke="black" stroke-width="{STROKE_PX}" fill="none">')
    for y in range(state.height):
        for x in range(state.width):
            pos = Pos(x, y)
            x0, y0, x1, y1 = _cell_rect(pos, margin_px, cell_px)
            if state.has_wall(pos, Direction.UP):
                out.append(_line(x0, y0, x1, y0))
            if state.has_wall(pos, Direction.LEFT):
                out.append(_line(x0, y0, x0, y1))
    out.append("</g>")

    if state.players:
        out.append('<g id="players">')
        ordered = sorted(state.players, key=lambda p: (p.pos.y, p.pos.x, p.name))
        for pos, group in groupby(ordered, key=lambda p: p.pos):
            sharing = list(group)
            for index, player in enumerate(sharing):
                out.extend(_player_marker(player, pos, margin_px, cell_px, len(sharing), index))
        out.append("</g>")

    out.append(
        f'<rect x="{margin_px}" y="{margin_px}" width="{state.width * cell_px}" '
        f'height="{state.height * cell_px}" fill="none" stroke="black" '
        f'stroke-width="{STROKE_PX}"/>'
    )
    out.append("</svg>")
    return "\n".join(out) + "\n"
