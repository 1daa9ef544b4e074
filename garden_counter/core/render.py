"""Render a count as a small white-on-transparent PNG.

Digits are drawn from a built-in 8x16 bitmap font, grouped in threes from
the right with a small gap between groups, and right-aligned inside a
minimum width so that the image doesn't change size as the count grows.
"""

from __future__ import annotations

import io
from dataclasses import dataclass

import numpy as np
from PIL import Image

GLYPH_WIDTH = 8
GLYPH_HEIGHT = 16
GLYPH_KERN = 1
GROUP_SPACING = 3  # px between groups of three digits
PADDING = 1

FOREGROUND = (0xFF, 0xFF, 0xFF, 0xFF)


@dataclass
class Render:
    pixels: np.ndarray  # (height, width, 4) uint8 RGBA

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    def to_png_bytes(self) -> bytes:
        buf = io.BytesIO()
        Image.fromarray(self.pixels).save(buf, format="PNG")
        return buf.getvalue()


def text_width(char_count: int) -> int:
    return char_count * (GLYPH_WIDTH + GLYPH_KERN)


def _blit(pixels: np.ndarray, text: str, x: int, y: int) -> None:
    for c in text:
        mask = _GLYPH_MASKS[int(c)]
        pixels[y:y + GLYPH_HEIGHT, x:x + GLYPH_WIDTH][mask] = FOREGROUND
        x += GLYPH_WIDTH + GLYPH_KERN


def render_separated_number(number: int, reserve_width: int) -> Render:
    """Render ``number`` with a gap between every three digits.

    ``reserve_width`` is the minimum width of the image in digits.
    """
    digits = str(number)
    groups = [digits[max(end - 3, 0):end] for end in range(len(digits), 0, -3)][::-1]

    width = (
        2 * PADDING
        + text_width(max(len(digits), reserve_width))
        + GROUP_SPACING * max(reserve_width // 3, len(digits) // 3)
    )
    height = 2 * PADDING + GLYPH_HEIGHT
    pixels = np.zeros((height, width, 4), dtype=np.uint8)

    # Right-align: skip the unused digit slots and the group gaps they'd have had.
    x = PADDING
    x += text_width(max(reserve_width - len(digits), 0))
    x += GROUP_SPACING * max(reserve_width // 3 - len(digits) // 3, 0)
    for group in groups:
        _blit(pixels, group, x, PADDING)
        x += text_width(len(group)) + GROUP_SPACING

    return Render(pixels=pixels)


_GLYPHS = (
    (  # 0
        "...##...",
        "..####..",
        ".##..##.",
        ".#....#.",
        "##....##",
        "##....##",
        "##....##",
        "##..#.##",
        "##.#..##",
        "##....##",
        "##....##",
        "##....##",
        ".#....#.",
        ".##..##.",
        "..####..",
        "...##...",
    ),
    (  # 1
        "...##...",
        "..###...",
        ".####...",
        "##.##...",
        "#..##...",
        "...##...",
        "...##...",
        "...##...",
        "...##...",
        "...##...",
        "...##...",
        "...##...",
        "...##...",
        "...##...",
        "########",
        "########",
    ),
    (  # 2
        "...##...",
        ".#####..",
        ".##..##.",
        "##....##",
        "##....##",
        "......##",
        ".....##.",
        ".....##.",
        "....##..",
        "....##..",
        "...##...",
        "...##...",
        "..##....",
        ".###....",
        "########",
        "########",
    ),
    (  # 3
        "...##...",
        ".######.",
        "###..##.",
        "##....##",
        "......##",
        "......##",
        ".....##.",
        "...###..",
        "...###..",
        ".....##.",
        "......##",
        "......##",
        "##....##",
        "###..##.",
        ".######.",
        "...##...",
    ),
    (  # 4
        ".....##.",
        "....###.",
        "...####.",
        "...#.##.",
        "..##.##.",
        ".##..##.",
        ".##..##.",
        "##...##.",
        "########",
        "########",
        ".....##.",
        ".....##.",
        ".....##.",
        ".....##.",
        "....####",
        "....####",
    ),
    (  # 5
        "#######.",
        "#######.",
        "##......",
        "##......",
        "##......",
        "##......",
        "##.###..",
        "#######.",
        ".#...##.",
        "......##",
        "......##",
        "......##",
        "##....##",
        "###..##.",
        ".#####..",
        "...##...",
    ),
    (  # 6
        "...##...",
        ".######.",
        ".##..##.",
        "##......",
        "##......",
        "##......",
        "##.##...",
        "#######.",
        "###..##.",
        "##....##",
        "##....##",
        "##....##",
        ".#....#.",
        ".##..##.",
        ".######.",
        "...##...",
    ),
    (  # 7
        "########",
        "########",
        "......##",
        "......##",
        ".....##.",
        ".....##.",
        "....##..",
        "....##..",
        "..#####.",
        "..#####.",
        "...##...",
        "...##...",
        "...##...",
        "...##...",
        "...##...",
        "...##...",
    ),
    (  # 8
        "...##...",
        ".######.",
        ".##..##.",
        ".#....#.",
        "##....##",
        "##....##",
        ".##..##.",
        ".######.",
        "..####..",
        ".##..##.",
        "###..###",
        "##....##",
        "##....##",
        ".##..##.",
        ".######.",
        "...##...",
    ),
    (  # 9
        "...##...",
        ".######.",
        ".##..##.",
        ".#....#.",
        "##....##",
        "##....##",
        "##....##",
        ".##..###",
        ".#######",
        "...##.##",
        "......##",
        "......##",
        "......##",
        ".##..##.",
        ".######.",
        "...##...",
    ),
)

_GLYPH_MASKS = [
    np.array([[c == "#" for c in row] for row in glyph], dtype=bool)
    for glyph in _GLYPHS
]
