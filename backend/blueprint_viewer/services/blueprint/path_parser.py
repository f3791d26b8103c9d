"""Recover an outline from sanitized vector markup.

Only straight-line commands are interpreted (M, L, H, V). Command letters
are folded to upper case, so relative forms (m, l, h, v) are read as
absolute coordinates. Curves, arcs and Z are skipped; the renderer closes
the outline itself.
"""

from __future__ import annotations

import logging
import re

from .contracts import CanonicalGeometry, Dimensions, Vertex

logger = logging.getLogger(__name__)

_PATH_D_RE = re.compile(r"""<path\b[^>]*?\sd\s*=\s*(["'])(.*?)\1""", re.IGNORECASE | re.DOTALL)
_COMMAND_RE = re.compile(r"[MmLlHhVvCcSsQqTtAaZz][^MmLlHhVvCcSsQqTtAaZz]*")
_OPERAND_RE = re.compile(r"[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")

SUPPORTED_COMMANDS = frozenset("MLHV")


def find_path_data(markup: str) -> str | None:
    """Return the ``d`` attribute of the first ``<path>`` element."""
    match = _PATH_D_RE.search(markup)
    if not match:
        return None
    return match.group(2)


def tokenize_path(path_data: str) -> list[tuple[str, list[float]]]:
    """Split path data into (upper-cased command, operands) groups."""
    groups: list[tuple[str, list[float]]] = []
    for chunk in _COMMAND_RE.findall(path_data):
        command = chunk[0].upper()
        operands = [float(token) for token in _OPERAND_RE.findall(chunk[1:])]
        groups.append((command, operands))
    return groups


def trace_vertices(groups: list[tuple[str, list[float]]]) -> list[Vertex]:
    """Run the cursor over the command groups and collect emitted vertices."""
    vertices: list[Vertex] = []
    x = y = 0.0

    for command, operands in groups:
        if command in ("M", "L"):
            if len(operands) < 2:
                continue
            x, y = operands[0], operands[1]
        elif command == "H":
            if not operands:
                continue
            x = operands[0]
        elif command == "V":
            if not operands:
                continue
            y = operands[0]
        else:
            continue
        vertices.append(Vertex(x, y))

    return vertices


def parse_path_markup(markup: str) -> CanonicalGeometry | None:
    """Parse sanitized markup into canonical geometry, or ``None``.

    Dimensions are the extent of the emitted vertices; scale is always 1.
    """
    if not markup:
        return None

    try:
        path_data = find_path_data(markup)
        if path_data is None:
            logger.warning("No path data found in blueprint markup")
            return None

        vertices = trace_vertices(tokenize_path(path_data))
        if len(vertices) < 2:
            logger.warning("Insufficient vertices extracted from path data (%d)", len(vertices))
            return None

        min_x = min(v.x for v in vertices)
        max_x = max(v.x for v in vertices)
        min_y = min(v.y for v in vertices)
        max_y = max(v.y for v in vertices)
    except (ValueError, OverflowError):
        logger.warning("Error parsing blueprint path data", exc_info=True)
        return None

    return CanonicalGeometry(
        vertices=tuple(vertices),
        dimensions=Dimensions(width=max_x - min_x, height=max_y - min_y),
        scale=1,
    )
