"""
Placement rules for nodes.

None of the supported languages encode coordinates, so parsed nodes are
laid out on a fixed three-column grid in discovery order, and nodes added
from the editor land somewhere inside a fixed viewport band.
"""

import random
from typing import Optional

from .models import Position


# Grid parameters for parsed nodes
GRID_COLUMNS = 3
GRID_SPACING_X = 250
GRID_SPACING_Y = 150
GRID_START_X = 100
GRID_START_Y = 100

# Band for interactively added nodes: x in [100, 500), y in [100, 400)
SPAWN_START_X = 100
SPAWN_START_Y = 100
SPAWN_RANGE_X = 400
SPAWN_RANGE_Y = 300


def grid_position(index: int) -> Position:
    """
    Deterministic grid slot for the `index`-th discovered node.

    Args:
        index: Zero-based discovery order of the node

    Returns:
        Position at column `index % 3`, row `index // 3`
    """
    row = index // GRID_COLUMNS
    col = index % GRID_COLUMNS
    return Position(
        x=GRID_START_X + col * GRID_SPACING_X,
        y=GRID_START_Y + row * GRID_SPACING_Y,
    )


def random_position(rng: Optional[random.Random] = None) -> Position:
    """Random position inside the spawn band."""
    rng = rng or random
    return Position(
        x=SPAWN_START_X + rng.random() * SPAWN_RANGE_X,
        y=SPAWN_START_Y + rng.random() * SPAWN_RANGE_Y,
    )
