"""Game mechanics and the images each one needs."""

from dataclasses import dataclass
from enum import Enum


class MechanicType(str, Enum):
    """Supported landing game mechanics."""

    WHEEL = "wheel"
    BOXES = "boxes"
    CRASH = "crash"
    BOARD = "board"
    SCRATCH = "scratch"
    LOADER = "loader"
    SLOT = "slot"


@dataclass(frozen=True)
class AssetDescriptor:
    """Static description of one image to request from the generator."""

    key: str
    display_name: str
    width: int
    height: int
    needs_transparency: bool
