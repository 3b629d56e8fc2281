"""Data models and constants for the squiggle pipeline."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from PIL import Image

# AIDEV-NOTE: Output canvas constants - the long side of every drawing is
# fixed so stroke widths look the same regardless of the source resolution
MAX_DIMENSION = 560  # px
PX_PER_MM = 3.759  # px -> mm conversion used for the root width/height

# Grid bounds accepted from untrusted input
MIN_GRID = 4
MAX_GRID = 200

# Configuration file path
CONFIG_FILE = Path.home() / ".squiggler_config.json"


class ProcessingMode(Enum):
    """Color classification strategies.

    AIDEV-NOTE: Each mode turns sampled cells into color groups differently.
    """

    MONOCHROME = "monochrome"  # One group in a user-chosen color
    GRAYSCALE = "grayscale"  # Brightness quantized into evenly spaced grays
    POSTERIZE = "posterize"  # K-means palette of the source colors
    CMYK = "cmyk"  # Four fixed ink separations


class ChunkType(Enum):
    """Kinds of chunks emitted by progressive SVG generation."""

    HEADER = "header"
    COLOR_GROUP = "colorGroup"
    FOOTER = "footer"


@dataclass(frozen=True)
class PixelSample:
    """One sampled grid cell.

    AIDEV-NOTE: Brightness is alpha-weighted luminance (0-255). For posterize
    mode r/g/b already hold the quantized palette color.
    """

    x: int  # grid column
    y: int  # grid row
    brightness: int
    r: int
    g: int
    b: int
    a: int


@dataclass
class PathPoint:
    """Rendering directive for one tile of one color group.

    AIDEV-NOTE: The upper knot shifts are drawn once when the point is
    created so regenerating the SVG from the same point is reproducible.
    """

    x: float  # pixel-space start of the zigzag (right edge on odd rows)
    y: float  # pixel-space top of the tile
    width: float
    height: float
    density: int  # zigzag segment count, 0 means no stroke
    row: int
    direction: int  # +1 left-to-right, -1 right-to-left
    random_upper_knot_shift_x: float = 0.0
    random_upper_knot_shift_y: float = 0.0


@dataclass
class ColorGroup:
    """All tiles drawn with one stroke color."""

    color: str  # "#rrggbb" or "rgb(r,g,b)"
    display_name: str
    points: "list[PathPoint]" = field(default_factory=list)
    hue: float = 0.0  # 0-360, used to sort posterize groups
    brightness: float = 0.0  # 0-255, used to sort grayscale groups
    is_custom_color: bool = False  # set when the user overrides the color


@dataclass(frozen=True)
class DimensionPlan:
    """Output canvas size and per-cell tile size."""

    output_width: int
    output_height: int
    tile_width: float
    tile_height: float


@dataclass
class CurveControls:
    """Geometry and stroke parameters for the path synthesizer."""

    junction_continuity_factor: float = 0.1  # Bezier handle length factor
    tile_height_scale: float = 0.95  # Fraction of the tile height used
    stroke_width: float = 1.0
    handle_rotation_angle: float = 0.0  # degrees
    lower_knot_x_shift: float = 0.0  # px added to every lower knot
    upper_knot_shift_factor: float = 0.0  # 0-1, scales the pre-drawn shift
    disorganize_factor: float = 0.0  # 0-1, fresh jitter per vertex
    row_wave_shift: float = 0.0  # -1..1
    column_wave_shift: float = 0.0  # -1..1
    wave_shift_frequency: float = 1.0  # radians per tile


@dataclass
class Settings:
    """Parameters for one pipeline run."""

    brightness_threshold: int = 255
    min_density: int = 2
    max_density: int = 5
    rows_count: int = 36
    columns_count: int = 24
    continuous_paths: bool = True
    curved_paths: bool = True
    path_distance_threshold: float = 25.0
    processing_mode: ProcessingMode = ProcessingMode.POSTERIZE
    colors_amt: int = 5
    monochrome_color: str = "#000000"

    # Groups explicitly set to False are left out of the SVG
    visible_paths: "dict[str, bool]" = field(default_factory=dict)
    curve_controls: CurveControls = field(default_factory=CurveControls)


@dataclass
class ProcessedImage:
    """Result of sampling and classification.

    AIDEV-NOTE: This is the only hand-off between the classifier stage and
    the SVG stage. The pipeline never keeps a reference to it.
    """

    width: int  # grid columns
    height: int  # grid rows
    pixels: "list[PixelSample]"

    # Source and output dimensions (pixels)
    original_width: int = 0
    original_height: int = 0
    resized_width: int = 0
    resized_height: int = 0
    output_width: int = 0
    output_height: int = 0

    # Output pixels per grid cell
    tile_width: float = 0.0
    tile_height: float = 0.0

    color_groups: "dict[str, ColorGroup]" = field(default_factory=dict)

    @property
    def columns_count(self) -> int:
        return self.width

    @property
    def rows_count(self) -> int:
        return self.height


@dataclass(frozen=True)
class SvgChunk:
    """One piece of a progressively generated SVG document."""

    type: ChunkType
    content: str
    progress: float  # 0-1
    color_name: str | None = None
    current_group: int | None = None
    total_groups: int | None = None


# --- Image sources ---


@dataclass(frozen=True)
class ImageFile:
    """Source image read from disk."""

    path: "str | Path"


@dataclass(frozen=True)
class ImagePixels:
    """Source image that is already decoded."""

    image: Image.Image


ImageSource = ImageFile | ImagePixels
