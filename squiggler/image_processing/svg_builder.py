"""SVG assembly and color group extraction."""

import copy
import logging
import time
import xml.etree.ElementTree as ET
from typing import Callable, Iterator
from xml.sax.saxutils import escape

import svg

from squiggler.errors import SVGGenerationError
from squiggler.models import ChunkType, ProcessedImage, Settings, SvgChunk

from .curves import path_element
from .paths import group_runs
from .progress import SILENT, ProgressReporter
from .quantization import RandomSource
from .utils import px_to_mm

logger = logging.getLogger(__name__)

SVG_NS = "http://www.w3.org/2000/svg"
GROUP_ID_PREFIX = "color-group-"
ROOT_STYLE = "stroke-linejoin: round; stroke-linecap: round;"

ET.register_namespace("", SVG_NS)


def _attribute(value: str) -> str:
    # svg.py writes attribute values verbatim
    return escape(value, {'"': "&quot;"})


def svg_header(output_width: int, output_height: int) -> str:
    """Opening <svg> tag sized in millimeters with a pixel viewBox."""
    return (
        f'<svg width="{px_to_mm(output_width)} mm" height="{px_to_mm(output_height)} mm" '
        f'viewBox="0 0 {output_width} {output_height}" xmlns="{SVG_NS}" '
        f'shape-rendering="geometricPrecision" style="{ROOT_STYLE}">\n'
    )


SVG_FOOTER = "</svg>"


def group_element(
    key: str,
    index: int,
    image: ProcessedImage,
    settings: Settings,
    rng: RandomSource | None = None,
) -> svg.G:
    """Build the <g> for one color group with one <path> per vertex run."""
    group = image.color_groups[key]
    runs = group_runs(group, settings, rng)
    color = _attribute(group.color)

    return svg.G(
        elements=[
            path_element(run, color, settings.curved_paths, settings.curve_controls)
            for run in runs
        ],
        extra={
            "id": _attribute(f"{GROUP_ID_PREFIX}{key}"),
            "data-color": color,
            "data-name": _attribute(group.display_name),
            "data-index": str(index),
        },
    )


def iter_svg_chunks(
    image: ProcessedImage,
    settings: Settings,
    rng: RandomSource | None = None,
    reporter: ProgressReporter = SILENT,
) -> "Iterator[SvgChunk]":
    """Yield the document as header, one chunk per visible group, footer.

    AIDEV-NOTE: Concatenating the chunk contents is exactly the document
    returned by generate_svg. Hidden groups are left out entirely but
    still count towards data-index.
    """
    visible = [
        (index, key)
        for index, key in enumerate(image.color_groups, start=1)
        if settings.visible_paths.get(key, True) is not False
    ]
    total = len(visible)

    reporter.report(0.0, "Assembling SVG")
    yield SvgChunk(
        type=ChunkType.HEADER,
        content=svg_header(image.output_width, image.output_height),
        progress=0.0,
        total_groups=total,
    )

    for position, (index, key) in enumerate(visible, start=1):
        element = group_element(key, index, image, settings, rng)
        progress = position / (total + 1)
        group = image.color_groups[key]
        reporter.report(progress, f"Rendered {group.display_name}")
        yield SvgChunk(
            type=ChunkType.COLOR_GROUP,
            content=element.as_str() + "\n",
            progress=progress,
            color_name=group.display_name,
            current_group=position,
            total_groups=total,
        )

    reporter.report(1.0, "SVG complete")
    yield SvgChunk(
        type=ChunkType.FOOTER,
        content=SVG_FOOTER,
        progress=1.0,
        total_groups=total,
    )


def generate_svg(
    image: ProcessedImage,
    settings: Settings,
    rng: RandomSource | None = None,
    reporter: ProgressReporter = SILENT,
) -> str:
    """Render a processed image to a complete SVG document."""
    return "".join(chunk.content for chunk in iter_svg_chunks(image, settings, rng, reporter))


def generate_svg_progressively(
    image: ProcessedImage,
    settings: Settings,
    on_chunk: "Callable[[SvgChunk], None]",
    inter_chunk_delay_ms: float = 0,
    rng: RandomSource | None = None,
    reporter: ProgressReporter = SILENT,
) -> str:
    """Same document as generate_svg, handed to on_chunk piece by piece.

    Args:
        image: Processed image with color groups
        settings: Run settings
        on_chunk: Called with every chunk as soon as it is ready
        inter_chunk_delay_ms: Pause after each chunk so a UI can repaint
        rng: Random source for the disorganize jitter
        reporter: Progress and cancellation hook

    Returns:
        The full document
    """
    parts = []
    for chunk in iter_svg_chunks(image, settings, rng, reporter):
        on_chunk(chunk)
        parts.append(chunk.content)
        if inter_chunk_delay_ms > 0 and chunk.type is not ChunkType.FOOTER:
            time.sleep(inter_chunk_delay_ms / 1000)
    return "".join(parts)


# --- Extraction ---


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _parse(svg_text: str) -> ET.Element:
    try:
        return ET.fromstring(svg_text)
    except ET.ParseError as e:
        raise SVGGenerationError(f"Failed to parse SVG: {e}") from e


def _standalone(root: ET.Element, group: ET.Element) -> str:
    namespace = root.tag[: -len(_local_name(root.tag))]
    new_root = ET.Element(
        f"{namespace}svg",
        {
            "width": root.get("width", "100%"),
            "height": root.get("height", "100%"),
            "viewBox": root.get("viewBox", ""),
            "shape-rendering": "geometricPrecision",
            "style": ROOT_STYLE,
        },
    )

    new_root.append(copy.deepcopy(group))
    return ET.tostring(new_root, encoding="unicode")


def _color_groups(root: ET.Element) -> "Iterator[tuple[str, ET.Element]]":
    for element in root.iter():
        element_id = element.get("id", "")
        if element_id.startswith(GROUP_ID_PREFIX):
            yield element_id[len(GROUP_ID_PREFIX):], element


def extract_color_group_svg(svg_text: str, color_key: str) -> str | None:
    """Standalone SVG holding only one color group.

    Returns:
        The new document, or None if the group is not present

    Raises:
        SVGGenerationError: If svg_text is not well-formed XML
    """
    root = _parse(svg_text)
    for key, group in _color_groups(root):
        if key == color_key:
            return _standalone(root, group)

    logger.warning("Color group %s%s not found", GROUP_ID_PREFIX, color_key)
    return None


def extract_all_color_groups(svg_text: str) -> "dict[str, str]":
    """Standalone SVG per color group, keyed by group key."""
    root = _parse(svg_text)
    result = {key: _standalone(root, group) for key, group in _color_groups(root)}
    logger.debug("Extracted %d color groups", len(result))
    return result
