"""Color palette reduction using K-means clustering.

AIDEV-NOTE: This module runs a small, fixed-budget Lloyd's K-means over the
unique colors of an image. It favours speed over perfect convergence:
large color sets are stride-sampled and the loop stops after a handful of
iterations. The distance is plain Euclidean RGB, not a perceptual space.
"""

import dataclasses
import hashlib
import logging
import math
import random
from collections import OrderedDict
from typing import Protocol, Sequence

import numpy as np
from PIL import Image
from sklearn.metrics import pairwise_distances_argmin

from squiggler.models import ColorGroup

from .utils import round_half_up

logger = logging.getLogger(__name__)

MAX_COLORS_TO_PROCESS = 10_000
MAX_ITERATIONS = 10


class RandomSource(Protocol):
    """Anything with a random() method returning a float in [0, 1)."""

    def random(self) -> float: ...


def color_distance(c1: Sequence[float], c2: Sequence[float]) -> float:
    """Euclidean distance in RGB space."""
    return math.sqrt(
        (c1[0] - c2[0]) ** 2 + (c1[1] - c2[1]) ** 2 + (c1[2] - c2[2]) ** 2
    )


def find_nearest_centroid_index(
    color: Sequence[float],
    centroids: "Sequence[Sequence[float]]",
) -> int:
    """Index of the closest centroid; the first one wins ties."""
    min_dist = math.inf
    nearest_index = 0

    for i, centroid in enumerate(centroids):
        dist = color_distance(color, centroid)
        if dist < min_dist:
            min_dist = dist
            nearest_index = i

    return nearest_index


def find_nearest_centroid(
    color: Sequence[float],
    centroids: "Sequence[tuple[int, int, int]]",
) -> "tuple[int, int, int]":
    return centroids[find_nearest_centroid_index(color, centroids)]


def average_color(colors: np.ndarray) -> np.ndarray:
    return colors.mean(axis=0)


def centroids_equal(c1: np.ndarray, c2: np.ndarray | None) -> bool:
    """True when every channel of every centroid moved by less than 1."""
    if c2 is None or c1.shape != c2.shape:
        return False
    return bool(np.all(np.abs(c1 - c2) < 1))


def stride_sample(colors: np.ndarray, limit: int = MAX_COLORS_TO_PROCESS) -> np.ndarray:
    """Take every Nth color so at most `limit` remain.

    AIDEV-NOTE: N = ceil(len / limit). This approximation bounds the cost of
    clustering photographs with hundreds of thousands of unique colors.
    """
    if len(colors) <= limit:
        return colors
    step = math.ceil(len(colors) / limit)
    return colors[::step]


def kmeans_clustering(
    colors: "Sequence[Sequence[int]] | np.ndarray",
    k: int,
    rng: RandomSource | None = None,
) -> "list[tuple[int, int, int]]":
    """Cluster RGB colors into k centroids with Lloyd's algorithm.

    Args:
        colors: RGB colors (0-255 each channel), ideally unique
        k: Number of clusters
        rng: Random source used to pick the seeds

    Returns:
        k centroids rounded to integers. When fewer than k distinct seeds
        exist the last seed is repeated; an empty input yields [].

    AIDEV-NOTE: Seeds are k distinct input colors drawn uniformly without
    replacement. Empty clusters keep their previous centroid.
    """
    rng = rng or random
    points = np.asarray(colors, dtype=np.float64).reshape(-1, 3)
    if len(points) == 0 or k <= 0:
        return []

    points = stride_sample(points)

    # Pick seeds without replacement
    pool = list(range(len(points)))
    seeds = []
    for _ in range(k):
        if not pool:
            break
        seeds.append(pool.pop(int(rng.random() * len(pool))))

    centroids = points[seeds]
    while len(centroids) < k:
        centroids = np.vstack([centroids, centroids[-1]])

    old_centroids = None
    iterations = 0
    while iterations < MAX_ITERATIONS and not centroids_equal(centroids, old_centroids):
        old_centroids = centroids.copy()

        labels = pairwise_distances_argmin(points, centroids)

        new_centroids = old_centroids.copy()
        for i in range(k):
            members = points[labels == i]
            if len(members):
                new_centroids[i] = average_color(members)
        centroids = new_centroids

        iterations += 1

    logger.debug("K-means finished after %d iterations (k=%d)", iterations, k)

    return [
        (round_half_up(r), round_half_up(g), round_half_up(b))
        for r, g, b in centroids
    ]


def unique_colors(image: Image.Image) -> np.ndarray:
    """Unique RGB colors of the opaque pixels, in first-seen order."""
    rgba = np.asarray(image.convert("RGBA")).reshape(-1, 4)
    rgb = rgba[rgba[:, 3] > 0, :3]
    if len(rgb) == 0:
        return np.empty((0, 3), dtype=np.uint8)

    _, first_index = np.unique(rgb, axis=0, return_index=True)
    return rgb[np.sort(first_index)]


def map_to_palette(
    colors: np.ndarray,
    palette: "Sequence[tuple[int, int, int]]",
) -> np.ndarray:
    """Replace every color with its nearest palette entry."""
    colors = np.asarray(colors).reshape(-1, 3)
    if len(colors) == 0 or not palette:
        return colors
    centers = np.asarray(palette, dtype=np.float64)
    labels = pairwise_distances_argmin(colors.astype(np.float64), centers)
    return centers[labels].astype(np.uint8)


def palette_key(colors: np.ndarray, k: int) -> str:
    """Content hash of a color set and cluster count."""
    digest = hashlib.sha1(np.ascontiguousarray(colors, dtype=np.uint8).tobytes())
    digest.update(str(k).encode())
    return digest.hexdigest()


class PaletteCache:
    """Bounded FIFO cache of K-means palettes.

    AIDEV-NOTE: Purely an optimization for re-runs with the same image and
    palette size. A miss simply recomputes.
    """

    def __init__(self, max_size: int = 16):
        self.max_size = max_size
        self._entries: "OrderedDict[str, list[tuple[int, int, int]]]" = OrderedDict()

    def get(self, key: str) -> "list[tuple[int, int, int]] | None":
        return self._entries.get(key)

    def set(self, key: str, palette: "list[tuple[int, int, int]]") -> None:
        if key not in self._entries and len(self._entries) >= self.max_size:
            self._entries.popitem(last=False)
        self._entries[key] = palette

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


def extract_palette(
    image: Image.Image,
    num_colors: int,
    rng: RandomSource | None = None,
    cache: PaletteCache | None = None,
) -> "list[tuple[int, int, int]]":
    """Reduce an image to at most num_colors distinct colors.

    Args:
        image: Source image (any mode)
        num_colors: Target palette size
        rng: Random source for K-means seeding
        cache: Optional palette cache

    Returns:
        Distinct palette colors, in centroid order
    """
    colors = unique_colors(image)

    key = palette_key(colors, num_colors)
    if cache is not None:
        cached = cache.get(key)
        if cached is not None:
            logger.debug("Palette cache hit for %d colors", len(colors))
            return list(cached)

    centroids = kmeans_clustering(colors, num_colors, rng)
    palette = list(dict.fromkeys(centroids))

    if cache is not None:
        cache.set(key, palette)

    logger.info(
        "Clustered %d unique colors into %d palette colors", len(colors), len(palette)
    )
    return palette


def merge_custom_colors(
    previous: "dict[str, ColorGroup]",
    fresh: "dict[str, ColorGroup]",
) -> "dict[str, ColorGroup]":
    """Carry user color overrides over to freshly classified groups."""
    merged = dict(fresh)
    for key, group in previous.items():
        if group.is_custom_color and key in merged:
            merged[key] = dataclasses.replace(
                merged[key], color=group.color, is_custom_color=True
            )
    return merged
