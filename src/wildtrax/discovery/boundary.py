"""Polygon checks for Data Discover searches."""

from collections.abc import Iterable, Mapping, Sized
from numbers import Real
from typing import Sequence

from ..exceptions import ValidationError

Boundary = Sequence[Sequence[float]]


def _is_pair_like(pair) -> bool:
    # Any sized iterable except text and mappings, so NumPy rows qualify
    return (isinstance(pair, Sized) and isinstance(pair, Iterable)
            and not isinstance(pair, (str, bytes, Mapping)))


def _is_coordinate_pair(pair) -> bool:
    if not _is_pair_like(pair) or len(pair) != 2:
        return False
    return all(isinstance(v, Real) and not isinstance(v, bool) for v in pair)


def _as_tuple(pair):
    if _is_pair_like(pair):
        return tuple(pair)
    return pair


def validate_boundary(boundary: Boundary) -> Boundary:
    """Check that ``boundary`` is a closed polygon of (longitude, latitude) pairs.

    Pairs may be tuples, lists or NumPy rows.
    Winding order and self-intersection are not checked.

    Returns:
        ``boundary`` itself, unchanged.

    Raises:
        ValidationError: Fewer than four vertices, not closed, a malformed
            pair, or a repeated interior vertex.
    """
    vertices = list(boundary)
    if len(vertices) < 4:
        raise ValidationError(f"Boundary must have at least four vertices; got {len(vertices)}.")

    first, last = vertices[0], vertices[-1]
    if _as_tuple(first) != _as_tuple(last):
        raise ValidationError(f"Boundary must form a closed polygon; first vertex {first!r} != last vertex {last!r}.")

    for index, pair in enumerate(vertices):
        if not _is_coordinate_pair(pair):
            raise ValidationError(
                f"Each coordinate pair must consist of valid longitude and latitude values; "
                f"vertex {index} is {pair!r}."
            )

    interior = [tuple(pair) for pair in vertices[1:-1]]
    seen = set()
    for pair in interior:
        if pair in seen:
            raise ValidationError(f"Boundary contains duplicate vertices (excluding the first and last): {pair}.")
        seen.add(pair)

    return boundary
