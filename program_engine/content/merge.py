"""Field-by-field merge of content layers."""

from collections.abc import Sequence
from typing import TypeVar

from program_engine.models.content import DayContent, Layer, WeekContent

ContentT = TypeVar("ContentT", DayContent, WeekContent)


def merge_layers(
    content_type: type[ContentT],
    layers: Sequence[tuple[Layer, ContentT | None]],
) -> tuple[ContentT, dict[str, Layer]]:
    """Merge content layers in increasing precedence.

    A field that is set (not None) at a higher layer replaces the lower
    layer's value wholesale. Lists are never merged element-wise, and an
    empty list is a set value that hides the lower layers.

    Args:
        content_type: DayContent or WeekContent
        layers: (layer, content) pairs ordered from lowest to highest
            precedence. None content means the layer has no record.

    Returns:
        Tuple of (effective content, provenance). Provenance maps each field
        that some layer set to the layer that won.
    """
    values: dict = {}
    provenance: dict[str, Layer] = {}
    for layer, content in layers:
        if content is None:
            continue
        for name, value in content.present_fields().items():
            values[name] = value
            provenance[name] = layer
    return content_type.model_validate(values), provenance
