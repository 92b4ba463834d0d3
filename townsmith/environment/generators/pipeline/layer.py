"""Abstract base class for generation layers.

Each layer in the town pipeline implements the GenerationLayer interface and
transforms the GenerationContext in some way: carving tiles, committing
buildings, cutting openings or laying roads.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .context import GenerationContext


class GenerationLayer(ABC):
    """Abstract base class for town generation layers.

    Layers are applied sequentially by the PipelineGenerator. Each layer
    receives a GenerationContext and modifies it in place. Layers draw all
    randomness from ``ctx.rng`` so the layer order fixes the draw order.
    """

    @abstractmethod
    def apply(self, ctx: GenerationContext) -> None:
        """Apply this layer's generation logic to the context.

        Args:
            ctx: The generation context to modify.
        """
        raise NotImplementedError
