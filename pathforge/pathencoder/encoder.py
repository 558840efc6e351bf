from abc import ABC, abstractmethod

from ..core.geo.geometry import Path


class PathEncoder(ABC):
    """
    Encodes a Path. Encoding a path means converting it to an output
    format, such as the path text format.
    """

    @abstractmethod
    def encode(self, path: Path) -> object:
        pass
