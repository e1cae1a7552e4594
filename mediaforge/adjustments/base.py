"""Base class and registry for image adjustments.

Concrete adjustments subclass :class:`ImageAdjustment` and register under a
kind name with :func:`register_adjustment`. The registry is what lets a
serialized adjustment be rebuilt with :func:`adjustment_from_dict`.
"""

from abc import ABC, abstractmethod
from typing import Any, ClassVar, Dict, Mapping, Optional, Tuple, Type, TypeVar

from PIL import Image

from ..core.configuration import AdjustmentConfiguration, ConfigPath
from ..exceptions import InvalidAdjustmentConfiguration

ADJUSTMENT_TYPES: Dict[str, Type["ImageAdjustment"]] = {}

A = TypeVar("A", bound=Type["ImageAdjustment"])


def register_adjustment(cls: A) -> A:
    """Class decorator registering an adjustment under its kind."""
    kind = cls.__dict__.get("kind") or cls.__name__
    cls.kind = kind
    ADJUSTMENT_TYPES[kind] = cls
    return cls


class ImageAdjustment(ABC):
    """A named, ordered, configurable transformation of one image.

    Subclasses declare ``DEFAULT_POSITION`` and ``DEFAULT_CONFIGURATION`` and
    implement :meth:`can_be_applied` and :meth:`apply_to_image`. Adjustments
    are treated as immutable values while a pipeline runs them.
    """

    kind: ClassVar[str] = ""
    DEFAULT_POSITION: ClassVar[int] = 0
    DEFAULT_CONFIGURATION: ClassVar[Dict[str, Any]] = {}

    def __init__(self, configuration: Optional[Mapping[str, Any]] = None, position: Optional[int] = None):
        values = dict(self.DEFAULT_CONFIGURATION)
        values.update(configuration or {})
        self._configuration = AdjustmentConfiguration(values)
        self.position = self.DEFAULT_POSITION if position is None else int(position)

    @property
    def configuration(self) -> AdjustmentConfiguration:
        return self._configuration

    @property
    def configuration_hash(self) -> str:
        return self._configuration.hash

    def get_configuration_value(self, path: ConfigPath, default: Any = None) -> Any:
        return self._configuration.get(path, default)

    def set_configuration_value(self, path: ConfigPath, value: Any) -> None:
        self._configuration.set(path, value)

    def unset_configuration_value(self, path: ConfigPath) -> None:
        self._configuration.unset(path)

    def set_configuration(self, configuration: Mapping[str, Any]) -> None:
        self._configuration.replace(configuration)

    def __getitem__(self, key: str) -> Any:
        return self._configuration[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self.set_configuration_value([key], value)

    def __delitem__(self, key: str) -> None:
        self.unset_configuration_value([key])

    def __contains__(self, key: object) -> bool:
        return key in self._configuration

    def sort_key(self) -> Tuple[str, int, str]:
        """Deterministic ordering key used by the pipeline."""
        return (type(self).__name__, self.position, self.configuration_hash)

    @abstractmethod
    def can_be_applied(self, image: Image.Image) -> bool:
        """Check if this adjustment can or should be applied to the image."""

    @abstractmethod
    def apply_to_image(self, image: Image.Image) -> Image.Image:
        """Apply this adjustment and return the resulting image."""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "position": self.position,
            "configuration": self._configuration.to_dict(),
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}(position={self.position}, hash={self.configuration_hash[:12]})"


def adjustment_from_dict(data: Mapping[str, Any], **kwargs: Any) -> ImageAdjustment:
    """Rebuild an adjustment from the output of :meth:`ImageAdjustment.to_dict`.

    Args:
        data: Serialized adjustment with ``kind``, ``position`` and ``configuration``
        **kwargs: Extra constructor arguments (e.g. a decoded overlay)

    Raises:
        InvalidAdjustmentConfiguration: If the kind is not registered
    """
    kind = data.get("kind")
    adjustment_class = ADJUSTMENT_TYPES.get(kind)
    if adjustment_class is None:
        raise InvalidAdjustmentConfiguration("kind", kind, f'Unknown adjustment kind "{kind}"')
    return adjustment_class(
        configuration=data.get("configuration") or {},
        position=data.get("position"),
        **kwargs
    )
