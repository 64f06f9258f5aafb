# automodel/methods/architecture.py
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from automodel.errors import UnsupportedConfigurationError

_LAYER = re.compile(r'^(?P<name>[^()]*?)\s*(\((?P<params>.*)\))?$')


@dataclass
class ArchitectureLayer:
    """One ``->`` separated segment, e.g. ``GAUSSIAN(c=12)`` or ``25:B``"""
    name: str
    params: Dict[str, str] = field(default_factory=dict)
    bias: bool = False

    @property
    def is_placeholder(self) -> bool:
        return self.name == '?'

    @property
    def count(self) -> Optional[int]:
        return int(self.name) if self.name.isdigit() else None


def parse_params(text: Optional[str]) -> Dict[str, str]:
    """Parse ``"a=1, b=two"`` into ``{'a': '1', 'b': 'two'}``; keys are lower-cased"""
    result = {}
    if not text:
        return result
    for item in text.split(','):
        item = item.strip()
        if not item:
            continue
        if '=' not in item:
            raise UnsupportedConfigurationError(f"Malformed argument '{item}', expected key=value")
        key, value = item.split('=', 1)
        result[key.strip().lower()] = value.strip()
    return result


def parse_architecture(architecture: str) -> List[ArchitectureLayer]:
    if not architecture or not architecture.strip():
        raise UnsupportedConfigurationError("Architecture string is empty")

    layers = []
    for segment in architecture.split('->'):
        segment = segment.strip()
        bias = False
        if segment.upper().endswith(':B'):
            segment, bias = segment[:-2], True
        match = _LAYER.match(segment)
        if match is None or not match.group('name'):
            raise UnsupportedConfigurationError(f"Malformed architecture segment '{segment}' in '{architecture}'")
        layers.append(ArchitectureLayer(
            name=match.group('name').strip().upper(),
            params=parse_params(match.group('params')),
            bias=bias,
        ))
    return layers


def get_int(params: Dict[str, str], key: str, default: int) -> int:
    try:
        return int(params.get(key, default))
    except ValueError:
        raise UnsupportedConfigurationError(f"Argument '{key}' must be an integer, got '{params[key]}'")


def get_float(params: Dict[str, str], key: str, default: float) -> float:
    try:
        return float(params.get(key, default))
    except ValueError:
        raise UnsupportedConfigurationError(f"Argument '{key}' must be a number, got '{params[key]}'")
