from .base import ProviderAdapter
from .config import ProviderConfig, load_provider_configs
from .registry import ADAPTER_CLASSES, build_adapters

__all__ = [
    "ADAPTER_CLASSES",
    "ProviderAdapter",
    "ProviderConfig",
    "build_adapters",
    "load_provider_configs",
]
