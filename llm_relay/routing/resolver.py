"""
Model id -> provider reverse index.

Built once from the adapter registry. Model ids must be unique across all
catalogs; a duplicate fails construction instead of resolving to whichever
adapter happened to be scanned first.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Dict, List, Mapping

from llm_relay.errors import DuplicateModelError, UnsupportedModelError
from llm_relay.models import Modality, ModelDescriptor
from llm_relay.provider.base import ProviderAdapter


class ModelResolver:
    def __init__(self, adapters: Mapping[str, ProviderAdapter]) -> None:
        self._adapters = adapters
        index: Dict[str, str] = {}
        for provider_id, adapter in adapters.items():
            for model in adapter.get_models():
                existing = index.get(model.id)
                if existing is not None:
                    raise DuplicateModelError(model.id, (existing, provider_id))
                index[model.id] = provider_id
        self._index = MappingProxyType(index)

    def resolve_provider(self, model_id: str) -> str:
        try:
            return self._index[model_id]
        except KeyError:
            raise UnsupportedModelError(model_id) from None

    def resolve_adapter(self, model_id: str) -> ProviderAdapter:
        return self._adapters[self.resolve_provider(model_id)]

    def list_models(self, modality: Modality | None = None) -> List[ModelDescriptor]:
        """All descriptors in adapter registration order, then catalog order."""
        models: List[ModelDescriptor] = []
        for adapter in self._adapters.values():
            models.extend(adapter.get_models(modality))
        return models

    def __contains__(self, model_id: object) -> bool:
        return model_id in self._index

    def __len__(self) -> int:
        return len(self._index)


__all__ = ["ModelResolver"]
