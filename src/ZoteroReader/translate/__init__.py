"""Translation adapters, engine and provider probe."""

from __future__ import annotations

from ZoteroReader.translate.base import Translator, TranslatorOutput
from ZoteroReader.translate.deeplx import DeepLXTranslator
from ZoteroReader.translate.engine import TranslationEngine
from ZoteroReader.translate.factory import TranslatorFactory
from ZoteroReader.translate.openai_compat import ChatTranslator
from ZoteroReader.translate.probe import probe_provider

__all__ = [
    "ChatTranslator",
    "DeepLXTranslator",
    "TranslationEngine",
    "Translator",
    "TranslatorFactory",
    "TranslatorOutput",
    "probe_provider",
]
