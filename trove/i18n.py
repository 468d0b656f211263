# i18n.py
import json
from functools import lru_cache
from pathlib import Path
from typing import Optional, Any
from trove.config import Settings

LOCALES_DIR = Path(__file__).parent / "data" / "locales"


@lru_cache(maxsize=None)
def _load_section(lang: str, section: str) -> dict:
	path = LOCALES_DIR / lang / f"{section}.json"
	if not path.exists():
		raise KeyError(f"Locale section {section!r} is not found. File path is {path}")
	with open(path, encoding="utf-8") as file:
		return json.load(file)


class Localizer:
	"""
	Message templates keyed as ``<section>.<key>[.<subkey>...]``; the section
	is a JSON file under ``data/locales/<lang>/``.
	"""

	def __init__(self, lang: Optional[str] = None):
		self.lang = lang if lang is not None else Settings().default_language

	def _template(self, key: str) -> str:
		section, _, rest = key.partition(".")
		if not rest:
			raise KeyError(f"Key {key} is not full")

		node: Any = _load_section(self.lang, section)
		for part in rest.split("."):
			if not isinstance(node, dict) or part not in node:
				raise KeyError(f"Key {key} is not found")
			node = node[part]

		if not isinstance(node, str):
			raise KeyError(f"Key {key} is not full")
		return node

	def get(self, key: str, **kwargs: Any) -> str:
		return self._template(key).format(**kwargs)

	def __call__(self, key: str, **kwargs: Any) -> str:
		return self.get(key, **kwargs)
