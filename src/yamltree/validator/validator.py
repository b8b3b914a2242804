#!/usr/bin/env python3
"""
YAMLTREE VALIDATOR - Reference Cross-Check
------------------------------------------
Loads the same text with ruamel.yaml's safe loader and compares the result
with our own container views. Used by the engine's --cross-check mode and
by the test-suite as an oracle on the subset both parsers agree on.
"""

import logging
from datetime import datetime, timezone
from typing import Any, List, Tuple

from ruamel.yaml import YAML, YAMLError

from yamltree.core.document import Document

logger = logging.getLogger("yamltree.validator")


class ReferenceValidator:
    """
    Provides the 'second opinion' on a parsed Document.
    """

    def __init__(self):
        self.yaml = YAML(typ="safe", pure=True)

    def load_reference(self, text: str) -> List[Any]:
        """All non-empty documents as ruamel.yaml sees them."""
        return [doc for doc in self.yaml.load_all(text) if doc is not None]

    def compare(self, text: str, document: Document) -> Tuple[bool, str]:
        """Returns (ok, message). A reference-side failure counts as a mismatch."""
        try:
            expected = [self._normalize(doc) for doc in self.load_reference(text)]
        except YAMLError as e:
            return False, f"Reference parser rejected input: {str(e).splitlines()[0]}"

        actual = [self._normalize(doc) for doc in document.to_maps()]
        # An input without content is one empty root on our side, nothing on ruamel's
        if not expected and actual in ([{}], []):
            return True, "Both parsers agree (empty input)."

        if len(expected) != len(actual):
            return False, f"Document count differs: reference={len(expected)} yamltree={len(actual)}"

        for index, (want, got) in enumerate(zip(expected, actual)):
            difference = self._first_difference(want, got, f"doc[{index}]")
            if difference:
                logger.debug("Cross-check mismatch: %s", difference)
                return False, f"Mismatch at {difference}"
        return True, f"Both parsers agree on {len(actual)} document(s)."

    def _normalize(self, value: Any) -> Any:
        """Brings both sides onto plain Python types with string keys."""
        if isinstance(value, dict):
            return {str(k): self._normalize(v) for k, v in value.items()}
        if isinstance(value, (list, tuple)):
            items = [self._normalize(v) for v in value]
            # ruamel's safe loader gives !!omap / !!pairs as a list of (key, value)
            if items and all(isinstance(v, list) and len(v) == 2 and isinstance(value[i], tuple)
                             for i, v in enumerate(items)):
                return {str(k): v for k, v in items}
            return items
        if isinstance(value, (set, frozenset)):
            return {str(v) for v in value}
        if isinstance(value, datetime) and value.tzinfo is not None:
            return value.astimezone(timezone.utc).replace(tzinfo=None)
        return value

    def _first_difference(self, want: Any, got: Any, path: str) -> str:
        if isinstance(want, dict) and isinstance(got, dict):
            if set(want) != set(got):
                return f"{path}: keys {list(want)} != {list(got)}"
            for key in want:
                difference = self._first_difference(want[key], got[key], f"{path}.{key}")
                if difference:
                    return difference
            return ""
        if isinstance(want, list) and isinstance(got, list):
            if len(want) != len(got):
                return f"{path}: length {len(want)} != {len(got)}"
            for i, (a, b) in enumerate(zip(want, got)):
                difference = self._first_difference(a, b, f"{path}[{i}]")
                if difference:
                    return difference
            return ""
        if want != got and not (want != want and got != got):
            return f"{path}: {want!r} != {got!r}"
        return ""
