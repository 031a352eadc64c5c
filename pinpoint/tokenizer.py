"""Text to Kokoro token IDs via a phonemiser and a symbol vocabulary."""

from __future__ import annotations

import json
import logging
import os
import threading
from typing import Any, Callable

log = logging.getLogger(__name__)

MAX_TOKENS = 512

# The phonemiser is treated as non-reentrant, as the speech library behind it is.
_phonemizer_lock = threading.Lock()

Phonemizer = Callable[[str], str]


class TokenizerError(Exception):
    """The vocabulary could not be loaded or no phonemiser is available."""


def _to_int(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return 0


def load_vocab(path: str | os.PathLike[str]) -> dict[str, int]:
    """Read a symbol-to-ID vocabulary from a JSON file.

    Accepts either a flat ``{"sym": id}`` object or the fast-tokenizer
    layout ``{"model": {"vocab": {"sym": id}}}``.
    """
    try:
        with open(path, "rb") as fh:
            raw = fh.read()
    except OSError:
        raise TokenizerError(f"Cannot open tokens file: {os.fspath(path)}") from None
    try:
        root = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise TokenizerError(f"Failed to parse tokenizer.json: {exc}") from None

    if not isinstance(root, dict):
        root = {}
    if "model" in root:
        model = root["model"] if isinstance(root["model"], dict) else {}
        vocab_obj = model.get("vocab", {})
        if not isinstance(vocab_obj, dict):
            vocab_obj = {}
    else:
        vocab_obj = root

    if not vocab_obj:
        raise TokenizerError("tokenizer.json: vocab is empty or not found")

    vocab = {str(sym): _to_int(token_id) for sym, token_id in vocab_obj.items()}
    log.debug("vocab loaded: %d entries", len(vocab))
    return vocab


class PhonemeTokenizer:
    """Converts text to token IDs: text -> phonemes (IPA) -> IDs.

    *phonemizer* maps text to an IPA phoneme string.
    """

    max_tokens = MAX_TOKENS

    def __init__(self, phonemizer: Phonemizer | None = None) -> None:
        self._phonemizer = phonemizer
        self._vocab: dict[str, int] = {}
        self._initialised = False

    @property
    def initialised(self) -> bool:
        return self._initialised

    @property
    def vocab(self) -> dict[str, int]:
        return dict(self._vocab)

    def initialise(self, tokens_json_path: str | os.PathLike[str]) -> None:
        """Load the vocabulary; raise TokenizerError on failure."""
        self._initialised = False
        self._vocab = load_vocab(tokens_json_path)
        if self._phonemizer is None:
            raise TokenizerError("No phonemizer available")
        self._initialised = True

    def tokenise(self, text: str) -> list[int]:
        """Return token IDs for *text*, or an empty list when nothing can be produced."""
        if not self._initialised or self._phonemizer is None:
            return []
        with _phonemizer_lock:
            phonemes = self._phonemizer(text)
        phonemes = (phonemes or "").strip()
        log.debug("raw phoneme trace: %r", phonemes)
        if not phonemes:
            return []
        return self.phonemes_to_ids(phonemes)

    def phonemes_to_ids(self, phonemes: str) -> list[int]:
        """Greedily match two-, then one-code-point symbols; unknown ones are skipped."""
        ids: list[int] = []
        pos = 0
        length = len(phonemes)
        while pos < length and len(ids) < self.max_tokens:
            for width in (2, 1):
                sym = phonemes[pos:pos + width]
                if len(sym) == width and sym in self._vocab:
                    ids.append(self._vocab[sym])
                    pos += width
                    break
            else:
                pos += 1
        log.debug("%d token IDs for: %r", len(ids), phonemes)
        return ids