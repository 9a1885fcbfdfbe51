"""
text_pipeline.py — Tokenizer config, normalization and sequence encoding
=======================================================================
Reproduces the Keras tokenizer used at training time:

    form fields → raw text → normalize_text → text_to_sequence → [max_len] ints

The vocabulary comes from ``frontend_config.json`` exported next to the model:

    {"word_index": {"the": 2, ...}, "max_len": 200, "vocab_size": 20000, "oov_index": 1}

Id 0 is the padding value and is never a real token.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional

from errors import VocabularyLoadError

logger = logging.getLogger(__name__)

DEFAULT_MAX_LEN   = 200
DEFAULT_OOV_INDEX = 1
PAD_VALUE         = 0

# Order matters: it is the order the training text was concatenated in.
FORM_FIELDS = [
    "title",
    "company_profile",
    "description",
    "requirements",
    "benefits",
    "location",
    "salary_range",
    "employment_type",
    "industry",
]

_NON_ALNUM  = re.compile(r"[^a-z0-9]+")
_WHITESPACE = re.compile(r"\s+")


# ─── Vocabulary ────────────────────────────────────────────────────────────────
@dataclass(frozen=True)
class VocabularyConfig:
    word_index: Mapping[str, int] = field(default_factory=dict)
    max_len:    int               = DEFAULT_MAX_LEN
    vocab_size: Optional[int]     = None
    oov_index:  int               = DEFAULT_OOV_INDEX

    def __post_init__(self):
        # read-only view so the table cannot change after startup
        object.__setattr__(self, "word_index", MappingProxyType(dict(self.word_index)))


def _is_int(value) -> bool:
    # bool is an int subclass; true/false in the JSON is not a usable number
    return isinstance(value, int) and not isinstance(value, bool)


def parse_vocabulary(document) -> VocabularyConfig:
    """Build a VocabularyConfig from an already decoded configuration document."""
    if not isinstance(document, dict):
        raise VocabularyLoadError(
            f"Tokenizer config must be a JSON object, got {type(document).__name__}"
        )

    oov_index = document.get("oov_index")
    if not _is_int(oov_index):
        oov_index = DEFAULT_OOV_INDEX

    word_index = document.get("word_index") or {}
    if not isinstance(word_index, dict) or not all(_is_int(i) for i in word_index.values()):
        raise VocabularyLoadError("word_index must map words to integer ids")

    max_len = document.get("max_len") or DEFAULT_MAX_LEN
    if not _is_int(max_len) or max_len < 0:
        raise VocabularyLoadError(f"max_len must be a non-negative integer, got {max_len!r}")

    vocab_size = document.get("vocab_size") or None
    if vocab_size is not None and not _is_int(vocab_size):
        raise VocabularyLoadError(f"vocab_size must be an integer, got {vocab_size!r}")

    return VocabularyConfig(
        word_index=word_index,
        max_len=max_len,
        vocab_size=vocab_size,
        oov_index=oov_index,
    )


def load_vocabulary(path: str) -> VocabularyConfig:
    """
    Read the tokenizer configuration from disk.

    Any failure is fatal for inference: a VocabularyLoadError is raised and
    nothing is returned, there is no degraded vocabulary.
    """
    try:
        with open(path, encoding="utf-8") as fh:
            document = json.load(fh)
    except (OSError, ValueError) as e:
        raise VocabularyLoadError(f"Cannot load {path}: {e}") from e

    vocab = parse_vocabulary(document)
    logger.info(
        "Tokenizer loaded: words=%d max_len=%d vocab_size=%s oov_index=%d",
        len(vocab.word_index), vocab.max_len, vocab.vocab_size, vocab.oov_index,
    )
    return vocab


# ─── Text Preprocessing ────────────────────────────────────────────────────────
def build_full_text(form: Mapping[str, str]) -> str:
    """Join the known form fields, in training order, into one string."""
    parts = [(form.get(name) or "").strip() for name in FORM_FIELDS]
    return _WHITESPACE.sub(" ", " ".join(parts)).strip()


def normalize_text(text: str) -> str:
    text = str(text).lower()
    text = _NON_ALNUM.sub(" ", text)
    text = _WHITESPACE.sub(" ", text).strip()
    return text


def _pad_sequences(*args, **kwargs):
    # TensorFlow is imported on first encode, not at module import
    from tensorflow.keras.utils import pad_sequences
    return pad_sequences(*args, **kwargs)


def text_to_sequence(text: str, vocab: VocabularyConfig) -> list:
    norm = normalize_text(text)
    if not norm:
        return [PAD_VALUE] * vocab.max_len

    seq = []
    for token in norm.split(" "):
        idx = vocab.word_index.get(token)
        # id 0 is routed to OOV too, it is reserved for padding
        if not idx or (vocab.vocab_size and idx >= vocab.vocab_size):
            idx = vocab.oov_index
        seq.append(idx)

    return _pad_sequences(
        [seq], maxlen=vocab.max_len, padding="post", truncating="post", value=PAD_VALUE
    )[0].tolist()
