"""
eda.py — EDA dashboard data
===========================
Loads the precomputed EDA summary (``data/eda_data.json``) and the zipped
training dataset, and turns both into plain series for the chart renderers.

The summary has been produced by several notebook versions over time, so each
section is accepted under a few spellings:

    {
      "class_counts": {"real": 17000, "fake": 1800}        # or {"0": .., "1": ..}
      "lengths": {"bins": [...], "real": [...], "fake": [...]},
      "missing": {"fields": [...], "real": [...], "fake": [...]},
      "text_length_boxplot": {"real": {"min": .., "q1": .., "median": .., "q3": .., "max": ..}, "fake": {...}},
      "wordcloud": {"real": [{"text": "engineer", "size": 40}, ...], "fake": [...]}
    }

A missing or unusable section is logged and skipped, it never fails the page.
"""

import json
import logging
import math
import re
import zipfile
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

import pandas as pd

from errors import EdaLoadError

logger = logging.getLogger(__name__)

TABULAR_MEMBER   = re.compile(r"\.csv$", re.IGNORECASE)
FRAUD_COLUMN     = "fraudulent"
FRAUD_VALUES     = {"1", "true"}
BOX_STATS        = ("min", "q1", "median", "q3", "max")

# Top-level section names, newest spelling first.
SECTION_KEYS = {
    "class_counts": ("class_counts", "class_distribution"),
    "lengths":      ("lengths", "text_length_distribution"),
    "missing":      ("missing", "missing_values"),
    "boxplot":      ("text_length_boxplot", "boxplot"),
    "wordcloud":    ("wordcloud", "wordclouds"),
}

# Field spellings inside a section.
LENGTH_FIELDS = {
    "bins": ("bins", "edges", "x"),
    "real": ("real", "real_counts", "real_hist"),
    "fake": ("fake", "fake_counts", "fake_hist"),
}
MISSING_FIELDS = {
    "fields": ("fields", "columns"),
    "real":   ("real", "real_share"),
    "fake":   ("fake", "fake_share"),
}


# ─── Canonical Sections ────────────────────────────────────────────────────────
@dataclass(frozen=True)
class ClassCounts:
    real: float = 0
    fake: float = 0


@dataclass(frozen=True)
class LengthHistogram:
    bins: List[float]
    real: List[float]
    fake: List[float]


@dataclass(frozen=True)
class MissingShares:
    fields: List[str]
    real:   List[float]
    fake:   List[float]


@dataclass(frozen=True)
class BoxStats:
    min:    float
    q1:     float
    median: float
    q3:     float
    max:    float


@dataclass(frozen=True)
class LengthBoxplot:
    real: Optional[BoxStats] = None
    fake: Optional[BoxStats] = None


@dataclass(frozen=True)
class WordCloudWords:
    real: List[Tuple[str, float]] = field(default_factory=list)
    fake: List[Tuple[str, float]] = field(default_factory=list)


@dataclass(frozen=True)
class EdaSummary:
    class_counts: Optional[ClassCounts]     = None
    lengths:      Optional[LengthHistogram] = None
    missing:      Optional[MissingShares]   = None
    boxplot:      Optional[LengthBoxplot]   = None
    wordcloud:    Optional[WordCloudWords]  = None


# ─── Helpers ───────────────────────────────────────────────────────────────────
def _to_number(value) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return math.nan


def _count_or_zero(value) -> float:
    return 0.0 if value is None else _to_number(value)


def _resolve_series(src: dict, spellings: Tuple[str, ...]) -> list:
    """First spelling that holds a list; an absent series is empty."""
    for key in spellings:
        value = src.get(key)
        if isinstance(value, list):
            return value
    return []


def _section(doc: dict, name: str):
    for key in SECTION_KEYS[name]:
        if key in doc and doc[key] is not None:
            return doc[key]
    return None


# ─── Class Counts ──────────────────────────────────────────────────────────────
class ClassCountsSchema(Enum):
    NAMED      = "named"       # {"real": .., "fake": ..}
    LABELLED   = "labelled"    # {"0": .., "1": ..}
    POSITIONAL = "positional"  # anything else: first two values


def detect_class_counts_schema(src: dict) -> ClassCountsSchema:
    if "real" in src or "fake" in src:
        return ClassCountsSchema.NAMED
    if "0" in src or "1" in src:
        return ClassCountsSchema.LABELLED
    return ClassCountsSchema.POSITIONAL


def _named_counts(src: dict) -> ClassCounts:
    return ClassCounts(real=_count_or_zero(src.get("real")), fake=_count_or_zero(src.get("fake")))


def _labelled_counts(src: dict) -> ClassCounts:
    return ClassCounts(real=_count_or_zero(src.get("0")), fake=_count_or_zero(src.get("1")))


def _positional_counts(src: dict) -> ClassCounts:
    values = list(src.values())
    if len(values) < 2:
        return ClassCounts()
    return ClassCounts(real=_to_number(values[0]), fake=_to_number(values[1]))


_CLASS_COUNT_NORMALIZERS = {
    ClassCountsSchema.NAMED:      _named_counts,
    ClassCountsSchema.LABELLED:   _labelled_counts,
    ClassCountsSchema.POSITIONAL: _positional_counts,
}


def normalize_class_counts(src) -> Optional[ClassCounts]:
    if not isinstance(src, dict):
        logger.warning("EDA: class_counts is not an object, skipped")
        return None
    schema = detect_class_counts_schema(src)
    logger.debug("EDA: class_counts schema=%s", schema.value)
    return _CLASS_COUNT_NORMALIZERS[schema](src)


# ─── Length Histogram ──────────────────────────────────────────────────────────
def normalize_lengths(src) -> Optional[LengthHistogram]:
    if not isinstance(src, dict):
        logger.warning("EDA: lengths is not an object, skipped")
        return None

    bins = [_to_number(v) for v in _resolve_series(src, LENGTH_FIELDS["bins"])]
    real = [_to_number(v) for v in _resolve_series(src, LENGTH_FIELDS["real"])]
    fake = [_to_number(v) for v in _resolve_series(src, LENGTH_FIELDS["fake"])]

    usable = min(len(bins), len(real), len(fake))
    if not usable:
        logger.warning(
            "Length distribution: no usable data (bins=%d real=%d fake=%d)",
            len(bins), len(real), len(fake),
        )
        return None
    return LengthHistogram(bins=bins[:usable], real=real[:usable], fake=fake[:usable])


# ─── Missing Values ────────────────────────────────────────────────────────────
def normalize_missing(src) -> Optional[MissingShares]:
    if not isinstance(src, dict):
        logger.warning("EDA: missing is not an object, skipped")
        return None
    return MissingShares(
        fields=[str(f) for f in _resolve_series(src, MISSING_FIELDS["fields"])],
        real=[_to_number(v) for v in _resolve_series(src, MISSING_FIELDS["real"])],
        fake=[_to_number(v) for v in _resolve_series(src, MISSING_FIELDS["fake"])],
    )


# ─── Boxplot ───────────────────────────────────────────────────────────────────
def _box_stats(src) -> Optional[BoxStats]:
    if not isinstance(src, dict):
        return None
    values = [src.get(name) for name in BOX_STATS]
    if any(isinstance(v, bool) or not isinstance(v, (int, float)) for v in values):
        return None
    return BoxStats(*(float(v) for v in values))


def normalize_boxplot(src) -> Optional[LengthBoxplot]:
    if not isinstance(src, dict):
        logger.warning("EDA: text_length_boxplot is not an object, skipped")
        return None
    box = LengthBoxplot(real=_box_stats(src.get("real")), fake=_box_stats(src.get("fake")))
    if box.real is None and box.fake is None:
        logger.warning("EDA: text_length_boxplot has no complete statistics, skipped")
        return None
    return box


# ─── Word Clouds ───────────────────────────────────────────────────────────────
def _word_weights(words) -> List[Tuple[str, float]]:
    if not isinstance(words, list):
        return []
    out = []
    for item in words:
        if not isinstance(item, dict):
            continue
        text = item.get("text") or item.get("word")
        if not text:
            continue
        weight = item.get("size") or item.get("freq") or item.get("count") or 1
        out.append((str(text), _to_number(weight)))
    return out


def normalize_wordcloud(src) -> Optional[WordCloudWords]:
    if not isinstance(src, dict):
        logger.warning("EDA: wordcloud is not an object, skipped")
        return None
    return WordCloudWords(real=_word_weights(src.get("real")), fake=_word_weights(src.get("fake")))


# ─── Summary ───────────────────────────────────────────────────────────────────
_SECTION_NORMALIZERS = {
    "class_counts": normalize_class_counts,
    "lengths":      normalize_lengths,
    "missing":      normalize_missing,
    "boxplot":      normalize_boxplot,
    "wordcloud":    normalize_wordcloud,
}


def normalize_summary(doc) -> EdaSummary:
    """Map a loosely typed EDA document onto EdaSummary; absent sections stay None."""
    if not isinstance(doc, dict):
        logger.warning("EDA: empty or invalid data (%s)", type(doc).__name__)
        return EdaSummary()

    logger.info("EDA JSON keys: %s", list(doc.keys()))
    sections = {}
    for name, normalize in _SECTION_NORMALIZERS.items():
        src = _section(doc, name)
        if src is None:
            logger.warning("EDA: no %s in JSON", SECTION_KEYS[name][0])
            continue
        sections[name] = normalize(src)
    return EdaSummary(**sections)


def load_eda_summary(path: str):
    try:
        with open(path, encoding="utf-8") as fh:
            return json.load(fh)
    except (OSError, ValueError) as e:
        raise EdaLoadError("summary", f"Cannot load {path}: {e}") from e


# ─── Dataset Archive ───────────────────────────────────────────────────────────
@dataclass(frozen=True)
class DatasetInfo:
    name:       Optional[str]
    rows:       int
    fake_count: Optional[int] = None

    @property
    def real_count(self) -> Optional[int]:
        if self.fake_count is None:
            return None
        return self.rows - self.fake_count

    def describe(self) -> str:
        text = f"Rows in {self.name or 'dataset'}: {self.rows}"
        if self.fake_count is not None:
            text += f" | Fraudulent = {self.fake_count}, Real = {self.real_count}"
        return text


def _count_fraudulent(df: pd.DataFrame) -> Optional[int]:
    if FRAUD_COLUMN not in df.columns:
        return None
    return int(df[FRAUD_COLUMN].isin(FRAUD_VALUES).sum())


def load_dataset_info(path: str) -> DatasetInfo:
    """Row count (and fraudulent count) of the first CSV inside the archive."""
    try:
        with zipfile.ZipFile(path) as zf:
            member = next((n for n in zf.namelist() if TABULAR_MEMBER.search(n)), None)
            if member is None:
                logger.warning("EDA: no CSV file in %s", path)
                return DatasetInfo(name=None, rows=0)

            with zf.open(member) as fh:
                try:
                    # raw strings: "1"/"true" are matched as written
                    df = pd.read_csv(fh, dtype=str, keep_default_na=False, skip_blank_lines=True)
                except pd.errors.EmptyDataError:
                    return DatasetInfo(name=member, rows=0)
    except (OSError, zipfile.BadZipFile, pd.errors.ParserError, UnicodeDecodeError) as e:
        raise EdaLoadError("dataset", f"Cannot load {path}: {e}") from e

    info = DatasetInfo(name=member, rows=len(df), fake_count=_count_fraudulent(df))
    logger.info("EDA: %s", info.describe())
    return info


# ─── Loader ────────────────────────────────────────────────────────────────────
@dataclass
class EdaReport:
    summary: EdaSummary            = field(default_factory=EdaSummary)
    dataset: Optional[DatasetInfo] = None
    errors:  Dict[str, str]        = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors


def load_eda(summary_path: str, archive_path: str) -> EdaReport:
    """
    Load the summary and the archive side by side.

    Each source fails on its own: an unreadable archive still leaves the
    summary charts, and the other way round.
    """
    report = EdaReport()
    with ThreadPoolExecutor(max_workers=2) as pool:
        summary_future = pool.submit(load_eda_summary, summary_path)
        dataset_future = pool.submit(load_dataset_info, archive_path)

        try:
            report.summary = normalize_summary(summary_future.result())
        except Exception as e:
            logger.exception("EDA error (summary)")
            report.errors["summary"] = str(e)

        try:
            report.dataset = dataset_future.result()
        except Exception as e:
            logger.exception("EDA error (dataset)")
            report.errors["dataset"] = str(e)
    return report
