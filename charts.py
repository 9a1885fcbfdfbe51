"""
charts.py — EDA chart rendering
===============================
Server-side renderers for the EDA tab. Every renderer draws onto a named
"canvas" (the ``<img>`` slot on the page) and returns a PNG data URI, or
``None`` when there is nothing to draw.

A canvas holds at most one live figure: drawing again closes the previous one.
"""

import base64
import io
import logging
import math
from typing import Dict, List, Optional, Tuple

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np
from matplotlib.ticker import PercentFormatter
from wordcloud import WordCloud

from eda import ClassCounts, EdaSummary, LengthBoxplot, LengthHistogram, MissingShares

logger = logging.getLogger(__name__)

# ─── Theme ─────────────────────────────────────────────────────────────────────
TICK_COLOR   = "#9ca3af"
LEGEND_COLOR = "#e5e7eb"
GRID_COLOR   = (55 / 255, 65 / 255, 81 / 255, 0.6)
REAL_COLOR   = (59 / 255, 130 / 255, 246 / 255, 0.7)
FAKE_COLOR   = (248 / 255, 113 / 255, 113 / 255, 0.7)
BOX_COLOR    = (56 / 255, 189 / 255, 248 / 255, 0.9)
MEDIAN_COLOR = "#f97373"
WORD_COLOR   = "#f9fafb"

MAX_X_TICKS      = 10
WORD_FONT_RANGE  = (12, 42)
WORDCLOUD_SIZE   = (300, 220)

# Canvas ids, shared with templates/index.html
CLASS_CANVAS    = "class-distribution-chart"
LENGTH_CANVAS   = "length-distribution-chart"
MISSING_CANVAS  = "missing-values-chart"
BOXPLOT_CANVAS  = "boxplot-canvas"
REAL_CLOUD      = "wordcloud-real"
FAKE_CLOUD      = "wordcloud-fake"


# ─── Registry ──────────────────────────────────────────────────────────────────
class ChartRegistry:
    """Keeps the current figure of every canvas so a redraw replaces it."""

    def __init__(self):
        self._figures: Dict[str, plt.Figure] = {}

    def new_figure(self, canvas_id: str, figsize=(6, 3.5)):
        self.destroy(canvas_id)
        fig, ax = plt.subplots(figsize=figsize)
        fig.patch.set_alpha(0)
        ax.set_facecolor("none")
        self._figures[canvas_id] = fig
        return fig, ax

    def destroy(self, canvas_id: str) -> None:
        fig = self._figures.pop(canvas_id, None)
        if fig is not None:
            plt.close(fig)

    def destroy_all(self) -> None:
        for canvas_id in list(self._figures):
            self.destroy(canvas_id)

    def __contains__(self, canvas_id: str) -> bool:
        return canvas_id in self._figures

    def __len__(self) -> int:
        return len(self._figures)


def _to_data_uri(fig) -> str:
    buf = io.BytesIO()
    fig.savefig(buf, format="png", dpi=100, bbox_inches="tight", transparent=True)
    return "data:image/png;base64," + base64.b64encode(buf.getvalue()).decode("ascii")


def _style_axes(ax, grid_x: bool = False) -> None:
    ax.tick_params(colors=TICK_COLOR)
    for spine in ax.spines.values():
        spine.set_color(GRID_COLOR)
    ax.grid(axis="y", color=GRID_COLOR)
    ax.grid(axis="x", visible=grid_x)
    ax.set_axisbelow(True)


def _legend(ax) -> None:
    legend = ax.legend(frameon=False)
    for text in legend.get_texts():
        text.set_color(LEGEND_COLOR)


def _bin_label(value: float) -> str:
    return "NaN" if math.isnan(value) else f"{value:g}"


# ─── Class Distribution ────────────────────────────────────────────────────────
def render_class_distribution(registry: ChartRegistry, counts: ClassCounts) -> str:
    fig, ax = registry.new_figure(CLASS_CANVAS)
    ax.bar(["Real", "Fake"], [counts.real, counts.fake], color=[REAL_COLOR, FAKE_COLOR])
    ax.set_ylabel("Count", color=TICK_COLOR)
    _style_axes(ax)
    return _to_data_uri(fig)


# ─── Length Distribution ───────────────────────────────────────────────────────
def render_length_distribution(registry: ChartRegistry, hist: LengthHistogram) -> Optional[str]:
    if not hist.bins:
        logger.warning("Length distribution: nothing to draw")
        return None

    fig, ax = registry.new_figure(LENGTH_CANVAS, figsize=(8, 3.5))
    x = np.arange(len(hist.bins))
    width = 0.4
    ax.bar(x - width / 2, hist.real, width, label="Real", color=REAL_COLOR,
           edgecolor=(191 / 255, 219 / 255, 254 / 255, 1), linewidth=1)
    ax.bar(x + width / 2, hist.fake, width, label="Fake", color=FAKE_COLOR,
           edgecolor=(254 / 255, 202 / 255, 202 / 255, 1), linewidth=1)

    step = max(1, math.ceil(len(x) / MAX_X_TICKS))
    ax.set_xticks(x[::step])
    ax.set_xticklabels([_bin_label(b) for b in hist.bins[::step]], rotation=0)
    ax.set_xlabel("Text length bin", color=TICK_COLOR)
    ax.set_ylabel("Count", color=TICK_COLOR)
    ax.set_ylim(bottom=0)
    _style_axes(ax)
    _legend(ax)
    return _to_data_uri(fig)


# ─── Missing Values ────────────────────────────────────────────────────────────
def render_missing_values(registry: ChartRegistry, missing: MissingShares) -> str:
    fig, ax = registry.new_figure(MISSING_CANVAS, figsize=(8, 3.5))
    x = np.arange(len(missing.fields))
    width = 0.4
    # series may be shorter than the field list; missing bars are simply not drawn
    ax.bar(x[:len(missing.real)] - width / 2, missing.real[:len(x)], width,
           label="Real", color=REAL_COLOR)
    ax.bar(x[:len(missing.fake)] + width / 2, missing.fake[:len(x)], width,
           label="Fake", color=FAKE_COLOR)
    ax.set_xticks(x)
    ax.set_xticklabels(missing.fields, rotation=45, ha="right")

    values = [v for v in missing.real + missing.fake if not math.isnan(v)]
    if values and max(values) <= 1:
        ax.yaxis.set_major_formatter(PercentFormatter(xmax=1))
    _style_axes(ax)
    _legend(ax)
    return _to_data_uri(fig)


# ─── Boxplot ───────────────────────────────────────────────────────────────────
def render_boxplot(registry: ChartRegistry, box: LengthBoxplot) -> Optional[str]:
    stats = []
    for label, s in (("Real", box.real), ("Fake", box.fake)):
        if s is None:
            continue
        stats.append({
            "label": label, "whislo": s.min, "q1": s.q1,
            "med": s.median, "q3": s.q3, "whishi": s.max, "fliers": [],
        })
    if not stats:
        return None

    fig, ax = registry.new_figure(BOXPLOT_CANVAS, figsize=(4, 3.5))
    ax.bxp(
        stats,
        showfliers=False,
        patch_artist=True,
        boxprops={"facecolor": (56 / 255, 189 / 255, 248 / 255, 0.15), "edgecolor": BOX_COLOR},
        whiskerprops={"color": "#60a5fa", "linewidth": 2},
        capprops={"color": "#60a5fa", "linewidth": 2},
        medianprops={"color": MEDIAN_COLOR, "linewidth": 2},
    )
    ax.set_ylabel("Text length", color=TICK_COLOR)
    _style_axes(ax)
    return _to_data_uri(fig)


# ─── Word Clouds ───────────────────────────────────────────────────────────────
def _word_color(*args, **kwargs) -> str:
    return WORD_COLOR


def layout_word_cloud(words: List[Tuple[str, float]], size=WORDCLOUD_SIZE) -> Optional[WordCloud]:
    """Place the words; drawing is a separate step (draw_word_cloud)."""
    frequencies = {}
    for text, weight in words:
        if math.isnan(weight) or weight <= 0:
            continue
        frequencies[text] = weight
    if not frequencies:
        return None

    width, height = size
    cloud = WordCloud(
        width=width,
        height=height,
        min_font_size=WORD_FONT_RANGE[0],
        max_font_size=WORD_FONT_RANGE[1],
        prefer_horizontal=0.8,
        relative_scaling=1.0,
        margin=3,
        mode="RGBA",
        background_color=None,
        color_func=_word_color,
    )
    return cloud.generate_from_frequencies(frequencies)


def draw_word_cloud(layout: WordCloud) -> str:
    buf = io.BytesIO()
    layout.to_image().save(buf, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buf.getvalue()).decode("ascii")


def render_word_cloud(words: List[Tuple[str, float]]) -> Optional[str]:
    layout = layout_word_cloud(words)
    if layout is None:
        return None
    return draw_word_cloud(layout)


# ─── Dashboard ─────────────────────────────────────────────────────────────────
def render_dashboard(registry: ChartRegistry, summary: EdaSummary) -> Dict[str, str]:
    """Draw every section the summary provides; returns canvas id → data URI."""
    images: Dict[str, Optional[str]] = {}
    if summary.class_counts is not None:
        images[CLASS_CANVAS] = render_class_distribution(registry, summary.class_counts)
    if summary.lengths is not None:
        images[LENGTH_CANVAS] = render_length_distribution(registry, summary.lengths)
    if summary.missing is not None:
        images[MISSING_CANVAS] = render_missing_values(registry, summary.missing)
    if summary.boxplot is not None:
        images[BOXPLOT_CANVAS] = render_boxplot(registry, summary.boxplot)
    if summary.wordcloud is not None:
        images[REAL_CLOUD] = render_word_cloud(summary.wordcloud.real)
        images[FAKE_CLOUD] = render_word_cloud(summary.wordcloud.fake)
    return {k: v for k, v in images.items() if v is not None}
