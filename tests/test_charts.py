"""
Tests for the EDA renderers. Images are only checked for being PNG data URIs;
layout details belong to matplotlib and wordcloud.
"""

from __future__ import annotations

import matplotlib.pyplot as plt
import pytest

from charts import (
    BOXPLOT_CANVAS,
    CLASS_CANVAS,
    FAKE_CLOUD,
    LENGTH_CANVAS,
    MISSING_CANVAS,
    REAL_CLOUD,
    ChartRegistry,
    draw_word_cloud,
    layout_word_cloud,
    render_class_distribution,
    render_dashboard,
    render_length_distribution,
)
from conftest import EDA_DOCUMENT
from eda import ClassCounts, EdaSummary, LengthHistogram, normalize_summary

PNG_URI = "data:image/png;base64,"


@pytest.fixture
def registry():
    reg = ChartRegistry()
    yield reg
    reg.destroy_all()


def test_redraw_replaces_previous_figure(registry):
    first, _ = registry.new_figure(CLASS_CANVAS)
    second, _ = registry.new_figure(CLASS_CANVAS)

    assert not plt.fignum_exists(first.number)
    assert plt.fignum_exists(second.number)
    assert len(registry) == 1


def test_repeated_render_keeps_one_figure_per_canvas(registry):
    for _ in range(3):
        render_class_distribution(registry, ClassCounts(real=900, fake=100))
    assert len(registry) == 1
    assert CLASS_CANVAS in registry


def test_class_distribution_renders_png(registry):
    uri = render_class_distribution(registry, ClassCounts(real=900, fake=100))
    assert uri.startswith(PNG_URI)


def test_length_distribution_with_nothing_to_draw(registry):
    assert render_length_distribution(registry, LengthHistogram(bins=[], real=[], fake=[])) is None
    assert LENGTH_CANVAS not in registry


def test_render_dashboard_draws_every_provided_section(registry):
    images = render_dashboard(registry, normalize_summary(EDA_DOCUMENT))
    assert set(images) == {CLASS_CANVAS, LENGTH_CANVAS, MISSING_CANVAS, BOXPLOT_CANVAS, REAL_CLOUD, FAKE_CLOUD}
    assert all(uri.startswith(PNG_URI) for uri in images.values())


def test_render_dashboard_empty_summary(registry):
    assert render_dashboard(registry, EdaSummary()) == {}
    assert len(registry) == 0


def test_word_cloud_layout_then_draw():
    layout = layout_word_cloud([("engineer", 40.0), ("team", 25.0), ("salary", 10.0)])
    assert layout is not None
    assert {entry[0][0] for entry in layout.layout_} <= {"engineer", "team", "salary"}
    assert draw_word_cloud(layout).startswith(PNG_URI)


@pytest.mark.parametrize("words", [[], [("zero", 0.0)], [("nan", float("nan"))]])
def test_word_cloud_without_weights(words):
    assert layout_word_cloud(words) is None
