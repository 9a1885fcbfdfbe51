"""
Tests for inference: the [1, max_len] forward pass, error wrapping and the
0.5 decision threshold.
"""

from __future__ import annotations

import sys

import numpy as np
import pytest

from conftest import FailingModel, FakeModel
from errors import ModelLoadError, ModelNotLoadedError, PredictionError
from inference import Classifier, classify_probability, load_model


def test_predict_feeds_single_row_batch(vocab, fake_model):
    clf = Classifier(fake_model, vocab)
    prob = clf.predict([5, 6, 1, 1, 0, 0])

    assert prob == pytest.approx(0.8)
    (batch,) = fake_model.calls
    assert batch.shape == (1, vocab.max_len)
    assert batch.dtype == np.int32
    assert batch.tolist() == [[5, 6, 1, 1, 0, 0]]


def test_predict_text_encodes_before_predicting(vocab, fake_model):
    clf = Classifier(fake_model, vocab)
    result = clf.predict_text("Great Offer!!! Click NOW")

    assert fake_model.calls[0].tolist() == [[5, 6, 1, 1, 0, 0]]
    assert result.is_fake is True
    assert result.label == "Suspicious posting"


def test_predict_returns_plain_float(vocab):
    clf = Classifier(FakeModel(0.25), vocab)
    prob = clf.predict([0] * vocab.max_len)
    assert type(prob) is float


def test_predict_without_model_raises(vocab):
    with pytest.raises(ModelNotLoadedError):
        Classifier(None, vocab).predict([0] * vocab.max_len)


def test_predict_text_without_vocabulary_raises(fake_model):
    with pytest.raises(ModelNotLoadedError):
        Classifier(fake_model, None).predict_text("job")
    assert fake_model.calls == []


def test_runtime_failure_is_reported_as_prediction_error(vocab):
    clf = Classifier(FailingModel(), vocab)
    with pytest.raises(PredictionError):
        clf.predict([0] * vocab.max_len)


def test_wrong_sequence_length_is_reported_as_prediction_error(vocab, fake_model):
    clf = Classifier(fake_model, vocab)
    with pytest.raises(PredictionError):
        clf.predict([1, 2, 3])
    assert fake_model.calls == []


def test_failed_prediction_leaves_classifier_usable(vocab):
    clf = Classifier(FailingModel(), vocab)
    with pytest.raises(PredictionError):
        clf.predict_text("great offer")

    clf.model = FakeModel(0.1)
    assert clf.predict_text("great offer").is_fake is False


def test_each_call_builds_a_fresh_input(vocab, fake_model):
    clf = Classifier(fake_model, vocab)
    clf.predict_text("great")
    clf.predict_text("offer")
    first, second = fake_model.calls
    assert first.tolist() == [[5, 0, 0, 0, 0, 0]]
    assert second.tolist() == [[6, 0, 0, 0, 0, 0]]


# ─── Verdict ───────────────────────────────────────────────────────────────────
def test_threshold_is_inclusive_on_fake_side():
    assert classify_probability(0.5).label == "Suspicious posting"
    assert classify_probability(0.5).is_fake is True
    assert classify_probability(0.4999).label == "Likely real posting"
    assert classify_probability(0.4999).is_fake is False


def test_verdict_presentation():
    fake = classify_probability(0.9234)
    real = classify_probability(0.05)
    assert fake.percent == "92.3 %"
    assert fake.badge == "badge-fake"
    assert real.badge == "badge-real"
    assert real.percent == "5.0 %"
    assert "fake" in fake.explanation
    assert "genuine" in real.explanation


def test_load_model_missing_artifact(tmp_path):
    pytest.importorskip("tensorflow")
    with pytest.raises(ModelLoadError):
        load_model(str(tmp_path / "missing.keras"))


def test_load_model_without_tensorflow_raises_import_error(tmp_path, monkeypatch):
    monkeypatch.setitem(sys.modules, "tensorflow", None)
    with pytest.raises(ImportError):
        load_model(str(tmp_path / "missing.keras"))
