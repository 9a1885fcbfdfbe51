"""
Pytest fixtures for JobCheck tests. The Keras model is replaced by a small
stand-in with the same ``predict(x, verbose=0)`` contract. Encoding still goes
through Keras ``pad_sequences``, so TensorFlow must be installed.
"""

from __future__ import annotations

import json
import zipfile

import numpy as np
import pytest

from config import Settings
from text_pipeline import VocabularyConfig


class FakeModel:
    """Keras-like model returning a fixed probability and recording its inputs."""

    def __init__(self, prob: float = 0.75):
        self.prob = prob
        self.calls: list[np.ndarray] = []

    def predict(self, x, verbose=0):
        self.calls.append(np.array(x))
        return np.array([[self.prob]], dtype=np.float32)


class FailingModel:
    def predict(self, x, verbose=0):
        raise RuntimeError("OOM when allocating tensor")


@pytest.fixture
def vocab() -> VocabularyConfig:
    return VocabularyConfig(
        word_index={"great": 5, "offer": 6, "job": 2, "remote": 9, "rare": 10, "stale": 42},
        max_len=6,
        vocab_size=10,
        oov_index=1,
    )


@pytest.fixture
def fake_model() -> FakeModel:
    return FakeModel(0.8)


EDA_DOCUMENT = {
    "class_counts": {"0": 900, "1": 100},
    "lengths": {"edges": [100, 200, 300], "real_hist": [50, 30, 10], "fake_hist": [5, 3, 1]},
    "missing": {"columns": ["salary_range", "benefits"], "real_share": [0.8, 0.4], "fake_share": [0.7, 0.5]},
    "text_length_boxplot": {
        "real": {"min": 20, "q1": 120, "median": 230, "q3": 400, "max": 1200},
        "fake": {"min": 10, "q1": 80, "median": 160, "q3": 300, "max": 900},
    },
    "wordcloud": {
        "real": [{"text": "engineer", "size": 40}, {"text": "team", "size": 25}],
        "fake": [{"word": "click", "freq": 50}, {"word": "money", "count": 30}],
    },
}

CSV_TEXT = "title,fraudulent\nData Analyst,0\nEasy money,1\n\nWork from home,true\nCashier,0\n"


def write_zip(path, members: dict) -> str:
    with zipfile.ZipFile(path, "w") as zf:
        for name, content in members.items():
            zf.writestr(name, content)
    return str(path)


@pytest.fixture
def artifacts(tmp_path) -> Settings:
    """Tokenizer config, EDA summary and zipped dataset on disk; model path is unused."""
    config_path = tmp_path / "frontend_config.json"
    config_path.write_text(json.dumps({
        "word_index": {"great": 5, "offer": 6},
        "max_len": 6,
        "vocab_size": 10,
        "oov_index": 1,
    }), encoding="utf-8")

    summary_path = tmp_path / "eda_data.json"
    summary_path.write_text(json.dumps(EDA_DOCUMENT), encoding="utf-8")

    archive_path = write_zip(tmp_path / "combined_dataset_clean.zip",
                             {"combined_dataset_clean.csv": CSV_TEXT})

    return Settings(
        model_path=str(tmp_path / "model.keras"),
        tokenizer_config_path=str(config_path),
        eda_summary_path=str(summary_path),
        eda_archive_path=archive_path,
        secret_key="test",
    )
