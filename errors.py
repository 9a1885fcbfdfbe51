"""
errors.py — JobCheck exceptions
===============================
Initialization failures (vocabulary, model) are fatal for the classifier
panel; prediction failures are per-submission; EDA failures only degrade the
dashboard panel they belong to.
"""


class JobCheckError(Exception):
    """Base class for all JobCheck errors."""


# ─── Classifier initialization (fatal) ─────────────────────────────────────────
class VocabularyLoadError(JobCheckError):
    """Tokenizer configuration could not be read or parsed."""


class ModelLoadError(JobCheckError):
    """Model artifact could not be loaded by the runtime."""


# ─── Per submission ────────────────────────────────────────────────────────────
class ModelNotLoadedError(JobCheckError):
    """Prediction requested before the model and vocabulary were ready."""


class PredictionError(JobCheckError):
    """Tensor construction or the forward pass failed."""


# ─── EDA ───────────────────────────────────────────────────────────────────────
class EdaLoadError(JobCheckError):
    """An EDA data source could not be loaded."""

    def __init__(self, source: str, message: str):
        super().__init__(f"{source}: {message}")
        self.source = source
