"""
inference.py — Model loading and prediction
===========================================
Wraps the trained Keras classifier. One call to ``Classifier.predict`` is one
forward pass on a ``[1, max_len]`` batch and returns P(fake).
"""

import logging
import os
from dataclasses import dataclass

import numpy as np

from errors import ModelLoadError, ModelNotLoadedError, PredictionError
from text_pipeline import VocabularyConfig, text_to_sequence

logger = logging.getLogger(__name__)

FAKE_THRESHOLD = 0.5


# ─── Model Loading ─────────────────────────────────────────────────────────────
def load_model(path: str):
    """
    Load the Keras model artifact. TensorFlow is imported here, not at module
    import; a missing runtime raises ImportError rather than ModelLoadError.
    """
    os.environ.setdefault("TF_CPP_MIN_LOG_LEVEL", "2")
    import tensorflow as tf

    try:
        model = tf.keras.models.load_model(path, compile=False)
    except Exception as e:
        raise ModelLoadError(f"Cannot load model from {path}: {e}") from e
    logger.info("Model loaded from %s", path)
    return model


# ─── Verdict ───────────────────────────────────────────────────────────────────
@dataclass(frozen=True)
class PredictionResult:
    probability: float
    is_fake:     bool
    label:       str
    badge:       str
    explanation: str

    @property
    def percent(self) -> str:
        return f"{self.probability * 100:.1f} %"


def classify_probability(prob: float) -> PredictionResult:
    # inclusive on the fake side: exactly 0.5 is suspicious
    is_fake = prob >= FAKE_THRESHOLD
    if is_fake:
        return PredictionResult(
            probability=prob,
            is_fake=True,
            label="Suspicious posting",
            badge="badge-fake",
            explanation="The model rates this posting as potentially fake. Be careful: "
                        "check the contacts, the domain, any payment requirements "
                        "and suspicious links.",
        )
    return PredictionResult(
        probability=prob,
        is_fake=False,
        label="Likely real posting",
        badge="badge-real",
        explanation="The model rates this posting as most likely genuine. Still, "
                    "always verify the details yourself: the domain, the contacts "
                    "and whether the conditions are realistic.",
    )


# ─── Classifier ────────────────────────────────────────────────────────────────
class Classifier:
    """Loaded model plus the vocabulary it was trained with."""

    def __init__(self, model, vocab: VocabularyConfig):
        self.model = model
        self.vocab = vocab

    @property
    def ready(self) -> bool:
        return self.model is not None and self.vocab is not None

    def predict(self, sequence) -> float:
        if not self.ready:
            raise ModelNotLoadedError("Model is not ready yet.")

        inputs = outputs = None
        try:
            inputs  = np.asarray(sequence, dtype=np.int32).reshape(1, self.vocab.max_len)
            outputs = self.model.predict(inputs, verbose=0)
            prob    = float(np.asarray(outputs).reshape(-1)[0])
        except Exception as e:
            raise PredictionError(f"Prediction failed: {e}") from e
        finally:
            # buffers are scoped to this call
            del inputs, outputs
        return prob

    def predict_text(self, text: str) -> PredictionResult:
        if not self.ready:
            raise ModelNotLoadedError("Model is not ready yet.")
        prob   = self.predict(text_to_sequence(text, self.vocab))
        result = classify_probability(prob)
        logger.info("Prediction: prob=%.4f label=%s", prob, result.label)
        return result
