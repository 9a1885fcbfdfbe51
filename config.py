"""
config.py — JobCheck settings
=============================
Artifact locations and server options, read once from the environment.

    MODEL_PATH             Keras model file
    TOKENIZER_CONFIG_PATH  frontend_config.json (word_index, max_len, ...)
    EDA_SUMMARY_PATH       precomputed eda_data.json
    EDA_ARCHIVE_PATH       zipped combined dataset
"""

import os
from dataclasses import dataclass

# ─── Defaults ──────────────────────────────────────────────────────────────────
MODEL_PATH            = os.path.join("model", "model.keras")
TOKENIZER_CONFIG_PATH = os.path.join("model", "frontend_config.json")
EDA_SUMMARY_PATH      = os.path.join("data", "eda_data.json")
EDA_ARCHIVE_PATH      = os.path.join("data", "combined_dataset_clean.zip")


@dataclass(frozen=True)
class Settings:
    model_path:            str  = MODEL_PATH
    tokenizer_config_path: str  = TOKENIZER_CONFIG_PATH
    eda_summary_path:      str  = EDA_SUMMARY_PATH
    eda_archive_path:      str  = EDA_ARCHIVE_PATH
    secret_key:            str  = "dev-secret-change-in-production"
    port:                  int  = 5000
    debug:                 bool = False


def load_settings() -> Settings:
    return Settings(
        model_path=os.environ.get("MODEL_PATH", MODEL_PATH),
        tokenizer_config_path=os.environ.get("TOKENIZER_CONFIG_PATH", TOKENIZER_CONFIG_PATH),
        eda_summary_path=os.environ.get("EDA_SUMMARY_PATH", EDA_SUMMARY_PATH),
        eda_archive_path=os.environ.get("EDA_ARCHIVE_PATH", EDA_ARCHIVE_PATH),
        secret_key=os.environ.get("SECRET_KEY", "dev-secret-change-in-production"),
        port=int(os.environ.get("PORT", 5000)),
        debug=os.environ.get("FLASK_DEBUG", "false").lower() == "true",
    )
