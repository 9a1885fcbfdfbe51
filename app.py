"""
app.py — JobCheck: Fake Job Posting Detection
=============================================
Flask web application: a prediction form backed by the trained Keras model,
and an EDA dashboard drawn from precomputed artifacts.

Run:
    python app.py
    # or: flask --app app run

Endpoints:
    GET  /            → Two-tab page (?tab=job-check | ?tab=eda)
    POST /predict     → Run the classifier on the submitted form
    GET  /health      → JSON health check
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Optional

from flask import Flask, current_app, jsonify, render_template, request

from charts import ChartRegistry, render_dashboard
from config import Settings, load_settings
from eda import EdaReport, load_eda
from errors import JobCheckError, ModelNotLoadedError
from inference import Classifier, PredictionResult, load_model
from text_pipeline import FORM_FIELDS, build_full_text, load_vocabulary

# ─── Logging ───────────────────────────────────────────────────────────────────
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s"
)
logger = logging.getLogger(__name__)

TABS = ("job-check", "eda")


# ─── Application Context ───────────────────────────────────────────────────────
@dataclass
class Status:
    state:   str   # loading | ready | error
    message: str

    @property
    def css(self) -> str:
        return f"status-{self.state}"


class AppContext:
    """
    Everything the views need, built once by initialize().

    The classifier (model + vocabulary) and the EDA data are independent:
    either may fail without touching the other's state.
    """

    def __init__(self, settings: Settings, model_loader=load_model):
        self.settings      = settings
        self.model_loader  = model_loader
        self.classifier: Optional[Classifier] = None
        self.model_status  = Status("loading", "Loading model and tokenizer…")
        self.eda_status    = Status("loading", "Loading EDA data…")
        self.eda           = EdaReport()
        self.eda_images: Dict[str, str] = {}
        self.charts        = ChartRegistry()

    @property
    def ready(self) -> bool:
        return self.classifier is not None and self.classifier.ready

    def init_classifier(self) -> Status:
        try:
            with ThreadPoolExecutor(max_workers=2) as pool:
                model_future = pool.submit(self.model_loader, self.settings.model_path)
                vocab_future = pool.submit(load_vocabulary, self.settings.tokenizer_config_path)
                model, vocab = model_future.result(), vocab_future.result()
        except Exception:
            logger.exception("Initialization error")
            self.model_status = Status("error", "Error loading model/tokenizer. See server log.")
            return self.model_status

        # both artifacts or nothing
        self.classifier   = Classifier(model, vocab)
        self.model_status = Status("ready", "Model and tokenizer loaded – ready!")
        return self.model_status

    def init_eda(self) -> Status:
        try:
            self.eda        = load_eda(self.settings.eda_summary_path, self.settings.eda_archive_path)
            self.eda_images = render_dashboard(self.charts, self.eda.summary)
        except Exception:
            logger.exception("EDA error")
            self.eda_status = Status("error", "Error loading EDA data. See server log.")
            return self.eda_status

        if self.eda.errors:
            failed = ", ".join(sorted(self.eda.errors))
            self.eda_status = Status("error", f"Error loading EDA data ({failed}). See server log.")
        else:
            self.eda_status = Status("ready", "EDA data loaded.")
        return self.eda_status

    def initialize(self) -> "AppContext":
        """Run both pipelines side by side; each reports to its own status."""
        with ThreadPoolExecutor(max_workers=2) as pool:
            classifier_future = pool.submit(self.init_classifier)
            eda_future        = pool.submit(self.init_eda)
            logger.info("Classifier: %s", classifier_future.result().message)
            logger.info("EDA: %s", eda_future.result().message)
        return self


def get_context() -> AppContext:
    return current_app.extensions["jobcheck"]


# ─── Views ─────────────────────────────────────────────────────────────────────
def _render_page(tab: str = "job-check", form: Optional[dict] = None,
                 result: Optional[PredictionResult] = None,
                 notice: Optional[str] = None, status: int = 200):
    ctx = get_context()
    page = render_template(
        "index.html",
        tab=tab if tab in TABS else "job-check",
        fields=FORM_FIELDS,
        form=form or {},
        result=result,
        notice=notice,
        ready=ctx.ready,
        model_status=ctx.model_status,
        eda_status=ctx.eda_status,
        eda_images=ctx.eda_images,
        dataset=ctx.eda.dataset,
    )
    return page, status


def index():
    return _render_page(tab=request.args.get("tab", "job-check"))


def predict():
    ctx  = get_context()
    form = {name: request.form.get(name, "") for name in FORM_FIELDS}

    if not ctx.ready:
        return _render_page(form=form, notice="Model is not ready yet. Please wait a bit.", status=503)

    full_text = build_full_text(form)
    if not full_text:
        return _render_page(form=form, notice="Please fill at least some fields of the job posting.",
                            status=400)

    try:
        result = ctx.classifier.predict_text(full_text)
    except ModelNotLoadedError:
        return _render_page(form=form, notice="Model is not ready yet. Please wait a bit.", status=503)
    except JobCheckError:
        logger.exception("Prediction error")
        return _render_page(form=form, notice="Prediction error. See server log for details.",
                            status=500)

    return _render_page(form=form, result=result)


def health():
    ctx = get_context()
    return jsonify({
        "status":            "ok",
        "model_loaded":      ctx.ready,
        "vocabulary_loaded": ctx.classifier is not None and ctx.classifier.vocab is not None,
        "eda_loaded":        ctx.eda_status.state == "ready",
        "timestamp":         datetime.now().isoformat(),
    })


# ─── App Setup ─────────────────────────────────────────────────────────────────
def create_app(settings: Optional[Settings] = None, context: Optional[AppContext] = None,
               initialize: bool = True) -> Flask:
    settings = settings or load_settings()
    app = Flask(__name__)
    app.secret_key = settings.secret_key

    if context is None:
        context = AppContext(settings)
    if initialize:
        context.initialize()
    app.extensions["jobcheck"] = context

    app.add_url_rule("/", view_func=index)
    app.add_url_rule("/predict", view_func=predict, methods=["POST"])
    app.add_url_rule("/health", view_func=health)
    return app


# ─── Entry Point ───────────────────────────────────────────────────────────────
if __name__ == "__main__":
    settings = load_settings()
    app = create_app(settings)
    logger.info(f"Starting server on http://localhost:{settings.port}")
    app.run(host="0.0.0.0", port=settings.port, debug=settings.debug)
