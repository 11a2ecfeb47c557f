"""Flask application serving the SafePay AI fraud protection dashboard.

A signed-in user fills in a simulated transaction, the transaction is sent
to the Gemini-backed analyzer, and the resulting assessment is logged to a
SQLite database. The dashboard summarizes the user's session with charts
and PDF exports. The user interface lives in the `templates` and `static`
folders; `/api/*` exposes the same analysis as JSON.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

from flask import (
    Flask,
    Response,
    abort,
    jsonify,
    redirect,
    render_template,
    request,
    session,
    url_for,
)
from pydantic import ValidationError

from safepay.auth import current_user, login_required, login_user, logout_user, validate_login
from safepay.charts import render_risk_chart, render_type_chart
from safepay.config import load_config
from safepay.dashboard import compute_stats, risk_series, type_distribution
from safepay.dataset import DATASET_NAME, DATASET_URL, load_sample, summarize
from safepay.models import ProcessedTransaction, TransactionData, TransactionType
from safepay.reports import build_project_report, build_security_report, report_filename
from safepay.services import FraudAnalyzer
from safepay.storage import get_transaction, init_db, log_transaction, recent_transactions
from safepay.utils import DEFAULT_TRANSACTION, PRESETS, format_inr, format_time, risk_class, status_class


logger = logging.getLogger(__name__)

# Form fields in the order the simulator submits them.
FORM_FIELDS = list(DEFAULT_TRANSACTION)

TABS = {
    "dashboard": ("Dashboard", "Real-time analytics and user insights."),
    "simulator": ("Simulator", "Inject transaction patterns to test AI response."),
    "logs": ("Transaction Logs", "Historical record of all analyzed transactions."),
    "how-it-works": ("How it Detects", "Understanding the underlying ML algorithms."),
}

_ALIAS_TO_FIELD = {
    (field.alias or name): name for name, field in TransactionData.model_fields.items()
}


def parse_transaction(data: Mapping[str, Any]) -> Tuple[Optional[TransactionData], Dict[str, str]]:
    """Validate submitted transaction fields.

    Returns the parsed transaction and an empty error map, or None and a
    map of field name to error message.
    """
    try:
        return TransactionData.model_validate(dict(data)), {}
    except ValidationError as exc:
        errors: Dict[str, str] = {}
        for error in exc.errors():
            field = str(error["loc"][0]) if error["loc"] else "form"
            errors.setdefault(_ALIAS_TO_FIELD.get(field, field), error["msg"])
        return None, errors


def _pdf_response(content: bytes, filename: str) -> Response:
    return Response(
        content,
        mimetype="application/pdf",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


def _png_response(content: bytes) -> Response:
    return Response(content, mimetype="image/png", headers={"Cache-Control": "no-store"})


def create_app(config: Optional[Mapping[str, Any]] = None, analyzer: Optional[FraudAnalyzer] = None) -> Flask:
    # Explicitly specify template and static folders relative to the project root.
    app = Flask(__name__, template_folder="templates", static_folder="static")
    app.config.from_mapping(load_config())
    if config:
        app.config.from_mapping(config)

    db_path = Path(app.config["SAFEPAY_DATABASE"])
    init_db(db_path)

    analyzer = analyzer or FraudAnalyzer.from_config(app.config)
    app.extensions["safepay_analyzer"] = analyzer
    if not analyzer.enabled:
        logger.warning("GEMINI_API_KEY missing. Every analysis will use the fallback verdict.")

    app.jinja_env.filters["inr"] = format_inr
    app.jinja_env.filters["ist_time"] = lambda ts: format_time(ts, seconds=True)
    app.jinja_env.filters["status_class"] = status_class
    app.jinja_env.filters["risk_class"] = risk_class

    @app.context_processor
    def inject_user():
        return {"user": current_user(), "tabs": TABS}

    def analyze_and_log(transaction: TransactionData) -> ProcessedTransaction:
        processed = ProcessedTransaction(**transaction.model_dump())
        processed.analysis = analyzer.analyze(transaction)
        log_transaction(db_path, current_user(), processed)
        logger.info(
            "User %r scanned %s at %r: %s",
            current_user(),
            processed.id,
            processed.merchant,
            processed.status.value,
        )
        return processed

    @app.route("/login", methods=["GET", "POST"])
    def login():
        """Render the access page and start a session on valid input."""
        if request.method == "GET":
            if current_user() is not None:
                return redirect(url_for("dashboard"))
            return render_template("login.html", error=None, name="", email="")

        name = request.form.get("name", "")
        email = request.form.get("email", "")
        error = validate_login(name, email)
        if error:
            return render_template("login.html", error=error, name=name, email=email), 400

        login_user(name, email)
        return redirect(url_for("dashboard"))

    @app.route("/logout")
    def logout():
        logout_user()
        return redirect(url_for("login"))

    @app.route("/")
    @login_required
    def index():
        return redirect(url_for("dashboard"))

    @app.route("/dashboard")
    @login_required
    def dashboard():
        stats = compute_stats(recent_transactions(db_path, current_user()))
        return render_template("dashboard.html", active_tab="dashboard", stats=stats)

    @app.route("/dashboard/charts/<name>.png")
    @login_required
    def dashboard_chart(name: str):
        transactions = recent_transactions(db_path, current_user())
        if name == "risk":
            return _png_response(render_risk_chart(risk_series(transactions)))
        if name == "types":
            return _png_response(render_type_chart(type_distribution(transactions)))
        abort(404)

    @app.route("/dashboard/report.pdf")
    @login_required
    def project_report():
        stats = compute_stats(recent_transactions(db_path, current_user()))
        return _pdf_response(build_project_report(stats), report_filename("SafePay_Project_Report"))

    @app.route("/simulator", methods=["GET", "POST"])
    @login_required
    def simulator():
        """Show the transaction form; on submit, analyze and show the assessment."""
        if request.method == "POST":
            values = {field: request.form.get(field, "") for field in FORM_FIELDS}
            transaction, errors = parse_transaction(values)
            if errors:
                return (
                    render_template(
                        "simulator.html",
                        active_tab="simulator",
                        form=values,
                        errors=errors,
                        result=None,
                        transaction_types=list(TransactionType),
                    ),
                    400,
                )
            processed = analyze_and_log(transaction)
            session["current_analysis"] = processed.id
            return render_template(
                "simulator.html",
                active_tab="simulator",
                form=values,
                errors={},
                result=processed,
                transaction_types=list(TransactionType),
            )

        values = dict(PRESETS.get(request.args.get("preset", ""), DEFAULT_TRANSACTION))
        result = None
        if session.get("current_analysis"):
            result = get_transaction(db_path, current_user(), session["current_analysis"])
        return render_template(
            "simulator.html",
            active_tab="simulator",
            form=values,
            errors={},
            result=result,
            transaction_types=list(TransactionType),
        )

    @app.route("/transactions/<transaction_id>/report.pdf")
    @login_required
    def security_report(transaction_id: str):
        processed = get_transaction(db_path, current_user(), transaction_id)
        if processed is None or processed.analysis is None:
            abort(404)
        return _pdf_response(build_security_report(processed.analysis), report_filename("SafePay_Report"))

    @app.route("/logs")
    @login_required
    def logs():
        query = request.args.get("q", "").strip()
        transactions = recent_transactions(db_path, current_user(), query=query or None)
        return render_template("logs.html", active_tab="logs", transactions=transactions, query=query)

    @app.route("/how-it-works")
    @login_required
    def how_it_works():
        sample = load_sample()
        return render_template(
            "how_it_works.html",
            active_tab="how-it-works",
            dataset_rows=sample.to_dict(orient="records"),
            dataset_columns=list(sample.columns),
            dataset_summary=summarize(sample),
            dataset_name=DATASET_NAME,
            dataset_url=DATASET_URL,
        )

    @app.route("/api/analyze", methods=["POST"])
    @login_required
    def api_analyze():
        """Analyze a JSON transaction and return the processed record."""
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify(error="Invalid input. Expected JSON object."), 400

        transaction, errors = parse_transaction(data)
        if errors:
            return jsonify(error="Invalid transaction.", fields=errors), 400

        processed = analyze_and_log(transaction)
        return jsonify(processed.model_dump(mode="json", by_alias=True))

    @app.route("/api/transactions", methods=["GET"])
    @login_required
    def api_transactions():
        """Return the user's analyzed transactions, newest first."""
        limit = request.args.get("limit", type=int)
        transactions = recent_transactions(db_path, current_user(), limit=limit)
        return jsonify([t.model_dump(mode="json", by_alias=True) for t in transactions])

    return app


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    # Create and run the Flask app
    app = create_app()
    app.run(host="0.0.0.0", port=5000, debug=False)
