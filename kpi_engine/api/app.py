from flask import Flask, jsonify, request

from kpi_engine.config import Config
from kpi_engine.models.kpi import create_kpi_calculator
from kpi_engine.utils.bundle import BundleError, parse_bundle
from kpi_engine.utils.logging import get_logger
from kpi_engine.utils.time_windows import DEFAULT_TIME_WINDOW, TimeWindowError, get_time_window_options

app = Flask(__name__)

out = get_logger("kpi_engine.api")


def get_config():
    """Load configuration, or None when no config.yaml is present"""
    try:
        return Config()
    except FileNotFoundError as e:
        out.debug(f"Running with built-in defaults: {e}")
        return None


def _error(message, status=400):
    return jsonify({"status": "error", "error": message}), status


@app.route("/api/health")
def api_health():
    return jsonify({"status": "ok"})


@app.route("/api/time-windows")
def api_time_windows():
    return jsonify({"time_windows": get_time_window_options(), "default": DEFAULT_TIME_WINDOW})


@app.route("/api/kpi", methods=["POST"])
def api_kpi():
    """Calculate the KPI for the user in a posted activity bundle

    Body: {"user": {...}, "tasks": [...], "projects": [...], "time_logs": [...],
           "comments": [...], "documents": [...], "time_window": "30days"}
    The time window may also be passed as a ?time_window= query parameter.
    """
    payload = request.get_json(silent=True)
    if payload is None:
        return _error("Request body must be a JSON object")

    try:
        bundle = parse_bundle(payload)
    except BundleError as e:
        return _error(str(e))

    config = get_config()
    try:
        weight_table = config.role_weights if config else None
        default_window = config.default_time_window if config else DEFAULT_TIME_WINDOW
    except (ValueError, TimeWindowError) as e:
        out.error(f"Invalid configuration: {e}")
        return _error(f"Invalid configuration: {e}", 500)

    time_window = request.args.get("time_window") or bundle.get("time_window") or default_window

    try:
        calculator = create_kpi_calculator(
            bundle["user"],
            bundle["tasks"],
            bundle["projects"],
            bundle["time_logs"],
            bundle["comments"],
            bundle["documents"],
            time_window=time_window,
            weight_table=weight_table,
        )
    except TimeWindowError as e:
        return _error(str(e))

    result = calculator.calculate_kpi()
    out.info(f"Calculated KPI for user {bundle['user'].get('id')} ({time_window}): {result.overall} {result.grade}")

    return jsonify(
        {
            "status": "success",
            "user_id": bundle["user"].get("id"),
            "time_window": calculator.time_window,
            "kpi": result.to_dict(),
        }
    )


def main():
    config = get_config()
    api_config = config.api_config if config else {"host": "127.0.0.1", "port": 5001, "debug": False}

    app.run(debug=api_config["debug"], port=api_config["port"], host=api_config["host"])


if __name__ == "__main__":
    main()
