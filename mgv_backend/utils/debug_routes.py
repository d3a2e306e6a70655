# mgv_backend/utils/debug_routes.py
import os

from flask import jsonify

SAFE_ENV_KEYS = {"RENDER", "PYTHON_VERSION", "LOG_LEVEL"}


def register_debug_routes(app):
    """
    Diagnostic endpoints, only mounted when DEBUG_ROUTES is enabled.
    Turn the flag off again once done.
    """
    if not app.config.get("DEBUG_ROUTES"):
        return

    @app.get("/api/_routes")
    def _routes():
        out = []
        for rule in app.url_map.iter_rules():
            methods = sorted(m for m in rule.methods if m in {"GET", "POST", "PUT", "DELETE", "PATCH"})
            out.append({"rule": str(rule), "endpoint": rule.endpoint, "methods": methods})
        out.sort(key=lambda r: r["rule"])
        return jsonify(out)

    @app.get("/api/health/full")
    def _health_full():
        bps = sorted(app.blueprints.keys())
        env = {k: os.getenv(k) for k in SAFE_ENV_KEYS if os.getenv(k)}
        db_dialect = app.config["SQLALCHEMY_DATABASE_URI"].split(":", 1)[0]
        return jsonify({
            "status": "ok",
            "blueprints": bps,
            "database": db_dialect,
            "mailer": type(app.extensions["mgv_notifier"].mailer).__name__,
            "env": env,
        })
