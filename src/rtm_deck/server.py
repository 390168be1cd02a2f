"""Long polling resource endpoint serving DAO data to widgets."""

from typing import Dict, Optional

from flask import Flask, jsonify

from .core.config import DashboardConfig
from .core.dao import AbstractDao
from .core.exceptions import DaoError
from .core.loader import create_daos
from .core.utils import hash_payload


def error_response(message: str, error_type: str, status: int):
    return jsonify({"error": {"message": message, "type": error_type}}), status


def create_app(dashboard: DashboardConfig, daos: Optional[Dict[str, AbstractDao]] = None) -> Flask:
    """Create the Flask app for one dashboard.

    Routes:
        GET {url_base}/{config_name}/{widget_id}[/{old_hash}]

    Answers ``{"hash": ..., "data": ...}``, or only ``{"hash": ...}`` when
    the client already holds the current hash.
    """
    app = Flask(__name__)
    if daos is None:
        daos = create_daos(dashboard)
    widgets = {widget.id: widget for widget in dashboard.widgets}
    url_base = "/" + dashboard.url_base.strip("/")

    @app.route(f"{url_base}/<config_name>/<widget_id>", defaults={"old_hash": ""})
    @app.route(f"{url_base}/<config_name>/<widget_id>/<old_hash>")
    def resource(config_name: str, widget_id: str, old_hash: str):
        if config_name != dashboard.id:
            return error_response(f'Dashboard "{config_name}" not found', "ResourceNotFound", 404)
        widget = widgets.get(widget_id)
        if widget is None:
            return error_response(f'Widget "{widget_id}" not found in "{config_name}"', "ResourceNotFound", 404)
        dao = daos.get(widget.dao)
        if dao is None:
            return error_response(f'DAO "{widget.dao}" is not configured', "ResourceNotFound", 404)

        try:
            data = getattr(dao, widget.method)(widget.params)
        except DaoError as e:
            print(f"❌ {config_name}/{widget_id}: {e}")
            return error_response(str(e), type(e).__name__, 500)
        except Exception as e:
            # Normalization bugs in a DAO still answer with the error body widgets expect
            print(f"❌ {config_name}/{widget_id}: unexpected {type(e).__name__}: {e}")
            return error_response(str(e) or repr(e), type(e).__name__, 500)

        value_hash = hash_payload(data)
        if old_hash == value_hash:
            return jsonify({"hash": value_hash})
        return jsonify({"hash": value_hash, "data": data})

    return app
