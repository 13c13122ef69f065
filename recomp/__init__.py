from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

from .config import Config
from .extensions import db


def create_app(test_config=None):
    app = Flask(__name__)
    app.config.from_object(Config)

    if test_config:
        app.config.update(test_config)

    db.init_app(app)

    # API clients expect JSON, not the default HTML error pages
    @app.errorhandler(HTTPException)
    def json_http_error(err):
        if not request.path.startswith("/api/"):
            return err
        return jsonify({"ok": False, "error": err.description}), err.code

    return app
