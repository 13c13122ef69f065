from .api import api_bp
from .admin import admin_bp
from .auth import auth_bp
from .scans import scans_bp

def register_blueprints(app):
    app.register_blueprint(api_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(scans_bp)
