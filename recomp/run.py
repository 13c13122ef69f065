import os

from dotenv import load_dotenv

# Config reads the environment at import time
load_dotenv()

from recomp import create_app
from recomp.extensions import db
from recomp.routes import register_blueprints

api = create_app()

# auth, scans, public board, admin
register_blueprints(api)

def init_db():
    """Create tables and the scan upload folder."""
    db.create_all()
    os.makedirs(api.config["UPLOAD_FOLDER"], exist_ok=True)

with api.app_context():
    init_db()

if __name__ == "__main__":
    api.run(
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "5000")),
        debug=api.config["ENVIRONMENT"] == "development",
    )
