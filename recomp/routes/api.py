from datetime import datetime

from flask import Blueprint, jsonify, current_app
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from recomp.extensions import db
from recomp.models import User, DexaScan
from recomp.helpers.competition import competition_status
from recomp.helpers.leaderboard import build_leaderboard, build_contestants


api_bp = Blueprint("api", __name__)

@api_bp.route("/api/leaderboard")
def api_leaderboard():
    """
    Ranked contestants, highest total score first.

    Scores come from the last recalculation pass; unscored contestants
    (fewer than two competition scans) are listed last with zeros.
    """
    return jsonify(build_leaderboard())

@api_bp.route("/api/contestants")
def api_contestants():
    return jsonify(build_contestants())

@api_bp.route("/api/competition/status")
def api_competition_status():
    return jsonify(competition_status())

@api_bp.route("/health")
def health():
    return jsonify(
        {
            "status": "healthy",
            "timestamp": datetime.utcnow().isoformat(),
            "environment": current_app.config.get("ENVIRONMENT"),
        }
    )

@api_bp.route("/api/health")
def api_health():
    """Health plus a DB round trip."""
    try:
        db.session.execute(text("SELECT 1"))
        user_count = User.query.count()
        scan_count = DexaScan.query.count()
    except SQLAlchemyError as e:
        db.session.rollback()
        return jsonify(
            {
                "status": "unhealthy",
                "timestamp": datetime.utcnow().isoformat(),
                "database": {"connected": False, "error": str(e)},
            }
        ), 500

    return jsonify(
        {
            "status": "healthy",
            "timestamp": datetime.utcnow().isoformat(),
            "database": {
                "connected": True,
                "user_count": user_count,
                "scan_count": scan_count,
            },
        }
    )
