from datetime import datetime
from recomp.extensions import db

class ScoringRangeRecord(db.Model):
    """
    Population min/max from the most recent normalization pass.

    One row per competition; the recalculation driver replaces it each run.
    """
    __tablename__ = "scoring_ranges"

    id = db.Column(db.Integer, primary_key=True)

    competition_id = db.Column(db.String(80), nullable=False, unique=True)

    min_fat_loss = db.Column(db.Float, nullable=False, default=0.0)
    max_fat_loss = db.Column(db.Float, nullable=False, default=0.0)
    min_muscle_gain = db.Column(db.Float, nullable=False, default=0.0)
    max_muscle_gain = db.Column(db.Float, nullable=False, default=0.0)

    participant_count = db.Column(db.Integer, nullable=False, default=0)

    last_updated = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
