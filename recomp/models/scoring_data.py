from datetime import datetime
from recomp.extensions import db

class ScoringData(db.Model):
    __tablename__ = "scoring_data"

    id = db.Column(db.Integer, primary_key=True)

    user_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )

    # Normalized components (1-100 each, 0 when nothing earned)
    fat_loss_score = db.Column(db.Float, nullable=False, default=0.0)
    muscle_gain_score = db.Column(db.Float, nullable=False, default=0.0)
    total_score = db.Column(db.Float, nullable=False, default=0.0, index=True)

    # Pre-normalization values; the next pass normalizes from these
    fat_loss_raw = db.Column(db.Float, nullable=False, default=0.0)
    muscle_gain_raw = db.Column(db.Float, nullable=False, default=0.0)

    last_calculated = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(
        db.DateTime,
        nullable=False,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
    )

    user = db.relationship("User", back_populates="scoring")

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "fat_loss_score": self.fat_loss_score,
            "muscle_gain_score": self.muscle_gain_score,
            "total_score": self.total_score,
            "fat_loss_raw": self.fat_loss_raw,
            "muscle_gain_raw": self.muscle_gain_raw,
            "last_calculated": self.last_calculated.isoformat() if self.last_calculated else None,
        }
