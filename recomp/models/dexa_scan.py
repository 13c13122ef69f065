from datetime import datetime
from recomp.extensions import db

class DexaScan(db.Model):
    __tablename__ = "dexa_scans"

    id = db.Column(db.Integer, primary_key=True)

    user_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    scan_date = db.Column(db.DateTime, nullable=False, index=True)

    body_fat_percent = db.Column(db.Float, nullable=False)
    lean_mass = db.Column(db.Float, nullable=False)       # lbs
    total_weight = db.Column(db.Float, nullable=False)    # lbs
    fat_mass = db.Column(db.Float, nullable=True)
    rmr = db.Column(db.Float, nullable=True)              # resting metabolic rate, kcal

    # Name printed on the scan report, e.g. "Parnala, Jaron"
    scan_name = db.Column(db.String(160), nullable=True)
    scan_image_path = db.Column(db.String(255), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    is_baseline = db.Column(db.Boolean, nullable=False, default=False)
    is_final = db.Column(db.Boolean, nullable=False, default=False)

    # Filled from classify_scan_date() when the scan is written
    is_competition_eligible = db.Column(db.Boolean, nullable=False, default=True)
    scan_category = db.Column(db.String(20), nullable=False, default="competition")
    competition_role = db.Column(db.String(20), nullable=True)  # baseline / progress / final

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(
        db.DateTime,
        nullable=False,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
    )

    user = db.relationship("User", back_populates="scans")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "scan_date": self.scan_date.isoformat() if self.scan_date else None,
            "body_fat_percent": self.body_fat_percent,
            "lean_mass": self.lean_mass,
            "total_weight": self.total_weight,
            "fat_mass": self.fat_mass,
            "rmr": self.rmr,
            "scan_name": self.scan_name,
            "scan_image_path": self.scan_image_path,
            "notes": self.notes,
            "is_baseline": self.is_baseline,
            "is_final": self.is_final,
            "is_competition_eligible": self.is_competition_eligible,
            "scan_category": self.scan_category,
            "competition_role": self.competition_role,
        }
