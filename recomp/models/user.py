from datetime import datetime
from recomp.extensions import db

class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)

    username = db.Column(db.String(80), nullable=False, unique=True, index=True)
    email = db.Column(db.String(255), nullable=True, unique=True, index=True)
    password_hash = db.Column(db.String(255), nullable=False)

    name = db.Column(db.String(160), nullable=True)
    first_name = db.Column(db.String(80), nullable=True)
    last_name = db.Column(db.String(80), nullable=True)

    # "male" / "female" - selects the scoring multipliers
    gender = db.Column(db.String(10), nullable=True)
    height = db.Column(db.String(20), nullable=True)

    starting_weight = db.Column(db.Float, nullable=True)
    target_body_fat_percent = db.Column(db.Float, nullable=True)
    target_lean_mass = db.Column(db.Float, nullable=True)

    profile_image_url = db.Column(db.String(255), nullable=True)

    # Soft delete: inactive users drop off the leaderboard and can't log in
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    is_email_verified = db.Column(db.Boolean, nullable=False, default=False)
    # sha256 of the emailed token, never the token itself
    email_verification_token = db.Column(db.String(64), nullable=True, index=True)
    email_verification_expires = db.Column(db.DateTime, nullable=True)
    password_reset_token = db.Column(db.String(64), nullable=True, index=True)
    password_reset_expires = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(
        db.DateTime,
        nullable=False,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
    )

    scans = db.relationship(
        "DexaScan",
        back_populates="user",
        cascade="all, delete-orphan",
        order_by="DexaScan.scan_date",
    )

    scoring = db.relationship(
        "ScoringData",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
    )

    def to_dict(self) -> dict:
        """Public profile shape (never includes password or token hashes)."""
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "name": self.name,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "gender": self.gender,
            "height": self.height,
            "starting_weight": self.starting_weight,
            "target_body_fat_percent": self.target_body_fat_percent,
            "target_lean_mass": self.target_lean_mass,
            "profile_image_url": self.profile_image_url,
            "is_active": self.is_active,
            "is_email_verified": self.is_email_verified,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
