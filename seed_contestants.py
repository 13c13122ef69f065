# seed_contestants.py
import random
from datetime import datetime, timedelta

from recomp.run import api
from recomp.extensions import db
from recomp.models import User, DexaScan
from recomp.helpers.account import hash_password
from recomp.helpers.recalculate import recalculate_all_scores
from recomp.helpers.scans import fix_all_baselines

# Everyone seeded gets this password so load_test_scans.py can log in
SEED_PASSWORD = "password123"

BASELINE_DATE = datetime(2025, 8, 4)

def _scan(user_id, scan_date, body_fat, lean_mass):
    total_weight = lean_mass / (1 - body_fat / 100)
    return DexaScan(
        user_id=user_id,
        scan_date=scan_date,
        body_fat_percent=round(body_fat, 1),
        lean_mass=round(lean_mass, 1),
        total_weight=round(total_weight, 1),
        fat_mass=round(total_weight - lean_mass, 1),
    )

def main(num_contestants=100, scans_per_contestant=3):
    with api.app_context():
        existing = User.query.count()
        print(f"Existing users: {existing}")

        password_hash = hash_password(SEED_PASSWORD)

        for i in range(num_contestants):
            n = existing + i + 1
            gender = random.choice(["male", "female"])
            user = User(
                username=f"contestant{n}",
                email=f"contestant{n}@example.com",
                name=f"Test Contestant {n}",
                first_name="Test",
                last_name=f"Contestant {n}",
                gender=gender,
                password_hash=password_hash,
                is_active=True,
                is_email_verified=True,
            )
            db.session.add(user)
            db.session.flush()

            body_fat = random.uniform(14, 32) if gender == "male" else random.uniform(20, 38)
            lean_mass = random.uniform(110, 160) if gender == "male" else random.uniform(80, 115)

            user.starting_weight = round(lean_mass / (1 - body_fat / 100), 1)
            user.target_body_fat_percent = round(body_fat - 5, 1)
            user.target_lean_mass = round(lean_mass + 4, 1)

            scan_date = BASELINE_DATE
            for _ in range(scans_per_contestant):
                db.session.add(_scan(user.id, scan_date, body_fat, lean_mass))
                scan_date += timedelta(days=random.randint(21, 35))
                body_fat = max(5.0, body_fat - random.uniform(-0.5, 2.5))
                lean_mass = lean_mass + random.uniform(-1.0, 2.0)

        db.session.commit()

        # scans were inserted directly, so flag baselines before scoring
        fix_all_baselines()
        result = recalculate_all_scores()

        total = User.query.count()
        print(f"Now have {total} users in the DB ({len(result.scored)} scored).")

if __name__ == "__main__":
    main()
