# recalculate_scores.py
import sys

from recomp.run import api
from recomp.helpers.recalculate import recalculate_all_scores
from recomp.helpers.scans import fix_all_baselines

def main(fix_baselines=False):
    with api.app_context():
        if fix_baselines:
            count = fix_all_baselines()
            print(f"Fixed baselines for {count} users.")

        result = recalculate_all_scores()
        rng = result.scoring_range

        print(f"Scored {len(result.scored)} users, skipped {len(result.skipped)}.")
        for user_id, reason in result.skipped.items():
            print(f"  skipped user {user_id}: {reason}")
        print(
            f"Fat loss range: {rng.min_fat_loss:.2f} - {rng.max_fat_loss:.2f}, "
            f"muscle gain range: {rng.min_muscle_gain:.2f} - {rng.max_muscle_gain:.2f}"
        )

if __name__ == "__main__":
    main(fix_baselines="--fix-baselines" in sys.argv[1:])
