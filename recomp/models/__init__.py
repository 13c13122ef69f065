from recomp.models.user import User
from recomp.models.dexa_scan import DexaScan
from recomp.models.scoring_data import ScoringData
from recomp.models.scoring_range import ScoringRangeRecord

__all__ = [
    "User",
    "DexaScan",
    "ScoringData",
    "ScoringRangeRecord",
]
