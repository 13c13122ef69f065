import secrets
import hashlib
from werkzeug.utils import secure_filename

from recomp.config import ALLOWED_UPLOAD_EXTENSIONS

def make_token() -> str:
    return secrets.token_urlsafe(32)

def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()

def allowed_upload(filename: str) -> bool:
    if not filename or "." not in filename:
        return False
    return filename.rsplit(".", 1)[1].lower() in ALLOWED_UPLOAD_EXTENSIONS

def scan_image_filename(user_id: int, scan_id: int, original: str) -> str:
    """Stable, collision-free name: "<user>_<scan>_<random>_<original>"."""
    return f"{user_id}_{scan_id}_{secrets.token_hex(4)}_{secure_filename(original)}"
