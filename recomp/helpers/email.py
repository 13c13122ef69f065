import sys
from flask import current_app
from recomp.config import RESEND_API_KEY, RESEND_FROM_EMAIL
import resend

def normalize_email(email: str) -> str:
    return (email or "").strip().lower()

def _send(email: str, subject: str, html: str, tag: str, link: str) -> bool:
    """
    Send via Resend in production.

    - If RESEND_API_KEY is not set, just log the link to stderr (local dev).
    - Returns False if Resend raised; the caller decides what that means.
    """
    # Dev / fallback path
    if not RESEND_API_KEY:
        print(f"[{tag} - DEV ONLY] {email} -> {link}", file=sys.stderr)
        return True

    try:
        resend.api_key = RESEND_API_KEY
        params = {
            "from": RESEND_FROM_EMAIL,
            "to": [email],
            "subject": subject,
            "html": html,
        }
        resend.Emails.send(params)
        print(f"[{tag}] Sent to {email}", file=sys.stderr)
        return True
    except Exception as e:
        # Don't crash the request if email fails; just log it.
        print(f"[{tag}] Failed to send via Resend: {e}", file=sys.stderr)
        return False

def send_verification_email(email: str, token: str) -> bool:
    """
    Email the account verification link (valid 24 hours).
    """
    url = f"{current_app.config['APP_URL']}/verify-email?token={token}"

    html = f"""
      <div style="font-family: system-ui, -apple-system, BlinkMacSystemFont, 'Segoe UI', sans-serif; padding: 16px;">
        <p>Welcome to the 100 Day Recomp!</p>
        <p>Thanks for joining the challenge. Please verify your email address to finish signing up:</p>
        <p style="margin: 12px 0;">
          <a href="{url}" style="display: inline-block; padding: 10px 14px; border-radius: 10px; background: #1a2942; color: #fff; text-decoration: none;">
            Verify email
          </a>
        </p>
        <p style="color:#667; font-size: 13px;">This link expires in 24 hours. If the button doesn't work, copy/paste this link:</p>
        <p style="font-size: 12px; word-break: break-all;">{url}</p>
      </div>
    """

    return _send(email, "Verify your 100 Day Recomp account", html, "VERIFY EMAIL", url)

def send_password_reset_email(email: str, token: str) -> bool:
    url = f"{current_app.config['APP_URL']}/reset-password?token={token}"

    html = f"""
      <div style="font-family: system-ui, -apple-system, BlinkMacSystemFont, 'Segoe UI', sans-serif; padding: 16px;">
        <p>We received a request to reset your 100 Day Recomp password.</p>
        <p style="margin: 12px 0;">
          <a href="{url}" style="display: inline-block; padding: 10px 14px; border-radius: 10px; background: #1a2942; color: #fff; text-decoration: none;">
            Reset password
          </a>
        </p>
        <p style="color:#667; font-size: 13px;">This link expires in 1 hour. If you didn't request this, you can ignore this email.</p>
      </div>
    """

    return _send(email, "Reset your 100 Day Recomp password", html, "PASSWORD RESET", url)
