"""
Email utility for sending verification codes
"""

import smtplib
import random
import string
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from ..config import settings
from ..core.logging import get_logger

logger = get_logger(__name__)


def generate_verification_code(length: int = 6) -> str:
    """Generate a random numeric verification code"""
    return ''.join(random.choices(string.digits, k=length))


def send_verification_email(email: str, code: str) -> bool:
    """
    Send a verification code to a new ScrapX account

    Returns:
        True if the email was sent, False if SMTP is not configured or sending failed
    """
    if not settings.smtp_user or not settings.smtp_password:
        logger.warning(f"SMTP not configured, verification email to {email} not sent")
        if settings.debug:
            logger.info(f"DEBUG MODE: verification code for {email} is {code}")
        return False

    msg = MIMEMultipart()
    msg['From'] = settings.smtp_from_email or settings.smtp_user
    msg['To'] = email
    msg['Subject'] = "Your ScrapX verification code"

    body = f"""
    <html>
      <body>
        <h2>Verify your email</h2>
        <p>Welcome to ScrapX, where your scrap finds its next buyer.</p>
        <p>Your verification code is: <strong style="font-size: 24px; color: #0d9488;">{code}</strong></p>
        <p>This code will expire in 10 minutes.</p>
        <p>If you didn't create a ScrapX account, please ignore this email.</p>
      </body>
    </html>
    """
    msg.attach(MIMEText(body, 'html'))

    try:
        with smtplib.SMTP(settings.smtp_host or "smtp.gmail.com", settings.smtp_port or 587) as server:
            server.starttls()
            server.login(settings.smtp_user, settings.smtp_password)
            server.send_message(msg)
    except smtplib.SMTPAuthenticationError as e:
        logger.error(f"SMTP authentication failed for {settings.smtp_user}: {e}")
        return False
    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"Failed to send verification email to {email}: {e}", exc_info=True)
        return False

    logger.info(f"Verification email sent to {email}")
    return True
