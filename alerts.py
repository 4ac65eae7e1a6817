"""
alerts.py - Classroom Rewards alert e-mails.
Error log records are forwarded here by app.EmailAlertHandler. A cooldown
keeps a burst of errors down to one message.
"""

import smtplib
import logging
import time
from datetime import datetime
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart

import config

logger = logging.getLogger(__name__)

# Minimum seconds between emails (10 minutes)
COOLDOWN_SECONDS = 600

_last_alert_time = 0


def reset_cooldown():
    global _last_alert_time
    _last_alert_time = 0


def build_message(subject, message, error_obj=None):
    msg = MIMEMultipart()
    msg['From'] = config.MAIL_USERNAME
    msg['To'] = config.ADMIN_EMAIL
    msg['Subject'] = f"[Classroom Rewards] {subject}"

    html_body = f"""
    <html>
        <body style="font-family: sans-serif; color: #333;">
            <h2 style="color: #d9534f;">System Alert: {subject}</h2>
            <p><strong>Time:</strong> {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}</p>
            <p><strong>Message:</strong> {message}</p>
    """
    if error_obj:
        html_body += f"<p><strong>Technical Error:</strong> {error_obj}</p>"
    html_body += "</body></html>"

    msg.attach(MIMEText(html_body, 'html'))
    return msg


def send_alert(subject, message, error_obj=None):
    """
    Sends an HTML alert to ADMIN_EMAIL. Returns True when a mail went out.
    Never raises: a failing alert must not take the logging system down.
    """
    global _last_alert_time

    current_time = time.time()
    time_since_last = current_time - _last_alert_time
    if time_since_last < COOLDOWN_SECONDS:
        logger.warning(f"EMAIL SUPPRESSED: Alert '{subject}' blocked by cooldown. "
                       f"Remaining: {int(COOLDOWN_SECONDS - time_since_last)}s")
        return False

    if not all([config.MAIL_USERNAME, config.MAIL_PASSWORD, config.ADMIN_EMAIL]):
        logger.warning("ALERT SYSTEM DISABLED: Missing MAIL_USERNAME, MAIL_PASSWORD, or ADMIN_EMAIL.")
        return False

    try:
        msg = build_message(subject, message, error_obj)
        with smtplib.SMTP(config.MAIL_SERVER, config.MAIL_PORT, timeout=10) as server:
            server.starttls()
            server.login(config.MAIL_USERNAME, config.MAIL_PASSWORD)
            server.send_message(msg)
    except (smtplib.SMTPException, OSError) as e:
        logger.warning(f"Failed to send email alert: {e}")
        return False

    _last_alert_time = current_time
    logger.info(f"Alert successfully sent to {config.ADMIN_EMAIL}")
    return True
