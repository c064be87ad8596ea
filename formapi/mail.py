import logging
import smtplib
from email.mime.text import MIMEText

from starlette.concurrency import run_in_threadpool
from formapi.config import config

logger = logging.getLogger(__name__)


def _deliver(email: str, subject: str, text: str) -> None:
    msg = MIMEText(text)
    msg["Subject"] = subject
    msg["From"] = config.SENDER_EMAIL
    msg["To"] = email

    with smtplib.SMTP(config.SMTP_HOST, config.SMTP_PORT) as server:
        server.starttls()
        if config.SMTP_USER and config.SMTP_PASSWORD:
            server.login(config.SMTP_USER, config.SMTP_PASSWORD)
        server.sendmail(config.SENDER_EMAIL, [email], msg.as_string())


async def send_mail(email: str, subject: str, text: str) -> bool:
    """Send a plaintext email through the SMTP relay.

    Delivery failures are logged and reported through the return value only;
    they are never raised to the caller.
    """
    logger.debug("Sending email", extra={"email": email, "subject": subject})
    try:
        await run_in_threadpool(_deliver, email, subject, text)
    except Exception:
        logger.exception(f"Failed to send email to {email}")
        return False
    logger.info(f"Email sent to {email}")
    return True
