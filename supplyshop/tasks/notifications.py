# supplyshop/tasks/notifications.py
import time

from celery import group

from supplyshop.celery_worker import celery_app
from supplyshop.data.database import SessionLocal
from supplyshop.domain.errors import NotificationError
from supplyshop.services.email_client import EmailClient
from supplyshop.services.notification_service import NotificationService
from supplyshop.utils.settings import SUPPLIER_EMAIL_DELAY_SECONDS, SUPPLIER_EMAIL_MODE
from supplyshop.utils.logging import get_logger

logger = get_logger(__name__)


def _send(client: EmailClient, to: str, subject: str, html: str) -> bool:
    try:
        client.send(to=to, subject=subject, html=html)
    except Exception as e:
        err = NotificationError(f"email to {to} failed: {e}")
        logger.error(f"[email] {err}")
        return False
    logger.info(f"[email] sent '{subject}' to {to}")
    return True


@celery_app.task(name="supplyshop.tasks.notifications.send_supplier_email_task")
def send_supplier_email_task(to: str, subject: str, html: str):
    ok = _send(EmailClient(), to, subject, html)
    return {"to": to, "status": "sent" if ok else "failed"}


@celery_app.task(name="supplyshop.tasks.notifications.notify_suppliers_task")
def notify_suppliers_task(order_id: str, mode: str | None = None, delay: float | None = None):
    """
    Fan-out of one e-mail per supplier.
    serial: sends one after another with a fixed pause (provider rate limit)
    parallel: one send task per supplier in a celery group
    """
    mode = mode or SUPPLIER_EMAIL_MODE
    delay = SUPPLIER_EMAIL_DELAY_SECONDS if delay is None else delay

    db = SessionLocal()
    try:
        emails, skipped = NotificationService.build_supplier_emails(db, order_id)
    finally:
        db.close()

    result = {"order_id": order_id, "sent": [], "failed": [], "skipped": skipped}
    if not emails:
        logger.info(f"[email] no supplier emails for order {order_id}")
        return result

    if mode == "parallel":
        group(send_supplier_email_task.s(e.to, e.subject, e.html) for e in emails).apply_async()
        result["queued"] = [e.to for e in emails]
        return result

    client = EmailClient()
    for i, email in enumerate(emails):
        if i and delay > 0:
            time.sleep(delay)
        if _send(client, email.to, email.subject, email.html):
            result["sent"].append(email.to)
        else:
            result["failed"].append(email.to)

    logger.info(
        f"[email] order {order_id}: {len(result['sent'])} sent, "
        f"{len(result['failed'])} failed, {len(skipped)} skipped"
    )
    return result
