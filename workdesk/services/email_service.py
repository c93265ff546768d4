# workdesk/services/email_service.py
from flask import current_app, render_template
from flask_mail import Message
from jinja2 import TemplateNotFound
from ..extensions import mail
import logging

log = logging.getLogger(__name__)

def send_email(*, to, subject, template, **ctx) -> bool:
    try:
        if not to:
            log.warning("send_email: missing recipient")
            return False
        recipients = [to] if isinstance(to, str) else list(to)
        html = render_template(f"email/{template}", **ctx)
        txt = None
        try:
            base = template.rsplit(".", 1)[0]
            txt = render_template(f"email/{base}.txt", **ctx)
        except TemplateNotFound:
            pass

        sender = current_app.config.get("MAIL_DEFAULT_SENDER") or current_app.config.get("MAIL_USERNAME")
        if not sender:
            log.error("send_email: no sender configured")
            return False

        msg = Message(subject=subject, recipients=recipients, sender=sender)
        if txt:
            msg.body = txt
        msg.html = html

        if current_app.config.get("MAIL_SUPPRESS_SEND"):
            log.info("[MAIL_SUPPRESS_SEND=1] would send: %s | %s", recipients, subject)
            return True

        mail.send(msg)
        log.info("Email sent to %s | subject=%s", recipients, subject)
        return True
    except Exception as e:
        log.exception("send_email failed: %s", e)
        return False


def notify_task_reassigned(task, user, project=None) -> bool:
    """Tell `user` they are now the assignee of `task` (from planning)."""
    if user is None or not user.email:
        return False
    if not current_app.config.get("NOTIFY_REASSIGNED_USERS", True):
        return False
    return send_email(
        to=user.email,
        subject=f"WorkDesk — You have been assigned task #{task.id}",
        template="task_reassigned.html",
        task=task,
        user=user,
        project=project,
        base_url=current_app.config.get("EXTERNAL_BASE_URL") or "http://localhost:5000",
    )
