"""E-mail notifications sent to psychologists when a patient books a session."""

import logging
import smtplib
import ssl
from datetime import datetime
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape

from mindcare.core import config
from mindcare.scheduling.slots import as_utc, schedule_timezone

logger = logging.getLogger(__name__)

SENDER_NAME = 'MindCare Platform'


def is_email_configured() -> bool:
    return bool(config.EMAIL_HOST and config.EMAIL_USER and config.EMAIL_PASS)


def format_appointment_time(appointment_datetime: datetime) -> tuple[str, str]:
    local = as_utc(appointment_datetime).astimezone(schedule_timezone())
    return local.strftime('%A, %d.%m.%Y'), local.strftime('%H:%M')


def build_appointment_message(
    sender: str,
    recipient: str,
    psychologist_name: str,
    patient_name: str,
    appointment_datetime: datetime,
) -> MIMEMultipart:
    formatted_date, formatted_time = format_appointment_time(appointment_datetime)
    greeting_name = psychologist_name or 'there'
    patient_label = patient_name or 'Not specified'

    text_body = (
        f'Hello, {greeting_name}!\n\n'
        'You have a new session booking.\n\n'
        f'Patient: {patient_label}\n'
        f'Date and time: {formatted_date} at {formatted_time}\n\n'
        'Please check your schedule.\n'
    )
    html_body = (
        '<html><body>'
        f'<h1>{SENDER_NAME}</h1>'
        f'<p>Hello, {escape(greeting_name)}!</p>'
        '<p>You have a new session booking.</p>'
        f'<p><strong>Patient:</strong> {escape(patient_label)}<br>'
        f'<strong>Date and time:</strong> {formatted_date} at {formatted_time}</p>'
        '<p>Please check your schedule.</p>'
        '</body></html>'
    )

    message = MIMEMultipart('alternative')
    message['Subject'] = f'New session booking - {formatted_date} at {formatted_time}'
    message['From'] = f'"{SENDER_NAME}" <{sender}>'
    message['To'] = recipient
    message.attach(MIMEText(text_body, 'plain', 'utf-8'))
    message.attach(MIMEText(html_body, 'html', 'utf-8'))
    return message


def deliver(message: MIMEMultipart, sender: str, recipient: str) -> None:
    context = ssl.create_default_context()
    use_ssl = config.EMAIL_SECURE or config.EMAIL_PORT == 465
    if use_ssl:
        server = smtplib.SMTP_SSL(config.EMAIL_HOST, config.EMAIL_PORT, context=context, timeout=config.EMAIL_TIMEOUT_SECONDS)
    else:
        server = smtplib.SMTP(config.EMAIL_HOST, config.EMAIL_PORT, timeout=config.EMAIL_TIMEOUT_SECONDS)

    with server:
        if not use_ssl:
            server.starttls(context=context)
        server.login(config.EMAIL_USER, config.EMAIL_PASS)
        server.sendmail(sender, [recipient], message.as_string())


def send_appointment_notification(
    psychologist_email: str | None,
    psychologist_name: str,
    patient_name: str,
    appointment_datetime: datetime,
) -> bool:
    """Notify a psychologist about a new booking.

    Runs as a background task after the booking is committed, so it never
    raises: failures are logged and reported through the return value.
    """
    if not is_email_configured():
        logger.warning(
            'Email configuration not found. Skipping appointment notification to %s.',
            psychologist_email,
        )
        return False

    if not psychologist_email or not psychologist_email.strip():
        logger.error('Psychologist email is empty or invalid')
        return False

    recipient = psychologist_email.strip()
    sender = config.EMAIL_FROM or config.EMAIL_USER

    try:
        message = build_appointment_message(
            sender=sender,
            recipient=recipient,
            psychologist_name=psychologist_name,
            patient_name=patient_name,
            appointment_datetime=appointment_datetime,
        )
        deliver(message, sender, recipient)
    except Exception:
        logger.exception('Error sending appointment notification email to %s', recipient)
        return False

    logger.info('Appointment notification email sent to %s', recipient)
    return True
