from html import escape

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail
from flask import current_app


def batch_summary_html(batch, message):
    rows = "".join(
        f"<tr><td>{label}</td><td>{value}</td></tr>"
        for label, value in (("Status", batch.status), ("Total", batch.total_files),
                             ("Analyzed", batch.processed_files), ("Failed", batch.failed_files))
    )
    return f"<p>{escape(message)}</p><table>{rows}</table>"


def send_batch_summary(to_email, subject, html):
    """Send through SendGrid; returns (status_code, headers)."""
    sg = SendGridAPIClient(api_key=current_app.config['SENDGRID_API_KEY'])
    message = Mail(from_email=(current_app.config['MAIL_FROM'], current_app.config['MAIL_FROM_NAME']),
                   to_emails=to_email,
                   subject=subject,
                   html_content=html)
    resp = sg.send(message)
    current_app.logger.info('SendGrid accepted mail to %s (%s)', to_email, resp.status_code)
    return resp.status_code, getattr(resp, 'headers', None)
