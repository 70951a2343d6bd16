"""
Escalation Email Templates

HTML emails for authority-level escalations. Rendered once at enqueue time
and stored on the outbox row.
"""
from html import escape
from typing import Any, Callable, Dict, Optional

from ..domain.enums import NotificationTemplateKey


PILOT_SUBJECT_PREFIX = "[Pilot]"


def level_label(level: int) -> str:
    """0-indexed level to its display label (0 -> L1)"""
    return f"L{level + 1}"


def authority_dashboard_url(app_url: str, complaint_id: str) -> str:
    return f"{app_url.rstrip('/')}/authority/complaints/{complaint_id}"


# =============================================================================
# Base Template Wrapper
# =============================================================================

def get_base_template(
    content: str,
    action_button_text: Optional[str] = None,
    action_button_url: Optional[str] = None,
    footer_note: Optional[str] = None,
    accent_color: str = "#DC2626"  # Red-600
) -> str:
    """Table-based wrapper that renders in Outlook and Gmail alike"""
    button_html = ""
    if action_button_text and action_button_url:
        button_html = f'''
        <tr>
            <td style="padding: 8px 32px 24px 32px; text-align: center;">
                <a href="{escape(action_button_url, quote=True)}" style="background-color: {accent_color}; color: #FFFFFF; padding: 12px 24px; font-size: 14px; font-weight: bold; text-decoration: none; font-family: Arial, sans-serif; display: inline-block;">
                    {escape(action_button_text)}
                </a>
            </td>
        </tr>
        '''

    footer_html = ""
    if footer_note:
        footer_html = f'''
        <tr>
            <td style="padding: 16px 32px; background-color: #F9FAFB; color: #6B7280; font-size: 12px; font-family: Arial, sans-serif;">
                {escape(footer_note)}
            </td>
        </tr>
        '''

    return f'''<!DOCTYPE html>
<html lang="en">
<head><meta charset="utf-8"></head>
<body style="margin: 0; padding: 0; background-color: #F3F4F6;">
    <table role="presentation" cellspacing="0" cellpadding="0" border="0" width="100%" style="background-color: #F3F4F6;">
        <tr>
            <td align="center" style="padding: 24px 0;">
                <table role="presentation" cellspacing="0" cellpadding="0" border="0" width="600" style="background-color: #FFFFFF; border-top: 4px solid {accent_color};">
                    <tr>
                        <td style="padding: 32px;">
                            {content}
                        </td>
                    </tr>
                    {button_html}
                    {footer_html}
                </table>
            </td>
        </tr>
    </table>
</body>
</html>'''


def get_info_card(fields: Dict[str, Any]) -> str:
    """Label/value table for complaint details"""
    rows = ""
    for label, value in fields.items():
        rows += f'''
        <tr>
            <td style="padding: 8px 16px; color: #6B7280; font-size: 13px; border-bottom: 1px solid #E5E7EB; width: 160px; font-family: Arial, sans-serif;">{escape(label)}</td>
            <td style="padding: 8px 16px; color: #111827; font-size: 13px; font-weight: bold; border-bottom: 1px solid #E5E7EB; font-family: Arial, sans-serif;">{escape(str(value))}</td>
        </tr>
        '''

    return f'''
    <table role="presentation" cellspacing="0" cellpadding="0" border="0" width="100%" style="margin: 24px 0; border: 1px solid #E5E7EB; background-color: #F9FAFB;">
        {rows}
    </table>
    '''


# =============================================================================
# Templates
# =============================================================================

def get_complaint_escalated_template(payload: Dict[str, Any], app_url: str = "") -> Dict[str, str]:
    """Template: Complaint Escalated - to the next-level authority"""
    complaint_id = str(payload.get("complaint_id", ""))
    complaint_number = payload.get("complaint_number", "")
    target_level = int(payload.get("target_level", 1))
    department_name = payload.get("department_name") or f"Department {payload.get('to_department_id', '')}"
    reason = payload.get("reason", "")
    shadow_mode = bool(payload.get("shadow_mode", False))
    label = level_label(target_level)

    info_card = get_info_card({
        "Complaint ID": complaint_id,
        "Complaint number": complaint_number,
        "Escalation level": label,
        "Department": department_name,
        "Reason": reason,
    })

    intro = "A complaint has been escalated to your authority level."
    if shadow_mode:
        intro = "Pilot shadow email: authority-level escalation notification (shadow mode)."

    content = f'''
    <h1 style="margin: 0 0 8px 0; font-size: 22px; font-weight: bold; color: #111827; font-family: Arial, sans-serif;">
        Escalation {label}: {escape(str(complaint_number))}
    </h1>
    <p style="margin: 0; color: #4B5563; font-size: 14px; line-height: 1.6; font-family: Arial, sans-serif;">
        {escape(intro)}
    </p>
    {info_card}
    '''

    footer_note = None
    if shadow_mode:
        footer_note = "This is a pilot run. Real authority emails are disabled."

    subject = f"Escalation {label} – {complaint_number}"
    if shadow_mode:
        subject = f"{PILOT_SUBJECT_PREFIX} {subject}"

    return {
        "subject": subject,
        "body": get_base_template(
            content=content,
            action_button_text="Open in Authority Dashboard",
            action_button_url=authority_dashboard_url(app_url, complaint_id),
            footer_note=footer_note,
        ),
    }


TEMPLATE_REGISTRY: Dict[NotificationTemplateKey, Callable[[Dict[str, Any], str], Dict[str, str]]] = {
    NotificationTemplateKey.COMPLAINT_ESCALATED: get_complaint_escalated_template,
}


def get_email_template(
    template_key: NotificationTemplateKey,
    payload: Dict[str, Any],
    app_url: str = ""
) -> Dict[str, str]:
    """
    Get rendered email template by key

    Args:
        template_key: Template identifier
        payload: Data to populate the template
        app_url: Base URL for action buttons

    Returns:
        Dict with 'subject' and 'body' keys
    """
    template_func = TEMPLATE_REGISTRY[NotificationTemplateKey(template_key)]
    return template_func(payload, app_url)
