"""
Email Templates - HTML reminder emails for stalled DACO applications

Each template takes the reminder payload and the frontend base URL and
returns a dict with 'subject' and 'body'.
"""
from html import escape
from typing import Any, Callable, Dict, Optional

from ..domain.enums import EmailType


class EmailSubjects:
    """Subject lines shown to recipients"""
    REMINDER_SUBMIT_DRAFT = "Please Complete Your DACO Application"
    REMINDER_SUBMIT_REVIEW = "Reminder: Pending Application Review Required"
    REMINDER_SUBMIT_REVISIONS = "Reminder: Action Required - Revisions Requested on Your Application"
    REMINDER_REVIEW_SUBMITTED_REVISIONS = "Reminder: Revised Application Awaiting Your Review"


# =============================================================================
# Base Template Wrapper
# =============================================================================

def get_base_template(
    content: str,
    action_button_text: Optional[str] = None,
    action_button_url: Optional[str] = None,
    footer_note: Optional[str] = None,
    accent_color: str = "#3B82F6"  # Blue-500
) -> str:
    """
    Email base template with Outlook-compatible layout

    Uses tables for reliable rendering and a VML fallback for the button.
    """
    button_html = ""
    if action_button_text and action_button_url:
        button_html = f'''
        <table role="presentation" cellspacing="0" cellpadding="0" border="0" width="100%" style="margin: 32px 0;">
            <tr>
                <td align="center">
                    <!--[if mso]>
                    <v:roundrect xmlns:v="urn:schemas-microsoft-com:vml" href="{action_button_url}" style="height:48px;v-text-anchor:middle;width:240px;" arcsize="10%" strokecolor="{accent_color}" fillcolor="{accent_color}">
                        <center style="color:#ffffff;font-family:Arial,sans-serif;font-size:14px;font-weight:bold;">{action_button_text}</center>
                    </v:roundrect>
                    <![endif]-->
                    <!--[if !mso]><!-->
                    <a href="{action_button_url}"
                       style="display: inline-block; background-color: {accent_color}; color: #ffffff;
                              text-decoration: none; padding: 14px 32px; border-radius: 8px;
                              font-weight: 600; font-size: 14px; font-family: Arial, sans-serif; mso-hide: all;">
                        {action_button_text}
                    </a>
                    <!--<![endif]-->
                </td>
            </tr>
        </table>
        '''

    footer_note_html = ""
    if footer_note:
        footer_note_html = f'''
        <table role="presentation" cellspacing="0" cellpadding="0" border="0" width="100%" style="margin-top: 16px;">
            <tr>
                <td style="padding: 16px; background-color: #FEF3C7; font-size: 13px; color: #92400E; font-family: Arial, sans-serif;">
                    {footer_note}
                </td>
            </tr>
        </table>
        '''

    return f'''
<!DOCTYPE html PUBLIC "-//W3C//DTD XHTML 1.0 Transitional//EN" "http://www.w3.org/TR/xhtml1/DTD/xhtml1-transitional.dtd">
<html xmlns="http://www.w3.org/1999/xhtml" xmlns:v="urn:schemas-microsoft-com:vml">
<head>
    <meta http-equiv="Content-Type" content="text/html; charset=UTF-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1.0" />
    <title>DACO Application</title>
    <style type="text/css">
        body {{margin: 0; padding: 0; -webkit-text-size-adjust: 100%; -ms-text-size-adjust: 100%;}}
        table {{border-collapse: collapse;}}
    </style>
</head>
<body style="margin: 0; padding: 0; background-color: #F8FAFC; font-family: Arial, Helvetica, sans-serif;">
    <table role="presentation" cellspacing="0" cellpadding="0" border="0" width="100%" style="background-color: #F8FAFC;">
        <tr>
            <td style="padding: 32px 20px;">
                <table role="presentation" cellspacing="0" cellpadding="0" border="0" width="600" align="center" style="margin: 0 auto; max-width: 600px;">
                    <tr>
                        <td style="padding: 20px 24px; background-color: #ffffff; border-bottom: 3px solid {accent_color};">
                            <span style="color: #1F2937; font-size: 20px; font-weight: bold; font-family: Arial, sans-serif;">DACO</span>
                            <span style="color: #6B7280; font-size: 12px; font-family: Arial, sans-serif; margin-left: 6px;">Data Access Compliance Office</span>
                        </td>
                    </tr>
                    <tr>
                        <td style="padding: 32px 40px 40px 40px; background-color: #ffffff;">
                            {content}
                            {button_html}
                            {footer_note_html}
                        </td>
                    </tr>
                    <tr>
                        <td align="center" style="padding-top: 24px;">
                            <p style="margin: 0; color: #6B7280; font-size: 12px; font-family: Arial, sans-serif;">
                                This is an automated reminder from the DACO application service.
                            </p>
                        </td>
                    </tr>
                </table>
            </td>
        </tr>
    </table>
</body>
</html>
'''


# =============================================================================
# Info Card Component
# =============================================================================

def get_info_card(
    application_id: str,
    project_title: str,
    additional_fields: Optional[Dict[str, str]] = None
) -> str:
    """Styled details card for an application"""
    fields_html = ""
    if additional_fields:
        for label, value in additional_fields.items():
            fields_html += f'''
            <tr>
                <td style="padding: 8px 16px; color: #6B7280; font-size: 13px; border-bottom: 1px solid #E5E7EB; font-family: Arial, sans-serif;">{label}</td>
                <td style="padding: 8px 16px; color: #111827; font-size: 13px; font-weight: bold; border-bottom: 1px solid #E5E7EB; font-family: Arial, sans-serif;">{escape(str(value))}</td>
            </tr>
            '''

    return f'''
    <table role="presentation" cellspacing="0" cellpadding="0" border="0" width="100%" style="margin: 24px 0; border: 1px solid #E5E7EB; background-color: #F9FAFB;">
        <tr>
            <td style="padding: 12px 16px; color: #6B7280; font-size: 13px; border-bottom: 1px solid #E5E7EB; width: 140px; font-family: Arial, sans-serif;">Application ID</td>
            <td style="padding: 12px 16px; font-size: 13px; border-bottom: 1px solid #E5E7EB; font-family: Consolas, monospace;">{escape(application_id)}</td>
        </tr>
        <tr>
            <td style="padding: 12px 16px; color: #6B7280; font-size: 13px; border-bottom: 1px solid #E5E7EB; font-family: Arial, sans-serif;">Project</td>
            <td style="padding: 12px 16px; color: #111827; font-size: 13px; font-weight: bold; border-bottom: 1px solid #E5E7EB; font-family: Arial, sans-serif;">{escape(project_title)}</td>
        </tr>
        {fields_html}
    </table>
    '''


def _reminder(
    payload: Dict[str, Any],
    app_url: str,
    subject: str,
    greeting_name: str,
    heading: str,
    message: str,
    button_text: str,
    accent_color: str
) -> Dict[str, str]:
    application_id = payload.get("application_id", "")
    fields = {"Days since last action": str(payload.get("days_stalled", ""))}
    if payload.get("applicant_name"):
        fields["Applicant"] = payload["applicant_name"]

    content = f'''
    <h1 style="margin: 0 0 8px 0; font-size: 22px; font-weight: bold; color: #111827; font-family: Arial, sans-serif;">
        {heading}
    </h1>
    <p style="margin: 0 0 16px 0; color: #4B5563; font-size: 15px; font-family: Arial, sans-serif;">
        Dear {escape(greeting_name)},
    </p>
    <p style="margin: 0 0 16px 0; color: #4B5563; font-size: 14px; line-height: 1.6; font-family: Arial, sans-serif;">
        {message}
    </p>
    {get_info_card(application_id, payload.get("project_title") or "Untitled project", fields)}
    '''

    body = get_base_template(
        content=content,
        action_button_text=button_text,
        action_button_url=f"{app_url}/application/{application_id}",
        accent_color=accent_color
    )
    return {"subject": subject, "body": body}


# =============================================================================
# Reminder Templates
# =============================================================================

def get_reminder_submit_draft_template(payload: Dict[str, Any], app_url: str = "") -> Dict[str, str]:
    """Applicant left a draft untouched"""
    return _reminder(
        payload, app_url,
        subject=EmailSubjects.REMINDER_SUBMIT_DRAFT,
        greeting_name=payload.get("applicant_name") or "Applicant",
        heading="Your application is still a draft",
        message="You started a DACO application that has not been submitted yet. "
                "Complete the remaining sections and submit it for institutional review.",
        button_text="Continue Application",
        accent_color="#3B82F6"
    )


def get_reminder_rep_review_template(payload: Dict[str, Any], app_url: str = "") -> Dict[str, str]:
    """Institutional rep has not reviewed a submitted application"""
    return _reminder(
        payload, app_url,
        subject=EmailSubjects.REMINDER_SUBMIT_REVIEW,
        greeting_name=payload.get("rep_name") or "Institutional Representative",
        heading="An application is waiting for your review",
        message="An applicant from your institution submitted a DACO application that is "
                "awaiting your review. Please approve it or request revisions.",
        button_text="Review Application",
        accent_color="#F59E0B"
    )


def get_reminder_rep_revisions_template(payload: Dict[str, Any], app_url: str = "") -> Dict[str, str]:
    """Applicant has not addressed the rep's revision request"""
    return _reminder(
        payload, app_url,
        subject=EmailSubjects.REMINDER_SUBMIT_REVISIONS,
        greeting_name=payload.get("applicant_name") or "Applicant",
        heading="Revisions requested by your institutional representative",
        message="Your institutional representative requested changes to your application. "
                "Please update the flagged sections and resubmit.",
        button_text="Revise Application",
        accent_color="#F59E0B"
    )


def get_reminder_dac_review_template(payload: Dict[str, Any], app_url: str = "") -> Dict[str, str]:
    """DAC has not reviewed an application the rep approved"""
    return _reminder(
        payload, app_url,
        subject=EmailSubjects.REMINDER_SUBMIT_REVIEW,
        greeting_name="DAC Member",
        heading="An application is waiting for DAC review",
        message="An application approved by its institutional representative is awaiting "
                "a decision from the Data Access Committee.",
        button_text="Review Application",
        accent_color="#8B5CF6"
    )


def get_reminder_review_submitted_revisions_template(payload: Dict[str, Any], app_url: str = "") -> Dict[str, str]:
    """DAC has not reviewed revisions the applicant sent back"""
    return _reminder(
        payload, app_url,
        subject=EmailSubjects.REMINDER_REVIEW_SUBMITTED_REVISIONS,
        greeting_name="DAC Member",
        heading="Revised application awaiting your review",
        message="The applicant addressed the revisions the committee requested. "
                "The revised application is ready for review.",
        button_text="Review Revisions",
        accent_color="#8B5CF6"
    )


def get_reminder_dac_revisions_template(payload: Dict[str, Any], app_url: str = "") -> Dict[str, str]:
    """Applicant has not addressed the DAC's revision request"""
    return _reminder(
        payload, app_url,
        subject=EmailSubjects.REMINDER_SUBMIT_REVISIONS,
        greeting_name=payload.get("applicant_name") or "Applicant",
        heading="Revisions requested by the Data Access Committee",
        message="The Data Access Committee requested changes to your application. "
                "Please update the flagged sections and resubmit.",
        button_text="Revise Application",
        accent_color="#EF4444"
    )


# =============================================================================
# Template Registry
# =============================================================================

TEMPLATE_REGISTRY: Dict[EmailType, Callable[[Dict[str, Any], str], Dict[str, str]]] = {
    EmailType.REMINDER_SUBMIT_DRAFT: get_reminder_submit_draft_template,
    EmailType.REMINDER_SUBMIT_INSTITUTIONAL_REP_REVIEW: get_reminder_rep_review_template,
    EmailType.REMINDER_SUBMIT_REVISIONS_INSTITUTIONAL_REP: get_reminder_rep_revisions_template,
    EmailType.REMINDER_SUBMIT_DAC_REVIEW: get_reminder_dac_review_template,
    EmailType.REMINDER_REVIEW_SUBMITTED_REVISIONS: get_reminder_review_submitted_revisions_template,
    EmailType.REMINDER_SUBMIT_REVISIONS_DAC_REVIEW: get_reminder_dac_revisions_template,
}


def get_email_template(
    template_key: str,
    payload: Dict[str, Any],
    app_url: str = ""
) -> Dict[str, str]:
    """
    Get rendered email template by key

    Args:
        template_key: Template identifier (an EmailType value)
        payload: Data to populate the template
        app_url: Base URL for action buttons

    Returns:
        Dict with 'subject' and 'body' keys
    """
    # EmailType is a str enum, so plain string keys match too
    template_func = TEMPLATE_REGISTRY.get(template_key)
    if template_func:
        return template_func(payload, app_url)

    # Fallback for unknown templates
    application_id = payload.get("application_id", "")
    fallback_url = f"{app_url}/application/{application_id}" if application_id else app_url

    return {
        "subject": "DACO Application Status Update",
        "body": get_base_template(
            content="<p style='font-family: Arial, sans-serif;'>There is an update on a DACO application.</p>",
            action_button_text="View Application",
            action_button_url=fallback_url
        )
    }
