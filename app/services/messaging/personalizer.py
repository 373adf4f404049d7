"""
Message personalization.

Expands the customer placeholders of a campaign template and builds the
HTML and plain-text parts of the e-mail. Pure functions: the same template
and customer always give the same message.
"""
import html as html_lib
import re
from dataclasses import dataclass
from typing import Optional

FALLBACK_NAME = "Valued Customer"

# Case-insensitive, like the templates operators write by hand
BODY_NAME_TOKEN = re.compile(r"\{customername\}", re.IGNORECASE)
SUBJECT_NAME_TOKEN = re.compile(r"\{customerfirstname\}", re.IGNORECASE)

_TAG = re.compile(r"<[^>]*>")

HTML_DOCUMENT = """<html>
<head>
  <title>{title}</title>
</head>
<body>
  {body}
</body>
</html>"""


@dataclass(frozen=True)
class PersonalizedMessage:
    """Ready-to-deliver message parts."""

    subject: str
    plain_text: str
    html: str


def display_name(name: Optional[str]) -> str:
    """
    First space-delimited token of the name.

    Examples:
        "Ada Lovelace" -> "Ada"
        "" / None -> "Valued Customer"
    """
    if not name or not name.strip():
        return FALLBACK_NAME
    return name.strip().split(" ")[0]


def personalize_text(template: str, name: Optional[str]) -> str:
    """Replaces {customername} in a body template."""
    first = display_name(name)
    return BODY_NAME_TOKEN.sub(lambda _: first, template)


def personalize_subject(subject: str, name: Optional[str]) -> str:
    """Replaces {customerFirstName} in a subject line."""
    first = display_name(name)
    return SUBJECT_NAME_TOKEN.sub(lambda _: first, subject)


def strip_tags(markup: str) -> str:
    """Removes every <...> tag."""
    return _TAG.sub("", markup)


def personalize(template: str, subject: str, name: Optional[str]) -> PersonalizedMessage:
    """
    Builds the message for one recipient.

    Newlines become <br> in the HTML body; the plain-text part is the
    personalized body with all markup removed (so the <br> line breaks
    disappear too).

    Args:
        template: Campaign message with {customername} placeholders
        subject: Subject line with {customerFirstName} placeholders
        name: Recipient's full name (may be empty)

    Returns:
        PersonalizedMessage
    """
    body = personalize_text(template.replace("\r\n", "\n"), name).replace("\n", "<br>")
    final_subject = personalize_subject(subject, name)

    document = HTML_DOCUMENT.format(
        title=html_lib.escape(final_subject),
        body=body,
    )

    return PersonalizedMessage(
        subject=final_subject,
        plain_text=strip_tags(body),
        html=document,
    )
