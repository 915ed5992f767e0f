"""
Module: patterns
Purpose: Regex constants and ordered noise-rule families for detection and extraction.
Dependencies: threadclear.parsing.types (NoiseRule, RuleAction only)

Separates pattern policy from the parsing algorithms in detector.py, names.py
and extractor.py. Rule order inside each family is significant: the extractor
walks each family top to bottom, and later families assume earlier ones ran.
"""

from __future__ import annotations

import re

from threadclear.parsing.types import NoiseRule, RuleAction

# ---------------------------------------------------------------------------
# Words that look like "Name:" labels but are headers or boilerplate
# ---------------------------------------------------------------------------

HEADER_WORDS: frozenset[str] = frozenset(
    {
        "from",
        "to",
        "cc",
        "bcc",
        "subject",
        "date",
        "sent",
        "reply",
        "forward",
        "re",
        "fw",
        "fwd",
        "note",
        "attachment",
        "priority",
        "importance",
    }
)

# ---------------------------------------------------------------------------
# Source-format detection
# ---------------------------------------------------------------------------

DETECT_EMAIL_HEADER = re.compile(r"^[ \t]*(?:From|To|Subject|Date):", re.IGNORECASE | re.MULTILINE)

# "alice [10:32]" or "[10:32 AM] alice"
DETECT_TIMESTAMP_LINE = re.compile(
    r"^[ \t]*(?:\w+[ \t]+\[\d{1,2}:\d{2}[^\]\n]*\]|\[\d{1,2}:\d{2}[^\]\n]*\][ \t]*\w+)",
    re.MULTILINE,
)

LABELED_NAME_LINE = re.compile(r"^([A-Z][a-zA-Z]+(?:[ \t]+[A-Z][a-zA-Z]+)?):[ \t]+\S", re.MULTILINE)

# ---------------------------------------------------------------------------
# Name discovery and email block parsing
# ---------------------------------------------------------------------------

FROM_HEADER = re.compile(
    r"^From:[ \t]*\"?([^<\n\"]*?)\"?[ \t]*(?:<([^>\n]+)>)?[ \t]*$",
    re.IGNORECASE | re.MULTILINE,
)
FROM_BLOCK_START = re.compile(r"^(?=From:)", re.IGNORECASE | re.MULTILINE)
DATE_HEADER = re.compile(r"^(?:Date|Sent):[ \t]*(.+?)[ \t]*$", re.IGNORECASE | re.MULTILINE)
BARE_ADDRESS = re.compile(r"^[\w.+-]+@[\w-]+(?:\.[\w-]+)+$")

EMAIL_HEADER_LINE = re.compile(
    r"^(?:From|To|Cc|Bcc|Subject|Date|Sent|Reply-To|Content-Type|MIME-Version"
    r"|Importance|Priority|X-[\w-]+):",
    re.IGNORECASE,
)

CHAT_USERNAME = re.compile(r"^[ \t]*(\w+)[ \t]+\[\d{1,2}:\d{2}", re.MULTILINE)

# ---------------------------------------------------------------------------
# Chat line formats
# ---------------------------------------------------------------------------

# alice [10:32 AM]: message
SLACK_MESSAGE = re.compile(
    r"^[ \t]*(\w+)[ \t]+\[(\d{1,2}:\d{2}(?:[ \t]*[AaPp][Mm])?)\]:?[ \t]*(.+)$",
    re.MULTILINE,
)
# [10:32 AM] Alice Smith: message
BRACKET_MESSAGE = re.compile(
    r"^[ \t]*\[(\d{1,2}:\d{2}(?:[ \t]*[AaPp][Mm])?)\][ \t]*([\w .'-]{1,30}?):[ \t]*(.+)$",
    re.MULTILINE,
)

# ---------------------------------------------------------------------------
# Rule family 1: quoted replies (cut past QUOTE_MIN_OFFSET)
# ---------------------------------------------------------------------------

QUOTE_RULES: tuple[NoiseRule, ...] = (
    NoiseRule("on_date_wrote", re.compile(r"^On\s.+wrote:", re.MULTILINE), RuleAction.CUT),
    NoiseRule(
        "outlook_sent_block",
        re.compile(r"^From:.+\nSent:.+\nTo:", re.MULTILINE | re.IGNORECASE),
        RuleAction.CUT,
    ),
    NoiseRule(
        "outlook_date_block",
        re.compile(r"^From:.+\nDate:.+\nTo:", re.MULTILINE | re.IGNORECASE),
        RuleAction.CUT,
    ),
    NoiseRule(
        "original_message",
        re.compile(r"^-{2,}\s*Original Message\s*-{2,}", re.MULTILINE | re.IGNORECASE),
        RuleAction.CUT,
    ),
    NoiseRule("angle_quoted_line", re.compile(r"^>", re.MULTILINE), RuleAction.CUT),
    NoiseRule("underscore_rule", re.compile(r"_{10,}"), RuleAction.CUT),
    NoiseRule("dash_rule", re.compile(r"-{10,}"), RuleAction.CUT),
)

# ---------------------------------------------------------------------------
# Rule family 2: signatures and footers (cut past SIGNATURE_MIN_OFFSET)
# ---------------------------------------------------------------------------

SIGNATURE_RULES: tuple[NoiseRule, ...] = (
    NoiseRule("sig_delimiter", re.compile(r"^--[ \t]*$", re.MULTILINE), RuleAction.CUT),
    NoiseRule(
        "sent_from_device",
        re.compile(r"^Sent from (?:my|Mail)\b", re.MULTILINE | re.IGNORECASE),
        RuleAction.CUT,
    ),
    NoiseRule(
        "valediction",
        re.compile(
            r"^(?:Best regards|Kind regards|Warm regards|Regards|Thanks|Thank you|Cheers"
            r"|Best|Sincerely)[ \t]*[,.!]?[ \t]*$",
            re.MULTILINE | re.IGNORECASE,
        ),
        RuleAction.CUT,
    ),
    NoiseRule(
        "confidentiality_notice",
        re.compile(
            r"^(?:This message \(including any attachments\)|This e-?mail and any attachments"
            r"|CONFIDENTIALITY NOTICE)",
            re.MULTILINE | re.IGNORECASE,
        ),
        RuleAction.CUT,
    ),
    NoiseRule("confidential_banner", re.compile(r"^CONFIDENTIAL\b", re.MULTILINE), RuleAction.CUT),
    NoiseRule(
        "bare_phone",
        re.compile(
            r"^[ \t]*(?:(?:\+?\d{1,2}[-. ]?)?\(?\d{3}\)?[-. ]?)?\d{3}[-. ]?\d{4}[ \t]*$",
            re.MULTILINE,
        ),
        RuleAction.CUT,
    ),
    # Caps company name opening the trailing block; prose below it means body text
    NoiseRule(
        "caps_company_line",
        re.compile(
            r"(?<=\n\n)[ \t]*[A-Z][A-Z&.,' -]+[A-Z]\.?[ \t]*$(?![\s\S]*[a-z][.!?][ \t]*$)",
            re.MULTILINE,
        ),
        RuleAction.CUT,
    ),
)

# ---------------------------------------------------------------------------
# Rule family 3: inline noise (applied everywhere, no offset)
# ---------------------------------------------------------------------------

CLEANUP_RULES: tuple[NoiseRule, ...] = (
    NoiseRule("bare_url", re.compile(r"https?://\S+"), RuleAction.STRIP),
    NoiseRule(
        "bare_email_line",
        re.compile(r"^[ \t]*<?[\w.+-]+@[\w-]+(?:\.[\w-]+)+>?[ \t]*$", re.MULTILINE),
        RuleAction.STRIP,
    ),
    NoiseRule("trailing_space", re.compile(r"[ \t]+$", re.MULTILINE), RuleAction.STRIP),
    NoiseRule("blank_runs", re.compile(r"\n{3,}"), RuleAction.STRIP, replacement="\n\n"),
)
