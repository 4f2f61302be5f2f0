"""PII masking for log output.

Trip submissions carry user ids, user agents and (before hashing) client IPs.
Messages and string arguments are scrubbed of emails, Egyptian mobile numbers
and IPv4 addresses before any handler writes them.
"""

import logging
import re

EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9_.+-]+@[a-zA-Z0-9-]+\.[a-zA-Z0-9-.]+")
IPV4_PATTERN = re.compile(r"\b(?:\d{1,3}\.){3}\d{1,3}\b")
PHONE_PATTERN = re.compile(r"(?<![\d.])(?:\+?20)?0?1[0125]\d{8}(?![\d.])")


def mask_pii(text: str) -> str:
    if "@" in text:
        text = EMAIL_PATTERN.sub("[EMAIL]", text)
    if any(c.isdigit() for c in text):
        text = IPV4_PATTERN.sub("[IP]", text)
        text = PHONE_PATTERN.sub("[PHONE]", text)
    return text


class PIIFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = mask_pii(record.msg)
        if isinstance(record.args, tuple):
            record.args = tuple(mask_pii(a) if isinstance(a, str) else a for a in record.args)
        return True
