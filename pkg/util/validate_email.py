import re

# local@domain.tld, no whitespace and exactly one @ per part
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def is_valid_email(email: str) -> bool:
    if not email:
        return False
    return EMAIL_PATTERN.match(email) is not None
