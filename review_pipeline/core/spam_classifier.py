"""
Spam Classifier for reader comments.

Pure and deterministic: a case-insensitive keyword blocklist plus a handful of
regular expressions. Any single match marks the text as spam.
"""

import re
from typing import Dict, List, Pattern

BLOCKED_KEYWORDS: tuple = (
    # Pharmaceutical
    "viagra", "cialis", "pharmacy", "prescription", "pills", "medication", "drug",
    # Gambling
    "casino", "poker", "betting", "gambling", "slots", "jackpot", "lottery",
    # Crypto and finance scams
    "crypto", "bitcoin", "ethereum", "nft", "blockchain", "forex",
    "investment opportunity", "make money fast", "free money", "double your",
    "passive income", "get rich",
    # Adult content
    "xxx", "porn", "adult content", "18+", "nsfw",
    # Generic spam phrases
    "click here", "act now", "limited time", "order now", "buy now", "free trial",
    "no obligation", "winner", "congratulations", "you have been selected",
    "work from home", "earn extra",
    # SEO spam
    "backlink", "seo service", "rank higher", "google ranking",
    # Malware and phishing
    "download now", "install now", "update required", "verify your account",
    "confirm your identity",
)

SPAM_PATTERNS: Dict[str, Pattern[str]] = {
    "url": re.compile(r"https?://[^\s]+", re.IGNORECASE),
    "email": re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Z|a-z]{2,}\b"),
    "phone": re.compile(r"\b\d{3}[-.]?\d{3}[-.]?\d{4}\b"),
    "excessive_caps": re.compile(r"\b[A-Z]{4,}\b.*\b[A-Z]{4,}\b.*\b[A-Z]{4,}\b"),
    "repeated_characters": re.compile(r"(.)\1{4,}"),
    "ethereum_wallet": re.compile(r"\b0x[a-fA-F0-9]{40}\b"),
    "bitcoin_wallet": re.compile(r"\b[13][a-km-zA-HJ-NP-Z1-9]{25,34}\b"),
}

PATTERN_REASONS: Dict[str, str] = {
    "url": "Contains URL",
    "email": "Contains email address",
    "phone": "Contains phone number",
    "excessive_caps": "Contains excessive capital letters",
    "repeated_characters": "Contains repeated characters",
    "ethereum_wallet": "Contains cryptocurrency wallet address",
    "bitcoin_wallet": "Contains cryptocurrency wallet address",
}


def is_spam_content(text: str) -> bool:
    """
    Check whether a piece of text looks like spam.

    Args:
        text: Comment body to classify.

    Returns:
        bool: True when any blocked keyword or spam pattern matches.
    """
    lowered = text.lower()
    if any(keyword in lowered for keyword in BLOCKED_KEYWORDS):
        return True
    return any(pattern.search(text) for pattern in SPAM_PATTERNS.values())


def get_spam_reasons(text: str) -> List[str]:
    """
    List every rule that matches, for display to moderators.

    Keywords come first in blocklist order, then patterns. The two wallet
    patterns share one reason and it is listed once.
    """
    lowered = text.lower()
    reasons: List[str] = [
        f'Contains blocked keyword: "{keyword}"'
        for keyword in BLOCKED_KEYWORDS
        if keyword in lowered
    ]
    for name, pattern in SPAM_PATTERNS.items():
        reason = PATTERN_REASONS[name]
        if pattern.search(text) and reason not in reasons:
            reasons.append(reason)
    return reasons
