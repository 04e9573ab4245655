"""
Notification rule engine.

Decides which recipients to mention when a call is posted to a channel.
Each rule is evaluated in a fixed order:

1. Scope: the destination channel or the call's talkgroup must be covered.
2. Suppression: a matching ``not_regex`` stops the rule outright.
3. Pattern: a matching ``regex`` fires the rule.
4. Phrases: any ``include`` phrase found as a contiguous run of whole words
   fires the rule.

Patterns are matched against the lowercased transcript.
"""

from typing import List, Sequence

from trunkbot.models.dispatch import NotificationRule
from trunkbot.utils.text import contains_sequence, tokenize

MENTION_TEMPLATE = "<@{recipient}>"


def rule_fires(rule: NotificationRule, text: str, tokens: Sequence[str]) -> bool:
    """
    Evaluate one in-scope rule against a transcript.

    Args:
        rule: Compiled rule
        text: Lowercased transcript
        tokens: Word tokens of ``text``

    Returns:
        True when the rule fires
    """
    if rule.not_regex is not None and rule.not_regex.search(text):
        return False
    if rule.regex is not None and rule.regex.search(text):
        return True
    return any(contains_sequence(tokens, phrase) for phrase in rule.phrases)


def extract_mentions(
    text: str,
    channel: str,
    talkgroup: int,
    rules: Sequence[NotificationRule],
) -> List[str]:
    """
    Collect recipient mentions for a call posted to ``channel``.

    Args:
        text: Call transcript
        channel: Destination channel alias
        talkgroup: Talkgroup ID of the call
        rules: Compiled rules in evaluation order

    Returns:
        Mention markers in rule order, one per recipient
    """
    lowered = text.lower()
    tokens = tokenize(lowered)

    mentions: List[str] = []
    fired = set()
    for rule in rules:
        if rule.recipient in fired:
            continue
        if not rule.in_scope(channel, talkgroup):
            continue
        if rule_fires(rule, lowered, tokens):
            fired.add(rule.recipient)
            mentions.append(MENTION_TEMPLATE.format(recipient=rule.recipient))
    return mentions
