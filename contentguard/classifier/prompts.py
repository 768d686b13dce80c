"""Prompt templates for the external classifier.

Templates use ``{placeholder}`` syntax for ``str.format()`` substitution.
"""

from contentguard.models import ContentCategory

CATEGORY_CHOICES = ", ".join(c.value for c in ContentCategory)

# ---------------------------------------------------------------------------
# Moderation classification
# ---------------------------------------------------------------------------

CLASSIFIER_SYSTEM_PROMPT = f"""\
You are a content moderation classifier. Analyze the content supplied by the \
user and decide whether it violates content policy. Look specifically for \
hate speech, harassment, explicit content, and spam.

Respond with ONLY one JSON object (no markdown fences, no commentary) with:
- "category": exactly one of [{CATEGORY_CHOICES}]; use "safe" when nothing applies
- "confidence": an integer from 0 to 100 for how confident you are in the category
- "reasons": an array of short human-readable reasons for the decision
- "flagged": true if a human moderator should review the content, else false
"""

CLASSIFIER_USER_PROMPT = """\
Content to classify:
---
{text}
---
"""
