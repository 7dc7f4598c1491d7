"""
Assistant sidebar stub.

There is no model behind it: every question is answered with one of a fixed
set of form design tips.
"""
import random
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

GREETING = (
    "Hi! I'm your Fomi AI assistant. I can help you build better forms, suggest "
    "improvements, and answer questions about form design. What would you like to create?"
)

TIPS = (
    "Great question! For better user engagement, consider making your form shorter "
    "and grouping related questions together.",
    "I suggest adding a progress indicator if your form has more than 5 questions. "
    "This helps users understand how much is left.",
    "That's a smart approach! You might want to make that field required to ensure "
    "you get complete responses.",
    "Consider using conditional logic to show/hide questions based on previous answers. "
    "This creates a more personalized experience.",
    "For better accessibility, make sure your form has clear labels and proper contrast ratios.",
)

HISTORY_LIMIT = 50


def _message(role: str, content: str) -> Dict[str, Any]:
    return {
        "type": role,
        "content": content,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


class AssistantStub:
    def __init__(self, seed: Optional[int] = None):
        self._random = random.Random(seed)
        self.history: List[Dict[str, Any]] = [_message("assistant", GREETING)]

    def answer(self, content: str) -> Optional[Dict[str, Any]]:
        """A canned tip for `content` without touching the history. Blank input is ignored."""
        if not content or not content.strip():
            return None
        return _message("assistant", self._random.choice(TIPS))

    def reply(self, content: str) -> Optional[Dict[str, Any]]:
        """Like `answer`, but records both sides; only the newest HISTORY_LIMIT messages are kept."""
        if not content or not content.strip():
            return None
        self.history.append(_message("user", content))
        answer = self.answer(content)
        self.history.append(answer)
        del self.history[:-HISTORY_LIMIT]
        return answer
