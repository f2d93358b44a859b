from datetime import datetime
from typing import Callable, List, NamedTuple, Optional, Sequence
import logging

from chatty.models.chats import MessageRole
from chatty.schemas.chat import Generation, Turn

logger = logging.getLogger(__name__)

FALLBACK_MODEL = "mock-v1"
FALLBACK_TOKEN_COUNT = 50
GENERIC_REPLY = "I am an AI assistant. How can I help you?"

class Rule(NamedTuple):
    name: str
    matches: Callable[[str], bool]
    reply: Callable[[datetime], str]

def contains_any(*keywords: str) -> Callable[[str], bool]:
    return lambda text: any(keyword in text for keyword in keywords)

def canned(text: str) -> Callable[[datetime], str]:
    return lambda now: text

CODE_SAMPLE_REPLY = (
    "Here is a Python example for you:\n\n"
    "```python\n"
    "def fibonacci(n):\n"
    "    if n <= 1:\n"
    "        return n\n"
    "    return fibonacci(n-1) + fibonacci(n-2)\n\n"
    "print(fibonacci(10))\n"
    "```\n\n"
    "And a JavaScript one:\n"
    "```javascript\n"
    "const greet = (name) => `Hello, ${name}!`;\n"
    "console.log(greet('Developer'));\n"
    "```"
)

# Evaluated in order, first match wins
DEFAULT_RULES: List[Rule] = [
    Rule(
        "greeting",
        contains_any("hello", "hi"),
        canned(
            "Hello! I am Chatty, your intelligent assistant. I can help you with coding, "
            "general questions, or just have a chat. How can I help you today?"
        ),
    ),
    Rule(
        "time",
        contains_any("time"),
        lambda now: f"It is currently {now.strftime('%H:%M:%S')}. Time flies when you're coding!",
    ),
    Rule("code", contains_any("code", "javascript", "python"), canned(CODE_SAMPLE_REPLY)),
    Rule(
        "identity",
        contains_any("who are you"),
        canned(
            "I am Chatty, a chatbot with a FastAPI backend. I am normally connected to the "
            "**Gemini API**, but if you are seeing this, I might be in fallback mode."
        ),
    ),
    Rule(
        "weather",
        contains_any("weather"),
        canned("I can't check the real weather right now, but I hope it's sunny where you are! ☀️"),
    ),
    Rule("joke", contains_any("joke"), canned("Why do programmers prefer dark mode? Because light attracts bugs! 🐛")),
]

def latest_user_text(turns: Sequence[Turn]) -> str:
    for turn in reversed(turns):
        if turn.role == MessageRole.USER.value:
            return turn.content
    return ""

class FallbackResponder:
    """Deterministic stand-in for the model when it is disabled or failing."""

    def __init__(self, rules: Optional[Sequence[Rule]] = None, clock: Callable[[], datetime] = datetime.now):
        self.rules = list(DEFAULT_RULES if rules is None else rules)
        self.clock = clock

    def match(self, text: str) -> Optional[Rule]:
        lowered = text.lower()
        for rule in self.rules:
            if rule.matches(lowered):
                return rule
        return None

    def respond(self, turns: Sequence[Turn]) -> Generation:
        rule = self.match(latest_user_text(turns))
        reply = rule.reply(self.clock()) if rule else GENERIC_REPLY
        logger.info(f"Fallback reply generated (rule={rule.name if rule else 'generic'})")
        return Generation(content=reply, token_count=FALLBACK_TOKEN_COUNT, model=FALLBACK_MODEL)
