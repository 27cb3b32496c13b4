import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from pydantic import ValidationError

from echoflow.errors import ClassifierUnavailable
from echoflow.models import RawCandidate, naive_local
from llm.llm_client import LLMClient
from llm.schemas import ClassifierResult

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are an AI assistant for Echo Flow, a productivity app. Your job is to:
1. Have a natural conversation with the user
2. Extract actionable items (todos, reminders, notes, journal entries) from the conversation
3. Respond in a friendly, helpful manner
4. Use the provided app context to avoid duplicates
5. When you identify actionable items, format them as JSON at the end of your response
6. If a todo/reminder has no clear due date or time, ask a concise follow-up question
7. When including dates, use ISO 8601 in the user's local time
8. Never merge unrelated tasks into a single action; create separate actions for each distinct person, deliverable, or verb
9. If the user specifies an exact time (e.g., "by 5pm"), set the action date to that exact local time
10. Set priority to one of:
   - urgent-important: contract work, client deliverables, "today"/"urgent"/"asap"/"deadline" items
   - not-urgent-important: planning, learning, relationship building, "this week"/"next week" items
   - urgent-not-important: interruptions, some emails, quick but not critical items
   - not-urgent-not-important: busy work, vague future items
11. Categorize types:
   - todo: work tasks, projects, things to complete
   - reminder: time-sensitive items, emails to reply to, calls to make
   - note: information to save, reference material
   - journal: personal reflections, feelings, daily experiences

Response format:
[Your natural response to the user]

---JSON---
{
  "actions": [
    {
      "type": "todo|reminder|note|journal",
      "title": "Brief title",
      "content": "Full content",
      "date": "ISO date string if applicable",
      "priority": "urgent-important|not-urgent-important|urgent-not-important|not-urgent-not-important",
      "tags": ["tag1", "tag2"]
    }
  ]
}
---END---

Leave the JSON block out when there is nothing actionable."""


def parse_action_date(value: Any) -> Optional[datetime]:
    """Parse a classifier date into a naive local datetime.

    A trailing "Z" is treated as local wall-clock time, since the model is
    told to use local time and often appends it by habit.
    """
    if not value or not isinstance(value, str):
        return None
    raw = value.strip()
    try:
        if raw.endswith("Z"):
            return datetime.fromisoformat(raw[:-1])
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        logger.warning(f"Ignoring unparsable action date: {value!r}")
        return None
    return naive_local(parsed)


class ActionExtractor:
    """The external classification step: utterance in, reply + raw candidates out."""

    def __init__(
        self,
        llm_client: Optional[LLMClient] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.llm = llm_client or LLMClient()
        self.clock = clock

    def build_messages(
        self,
        utterance: str,
        history: List[Dict[str, str]],
        context_summary: str = "",
    ) -> List[Dict[str, str]]:
        now = self.clock()
        messages = [
            {"role": "system", "content": SYSTEM_PROMPT},
            {
                "role": "system",
                "content": f"Current local date/time: {now.strftime('%A %Y-%m-%d %H:%M')}.",
            },
        ]
        if context_summary:
            messages.append({"role": "system", "content": f"App context:\n{context_summary}"})
        messages.extend(
            {"role": m["role"], "content": m["content"]}
            for m in history
            if m.get("role") in {"user", "assistant"}
        )
        messages.append({"role": "user", "content": utterance})
        return messages

    def classify(
        self,
        utterance: str,
        history: List[Dict[str, str]],
        context_summary: str = "",
    ) -> ClassifierResult:
        messages = self.build_messages(utterance, history, context_summary)
        try:
            text = self.llm.chat(messages)
        except Exception as e:
            # any provider failure (network, auth, config) is a classifier outage
            raise ClassifierUnavailable(str(e) or e.__class__.__name__) from e

        reply, payload = self.llm.split_reply(text)
        candidates = self._parse_candidates(payload)
        logger.info(f"Classifier returned {len(candidates)} candidate(s)")
        return ClassifierResult(reply=reply, candidates=candidates)

    def _parse_candidates(self, payload: Optional[Dict[str, Any]]) -> List[RawCandidate]:
        if not payload:
            return []
        items = payload.get("actions") or []
        if not isinstance(items, list):
            logger.warning("Action block 'actions' is not a list, ignoring it")
            return []

        out: List[RawCandidate] = []
        for item in items:
            if not isinstance(item, dict):
                continue
            try:
                out.append(
                    RawCandidate(
                        kind=item.get("type") or item.get("kind"),
                        title=item.get("title"),
                        content=item.get("content"),
                        date=parse_action_date(item.get("date")),
                        priority=item.get("priority"),
                        tags=item.get("tags"),
                    )
                )
            except ValidationError as e:
                logger.warning(f"Skipping invalid action candidate: {e.errors()[0].get('msg')}")
        return out
