# careerguide/scripted.py
# Scripted offline coach: canned recommendations, roadmap and replies used when no LLM key is set.

import json
import re
from pathlib import Path

_DATA_DIR = Path(__file__).resolve().parent / "data"

_RECOMMENDATIONS = json.loads((_DATA_DIR / "sample_recommendations.json").read_text(encoding="utf-8"))
_ROADMAP_TEMPLATE = (_DATA_DIR / "sample_roadmap.json").read_text(encoding="utf-8")

TASK_ASSESSMENT = "career_assessment_analysis"
TASK_ROADMAP = "roadmap_generation"
TASK_CHAT = "general_chat"

_TASK_RE = re.compile(r"^TASK:\s*(\S+)", re.MULTILINE)
_CAREER_RE = re.compile(r"^Career:\s*(.+)$", re.MULTILINE)

# Keyword -> canned coaching tip for freeform chat
_TIPS = {
    "salary": "Entry-level salaries vary a lot by city and company size. Use the salary ranges on your "
              "recommendations as a guide and focus first on skills that move you up the range.",
    "project": "Pick one small project you can finish in two weeks, publish it, and write a short "
               "README about what you learned. Finished beats ambitious.",
    "interview": "Practice explaining one project end to end: the problem, your choices, and what you "
                 "would change. Interviewers remember clear stories.",
    "course": "Choose one structured course and stick with it until the end before adding another. "
              "Pair every module with a small exercise of your own.",
}

_DEFAULT_REPLY = (
    "That's a good question. Break it into one skill to learn this month and one small project to "
    "practise it. Tell me more about what you want to achieve and I can be more specific."
)


def task_of(prompt: str) -> str:
    m = _TASK_RE.search(prompt or "")
    return m.group(1) if m else TASK_CHAT


def scripted_reply(prompt: str) -> str:
    """Answer a prompt the way the LLM would, from canned data only."""
    task = task_of(prompt)
    if task == TASK_ASSESSMENT:
        return json.dumps(_RECOMMENDATIONS, ensure_ascii=False)
    if task == TASK_ROADMAP:
        m = _CAREER_RE.search(prompt)
        career = m.group(1).strip() if m else "Software Developer"
        # Escape for embedding inside the JSON template's string literals
        return _ROADMAP_TEMPLATE.replace("{CAREER}", json.dumps(career, ensure_ascii=False)[1:-1])

    # Only look at the newest student line so old history does not pick the tip
    last = prompt.rsplit("Student:", 1)[-1].lower()
    for kw, tip in _TIPS.items():
        if kw in last:
            return tip
    return _DEFAULT_REPLY
