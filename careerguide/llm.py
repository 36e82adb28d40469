# careerguide/llm.py
# Text generator wrapper (OpenAI chat completions) with a scripted offline fallback, plus prompt builders.

import logging
from typing import List, Optional, Sequence

from openai import OpenAI, OpenAIError

from . import config
from .errors import GenerationError
from .schemas import Message
from .scripted import TASK_ASSESSMENT, TASK_CHAT, TASK_ROADMAP, scripted_reply

logger = logging.getLogger(__name__)

# Create client (may be unused if we fall back)
client = OpenAI(api_key=config.OPENAI_API_KEY) if config.OPENAI_API_KEY else None

SYSTEM_PROMPT = (
    "You are PathFinder, an AI career guide for Indian Gen Z students. "
    "Be conversational, supportive and concise. Give specific, actionable advice "
    "relevant to the Indian education system and job market."
)

_RECOMMENDATION_SCHEMA = """{
  "recommendations": [
    {
      "title": "Career title",
      "description": "One-sentence description of the role",
      "match_score": integer 0-100,
      "salary_range": "Salary range in LPA",
      "growth_outlook": "Growth outlook",
      "skills": ["skill1", "skill2"],
      "tasks": ["daily task1", "daily task2"],
      "learning_steps": ["step1", "step2"],
      "time_to_proficiency": "e.g. 6-12 months",
      "difficulty": "Beginner" | "Intermediate" | "Advanced",
      "demand": "High" | "Medium" | "Low",
      "reasons": ["why this matches the student"]
    }
  ]
}"""

_ROADMAP_SCHEMA = """{
  "career_path": "Career title",
  "overview": "Short overview",
  "total_duration": "e.g. 12-18 months",
  "phases": [
    {
      "name": "Phase name",
      "duration": "e.g. 2-3 months",
      "description": "What this phase covers",
      "milestones": ["milestone1"],
      "resources": ["resource1"],
      "projects": ["project1"]
    }
  ],
  "skills": ["skill1"],
  "certifications": ["certification1"],
  "salary_progression": {"entry_level": "...", "mid_level": "...", "senior_level": "..."},
  "next_steps": ["step1"]
}"""


def _qa_block(questions: Sequence[str], answers: Sequence[str]) -> str:
    return "\n".join(f"Q{i}: {q}\nA{i}: {a}" for i, (q, a) in enumerate(zip(questions, answers), 1))


def build_assessment_prompt(questions: Sequence[str], answers: Sequence[str]) -> str:
    return (
        f"TASK: {TASK_ASSESSMENT}\n"
        "A student answered this career assessment:\n\n"
        f"{_qa_block(questions, answers)}\n\n"
        "Recommend exactly 3 career paths that fit these answers. "
        "Return only valid JSON with this structure and nothing else:\n"
        f"{_RECOMMENDATION_SCHEMA}"
    )


def build_roadmap_prompt(career: str, questions: Sequence[str], answers: Sequence[str]) -> str:
    return (
        f"TASK: {TASK_ROADMAP}\n"
        f"Career: {career}\n"
        "Create a phased learning roadmap for this career, tailored to the student's assessment:\n\n"
        f"{_qa_block(questions, answers)}\n\n"
        "Return only valid JSON with this structure and nothing else:\n"
        f"{_ROADMAP_SCHEMA}"
    )


def build_chat_prompt(history: List[Message], text: str, career: Optional[str] = None) -> str:
    lines = [f"TASK: {TASK_CHAT}"]
    if career:
        lines.append(f"The student is following a roadmap to become a {career}.")
    if history:
        lines.append("Conversation so far:")
        for m in history:
            who = "Student" if m.role == "user" else "Coach"
            lines.append(f"{who}: {m.text}")
    lines.append(f"Student: {text}")
    lines.append("Reply as the coach in plain text.")
    return "\n".join(lines)


def generate(prompt: str) -> str:
    """
    Send one prompt to the LLM and return its text.
    Without an API key the scripted coach answers instead, so the flow works offline.
    Raises GenerationError on API failures or empty completions.
    """
    if client is None:
        logger.debug("No OPENAI_API_KEY; using scripted coach")
        return scripted_reply(prompt)

    try:
        resp = client.chat.completions.create(
            model=config.OPENAI_MODEL,
            temperature=config.OPENAI_TEMPERATURE,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
        )
    except OpenAIError as e:
        logger.warning("OpenAI call failed: %s", e)
        raise GenerationError(f"text generation failed: {e}") from e

    txt = resp.choices[0].message.content if resp.choices else None
    if not txt:
        raise GenerationError("text generation returned an empty completion")
    return txt
