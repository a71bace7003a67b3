"""Text-generation collaborator for health questions."""

from typing import Optional, Protocol

from src.data.schemas import PredictionInput

QUICK_PROMPTS = [
    "What dietary changes should I make to reduce diabetes risk?",
    "Can you create a 7-day meal plan for diabetes prevention?",
    "What exercises are best for managing blood sugar?",
    "Explain the relationship between BMI and diabetes",
    "What are the early warning signs of diabetes?",
]


class Responder(Protocol):
    def respond(self, prompt: str, context: Optional[PredictionInput]) -> str:
        ...


class CannedAdvisor:
    """Stateless stand-in that answers every prompt with a fixed template."""

    def respond(self, prompt: str, context: Optional[PredictionInput] = None) -> str:
        if not prompt or not prompt.strip():
            raise ValueError("Prompt must not be empty")

        response = "I'm an AI health advisor. "
        if context is not None:
            response += (
                f"Based on your recent prediction with glucose level of {context.Glucose:g} "
                f"and BMI of {context.BMI:g}, "
            )
        response += "I recommend consulting with healthcare professionals for personalized advice. "
        response += "Would you like specific guidance on diet, exercise, or monitoring?"
        return response
