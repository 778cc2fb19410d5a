"""Claude API integration for household meal-plan generation.

The household context sent to the model is built from the aggregated
preference view, so allergies and intolerances recorded anywhere in the
household reach the prompt.
"""

import json
import logging
import re
from pathlib import Path
from typing import Any, Iterable

from anthropic import Anthropic, APIError

from .config import get_settings
from .preferences import AggregationResult

logger = logging.getLogger(__name__)

# Path to system prompt
SYSTEM_PROMPT_PATH = Path(__file__).parent / "prompts" / "meal_plan_system_prompt.txt"
CHAT_SYSTEM_PROMPT_PATH = Path(__file__).parent / "prompts" / "chat_system_prompt.txt"

DEFAULT_HOUSEHOLD_SIZE = 2
DEFAULT_BUDGET = 150.0
DEFAULT_DAYS = 7

CHAT_MAX_TOKENS = 1000
FALLBACK_MAX_TOKENS = 500
NO_REPLY = "I apologize, I couldn't generate a response."

RESPONSE_FORMAT = """{
  "mealPlan": [
    {
      "day": "Monday",
      "meals": {
        "breakfast": { "name": "...", "ingredients": [], "prepTime": "...", "cost": 0 },
        "lunch": { "name": "...", "ingredients": [], "prepTime": "...", "cost": 0 },
        "dinner": { "name": "...", "ingredients": [], "prepTime": "...", "cost": 0 }
      }
    }
  ],
  "shoppingList": [
    { "item": "...", "quantity": "...", "estimatedCost": 0, "category": "..." }
  ],
  "totalEstimatedCost": 0,
  "nutritionSummary": {
    "averageCaloriesPerDay": 0,
    "proteinGrams": 0,
    "carbsGrams": 0,
    "fatGrams": 0
  }
}"""

_FENCED_BLOCK = re.compile(r"```(?:json)?\s*(.*?)```", re.S)

_client: Anthropic | None = None


class AIServiceUnavailable(RuntimeError):
    """Raised when no Anthropic API key is configured."""


class AIResponseError(RuntimeError):
    """Raised when the provider call fails or returns unusable output."""


def _get_client() -> Anthropic | None:
    """Return an Anthropic client if ANTHROPIC_API_KEY is set, otherwise None."""
    global _client
    if _client is None:
        settings = get_settings()
        if not settings.ai_enabled:
            return None
        _client = Anthropic(api_key=settings.anthropic_api_key)
    return _client


def load_system_prompt(path: Path = SYSTEM_PROMPT_PATH) -> str:
    """Load a system prompt from file (the meal-plan prompt by default)."""
    with open(path, "r") as f:
        return f.read()


def _join_or(values: Iterable[str], fallback: str) -> str:
    values = list(values)
    return ", ".join(values) if values else fallback


def _member_label(member: Any) -> str:
    name = member.get("name") if isinstance(member, dict) else getattr(member, "name", None)
    age = member.get("age") if isinstance(member, dict) else getattr(member, "age", None)
    return f"{name} ({age} years old)" if age else str(name)


def build_household_context(household: Any, members: list, result: AggregationResult) -> str:
    """Render a household and its aggregated preferences as prompt text."""
    aggregated = result.aggregated
    critical = aggregated.allergies + [
        i for i in aggregated.intolerances if i not in aggregated.allergies
    ]

    sections = [
        "HOUSEHOLD INFORMATION:",
        f"- Household: {household.name}",
        f"- Members: {_join_or((_member_label(m) for m in members), 'None listed')}",
        f"- Total People: {result.stats.total_members}",
        "",
        "CRITICAL ALLERGIES AND INTOLERANCES (MUST AVOID):",
        _join_or(critical, "None"),
        "",
        "DIETARY RESTRICTIONS (MUST FOLLOW):",
        _join_or(aggregated.restrictions, "None"),
        "",
        "DISLIKES (AVOID IF POSSIBLE):",
        _join_or(aggregated.dislikes, "None"),
        "",
        "PREFERENCES (INCLUDE MORE OF):",
        _join_or(aggregated.preferences, "None"),
    ]
    if household.budget_weekly:
        sections.extend(["", f"Weekly Budget: ${household.budget_weekly:g}"])
    return "\n".join(sections)


def build_meal_plan_prompt(
    *,
    days: int,
    household_size: int,
    budget: float,
    household_context: str = "",
    dietary_restrictions: Iterable[str] = (),
    cuisine_preferences: Iterable[str] = (),
) -> str:
    """Build the user message for a meal-plan request."""
    lines = [
        f"Generate a {days}-day meal plan for {household_size} people "
        f"with a weekly budget of ${budget:g}.",
        "",
    ]
    if household_context:
        lines.extend([household_context, ""])
    else:
        lines.extend([
            "Requirements:",
            f"- Dietary restrictions: {_join_or(dietary_restrictions, 'None')}",
            f"- Cuisine preferences: {_join_or(cuisine_preferences, 'Any')}",
            "",
        ])
    lines.extend([
        "REQUIREMENTS:",
        "- Include breakfast, lunch, and dinner for each day",
        "- Provide ingredient lists",
        "- Include estimated cost per meal",
        "- Ensure nutritional balance",
        "- STRICTLY AVOID all listed allergies and intolerances",
        "- Try to minimize dishes with dislikes",
        "- Incorporate preferred foods when possible",
        "",
        "Format the response as a structured JSON object with the following structure:",
        RESPONSE_FORMAT,
    ])
    return "\n".join(lines)


def _extract_text_from_response(response) -> str:
    """Extract text content from Claude response."""
    for block in response.content:
        if hasattr(block, "text"):
            return block.text
    block_types = [type(b).__name__ for b in response.content]
    logger.warning(f"No text in response, block types: {block_types}")
    return ""


def _usage(response) -> dict:
    return {
        "input_tokens": response.usage.input_tokens,
        "output_tokens": response.usage.output_tokens,
    }


def _strip_code_fences(text: str) -> str:
    """Return the body of the first fenced block, or the whole text if unfenced.

    Prose the model writes before or after the fence is dropped.
    """
    match = _FENCED_BLOCK.search(text)
    if match:
        return match.group(1).strip()
    return text.strip()


def parse_meal_plan(text: str) -> dict:
    """Decode the model's JSON meal plan.

    Raises:
        AIResponseError: If the text is empty or not a JSON object.
    """
    cleaned = _strip_code_fences(text or "")
    if not cleaned:
        raise AIResponseError("AI returned an empty meal plan")
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.error(f"Failed to decode meal plan JSON: {e}")
        raise AIResponseError("AI returned invalid JSON") from e
    if not isinstance(data, dict):
        raise AIResponseError("AI returned JSON that is not an object")
    return data


def generate_meal_plan(
    *,
    household: Any = None,
    members: list | None = None,
    result: AggregationResult | None = None,
    days: int = DEFAULT_DAYS,
    household_size: int = DEFAULT_HOUSEHOLD_SIZE,
    budget: float = DEFAULT_BUDGET,
    dietary_restrictions: Iterable[str] = (),
    cuisine_preferences: Iterable[str] = (),
) -> dict:
    """Ask Claude for a meal plan.

    When a household is given, its weekly budget and member count replace
    the request's budget and household_size.

    Returns:
        Dict with the decoded plan under "data" and token counts under "usage".

    Raises:
        AIServiceUnavailable: If no API key is configured.
        AIResponseError: If the provider call fails or returns invalid JSON.
    """
    client = _get_client()
    if client is None:
        logger.warning("ANTHROPIC_API_KEY not set, cannot generate meal plan")
        raise AIServiceUnavailable("AI meal planning is not configured")

    settings = get_settings()
    household_context = ""
    if household is not None and result is not None:
        household_context = build_household_context(household, members or [], result)
        budget = household.budget_weekly or budget
        household_size = result.stats.total_members or household_size

    prompt = build_meal_plan_prompt(
        days=days,
        household_size=household_size,
        budget=budget,
        household_context=household_context,
        dietary_restrictions=dietary_restrictions,
        cuisine_preferences=cuisine_preferences,
    )

    try:
        response = client.messages.create(
            model=settings.ai_model,
            max_tokens=settings.ai_max_tokens,
            timeout=settings.ai_timeout_seconds,
            system=load_system_prompt(),
            messages=[{"role": "user", "content": prompt}],
        )
    except APIError as e:
        logger.error(f"Anthropic API error during meal-plan generation: {e}")
        raise AIResponseError("Failed to generate meal plan") from e

    usage = _usage(response)
    logger.info(
        f"Meal plan generated: in={usage['input_tokens']}, out={usage['output_tokens']}"
    )
    data = parse_meal_plan(_extract_text_from_response(response))
    return {"data": data, "usage": usage}


def chat(
    message: str,
    history: Iterable[dict] = (),
    *,
    household_context: str = "",
) -> dict:
    """Answer a free-form meal planning question.

    Earlier turns are replayed from history; its system entries are
    dropped in favour of the service's own chat prompt. When the primary
    model call fails and AI_FALLBACK_MODEL is set, the question alone is
    retried on the fallback model.

    Returns:
        Dict with the reply under "response", token counts under "usage"
        and whether the fallback model answered under "fallback".

    Raises:
        AIServiceUnavailable: If no API key is configured.
        AIResponseError: If every model call fails.
    """
    client = _get_client()
    if client is None:
        raise AIServiceUnavailable("AI chat is not configured")

    settings = get_settings()
    system = load_system_prompt(CHAT_SYSTEM_PROMPT_PATH)
    if household_context:
        system = f"{system}\n\n{household_context}"

    messages = [
        {"role": turn["role"], "content": turn["content"]}
        for turn in history
        if turn["role"] in ("user", "assistant")
    ]
    messages.append({"role": "user", "content": message})

    fallback = False
    try:
        response = client.messages.create(
            model=settings.ai_model,
            max_tokens=CHAT_MAX_TOKENS,
            timeout=settings.ai_timeout_seconds,
            system=system,
            messages=messages,
        )
    except APIError as e:
        logger.error(f"Anthropic API error during chat: {e}")
        if not settings.ai_fallback_model:
            raise AIResponseError("Failed to generate AI response") from e
        try:
            response = client.messages.create(
                model=settings.ai_fallback_model,
                max_tokens=FALLBACK_MAX_TOKENS,
                timeout=settings.ai_timeout_seconds,
                system=system,
                messages=[{"role": "user", "content": message}],
            )
        except APIError as fallback_error:
            logger.error(f"Fallback model {settings.ai_fallback_model} failed: {fallback_error}")
            raise AIResponseError("Failed to generate AI response") from fallback_error
        fallback = True

    return {
        "response": _extract_text_from_response(response) or NO_REPLY,
        "usage": _usage(response),
        "fallback": fallback,
    }
