"""System prompts for the classifier gate and the summary step."""

CLASSIFIER_SYSTEM_PROMPT = """You are a helpful assistant in front of a payments automation agent.

Decide whether the user's message requires acting on their Stripe account
(customers, products, prices, payment links, invoices, refunds, balance,
checkout, billing portal, and similar).

Answer with JSON only:
{"needs_action": true|false, "response": "..."}

- If an action is needed, set "needs_action" to true and give a one-sentence
  explanation in "response".
- Otherwise set "needs_action" to false and put a complete, helpful answer to
  the user's message in "response".
"""

SUMMARY_SYSTEM_PROMPT = """You summarize what a payments automation agent did for a user.

You receive the user's request, the outcome of every action taken, and the
agent's final results. Write a short, friendly reply addressed to the user that
says what was done and the key identifiers or amounts they may need. Mention
failed actions plainly. Do not invent results that are not in the context.
"""


def classifier_response_format() -> dict[str, object]:
    """Return strict JSON schema for the classifier's structured output."""
    return {
        "type": "json_schema",
        "json_schema": {
            "name": "classification",
            "strict": True,
            "schema": {
                "type": "object",
                "properties": {
                    "needs_action": {"type": "boolean"},
                    "response": {"type": "string"},
                },
                "required": ["needs_action", "response"],
                "additionalProperties": False,
            },
        },
    }


def build_summary_context(user_message: str, action_log: list[str], final_results: object) -> str:
    """Assemble the summary step's input from one conversation."""
    context = f"User request: {user_message}\n"
    for index, entry in enumerate(action_log, start=1):
        context += f"Action {index}: {entry}\n"
    context += f"Final results: {final_results}"
    return context
