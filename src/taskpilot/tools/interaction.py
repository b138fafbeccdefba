"""Tools that hand control back to the operator."""

from __future__ import annotations

from pydantic import Field

from taskpilot.tools.base import Tool, ToolParam, ToolSpec

COMPLETION_TOOL = "attempt_completion"
FOLLOWUP_TOOL = "ask_followup_question"


class AskFollowupQuestionParams(ToolParam):
    question: str = Field(description="The question to ask the user")
    options: list[str] | str | None = Field(
        default=None,
        description="Optional list of 2-5 answers the user can pick from",
    )


class AttemptCompletionParams(ToolParam):
    result: str = Field(description="Final description of the result of the task")


async def ask_followup_question(params: AskFollowupQuestionParams) -> str:
    # Empty result: the orchestrator waits for the user's answer
    return ""


async def attempt_completion(params: AttemptCompletionParams) -> str:
    return params.result


def create_interaction_tools() -> list[Tool]:
    return [
        Tool(
            spec=ToolSpec.from_params(
                FOLLOWUP_TOOL,
                "Ask the user a question to gather additional information needed to "
                "complete the task. The next user message is the answer.",
                AskFollowupQuestionParams,
            ),
            params=AskFollowupQuestionParams,
            execute=ask_followup_question,
            tags=["interaction"],
        ),
        Tool(
            spec=ToolSpec.from_params(
                COMPLETION_TOOL,
                "Present the result of the task to the user once it is complete.",
                AttemptCompletionParams,
            ),
            params=AttemptCompletionParams,
            execute=attempt_completion,
            tags=["interaction", "completion"],
        ),
    ]
