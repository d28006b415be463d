# =============================================================================
# AGENT-OS TOOLKIT - DELEGATION PROMPTS
# =============================================================================
"""Prompt construction for delegated tasks."""

from typing import Optional


BASE_PROMPT = (
    "You are Claude, an AI assistant helping with software development tasks. "
    "You are being used as part of a parallel workflow system where you handle "
    "{task_type} tasks while another AI (Claude Code) handles implementation tasks."
)

ROLE_PROMPTS = {
    "research": """

Your role: Research and analysis expert
- Conduct thorough research on the given topic
- Compare multiple approaches or solutions
- Provide clear recommendations with pros/cons
- Include relevant links, examples, and references
- Be comprehensive but concise""",

    "documentation": """

Your role: Technical documentation writer
- Create clear, well-structured documentation
- Include code examples where relevant
- Use proper markdown formatting
- Cover all important aspects
- Make it easy to understand for developers""",

    "design": """

Your role: System and architecture designer
- Design robust, scalable solutions
- Consider best practices and patterns
- Provide clear architectural diagrams (as text/mermaid)
- Explain design decisions
- Consider trade-offs and alternatives""",

    "analysis": """

Your role: Code and system analyst
- Analyze the given code or system thoroughly
- Identify patterns, issues, and opportunities
- Provide actionable insights
- Be specific and detailed
- Focus on practical improvements""",

    "planning": """

Your role: Project planner and strategist
- Break down complex work into manageable tasks
- Consider dependencies and priorities
- Provide realistic estimates
- Think about potential blockers
- Create clear action plans""",
}

JSON_INSTRUCTION = "\n\nIMPORTANT: Output your response as valid JSON."
MARKDOWN_INSTRUCTION = "\n\nIMPORTANT: Output your response in well-formatted Markdown."


def build_system_prompt(task_type: str, output_format: str = "markdown") -> str:
    """System prompt: base framing, role section for the task type, format rule."""
    format_instruction = JSON_INSTRUCTION if output_format == "json" else MARKDOWN_INSTRUCTION
    return (
        BASE_PROMPT.format(task_type=task_type)
        + ROLE_PROMPTS.get(task_type, "")
        + format_instruction
    )


def build_user_prompt(
    description: str,
    context: Optional[str] = None,
    output_format: str = "markdown",
) -> str:
    """User prompt with optional project context ahead of the task."""
    prompt = ""

    if context:
        prompt += "# Project Context\n\n"
        prompt += context
        prompt += "\n\n---\n\n"

    prompt += "# Task\n\n"
    prompt += description

    if output_format == "json":
        prompt += "\n\n# Output Format\n\nProvide your response as valid JSON."

    return prompt
