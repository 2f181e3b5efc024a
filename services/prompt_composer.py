"""Build the message list sent to the LLM for a review turn."""

from typing import Any, Dict, List, Optional, Sequence

DEFAULT_REVIEW_INSTRUCTION = "Please review this code."

REVIEWER_PROMPT = (
    "You are an expert AI code reviewer. Your primary goal is to provide a comprehensive, "
    "clear, and actionable review of the submitted code or pull request.\n\n"
    "Key areas to focus on:\n"
    "- **Bugs and Logic Errors**: Identify any potential bugs, logical flaws, or edge cases not handled.\n"
    "- **Performance**: Highlight inefficiencies and suggest optimizations.\n"
    "- **Security Vulnerabilities**: Point out potential security risks (e.g., XSS, SQLi, insecure handling of secrets).\n"
    "- **Best Practices**: Check adherence to language-specific best practices, design patterns, and coding standards.\n"
    "- **Code Style & Readability**: Suggest improvements for clarity, maintainability, and consistency. "
    "Comment on naming conventions, complexity, and documentation.\n"
    "- **Actionable Suggestions**: Provide concrete examples or code snippets for your recommendations where appropriate.\n"
    "- **Conciseness and Thoroughness**: Be concise in your explanations but thorough in your analysis. "
    "Prioritize critical issues.\n"
    "- **Tone**: Maintain a constructive and helpful tone.\n\n"
)

PR_CONTEXT_TEMPLATE = (
    "A GitHub Pull Request is submitted for review: {url}\n"
    "Please analyze this Pull Request. If you cannot directly access the URL content, state that "
    "clearly and perform your review based on any other provided code and context. Focus on the "
    "conceptual changes if the diff is not available to you.\n\n"
)


def _field(item: Any, name: str) -> Any:
    if isinstance(item, dict):
        return item.get(name)
    return getattr(item, name, None)


def build_system_prompt(files: Sequence[Any] = (), pr_url: Optional[str] = None) -> str:
    """Reviewer persona and checklist, then PR context and fenced file contents."""
    prompt = REVIEWER_PROMPT

    if pr_url:
        prompt += PR_CONTEXT_TEMPLATE.format(url=pr_url)

    if files:
        prompt += "The following code files are submitted for review:\n\n"
        for file in files:
            prompt += f"--- File: {_field(file, 'name')} ---\n```\n{_field(file, 'content')}\n```\n\n"

    return prompt


def has_user_text(messages: Sequence[Any]) -> bool:
    return any(
        _field(m, "role") == "user" and str(_field(m, "content") or "").strip()
        for m in messages
    )


def compose_messages(
    history: Sequence[Any],
    files: Sequence[Any] = (),
    pr_url: Optional[str] = None,
    pr_summary: Optional[str] = None,
) -> List[Dict[str, str]]:
    """
    Produce [system message, *conversation turns].

    When the history carries no user text but files or a PR are present, an
    opening user turn is synthesized: the PR summary if one is available,
    otherwise a plain review instruction.
    """
    messages = [{"role": "system", "content": build_system_prompt(files, pr_url)}]

    turns = [
        {"role": _field(m, "role"), "content": _field(m, "content") or ""}
        for m in history
    ]
    if not has_user_text(turns) and (files or pr_url):
        turns = [t for t in turns if not (t["role"] == "user" and not t["content"].strip())]
        turns.insert(0, {"role": "user", "content": pr_summary or DEFAULT_REVIEW_INSTRUCTION})

    messages.extend(turns)
    return messages


def to_provider_format(messages: Sequence[Dict[str, str]]) -> Dict[str, Any]:
    """
    Map the composed list onto the Anthropic request shape.

    System turns are joined into the ``system`` parameter; user and assistant
    turns keep their order.
    """
    system_parts: List[str] = []
    turns: List[Dict[str, str]] = []
    for message in messages:
        role = message["role"]
        if role == "system":
            system_parts.append(message["content"])
        elif role in ("user", "assistant"):
            # The API rejects empty turns (e.g. an assistant placeholder that never received text)
            if not message["content"].strip():
                continue
            turns.append({"role": role, "content": message["content"]})
        else:
            print(f"[REVIEW] Dropping message with unsupported role: {role}")
    return {"system": "\n\n".join(system_parts), "messages": turns}
