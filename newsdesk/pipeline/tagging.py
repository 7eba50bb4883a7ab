"""Rule-based news tags for filtering stored articles.

Tags: claude, anthropic, claude-code, update, dev-tools, openai, google,
meta, youtube, community, industry. Articles matching no rule get
"industry".
"""

from typing import Optional

DEV_TOOL_KEYWORDS = (
    "supabase",
    "vercel",
    "cursor",
    "github copilot",
    "copilot",
    "vscode",
    "vs code",
    "jetbrains",
    "neovim",
    "windsurf",
)

UPDATE_KEYWORDS = ("update", "release", "version", "patch")

OPENAI_KEYWORDS = ("openai", "chatgpt", "gpt-4", "gpt-5", "gpt4", "gpt5")
GOOGLE_KEYWORDS = ("google", "gemini", "deepmind", "bard")
META_KEYWORDS = ("meta ai", "llama", "meta's ai")


def _contains_any(text: str, keywords: tuple[str, ...]) -> bool:
    return any(keyword in text for keyword in keywords)


def derive_news_tags(
    title: str,
    source_name: str,
    source_url: str,
    category: Optional[str] = None,
) -> list[str]:
    """
    Derive filter tags from an article's title, source and category.

    Args:
        title: Original article title
        source_name: Publisher name
        source_url: Article URL
        category: Requested ingestion category

    Returns:
        Tags in first-match order, without duplicates
    """
    tags: dict[str, None] = {}
    lower_title = title.lower()
    lower_source = f"{source_name} {source_url}".lower()

    def add(*names: str) -> None:
        for name in names:
            tags[name] = None

    if "claude" in lower_title or "anthropic" in lower_title or "anthropic" in lower_source:
        add("claude")
        if "anthropic" in lower_title or "anthropic" in lower_source:
            add("anthropic")

    if "claude code" in lower_title or "claude-code" in lower_title or category == "claude_code":
        add("claude", "claude-code")

    if (_contains_any(lower_title, UPDATE_KEYWORDS) or category == "version_update") and "claude" in tags:
        add("update")

    if _contains_any(lower_title, DEV_TOOL_KEYWORDS) or _contains_any(lower_source, DEV_TOOL_KEYWORDS):
        add("dev-tools")

    if _contains_any(lower_title, OPENAI_KEYWORDS):
        add("openai", "industry")
    if _contains_any(lower_title, GOOGLE_KEYWORDS):
        add("google", "industry")
    if _contains_any(lower_title, META_KEYWORDS):
        add("meta", "industry")

    if "youtube" in lower_source or category == "youtube":
        add("youtube")
    if category == "community":
        add("community")
    if category == "official":
        add("claude", "anthropic")
    if category == "press":
        add("industry")

    if not tags:
        add("industry")

    return list(tags)
