"""Prompt templates for the three transform stages.

- FACT_EXTRACTION_PROMPT: facts and classification from the original text
- REWRITE_PROMPT: fully rewritten article in English, facts preserved
- REWRITE_FEEDBACK_SECTION: appended on retries with the previous issues
- SOFT_VERIFICATION_PROMPT: model self-check of the rewrite against the source

Every prompt asks for JSON only. Literal braces are doubled for str.format().
"""

FACT_EXTRACTION_PROMPT = '''You are the fact extraction specialist of a developer news desk.

Extract the key facts of the article below as structured JSON.

RULES:
- Copy dates, versions and figures exactly as written. Never compute or infer them.
- Leave a field null or empty when the article does not state it.
- published_at is the article's own publication date if the text states one (ISO 8601).

CLASSIFICATION (primary and optional secondary):
product_launch, version_update, tutorial, interview, analysis, security, event,
research, integration, pricing, showcase, opinion, general

Return JSON:
{{
    "published_at": "YYYY-MM-DD or null",
    "classification": {{
        "primary": "product_launch",
        "secondary": "version_update or null",
        "confidence": 0.0-1.0,
        "signals": ["phrases that support the classification"]
    }},
    "version": "string or null",
    "release_date": "string or null",
    "metrics": ["numeric facts: benchmarks, prices, speedups, user counts"],
    "features": ["main features"],
    "changes": ["changes compared to before"],
    "keywords": ["product and company names"]
}}

ARTICLE:
{content}'''


REWRITE_PROMPT = '''You are a senior technical writer for a developer news desk.

Rewrite the article below for developers. Write everything in natural,
fluent English, even when the source is in another language.

ORIGINALITY:
- Never copy sentences from the source. Rewrite every sentence in your own words.
- Preserve the FACTS exactly. Dates, versions, prices and figures must match the source.
- Do not add dates or numbers that the source does not state.
- Do not add a year to a date when the source gives none.

STYLE:
- Friendly yet professional, active voice, concise sentences
- Explain complex technology simply and add practical context

FIELDS:
1. one_liner: the essence in one shareable sentence
2. title_text and title_emoji: an original headline and one relevant emoji
3. summary_plain: 2-3 plain-text sentences covering the key points
4. body_html: the full rewrite using only p, h2, ul, li, strong and code tags
5. insight_html: your own analysis of why this matters to developers
6. key_takeaways: 3-5 items, each an icon (emoji) and a short text
7. difficulty: easy, medium or hard
8. read_time: e.g. "3 min"
9. category: a short topic label

Return JSON:
{{
    "one_liner": "string",
    "title_text": "string",
    "title_emoji": "string",
    "summary_plain": "string",
    "body_html": "string",
    "insight_html": "string",
    "key_takeaways": [{{"icon": "string", "text": "string"}}],
    "difficulty": "easy|medium|hard",
    "read_time": "string",
    "category": "string"
}}

ORIGINAL TITLE:
{title}

SOURCE:
{source_name}

EXTRACTED FACTS:
{facts}

ORIGINAL CONTENT:
{content}'''


REWRITE_FEEDBACK_SECTION = '''

PREVIOUS ATTEMPT WAS REJECTED. Fix every issue below in this rewrite:
{issues}'''


SOFT_VERIFICATION_PROMPT = '''You are the fact checker of a developer news desk.

Check whether the rewritten article is faithful to the original article and
its extracted facts.

CRITERIA:
1. Accuracy of figures, versions and dates
2. Accuracy of feature descriptions
3. Exaggeration or distortion
4. Important information that was left out

SCORE:
- 90-100: accurate, publish as is
- 70-89: minor problems, review recommended
- 0-69: must be rewritten

Return JSON:
{{
    "score": 0-100,
    "issues": ["concrete problems found"],
    "suggestions": ["how to fix them"]
}}

EXTRACTED FACTS:
{facts}

ORIGINAL CONTENT:
{content}

REWRITTEN ARTICLE:
Title: {title}
One-liner: {one_liner}
Summary: {summary}
Body: {body_html}
Insight: {insight_html}
Key takeaways: {key_takeaways}'''
