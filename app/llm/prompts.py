# app/llm/prompts.py
"""
Prompts for post insight generation.
"""

INSIGHT_SYSTEM_PROMPT = """You are a social media analyst. You explain, in plain language, how a Reddit post is being received and why.

Guidelines:
- Ground every statement in the numbers provided
- Mention sentiment, engagement, controversy and virality where they stand out
- Do not invent facts about the post's content beyond its title
- Keep it to 3-5 short sentences
- No headings, no bullet points"""

INSIGHT_USER_TEMPLATE = """Analyze this Reddit post.

TITLE: {title}
SUBREDDIT: r/{subreddit}
AUTHOR: u/{author}

UPVOTES: {upvotes} (upvote ratio {upvote_ratio})
COMMENTS: {comments}
AWARDS: {awards}

SENTIMENT: {sentiment_category} (compound {compound:.2f}; title {title_score:.2f}, comments {comment_score:.2f})
ENGAGEMENT SCORE: {engagement}/100
CONTROVERSY SCORE: {controversy}/100
VIRALITY SCORE: {virality}/100
VELOCITY: {velocity} upvotes/hour"""


def build_insight_prompt(analytics) -> str:
    """Render the user prompt for a PostAnalytics record."""
    engagement = analytics.engagement
    components = analytics.sentiment.components
    ratio = engagement.upvote_ratio
    return INSIGHT_SYSTEM_PROMPT + "\n\n" + INSIGHT_USER_TEMPLATE.format(
        title=analytics.title or "(untitled)",
        subreddit=analytics.subreddit,
        author=analytics.author,
        upvotes=engagement.upvotes,
        upvote_ratio=f"{ratio:.2f}" if ratio is not None else "unknown",
        comments=engagement.comments,
        awards=engagement.awards,
        sentiment_category=analytics.sentiment.category,
        compound=analytics.sentiment.compound,
        title_score=components.get("title", 0.0),
        comment_score=components.get("comments", 0.0),
        engagement=engagement.score,
        controversy=engagement.controversy_score,
        virality=engagement.virality_score,
        velocity=engagement.velocity,
    )
