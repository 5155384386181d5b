"""
AI-assisted forum features: search suggestions, smart replies, content
analysis, similar posts and discussion summaries.

Each operation checks the cache first, then asks the provider (when one is
configured) and otherwise computes a deterministic fallback. Fallback results
are cached like provider results. Provider failures are logged and replaced by
the fallback wherever one exists; only content analysis surfaces them.
"""

import hashlib
import json
import logging
from typing import List, Optional, Protocol

from cache import TTLCache
from errors import NotFoundError, UpstreamError, ValidationError
from models import Post
from post_store import PostStore
from text_utils import (
    Parsed,
    normalize_whitespace,
    parse_embedded_object,
    parse_id_array,
    parse_strict_object,
    parse_string_list,
    query_keywords,
    title_keywords,
    truncate,
    word_count,
)

logger = logging.getLogger(__name__)

MAX_SUGGESTIONS = 5
MAX_SMART_REPLIES = 3
SMART_REPLY_MAX_CHARS = 100
MAX_SIMILAR_POSTS = 5
SIMILAR_CANDIDATE_POOL = 50
MAX_SUMMARY_KEY_POINTS = 5
FALLBACK_KEY_POINTS = 3

SEARCH_SUGGESTIONS_PROMPT = (
    "Generate 5 search suggestions based on the following query. Keep them concise "
    "(2-5 words each) and relevant to a Q&A forum. Return as a JSON array of strings."
)
SMART_REPLIES_PROMPT = (
    "Generate 3 possible helpful and concise replies to the following post. Keep them "
    "under 20 words each. Return as a JSON array of strings."
)
CONTENT_ANALYSIS_PROMPT = (
    "Analyze the following post content and provide feedback in JSON format with these keys:\n"
    "- clarity (1-5 rating)\n"
    "- detail (1-5 rating)\n"
    "- relevance (1-5 rating)\n"
    "- suggested_improvements (array of strings)\n"
    "- tags (array of relevant topic tags)\n"
    "- summary (brief summary in 1-2 sentences)\n\n"
    "Content to analyze:"
)

GENERIC_SMART_REPLIES = [
    "Thanks for sharing this!",
    "I have a similar question.",
    "Can you provide more details?",
]
STATIC_IMPROVEMENTS = [
    "Consider adding more specific details",
    "Break down complex ideas into smaller sections",
    "Add examples to illustrate your points",
]


class TextProvider(Protocol):
    async def generate(self, prompt: str) -> str: ...


def _plural(count: int, singular: str, plural: str) -> str:
    return f"{count} {singular if count == 1 else plural}"


def _iso(value) -> Optional[str]:
    return value.isoformat() if value is not None else None


def content_digest(content: str) -> str:
    """Stable key for a draft: sha256 of the whitespace-normalized text."""
    normalized = normalize_whitespace(content)
    return hashlib.sha256(normalized.encode("utf-8", errors="ignore")).hexdigest()


def post_brief(post: Post) -> dict:
    return {
        "id": post.id,
        "title": post.title,
        "author": post.author,
        "votes": post.votes,
        "createdAt": _iso(post.created_at),
    }


def keyword_suggestions(query: str) -> List[str]:
    keywords = query_keywords(query)
    candidates = (
        keywords
        + [f"{k} tutorial" for k in keywords]
        + [f"how to {k}" for k in keywords]
        + [f"{k} examples" for k in keywords]
        + [f"best {k} practices" for k in keywords]
    )
    return list(dict.fromkeys(candidates))[:MAX_SUGGESTIONS]


def fallback_analysis(content: str) -> dict:
    return {
        "clarity": 3,
        "detail": max(1, min(5, word_count(content) // 50)),
        "relevance": 3,
        "suggested_improvements": list(STATIC_IMPROVEMENTS),
        "tags": [],
        "summary": "This is a summary of the content.",
    }


def fallback_key_points(post: Post) -> List[dict]:
    return [
        {"author": reply.author, "preview": truncate(reply.content, 100)}
        for reply in post.replies[:FALLBACK_KEY_POINTS]
    ]


def fallback_summary_text(post: Post) -> str:
    status = (
        "The question has been marked as answered."
        if post.is_answered
        else "The question is still open for discussion."
    )
    replies = _plural(len(post.replies), "reply", "replies")
    votes = _plural(post.votes, "vote", "votes")
    return f"This discussion has {replies} and {votes}. {status}"


def fallback_summary(post: Post) -> dict:
    return {
        "title": post.title,
        "author": post.author,
        "totalReplies": len(post.replies),
        "totalVotes": post.votes,
        "isAnswered": post.is_answered,
        "summary": fallback_summary_text(post),
        "keyPoints": fallback_key_points(post),
    }


class AIGateway:
    def __init__(self, store: PostStore, cache: TTLCache, provider: Optional[TextProvider] = None):
        self.store = store
        self.cache = cache
        self.provider = provider

    async def _complete(self, operation: str, prompt: str) -> str:
        try:
            return await self.provider.generate(prompt)
        except UpstreamError:
            raise
        except Exception as exc:
            raise UpstreamError(f"{operation}: {exc}") from exc

    def _require_post(self, post_id) -> Post:
        post = self.store.find_by_id(post_id)
        if post is None:
            raise NotFoundError()
        return post

    async def search_suggestions(self, query: Optional[str]) -> List[str]:
        normalized = normalize_whitespace(query).lower()
        if not normalized:
            raise ValidationError("Query parameter is required")

        cache_key = f"search_suggestions:{normalized}"
        cached = self.cache.get(cache_key)
        if cached is not None:
            return cached

        if self.provider is None:
            return self.cache.set(cache_key, keyword_suggestions(normalized))

        try:
            text = await self._complete("search_suggestions", f"{SEARCH_SUGGESTIONS_PROMPT}\n\nQuery: {query.strip()}")
        except UpstreamError as exc:
            logger.warning("search suggestions provider failed, using keywords: %s", exc)
            return self.cache.set(cache_key, keyword_suggestions(normalized))

        result = parse_string_list(text)
        if not result.value:
            logger.info("search suggestions reply had no usable items, using keywords")
            return self.cache.set(cache_key, keyword_suggestions(normalized))
        if not isinstance(result, Parsed):
            logger.info("search suggestions reply was not JSON, split into lines")
        return self.cache.set(cache_key, result.value[:MAX_SUGGESTIONS])

    async def smart_replies(self, post_id, context: Optional[str] = "") -> List[str]:
        if post_id is None or not str(post_id).strip():
            raise ValidationError("Post ID is required")
        post = self._require_post(post_id)
        context = (context or "").strip()

        cache_key = f"smart_replies:{post.id}:{context}"
        cached = self.cache.get(cache_key)
        if cached is not None:
            return cached

        if self.provider is None:
            return self.cache.set(cache_key, list(GENERIC_SMART_REPLIES))

        prompt = (
            f"{SMART_REPLIES_PROMPT}\n\n"
            f"Post: {post.title}\n{post.content}\n\n"
            f"Context: {context or 'No additional context provided'}"
        )
        try:
            text = await self._complete("smart_replies", prompt)
        except UpstreamError as exc:
            logger.warning("smart replies provider failed, using generic replies: %s", exc)
            return self.cache.set(cache_key, list(GENERIC_SMART_REPLIES))

        result = parse_string_list(text, max_item_length=SMART_REPLY_MAX_CHARS)
        replies = [r for r in result.value if len(r) < SMART_REPLY_MAX_CHARS]
        if not replies:
            logger.info("smart replies reply had no usable items, using generic replies")
            return self.cache.set(cache_key, list(GENERIC_SMART_REPLIES))
        return self.cache.set(cache_key, replies[:MAX_SMART_REPLIES])

    async def analyze_content(self, content: Optional[str]) -> dict:
        content = (content or "").strip()
        if not content:
            raise ValidationError("Content is required")

        cache_key = f"content_analysis:{content_digest(content)}"
        cached = self.cache.get(cache_key)
        if cached is not None:
            return cached

        if self.provider is None:
            return self.cache.set(cache_key, fallback_analysis(content))

        prompt = f"{CONTENT_ANALYSIS_PROMPT}\n\n{content}\n\nPlease provide the analysis in valid JSON format."
        text = await self._complete("analyze_content", prompt)
        result = parse_strict_object(text)
        if not isinstance(result, Parsed):
            logger.error("content analysis reply was not a JSON object")
            raise UpstreamError("Invalid response format from AI")
        return self.cache.set(cache_key, result.value)

    def _keyword_similar(self, post: Post) -> List[dict]:
        keywords = title_keywords(post.title)
        matches = self.store.keyword_matches(keywords, exclude_id=post.id, limit=MAX_SIMILAR_POSTS)
        return [post_brief(p) for p in matches]

    async def similar_posts(self, post_id) -> List[dict]:
        post = self._require_post(post_id)

        cache_key = f"similar_posts:{post.id}"
        cached = self.cache.get(cache_key)
        if cached is not None:
            return cached

        if self.provider is None:
            return self.cache.set(cache_key, self._keyword_similar(post))

        candidates = self.store.recent(exclude_id=post.id, limit=SIMILAR_CANDIDATE_POOL)
        if not candidates:
            return self.cache.set(cache_key, [])

        posts_data = [{"id": str(p.id), "title": p.title, "content": p.content[:200]} for p in candidates]
        prompt = (
            "Given the following question/post, find the 5 most similar posts from the list below. "
            "Return only a JSON array of post IDs in order of similarity (most similar first).\n\n"
            "Question/Post:\n"
            f"Title: {post.title}\n"
            f"Content: {post.content[:500]}\n\n"
            "Available Posts:\n"
            f"{json.dumps(posts_data, indent=2)}\n\n"
            'Return only a JSON array of IDs like: ["id1", "id2", "id3", "id4", "id5"]'
        )
        try:
            text = await self._complete("similar_posts", prompt)
        except UpstreamError as exc:
            logger.warning("similar posts provider failed, using keywords: %s", exc)
            return self.cache.set(cache_key, self._keyword_similar(post))

        result = parse_id_array(text)
        if not isinstance(result, Parsed):
            logger.info("similar posts reply had no id array, using keywords")
            return self.cache.set(cache_key, self._keyword_similar(post))

        by_id = {str(p.id): p for p in candidates}
        ranked: List[dict] = []
        seen = set()
        for pid in result.value:
            candidate = by_id.get(pid)
            if candidate is None or pid in seen:
                continue
            seen.add(pid)
            ranked.append(post_brief(candidate))
        return self.cache.set(cache_key, ranked[:MAX_SIMILAR_POSTS])

    async def similar_questions(self, query: Optional[str]) -> List[dict]:
        normalized = normalize_whitespace(query).lower()
        if not normalized:
            raise ValidationError("Query parameter is required")

        cache_key = f"similar_questions:{normalized}"
        cached = self.cache.get(cache_key)
        if cached is not None:
            return cached

        matches = self.store.keyword_matches(title_keywords(normalized), limit=MAX_SIMILAR_POSTS)
        return self.cache.set(cache_key, [post_brief(p) for p in matches])

    def _summary_from_reply(self, post: Post, data: dict) -> dict:
        summary = fallback_summary(post)
        text = data.get("summary")
        if isinstance(text, str) and text.strip():
            summary["summary"] = text.strip()
        points = data.get("keyPoints")
        if isinstance(points, list):
            summary["keyPoints"] = [
                {
                    "author": (kp.get("author") or "Anonymous"),
                    "preview": (kp.get("point") or kp.get("preview") or ""),
                }
                for kp in points[:MAX_SUMMARY_KEY_POINTS]
                if isinstance(kp, dict)
            ]
        return summary

    async def summarize_discussion(self, post_id) -> dict:
        post = self._require_post(post_id)

        cache_key = f"summary:{post.id}"
        cached = self.cache.get(cache_key)
        if cached is not None:
            return cached

        if self.provider is None:
            return self.cache.set(cache_key, fallback_summary(post))

        if post.replies:
            replies_text = "\n\n".join(
                f"Reply {idx} by {reply.author}:\n{reply.content}"
                for idx, reply in enumerate(post.replies, start=1)
            )
            discussion = f"\nReplies:\n{replies_text}"
        else:
            discussion = "\nNo replies yet."
        prompt = (
            "Summarize the following discussion forum post and its replies. Provide:\n"
            "1. A concise summary (2-3 sentences) of the main question and key points discussed\n"
            "2. Extract 3-5 key points or insights from the replies\n\n"
            "Post:\n"
            f"Title: {post.title}\n"
            f"Author: {post.author}\n"
            f"Content: {post.content}\n"
            f"{discussion}\n\n"
            "Return your response in the following JSON format:\n"
            '{\n  "summary": "Brief summary text here",\n'
            '  "keyPoints": [\n    {\n      "author": "author name",\n      "point": "key point text"\n    }\n  ]\n}'
        )
        try:
            text = await self._complete("summarize_discussion", prompt)
        except UpstreamError as exc:
            logger.warning("summary provider failed, using template: %s", exc)
            return self.cache.set(cache_key, fallback_summary(post))

        result = parse_embedded_object(text)
        if not isinstance(result, Parsed):
            logger.info("summary reply was not JSON, using template")
            return self.cache.set(cache_key, fallback_summary(post))
        return self.cache.set(cache_key, self._summary_from_reply(post, result.value))
