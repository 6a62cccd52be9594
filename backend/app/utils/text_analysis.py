"""Text analysis utilities for deriving SEO metadata from content.

Pure, total functions over content strings:
- HTML stripping with entity decoding
- Stop-word-filtered keyword and two-word phrase extraction
- Sentence-based description extraction
- Slug normalization
- Word-boundary-safe truncation

None of these functions raise on degenerate input; empty content yields
empty keyword lists and templated descriptions.
"""

import math
import re
from collections import Counter
from dataclasses import dataclass

# Defaults
DEFAULT_MAX_PHRASES = 6
DEFAULT_MAX_DESCRIPTION_LENGTH = 155
DEFAULT_MAX_SLUG_LENGTH = 60
DEFAULT_SITE_NAME = "Bartlett & Partners"
ELLIPSIS = "..."

# Truncation never backs up to a space earlier than this share of the limit
WORD_BOUNDARY_MIN_RATIO = 0.7

# Description assembly
MIN_SENTENCE_LENGTH = 20
SHORT_SENTENCE_LENGTH = 80

# Bigram selection
MIN_BIGRAM_COUNT = 2
MAX_BIGRAMS = 3
IMPORTANT_TERM_BOOST = 2

HTML_ENTITIES = (
    ("&nbsp;", " "),
    ("&amp;", "&"),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
    ("&#39;", "'"),
)

_TAG_PATTERN = re.compile(r"<[^>]*>")
_WHITESPACE_PATTERN = re.compile(r"\s+")
_WORD_PATTERN = re.compile(r"\b[a-z]{3,}\b")
_SENTENCE_SPLIT_PATTERN = re.compile(r"[.!?]+")
_APOSTROPHE_PATTERN = re.compile(r"['’]")
_NON_ALNUM_PATTERN = re.compile(r"[^a-z0-9]+")

STOP_WORDS: frozenset[str] = frozenset(
    {
        "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for",
        "of", "with", "by", "from", "as", "is", "was", "are", "were", "been",
        "be", "have", "has", "had", "do", "does", "did", "will", "would",
        "could", "should", "may", "might", "must", "shall", "can", "need",
        "dare", "ought", "used", "it", "its", "this", "that", "these", "those",
        "i", "you", "he", "she", "we", "they", "what", "which", "who", "whom",
        "when", "where", "why", "how", "all", "each", "every", "both", "few",
        "more", "most", "other", "some", "such", "no", "not", "only", "own",
        "same", "so", "than", "too", "very", "just", "also", "now", "here",
        "there", "then", "about", "into", "through", "during", "before",
        "after", "above", "below", "between", "under", "again", "further",
        "once", "being", "having", "doing", "their", "them", "your", "our",
        "his", "her", "my", "if", "because", "until", "while", "any", "many",
        "much", "well", "even", "back", "still", "way", "take", "come",
        "make", "like", "get", "got", "going", "know", "think", "see", "look",
        "want", "give", "use", "find", "tell", "ask", "work", "seem", "feel",
        "try", "leave", "call", "good", "new", "first", "last", "long",
        "great", "little", "old", "right", "big", "high", "different",
        "small", "large", "next", "early", "young", "important", "public",
        "bad", "able", "thing", "things", "however", "whether", "something",
        "nothing", "everything", "someone", "anyone", "everyone", "one",
        "two", "three", "four", "five", "don", "ve", "ll", "re", "s", "t",
        "isn", "aren", "wasn", "weren", "hasn", "haven", "hadn", "doesn",
        "didn", "won", "wouldn", "couldn", "shouldn", "mustn", "let", "lets",
        "say", "says", "said", "really", "already", "always", "often",
        "around", "simply",
    }
)

# Property and local terms that count double when ranking single words
IMPORTANT_TERMS: frozenset[str] = frozenset(
    {
        "property", "estate", "agent", "agents", "house", "home", "homes",
        "flat", "apartment", "sale", "rent", "rental", "buy", "buying",
        "sell", "selling", "market", "price", "prices", "valuation",
        "mortgage", "investment", "twickenham", "teddington", "richmond",
        "london", "bedroom", "bathroom", "garden", "parking", "garage",
        "kitchen", "living", "dining", "reception", "terrace", "balcony",
        "view", "views", "guide", "advice", "tips", "news", "update",
        "updates", "insight", "insights", "buyer", "buyers", "seller",
        "sellers", "owner", "owners", "landlord", "tenant", "lease",
        "freehold", "leasehold", "stamp", "duty", "interest", "rate", "rates",
        "bank", "england", "base", "mpc", "family", "families", "school",
        "schools", "transport", "station", "rail", "tube", "underground",
        "bus", "park", "parks", "river", "thames", "reform", "government",
        "law", "legal", "conveyancing", "solicitor",
    }
)


def strip_html(html: str) -> str:
    """Remove markup and decode common entities.

    Args:
        html: Text that may contain HTML tags and entities

    Returns:
        Plain text with collapsed whitespace
    """
    if not html:
        return ""
    text = _TAG_PATTERN.sub(" ", html)
    for entity, replacement in HTML_ENTITIES:
        text = text.replace(entity, replacement)
    return _WHITESPACE_PATTERN.sub(" ", text).strip()


def truncate_at_word_boundary(
    text: str,
    max_length: int,
    ellipsis: str = ELLIPSIS,
) -> str:
    """Truncate text to max_length, preferring to cut at a word boundary.

    The result, ellipsis included, never exceeds max_length. The cut backs up
    to the last space only when that space lies past 70% of the limit, so
    short inputs made of long words are not gutted.

    Args:
        text: Text to truncate
        max_length: Maximum length of the result
        ellipsis: Marker appended when text is cut

    Returns:
        The original text if it fits, otherwise the truncated text
    """
    if len(text) <= max_length:
        return text
    if max_length <= len(ellipsis):
        return text[:max_length]

    cut = max_length - len(ellipsis)
    truncated = text[:cut]
    last_space = truncated.rfind(" ")
    if last_space > max_length * WORD_BOUNDARY_MIN_RATIO:
        truncated = truncated[:last_space]

    truncated = truncated.rstrip(" ,;:-.")
    return truncated + ellipsis


def tokenize(text: str) -> list[str]:
    """Lower-case plain text and return its words of 3+ letters."""
    return _WORD_PATTERN.findall(text.lower())


def extract_key_phrases(text: str, max_phrases: int = DEFAULT_MAX_PHRASES) -> list[str]:
    """Extract ranked keywords and two-word phrases from content.

    Single words are ranked by frequency, doubled for property and local
    terms. Two-word phrases built from consecutive non-stop-words are kept
    when they occur at least twice. Up to three phrases come first, then the
    top single words fill the remaining slots.

    Args:
        text: Content, may contain markup
        max_phrases: Number of entries to return at most

    Returns:
        Unique keywords and phrases, best first
    """
    if max_phrases <= 0:
        return []

    words = tokenize(strip_html(text))

    word_freq: Counter[str] = Counter(word for word in words if word not in STOP_WORDS)
    scored = [
        (word, freq * (IMPORTANT_TERM_BOOST if word in IMPORTANT_TERMS else 1))
        for word, freq in word_freq.items()
    ]
    # sorted() is stable: equal scores keep first-seen order
    scored = sorted(scored, key=lambda item: item[1], reverse=True)

    bigram_counts: Counter[str] = Counter()
    for first, second in zip(words, words[1:]):
        if first not in STOP_WORDS and second not in STOP_WORDS:
            bigram_counts[f"{first} {second}"] += 1

    top_bigrams = [
        phrase
        for phrase, count in sorted(
            bigram_counts.items(), key=lambda item: item[1], reverse=True
        )
        if count >= MIN_BIGRAM_COUNT
    ][:MAX_BIGRAMS]

    word_slots = max(0, max_phrases - len(top_bigrams))
    top_words = [word for word, _score in scored[:word_slots]]

    return (top_bigrams + top_words)[:max_phrases]


def fallback_description(
    title: str,
    site_name: str = DEFAULT_SITE_NAME,
    max_length: int = DEFAULT_MAX_DESCRIPTION_LENGTH,
) -> str:
    """Templated description used when content has no usable sentence."""
    description = (
        f"Read about {title} from {site_name}, "
        "your local Twickenham & Teddington estate agents."
    )
    return truncate_at_word_boundary(description, max_length)


def split_sentences(text: str) -> list[str]:
    """Split plain text into sentences long enough to describe a page."""
    sentences = (part.strip() for part in _SENTENCE_SPLIT_PATTERN.split(text))
    return [sentence for sentence in sentences if len(sentence) > MIN_SENTENCE_LENGTH]


def extract_description(
    content: str,
    title: str,
    max_length: int = DEFAULT_MAX_DESCRIPTION_LENGTH,
    site_name: str = DEFAULT_SITE_NAME,
) -> str:
    """Build a meta description from the leading sentences of content.

    Takes the first sentence longer than 20 characters. A short first
    sentence (under 80 characters) is joined with the second when both fit.
    Long sentences are truncated at a word boundary with an ellipsis.

    Args:
        content: Body content, may contain markup
        title: Entity title, used by the fallback template
        max_length: Maximum description length
        site_name: Site name used by the fallback template

    Returns:
        Description no longer than max_length
    """
    sentences = split_sentences(strip_html(content))
    if not sentences:
        return fallback_description(title, site_name, max_length)

    first = sentences[0]
    if len(first) < SHORT_SENTENCE_LENGTH and len(sentences) > 1:
        combined = f"{first}. {sentences[1]}."
        if len(combined) <= max_length:
            return combined

    description = f"{first}."
    if len(description) <= max_length:
        return description
    return truncate_at_word_boundary(first, max_length)


@dataclass
class ContentAnalysis:
    """Everything the generators need from one pass over the content."""

    text: str
    description: str
    keywords: list[str]
    sentence_count: int

    @property
    def has_sentences(self) -> bool:
        return self.sentence_count > 0


def analyze_content(
    content: str,
    title: str = "",
    max_phrases: int = DEFAULT_MAX_PHRASES,
    max_description_length: int = DEFAULT_MAX_DESCRIPTION_LENGTH,
    site_name: str = DEFAULT_SITE_NAME,
) -> ContentAnalysis:
    """Strip, describe and extract keywords from content in one call."""
    text = strip_html(content)
    return ContentAnalysis(
        text=text,
        description=extract_description(content, title, max_description_length, site_name),
        keywords=extract_key_phrases(content, max_phrases),
        sentence_count=len(split_sentences(text)),
    )


def slugify(text: str, max_length: int = DEFAULT_MAX_SLUG_LENGTH) -> str:
    """Convert text to a URL slug.

    Lower-cases, drops apostrophes and replaces every run of characters
    outside [a-z0-9] with a single hyphen. The result never starts or ends
    with a hyphen.

    Args:
        text: Text to convert (usually a title)
        max_length: Maximum slug length

    Returns:
        Slug matching [a-z0-9]+(-[a-z0-9]+)*, or an empty string
    """
    slug = _APOSTROPHE_PATTERN.sub("", text.lower())
    slug = _NON_ALNUM_PATTERN.sub("-", slug).strip("-")
    return slug[:max_length].strip("-")


def format_price(price: float | int | str | None) -> str:
    """Format an asking price for titles and descriptions.

    Args:
        price: Numeric price or display string such as "£1,200,000"

    Returns:
        "£1.2m" for millions, "£850k" below, or "" when unparseable
    """
    if price is None:
        return ""
    if isinstance(price, str):
        digits = re.sub(r"[^0-9.]", "", price)
        try:
            amount = float(digits)
        except ValueError:
            return ""
    else:
        amount = float(price)

    if not math.isfinite(amount) or amount <= 0:
        return ""
    if amount >= 1_000_000:
        return f"£{amount / 1_000_000:.1f}m"
    return f"£{amount / 1000:.0f}k"
