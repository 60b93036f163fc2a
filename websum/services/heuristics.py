"""
Purpose:
- Local, no-network summarization used when the LLM path is unavailable
  (no key, quota exhausted, rate limited, or in cooldown).
- Also supplies the sentence splitter the pipeline uses for its own narrow fallback.

What it produces:
- summary: first two sentence-like fragments of the content
- confidence: word-count heuristic with small boosts for structure/numbers/citations, in [40, 85]
- sources_count: URLs + citation markers + reference-keyword density, capped at 10
- keywords/metadata: frequency ranking and a fixed category table

Extensibility:
- Add/adapt categories in CATEGORY_PATTERNS (first match wins, order matters).
"""

from __future__ import annotations
import logging
import math
import re
from collections import Counter
from typing import List

from .schema import ResultMetadata, SummaryResult

logger = logging.getLogger(__name__)

MIN_FALLBACK_CHARS = 100
NOT_ENOUGH_CONTENT = "Not enough content was available to generate a summary."

CONFIDENCE_FLOOR = 40
CONFIDENCE_CEILING = 85
MAX_SOURCES = 10

# --- Patterns ----------------------------------------------------------------

_SENTENCE_SPLIT = re.compile(r"[.!?]+")

_STRUCTURE = re.compile(r"\b(introduction|conclusion|summary|abstract)\b", re.IGNORECASE)
_NUMBERS = re.compile(r"\d+")
_REFERENCES = re.compile(r"\b(study|research|according to|found that)\b", re.IGNORECASE)

_URLS = re.compile(r"https?://\S+")
_CITATIONS = re.compile(r"[\[(]\d+[\])]|\b(?:et al\.|doi:|isbn:)", re.IGNORECASE)
_REFERENCE_WORDS = re.compile(r"\b(source|reference|citation|study|research|according to)\b", re.IGNORECASE)

_WORDS = re.compile(r"\b[a-z0-9]{2,}\b")
_COMPOUNDS = re.compile(r"\b[a-z0-9]+\s+[a-z0-9]+(?:\s+[a-z0-9]+)?\b")
_CAPITALIZED = re.compile(r"\b[A-Z][a-z0-9]+(?:\s+[A-Z][a-z0-9]+)*\b")

_LOCATIONS = re.compile(
    r"\b[A-Z][a-z]+(?:\s+[A-Z][a-z]+)*"
    r"(?:\s+(?:County|City|State|Creek|River|Lake|Mountain|Park|Colorado|CA|NY|TX|FL))\b"
)
_ORGANIZATIONS = re.compile(
    r"\b[A-Z][a-z]*(?:[A-Z][a-z]*)*(?:\s+(?:Inc|Corp|LLC|Company|Organization|Association|Foundation))\b"
)
_PROPER_PHRASES = re.compile(r"\b[A-Z][a-z]{2,}(?:\s+[A-Z][a-z]{2,})*\b")
_NOT_ENTITIES = {"The", "This", "That", "These", "Those", "When", "Where", "What", "Why", "How"}

STOP_WORDS = frozenset("""
the a an and or but in on at to for of with by is are was were be been have has had do does did
will would should could can may might must shall this that these those i you he she it we they
me him her us them my your his its our their mine yours hers ours theirs myself yourself himself
herself itself ourselves yourselves themselves what which who whom whose where when why how all
any both each few more most other some such no nor not only own same so than too very just now
here there then also back even still way well get go know take see come think look want give use
find tell ask work seem feel try leave call
""".split())

CATEGORY_PATTERNS: List[tuple[str, re.Pattern]] = [
    (label, re.compile(rf"\b({words})\b", re.IGNORECASE))
    for label, words in [
        ("Technology", "software|programming|code|api|javascript|python|react|node|tech|computer|digital|app|web|development"),
        ("Business", "business|marketing|sales|company|revenue|profit|strategy|management|enterprise|corporate"),
        ("Science", "research|study|scientific|analysis|data|experiment|hypothesis|theory|methodology"),
        ("Health", "health|medical|healthcare|doctor|patient|treatment|medicine|clinical|therapy"),
        ("Education", "education|learning|teaching|student|course|tutorial|guide|lesson|training"),
        ("Sports", "sport|game|team|player|match|score|tournament|championship|athletic"),
        ("Travel", "travel|trip|vacation|destination|hotel|flight|tourism|guide|location"),
        ("Finance", "finance|financial|money|investment|bank|trading|market|economy|budget"),
        ("Food", "food|recipe|cooking|restaurant|cuisine|dish|ingredient|meal|dining"),
        ("Entertainment", "movie|film|music|song|entertainment|celebrity|show|performance|art"),
        ("News", "news|report|breaking|update|announcement|press|media|journalist"),
        ("Outdoors", "fishing|hunting|hiking|camping|outdoor|nature|wildlife|creek|river|lake|mountain|trail|recreation"),
    ]
]

# --- Sentences ---------------------------------------------------------------

def split_sentences(content: str) -> List[str]:
    """Sentence-like fragments longer than 20 characters, stripped, in order."""
    return [s.strip() for s in _SENTENCE_SPLIT.split(content or "") if len(s.strip()) > 20]

def first_sentences(content: str, count: int = 2) -> str:
    """Join the first `count` sentences; empty string when there are none."""
    picked = split_sentences(content)[:count]
    if not picked:
        return ""
    return ". ".join(picked) + "."

# --- Scores ------------------------------------------------------------------

def word_count(content: str) -> int:
    return len((content or "").split())

def estimate_confidence(content: str) -> int:
    confidence = min(CONFIDENCE_CEILING, max(CONFIDENCE_FLOOR, math.floor(word_count(content) / 15)))
    if _STRUCTURE.search(content):
        confidence += 5
    if _NUMBERS.search(content):
        confidence += 3
    if _REFERENCES.search(content):
        confidence += 7
    return max(CONFIDENCE_FLOOR, min(CONFIDENCE_CEILING, confidence))

def count_sources(content: str) -> int:
    urls = len(_URLS.findall(content))
    citations = len(_CITATIONS.findall(content))
    references = len(_REFERENCE_WORDS.findall(content))
    return min(urls + citations + references // 3, MAX_SOURCES)

# --- Keywords / metadata -----------------------------------------------------

def extract_keywords(content: str, title: str, limit: int = 8) -> List[str]:
    """
    Frequency ranking over title + content:
    - single words (stop words and <3 chars dropped): weight 1
    - 2-3 word compounds with no stop words: weight 2
    - capitalised terms from the original casing: weight 3
    """
    text = f"{title} {content}".lower()
    counts: Counter[str] = Counter()

    for word in _WORDS.findall(text):
        if word not in STOP_WORDS and len(word) > 2:
            counts[word] += 1

    for compound in _COMPOUNDS.findall(text):
        parts = compound.split()
        if len(parts) <= 3 and not any(p in STOP_WORDS for p in parts):
            counts[compound] += 2

    for term in _CAPITALIZED.findall(content):
        normalized = term.lower()
        if normalized not in STOP_WORDS:
            counts[normalized] += 3

    return [word for word, _ in counts.most_common(limit)]

def classify_category(text: str) -> str:
    for label, pattern in CATEGORY_PATTERNS:
        if pattern.search(text):
            return label
    return "General"

def extract_entities(content: str, limit: int = 5) -> List[str]:
    entities: List[str] = []
    entities.extend(_LOCATIONS.findall(content)[:3])
    entities.extend(_ORGANIZATIONS.findall(content)[:2])
    entities.extend([e for e in _PROPER_PHRASES.findall(content) if e not in _NOT_ENTITIES][:3])
    return list(dict.fromkeys(entities))[:limit]

def extract_metadata(content: str, title: str, keywords: List[str]) -> ResultMetadata:
    topic = keywords[0] if keywords else " ".join(title.split()[:3])
    return ResultMetadata(
        topic=topic[:1].upper() + topic[1:],
        category=classify_category(f"{title} {content}"),
        entities=extract_entities(content),
    )

# --- Entry point -------------------------------------------------------------

def fallback_summary(content: str, title: str) -> SummaryResult:
    """Build a complete SummaryResult without calling any model."""
    logger.info("Generating fallback summary for: %s", title[:50])
    content = content or ""

    if len(content.strip()) < MIN_FALLBACK_CHARS:
        return SummaryResult(
            summary=NOT_ENOUGH_CONTENT,
            confidence=CONFIDENCE_FLOOR,
            sources_count=0,
            keywords=[],
            metadata=None,
        )

    summary = first_sentences(content)
    if len(summary) <= 10:
        summary = f"Summary of {title}: {content[:200]}..."

    keywords = extract_keywords(content, title)
    result = SummaryResult(
        summary=summary,
        confidence=estimate_confidence(content),
        sources_count=count_sources(content),
        keywords=keywords,
        metadata=extract_metadata(content, title, keywords),
    )
    logger.info(
        "Fallback summary generated - confidence: %d%%, sources: %d, keywords: %d",
        result.confidence, result.sources_count, len(keywords),
    )
    return result
